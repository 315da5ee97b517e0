"""SQLite-backed store for loan applications and their analyses."""

import asyncio
import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from loan_intake.exceptions import NotFound, StoreError
from loan_intake.models.analysis import AnalysisResult, LoanAnalysis
from loan_intake.models.application import (
    ApplicantProfile,
    ApplicationDocuments,
    ApplicationStatus,
    LoanApplication,
)
from loan_intake.storage.database import get_connection

logger = logging.getLogger(__name__)


class SqliteApplicationStore:
    """System of record for applications and analysis passes.

    Args:
        db_path: Path to an initialized SQLite database.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = db_path

    # ── Applications ─────────────────────────────────────────────────────

    async def create_application(self, application: LoanApplication) -> LoanApplication:
        await asyncio.to_thread(self._insert_application, application)
        return application

    async def get_application(self, application_id: str) -> LoanApplication:
        """Fetch an application.

        Raises:
            NotFound: If no application has this id.
        """
        application = await asyncio.to_thread(self._select_application, application_id)
        if application is None:
            raise NotFound("application", application_id)
        return application

    async def list_applications(self) -> list[LoanApplication]:
        return await asyncio.to_thread(self._select_applications)

    async def update_status(self, application_id: str, status: ApplicationStatus) -> None:
        rowcount = await asyncio.to_thread(
            self._write,
            "UPDATE applications SET status = ?, updated_at = ? WHERE id = ?",
            (status, datetime.now().isoformat(), application_id),
        )
        if rowcount == 0:
            raise NotFound("application", application_id)

    async def delete_application(self, application_id: str) -> bool:
        rowcount = await asyncio.to_thread(
            self._write, "DELETE FROM applications WHERE id = ?", (application_id,)
        )
        return rowcount > 0

    # ── Analyses ─────────────────────────────────────────────────────────

    async def save_analysis(self, analysis: LoanAnalysis, replace: bool = False) -> LoanAnalysis:
        """Persist an analysis pass.

        Args:
            analysis: The record to store.
            replace: Delete earlier analyses of the same application in the
                same transaction.
        """
        await asyncio.to_thread(self._insert_analysis, analysis, replace)
        return analysis

    async def get_latest_analysis(self, application_id: str) -> LoanAnalysis:
        """Fetch the most recent completed analysis of an application.

        Raises:
            NotFound: If the application has no completed analysis.
        """
        analysis = await asyncio.to_thread(self._select_latest_analysis, application_id)
        if analysis is None:
            raise NotFound("analysis", application_id)
        return analysis

    async def list_analyses(self, application_id: str) -> list[LoanAnalysis]:
        return await asyncio.to_thread(self._select_analyses, application_id)

    async def delete_analyses(self, application_id: str) -> int:
        return await asyncio.to_thread(
            self._write, "DELETE FROM analyses WHERE application_id = ?", (application_id,)
        )

    async def delete_all_analyses(self) -> int:
        return await asyncio.to_thread(self._write, "DELETE FROM analyses", ())

    # ── SQL helpers ──────────────────────────────────────────────────────

    def _connect(self) -> sqlite3.Connection:
        return get_connection(self._db_path)

    def _write(self, sql: str, params: tuple) -> int:
        try:
            conn = self._connect()
            try:
                cursor = conn.execute(sql, params)
                conn.commit()
                return cursor.rowcount
            finally:
                conn.close()
        except sqlite3.Error as exc:
            logger.exception("Application store write failed")
            raise StoreError(f"Application store write failed: {exc}") from exc

    def _query(self, sql: str, params: tuple) -> list[sqlite3.Row]:
        try:
            conn = self._connect()
            try:
                return conn.execute(sql, params).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            logger.exception("Application store read failed")
            raise StoreError(f"Application store read failed: {exc}") from exc

    def _insert_application(self, application: LoanApplication) -> None:
        profile = application.profile
        self._write(
            """
            INSERT INTO applications (
                id, name, age, credit_score, email, photo_url,
                documents_json, status, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                application.id,
                profile.name,
                profile.age,
                profile.credit_score,
                profile.email,
                profile.photo_url,
                application.documents.model_dump_json(),
                application.status,
                application.created_at.isoformat(),
                application.updated_at.isoformat(),
            ),
        )

    def _select_application(self, application_id: str) -> LoanApplication | None:
        rows = self._query("SELECT * FROM applications WHERE id = ?", (application_id,))
        return self._row_to_application(rows[0]) if rows else None

    def _select_applications(self) -> list[LoanApplication]:
        rows = self._query("SELECT * FROM applications ORDER BY created_at", ())
        return [self._row_to_application(row) for row in rows]

    def _row_to_application(self, row: sqlite3.Row) -> LoanApplication:
        return LoanApplication(
            id=row["id"],
            profile=ApplicantProfile(
                name=row["name"],
                age=row["age"],
                credit_score=row["credit_score"],
                email=row["email"],
                photo_url=row["photo_url"] or "",
            ),
            documents=ApplicationDocuments.model_validate_json(row["documents_json"]),
            status=row["status"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _insert_analysis(self, analysis: LoanAnalysis, replace: bool) -> None:
        analysis_json = (
            analysis.analysis.model_dump_json(by_alias=True) if analysis.analysis else None
        )
        try:
            conn = self._connect()
            try:
                with conn:
                    if replace:
                        conn.execute(
                            "DELETE FROM analyses WHERE application_id = ?",
                            (analysis.application_id,),
                        )
                    conn.execute(
                        """
                        INSERT INTO analyses (
                            id, application_id, analysis_json, status,
                            failure_stage, failure_reason, created_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            analysis.id,
                            analysis.application_id,
                            analysis_json,
                            analysis.status,
                            analysis.failure_stage,
                            analysis.failure_reason,
                            analysis.created_at.isoformat(),
                        ),
                    )
            finally:
                conn.close()
        except sqlite3.Error as exc:
            logger.exception("Failed to save analysis for %s", analysis.application_id)
            raise StoreError(f"Failed to save analysis: {exc}") from exc

    def _select_latest_analysis(self, application_id: str) -> LoanAnalysis | None:
        rows = self._query(
            "SELECT * FROM analyses WHERE application_id = ? AND status = 'completed' "
            "ORDER BY created_at DESC, rowid DESC LIMIT 1",
            (application_id,),
        )
        return self._row_to_analysis(rows[0]) if rows else None

    def _select_analyses(self, application_id: str) -> list[LoanAnalysis]:
        rows = self._query(
            "SELECT * FROM analyses WHERE application_id = ? ORDER BY created_at, rowid",
            (application_id,),
        )
        return [self._row_to_analysis(row) for row in rows]

    def _row_to_analysis(self, row: sqlite3.Row) -> LoanAnalysis:
        payload = row["analysis_json"]
        return LoanAnalysis(
            id=row["id"],
            application_id=row["application_id"],
            analysis=AnalysisResult.model_validate(json.loads(payload)) if payload else None,
            status=row["status"],
            failure_stage=row["failure_stage"],
            failure_reason=row["failure_reason"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
