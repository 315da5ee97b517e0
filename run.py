"""Command-line entry point for the loan intake application."""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from loan_intake.config import AppConfig, load_config
from loan_intake.exceptions import IngestionError, LoanIntakeError
from loan_intake.logging_config import configure_logging
from loan_intake.models.application import ApplicantProfile
from loan_intake.models.chunk import UploadedFile
from loan_intake.storage.database import initialize_database
from loan_intake.underwriting import UnderwritingService, build_service


def _read(path: str) -> UploadedFile:
    file_path = Path(path)
    return UploadedFile(file_name=file_path.name, data=file_path.read_bytes())


def _print(data: object) -> None:
    print(json.dumps(data, indent=2, default=str))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Loan intake and underwriting")
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create storage directories and the database")

    submit = sub.add_parser("submit", help="Submit a loan application")
    submit.add_argument("--name", required=True)
    submit.add_argument("--age", type=int, required=True)
    submit.add_argument("--credit-score", type=int, required=True)
    submit.add_argument("--email", required=True)
    submit.add_argument("--photo", help="Path to the applicant photo")
    submit.add_argument("--payslip", action="append", default=[])
    submit.add_argument("--bank-statement", action="append", default=[])
    submit.add_argument("--pan-card")
    submit.add_argument("--aadhaar-card")

    ingest = sub.add_parser("ingest", help="Ingest standalone files")
    ingest.add_argument("files", nargs="+")

    for name, help_text in (
        ("analyze", "Analyze an application"),
        ("show", "Show the latest analysis of an application"),
        ("reject", "Reject a pending application"),
        ("delete", "Delete an application and its documents"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("application_id")

    sub.add_parser("purge", help="Delete all chunks, vectors and analyses")

    search = sub.add_parser("search", help="Show retrieved context for a question")
    search.add_argument("query")

    ask = sub.add_parser("ask", help="Answer a question from the stored documents")
    ask.add_argument("question")

    return parser


async def dispatch(args: argparse.Namespace, service: UnderwritingService) -> None:
    if args.command == "submit":
        profile = ApplicantProfile(
            name=args.name,
            age=args.age,
            credit_score=args.credit_score,
            email=args.email,
        )
        application = await service.submit_application(
            profile,
            payslips=[_read(p) for p in args.payslip],
            bank_statements=[_read(p) for p in args.bank_statement],
            pan_card=_read(args.pan_card) if args.pan_card else None,
            aadhaar_card=_read(args.aadhaar_card) if args.aadhaar_card else None,
            photo=_read(args.photo) if args.photo else None,
        )
        _print({"application_id": application.id})
    elif args.command == "ingest":
        refs = await service.ingest_files([_read(p) for p in args.files])
        _print([ref.model_dump() for ref in refs])
    elif args.command == "analyze":
        analysis = await service.analyze(args.application_id)
        _print(analysis.model_dump(mode="json", by_alias=True))
    elif args.command == "show":
        analysis = await service.get_analysis(args.application_id)
        _print(analysis.model_dump(mode="json", by_alias=True))
    elif args.command == "reject":
        application = await service.reject_application(args.application_id)
        _print({"application_id": application.id, "status": application.status})
    elif args.command == "delete":
        report = await service.delete_application(args.application_id)
        _print(report.model_dump())
    elif args.command == "purge":
        _print({"chunks_deleted": await service.purge_all()})
    elif args.command == "search":
        print(await service.search(args.query))
    elif args.command == "ask":
        answer = await service.ask(args.question)
        _print(answer.model_dump())


def prepare_storage(config: AppConfig) -> None:
    # Ensure required directories exist
    Path(config.storage.uploads_dir).mkdir(parents=True, exist_ok=True)
    Path(config.storage.chroma_dir).mkdir(parents=True, exist_ok=True)

    # Initialize SQLite database
    initialize_database(config.storage.sqlite_path)


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, prepare storage and run one command."""
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    configure_logging(config.app.log_level)
    prepare_storage(config)

    if args.command == "init":
        return 0

    try:
        asyncio.run(dispatch(args, build_service(config)))
    except IngestionError as exc:
        print(f"Ingestion failed for {exc.file_name}: {exc.reason}", file=sys.stderr)
        return 1
    except LoanIntakeError as exc:
        print(f"{exc.stage} failed: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
