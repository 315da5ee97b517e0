"""Configuration loader for the loan intake application."""

import os
from pathlib import Path
from typing import Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class AppInfo(BaseModel):
    """Application metadata."""

    name: str = "Loan Intake"
    version: str = "1.0.0"
    log_level: str = "INFO"


class ExtractionConfig(BaseModel):
    """Text extraction (PDF parsing and OCR) configuration."""

    ocr_language: str = "eng"
    image_extensions: list[str] = Field(
        default_factory=lambda: [".png", ".jpg", ".jpeg", ".bmp"]
    )
    timeout_seconds: float = 120.0


class ChunkingConfig(BaseModel):
    """Text chunking configuration."""

    policy: Literal["sentence", "word_window"] = "sentence"
    max_words: int = Field(default=1000, gt=0)


class EmbeddingConfig(BaseModel):
    """Embedding model configuration."""

    model: str = "text-embedding-3-small"
    timeout_seconds: float = 30.0


class RetrievalConfig(BaseModel):
    """Retrieval pipeline configuration."""

    top_k: int = Field(default=50, gt=0)
    timeout_seconds: float = 60.0
    income_query: str = (
        "what is the exact monthly income of the candidate as per the salary "
        "slip or payslip. Give me the exact amount"
    )
    credit_query: str = "credit history payments loans debt"
    identity_query: str = "identification verification identity proof"

    def topic_queries(self) -> dict[str, str]:
        return {
            "income": self.income_query,
            "credit": self.credit_query,
            "identity": self.identity_query,
        }


class GenerationConfig(BaseModel):
    """LLM generation configuration."""

    model: str = "gpt-4o-2024-08-06"
    max_tokens: int = 4000
    temperature: float = 0.2
    answer_temperature: float = 0.9
    answer_max_words: int = Field(default=40, gt=0)
    timeout_seconds: float = 120.0


class AnalysisConfig(BaseModel):
    """Analysis persistence policy."""

    rerun_policy: Literal["replace", "append"] = "replace"


class StorageConfig(BaseModel):
    """Storage paths configuration."""

    chroma_dir: str = "./db/chroma"
    collection_name: str = "loan_chunks"
    sqlite_path: str = "./db/app.db"
    uploads_dir: str = "./data/uploads"


class AppConfig(BaseModel):
    """Root application configuration."""

    app: AppInfo = Field(default_factory=AppInfo)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    # API key loaded from environment
    openai_api_key: str | None = None


def load_config(config_path: str | Path = "config.yaml") -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Fully populated AppConfig instance.
    """
    load_dotenv()

    yaml_data: dict = {}
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file) as f:
            yaml_data = yaml.safe_load(f) or {}

    config = AppConfig(**yaml_data)

    # Override API key from environment
    config.openai_api_key = os.getenv("OPENAI_API_KEY")

    return config
