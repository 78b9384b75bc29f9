import os
import logging
from pathlib import Path
from dataclasses import dataclass
from dotenv import load_dotenv
load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parents[3]

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _int_or_none(raw: str | None) -> int | None:
    raw = (raw or "").strip()
    return int(raw) if raw else None


@dataclass
class Settings:
    DB_URL: str = os.getenv("DB_URL", f"sqlite:///{PROJECT_ROOT}/data/skillgraph.db")

    # Chat completions (any OpenAI-compatible endpoint)
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_TIMEOUT: int = int(os.getenv("OPENAI_TIMEOUT", "90"))
    OPENAI_MAX_RETRIES: int = int(os.getenv("OPENAI_MAX_RETRIES", "2"))

    # Embeddings: mock | local | openai | ollama
    EMBEDDING_BINDING: str = os.getenv("EMBEDDING_BINDING", "mock")
    EMBEDDING_MODEL: str = os.getenv("EMBEDDING_MODEL", "")
    EMBEDDING_DIM: int | None = _int_or_none(os.getenv("EMBEDDING_DIM"))
    EMBEDDING_BINDING_HOST: str = os.getenv("EMBEDDING_BINDING_HOST", "")
    EMBEDDING_TIMEOUT: int = int(os.getenv("EMBEDDING_TIMEOUT", "300"))
    OPENAI_EMBED_MODEL: str = os.getenv("OPENAI_EMBED_MODEL", "text-embedding-3-small")
    LOCAL_EMBED_MODEL: str = os.getenv("LOCAL_EMBED_MODEL", "all-MiniLM-L6-v2")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)
