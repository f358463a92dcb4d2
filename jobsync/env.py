import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def load_env() -> None:
    """Load .env from project root if present.
    Existing environment variables win over values from the file.
    """
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


@dataclass
class Settings:
    """Runtime configuration, read from the environment."""

    store_path: Path = Path("data/jobs.json")
    db_path: Optional[Path] = None
    github_token: Optional[str] = None
    timeout: float = 20.0
    max_retries: int = 2
    log_level: str = "INFO"
    log_dir: Path = Path("logs")

    @classmethod
    def from_env(cls) -> "Settings":
        db = os.getenv("JOBSYNC_DB")
        return cls(
            store_path=Path(os.getenv("JOBSYNC_STORE", "data/jobs.json")),
            db_path=Path(db) if db else None,
            github_token=os.getenv("GITHUB_TOKEN") or None,
            timeout=_env_float("JOBSYNC_TIMEOUT", 20.0),
            max_retries=_env_int("JOBSYNC_MAX_RETRIES", 2),
            log_level=os.getenv("JOBSYNC_LOG_LEVEL", "INFO"),
            log_dir=Path(os.getenv("JOBSYNC_LOG_DIR", "logs")),
        )
