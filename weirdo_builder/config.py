import json
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DATA_DIR = Path(os.getenv("DATA_DIR", "data"))
DATA_DIR.mkdir(exist_ok=True)

DB_URL = os.getenv("DB_URL", f"sqlite:///./{DATA_DIR.as_posix()}/warbands.db")
DEBUG = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()


def _load_json_list(env_key: str, default: list) -> list:
    raw_value = os.getenv(env_key)
    if not raw_value:
        return default
    try:
        parsed = json.loads(raw_value)
    except json.JSONDecodeError:
        return default
    return parsed if isinstance(parsed, list) else default


def _load_int(env_key: str, default: int) -> int:
    raw_value = os.getenv(env_key)
    if not raw_value:
        return default
    try:
        parsed = int(raw_value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


CORS_ORIGINS = _load_json_list("CORS_ORIGINS", ["*"])
MAX_IMPORT_BYTES = _load_int("MAX_IMPORT_BYTES", 10 * 1024 * 1024)
