"""Environment-driven settings."""
import os


def _flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./kinship.db")
LOG_LEVEL = os.environ.get("KINSHIP_LOG_LEVEL", "INFO").upper()

# Reject any edge that would close a cycle, not just immediate reversals.
STRICT_CYCLES = _flag("KINSHIP_STRICT_CYCLES")

HOST = os.environ.get("KINSHIP_HOST", "0.0.0.0")
PORT = int(os.environ.get("KINSHIP_PORT", "8000"))
