import logging
import os
from typing import List

logger = logging.getLogger(__name__)

DEFAULT_ENCRYPTION_KEY = "secret_key"


def get_encryption_key() -> str:
    """
    Return the passphrase used to encrypt notes at rest.

    Env:
      SECRET_NOTES_KEY: the passphrase. Falls back to a fixed development key
      (with a warning) when unset.
    """
    key = (os.getenv("SECRET_NOTES_KEY") or "").strip()
    if key:
        return key

    logger.warning("SECRET_NOTES_KEY is not set; using the built-in development key.")
    return DEFAULT_ENCRYPTION_KEY


def parse_allowed_origins() -> List[str]:
    """
    Parse comma-separated ALLOWED_ORIGINS from env.

    Falls back to localhost dev origins when not set.
    """
    raw = (os.getenv("ALLOWED_ORIGINS") or "").strip()
    if not raw:
        return ["http://localhost:3000", "http://127.0.0.1:3000"]

    origins = [o.strip() for o in raw.split(",")]
    return [o for o in origins if o]


def parse_allowed_origin_regex() -> str | None:
    """Return the optional ALLOWED_ORIGIN_REGEX override, or None."""
    raw = (os.getenv("ALLOWED_ORIGIN_REGEX") or "").strip()
    return raw or None
