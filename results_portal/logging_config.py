"""Logging setup shared by the application."""

import hashlib
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def fingerprint(secret: str) -> str:
    """Short, non-reversible tag for a bearer token so it can appear in logs."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()[:8]
