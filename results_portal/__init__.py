"""Application package for the school results portal."""

from .main import app  # noqa: F401
