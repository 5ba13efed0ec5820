"""Companion API entry point, served with ``uvicorn src.main:app``."""

from src.application import create_app

app = create_app()

__all__ = ["app"]
