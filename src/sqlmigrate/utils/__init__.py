"""Shared utilities: logging setup and SQL helpers."""
