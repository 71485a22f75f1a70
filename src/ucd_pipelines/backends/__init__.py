# src/ucd_pipelines/backends/__init__.py
"""Backends de fonte: espelho local em disco e fixture em memória."""

from .local import LocalBackend
from .memory import MemoryBackend

__all__ = ["LocalBackend", "MemoryBackend"]
