"""Makefile directive parsing."""

from __future__ import annotations

from .directives import parse_aliases, parse_variable
from .scanner import Scanner, ScannerState

__all__ = ["Scanner", "ScannerState", "parse_aliases", "parse_variable"]
