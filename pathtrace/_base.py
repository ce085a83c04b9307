from __future__ import annotations

from typing import TypeVar

T = TypeVar("T")
"""Typed expressions use this generic type variable."""
