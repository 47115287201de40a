"""Explicit parsing of user-supplied values.

Every command that accepts free-form input runs it through one of these
parsers first. A failed parse yields a ``ParseResult`` with ``ok`` False and
the command is rejected without touching state, so non-numeric values never
reach cached totals.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Outcome of a parse: either a value or an error message."""

    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> ParseResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> ParseResult[T]:
        return cls(error=error)


def parse_float(raw: Any) -> ParseResult[float]:
    """Parse a finite float from a number or numeric string."""
    if isinstance(raw, bool) or raw is None:
        return ParseResult.failure(f"not a number: {raw!r}")
    try:
        value = float(raw.strip() if isinstance(raw, str) else raw)
    except (TypeError, ValueError, OverflowError):
        return ParseResult.failure(f"not a number: {raw!r}")
    if not math.isfinite(value):
        return ParseResult.failure(f"not a finite number: {raw!r}")
    return ParseResult.success(value)


def parse_int(raw: Any) -> ParseResult[int]:
    """Parse an int, truncating fractional input toward zero.

    Example:
        >>> parse_int("2.9").value
        2
        >>> parse_int(-3.5).value
        -3
    """
    if isinstance(raw, int) and not isinstance(raw, bool):
        return ParseResult.success(raw)
    if isinstance(raw, str):
        try:
            return ParseResult.success(int(raw.strip()))
        except ValueError:
            pass
    as_float = parse_float(raw)
    if not as_float.ok:
        return ParseResult.failure(f"not an integer: {raw!r}")
    return ParseResult.success(int(as_float.value))  # type: ignore[arg-type]


def parse_date(raw: Any) -> ParseResult[date]:
    """Parse a calendar date from a ``date``, ``datetime`` or ISO string."""
    if isinstance(raw, datetime):
        return ParseResult.success(raw.date())
    if isinstance(raw, date):
        return ParseResult.success(raw)
    if isinstance(raw, str):
        try:
            return ParseResult.success(date.fromisoformat(raw.strip()))
        except ValueError:
            pass
    return ParseResult.failure(f"not an ISO date (YYYY-MM-DD): {raw!r}")


def parse_gender(raw: Any) -> ParseResult[str]:
    """Normalize a gender tag.

    Anything that is not ``female`` is kept as given; BMR treats every
    non-female value with the male constant.
    """
    if not isinstance(raw, str) or not raw.strip():
        return ParseResult.failure(f"not a gender: {raw!r}")
    return ParseResult.success(raw.strip().lower())


def parse_bool(raw: Any) -> ParseResult[bool]:
    if isinstance(raw, bool):
        return ParseResult.success(raw)
    if isinstance(raw, str) and raw.strip().lower() in ("true", "yes", "1", "on"):
        return ParseResult.success(True)
    if isinstance(raw, str) and raw.strip().lower() in ("false", "no", "0", "off"):
        return ParseResult.success(False)
    return ParseResult.failure(f"not a boolean: {raw!r}")
