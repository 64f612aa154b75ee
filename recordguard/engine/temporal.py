"""Date and date-time comparisons used by the ``time`` validator.

Aware date-times are converted to UTC and naive ones are taken as UTC. With
``with_time`` off only the calendar date takes part in a comparison.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from datetime import datetime
from datetime import time as time_of_day
from datetime import timedelta
from datetime import timezone
from enum import Enum
from typing import Any
from typing import Union

from recordguard.core.errors import SchemaDefinitionError

Temporal = Union[date, datetime]
TimeTarget = Union[str, date, datetime, Callable[[], Temporal]]
Clock = Callable[[], datetime]


class TimeOp(str, Enum):
    BEFORE = "before"
    AFTER = "after"
    BEFORE_NOW = "before_now"
    AFTER_NOW = "after_now"
    BEFORE_FROM_NOW = "before_from_now"
    AFTER_FROM_NOW = "after_from_now"
    IN_PERIOD = "in_period"


_TARGET_OPS = frozenset({TimeOp.BEFORE, TimeOp.AFTER, TimeOp.IN_PERIOD})
_INTERVAL_OPS = frozenset({TimeOp.BEFORE_FROM_NOW, TimeOp.AFTER_FROM_NOW, TimeOp.IN_PERIOD})
_INCLUSIVE_BY_DEFAULT = frozenset({TimeOp.BEFORE_FROM_NOW, TimeOp.AFTER_FROM_NOW, TimeOp.IN_PERIOD})


@dataclass(frozen=True)
class Interval:
    """Signed quantities summed into one duration."""

    seconds: int = 0
    minutes: int = 0
    hours: int = 0
    days: int = 0
    weeks: int = 0

    def to_timedelta(self) -> timedelta:
        return timedelta(
            seconds=self.seconds,
            minutes=self.minutes,
            hours=self.hours,
            days=self.days,
            weeks=self.weeks,
        )


class TargetParseError(ValueError):
    """Raised when a literal target does not match its declared format."""

    def __init__(self, target: str, format: str) -> None:
        super().__init__(f"Time target {target!r} does not match format {format!r}")
        self.target = target
        self.format = format


@dataclass(frozen=True)
class Comparison:
    passed: bool
    params: dict[str, Any]


def default_inclusive(op: TimeOp) -> bool:
    return op in _INCLUSIVE_BY_DEFAULT


def check_options(
    op: TimeOp,
    *,
    target: TimeTarget | None,
    format: str | None,
    interval: Interval | timedelta | None,
) -> None:
    """Reject option combinations an op cannot evaluate."""
    if op in _TARGET_OPS and target is None:
        raise SchemaDefinitionError(f"{op.value} requires a target")
    if op not in _TARGET_OPS and target is not None:
        raise SchemaDefinitionError(f"{op.value} cannot have a target")
    if op in _INTERVAL_OPS and interval is None:
        raise SchemaDefinitionError(f"{op.value} requires an interval")
    if op not in _INTERVAL_OPS and interval is not None:
        raise SchemaDefinitionError(f"{op.value} cannot have an interval")

    if op in (TimeOp.BEFORE_FROM_NOW, TimeOp.AFTER_FROM_NOW) and _as_timedelta(interval) < timedelta(0):
        raise SchemaDefinitionError(
            f"{op.value} requires a non-negative interval; use the opposite op to look the other way"
        )

    if isinstance(target, str):
        if format is None:
            raise SchemaDefinitionError("string targets require a format")
        try:
            datetime.strptime(target, format)
        except ValueError as exc:
            raise SchemaDefinitionError(f"target {target!r} does not match format {format!r}") from exc
    elif format is not None:
        raise SchemaDefinitionError("format only applies to string targets")


def compare(
    value: Temporal,
    op: TimeOp,
    *,
    target: TimeTarget | None = None,
    format: str | None = None,
    interval: Interval | timedelta | None = None,
    inclusive: bool | None = None,
    with_time: bool = False,
    clock: Clock | None = None,
) -> Comparison:
    """Evaluate ``op`` against ``value``.

    Raises :class:`TargetParseError` when a string target cannot be parsed.
    """
    if inclusive is None:
        inclusive = default_inclusive(op)
    actual = _normalize(value, with_time)

    if op is TimeOp.IN_PERIOD:
        start = resolve_target(target, format, with_time)
        end = start + _as_timedelta(interval)
        low, high = (start, end) if start <= end else (end, start)
        if inclusive:
            passed = low <= actual <= high
        else:
            passed = low < actual < high
        return Comparison(passed=passed, params={"actual": value, "from": low, "to": high})

    if op in (TimeOp.BEFORE, TimeOp.AFTER):
        boundary = resolve_target(target, format, with_time)
    else:
        boundary = _now(clock, with_time)
        if op is TimeOp.BEFORE_FROM_NOW:
            boundary = boundary - _as_timedelta(interval)
        elif op is TimeOp.AFTER_FROM_NOW:
            boundary = boundary + _as_timedelta(interval)

    if op in (TimeOp.BEFORE, TimeOp.BEFORE_NOW, TimeOp.BEFORE_FROM_NOW):
        passed = actual <= boundary if inclusive else actual < boundary
    else:
        passed = actual >= boundary if inclusive else actual > boundary
    return Comparison(passed=passed, params={"actual": value, "target": boundary})


def resolve_target(target: TimeTarget | None, format: str | None, with_time: bool) -> Temporal:
    if target is None:
        raise SchemaDefinitionError("time comparison needs a target")
    if isinstance(target, str):
        try:
            parsed = datetime.strptime(target, format or "")
        except ValueError as exc:
            raise TargetParseError(target, format or "") from exc
        return _normalize(parsed, with_time)
    if isinstance(target, date):
        return _normalize(target, with_time)
    return _normalize(target(), with_time)


def _now(clock: Clock | None, with_time: bool) -> Temporal:
    now = clock() if clock is not None else datetime.now(timezone.utc)
    return _normalize(now, with_time)


def _normalize(value: Temporal, with_time: bool) -> Temporal:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value if with_time else value.date()
    if with_time:
        return datetime.combine(value, time_of_day.min)
    return value


def _as_timedelta(interval: Interval | timedelta | None) -> timedelta:
    if interval is None:
        return timedelta(0)
    if isinstance(interval, timedelta):
        return interval
    return interval.to_timedelta()
