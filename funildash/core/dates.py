"""FunilDash — Date helpers for period parameters."""

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from funildash.core.errors import ValidationFailed

DATE_FORMAT = "%Y-%m-%d"


def parse_date(value: Optional[str], field: str) -> str:
    """Validate a YYYY-MM-DD date and return it zero-padded.

    Stored periods are compared as text, so ``2025-1-5`` must come back as
    ``2025-01-05``.
    """
    try:
        parsed = datetime.strptime(value, DATE_FORMAT)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ValidationFailed(f"{field} must be a date in YYYY-MM-DD format")
    return parsed.strftime(DATE_FORMAT)


def resolve_period(
    start_date: Optional[str],
    end_date: Optional[str],
    default_days: int,
    today: Optional[date] = None,
) -> tuple[str, str]:
    """Resolve period parameters into (start, end) strings.

    Missing bounds default to ``default_days`` before today and today.
    """
    today = today or datetime.now(timezone.utc).date()
    start = (
        parse_date(start_date, "periodo_inicio")
        if start_date
        else (today - timedelta(days=default_days)).strftime(DATE_FORMAT)
    )
    end = parse_date(end_date, "periodo_fim") if end_date else today.strftime(DATE_FORMAT)
    return start, end


def period_days(start: str, end: str) -> List[str]:
    """Every calendar day from ``start`` to ``end``, both inclusive."""
    first = datetime.strptime(parse_date(start, "periodo_inicio"), DATE_FORMAT).date()
    last = datetime.strptime(parse_date(end, "periodo_fim"), DATE_FORMAT).date()
    return [
        (first + timedelta(days=offset)).strftime(DATE_FORMAT)
        for offset in range((last - first).days + 1)
    ]
