from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import HeaderNotFound
from .formats import WISE, StatementFormat
from .normalize import parse_date


@dataclass(frozen=True)
class StatementHeader:
    currency: str
    period_from: datetime.date
    period_to: datetime.date

    def contains(self, day: datetime.date) -> bool:
        return self.period_from <= day <= self.period_to


def match_currency(line: str, fmt: StatementFormat = WISE) -> Optional[str]:
    """'EUR statement' -> 'EUR'."""
    for pattern in fmt.currency_lines:
        m = pattern.match(line)
        if m:
            return m.group("currency")
    return None


def match_period(
    line: str,
    fmt: StatementFormat = WISE,
    line_number: Optional[int] = None,
) -> Optional[Tuple[datetime.date, datetime.date]]:
    """
    '1 November 2025 [GMT] - 30 November 2025 [GMT]' -> (date(2025, 11, 1), date(2025, 11, 30)).
    None si la línea no tiene forma de periodo; si la tiene pero las fechas
    no son válidas se propaga MalformedDate.
    """
    m = fmt.period_line.match(line)
    if not m:
        return None

    start = parse_date(m.group("start"), fmt, line=line, line_number=line_number)
    end = parse_date(m.group("end"), fmt, line=line, line_number=line_number)
    if end < start:
        raise HeaderNotFound(
            "Not a valid Wise statement: statement period ends before it starts",
            line=line,
            line_number=line_number,
        )
    return start, end


def build_header(
    currency: Optional[str],
    period: Optional[Tuple[datetime.date, datetime.date]],
) -> StatementHeader:
    """Cierra la fase de cabecera; falla si falta alguno de los dos anclajes."""
    if currency is None:
        raise HeaderNotFound(
            'Not a valid Wise statement: could not find currency line (e.g. "EUR statement")'
        )
    if period is None:
        raise HeaderNotFound("Not a valid Wise statement: could not find statement period")
    return StatementHeader(currency=currency, period_from=period[0], period_to=period[1])
