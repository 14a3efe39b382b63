from __future__ import annotations

import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from .errors import MalformedAmount, MalformedDate
from .formats import WISE, StatementFormat

CENT = Decimal("0.01")


def parse_date(
    token: str,
    fmt: StatementFormat = WISE,
    line: Optional[str] = None,
    line_number: Optional[int] = None,
) -> datetime.date:
    """
    "5 January 2024" / "05 Jan 2024" -> date(2024, 1, 5).
    Mes desconocido o día imposible => MalformedDate con la línea de origen.
    """
    s = " ".join((token or "").split())
    m = fmt.date_prefix.match(s)
    if not m or m.end() != len(s):
        raise MalformedDate(f'Invalid date "{s}"', line=line, line_number=line_number)

    month = fmt.months.get(m.group("month").lower())
    if month is None:
        raise MalformedDate(
            f'Unknown month "{m.group("month")}" in date "{s}"', line=line, line_number=line_number
        )

    try:
        return datetime.date(int(m.group("year")), month, int(m.group("day")))
    except ValueError:
        raise MalformedDate(f'Impossible calendar date "{s}"', line=line, line_number=line_number)


def to_iso(value: datetime.date) -> str:
    return value.isoformat()


def parse_date_iso(token: str, fmt: StatementFormat = WISE) -> str:
    return to_iso(parse_date(token, fmt))


def parse_amount(
    token: str,
    fmt: StatementFormat = WISE,
    line: Optional[str] = None,
    line_number: Optional[int] = None,
) -> Decimal:
    """
    Monto con signo -> Decimal con 2 decimales.
    Acepta "1,000.00", "-25.51", "+0.59", "120", "3.5". No redondea ni trunca:
    cualquier token fuera de la gramática es MalformedAmount.
    """
    raw = (token or "").strip()
    m = fmt.amount.match(raw)
    if not m:
        raise MalformedAmount(
            f'Invalid amount "{raw}"', line=line, line_number=line_number, token=raw
        )

    digits = m.group("int").replace(fmt.thousands_sep, "")
    frac = m.group("frac") or ""
    value = Decimal(f"{digits}.{frac}" if frac else digits).quantize(CENT)
    if m.group("sign") in ("-", "−"):
        value = -value
    return value


def split_amounts(line: str, fmt: StatementFormat = WISE) -> Optional[List[str]]:
    """
    Divide una línea de montos de Wise en sus tokens.
    "-25.51 697.15" -> ["-25.51", "697.15"]; "-32.001,925.99" -> ["-32.00", "1,925.99"].
    Devuelve None si la línea no es (solo) montos.
    """
    m = fmt.amounts_line.match(line.strip())
    if not m:
        return None
    return [t for t in (m.group("first"), m.group("second")) if t]


def signed_to_columns(value: Decimal) -> Tuple[Optional[Decimal], Optional[Decimal], Decimal]:
    """
    Monto con signo -> (incoming, outgoing, amount).
    Negativo => outgoing; cero o positivo => incoming.
    """
    if value < 0:
        return None, -value, -value
    value = abs(value)
    return value, None, value
