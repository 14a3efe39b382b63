from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Pattern, Tuple


_MONTH_NAMES = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)

MONTHS: Dict[str, int] = {}
for _i, _name in enumerate(_MONTH_NAMES, start=1):
    MONTHS[_name] = _i
    MONTHS[_name[:3]] = _i
MONTHS["sept"] = 9

# Forma de una fecha "5 January 2024" (sin validar mes ni día)
DATE_SHAPE = r"\d{1,2} [A-Za-z]{3,9}\.? \d{4}"


def amount_patterns(thousands_sep: str, decimal_sep: str) -> Tuple[Pattern[str], Pattern[str]]:
    """
    Construye las dos gramáticas de montos para un par de separadores:
    - amount: un token suelto (signo opcional, 0-2 decimales)
    - amounts_line: línea "monto [saldo]" con 2 decimales, con o sin espacio
      entre ambos (algunos extractores de PDF pegan las columnas)
    """
    th = re.escape(thousands_sep)
    dec = re.escape(decimal_sep)
    amount = re.compile(
        rf"^(?P<sign>[-+−]?)(?P<int>[0-9]{{1,3}}(?:{th}[0-9]{{3}})+|[0-9]+)"
        rf"(?:{dec}(?P<frac>[0-9]{{1,2}}))?$"
    )
    token = rf"[-+−]?(?:[0-9]{{1,3}}(?:{th}[0-9]{{3}})+|[0-9]+){dec}[0-9]{{2}}"
    amounts_line = re.compile(rf"^(?P<first>{token})(?: ?(?P<second>{token}))?$")
    return amount, amounts_line


@dataclass(frozen=True)
class StatementFormat:
    """
    Gramática de un formato de extracto. El state machine de segment.py
    solo habla con esta configuración, nunca con textos de Wise directamente.
    """
    name: str
    currency_lines: Tuple[Pattern[str], ...]
    period_line: Pattern[str]
    date_prefix: Pattern[str]
    months: Dict[str, int]
    thousands_sep: str
    decimal_sep: str
    amount: Pattern[str]
    amounts_line: Pattern[str]
    table_header: Pattern[str]
    page_footers: Tuple[Pattern[str], ...]
    boilerplate: Tuple[Pattern[str], ...]
    transaction_marker: Pattern[str]
    reference_token: Pattern[str]
    reconcile_balances: bool = True


_WISE_AMOUNT, _WISE_AMOUNTS_LINE = amount_patterns(",", ".")

WISE = StatementFormat(
    name="wise",
    currency_lines=(
        re.compile(r"^(?P<currency>[A-Z]{3}) statement$"),
        re.compile(r"^(?:Account )?[Cc]urrency:? ?(?P<currency>[A-Z]{3})$"),
    ),
    period_line=re.compile(
        r"^(?:statement period:? ?)?(?:from )?"
        rf"(?P<start>{DATE_SHAPE})(?: ?\[[^\]]*\])? ?(?:-|–|to) ?"
        rf"(?P<end>{DATE_SHAPE})(?: ?\[[^\]]*\])?$",
        re.IGNORECASE,
    ),
    date_prefix=re.compile(r"^(?P<day>\d{1,2}) (?P<month>[A-Za-z]{3,9})\.? (?P<year>\d{4})(?!\d)"),
    months=MONTHS,
    thousands_sep=",",
    decimal_sep=".",
    amount=_WISE_AMOUNT,
    amounts_line=_WISE_AMOUNTS_LINE,
    table_header=re.compile(r"^Description ?Incoming ?Outgoing ?Amount$"),
    page_footers=(
        re.compile(r"^Wise is the trading name"),
    ),
    boilerplate=(
        re.compile(r"^Generated on:"),
        # banner de saldo: "EUR on 30 November 2025 [GMT] 697.15 EUR"
        re.compile(rf"^[A-Z]{{3}} on {DATE_SHAPE}\b.*[A-Z]{{3}}$"),
        re.compile(r"^Page \d+ of \d+$", re.IGNORECASE),
        re.compile(r"^\d+ ?/ ?\d+$"),
        re.compile(r"^Need help\?"),
    ),
    transaction_marker=re.compile(r"Transaction: ?(?P<ref>\S+?)(?=Reference:|\s|$)"),
    reference_token=re.compile(r"^(?=[A-Z0-9_/-]*[A-Z])(?=[A-Z0-9_/-]*[0-9])[A-Z0-9][A-Z0-9_/-]{2,}$"),
)
