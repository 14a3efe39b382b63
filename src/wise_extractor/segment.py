from __future__ import annotations

import datetime
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .detect import StatementHeader, build_header, match_currency, match_period
from .errors import HeaderNotFound, MalformedAmount, MixedCurrencyStatement, OrphanAmount
from .formats import WISE, StatementFormat
from .normalize import parse_date, split_amounts

logger = logging.getLogger(__name__)

# signo opcional + dígito al inicio: "120.50", "-1,000.00", y también "12O.50"
# (que luego falla en parse_amount en vez de tratarse como texto)
AMOUNT_SHAPED_RE = re.compile(r"^[-+−]?[0-9][\w.,']*$")


class LineKind(Enum):
    CURRENCY = "currency"
    PERIOD = "period"
    BOILERPLATE = "boilerplate"
    TABLE_HEADER = "table_header"
    PAGE_FOOTER = "page_footer"
    AMOUNTS = "amounts"
    DATE = "date"
    TEXT = "text"


class State(Enum):
    SEEKING_HEADER = "seeking_header"
    SEEKING_TRANSACTION = "seeking_transaction"
    IN_TRANSACTION_BLOCK = "in_transaction_block"


@dataclass(frozen=True)
class Line:
    number: int     # 1-based, en el texto de entrada
    text: str


@dataclass
class TransactionBlock:
    date_line: Line
    date: datetime.date
    rest: str                                                       # línea de fecha sin la fecha
    anchored: bool                                                  # layout Wise: "Transaction: <id>" + línea de montos
    lead_lines: List[Line] = field(default_factory=list)            # descripción antes de la fecha
    continuation_lines: List[Line] = field(default_factory=list)
    amount_line: Optional[Line] = None

    def awaiting_amounts(self) -> bool:
        return self.anchored and self.amount_line is None


@dataclass
class SegmentedStatement:
    header: StatementHeader
    blocks: List[TransactionBlock]


def normalize_lines(text: str) -> List[Line]:
    """Trim + colapsar espacios + descartar vacías, conservando el número de línea."""
    out: List[Line] = []
    for number, raw in enumerate((text or "").splitlines(), start=1):
        s = " ".join(raw.split())
        if s:
            out.append(Line(number=number, text=s))
    return out


def looks_like_amount(token: str) -> bool:
    return bool(AMOUNT_SHAPED_RE.match(token))


def classify_line(text: str, fmt: StatementFormat = WISE) -> LineKind:
    if match_currency(text, fmt):
        return LineKind.CURRENCY
    if fmt.period_line.match(text):
        return LineKind.PERIOD
    if any(p.match(text) for p in fmt.boilerplate):
        return LineKind.BOILERPLATE
    if fmt.table_header.match(text):
        return LineKind.TABLE_HEADER
    if any(p.match(text) for p in fmt.page_footers):
        return LineKind.PAGE_FOOTER
    if fmt.amounts_line.match(text):
        return LineKind.AMOUNTS
    if fmt.date_prefix.match(text):
        return LineKind.DATE
    return LineKind.TEXT


class Segmenter:
    """
    State machine sobre la secuencia de líneas:

        SEEKING_HEADER -> SEEKING_TRANSACTION <-> IN_TRANSACTION_BLOCK

    Además lleva un flag de "page chrome": se activa al cerrar la cabecera y
    en cada pie de página; mientras está activo se ignora todo salvo el
    header de la tabla, una línea con fecha o (si un bloque espera montos)
    la línea de montos.
    """

    def __init__(self, fmt: StatementFormat = WISE):
        self.fmt = fmt
        self.state = State.SEEKING_HEADER
        self.currency: Optional[str] = None
        self.period: Optional[Tuple[datetime.date, datetime.date]] = None
        self.header: Optional[StatementHeader] = None
        self.in_chrome = False
        self.table_seen = False
        self.pending: List[Line] = []
        self.block: Optional[TransactionBlock] = None
        self.blocks: List[TransactionBlock] = []

    def feed(self, line: Line) -> None:
        kind = classify_line(line.text, self.fmt)
        logger.debug("line %d [%s/%s]: %s", line.number, self.state.value, kind.value, line.text)

        if self.state is State.SEEKING_HEADER:
            self._seeking_header(line, kind)
            return

        if kind is LineKind.CURRENCY:
            self._check_currency(line)
            return
        if kind in (LineKind.PERIOD, LineKind.BOILERPLATE):
            return
        if kind is LineKind.PAGE_FOOTER:
            self.in_chrome = True
            return
        if kind is LineKind.TABLE_HEADER:
            self.in_chrome = False
            self.table_seen = True
            return

        if self.in_chrome:
            wanted = kind is LineKind.DATE or (
                kind is LineKind.AMOUNTS and self.block is not None and self.block.awaiting_amounts()
            )
            if not wanted:
                return
            self.in_chrome = False

        if self.state is State.SEEKING_TRANSACTION:
            self._seeking_transaction(line, kind)
        else:
            self._in_block(line, kind)

    def finish(self) -> SegmentedStatement:
        if self.header is None:
            build_header(self.currency, self.period)

        if self.block is not None:
            if self.block.awaiting_amounts():
                raise MalformedAmount(
                    "No amount line found for transaction",
                    line=self.block.date_line.text,
                    line_number=self.block.date_line.number,
                )
            self._close()

        if self.pending:
            logger.warning(
                "Ignoring %d line(s) after the last transaction (first: line %d)",
                len(self.pending),
                self.pending[0].number,
            )
        return SegmentedStatement(header=self.header, blocks=self.blocks)

    # -- estados ---------------------------------------------------------

    def _seeking_header(self, line: Line, kind: LineKind) -> None:
        if kind is LineKind.CURRENCY and self.currency is None:
            self.currency = match_currency(line.text, self.fmt)
        elif kind is LineKind.PERIOD and self.period is None:
            self.period = match_period(line.text, self.fmt, line_number=line.number)
        elif kind is LineKind.DATE:
            missing = "currency line" if self.currency is None else "statement period"
            raise HeaderNotFound(
                f"Not a valid Wise statement: could not find {missing} before the first transaction",
                line=line.text,
                line_number=line.number,
            )

        if self.currency is not None and self.period is not None:
            self.header = build_header(self.currency, self.period)
            self.state = State.SEEKING_TRANSACTION
            self.in_chrome = True

    def _seeking_transaction(self, line: Line, kind: LineKind) -> None:
        if kind is LineKind.DATE:
            self._open(line)
        elif kind is LineKind.AMOUNTS:
            raise OrphanAmount(
                "Amount line without a preceding transaction date",
                line=line.text,
                line_number=line.number,
            )
        else:
            self.pending.append(line)

    def _in_block(self, line: Line, kind: LineKind) -> None:
        block = self.block

        if block.awaiting_amounts():
            if kind is LineKind.AMOUNTS:
                block.amount_line = line
                self._close()
            elif kind is LineKind.DATE:
                raise MalformedAmount(
                    "No amount line found for transaction",
                    line=block.date_line.text,
                    line_number=block.date_line.number,
                )
            else:
                # la línea de fecha quedó partida en dos
                block.continuation_lines.append(line)
            return

        if kind is LineKind.DATE:
            self._close()
            self._open(line)
            return

        if kind is LineKind.AMOUNTS and self._priced(block):
            raise OrphanAmount(
                "Amount line after a transaction that already has its amount",
                line=line.text,
                line_number=line.number,
            )

        if (
            kind is LineKind.TEXT
            and self.fmt.transaction_marker.search(line.text)
            and not block.continuation_lines
        ):
            # "Transaction: ..." partido a la línea siguiente: es un bloque Wise
            self._require_table(line)
            block.anchored = True
        block.continuation_lines.append(line)

    # -- transiciones ----------------------------------------------------

    def _open(self, line: Line) -> None:
        m = self.fmt.date_prefix.match(line.text)
        day = parse_date(m.group(0), self.fmt, line=line.text, line_number=line.number)
        rest = line.text[m.end():].strip()
        anchored = bool(self.fmt.transaction_marker.search(rest))
        if anchored:
            self._require_table(line)
        self.block = TransactionBlock(
            date_line=line,
            date=day,
            rest=rest,
            anchored=anchored,
            lead_lines=self.pending,
        )
        self.pending = []
        self.state = State.IN_TRANSACTION_BLOCK

    def _close(self) -> None:
        self.blocks.append(self.block)
        self.block = None
        self.state = State.SEEKING_TRANSACTION

    def _require_table(self, line: Line) -> None:
        # un bloque Wise necesita el header de tabla: sus líneas de descripción van antes de la fecha
        if not self.table_seen:
            raise HeaderNotFound(
                'Not a valid Wise statement: could not find transaction table header '
                '("Description Incoming Outgoing Amount")',
                line=line.text,
                line_number=line.number,
            )

    def _priced(self, block: TransactionBlock) -> bool:
        """El bloque inline ya tiene una línea que termina en un monto con centavos."""
        for text in [block.rest] + [c.text for c in block.continuation_lines]:
            tokens = text.split()
            if tokens and split_amounts(tokens[-1], self.fmt) is not None:
                return True
        return False

    def _check_currency(self, line: Line) -> None:
        currency = match_currency(line.text, self.fmt)
        if currency != self.header.currency:
            raise MixedCurrencyStatement(
                f"Statement mixes currencies ({self.header.currency} and {currency}); "
                "only single-currency statements are supported",
                line=line.text,
                line_number=line.number,
            )


def segment_lines(lines: List[Line], fmt: StatementFormat = WISE) -> SegmentedStatement:
    segmenter = Segmenter(fmt)
    for line in lines:
        segmenter.feed(line)
    return segmenter.finish()


def segment_statement(text: str, fmt: StatementFormat = WISE) -> SegmentedStatement:
    """
    Texto extraído del PDF -> cabecera + bloques de transacción en orden de origen.
    Cada iteración consume exactamente una línea, así que siempre termina.
    """
    return segment_lines(normalize_lines(text), fmt)
