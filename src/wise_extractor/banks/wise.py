from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from ..formats import WISE, StatementFormat
from ..models import DateRange, ParseResult
from ..parse import parse_transactions_from_blocks
from ..pdf_text import read_statement_text
from ..segment import segment_statement
from ..validate import validate_transactions

logger = logging.getLogger(__name__)


def parse_statement_text(text: str, fmt: StatementFormat = WISE) -> ParseResult:
    """
    Texto extraído de un extracto Wise -> ParseResult.

    Función pura: no hay estado compartido entre llamadas. Cualquier
    inconsistencia aborta con una StatementParseError (nunca resultado parcial).
    """
    segmented = segment_statement(text, fmt)
    header = segmented.header

    txs = parse_transactions_from_blocks(segmented.blocks, header, fmt)
    validate_transactions(txs, segmented.blocks, header, fmt)

    logger.debug(
        "parsed %d %s transaction(s) for %s - %s",
        len(txs),
        header.currency,
        header.period_from,
        header.period_to,
    )
    return ParseResult(
        currency=header.currency,
        date_range=DateRange(from_=header.period_from.isoformat(), to=header.period_to.isoformat()),
        transactions=txs,
    )


def extract(path: str, reconcile: Optional[bool] = None) -> ParseResult:
    """Archivo (.pdf o texto ya extraído) -> ParseResult."""
    fmt = WISE if reconcile is None else replace(WISE, reconcile_balances=reconcile)
    return parse_statement_text(read_statement_text(path), fmt)
