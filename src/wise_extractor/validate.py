from __future__ import annotations

import datetime
import logging
from decimal import Decimal
from typing import List, Optional

from .detect import StatementHeader
from .errors import BalanceMismatch, EmptyStatement, TransactionOutOfRange
from .formats import WISE, StatementFormat
from .models import Transaction
from .segment import TransactionBlock

logger = logging.getLogger(__name__)

NEWEST_FIRST = "newest_first"
OLDEST_FIRST = "oldest_first"


def _signed(t: Transaction) -> Decimal:
    return t.incoming if t.incoming is not None else -t.outgoing


def check_not_empty(transactions: List[Transaction]) -> None:
    if not transactions:
        raise EmptyStatement("No transactions found in Wise statement")


def check_period(
    transactions: List[Transaction],
    blocks: List[TransactionBlock],
    header: StatementHeader,
) -> None:
    for t, block in zip(transactions, blocks):
        day = datetime.date.fromisoformat(t.date)
        if not header.contains(day):
            raise TransactionOutOfRange(
                f"Transaction dated {t.date} is outside the statement period "
                f"{header.period_from.isoformat()} - {header.period_to.isoformat()}",
                line=block.date_line.text,
                line_number=block.date_line.number,
            )


def check_running_balance(
    transactions: List[Transaction],
    blocks: List[TransactionBlock],
) -> Optional[str]:
    """
    Conciliación con el saldo que Wise imprime junto a cada monto.
    - newest_first (como exporta Wise): saldo[i] == saldo[i+1] + monto[i]
    - oldest_first:                      saldo[i+1] == saldo[i] + monto[i+1]
    La dirección se fija con el primer par que la distingue. Solo se comparan
    transacciones consecutivas que traen saldo. Devuelve la dirección detectada.
    """
    direction: Optional[str] = None

    for i in range(len(transactions) - 1):
        cur, nxt = transactions[i], transactions[i + 1]
        if cur.balance is None or nxt.balance is None:
            continue

        newest_ok = cur.balance == nxt.balance + _signed(cur)
        oldest_ok = nxt.balance == cur.balance + _signed(nxt)

        if direction is None and newest_ok != oldest_ok:
            direction = NEWEST_FIRST if newest_ok else OLDEST_FIRST

        ok = {NEWEST_FIRST: newest_ok, OLDEST_FIRST: oldest_ok}.get(direction, newest_ok or oldest_ok)
        if not ok:
            block = blocks[i + 1]
            line = block.amount_line or block.date_line
            raise BalanceMismatch(
                f"Running balance does not match amounts between transactions dated {cur.date} "
                f"(balance {cur.balance}) and {nxt.date} (balance {nxt.balance})",
                line=line.text,
                line_number=line.number,
            )

    if direction:
        logger.debug("running balance reconciled (%s)", direction)
    return direction


def validate_transactions(
    transactions: List[Transaction],
    blocks: List[TransactionBlock],
    header: StatementHeader,
    fmt: StatementFormat = WISE,
) -> None:
    """Todo o nada: el primer problema aborta el parseo completo."""
    check_not_empty(transactions)
    check_period(transactions, blocks, header)
    if fmt.reconcile_balances:
        check_running_balance(transactions, blocks)
