from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Tuple

from .detect import StatementHeader
from .errors import MalformedAmount
from .formats import WISE, StatementFormat
from .models import Transaction
from .normalize import parse_amount, signed_to_columns, split_amounts, to_iso
from .segment import Line, TransactionBlock, looks_like_amount


def _join(lines: List[Line]) -> str:
    return " ".join(l.text for l in lines).strip()


def _parse_anchored(
    block: TransactionBlock, fmt: StatementFormat
) -> Tuple[str, str, Decimal, Optional[Decimal]]:
    """
    Layout real de Wise:
        Card transaction of 29.43 USD issued by Backblaze Inc BACKBLAZE.COM   <- lead_lines
        27 November 2025 Card ending in 9924 ... Transaction: CARD-3166196743 <- date_line
        -25.51 697.15                                                         <- amount_line (monto, saldo)
    """
    detail = " ".join([block.rest] + [c.text for c in block.continuation_lines]).strip()
    m = fmt.transaction_marker.search(detail)
    reference = m.group("ref") if m else ""

    # sin líneas previas, lo único que describe la transacción es lo que va antes del marcador
    description = _join(block.lead_lines)
    if not description:
        description = (detail[:m.start()] if m else detail).strip()

    amount_line = block.amount_line
    tokens = split_amounts(amount_line.text, fmt)
    if not tokens:
        raise MalformedAmount(
            "Invalid amount line",
            line=amount_line.text,
            line_number=amount_line.number,
            token=amount_line.text,
        )
    value = parse_amount(tokens[0], fmt, line=amount_line.text, line_number=amount_line.number)
    balance = None
    if len(tokens) > 1:
        balance = parse_amount(tokens[1], fmt, line=amount_line.text, line_number=amount_line.number)
    return description, reference, value, balance


def _has_cents(token: str, fmt: StatementFormat) -> bool:
    return split_amounts(token, fmt) is not None


def _locate_amount(
    block: TransactionBlock, fmt: StatementFormat
) -> Tuple[List[str], int, Line]:
    """
    Tokens del bloque inline y posición del monto.
    Candidatas: las líneas del bloque que terminan en algo con forma de monto.
    Con más de una, solo vale la única que trae centavos ("120.50" frente a
    "order 42"); si no queda exactamente una, el monto es ambiguo.
    """
    segments: List[Tuple[Line, List[str]]] = [(block.date_line, block.rest.split())]
    segments += [(c, c.text.split()) for c in block.continuation_lines]

    flat: List[str] = []
    candidates: List[Tuple[int, Line]] = []
    for line, tokens in segments:
        flat.extend(tokens)
        if tokens and looks_like_amount(tokens[-1]):
            candidates.append((len(flat) - 1, line))

    if not candidates:
        raise MalformedAmount(
            "No amount found for transaction",
            line=block.date_line.text,
            line_number=block.date_line.number,
        )
    if len(candidates) > 1:
        candidates = [c for c in candidates if _has_cents(flat[c[0]], fmt)]
        if len(candidates) != 1:
            raise MalformedAmount(
                "Ambiguous amount for transaction: more than one line ends in an amount",
                line=block.date_line.text,
                line_number=block.date_line.number,
            )

    amount_at, source = candidates[0]
    return flat, amount_at, source


def _trailing_pair(flat: List[str], amount_at: int, fmt: StatementFormat) -> bool:
    """'... 100.00 95.50': dos tokens sueltos con 2 decimales al final."""
    if amount_at == 0:
        return False
    last, prev = flat[amount_at], flat[amount_at - 1]
    return split_amounts(last, fmt) == [last] and split_amounts(prev, fmt) == [prev]


def inline_balance_column(blocks: List[TransactionBlock], fmt: StatementFormat = WISE) -> bool:
    """
    True si los bloques inline traen columna de saldo: al menos dos bloques
    y todos terminan en "monto saldo". Con un solo bloque la conciliación no
    puede confirmar el par, así que "Refund of 15.00 120.50" es monto 120.50.
    """
    inline = [b for b in blocks if not b.anchored]
    if len(inline) < 2:
        return False
    for block in inline:
        flat, amount_at, _ = _locate_amount(block, fmt)
        if not _trailing_pair(flat, amount_at, fmt):
            return False
    return True


def _parse_inline(
    block: TransactionBlock, fmt: StatementFormat, balance_column: bool = False
) -> Tuple[str, str, Decimal, Optional[Decimal]]:
    """
    Fecha, descripción, referencia y monto en la misma línea:
        05 January 2024 Payment from Jane Doe REF123 120.50
    El monto es el último token de la línea del bloque que termina en algo
    con forma de monto; las demás líneas son descripción.
    """
    flat, amount_at, source = _locate_amount(block, fmt)

    consumed = {amount_at}
    amount_tok = flat[amount_at]
    balance_tok = None

    # "monto saldo": pegados en un token, o dos tokens si el extracto tiene columna de saldo
    parts = split_amounts(amount_tok, fmt)
    if parts and len(parts) == 2:
        amount_tok, balance_tok = parts
    elif balance_column and _trailing_pair(flat, amount_at, fmt):
        amount_tok, balance_tok = flat[amount_at - 1], flat[amount_at]
        amount_at -= 1
        consumed.add(amount_at)

    value = parse_amount(amount_tok, fmt, line=source.text, line_number=source.number)
    balance = None
    if balance_tok is not None:
        balance = parse_amount(balance_tok, fmt, line=source.text, line_number=source.number)

    reference = ""
    if amount_at > 0 and fmt.reference_token.match(flat[amount_at - 1]):
        reference = flat[amount_at - 1]
        consumed.add(amount_at - 1)

    rest = [t for i, t in enumerate(flat) if i not in consumed]
    description = " ".join(filter(None, [_join(block.lead_lines), " ".join(rest)]))
    return description, reference, value, balance


def parse_block(
    block: TransactionBlock,
    header: StatementHeader,
    fmt: StatementFormat = WISE,
    balance_column: bool = False,
) -> Transaction:
    if block.anchored:
        description, reference, value, balance = _parse_anchored(block, fmt)
    else:
        description, reference, value, balance = _parse_inline(block, fmt, balance_column)

    incoming, outgoing, amount = signed_to_columns(value)
    return Transaction(
        description=description,
        date=to_iso(block.date),
        incoming=incoming,
        outgoing=outgoing,
        amount=amount,
        reference=reference,
        currency=header.currency,
        balance=balance,
    )


def parse_transactions_from_blocks(
    blocks: List[TransactionBlock],
    header: StatementHeader,
    fmt: StatementFormat = WISE,
) -> List[Transaction]:
    balance_column = inline_balance_column(blocks, fmt)
    return [parse_block(b, header, fmt, balance_column) for b in blocks]
