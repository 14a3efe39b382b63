from __future__ import annotations

import datetime

import pytest

from wise_extractor.errors import (
    HeaderNotFound,
    MalformedAmount,
    MalformedDate,
    MixedCurrencyStatement,
    OrphanAmount,
)
from wise_extractor.segment import (
    Line,
    LineKind,
    Segmenter,
    State,
    classify_line,
    normalize_lines,
    segment_statement,
)


HEADER = ["EUR statement", "1 January 2024 [GMT] - 31 January 2024 [GMT]"]


def _text(*lines: str) -> str:
    return "\n".join(HEADER + list(lines)) + "\n"


def _texts(lines):
    return [l.text for l in lines]


def test_normalize_lines_trims_collapses_and_keeps_numbers():
    lines = normalize_lines("  EUR   statement  \n\n\t\n05 January 2024\t Payment  \r\nx")
    assert lines == [
        Line(number=1, text="EUR statement"),
        Line(number=4, text="05 January 2024 Payment"),
        Line(number=5, text="x"),
    ]


@pytest.mark.parametrize(
    "text, kind",
    [
        ("EUR statement", LineKind.CURRENCY),
        ("Currency: USD", LineKind.CURRENCY),
        ("1 November 2025 [GMT] - 30 November 2025 [GMT]", LineKind.PERIOD),
        ("Statement period: 01 January 2024 to 31 January 2024", LineKind.PERIOD),
        ("Generated on: 11 December 2025", LineKind.BOILERPLATE),
        ("EUR on 30 November 2025 [GMT] 697.15 EUR", LineKind.BOILERPLATE),
        ("USD on 31 January 2026 [GMT]1,925.99 USD", LineKind.BOILERPLATE),
        ("Page 2 of 3", LineKind.BOILERPLATE),
        ("2 / 3", LineKind.BOILERPLATE),
        ("Need help? Visit wise.com/help", LineKind.BOILERPLATE),
        ("Description Incoming Outgoing Amount", LineKind.TABLE_HEADER),
        ("DescriptionIncomingOutgoingAmount", LineKind.TABLE_HEADER),
        ("Wise is the trading name of Wise Europe SA, a Payment Institution", LineKind.PAGE_FOOTER),
        ("-25.51 697.15", LineKind.AMOUNTS),
        ("-32.001,925.99", LineKind.AMOUNTS),
        ("27 November 2025 Card ending in 9924 Transaction: CARD-3166196743", LineKind.DATE),
        ("27 January 2026Card ending in 9924Bohdan-Volodymyr Lesiv", LineKind.DATE),
        ("05 January 2024 Payment from Jane Doe REF123 120.50", LineKind.DATE),
        ("Cashback", LineKind.TEXT),
        ("Card transaction of 29.43 USD issued by Backblaze Inc BACKBLAZE.COM", LineKind.TEXT),
        ("1050", LineKind.TEXT),
    ],
)
def test_classify_line(text, kind):
    assert classify_line(text) is kind


def test_state_machine_transitions():
    seg = Segmenter()
    assert seg.state is State.SEEKING_HEADER

    seg.feed(Line(1, "EUR statement"))
    assert seg.state is State.SEEKING_HEADER
    seg.feed(Line(2, "1 January 2024 [GMT] - 31 January 2024 [GMT]"))
    assert seg.state is State.SEEKING_TRANSACTION
    assert seg.in_chrome, "tras la cabecera se ignora el resto del preámbulo"

    seg.feed(Line(3, "Account Holder"))
    assert seg.pending == []

    seg.feed(Line(4, "05 January 2024 Payment from Jane Doe REF123 120.50"))
    assert seg.state is State.IN_TRANSACTION_BLOCK
    assert not seg.in_chrome

    seg.feed(Line(5, "for consulting"))
    assert seg.state is State.IN_TRANSACTION_BLOCK

    result = seg.finish()
    assert result.header.currency == "EUR"
    assert result.header.period_from == datetime.date(2024, 1, 1)
    assert result.header.period_to == datetime.date(2024, 1, 31)
    assert len(result.blocks) == 1
    assert _texts(result.blocks[0].continuation_lines) == ["for consulting"]


def test_continuation_lines_attach_to_previous_block():
    result = segment_statement(_text(
        "05 January 2024 Payment from Jane Doe REF123 120.50",
        "for consulting services",
        "06 January 2024 Coffee -3.20",
    ))
    assert len(result.blocks) == 2
    first, second = result.blocks
    assert first.date == datetime.date(2024, 1, 5)
    assert not first.anchored
    assert first.rest == "Payment from Jane Doe REF123 120.50"
    assert _texts(first.continuation_lines) == ["for consulting services"]
    assert second.continuation_lines == []


def test_anchored_blocks_take_description_from_lines_above():
    result = segment_statement(_text(
        "Description Incoming Outgoing Amount",
        "Card transaction of 88.49 EUR issued by Claude.ai Subscription ANTHROPIC.",
        "COM",
        "26 January 2024 Card ending in 9924 Transaction: CARD-3162375092",
        "-88.49 722.66",
        "Cashback",
        "6 January 2024 Transaction: BALANCE_CASHBACK-1",
        "0.59 811.15",
    ))
    assert len(result.blocks) == 2
    first, second = result.blocks
    assert first.anchored and second.anchored
    assert _texts(first.lead_lines) == [
        "Card transaction of 88.49 EUR issued by Claude.ai Subscription ANTHROPIC.",
        "COM",
    ]
    assert first.amount_line.text == "-88.49 722.66"
    assert _texts(second.lead_lines) == ["Cashback"]


def test_wrapped_transaction_marker_makes_block_anchored():
    result = segment_statement(_text(
        "Description Incoming Outgoing Amount",
        "Sent money to Acme Ltd",
        "21 January 2024 Card ending in 1234",
        "Transaction: TRANSFER-1831544314",
        "-10.00 90.00",
    ))
    (block,) = result.blocks
    assert block.anchored
    assert _texts(block.continuation_lines) == ["Transaction: TRANSFER-1831544314"]
    assert block.amount_line.text == "-10.00 90.00"


def test_repeated_page_chrome_is_skipped():
    result = segment_statement(_text(
        "Description Incoming Outgoing Amount",
        "Sent money to Acme Ltd",
        "21 January 2024 Transaction: TRANSFER-1",
        "-10.00 90.00",
        "Wise is the trading name of Wise Europe SA, a Payment Institution",
        "registered number 0713629988 and registered office at Rue Du Trône 100",
        "Need help? Visit wise.com/help",
        "Page 1 of 2",
        "Wise Europe SA",
        "Rue du Trône 100, 3rd floor",
        "EUR statement",
        "1 January 2024 [GMT] - 31 January 2024 [GMT]",
        "Generated on: 2 February 2024",
        "Description Incoming Outgoing Amount",
        "Cashback",
        "6 January 2024 Transaction: BALANCE_CASHBACK-1",
        "0.59 100.00",
    ))
    assert len(result.blocks) == 2
    assert _texts(result.blocks[1].lead_lines) == ["Cashback"], "el chrome de página no debe colarse en la descripción"


def test_description_split_across_page_break_survives():
    result = segment_statement(_text(
        "Description Incoming Outgoing Amount",
        "Card transaction of 136.90 EUR issued by Hetzner Online Gmbh",
        "Wise is the trading name of Wise Europe SA.",
        "Wise Europe SA",
        "Description Incoming Outgoing Amount",
        "Gunzenhausen",
        "4 January 2024 Card ending in 9924 Transaction: CARD-3082119403",
        "-136.90 7,100.34",
    ))
    (block,) = result.blocks
    assert _texts(block.lead_lines) == [
        "Card transaction of 136.90 EUR issued by Hetzner Online Gmbh",
        "Gunzenhausen",
    ]


def test_missing_currency_is_header_not_found():
    with pytest.raises(HeaderNotFound, match="currency"):
        segment_statement("1 January 2024 [GMT] - 31 January 2024 [GMT]\n05 January 2024 Payment REF123 120.50\n")


def test_missing_period_is_header_not_found():
    with pytest.raises(HeaderNotFound, match="statement period"):
        segment_statement("EUR statement\nGenerated on: 2 February 2024\n")


@pytest.mark.parametrize("text", ["", "   \n\n", "This is not a Wise statement at all."])
def test_empty_or_foreign_text_is_header_not_found(text):
    with pytest.raises(HeaderNotFound, match="Not a valid Wise statement"):
        segment_statement(text)


def test_inverted_period_is_rejected():
    with pytest.raises(HeaderNotFound, match="ends before it starts"):
        segment_statement("EUR statement\n31 January 2024 [GMT] - 1 January 2024 [GMT]\n")


def test_malformed_transaction_date():
    with pytest.raises(MalformedDate) as exc:
        segment_statement(_text("31 February 2024 Payment from Jane Doe 10.00"))
    assert exc.value.line == "31 February 2024 Payment from Jane Doe 10.00"
    assert exc.value.line_number == 3


def test_second_currency_is_rejected():
    with pytest.raises(MixedCurrencyStatement):
        segment_statement(_text(
            "05 January 2024 Payment from Jane Doe REF123 120.50",
            "USD statement",
            "1 January 2024 [GMT] - 31 January 2024 [GMT]",
            "06 January 2024 Payment from John Roe REF124 20.00",
        ))


def test_amount_line_without_transaction():
    with pytest.raises(OrphanAmount):
        segment_statement(_text("Description Incoming Outgoing Amount", "10.00 20.00"))


def test_anchored_block_without_amount_line_before_next_date():
    with pytest.raises(MalformedAmount, match="No amount line") as exc:
        segment_statement(_text(
            "Description Incoming Outgoing Amount",
            "Cashback",
            "6 January 2024 Transaction: BALANCE_CASHBACK-1",
            "Sent money to Acme Ltd",
            "7 January 2024 Transaction: TRANSFER-2",
            "-10.00 90.00",
        ))
    assert exc.value.line_number == 5


def test_anchored_block_without_amount_line_at_end():
    with pytest.raises(MalformedAmount, match="No amount line"):
        segment_statement(_text(
            "Description Incoming Outgoing Amount",
            "Cashback",
            "6 January 2024 Transaction: BALANCE_CASHBACK-1",
        ))


def test_trailing_lead_lines_are_dropped():
    result = segment_statement(_text(
        "Description Incoming Outgoing Amount",
        "Cashback",
        "6 January 2024 Transaction: BALANCE_CASHBACK-1",
        "0.59 100.00",
        "Some trailing note",
    ))
    assert len(result.blocks) == 1


def test_garbage_input_terminates():
    garbage = "\n".join(["Description Incoming Outgoing Amount"] + ["%%% ??? 12O.5O"] * 500)
    result = segment_statement(_text(garbage))
    assert result.blocks == []


def test_anchored_block_requires_table_header():
    with pytest.raises(HeaderNotFound, match="table header") as exc:
        segment_statement(_text(
            "Card transaction of 29.43 USD issued by Backblaze Inc BACKBLAZE.COM",
            "27 January 2024 Card ending in 9924 Transaction: CARD-3166196743",
            "-25.51 697.15",
        ))
    assert exc.value.line_number == 4


def test_wrapped_marker_requires_table_header():
    with pytest.raises(HeaderNotFound, match="table header"):
        segment_statement(_text(
            "21 January 2024 Card ending in 1234",
            "Transaction: TRANSFER-1831544314",
            "-10.00 90.00",
        ))


def test_amount_line_after_priced_inline_block():
    with pytest.raises(OrphanAmount) as exc:
        segment_statement(_text(
            "05 January 2024 Payment from Jane Doe REF123 120.50",
            "-4.50 100.00",
        ))
    assert exc.value.line_number == 4
    assert exc.value.line == "-4.50 100.00"


def test_amount_line_completes_inline_block_without_amount():
    result = segment_statement(_text(
        "05 January 2024 Payment for order 42",
        "120.50",
    ))
    (block,) = result.blocks
    assert not block.anchored
    assert _texts(block.continuation_lines) == ["120.50"]
