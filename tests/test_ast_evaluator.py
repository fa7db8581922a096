from __future__ import annotations

from decimal import Decimal
from typing import get_args

import pytest

from adapters.currency import CurrencyRegistry
from adapters.evaluator.ast_evaluator import ASTEvaluator
from contracts import (
    AssignmentNode,
    BinaryNode,
    ConversionNode,
    CurrencyNode,
    DocumentContext,
    Header,
    InvalidResultError,
    MissingRateError,
    NilNode,
    Node,
    Nothing,
    NumberFormatError,
    Numbr,
    Percent,
    PercentageNode,
    ReferenceNode,
    SumNode,
    Token,
    UnaryNode,
    UnknownOperatorError,
    ValueNode,
    VariableNode,
)

RATES = {"CNY": 7.1, "USD": 1}


def _tok(type_: str, value: str, start: int = 0) -> Token:
    return Token(type=type_, value=value, start=start, end=start + len(value))


def _num(text: str, currency: str | None = None, start: int = 0) -> ValueNode:
    cur = CurrencyNode(token=_tok("currency", currency, start + len(text))) if currency else None
    return ValueNode(value=_tok("number", text, start), currency=cur)


def _bin(op: str, left: Node, right: Node) -> BinaryNode:
    return BinaryNode(op=_tok("operator", op), left=left, right=right)


def _ctx(answers=None, rates=None) -> DocumentContext:
    return DocumentContext(rates=dict(RATES if rates is None else rates), answers=list(answers or []))


@pytest.fixture
def evaluator() -> ASTEvaluator:
    return ASTEvaluator()


# -- Leaves ----------------------------------------------------------------

def test_currency_and_nil_evaluate_to_nothing(evaluator):
    assert evaluator.evaluate(CurrencyNode(token=_tok("currency", "$")), _ctx()) == Nothing()
    assert evaluator.evaluate(NilNode(), _ctx()) == Nothing()


def test_value_with_chinese_unit(evaluator):
    assert evaluator.evaluate(_num("1万"), _ctx()) == Numbr(value=Decimal(10000))


def test_value_with_currency(evaluator):
    result = evaluator.evaluate(_num("100", "¥"), _ctx())

    assert result == Numbr(value=Decimal(100), currency="CNY")


def test_value_with_unresolved_currency_has_no_currency(evaluator):
    assert evaluator.evaluate(_num("5", "apples"), _ctx()) == Numbr(value=Decimal(5))


def test_value_malformed_raises_number_format(evaluator):
    with pytest.raises(NumberFormatError):
        evaluator.evaluate(_num("12abc"), _ctx())


def test_percentage_strips_sign(evaluator):
    node = PercentageNode(value=_tok("percentage", "12.5%"))

    assert evaluator.evaluate(node, _ctx()) == Percent(value=Decimal("12.5"))


def test_percentage_full_width_sign(evaluator):
    node = PercentageNode(value=_tok("percentage", "8％"))

    assert evaluator.evaluate(node, _ctx()) == Percent(value=Decimal(8))


# -- Binary ----------------------------------------------------------------

def test_binary_addition(evaluator):
    assert evaluator.evaluate(_bin("+", _num("100"), _num("200")), _ctx()) == Numbr(value=Decimal(300))


def test_binary_chinese_operator(evaluator):
    assert evaluator.evaluate(_bin("加", _num("100"), _num("200")), _ctx()) == Numbr(value=Decimal(300))


def test_binary_word_operator(evaluator):
    assert evaluator.evaluate(_bin("times", _num("6"), _num("7")), _ctx()) == Numbr(value=Decimal(42))


def test_binary_no_currency_on_either_side(evaluator):
    result = evaluator.evaluate(_bin("*", _num("2"), _num("3")), _ctx())
    assert result == Numbr(value=Decimal(6), currency=None)


def test_binary_currency_on_left_only(evaluator):
    result = evaluator.evaluate(_bin("*", _num("2", "¥"), _num("3")), _ctx())
    assert result == Numbr(value=Decimal(6), currency="CNY")


def test_binary_currency_on_right_only(evaluator):
    result = evaluator.evaluate(_bin("*", _num("2"), _num("3", "$")), _ctx())
    assert result == Numbr(value=Decimal(6), currency="USD")


def test_binary_same_currency(evaluator):
    result = evaluator.evaluate(_bin("+", _num("2", "¥"), _num("3", "元")), _ctx())
    assert result == Numbr(value=Decimal(5), currency="CNY")


def test_binary_differing_currencies_convert_right_into_left(evaluator):
    result = evaluator.evaluate(_bin("+", _num("100", "¥"), _num("15", "$")), _ctx())
    assert result == Numbr(value=Decimal("206.5"), currency="CNY")


def test_binary_differing_currencies_missing_rate(evaluator):
    with pytest.raises(MissingRateError):
        evaluator.evaluate(_bin("+", _num("1", "¥"), _num("1", "€")), _ctx())


def test_binary_unknown_operator(evaluator):
    with pytest.raises(UnknownOperatorError):
        evaluator.evaluate(_bin("@", _num("1"), _num("2")), _ctx())


def test_binary_convert_operator(evaluator):
    result = evaluator.evaluate(_bin("in", _num("20", "CNY"), _num("1", "USD")), _ctx())

    assert result.currency == "USD"
    assert result.value == Decimal(20) / Decimal("7.1")
    assert float(result.value) == pytest.approx(2.8169, abs=1e-4)


def test_binary_convert_same_currency_returns_left(evaluator):
    result = evaluator.evaluate(_bin("to", _num("20", "$"), _num("99", "dollars")), _ctx())
    assert result == Numbr(value=Decimal(20), currency="USD")


def test_binary_convert_without_left_currency_returns_left(evaluator):
    result = evaluator.evaluate(_bin("换成", _num("20"), _num("1", "USD")), _ctx())
    assert result == Numbr(value=Decimal(20))


@pytest.mark.parametrize(
    "op, expected",
    [("+", Decimal(220)), ("-", Decimal(180)), ("*", Decimal(20)), ("×", Decimal(20)), ("乘", Decimal(20))],
)
def test_binary_percentage_operand(evaluator, op, expected):
    right = PercentageNode(value=_tok("percentage", "10%"))

    result = evaluator.evaluate(_bin(op, _num("200", "$"), right), _ctx())

    assert result == Numbr(value=expected, currency="USD")


def test_binary_divide_by_percentage_is_nothing(evaluator):
    right = PercentageNode(value=_tok("percentage", "10%"))
    assert evaluator.evaluate(_bin("/", _num("200"), right), _ctx()) == Nothing()


def test_binary_percentage_on_left_is_nothing(evaluator):
    left = PercentageNode(value=_tok("percentage", "10%"))
    assert evaluator.evaluate(_bin("+", left, _num("5")), _ctx()) == Nothing()


def test_binary_with_unbound_variable_is_nothing(evaluator):
    node = _bin("+", _num("1"), VariableNode(token=_tok("variable", "missing")))
    assert evaluator.evaluate(node, _ctx()) == Nothing()


# -- Unary -----------------------------------------------------------------

def test_unary_negation_keeps_currency(evaluator):
    node = UnaryNode(op=_tok("operator", "-"), operand=_num("5", "¥"))
    assert evaluator.evaluate(node, _ctx()) == Numbr(value=Decimal(-5), currency="CNY")


def test_unary_other_operator_passes_through(evaluator):
    node = UnaryNode(op=_tok("operator", "+"), operand=_num("5"))
    assert evaluator.evaluate(node, _ctx()) == Numbr(value=Decimal(5))


def test_unary_non_number_passes_through(evaluator):
    node = UnaryNode(op=_tok("operator", "-"), operand=PercentageNode(value=_tok("percentage", "5%")))
    assert evaluator.evaluate(node, _ctx()) == Percent(value=Decimal(5))


# -- Sum -------------------------------------------------------------------

def _sum() -> SumNode:
    return SumNode(token=_tok("sum", "sum"))


def test_sum_skips_entries_in_other_currencies(evaluator):
    answers = [
        Header(text="## groceries"),
        Numbr(value=Decimal(10), currency="CNY"),
        Numbr(value=Decimal(5), currency="USD"),
        Numbr(value=Decimal(3), currency="CNY"),
    ]

    assert evaluator.evaluate(_sum(), _ctx(answers)) == Numbr(value=Decimal(13), currency="CNY")


def test_sum_stops_at_most_recent_header(evaluator):
    answers = [
        Numbr(value=Decimal(100)),
        Header(text="## block"),
        Numbr(value=Decimal(1)),
        Nothing(),
        Percent(value=Decimal(50)),
        Numbr(value=Decimal(2)),
    ]

    assert evaluator.evaluate(_sum(), _ctx(answers)) == Numbr(value=Decimal(3))


def test_sum_of_empty_history_is_zero(evaluator):
    assert evaluator.evaluate(_sum(), _ctx()) == Numbr(value=Decimal(0))


def test_sum_currency_less_entries_count_until_a_currency_is_established(evaluator):
    # Scan runs newest-first: 5 (no currency) is taken, then 3 CNY establishes CNY.
    answers = [Numbr(value=Decimal(3), currency="CNY"), Numbr(value=Decimal(5))]

    assert evaluator.evaluate(_sum(), _ctx(answers)) == Numbr(value=Decimal(8), currency="CNY")


def test_sum_currency_less_entries_skipped_once_currency_established(evaluator):
    answers = [Numbr(value=Decimal(5)), Numbr(value=Decimal(3), currency="CNY")]

    assert evaluator.evaluate(_sum(), _ctx(answers)) == Numbr(value=Decimal(3), currency="CNY")


# -- Conversion ------------------------------------------------------------

def _conv(operand: Node, currency: str, op: str | None = "in") -> ConversionNode:
    return ConversionNode(
        op=_tok("operator", op) if op else None,
        operand=operand,
        currency=CurrencyNode(token=_tok("currency", currency)),
    )


def test_conversion_scales_by_rate_ratio(evaluator):
    result = evaluator.evaluate(_conv(_num("20", "CNY"), "USD"), _ctx())

    assert result == Numbr(value=Decimal(20) / Decimal("7.1"), currency="USD")


def test_conversion_round_trip(evaluator):
    usd = evaluator.evaluate(_conv(_num("100", "CNY"), "USD"), _ctx())
    ctx = _ctx([usd])

    back = evaluator.evaluate(_conv(ReferenceNode(token=_tok("reference", "(1)")), "CNY"), ctx)

    assert back.currency == "CNY"
    assert abs(back.value - Decimal(100)) < Decimal("1e-20")


def test_conversion_declares_currency_without_scaling(evaluator):
    result = evaluator.evaluate(_conv(_num("20"), "美元", op=None), _ctx())
    assert result == Numbr(value=Decimal(20), currency="USD")


def test_conversion_unresolved_target_passes_through(evaluator):
    result = evaluator.evaluate(_conv(_num("20", "$"), "bananas"), _ctx())
    assert result == Numbr(value=Decimal(20), currency="USD")


def test_conversion_missing_rate(evaluator):
    with pytest.raises(MissingRateError):
        evaluator.evaluate(_conv(_num("20", "CNY"), "EUR"), _ctx())


class _NaNRegistry(CurrencyRegistry):
    def convert(self, value, source, target, rates):
        return Decimal("NaN")


def test_conversion_invalid_result_is_an_evaluation_error():
    evaluator = ASTEvaluator(registry=_NaNRegistry.with_builtins())

    with pytest.raises(InvalidResultError):
        evaluator.evaluate(_conv(_num("20", "CNY"), "USD"), _ctx())


# -- Variables and references ----------------------------------------------

def test_assignment_binds_case_folded_name(evaluator):
    ctx = _ctx()
    node = AssignmentNode(op=_tok("operator", "="), variable=_tok("variable", "Price"), operand=_num("6999", "¥"))

    result = evaluator.evaluate(node, ctx)

    assert result == Numbr(value=Decimal(6999), currency="CNY")
    assert ctx.variables["price"] == result
    assert evaluator.evaluate(VariableNode(token=_tok("variable", "PRICE")), ctx) == result


def test_assignment_overwrites_binding(evaluator):
    ctx = _ctx()
    for text in ("1", "2"):
        evaluator.evaluate(
            AssignmentNode(op=_tok("operator", "="), variable=_tok("variable", "x"), operand=_num(text)),
            ctx,
        )

    assert ctx.variables["x"] == Numbr(value=Decimal(2))


def test_variable_unbound_is_nothing(evaluator):
    assert evaluator.evaluate(VariableNode(token=_tok("variable", "nope")), _ctx()) == Nothing()


def test_reference_returns_stored_answer(evaluator):
    answers = [Numbr(value=Decimal(1)), Numbr(value=Decimal(2), currency="USD"), Nothing()]

    result = evaluator.evaluate(ReferenceNode(token=_tok("reference", "(2)")), _ctx(answers))

    assert result == Numbr(value=Decimal(2), currency="USD")


@pytest.mark.parametrize("text", ["(99)", "(0)", "(-1)", "(abc)", "()"])
def test_reference_out_of_range_is_nothing(evaluator, text):
    answers = [Numbr(value=Decimal(1)), Numbr(value=Decimal(2)), Numbr(value=Decimal(3))]

    assert evaluator.evaluate(ReferenceNode(token=_tok("reference", text)), _ctx(answers)) == Nothing()


# -- Highlight and render --------------------------------------------------

def test_highlight_binary_in_source_order(evaluator):
    node = BinaryNode(
        op=_tok("operator", "+", 5),
        left=_num("100", "$", 0),
        right=_num("15", None, 7),
    )

    markup = evaluator.highlight(node)

    assert [(m.start, m.end, m.kind) for m in markup] == [
        (0, 3, "number"), (3, 4, "currency"), (5, 6, "operator"), (7, 9, "number"),
    ]
    assert markup[1].tooltip == "US Dollar"


def test_highlight_unresolved_currency_has_no_tooltip(evaluator):
    markup = evaluator.highlight(CurrencyNode(token=_tok("currency", "apples")))
    assert markup[0].kind == "currency"
    assert markup[0].tooltip is None


def test_highlight_assignment_and_conversion(evaluator):
    assignment = AssignmentNode(
        op=_tok("operator", "=", 2),
        variable=_tok("variable", "x", 0),
        operand=_conv(_num("20", None, 4), "USD", op=None),
    )

    kinds = [m.kind for m in evaluator.highlight(assignment)]

    assert kinds == ["variable", "operator", "number", "currency"]
    assert evaluator.highlight(NilNode()) == []


def test_render(evaluator):
    node = AssignmentNode(
        op=_tok("operator", "="),
        variable=_tok("variable", "total"),
        operand=_bin("+", _num("100", "¥"), UnaryNode(op=_tok("operator", "-"), operand=_num("5"))),
    )

    assert evaluator.render(node) == "total = 100 CNY + -5"
    assert evaluator.render(_conv(_num("20"), "usd")) == "20 in USD"
    assert evaluator.render(CurrencyNode(token=_tok("currency", "apples"))) == "???"
    assert evaluator.render(NilNode()) == "nil"


# -- Every node type is handled --------------------------------------------

_SAMPLES = {
    CurrencyNode: CurrencyNode(token=_tok("currency", "$")),
    NilNode: NilNode(),
    ValueNode: _num("1"),
    PercentageNode: PercentageNode(value=_tok("percentage", "1%")),
    SumNode: SumNode(token=_tok("sum", "sum")),
    UnaryNode: UnaryNode(op=_tok("operator", "-"), operand=_num("1")),
    BinaryNode: _bin("+", _num("1"), _num("1")),
    ConversionNode: _conv(_num("1"), "USD"),
    AssignmentNode: AssignmentNode(op=_tok("operator", "="), variable=_tok("variable", "a"), operand=_num("1")),
    VariableNode: VariableNode(token=_tok("variable", "a")),
    ReferenceNode: ReferenceNode(token=_tok("reference", "(1)")),
}


@pytest.mark.parametrize("node_type", get_args(Node))
def test_every_node_type_is_dispatched(evaluator, node_type):
    node = _SAMPLES[node_type]

    evaluator.evaluate(node, _ctx())
    evaluator.highlight(node)
    assert isinstance(evaluator.render(node), str)


def test_evaluator_satisfies_port(evaluator):
    from ports.evaluator import Evaluator

    assert isinstance(evaluator, Evaluator)
