"""
Adapter: ASTEvaluator
Implements the Evaluator port — recursive walk over the line's node tree with Decimal.

Decimal gives exact arithmetic for money amounts; every evaluation runs in a
local context whose precision comes from Settings.decimal_precision.

evaluate()  — computes the Result; may bind variables in the context
highlight() — markup spans in source order
render()    — normalized text form of the tree
"""
from __future__ import annotations

import re
from decimal import Decimal, localcontext
from typing import Optional

from pydantic import ValidationError

from adapters.currency import CurrencyRegistry
from adapters.evaluator.numerals import normalize_numeral, parse_decimal
from adapters.evaluator.operators import (
    alias_operator,
    apply_operator,
    is_convert,
    is_multiply,
)
from adapters.markup import merge_markup, span
from contracts import (
    AssignmentNode,
    BinaryNode,
    ConversionNode,
    CurrencyCode,
    CurrencyNode,
    DocumentContext,
    Header,
    InvalidResultError,
    Markup,
    NilNode,
    Node,
    Nothing,
    Numbr,
    Percent,
    PercentageNode,
    ReferenceNode,
    Result,
    SumNode,
    UnaryNode,
    ValueNode,
    VariableNode,
)

_HUNDRED = Decimal(100)
_REFERENCE_RE = re.compile(r"^\s*([+-]?\d+)")


class ASTEvaluator:
    """Line evaluator over the closed Node union."""

    def __init__(
        self,
        registry: CurrencyRegistry | None = None,
        precision: int = 28,
    ) -> None:
        self._registry = registry if registry is not None else CurrencyRegistry.with_builtins()
        self._precision = precision

    # -- Evaluator protocol ------------------------------------------------

    def evaluate(self, node: Node, ctx: DocumentContext) -> Result:
        with localcontext() as dc:
            dc.prec = self._precision
            try:
                return self._eval(node, ctx)
            except ValidationError as exc:
                raise InvalidResultError(f"Result out of range: {exc.errors()[0]['msg']}") from exc

    def highlight(self, node: Node) -> Markup:
        if isinstance(node, CurrencyNode):
            name = None
            code = self.currency_code(node)
            if code:
                info = self._registry.find_currency_info(code)
                name = info.name if info else None
            return [span(node.token.start, node.token.end, "currency", name)]

        if isinstance(node, NilNode):
            return []

        if isinstance(node, ValueNode):
            markup = [span(node.value.start, node.value.end, "number")]
            if node.currency is not None:
                markup = merge_markup(markup, self.highlight(node.currency))
            return markup

        if isinstance(node, PercentageNode):
            return [span(node.value.start, node.value.end, "percentage")]

        if isinstance(node, SumNode):
            return [span(node.token.start, node.token.end, "sum")]

        if isinstance(node, UnaryNode):
            return merge_markup(
                [span(node.op.start, node.op.end, "operator")],
                self.highlight(node.operand),
            )

        if isinstance(node, BinaryNode):
            return merge_markup(
                self.highlight(node.left),
                [span(node.op.start, node.op.end, "operator")],
                self.highlight(node.right),
            )

        if isinstance(node, ConversionNode):
            op_markup = [span(node.op.start, node.op.end, "operator")] if node.op else []
            return merge_markup(
                self.highlight(node.operand),
                op_markup,
                self.highlight(node.currency),
            )

        if isinstance(node, AssignmentNode):
            return merge_markup(
                [span(node.variable.start, node.variable.end, "variable")],
                [span(node.op.start, node.op.end, "operator")],
                self.highlight(node.operand),
            )

        if isinstance(node, VariableNode):
            return [span(node.token.start, node.token.end, "variable")]

        if isinstance(node, ReferenceNode):
            return [span(node.token.start, node.token.end, "reference")]

        raise TypeError(f"Unknown AST node type: {type(node)}")

    def render(self, node: Node) -> str:
        if isinstance(node, CurrencyNode):
            return self.currency_code(node) or "???"
        if isinstance(node, NilNode):
            return "nil"
        if isinstance(node, ValueNode):
            if node.currency is not None:
                return f"{node.value.value} {self.render(node.currency)}"
            return node.value.value
        if isinstance(node, PercentageNode):
            return node.value.value
        if isinstance(node, (SumNode, VariableNode, ReferenceNode)):
            return node.token.value
        if isinstance(node, UnaryNode):
            return f"{node.op.value}{self.render(node.operand)}"
        if isinstance(node, BinaryNode):
            return f"{self.render(node.left)} {node.op.value} {self.render(node.right)}"
        if isinstance(node, ConversionNode):
            if node.op:
                return f"{self.render(node.operand)} {node.op.value} {self.render(node.currency)}"
            return f"{self.render(node.operand)} {self.render(node.currency)}"
        if isinstance(node, AssignmentNode):
            return f"{node.variable.value} {node.op.value} {self.render(node.operand)}"
        raise TypeError(f"Unknown AST node type: {type(node)}")

    def currency_code(self, node: CurrencyNode) -> Optional[CurrencyCode]:
        return self._registry.find_currency_code(node.token.value)

    # -- Private -----------------------------------------------------------

    def _eval(self, node: Node, ctx: DocumentContext) -> Result:
        if isinstance(node, (CurrencyNode, NilNode)):
            return Nothing()

        if isinstance(node, ValueNode):
            currency = self.currency_code(node.currency) if node.currency else None
            return Numbr(value=normalize_numeral(node.value.value), currency=currency)

        if isinstance(node, PercentageNode):
            text = node.value.value.strip().rstrip("%％").strip()
            return Percent(value=parse_decimal(text))

        if isinstance(node, SumNode):
            return self._sum(ctx)

        if isinstance(node, UnaryNode):
            result = self._eval(node.operand, ctx)
            if isinstance(result, Numbr) and alias_operator(node.op.value) == "-":
                return Numbr(value=-result.value, currency=result.currency)
            return result

        if isinstance(node, BinaryNode):
            op = alias_operator(node.op.value)
            left = self._eval(node.left, ctx)
            right = self._eval(node.right, ctx)
            return self._binary(op, left, right, ctx)

        if isinstance(node, ConversionNode):
            return self._conversion(node, ctx)

        if isinstance(node, AssignmentNode):
            result = self._eval(node.operand, ctx)
            ctx.variables[node.variable.value.lower()] = result
            return result

        if isinstance(node, VariableNode):
            return ctx.variables.get(node.token.value.lower(), Nothing())

        if isinstance(node, ReferenceNode):
            m = _REFERENCE_RE.match(node.token.value.replace("(", "").replace(")", ""))
            if m is None:
                return Nothing()
            index = int(m.group(1)) - 1
            if 0 <= index < len(ctx.answers):
                return ctx.answers[index]
            return Nothing()

        raise TypeError(f"Unknown AST node type: {type(node)}")

    def _sum(self, ctx: DocumentContext) -> Numbr:
        total = Decimal(0)
        currency: Optional[CurrencyCode] = None
        for answer in reversed(ctx.answers):
            if isinstance(answer, Header):
                break
            if isinstance(answer, Numbr):
                # Entries without a currency still count until one is established.
                if not currency:
                    currency = answer.currency
                if currency == answer.currency:
                    total += answer.value
        return Numbr(value=total, currency=currency)

    def _binary(self, op: str, left: Result, right: Result, ctx: DocumentContext) -> Result:
        if not isinstance(left, Numbr):
            return Nothing()

        if is_convert(op):
            if not isinstance(right, Numbr):
                return Nothing()
            if left.currency and right.currency and left.currency != right.currency:
                value = self._registry.convert(left.value, left.currency, right.currency, ctx.rates)
                return Numbr(value=value, currency=right.currency)
            return left

        if isinstance(right, Percent):
            portion = left.value * right.value / _HUNDRED
            if op == "+":
                return Numbr(value=left.value + portion, currency=left.currency)
            if op == "-":
                return Numbr(value=left.value - portion, currency=left.currency)
            if is_multiply(op):
                return Numbr(value=portion, currency=left.currency)
            return Nothing()

        if not isinstance(right, Numbr):
            return Nothing()

        if left.currency == right.currency or not right.currency:
            return Numbr(value=apply_operator(op, left.value, right.value), currency=left.currency)

        if not left.currency:
            return Numbr(value=apply_operator(op, left.value, right.value), currency=right.currency)

        right_in_left = self._registry.convert(right.value, right.currency, left.currency, ctx.rates)
        return Numbr(value=apply_operator(op, left.value, right_in_left), currency=left.currency)

    def _conversion(self, node: ConversionNode, ctx: DocumentContext) -> Result:
        result = self._eval(node.operand, ctx)
        if not isinstance(result, Numbr):
            return result
        target = self.currency_code(node.currency)
        if target and result.currency and target != result.currency:
            value = self._registry.convert(result.value, result.currency, target, ctx.rates)
            return Numbr(value=value, currency=target)
        if target and not result.currency:
            return Numbr(value=result.value, currency=target)
        return result
