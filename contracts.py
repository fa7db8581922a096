"""
contracts.py — Single source of truth for every data type in Zhisuan.
All modules import types ONLY from here. Do not change without versioning.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

CONTRACTS_VERSION = "1.0.0"

# Upper-case ISO-like fiat code or crypto ticker ("CNY", "USD", "BTC").
CurrencyCode = str

# CurrencyCode → rate relative to one implicit common base currency.
RateTable = dict[CurrencyCode, float]


# ─────────────────────────── Errors ──────────────────────────────────────

class EvaluationError(ValueError):
    """Fatal to the current line only; other lines keep evaluating."""
    code = "EVALUATION_ERROR"


class NumberFormatError(EvaluationError):
    code = "NUMBER_FORMAT"


class UnknownOperatorError(EvaluationError):
    code = "UNKNOWN_OPERATOR"


class InvalidResultError(EvaluationError):
    code = "INVALID_RESULT"


class MissingRateError(EvaluationError):
    code = "MISSING_RATE"

    def __init__(self, currency: CurrencyCode) -> None:
        super().__init__(f"No exchange rate for {currency!r}")
        self.currency = currency


class CurrencyCodeCaseError(ValueError):
    """Registry seeded with a code that is not upper-case (configuration error)."""


# ─────────────────────────── Lexer output ────────────────────────────────

class Token(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str        # "number", "currency", "operator", "variable", ...
    value: str       # literal source text
    start: int       # offset, inclusive
    end: int         # offset, exclusive


# ─────────────────────────── Results ─────────────────────────────────────

class Nothing(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["nothing"] = "nothing"

    def __str__(self) -> str:
        return ""


class Header(BaseModel):
    """Section boundary; Sum never aggregates across it."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["header"] = "header"
    text: str

    def __str__(self) -> str:
        return self.text


class Numbr(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["numbr"] = "numbr"
    value: Decimal
    currency: Optional[CurrencyCode] = None

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else None

    def __str__(self) -> str:
        if self.currency:
            return f"{self.value} {self.currency}"
        return str(self.value)


class Percent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["percent"] = "percent"
    value: Decimal

    def __str__(self) -> str:
        return f"{self.value}%"


Result = Union[Nothing, Header, Numbr, Percent]


# ─────────────────────────── Currency metadata ───────────────────────────

class CurrencyInfo(BaseModel):
    name: str
    dp: int = 2      # decimal places used for display


# ─────────────────────────── Markup ──────────────────────────────────────

class MarkupSpan(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: int
    end: int
    kind: str                       # number / currency / operator / sum / ...
    tooltip: Optional[str] = None   # e.g. currency display name


Markup = list[MarkupSpan]


# ─────────────────────────── AST ─────────────────────────────────────────

class CurrencyNode(BaseModel):
    node_type: Literal["currency"] = "currency"
    token: Token


class NilNode(BaseModel):
    node_type: Literal["nil"] = "nil"


class ValueNode(BaseModel):
    node_type: Literal["value"] = "value"
    value: Token
    currency: Optional[CurrencyNode] = None


class PercentageNode(BaseModel):
    node_type: Literal["percentage"] = "percentage"
    value: Token


class SumNode(BaseModel):
    node_type: Literal["sum"] = "sum"
    token: Token


class UnaryNode(BaseModel):
    node_type: Literal["unary"] = "unary"
    op: Token
    operand: "Node"


class BinaryNode(BaseModel):
    node_type: Literal["binary"] = "binary"
    op: Token
    left: "Node"
    right: "Node"


class ConversionNode(BaseModel):
    node_type: Literal["conversion"] = "conversion"
    op: Optional[Token] = None   # "as" / "in"; absent for "100 USD"-style retagging
    operand: "Node"
    currency: CurrencyNode


class AssignmentNode(BaseModel):
    node_type: Literal["assignment"] = "assignment"
    op: Token
    variable: Token
    operand: "Node"


class VariableNode(BaseModel):
    node_type: Literal["variable"] = "variable"
    token: Token


class ReferenceNode(BaseModel):
    node_type: Literal["reference"] = "reference"
    token: Token    # "(3)" or "3", 1-based line number


Node = Union[
    CurrencyNode, NilNode, ValueNode, PercentageNode, SumNode,
    UnaryNode, BinaryNode, ConversionNode, AssignmentNode,
    VariableNode, ReferenceNode,
]
UnaryNode.model_rebuild()
BinaryNode.model_rebuild()
ConversionNode.model_rebuild()
AssignmentNode.model_rebuild()


# ─────────────────────────── Document ────────────────────────────────────

@dataclass
class DocumentContext:
    """
    Mutable per-document state threaded through every node evaluation.
    Owned by the caller; answers only ever grow, one entry per evaluated line.
    """
    rates: RateTable = field(default_factory=dict)
    answers: list[Result] = field(default_factory=list)
    line: int = 0
    variables: dict[str, Result] = field(default_factory=dict)


class LineError(BaseModel):
    code: str        # NUMBER_FORMAT / UNKNOWN_OPERATOR / MISSING_RATE / INVALID_RESULT / ARITHMETIC
    message: str


class LineOutcome(BaseModel):
    line: int
    result: Result
    markup: Markup = []
    error: Optional[LineError] = None

    @property
    def ok(self) -> bool:
        return self.error is None
