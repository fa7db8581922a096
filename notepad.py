"""
notepad.py — document session: evaluates lines top to bottom against one DocumentContext.

Every line produces exactly one entry in ctx.answers. A line that fails with an
EvaluationError, an invalid Result or an arithmetic fault records a LineError,
contributes Nothing to the history, keeps the variables it had before, and
evaluation continues with the next line.

Usage:
    notepad = create_notepad(rates={"CNY": 7.1, "USD": 1})
    notepad.add_header("## 购物清单")
    outcome = notepad.evaluate_line(node)
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional, Union

from pydantic import ValidationError

from adapters.currency import CurrencyRegistry
from adapters.evaluator import ASTEvaluator
from config import Settings
from contracts import (
    DocumentContext,
    EvaluationError,
    Header,
    InvalidResultError,
    LineError,
    LineOutcome,
    Markup,
    Node,
    Nothing,
    RateTable,
    Result,
)
from ports.evaluator import Evaluator

logger = logging.getLogger("zhisuan.notepad")

# A document line: a parsed node tree, a section header, or None for a blank line.
Line = Union[Node, Header, None]


class Notepad:
    def __init__(self, evaluator: Evaluator, rates: Optional[RateTable] = None) -> None:
        self._evaluator = evaluator
        self.context = DocumentContext(rates=dict(rates or {}))

    # -- Lines -------------------------------------------------------------

    def evaluate_line(self, node: Node) -> LineOutcome:
        ctx = self.context
        error: LineError | None = None
        variables = dict(ctx.variables)
        try:
            result = self._evaluator.evaluate(node, ctx)
        except EvaluationError as exc:
            error = LineError(code=exc.code, message=str(exc))
            result = Nothing()
        except ValidationError as exc:
            error = LineError(code=InvalidResultError.code, message=str(exc))
            result = Nothing()
        except ArithmeticError as exc:
            error = LineError(code="ARITHMETIC", message=str(exc) or type(exc).__name__)
            result = Nothing()
        if error is not None:
            # A failed line leaves no bindings behind.
            ctx.variables = variables
            logger.warning("Line %d failed (%s): %s", ctx.line + 1, error.code, error.message)
        return self._commit(result, self._evaluator.highlight(node), error)

    def add_header(self, text: str) -> LineOutcome:
        return self._commit(Header(text=text), [], None)

    def add_blank(self) -> LineOutcome:
        return self._commit(Nothing(), [], None)

    def evaluate_document(self, lines: Iterable[Line]) -> list[LineOutcome]:
        """Re-runs the whole document from a clean history (variables included)."""
        self.reset()
        outcomes: list[LineOutcome] = []
        for line in lines:
            if line is None:
                outcomes.append(self.add_blank())
            elif isinstance(line, Header):
                outcomes.append(self.add_header(line.text))
            else:
                outcomes.append(self.evaluate_line(line))
        return outcomes

    # -- Session -----------------------------------------------------------

    def set_rates(self, rates: RateTable) -> None:
        """Swaps the rate table wholesale; takes effect for lines evaluated afterwards."""
        self.context.rates = dict(rates)

    def reset(self) -> None:
        self.context = DocumentContext(rates=self.context.rates)

    # -- Private -----------------------------------------------------------

    def _commit(self, result: Result, markup: Markup, error: LineError | None) -> LineOutcome:
        ctx = self.context
        outcome = LineOutcome(line=ctx.line, result=result, markup=markup, error=error)
        ctx.answers.append(result)
        ctx.line += 1
        return outcome


def create_notepad(
    rates: Optional[RateTable] = None,
    settings: Optional[Settings] = None,
    registry: Optional[CurrencyRegistry] = None,
) -> Notepad:
    settings = settings or Settings()
    logging.basicConfig(level=settings.log_level.upper())

    if registry is None:
        registry = CurrencyRegistry.with_builtins() if settings.load_builtin_currencies else CurrencyRegistry()

    evaluator = ASTEvaluator(registry=registry, precision=settings.decimal_precision)
    logger.info("%s %s ready.", settings.app_title, settings.app_version)
    return Notepad(evaluator, rates=rates)
