"""
Port: Evaluator
Responsibility: deterministic evaluation of one line's node tree against the document.
"""
from typing import Protocol, runtime_checkable

from contracts import DocumentContext, Markup, Node, Result


@runtime_checkable
class Evaluator(Protocol):
    def evaluate(self, node: Node, ctx: DocumentContext) -> Result:
        """
        Evaluates a node tree to a Result (Nothing / Header / Numbr / Percent).
        ctx: rates, answers of earlier lines, current line number, variables.
        AssignmentNode mutates ctx.variables; nothing else in ctx is written.
        Bindings made before a line fails stay in ctx; the caller restores them.
        Raises NumberFormatError, UnknownOperatorError, MissingRateError or
        InvalidResultError (all EvaluationError) for faults that are fatal to
        this line; arithmetic faults surface as ArithmeticError.
        Unresolvable words, unbound variables and out-of-range references
        degrade to Nothing instead of raising.
        """
        ...

    def highlight(self, node: Node) -> Markup:
        """
        Returns highlight spans in source order; sibling spans never overlap.
        Currency spans carry the currency display name as tooltip.
        """
        ...

    def render(self, node: Node) -> str:
        """Returns a normalized text form of the node tree."""
        ...
