"""
Evaluator adapter package.

Public import:
    from adapters.evaluator import ASTEvaluator
"""

from adapters.evaluator.ast_evaluator import ASTEvaluator

__all__ = ["ASTEvaluator"]
