"""
Evaluation Module

Turns a resolved book into a keep/recycle decision.
"""

from shelfkeep.evaluation.rules import Rules, Decision, evaluate, book_age

__all__ = [
    "Rules",
    "Decision",
    "evaluate",
    "book_age",
]
