# ABOUTME: Groups diagnostic test question selection and scoring.
# ABOUTME: Re-exports the selector, question loader and result types.

from .questions import DIAGNOSTIC_QUESTION_COUNT, DiagnosticQuestionSelector, load_questions
from .scoring import CategoryScore, DiagnosticResult, score_diagnostic

__all__ = [
    "DIAGNOSTIC_QUESTION_COUNT",
    "CategoryScore",
    "DiagnosticQuestionSelector",
    "DiagnosticResult",
    "load_questions",
    "score_diagnostic",
]
