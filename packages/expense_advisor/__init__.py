"""Public interface for the ``expense_advisor`` package.

This module re-exports the package's models, the recommendation engine and
the session store as the stable import surface. There is no runtime logic
here, only symbol re-exports.
"""

from .applier import (
    UnknownRecommendationError,
    UnknownRecordError,
    apply_many,
    apply_recommendation,
    ignore_many,
    ignore_recommendation,
)
from .models import (
    DuplicatePair,
    ExpenseOriginalValues,
    ExpenseRecord,
    FilterCriteria,
    IncomeRecord,
    InvestmentTransferRecord,
    Recommendation,
    RecommendationType,
    RecordFlags,
)
from .reconcile import identity_key, reconcile_recommendations, visible_recommendations
from .rules import DEFAULT_RULES
from .similarity import levenshtein_distance, normalize_text, normalized_edit_similarity
from .store import RecordStore

__all__ = [
    # Engine
    "DEFAULT_RULES",
    "identity_key",
    "reconcile_recommendations",
    "visible_recommendations",
    # Actions
    "apply_recommendation",
    "ignore_recommendation",
    "apply_many",
    "ignore_many",
    "UnknownRecommendationError",
    "UnknownRecordError",
    # Session
    "RecordStore",
    # Models / types
    "ExpenseRecord",
    "IncomeRecord",
    "InvestmentTransferRecord",
    "ExpenseOriginalValues",
    "RecordFlags",
    "Recommendation",
    "RecommendationType",
    "DuplicatePair",
    "FilterCriteria",
    # Similarity
    "normalize_text",
    "levenshtein_distance",
    "normalized_edit_similarity",
]
