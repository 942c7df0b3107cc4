from schoolhub.services.promotion.catalog import GradeCatalog, map_stream, next_section
from schoolhub.services.promotion.dataclasses import (
    PromotionFailure, PromotionResult, PromotionSummary, GradePromotionDetail,
    TransitionPolicy, TransitionStatus, Resolution,
)
from schoolhub.services.promotion.resolver import resolve_next_grade
from schoolhub.services.promotion.service import PromotionService, get_promotion_service

__all__ = [
    "GradeCatalog", "map_stream", "next_section",
    "PromotionFailure", "PromotionResult", "PromotionSummary", "GradePromotionDetail",
    "TransitionPolicy", "TransitionStatus", "Resolution",
    "resolve_next_grade",
    "PromotionService", "get_promotion_service",
]
