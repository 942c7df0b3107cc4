# services/promotion/dataclasses.py
import enum
from dataclasses import dataclass, field, asdict
from typing import Optional, List, Dict, Any

from schoolhub.models.grade import Grade


class PromotionFailure(str, enum.Enum):
    TERMINAL_GRADE = "TerminalGrade"
    NO_VALID_TARGET = "NoValidTarget"
    NOT_FOUND = "NotFound"
    UNEXPECTED = "Unexpected"
    ALREADY_PROMOTED = "AlreadyPromoted"


@dataclass(frozen=True)
class TransitionPolicy:
    """Legacy -> CompetencyBased changeover window, both years inclusive."""
    start_year: int
    end_year: int

    @property
    def total_years(self) -> int:
        return self.end_year - self.start_year + 1

    def is_active(self, year: int) -> bool:
        return self.start_year <= year <= self.end_year

    def phase_label(self, year: int) -> str:
        if year < self.start_year:
            return "Pre-Transition"
        if year >= self.end_year:
            return "Post-Transition (Fully CompetencyBased)"
        return f"Transition Year {year - self.start_year + 1} of {self.total_years}"


@dataclass
class Resolution:
    """Outcome of resolving one grade's successor."""
    target: Optional[Grade] = None
    failure: Optional[PromotionFailure] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.target is not None


@dataclass
class PromotionResult:
    success: bool
    message: str = ""
    error_message: Optional[str] = None
    failure: Optional[PromotionFailure] = None
    students_promoted: int = 0
    from_grade: Optional[str] = None
    to_grade: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["failure"] = self.failure.value if self.failure else None
        return data


@dataclass
class GradePromotionDetail:
    from_grade: str
    to_grade: str
    students_promoted: int
    message: str
    curriculum_transition: Optional[str] = None  # "Legacy → CompetencyBased"


@dataclass
class PromotionSummary:
    success: bool = False
    message: str = ""
    failure: Optional[PromotionFailure] = None
    total_grades_processed: int = 0
    successful_promotions: int = 0
    failed_promotions: int = 0
    total_students_promoted: int = 0
    promotion_details: List[GradePromotionDetail] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    run_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["failure"] = self.failure.value if self.failure else None
        return data


@dataclass
class TransitionStatus:
    academic_year: int
    is_transition_active: bool
    transition_phase: str
    legacy_grades_active: int = 0
    competency_grades_active: int = 0
    transitional_grades_active: int = 0
