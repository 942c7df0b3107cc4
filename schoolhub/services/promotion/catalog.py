# services/promotion/catalog.py
"""
In-memory index over the grade catalog.

Grades are positioned by (curriculum, level, section, stream). Explicit
promotion rules are keyed by (curriculum, level, section) and override the
default level + 1 advance for that position.
"""
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple
import uuid

from schoolhub.models.grade import Grade, GradePromotionRule, SchoolSection, CurriculumType

# Primary -> Secondary stream remapping; unknown streams land in Grey
STREAM_MAP: Dict[str, str] = {
    "Purple": "Grey",
    "Green": "Blue",
    "Orange": "Grey",
}
DEFAULT_SECONDARY_STREAM = "Grey"

SECTION_ORDER = [SchoolSection.PRESCHOOL, SchoolSection.PRIMARY, SchoolSection.SECONDARY]

Position = Tuple[CurriculumType, int, SchoolSection, str]
RuleKey = Tuple[CurriculumType, int, SchoolSection]


def map_stream(stream: str, from_section: SchoolSection, to_section: SchoolSection) -> str:
    if from_section == to_section:
        return stream
    if from_section == SchoolSection.PRIMARY and to_section == SchoolSection.SECONDARY:
        return STREAM_MAP.get(stream, DEFAULT_SECONDARY_STREAM)
    return stream


def next_section(section: SchoolSection) -> SchoolSection:
    idx = SECTION_ORDER.index(section)
    return SECTION_ORDER[min(idx + 1, len(SECTION_ORDER) - 1)]


class GradeCatalog:
    """Read-only view of all grades and promotion rules for one resolution pass."""

    def __init__(self, grades: Iterable[Grade], rules: Iterable[GradePromotionRule] = ()):
        self._by_id: Dict[uuid.UUID, Grade] = {}
        self._by_position: Dict[Position, List[Grade]] = defaultdict(list)
        self._max_level: Dict[CurriculumType, int] = {}
        self._rules: Dict[RuleKey, GradePromotionRule] = {}

        for grade in grades:
            self._by_id[grade.id] = grade
            key = (grade.curriculum_type, grade.level, grade.section, grade.stream)
            self._by_position[key].append(grade)
            if grade.is_active:
                current = self._max_level.get(grade.curriculum_type)
                if current is None or grade.level > current:
                    self._max_level[grade.curriculum_type] = grade.level

        for bucket in self._by_position.values():
            bucket.sort(key=lambda g: (g.name, str(g.id)))

        for rule in rules:
            self._rules[(rule.from_curriculum, rule.from_level, rule.from_section)] = rule

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self):
        return iter(self._by_id.values())

    def get(self, grade_id: uuid.UUID) -> Optional[Grade]:
        return self._by_id.get(grade_id)

    def rule_for(self, grade: Grade) -> Optional[GradePromotionRule]:
        return self._rules.get((grade.curriculum_type, grade.level, grade.section))

    def max_level(self, curriculum: CurriculumType) -> Optional[int]:
        return self._max_level.get(curriculum)

    def is_terminal(self, grade: Grade) -> bool:
        """No rule leads out of this grade and nothing sits above it in its curriculum."""
        if self.rule_for(grade) is not None:
            return False
        top = self.max_level(grade.curriculum_type)
        return top is None or grade.level >= top

    def at_position(self, curriculum: CurriculumType, level: int,
                    section: SchoolSection, stream: str) -> List[Grade]:
        return list(self._by_position.get((curriculum, level, section, stream), ()))
