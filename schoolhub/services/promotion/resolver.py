# services/promotion/resolver.py
from typing import List, Tuple

from schoolhub.models.grade import Grade, SchoolSection, CurriculumType
from schoolhub.services.promotion.catalog import GradeCatalog, map_stream, next_section
from schoolhub.services.promotion.dataclasses import Resolution, PromotionFailure

TERMINAL_MESSAGE = "Student has completed the highest grade level."


def _target_positions(catalog: GradeCatalog, grade: Grade) -> List[Tuple[CurriculumType, int, SchoolSection]]:
    rule = catalog.rule_for(grade)
    if rule is not None:
        return [(rule.to_curriculum, rule.to_level, rule.to_section)]

    positions = [(grade.curriculum_type, grade.level + 1, grade.section)]
    following = next_section(grade.section)
    if following != grade.section:
        positions.append((grade.curriculum_type, grade.level + 1, following))
    return positions


def resolve_next_grade(catalog: GradeCatalog, grade: Grade, academic_year: int) -> Resolution:
    """
    Find the single grade a student in ``grade`` moves to for ``academic_year``.

    Order of precedence: terminal grade, explicit promotion rule, then level + 1
    in the same curriculum (same section first, next section with remapped
    stream second). Candidates must be active and inside their year window.
    """
    if catalog.is_terminal(grade):
        return Resolution(failure=PromotionFailure.TERMINAL_GRADE, reason=TERMINAL_MESSAGE)

    out_of_window: List[Grade] = []
    for curriculum, level, section in _target_positions(catalog, grade):
        stream = map_stream(grade.stream, grade.section, section)
        candidates = catalog.at_position(curriculum, level, section, stream)
        for candidate in candidates:
            if candidate.is_valid_for_year(academic_year):
                return Resolution(target=candidate)
        out_of_window.extend(c for c in candidates if c.is_active)

    return Resolution(
        failure=PromotionFailure.NO_VALID_TARGET,
        reason=failure_reason(grade, academic_year, out_of_window),
    )


def failure_reason(grade: Grade, academic_year: int, out_of_window: List[Grade] = ()) -> str:
    if grade.is_transitional and not grade.is_valid_for_year(academic_year):
        return f"{grade.full_name} is no longer available for the {academic_year} academic year."
    if out_of_window:
        target = out_of_window[0]
        return f"Target grade {target.full_name} is not available in {academic_year}."
    return f"No suitable promotion target found for {grade.full_name} in {academic_year}."
