from giftexchange.services.assignment import (
    AssignmentErrorKind,
    AssignmentResult,
    check_participant_count,
    generate_assignments,
)
from giftexchange.services.matching import find_perfect_matching, has_valid_assignment
from giftexchange.services.participants import MIN_PARTICIPANTS, build_exclusions
from giftexchange.services.stats import AssignmentStats, get_assignment_stats
from giftexchange.services.validation import ValidationReport, validate_assignments

__all__ = [
    "AssignmentErrorKind",
    "AssignmentResult",
    "AssignmentStats",
    "MIN_PARTICIPANTS",
    "ValidationReport",
    "build_exclusions",
    "check_participant_count",
    "find_perfect_matching",
    "generate_assignments",
    "get_assignment_stats",
    "has_valid_assignment",
    "validate_assignments",
]
