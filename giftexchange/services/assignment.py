from __future__ import annotations

import enum
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

from loguru import logger

from giftexchange.services.matching import find_perfect_matching
from giftexchange.services.participants import (
    MIN_PARTICIPANTS,
    Exclusions,
    ParticipantId,
    normalize_exclusions,
    unique_participants,
)

DEFAULT_MAX_ATTEMPTS = 100
STRATEGY_RETRY = "retry"
STRATEGY_MATCHING = "matching"


class AssignmentErrorKind(str, enum.Enum):
    INSUFFICIENT_PARTICIPANTS = "insufficient_participants"
    EXHAUSTED_ATTEMPTS = "exhausted_attempts"
    VALIDATION_FAILURE = "validation_failure"


@dataclass(frozen=True)
class AssignmentResult:
    success: bool
    assignments: Dict[ParticipantId, ParticipantId] = field(default_factory=dict)
    error: Optional[str] = None
    error_kind: Optional[AssignmentErrorKind] = None
    attempts: int = 0

    @classmethod
    def failure(cls, kind: AssignmentErrorKind, message: str, attempts: int = 0) -> "AssignmentResult":
        return cls(success=False, assignments={}, error=message, error_kind=kind, attempts=attempts)


def check_participant_count(count: int, minimum: int = MIN_PARTICIPANTS) -> Optional[AssignmentResult]:
    """Caller-side gate: returns a failure result when there are too few participants."""
    if count >= minimum:
        return None
    return AssignmentResult.failure(
        AssignmentErrorKind.INSUFFICIENT_PARTICIPANTS,
        f"Need at least {minimum} opted-in participants",
    )


def _is_bijection(
    participants: Sequence[ParticipantId],
    assignments: Dict[ParticipantId, ParticipantId],
) -> bool:
    expected = set(participants)
    return (
        len(assignments) == len(expected)
        and set(assignments.keys()) == expected
        and set(assignments.values()) == expected
    )


def _attempt_assignment(
    participants: List[ParticipantId],
    exclusions: Dict[ParticipantId, Set[ParticipantId]],
    rng: random.Random,
) -> Optional[Dict[ParticipantId, ParticipantId]]:
    givers = list(participants)
    rng.shuffle(givers)

    claimed: Set[ParticipantId] = set()
    assignments: Dict[ParticipantId, ParticipantId] = {}
    for giver in givers:
        excluded = exclusions.get(giver, ())
        candidates = [
            recipient
            for recipient in participants
            if recipient != giver and recipient not in excluded and recipient not in claimed
        ]
        if not candidates:
            return None
        recipient = rng.choice(candidates)
        assignments[giver] = recipient
        claimed.add(recipient)

    if not _is_bijection(participants, assignments):
        return None
    return assignments


def generate_assignments(
    participant_ids: Sequence[ParticipantId],
    exclusions: Optional[Exclusions] = None,
    *,
    rng: random.Random,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    strategy: str = STRATEGY_RETRY,
) -> AssignmentResult:
    """Assign every participant exactly one recipient.

    ``rng`` is required and is the only source of randomness, so a seeded
    ``random.Random`` makes the result reproducible. The participant minimum is
    not checked here; see :func:`check_participant_count`.

    The default ``retry`` strategy makes up to ``max_attempts`` greedy passes
    and can give up on a configuration that is satisfiable. The ``matching``
    strategy is complete and fails only when no valid assignment exists.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1.")
    if strategy not in (STRATEGY_RETRY, STRATEGY_MATCHING):
        raise ValueError(f"Unknown assignment strategy: {strategy!r}")

    participants = unique_participants(participant_ids)
    excluded = normalize_exclusions(exclusions)
    log = logger.bind(participants=len(participants), strategy=strategy)

    if strategy == STRATEGY_MATCHING:
        assignments = find_perfect_matching(participants, excluded, rng)
        if assignments is None:
            log.debug("No perfect matching exists")
            return AssignmentResult.failure(
                AssignmentErrorKind.EXHAUSTED_ATTEMPTS,
                "No valid assignment exists for these participants. Relax the exclusion rules.",
                attempts=1,
            )
        return AssignmentResult(success=True, assignments=assignments, attempts=1)

    for attempt in range(1, max_attempts + 1):
        assignments = _attempt_assignment(participants, excluded, rng)
        if assignments is not None:
            log.debug("Assignments generated after {attempts} attempt(s)", attempts=attempt)
            return AssignmentResult(success=True, assignments=assignments, attempts=attempt)

    log.debug("Gave up after {attempts} attempts", attempts=max_attempts)
    return AssignmentResult.failure(
        AssignmentErrorKind.EXHAUSTED_ATTEMPTS,
        f"Could not generate valid assignments after {max_attempts} attempts. Check exclusion rules.",
        attempts=max_attempts,
    )
