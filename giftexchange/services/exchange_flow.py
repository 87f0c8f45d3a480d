from __future__ import annotations

import datetime
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from loguru import logger

from giftexchange.db import ExchangeParticipant, GiftExchange, repo
from giftexchange.services.assignment import (
    DEFAULT_MAX_ATTEMPTS,
    STRATEGY_RETRY,
    AssignmentErrorKind,
    check_participant_count,
    generate_assignments,
)
from giftexchange.services.matching import has_valid_assignment
from giftexchange.services.stats import AssignmentStats, get_assignment_stats
from giftexchange.services.validation import ValidationReport, validate_assignments

MAX_NAME_LENGTH = 200


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    message: str


@dataclass(frozen=True)
class GenerationOutcome:
    success: bool
    message: str
    error_kind: Optional[AssignmentErrorKind] = None
    assignments: Dict[str, str] = field(default_factory=dict)
    participant_count: int = 0
    seed: Optional[int] = None


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _as_utc(moment: datetime.datetime) -> datetime.datetime:
    # Naive timestamps are stored and passed in UTC.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=datetime.timezone.utc)
    return moment.astimezone(datetime.timezone.utc)


def _deadline_passed(deadline: Optional[datetime.datetime], now: Optional[datetime.datetime] = None) -> bool:
    if deadline is None:
        return False
    return _as_utc(now or _utcnow()) > _as_utc(deadline)


def load_exclusion_map(session, exchange_id: int) -> Dict[str, Set[str]]:
    exclusions: Dict[str, Set[str]] = {}
    for rule in repo.list_exclusions(session, exchange_id):
        exclusions.setdefault(rule.giver_user_id, set()).add(rule.recipient_user_id)
    return exclusions


def create_exchange(
    session,
    name: str,
    created_by: str,
    registration_deadline: Optional[datetime.datetime] = None,
) -> GiftExchange:
    name = (name or "").strip()
    if not name:
        raise ValueError("Name is required")
    if len(name) > MAX_NAME_LENGTH:
        raise ValueError(f"Name must be less than {MAX_NAME_LENGTH} characters")

    exchange = repo.create_exchange(session, name, created_by, registration_deadline)
    repo.add_participant(session, exchange.id, created_by)
    logger.bind(exchange_id=exchange.id, created_by=created_by).info("Gift exchange created")
    return exchange


def delete_exchange(session, exchange_id: int, requested_by: str) -> ActionResult:
    exchange = repo.get_exchange(session, exchange_id)
    if not exchange or exchange.created_by != requested_by:
        return ActionResult(False, "Only the creator can delete this gift exchange")
    repo.delete_exchange(session, exchange)
    logger.bind(exchange_id=exchange_id).info("Gift exchange deleted")
    return ActionResult(True, "Gift exchange deleted")


def list_opted_in(session, exchange_id: int) -> List[ExchangeParticipant]:
    return repo.list_participants(session, exchange_id, opted_in_only=True)


def join_exchange(
    session,
    exchange_id: int,
    user_id: str,
    now: Optional[datetime.datetime] = None,
) -> ActionResult:
    exchange = repo.get_exchange(session, exchange_id)
    if not exchange:
        return ActionResult(False, "Gift exchange not found")
    if not exchange.is_active:
        return ActionResult(False, "This gift exchange is no longer active")
    if not repo.lock_open_exchange(session, exchange.id):
        return ActionResult(False, "Cannot join after assignments have been generated")
    if _deadline_passed(exchange.registration_deadline, now):
        return ActionResult(False, "Registration deadline has passed")

    if not repo.add_participant(session, exchange.id, user_id):
        return ActionResult(False, "You are already in this gift exchange")
    return ActionResult(True, "You have joined the gift exchange")


def leave_exchange(session, exchange_id: int, user_id: str) -> ActionResult:
    exchange = repo.get_exchange(session, exchange_id)
    if not exchange:
        return ActionResult(False, "Gift exchange not found")
    if not repo.lock_open_exchange(session, exchange.id):
        return ActionResult(False, "Cannot leave after assignments have been generated")
    if not repo.remove_participant(session, exchange.id, user_id):
        return ActionResult(False, "You are not in this gift exchange")
    return ActionResult(True, "You have left the gift exchange")


def set_opted_in(session, exchange_id: int, user_id: str, opted_in: bool) -> ActionResult:
    exchange = repo.get_exchange(session, exchange_id)
    if not exchange:
        return ActionResult(False, "Gift exchange not found")
    if not repo.lock_open_exchange(session, exchange.id):
        return ActionResult(False, "Cannot change participation after assignments have been generated")
    participant = repo.get_participant(session, exchange.id, user_id)
    if not participant:
        return ActionResult(False, "You are not in this gift exchange")
    participant.opted_in = opted_in
    session.flush()
    return ActionResult(True, "You are in" if opted_in else "You have opted out")


def add_exclusion(
    session,
    exchange_id: int,
    giver_user_id: str,
    recipient_user_id: str,
    mutual: bool = False,
) -> ActionResult:
    exchange = repo.get_exchange(session, exchange_id)
    if not exchange:
        return ActionResult(False, "Gift exchange not found")
    if not repo.lock_open_exchange(session, exchange.id):
        return ActionResult(False, "Cannot change exclusions after assignments have been generated")
    if giver_user_id == recipient_user_id:
        return ActionResult(False, "A participant cannot be excluded from themselves")

    added = repo.add_exclusion(session, exchange.id, giver_user_id, recipient_user_id)
    if mutual:
        added = repo.add_exclusion(session, exchange.id, recipient_user_id, giver_user_id) or added
    if not added:
        return ActionResult(False, "That exclusion already exists")
    return ActionResult(True, "Exclusion added")


def remove_exclusion(
    session,
    exchange_id: int,
    giver_user_id: str,
    recipient_user_id: str,
    mutual: bool = False,
) -> ActionResult:
    exchange = repo.get_exchange(session, exchange_id)
    if not exchange:
        return ActionResult(False, "Gift exchange not found")
    if not repo.lock_open_exchange(session, exchange.id):
        return ActionResult(False, "Cannot change exclusions after assignments have been generated")

    removed = repo.remove_exclusion(session, exchange.id, giver_user_id, recipient_user_id)
    if mutual:
        removed += repo.remove_exclusion(session, exchange.id, recipient_user_id, giver_user_id)
    if not removed:
        return ActionResult(False, "No such exclusion")
    return ActionResult(True, "Exclusion removed")


def generate_exchange_assignments(
    session,
    exchange_id: int,
    requested_by: str,
    seed: Optional[int] = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    strategy: str = STRATEGY_RETRY,
) -> GenerationOutcome:
    """Draw and store recipients for every opted-in participant of an exchange.

    The ``assignments_generated`` flag is claimed before the roster is read,
    so no join, leave, opt-in or exclusion change can land between the read
    and the write. If the draw fails or does not validate, the claim is
    released and no recipient is written.
    """
    exchange = repo.get_exchange(session, exchange_id)
    if not exchange or exchange.created_by != requested_by:
        return GenerationOutcome(False, "Only the creator can generate assignments")
    if not repo.claim_assignment_generation(session, exchange.id, _utcnow()):
        logger.bind(exchange_id=exchange.id).info("Assignments already generated, request refused")
        return GenerationOutcome(False, "Assignments have already been generated")

    participant_ids = [participant.user_id for participant in list_opted_in(session, exchange.id)]
    too_few = check_participant_count(len(participant_ids))
    if too_few is not None:
        repo.release_assignment_generation(session, exchange.id)
        return GenerationOutcome(
            False,
            too_few.error,
            error_kind=too_few.error_kind,
            participant_count=len(participant_ids),
        )

    exclusions = load_exclusion_map(session, exchange.id)
    if seed is None:
        seed = random.SystemRandom().randint(1, 2**31 - 1)
    log = logger.bind(exchange_id=exchange.id, seed=seed, strategy=strategy)

    result = generate_assignments(
        participant_ids,
        exclusions,
        rng=random.Random(seed),
        max_attempts=max_attempts,
        strategy=strategy,
    )
    if not result.success:
        repo.release_assignment_generation(session, exchange.id)
        log.warning(
            "Assignment generation failed: {error} (feasible={feasible})",
            error=result.error,
            feasible=has_valid_assignment(participant_ids, exclusions),
        )
        return GenerationOutcome(
            False,
            result.error or "Failed to generate assignments",
            error_kind=result.error_kind,
            participant_count=len(participant_ids),
            seed=seed,
        )

    report = validate_assignments(participant_ids, result.assignments, exclusions)
    if not report.valid:
        repo.release_assignment_generation(session, exchange.id)
        log.error("Generated assignments failed validation: {errors}", errors=report.errors)
        return GenerationOutcome(
            False,
            "Could not generate assignments. Check exclusion rules and participant count.",
            error_kind=AssignmentErrorKind.VALIDATION_FAILURE,
            participant_count=len(participant_ids),
            seed=seed,
        )

    repo.save_assignments(session, exchange.id, result.assignments)
    repo.update_assignment_seed(session, exchange, seed)

    stats = get_assignment_stats(result.assignments)
    log.info(
        "Assignments generated for {count} participants in {attempts} attempt(s), cycles={cycles}",
        count=stats.total_participants,
        attempts=result.attempts,
        cycles=list(stats.cycle_lengths),
    )
    return GenerationOutcome(
        True,
        "Assignments generated",
        assignments=dict(result.assignments),
        participant_count=len(participant_ids),
        seed=seed,
    )


def verify_exchange_assignments(session, exchange_id: int) -> ValidationReport:
    """Re-validate the recipients stored for an exchange."""
    exchange = repo.get_exchange(session, exchange_id)
    if not exchange:
        return ValidationReport(False, ["Gift exchange not found"])
    if not exchange.assignments_generated:
        return ValidationReport(False, ["Assignments have not been generated"])

    participant_ids = [participant.user_id for participant in list_opted_in(session, exchange_id)]
    assignments = repo.load_assignments(session, exchange_id)
    report = validate_assignments(participant_ids, assignments, load_exclusion_map(session, exchange_id))
    if not report.valid:
        logger.bind(exchange_id=exchange_id).error(
            "Stored assignments are invalid: {errors}", errors=report.errors
        )
    return report


def exchange_assignment_stats(session, exchange_id: int) -> Optional[AssignmentStats]:
    assignments = repo.load_assignments(session, exchange_id)
    if not assignments:
        return None
    return get_assignment_stats(assignments)


def get_my_assignment(session, exchange_id: int, user_id: str) -> Optional[str]:
    participant = repo.get_participant(session, exchange_id, user_id)
    if not participant:
        return None
    return participant.assigned_to_user_id
