from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence

from giftexchange.services.participants import (
    Exclusions,
    ParticipantId,
    normalize_exclusions,
    unique_participants,
)


@dataclass(frozen=True)
class ValidationReport:
    valid: bool
    errors: List[str] = field(default_factory=list)


def validate_assignments(
    participant_ids: Sequence[ParticipantId],
    assignments: Mapping[ParticipantId, ParticipantId],
    exclusions: Optional[Exclusions] = None,
) -> ValidationReport:
    """Re-check an assignment against every rule and report all violations found.

    Works on freshly generated results as well as assignments read back from
    storage, where manual edits or corruption may have broken the bijection.
    """
    participants = unique_participants(participant_ids)
    members = set(participants)
    excluded = normalize_exclusions(exclusions)
    errors: List[str] = []

    for participant in participants:
        if participant not in assignments:
            errors.append(f"{participant} is not assigned to give")

    recipient_counts = Counter(assignments.values())
    for participant in participants:
        if participant not in recipient_counts:
            errors.append(f"{participant} is not assigned to receive")

    strangers = unique_participants(
        person
        for pair in assignments.items()
        for person in pair
        if person not in members
    )
    for stranger in strangers:
        errors.append(f"{stranger} is not a participant")

    for recipient, count in recipient_counts.items():
        if count > 1:
            errors.append(f"{recipient} is assigned to receive more than once")

    for giver, recipient in assignments.items():
        if giver == recipient:
            errors.append(f"{giver} is assigned to themselves")

    for giver, recipient in assignments.items():
        if recipient in excluded.get(giver, ()):
            errors.append(f"{giver} is assigned to excluded person {recipient}")

    return ValidationReport(valid=not errors, errors=errors)
