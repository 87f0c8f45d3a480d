from __future__ import annotations

from typing import Dict, Hashable, Iterable, List, Mapping, Optional, Set, Tuple

ParticipantId = Hashable
Exclusions = Mapping[ParticipantId, Iterable[ParticipantId]]

# A meaningful exchange needs at least three people; callers enforce this.
MIN_PARTICIPANTS = 3


def unique_participants(participant_ids: Iterable[ParticipantId]) -> List[ParticipantId]:
    """Collapse duplicate ids, keeping first-seen order so seeded runs stay reproducible."""
    return list(dict.fromkeys(participant_ids))


def normalize_exclusions(exclusions: Optional[Exclusions]) -> Dict[ParticipantId, Set[ParticipantId]]:
    return {giver: set(excluded) for giver, excluded in (exclusions or {}).items()}


def build_exclusions(
    pairs: Iterable[Tuple[ParticipantId, ParticipantId]],
    mutual: bool = False,
) -> Dict[ParticipantId, Set[ParticipantId]]:
    """Turn ``(giver, recipient)`` pairs into an exclusion map.

    With ``mutual=True`` every pair also forbids the reverse direction, which is
    how partners are usually kept apart.
    """
    exclusions: Dict[ParticipantId, Set[ParticipantId]] = {}
    for giver, recipient in pairs:
        exclusions.setdefault(giver, set()).add(recipient)
        if mutual:
            exclusions.setdefault(recipient, set()).add(giver)
    return exclusions
