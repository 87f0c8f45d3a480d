"""Bipartite matching between givers and their eligible recipients.

The retry search in :mod:`giftexchange.services.assignment` can report a failure
for a configuration that does have a valid assignment. The functions here
treat the problem as a perfect matching on givers x eligible recipients and
grow it one augmenting path at a time, so they never miss a solution.
"""
from __future__ import annotations

import random
from collections import deque
from typing import Deque, Dict, List, Optional, Sequence

from giftexchange.services.participants import (
    Exclusions,
    ParticipantId,
    normalize_exclusions,
    unique_participants,
)


def eligible_recipients(
    participants: Sequence[ParticipantId],
    exclusions: Optional[Exclusions],
) -> Dict[ParticipantId, List[ParticipantId]]:
    excluded = normalize_exclusions(exclusions)
    return {
        giver: [
            recipient
            for recipient in participants
            if recipient != giver and recipient not in excluded.get(giver, ())
        ]
        for giver in participants
    }


def _augment(
    root: ParticipantId,
    adjacency: Dict[ParticipantId, List[ParticipantId]],
    recipient_of: Dict[ParticipantId, ParticipantId],
    giver_of: Dict[ParticipantId, ParticipantId],
) -> bool:
    # Breadth-first search over alternating paths starting at an unmatched giver.
    reached_from: Dict[ParticipantId, ParticipantId] = {}
    queue: Deque[ParticipantId] = deque([root])
    while queue:
        giver = queue.popleft()
        for recipient in adjacency[giver]:
            if recipient in reached_from:
                continue
            reached_from[recipient] = giver
            holder = giver_of.get(recipient)
            if holder is not None:
                queue.append(holder)
                continue

            # Free recipient found: flip every edge on the path back to the root.
            while True:
                owner = reached_from[recipient]
                previous = recipient_of.get(owner)
                recipient_of[owner] = recipient
                giver_of[recipient] = owner
                if owner == root:
                    return True
                recipient = previous
    return False


def _maximum_matching(
    givers: Sequence[ParticipantId],
    adjacency: Dict[ParticipantId, List[ParticipantId]],
) -> Dict[ParticipantId, ParticipantId]:
    recipient_of: Dict[ParticipantId, ParticipantId] = {}
    giver_of: Dict[ParticipantId, ParticipantId] = {}
    for giver in givers:
        _augment(giver, adjacency, recipient_of, giver_of)
    return recipient_of


def find_perfect_matching(
    participant_ids: Sequence[ParticipantId],
    exclusions: Optional[Exclusions],
    rng: random.Random,
) -> Optional[Dict[ParticipantId, ParticipantId]]:
    """Return a random valid assignment, or ``None`` when none exists.

    Giver order and every adjacency list are shuffled with ``rng``. The result
    is random but not uniform over all valid assignments.
    """
    participants = unique_participants(participant_ids)
    adjacency = eligible_recipients(participants, exclusions)
    for recipients in adjacency.values():
        rng.shuffle(recipients)
    givers = list(participants)
    rng.shuffle(givers)

    matching = _maximum_matching(givers, adjacency)
    if len(matching) != len(participants):
        return None
    return {giver: matching[giver] for giver in participants}


def has_valid_assignment(
    participant_ids: Sequence[ParticipantId],
    exclusions: Optional[Exclusions] = None,
) -> bool:
    """Deterministic feasibility check: Hall's condition holds iff a perfect matching exists."""
    participants = unique_participants(participant_ids)
    adjacency = eligible_recipients(participants, exclusions)
    return len(_maximum_matching(participants, adjacency)) == len(participants)
