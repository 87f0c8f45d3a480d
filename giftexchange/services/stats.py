from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Set, Tuple

from giftexchange.services.participants import ParticipantId


@dataclass(frozen=True)
class AssignmentStats:
    total_participants: int
    total_assignments: int
    average_chain_length: float
    cycle_lengths: Tuple[int, ...] = ()

    @property
    def cycle_count(self) -> int:
        return len(self.cycle_lengths)

    @property
    def longest_cycle(self) -> int:
        return max(self.cycle_lengths, default=0)


def get_assignment_stats(assignments: Mapping[ParticipantId, ParticipantId]) -> AssignmentStats:
    """Break an assignment into giver -> recipient chains for diagnostics.

    Each walk stops when it returns to its start, leaves the mapping, or meets
    a node an earlier walk already counted, so malformed input still terminates.
    """
    total_participants = len(set(assignments.keys()) | set(assignments.values()))
    total_assignments = len(assignments)

    visited: Set[ParticipantId] = set()
    chain_lengths: List[int] = []
    for start in assignments:
        if start in visited:
            continue

        current = start
        length = 0
        while current not in visited:
            visited.add(current)
            length += 1
            if current not in assignments:
                break
            current = assignments[current]
            if current == start:
                break
        chain_lengths.append(length)

    average = sum(chain_lengths) / total_assignments if total_assignments else 0.0
    return AssignmentStats(
        total_participants=total_participants,
        total_assignments=total_assignments,
        average_chain_length=average,
        cycle_lengths=tuple(chain_lengths),
    )
