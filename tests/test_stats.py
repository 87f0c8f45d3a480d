import random

import pytest

from giftexchange.services.assignment import generate_assignments
from giftexchange.services.stats import get_assignment_stats


def test_single_cycle():
    stats = get_assignment_stats({"A": "B", "B": "C", "C": "A"})
    assert stats.total_participants == 3
    assert stats.total_assignments == 3
    assert stats.cycle_lengths == (3,)
    assert stats.cycle_count == 1
    assert stats.longest_cycle == 3
    assert stats.average_chain_length == pytest.approx(1.0)


def test_two_small_cycles():
    stats = get_assignment_stats({1: 2, 2: 1, 3: 4, 4: 3})
    assert stats.cycle_lengths == (2, 2)
    assert stats.cycle_count == 2
    assert stats.longest_cycle == 2


def test_empty_assignment():
    stats = get_assignment_stats({})
    assert stats.total_participants == 0
    assert stats.total_assignments == 0
    assert stats.average_chain_length == 0.0
    assert stats.cycle_count == 0
    assert stats.longest_cycle == 0


def test_open_chain_terminates():
    stats = get_assignment_stats({"A": "B", "B": "C"})
    assert stats.total_participants == 3
    assert stats.total_assignments == 2
    assert stats.cycle_lengths == (3,)
    assert stats.average_chain_length == pytest.approx(1.5)


def test_merging_chains_stop_at_visited_node():
    stats = get_assignment_stats({"A": "C", "B": "C", "C": "A"})
    assert stats.cycle_lengths == (2, 1)
    assert stats.total_participants == 3


def test_cycle_lengths_sum_to_participant_count():
    for size in (3, 4, 7, 12):
        participants = list(range(size))
        for seed in range(50):
            assignments = generate_assignments(participants, rng=random.Random(seed)).assignments
            stats = get_assignment_stats(assignments)
            assert sum(stats.cycle_lengths) == size
            assert stats.total_participants == size
            assert stats.total_assignments == size
            assert all(length >= 2 for length in stats.cycle_lengths)
