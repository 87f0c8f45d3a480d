import random

import pytest

from giftexchange.services.assignment import (
    AssignmentErrorKind,
    check_participant_count,
    generate_assignments,
)
from giftexchange.services.participants import build_exclusions


def assert_derangement(participants, assignments):
    assert set(assignments.keys()) == set(participants)
    assert set(assignments.values()) == set(participants)
    assert all(giver != receiver for giver, receiver in assignments.items())


def test_assignment_basic_bijection():
    participants = [1, 2, 3, 4]
    result = generate_assignments(participants, rng=random.Random(42))
    assert result.success
    assert result.error is None
    assert_derangement(participants, result.assignments)


@pytest.mark.parametrize("size", [3, 4, 5, 8, 13])
def test_assignment_succeeds_without_exclusions_across_seeds(size):
    participants = list(range(size))
    for seed in range(200):
        result = generate_assignments(participants, rng=random.Random(seed), max_attempts=100)
        assert result.success
        assert_derangement(participants, result.assignments)


def test_assignment_deterministic_seed():
    participants = ["ann", "ben", "cat", "dan", "eve"]
    first = generate_assignments(participants, rng=random.Random(123))
    second = generate_assignments(participants, rng=random.Random(123))
    assert first == second


def test_assignment_leaves_global_random_state_alone():
    random.seed(2024)
    state = random.getstate()
    generate_assignments([1, 2, 3, 4, 5], rng=random.Random(7))
    assert random.getstate() == state


def test_assignment_never_pairs_excluded_giver():
    participants = ["A", "B", "C", "D"]
    exclusions = {"A": ["B"]}
    for seed in range(300):
        result = generate_assignments(participants, exclusions, rng=random.Random(seed))
        assert result.success
        assert result.assignments["A"] != "B"
        assert_derangement(participants, result.assignments)


def test_assignment_mutual_exclusions():
    participants = ["A", "B", "C", "D", "E"]
    exclusions = build_exclusions([("A", "B"), ("C", "D")], mutual=True)
    for seed in range(100):
        assignments = generate_assignments(participants, exclusions, rng=random.Random(seed)).assignments
        assert assignments["A"] != "B"
        assert assignments["B"] != "A"
        assert assignments["C"] != "D"
        assert assignments["D"] != "C"


def test_assignment_fails_for_impossible_exclusions():
    participants = ["A", "B", "C"]
    exclusions = {"A": ["B", "C"]}
    result = generate_assignments(participants, exclusions, rng=random.Random(9), max_attempts=25)
    assert not result.success
    assert result.assignments == {}
    assert result.error_kind == AssignmentErrorKind.EXHAUSTED_ATTEMPTS
    assert result.attempts == 25
    assert "25 attempts" in result.error
    assert "exclusion rules" in result.error


def test_assignment_three_people_reaches_both_derangements():
    participants = ["A", "B", "C"]
    clockwise = {"A": "B", "B": "C", "C": "A"}
    counter_clockwise = {"A": "C", "C": "B", "B": "A"}
    seen = []
    for seed in range(200):
        result = generate_assignments(participants, rng=random.Random(seed))
        assert result.success
        assert result.assignments in (clockwise, counter_clockwise)
        seen.append(result.assignments)
    assert clockwise in seen
    assert counter_clockwise in seen


def test_assignment_unique_receivers():
    participants = [1, 2, 3, 4, 5, 6]
    assignments = generate_assignments(participants, rng=random.Random(77)).assignments
    assert len(set(assignments.values())) == len(participants)


def test_assignment_collapses_duplicate_participants():
    result = generate_assignments([1, 2, 2, 3, 1], rng=random.Random(3))
    assert result.success
    assert_derangement([1, 2, 3], result.assignments)


def test_assignment_does_not_mutate_inputs():
    participants = ["A", "B", "C", "D"]
    exclusions = {"A": ["B"]}
    generate_assignments(participants, exclusions, rng=random.Random(5))
    assert participants == ["A", "B", "C", "D"]
    assert exclusions == {"A": ["B"]}


def test_assignment_ignores_exclusions_for_unknown_people():
    participants = [1, 2, 3]
    result = generate_assignments(participants, {99: [1, 2, 3], 1: [42]}, rng=random.Random(1))
    assert result.success
    assert_derangement(participants, result.assignments)


def test_assignment_rejects_bad_arguments():
    with pytest.raises(ValueError):
        generate_assignments([1, 2, 3], rng=random.Random(1), max_attempts=0)
    with pytest.raises(ValueError):
        generate_assignments([1, 2, 3], rng=random.Random(1), strategy="annealing")


def test_assignment_requires_rng():
    with pytest.raises(TypeError):
        generate_assignments([1, 2, 3])


@pytest.mark.parametrize("count", [0, 1, 2])
def test_participant_count_gate_rejects_small_groups(count):
    result = check_participant_count(count)
    assert result is not None
    assert not result.success
    assert result.error_kind == AssignmentErrorKind.INSUFFICIENT_PARTICIPANTS
    assert "at least 3" in result.error


def test_participant_count_gate_allows_three():
    assert check_participant_count(3) is None


def test_build_exclusions_one_directional():
    exclusions = build_exclusions([("A", "B"), ("A", "C")])
    assert exclusions == {"A": {"B", "C"}}
