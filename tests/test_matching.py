import random

from giftexchange.services.assignment import AssignmentErrorKind, generate_assignments
from giftexchange.services.matching import find_perfect_matching, has_valid_assignment

# Exactly one valid assignment exists: 1 -> 2 -> 3 -> 4 -> 1.
# A greedy pass that lets 1 take 3 before 2 has chosen leaves 2 with nobody.
ONLY_CYCLE = {1: {4}, 2: {1, 4}, 3: {1, 2}, 4: {2, 3}}
ONLY_CYCLE_ANSWER = {1: 2, 2: 3, 3: 4, 4: 1}


def test_matching_finds_the_only_valid_assignment():
    for seed in range(50):
        assert find_perfect_matching([1, 2, 3, 4], ONLY_CYCLE, random.Random(seed)) == ONLY_CYCLE_ANSWER


def test_matching_strategy_succeeds_where_single_retry_can_dead_end():
    retry_failures = 0
    for seed in range(100):
        retry = generate_assignments([1, 2, 3, 4], ONLY_CYCLE, rng=random.Random(seed), max_attempts=1)
        if not retry.success:
            retry_failures += 1
        matched = generate_assignments([1, 2, 3, 4], ONLY_CYCLE, rng=random.Random(seed), strategy="matching")
        assert matched.success
        assert matched.assignments == ONLY_CYCLE_ANSWER
    assert retry_failures > 0


def test_matching_strategy_reports_infeasible_configuration():
    result = generate_assignments(
        ["A", "B", "C"],
        {"A": ["B", "C"]},
        rng=random.Random(1),
        strategy="matching",
    )
    assert not result.success
    assert result.assignments == {}
    assert result.error_kind == AssignmentErrorKind.EXHAUSTED_ATTEMPTS


def test_matching_without_exclusions_is_a_derangement():
    participants = list(range(10))
    for seed in range(30):
        assignments = find_perfect_matching(participants, None, random.Random(seed))
        assert set(assignments) == set(participants)
        assert set(assignments.values()) == set(participants)
        assert all(giver != receiver for giver, receiver in assignments.items())


def test_matching_results_vary_with_seed():
    participants = list(range(8))
    results = {
        tuple(sorted(find_perfect_matching(participants, None, random.Random(seed)).items()))
        for seed in range(20)
    }
    assert len(results) > 1


def test_has_valid_assignment():
    assert has_valid_assignment([1, 2, 3])
    assert has_valid_assignment([1, 2, 3, 4], ONLY_CYCLE)
    assert not has_valid_assignment(["A", "B", "C"], {"A": ["B", "C"]})
    assert not has_valid_assignment([1])
    assert not has_valid_assignment(["A", "B", "C"], {"A": ["C"], "B": ["C"]})
