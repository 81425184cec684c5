import random

import pytest

from mining_simulator.tie_breaker import (
    EarliestPublished,
    FavorMiner,
    FavorMinerFork,
    FavorMinerProb,
    RandomTip,
)


class CountingRandom(random.Random):
    """Returns a fixed value from ``random()`` and counts the draws."""
    value = 0.0
    draws = 0

    def random(self):
        self.draws += 1
        return self.value


def counting(value):
    rng = CountingRandom()
    rng.value = value
    return rng


@pytest.fixture
def forked_chain(build_chain):
    # Three blocks at height 1: miner 1, miner 2, miner 2
    return build_chain((1, 0, 1), (2, 0, 2), (3, 0, 2))


def test_earliest_published(forked_chain, rng):
    assert EarliestPublished().choose(forked_chain, rng) == 1


def test_favor_miner(forked_chain, rng):
    assert FavorMiner(2).choose(forked_chain, rng) == 2
    assert FavorMiner(1).choose(forked_chain, rng) == 1
    assert FavorMiner(5).choose(forked_chain, rng) == 1


def test_favor_miner_fork_searches_below_tip(build_chain, rng):
    chain = build_chain((1, 0, 2), (2, 1, 1), (3, 2, 1))

    assert FavorMinerFork(2, 2).choose(chain, rng) == 1
    assert FavorMinerFork(2, 1).choose(chain, rng) == 3
    assert FavorMinerFork(2, 100).choose(chain, rng) == 1
    assert FavorMinerFork(1, 0).choose(chain, rng) == 3


def test_favor_miner_fork_rejects_negative_depth():
    with pytest.raises(ValueError):
        FavorMinerFork(1, -1)


def test_favor_miner_prob_draws_once_when_both_exist(forked_chain):
    low = counting(0.1)
    assert FavorMinerProb(2, 0.5).choose(forked_chain, low) == 2
    assert low.draws == 1

    high = counting(0.9)
    assert FavorMinerProb(2, 0.5).choose(forked_chain, high) == 1
    assert high.draws == 1


def test_favor_miner_prob_without_draw(build_chain):
    only_favored = build_chain((1, 0, 2))
    only_other = build_chain((1, 0, 1))
    rng = counting(0.0)

    assert FavorMinerProb(2, 0.0).choose(only_favored, rng) == 1
    assert FavorMinerProb(2, 1.0).choose(only_other, rng) == 1
    assert rng.draws == 0


def test_favor_miner_prob_bounds(forked_chain, rng):
    assert FavorMinerProb(2, 1.0).choose(forked_chain, rng) == 2
    assert FavorMinerProb(2, 0.0).choose(forked_chain, rng) == 1
    with pytest.raises(ValueError):
        FavorMinerProb(2, 1.5)


def test_random_tip_covers_tip(forked_chain, rng):
    choices = {RandomTip().choose(forked_chain, rng) for _ in range(200)}
    assert choices == {1, 2, 3}


def test_random_tip_is_deterministic_given_seed(forked_chain):
    first = [RandomTip().choose(forked_chain, random.Random(9)) for _ in range(5)]
    second = [RandomTip().choose(forked_chain, random.Random(9)) for _ in range(5)]
    assert first == second


def test_tie_breakers_compare_by_value():
    assert FavorMiner(2) == FavorMiner(2)
    assert FavorMiner(2) != FavorMiner(3)
    assert EarliestPublished() != FavorMiner(0)
    assert repr(FavorMinerProb(2, 0.5)) == "FavorMinerProb(miner_id=2, prob=0.5)"


def test_single_tip_is_stable(build_chain, rng):
    chain = build_chain((1, 0, 1))
    breaker = EarliestPublished()
    assert {breaker.choose(chain, rng) for _ in range(10)} == {1}
    assert chain.tip() == [1]
