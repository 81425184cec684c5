from collections import deque

import pytest

from mining_simulator.block import Block
from mining_simulator.errors import IllegalStateError
from mining_simulator.miner import WAIT, Publish, PublishSet
from mining_simulator.ndeficit import A, H, DeficitMinerBase, NDeficit, NDeficitEager

HONEST = 1
ATTACKER = 2


def attacker(cls, i):
    miner = cls(i)
    miner.set_id(ATTACKER)
    return miner


def honest_block(chain, block_id, parent_id):
    chain.publish(Block(block_id, parent_id, HONEST))


def triples(action):
    return [(block.id, block.parent_id, block.miner_id) for block in action.blocks()]


def test_names_and_validation():
    assert NDeficit(1).name() == "1-Deficit"
    assert NDeficitEager(2).name() == "2-Deficit Eager"
    with pytest.raises(ValueError):
        NDeficit(-1)


def test_base_requires_decision_rules():
    with pytest.raises(TypeError):
        DeficitMinerBase(1)


def test_state_entries():
    assert A(2) == A(2)
    assert A(2) != H(2)
    assert repr([A(1), H(2)]) == "[A(1), H(2)]"


@pytest.mark.parametrize("cls", [NDeficit, NDeficitEager])
def test_tolerated_then_exceeded_deficit(chain, cls):
    miner = attacker(cls, 1)

    assert miner.get_action(chain, 1) == WAIT
    assert miner.state == [A(1)]

    honest_block(chain, 2, 0)
    assert miner.get_action(chain, None) == WAIT
    assert miner.state == [A(1), H(1)]

    honest_block(chain, 3, 2)
    assert miner.get_action(chain, None) == WAIT
    assert miner.state == []
    assert not miner.our_blocks
    assert not miner.honest_blocks
    assert not miner.seen
    assert miner.capitulation == 3

    # Nothing new published: the empty state waits
    assert miner.get_action(chain, None) == WAIT
    assert miner.state == []
    assert miner.capitulation == 3


def test_larger_tolerance_keeps_racing(chain):
    miner = attacker(NDeficit, 2)
    miner.get_action(chain, 1)
    honest_block(chain, 2, 0)
    miner.get_action(chain, None)
    honest_block(chain, 3, 2)

    assert miner.get_action(chain, None) == WAIT
    assert miner.state == [A(1), H(2)]
    assert miner.honest_blocks == [2, 3]


@pytest.mark.parametrize("cls", [NDeficit, NDeficitEager])
def test_overtaking_single_deficit(chain, cls):
    miner = attacker(cls, 1)
    miner.get_action(chain, 1)
    honest_block(chain, 2, 0)
    miner.get_action(chain, None)

    action = miner.get_action(chain, 3)
    assert isinstance(action, PublishSet)
    assert triples(action) == [(1, 0, ATTACKER), (3, 1, ATTACKER)]
    assert miner.capitulation == 3
    assert miner.state == []


@pytest.mark.parametrize("cls", [NDeficit, NDeficitEager])
def test_lead_of_two_answers_honest_block(chain, cls):
    miner = attacker(cls, 1)
    assert miner.get_action(chain, 1) == WAIT
    assert miner.get_action(chain, 2) == WAIT
    assert miner.state == [A(2)]

    honest_block(chain, 3, 0)
    action = miner.get_action(chain, None)
    assert triples(action) == [(1, 0, ATTACKER), (2, 1, ATTACKER)]

    for block in action.blocks():
        chain.publish(block)
    assert chain.longest_chain() == [2, 1, 0]


def test_long_lead_differs_between_variants(chain):
    patient = attacker(NDeficit, 1)
    eager = attacker(NDeficitEager, 1)
    for block_id in (1, 2, 3):
        patient.get_action(chain, block_id)
        eager.get_action(chain, block_id)
    honest_block(chain, 4, 0)

    assert patient.get_action(chain, None) == WAIT
    assert patient.state == [A(3), H(1)]
    assert triples(eager.get_action(chain, None)) == [
        (1, 0, ATTACKER), (2, 1, ATTACKER), (3, 2, ATTACKER)]


@pytest.mark.parametrize("cls", [NDeficit, NDeficitEager])
def test_extends_own_side_of_fork(build_chain, cls):
    chain = build_chain((1, 0, ATTACKER), (2, 0, HONEST))
    miner = attacker(cls, 1)

    action = miner.get_action(chain, 3)
    assert isinstance(action, Publish)
    assert triples(action) == [(3, 1, ATTACKER)]
    assert miner.capitulation == 3
    assert miner.state == []


def play_partial_capitulation(chain, miner):
    miner.get_action(chain, 1)
    honest_block(chain, 2, 0)
    miner.get_action(chain, None)
    honest_block(chain, 3, 2)
    miner.get_action(chain, None)
    assert miner.get_action(chain, 4) == WAIT
    assert miner.state == [A(1), H(2), A(1)]


def test_partial_capitulation(chain):
    miner = attacker(NDeficit, 2)
    play_partial_capitulation(chain, miner)

    honest_block(chain, 5, 3)
    assert miner.get_action(chain, None) == WAIT
    assert miner.state == [A(1), H(1)]
    assert miner.capitulation == 3
    assert list(miner.our_blocks) == [4]
    assert miner.honest_blocks == [5]
    assert miner.seen == {4, 5}

    # Racing resumes from the last block of the first honest run
    action = miner.get_action(chain, 6)
    assert triples(action) == [(4, 3, ATTACKER), (6, 4, ATTACKER)]
    for block in action.blocks():
        chain.publish(block)
    assert chain.longest_chain() == [6, 4, 3, 2, 0]


def test_catching_up_publishes_everything(chain):
    miner = attacker(NDeficit, 2)
    play_partial_capitulation(chain, miner)

    action = miner.get_action(chain, 5)
    assert triples(action) == [(1, 0, ATTACKER), (4, 1, ATTACKER), (5, 4, ATTACKER)]
    for block in action.blocks():
        chain.publish(block)
    assert chain.longest_chain() == [5, 4, 1, 0]


def test_catching_up_after_first_honest_run():
    miner = attacker(NDeficit, 2)
    miner.state = [A(1), H(2), A(2), H(1)]
    miner.our_blocks = deque([1, 4, 6])
    miner.honest_blocks = [2, 3, 7]

    action = miner.map_state()
    assert triples(action) == [(4, 3, ATTACKER), (6, 4, ATTACKER)]
    assert miner.capitulation == 6
    assert miner.state == []


def test_eager_catches_up_on_tie():
    miner = attacker(NDeficitEager, 2)
    miner.state = [A(1), H(2), A(2), H(2)]
    miner.our_blocks = deque([1, 4, 6])
    miner.honest_blocks = [2, 3, 7, 8]

    assert triples(miner.map_state()) == [(4, 3, ATTACKER), (6, 4, ATTACKER)]

    patient = attacker(NDeficit, 2)
    patient.state = [A(1), H(2), A(2), H(2)]
    patient.our_blocks = deque([1, 4, 6])
    patient.honest_blocks = [2, 3, 7, 8]
    assert patient.map_state() == WAIT


def test_illegal_states():
    miner = attacker(NDeficit, 1)
    miner.state = [H(1)]
    with pytest.raises(IllegalStateError):
        miner.map_state()

    miner.state = [A(1), H(3), A(2)]
    with pytest.raises(IllegalStateError):
        miner.map_state()

    miner.state = [A(1), H(1), A(1), H(2)]
    with pytest.raises(IllegalStateError):
        miner.map_state()


def test_empty_state_waits(chain):
    miner = attacker(NDeficitEager, 1)
    honest_block(chain, 1, 0)
    assert miner.get_action(chain, None) == WAIT
    assert miner.capitulation == 1
