from __future__ import annotations
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from itertools import accumulate
from typing import Dict, FrozenSet, Iterable, List, Optional
import logging
import random

import simpy
from tqdm import tqdm

from mining_simulator.block import BlockId, MinerId
from mining_simulator.blockchain import Blockchain
from mining_simulator.blueprint import MinerBase
from mining_simulator.errors import (
    InvalidPowerDistributionError,
    MinerContractError,
    NoMinersGivenError,
    PowerDistributionError,
    ZeroRepeatsError,
    ZeroRoundsError,
)
from mining_simulator.power_dist import Equal, PowerDistribution, SetMiner, SetValues
from mining_simulator.results import ResultsBuilder

# ============================
# SIMULATION OUTPUT
# ============================

@dataclass
class SimulationOutput:
    """Data produced by a single simulation run."""
    blockchain: Blockchain
    blocks_by_miner: Dict[MinerId, List[BlockId]]
    blocks_published: int
    longest_chain: FrozenSet[BlockId]
    miners: List[MinerBase]
    power_dist: PowerDistribution
    rounds: int
    seed: Optional[int] = None

    def num_miners(self) -> int:
        return len(self.miners)

    def power_of(self, miner_id: MinerId) -> float:
        return self.power_dist.power_of(miner_id, len(self.miners))

    def revenue_of(self, miner_id: MinerId) -> float:
        """Fraction of the longest chain authored by ``miner_id``."""
        blocks = self.blocks_by_miner.get(miner_id, [])
        on_chain = sum(1 for block_id in blocks if block_id in self.longest_chain)
        return on_chain / len(self.longest_chain)

# ============================
# SIMULATION (ROUND DRIVER)
# ============================

@dataclass
class Simulation:
    """A single run of the mining game.

    Every round one proposer is drawn according to the power distribution, then every
    miner is asked for its action in registration order. Blocks are published as soon as
    a miner returns them, so later miners observe them in the same round.
    """
    blockchain: Blockchain
    miners: List[MinerBase]
    power_dist: PowerDistribution
    rounds: int
    seed: Optional[int] = None
    blocks_by_miner: Dict[MinerId, List[BlockId]] = field(default_factory=dict)

    def run(self) -> SimulationOutput:
        """Executes all rounds. Chain publishing errors abandon the run and propagate."""
        rng = random.Random(self.seed)
        for miner in self.miners:
            miner.seed(rng.getrandbits(64))

        power_values = self.power_dist.values(len(self.miners))
        miner_ids = [miner.miner_id for miner in self.miners]
        cum_weights = list(accumulate(power_values))

        env = simpy.Environment()
        env.process(self._round_loop(env, rng, miner_ids, cum_weights))
        env.run()

        logging.info(f"Finished {self.rounds} rounds: {self.blockchain}")
        return SimulationOutput(
            blockchain=self.blockchain,
            blocks_by_miner=self.blocks_by_miner,
            blocks_published=self.blockchain.num_blocks(),
            longest_chain=frozenset(self.blockchain.longest_chain()),
            miners=self.miners,
            power_dist=self.power_dist,
            rounds=self.rounds,
            seed=self.seed,
        )

    def _round_loop(self, env: simpy.Environment, rng: random.Random,
                    miner_ids: List[MinerId], cum_weights: List[float]):
        """Simpy process advancing the clock by one time unit per round."""
        while env.now < self.rounds:
            yield env.timeout(1)
            round_num = int(env.now)
            proposer = rng.choices(miner_ids, cum_weights=cum_weights)[0]
            self.play_round(round_num, proposer)

    def play_round(self, round_num: int, proposer: MinerId) -> None:
        """Polls every miner once; the proposer receives block ID ``round_num``."""
        for miner in self.miners:
            miner_id = miner.miner_id
            block_mined = round_num if miner_id == proposer else None
            action = miner.get_action(self.blockchain, block_mined)

            for block in action.blocks():
                if block.miner_id != miner_id:
                    raise MinerContractError(miner_id, block.miner_id, block.id)
                self.blockchain.publish(block)
                self.blocks_by_miner.setdefault(miner_id, []).append(block.id)


def _run_simulation(sim: Simulation) -> SimulationOutput:
    return sim.run()

# ============================
# SIMULATION GROUP
# ============================

class SimulationGroup:
    """A group of simulations sharing the same miners: one per power distribution,
    each repeated ``repeat_all`` times."""

    def __init__(self,
                 miners: List[MinerBase],
                 power_dists: List[PowerDistribution],
                 rounds: int = 1,
                 repeat_all: int = 1,
                 blockchain: Optional[Blockchain] = None,
                 seed: Optional[int] = None,
                 workers: int = 1):
        self.miners: List[MinerBase] = miners
        self.power_dists: List[PowerDistribution] = power_dists
        self.rounds: int = rounds
        self.repeat_all: int = repeat_all
        self.blockchain: Blockchain = blockchain if blockchain is not None else Blockchain()
        self.seed: Optional[int] = seed
        self.workers: int = workers

    @staticmethod
    def builder() -> 'SimulationBuilder':
        return SimulationBuilder()

    def simulations(self) -> List[Simulation]:
        """Creates every run, each with a private clone of the chain and the miners."""
        master = random.Random(self.seed)
        sims = []
        for power_dist in self.power_dists:
            for _ in range(self.repeat_all):
                sims.append(Simulation(
                    blockchain=self.blockchain.clone(),
                    miners=[miner.clone() for miner in self.miners],
                    power_dist=power_dist,
                    rounds=self.rounds,
                    seed=master.getrandbits(64),
                ))
        return sims

    def run_all(self, progress: bool = False) -> ResultsBuilder:
        """Runs all configured simulations. The first failing run aborts the group."""
        sims = self.simulations()
        logging.info(f"Running {len(sims)} simulations of {self.rounds} rounds with {len(self.miners)} miners")

        with tqdm(total=len(sims), desc="⏳ Simulations", unit="sim", ascii=" ▖▘▝▗▚▞█",
                  disable=not progress) as pbar:
            if self.workers > 1:
                with ProcessPoolExecutor(max_workers=self.workers) as executor:
                    outputs = []
                    for output in executor.map(_run_simulation, sims):
                        outputs.append(output)
                        pbar.update(1)
            else:
                outputs = []
                for sim in sims:
                    outputs.append(sim.run())
                    pbar.update(1)

        return ResultsBuilder(outputs, self.repeat_all)

# ============================
# SIMULATION BUILDER
# ============================

class SimulationBuilder:
    """Fluent configuration of a SimulationGroup.

    Defaults: 1 round, 1 repetition, equal mining power, unseeded randomness, 1 worker.
    """

    def __init__(self):
        self._miners: List[MinerBase] = []
        self._power_dists: List[PowerDistribution] = []
        self._rounds: Optional[int] = None
        self._repeat_all: Optional[int] = None
        self._blockchain: Optional[Blockchain] = None
        self._seed: Optional[int] = None
        self._workers: int = 1

    def add_miner(self, miner: MinerBase) -> 'SimulationBuilder':
        """Adds a miner. Miner IDs are assigned from 1 in the order miners are added."""
        miner_id = len(self._miners) + 1
        miner.set_id(miner_id)
        if miner.miner_id != miner_id:
            raise ValueError(f"Miner {miner.name()} does not report its assigned MinerId {miner_id}")
        self._miners.append(miner)
        return self

    def rounds(self, rounds: int) -> 'SimulationBuilder':
        """Sets the number of rounds each simulation lasts for (default 1)."""
        self._rounds = rounds
        return self

    def repeat_all(self, num: int) -> 'SimulationBuilder':
        """Runs each configured simulation ``num`` times."""
        self._repeat_all = num
        return self

    def blockchain(self, chain: Blockchain) -> 'SimulationBuilder':
        """Sets the initial blockchain state each simulation starts from."""
        self._blockchain = chain
        return self

    def power_dist(self, dist: PowerDistribution) -> 'SimulationBuilder':
        self._power_dists.append(dist)
        return self

    def power_values(self, values: Iterable[float]) -> 'SimulationBuilder':
        self._power_dists.append(SetValues(list(values)))
        return self

    def equal_power(self) -> 'SimulationBuilder':
        self._power_dists.append(Equal())
        return self

    def miner_power(self, miner_id: MinerId, value: float) -> 'SimulationBuilder':
        """Gives ``miner_id`` the power ``value`` and splits the rest equally."""
        self._power_dists.append(SetMiner(miner_id, value))
        return self

    def miner_power_iter(self, miner_id: MinerId, values: Iterable[float]) -> 'SimulationBuilder':
        for value in values:
            self.miner_power(miner_id, value)
        return self

    def seed(self, seed: int) -> 'SimulationBuilder':
        """Makes every run of the group reproducible."""
        self._seed = seed
        return self

    def workers(self, workers: int) -> 'SimulationBuilder':
        """Runs simulations in a pool of ``workers`` processes when greater than 1."""
        if workers < 1:
            raise ValueError(f"worker count must be at least 1, got {workers}")
        self._workers = workers
        return self

    def build(self) -> SimulationGroup:
        """Validates the configuration. Raises a ``SimulationBuildError`` subclass."""
        if not self._miners:
            raise NoMinersGivenError()

        rounds = 1 if self._rounds is None else self._rounds
        if rounds <= 0:
            raise ZeroRoundsError()

        repeat_all = 1 if self._repeat_all is None else self._repeat_all
        if repeat_all <= 0:
            raise ZeroRepeatsError()

        power_dists = list(self._power_dists) or [Equal()]
        for dist in power_dists:
            try:
                dist.validate(len(self._miners))
            except PowerDistributionError as e:
                logging.warning(f"Rejected power distribution {dist}: {e}")
                raise InvalidPowerDistributionError(e) from e

        return SimulationGroup(
            miners=list(self._miners),
            power_dists=power_dists,
            rounds=rounds,
            repeat_all=repeat_all,
            blockchain=self._blockchain,
            seed=self._seed,
            workers=self._workers,
        )
