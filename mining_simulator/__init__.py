from mining_simulator.block import Block, BlockId, MinerId, Transaction
from mining_simulator.blockchain import Blockchain, BlockData
from mining_simulator.blueprint import ActionBase, MinerBase, TieBreakerBase
from mining_simulator.errors import (
    BadDistributionSumError,
    BadPowerValueError,
    BlockPublishingError,
    DuplicateBlockIdError,
    IllegalStateError,
    InvalidParentError,
    InvalidPowerDistributionError,
    MinerContractError,
    MinerIdNotSetError,
    MiningSimulatorError,
    NoMinersGivenError,
    NoParentGivenError,
    ParentNotFoundError,
    PowerDistributionError,
    SetMinerBadMinerIdError,
    SetMinerGenesisMinerError,
    SetMinerSingleMinerError,
    SimulationBuildError,
    SimulationError,
    WrongNumMinersError,
    ZeroMinersGivenError,
    ZeroRepeatsError,
    ZeroRoundsError,
)
from mining_simulator.miner import WAIT, Honest, HonestForking, Noise, Noop, Publish, PublishSet, Wait
from mining_simulator.ndeficit import NDeficit, NDeficitEager
from mining_simulator.power_dist import Equal, PowerDistribution, SetMiner, SetValues, percent
from mining_simulator.results import Average, Format, ResultsBuilder, ResultsTable, nsm_revenue, selfish_revenue
from mining_simulator.selfish import Selfish
from mining_simulator.simulator import Simulation, SimulationBuilder, SimulationGroup, SimulationOutput
from mining_simulator.tie_breaker import (
    EarliestPublished,
    FavorMiner,
    FavorMinerFork,
    FavorMinerProb,
    RandomTip,
)

__version__ = "0.1.0"
