from __future__ import annotations
from typing import Any, List

# Every error passes its fields, not its message, to Exception so that
# ``type(e)(*e.args)`` rebuilds it (simpy process failures, pickling).

# ============================
# BASE ERROR
# ============================

class MiningSimulatorError(Exception):
    """Base class for every error raised by the mining simulator."""
    pass

# ============================
# CHAIN MUTATION ERRORS
# ============================

class BlockPublishingError(MiningSimulatorError):
    """A block could not be published to a blockchain."""
    pass


class DuplicateBlockIdError(BlockPublishingError):
    def __init__(self, block_id: int):
        super().__init__(block_id)
        self.block_id = block_id

    def __str__(self):
        return f"block ID {self.block_id} already exists on this chain"


class NoParentGivenError(BlockPublishingError):
    def __init__(self, block_id: int):
        super().__init__(block_id)
        self.block_id = block_id

    def __str__(self):
        return f"block {self.block_id} does not contain a parent block ID"


class ParentNotFoundError(BlockPublishingError):
    def __init__(self, child: int, parent: int):
        super().__init__(child, parent)
        self.child = child
        self.parent = parent

    def __str__(self):
        return f"block {self.child}'s parent {self.parent} was not found in this chain"


class InvalidParentError(BlockPublishingError):
    def __init__(self, child: int, parent: int):
        super().__init__(child, parent)
        self.child = child
        self.parent = parent

    def __str__(self):
        return f"block {self.child} cannot have block {self.parent} as its parent"

# ============================
# POWER DISTRIBUTION ERRORS
# ============================

class PowerDistributionError(MiningSimulatorError):
    """A mining power distribution is not valid for the given miner count."""
    pass


class BadDistributionSumError(PowerDistributionError):
    def __init__(self, total: float):
        super().__init__(total)
        self.total = total

    def __str__(self):
        return f"distribution values sum to {self.total}, not 1.0"


class BadPowerValueError(PowerDistributionError):
    def __init__(self, value: float):
        super().__init__(value)
        self.value = value

    def __str__(self):
        return f"power value {self.value} is not in the range 0.0..=1.0"


class SetMinerGenesisMinerError(PowerDistributionError):
    def __str__(self):
        return "cannot set power for the genesis miner (MinerId 0)"


class SetMinerBadMinerIdError(PowerDistributionError):
    def __init__(self, miner_id: int):
        super().__init__(miner_id)
        self.miner_id = miner_id

    def __str__(self):
        return f"cannot set power for invalid miner ID {self.miner_id}"


class SetMinerSingleMinerError(PowerDistributionError):
    def __str__(self):
        return "cannot set power for a single miner"


class WrongNumMinersError(PowerDistributionError):
    def __init__(self, size: int, num_miners: int):
        super().__init__(size, num_miners)
        self.size = size
        self.num_miners = num_miners

    def __str__(self):
        return f"power distribution size {self.size} does not match miner count {self.num_miners}"


class ZeroMinersGivenError(PowerDistributionError):
    def __str__(self):
        return "cannot create a distribution for zero miners"

# ============================
# SIMULATION BUILD ERRORS
# ============================

class SimulationBuildError(MiningSimulatorError):
    """The simulation configuration was rejected before any round ran."""
    pass


class NoMinersGivenError(SimulationBuildError):
    def __str__(self):
        return "no miners were added"


class ZeroRoundsError(SimulationBuildError):
    def __str__(self):
        return "number of simulation rounds must be greater than 0"


class ZeroRepeatsError(SimulationBuildError):
    def __str__(self):
        return "cannot repeat simulations 0 times"


class InvalidPowerDistributionError(SimulationBuildError):
    def __init__(self, cause: PowerDistributionError):
        super().__init__(cause)
        self.cause = cause

    def __str__(self):
        return f"invalid mining power distribution: {self.cause}"

# ============================
# RUNTIME / STRATEGY ERRORS
# ============================

class SimulationError(MiningSimulatorError):
    """A simulation run was abandoned."""
    pass


class MinerContractError(SimulationError):
    """A miner returned an action that breaks the miner contract."""

    def __init__(self, miner_id: int, block_miner_id: int, block_id: int):
        super().__init__(miner_id, block_miner_id, block_id)
        self.miner_id = miner_id
        self.block_miner_id = block_miner_id
        self.block_id = block_id

    def __str__(self):
        return f"Miner {self.miner_id} published block {self.block_id} with wrong MinerId {self.block_miner_id}"


class MinerIdNotSetError(MiningSimulatorError, RuntimeError):
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self):
        return f"Miner ID of {self.name} has not been set"


class IllegalStateError(MiningSimulatorError, RuntimeError):
    """A strategy reached a state its decision table does not cover."""

    def __init__(self, strategy: str, state: List[Any]):
        super().__init__(strategy, list(state))
        self.strategy = strategy
        self.state = list(state)

    def __str__(self):
        return f"illegal {self.strategy} state: {self.state}"
