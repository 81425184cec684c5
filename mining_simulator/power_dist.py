from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Iterable, List, Sequence
import math

from mining_simulator.errors import (
    BadDistributionSumError,
    BadPowerValueError,
    PowerDistributionError,
    SetMinerBadMinerIdError,
    SetMinerGenesisMinerError,
    SetMinerSingleMinerError,
    WrongNumMinersError,
    ZeroMinersGivenError,
)

# Allowable difference between a distribution sum and 1.0
EPSILON_POWER = 1e-6


def percent(values: Iterable[int]) -> List[float]:
    """Maps whole percentages to power values, e.g. ``percent(range(0, 51))``."""
    return [value / 100.0 for value in values]


def _check_power_value(value: float) -> None:
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise BadPowerValueError(value)

# ============================
# POWER DISTRIBUTION ABSTRACT CLASS
# ============================

class PowerDistribution(ABC):
    """Determines how mining power is distributed between miners during a simulation.

    Miner IDs are 1-based, in the order miners are added to a simulation.
    """

    def validate(self, num_miners: int) -> None:
        """Raises a ``PowerDistributionError`` unless this is a valid probability
        distribution over ``num_miners`` miners."""
        if num_miners <= 0:
            raise ZeroMinersGivenError()
        self._validate(num_miners)

    @abstractmethod
    def _validate(self, num_miners: int) -> None:
        pass

    @abstractmethod
    def _values(self, num_miners: int) -> List[float]:
        """Power values of miners 1..num_miners. Expects a validated distribution."""
        pass

    def is_valid(self, num_miners: int) -> bool:
        try:
            self.validate(num_miners)
        except PowerDistributionError:
            return False
        return True

    def values(self, num_miners: int) -> List[float]:
        """Returns the validated power value of every miner, ordered by miner ID."""
        self.validate(num_miners)
        return self._values(num_miners)

    def power_of(self, miner_id: int, num_miners: int) -> float:
        """Returns the validated power value of a single miner."""
        return self.values(num_miners)[miner_id - 1]

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and vars(self) == vars(other)

    def __hash__(self) -> int:
        return hash((type(self).__name__, repr(self)))

# ============================
# POWER DISTRIBUTION IMPLEMENTATIONS
# ============================

class Equal(PowerDistribution):
    """Weights each miner equally."""

    def _validate(self, num_miners: int) -> None:
        pass

    def _values(self, num_miners: int) -> List[float]:
        return [1.0 / num_miners] * num_miners

    def __repr__(self):
        return "Equal()"


class SetMiner(PowerDistribution):
    """Sets one miner's power to ``power``; the remaining power is split equally between
    all other miners."""

    def __init__(self, miner_id: int, power: float):
        self.miner_id = miner_id
        self.power = power

    def _validate(self, num_miners: int) -> None:
        if num_miners == 1:
            raise SetMinerSingleMinerError()
        if self.miner_id == 0:
            raise SetMinerGenesisMinerError()
        if self.miner_id < 0 or self.miner_id > num_miners:
            raise SetMinerBadMinerIdError(self.miner_id)
        _check_power_value(self.power)

    def _values(self, num_miners: int) -> List[float]:
        other = (1.0 - self.power) / (num_miners - 1)
        return [self.power if miner_id == self.miner_id else other
                for miner_id in range(1, num_miners + 1)]

    def __repr__(self):
        return f"SetMiner(miner_id={self.miner_id}, power={self.power})"


class SetValues(PowerDistribution):
    """Uses the given power values, one per miner, ordered by miner ID."""

    def __init__(self, values: Sequence[float]):
        self.dist: List[float] = list(values)

    def _validate(self, num_miners: int) -> None:
        if len(self.dist) != num_miners:
            raise WrongNumMinersError(len(self.dist), num_miners)
        for value in self.dist:
            _check_power_value(value)
        total = sum(self.dist)
        if abs(total - 1.0) > EPSILON_POWER:
            raise BadDistributionSumError(total)

    def _values(self, num_miners: int) -> List[float]:
        return list(self.dist)

    def __repr__(self):
        return f"SetValues({self.dist})"
