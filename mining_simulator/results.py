from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from io import StringIO
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING
import logging

import matplotlib.pyplot as plt
import pandas as pd
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from mining_simulator.block import MinerId
    from mining_simulator.simulator import SimulationOutput

# Floating point precision of results data
FLOAT_PRECISION_DIGITS = 6
FLOAT_FORMAT = f"%.{FLOAT_PRECISION_DIGITS}f"


class Average(Enum):
    """Methods of reducing repeated simulations to a single row. Only columns which vary
    between runs are reduced; the others take the first run's value."""
    NONE = None
    MEAN = "mean"
    MEDIAN = "median"
    MAX = "max"
    MIN = "min"

    @property
    def title(self) -> str:
        return f"{self.name.capitalize()} Of"


class Format(Enum):
    CSV = "csv"
    PRETTY_PRINT = "pretty"

# ============================
# COLUMNS
# ============================

# Column kinds, in the order their columns appear in a results table
STRATEGY_NAME = 0
MINING_POWER = 1
REVENUE = 2
MINING_POWER_FUNCTION = 3
CONSTANT = 4
ROUNDS = 5
AVERAGE_OF = 6
BLOCKS_PUBLISHED = 7
LONGEST_CHAIN_LENGTH = 8


@dataclass(frozen=True)
class _Column:
    kind: int
    miner_id: int
    title: str
    value: Callable[['SimulationOutput'], Any]
    varies: bool = False

    @property
    def order(self) -> Tuple[int, int, str]:
        return (self.kind, self.miner_id, self.title)


def _strategy_name(miner_id):
    return lambda output: output.miners[miner_id - 1].name()


def _mining_power(miner_id):
    return lambda output: output.power_of(miner_id)


def _revenue(miner_id):
    return lambda output: output.revenue_of(miner_id)


def _power_function(miner_id, func):
    return lambda output: float(func(output.power_of(miner_id)))


def _blocks_published(output) -> float:
    return float(output.blockchain.num_blocks())


def _longest_chain_length(output) -> float:
    return float(len(output.longest_chain))


def _rounds(output) -> int:
    return output.rounds

# ============================
# RESULTS BUILDER
# ============================

class ResultsBuilder:
    """Selects the columns of a ``ResultsTable``. Produced by ``SimulationGroup.run_all``.

    Data is ordered the same way simulations are configured: power distributions in the
    order they were added, with repeated runs grouped together.
    """

    def __init__(self, data: List['SimulationOutput'], repeated: int = 1):
        self._data: List['SimulationOutput'] = data
        self._repeated: int = repeated
        self._columns: Dict[Tuple[int, int, str], _Column] = {}
        self._average: Average = Average.NONE
        self._format: Format = Format.PRETTY_PRINT

    def _num_miners(self) -> int:
        return len(self._data[0].miners) if self._data else 0

    def _add(self, column: _Column) -> 'ResultsBuilder':
        self._columns[column.order] = column
        return self

    def all(self) -> 'ResultsBuilder':
        """Includes blocks published, longest chain length, strategy names, revenue and
        rounds. ``average`` must still be called separately."""
        return (self.blocks_published()
                .longest_chain_length()
                .strategy_names()
                .revenue()
                .rounds())

    def average(self, average: Average) -> 'ResultsBuilder':
        self._average = average
        return self

    def blocks_published(self) -> 'ResultsBuilder':
        return self._add(_Column(BLOCKS_PUBLISHED, 0, "Blocks Published", _blocks_published, varies=True))

    def constant(self, title: str, value: float) -> 'ResultsBuilder':
        """Includes a column titled ``title`` holding ``value`` in every row."""
        return self._add(_Column(CONSTANT, 0, title, lambda _output: float(value)))

    def data(self) -> List['SimulationOutput']:
        """The raw simulation outputs, for custom analysis."""
        return self._data

    def longest_chain_length(self) -> 'ResultsBuilder':
        return self._add(_Column(LONGEST_CHAIN_LENGTH, 0, "Longest Chain Length", _longest_chain_length, varies=True))

    def mining_power_func(self, miner_id: 'MinerId', title: str,
                          func: Callable[[float], float]) -> 'ResultsBuilder':
        """Includes a column titled ``title`` holding ``func`` applied to the mining power
        of ``miner_id``, e.g. a closed form revenue to compare against."""
        return self._add(_Column(MINING_POWER_FUNCTION, miner_id, title, _power_function(miner_id, func)))

    def strategy_names(self) -> 'ResultsBuilder':
        for miner_id in range(1, self._num_miners() + 1):
            self._add(_Column(STRATEGY_NAME, miner_id, f"Miner {miner_id} Strategy", _strategy_name(miner_id)))
        return self

    def revenue(self) -> 'ResultsBuilder':
        for miner_id in range(1, self._num_miners() + 1):
            self._add(_Column(REVENUE, miner_id, f"Miner {miner_id} Revenue", _revenue(miner_id), varies=True))
        return self

    def rounds(self) -> 'ResultsBuilder':
        return self._add(_Column(ROUNDS, 0, "Simulated Rounds", _rounds))

    def format(self, fmt: Format) -> 'ResultsBuilder':
        self._format = fmt
        return self

    def build(self) -> 'ResultsTable':
        columns = dict(self._columns)
        for miner_id in range(1, self._num_miners() + 1):
            column = _Column(MINING_POWER, miner_id, f"Miner {miner_id} Power", _mining_power(miner_id))
            columns[column.order] = column
        ordered = [columns[key] for key in sorted(columns)]

        if self._average is Average.NONE:
            rows = [{column.title: column.value(output) for column in ordered}
                    for output in self._data]
            titles = [column.title for column in ordered]
        else:
            rows = [self._average_row(ordered, self._data[start:start + self._repeated])
                    for start in range(0, len(self._data), self._repeated)]
            titles = [column.title for column in ordered if column.kind < AVERAGE_OF]
            titles.append(self._average.title)
            titles.extend(column.title for column in ordered if column.kind > AVERAGE_OF)

        logging.debug(f"Built results table with {len(rows)} rows and {len(titles)} columns")
        return ResultsTable(pd.DataFrame(rows, columns=titles), self._format)

    def _average_row(self, columns: Sequence[_Column], outputs: List['SimulationOutput']) -> Dict[str, Any]:
        row: Dict[str, Any] = {self._average.title: len(outputs)}
        for column in columns:
            if column.varies:
                values = pd.Series([column.value(output) for output in outputs], dtype=float)
                row[column.title] = float(values.agg(self._average.value))
            else:
                row[column.title] = column.value(outputs[0])
        return row

# ============================
# RESULTS TABLE
# ============================

class ResultsTable:
    """Tabular results of a simulation group, backed by a pandas ``DataFrame``.

    ``str()`` renders the table according to its ``Format``.
    """

    def __init__(self, frame: pd.DataFrame, fmt: Format = Format.PRETTY_PRINT):
        self.frame: pd.DataFrame = frame
        self.format: Format = fmt

    @property
    def columns(self) -> List[str]:
        return list(self.frame.columns)

    def to_frame(self) -> pd.DataFrame:
        return self.frame.copy()

    def to_csv(self, path=None) -> Optional[str]:
        """Writes CSV to ``path``, or returns it as a string when no path is given."""
        return self.frame.to_csv(path, index=False, float_format=FLOAT_FORMAT, lineterminator="\n")

    def to_rich(self) -> Table:
        table = Table(show_lines=False)
        for title in self.frame.columns:
            table.add_column(str(title), justify="right")
        for row in self.frame.itertuples(index=False):
            table.add_row(*(_format_value(value) for value in row))
        return table

    def print(self, console: Optional[Console] = None) -> None:
        if self.format is Format.CSV:
            (console or Console()).print(self.to_csv(), markup=False, highlight=False)
        else:
            (console or Console()).print(self.to_rich())

    def plot(self, x: str, ys: Sequence[str], title: Optional[str] = None, out: Optional[str] = None):
        """Plots columns ``ys`` against column ``x``. Saves the figure when ``out`` is given."""
        fig, ax = plt.subplots(figsize=(7, 4))
        for y in ys:
            ax.plot(self.frame[x], self.frame[y], marker="o", label=y)
        ax.set_xlabel(x)
        if len(ys) == 1:
            ax.set_ylabel(ys[0])
        else:
            ax.legend()
        if title:
            ax.set_title(title)
        ax.grid(True, alpha=.3)
        if out:
            fig.savefig(out, bbox_inches="tight", dpi=150)
        return fig

    def __str__(self):
        if self.format is Format.CSV:
            return self.to_csv().rstrip("\n")
        buffer = StringIO()
        Console(file=buffer, width=max(80, 20 * len(self.frame.columns)), color_system=None).print(self.to_rich())
        return buffer.getvalue().rstrip("\n")

    def __repr__(self):
        return f"ResultsTable(rows={len(self.frame)}, columns={self.columns}, format={self.format.name})"


def _format_value(value) -> str:
    if isinstance(value, float):
        return f"{value:.{FLOAT_PRECISION_DIGITS}f}"
    return str(value)

# ============================
# REFERENCE REVENUE FUNCTIONS
# ============================

def selfish_revenue(gamma: float) -> Callable[[float], float]:
    """Expected revenue of a selfish miner with power ``a``, where ``gamma`` is the share of
    honest power mining on the selfish branch during a tie (Eyal and Sirer)."""
    def revenue(a: float) -> float:
        numerator = a * (1 - a) ** 2 * (4 * a + gamma * (1 - 2 * a)) - a ** 3
        denominator = 1 - a * (1 + a * (2 - a))
        return numerator / denominator
    return revenue


def nsm_revenue(a: float) -> float:
    """Closed form revenue of the Nothing-at-Stake selfish miner with power ``a``."""
    numerator = 4 * a ** 2 - 8 * a ** 3 - a ** 4 + 7 * a ** 5 - 3 * a ** 6
    denominator = 1 - a - 2 * a ** 2 + 3 * a ** 4 - 3 * a ** 5 + a ** 6
    return numerator / denominator
