from io import StringIO

import matplotlib.pyplot as plt
import pandas as pd
import pytest
from rich.console import Console

from mining_simulator.miner import Honest
from mining_simulator.results import Average, Format, ResultsTable, nsm_revenue, selfish_revenue
from mining_simulator.simulator import SimulationBuilder


@pytest.fixture
def dominant_results():
    """Two repeats of ten rounds in which miner 1 mines every block."""
    group = (SimulationBuilder()
             .add_miner(Honest())
             .add_miner(Honest())
             .power_values([1.0, 0.0])
             .rounds(10)
             .repeat_all(2)
             .build())
    return group.run_all()


@pytest.fixture
def random_results():
    group = (SimulationBuilder()
             .add_miner(Honest())
             .add_miner(Honest())
             .rounds(50)
             .repeat_all(5)
             .seed(99)
             .build())
    return group.run_all()


def test_all_columns_in_order(dominant_results):
    table = dominant_results.all().build()

    assert table.columns == [
        "Miner 1 Strategy", "Miner 2 Strategy",
        "Miner 1 Power", "Miner 2 Power",
        "Miner 1 Revenue", "Miner 2 Revenue",
        "Simulated Rounds", "Blocks Published", "Longest Chain Length",
    ]
    assert len(table.frame) == 2


def test_mining_power_always_present(dominant_results):
    table = dominant_results.build()
    assert table.columns == ["Miner 1 Power", "Miner 2 Power"]


def test_averaged_columns(dominant_results):
    table = (dominant_results
             .average(Average.MEAN)
             .all()
             .constant("Gamma", 0.5)
             .mining_power_func(1, "Doubled", lambda p: 2 * p)
             .build())

    assert table.columns == [
        "Miner 1 Strategy", "Miner 2 Strategy",
        "Miner 1 Power", "Miner 2 Power",
        "Miner 1 Revenue", "Miner 2 Revenue",
        "Doubled", "Gamma",
        "Simulated Rounds", "Mean Of", "Blocks Published", "Longest Chain Length",
    ]
    row = table.frame.iloc[0]
    assert len(table.frame) == 1
    assert row["Mean Of"] == 2
    assert row["Miner 1 Strategy"] == "Honest"
    assert row["Miner 1 Revenue"] == pytest.approx(10 / 11)
    assert row["Doubled"] == pytest.approx(2.0)
    assert row["Gamma"] == pytest.approx(0.5)
    assert row["Longest Chain Length"] == pytest.approx(11.0)


@pytest.mark.parametrize("average, reduce", [
    (Average.MEAN, lambda values: sum(values) / len(values)),
    (Average.MEDIAN, lambda values: sorted(values)[len(values) // 2]),
    (Average.MAX, max),
    (Average.MIN, min),
])
def test_average_methods(random_results, average, reduce):
    revenues = [output.revenue_of(1) for output in random_results.data()]
    table = random_results.average(average).revenue().build()

    assert table.columns[-1] == average.title
    assert table.frame["Miner 1 Revenue"].iloc[0] == pytest.approx(reduce(revenues))


def test_average_titles():
    assert Average.MEAN.title == "Mean Of"
    assert Average.MEDIAN.title == "Median Of"
    assert Average.MAX.title == "Max Of"
    assert Average.MIN.title == "Min Of"


def test_csv_output(dominant_results):
    table = dominant_results.revenue().rounds().format(Format.CSV).build()
    lines = str(table).splitlines()

    assert lines[0] == "Miner 1 Power,Miner 2 Power,Miner 1 Revenue,Miner 2 Revenue,Simulated Rounds"
    assert lines[1] == "1.000000,0.000000,0.909091,0.000000,10"
    assert len(lines) == 3


def test_csv_file(dominant_results, tmp_path):
    table = dominant_results.all().build()
    path = tmp_path / "results.csv"
    table.to_csv(path)

    frame = pd.read_csv(path)
    assert list(frame.columns) == table.columns
    assert frame["Simulated Rounds"].tolist() == [10, 10]


def test_pretty_output(dominant_results):
    table = dominant_results.revenue().build()
    text = str(table)

    assert "Revenue" in text
    assert "0.909091" in text

    buffer = StringIO()
    table.print(Console(file=buffer, width=120, color_system=None))
    assert "0.909091" in buffer.getvalue()


def test_to_frame_is_a_copy(dominant_results):
    table = dominant_results.revenue().build()
    frame = table.to_frame()
    frame["Miner 1 Revenue"] = 0.0
    assert table.frame["Miner 1 Revenue"].iloc[0] == pytest.approx(10 / 11)


def test_plot(random_results, tmp_path):
    table = (random_results
             .average(Average.MEAN)
             .revenue()
             .mining_power_func(1, "Honest Revenue", lambda p: p)
             .build())
    out = tmp_path / "revenue.png"
    fig = table.plot("Miner 1 Power", ["Miner 1 Revenue", "Honest Revenue"], title="Revenue", out=str(out))

    assert len(fig.axes[0].lines) == 2
    assert out.exists()
    plt.close(fig)


def test_empty_results_table():
    table = ResultsTable(pd.DataFrame(columns=["A"]), Format.CSV)
    assert str(table) == "A"


def test_selfish_revenue():
    assert selfish_revenue(0.0)(0.35) == pytest.approx(0.3665, abs=1e-4)
    assert selfish_revenue(0.5)(0.0) == 0.0
    assert selfish_revenue(0.0)(0.5) == pytest.approx(1.0)
    assert selfish_revenue(1.0)(0.5) == pytest.approx(1.0)
    # Selfish mining does not pay below a third of the power with gamma = 0
    assert selfish_revenue(0.0)(0.25) < 0.25


def test_nsm_revenue():
    assert nsm_revenue(0.0) == 0.0
    assert 0.0 < nsm_revenue(0.3) < 1.0
