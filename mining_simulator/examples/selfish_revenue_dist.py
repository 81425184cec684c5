import logging

from mining_simulator.miner import Honest
from mining_simulator.power_dist import percent
from mining_simulator.results import Average, Format, selfish_revenue
from mining_simulator.selfish import Selfish
from mining_simulator.simulator import SimulationBuilder

GAMMA = 0.0

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    sim = (SimulationBuilder()
           .add_miner(Honest())
           .add_miner(Selfish())
           .miner_power_iter(2, percent(range(0, 51, 5)))
           .rounds(10000)
           .repeat_all(50)
           .workers(4)
           .build())

    print("🚀 Sweeping selfish miner power...")
    results = (sim.run_all(progress=True)
               .average(Average.MEAN)
               .all()
               .mining_power_func(2, "Ideal Revenue", selfish_revenue(GAMMA))
               .mining_power_func(2, "Honest Revenue", lambda p: p)
               .format(Format.CSV)
               .build())

    print(results)
    results.plot("Miner 2 Power", ["Miner 2 Revenue", "Ideal Revenue", "Honest Revenue"],
                 title="Selfish mining revenue", out="selfish_revenue.png")
    print("📊 Saved plot to selfish_revenue.png")
