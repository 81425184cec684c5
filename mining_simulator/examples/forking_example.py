import logging

from mining_simulator.miner import HonestForking
from mining_simulator.power_dist import percent
from mining_simulator.results import Average, Format, selfish_revenue
from mining_simulator.selfish import Selfish
from mining_simulator.simulator import SimulationBuilder

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    sim = (SimulationBuilder()
           .add_miner(HonestForking(0.25))
           .add_miner(Selfish())
           .miner_power_iter(2, percent(range(0, 51, 5)))
           .rounds(10000)
           .repeat_all(50)
           .seed(2024)
           .build())

    print("🚀 Selfish mining against forking honest miners...")
    results = (sim.run_all(progress=True)
               .average(Average.MEAN)
               .all()
               .mining_power_func(2, "Ideal Revenue", selfish_revenue(0.0))
               .mining_power_func(2, "Honest Revenue", lambda p: p)
               .format(Format.CSV)
               .build())

    print(results)
    results.to_csv("forking_results.csv")
    print("💾 Saved results to forking_results.csv")
