import logging

from mining_simulator.miner import Honest
from mining_simulator.simulator import SimulationBuilder

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    sim = (SimulationBuilder()
           .add_miner(Honest())
           .add_miner(Honest())
           .rounds(10000)
           .equal_power()
           .build())

    print("🚀 Starting Honest Miners Simulation...")
    results = sim.run_all(progress=True).revenue().build()
    print(results)
