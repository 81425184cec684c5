import logging

from mining_simulator.miner import Honest
from mining_simulator.ndeficit import NDeficitEager
from mining_simulator.results import Average, selfish_revenue
from mining_simulator.simulator import SimulationBuilder
from mining_simulator.tie_breaker import FavorMinerProb

GAMMA = 0.0

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    sim = (SimulationBuilder()
           .add_miner(Honest(tie_breaker=FavorMinerProb(2, GAMMA)))
           .add_miner(NDeficitEager(1))
           .rounds(100000)
           .miner_power(2, 0.40)
           .repeat_all(20)
           .build())

    print("🚀 Starting 1-Deficit Eager Simulation...")
    results = (sim.run_all(progress=True)
               .strategy_names()
               .revenue()
               .mining_power_func(2, "Ideal Selfish Miner Revenue", selfish_revenue(GAMMA))
               .average(Average.MEAN)
               .build())

    results.print()
