import logging

from mining_simulator.miner import Honest
from mining_simulator.ndeficit import NDeficit
from mining_simulator.power_dist import percent
from mining_simulator.results import Average, Format, selfish_revenue
from mining_simulator.simulator import SimulationBuilder
from mining_simulator.tie_breaker import FavorMinerProb

GAMMA = 0.5

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    sim = (SimulationBuilder()
           .add_miner(Honest(tie_breaker=FavorMinerProb(2, GAMMA)))
           .add_miner(NDeficit(1))
           .miner_power_iter(2, percent(range(0, 51, 5)))
           .rounds(10000)
           .repeat_all(50)
           .workers(4)
           .build())

    print("🚀 Sweeping 1-Deficit miner power...")
    results = (sim.run_all(progress=True)
               .average(Average.MEAN)
               .all()
               .mining_power_func(2, "Ideal Revenue", selfish_revenue(GAMMA))
               .mining_power_func(2, "Honest Revenue", lambda p: p)
               .format(Format.CSV)
               .build())

    print(results)
