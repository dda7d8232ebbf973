"""Entry point for the cache hierarchy simulator.

Usage:
    python run.py -I 4096:1:2:R -D 1:4096:2:4:R:B:A trace.txt
    python run.py --demo     # runs a quick headless validation of core logic
"""
import sys

from cachesim.core.config import HierarchyConfig
from cachesim.core.hierarchy import CacheHierarchy
from cachesim.core.simulator import CacheSimulator
from cachesim.data.trace import AccessKind
from cachesim.simulation.report import format_report


def demo():
    # Simple scenario to validate hierarchy logic
    config = HierarchyConfig.from_specs(["4:1:2:L"], ["1:8:1:2:L:B:A", "2:32:2:4:L:T:A"])
    sim = CacheSimulator(CacheHierarchy(config))
    # small sequence with repetitions to force hits/misses
    seq = [0x0, 0x4, 0x8, 0xC, 0x0, 0x20, 0x40, 0x0, 0x60, 0x4]
    events = [(a, AccessKind.INSTRUCTION_FETCH) for a in seq[:5]]
    events += [(a, AccessKind.WRITE if i % 3 == 0 else AccessKind.READ) for i, a in enumerate(seq)]
    sim.load_sequence(events)
    sim.run_all()
    print(format_report(sim.hierarchy.stats), end="")


def main():
    if '--demo' in sys.argv:
        demo()
        return 0
    from cachesim.simulation.cli import main as cli_main
    return cli_main()


if __name__ == '__main__':
    sys.exit(main())
