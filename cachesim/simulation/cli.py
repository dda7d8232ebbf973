"""Command line interface.

    cachesim -I 4096:1:2:R -D 1:4096:2:4:R:B:A -D 2:16384:4:8:L:T:N trace.txt

-I sets the instruction cache (blocks:words_per_block:associativity:
replacement), each -D one data cache level (level:blocks:words_per_block:
associativity:replacement:write:alloc). The trace file is the last
argument. See cachesim.core.config for the letter codes.
"""
from __future__ import annotations

import argparse
import logging
import sys

from cachesim.core.config import HierarchyConfig
from cachesim.core.errors import CacheSimError
from cachesim.data.stats_export import Exporter, export_chart
from cachesim.simulation.report import format_report
from cachesim.simulation.simulation import Simulation
from cachesim.utils.logging import get_logger


def build_parser():
    p = argparse.ArgumentParser(
        prog="cachesim",
        description="Multi-level cache hierarchy simulator",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("trace", help="Memory trace file (one '0x<addr> <R|W|I>' per line)")
    p.add_argument("-I", dest="icache", action="append", default=None, metavar="SPEC",
                   help="I-cache parameters blocks:words:assoc:repl, e.g. 4096:1:2:R")
    p.add_argument("-D", dest="dcache", action="append", default=None, metavar="SPEC",
                   help="D-cache level parameters level:blocks:words:assoc:repl:write:alloc, "
                        "e.g. 1:4096:2:4:R:B:A (repeat for levels 2 and 3)")
    p.add_argument("-c", "--config", type=str, default=None,
                   help="YAML file with the hierarchy; -I/-D override its levels")
    p.add_argument("--seed", type=int, default=None,
                   help="Seed of the random replacement generator (default 1000)")

    out = p.add_argument_group("Output")
    out.add_argument("-q", "--quiet", action="store_true",
                     help="Do not print the configuration before the statistics")
    out.add_argument("--csv", type=str, default=None, help="Also write statistics as CSV")
    out.add_argument("--json", type=str, default=None, help="Also write statistics as JSON")
    out.add_argument("--chart", type=str, default=None,
                     help="Also save a miss-rate chart (format from extension: pdf, png, svg)")
    out.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p


def run(args) -> int:
    logger = get_logger("cachesim", logging.DEBUG if args.verbose else logging.INFO)

    config = HierarchyConfig.from_args(args)
    sim = Simulation(config)
    logger.debug("simulating %s with %d data cache level(s)", args.trace, len(config.dcaches))
    try:
        stats = sim.run_file(args.trace)
    except OSError as e:
        raise CacheSimError(f"Could not open trace file: {e}") from e

    if not args.quiet:
        print(config.describe())
    print(format_report(stats), end="")

    if args.csv:
        Exporter.export_stats_csv(args.csv, stats)
        logger.info("statistics written to %s", args.csv)
    if args.json:
        Exporter.export_stats_json(args.json, stats)
        logger.info("statistics written to %s", args.json)
    if args.chart:
        export_chart(stats, args.chart)
        logger.info("chart written to %s", args.chart)
    return 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return run(args)
    except CacheSimError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
