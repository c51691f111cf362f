# Copyright 2026 The churnbench authors
#
# This file is part of churnbench.
#
# churnbench is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# churnbench is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with churnbench.  If not, see <http://www.gnu.org/licenses/>.
"""Start a churnbench run or an allocator comparison"""

import argparse
import os
import sys
from typing import List, Optional

import churnbench
from churnbench import facter
from churnbench.allocator import (SYSTEM_ALLOCATOR, collect_allocators,
                                  parse_key_value_pairs)
from churnbench.benchmark import run_benchmark
from churnbench.config import resolve_configuration
from churnbench.util import (get_logger, print_license_and_exit, print_status,
                             set_verbosity)

logger = get_logger(__file__)

COMPARED_DATAPOINTS = ["time_s", "rss_delta_mb", "rss_after_mb"]


def add_verbosity_arguments(parser: argparse.ArgumentParser,
                            subcommand=False):
    """Add -v and -q to parser

    Subcommands do not set defaults so that they do not overwrite options
    given before the subcommand."""
    verbose_default = argparse.SUPPRESS if subcommand else 0
    quiet_default = argparse.SUPPRESS if subcommand else False
    parser.add_argument("-v", "--verbose", help="more output", action='count',
                        default=verbose_default)
    parser.add_argument("-q", "--quiet", help="no status output",
                        action='store_true', default=quiet_default)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for all subcommands"""
    parser = argparse.ArgumentParser(
        description="allocation churn benchmark for memory allocators",
        epilog="The benchmark itself is configured through the BENCH_THREADS, "
        "BENCH_ITERS, BENCH_STR, BENCH_KEEP, BENCH_ROUNDS and "
        "BENCH_SLEEP_AFTER environment variables.")
    add_verbosity_arguments(parser)
    parser.add_argument("--license",
                        help="print license info and exit",
                        action='store_true')
    parser.add_argument("--version",
                        help="print version info and exit",
                        action='version',
                        version=f"churnbench {churnbench.__version__}")

    subparsers = parser.add_subparsers(dest="command")
    run_parser = subparsers.add_parser(
        "run", help="run the benchmark once and print its result")
    add_verbosity_arguments(run_parser, subcommand=True)

    compare_parser = subparsers.add_parser(
        "compare", help="run the benchmark below different allocators")
    add_verbosity_arguments(compare_parser, subcommand=True)
    compare_parser.add_argument(
        "-a",
        "--allocators",
        help="allocators to compare: system, an installed allocator name "
        "or name=/path/to/lib.so (default: all installed)",
        nargs='+')
    compare_parser.add_argument("--malloc-conf",
                                help="MALLOC_CONF for an allocator as name=conf",
                                action='append',
                                default=[])
    compare_parser.add_argument("-r",
                                "--runs",
                                help="how often the benchmark runs",
                                default=3,
                                type=int)
    compare_parser.add_argument("-rd",
                                "--resultdir",
                                help="directory where all results go",
                                type=str)
    compare_parser.add_argument("-s",
                                "--summarize",
                                help="plot the compared results",
                                action='store_true')
    compare_parser.add_argument("--timeout",
                                help="seconds after which a run is aborted",
                                type=float)

    return parser


def run(_args) -> int:
    """Run the benchmark once and print the result as JSON"""
    config = resolve_configuration()
    logger.info("Configuration: %s", config)

    result = run_benchmark(config)
    print(result.to_json())
    return 0


def compare_allocators(args) -> int:
    """Run the benchmark for each allocator and summarize the results"""
    try:
        malloc_confs = parse_key_value_pairs(args.malloc_conf)
    except ValueError as err:
        logger.error("%s", err)
        return 1

    # import here so that single runs do not load numpy and scipy
    from churnbench import compare  # pylint: disable=import-outside-toplevel

    allocators = collect_allocators(args.allocators, malloc_confs)
    if not allocators:
        logger.error("Abort because there are no allocators to compare")
        return 1

    print_status("Allocators:", *allocators.keys())

    facter.collect_facts()

    resdir = args.resultdir or os.path.join("results", facter.FACTS["hostname"],
                                            facter.FACTS["starttime"])
    os.makedirs(resdir, exist_ok=True)
    print_status("Writing results to:", resdir)

    results = compare.run_comparison(allocators,
                                     runs=args.runs,
                                     timeout=args.timeout)
    compare.save(results, os.path.join(resdir, "churn.json"))

    for datapoint in COMPARED_DATAPOINTS:
        print(compare.create_ascii_leaderboard(results, datapoint))

    if SYSTEM_ALLOCATOR in results["stats"] and args.runs > 1:
        for alloc in results["stats"]:
            if alloc == SYSTEM_ALLOCATOR:
                continue
            for datapoint in COMPARED_DATAPOINTS:
                ttest = compare.calc_ttest(results, SYSTEM_ALLOCATOR, alloc,
                                           datapoint)
                print(f"t-test {SYSTEM_ALLOCATOR} vs {alloc} for "
                      f"{datapoint}: statistic={ttest.statistic:.3f} "
                      f"p={ttest.pvalue:.3f}")

    if args.summarize:
        from churnbench import plots  # pylint: disable=import-outside-toplevel
        for path in plots.summarize(results, sumdir=resdir):
            print_status("Plotted", path)

    return 0


def main(argv: Optional[List[str]] = None):
    """Entry point of the churnbench command"""
    parser = create_parser()
    args = parser.parse_args(argv)
    if args.license:
        print_license_and_exit()

    set_verbosity(-1 if args.quiet else args.verbose)

    if args.command == "compare":
        sys.exit(compare_allocators(args))

    sys.exit(run(args))
