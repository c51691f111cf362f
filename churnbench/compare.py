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
"""Compare allocators by running the churn benchmark below each of them

Every run of every allocator executes the benchmark in a fresh interpreter
with the allocator's LD_PRELOAD and MALLOC_CONF. The JSON output of each
run is stored as one measurement."""

import copy
import json
import subprocess
import sys
import traceback
from typing import Any, Dict, List, Mapping, Optional

import numpy as np
import scipy.stats

from churnbench import facter
from churnbench.allocator import AllocatorCollection, allocator_environ
from churnbench.util import get_logger, print_status, run_cmd

logger = get_logger(__file__)

Measurement = Dict[str, Any]
Results = Dict[str, Any]

BENCHMARK_CMD = [sys.executable, "-m", "churnbench", "run"]

STATISTICS = [
    "min", "max", "mean", "median", "std", "lower_quartile", "upper_quartile"
]


def parse_output(stdout: str) -> Measurement:
    """Parse the JSON document printed by a benchmark run"""
    result = json.loads(stdout)
    if not isinstance(result, dict):
        raise ValueError(f"Unexpected benchmark output: {stdout!r}")
    return result


def run_once(alloc_name: str,
             alloc: Mapping[str, Any],
             environ: Optional[Mapping[str, str]] = None,
             cmd: Optional[List[str]] = None,
             timeout: Optional[float] = None) -> Measurement:
    """Run the benchmark once below alloc and return its measurement

    An empty measurement is returned if the run failed."""
    argv = cmd or BENCHMARK_CMD
    env = allocator_environ(alloc, environ)

    try:
        res = run_cmd(argv, capture=True, env=env, timeout=timeout,
                      check=False)
    except subprocess.TimeoutExpired:
        logger.error("%s timed out for %s", argv, alloc_name)
        return {}

    if res.returncode != 0 or "ERROR: ld.so" in (res.stderr or ""):
        logger.debug("Stdout:\n %s", res.stdout)
        logger.debug("Stderr:\n %s", res.stderr)
        if res.returncode != 0:
            logger.error("%s failed with exit code %s for %s", argv,
                         res.returncode, alloc_name)
        else:
            logger.error("Preloading of %s failed for %s",
                         alloc.get("LD_PRELOAD"), alloc_name)
        return {}

    try:
        return parse_output(res.stdout)
    except ValueError:
        logger.debug("%s", traceback.format_exc())
        logger.error("Could not parse output of %s for %s", argv, alloc_name)
        return {}


def run_comparison(allocators: AllocatorCollection,
                   runs=3,
                   environ: Optional[Mapping[str, str]] = None,
                   cmd: Optional[List[str]] = None,
                   timeout: Optional[float] = None) -> Results:
    """Run the benchmark runs times for each allocator"""
    results: Results = {
        "allocators": copy.deepcopy(allocators),
        "facts": dict(facter.FACTS),
        "measurements": {alloc: [] for alloc in allocators},
    }
    results["facts"]["runs"] = runs

    # save one valid result to expand invalid results
    valid_result: Measurement = {}

    for run in range(1, runs + 1):
        print_status(run, ". run", sep='')

        for alloc_name, alloc in allocators.items():
            logger.info("Running %s", alloc_name)
            result = run_once(alloc_name, alloc, environ=environ, cmd=cmd,
                              timeout=timeout)
            logger.debug("Resulting in: %s", result)

            if result and not valid_result:
                valid_result = result

            results["measurements"][alloc_name].append(result)

    if valid_result:
        expand_invalid_results(results, valid_result)

    calc_desc_statistics(results)
    return results


def expand_invalid_results(results: Results, valid_result: Measurement):
    """Expand each empty measurement with the fields from a valid one and NaN"""
    for measurements in results["measurements"].values():
        for i, measure in enumerate(measurements):
            if not measure:
                measurements[i] = {k: np.nan for k in valid_result}


def calc_desc_statistics(results: Results):
    """Calculate descriptive statistics for each numeric datapoint"""
    results["stats"] = {}
    for alloc, measurements in results["measurements"].items():
        # Skip allocators without measurements
        if not measurements or not measurements[0]:
            continue

        stats: Dict[str, Dict[str, float]] = {s: {} for s in STATISTICS}
        for key, value in measurements[0].items():
            if isinstance(value, str):
                continue
            try:
                data = [float(m[key]) for m in measurements]
            except (KeyError, TypeError, ValueError):
                continue

            stats["min"][key] = float(np.min(data))
            stats["max"][key] = float(np.max(data))
            stats["mean"][key] = float(np.mean(data))
            stats["median"][key] = float(np.median(data))
            stats["std"][key] = float(np.std(data, ddof=1)) if len(data) > 1 else 0.0
            lower, upper = np.percentile(data, [25, 75])
            stats["lower_quartile"][key] = float(lower)
            stats["upper_quartile"][key] = float(upper)

        results["stats"][alloc] = stats


def calc_ttest(results: Results, alloc1: str, alloc2: str, datapoint: str):
    """Calculate the independent t-test of datapoint between two allocators"""
    data1 = [float(m[datapoint]) for m in results["measurements"][alloc1]]
    data2 = [float(m[datapoint]) for m in results["measurements"][alloc2]]

    return scipy.stats.ttest_ind(data1, data2)


def get_ordered_results(results: Results, datapoint: str, order='<'):
    """Return (mean, [allocators]) pairs ordered by the mean of datapoint"""
    data: Dict[float, List[str]] = {}
    for alloc, stats in results["stats"].items():
        value = stats["mean"].get(datapoint, np.nan)
        data.setdefault(value, []).append(alloc)

    return sorted(data.items(), reverse=order == ">")


def create_ascii_leaderboard(results: Results, datapoint: str, order='<') -> str:
    """Return allocators ranked by their mean datapoint as text"""
    res = f'leaderboard for "{datapoint}":\n'
    for i, (val, allocators) in enumerate(
            get_ordered_results(results, datapoint, order=order)):
        res += f'{i + 1}. {",".join(allocators)}: {val}\n'
    return res


def save(results: Results, path: str):
    """Save measurements and statistics to a json file"""
    logger.info("Saving results to: %s", path)
    with open(path, "w") as save_file:
        json.dump(results, save_file, indent=2)


def load(path: str) -> Results:
    """Load results saved by save"""
    logger.info("Loading results from: %s", path)
    with open(path, "r") as load_file:
        results = json.load(load_file)

    # add eventual missing statistics
    if "stats" not in results:
        calc_desc_statistics(results)
    return results
