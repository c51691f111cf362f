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
"""Allocation churn benchmark runner

Stress the allocator with concurrent allocation/free churn and report:
    - wall-clock time
    - RSS before/after (MB) and delta (MB)
    - runtime and allocator preload info

Run it once with the system allocator and once with an alternative allocator
in LD_PRELOAD to compare both:

    python -m churnbench

    LD_PRELOAD=/usr/lib/libjemalloc.so.2 \\
    MALLOC_CONF='background_thread:true,dirty_decay_ms:100,muzzy_decay_ms:100' \\
    BENCH_SLEEP_AFTER=2 \\
    python -m churnbench
"""

from concurrent.futures import ThreadPoolExecutor, wait
import json
import time
from typing import Callable, Mapping, NamedTuple, Optional

from churnbench import facter
from churnbench.churn import reclaim, run_worker
from churnbench.config import Configuration
from churnbench.memory import UNAVAILABLE, measure_resident_memory, to_mb
from churnbench.util import get_logger

logger = get_logger(__file__)


class ResultRecord(NamedTuple):
    """Result of one benchmark run"""
    python_version: str
    python_implementation: str
    python_platform: str
    threads: int
    iters_per_thread: int
    str_size: int
    keep_ratio: int
    rounds: int
    time_s: float
    rss_before_mb: float
    rss_after_mb: float
    rss_delta_mb: float
    rss_available: bool
    ld_preload: str
    malloc_conf: str
    jemalloc_mapped: bool

    def to_json(self) -> str:
        """Serialize as pretty printed JSON"""
        return json.dumps(self._asdict(), indent=2)


def warmup_iterations(iterations: int) -> int:
    """Iterations used by each warmup pass"""
    return max(iterations // 8, 1)


def run_benchmark(config: Configuration,
                  environ: Optional[Mapping[str, str]] = None,
                  measure: Callable[[], int] = measure_resident_memory
                  ) -> ResultRecord:
    """Run the complete benchmark described by config"""
    # Warmup: populate allocator and interpreter state a bit
    reclaim()
    for _ in range(2):
        run_worker(warmup_iterations(config.iterations), config.string_size,
                   config.keep_ratio, 1)

    before_rss = measure()
    start = time.monotonic()

    logger.info("Starting %d workers", config.threads)
    with ThreadPoolExecutor(max_workers=config.threads,
                            thread_name_prefix="churn-worker") as executor:
        futures = [
            executor.submit(run_worker, config.iterations, config.string_size,
                            config.keep_ratio, config.rounds)
            for _ in range(config.threads)
        ]
        wait(futures)

    # Re-raise the first exception of a failed worker
    for future in futures:
        future.result()

    # Collect and optionally give the allocator's background threads time to purge
    reclaim()
    if config.sleep_after > 0:
        logger.info("Sleeping %ds before measuring", config.sleep_after)
        time.sleep(config.sleep_after)

    end = time.monotonic()
    after_rss = measure()

    logger.debug("RSS before: %d, after: %d", before_rss, after_rss)

    runtime = facter.runtime_facts()
    allocator_env = facter.allocator_env(environ)

    return ResultRecord(
        python_version=runtime["python_version"],
        python_implementation=runtime["python_implementation"],
        python_platform=runtime["python_platform"],
        threads=config.threads,
        iters_per_thread=config.iterations,
        str_size=config.string_size,
        keep_ratio=config.keep_ratio,
        rounds=config.rounds,
        time_s=round(end - start, 3),
        rss_before_mb=to_mb(before_rss),
        rss_after_mb=to_mb(after_rss),
        rss_delta_mb=to_mb(after_rss - before_rss, keep_sentinel=False),
        rss_available=UNAVAILABLE not in (before_rss, after_rss),
        ld_preload=allocator_env["ld_preload"],
        malloc_conf=allocator_env["malloc_conf"],
        jemalloc_mapped=facter.jemalloc_mapped())
