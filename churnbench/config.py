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
"""Benchmark configuration read from the environment

The churn benchmark is configured only through environment variables so that
it can be started unchanged below different LD_PRELOAD settings:

  BENCH_THREADS       -> number of worker threads (default: 4)
  BENCH_ITERS         -> allocations per thread per round (default: 200000)
  BENCH_STR           -> bytes per allocation (default: 1024)
  BENCH_KEEP          -> keep every Nth allocation, <= 0 keeps none (default: 17)
  BENCH_ROUNDS        -> churn rounds per thread (default: 3)
  BENCH_SLEEP_AFTER   -> seconds to sleep after the final collection before
                         measuring RSS (default: 0)
"""

import os
from typing import Callable, Dict, Mapping, NamedTuple, Optional

from churnbench.util import get_logger

logger = get_logger(__file__)


class Configuration(NamedTuple):
    """Immutable parameters of one benchmark run"""
    threads: int = 4
    iterations: int = 200_000
    string_size: int = 1024
    keep_ratio: int = 17
    rounds: int = 3
    sleep_after: int = 0


DEFAULTS = Configuration()

# field -> (environment variable, predicate for valid values)
ENV_VARS: Dict[str, tuple] = {
    "threads": ("BENCH_THREADS", lambda v: v >= 1),
    "iterations": ("BENCH_ITERS", lambda v: v >= 0),
    "string_size": ("BENCH_STR", lambda v: v >= 0),
    "keep_ratio": ("BENCH_KEEP", lambda v: True),
    "rounds": ("BENCH_ROUNDS", lambda v: v >= 1),
    "sleep_after": ("BENCH_SLEEP_AFTER", lambda v: v >= 0),
}


def parse_int_env(environ: Mapping[str, str],
                  key: str,
                  default: int,
                  valid: Optional[Callable[[int], bool]] = None) -> int:
    """Return the integer value of environ[key] or default

    Underscores are accepted as thousands separators ("200_000").
    Missing, empty, malformed or invalid values yield the default."""
    raw = environ.get(key)
    if raw is None or raw.strip() == "":
        return default

    try:
        value = int(raw.replace("_", ""))
    except ValueError:
        logger.warning("Ignoring malformed %s=%r, using %s", key, raw, default)
        return default

    if valid is not None and not valid(value):
        logger.warning("Ignoring out of range %s=%r, using %s", key, raw,
                       default)
        return default

    return value


def resolve_configuration(
        environ: Optional[Mapping[str, str]] = None) -> Configuration:
    """Build the benchmark configuration from environ (default: os.environ)"""
    if environ is None:
        environ = os.environ

    values = {
        field: parse_int_env(environ, key, getattr(DEFAULTS, field), valid)
        for field, (key, valid) in ENV_VARS.items()
    }

    config = Configuration(**values)
    logger.debug("Resolved configuration: %s", config)
    return config
