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
"""Resident memory measurement through the /proc file system"""

import os
import subprocess
from typing import Dict, Iterable

from churnbench.util import get_logger, run_cmd

logger = get_logger(__file__)

PROC_STATUS = "/proc/self/status"
PROC_STATM = "/proc/self/statm"

DEFAULT_PAGESIZE = 4096

# Returned if no source could provide a value
UNAVAILABLE = -1


def save_values_from_proc_status(result: Dict[str, str],
                                 keys: Iterable[str],
                                 status_file=PROC_STATUS,
                                 status_content=None,
                                 key_prefix=""):
    """Parse a /proc/status file or its content and extract requested keys from it"""
    assert status_file or status_content

    if status_content is None:
        if hasattr(status_file, "read"):
            status_content = status_file.read()
        else:
            with open(status_file, "r") as opened_status_file:
                status_content = opened_status_file.read()

    for line in status_content.splitlines():
        key, sep, value = line.partition(':')
        if not sep:
            continue

        if key in keys:
            value = value.replace("kB", "")
            value = value.strip()
            result[f"{key_prefix}{key}"] = value


def rss_kb(status_file=PROC_STATUS) -> int:
    """Return VmRSS in kB or UNAVAILABLE"""
    result: Dict[str, str] = {}
    try:
        save_values_from_proc_status(result, ["VmRSS"],
                                     status_file=status_file)
        return int(result["VmRSS"])
    except (OSError, KeyError, ValueError) as err:
        logger.debug("Reading VmRSS from %s failed: %s", status_file, err)
        return UNAVAILABLE


def statm_resident_pages(statm_file=PROC_STATM) -> int:
    """Return the resident pages from a statm file or UNAVAILABLE

    statm columns: size resident shared text lib data dt"""
    try:
        with open(statm_file, "r") as opened_statm_file:
            return int(opened_statm_file.read().split()[1])
    except (OSError, IndexError, ValueError) as err:
        logger.debug("Reading resident pages from %s failed: %s", statm_file,
                     err)
        return UNAVAILABLE


def system_pagesize() -> int:
    """Return the configured page size of the system"""
    try:
        return os.sysconf("SC_PAGE_SIZE")
    except (AttributeError, ValueError, OSError):
        pass

    try:
        out = run_cmd(["getconf", "PAGESIZE"], capture=True).stdout
        return int(out.strip())
    except (OSError, subprocess.CalledProcessError, ValueError) as err:
        logger.debug("getconf PAGESIZE failed: %s", err)
        return DEFAULT_PAGESIZE


def measure_resident_memory(status_file=PROC_STATUS,
                            statm_file=PROC_STATM) -> int:
    """Return the resident set size in bytes or UNAVAILABLE

    VmRSS from the status file is preferred, the resident page count from
    statm multiplied by the page size is the fallback."""
    kilobytes = rss_kb(status_file)
    if kilobytes >= 0:
        return kilobytes * 1024

    pages = statm_resident_pages(statm_file)
    if pages > 0:
        return pages * system_pagesize()

    logger.warning("Resident memory is unavailable")
    return UNAVAILABLE


def to_mb(nbytes: int, keep_sentinel=True) -> float:
    """Convert bytes to MiB rounded to two decimals

    If keep_sentinel is set the UNAVAILABLE sentinel is passed through unchanged."""
    if keep_sentinel and nbytes == UNAVAILABLE:
        return float(UNAVAILABLE)
    return round(nbytes / 1024 / 1024, 2)
