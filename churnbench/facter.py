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
"""Collect facts about the runtime and the allocator in use"""

import datetime
import multiprocessing
import os
import platform
import sys
from typing import Any, Dict, Mapping, Optional

from churnbench.util import get_logger

logger = get_logger(__file__)

PROC_MAPS = "/proc/self/maps"

FACTS: Dict[str, Any] = {}


def runtime_facts() -> Dict[str, str]:
    """Return the fields identifying the running interpreter"""
    return {
        "python_version": platform.python_version(),
        "python_implementation": platform.python_implementation(),
        "python_platform": sys.platform,
    }


def allocator_env(environ: Optional[Mapping[str, str]] = None
                  ) -> Dict[str, str]:
    """Return the echoed allocator environment variables"""
    if environ is None:
        environ = os.environ
    return {
        "ld_preload": environ.get("LD_PRELOAD", ""),
        "malloc_conf": environ.get("MALLOC_CONF", ""),
    }


def library_mapped(name: str, maps_file=PROC_MAPS) -> bool:
    """Check if a library containing name is mapped into our address space"""
    try:
        with open(maps_file, "r") as opened_maps_file:
            return any(name in line for line in opened_maps_file)
    except OSError as err:
        logger.debug("Reading %s failed: %s", maps_file, err)
        return False


def jemalloc_mapped(maps_file=PROC_MAPS) -> bool:
    """Check if jemalloc is mapped into our address space"""
    return library_mapped("jemalloc", maps_file=maps_file)


def libc_ver(executable=None):
    """Return glibc version or None if none was found"""
    try:
        return "".join(platform.libc_ver(executable=executable or sys.executable))
    except OSError as err:
        logger.debug("platform.libc_ver failed: %s", err)
        return None


def collect_facts():
    """Collect facts about the benchmark environment into FACTS"""
    starttime = datetime.datetime.now().isoformat()
    # strip seconds from string
    FACTS["starttime"] = starttime[:starttime.rfind(':')]

    uname = platform.uname()
    FACTS["hostname"] = uname.node
    FACTS["system"] = uname.system
    FACTS["kernel"] = uname.release
    FACTS["arch"] = uname.machine
    FACTS["cpus"] = multiprocessing.cpu_count()
    FACTS["libc"] = libc_ver()
    FACTS.update(runtime_facts())

    logger.debug("Collected facts: %s", FACTS)
    return FACTS
