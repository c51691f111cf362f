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
"""Allocators which can be compared by preloading them into the benchmark"""

import os
from subprocess import CalledProcessError
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from churnbench.util import get_logger, print_status, run_cmd

logger = get_logger(__file__)

AllocatorCollection = Dict[str, Dict[str, Any]]

SYSTEM_ALLOCATOR = "system"

# Allocator libraries we look for with whereis
KNOWN_ALLOCATORS = [
    "jemalloc", "tcmalloc", "tcmalloc_minimal", "mimalloc", "tbbmalloc",
    "hoard", "snmalloc", "rpmalloc", "scalloc", "mesh"
]


def allocator_dict(ld_preload="", malloc_conf="", color=None) -> Dict[str, Any]:
    """Return a new allocator definition"""
    return {
        "LD_PRELOAD": ld_preload,
        "MALLOC_CONF": malloc_conf,
        "color": color,
    }


def find_installed_library(name: str) -> Optional[str]:
    """Return the path of an installed shared library lib{name} or None"""
    try:
        out = run_cmd(["whereis", f"lib{name}"], capture=True).stdout
    except (OSError, CalledProcessError) as err:
        logger.debug("whereis lib%s failed: %s", name, err)
        return None

    # whereis output: "libjemalloc: /usr/lib/libjemalloc.so.2 /usr/lib/libjemalloc.a"
    _, _, paths = out.partition(":")
    for path in paths.split():
        if ".so" in os.path.basename(path):
            return path

    return None


def collect_installed_allocators() -> AllocatorCollection:
    """Collect allocators using installed system libraries"""
    allocators = {SYSTEM_ALLOCATOR: allocator_dict()}

    for alloc in KNOWN_ALLOCATORS:
        path = find_installed_library(alloc)
        if path is not None:
            allocators[alloc] = allocator_dict(ld_preload=path)

    return allocators


def parse_allocator_spec(spec: str) -> Tuple[str, Optional[Dict[str, Any]]]:
    """Parse a command line allocator specification

    "system"             -> the default allocator without preload
    "name=/path/lib.so"  -> preload the given library
    "name"               -> preload the installed library lib{name}

    The returned definition is None if no library could be found."""
    name, sep, path = spec.partition("=")
    name = name.strip()

    if sep:
        return name, allocator_dict(ld_preload=path.strip())

    if name == SYSTEM_ALLOCATOR:
        return name, allocator_dict()

    path = find_installed_library(name)
    if path is None:
        return name, None

    return name, allocator_dict(ld_preload=path)


def parse_key_value_pairs(pairs: Iterable[str]) -> Dict[str, str]:
    """Parse an iterable of "key=value" strings"""
    res = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f'"{pair}" is not of the form name=value')
        res[key.strip()] = value
    return res


def collect_allocators(specs: Optional[List[str]],
                       malloc_confs: Optional[Mapping[str, str]] = None
                       ) -> AllocatorCollection:
    """Collect allocators to compare

    If specs is None all installed allocators are used. Otherwise each entry
    is handled by parse_allocator_spec. malloc_confs maps allocator names to
    a MALLOC_CONF tuning string."""
    if specs is None:
        print_status("Using system-wide installed allocators ...")
        allocators = collect_installed_allocators()
    else:
        allocators = {}
        for spec in specs:
            name, alloc = parse_allocator_spec(spec)
            if alloc is None:
                logger.error('"%s" is neither name=path nor an installed allocator.',
                             spec)
                continue
            allocators[name] = alloc

    for name, conf in (malloc_confs or {}).items():
        if name not in allocators:
            logger.warning("MALLOC_CONF for unknown allocator %s ignored", name)
            continue
        allocators[name]["MALLOC_CONF"] = conf

    logger.debug("Collected allocators: %s", allocators)
    return allocators


def allocator_environ(alloc: Mapping[str, Any],
                      base: Optional[Mapping[str, str]] = None
                      ) -> Dict[str, str]:
    """Return a copy of base with the allocator's LD_PRELOAD and MALLOC_CONF

    Variables the allocator does not set are removed so that the
    environment of the caller does not leak into the measurement."""
    if base is None:
        base = os.environ

    env = dict(base)
    for var in ["LD_PRELOAD", "MALLOC_CONF"]:
        value = alloc.get(var, "")
        if value:
            env[var] = value
        else:
            env.pop(var, None)

    return env
