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
"""Helper functions for churnbench"""

import logging
import os
import subprocess
import sys
from typing import Dict, List, Optional, Union

# Verbosity level -1: quiet, 0: logging.ERROR, 1: logging.INFO, 2: logging.DEBUG
VERBOSITY = 0


def set_verbosity(verbosity: int):
    """Set global logging level

    -1: quiet, no status output
    0 (default): logging.ERROR
    1: logging.INFO
    2: logging.DEBUG
    """
    loglevels = [logging.ERROR, logging.INFO, logging.DEBUG]
    level = loglevels[min(max(verbosity, 0), len(loglevels) - 1)]
    logging.basicConfig(level=level, stream=sys.stderr)
    logging.getLogger().setLevel(level)
    global VERBOSITY  # pylint: disable=global-statement
    VERBOSITY = verbosity


def get_logger(path: str) -> logging.Logger:
    """Return the logger retrieved by logging.getLogger with the basename of path"""
    return logging.getLogger(os.path.basename(path))


logger = get_logger(__file__)


# yapf: disable
def run_cmd(  # pylint: disable=too-many-arguments
        cmd: Union[str, List[str]],
        output_verbosity=2,
        capture=False,
        shell=False,
        check=True,
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None
) -> subprocess.CompletedProcess:
    # yapf: enable
    """subprocess.run wrapper which cares about the set verbosity"""

    stdout = None
    stderr = None
    if capture:
        stdout = subprocess.PIPE
        stderr = stdout
    elif VERBOSITY < output_verbosity:
        stdout = subprocess.DEVNULL
        stderr = stdout

    logger.debug("Running command %s", cmd)

    return subprocess.run(cmd,
                          stdout=stdout,
                          stderr=stderr,
                          shell=shell,
                          check=check,
                          env=env,
                          timeout=timeout,
                          universal_newlines=True)


def churnbench_msg(color: str, *objects, sep=' ', end='\n', file=None):
    """Colored output function wrapping print"""
    if VERBOSITY < 0:
        return

    if file is None:
        file = sys.stderr

    color = {
        "YELLOW": "\x1b[33m",
        "GREEN": "\x1b[32m",
        "RED": "\x1b[31m"
    }[color]

    is_atty = file.isatty()
    if is_atty:
        print(color, end="", file=file, flush=True)

    print(*objects, sep=sep, end=end, file=file)

    if is_atty:
        print("\x1b[0m", end="", file=file, flush=True)


def print_status(*objects, sep=' ', end='\n', file=None):
    """Print green status message"""
    churnbench_msg("GREEN", *objects, sep=sep, end=end, file=file)


def print_license_and_exit():
    """Print GPL info and Copyright before exit"""
    print("Copyright (C) 2026 The churnbench authors")
    print(
        "License GPLv3: GNU GPL version 3 <http://gnu.org/licenses/gpl.html>")
    sys.exit(0)
