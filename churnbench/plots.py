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
"""Plot compared allocator results"""

import os

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt  # pylint: disable=wrong-import-position
import numpy as np  # pylint: disable=wrong-import-position

from churnbench.compare import Results
from churnbench.util import get_logger

logger = get_logger(__file__)

SUMMARY_FILE_EXT = "svg"

# datapoint -> (ylabel, title)
DATAPOINTS = {
    "time_s": ("time in s", "churn runtime"),
    "rss_delta_mb": ("RSS delta in MB", "RSS growth during churn"),
    "rss_after_mb": ("RSS in MB", "RSS after churn"),
}


def _set_all_alloc_colors(allocators):
    """Populate all not set allocator colors with matplotlib 'C' colors"""
    explicit_colors = [
        v["color"] for v in allocators.values() if v.get("color") is not None
    ]
    matplotlib_c_colors = ["C" + str(i) for i in range(0, 10)]
    avail_colors = [c for c in matplotlib_c_colors if c not in explicit_colors]

    i = 0
    for alloc in allocators.values():
        if alloc.get("color") is None:
            alloc["color"] = avail_colors[i]
            i = (i + 1) % len(avail_colors)


def get_alloc_color(results: Results, alloc: str) -> str:
    """Retrieve color of an allocator"""
    allocators = results["allocators"]
    if allocators[alloc].get("color") is None:
        _set_all_alloc_colors(allocators)

    return allocators[alloc]["color"]


def plot_bars(results: Results,
              datapoint: str,
              sumdir="",
              file_ext=SUMMARY_FILE_EXT) -> str:
    """Plot the mean of datapoint per allocator with its std as error bar

    Returns the path of the written figure."""
    ylabel, title = DATAPOINTS.get(datapoint, (datapoint, datapoint))
    allocators = [a for a in results["allocators"] if a in results["stats"]]

    fig = plt.figure(f"{datapoint}")
    x_data = np.arange(1, len(allocators) + 1)
    for x, allocator in zip(x_data, allocators):
        stats = results["stats"][allocator]
        plt.bar(x,
                stats["mean"].get(datapoint, np.nan),
                yerr=stats["std"].get(datapoint, np.nan),
                label=allocator,
                color=get_alloc_color(results, allocator))

    plt.xticks(x_data, allocators)
    plt.ylabel(ylabel)
    plt.title(title)

    fig_path = os.path.join(sumdir, f"{datapoint}.{file_ext}")
    logger.info("Saving plot to %s", fig_path)
    fig.savefig(fig_path)
    plt.close(fig)

    return fig_path


def summarize(results: Results, sumdir="", file_ext=SUMMARY_FILE_EXT):
    """Plot all default datapoints"""
    return [
        plot_bars(results, datapoint, sumdir=sumdir, file_ext=file_ext)
        for datapoint in DATAPOINTS
    ]
