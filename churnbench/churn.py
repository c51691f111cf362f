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
"""Allocation churn workload

Workers allocate many short lived byte buffers and keep every Nth of them
alive to simulate a persistent working set amid the churn."""

import gc


def reclaim():
    """Run a full, blocking garbage collection over all generations

    CPython frees unreferenced buffers immediately through reference counting,
    so this pass mostly collects cycles. Whether the freed memory is returned
    to the OS is up to the allocator being measured."""
    gc.collect()


def run_churn(iterations: int, string_size: int, keep_ratio: int) -> int:
    """Allocate iterations buffers of string_size bytes

    Every buffer whose index is a multiple of keep_ratio is kept until the
    loop finishes. Returns the number of kept buffers. The kept buffers are
    released but not collected."""
    keep = []
    for i in range(iterations):
        buf = b"x" * string_size
        if keep_ratio > 0 and i % keep_ratio == 0:
            keep.append(buf)

    kept = len(keep)
    # Drop references, collection is up to the caller
    keep.clear()
    return kept


def run_worker(iterations: int, string_size: int, keep_ratio: int,
               rounds: int):
    """Run rounds churn loops each followed by a full collection"""
    for _ in range(rounds):
        run_churn(iterations, string_size, keep_ratio)
        reclaim()
