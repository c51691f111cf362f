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
"""Tests for plotting compared results"""

import os
import tempfile
import unittest

from churnbench import compare, plots
from churnbench.allocator import allocator_dict


class TestPlots(unittest.TestCase):
    """Test bar plots of compared allocators"""
    def setUp(self):
        self.results = {
            "allocators": {
                "system": allocator_dict(),
                "jemalloc": allocator_dict(ld_preload="/libjemalloc.so",
                                           color="C0"),
            },
            "facts": {},
            "measurements": {
                "system": [{
                    "time_s": t,
                    "rss_delta_mb": 3.0,
                    "rss_after_mb": 40.0
                } for t in [1.0, 1.2]],
                "jemalloc": [{
                    "time_s": t,
                    "rss_delta_mb": 0.5,
                    "rss_after_mb": 30.0
                } for t in [0.8, 0.9]],
            },
        }
        compare.calc_desc_statistics(self.results)
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def test_colors(self):
        """Unset colors are filled with unused matplotlib colors"""
        self.assertEqual(plots.get_alloc_color(self.results, "jemalloc"), "C0")
        self.assertEqual(plots.get_alloc_color(self.results, "system"), "C1")

    def test_plot_bars(self):
        path = plots.plot_bars(self.results, "time_s", sumdir=self.tmpdir.name)
        self.assertEqual(path, os.path.join(self.tmpdir.name, "time_s.svg"))
        self.assertGreater(os.path.getsize(path), 0)

    def test_summarize(self):
        paths = plots.summarize(self.results,
                                sumdir=self.tmpdir.name,
                                file_ext="png")
        self.assertEqual(len(paths), len(plots.DATAPOINTS))
        for path in paths:
            self.assertTrue(os.path.isfile(path))


if __name__ == '__main__':
    unittest.main()
