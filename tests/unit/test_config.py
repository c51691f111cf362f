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
"""Tests for the environment configuration"""

import unittest

from churnbench.config import DEFAULTS, Configuration, resolve_configuration

ALL_KEYS = [
    "BENCH_THREADS", "BENCH_ITERS", "BENCH_STR", "BENCH_KEEP",
    "BENCH_ROUNDS", "BENCH_SLEEP_AFTER"
]


class TestResolveConfiguration(unittest.TestCase):
    """Test resolve_configuration"""
    def test_defaults(self):
        """An empty environment yields the documented defaults"""
        config = resolve_configuration({})
        self.assertEqual(config, Configuration(4, 200_000, 1024, 17, 3, 0))

    def test_values(self):
        """All fields are read from their variables"""
        config = resolve_configuration({
            "BENCH_THREADS": "2",
            "BENCH_ITERS": "1000",
            "BENCH_STR": "64",
            "BENCH_KEEP": "10",
            "BENCH_ROUNDS": "1",
            "BENCH_SLEEP_AFTER": "5",
        })
        self.assertEqual(config.threads, 2)
        self.assertEqual(config.iterations, 1000)
        self.assertEqual(config.string_size, 64)
        self.assertEqual(config.keep_ratio, 10)
        self.assertEqual(config.rounds, 1)
        self.assertEqual(config.sleep_after, 5)

    def test_thousands_separator(self):
        """Underscores are ignored"""
        config = resolve_configuration({"BENCH_ITERS": "200_000"})
        self.assertEqual(config.iterations, 200000)
        config = resolve_configuration({"BENCH_ITERS": "1_2_3"})
        self.assertEqual(config.iterations, 123)

    def test_malformed_values_fall_back_per_field(self):
        """Each malformed value falls back to its own default only"""
        for key in ALL_KEYS:
            for raw in ["abc", "", "   ", "_", "1.5", "-", "x1"]:
                with self.subTest(key=key, raw=raw):
                    environ = {k: "2" for k in ALL_KEYS}
                    environ[key] = raw
                    field = Configuration._fields[ALL_KEYS.index(key)]
                    expected = Configuration(*[2] * 6)._replace(
                        **{field: getattr(DEFAULTS, field)})
                    self.assertEqual(resolve_configuration(environ), expected)

    def test_out_of_range_values(self):
        """Values outside a field's domain fall back to the default"""
        config = resolve_configuration({
            "BENCH_THREADS": "0",
            "BENCH_ITERS": "-1",
            "BENCH_STR": "-10",
            "BENCH_ROUNDS": "0",
            "BENCH_SLEEP_AFTER": "-3",
        })
        self.assertEqual(config, DEFAULTS)

    def test_keep_ratio_accepts_non_positive(self):
        """A keep ratio <= 0 is valid and disables retention"""
        self.assertEqual(
            resolve_configuration({"BENCH_KEEP": "0"}).keep_ratio, 0)
        self.assertEqual(
            resolve_configuration({"BENCH_KEEP": "-4"}).keep_ratio, -4)

    def test_domain(self):
        """Every resolved configuration satisfies the field domains"""
        for raw in ["-5", "0", "1", "7", "junk", "1_000"]:
            config = resolve_configuration({k: raw for k in ALL_KEYS})
            self.assertGreaterEqual(config.threads, 1)
            self.assertGreaterEqual(config.iterations, 0)
            self.assertGreaterEqual(config.string_size, 0)
            self.assertGreaterEqual(config.rounds, 1)
            self.assertGreaterEqual(config.sleep_after, 0)

    def test_immutable(self):
        """Configurations can not be changed after creation"""
        config = resolve_configuration({})
        with self.assertRaises(AttributeError):
            config.threads = 8


if __name__ == '__main__':
    unittest.main()
