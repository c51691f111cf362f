#!/usr/bin/env python3

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
"""Integration tests for the churnbench command line"""

import json
import os
import subprocess
import sys
import tempfile
import unittest

BASEDIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

SMALL_ENV = {
    "BENCH_THREADS": "2",
    "BENCH_ITERS": "1_000",
    "BENCH_STR": "64",
    "BENCH_KEEP": "10",
    "BENCH_ROUNDS": "1",
}


def run_churnbench(*args, env=None):
    """Run churnbench in a new interpreter and return its stdout"""
    cmd_env = dict(os.environ)
    cmd_env.pop("LD_PRELOAD", None)
    cmd_env.pop("MALLOC_CONF", None)
    cmd_env.update(SMALL_ENV)
    cmd_env.update(env or {})
    cmd = [sys.executable, "-m", "churnbench", *args]
    try:
        return subprocess.run(cmd,
                              stdout=subprocess.PIPE,
                              stderr=subprocess.PIPE,
                              env=cmd_env,
                              cwd=BASEDIR,
                              text=True,
                              check=True).stdout
    except subprocess.CalledProcessError as e:
        print(e.stdout)
        print(e.stderr)
        raise


class TestRun(unittest.TestCase):
    """Test a single benchmark run"""
    def test_execution(self):
        """The run prints a parsable result for the configured workload"""
        result = json.loads(run_churnbench("-vv", "run"))

        self.assertEqual(result["threads"], 2)
        self.assertEqual(result["iters_per_thread"], 1000)
        self.assertEqual(result["str_size"], 64)
        self.assertEqual(result["keep_ratio"], 10)
        self.assertEqual(result["rounds"], 1)
        self.assertGreaterEqual(result["time_s"], 0)
        self.assertTrue(result["rss_before_mb"] >= 0
                        or result["rss_before_mb"] == -1)
        self.assertEqual(result["ld_preload"], "")
        self.assertFalse(result["jemalloc_mapped"])

    def test_default_command(self):
        """run is the default command"""
        result = json.loads(run_churnbench(env={"MALLOC_CONF": "narenas:2"}))
        self.assertEqual(result["malloc_conf"], "narenas:2")

    def test_malformed_environment(self):
        result = json.loads(run_churnbench(env={"BENCH_THREADS": "many"}))
        self.assertEqual(result["threads"], 4)


class TestCompare(unittest.TestCase):
    """Test comparing allocators"""
    def test_compare_system(self):
        with tempfile.TemporaryDirectory() as resdir:
            out = run_churnbench("-q", "compare", "-a", "system", "-r", "2",
                                 "-rd", resdir, "-s")

            self.assertIn('leaderboard for "time_s":', out)
            with open(os.path.join(resdir, "churn.json")) as result_file:
                results = json.load(result_file)
            self.assertTrue(os.path.isfile(os.path.join(resdir, "time_s.svg")))

        self.assertEqual(len(results["measurements"]["system"]), 2)
        self.assertEqual(results["measurements"]["system"][0]["threads"], 2)
        self.assertIn("time_s", results["stats"]["system"]["mean"])


if __name__ == '__main__':
    unittest.main()
