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
"""Run churnbench as module"""

from churnbench.cli import main

if __name__ == "__main__":
    main()
