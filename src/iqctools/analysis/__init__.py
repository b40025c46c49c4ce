# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
IQC Analysis
============

>>> from iqctools.analysis import AnalysisOptions, iqc_analysis
>>>
>>> result = iqc_analysis(ulft, AnalysisOptions(verbose=False, lmi_shift=1e-7))
>>> result['valid'], result['performance']
"""

from .options import AnalysisOptions
from .solver import ACCEPTED_STATUSES, solve_lmi_problem
from .iqc_analysis import (
    assemble_lmis,
    augmented_step,
    build_multipliers,
    certificate_holds,
    iqc_analysis,
    nominally_stable,
)

__all__ = [
    "AnalysisOptions",
    "ACCEPTED_STATUSES",
    "solve_lmi_problem",
    "assemble_lmis",
    "augmented_step",
    "build_multipliers",
    "certificate_holds",
    "iqc_analysis",
    "nominally_stable",
]
