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
iqctools
========

Worst-case performance analysis of uncertain, possibly periodic, linear
systems with Integral Quadratic Constraints.

Build an uncertain LFT, attach uncertainty blocks, disturbance models and
a performance objective, and certify an upper bound on the performance:

>>> import numpy as np
>>> from iqctools import AnalysisOptions, DeltaSlti, iqc_analysis, to_lft
>>>
>>> g = to_lft((0.5, 1.0, 1.0, 0.0))            # x+ = 0.5 x + d, e = x
>>> p = DeltaSlti("p", lower_bound=-0.2, upper_bound=0.2)
>>> lft = (g + p.to_lft() * 0.1)
>>> result = iqc_analysis(lft, AnalysisOptions(verbose=False))
>>> result['valid']
True

Sub-packages
------------
delta        Uncertainty blocks (DeltaSlti, DeltaSltv, DeltaDlti, DeltaBounded)
disturbance  Disturbance models (DisturbanceL2, DisturbanceConstantWindow,
             DisturbanceBandedWhite)
performance  Performance objectives (PerformanceL2Induced, PerformanceStable)
lft          Ulft and conversions
multiplier   IQC multipliers and basis synthesis
analysis     AnalysisOptions and iqc_analysis
utils        Horizon-period arithmetic and errors
"""

__version__ = "0.1.0"

from .analysis import AnalysisOptions, iqc_analysis
from .delta import Delta, DeltaBounded, DeltaDlti, DeltaSlti, DeltaSltv
from .disturbance import Disturbance, DisturbanceBandedWhite, DisturbanceConstantWindow, DisturbanceL2
from .lft import Ulft, static_lft, to_lft
from .multiplier import (
    Multiplier,
    MultiplierBandedWhite,
    MultiplierBounded,
    MultiplierConstantWindow,
    MultiplierL2,
    MultiplierL2Induced,
    MultiplierSlti,
    MultiplierSltv,
    MultiplierStable,
    build_basis,
)
from .performance import Performance, PerformanceL2Induced, PerformanceStable
from .types import IqcAnalysisResult, RealizedMultiplier
from .utils import (
    ConsistencyError,
    ConstructionError,
    IncompatibleSpecificationError,
    IqcError,
    PeriodicSequence,
    PoleConstraintError,
    SolverFailure,
    UnsupportedUncertaintyError,
    common_horizon_period,
)

__all__ = [
    "__version__",
    # Analysis
    "AnalysisOptions",
    "iqc_analysis",
    "IqcAnalysisResult",
    "RealizedMultiplier",
    # Uncertainty, disturbances, performances
    "Delta",
    "DeltaBounded",
    "DeltaDlti",
    "DeltaSlti",
    "DeltaSltv",
    "Disturbance",
    "DisturbanceBandedWhite",
    "DisturbanceConstantWindow",
    "DisturbanceL2",
    "Performance",
    "PerformanceL2Induced",
    "PerformanceStable",
    # LFTs
    "Ulft",
    "static_lft",
    "to_lft",
    # Multipliers
    "Multiplier",
    "MultiplierBandedWhite",
    "MultiplierBounded",
    "MultiplierConstantWindow",
    "MultiplierL2",
    "MultiplierL2Induced",
    "MultiplierSlti",
    "MultiplierSltv",
    "MultiplierStable",
    "build_basis",
    # Utilities and errors
    "PeriodicSequence",
    "common_horizon_period",
    "ConsistencyError",
    "ConstructionError",
    "IncompatibleSpecificationError",
    "IqcError",
    "PoleConstraintError",
    "SolverFailure",
    "UnsupportedUncertaintyError",
]
