"""Top-level module for sizespec"""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version(__name__)
except PackageNotFoundError:
    # package is not installed
    __version__ = '0.0.0'

from . import driver as driver_mod, testcase
from .core import settings
from .core.errors import (
    ConfigurationError,
    DegenerateKernel,
    InvalidGridSpec,
    NumericalInstability,
    SimulationTimeout,
    SizeSpectrumError,
)
from .core.forcing import plankton_random_state
from .core.interface import (
    build_model,
    model_params,
    set_external_mortality,
    set_interaction,
    set_resource_growth_rate,
    spectrum_instance_type,
)
from .diagnostics import death_rates, rescale_abundance, spawning_stock_biomass, total_biomass
from .driver import concat, project, projection, simulation_state
