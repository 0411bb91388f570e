import copy

import numpy as np

from .. import diagnostics, driver
from ..core import settings as settings_mod
from ..core.errors import ConfigurationError
from ..core.interface import model_params

_scenarios = {
    'no_cannibalism': {
        'species': {'interaction': 0.0},
    },
    'cannibalism': {
        'species': {'interaction': 1.0},
    },
    'larval_mortality': {
        'species': {'interaction': 1.0},
        'mortality': {'mu_l': 20.0, 'w_l': 0.01, 'rho_l': 2.0},
    },
    'stochastic_periodic': {
        'species': {'interaction': 1.0},
        'plankton_forcing': {'regime': 'periodic-resample'},
    },
    'stochastic_red_noise': {
        'species': {'interaction': 1.0},
        'plankton_forcing': {'regime': 'red-noise'},
    },
}

scenario_names = list(_scenarios)


def power_law_abundance(grid, c=0.001, exponent=-1.8):
    """Return the initial consumer density ``c * w**exponent``."""
    return c * grid.w**exponent


def scenario_settings(name, settings_in=None):
    """Return complete settings for scenario `name`.

    Parameters
    ----------

    name : str
      One of ``scenario_names``.

    settings_in : dict, str or path-like, optional
      Further updates applied on top of the scenario, or the path of a YAML
      file holding them.
    """
    if name not in _scenarios:
        raise ConfigurationError(f'unknown scenario {name}; choose from {scenario_names}')
    settings_dict = settings_mod.update(settings_mod.get_defaults(), copy.deepcopy(_scenarios[name]))
    return settings_mod.read(settings_in, settings_dict)


def config_scenario(name, settings_in=None, seed=None):
    """Return model parameters and a fresh random state for scenario `name`."""
    settings_dict = scenario_settings(name, settings_in)
    if seed is not None:
        settings_dict['plankton_forcing']['seed'] = seed
    params = model_params(settings_dict)
    return params, params.new_random_state()


def run_scenario(
    name,
    warmup_years=10.0,
    years=30.0,
    collapse_factor=1e-7,
    settings_in=None,
    seed=None,
    initial_c=0.001,
    initial_exponent=-1.8,
    verbose=False,
):
    """Warm up a scenario, collapse the population and follow its recovery.

    The consumer starts from ``initial_c * w**initial_exponent`` and the
    resource from its carrying capacity. After `warmup_years`, the consumer
    density is multiplied by `collapse_factor` and the projection continues
    for `years` with the same random state.

    Returns
    -------

    state : sizespec.driver.simulation_state
      The concatenated trajectory.

    Examples
    --------

    ::

      >>> state = sizespec.testcase.run_scenario('cannibalism')
      >>> sizespec.total_biomass(state).sel(time=[10.0, 40.0])
    """
    params, random_state = config_scenario(name, settings_in, seed)
    n_init = power_law_abundance(params.grid, initial_c, initial_exponent)

    warmup = driver.project(
        params,
        n_init,
        warmup_years,
        random_state=random_state,
        verbose=verbose,
    )
    collapsed = diagnostics.rescale_abundance(warmup, collapse_factor)
    recovery = driver.project(
        params,
        collapsed,
        years,
        random_state=random_state,
        verbose=verbose,
    )
    assert np.isclose(recovery.t_start, warmup.t_final)
    return driver.concat([warmup, recovery])
