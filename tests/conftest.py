
import numpy as np
import pytest

import sizespec


# coarse grid for fast projections
coarse_settings = {
    'grid': {'dx': 0.2},
    'integration': {'dt': 0.001, 't_save': 0.01},
}


def pytest_addoption(parser):
    parser.addoption(
        '--runslow', action='store_true', default=False, help='run multi-decade projections'
    )


def pytest_configure(config):
    config.addinivalue_line('markers', 'slow: multi-decade projection; needs --runslow')


def pytest_collection_modifyitems(config, items):
    if config.getoption('--runslow'):
        return
    skip_slow = pytest.mark.skip(reason='need --runslow option to run')
    for item in items:
        if 'slow' in item.keywords:
            item.add_marker(skip_slow)


def get_coarse_params(**section_updates):
    """Return model parameters on the coarse grid, with optional section updates."""
    settings_dict = sizespec.settings.update(sizespec.settings.get_defaults(), coarse_settings)
    return sizespec.model_params(sizespec.settings.update(settings_dict, section_updates))


def initial_abundance(params, c=0.001, exponent=-1.8):
    return c * params.grid.w**exponent


def brute_force_encounter(params, n, n_pp):
    """Encounter rate from an explicit double loop over predator and prey sizes."""
    grid = params.grid
    species = params.species
    weights = params.kernel.weights
    prey = species.interaction * grid.on_full_grid(n) + n_pp

    encounter = np.zeros(grid.n_w)
    for i in range(grid.n_w):
        j = i + grid.ndx_consumer
        for m in range(j + 1):
            encounter[i] += weights[j - m] * prey[m] * grid.w_full[m] * grid.dw_full[m]
    return species.search_volume * encounter


def brute_force_resource_mortality(params, n, feeding_level):
    """Predation mortality on every full-grid size from an explicit double loop."""
    grid = params.grid
    species = params.species
    weights = params.kernel.weights

    mortality = np.zeros(grid.n_w_full)
    for m in range(grid.n_w_full):
        for i in range(grid.n_w):
            j = i + grid.ndx_consumer
            if j < m:
                continue
            mortality[m] += (
                weights[j - m]
                * (1.0 - feeding_level[i])
                * species.search_volume[i]
                * n[i]
                * grid.dw[i]
            )
    return mortality
