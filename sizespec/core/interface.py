import copy

import numpy as np
import xarray as xr

from . import domain, ecosystem, process, settings
from .errors import ConfigurationError
from .forcing import plankton_random_state


class kernel_type(object):
    """Feeding kernel on the ratio index of the full grid."""

    def __init__(self, grid, ppmr_min, ppmr_max):
        self.ppmr = grid.ppmr
        self.weights = ecosystem.feeding_kernel(self.ppmr, ppmr_min, ppmr_max)
        self.k_min, self.k_max = ecosystem.kernel_support(self.weights)

    def __repr__(self):
        return f'kernel: ratio index [{self.k_min}, {self.k_max}]'


class model_params(object):
    """
    Parameters of a size-spectrum model: size grid, species, resource,
    feeding kernel and external mortality.

    Instances are treated as immutable; use ``set_external_mortality``,
    ``set_interaction`` and ``set_resource_growth_rate`` to obtain updated
    copies. ``settings_dict`` follows the scalar settings changed by the
    setters; vectors (external mortality, resource growth rate) live only on
    the instance.
    """

    def __init__(self, settings_dict):
        settings.validate(settings_dict)
        self.settings_dict = copy.deepcopy(settings_dict)

        grid_settings = settings_dict['grid']
        species_settings = settings_dict['species']

        w_pp_min = grid_settings['w_pp_min']
        if w_pp_min is None:
            w_pp_min = grid_settings['w_min'] / species_settings['ppmr_max']

        self.grid = domain.size_grid(
            grid_settings['w_min'],
            grid_settings['w_inf'],
            grid_settings['dx'],
            w_pp_min=w_pp_min,
        )
        self.species = ecosystem.species_type(self.grid, **species_settings)
        self.resource = ecosystem.resource_type(self.grid, **settings_dict['resource'])
        self.kernel = kernel_type(
            self.grid,
            species_settings['ppmr_min'],
            species_settings['ppmr_max'],
        )

        mortality_settings = dict(settings_dict['mortality'])
        mortality_key = mortality_settings.pop('type')
        if mortality_key not in ecosystem.mortality_types:
            raise ConfigurationError(f'Unknown mortality type: {mortality_key}')
        self.mortality_type = ecosystem.mortality_types[mortality_key]

        if self.mortality_type == ecosystem.mortality_types['custom']:
            self.external_mortality = np.zeros(self.grid.n_w)
        else:
            self.external_mortality = process.compute_external_mortality(
                self.grid.w,
                self.grid.w_min,
                self.mortality_type,
                mortality_settings,
            )

        # fail on unknown forcing regimes before any run
        self.new_random_state()

        self.dt = settings_dict['integration']['dt']
        self.t_save = settings_dict['integration']['t_save']
        self.negative_tolerance = settings_dict['numerics']['negative_tolerance']

    def __repr__(self):
        return f'model_params: {self.species!r}; {self.grid!r}'

    @property
    def interaction(self):
        return self.species.interaction

    def _replace(self, **kwargs):
        """Return a shallow copy with attributes replaced."""
        new = copy.copy(self)
        for key, value in kwargs.items():
            assert hasattr(self, key), f'unknown attribute {key}'
            setattr(new, key, value)
        return new

    def new_random_state(self):
        """Return a ``plankton_random_state`` configured from settings."""
        return plankton_random_state.from_settings(self.settings_dict['plankton_forcing'])

    def resource_equilibrium(self):
        """Return the resource carrying capacity, a common initial condition."""
        return self.resource.resource_capacity.copy()


def build_model(settings_in=None):
    """Return a ``model_params`` built from settings.

    Parameters
    ----------

    settings_in : dict, str or path-like, optional
      Partial updates to the defaults, or the path of a YAML file holding them.
    """
    return model_params(settings.read(settings_in))


def set_external_mortality(params, mortality):
    """Return a copy of `params` with the external mortality replaced by `mortality`."""
    mortality = np.array(mortality, dtype=float)
    if np.ndim(mortality) == 0:
        mortality = np.ones(params.grid.n_w) * mortality
    assert mortality.shape == (params.grid.n_w,), 'data has the wrong dimensions'
    settings_dict = copy.deepcopy(params.settings_dict)
    settings_dict['mortality']['type'] = 'custom'
    return params._replace(
        external_mortality=mortality,
        mortality_type=ecosystem.mortality_types['custom'],
        settings_dict=settings_dict,
    )


def set_interaction(params, interaction):
    """Return a copy of `params` with the cannibalism interaction replaced."""
    interaction = np.asarray(interaction, dtype=float)
    if interaction.size != 1:
        raise ConfigurationError(
            f'single-species model requires a scalar interaction, received shape {interaction.shape}'
        )
    interaction = float(interaction.reshape(()))
    if not np.isfinite(interaction) or interaction < 0.0:
        raise ConfigurationError(f'interaction must be non-negative, received {interaction}')

    species = copy.copy(params.species)
    species.interaction = interaction
    settings_dict = copy.deepcopy(params.settings_dict)
    settings_dict['species']['interaction'] = interaction
    return params._replace(species=species, settings_dict=settings_dict)


def set_resource_growth_rate(params, resource_rate):
    """Return a copy of `params` with the resource growth rate replaced.

    Parameters
    ----------

    resource_rate : numeric or array_like
      Growth rate on the full grid.
    """
    resource_rate = np.array(resource_rate, dtype=float)
    if np.ndim(resource_rate) == 0:
        resource_rate = np.ones(params.grid.n_w_full) * resource_rate
    assert resource_rate.shape == (params.grid.n_w_full,), 'data has the wrong dimensions'

    resource = copy.copy(params.resource)
    resource.resource_rate = resource_rate
    return params._replace(resource=resource)


class spectrum_instance_type(object):
    """
    Compute the rates of the size-spectrum model for a given state.

    Parameters
    ----------

    params : model_params
      Model parameters.

    Examples
    --------

    Compute rates for a power-law consumer and the resource at capacity::

        params = build_model()
        obj = spectrum_instance_type(params)
        rates = obj.compute_rates(0.001 * params.grid.w**-1.8, params.resource_equilibrium())

    The returned ``xarray.Dataset`` is owned by ``obj`` and overwritten by the
    next call.
    """

    def __init__(self, params):
        self.params = params
        self.grid = params.grid
        self.species = params.species
        self.kernel = params.kernel
        self.rate_data = _init_rate_data(params)
        self.recruitment_flux = 0.0

    def _set_state(self, n, n_pp):
        assert np.shape(n) == (self.grid.n_w,), 'n has the wrong dimensions'
        assert np.shape(n_pp) == (self.grid.n_w_full,), 'n_pp has the wrong dimensions'
        self.n = np.asarray(n, dtype=float)
        self.n_pp = np.asarray(n_pp, dtype=float)

    def _compute_encounter(self):
        process.compute_encounter(
            self.rate_data.encounter_rate,
            self.n,
            self.n_pp,
            self.species,
            self.kernel,
            self.grid,
        )

    def _compute_feeding_level(self):
        process.compute_feeding_level(
            self.rate_data.feeding_level,
            self.rate_data.intake_rate,
            self.rate_data.encounter_rate,
            self.species,
        )

    def _compute_energy_avail(self):
        process.compute_energy_avail(
            self.rate_data.energy_avail_rate,
            self.rate_data.intake_rate,
            self.species,
        )

    def _compute_reproduction(self):
        process.compute_reproduction(
            self.rate_data.reproduction_rate,
            self.rate_data.energy_avail_rate,
            self.species,
        )

    def _compute_growth(self):
        process.compute_growth(
            self.rate_data.growth_rate,
            self.rate_data.energy_avail_rate,
            self.rate_data.reproduction_rate,
        )

    def _compute_recruitment(self):
        self.recruitment_flux = process.compute_recruitment(
            self.n,
            self.rate_data.reproduction_rate,
            self.species,
            self.grid,
        )
        self.rate_data['recruitment_flux'].data[...] = self.recruitment_flux

    def _compute_mortality(self):
        process.compute_resource_mortality(
            self.rate_data.resource_mortality,
            self.n,
            self.rate_data.feeding_level,
            self.species,
            self.kernel,
            self.grid,
        )
        process.compute_predation_mortality(
            self.rate_data.predation_mortality,
            self.rate_data.resource_mortality,
            self.species,
            self.grid,
        )
        process.compute_total_mortality(
            self.rate_data.total_mortality,
            self.params.external_mortality,
            self.rate_data.predation_mortality,
        )

    def compute_rates(self, n, n_pp):
        """Compute all rates for consumer density `n` and resource density `n_pp`.

        Parameters
        ----------

        n : array_like
          Consumer abundance density on ``grid.w``.

        n_pp : array_like
          Resource abundance density on ``grid.w_full``.
        """
        self._set_state(n, n_pp)

        # order matters
        self._compute_encounter()
        self._compute_feeding_level()
        self._compute_energy_avail()
        self._compute_reproduction()
        self._compute_growth()
        self._compute_recruitment()
        self._compute_mortality()

        return self.rate_data


def _init_rate_data(params):
    """Return an xarray.Dataset with initialized rate data arrays."""
    grid = params.grid

    ds = xr.Dataset(
        coords=dict(
            w=grid.w,
            w_full=grid.w_full,
        ),
    )
    ds['encounter_rate'] = domain.init_array(
        grid,
        name='encounter_rate',
        attrs={'long_name': 'Rate at which food mass is encountered', 'units': 'g/yr'},
    )
    ds['feeding_level'] = domain.init_array(
        grid,
        name='feeding_level',
        attrs={'long_name': 'Feeding level', 'units': ''},
    )
    ds['intake_rate'] = domain.init_array(
        grid,
        name='intake_rate',
        attrs={'long_name': 'Food intake', 'units': 'g/yr'},
    )
    ds['energy_avail_rate'] = domain.init_array(
        grid,
        name='energy_avail_rate',
        attrs={'long_name': 'Energy available for growth and reproduction', 'units': 'g/yr'},
    )
    ds['reproduction_rate'] = domain.init_array(
        grid,
        name='reproduction_rate',
        attrs={'long_name': 'Energy invested in reproduction', 'units': 'g/yr'},
    )
    ds['growth_rate'] = domain.init_array(
        grid,
        name='growth_rate',
        attrs={'long_name': 'Somatic growth', 'units': 'g/yr'},
    )
    ds['external_mortality'] = domain.init_array(
        grid,
        name='external_mortality',
        attrs={'long_name': 'External mortality', 'units': '1/yr'},
    )
    ds['external_mortality'].data[:] = params.external_mortality
    ds['predation_mortality'] = domain.init_array(
        grid,
        name='predation_mortality',
        attrs={'long_name': 'Predation (cannibalism) mortality', 'units': '1/yr'},
    )
    ds['total_mortality'] = domain.init_array(
        grid,
        name='total_mortality',
        attrs={'long_name': 'Total mortality', 'units': '1/yr'},
    )
    ds['resource_mortality'] = domain.init_array(
        grid,
        name='resource_mortality',
        full=True,
        attrs={'long_name': 'Predation mortality imposed by the consumer', 'units': '1/yr'},
    )
    ds['recruitment_flux'] = xr.DataArray(
        0.0,
        name='recruitment_flux',
        attrs={'long_name': 'Flux of individuals into the smallest size bin', 'units': '1/yr'},
    )
    return ds
