import numpy as np

from . import ecosystem
from .errors import ConfigurationError


def power_law_senescence_mortality(w, w_min, mu_0, rho_b, w_s, rho_s, mu_s, mu_l, w_l, rho_l):
    """Return external mortality combining background, senescent and larval terms.

    Parameters
    ----------

    w : array_like
      Consumer body masses.

    w_min : float
      Reference mass of the background term.

    mu_0, rho_b : float
      Background mortality ``mu_0 * (w / w_min)**rho_b`` for ``w <= w_s``.

    w_s, rho_s : float
      Onset and exponent of senescent mortality ``mu_s * (w / w_s)**rho_s``
      for ``w >= w_s``; the senescent branch is used at ``w == w_s``.

    mu_s : float
      Senescent mortality at ``w_s`` used when ``mu_0 == 0`` or no bin lies
      at or below ``w_s``. Otherwise ``mu_s`` is the minimum of the
      background term, which keeps the mortality continuous.

    mu_l, w_l, rho_l : float
      Larval mortality ``mu_l / (1 + (w / w_l)**rho_l)``, added everywhere.
    """
    w = np.asarray(w, dtype=float)
    mu = np.zeros_like(w)

    background = w <= w_s
    mu[background] = mu_0 * (w[background] / w_min) ** rho_b

    if mu_0 > 0.0 and background.any():
        mu_s = mu[background].min()
    elif mu_s is None:
        raise ConfigurationError('mu_s is required when mu_0 == 0 or w_s < w_min')

    senescent = w >= w_s
    mu[senescent] = mu_s * (w[senescent] / w_s) ** rho_s

    return mu + mu_l / (1.0 + (w / w_l) ** rho_l)


def compute_external_mortality(w, w_min, mortality_type, mortality_params):
    """Return the external mortality vector for `mortality_type`.

    Parameters
    ----------

    w : array_like
      Consumer body masses.

    w_min : float
      Smallest consumer mass.

    mortality_type : int
      Value from ``ecosystem.mortality_types``.

    mortality_params : dict
      The ``mortality`` settings section (without ``type``).
    """
    if mortality_type == ecosystem.mortality_types['none']:
        return np.zeros(len(w))

    elif mortality_type == ecosystem.mortality_types['constant']:
        return np.ones(len(w)) * mortality_params['mu_0']

    elif mortality_type == ecosystem.mortality_types['power-law-senescence']:
        return power_law_senescence_mortality(w, w_min, **mortality_params)

    elif mortality_type == ecosystem.mortality_types['custom']:
        raise ConfigurationError(
            "mortality type 'custom' takes its vector from set_external_mortality"
        )

    else:
        raise ConfigurationError(f'unknown mortality type {mortality_type}')


def _convolve_prey(weights, k_min, k_max, prey, ndx_consumer, n_w):
    """Sum prey over the kernel window of each consumer size.

    ``out[i] = sum_k weights[k] * prey[i + ndx_consumer - k]``
    """
    prey_pad = np.concatenate((np.zeros(k_max), prey))
    out = np.zeros(n_w)
    for k in range(k_min, k_max + 1):
        start = ndx_consumer + k_max - k
        out += weights[k] * prey_pad[start : start + n_w]
    return out


def _convolve_predators(weights, k_min, k_max, predators):
    """Sum predators over the kernel window of each prey size.

    ``out[m] = sum_k weights[k] * predators[m + k]``
    """
    n_full = len(predators)
    pred_pad = np.concatenate((predators, np.zeros(k_max)))
    out = np.zeros(n_full)
    for k in range(k_min, k_max + 1):
        out += weights[k] * pred_pad[k : k + n_full]
    return out


def compute_encounter(encounter_rate, n, n_pp, species, kernel, grid):
    """
    Compute the rate at which food mass is encountered.

    Parameters
    ----------

    encounter_rate : xarray.DataArray
      DataArray for storing the result of the computation.

    n : array_like
      Consumer abundance density.

    n_pp : array_like
      Resource abundance density on the full grid.

    species : sizespec.core.ecosystem.species_type
      Consumer parameters.

    kernel : sizespec.core.interface.kernel_type
      Feeding kernel.

    grid : sizespec.core.domain.size_grid
      Size grid.
    """
    prey = species.interaction * grid.on_full_grid(n) + n_pp
    prey_mass = prey * grid.w_full * grid.dw_full

    encounter_rate.data[:] = species.search_volume * _convolve_prey(
        kernel.weights,
        kernel.k_min,
        kernel.k_max,
        prey_mass,
        grid.ndx_consumer,
        grid.n_w,
    )


def compute_feeding_level(feeding_level, intake_rate, encounter_rate, species):
    """Compute feeding level and intake (Holling type II)."""
    if species.satiation:
        feeding_level.data[:] = encounter_rate.data / (encounter_rate.data + species.intake_max)
        intake_rate.data[:] = species.intake_max * feeding_level.data
    else:
        # no satiation: everything encountered is eaten
        feeding_level.data[:] = 0.0
        intake_rate.data[:] = encounter_rate.data


def compute_energy_avail(energy_avail_rate, intake_rate, species):
    """Compute energy available for growth and reproduction."""
    energy_avail_rate.data[:] = species.alpha * intake_rate.data - species.metabolism


def compute_reproduction(reproduction_rate, energy_avail_rate, species):
    """Compute the energy invested in reproduction."""
    reproduction_rate.data[:] = species.repro_allocation * np.maximum(energy_avail_rate.data, 0.0)


def compute_growth(growth_rate, energy_avail_rate, reproduction_rate):
    """Compute somatic growth; no negative growth."""
    growth_rate.data[:] = np.maximum(energy_avail_rate.data - reproduction_rate.data, 0.0)


def compute_recruitment(n, reproduction_rate, species, grid):
    """Return the flux of new individuals into the smallest size bin."""
    egg_mass = (reproduction_rate.data * n * grid.dw).sum()
    return species.epsilon_R * species.sex_ratio * egg_mass / grid.w_min


def compute_resource_mortality(resource_mortality, n, feeding_level, species, kernel, grid):
    """
    Compute the predation mortality imposed by the consumer on every size of
    the full grid.

    Parameters
    ----------

    resource_mortality : xarray.DataArray
      DataArray for storing the result of the computation.

    n : array_like
      Consumer abundance density.

    feeding_level : xarray.DataArray
      Feeding level of the consumer.
    """
    predators = (1.0 - feeding_level.data) * species.search_volume * n * grid.dw
    resource_mortality.data[:] = _convolve_predators(
        kernel.weights,
        kernel.k_min,
        kernel.k_max,
        grid.on_full_grid(predators),
    )


def compute_predation_mortality(predation_mortality, resource_mortality, species, grid):
    """Compute predation (cannibalism) mortality on the consumer."""
    predation_mortality.data[:] = (
        species.interaction * resource_mortality.data[grid.ndx_consumer :]
    )


def compute_total_mortality(total_mortality, external_mortality, predation_mortality):
    total_mortality.data[:] = external_mortality + predation_mortality.data


def step_consumer(n, growth_rate, total_mortality, recruitment_flux, dw, dt):
    """Advance the consumer abundance density by one upwind step.

    Parameters
    ----------

    n : array_like
      Consumer abundance density.

    growth_rate : array_like
      Somatic growth rate (transport velocity along the size axis).

    total_mortality : array_like
      Mortality rate (sink).

    recruitment_flux : float
      Flux of individuals entering the first bin.

    dw : array_like
      Bin widths.

    dt : float
      Time step.
    """
    flux_out = growth_rate * n
    flux_in = np.empty_like(flux_out)
    flux_in[0] = recruitment_flux
    flux_in[1:] = flux_out[:-1]
    return n + dt * ((flux_in - flux_out) / dw - total_mortality * n)


def step_resource(
    n_pp,
    resource_mortality,
    resource_rate,
    resource_capacity,
    immigration,
    dt,
    random_state,
):
    """Advance the resource abundance density by one step.

    Logistic growth toward ``resource_capacity * factor``, plus immigration,
    minus predation. ``factor`` is drawn from `random_state`, which is updated
    exactly once per call. Bins without capacity (``0 / 0``) stay at zero.
    """
    factor = random_state.update(dt)
    with np.errstate(divide='ignore', invalid='ignore'):
        tendency = (
            resource_rate * n_pp * (1.0 - n_pp / (resource_capacity * factor))
            + immigration
            - resource_mortality * n_pp
        )
        n_pp_new = n_pp + dt * tendency
    return np.where(np.isnan(n_pp_new), 0.0, n_pp_new)
