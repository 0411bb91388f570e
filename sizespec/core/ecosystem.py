import numpy as np

from .errors import ConfigurationError, DegenerateKernel

_mortality_type_keys = [
    'none',
    'constant',
    'power-law-senescence',
    'custom',
]
mortality_types = {k: i for i, k in enumerate(_mortality_type_keys)}

_resource_dynamics_keys = [
    'logistic',
]
resource_dynamics_types = {k: i for i, k in enumerate(_resource_dynamics_keys)}


def feeding_kernel(ppmr, ppmr_min, ppmr_max):
    """Return the feeding kernel as a function of predator:prey mass ratio.

    The kernel is a box over ``[ppmr_min, ppmr_max]`` normalized so that its
    integral over log(ppmr) is one. The weight at ratio index 0 (prey the
    size of the predator) is always zero.

    Parameters
    ----------

    ppmr : array_like
      Predator:prey mass ratios, uniformly spaced in log; ``ppmr[0] == 1``.

    ppmr_min, ppmr_max : float
      Bounds of the feeding window.

    Returns
    -------

    weights : numpy.ndarray
      Kernel weight for each ratio index.
    """
    ppmr = np.asarray(ppmr, dtype=float)
    assert len(ppmr) > 1, 'ppmr must have at least two entries'

    ppmr_min = max(ppmr_min, 1.0)
    if ppmr_max <= ppmr_min:
        raise DegenerateKernel(f'empty feeding window: ppmr_max ({ppmr_max}) <= ppmr_min ({ppmr_min})')

    weights = np.where((ppmr >= ppmr_min) & (ppmr <= ppmr_max), 1.0, 0.0)
    weights[0] = 0.0

    total = weights.sum()
    if total == 0.0:
        raise DegenerateKernel(
            f'no grid ratio lies within [{ppmr_min}, {ppmr_max}]; refine dx or widen the window'
        )

    dl = np.log(ppmr[1]) - np.log(ppmr[0])
    return weights / (total * dl)


def kernel_support(weights):
    """Return the first and last ratio index with nonzero kernel weight."""
    ndx = np.nonzero(weights)[0]
    if len(ndx) == 0:
        raise DegenerateKernel('feeding kernel has no support')
    return int(ndx[0]), int(ndx[-1])


def maturity_ogive(w, w_mat, rho_m):
    """Fraction of individuals mature at size `w`."""
    return 1.0 / (1.0 + (w / w_mat) ** (-rho_m))


class species_type(object):
    """
    Parameterization of the consumer species.

    Parameters
    ----------

    grid : sizespec.core.domain.size_grid
      Size grid on which to evaluate size-dependent terms.

    name : str
      Species name.

    ppmr_min, ppmr_max : float
      Predator:prey mass ratio window of the feeding kernel.

    gamma, q : float
      Search volume coefficient and exponent, ``gamma * w**q``.

    alpha : float
      Assimilation efficiency.

    K, p : float
      Metabolic cost coefficient and exponent, ``K * w**p``.

    h, n : float
      Maximum intake coefficient and exponent, ``h * w**n``; ``h = inf``
      disables satiation.

    w_mat, rho_m : float
      Maturation size and steepness of the maturity ogive.

    rho_inf : float
      Exponent of the allocation to reproduction, ``(w / w_inf)**rho_inf``.

    epsilon_R : float
      Reproductive efficiency.

    sex_ratio : float
      Fraction of the reproductive output producing eggs.

    interaction : float
      Strength of cannibalism.
    """

    def __init__(
        self,
        grid,
        name,
        ppmr_min,
        ppmr_max,
        gamma,
        q,
        alpha,
        K,
        p,
        h,
        n,
        w_mat,
        rho_m,
        rho_inf,
        epsilon_R,
        sex_ratio,
        interaction,
    ):
        assert (0.0 <= alpha) and (alpha <= 1.0), 'alpha must be between 0. and 1.'
        assert (0.0 <= epsilon_R) and (epsilon_R <= 1.0), 'epsilon_R must be between 0. and 1.'
        assert (0.0 <= sex_ratio) and (sex_ratio <= 1.0), 'sex_ratio must be between 0. and 1.'
        assert gamma >= 0.0, 'gamma must be non-negative'
        assert h > 0.0, 'h must be positive'

        self.name = name
        self.ppmr_min = ppmr_min
        self.ppmr_max = ppmr_max
        self.gamma = gamma
        self.q = q
        self.alpha = alpha
        self.K = K
        self.p = p
        self.h = h
        self.n = n
        self.w_mat = w_mat
        self.rho_m = rho_m
        self.rho_inf = rho_inf
        self.epsilon_R = epsilon_R
        self.sex_ratio = sex_ratio
        self.interaction = interaction
        self.w_min = grid.w_min
        self.w_inf = grid.w_inf

        w = grid.w
        self.search_volume = gamma * w**q
        self.metabolism = K * w**p
        self.intake_max = h * w**n
        self.maturity = maturity_ogive(w, w_mat, rho_m)
        self.repro_allocation = np.clip(self.maturity * (w / grid.w_inf) ** rho_inf, 0.0, 1.0)

    def __repr__(self):
        return f'{self.name}: w_mat = {self.w_mat}, interaction = {self.interaction}'

    @property
    def satiation(self):
        """Return `True` if intake saturates (finite ``h``)."""
        return np.isfinite(self.h)


class resource_type(object):
    """Data structure containing plankton resource parameters.

    Growth rate ``r0 * w**(rho - 1)``, carrying capacity ``a0 * w**-lambda``
    and immigration ``i0 * w**-lambda``; capacity and immigration vanish
    above ``w_pp_cutoff``.
    """

    def __init__(self, grid, dynamics, r0, rho, a0, i0, w_pp_cutoff, **kwargs):
        if dynamics not in resource_dynamics_types:
            raise ConfigurationError(f'Unknown resource dynamics: {dynamics}')

        # `lambda` is reserved in python
        lambda_ = kwargs.pop('lambda')
        if kwargs:
            raise ConfigurationError(f'unknown parameters: {kwargs}')

        self.dynamics_key = dynamics
        self.dynamics = resource_dynamics_types[dynamics]
        self.r0 = r0
        self.rho = rho
        self.a0 = a0
        self.lambda_ = lambda_
        self.i0 = i0
        self.w_pp_cutoff = w_pp_cutoff

        w = grid.w_full
        below_cutoff = w <= w_pp_cutoff
        self.resource_rate = r0 * w ** (rho - 1.0)
        self.resource_capacity = np.where(below_cutoff, a0 * w ** (-lambda_), 0.0)
        self.immigration = np.where(below_cutoff, i0 * w ** (-lambda_), 0.0)
