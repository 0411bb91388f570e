import numpy as np

from .errors import ConfigurationError

_regime_keys = [
    'none',
    'periodic-resample',
    'red-noise',
]
regime_types = {k: i for i, k in enumerate(_regime_keys)}

# elapsed-time comparisons are made within this tolerance
_time_eps = 1e-9


class plankton_random_state(object):
    """Stochastic multiplier on the resource carrying capacity.

    An instance belongs to one scenario: pass the same object to successive
    ``project`` calls to continue its stream, and call ``reset`` (or create a
    new instance) when starting an independent scenario.

    Parameters
    ----------

    regime : str
      One of ``'none'``, ``'periodic-resample'``, ``'red-noise'``.

    resample_interval : float
      Model time between draws in the ``periodic-resample`` regime.

    factor_min, factor_max : float
      Bounds of the log-uniform draw in the ``periodic-resample`` regime.

    phi : float, optional
      Autocorrelation of log(factor) per step in the ``red-noise`` regime;
      defaults to ``1 - 0.5 * dt``.

    sigma : float, optional
      Standard deviation of the log(factor) innovation per step in the
      ``red-noise`` regime; defaults to ``10 * dt``.

    seed : int, optional
      Seed for the random number generator.

    Examples
    --------

    Chain a warm-up and a perturbed run under red noise::

        rs = plankton_random_state('red-noise', seed=42)
        warm = sizespec.project(params, n0, 10.0, 0.001, 0.1, rs)
        run = sizespec.project(params, warm, 30.0, 0.001, 0.1, rs)
    """

    def __init__(
        self,
        regime='none',
        resample_interval=0.5,
        factor_min=0.5,
        factor_max=2.0,
        phi=None,
        sigma=None,
        seed=None,
    ):
        if regime not in regime_types:
            raise ConfigurationError(f'Unknown plankton forcing regime: {regime}')
        assert resample_interval > 0.0, 'resample_interval must be positive'
        assert (0.0 < factor_min) and (factor_min <= factor_max), 'invalid factor bounds'
        assert sigma is None or sigma >= 0.0, 'sigma must be non-negative'

        self.regime_key = regime
        self.regime = regime_types[regime]
        self.resample_interval = resample_interval
        self.factor_min = factor_min
        self.factor_max = factor_max
        self.phi = phi
        self.sigma = sigma
        self.seed = seed
        self.reset()

    @classmethod
    def from_settings(cls, forcing_settings):
        """Construct from the ``plankton_forcing`` settings section."""
        return cls(**forcing_settings)

    def __repr__(self):
        return (
            f'plankton_random_state: {self.regime_key}, factor = {self.factor:g}, '
            f'elapsed = {self.elapsed:g}'
        )

    def reset(self):
        """Return to the initial condition and restart the random stream."""
        self.elapsed = 0.0
        self.factor = 1.0
        self.rng = np.random.default_rng(self.seed)

    def update(self, dt):
        """Advance by one step of length `dt` and return the current factor."""
        if self.regime == regime_types['none']:
            return self.factor

        elif self.regime == regime_types['periodic-resample']:
            self.elapsed += dt
            if self.elapsed >= self.resample_interval - _time_eps:
                self.factor = np.exp(
                    self.rng.uniform(np.log(self.factor_min), np.log(self.factor_max))
                )
                self.elapsed = 0.0

        elif self.regime == regime_types['red-noise']:
            phi = 1.0 - 0.5 * dt if self.phi is None else self.phi
            sigma = 10.0 * dt if self.sigma is None else self.sigma
            self.factor = self.factor**phi * np.exp(self.rng.normal(0.0, sigma))
            self.elapsed += dt

        return self.factor
