import numpy as np
import xarray as xr

from .errors import InvalidGridSpec


def build_grid(w_min, w_inf, dx):
    """Return log-spaced body masses and bin widths.

    Parameters
    ----------

    w_min : float
      Smallest body mass; ``w[0] == w_min``.

    w_inf : float
      Asymptotic body mass; the grid stops below it.

    dx : float
      Spacing in natural-log mass.

    Returns
    -------

    w, dw : numpy.ndarray
      Bin masses and widths, ``dw[i] = w[i + 1] - w[i]``.
    """
    for name, value in [('w_min', w_min), ('w_inf', w_inf), ('dx', dx)]:
        if not np.isfinite(value) or value <= 0.0:
            raise InvalidGridSpec(f'{name} must be positive and finite, received {value}')
    if w_inf <= w_min:
        raise InvalidGridSpec(f'w_inf ({w_inf}) must exceed w_min ({w_min})')

    n_w = int(round(np.log(w_inf / w_min) / dx))
    if n_w < 2:
        raise InvalidGridSpec(f'grid has {n_w} bins; decrease dx or widen [w_min, w_inf]')

    w = w_min * np.exp(dx * np.arange(n_w))
    dw = w * np.expm1(dx)
    return w, dw


class size_grid(object):
    """Consumer and resource size grids.

    The full grid ``w_full`` extends the consumer grid ``w`` below ``w_min``
    down to ``w_pp_min`` with the same log spacing, so that
    ``w_full[ndx_consumer:] == w``.
    """

    def __init__(self, w_min, w_inf, dx, w_pp_min=None):
        self.w, self.dw = build_grid(w_min, w_inf, dx)
        self.dx = dx
        self.w_min = w_min
        self.w_inf = w_inf

        if w_pp_min is None:
            w_pp_min = w_min
        if not np.isfinite(w_pp_min) or w_pp_min <= 0.0:
            raise InvalidGridSpec(f'w_pp_min must be positive and finite, received {w_pp_min}')
        if w_pp_min > w_min:
            raise InvalidGridSpec(f'w_pp_min ({w_pp_min}) must not exceed w_min ({w_min})')

        self.ndx_consumer = int(np.ceil(np.log(w_min / w_pp_min) / dx - 1e-9))
        self.n_w = len(self.w)
        self.n_w_full = self.ndx_consumer + self.n_w

        self.w_full = w_min * np.exp(dx * np.arange(-self.ndx_consumer, self.n_w))
        self.w_full[self.ndx_consumer :] = self.w
        self.dw_full = self.w_full * np.expm1(dx)
        self.w_pp_min = self.w_full[0]

    def __repr__(self):
        return (
            f'size_grid: {self.n_w} consumer bins [{self.w[0]:g}, {self.w[-1]:g}], '
            f'{self.n_w_full} total bins from {self.w_full[0]:g}'
        )

    @property
    def ppmr(self):
        """Predator:prey mass ratio for each ratio index of the full grid."""
        return self.w_full / self.w_full[0]

    def on_full_grid(self, data):
        """Return consumer-grid `data` placed on the full grid (zero below ``w_min``)."""
        assert np.shape(data) == (self.n_w,), 'data has the wrong dimensions'
        full = np.zeros(self.n_w_full)
        full[self.ndx_consumer :] = data
        return full


def init_array(grid, name=None, constant=None, attrs={}, full=False):
    """return initialized array"""
    x = constant if constant is not None else 0.0
    if full:
        return xr.DataArray(
            np.ones((grid.n_w_full,)) * x,
            dims=('w_full',),
            coords={'w_full': grid.w_full},
            attrs=attrs,
            name=name,
        )
    return xr.DataArray(
        np.ones((grid.n_w,)) * x,
        dims=('w',),
        coords={'w': grid.w},
        attrs=attrs,
        name=name,
    )


def init_array_time(grid, time, name=None, attrs={}, full=False):
    """return initialized array with a leading time dimension"""
    dim = 'w_full' if full else 'w'
    coord = grid.w_full if full else grid.w
    return xr.DataArray(
        np.zeros((len(time), len(coord))),
        dims=('time', dim),
        coords={'time': time, dim: coord},
        attrs=attrs,
        name=name,
    )
