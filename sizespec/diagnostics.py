import numpy as np
import xarray as xr

from .core.interface import spectrum_instance_type
from .driver import simulation_state


def _select_time(da, time):
    if time is None:
        return da
    return da.sel(time=time, method='nearest')


def total_biomass(state, w_lo=None, w_hi=None, time=None):
    """Return consumer biomass within ``[w_lo, w_hi]``.

    Parameters
    ----------

    state : sizespec.driver.simulation_state
      A trajectory.

    w_lo, w_hi : float, optional
      Size range; defaults to the whole grid.

    time : float, optional
      Return the value at the snapshot nearest `time`; by default the
      whole time series is returned.
    """
    ds = state.ds
    w = ds.w
    in_range = xr.ones_like(w, dtype=bool)
    if w_lo is not None:
        in_range = in_range & (w >= w_lo)
    if w_hi is not None:
        in_range = in_range & (w <= w_hi)

    biomass = (ds.n * w * ds.dw).where(in_range, 0.0).sum('w')
    biomass.attrs = {'long_name': 'Consumer biomass', 'units': 'g'}
    return _select_time(biomass.rename('biomass'), time)


def spawning_stock_biomass(state):
    """Return the biomass of mature individuals as a time series."""
    ds = state.ds
    maturity = xr.DataArray(state.params.species.maturity, dims='w', coords={'w': ds.w})
    ssb = (maturity * ds.n * ds.w * ds.dw).sum('w')
    ssb.attrs = {'long_name': 'Spawning-stock biomass', 'units': 'g'}
    return ssb.rename('ssb')


def death_rates(state, time=None):
    """Return external, predation and total mortality at a snapshot.

    Parameters
    ----------

    state : sizespec.driver.simulation_state
      A trajectory.

    time : float, optional
      Snapshot time (nearest is used); defaults to the final snapshot.
    """
    ds = state.ds
    if time is None:
        time = float(ds.time[-1])
    snapshot = ds.sel(time=time, method='nearest')

    obj = spectrum_instance_type(state.params)
    rates = obj.compute_rates(snapshot.n.data, snapshot.n_pp.data)
    return rates[['external_mortality', 'predation_mortality', 'total_mortality']].assign_coords(
        time=snapshot.time
    ).copy(deep=True)


def rescale_abundance(state, factor, time=None):
    """Return a single-snapshot ``simulation_state`` with ``n`` multiplied by `factor`.

    The resource density is carried over unchanged and `state` is not
    modified. Use the result as the initial condition of a new projection,
    e.g., to emulate a collapse of the population.

    Parameters
    ----------

    state : sizespec.driver.simulation_state
      A trajectory.

    factor : float
      Multiplier applied to the consumer abundance density.

    time : float, optional
      Snapshot to rescale (nearest is used); defaults to the final snapshot.
    """
    assert np.isfinite(factor) and factor >= 0.0, 'factor must be non-negative'
    ds = state.ds
    if time is None:
        ds_t = ds.isel(time=[-1])
    else:
        ds_t = ds.sel(time=[time], method='nearest')

    ds_t = ds_t.copy(deep=True)
    ds_t['n'] = ds_t.n * factor
    ds_t['n'].attrs = ds.n.attrs
    return simulation_state(ds_t, state.params)
