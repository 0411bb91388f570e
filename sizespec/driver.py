import time

import numpy as np
import xarray as xr

from .core import domain, process, settings as settings_mod
from .core.errors import NumericalInstability, SimulationTimeout
from .core.interface import model_params, spectrum_instance_type


def _read_settings(settings_in):
    """Return default settings updated from a dict or a YAML file."""
    return settings_mod.read(settings_in)


class simulation_state(object):
    """Trajectory of a projection.

    Parameters
    ----------

    ds : xarray.Dataset
      Dataset with ``n(time, w)`` and ``n_pp(time, w_full)``.

    params : sizespec.core.interface.model_params
      Parameters that produced the trajectory.
    """

    def __init__(self, ds, params):
        assert 'n' in ds and 'n_pp' in ds, 'dataset must contain n and n_pp'
        self.ds = ds
        self.params = params

    def __repr__(self):
        return f'simulation_state: {len(self.time)} snapshots, t = [{self.t_start:g}, {self.t_final:g}]'

    @property
    def n(self):
        return self.ds.n

    @property
    def n_pp(self):
        return self.ds.n_pp

    @property
    def time(self):
        return self.ds.time

    @property
    def t_start(self):
        return float(self.ds.time[0])

    @property
    def t_final(self):
        return float(self.ds.time[-1])

    def final(self):
        """Return copies of the final consumer and resource densities."""
        return self.ds.n.data[-1, :].copy(), self.ds.n_pp.data[-1, :].copy()


def _init_state_dataset(grid, time_coord):
    """Return an xarray.Dataset to hold snapshots at `time_coord`."""
    time_coord = xr.DataArray(
        time_coord, dims='time', attrs={'long_name': 'Model time', 'units': 'yr'}
    )
    ds = xr.Dataset(
        coords=dict(
            time=time_coord,
            w=grid.w,
            w_full=grid.w_full,
        ),
    )
    ds['dw'] = xr.DataArray(grid.dw, dims='w', attrs={'long_name': 'Bin width', 'units': 'g'})
    ds['dw_full'] = xr.DataArray(
        grid.dw_full, dims='w_full', attrs={'long_name': 'Bin width', 'units': 'g'}
    )
    ds['n'] = domain.init_array_time(
        grid,
        time_coord,
        name='n',
        attrs={'long_name': 'Consumer abundance density', 'units': '1/g'},
    )
    ds['n_pp'] = domain.init_array_time(
        grid,
        time_coord,
        name='n_pp',
        full=True,
        attrs={'long_name': 'Resource abundance density', 'units': '1/g'},
    )
    return ds


class projection(object):
    def __init__(
        self,
        params,
        initial_state,
        t_max,
        dt=None,
        t_save=None,
        random_state=None,
        n_pp=None,
        t_start=None,
        timeout=None,
        verbose=False,
    ):
        """Integrate the size-spectrum model forward in time.

        Parameters
        ----------

        params : sizespec.core.interface.model_params
          Model parameters.

        initial_state : array_like or simulation_state
          Consumer abundance density, or a previous trajectory whose final
          snapshot seeds this one.

        t_max : float
          Length of the projection (model time).

        dt : float, optional
          Time step; defaults to ``params.dt``.

        t_save : float, optional
          Interval between snapshots; defaults to ``params.t_save``.

        random_state : sizespec.core.forcing.plankton_random_state, optional
          Stochastic resource forcing; defaults to a new state configured
          from ``params``. Mutated by the projection.

        n_pp : array_like, optional
          Initial resource density; defaults to the final snapshot of
          `initial_state` or to the resource carrying capacity.

        t_start : float, optional
          Model time of the initial condition.

        timeout : float, optional
          Wall-clock limit in seconds.

        verbose : boolean, optional
          Print progress.
        """
        assert isinstance(params, model_params), 'params must be a model_params instance'
        self.params = params
        self.dt = params.dt if dt is None else dt
        self.t_save = params.t_save if t_save is None else t_save
        assert self.dt > 0.0, 'dt must be positive'
        assert self.t_save > 0.0, 't_save must be positive'
        assert t_max >= 0.0, 't_max must be non-negative'

        self.random_state = params.new_random_state() if random_state is None else random_state
        self.timeout = timeout
        self.verbose = verbose

        if isinstance(initial_state, simulation_state):
            n_init, n_pp_init = initial_state.final()
            t_init = initial_state.t_final
        else:
            n_init = np.array(initial_state, dtype=float)
            n_pp_init = None
            t_init = 0.0

        if n_pp is not None:
            n_pp_init = np.array(n_pp, dtype=float)
        elif n_pp_init is None:
            n_pp_init = params.resource_equilibrium()

        self.n = n_init
        self.n_pp = n_pp_init
        self.t_start = t_init if t_start is None else t_start

        self.nt = int(round(t_max / self.dt))
        self.save_every = max(int(round(self.t_save / self.dt)), 1)
        self.obj = spectrum_instance_type(params)
        self.status = 'not-started'
        self.state = None

    def _init_output_arrays(self):
        """Create self._ds holding a snapshot every `save_every` steps and at the end."""
        self._save_steps = list(range(0, self.nt + 1, self.save_every))
        if self._save_steps[-1] != self.nt:
            self._save_steps.append(self.nt)
        self._save_index = {step: i for i, step in enumerate(self._save_steps)}
        time_coord = self.t_start + np.array(self._save_steps) * self.dt
        self._ds = _init_state_dataset(self.params.grid, time_coord)

    def _post_data(self, step):
        if step in self._save_index:
            i = self._save_index[step]
            self._ds.n.data[i, :] = self.n
            self._ds.n_pp.data[i, :] = self.n_pp
            self._n_posted = i + 1

    def _partial_state(self, step):
        """Return the snapshots recorded so far plus the last valid state."""
        ds = self._ds.isel(time=slice(0, self._n_posted))
        if step > 0 and (step - 1) not in self._save_index:
            last = _init_state_dataset(self.params.grid, [self.t_start + (step - 1) * self.dt])
            last.n.data[0, :] = self._n_prev
            last.n_pp.data[0, :] = self._n_pp_prev
            ds = xr.concat([ds, last], dim='time', data_vars='minimal', coords='minimal')
        return simulation_state(ds.copy(deep=True), self.params)

    def _check_state(self, n, n_pp, step):
        """Raise ``NumericalInstability`` if `n` or `n_pp` is non-finite or negative."""
        tol = self.params.negative_tolerance
        for name, data in [('n', n), ('n_pp', n_pp)]:
            if not np.isfinite(data).all():
                reason = f'non-finite {name}'
            elif (data < -tol).any():
                reason = f'negative {name} (min {data.min():g}) at w = {self._bad_mass(name, data, tol):g}'
            else:
                continue
            self.status = 'failed'
            last_state = self._partial_state(step) if self._n_posted else None
            raise NumericalInstability(
                f'{reason}; reduce dt', step, self.t_start + step * self.dt, last_state
            )

    def _bad_mass(self, name, data, tol):
        w = self.params.grid.w if name == 'n' else self.params.grid.w_full
        return w[np.argmax(data < -tol)]

    def _step(self):
        """Advance consumer and resource by one time step."""
        rates = self.obj.compute_rates(self.n, self.n_pp)

        n_new = process.step_consumer(
            self.n,
            rates.growth_rate.data,
            rates.total_mortality.data,
            self.obj.recruitment_flux,
            self.params.grid.dw,
            self.dt,
        )
        n_pp_new = process.step_resource(
            self.n_pp,
            rates.resource_mortality.data,
            self.params.resource.resource_rate,
            self.params.resource.resource_capacity,
            self.params.resource.immigration,
            self.dt,
            self.random_state,
        )
        return n_new, n_pp_new

    def _solve_upwind_euler(self):
        """use forward-euler in time and upwind differences in size"""
        steps_per_year = max(int(round(1.0 / self.dt)), 1)
        wallclock_start = time.monotonic()

        for step in range(1, self.nt + 1):
            if self.verbose and (step - 1) % steps_per_year == 0:
                year = self.t_start + (step - 1) * self.dt
                print(f'Starting year {year:g} integration at {time.strftime("%H:%M:%S")}')

            self._n_prev, self._n_pp_prev = self.n, self.n_pp
            n_new, n_pp_new = self._step()
            self._check_state(n_new, n_pp_new, step)
            self.n, self.n_pp = n_new, n_pp_new
            self._post_data(step)

            if self.timeout is not None and time.monotonic() - wallclock_start > self.timeout:
                self.status = 'failed'
                raise SimulationTimeout(
                    f'projection exceeded {self.timeout} s at step {step} of {self.nt}'
                )

    def run(self):
        """Integrate the model and return a ``simulation_state``."""
        assert self.status == 'not-started', f'projection is {self.status}'
        assert np.shape(self.n) == (self.params.grid.n_w,), 'initial n has the wrong dimensions'
        assert np.shape(self.n_pp) == (
            self.params.grid.n_w_full,
        ), 'initial n_pp has the wrong dimensions'

        if self.verbose:
            print(f'Starting {self.nt} steps of dt = {self.dt:g} at {time.strftime("%H:%M:%S")}')

        self.status = 'running'
        self._n_posted = 0
        self._init_output_arrays()
        self._check_state(self.n, self.n_pp, 0)
        self._post_data(0)

        self._solve_upwind_euler()

        self.status = 'completed'
        self.state = simulation_state(self._ds, self.params)
        if self.verbose:
            print(f'Finished integration at {time.strftime("%H:%M:%S")}')
        return self.state


def project(
    params,
    initial_state,
    t_max,
    dt=None,
    t_save=None,
    random_state=None,
    **kwargs,
):
    """Project the size-spectrum model forward in time.

    Parameters
    ----------

    params : sizespec.core.interface.model_params
      Model parameters.

    initial_state : array_like or simulation_state
      Consumer abundance density or a previous trajectory to continue.

    t_max : float
      Length of the projection.

    dt, t_save : float, optional
      Time step and snapshot interval; default to ``params``.

    random_state : sizespec.core.forcing.plankton_random_state, optional
      Resource forcing state, shared across chained calls.

    kwargs : dict
      Passed to ``projection`` (``n_pp``, ``t_start``, ``timeout``, ``verbose``).

    Returns
    -------

    state : simulation_state
      Snapshots from ``t_start`` to ``t_start + t_max``.

    Examples
    --------

    Warm up for 10 years, then continue for 30::

      >>> params = sizespec.build_model()
      >>> rs = params.new_random_state()
      >>> warm = sizespec.project(params, 0.001 * params.grid.w**-1.8, 10.0, random_state=rs)
      >>> run = sizespec.project(params, sizespec.rescale_abundance(warm, 1e-7), 30.0, random_state=rs)
    """
    return projection(params, initial_state, t_max, dt, t_save, random_state, **kwargs).run()


def concat(states):
    """Concatenate chained trajectories, dropping repeated snapshot times."""
    ds_list = [states[0].ds]
    for state in states[1:]:
        ds = state.ds
        if float(ds.time[0]) == float(ds_list[-1].time[-1]):
            ds = ds.isel(time=slice(1, None))
        ds_list.append(ds)
    ds = xr.concat(ds_list, dim='time', data_vars='minimal', coords='minimal', compat='override')
    return simulation_state(ds, states[-1].params)
