import numpy as np
import pytest

import sizespec

from . import conftest

params = conftest.get_coarse_params()
n_init = conftest.initial_abundance(params)


def test_projection_output():
    state = sizespec.project(params, n_init, 0.05)
    grid = params.grid

    assert isinstance(state, sizespec.simulation_state)
    assert state.n.dims == ('time', 'w')
    assert state.n_pp.dims == ('time', 'w_full')
    assert state.n.shape == (6, grid.n_w)
    assert state.n_pp.shape == (6, grid.n_w_full)
    np.testing.assert_allclose(state.time, np.arange(6) * 0.01, atol=1e-12)
    assert state.t_start == 0.0
    np.testing.assert_allclose(state.t_final, 0.05)

    # initial condition is recorded, resource starts at capacity
    assert (state.n.data[0, :] == n_init).all()
    assert (state.n_pp.data[0, :] == params.resource_equilibrium()).all()
    assert np.isfinite(state.n).all()
    assert (state.n >= 0.0).all()


def test_projection_final_snapshot_off_save_grid():
    state = sizespec.project(params, n_init, 0.025)
    np.testing.assert_allclose(state.time, [0.0, 0.01, 0.02, 0.025], atol=1e-12)


def test_projection_zero_length():
    state = sizespec.project(params, n_init, 0.0)
    assert len(state.time) == 1
    assert (state.n.data[0, :] == n_init).all()


def test_projection_status():
    proj = sizespec.projection(params, n_init, 0.01)
    assert proj.status == 'not-started'
    state = proj.run()
    assert proj.status == 'completed'
    assert proj.state is state

    with pytest.raises(AssertionError):
        proj.run()


def test_projection_verbose(capsys):
    sizespec.project(params, n_init, 0.002, verbose=True)
    captured = capsys.readouterr()
    assert 'Starting' in captured.out
    assert 'Finished' in captured.out


def test_negative_initial_state():
    """invalid initial conditions fail before the first step"""
    n_bad = n_init.copy()
    n_bad[5] = -1.0
    proj = sizespec.projection(params, n_bad, 0.01)
    with pytest.raises(sizespec.NumericalInstability) as excinfo:
        proj.run()
    assert excinfo.value.step == 0
    assert excinfo.value.last_state is None
    assert proj.status == 'failed'


def test_nonfinite_initial_resource():
    n_pp_bad = params.resource_equilibrium()
    n_pp_bad[0] = np.nan
    with pytest.raises(sizespec.NumericalInstability) as excinfo:
        sizespec.project(params, n_init, 0.01, n_pp=n_pp_bad)
    assert excinfo.value.step == 0


def test_large_time_step_fails():
    """a time step far beyond the stability limit is detected"""
    with pytest.raises(sizespec.NumericalInstability) as excinfo:
        sizespec.project(params, n_init, 5.0, dt=0.5, t_save=0.5)

    exc = excinfo.value
    assert isinstance(exc, ArithmeticError)
    assert exc.step >= 1
    assert exc.last_state is not None
    assert exc.last_state.t_final < exc.time
    assert np.isfinite(exc.last_state.n).all()
    assert (exc.last_state.n >= 0.0).all()


def test_timeout():
    proj = sizespec.projection(params, n_init, 1.0, timeout=0.0)
    with pytest.raises(sizespec.SimulationTimeout):
        proj.run()
    assert proj.status == 'failed'


@pytest.mark.parametrize('regime', ['none', 'red-noise', 'periodic-resample'])
def test_chained_projection_matches_single(regime):
    """splitting a projection does not change the trajectory"""
    forcing = {'regime': regime, 'seed': 1234, 'resample_interval': 0.02}
    params_rs = conftest.get_coarse_params(plankton_forcing=forcing)

    rs_single = params_rs.new_random_state()
    single = sizespec.project(params_rs, n_init, 0.15, random_state=rs_single)

    rs_chain = params_rs.new_random_state()
    first = sizespec.project(params_rs, n_init, 0.05, random_state=rs_chain)
    second = sizespec.project(params_rs, first, 0.1, random_state=rs_chain)

    np.testing.assert_allclose(second.t_start, 0.05)
    np.testing.assert_allclose(second.t_final, 0.15)
    assert (second.n.data[-1, :] == single.n.data[-1, :]).all()
    assert (second.n_pp.data[-1, :] == single.n_pp.data[-1, :]).all()
    assert rs_chain.factor == rs_single.factor

    combined = sizespec.concat([first, second])
    assert len(combined.time) == len(single.time)
    np.testing.assert_allclose(combined.time, single.time, atol=1e-12)
    assert (combined.n.data == single.n.data).all()


def test_resume_does_not_modify_previous():
    first = sizespec.project(params, n_init, 0.02)
    n_final = first.n.data[-1, :].copy()
    sizespec.project(params, first, 0.02)
    assert (first.n.data[-1, :] == n_final).all()


def test_t_start_override():
    state = sizespec.project(params, n_init, 0.02, t_start=5.0)
    np.testing.assert_allclose(state.t_start, 5.0)
    np.testing.assert_allclose(state.t_final, 5.02)
