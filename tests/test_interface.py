import numpy as np
import pytest
import yaml

import sizespec
import sizespec.core.ecosystem as ecosystem

from . import conftest

settings_dict_def = sizespec.settings.get_defaults()

params = conftest.get_coarse_params()
n = conftest.initial_abundance(params)
n_pp = params.resource_equilibrium()


def test_build_model_defaults():
    params_def = sizespec.build_model()
    grid = params_def.grid

    assert params_def.dt == settings_dict_def['integration']['dt']
    assert params_def.t_save == settings_dict_def['integration']['t_save']
    assert params_def.interaction == 0.0
    assert params_def.mortality_type == ecosystem.mortality_types['power-law-senescence']
    assert params_def.external_mortality.shape == (grid.n_w,)
    assert params_def.resource.resource_rate.shape == (grid.n_w_full,)

    # resource grid reaches the smallest prey of the smallest consumer
    w_pp_min = grid.w_min / settings_dict_def['species']['ppmr_max']
    assert grid.w_full[0] <= w_pp_min * (1.0 + 1e-9)


def test_build_model_updates():
    params_upd = sizespec.build_model({'mortality': {'type': 'none'}, 'grid': {'dx': 0.2}})
    assert (params_upd.external_mortality == 0.0).all()
    assert params_upd.grid.dx == 0.2


@pytest.mark.parametrize(
    'updates, error',
    [
        ({'plankton_forcing': {'regime': 'blue-noise'}}, sizespec.ConfigurationError),
        ({'mortality': {'type': 'fishing'}}, sizespec.ConfigurationError),
        ({'resource': {'dynamics': 'semi-chemostat'}}, sizespec.ConfigurationError),
        ({'species': {'ppmr_min': 100.0, 'ppmr_max': 100.0}}, sizespec.DegenerateKernel),
        ({'grid': {'w_min': 1.0, 'w_inf': 0.1}}, sizespec.InvalidGridSpec),
        ({'grid': {'dx': 0.0}}, sizespec.InvalidGridSpec),
    ],
)
def test_build_model_errors(updates, error):
    with pytest.raises(error):
        sizespec.build_model(updates)


def test_set_external_mortality():
    mortality = np.linspace(0.1, 1.0, params.grid.n_w)
    params_new = sizespec.set_external_mortality(params, mortality)

    assert (params_new.external_mortality == mortality).all()
    assert params_new.mortality_type == ecosystem.mortality_types['custom']
    assert params.mortality_type == ecosystem.mortality_types['power-law-senescence']
    assert not np.array_equal(params.external_mortality, mortality)

    params_scalar = sizespec.set_external_mortality(params, 0.3)
    assert (params_scalar.external_mortality == 0.3).all()

    with pytest.raises(AssertionError):
        sizespec.set_external_mortality(params, np.ones(params.grid.n_w + 1))


def test_set_interaction():
    params_new = sizespec.set_interaction(params, 0.5)
    assert params_new.interaction == 0.5
    assert params.interaction == 0.0
    assert params_new.species is not params.species

    assert sizespec.set_interaction(params, [[0.25]]).interaction == 0.25


@pytest.mark.parametrize('interaction', [np.ones((2, 2)), [0.5, 0.5], -1.0, np.nan])
def test_set_interaction_invalid(interaction):
    with pytest.raises(sizespec.ConfigurationError):
        sizespec.set_interaction(params, interaction)


def test_set_resource_growth_rate():
    rate = np.full(params.grid.n_w_full, 2.5)
    params_new = sizespec.set_resource_growth_rate(params, rate)
    assert (params_new.resource.resource_rate == 2.5).all()
    assert not (params.resource.resource_rate == 2.5).all()
    assert params_new.resource.resource_capacity is params.resource.resource_capacity

    with pytest.raises(AssertionError):
        sizespec.set_resource_growth_rate(params, np.ones(params.grid.n_w))


def test_setters_change_rates():
    """rates follow the parameters handed to the instance"""
    rates_0 = sizespec.spectrum_instance_type(params).compute_rates(n, n_pp).copy(deep=True)

    params_cannibal = sizespec.set_interaction(params, 1.0)
    rates_1 = sizespec.spectrum_instance_type(params_cannibal).compute_rates(n, n_pp)

    assert (rates_0.predation_mortality == 0.0).all()
    assert (rates_1.predation_mortality > 0.0).any()
    assert (rates_1.encounter_rate >= rates_0.encounter_rate).all()

    mortality = np.full(params.grid.n_w, 0.7)
    params_mort = sizespec.set_external_mortality(params_cannibal, mortality)
    rates_2 = sizespec.spectrum_instance_type(params_mort).compute_rates(n, n_pp)
    np.testing.assert_allclose(
        rates_2.total_mortality.data, 0.7 + rates_2.predation_mortality.data
    )


def test_compute_rates_dataset():
    obj = sizespec.spectrum_instance_type(params)
    rates = obj.compute_rates(n, n_pp)

    for name in [
        'encounter_rate',
        'feeding_level',
        'intake_rate',
        'energy_avail_rate',
        'reproduction_rate',
        'growth_rate',
        'external_mortality',
        'predation_mortality',
        'total_mortality',
    ]:
        assert rates[name].dims == ('w',), name
        assert np.isfinite(rates[name]).all(), name
    assert rates.resource_mortality.dims == ('w_full',)
    np.testing.assert_allclose(
        rates.total_mortality.data,
        rates.external_mortality.data + rates.predation_mortality.data,
    )


def test_compute_rates_wrong_shape():
    obj = sizespec.spectrum_instance_type(params)
    with pytest.raises(AssertionError):
        obj.compute_rates(n[:-1], n_pp)
    with pytest.raises(AssertionError):
        obj.compute_rates(n, n_pp[:-1])


def test_build_model_from_file(tmp_path):
    updates = {'grid': {'dx': 0.2}, 'species': {'interaction': 0.5}}
    file_in = tmp_path / 'model.yml'
    with open(file_in, 'w') as fid:
        yaml.dump(updates, fid)

    params_file = sizespec.build_model(str(file_in))
    params_dict = sizespec.build_model(updates)
    assert params_file.settings_dict == params_dict.settings_dict
    assert params_file.grid.dx == 0.2
    assert params_file.interaction == 0.5
    assert (params_file.grid.w == params_dict.grid.w).all()


def test_setters_update_settings_dict():
    params_new = sizespec.set_interaction(params, 0.5)
    assert params_new.settings_dict['species']['interaction'] == 0.5
    assert params.settings_dict['species']['interaction'] == 0.0

    params_mort = sizespec.set_external_mortality(params, 0.3)
    assert params_mort.settings_dict['mortality']['type'] == 'custom'
    assert params.settings_dict['mortality']['type'] == 'power-law-senescence'
