import copy
import os

import yaml

from .errors import ConfigurationError

path_to_here = os.path.dirname(os.path.realpath(__file__))

# keys that may legitimately be null
_optional_keys = {
    ('grid', 'w_pp_min'),
    ('mortality', 'mu_s'),
    ('plankton_forcing', 'phi'),
    ('plankton_forcing', 'sigma'),
    ('plankton_forcing', 'seed'),
}

# flat parameter names used in the paper -> settings section
_parameter_sections = {
    'dt': 'integration',
    't_save': 'integration',
    'dx': 'grid',
    'w_min': 'grid',
    'w_inf': 'grid',
    'w_pp_min': 'grid',
    'ppmr_min': 'species',
    'ppmr_max': 'species',
    'gamma': 'species',
    'q': 'species',
    'alpha': 'species',
    'K': 'species',
    'p': 'species',
    'h': 'species',
    'n': 'species',
    'w_mat': 'species',
    'rho_m': 'species',
    'rho_inf': 'species',
    'epsilon_R': 'species',
    'sex_ratio': 'species',
    'interaction': 'species',
    'mu_0': 'mortality',
    'rho_b': 'mortality',
    'w_s': 'mortality',
    'rho_s': 'mortality',
    'mu_s': 'mortality',
    'mu_l': 'mortality',
    'w_l': 'mortality',
    'rho_l': 'mortality',
    'w_pp_cutoff': 'resource',
    'r0': 'resource',
    'a0': 'resource',
    'i0': 'resource',
    'rho': 'resource',
    'lambda': 'resource',
}

# alternative names for the same parameter
_parameter_aliases = {
    'kappa': 'a0',
}


def get_defaults():
    """return default settings"""
    with open(f'{path_to_here}/default_settings.yml') as fid:
        return yaml.safe_load(fid)


def update(settings_dict, settings_updates):
    """Return a copy of `settings_dict` with `settings_updates` merged in
    section by section.

    Parameters
    ----------

    settings_dict : dict
      Complete settings, e.g., from ``get_defaults()``.

    settings_updates : dict
      Partial settings; each top-level key must name an existing section.
    """
    settings_dict = copy.deepcopy(settings_dict)
    for section, values in settings_updates.items():
        if section not in settings_dict:
            raise ConfigurationError(f'unknown settings section: {section}')
        if not isinstance(values, dict):
            raise ConfigurationError(f'settings section {section} must be a dict')
        unknown = set(values) - set(settings_dict[section])
        if unknown:
            raise ConfigurationError(f'unknown parameters in {section}: {sorted(unknown)}')
        settings_dict[section].update(values)
    return settings_dict


def read(settings_in, settings_dict=None):
    """Return `settings_dict` updated from a dict or a YAML file.

    Parameters
    ----------

    settings_in : dict, str or path-like, optional
      Partial settings, or the path of a YAML file holding them.

    settings_dict : dict, optional
      Settings to update; defaults to ``get_defaults()``.
    """
    if settings_dict is None:
        settings_dict = get_defaults()

    if settings_in is None:
        return copy.deepcopy(settings_dict)

    if isinstance(settings_in, dict):
        settings_updates = settings_in
    else:
        with open(settings_in) as fid:
            settings_updates = yaml.safe_load(fid)
    return update(settings_dict, settings_updates or {})


def from_parameters(parameters, settings_dict=None):
    """Map a flat parameter dictionary onto the settings sections.

    Parameters
    ----------

    parameters : dict
      Flat parameters, for example ``{'dt': 0.001, 'mu_l': 5.0, 'lambda': 2.0}``.

    settings_dict : dict, optional
      Settings to update; defaults to ``get_defaults()``.
    """
    if settings_dict is None:
        settings_dict = get_defaults()

    parameters = {_parameter_aliases.get(k, k): v for k, v in parameters.items()}
    unknown = set(parameters) - set(_parameter_sections)
    if unknown:
        raise ConfigurationError(f'unknown parameters: {sorted(unknown)}')

    settings_updates = {}
    for key, value in parameters.items():
        settings_updates.setdefault(_parameter_sections[key], {})[key] = value
    return update(settings_dict, settings_updates)


def validate(settings_dict):
    """Raise ``ConfigurationError`` for missing or unknown sections and keys, or a
    required value that is null."""
    defaults = get_defaults()
    missing = set(defaults) - set(settings_dict)
    if missing:
        raise ConfigurationError(f'missing settings sections: {sorted(missing)}')

    unknown = set(settings_dict) - set(defaults)
    if unknown:
        raise ConfigurationError(f'unknown settings sections: {sorted(unknown)}')

    for section, values in defaults.items():
        if not isinstance(settings_dict[section], dict):
            raise ConfigurationError(f'settings section {section} must be a dict')
        unknown = set(settings_dict[section]) - set(values)
        if unknown:
            raise ConfigurationError(f'unknown parameters in {section}: {sorted(unknown)}')
        for key in values:
            if key not in settings_dict[section]:
                raise ConfigurationError(f'missing required parameter: {section}.{key}')
            if settings_dict[section][key] is None and (section, key) not in _optional_keys:
                raise ConfigurationError(f'required parameter is null: {section}.{key}')
