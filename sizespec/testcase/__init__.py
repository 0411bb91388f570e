from .anchovy import (
    config_scenario,
    power_law_abundance,
    run_scenario,
    scenario_names,
    scenario_settings,
)
