class SizeSpectrumError(Exception):
    """Base class for errors raised by sizespec."""


class InvalidGridSpec(SizeSpectrumError, ValueError):
    """Size grid parameters do not define a valid grid."""


class DegenerateKernel(SizeSpectrumError, ValueError):
    """The feeding kernel window contains no grid ratio."""


class ConfigurationError(SizeSpectrumError, ValueError):
    """Unknown setting, unknown type key or missing required parameter."""


class SimulationTimeout(SizeSpectrumError, TimeoutError):
    """The projection exceeded its wall-clock allowance."""


class NumericalInstability(SizeSpectrumError, ArithmeticError):
    """A state variable became negative or non-finite during integration.

    Parameters
    ----------

    message : str
      Description of the failure.

    step : int
      Index of the failing step (0 refers to the initial condition).

    time : float
      Model time at which the failure was detected.

    last_state : sizespec.driver.simulation_state, optional
      Snapshots recorded up to the last valid step.
    """

    def __init__(self, message, step, time, last_state=None):
        super().__init__(f'{message} (step {step}, t = {time:g})')
        self.step = step
        self.time = time
        self.last_state = last_state
