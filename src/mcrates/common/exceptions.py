# Raised when a model or product cannot produce a value for the requested
# arguments, e.g. a maturity before the valuation time or a time outside
# the simulated time discretization.
class CalculationException(Exception):
    pass


# Raised by operations a model or structure does not support.
class UnsupportedOperationError(NotImplementedError):
    pass


# Raised when a model is queried before a simulation process was assigned.
class ProcessNotAssignedError(RuntimeError):
    pass
