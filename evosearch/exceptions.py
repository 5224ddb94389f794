class EvoSearchError(Exception):
    """Base for all EvoSearch exceptions."""

    pass


# High-level families
class ConfigurationError(EvoSearchError, ValueError):
    """Invalid search configuration, detected at construction time."""

    pass


class EvolutionError(EvoSearchError):
    """Evolution process failures."""

    pass


class OperatorError(EvoSearchError):
    """Crossover / mutation failures."""

    pass


class OracleFailure(EvoSearchError):
    """The execution oracle could not measure a candidate solution."""

    pass


class InvariantViolationError(EvoSearchError, AssertionError):
    """Internal engine invariant broken; indicates a bug, not bad input."""

    pass


# Operator subtypes
class ConstructionFailedError(OperatorError):
    """A variation operator could not produce a valid offspring."""

    pass


class OperatorRetryExhaustedError(OperatorError):
    """A variation operator kept failing for the whole retry budget."""

    pass


# Oracle subtypes
class OracleTimeoutError(OracleFailure):
    """Execution of the candidate timed out."""

    pass


class OracleCrashError(OracleFailure):
    """Execution of the candidate crashed the runner."""

    pass


class OracleResourceError(OracleFailure):
    """Execution of the candidate exhausted a resource limit."""

    pass
