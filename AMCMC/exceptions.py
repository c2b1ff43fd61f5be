"""
Description:
    Exception hierarchy for AMCMC.
    USE THE CORRECT ENVIRONMENT:  AMCMC

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1

Every fatal condition raised by the sampling core derives from AMCMCError.
A log density of -inf is not an error: it is the rejection signal.
"""


class AMCMCError(Exception):
    """Base class for all AMCMC errors"""


class ConfigurationError(AMCMCError, ValueError):
    """
    Invalid setup detected before or during a run.

    Dimension mismatches, reserved column name collisions, bad
    driver settings.
    """


class NonFiniteLogDensityError(AMCMCError, ArithmeticError):
    """Log density evaluated to NaN or +inf"""


class SamplerContractError(AMCMCError, RuntimeError):
    """A sampler did not produce exactly one transition per call"""
