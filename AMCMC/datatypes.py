"""
Description:
    Core data structures for AMCMC.
    USE THE CORRECT ENVIRONMENT:  AMCMC

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1

All modules import from here to ensure type consistency and avoid indexing bugs.
"""
import numbers
from typing import Any, Callable, Mapping, NamedTuple, Optional, Union
import jax
import jax.numpy as jnp

from AMCMC.exceptions import ConfigurationError

class Transition(NamedTuple):
    """Output of one sampling iteration"""
    value: jnp.ndarray # parameter value, opaque to the driver
    log_density: float # cached log density of value
    stats: Optional[Mapping[str, float]] = None # per-algorithm diagnostics

    @property
    def dim(self) -> int:
        """Number of scalar parameters in value"""
        return int(jnp.size(self.value))

def make_transition(model, value: jnp.ndarray, **stats) -> Transition:
    """
    Pair a value with its log density.

    The model is evaluated exactly once; the result is cached on the transition.
    """
    value = jnp.asarray(value)
    return Transition(
        value=value,
        log_density=model.evaluate(value),
        stats=dict(stats) if stats else None
    )

class QP(NamedTuple):
    """Phase space state(q,p)"""
    q: jnp.ndarray # position
    p: jnp.ndarray # momentum

    @property
    def dim(self) -> int:
        """Dimension of configuration space"""
        return int(jnp.size(self.q))

class MHState(NamedTuple):
    """Metropolis-Hastings chain state: last accepted point"""
    value: jnp.ndarray
    log_density: float

class HMCState(NamedTuple):
    """Hamiltonian Monte Carlo chain state"""
    position: jnp.ndarray
    log_density: float

class SampleConfig(NamedTuple):
    """Driver configuration"""
    n_samples: int # number of retained transitions
    discard_initial: int = 0 # leading iterations dropped
    thinning: int = 1 # keep every thinning-th iteration

    @property
    def n_kernel_calls(self) -> int:
        """Total initialize/step calls for a full run"""
        return self.discard_initial + (self.n_samples - 1) * self.thinning + 1

def is_integer(x) -> bool:
    return isinstance(x, numbers.Integral) and not isinstance(x, bool)

def check_sample_config(config: SampleConfig) -> SampleConfig:
    for name, value in zip(config._fields, config):
        if not is_integer(value):
            raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if config.n_samples < 1:
        raise ConfigurationError(
            f"n_samples must be a positive integer, got {config.n_samples}"
        )
    if config.thinning < 1:
        raise ConfigurationError(
            f"thinning must be >= 1, got {config.thinning}"
        )
    if config.discard_initial < 0:
        raise ConfigurationError(
            f"discard_initial must be >= 0, got {config.discard_initial}"
        )
    return config

# Type aliases for clarity
Params = jnp.ndarray
LogDensity = Callable[[jnp.ndarray], float]
PRNGKey = jax.Array
KeyOrSeed = Union[int, PRNGKey]
State = Any
