"""
Description:
    Log density models and target generators.
    USE THE CORRECT ENVIRONMENT:  AMCMC

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1
"""
import math
from typing import Callable, NamedTuple, Optional
import jax
import jax.numpy as jnp

from AMCMC.datatypes import LogDensity, Params
from AMCMC.exceptions import ConfigurationError, NonFiniteLogDensityError

class LogDensityModel(NamedTuple):
    """
    Target distribution through its unnormalized log density.

    -inf marks points outside the support. NaN and +inf are fatal.
    gradient overrides jax.grad(logdensity) when given.
    """
    logdensity: LogDensity
    dim: Optional[int] = None
    gradient: Optional[Callable[[jnp.ndarray], jnp.ndarray]] = None

    def check_dim(self, params: Params) -> None:
        if self.dim is not None and jnp.size(params) != self.dim:
            raise ConfigurationError(
                f"Expected {self.dim} parameters, got {jnp.size(params)}"
            )

    def evaluate(self, params: Params) -> float:
        """log π(params) as a Python float"""
        self.check_dim(params)
        ld = float(self.logdensity(jnp.asarray(params)))
        if math.isnan(ld) or ld == math.inf:
            raise NonFiniteLogDensityError(
                f"Log density evaluated to {ld} at {params}"
            )
        return ld

    def grad(self, params: Params) -> jnp.ndarray:
        """∇ log π(params)"""
        if self.gradient is not None:
            return self.gradient(params)
        return jax.grad(self.logdensity)(params)

def gen_gaussian_model(
        dim: int = 2,
        precision_matrix: jnp.ndarray = None,
        cov: jnp.ndarray = None
) -> LogDensityModel:
    if precision_matrix is not None and cov is not None:
        raise ConfigurationError(
            "Please supply either a precision_matrix or a cov, not both"
        )

    if precision_matrix is None and cov is not None:
        precision_matrix = jnp.linalg.inv(cov)

    if precision_matrix is None and cov is None:
        precision_matrix = jnp.eye(dim)

    def logdensity(q: jnp.ndarray) -> float:
        """Gaussian log density (unnormalized)"""
        return -0.5 * jnp.dot(q, precision_matrix @ q)

    return LogDensityModel(logdensity=logdensity, dim=dim)

def gen_standard_normal_model() -> LogDensityModel:
    """Scalar N(0,1): log π(x) = -x²/2"""
    def logdensity(x: jnp.ndarray) -> float:
        return -0.5 * jnp.sum(x**2)
    return LogDensityModel(logdensity=logdensity, dim=1)

def gen_box_model(lower, upper) -> LogDensityModel:
    """Uniform on [lower, upper]: 0 inside, -inf outside"""
    lower = jnp.atleast_1d(jnp.asarray(lower, dtype=jnp.result_type(float)))
    upper = jnp.atleast_1d(jnp.asarray(upper, dtype=jnp.result_type(float)))
    if lower.shape != upper.shape:
        raise ConfigurationError("lower and upper must have the same shape")

    def logdensity(x: jnp.ndarray) -> float:
        x = jnp.atleast_1d(x)
        inside = jnp.all((x >= lower) & (x <= upper))
        return jnp.where(inside, 0.0, -jnp.inf)

    return LogDensityModel(logdensity=logdensity, dim=lower.shape[0])
