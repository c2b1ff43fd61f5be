"""
Description:
    Proposal distributions for Metropolis-Hastings.
    USE THE CORRECT ENVIRONMENT:  AMCMC

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1
"""
from typing import Callable, NamedTuple, Optional
import jax
import jax.numpy as jnp
import jax.random as jr
from jax.scipy.stats import norm

class Proposal(NamedTuple):
    """
    q(θ' | θ)

    sample(key, θ) -> θ'
    logpdf(x, given) -> log q(x | given), None when q is symmetric
    """
    sample: Callable[[jax.Array, jnp.ndarray], jnp.ndarray]
    logpdf: Optional[Callable[[jnp.ndarray, jnp.ndarray], float]] = None

    @property
    def symmetric(self) -> bool:
        return self.logpdf is None

    def log_hastings(self, current: jnp.ndarray, candidate: jnp.ndarray) -> float:
        """log q(θ | θ') - log q(θ' | θ), exactly 0 for symmetric q"""
        if self.symmetric:
            return 0.0
        return float(self.logpdf(current, candidate) - self.logpdf(candidate, current))

def gen_random_walk_proposal(scale: float = 1.0) -> Proposal:
    """θ' = θ + scale * ε, ε ~ N(0, I) shaped like θ"""
    def sample(key, theta):
        theta = jnp.asarray(theta)
        return theta + scale * jr.normal(key, shape=theta.shape)
    return Proposal(sample=sample)

def gen_mvnormal_proposal(cov: jnp.ndarray) -> Proposal:
    """θ' = θ + L z, L L^T = cov"""
    chol = jnp.linalg.cholesky(jnp.asarray(cov))

    def sample(key, theta):
        theta = jnp.asarray(theta)
        z = jr.normal(key, shape=(chol.shape[0],))
        return theta + jnp.reshape(chol @ z, theta.shape)
    return Proposal(sample=sample)

def gen_independent_proposal(mean, scale: float = 1.0) -> Proposal:
    """
    Independence sampler: θ' ~ N(mean, scale² I) regardless of θ.

    Asymmetric, so the Hastings correction is nonzero.
    """
    mean = jnp.asarray(mean, dtype=jnp.result_type(float))

    def sample(key, theta):
        return mean + scale * jr.normal(key, shape=mean.shape)

    def logpdf(x, given):
        return jnp.sum(norm.logpdf(x, loc=mean, scale=scale))
    return Proposal(sample=sample, logpdf=logpdf)
