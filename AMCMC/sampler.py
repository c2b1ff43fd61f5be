"""
Description:
    MCMC samplers behind the initialize/step protocol: MH and HMC.
    USE THE CORRECT ENVIRONMENT:  AMCMC

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1

A sampler is an immutable configuration. Its evolving state is an explicit
value passed into and returned from step, never hidden mutation.
"""
import logging
import math
from functools import lru_cache
from typing import NamedTuple, Optional, Protocol, Tuple

import jax
import jax.numpy as jnp
import jax.random as jr

from AMCMC.datatypes import (
    QP, HMCState, MHState, Params, PRNGKey, State, Transition
)
from AMCMC.exceptions import ConfigurationError
from AMCMC.hamiltonian import energy
from AMCMC.integrator import gen_leapfrog
from AMCMC.model import LogDensityModel
from AMCMC.proposals import Proposal, gen_random_walk_proposal

logger = logging.getLogger(__name__)

class Sampler(Protocol):
    """Capability shared by every sampler variant"""

    def initialize(
        self,
        key: PRNGKey,
        model: LogDensityModel,
        initial_params: Optional[Params] = None
    ) -> Tuple[Transition, State]:
        ...

    def step(
        self,
        key: PRNGKey,
        model: LogDensityModel,
        state: State
    ) -> Tuple[Transition, State]:
        ...

def accept_reject(log_alpha: float, key: PRNGKey) -> Tuple[bool, float]:
    """
    Metropolis-Hastings accept/reject step.

    Accept iff log(u) < min(log_alpha, 0), u ~ U(0,1).
    log_alpha = -inf always rejects.

    Args:
        log_alpha: log acceptance ratio
        key: Random key

    Returns:
        (accepted, log_u)
    """
    log_u = float(jnp.log(jr.uniform(key, shape=())))
    return log_u < min(log_alpha, 0.0), log_u

def starting_value(
    model: LogDensityModel,
    initial_params: Optional[Params],
    configured: Optional[Params]
) -> jnp.ndarray:
    """
    Driver-supplied value, else the sampler's configured one,
    else zeros of the model dimension.
    """
    if initial_params is None:
        initial_params = configured
    if initial_params is None:
        if model.dim is None:
            raise ConfigurationError(
                "No starting value given and the model does not declare dim"
            )
        initial_params = jnp.zeros(model.dim)
    value = jnp.asarray(initial_params, dtype=jnp.result_type(float))
    model.check_dim(value)
    return value

def check_start(ld: float, value: jnp.ndarray) -> None:
    if ld == -math.inf:
        logger.warning(
            "Starting value %s has zero probability; the chain will move "
            "to the first proposal inside the support", value
        )

# ============================================================================
# Metropolis-Hastings
# ============================================================================

def mh_initialize(
    key: PRNGKey,
    model: LogDensityModel,
    sampler: "MetropolisHastings",
    initial_params: Optional[Params] = None
) -> Tuple[Transition, MHState]:
    """Accept the starting value unconditionally"""
    value = starting_value(model, initial_params, sampler.initial_params)
    ld = model.evaluate(value)
    check_start(ld, value)
    transition = Transition(
        value=value,
        log_density=ld,
        stats={"is_accept": 1.0, "log_alpha": 0.0}
    )
    return transition, MHState(value=value, log_density=ld)

def mh_step(
    key: PRNGKey,
    model: LogDensityModel,
    sampler: "MetropolisHastings",
    state: MHState
) -> Tuple[Transition, MHState]:
    """
    Single MH step.

    α = log π(θ') - log π(θ) + log q(θ|θ') - log q(θ'|θ)

    Args:
        key: Random key, split into proposal and uniform keys
        model: Target
        sampler: MH configuration
        state: Last accepted point

    Returns:
        (transition, new_state); both hold the accepted point
    """
    key_prop, key_u = jr.split(key)
    proposal = sampler.proposal
    candidate = jnp.asarray(proposal.sample(key_prop, state.value))
    if candidate.shape != state.value.shape:
        raise ConfigurationError(
            f"Proposal shape {candidate.shape} does not match "
            f"state shape {state.value.shape}"
        )

    ld_candidate = model.evaluate(candidate)
    if ld_candidate == -math.inf:
        log_alpha = -math.inf
    else:
        log_alpha = (
            ld_candidate - state.log_density
            + proposal.log_hastings(state.value, candidate)
        )

    accepted, _ = accept_reject(log_alpha, key_u)
    if accepted:
        new_state = MHState(value=candidate, log_density=ld_candidate)
    else:
        new_state = state

    transition = Transition(
        value=new_state.value,
        log_density=new_state.log_density,
        stats={"is_accept": float(accepted), "log_alpha": float(log_alpha)}
    )
    return transition, new_state

class MetropolisHastings(NamedTuple):
    """Metropolis-Hastings with an arbitrary proposal"""
    proposal: Proposal
    initial_params: Optional[Params] = None

    def initialize(self, key, model, initial_params=None):
        return mh_initialize(key, model, self, initial_params)

    def step(self, key, model, state):
        return mh_step(key, model, self, state)

def RandomWalkMH(
    scale: float = 1.0,
    initial_params: Optional[Params] = None
) -> MetropolisHastings:
    """Random walk Metropolis with N(0, scale² I) increments"""
    return MetropolisHastings(
        proposal=gen_random_walk_proposal(scale),
        initial_params=initial_params
    )

# ============================================================================
# Hamiltonian Monte Carlo
# ============================================================================

def draw_momentum(position: jnp.ndarray, key: PRNGKey) -> QP:
    """
    Resample momentum from standard Gaussian.

    Keeps position q, resamples p ~ N(0, I)
    """
    p_new = jr.normal(key, shape=position.shape, dtype=position.dtype)
    return QP(q=position, p=p_new)

@lru_cache(maxsize=32)
def hmc_integrator(model: LogDensityModel, step_size: float, n_steps: int):
    """Compiled leapfrog, cached per (model, step_size, n_steps)"""
    return jax.jit(gen_leapfrog(model.grad, step_size, n_steps))

def hmc_initialize(
    key: PRNGKey,
    model: LogDensityModel,
    sampler: "HamiltonianMC",
    initial_params: Optional[Params] = None
) -> Tuple[Transition, HMCState]:
    value = starting_value(model, initial_params, sampler.initial_params)
    ld = model.evaluate(value)
    check_start(ld, value)
    transition = Transition(
        value=value,
        log_density=ld,
        stats={"is_accept": 1.0, "log_alpha": 0.0}
    )
    return transition, HMCState(position=value, log_density=ld)

def hmc_step(
    key: PRNGKey,
    model: LogDensityModel,
    sampler: "HamiltonianMC",
    state: HMCState
) -> Tuple[Transition, HMCState]:
    """
    Single HMC step.

    Resample momentum, integrate, accept with α = H(q,p) - H(q*,p*).
    A divergent trajectory (non-finite q* or p*) is rejected.
    """
    key_p, key_u = jr.split(key)
    qp0 = draw_momentum(state.position, key_p)
    integrator = hmc_integrator(model, sampler.step_size, sampler.n_steps)
    qp_star = integrator(qp0)

    diverged = not (
        bool(jnp.all(jnp.isfinite(qp_star.q)))
        and bool(jnp.all(jnp.isfinite(qp_star.p)))
    )
    if diverged:
        # the model is never asked about a non-finite position
        logger.debug("Divergent trajectory, rejecting")
        ld_star = -math.inf
    else:
        ld_star = model.evaluate(qp_star.q)

    if ld_star == -math.inf:
        log_alpha = -math.inf
    else:
        log_alpha = (
            energy(state.log_density, qp0.p) - energy(ld_star, qp_star.p)
        )

    accepted, _ = accept_reject(log_alpha, key_u)
    if accepted:
        new_state = HMCState(position=qp_star.q, log_density=ld_star)
    else:
        new_state = state

    transition = Transition(
        value=new_state.position,
        log_density=new_state.log_density,
        stats={"is_accept": float(accepted), "log_alpha": float(log_alpha)}
    )
    return transition, new_state

class HamiltonianMC(NamedTuple):
    """HMC with unit mass and a fixed leapfrog trajectory"""
    step_size: float
    n_steps: int
    initial_params: Optional[Params] = None

    def initialize(self, key, model, initial_params=None):
        if self.step_size <= 0 or self.n_steps < 1:
            raise ConfigurationError(
                "HamiltonianMC needs step_size > 0 and n_steps >= 1"
            )
        return hmc_initialize(key, model, self, initial_params)

    def step(self, key, model, state):
        return hmc_step(key, model, self, state)
