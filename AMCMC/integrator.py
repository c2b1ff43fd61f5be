"""
Description:
    Leapfrog integrator for Hamiltonian dynamics.
    USE THE CORRECT ENVIRONMENT:  AMCMC

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1
"""
import jax
import jax.numpy as jnp
from typing import Callable

from AMCMC.datatypes import QP

def lf_step(
        qp: QP,
        grad_logdensity: Callable[[jnp.ndarray], jnp.ndarray],
        τ: float
) -> QP:
    """
    Single lf integration step, unit mass.

    ∂H/∂q = -∇log π(q), ∂H/∂p = p
    """
    # Half step momentum
    p_half = qp.p + 0.5 * τ * grad_logdensity(qp.q)

    # Full step position
    q_new = qp.q + τ * p_half

    # Half step momentum
    p_new = p_half + 0.5 * τ * grad_logdensity(q_new)

    return QP(q=q_new, p=p_new)

def gen_leapfrog(
    grad_logdensity: Callable[[jnp.ndarray], jnp.ndarray],
    τ: float,
    N: int
) -> Callable[[QP], QP]:
    """
    Generate leapfrog integrator running N steps of size τ.
    """
    def leapfrog(qp: QP) -> QP:
        def body_fn(qp_state, _):
            qp_new = lf_step(qp_state, grad_logdensity, τ)
            return qp_new, None

        qp_final, _ = jax.lax.scan(body_fn, qp, None, length=N)
        return qp_final

    return leapfrog
