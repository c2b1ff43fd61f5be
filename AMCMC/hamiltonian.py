"""
Description:
    Hamiltonian energy for unit-mass HMC.
    USE THE CORRECT ENVIRONMENT:  AMCMC

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1
"""
import math
import jax.numpy as jnp

def kinetic(p: jnp.ndarray) -> float:
    """K(p) = 0.5 * p.T @ p (identity mass matrix)"""
    return float(0.5 * jnp.sum(p * p))

def energy(log_density: float, p: jnp.ndarray) -> float:
    """
    Hamiltonian(q,p) = U(q) + K(p)
    For standard HMC:
        U(q) = -log π(q)
        K(p) = 0.5 *  p.T@ p
    Takes the cached log π(q) so the model is not evaluated twice.
    +inf where log π(q) = -inf.
    """
    if log_density == -math.inf:
        return math.inf
    return -log_density + kinetic(p)
