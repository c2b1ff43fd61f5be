"""
Description:
    MCMC diagnostics and metrics.
    USE THE CORRECT ENVIRONMENT:  AMCMC

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1
"""
import numpy as np

from AMCMC.chain import Chain

def cov(chain: Chain) -> np.ndarray:
    """Sample covariance of the user parameters, (n_parameters, n_parameters)"""
    X = chain.parameters()
    if X.shape[0] < 2:
        raise ValueError("Covariance needs at least two iterations")
    centered = X - np.mean(X, axis=0)
    return centered.T @ centered / (X.shape[0] - 1)

def max_variance_error(chain: Chain, target_cov) -> float:
    """Largest absolute gap between chain and target marginal variances"""
    target = np.diag(np.atleast_2d(np.asarray(target_cov, dtype=float)))
    return float(np.max(np.abs(np.diag(cov(chain)) - target)))

def mean(chain: Chain) -> np.ndarray:
    """Posterior mean of each user parameter"""
    return np.mean(chain.parameters(), axis=0)

def acceptance_rate(chain: Chain) -> float:
    """Fraction of accepted steps; needs the is_accept column"""
    if "is_accept" not in chain.names:
        raise KeyError("Chain has no is_accept column; assemble with include_stats=True")
    return float(np.mean(chain.get("is_accept")))
