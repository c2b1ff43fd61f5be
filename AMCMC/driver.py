"""
Description:
    Sample loop: initialize, step, bundle.
    USE THE CORRECT ENVIRONMENT:  AMCMC

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1

One chain is strictly sequential: a single key stream is split once per
kernel call and each call's state feeds the next. Independent chains each
get their own key and their own sampler state.
"""
import logging
import numbers
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from typing import Callable, List, Optional, Sequence, Tuple

import jax
import jax.random as jr
import numpy as np
from rich.progress import Progress

from AMCMC.chain import Chain, assemble
from AMCMC.datatypes import (
    KeyOrSeed, Params, PRNGKey, SampleConfig, State, Transition,
    check_sample_config, is_integer
)
from AMCMC.exceptions import ConfigurationError, SamplerContractError
from AMCMC.model import LogDensityModel
from AMCMC.sampler import Sampler

logger = logging.getLogger(__name__)

PARALLEL_MODES = ("serial", "threads")

Callback = Callable[[int, Transition, State], None]
IsDone = Callable[[List[Transition], int], bool]

def as_key(key: KeyOrSeed) -> PRNGKey:
    """Integer seed (Python or numpy) or PRNG key -> PRNG key"""
    if isinstance(key, (bool, np.bool_)):
        raise ConfigurationError(f"Seed must be an integer or a PRNG key, got {key!r}")
    if isinstance(key, numbers.Integral):
        return jr.PRNGKey(int(key))
    return key

@contextmanager
def progress_bar(enabled: bool, total: int, description: str):
    """Yields an advance() callable, a no-op when disabled"""
    if not enabled:
        yield lambda: None
        return
    with Progress(transient=True) as bar:
        task = bar.add_task(description, total=total)
        yield lambda: bar.advance(task)

def check_kernel_output(output, iteration: int) -> Tuple[Transition, State]:
    if (
        not isinstance(output, tuple)
        or len(output) != 2
        or not isinstance(output[0], Transition)
    ):
        raise SamplerContractError(
            f"Iteration {iteration}: sampler must return one "
            f"(Transition, state) pair, got {type(output).__name__}"
        )
    return output

def sample_transitions(
    key: KeyOrSeed,
    model: LogDensityModel,
    sampler: Sampler,
    n_samples: int,
    *,
    initial_params: Optional[Params] = None,
    initial_state: Optional[State] = None,
    discard_initial: int = 0,
    thinning: int = 1,
    callback: Optional[Callback] = None,
    isdone: Optional[IsDone] = None,
    progress: bool = False
) -> Tuple[List[Transition], State]:
    """
    Run one chain.

    Args:
        key: Integer seed or PRNG key
        model: Target
        sampler: Any object with initialize/step
        n_samples: Transitions to retain (an upper bound when isdone is given)
        initial_params: Starting value passed to initialize
        initial_state: Resume from this state; initialize is skipped
        discard_initial: Leading iterations dropped
        thinning: Keep every thinning-th iteration
        callback: Called as callback(iteration, transition, state) after every kernel call
        isdone: Called as isdone(transitions, iteration); True stops after the current step
        progress: Show a progress bar

    Returns:
        (transitions, final_state)
    """
    config = check_sample_config(SampleConfig(n_samples, discard_initial, thinning))
    if initial_state is not None and initial_params is not None:
        raise ConfigurationError(
            "Pass either initial_state (resume) or initial_params (fresh start), not both"
        )
    key = as_key(key)
    n_calls = config.n_kernel_calls
    running = initial_state is not None
    state = initial_state
    transitions = []

    logger.info(
        "Sampling %d iterations (%d kernel calls) with %s",
        n_samples, n_calls, type(sampler).__name__
    )
    with progress_bar(progress, n_calls, "Sampling") as advance:
        for i in range(1, n_calls + 1):
            key, subkey = jr.split(key)
            if running:
                output = sampler.step(subkey, model, state)
            else:
                output = sampler.initialize(subkey, model, initial_params)
                running = True
            transition, state = check_kernel_output(output, i)

            if i > discard_initial and (i - discard_initial - 1) % thinning == 0:
                transitions.append(transition)
            if callback is not None:
                callback(i, transition, state)
            advance()

            if isdone is not None and isdone(transitions, i):
                logger.info("Stopped early after %d iterations", i)
                break

    if isdone is None and len(transitions) != n_samples:
        raise SamplerContractError(
            f"Expected {n_samples} transitions, got {len(transitions)}"
        )
    logger.info("Finished sampling: %d transitions", len(transitions))
    return transitions, state

def sample(
    key: KeyOrSeed,
    model: LogDensityModel,
    sampler: Sampler,
    n_samples: int,
    *,
    param_names: Optional[Sequence[str]] = None,
    include_stats: bool = False,
    **kwargs
) -> Chain:
    """
    Run one chain and bundle it.

    Keyword arguments are forwarded to sample_transitions. The final sampler
    state is kept on the chain; pass it back as initial_state to resume.
    """
    transitions, state = sample_transitions(key, model, sampler, n_samples, **kwargs)
    return assemble(
        transitions,
        param_names=param_names,
        include_stats=include_stats,
        final_state=state
    )

def sample_chains(
    key: KeyOrSeed,
    model: LogDensityModel,
    sampler: Sampler,
    n_samples: int,
    n_chains: int,
    *,
    parallel: str = "serial",
    initial_params: Optional[Sequence[Params]] = None,
    max_workers: Optional[int] = None,
    progress: bool = False,
    **kwargs
) -> List[Chain]:
    """
    Run independent chains, one key and one sampler state each.

    Args:
        parallel: "serial" or "threads"
        initial_params: None, or one starting value per chain
        max_workers: Thread pool size for parallel="threads"
        progress: Show a per-chain progress bar

    Returns:
        Chains in key order, independent of completion order
    """
    if not is_integer(n_chains) or n_chains < 1:
        raise ConfigurationError(f"n_chains must be >= 1, got {n_chains}")
    if parallel not in PARALLEL_MODES:
        raise ConfigurationError(
            f"parallel must be one of {PARALLEL_MODES}, got {parallel!r}"
        )
    if initial_params is None:
        initial_params = [None] * n_chains
    if len(initial_params) != n_chains:
        raise ConfigurationError(
            f"Got {len(initial_params)} starting values for {n_chains} chains"
        )

    keys = jr.split(as_key(key), n_chains)

    def run(chain_key: jax.Array, start: Optional[Params]) -> Chain:
        return sample(
            chain_key, model, sampler, n_samples,
            initial_params=start, **kwargs
        )

    logger.info("Sampling %d chains (%s)", n_chains, parallel)
    with progress_bar(progress, n_chains, "Chains") as advance:
        if parallel == "serial":
            chains = []
            for k, start in zip(keys, initial_params):
                chains.append(run(k, start))
                advance()
            return chains

        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [
                pool.submit(run, k, start)
                for k, start in zip(keys, initial_params)
            ]
            for _ in as_completed(futures):
                advance()
            return [f.result() for f in futures]
