"""Tests for the initialize/step protocol of the MH and HMC samplers."""

import logging
import math
import jax
import jax.numpy as jnp
import jax.random as jr
import numpy as np
import pytest

from AMCMC.datatypes import MHState, HMCState
from AMCMC.driver import sample
from AMCMC.exceptions import ConfigurationError
from AMCMC.model import gen_box_model, gen_gaussian_model, gen_standard_normal_model
from AMCMC.proposals import Proposal, gen_independent_proposal
from AMCMC.sampler import (
    HamiltonianMC, MetropolisHastings, RandomWalkMH, accept_reject
)

jax.config.update("jax_enable_x64", True)


def shift_proposal(delta):
    """Deterministic proposal θ' = θ + delta"""
    return Proposal(sample=lambda key, theta: theta + delta)


def test_accept_reject_negative_infinity_always_rejects():
    for seed in range(50):
        accepted, _ = accept_reject(-math.inf, jr.PRNGKey(seed))
        assert not accepted


def test_accept_reject_nonnegative_ratio_accepts():
    for seed in range(50):
        accepted, log_u = accept_reject(0.0, jr.PRNGKey(seed))
        assert log_u < 0.0
        assert accepted


def test_initialize_accepts_start_unconditionally():
    model = gen_standard_normal_model()
    sampler = RandomWalkMH(initial_params=3.0)
    transition, state = sampler.initialize(jr.PRNGKey(0), model)
    assert float(transition.value) == 3.0
    assert transition.log_density == -4.5
    assert isinstance(state, MHState)
    assert state.log_density == transition.log_density


def test_driver_value_overrides_configured_start():
    model = gen_standard_normal_model()
    sampler = RandomWalkMH(initial_params=3.0)
    transition, _ = sampler.initialize(jr.PRNGKey(0), model, 1.0)
    assert float(transition.value) == 1.0


def test_default_start_is_zeros():
    model = gen_gaussian_model(dim=3)
    transition, _ = RandomWalkMH().initialize(jr.PRNGKey(0), model)
    assert np.array_equal(np.asarray(transition.value), np.zeros(3))


def test_start_dimension_mismatch():
    model = gen_gaussian_model(dim=2)
    with pytest.raises(ConfigurationError):
        RandomWalkMH().initialize(jr.PRNGKey(0), model, jnp.zeros(5))


def test_proposal_dimension_mismatch():
    model = gen_gaussian_model(dim=2)
    sampler = MetropolisHastings(
        proposal=Proposal(sample=lambda key, theta: jnp.zeros(3))
    )
    _, state = sampler.initialize(jr.PRNGKey(0), model)
    with pytest.raises(ConfigurationError):
        sampler.step(jr.PRNGKey(1), model, state)


def test_out_of_support_proposal_is_rejected():
    model = gen_box_model(-1.0, 1.0)
    sampler = MetropolisHastings(proposal=shift_proposal(5.0))
    _, state = sampler.initialize(jr.PRNGKey(0), model, jnp.array([0.0]))
    for seed in range(20):
        transition, new_state = sampler.step(jr.PRNGKey(seed), model, state)
        assert new_state is state
        assert transition.stats["is_accept"] == 0.0
        assert transition.stats["log_alpha"] == -math.inf
        assert np.array_equal(np.asarray(transition.value), [0.0])


def test_uphill_proposal_is_accepted():
    model = gen_standard_normal_model()
    sampler = MetropolisHastings(proposal=shift_proposal(-1.0))
    _, state = sampler.initialize(jr.PRNGKey(0), model, 2.0)
    transition, state = sampler.step(jr.PRNGKey(1), model, state)
    assert float(state.value) == 1.0
    assert transition.log_density == -0.5
    assert transition.stats["is_accept"] == 1.0
    assert transition.stats["log_alpha"] == 1.5


def test_hastings_correction_enters_ratio():
    model = gen_standard_normal_model()
    proposal = gen_independent_proposal(mean=jnp.array(0.0), scale=2.0)
    sampler = MetropolisHastings(proposal=proposal)
    _, state = sampler.initialize(jr.PRNGKey(0), model, 1.0)

    key = jr.PRNGKey(4)
    transition, _ = sampler.step(key, model, state)

    key_prop, _ = jr.split(key)
    candidate = proposal.sample(key_prop, state.value)
    expected = (
        model.evaluate(candidate) - state.log_density
        + proposal.log_hastings(state.value, candidate)
    )
    assert np.isclose(transition.stats["log_alpha"], expected)
    assert proposal.log_hastings(state.value, candidate) != 0.0


def test_independence_sampler_targets_standard_normal():
    model = gen_standard_normal_model()
    sampler = MetropolisHastings(
        proposal=gen_independent_proposal(mean=jnp.array(0.0), scale=2.0)
    )
    key = jr.PRNGKey(11)
    key, subkey = jr.split(key)
    _, state = sampler.initialize(subkey, model, 0.0)
    xs = []
    for _ in range(3000):
        key, subkey = jr.split(key)
        transition, state = sampler.step(subkey, model, state)
        xs.append(float(transition.value))
    xs = np.array(xs)
    assert abs(xs.mean()) < 0.15
    assert abs(xs.var() - 1.0) < 0.2


def test_state_reflects_last_accepted_point():
    model = gen_gaussian_model(dim=2)
    sampler = RandomWalkMH(scale=0.8)
    key = jr.PRNGKey(5)
    transition, state = sampler.initialize(key, model)
    for _ in range(100):
        key, subkey = jr.split(key)
        previous = state
        transition, state = sampler.step(subkey, model, state)
        assert np.array_equal(np.asarray(transition.value), np.asarray(state.value))
        assert transition.log_density == state.log_density
        if transition.stats["is_accept"] == 0.0:
            assert state is previous


def test_zero_probability_start_warns(caplog):
    model = gen_box_model(-1.0, 1.0)
    with caplog.at_level(logging.WARNING, logger="AMCMC.sampler"):
        transition, _ = RandomWalkMH().initialize(jr.PRNGKey(0), model, jnp.array([3.0]))
    assert transition.log_density == -math.inf
    assert "zero probability" in caplog.text


def test_hmc_step_protocol():
    model = gen_gaussian_model(dim=2)
    sampler = HamiltonianMC(step_size=0.2, n_steps=5)
    transition, state = sampler.initialize(jr.PRNGKey(0), model, jnp.array([1.0, -1.0]))
    assert isinstance(state, HMCState)
    transition, state = sampler.step(jr.PRNGKey(1), model, state)
    assert transition.value.shape == (2,)
    assert transition.log_density == model.evaluate(transition.value)
    assert set(transition.stats) == {"is_accept", "log_alpha"}


def test_hmc_never_leaves_support():
    model = gen_box_model([-0.5, -0.5], [0.5, 0.5])
    sampler = HamiltonianMC(step_size=0.5, n_steps=3)
    key = jr.PRNGKey(2)
    _, state = sampler.initialize(key, model, jnp.zeros(2))
    for _ in range(30):
        key, subkey = jr.split(key)
        transition, state = sampler.step(subkey, model, state)
        assert transition.log_density == 0.0


def test_hmc_rejects_bad_configuration():
    model = gen_gaussian_model(dim=2)
    with pytest.raises(ConfigurationError):
        HamiltonianMC(step_size=0.0, n_steps=5).initialize(jr.PRNGKey(0), model)


def test_hmc_divergent_trajectory_is_rejected():
    # step_size > 2 makes leapfrog unstable on N(0,1); q and p overflow
    model = gen_gaussian_model(dim=1)
    sampler = HamiltonianMC(step_size=3.0, n_steps=600)
    chain = sample(
        4, model, sampler, 3, initial_params=jnp.array([1.0]), include_stats=True
    )
    assert np.array_equal(chain.get("is_accept"), [1.0, 0.0, 0.0])
    assert np.array_equal(chain.get("Parameter 1"), [1.0, 1.0, 1.0])
    assert np.all(chain.get("log_alpha")[1:] == -np.inf)
