"""
Description:
    Chain assembly from a sequence of transitions.
    USE THE CORRECT ENVIRONMENT:  AMCMC

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1
"""
from typing import Any, NamedTuple, Optional, Sequence, Tuple
import numpy as np

from AMCMC.datatypes import Transition
from AMCMC.exceptions import ConfigurationError

LOG_DENSITY = "log_density" # reserved diagnostic column

class Chain(NamedTuple):
    """
    Finalized sampling result.

    values: (n_iterations, n_columns), read-only
    internal: True for diagnostic columns, False for user parameters
    """
    names: Tuple[str, ...]
    values: np.ndarray
    internal: Tuple[bool, ...]
    final_state: Any = None # sampler state after the last step, for resuming

    @property
    def n_iterations(self) -> int:
        return self.values.shape[0]

    @property
    def n_parameters(self) -> int:
        return self.internal.count(False)

    @property
    def parameter_names(self) -> Tuple[str, ...]:
        return tuple(n for n, i in zip(self.names, self.internal) if not i)

    def index(self, name: str) -> int:
        try:
            return self.names.index(name)
        except ValueError:
            raise KeyError(f"No column named {name!r}") from None

    def get(self, name: str) -> np.ndarray:
        """Single column by name"""
        return self.values[:, self.index(name)]

    def parameters(self) -> np.ndarray:
        """(n_iterations, n_parameters) user columns only"""
        mask = np.logical_not(np.array(self.internal, dtype=bool))
        return self.values[:, mask]

def stats_names(transitions: Sequence[Transition]) -> Tuple[str, ...]:
    """Sorted stats keys, which must agree across all transitions"""
    first = tuple(sorted(transitions[0].stats or ()))
    for i, t in enumerate(transitions):
        keys = tuple(sorted(t.stats or ()))
        if keys != first:
            raise ConfigurationError(
                f"Transition {i} has stats {keys}, expected {first}"
            )
    return first

def assemble(
    transitions: Sequence[Transition],
    param_names: Optional[Sequence[str]] = None,
    include_stats: bool = False,
    final_state: Any = None
) -> Chain:
    """
    Bundle transitions into a Chain.

    Args:
        transitions: Ordered output of the driver
        param_names: One name per scalar parameter, default "Parameter i"
        include_stats: Also append each transition stats key as a column
        final_state: Sampler state to keep for resuming

    Returns:
        Chain with parameters, then log_density, then sorted stats columns
    """
    if len(transitions) == 0:
        raise ConfigurationError("Cannot assemble a chain from zero transitions")

    rows = [np.ravel(np.asarray(t.value, dtype=float)) for t in transitions]
    dim = rows[0].shape[0]
    for i, row in enumerate(rows):
        if row.shape[0] != dim:
            raise ConfigurationError(
                f"Transition {i} has {row.shape[0]} parameters, expected {dim}"
            )

    if param_names is None:
        param_names = [f"Parameter {i}" for i in range(1, dim + 1)]
    param_names = tuple(param_names)
    if len(param_names) != dim:
        raise ConfigurationError(
            f"Got {len(param_names)} names for {dim} parameters"
        )
    if len(set(param_names)) != dim:
        raise ConfigurationError(f"Duplicate parameter names in {param_names}")

    extra = stats_names(transitions) if include_stats else ()
    diagnostics = (LOG_DENSITY,) + extra
    clash = set(param_names) & set(diagnostics)
    if clash:
        raise ConfigurationError(
            f"Parameter names {sorted(clash)} collide with diagnostic columns"
        )

    values = np.empty((len(transitions), dim + len(diagnostics)))
    values[:, :dim] = np.stack(rows)
    values[:, dim] = [t.log_density for t in transitions]
    for j, name in enumerate(extra, start=dim + 1):
        values[:, j] = [t.stats[name] for t in transitions]
    values.setflags(write=False)

    return Chain(
        names=param_names + diagnostics,
        values=values,
        internal=(False,) * dim + (True,) * len(diagnostics),
        final_state=final_state
    )

def chainscat(chains: Sequence[Chain]) -> Chain:
    """Concatenate chains with identical columns along the iteration axis"""
    if len(chains) == 0:
        raise ConfigurationError("No chains to concatenate")
    first = chains[0]
    for c in chains[1:]:
        if c.names != first.names or c.internal != first.internal:
            raise ConfigurationError("Chains have different columns")
    values = np.concatenate([c.values for c in chains], axis=0)
    values.setflags(write=False)
    return Chain(
        names=first.names,
        values=values,
        internal=first.internal,
        final_state=chains[-1].final_state
    )
