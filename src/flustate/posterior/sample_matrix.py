"""
sample_matrix.py
----------------

Container for posterior draws returned by an MCMC sampler.

A SampleMatrix holds one row per retained draw (all chains stacked) and one
column per monitored scalar node. Vector-valued nodes arrive as families of
columns named ``x[1], x[2], ...``; these are parsed once, when the matrix is
built, into a mapping from group name to ordered column positions so that
later lookups never re-scan column names.

Notes
-----
- Draws are stored as jax.numpy arrays (immutable). Every transformation
  (burn-in removal, thinning, selection) returns a new SampleMatrix.
- Only single-index names with a canonical integer index are grouped.
  ``beta[1,2]`` and ``x[01]`` stay ordinary columns, as does a bare scalar
  such as ``tau_obs``, so indices within a group are unique.
"""

from __future__ import annotations

import re
import warnings
from dataclasses import dataclass
from typing import Iterator, Mapping, Sequence

import jax.numpy as jnp
import numpy as np

from flustate.errors import LengthMismatch, NoMatchingColumns

_INDEXED_NAME = re.compile(r"^(?P<name>[A-Za-z_.][\w.]*)\[(?P<index>0|[1-9]\d*)\]$")


@dataclass(frozen=True)
class VariableGroup:
    """
    Ordered draws for a vector-valued node (e.g. the latent state over time).

    Attributes
    ----------
    name : str
        Group name (column prefix), e.g. ``"x"``.
    indices : tuple of int
        Index parsed from each column name, strictly ascending.
    draws : jnp.ndarray, shape (n_draws, n_indices)
        Column ``j`` holds all draws of ``name[indices[j]]``.
    """

    name: str
    indices: tuple[int, ...]
    draws: jnp.ndarray

    def __len__(self) -> int:
        return len(self.indices)

    @property
    def column_names(self) -> list[str]:
        return [f"{self.name}[{i}]" for i in self.indices]

    @property
    def is_contiguous(self) -> bool:
        """True if the indices form an unbroken run (no missing time steps)."""
        if not self.indices:
            return True
        return self.indices[-1] - self.indices[0] + 1 == len(self.indices)

    def columns(self) -> Iterator[jnp.ndarray]:
        """Iterate over the per-index draw vectors in index order."""
        for j in range(len(self.indices)):
            yield self.draws[:, j]

    def check_alignment(self, time_index: Sequence) -> None:
        """
        Raise LengthMismatch unless ``time_index`` has one label per index.
        """
        if len(time_index) != len(self.indices):
            raise LengthMismatch(len(self.indices), len(time_index))


class SampleMatrix:
    """
    Posterior draws: rows are draws (all chains), columns are named scalars.

    Parameters
    ----------
    names : sequence of str
        Column names, unique.
    draws : array, shape (n_draws, n_columns)
        Draw values.
    chain : array of int, shape (n_draws,), optional
        Chain id of each row (0-based). Defaults to a single chain.

    Examples
    --------
    >>> sm = SampleMatrix.from_mapping({"x[1]": [0.1, 0.2], "x[2]": [0.3, 0.1]})
    >>> sm.groups
    {'x': (1, 2)}
    >>> sm.group("x").draws.shape
    (2, 2)
    """

    def __init__(self, names: Sequence[str], draws, chain=None) -> None:
        names = [str(n) for n in names]
        if len(set(names)) != len(names):
            dupes = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"duplicate column names: {dupes}")

        draws = jnp.asarray(draws)
        if draws.ndim == 1 and len(names) == 1:
            draws = draws[:, None]
        if draws.ndim != 2:
            raise ValueError(f"draws must be 2D (n_draws, n_columns), got shape {draws.shape}")
        if draws.shape[1] != len(names):
            raise LengthMismatch(len(names), draws.shape[1], what="draws column axis")

        if chain is None:
            chain = np.zeros(draws.shape[0], dtype=int)
        chain = np.asarray(chain, dtype=int)
        if chain.shape != (draws.shape[0],):
            raise LengthMismatch(draws.shape[0], chain.shape[0], what="chain ids")

        self._names = names
        self._position = {n: i for i, n in enumerate(names)}
        self._draws = draws
        self._chain = chain
        self._groups = _index_groups(names)

    # ------------------------------------------------------------------
    # CONSTRUCTORS
    # ------------------------------------------------------------------
    @classmethod
    def from_chains(cls, names: Sequence[str], chains: Sequence) -> SampleMatrix:
        """
        Stack per-chain draw arrays into one matrix.

        Parameters
        ----------
        names : sequence of str
            Column names shared by all chains.
        chains : sequence of arrays, each shape (n_iter_c, n_columns)
            Draws for each chain, in chain order.
        """
        if len(chains) == 0:
            raise ValueError("at least one chain is required")
        blocks = [jnp.asarray(c) for c in chains]
        chain_ids = np.concatenate(
            [np.full(b.shape[0], c, dtype=int) for c, b in enumerate(blocks)]
        )
        return cls(names, jnp.concatenate(blocks, axis=0), chain=chain_ids)

    @classmethod
    def from_mapping(cls, columns: Mapping[str, Sequence[float]]) -> SampleMatrix:
        """Build a single-chain matrix from a mapping of name -> draws."""
        names = list(columns)
        if not names:
            return cls([], jnp.zeros((0, 0)))
        lengths = {len(columns[n]) for n in names}
        if len(lengths) != 1:
            raise ValueError(f"all columns must hold the same number of draws, got {sorted(lengths)}")
        draws = jnp.stack([jnp.asarray(columns[n], dtype=jnp.float32) for n in names], axis=1)
        return cls(names, draws)

    # ------------------------------------------------------------------
    # ACCESSORS
    # ------------------------------------------------------------------
    @property
    def names(self) -> list[str]:
        return list(self._names)

    @property
    def draws(self) -> jnp.ndarray:
        return self._draws

    @property
    def chain_ids(self) -> np.ndarray:
        return self._chain.copy()

    @property
    def n_chains(self) -> int:
        return int(np.unique(self._chain).size)

    @property
    def groups(self) -> dict[str, tuple[int, ...]]:
        """Group name -> sorted indices, for every single-index node."""
        return {g: tuple(i for i, _ in members) for g, members in self._groups.items()}

    @property
    def scalar_names(self) -> list[str]:
        """Columns that do not belong to any group."""
        grouped = {self._names[p] for members in self._groups.values() for _, p in members}
        return [n for n in self._names if n not in grouped]

    def __len__(self) -> int:
        return int(self._draws.shape[0])

    def __contains__(self, name: object) -> bool:
        return name in self._position

    def __repr__(self) -> str:
        return (
            f"SampleMatrix(n_draws={len(self)}, n_columns={len(self._names)}, "
            f"n_chains={self.n_chains}, groups={sorted(self._groups)})"
        )

    def column(self, name: str) -> jnp.ndarray:
        """Return all draws of one column, shape (n_draws,)."""
        try:
            return self._draws[:, self._position[name]]
        except KeyError:
            raise KeyError(f"no column named {name!r}") from None

    def group(self, name: str, time_index: Sequence | None = None) -> VariableGroup:
        """
        Return the draws of a vector-valued node, ordered by index.

        Parameters
        ----------
        name : str
            Group name. Matches only columns named exactly ``name[<int>]``.
        time_index : sequence, optional
            External time labels; must have one label per group index.

        Raises
        ------
        NoMatchingColumns
            If no column belongs to the group.
        LengthMismatch
            If ``time_index`` is given and its length differs from the group size.
        """
        members = self._groups.get(name)
        if not members:
            raise NoMatchingColumns(name, available=sorted(self._groups))
        indices = tuple(i for i, _ in members)
        positions = jnp.asarray([p for _, p in members])
        group = VariableGroup(name=name, indices=indices, draws=self._draws[:, positions])
        if not group.is_contiguous:
            warnings.warn(
                f"group {name!r} has gaps in its indices "
                f"({indices[0]}..{indices[-1]}, {len(indices)} present)",
                stacklevel=2,
            )
        if time_index is not None:
            group.check_alignment(time_index)
        return group

    def by_chain(self, name: str) -> jnp.ndarray:
        """
        Return draws of one column split by chain, shape (n_chains, n_per_chain).

        Raises
        ------
        ValueError
            If chains hold different numbers of draws.
        """
        values = self.column(name)
        chains = np.unique(self._chain)
        counts = {int(np.sum(self._chain == c)) for c in chains}
        if len(counts) != 1:
            raise ValueError(f"chains have unequal lengths {sorted(counts)}")
        return jnp.stack([values[np.flatnonzero(self._chain == c)] for c in chains])

    def to_dict(self) -> dict[str, jnp.ndarray]:
        return {n: self._draws[:, i] for i, n in enumerate(self._names)}

    # ------------------------------------------------------------------
    # TRANSFORMATIONS (return new matrices)
    # ------------------------------------------------------------------
    def discard_burnin(self, n: int) -> SampleMatrix:
        """
        Drop the first ``n`` draws of every chain.

        Raises
        ------
        ValueError
            If ``n`` is negative.
        """
        if n < 0:
            raise ValueError(f"burn-in must be non-negative, got {n}")
        if n == 0:
            return self
        keep = np.zeros(len(self), dtype=bool)
        for c in np.unique(self._chain):
            rows = np.flatnonzero(self._chain == c)
            keep[rows[n:]] = True
        return self._take(keep)

    def thin(self, every: int) -> SampleMatrix:
        """Keep every ``every``-th draw of each chain, starting with the first."""
        if every < 1:
            raise ValueError(f"thinning interval must be >= 1, got {every}")
        if every == 1:
            return self
        keep = np.zeros(len(self), dtype=bool)
        for c in np.unique(self._chain):
            rows = np.flatnonzero(self._chain == c)
            keep[rows[::every]] = True
        return self._take(keep)

    def select(self, names: Sequence[str]) -> SampleMatrix:
        """Return a matrix restricted to the given columns (in the given order)."""
        missing = [n for n in names if n not in self._position]
        if missing:
            raise KeyError(f"unknown columns: {missing}")
        positions = jnp.asarray([self._position[n] for n in names], dtype=jnp.int32)
        return SampleMatrix(list(names), self._draws[:, positions], chain=self._chain)

    def _take(self, rows: np.ndarray) -> SampleMatrix:
        idx = np.flatnonzero(rows)
        return SampleMatrix(self._names, self._draws[idx], chain=self._chain[idx])


def _index_groups(names: Sequence[str]) -> dict[str, list[tuple[int, int]]]:
    """Map group name -> [(index, column position), ...] sorted by index."""
    groups: dict[str, list[tuple[int, int]]] = {}
    for pos, name in enumerate(names):
        match = _INDEXED_NAME.match(name)
        if match is None:
            continue
        groups.setdefault(match.group("name"), []).append((int(match.group("index")), pos))
    for members in groups.values():
        members.sort()
    return groups
