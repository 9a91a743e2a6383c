"""
jags_io.py
----------

Text formats JAGS reads and writes.

- R dump (``"name" <- c(...)``): data and per-chain initial values
- CODA: sampler output, one ``<stem>index.txt`` file naming the monitored
  nodes and their line ranges, plus one ``<stem>chain<k>.txt`` file per
  chain with ``iteration value`` lines

Notes
-----
NaN is written as ``NA``; JAGS treats NA observations as unobserved
stochastic nodes and samples them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Union

import numpy as np

from flustate.errors import SamplerError
from flustate.posterior.sample_matrix import SampleMatrix

PathLike = Union[str, Path]


def format_rdump(values: Mapping[str, Any]) -> str:
    """
    Render a mapping of name -> scalar/vector/string in R dump format.

    Parameters
    ----------
    values : mapping
        Scalars (int/float), 1D arrays, or strings (e.g. ``.RNG.name``).

    Returns
    -------
    str
    """
    lines = []
    for name, value in values.items():
        if isinstance(value, str):
            rendered = f'"{value}"'
        else:
            arr = np.asarray(value)
            if arr.ndim == 0:
                rendered = _format_scalar(arr.item())
            elif arr.ndim == 1:
                rendered = "c(" + ", ".join(_format_scalar(v) for v in arr.tolist()) + ")"
            else:
                raise ValueError(f"{name!r}: only scalars and vectors are supported, got shape {arr.shape}")
        lines.append(f'"{name}" <- {rendered}')
    return "\n".join(lines) + "\n"


def write_rdump(values: Mapping[str, Any], path: PathLike) -> None:
    """Write ``values`` to ``path`` in R dump format."""
    Path(path).write_text(format_rdump(values))


def read_coda(directory: PathLike, stem: str = "CODA", n_chains: int | None = None) -> SampleMatrix:
    """
    Read CODA output into a SampleMatrix.

    Parameters
    ----------
    directory : str or Path
        Directory holding ``<stem>index.txt`` and ``<stem>chain<k>.txt``.
    stem : str, default="CODA"
        File name prefix given to the JAGS ``coda`` command.
    n_chains : int, optional
        Number of chains the run was configured with. Exactly
        ``<stem>chain1.txt`` .. ``<stem>chain<n_chains>.txt`` are read. If None,
        consecutive chain files are read until one is missing.

    Returns
    -------
    SampleMatrix
        Columns in index-file order; rows ordered by chain, then iteration.

    Raises
    ------
    SamplerError
        If the index or chain files are missing or inconsistent, or fewer
        than ``n_chains`` chain files exist.
    """
    directory = Path(directory)
    index_path = directory / f"{stem}index.txt"
    if not index_path.exists():
        raise SamplerError(f"sampler produced no CODA index file ({index_path})")

    entries = []
    for line in index_path.read_text().splitlines():
        if not line.strip():
            continue
        name, first, last = line.rsplit(maxsplit=2)
        entries.append((name, int(first), int(last)))
    if not entries:
        raise SamplerError(f"{index_path} lists no monitored nodes")

    if n_chains is not None:
        chain_paths = [directory / f"{stem}chain{k}.txt" for k in range(1, n_chains + 1)]
        missing = [p.name for p in chain_paths if not p.exists()]
        if missing:
            raise SamplerError(f"sampler wrote no output for {missing} in {directory}")
    else:
        chain_paths = []
        k = 1
        while (directory / f"{stem}chain{k}.txt").exists():
            chain_paths.append(directory / f"{stem}chain{k}.txt")
            k += 1
    if not chain_paths:
        raise SamplerError(f"no CODA chain files with stem {stem!r} in {directory}")

    lengths = {last - first + 1 for _, first, last in entries}
    if len(lengths) != 1:
        raise SamplerError(f"monitored nodes have different numbers of draws: {sorted(lengths)}")
    n_iter = lengths.pop()

    names = [name for name, _, _ in entries]
    chains = []
    for path in chain_paths:
        table = np.loadtxt(path, ndmin=2)
        values = table[:, 1]
        draws = np.empty((n_iter, len(entries)))
        for j, (name, first, last) in enumerate(entries):
            if last > values.shape[0]:
                raise SamplerError(f"{path} is truncated: {name} needs lines {first}-{last}")
            draws[:, j] = values[first - 1 : last]
        chains.append(draws)

    return SampleMatrix.from_chains(names, chains)


def _format_scalar(value: Any) -> str:
    if isinstance(value, (bool, np.bool_)):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    value = float(value)
    if np.isnan(value):
        return "NA"
    if np.isinf(value):
        raise ValueError("R dump cannot represent infinite values")
    return repr(value)
