"""
Central pytest configuration for this project.

This file is automatically discovered by pytest and is intended for:

- **Fixtures**: reusable objects or setup logic shared across multiple test files.
- **Pytest hooks**: project-wide customizations of pytest behavior.

Notes
-----
- Contributors should install the package in editable mode
  (`pip install -e .[test]`) so that imports are resolved consistently in
  local dev and CI environments.
- The JAGS binary is never required: the `fake_jags` fixture replaces the
  sampler subprocess with a writer of synthetic CODA files.
- Keep this file focused on test setup. Do not add application logic here.
"""

import re
import subprocess
from pathlib import Path

import jax.random as jr
import numpy as np
import pytest

from flustate.data import FluSeries
from flustate.posterior import SampleMatrix


@pytest.fixture
def key():
    """Fixed PRNG key."""
    return jr.PRNGKey(0)


@pytest.fixture
def flu_series():
    """Synthetic weekly series on the natural scale (a noisy random walk in log space)."""
    rng = np.random.default_rng(7)
    n = 30
    log_level = np.log(800.0) + np.cumsum(rng.normal(0.0, 0.1, n))
    values = np.exp(log_level + rng.normal(0.0, 0.05, n))
    dates = [f"2012-{1 + i // 4:02d}-{1 + 7 * (i % 4):02d}" for i in range(n)]
    return FluSeries(dates, values, region="Massachusetts")


@pytest.fixture
def two_chain_matrix():
    """Two chains of 50 draws for x[1..4] plus two scalar parameters."""
    rng = np.random.default_rng(3)
    names = ["tau_add", "x[1]", "x[2]", "x[3]", "x[4]", "tau_obs"]
    chains = [rng.normal(size=(50, len(names))) for _ in range(2)]
    return SampleMatrix.from_chains(names, chains)


def _write_coda(workdir, state_mean, scalars, n_chains, n_draws, sd):
    names = [f"x[{t + 1}]" for t in range(len(state_mean))] + list(scalars)
    with open(workdir / "CODAindex.txt", "w") as f:
        for j, name in enumerate(names):
            f.write(f"{name} {j * n_draws + 1} {(j + 1) * n_draws}\n")
    for chain in range(1, n_chains + 1):
        rng = np.random.default_rng(chain)
        with open(workdir / f"CODAchain{chain}.txt", "w") as f:
            for mean in list(state_mean) + list(scalars.values()):
                for it, value in enumerate(rng.normal(mean, sd, n_draws), start=1):
                    f.write(f"{it} {value}\n")


@pytest.fixture
def fake_jags(monkeypatch):
    """
    Replace the JAGS subprocess.

    Returns an installer: ``calls = fake_jags(state_mean, ...)``. Each sampler
    run appends a dict with the command, the working directory, the script
    and the text of every input file to ``calls``. With
    ``write_output=False`` the fake exits cleanly without writing CODA files.
    """

    def install(state_mean, *, sd=0.05, scalars=None, returncode=0, stdout="", write_output=True):
        state_mean = np.asarray(state_mean, dtype=float)
        scalars = scalars if scalars is not None else {"tau_add": 50.0, "tau_obs": 10.0}
        calls = []

        def run(cmd, cwd=None, capture_output=False, text=False, timeout=None):
            workdir = Path(cwd)
            script = (workdir / "script.cmd").read_text()
            calls.append(
                {
                    "cmd": cmd,
                    "cwd": workdir,
                    "script": script,
                    "files": {p.name: p.read_text() for p in workdir.iterdir()},
                }
            )
            n_chains = int(re.search(r"nchains\((\d+)\)", script).group(1))
            n_iter = int(re.search(r"^update (\d+)$", script, re.M).group(1))
            thin = int(re.search(r"thin\((\d+)\)", script).group(1))
            if write_output and returncode == 0 and not stdout:
                _write_coda(workdir, state_mean, scalars, n_chains, n_iter // thin, sd)
            return subprocess.CompletedProcess(
                cmd, returncode, stdout=stdout, stderr="boom" if returncode else ""
            )

        monkeypatch.setattr("flustate.inference.jags.subprocess.run", run)
        monkeypatch.setattr("flustate.inference.jags.shutil.which", lambda name: "/opt/jags/bin/jags")
        return calls

    return install
