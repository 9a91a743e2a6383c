"""
jags.py
-------

Run the external JAGS sampler as a subprocess.

The sampler is a black box: we hand it a model description, a data file,
one initial-value file per chain and a command script, and read back the
CODA files it writes. Everything random on our side (bootstrap initial
values, each chain's RNG seed) comes from the JAX key passed to fit().

Connections
-----------
- StateSpaceModel.to_jags() / data() / variable_names() describe the fit
- bootstrap_initial_values() supplies default per-chain inits
- read_coda() turns the output into a SampleMatrix
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import numpy as np

from flustate.errors import SamplerError
from flustate.inference.base import InferenceEngine, observations
from flustate.inference.jags_io import read_coda, write_rdump
from flustate.posterior.sample_matrix import SampleMatrix
from flustate.utils.bootstrap import bootstrap_initial_values
from flustate.utils.rng import chain_seeds, seed, split

logger = logging.getLogger(__name__)

RNG_NAME = "base::Mersenne-Twister"
CODA_STEM = "CODA"


@dataclass
class SamplerConfig:
    """
    Settings for a JAGS run.

    Attributes
    ----------
    n_chains : int, default=3
        Independent chains.
    n_adapt : int, default=1000
        Adaptation iterations (not recorded).
    n_iter : int, default=1000
        Recorded iterations per chain (before thinning).
    burnin : int, default=0
        Recorded draws dropped from the start of each chain after sampling.
    thin : int, default=1
        Keep every ``thin``-th iteration.
    jags_executable : str, optional
        Path to the ``jags`` binary. Defaults to ``jags`` on the PATH.
    workdir : str, optional
        Directory for model/data/output files. Defaults to a fresh
        temporary directory. A given directory is reused across runs;
        CODA output from an earlier run is removed before sampling.
    keep_files : bool, default=False
        Keep the temporary directory after the run (for debugging).
    timeout : float, optional
        Seconds before the sampler process is killed.

    Examples
    --------
    >>> config = SamplerConfig(n_chains=3, n_iter=5000, burnin=1000)
    """

    n_chains: int = 3
    n_adapt: int = 1000
    n_iter: int = 1000
    burnin: int = 0
    thin: int = 1
    jags_executable: str | None = None
    workdir: str | None = None
    keep_files: bool = False
    timeout: float | None = None

    def __post_init__(self):
        """Validate configuration."""
        if self.n_chains < 1:
            raise ValueError(f"n_chains must be positive, got {self.n_chains}")
        if self.n_adapt < 0:
            raise ValueError(f"n_adapt must be non-negative, got {self.n_adapt}")
        if self.n_iter < 1:
            raise ValueError(f"n_iter must be positive, got {self.n_iter}")
        if self.thin < 1:
            raise ValueError(f"thin must be positive, got {self.thin}")
        if not 0 <= self.burnin < self.draws_per_chain:
            raise ValueError(
                f"burnin must be in [0, {self.draws_per_chain}) "
                f"(n_iter / thin), got {self.burnin}"
            )

    @property
    def draws_per_chain(self) -> int:
        """Recorded draws per chain before burn-in removal."""
        return self.n_iter // self.thin

    def resolve_executable(self) -> str:
        """
        Locate the JAGS binary.

        Raises
        ------
        SamplerError
            If it cannot be found.
        """
        candidate = self.jags_executable or "jags"
        found = shutil.which(candidate)
        if found is None:
            raise SamplerError(
                f"JAGS executable {candidate!r} not found; install JAGS "
                "or set SamplerConfig.jags_executable"
            )
        return found


class JagsSampler(InferenceEngine):
    """
    MCMC via the JAGS command-line program.

    Parameters
    ----------
    config : SamplerConfig, optional
        Run settings. Defaults to SamplerConfig().

    Examples
    --------
    >>> sampler = JagsSampler(SamplerConfig(n_iter=5000, burnin=1000))
    >>> samples = sampler.fit(RandomWalk(), series.log(), key=seed(42))
    >>> samples.groups["x"][:3]
    (1, 2, 3)
    """

    def __init__(self, config: SamplerConfig | None = None):
        self.config = config or SamplerConfig()

    def fit(
        self,
        model,
        y,
        *,
        inits: Sequence[dict[str, Any]] | None = None,
        key: Any = None,
    ) -> SampleMatrix:
        """
        Sample the posterior of ``model`` given observations ``y``.

        Parameters
        ----------
        model : StateSpaceModel
            Model to fit.
        y : FluSeries or array-like
            Observations on the model scale; NaN marks missing steps.
        inits : sequence of dict, optional
            One initial-value mapping per chain. Defaults to bootstrap
            initial values drawn with ``key``.
        key : jax.Array, optional
            PRNG key for initial values and chain seeds. If None, defaults
            to seed(0).

        Returns
        -------
        SampleMatrix
            Draws of model.variable_names() from all chains, burn-in removed.

        Raises
        ------
        SamplerError
            If JAGS is missing, fails, times out, or writes no output.
        """
        cfg = self.config
        values = observations(y)
        data = model.data(values)

        key = seed(0) if key is None else key
        init_key, seed_key = split(key)
        if inits is None:
            inits = bootstrap_initial_values(values, cfg.n_chains, key=init_key)
        if len(inits) != cfg.n_chains:
            raise ValueError(f"got {len(inits)} init mappings for {cfg.n_chains} chains")
        seeds = chain_seeds(seed_key, cfg.n_chains)

        executable = cfg.resolve_executable()
        workdir = Path(cfg.workdir) if cfg.workdir else Path(tempfile.mkdtemp(prefix="flustate-"))
        workdir.mkdir(parents=True, exist_ok=True)
        try:
            self._clear_output(workdir)
            self._write_inputs(workdir, model, data, inits, seeds)
            self._run(executable, workdir)
            samples = read_coda(workdir, stem=CODA_STEM, n_chains=cfg.n_chains)
        finally:
            if cfg.workdir is None and not cfg.keep_files:
                shutil.rmtree(workdir, ignore_errors=True)
            else:
                logger.info("sampler files kept in %s", workdir)

        logger.info(
            "sampled %d draws x %d columns from %d chains",
            len(samples),
            len(samples.names),
            samples.n_chains,
        )
        return samples.discard_burnin(cfg.burnin)

    # ------------------------------------------------------------------
    # HELPERS
    # ------------------------------------------------------------------
    def script(self, variable_names: Sequence[str]) -> str:
        """JAGS command script for the configured run."""
        cfg = self.config
        lines = [
            'model in "model.bug"',
            'data in "data.R"',
            f"compile, nchains({cfg.n_chains})",
        ]
        for chain in range(1, cfg.n_chains + 1):
            lines.append(f'parameters in "inits{chain}.R", chain({chain})')
        lines.append("initialize")
        if cfg.n_adapt > 0:
            lines.append(f"adapt {cfg.n_adapt}")
        for name in variable_names:
            lines.append(f"monitor {name}, thin({cfg.thin})")
        lines.append(f"update {cfg.n_iter}")
        lines.append(f"coda *, stem({CODA_STEM})")
        lines.append("exit")
        return "\n".join(lines) + "\n"

    def _clear_output(self, workdir: Path) -> None:
        # a reused workdir may hold CODA files from an earlier run
        for path in workdir.glob(f"{CODA_STEM}*.txt"):
            logger.debug("removing stale sampler output %s", path)
            path.unlink()

    def _write_inputs(self, workdir: Path, model, data, inits, seeds) -> None:
        (workdir / "model.bug").write_text(model.to_jags())
        write_rdump(data, workdir / "data.R")
        for chain, (init, rng_seed) in enumerate(zip(inits, seeds), start=1):
            chain_init = {k: np.asarray(v) for k, v in init.items()}
            write_rdump(
                {**chain_init, ".RNG.name": RNG_NAME, ".RNG.seed": rng_seed},
                workdir / f"inits{chain}.R",
            )
        (workdir / "script.cmd").write_text(self.script(model.variable_names()))
        logger.debug("wrote sampler inputs to %s", workdir)

    def _run(self, executable: str, workdir: Path) -> None:
        cmd = [executable, "script.cmd"]
        logger.info("running %s in %s", " ".join(cmd), workdir)
        start = time.perf_counter()
        try:
            result = subprocess.run(
                cmd,
                cwd=workdir,
                capture_output=True,
                text=True,
                timeout=self.config.timeout,
            )
        except FileNotFoundError as exc:
            raise SamplerError(f"could not start sampler: {exc}") from exc
        except subprocess.TimeoutExpired as exc:
            raise SamplerError(f"sampler timed out after {self.config.timeout} s") from exc

        elapsed = time.perf_counter() - start
        logger.info("sampler finished in %.1f s (exit code %d)", elapsed, result.returncode)
        logger.debug("sampler stdout:\n%s", result.stdout)

        # JAGS reports model errors on stdout and may still exit 0
        error_lines = [
            line for line in result.stdout.splitlines() if "error" in line.lower()
        ]
        if result.returncode != 0 or error_lines:
            raise SamplerError(
                "sampler failed" + (": " + "; ".join(error_lines) if error_lines else ""),
                returncode=result.returncode,
                stderr=result.stderr,
            )
