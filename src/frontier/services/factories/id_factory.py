"""Utilities for creating instance identifiers."""
from __future__ import annotations

from frontier.core.rng import RNG


def make_instance_id(prefix: str, rng: RNG) -> str:
    """Return ``prefix`` with a random hex suffix, unique enough for one run."""
    suffix = rng.randint(0, 0xFFFFFFFF)
    return f"{prefix}_{suffix:08x}"


def make_run_id(rng: RNG) -> str:
    return make_instance_id("run", rng)
