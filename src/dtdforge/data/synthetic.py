"""
Synthetic reference and bulk data for demos and tests.

The generative model mirrors the deconvolution setting:

    Y = X C ⊙ (1 + noise · ε),   ε ~ N(0, 1)

with X a positive reference matrix in which every gene has one dominant
cell type, and C a matrix of per-sample cell-type proportions (columns drawn
from a flat Dirichlet distribution).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from dtdforge.core.errors import DimensionMismatch


@dataclass
class SyntheticDataset:
    """Reference, bulk and true profiles of one simulated experiment."""

    x: np.ndarray
    y: np.ndarray
    c: np.ndarray
    gene_names: List[str]
    cell_types: List[str]
    sample_names: List[str]

    @property
    def n_genes(self) -> int:
        return self.x.shape[0]


def random_reference(
    n_genes: int,
    n_cell_types: int,
    rng: np.random.Generator,
    marker_boost: float = 5.0,
) -> np.ndarray:
    """Positive reference matrix; gene i is a marker of cell type i mod k."""
    if n_genes < n_cell_types:
        raise DimensionMismatch("need at least as many genes as cell types")
    x = rng.lognormal(mean=0.0, sigma=0.5, size=(n_genes, n_cell_types))
    x[np.arange(n_genes), np.arange(n_genes) % n_cell_types] *= marker_boost
    return x


def random_proportions(
    n_cell_types: int,
    n_samples: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """Cell-type proportions, one Dirichlet(1, ..., 1) column per sample."""
    return rng.dirichlet(np.ones(n_cell_types), size=n_samples).T


def simulate_bulk(
    x: np.ndarray,
    c: np.ndarray,
    noise: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """Mix reference profiles and apply multiplicative Gaussian noise."""
    x = np.asarray(x, dtype=float)
    c = np.asarray(c, dtype=float)
    if x.shape[1] != c.shape[0]:
        raise DimensionMismatch(f"X has {x.shape[1]} cell types but C has {c.shape[0]} rows")
    clean = x @ c
    if noise <= 0:
        return clean
    return clean * (1.0 + noise * rng.standard_normal(clean.shape))


def generate_dataset(
    n_genes: int = 100,
    n_cell_types: int = 5,
    n_samples: int = 20,
    noise: float = 0.01,
    seed: Optional[int] = None,
) -> SyntheticDataset:
    """
    Simulate a complete (X, Y, C) triple.

    Parameters
    ----------
    n_genes : int
        Number of genes (rows of X and Y)
    n_cell_types : int
        Number of cell types (columns of X, rows of C)
    n_samples : int
        Number of bulk samples (columns of Y and C)
    noise : float
        Relative standard deviation of the multiplicative noise
    seed : int, optional
        Seed for ``numpy.random.default_rng``

    Returns
    -------
    SyntheticDataset
    """
    rng = np.random.default_rng(seed)
    x = random_reference(n_genes, n_cell_types, rng)
    c = random_proportions(n_cell_types, n_samples, rng)
    y = simulate_bulk(x, c, noise, rng)
    return SyntheticDataset(
        x=x,
        y=y,
        c=c,
        gene_names=[f"gene{i + 1}" for i in range(n_genes)],
        cell_types=[f"type{i + 1}" for i in range(n_cell_types)],
        sample_names=[f"sample{i + 1}" for i in range(n_samples)],
    )


__all__ = [
    "SyntheticDataset",
    "random_reference",
    "random_proportions",
    "simulate_bulk",
    "generate_dataset",
]
