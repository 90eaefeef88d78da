"""Synthetic data for dtdforge."""

from dtdforge.data.synthetic import (
    SyntheticDataset,
    generate_dataset,
    random_proportions,
    random_reference,
    simulate_bulk,
)

__all__ = [
    "SyntheticDataset",
    "generate_dataset",
    "random_proportions",
    "random_reference",
    "simulate_bulk",
]
