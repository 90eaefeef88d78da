"""Solver package."""

from dtdforge.solvers.deconvolution import DeconvolutionModel, uniform_weights
from dtdforge.solvers.projections import (
    NormFunction,
    ProjectionConfig,
    Projector,
    SubspaceFunction,
    ThresholdFunction,
    norm_constraint,
    subspace_constraint,
    threshold,
)

__all__ = [
    "DeconvolutionModel",
    "uniform_weights",
    "NormFunction",
    "ProjectionConfig",
    "Projector",
    "SubspaceFunction",
    "ThresholdFunction",
    "norm_constraint",
    "subspace_constraint",
    "threshold",
]
