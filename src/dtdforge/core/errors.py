"""Error taxonomy shared by the deconvolution core."""

from __future__ import annotations


class DeconvolutionError(Exception):
    """Base class for every error raised by dtdforge."""


class DimensionMismatch(DeconvolutionError, ValueError):
    """Row or column counts of the inputs are inconsistent."""


class LinearAlgebraFailure(DeconvolutionError, ValueError):
    """The weighted Gram matrix X^T diag(g) X is not positive definite."""


class DegenerateRow(DeconvolutionError, ValueError):
    """A row has zero variance, so its correlation is undefined."""


class UnimplementedVariant(DeconvolutionError, NotImplementedError):
    """An unsupported threshold, norm, subspace or estimate variant was selected."""


class ZeroNormVector(DeconvolutionError, ValueError):
    """A zero vector cannot be rescaled to unit norm."""


__all__ = [
    "DeconvolutionError",
    "DimensionMismatch",
    "LinearAlgebraFailure",
    "DegenerateRow",
    "UnimplementedVariant",
    "ZeroNormVector",
]
