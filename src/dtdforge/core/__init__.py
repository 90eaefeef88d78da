"""Core data structures and utilities."""

from dtdforge.core.errors import (
	DeconvolutionError,
	DegenerateRow,
	DimensionMismatch,
	LinearAlgebraFailure,
	UnimplementedVariant,
	ZeroNormVector,
)
from dtdforge.core.linalg import (
	EstimateCType,
	check_posdefmat,
	estimate_c,
	estimate_c_direct,
	estimate_nn_c,
	invxtgx,
	weighted_gram,
)

__all__ = [
	# Errors
	"DeconvolutionError",
	"DegenerateRow",
	"DimensionMismatch",
	"LinearAlgebraFailure",
	"UnimplementedVariant",
	"ZeroNormVector",
	# Linear algebra
	"EstimateCType",
	"check_posdefmat",
	"estimate_c",
	"estimate_c_direct",
	"estimate_nn_c",
	"invxtgx",
	"weighted_gram",
]
