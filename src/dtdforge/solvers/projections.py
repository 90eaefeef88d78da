"""
Projection and constraint operators for candidate weight vectors.

These are applied by an external optimizer between gradient steps:

- threshold: soft thresholding, the proximal operator of the l1 penalty
- norm constraint: identity or rescaling to unit Euclidean norm
- subspace constraint: projection onto the non-negative orthant

Each operator has one dispatch table keyed by its variant enum. Selecting a
variant that is not in the table raises :class:`UnimplementedVariant`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Type, TypeVar, Union

import numpy as np

from dtdforge.core.errors import DimensionMismatch, UnimplementedVariant, ZeroNormVector


class ThresholdFunction(Enum):
    """Threshold variants."""

    SOFTMAX = "softmax"  # soft thresholding, historical name


class NormFunction(Enum):
    """Norm constraint variants."""

    IDENTITY = "identity"
    NORM2 = "norm2"


class SubspaceFunction(Enum):
    """Subspace constraint variants."""

    POSITIVE = "positive"


E = TypeVar("E", bound=Enum)


def _coerce_variant(enum_cls: Type[E], value: Union[E, str], kind: str) -> E:
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise UnimplementedVariant(f"unimplemented {kind} function: {value!r}") from exc


# -----------------------------------------------------------------------------
# Numeric helpers
# -----------------------------------------------------------------------------

def clamp_nonpositive(x: np.ndarray) -> np.ndarray:
    """Clamp entries to (-inf, 0]."""
    return np.minimum(np.asarray(x, dtype=float), 0.0)


def clamp_nonnegative(x: np.ndarray) -> np.ndarray:
    """Clamp entries to [0, inf)."""
    return np.maximum(np.asarray(x, dtype=float), 0.0)


def soft_threshold(x: np.ndarray, lam: Union[float, np.ndarray]) -> np.ndarray:
    """
    sign(x) * max(|x| - lambda, 0).

    ``lam`` is either a scalar or a vector with one threshold per entry.
    """
    x = np.asarray(x, dtype=float)
    lam_arr = np.asarray(lam, dtype=float)
    if lam_arr.ndim > 0 and lam_arr.shape != x.shape:
        raise DimensionMismatch(
            f"threshold must be a scalar or match the vector length {x.shape}, got {lam_arr.shape}"
        )
    if np.any(lam_arr < 0):
        raise ValueError("threshold must be non-negative")
    return np.sign(x) * np.maximum(np.abs(x) - lam_arr, 0.0)


def normalize_l2(x: np.ndarray) -> np.ndarray:
    """Rescale to unit Euclidean norm."""
    x = np.asarray(x, dtype=float)
    norm = float(np.linalg.norm(x))
    if norm == 0.0 or not np.isfinite(norm):
        raise ZeroNormVector("cannot rescale a zero (or non-finite) vector to unit norm")
    return x / norm


def _identity(x: np.ndarray) -> np.ndarray:
    return np.array(x, dtype=float, copy=True)


_THRESHOLD_DISPATCH: Dict[ThresholdFunction, Callable[..., np.ndarray]] = {
    ThresholdFunction.SOFTMAX: soft_threshold,
}

_NORM_DISPATCH: Dict[NormFunction, Callable[[np.ndarray], np.ndarray]] = {
    NormFunction.IDENTITY: _identity,
    NormFunction.NORM2: normalize_l2,
}

_SUBSPACE_DISPATCH: Dict[SubspaceFunction, Callable[[np.ndarray], np.ndarray]] = {
    SubspaceFunction.POSITIVE: clamp_nonnegative,
}


def _lookup(table: Dict[E, Callable], variant: E, kind: str) -> Callable:
    try:
        return table[variant]
    except KeyError as exc:
        raise UnimplementedVariant(f"unimplemented {kind} function: {variant!r}") from exc


# -----------------------------------------------------------------------------
# Operators
# -----------------------------------------------------------------------------

def threshold(
    v: np.ndarray,
    lam: Union[float, np.ndarray],
    function: Union[ThresholdFunction, str] = ThresholdFunction.SOFTMAX,
) -> np.ndarray:
    """Apply the threshold function; returns a new vector of the same length."""
    variant = _coerce_variant(ThresholdFunction, function, "threshold")
    return _lookup(_THRESHOLD_DISPATCH, variant, "threshold")(v, lam)


def norm_constraint(
    v: np.ndarray,
    function: Union[NormFunction, str] = NormFunction.IDENTITY,
) -> np.ndarray:
    """Apply the norm constraint; returns a new vector of the same length."""
    variant = _coerce_variant(NormFunction, function, "norm")
    return _lookup(_NORM_DISPATCH, variant, "norm")(v)


def subspace_constraint(
    v: np.ndarray,
    function: Union[SubspaceFunction, str] = SubspaceFunction.POSITIVE,
) -> np.ndarray:
    """Apply the subspace constraint; returns a new vector of the same length."""
    variant = _coerce_variant(SubspaceFunction, function, "subspace")
    return _lookup(_SUBSPACE_DISPATCH, variant, "subspace")(v)


@dataclass(frozen=True)
class ProjectionConfig:
    """
    Variant selection for the projection operators.

    Strings are accepted and converted to the enum members. Variants without
    an implementation are rejected here rather than on first use.

    Attributes
    ----------
    threshold : ThresholdFunction
        Sparsifying threshold (default SOFTMAX)
    norm : NormFunction
        Norm constraint (default IDENTITY)
    subspace : SubspaceFunction
        Feasible region (default POSITIVE)
    """

    threshold: ThresholdFunction = ThresholdFunction.SOFTMAX
    norm: NormFunction = NormFunction.IDENTITY
    subspace: SubspaceFunction = SubspaceFunction.POSITIVE

    def __post_init__(self):
        # frozen dataclass: bypass __setattr__ to store the coerced members
        threshold_fn = _coerce_variant(ThresholdFunction, self.threshold, "threshold")
        norm_fn = _coerce_variant(NormFunction, self.norm, "norm")
        subspace_fn = _coerce_variant(SubspaceFunction, self.subspace, "subspace")
        _lookup(_THRESHOLD_DISPATCH, threshold_fn, "threshold")
        _lookup(_NORM_DISPATCH, norm_fn, "norm")
        _lookup(_SUBSPACE_DISPATCH, subspace_fn, "subspace")
        object.__setattr__(self, "threshold", threshold_fn)
        object.__setattr__(self, "norm", norm_fn)
        object.__setattr__(self, "subspace", subspace_fn)


class Projector:
    """Projection operators bound to one :class:`ProjectionConfig`."""

    def __init__(self, config: ProjectionConfig = ProjectionConfig()):
        self.config = config

    def threshold(self, v: np.ndarray, lam: Union[float, np.ndarray]) -> np.ndarray:
        return threshold(v, lam, self.config.threshold)

    def norm_constraint(self, v: np.ndarray) -> np.ndarray:
        return norm_constraint(v, self.config.norm)

    def subspace_constraint(self, v: np.ndarray) -> np.ndarray:
        return subspace_constraint(v, self.config.subspace)

    def __repr__(self) -> str:
        return (
            f"Projector(threshold={self.config.threshold.value}, "
            f"norm={self.config.norm.value}, subspace={self.config.subspace.value})"
        )


__all__ = [
    "ThresholdFunction",
    "NormFunction",
    "SubspaceFunction",
    "ProjectionConfig",
    "Projector",
    "clamp_nonpositive",
    "clamp_nonnegative",
    "soft_threshold",
    "normalize_l2",
    "threshold",
    "norm_constraint",
    "subspace_constraint",
]
