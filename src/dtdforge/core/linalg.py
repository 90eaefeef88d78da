"""
Weighted least-squares linear algebra.

The central quantity is the inverse of the gene-weighted normal-equations
matrix

    xtgxi = (X^T diag(g) X)^{-1}

which is obtained from a Cholesky factorisation solved against the identity.
``diag(g)`` is never materialised; the weights are broadcast over the rows
of X instead.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Union

import numpy as np
from scipy import linalg, optimize

from dtdforge.core.errors import DimensionMismatch, LinearAlgebraFailure, UnimplementedVariant

logger = logging.getLogger(__name__)


class EstimateCType(Enum):
    """How the per-cell-type profile C is estimated from bulk data."""

    DIRECT = "direct"  # closed-form weighted least squares
    NON_NEGATIVE = "non_negative"  # per-sample NNLS, C >= 0


def _check_weights(x: np.ndarray, g: np.ndarray) -> None:
    if x.ndim != 2:
        raise DimensionMismatch(f"X must be 2-D, got shape {x.shape}")
    if g.ndim != 1 or g.shape[0] != x.shape[0]:
        raise DimensionMismatch(
            f"weight vector of shape {g.shape} does not match {x.shape[0]} genes"
        )


def weighted_gram(x: np.ndarray, g: np.ndarray) -> np.ndarray:
    """X^T diag(g) X."""
    x = np.asarray(x, dtype=float)
    g = np.asarray(g, dtype=float)
    _check_weights(x, g)
    return (x * g[:, None]).T @ x


def invxtgx(x: np.ndarray, g: np.ndarray) -> np.ndarray:
    """
    Inverse of the weighted Gram matrix via Cholesky.

    Parameters
    ----------
    x : np.ndarray
        Design matrix (genes x cell types)
    g : np.ndarray
        Gene weights (genes,)

    Returns
    -------
    np.ndarray
        (X^T diag(g) X)^{-1}, shape (cell types x cell types)

    Raises
    ------
    LinearAlgebraFailure
        If X^T diag(g) X is not symmetric positive definite.
    """
    xtgx = weighted_gram(x, g)
    if not np.all(np.isfinite(xtgx)):
        raise LinearAlgebraFailure("weighted Gram matrix contains non-finite entries")
    try:
        factor = linalg.cho_factor(xtgx, lower=True, check_finite=False)
    except linalg.LinAlgError as exc:
        logger.debug("Cholesky factorisation failed for %s Gram matrix: %s", xtgx.shape, exc)
        raise LinearAlgebraFailure(
            "X^T diag(g) X is not positive definite for the given weights"
        ) from exc
    k = xtgx.shape[0]
    return linalg.cho_solve(factor, np.eye(k), check_finite=False)


def check_posdefmat(
    x: np.ndarray,
    g: np.ndarray,
    xtgxi: np.ndarray,
    eps: float = 1e-12,
) -> bool:
    """True if xtgxi · X^T diag(g) X reproduces the identity within k²·eps (Frobenius)."""
    n = xtgxi.shape[0]
    zero = xtgxi @ weighted_gram(x, g) - np.eye(n)
    return bool(np.linalg.norm(zero, "fro") < n * n * eps)


def estimate_c_direct(
    x: np.ndarray,
    y: np.ndarray,
    g: np.ndarray,
    xtgxi: Optional[np.ndarray] = None,
) -> np.ndarray:
    """C(g) = (X^T Γ X)^{-1} X^T Γ Y."""
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    g = np.asarray(g, dtype=float)
    if y.ndim != 2 or y.shape[0] != x.shape[0]:
        raise DimensionMismatch(f"Y of shape {y.shape} does not match X of shape {x.shape}")
    if xtgxi is None:
        xtgxi = invxtgx(x, g)
    return xtgxi @ ((x * g[:, None]).T @ y)


def estimate_nn_c(x: np.ndarray, y: np.ndarray, g: np.ndarray) -> np.ndarray:
    """
    Non-negative estimate of C, one NNLS problem per sample.

    Solves argmin_{c >= 0} || diag(sqrt(g)) (y_s - X c) || for every column
    y_s of Y.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    g = np.asarray(g, dtype=float)
    _check_weights(x, g)
    if y.ndim != 2 or y.shape[0] != x.shape[0]:
        raise DimensionMismatch(f"Y of shape {y.shape} does not match X of shape {x.shape}")
    if np.any(g < 0):
        raise LinearAlgebraFailure("non-negative estimate requires non-negative gene weights")

    root_g = np.sqrt(g)
    xw = x * root_g[:, None]
    yw = y * root_g[:, None]
    c_hat = np.empty((x.shape[1], y.shape[1]))
    for s in range(y.shape[1]):
        c_hat[:, s], _ = optimize.nnls(xw, yw[:, s])
    return c_hat


def estimate_c(
    x: np.ndarray,
    y: np.ndarray,
    g: np.ndarray,
    method: Union[EstimateCType, str] = EstimateCType.DIRECT,
) -> np.ndarray:
    """Estimate C with the selected method ('direct' or 'non_negative')."""
    try:
        method = EstimateCType(method)
    except ValueError as exc:
        raise UnimplementedVariant(f"no estimate for estimate_c type {method!r}") from exc

    if method == EstimateCType.DIRECT:
        return estimate_c_direct(x, y, g)
    elif method == EstimateCType.NON_NEGATIVE:
        return estimate_nn_c(x, y, g)
    else:
        raise UnimplementedVariant(f"no estimate for estimate_c type {method!r}")


__all__ = [
    "EstimateCType",
    "weighted_gram",
    "invxtgx",
    "check_posdefmat",
    "estimate_c_direct",
    "estimate_nn_c",
    "estimate_c",
]
