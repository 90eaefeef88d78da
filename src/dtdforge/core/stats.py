"""
Row statistics used by the correlation score.

All moments use population normalisation (ddof = 0). The correlation
derivative in :func:`cor_sensitivity` relies on this: with ddof = 0 the
covariance and standard deviations share the same 1/n factor, which is the
factor that appears in the closed-form derivative.
"""

from __future__ import annotations

import numpy as np

from dtdforge.core.errors import DegenerateRow, DimensionMismatch

# Relative tolerance below which a standard deviation counts as zero.
DEGENERATE_RTOL = 1e-12


def mean(x: np.ndarray) -> float:
    return float(np.mean(x))


def std(x: np.ndarray) -> float:
    """Population standard deviation."""
    return float(np.std(x))


def cov(x: np.ndarray, y: np.ndarray) -> float:
    """Population covariance of two equal-length sequences."""
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape:
        raise DimensionMismatch(f"cov() needs equal shapes, got {x.shape} and {y.shape}")
    return float(np.mean((x - x.mean()) * (y - y.mean())))


def _checked_std(x: np.ndarray, label: str) -> float:
    s = std(x)
    scale = float(np.max(np.abs(x))) if x.size else 0.0
    if not np.isfinite(s) or s <= DEGENERATE_RTOL * scale:
        raise DegenerateRow(f"{label} has zero variance; correlation is undefined")
    return s


def cor(x: np.ndarray, y: np.ndarray, label: str = "row") -> float:
    """
    Pearson correlation of two rows.

    Raises
    ------
    DegenerateRow
        If either row has zero variance.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    sx = _checked_std(x, f"reference {label}")
    sy = _checked_std(y, f"estimated {label}")
    return cov(x, y) / (sx * sy)


def cor_sensitivity(c: np.ndarray, c_hat: np.ndarray, label: str = "row") -> np.ndarray:
    """
    Negative derivative of cor(c, c_hat) with respect to c_hat.

        A = (cov(c, ĉ) / (n σ_ĉ²) · (ĉ − mean ĉ) − (c − mean c) / n) / (σ_c σ_ĉ)
    """
    c = np.asarray(c, dtype=float)
    c_hat = np.asarray(c_hat, dtype=float)
    n = c.size
    sd_c = _checked_std(c, f"reference {label}")
    sd_hat = _checked_std(c_hat, f"estimated {label}")
    return (
        cov(c, c_hat) / (n * sd_hat * sd_hat) * (c_hat - c_hat.mean())
        - (c - c.mean()) / n
    ) / (sd_c * sd_hat)


__all__ = ["DEGENERATE_RTOL", "mean", "std", "cov", "cor", "cor_sensitivity"]
