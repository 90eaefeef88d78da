"""Validation metrics for estimated cell-type profiles and model gradients."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from dtdforge.core.errors import DimensionMismatch
from dtdforge.solvers.deconvolution import DeconvolutionModel


def celltype_correlation_metrics(
    reference: np.ndarray,
    estimate: np.ndarray,
    cell_types: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """Per-cell-type Pearson correlation between reference and estimated profiles.

    Rows with zero variance get ``None`` instead of raising, so the report
    can still be produced for partially degenerate fits.
    """

    reference = np.asarray(reference, dtype=float)
    estimate = np.asarray(estimate, dtype=float)
    if reference.shape != estimate.shape:
        raise DimensionMismatch("reference and estimate must have the same shape")
    if cell_types is None:
        cell_types = [str(i) for i in range(reference.shape[0])]
    if len(cell_types) != reference.shape[0]:
        raise DimensionMismatch("one cell type name per row is required")

    correlations: Dict[str, Optional[float]] = {}
    for name, ref_row, est_row in zip(cell_types, reference, estimate):
        # Correlation can be undefined for constant rows.
        if np.allclose(ref_row, ref_row[0]) or np.allclose(est_row, est_row[0]):
            correlations[name] = None
        else:
            correlations[name] = float(np.corrcoef(ref_row, est_row)[0, 1])

    defined = [v for v in correlations.values() if v is not None]
    residuals = estimate - reference
    return {
        "correlations": correlations,
        "mean_correlation": float(np.mean(defined)) if defined else None,
        "rmse": float(np.sqrt(np.mean(residuals**2))) if residuals.size else 0.0,
        "max_abs_residual": float(np.max(np.abs(residuals))) if residuals.size else 0.0,
    }


def finite_difference_gradient(
    model: DeconvolutionModel,
    g: np.ndarray,
    step: float = 1e-6,
) -> np.ndarray:
    """Central-difference approximation of ∂evaluate/∂g."""
    g = np.asarray(g, dtype=float)
    grad = np.empty_like(g)
    for j in range(g.size):
        forward = g.copy()
        backward = g.copy()
        forward[j] += step
        backward[j] -= step
        grad[j] = (model.evaluate(forward) - model.evaluate(backward)) / (2.0 * step)
    return grad


def gradient_check(
    model: DeconvolutionModel,
    g: np.ndarray,
    step: float = 1e-6,
    rtol: float = 1e-4,
    atol: float = 1e-8,
) -> Dict[str, Any]:
    """Compare the analytic (unclamped) gradient with central differences."""
    analytic = model.raw_gradient(g)
    numeric = finite_difference_gradient(model, g, step)
    abs_err = np.abs(analytic - numeric)
    scale = np.maximum(np.abs(numeric), atol)
    failing: List[int] = [int(j) for j in np.flatnonzero(abs_err > atol + rtol * np.abs(numeric))]
    return {
        "analytic": analytic,
        "numeric": numeric,
        "max_abs_error": float(np.max(abs_err)) if abs_err.size else 0.0,
        "max_rel_error": float(np.max(abs_err / scale)) if abs_err.size else 0.0,
        "failing_genes": failing,
        "passed": not failing,
    }


__all__ = [
    "celltype_correlation_metrics",
    "finite_difference_gradient",
    "gradient_check",
]
