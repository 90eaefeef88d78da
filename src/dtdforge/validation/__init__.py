"""Validation metrics."""

from dtdforge.validation.metrics import (
    celltype_correlation_metrics,
    finite_difference_gradient,
    gradient_check,
)

__all__ = [
    "celltype_correlation_metrics",
    "finite_difference_gradient",
    "gradient_check",
]
