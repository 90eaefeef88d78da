import numpy as np
import pytest

from dtdforge.core.errors import DimensionMismatch
from dtdforge.data.synthetic import generate_dataset
from dtdforge.solvers.deconvolution import DeconvolutionModel
from dtdforge.validation.metrics import (
    celltype_correlation_metrics,
    finite_difference_gradient,
    gradient_check,
)


def test_celltype_correlation_metrics_perfect():
    ref = np.array([[1.0, 2.0, 3.0], [3.0, 1.0, 2.0]])

    metrics = celltype_correlation_metrics(ref, 2.0 * ref + 1.0, cell_types=["A", "B"])

    assert metrics["correlations"]["A"] == pytest.approx(1.0)
    assert metrics["correlations"]["B"] == pytest.approx(1.0)
    assert metrics["mean_correlation"] == pytest.approx(1.0)
    assert metrics["rmse"] > 0.0


def test_celltype_correlation_metrics_constant_row():
    ref = np.array([[1.0, 2.0, 3.0], [1.0, 1.0, 1.0]])

    metrics = celltype_correlation_metrics(ref, ref)

    assert metrics["correlations"]["1"] is None
    assert metrics["mean_correlation"] == pytest.approx(1.0)
    assert metrics["rmse"] == 0.0


def test_celltype_correlation_metrics_shape_mismatch():
    with pytest.raises(DimensionMismatch):
        celltype_correlation_metrics(np.ones((2, 3)), np.ones((3, 2)))


def test_gradient_check_on_synthetic_data():
    data = generate_dataset(n_genes=8, n_cell_types=3, n_samples=12, noise=0.05, seed=4)
    model = DeconvolutionModel(data.x, data.y, data.c)
    g = np.linspace(0.5, 1.5, data.n_genes)

    report = gradient_check(model, g, step=1e-5, rtol=1e-4, atol=1e-7)

    assert report["passed"], report["failing_genes"]
    assert report["analytic"].shape == (8,)


def test_finite_difference_gradient_shape():
    data = generate_dataset(n_genes=6, n_cell_types=2, n_samples=5, noise=0.1, seed=1)
    model = DeconvolutionModel(data.x, data.y, data.c)

    assert finite_difference_gradient(model, np.ones(6)).shape == (6,)
