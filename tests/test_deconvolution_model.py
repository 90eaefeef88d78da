"""
Tests for the gene-weighted deconvolution model: construction, the
correlation loss and its analytic gradient.
"""

import numpy as np
import pytest

from dtdforge.core.errors import DegenerateRow, DimensionMismatch, LinearAlgebraFailure
from dtdforge.solvers.deconvolution import DeconvolutionModel, uniform_weights
from dtdforge.solvers.projections import NormFunction, ProjectionConfig


def _disjoint_example(noise: float = 0.0, seed: int = 0):
    """4 genes, 2 cell types: genes 1-2 mark type A, genes 3-4 mark type B."""
    x = np.array([
        [1.0, 0.0],
        [2.0, 0.0],
        [0.0, 1.0],
        [0.0, 3.0],
    ])
    c = np.array([
        [1.0, 2.0, 3.0],
        [3.0, 1.0, 2.0],
    ])
    rng = np.random.default_rng(seed)
    y = x @ c + noise * rng.standard_normal((4, 3))
    return x, y, c


def _random_model(n_genes=5, n_cells=2, n_samples=10, seed=42):
    rng = np.random.default_rng(seed)
    x = rng.uniform(0.5, 2.0, size=(n_genes, n_cells))
    c = rng.uniform(0.1, 1.0, size=(n_cells, n_samples))
    y = x @ c + 0.05 * rng.standard_normal((n_genes, n_samples))
    g = rng.uniform(0.5, 1.5, size=n_genes)
    return DeconvolutionModel(x, y, c), g


def _central_difference(model, g, step=1e-5):
    grad = np.empty_like(g)
    for j in range(g.size):
        up = g.copy()
        down = g.copy()
        up[j] += step
        down[j] -= step
        grad[j] = (model.evaluate(up) - model.evaluate(down)) / (2 * step)
    return grad


class TestConstruction:
    def test_dim_is_gene_count(self):
        model = DeconvolutionModel(*_disjoint_example())

        assert model.dim() == 4
        assert model.n_cells == 2
        assert model.n_samples == 3

    def test_gene_mismatch(self):
        x, y, c = _disjoint_example()
        with pytest.raises(DimensionMismatch):
            DeconvolutionModel(x, y[:3], c)

    def test_cell_type_mismatch(self):
        x, y, c = _disjoint_example()
        with pytest.raises(DimensionMismatch):
            DeconvolutionModel(x, y, np.vstack([c, c[:1]]))

    def test_sample_mismatch(self):
        x, y, c = _disjoint_example()
        with pytest.raises(DimensionMismatch):
            DeconvolutionModel(x, y, c[:, :2])

    def test_non_matrix_input(self):
        x, y, c = _disjoint_example()
        with pytest.raises(DimensionMismatch):
            DeconvolutionModel(x[:, 0], y, c)

    def test_stored_data_is_immutable_copy(self):
        x, y, c = _disjoint_example()
        model = DeconvolutionModel(x, y, c)
        x[0, 0] = 100.0

        assert model.x[0, 0] == 1.0
        with pytest.raises(ValueError):
            model.x[0, 0] = 5.0

    def test_weight_length_checked(self):
        model = DeconvolutionModel(*_disjoint_example())
        with pytest.raises(DimensionMismatch):
            model.evaluate(np.ones(3))
        with pytest.raises(DimensionMismatch):
            model.gradient(np.ones(5))


class TestEvaluate:
    def test_noise_free_disjoint_example_is_perfect(self):
        model = DeconvolutionModel(*_disjoint_example())
        g = uniform_weights(model)

        assert model.evaluate(g) == pytest.approx(-1.0, abs=1e-12)
        np.testing.assert_allclose(model.estimate_c(g), model.c, atol=1e-12)

    def test_small_noise_disjoint_example_is_near_perfect(self):
        model = DeconvolutionModel(*_disjoint_example(noise=1e-3))

        assert model.evaluate(np.ones(4)) == pytest.approx(-1.0, abs=1e-4)

    def test_score_bounds(self):
        model, g = _random_model()

        score = model.evaluate(g)

        assert -1.0 <= score <= 1.0

    def test_cell_type_relabeling_invariance(self):
        rng = np.random.default_rng(9)
        x = rng.uniform(0.5, 2.0, size=(8, 3))
        c = rng.uniform(0.1, 1.0, size=(3, 6))
        y = x @ c + 0.1 * rng.standard_normal((8, 6))
        g = rng.uniform(0.5, 1.5, size=8)
        perm = np.array([2, 0, 1])

        original = DeconvolutionModel(x, y, c).evaluate(g)
        permuted = DeconvolutionModel(x[:, perm], y, c[perm]).evaluate(g)

        assert permuted == pytest.approx(original, rel=1e-10)

    def test_weight_scale_invariance(self):
        model, g = _random_model()

        assert model.evaluate(3.0 * g) == pytest.approx(model.evaluate(g), rel=1e-10)

    def test_does_not_modify_weights(self):
        model, g = _random_model()
        before = g.copy()

        model.evaluate(g)
        model.gradient(g)

        np.testing.assert_array_equal(g, before)

    def test_not_positive_definite(self):
        model, g = _random_model()
        with pytest.raises(LinearAlgebraFailure):
            model.evaluate(-g)
        with pytest.raises(LinearAlgebraFailure):
            model.gradient(-g)

    def test_constant_reference_row_is_degenerate(self):
        x, y, c = _disjoint_example()
        c = c.copy()
        c[1] = 2.0
        model = DeconvolutionModel(x, y, c)

        with pytest.raises(DegenerateRow):
            model.evaluate(np.ones(4))
        with pytest.raises(DegenerateRow):
            model.gradient(np.ones(4))


class TestGradient:
    def test_matches_finite_differences(self):
        model, g = _random_model(n_genes=5, n_cells=2, n_samples=10)

        analytic = model.raw_gradient(g)
        numeric = _central_difference(model, g)

        assert analytic.shape == (5,)
        np.testing.assert_allclose(analytic, numeric, rtol=1e-4, atol=1e-7)

    def test_matches_finite_differences_more_cell_types(self):
        model, g = _random_model(n_genes=9, n_cells=3, n_samples=7, seed=3)

        np.testing.assert_allclose(
            model.raw_gradient(g), _central_difference(model, g), rtol=1e-4, atol=1e-7
        )

    def test_gradient_is_clamped_to_non_positive(self):
        model, g = _random_model()

        raw = model.raw_gradient(g)
        grad = model.gradient(g)

        assert np.all(grad <= 0.0)
        np.testing.assert_array_equal(grad, np.minimum(raw, 0.0))

    def test_exact_fit_has_zero_gradient(self):
        model = DeconvolutionModel(*_disjoint_example())

        np.testing.assert_allclose(model.raw_gradient(np.ones(4)), 0.0, atol=1e-12)

    def test_small_noise_gradient_is_near_zero(self):
        model = DeconvolutionModel(*_disjoint_example(noise=1e-3))

        assert np.max(np.abs(model.gradient(np.ones(4)))) < 1e-3

    def test_evaluate_and_gradient_agree(self):
        model, g = _random_model()

        score, grad = model.evaluate_and_gradient(g)

        assert score == pytest.approx(model.evaluate(g), rel=1e-12)
        np.testing.assert_allclose(grad, model.gradient(g), rtol=1e-12)


def test_projection_delegates_use_config():
    x, y, c = _disjoint_example()
    model = DeconvolutionModel(x, y, c, projections=ProjectionConfig(norm=NormFunction.NORM2))
    v = np.array([-1.0, 0.5, 2.0, 2.0])

    assert np.linalg.norm(model.norm_constraint(v)) == pytest.approx(1.0)
    np.testing.assert_allclose(model.threshold(v, 0.5), [-0.5, 0.0, 1.5, 1.5])
    np.testing.assert_array_equal(model.subspace_constraint(v), [0.0, 0.5, 2.0, 2.0])
