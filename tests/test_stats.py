import numpy as np
import pytest

from dtdforge.core import stats
from dtdforge.core.errors import DegenerateRow, DimensionMismatch


def test_cor_matches_numpy():
    rng = np.random.default_rng(0)
    a = rng.normal(size=12)
    b = a + 0.5 * rng.normal(size=12)

    assert stats.cor(a, b) == pytest.approx(np.corrcoef(a, b)[0, 1], rel=1e-12)


def test_population_moments():
    x = np.array([1.0, 2.0, 3.0, 4.0])

    assert stats.mean(x) == pytest.approx(2.5)
    assert stats.std(x) == pytest.approx(np.sqrt(1.25))
    assert stats.cov(x, x) == pytest.approx(1.25)


def test_constant_row_is_degenerate():
    with pytest.raises(DegenerateRow):
        stats.cor(np.array([1.0, 2.0, 3.0]), np.full(3, 4.2))
    with pytest.raises(DegenerateRow):
        stats.cor(np.zeros(3), np.array([1.0, 2.0, 3.0]))


def test_cov_shape_mismatch():
    with pytest.raises(DimensionMismatch):
        stats.cov(np.ones(3), np.ones(4))


def test_cor_sensitivity_is_negative_derivative():
    rng = np.random.default_rng(5)
    c = rng.normal(size=8)
    c_hat = c + rng.normal(size=8)
    step = 1e-6

    numeric = np.empty_like(c_hat)
    for s in range(c_hat.size):
        up = c_hat.copy()
        down = c_hat.copy()
        up[s] += step
        down[s] -= step
        numeric[s] = -(stats.cor(c, up) - stats.cor(c, down)) / (2 * step)

    np.testing.assert_allclose(stats.cor_sensitivity(c, c_hat), numeric, rtol=1e-5, atol=1e-9)
