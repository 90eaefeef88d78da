"""
Gene-weighted deconvolution model.

Given a reference matrix X (genes x cell types), bulk data Y (genes x samples)
and the known cell-type profiles C (cell types x samples), a gene weight
vector g defines the weighted least-squares estimate

    ĉ(g) = (X^T Γ X)^{-1} X^T Γ Y,    Γ = diag(g)

and the loss

    L(g) = -(1/k) Σ_i cor(C_i, ĉ_i)

where k is the number of cell types. The gradient of L with respect to g is
derived by implicit differentiation of the inverse:

    ∂ĉ/∂g_j = (X^T Γ X)^{-1} x_j (y_j - x_j^T ĉ)

so that

    ∂L/∂g_j = (1/k) [ (Y - X ĉ) A^T (X^T Γ X)^{-1} X^T ]_jj

with A the stacked correlation sensitivities (see
:func:`dtdforge.core.stats.cor_sensitivity`). Only the diagonal is formed.
"""

from __future__ import annotations

import logging
from typing import Tuple, Union

import numpy as np

from dtdforge.core import stats
from dtdforge.core.errors import DimensionMismatch
from dtdforge.core.linalg import estimate_c_direct, invxtgx
from dtdforge.solvers.projections import ProjectionConfig, Projector, clamp_nonpositive

logger = logging.getLogger(__name__)


def _frozen_matrix(values: np.ndarray, name: str) -> np.ndarray:
    arr = np.array(values, dtype=float, copy=True)
    if arr.ndim != 2:
        raise DimensionMismatch(f"{name} must be a 2-D matrix, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} contains non-finite values")
    arr.flags.writeable = False
    return arr


class DeconvolutionModel:
    """
    Correlation loss of the weighted least-squares deconvolution.

    The stored matrices are read-only copies; every call recomputes the
    weighted Gram inverse for the weights it is given.

    Parameters
    ----------
    x : np.ndarray
        Reference matrix (genes x cell types)
    y : np.ndarray
        Bulk expression (genes x samples)
    c : np.ndarray
        Known cell-type profiles (cell types x samples)
    projections : ProjectionConfig
        Variants used by :meth:`threshold`, :meth:`norm_constraint` and
        :meth:`subspace_constraint`

    Raises
    ------
    DimensionMismatch
        If the gene, cell-type or sample dimensions disagree.
    """

    def __init__(
        self,
        x: np.ndarray,
        y: np.ndarray,
        c: np.ndarray,
        projections: ProjectionConfig = ProjectionConfig(),
    ):
        self._x = _frozen_matrix(x, "X")
        self._y = _frozen_matrix(y, "Y")
        self._c = _frozen_matrix(c, "C")

        if self._x.shape[0] != self._y.shape[0]:
            raise DimensionMismatch(
                f"X has {self._x.shape[0]} genes but Y has {self._y.shape[0]}"
            )
        if self._x.shape[1] != self._c.shape[0]:
            raise DimensionMismatch(
                f"X has {self._x.shape[1]} cell types but C has {self._c.shape[0]} rows"
            )
        if self._y.shape[1] != self._c.shape[1]:
            raise DimensionMismatch(
                f"Y has {self._y.shape[1]} samples but C has {self._c.shape[1]} columns"
            )

        self._projector = Projector(projections)
        logger.debug(
            "DeconvolutionModel: %d genes, %d cell types, %d samples",
            self.n_genes, self.n_cells, self.n_samples,
        )

    # ------------------------------------------------------------------
    # Shape accessors
    # ------------------------------------------------------------------

    @property
    def x(self) -> np.ndarray:
        return self._x

    @property
    def y(self) -> np.ndarray:
        return self._y

    @property
    def c(self) -> np.ndarray:
        return self._c

    @property
    def n_genes(self) -> int:
        return self._x.shape[0]

    @property
    def n_cells(self) -> int:
        return self._x.shape[1]

    @property
    def n_samples(self) -> int:
        return self._y.shape[1]

    @property
    def projector(self) -> Projector:
        return self._projector

    def dim(self) -> int:
        """Number of genes, i.e. the length of the weight vector."""
        return self.n_genes

    # ------------------------------------------------------------------
    # Objective
    # ------------------------------------------------------------------

    def _check_g(self, g: np.ndarray) -> np.ndarray:
        g = np.asarray(g, dtype=float)
        if g.ndim != 1 or g.shape[0] != self.n_genes:
            raise DimensionMismatch(
                f"weight vector of shape {g.shape} does not match {self.n_genes} genes"
            )
        return g

    def _solve(self, g: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        xtgxi = invxtgx(self._x, g)
        c_hat = estimate_c_direct(self._x, self._y, g, xtgxi)
        return xtgxi, c_hat

    def _score(self, c_hat: np.ndarray) -> float:
        total = 0.0
        for icell in range(self.n_cells):
            total -= stats.cor(self._c[icell], c_hat[icell], label=f"cell type {icell}")
        return total / self.n_cells

    def _raw_gradient(self, xtgxi: np.ndarray, c_hat: np.ndarray) -> np.ndarray:
        a = np.empty((self.n_cells, self.n_samples))
        for icell in range(self.n_cells):
            a[icell] = stats.cor_sensitivity(
                self._c[icell], c_hat[icell], label=f"cell type {icell}"
            )
        residual = self._y - self._x @ c_hat
        # diag(R A^T M X^T) as row-wise dot products of (R A^T M) with X
        left = residual @ (a.T @ xtgxi)
        return np.einsum("ij,ij->i", left, self._x) / self.n_cells

    def estimate_c(self, g: np.ndarray) -> np.ndarray:
        """Weighted least-squares estimate ĉ(g) (cell types x samples)."""
        g = self._check_g(g)
        return self._solve(g)[1]

    def evaluate(self, g: np.ndarray) -> float:
        """
        Loss -(1/k) Σ_i cor(C_i, ĉ_i); -1 is a perfect fit.

        Raises
        ------
        LinearAlgebraFailure
            If X^T diag(g) X is not positive definite.
        DegenerateRow
            If a reference or estimated row has zero variance.
        """
        g = self._check_g(g)
        _, c_hat = self._solve(g)
        score = self._score(c_hat)
        logger.debug("evaluate: score=%.6g", score)
        return score

    def raw_gradient(self, g: np.ndarray) -> np.ndarray:
        """Exact ∂L/∂g, without the non-positive clamp applied by :meth:`gradient`."""
        g = self._check_g(g)
        xtgxi, c_hat = self._solve(g)
        return self._raw_gradient(xtgxi, c_hat)

    def gradient(self, g: np.ndarray) -> np.ndarray:
        """∂L/∂g clamped to (-inf, 0]; same failure modes as :meth:`evaluate`."""
        return clamp_nonpositive(self.raw_gradient(g))

    def evaluate_and_gradient(self, g: np.ndarray) -> Tuple[float, np.ndarray]:
        """Loss and clamped gradient sharing one Cholesky solve."""
        g = self._check_g(g)
        xtgxi, c_hat = self._solve(g)
        score = self._score(c_hat)
        grad = clamp_nonpositive(self._raw_gradient(xtgxi, c_hat))
        logger.debug("evaluate_and_gradient: score=%.6g |grad|=%.3g", score, np.linalg.norm(grad))
        return score, grad

    # ------------------------------------------------------------------
    # Projection operators (configured at construction)
    # ------------------------------------------------------------------

    def threshold(self, v: np.ndarray, lam: Union[float, np.ndarray]) -> np.ndarray:
        return self._projector.threshold(v, lam)

    def norm_constraint(self, v: np.ndarray) -> np.ndarray:
        return self._projector.norm_constraint(v)

    def subspace_constraint(self, v: np.ndarray) -> np.ndarray:
        return self._projector.subspace_constraint(v)

    def __repr__(self) -> str:
        return (
            f"DeconvolutionModel(genes={self.n_genes}, cell_types={self.n_cells}, "
            f"samples={self.n_samples})"
        )


def uniform_weights(model: DeconvolutionModel, value: float = 1.0) -> np.ndarray:
    """Constant weight vector, the usual starting point for g."""
    return np.full(model.dim(), float(value))


__all__ = ["DeconvolutionModel", "uniform_weights"]
