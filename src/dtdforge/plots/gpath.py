"""
g-Path Visualization

Plots the path of every gene weight g_i over the iterations of an optimizer.
With many genes the individual paths are hard to tell apart, so genes are
split into panels by the quantile range their final |g_i| falls into: with
three panels, the first shows every gene below the 33% quantile of |g|, the
second those between 33% and 67%, and so on.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

try:
    import matplotlib.pyplot as plt
    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False

from dtdforge.core.errors import DimensionMismatch


PLOT_STYLE = {
    "font.size": 12,
    "axes.labelsize": 13,
    "axes.titlesize": 13,
    "legend.fontsize": 9,
    "lines.linewidth": 1.2,
    "axes.grid": True,
    "grid.alpha": 0.3,
    "grid.linestyle": "--",
}


def apply_plot_style():
    if HAS_MATPLOTLIB:
        plt.rcParams.update(PLOT_STYLE)


def log10p1(g: np.ndarray) -> np.ndarray:
    return np.log10(np.asarray(g, dtype=float) + 1.0)


@dataclass
class GPathGroups:
    """Quantile panel assignment of each gene."""

    cut_points: np.ndarray  # quantile levels, e.g. [0.33, 0.67, 1.0]
    quantile_values: np.ndarray  # |g| at each level
    panel_of_gene: np.ndarray  # panel index per gene

    @property
    def labels(self) -> List[str]:
        return [f"below {round(q * 100):g}% Quantile" for q in self.cut_points]

    def genes_in(self, panel: int) -> np.ndarray:
        return np.flatnonzero(self.panel_of_gene == panel)


def gpath_quantile_groups(final_g: np.ndarray, n_panels: int = 3) -> GPathGroups:
    """Assign each gene to the first quantile range whose upper value is >= |g_i|."""
    if n_panels < 1:
        raise ValueError("n_panels must be at least 1")
    magnitude = np.abs(np.asarray(final_g, dtype=float))
    cut_points = np.round(np.linspace(0.0, 1.0, n_panels + 1)[1:], 2)
    quantile_values = np.quantile(magnitude, cut_points)
    panel_of_gene = np.searchsorted(quantile_values, magnitude, side="left")
    # the 100% quantile is the maximum, so only rounding can push a gene past the last panel
    panel_of_gene = np.minimum(panel_of_gene, n_panels - 1)
    return GPathGroups(
        cut_points=cut_points,
        quantile_values=quantile_values,
        panel_of_gene=panel_of_gene,
    )


def plot_gpath(
    history: np.ndarray,
    gene_names: Optional[Sequence[str]] = None,
    n_panels: int = 3,
    g_transform: Callable[[np.ndarray], np.ndarray] = log10p1,
    iter_transform: Optional[Callable[[np.ndarray], np.ndarray]] = None,
    ylabel: str = "log10(g+1)",
    xlabel: str = "iteration",
    subset: Optional[Sequence[str]] = None,
    title: str = "",
    show_legend: bool = False,
    figsize: Tuple[float, float] = (12, 4),
    save_path: Optional[Union[str, Path]] = None,
) -> Tuple[Any, Any]:
    """
    Plot the regression path of each g_i over all iterations.

    Parameters
    ----------
    history : np.ndarray
        Weight history (genes x iterations); the last column is the final g
    gene_names : sequence of str, optional
        One name per row of ``history``
    n_panels : int
        Number of quantile panels
    g_transform : callable
        Applied to the weights before plotting (default log10(g+1))
    iter_transform : callable, optional
        Applied to the iteration axis
    ylabel, xlabel : str
        Axis labels
    subset : sequence of str, optional
        Only plot these genes. Names not in ``gene_names`` are ignored; if none
        match, all genes are plotted.
    title : str
        Figure title
    show_legend : bool
        Draw a legend of gene names in every panel
    figsize : tuple
        Figure size
    save_path : str or Path, optional
        Save figure to path

    Returns
    -------
    fig, axes
        Matplotlib figure and array of axes (one per panel)
    """
    if not HAS_MATPLOTLIB:
        raise ImportError("matplotlib required for plotting")

    history = np.asarray(history, dtype=float)
    if history.ndim != 2 or history.shape[1] == 0:
        raise DimensionMismatch("history must be a genes x iterations matrix")
    if gene_names is None:
        gene_names = [str(i + 1) for i in range(history.shape[0])]
    gene_names = list(gene_names)
    if len(gene_names) != history.shape[0]:
        raise DimensionMismatch("one gene name per history row is required")

    if subset is not None:
        keep = [i for i, name in enumerate(gene_names) if name in set(subset)]
        if keep:
            history = history[keep]
            gene_names = [gene_names[i] for i in keep]

    transformed = np.asarray(g_transform(history), dtype=float)
    if transformed.shape != history.shape:
        raise ValueError("g_transform must return an array of the same shape")
    iterations = np.arange(1, history.shape[1] + 1, dtype=float)
    if iter_transform is not None:
        iterations = np.asarray(iter_transform(iterations), dtype=float)

    groups = gpath_quantile_groups(history[:, -1], n_panels)

    apply_plot_style()
    fig, axes = plt.subplots(1, n_panels, figsize=figsize, sharey=True, squeeze=False)
    axes = axes[0]
    for panel, ax in enumerate(axes):
        for i in groups.genes_in(panel):
            ax.plot(iterations, transformed[i], label=gene_names[i])
        ax.set_title(groups.labels[panel])
        ax.set_xlabel(xlabel)
        if show_legend and len(groups.genes_in(panel)):
            ax.legend(loc="best")
    axes[0].set_ylabel(ylabel)
    if title:
        fig.suptitle(title)

    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=300, bbox_inches="tight")

    return fig, axes


__all__ = [
    "GPathGroups",
    "gpath_quantile_groups",
    "plot_gpath",
    "log10p1",
]
