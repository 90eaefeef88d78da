import numpy as np
import pytest

from dtdforge.plots.gpath import gpath_quantile_groups, log10p1


def test_quantile_groups_split_genes_evenly():
    groups = gpath_quantile_groups(np.arange(1.0, 10.0), n_panels=3)

    np.testing.assert_allclose(groups.cut_points, [0.33, 0.67, 1.0])
    np.testing.assert_array_equal(groups.panel_of_gene, [0, 0, 0, 1, 1, 1, 2, 2, 2])
    assert groups.labels == ["below 33% Quantile", "below 67% Quantile", "below 100% Quantile"]


def test_every_gene_in_exactly_one_panel():
    rng = np.random.default_rng(0)
    final = rng.normal(size=40)

    groups = gpath_quantile_groups(final, n_panels=4)

    members = np.concatenate([groups.genes_in(p) for p in range(4)])
    assert sorted(members.tolist()) == list(range(40))


def test_quantile_groups_use_magnitude():
    groups = gpath_quantile_groups(np.array([-10.0, 1.0, 2.0, 10.0]), n_panels=2)

    assert groups.panel_of_gene[0] == groups.panel_of_gene[3] == 1


def test_invalid_panel_count():
    with pytest.raises(ValueError):
        gpath_quantile_groups(np.ones(3), n_panels=0)


def test_log10p1():
    np.testing.assert_allclose(log10p1(np.array([0.0, 9.0])), [0.0, 1.0])


class TestPlotGPath:
    @pytest.fixture(autouse=True)
    def _agg_backend(self):
        matplotlib = pytest.importorskip("matplotlib")
        matplotlib.use("Agg")

    def test_plot_returns_one_axis_per_panel(self, tmp_path):
        import matplotlib.pyplot as plt
        from dtdforge.plots.gpath import plot_gpath

        rng = np.random.default_rng(1)
        history = np.cumsum(rng.uniform(0, 0.1, size=(12, 20)), axis=1)
        out = tmp_path / "gpath.png"

        fig, axes = plot_gpath(history, n_panels=3, title="g path", show_legend=True, save_path=out)

        assert len(axes) == 3
        assert out.exists()
        assert sum(len(ax.get_lines()) for ax in axes) == 12
        plt.close(fig)

    def test_plot_subset(self):
        import matplotlib.pyplot as plt
        from dtdforge.plots.gpath import plot_gpath

        history = np.tile(np.arange(1.0, 6.0)[:, None], (1, 4))
        names = ["a", "b", "c", "d", "e"]

        fig, axes = plot_gpath(history, gene_names=names, n_panels=2, subset=["b", "d", "zz"])

        assert sum(len(ax.get_lines()) for ax in axes) == 2
        plt.close(fig)

    def test_plot_rejects_bad_names(self):
        from dtdforge.core.errors import DimensionMismatch
        from dtdforge.plots.gpath import plot_gpath

        with pytest.raises(DimensionMismatch):
            plot_gpath(np.ones((3, 2)), gene_names=["a"])
