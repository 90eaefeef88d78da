"""dtdforge plotting module for weight path visualization."""

from dtdforge.plots.gpath import (
    GPathGroups,
    gpath_quantile_groups,
    log10p1,
    plot_gpath,
)

__all__ = [
    "GPathGroups",
    "gpath_quantile_groups",
    "log10p1",
    "plot_gpath",
]
