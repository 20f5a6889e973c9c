# stdlib
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence, Union, cast
# thirdpartylib
import numpy as np
import pandas as pd
import matplotlib as mpl
import matplotlib.pyplot as plt
from cycler import cycler
from matplotlib.axes import Axes
from matplotlib.figure import Figure
# projectlib
from building_energy_modeling.config.constants import LAG_STEP_HOURS
from building_energy_modeling.models.regression import align_daily
from building_energy_modeling.models.search import ModelCandidate
from building_energy_modeling.utils.paths import validate_address
from building_energy_modeling.utils.typing import (
    Address,
    DailyAggregate,
    IntervalSeries,
)


def use_dark_theme() -> None:
    """
    Apply a shadcn-inspired dark theme to Matplotlib.

    Updates the global rcParams with a dark palette, subtle gridlines
    and a muted line color cycle.
    """
    mpl.rcParams.update({
        "figure.facecolor": "#0a0a0a",
        "axes.facecolor": "#171717",
        "axes.edgecolor": "#ffffff1a",
        "axes.labelcolor": "#fafafa",
        "axes.titlecolor": "#fafafa",
        "grid.color": "#ffffff1a",
        "grid.alpha": 0.4,
        "grid.linewidth": 0.2,
        "xtick.color": "#a1a1a1",
        "ytick.color": "#a1a1a1",
        "lines.linewidth": 1.6,
        "text.color": "#e5e7eb",
        "legend.edgecolor": "#ffffff1a",
        "legend.facecolor": "#171717",
        "legend.fontsize": 9,
        "legend.frameon": True,
        "axes.grid": True,
        "axes.prop_cycle": cycler(color=[
            "#1447e6",
            "#00bc7d",
            "#fe9a00",
            "#ad46ff",
            "#ff2056",
        ]),
    })


def _new_axes(ax: Optional[Axes]) -> Axes:
    if ax is not None:
        return ax
    _, ax = plt.subplots( # pyright: ignore[reportUnknownMemberType]
        figsize=(9, 5)
    )
    return ax


class Plot(object):
    """
    Diagnostic plots for the lag/window energy model.

    Covers the three views used when judging a model: the raw interval
    series, the daily fit of energy against lagged temperature, and the
    R² surface over the search grid.
    """

    def __init__(self) -> None:
        use_dark_theme()

    def plot_interval(
            self,
            series: IntervalSeries,
            *,
            ax: Optional[Axes] = None,
            start: Optional[Union[datetime, str]] = None,
            end: Optional[Union[datetime, str]] = None,
        ) -> Axes:
        """
        Plot an interval series against time with a shaded baseline.

        ``start`` is inclusive, ``end`` exclusive.
        """
        ax = _new_axes(ax)
        data = series.dropna()
        if start is not None:
            data = data[data.index >= pd.Timestamp(start)]
        if end is not None:
            data = data[data.index < pd.Timestamp(end)]
        if data.empty:
            return ax
        line, = ax.plot( # pyright: ignore[reportUnknownMemberType]
            data.index, data.to_numpy(), label=str(series.name)
        )
        ax.fill_between( # pyright: ignore[reportUnknownMemberType]
            data.index,
            data.to_numpy(),
            float(data.min()),
            color=line.get_color(),
            alpha=0.15,
        )
        ax.set_xlabel(str(data.index.name or "time")) # pyright: ignore[reportUnknownMemberType]
        ax.set_ylabel(str(series.name)) # pyright: ignore[reportUnknownMemberType]
        ax.set_title(f"{series.name} vs time") # pyright: ignore[reportUnknownMemberType]
        return ax

    def plot_fit(
            self,
            temperatures: DailyAggregate,
            energy: DailyAggregate,
            model: ModelCandidate,
            *,
            ax: Optional[Axes] = None,
        ) -> Axes:
        """
        Scatter daily energy against lagged window temperature and draw
        the model's quadratic over the observed temperature range.
        """
        ax = _new_axes(ax)
        _, x, y = align_daily(temperatures, energy)
        ax.scatter( # pyright: ignore[reportUnknownMemberType]
            x, y, s=12, alpha=0.7, label="observed"
        )
        if model.coefficients is not None and len(x) > 0:
            grid = np.linspace(float(x.min()), float(x.max()), 200)
            ax.plot( # pyright: ignore[reportUnknownMemberType]
                grid,
                model.coefficients.predict(grid),
                label=f"fit (R²={model.r_squared:.3f})",
            )
        ax.set_xlabel( # pyright: ignore[reportUnknownMemberType]
            f"avg temperature, lag {model.lag_hours}h "
            f"window {model.window_size_hours}h"
        )
        ax.set_ylabel( # pyright: ignore[reportUnknownMemberType]
            model.energy_aggregation.value
        )
        ax.set_title("Energy vs lagged temperature") # pyright: ignore[reportUnknownMemberType]
        ax.legend() # pyright: ignore[reportUnknownMemberType]
        return ax

    def plot_search_surface(
            self,
            candidates: Sequence[ModelCandidate],
            *,
            ax: Optional[Axes] = None,
        ) -> Axes:
        """Heatmap of R² over lag (rows) and window size (columns)."""
        ax = _new_axes(ax)
        if not candidates:
            return ax
        table = pd.DataFrame(
            [c.to_dict() for c in candidates]
        ).pivot_table(
            index="lag_hours",
            columns="window_size_hours",
            values="r_squared",
            aggfunc="max",
        )
        image = ax.imshow( # pyright: ignore[reportUnknownMemberType]
            table.to_numpy(dtype=float),
            aspect="auto",
            origin="lower",
            cmap="viridis",
            extent=(
                float(table.columns.min()) - 0.5,
                float(table.columns.max()) + 0.5,
                float(table.index.min()) - LAG_STEP_HOURS / 2,
                float(table.index.max()) + LAG_STEP_HOURS / 2,
            ),
        )
        ax.figure.colorbar(image, ax=ax, label="R²") # pyright: ignore[reportUnknownMemberType]
        ax.set_xlabel("window size (h)") # pyright: ignore[reportUnknownMemberType]
        ax.set_ylabel("lag (h)") # pyright: ignore[reportUnknownMemberType]
        ax.set_title("Search surface") # pyright: ignore[reportUnknownMemberType]
        return ax

    @staticmethod
    def save(ax: Axes, path: Address) -> Path:
        """Save the figure holding ``ax`` as PNG without overwriting."""
        target = validate_address(path, extension=".png", mode="w")
        figure = cast(Figure, ax.figure)
        figure.tight_layout()
        figure.savefig(target, dpi=120) # pyright: ignore[reportUnknownMemberType]
        plt.close(figure)
        return target
