"""Smoke tests for the diagnostic plots."""

import matplotlib.pyplot as plt
import pytest

from building_energy_modeling.models.search import ModelSearch
from building_energy_modeling.preprocessing.aggregation import (
    calculate_lagged_window_average,
)
from building_energy_modeling.visualization.diagnostics import Plot


@pytest.fixture
def fitted(building, policy, small_grid):
    temperature, energy = building
    search = ModelSearch(policy, small_grid)
    best = search.find_best_model(temperature, energy)
    return temperature, search, best


def test_fit_plot_draws_points_and_curve(fitted, policy):
    temperature, search, best = fitted
    avg = calculate_lagged_window_average(
        temperature, policy, best.window_size_hours, best.lag_hours
    )
    ax = Plot().plot_fit(avg, search.energy_for(best.energy_aggregation), best)
    assert len(ax.collections) == 1
    assert len(ax.lines) == 1
    plt.close(ax.figure)


def test_search_surface_shape(fitted):
    _, search, _ = fitted
    ax = Plot().plot_search_surface(search.candidates)
    image = ax.get_images()[0]
    # Five lags by three windows
    assert image.get_array().shape == (5, 3)
    plt.close(ax.figure)


def test_interval_plot_respects_range(building):
    temperature, _ = building
    ax = Plot().plot_interval(temperature, start="2014-06-03", end="2014-06-04")
    assert len(ax.lines[0].get_xdata()) == 96
    plt.close(ax.figure)


def test_save_png(fitted, tmp_path):
    _, search, _ = fitted
    plot = Plot()
    path = plot.save(plot.plot_search_surface(search.candidates), tmp_path / "surface")
    assert path.suffix == ".png"
    assert path.exists()
