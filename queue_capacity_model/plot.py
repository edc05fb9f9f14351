"""
Plotting utilities for visualizing capacity model results.

Requires the 'plot' optional dependency: pip install -e ".[plot]"

Usage:
    from queue_capacity_model import SimulationInput, sweep_parameter, latency_curve
    from queue_capacity_model.plot import plot_sweep, plot_latency_curve

    sweep = sweep_parameter(inp, "requestsPerSecond", [100, 200, 400, 800])
    plot_sweep(sweep, save_path="sweep.png", show=False)
    plot_latency_curve(latency_curve(inp))
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union
from pathlib import Path

try:
    import matplotlib.pyplot as plt
    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False

from .sweep import LatencyCurve, SweepResult


COLORS = {
    'utilization': '#1a5276',
    'saturation': '#e67e22',
    'curve': '#3ef6b1',
    'operating': '#e74c3c',
    'neutral': '#7f8c8d',
}


@dataclass
class PlotStyle:
    """Shared style settings. Override fields to customize: ``PlotStyle(dpi=150)``."""
    line_width: float = 1.8
    marker_size: int = 6
    grid_alpha: float = 0.3
    grid_linestyle: str = '--'
    dpi: int = 200
    facecolor: str = 'white'
    title_fontsize: int = 13
    axis_label_fontsize: int = 11
    legend_fontsize: int = 10


DEFAULT_STYLE = PlotStyle()

# camelCase input field -> axis label
_PARAM_LABELS = {
    "requestsPerSecond": "Requests per second",
    "averageLatencyMs": "Average latency (ms)",
    "threadPoolSize": "Thread pool size",
    "queueSize": "Queue size",
    "targetUtilizationPct": "Target utilization (%)",
    "timeoutThresholdMs": "Timeout threshold (ms)",
}


def _check_matplotlib():
    """Raise helpful error if matplotlib is not installed."""
    if not HAS_MATPLOTLIB:
        raise ImportError(
            "Plotting requires matplotlib. Install with: pip install -e '.[plot]'"
        )


def _apply_common_style(ax, style: PlotStyle):
    ax.set_facecolor(style.facecolor)
    ax.grid(True, alpha=style.grid_alpha, linestyle=style.grid_linestyle)
    ax.set_axisbelow(True)
    ax.spines['top'].set_visible(False)


def _finish(fig, save_path, show: bool, style: PlotStyle):
    fig.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=style.dpi, bbox_inches='tight', facecolor=style.facecolor)
    if show:
        plt.show()
    return fig


def plot_sweep(
    sweep: SweepResult,
    save_path: Optional[Union[str, Path]] = None,
    figsize: Tuple[float, float] = (10, 6),
    show: bool = True,
    title: Optional[str] = None,
    style: Optional[PlotStyle] = None,
) -> Optional[Any]:
    """
    Plot utilization % and saturation probability across a parameter sweep.

    Utilization is drawn on the left axis with a 100% reference line;
    saturation probability on the right axis in [0, 1]. The first
    unhealthy swept value, if any, is marked with a vertical line.

    Returns:
        matplotlib Figure
    """
    _check_matplotlib()
    style = style or DEFAULT_STYLE

    fig, ax = plt.subplots(figsize=figsize)
    fig.patch.set_facecolor(style.facecolor)

    x = sweep.param_values
    ax.plot(x, sweep.utilization_pct, 'o-', color=COLORS['utilization'],
            linewidth=style.line_width, markersize=style.marker_size,
            label='Utilization (% of target capacity)')
    ax.axhline(100, color=COLORS['neutral'], linestyle=':', linewidth=1.5,
               label='Target capacity (100%)')

    unhealthy = sweep.first_unhealthy_value()
    if unhealthy is not None:
        ax.axvline(unhealthy, color=COLORS['operating'], linestyle='--', alpha=0.6,
                   label='First non-healthy value')

    ax.set_xlabel(_PARAM_LABELS.get(sweep.param_name, sweep.param_name),
                  fontsize=style.axis_label_fontsize)
    ax.set_ylabel('Utilization (%)', fontsize=style.axis_label_fontsize)

    ax2 = ax.twinx()
    ax2.plot(x, sweep.saturation_probability, 's--', color=COLORS['saturation'],
             linewidth=style.line_width, markersize=style.marker_size,
             label='Saturation probability')
    ax2.set_ylim(0, 1.05)
    ax2.set_ylabel('Saturation probability', fontsize=style.axis_label_fontsize)

    handles, labels = ax.get_legend_handles_labels()
    handles2, labels2 = ax2.get_legend_handles_labels()
    ax.legend(handles + handles2, labels + labels2, loc='upper left',
              fontsize=style.legend_fontsize)
    _apply_common_style(ax, style)

    ax.set_title(title or f"Sweep: {_PARAM_LABELS.get(sweep.param_name, sweep.param_name)}",
                 fontsize=style.title_fontsize, fontweight='bold')
    return _finish(fig, save_path, show, style)


def plot_latency_curve(
    curve: LatencyCurve,
    save_path: Optional[Union[str, Path]] = None,
    figsize: Tuple[float, float] = (8, 5),
    show: bool = True,
    title: Optional[str] = None,
    style: Optional[PlotStyle] = None,
) -> Optional[Any]:
    """
    Plot the latency knee curve with the current operating point.

    Latency is on a log scale so the knee near rho=1 stays readable.

    Returns:
        matplotlib Figure
    """
    _check_matplotlib()
    style = style or DEFAULT_STYLE

    fig, ax = plt.subplots(figsize=figsize)
    fig.patch.set_facecolor(style.facecolor)

    ax.plot(curve.rho * 100, curve.latency_ms, '-', color=COLORS['curve'],
            linewidth=style.line_width * 1.5, label='Predicted latency')
    ax.plot([curve.operating_rho * 100], [curve.operating_latency_ms], 'o',
            color=COLORS['operating'], markersize=style.marker_size * 1.5,
            label=f'Operating point ({curve.operating_rho:.0%})')
    ax.set_yscale('log')
    ax.set_xlabel('Traffic intensity (%)', fontsize=style.axis_label_fontsize)
    ax.set_ylabel('Latency (ms)', fontsize=style.axis_label_fontsize)
    ax.legend(loc='upper left', fontsize=style.legend_fontsize)
    _apply_common_style(ax, style)

    ax.set_title(title or 'RPS vs Latency Curve', fontsize=style.title_fontsize,
                 fontweight='bold')
    return _finish(fig, save_path, show, style)
