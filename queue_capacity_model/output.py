"""
Export of simulation results.

Provides:
- build_report(): JSON report of one evaluation
- scenarios_to_csv(): CSV table of saved scenarios
- OutputWriter: structured directory output for a run
    results.json   Full run result
    config.json    Echoed input config
    summary.md     Human-readable summary
    sweep.csv      Per-point table (sweeps only)
    plots/         Generated figures (if matplotlib available)
"""

import csv
from datetime import datetime, timezone
from io import StringIO
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, TYPE_CHECKING
import json
import logging

from .model import SimulationInput, SimulationOutput

if TYPE_CHECKING:
    from .runner import RunResult
    from .store import ScenarioRecord


logger = logging.getLogger(__name__)

REPORT_APP_NAME = "system-performance-simulator"

SCENARIO_CSV_HEADER = [
    "id",
    "name",
    "createdAt",
    "rps",
    "avgLatencyMs",
    "threadPoolSize",
    "queueSize",
    "cpuCores",
    "targetUtilizationPct",
    "timeoutThresholdMs",
    "concurrencyRequired",
    "utilizationPct",
    "queuePressure",
    "throughputLimit",
    "saturationProbability",
    "bottleneck",
    "queueExplosionRisk",
    "scalingRecommendation",
    "warnings",
]


def build_report(
    inp: SimulationInput,
    output: SimulationOutput,
    snapshots: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """JSON-serializable report of one evaluation."""
    return {
        "app": REPORT_APP_NAME,
        "exportedAt": datetime.now(timezone.utc).isoformat(),
        "input": inp.to_dict(),
        "output": output.to_dict(),
        "snapshots": list(snapshots or []),
    }


def _scenario_row(record: 'ScenarioRecord') -> List[Any]:
    inp = record.input
    m = record.output.metrics
    return [
        record.id,
        record.name,
        record.created_at,
        inp.requests_per_second,
        inp.average_latency_ms,
        inp.thread_pool_size,
        inp.queue_size,
        inp.cpu_cores if inp.cpu_cores is not None else "",
        inp.target_utilization_pct,
        inp.timeout_threshold_ms,
        f"{m.concurrency_required:.4f}",
        f"{m.utilization_pct:.2f}",
        f"{m.queue_pressure:.4f}",
        f"{m.throughput_limit:.2f}",
        f"{m.saturation_probability:.4f}",
        record.output.bottleneck.value,
        record.output.queue_explosion_risk.value,
        record.output.scaling_recommendation,
        " | ".join(record.output.warnings),
    ]


def scenarios_to_csv(records: Iterable['ScenarioRecord']) -> str:
    """Render saved scenarios as CSV text (header row first)."""
    buf = StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(SCENARIO_CSV_HEADER)
    for record in records:
        writer.writerow(_scenario_row(record))
    return buf.getvalue()


class OutputWriter:
    """
    Write run results to a structured directory.

    Output structure:
        output_dir/
            results.json
            config.json
            summary.md
            sweep.csv        (sweep runs)
            plots/           (if matplotlib is installed)
    """

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)

    def write(
        self,
        result: 'RunResult',
        summary: str = "",
        generate_plots: bool = True,
    ) -> None:
        """
        Write all output files.

        Args:
            result: RunResult to write
            summary: Plain-text summary for summary.md
            generate_plots: Whether to generate plots (requires matplotlib)
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)

        self._write_json('results.json', result.to_dict())
        self._write_json('config.json', result.config)
        with open(self.output_dir / 'summary.md', 'w') as f:
            f.write(summary)

        if result.sweep is not None:
            self._write_sweep_csv(result)

        if generate_plots:
            self._write_plots(result)

    def _write_json(self, filename: str, data: Any) -> None:
        with open(self.output_dir / filename, 'w') as f:
            json.dump(data, f, indent=2)

    def _write_sweep_csv(self, result: 'RunResult') -> None:
        rows = [p.to_dict() for p in result.sweep.points]
        with open(self.output_dir / 'sweep.csv', 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()) if rows else ['parameter_value'])
            writer.writeheader()
            writer.writerows(rows)

    def _write_plots(self, result: 'RunResult') -> None:
        """Generate figures; skipped quietly when matplotlib is not installed."""
        from .plot import HAS_MATPLOTLIB, plot_latency_curve, plot_sweep
        if not HAS_MATPLOTLIB:
            logger.debug("matplotlib not installed; skipping plots")
            return

        import matplotlib.pyplot as plt
        from .sweep import latency_curve

        plots_dir = self.output_dir / 'plots'
        plots_dir.mkdir(exist_ok=True)
        if result.sweep is not None:
            fig = plot_sweep(result.sweep, save_path=plots_dir / 'sweep.png', show=False)
            plt.close(fig)
        if result.output is not None:
            curve = latency_curve(result.output.input)
            fig = plot_latency_curve(curve, save_path=plots_dir / 'latency_curve.png', show=False)
            plt.close(fig)
