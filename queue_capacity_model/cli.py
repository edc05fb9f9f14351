"""
Command-line interface for running capacity experiments and managing scenarios.

Usage:
    python -m queue_capacity_model configs/checkout_api.json
    python -m queue_capacity_model configs/*.json --output-dir results/
    python -m queue_capacity_model configs/quick.json --stdout
    python -m queue_capacity_model configs/basic.json --plot
    python -m queue_capacity_model configs/basic.json --save "peak traffic"
    python -m queue_capacity_model --list-scenarios
    python -m queue_capacity_model --compare 1 2
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import formatter as fmt
from .analysis import ScenarioComparison, compare_outputs, format_delta
from .config import load_config, validate_config
from .model import SimulationOutput
from .output import OutputWriter, build_report, scenarios_to_csv
from .plot import HAS_MATPLOTLIB as HAS_PLOT, plot_latency_curve, plot_sweep
from .runner import Runner, RunResult, save_result, generate_output_filename
from .store import DEFAULT_DB_PATH, ScenarioRecord, open_store
from .sweep import SweepResult, latency_curve
from .validation import InputValidationError


logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: int = logging.WARNING) -> None:
    """Configure the root logger once for CLI use (stderr)."""
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S',
                        stream=sys.stderr)


# --- Summaries ---

def _fmt_wait(value: Optional[float]) -> str:
    return f"{value:.2f} ms" if value is not None else "unbounded (rho >= 1)"


def format_output_summary(output: SimulationOutput, name: Optional[str] = None) -> str:
    """Format a human-readable summary of one evaluation."""
    m = output.metrics
    a = output.autoscaling_advisor
    inp = output.input

    lines = []
    if name:
        lines.append(fmt.title(name))
        lines.append("")

    lines.append(fmt.heading("Input"))
    lines.append(fmt.kv_block([
        ("Requests/sec", f"{inp.requests_per_second:g}"),
        ("Avg latency", f"{inp.average_latency_ms:g} ms"),
        ("Thread pool", inp.thread_pool_size),
        ("Queue size", inp.queue_size),
        ("Target util", f"{inp.target_utilization_pct:g}%"),
        ("Timeout", f"{inp.timeout_threshold_ms:g} ms"),
    ]))
    lines.append("")

    lines.append(fmt.heading("Metrics"))
    lines.append(fmt.kv_block([
        ("Concurrency required", f"{m.concurrency_required:.2f}"),
        ("Utilization", f"{m.utilization_pct:.2f}%"),
        ("Queue pressure", f"{m.queue_pressure:.4f}"),
        ("Throughput limit", f"{m.throughput_limit:.2f} rps"),
        ("Saturation probability", f"{m.saturation_probability:.2%}"),
    ]))
    lines.append("")

    lines.append(fmt.heading("Autoscaling"))
    lines.append(fmt.kv_block([
        ("Service rate", f"{a.current_service_rate_rps:.2f} rps"),
        ("Traffic intensity", f"{a.traffic_intensity:.4f}"),
        ("Expected queue wait", _fmt_wait(a.estimated_queue_wait_ms)),
        ("Recommended threads", a.recommended_thread_pool_size),
        ("Min instances", a.estimated_min_instances),
    ]))
    lines.append("")

    lines.append(fmt.badge("Bottleneck", output.bottleneck.value))
    lines.append(fmt.badge("Queue risk", output.queue_explosion_risk.value))
    lines.append("")
    lines.append(f"  {output.scaling_recommendation}")
    if output.warnings:
        lines.append("")
        lines.append(fmt.note_block(output.warnings))

    return "\n".join(lines)


def format_sweep_summary(sweep: SweepResult, name: Optional[str] = None) -> str:
    """Format a human-readable table of sweep results."""
    lines = []
    if name:
        lines.append(fmt.title(name))
        lines.append("")
    lines.append(fmt.heading(f"Sweep: {sweep.param_name}"))

    rows = []
    for point in sweep.points:
        out = point.output
        rows.append([
            f"{point.parameter_value:g}",
            f"{out.metrics.utilization_pct:.1f}%",
            f"{out.metrics.queue_pressure:.3f}",
            f"{out.metrics.saturation_probability:.3f}",
            out.bottleneck.value,
            out.queue_explosion_risk.value,
            out.autoscaling_advisor.recommended_thread_pool_size,
        ])
    lines.append(fmt.table(
        ["Value", "Util", "Queue P", "Sat P", "Bottleneck", "Risk", "Threads"],
        rows,
        aligns=['r', 'r', 'r', 'r', 'l', 'l', 'r'],
    ))

    unhealthy = sweep.first_unhealthy_value()
    lines.append("")
    if unhealthy is None:
        lines.append(fmt.badge("First non-healthy value", "none (all healthy)"))
    else:
        lines.append(fmt.badge("First non-healthy value", f"{unhealthy:g}"))
    return "\n".join(lines)


def format_comparison(
    comparison: ScenarioComparison,
    baseline_name: str = "Baseline",
    candidate_name: str = "Candidate",
) -> str:
    """Format a baseline-vs-candidate comparison."""
    rows = []
    for row in comparison.rows:
        rows.append([
            row.label,
            f"{row.baseline:.{row.digits}f}{row.unit}",
            f"{row.candidate:.{row.digits}f}{row.unit}",
            f"{format_delta(row.delta, row.digits)}{row.unit}",
        ])

    before, after = comparison.bottleneck_transition
    risk_before, risk_after = comparison.queue_risk_transition
    lines = [
        fmt.title(f"{baseline_name} vs {candidate_name}"),
        "",
        fmt.table(["Metric", baseline_name, candidate_name, "Delta"], rows,
                  aligns=['l', 'r', 'r', 'r']),
        "",
        fmt.kv_block([
            ("Bottleneck", f"{before.value} -> {after.value}"),
            ("Queue risk", f"{risk_before.value} -> {risk_after.value}"),
            ("Introduced", ", ".join(comparison.introduced_warnings) or "None"),
            ("Resolved", ", ".join(comparison.resolved_warnings) or "None"),
        ]),
    ]
    return "\n".join(lines)


def format_scenario_list(records: List[ScenarioRecord]) -> str:
    """Table of saved scenarios, newest first."""
    if not records:
        return "No saved scenarios."
    rows = [
        [r.id, r.name, r.created_at[:19], r.output.bottleneck.value,
         r.output.queue_explosion_risk.value]
        for r in records
    ]
    return fmt.table(["ID", "Name", "Created", "Bottleneck", "Risk"], rows,
                     aligns=['r', 'l', 'l', 'l', 'l'])


def _print_report(text: str, use_color: bool) -> None:
    print(fmt.colorize(text) if use_color else text)


# --- Actions ---

def run_single_config(
    config_path: Path,
    output_path: Optional[Path] = None,
    output_dir: Optional[Path] = None,
    stdout: bool = False,
    quiet: bool = False,
    plot: bool = False,
    plot_save_path: Optional[Path] = None,
    save_name: Optional[str] = None,
    db_path: Path = DEFAULT_DB_PATH,
    use_color: bool = False,
    export_json_path: Optional[Path] = None,
) -> bool:
    """
    Run a single config file.

    Returns True on success, False on failure.
    """
    try:
        config = load_config(config_path)
    except FileNotFoundError:
        print(f"Error: Config file not found: {config_path}", file=sys.stderr)
        return False
    except ValueError as e:
        print(f"Error: Could not load {config_path}: {e}", file=sys.stderr)
        return False

    errors = validate_config(config)
    if errors:
        print(f"Error: Invalid config {config_path}:", file=sys.stderr)
        for err in errors:
            print(f"  - {err}", file=sys.stderr)
        return False

    runner = Runner(config, config_path=str(config_path))
    result = runner.run()
    summary = _format_result_summary(result)

    if stdout:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        if output_path is None:
            if output_dir is None:
                output_dir = Path("results")
            filename = generate_output_filename(config, result.meta["timestamp"])
            output_path = output_dir / filename

        save_result(result, output_path)
        if not quiet:
            print(f"Results saved to: {output_path}")
            print()
            _print_report(summary, use_color)

    if config.output_dir:
        OutputWriter(config.output_dir).write(result, summary=summary, generate_plots=HAS_PLOT)
        if not quiet and not stdout:
            print(f"\nOutput directory written: {config.output_dir}")

    if export_json_path is not None:
        if result.output is None:
            print("Warning: --export-json ignored for sweep configs", file=sys.stderr)
        else:
            report = build_report(result.output.input, result.output)
            export_json_path.parent.mkdir(parents=True, exist_ok=True)
            export_json_path.write_text(json.dumps(report, indent=2))
            if not quiet and not stdout:
                print(f"\nReport exported to: {export_json_path}")

    if save_name is not None:
        if result.output is None:
            print("Warning: --save ignored for sweep configs", file=sys.stderr)
        else:
            name = save_name or config.name
            try:
                with open_store(db_path) as store:
                    record = store.create(name, result.output.input, result.output)
            except InputValidationError as e:
                print(f"Error: {e}", file=sys.stderr)
                return False
            if not quiet and not stdout:
                print(f"\nSaved scenario #{record.id} ({record.name}) to {db_path}")

    if plot:
        if not HAS_PLOT:
            print("Warning: --plot requires matplotlib. Install with: pip install -e '.[plot]'",
                  file=sys.stderr)
        else:
            if plot_save_path is None and output_path is not None:
                plot_save_path = output_path.with_suffix('.png')
            show = plot_save_path is None
            if result.sweep is not None:
                plot_sweep(result.sweep, save_path=plot_save_path, show=show)
            else:
                plot_latency_curve(latency_curve(result.output.input),
                                   save_path=plot_save_path, show=show)
            if plot_save_path and not quiet:
                print(f"Plot saved to: {plot_save_path}")

    return True


def _format_result_summary(result: RunResult) -> str:
    name = result.meta["experiment_name"]
    if result.sweep is not None:
        return format_sweep_summary(result.sweep, name=name)
    return format_output_summary(result.output, name=name)


def _compare_saved(db_path: Path, baseline_id: int, candidate_id: int, use_color: bool) -> bool:
    with open_store(db_path) as store:
        baseline = store.get(baseline_id)
        candidate = store.get(candidate_id)
    missing = [i for i, r in ((baseline_id, baseline), (candidate_id, candidate)) if r is None]
    if missing:
        print(f"Error: Scenario not found: {', '.join(str(i) for i in missing)}", file=sys.stderr)
        return False
    comparison = compare_outputs(baseline.output, candidate.output)
    _print_report(format_comparison(comparison, baseline.name, candidate.name), use_color)
    return True


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Evaluate request-serving capacity configs and manage saved scenarios",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s configs/basic.json
  %(prog)s configs/*.json --output-dir results/
  %(prog)s configs/quick.json --stdout
  %(prog)s configs/basic.json --save "peak traffic"
  %(prog)s --list-scenarios
  %(prog)s --compare 1 2
  %(prog)s --export-csv scenarios.csv
  %(prog)s configs/basic.json --export-json report.json
        """,
    )

    parser.add_argument("configs", nargs="*", type=Path, help="Config file(s) to run")
    parser.add_argument("-o", "--output", type=Path, default=None,
                        help="Output file path (only valid with single config)")
    parser.add_argument("--output-dir", type=Path, default=None,
                        help="Output directory (default: results/)")
    parser.add_argument("--stdout", action="store_true",
                        help="Print JSON result to stdout instead of saving")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Suppress summary output (only save/print JSON)")
    parser.add_argument("--plot", action="store_true",
                        help="Generate visualization plot (requires matplotlib)")
    parser.add_argument("--plot-save", type=Path, default=None,
                        help="Save plot to file (defaults to output path with .png extension)")
    parser.add_argument("--db", type=Path, default=DEFAULT_DB_PATH,
                        help=f"Scenario database (default: {DEFAULT_DB_PATH})")
    parser.add_argument("--save", nargs="?", const="", default=None, metavar="NAME",
                        help="Save each single-run output as a scenario (default name: config name)")
    parser.add_argument("--list-scenarios", action="store_true",
                        help="List saved scenarios, newest first")
    parser.add_argument("--delete-scenario", type=int, default=None, metavar="ID",
                        help="Delete a saved scenario")
    parser.add_argument("--export-csv", type=Path, default=None, metavar="PATH",
                        help="Export saved scenarios as CSV")
    parser.add_argument("--export-json", type=Path, default=None, metavar="PATH",
                        help="Export a JSON report of the evaluated config (single config only)")
    parser.add_argument("--compare", nargs=2, type=int, default=None,
                        metavar=("BASELINE_ID", "CANDIDATE_ID"),
                        help="Compare two saved scenarios")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    scenario_actions = (args.list_scenarios or args.delete_scenario is not None
                        or args.export_csv is not None or args.compare is not None)
    if not args.configs and not scenario_actions:
        parser.error("at least one config file or a scenario action is required")
    if args.output and len(args.configs) > 1:
        parser.error("--output can only be used with a single config file")
    if args.export_json and len(args.configs) != 1:
        parser.error("--export-json requires exactly one config file")
    if args.stdout and args.output:
        parser.error("Cannot use --stdout with --output")

    use_color = fmt.supports_color()
    success_count = 0
    fail_count = 0

    for config_path in args.configs:
        success = run_single_config(
            config_path,
            output_path=args.output,
            output_dir=args.output_dir,
            stdout=args.stdout,
            quiet=args.quiet,
            plot=args.plot,
            plot_save_path=args.plot_save,
            save_name=args.save,
            db_path=args.db,
            use_color=use_color,
            export_json_path=args.export_json,
        )
        if success:
            success_count += 1
        else:
            fail_count += 1

        if len(args.configs) > 1 and not args.stdout and not args.quiet:
            print("\n" + fmt.separator() + "\n")

    if len(args.configs) > 1 and not args.quiet:
        print(f"Completed: {success_count} succeeded, {fail_count} failed")

    if args.delete_scenario is not None:
        with open_store(args.db) as store:
            deleted = store.delete(args.delete_scenario)
        if deleted:
            print(f"Deleted scenario #{args.delete_scenario}")
        else:
            print(f"Error: Scenario not found: {args.delete_scenario}", file=sys.stderr)
            fail_count += 1

    if args.list_scenarios:
        with open_store(args.db) as store:
            records = store.list()
        _print_report(format_scenario_list(records), use_color)

    if args.export_csv is not None:
        with open_store(args.db) as store:
            records = store.list()
        args.export_csv.parent.mkdir(parents=True, exist_ok=True)
        with open(args.export_csv, 'w', newline='') as f:
            f.write(scenarios_to_csv(records))
        print(f"Exported {len(records)} scenario(s) to {args.export_csv}")

    if args.compare is not None:
        if not _compare_saved(args.db, args.compare[0], args.compare[1], use_color):
            fail_count += 1

    return 0 if fail_count == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
