"""
Tests for scenario comparison and result export.
"""

import csv
import json
from io import StringIO

import pytest

from .config import ExperimentConfig, SweepSpec
from .model import Bottleneck, QueueRisk, SimulationInput, run_simulation
from .analysis import compare_outputs, format_delta
from .output import SCENARIO_CSV_HEADER, OutputWriter, build_report, scenarios_to_csv
from .runner import Runner
from .store import ScenarioRecord


def make_input(rps=100, cpu_cores=None) -> SimulationInput:
    return SimulationInput(
        requests_per_second=rps,
        average_latency_ms=200,
        thread_pool_size=40,
        queue_size=500,
        target_utilization_pct=80,
        timeout_threshold_ms=2000,
        cpu_cores=cpu_cores,
    )


def make_record(scenario_id, name, rps=100, cpu_cores=None) -> ScenarioRecord:
    inp = make_input(rps, cpu_cores)
    return ScenarioRecord(
        id=scenario_id,
        name=name,
        created_at="2026-01-08T10:22:33+00:00",
        input=inp,
        output=run_simulation(inp),
    )


class TestFormatDelta:

    @pytest.mark.parametrize("value,digits,expected", [
        (43.75, 2, "+43.75"),
        (-1.5, 2, "-1.50"),
        (0.00004, 2, "0.00"),
        (-0.00004, 2, "0.00"),
        (18, 0, "+18"),
    ])
    def test_format(self, value, digits, expected):
        assert format_delta(value, digits) == expected


class TestCompareOutputs:

    @pytest.fixture
    def comparison(self):
        # 100 rps is healthy; 170 rps pushes past the 32 safe threads
        return compare_outputs(run_simulation(make_input(100)), run_simulation(make_input(170)))

    def test_transitions(self, comparison):
        assert comparison.bottleneck_transition == (
            Bottleneck.HEALTHY, Bottleneck.THREAD_POOL_SATURATION,
        )
        assert comparison.bottleneck_changed
        assert comparison.queue_risk_transition[0] is QueueRisk.LOW

    def test_metric_rows(self, comparison):
        rows = {r.label: r for r in comparison.rows}
        assert rows["Concurrency Required"].delta == pytest.approx(14)
        assert rows["Utilization %"].delta == pytest.approx(43.75)
        assert rows["Recommended Threads"].baseline == 25
        assert rows["Recommended Threads"].candidate == 43

    def test_warning_diff(self, comparison):
        assert comparison.introduced_warnings == ["Thread pool saturation detected"]
        assert comparison.resolved_warnings == []

    def test_reverse_resolves(self):
        comparison = compare_outputs(run_simulation(make_input(170)), run_simulation(make_input(100)))
        assert comparison.resolved_warnings == ["Thread pool saturation detected"]
        assert comparison.introduced_warnings == []

    def test_identical_outputs(self):
        output = run_simulation(make_input())
        comparison = compare_outputs(output, output)
        assert not comparison.bottleneck_changed
        assert all(format_delta(r.delta) == "0.00" for r in comparison.rows)

    def test_to_dict(self, comparison):
        d = comparison.to_dict()
        assert d["bottleneck"] == {"baseline": "healthy", "candidate": "thread_pool_saturation"}
        assert len(d["metrics"]) == len(comparison.rows)


class TestBuildReport:

    def test_report_shape(self):
        inp = make_input()
        report = build_report(inp, run_simulation(inp))
        assert report["app"] == "system-performance-simulator"
        assert report["input"] == inp.to_dict()
        assert report["output"]["bottleneck"] == "healthy"
        assert report["snapshots"] == []
        json.dumps(report)


class TestScenariosToCsv:

    def test_header_only(self):
        assert scenarios_to_csv([]) == ",".join(SCENARIO_CSV_HEADER) + "\n"

    def test_rows(self):
        records = [make_record(2, "overloaded", rps=1000, cpu_cores=8), make_record(1, "baseline")]
        rows = list(csv.reader(StringIO(scenarios_to_csv(records))))
        assert rows[0] == SCENARIO_CSV_HEADER
        assert len(rows) == 3

        overloaded = dict(zip(SCENARIO_CSV_HEADER, rows[1]))
        assert overloaded["id"] == "2"
        assert overloaded["cpuCores"] == "8"
        assert overloaded["utilizationPct"] == "625.00"
        assert overloaded["bottleneck"] == "thread_pool_saturation"
        assert overloaded["warnings"] == (
            "Thread pool saturation detected | System operating beyond safe utilization"
        )

        baseline = dict(zip(SCENARIO_CSV_HEADER, rows[2]))
        assert baseline["cpuCores"] == ""
        assert baseline["concurrencyRequired"] == "20.0000"
        assert baseline["throughputLimit"] == "200.00"
        assert baseline["warnings"] == ""

    def test_quotes_commas(self):
        record = make_record(1, "peak, weekday")
        rows = list(csv.reader(StringIO(scenarios_to_csv([record]))))
        assert rows[1][1] == "peak, weekday"


class TestOutputWriter:

    BASE_INPUT = make_input().to_dict()

    def test_single_run(self, tmp_path):
        result = Runner(ExperimentConfig(name="single", input=self.BASE_INPUT)).run()
        OutputWriter(tmp_path / "out").write(result, summary="hello", generate_plots=False)

        out = tmp_path / "out"
        assert json.loads((out / "results.json").read_text())["output"]["bottleneck"] == "healthy"
        assert json.loads((out / "config.json").read_text())["name"] == "single"
        assert (out / "summary.md").read_text() == "hello"
        assert not (out / "sweep.csv").exists()
        assert not (out / "plots").exists()

    def test_sweep_csv(self, tmp_path):
        config = ExperimentConfig(
            name="ramp",
            input=self.BASE_INPUT,
            sweep=SweepSpec("requestsPerSecond", [100, 170]),
        )
        OutputWriter(tmp_path).write(Runner(config).run(), generate_plots=False)
        with open(tmp_path / "sweep.csv") as f:
            rows = list(csv.DictReader(f))
        assert [r["bottleneck"] for r in rows] == ["healthy", "thread_pool_saturation"]
