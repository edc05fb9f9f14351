"""
Tests for the command-line interface and terminal formatting.
"""

import csv
import json

import pytest

from . import formatter as fmt
from .cli import format_scenario_list, main


BASE_INPUT = {
    "requestsPerSecond": 100,
    "averageLatencyMs": 200,
    "threadPoolSize": 40,
    "queueSize": 500,
    "targetUtilizationPct": 80,
    "timeoutThresholdMs": 2000,
}


def write_config(tmp_path, name, **overrides):
    data = {"name": name, "input": {**BASE_INPUT, **overrides.pop("input", {})}}
    data.update(overrides)
    path = tmp_path / f"{name.replace(' ', '_')}.json"
    path.write_text(json.dumps(data))
    return str(path)


@pytest.fixture(autouse=True)
def no_color(monkeypatch):
    monkeypatch.setenv("NO_COLOR", "1")


@pytest.fixture
def db(tmp_path):
    return str(tmp_path / "data" / "simulations.db")


class TestRunConfigs:

    def test_stdout_json(self, tmp_path, capsys):
        assert main([write_config(tmp_path, "baseline"), "--stdout"]) == 0
        result = json.loads(capsys.readouterr().out)
        assert result["output"]["bottleneck"] == "healthy"
        assert result["meta"]["experiment_name"] == "baseline"

    def test_writes_result_file(self, tmp_path, capsys):
        out = tmp_path / "results" / "baseline.json"
        assert main([write_config(tmp_path, "baseline"), "-o", str(out)]) == 0
        assert json.loads(out.read_text())["config"]["name"] == "baseline"
        printed = capsys.readouterr().out
        assert "Results saved to" in printed
        assert "Bottleneck: healthy" in printed

    def test_sweep_summary(self, tmp_path, capsys):
        config = write_config(
            tmp_path, "ramp",
            sweep={"parameter": "requestsPerSecond", "values": [100, 170]},
        )
        assert main([config, "-o", str(tmp_path / "ramp_out.json")]) == 0
        printed = capsys.readouterr().out
        assert "Sweep: requestsPerSecond" in printed
        assert "First non-healthy value: 170" in printed

    def test_output_dir_from_config(self, tmp_path):
        config = write_config(tmp_path, "dir", output_dir=str(tmp_path / "dir_out"))
        assert main([config, "-q", "-o", str(tmp_path / "dir.json")]) == 0
        assert (tmp_path / "dir_out" / "results.json").exists()
        assert (tmp_path / "dir_out" / "summary.md").read_text().strip()

    def test_missing_config(self, tmp_path, capsys):
        assert main([str(tmp_path / "absent.json"), "--stdout"]) == 1
        assert "Config file not found" in capsys.readouterr().err

    def test_invalid_config(self, tmp_path, capsys):
        config = write_config(tmp_path, "bad", input={"threadPoolSize": 0})
        assert main([config, "--stdout"]) == 1
        assert "threadPoolSize" in capsys.readouterr().err

    def test_requires_config_or_action(self):
        with pytest.raises(SystemExit):
            main([])

    def test_output_with_stdout_rejected(self, tmp_path):
        with pytest.raises(SystemExit):
            main([write_config(tmp_path, "baseline"), "--stdout", "-o", "x.json"])


class TestMalformedConfigs:
    """A broken config is reported and the remaining configs still run."""

    @pytest.mark.parametrize("data", [
        {"name": "bad", "input": BASE_INPUT,
         "sweep": {"parameter": "requestsPerSecond", "values": ["x"]}},
        {"name": "bad", "input": BASE_INPUT,
         "sweep": {"parameter": "threadPoolSize", "values": ["x"]}},
        {"name": "bad", "input": BASE_INPUT, "sweep": {"values": [1, 2]}},
        {"name": "bad", "input": BASE_INPUT, "sweep": "fast"},
        {"name": 5, "input": BASE_INPUT},
        {"name": "bad", "input": [1, 2]},
        {"name": "bad", "input": {**BASE_INPUT, "threadPoolSize": 10**400}},
    ])
    def test_bad_config_then_good(self, tmp_path, capsys, data):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps(data))
        good = write_config(tmp_path, "good")

        assert main([str(bad), good, "--output-dir", str(tmp_path / "results"), "-q"]) == 1
        assert "Error:" in capsys.readouterr().err
        assert len(list((tmp_path / "results").glob("good_*.json"))) == 1


class TestExportJson:

    def test_report_written(self, tmp_path, capsys):
        report_path = tmp_path / "reports" / "report.json"
        config = write_config(tmp_path, "baseline")
        assert main([config, "--stdout", "--export-json", str(report_path)]) == 0
        capsys.readouterr()

        report = json.loads(report_path.read_text())
        assert report["app"] == "system-performance-simulator"
        assert report["input"] == BASE_INPUT
        assert report["output"]["bottleneck"] == "healthy"
        assert report["snapshots"] == []

    def test_sweep_skipped(self, tmp_path, capsys):
        report_path = tmp_path / "report.json"
        config = write_config(tmp_path, "ramp",
                              sweep={"parameter": "queueSize", "values": [0, 10]})
        assert main([config, "--stdout", "--export-json", str(report_path)]) == 0
        assert "--export-json ignored" in capsys.readouterr().err
        assert not report_path.exists()

    def test_requires_single_config(self, tmp_path):
        configs = [write_config(tmp_path, "one"), write_config(tmp_path, "two")]
        with pytest.raises(SystemExit):
            main([*configs, "--export-json", str(tmp_path / "r.json")])


class TestScenarioWorkflow:

    def save(self, tmp_path, db, name, *save_args, **overrides):
        config = write_config(tmp_path, name, **overrides)
        out = str(tmp_path / f"{name}_result.json")
        return main([config, "-q", "-o", out, "--db", db, "--save", *save_args])

    def test_save_list_compare_export_delete(self, tmp_path, db, capsys):
        assert self.save(tmp_path, db, "baseline") == 0
        assert self.save(tmp_path, db, "peak", "peak traffic",
                         input={"requestsPerSecond": 170}) == 0
        capsys.readouterr()

        assert main(["--db", db, "--list-scenarios"]) == 0
        listing = capsys.readouterr().out
        assert listing.index("peak traffic") < listing.index("baseline")

        assert main(["--db", db, "--compare", "1", "2"]) == 0
        comparison = capsys.readouterr().out
        assert "baseline vs peak traffic" in comparison
        assert "healthy -> thread_pool_saturation" in comparison
        assert "Thread pool saturation detected" in comparison

        export = tmp_path / "exports" / "scenarios.csv"
        assert main(["--db", db, "--export-csv", str(export)]) == 0
        with open(export, newline='') as f:
            rows = list(csv.reader(f))
        assert [r[1] for r in rows[1:]] == ["peak traffic", "baseline"]

        assert main(["--db", db, "--delete-scenario", "1"]) == 0
        assert main(["--db", db, "--delete-scenario", "1"]) == 1
        assert main(["--db", db, "--compare", "1", "2"]) == 1
        assert "Scenario not found: 1" in capsys.readouterr().err

    def test_invalid_name_fails(self, tmp_path, db, capsys):
        assert self.save(tmp_path, db, "baseline", "x") == 1
        assert "Scenario name" in capsys.readouterr().err

    def test_sweep_not_saved(self, tmp_path, db, capsys):
        code = self.save(tmp_path, db, "ramp",
                         sweep={"parameter": "queueSize", "values": [0, 10]})
        assert code == 0
        assert "--save ignored" in capsys.readouterr().err
        main(["--db", db, "--list-scenarios"])
        assert "No saved scenarios." in capsys.readouterr().out


class TestFormatting:

    def test_empty_scenario_list(self):
        assert format_scenario_list([]) == "No saved scenarios."

    def test_table_alignment(self):
        lines = fmt.table(["Name", "N"], [["a", 1], ["bb", 22]], aligns=['l', 'r']).split("\n")
        assert lines[0].startswith("┌")
        assert lines[3] == "│ a    │  1 │"
        assert len({len(line) for line in lines}) == 1

    def test_colorize_tokens(self):
        text = fmt.colorize("  ▸ Bottleneck: thread_pool_saturation")
        assert "\033[31mthread_pool_saturation\033[0m" in text
        assert "\033[32m" not in text

    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("FORCE_COLOR", "1")
        assert fmt.supports_color() is False
        monkeypatch.delenv("NO_COLOR")
        assert fmt.supports_color() is True
