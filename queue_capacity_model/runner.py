"""
Execute capacity configs.

A config describes either one system (single evaluation) or one system
with a swept field. The runner validates it, parses the input block into
a SimulationInput and returns a RunResult that can be written as JSON.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
import json
import logging
import re

from .config import ExperimentConfig, validate_config
from .model import SimulationOutput, run_simulation
from .sweep import SweepResult, sweep_parameter
from .validation import parse_input


VERSION = "1.0.0"

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class RunResult:
    """
    Outcome of one config.

    Exactly one of output (single evaluation) and sweep is set.
    """
    meta: Dict[str, Any]
    config: dict
    output: Optional[SimulationOutput] = None
    sweep: Optional[SweepResult] = None

    @property
    def kind(self) -> str:
        return "sweep" if self.sweep is not None else "single"

    def to_dict(self) -> dict:
        d = {"meta": self.meta, "config": self.config}
        if self.output is not None:
            d["output"] = self.output.to_dict()
        if self.sweep is not None:
            d["sweep"] = self.sweep.to_dict()
        return d


class Runner:
    """
    Evaluate an ExperimentConfig.

    Example:
        runner = Runner(load_config("configs/checkout_api.json"))
        save_result(runner.run(), "results/checkout_api.json")
    """

    def __init__(self, config: ExperimentConfig, config_path: Optional[str] = None):
        """
        Raises:
            ValueError: If the config has any validation error
        """
        errors = validate_config(config)
        if errors:
            logger.warning("Rejected config %r: %d error(s)", config.name, len(errors))
            raise ValueError(f"Invalid config: {'; '.join(errors)}")

        self.config = config
        self.config_path = config_path

    def _meta(self) -> Dict[str, Any]:
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": VERSION,
            "config_file": self.config_path,
            "experiment_name": self.config.name,
        }

    def run(self) -> RunResult:
        base_input = parse_input(self.config.input)
        result = RunResult(meta=self._meta(), config=self.config.to_dict())

        spec = self.config.sweep
        if spec is not None:
            values = spec.resolved_values()
            logger.debug("Sweeping %s over %d values for %r",
                         spec.parameter, len(values), self.config.name)
            result.sweep = sweep_parameter(base_input, spec.parameter, values)
        else:
            logger.debug("Evaluating %r", self.config.name)
            result.output = run_simulation(base_input)
        return result


def save_result(result: RunResult, path: str | Path) -> None:
    """Write a RunResult as indented JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(result.to_dict(), indent=2))


def load_result(path: str | Path) -> dict:
    """Read a result file written by save_result (as a plain dict)."""
    return json.loads(Path(path).read_text())


def generate_output_filename(config: ExperimentConfig, timestamp: Optional[str] = None) -> str:
    """
    Default result filename: ``{name}_{YYYYmmdd_HHMMSS}.json``.

    timestamp is an ISO 8601 string (as stored in RunResult.meta); the
    current local time is used when omitted.
    """
    moment = datetime.fromisoformat(timestamp) if timestamp else datetime.now()
    stem = _UNSAFE_FILENAME_CHARS.sub("_", config.name.strip()) or "unnamed"
    return f"{stem}_{moment:%Y%m%d_%H%M%S}.json"
