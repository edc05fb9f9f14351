"""
Experiment configs: one system description plus an optional sweep.

Config files are JSON5 (comments and trailing commas allowed). The input
block uses the same camelCase shape as SimulationInput.to_dict().
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import json
import math
from pathlib import Path

import json5
import numpy as np

from .validation import INPUT_BOUNDS, validate_input_dict


# Input fields that hold whole numbers; swept values are rounded for these
INTEGER_FIELDS = tuple(name for name, spec in INPUT_BOUNDS.items() if spec[0])


@dataclass
class SweepSpec:
    """
    Sweep one input field across a set of values.

    Values are either listed explicitly or generated as an evenly spaced
    grid from start to stop (inclusive) with num points.
    """
    parameter: str
    values: List[float] = field(default_factory=list)
    start: Optional[float] = None
    stop: Optional[float] = None
    num: Optional[int] = None

    def resolved_values(self) -> List[float]:
        """Return the concrete values to evaluate, in sweep order."""
        if self.values:
            values = list(self.values)
        elif self.start is not None and self.stop is not None and self.num:
            values = np.linspace(self.start, self.stop, int(self.num)).tolist()
        else:
            values = []

        if self.parameter in INTEGER_FIELDS:
            return [int(round(v)) for v in values]
        return [float(v) for v in values]

    def to_dict(self) -> dict:
        d: Dict[str, Any] = {"parameter": self.parameter}
        if self.values:
            d["values"] = list(self.values)
        if self.start is not None:
            d["start"] = self.start
        if self.stop is not None:
            d["stop"] = self.stop
        if self.num is not None:
            d["num"] = self.num
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "SweepSpec":
        return cls(
            parameter=data.get("parameter"),
            values=data.get("values") or [],
            start=data.get("start"),
            stop=data.get("stop"),
            num=data.get("num"),
        )


@dataclass
class ExperimentConfig:
    """Top-level config file contents. input is validated lazily by validate_config."""
    name: str
    description: str = ""
    input: Dict[str, Any] = field(default_factory=dict)
    sweep: Optional[SweepSpec] = None
    output_dir: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "input": dict(self.input),
            "sweep": self.sweep.to_dict() if self.sweep is not None else None,
            "output_dir": self.output_dir,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExperimentConfig":
        sweep = None
        if data.get("sweep"):
            if not isinstance(data["sweep"], dict):
                raise ValueError("'sweep' must be an object")
            sweep = SweepSpec.from_dict(data["sweep"])

        # Left as given when not a mapping; validate_config reports it
        raw_input = data.get("input", {})

        return cls(
            name=data.get("name", "unnamed"),
            description=data.get("description", ""),
            input=dict(raw_input) if isinstance(raw_input, dict) else raw_input,
            sweep=sweep,
            output_dir=data.get("output_dir"),
        )

    def is_sweep(self) -> bool:
        return self.sweep is not None

    @staticmethod
    def get_sweepable_parameters() -> List[str]:
        """Return list of input fields that can be swept."""
        return [name for name in INPUT_BOUNDS if name != "cpuCores"]


def load_config(path: str | Path) -> ExperimentConfig:
    """
    Read a config file.

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If the file is not valid JSON5 or not shaped like a config
    """
    path = Path(path)
    with open(path, 'r') as f:
        data = json5.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config root must be an object: {path}")
    try:
        return ExperimentConfig.from_dict(data)
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed config {path}: {e!r}") from e


def save_config(config: ExperimentConfig, path: str | Path) -> None:
    """Write a config as plain JSON (readable by load_config)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)




# Upper bound on generated sweep grids
MAX_SWEEP_POINTS = 10_000


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int too large for a float
        return False


def _sweep_spec_errors(spec: SweepSpec) -> List[str]:
    """Structural problems with a sweep block, before any value is resolved."""
    if not isinstance(spec.parameter, str) or not spec.parameter:
        return ["Sweep must name a 'parameter'"]
    valid_params = ExperimentConfig.get_sweepable_parameters()
    if spec.parameter not in valid_params:
        return [f"Invalid sweep parameter: {spec.parameter}. Valid: {valid_params}"]

    errors = []
    if not isinstance(spec.values, (list, tuple)):
        errors.append(f"Sweep 'values' must be a list of numbers, got {spec.values!r}")
    else:
        bad = [v for v in spec.values if not _is_finite_number(v)]
        if bad:
            errors.append(f"Sweep values must be finite numbers, got {bad!r}")

    for key in ("start", "stop"):
        value = getattr(spec, key)
        if value is not None and not _is_finite_number(value):
            errors.append(f"Sweep '{key}' must be a finite number, got {value!r}")

    num = spec.num
    if num is not None:
        if isinstance(num, bool) or not isinstance(num, int) or num < 1:
            errors.append(f"Sweep 'num' must be a positive integer, got {num!r}")
        elif num > MAX_SWEEP_POINTS:
            errors.append(f"Sweep 'num' must be <= {MAX_SWEEP_POINTS}, got {num}")
    return errors


def validate_config(config: ExperimentConfig) -> List[str]:
    """Every problem with a config, as messages. Empty means runnable."""
    errors = []

    if not isinstance(config.name, str) or not config.name.strip():
        errors.append("Config must have a non-empty 'name'")
    if config.output_dir is not None and not isinstance(config.output_dir, str):
        errors.append(f"'output_dir' must be a string, got {config.output_dir!r}")

    input_errors = validate_input_dict(config.input)
    errors.extend(f"input: {e}" for e in input_errors)

    if config.sweep is None:
        return errors

    spec_errors = _sweep_spec_errors(config.sweep)
    if spec_errors:
        errors.extend(spec_errors)
        return errors

    try:
        values = config.sweep.resolved_values()
    except (OverflowError, ValueError) as e:
        errors.append(f"Sweep grid could not be generated: {e}")
        return errors
    if not values:
        errors.append("Sweep must have at least one value "
                      "(or start, stop and num)")

    # Every swept point must still be a valid input
    if not input_errors:
        for value in values:
            point = dict(config.input)
            point[config.sweep.parameter] = value
            point_errors = validate_input_dict(point)
            if point_errors:
                errors.append(f"sweep value {value}: {'; '.join(point_errors)}")

    return errors
