"""
Input validation for simulation requests and scenario names.

The model itself assumes valid input; callers run these checks first.
Validators return a list of error messages (empty list = valid).
"""

from typing import Any, Dict, List, Optional, Tuple
import math
import sys

from .model import SimulationInput


# field -> (is_integer, lower, lower_inclusive, upper, required)
INPUT_BOUNDS: Dict[str, Tuple[bool, float, bool, float, bool]] = {
    "requestsPerSecond": (False, 0, False, 1_000_000, True),
    "averageLatencyMs": (False, 0, False, 120_000, True),
    "threadPoolSize": (True, 1, True, 100_000, True),
    "queueSize": (True, 0, True, 1_000_000, True),
    "cpuCores": (True, 1, True, 2048, False),
    "targetUtilizationPct": (False, 1, True, 99, True),
    "timeoutThresholdMs": (False, 0, False, 300_000, True),
}

SCENARIO_NAME_MIN = 2
SCENARIO_NAME_MAX = 120


class InputValidationError(ValueError):
    """Raised when input fails validation; carries every error message."""

    def __init__(self, errors: List[str], message: str = "Invalid input"):
        self.errors = list(errors)
        super().__init__(f"{message}: {'; '.join(self.errors)}")


def _check_number(name: str, value: Any, spec: Tuple[bool, float, bool, float, bool]) -> Optional[str]:
    is_integer, lower, lower_inclusive, upper, _ = spec

    # bool is an int subclass but never a valid measurement
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return f"{name} must be a number, got {value!r}"
    # int/float comparison is exact, so oversized ints are rejected before float conversion
    if isinstance(value, int) and abs(value) > sys.float_info.max:
        if value > 0:
            return f"{name} must be <= {upper}"
        return f"{name} must be {'>=' if lower_inclusive else '>'} {lower}"
    if not math.isfinite(value):
        return f"{name} must be finite, got {value}"
    if is_integer and not float(value).is_integer():
        return f"{name} must be an integer, got {value}"
    if lower_inclusive and value < lower:
        return f"{name} must be >= {lower}, got {value}"
    if not lower_inclusive and value <= lower:
        return f"{name} must be > {lower}, got {value}"
    if value > upper:
        return f"{name} must be <= {upper}, got {value}"
    return None


def validate_input_dict(data: Any) -> List[str]:
    """
    Validate a raw SimulationInput mapping (camelCase JSON shape).

    Returns empty list if the data is valid.
    """
    if not isinstance(data, dict):
        return [f"input must be an object, got {type(data).__name__}"]

    errors = []
    for name, spec in INPUT_BOUNDS.items():
        required = spec[4]
        if name not in data or data[name] is None:
            if required:
                errors.append(f"{name} is required")
            continue
        error = _check_number(name, data[name], spec)
        if error:
            errors.append(error)

    unknown = sorted(set(data) - set(INPUT_BOUNDS))
    if unknown:
        errors.append(f"Unknown input fields: {unknown}")

    return errors


def validate_scenario_name(name: Any) -> List[str]:
    """Scenario names are trimmed and must be 2-120 characters."""
    if not isinstance(name, str):
        return ["Scenario name must be a string"]
    length = len(name.strip())
    if length < SCENARIO_NAME_MIN:
        return [f"Scenario name must be at least {SCENARIO_NAME_MIN} characters"]
    if length > SCENARIO_NAME_MAX:
        return [f"Scenario name must be at most {SCENARIO_NAME_MAX} characters"]
    return []


def parse_input(data: Any) -> SimulationInput:
    """
    Validate a raw mapping and build a SimulationInput.

    Raises:
        InputValidationError: If any field is missing or out of range
    """
    errors = validate_input_dict(data)
    if errors:
        raise InputValidationError(errors)

    values = dict(data)
    for name in ("threadPoolSize", "queueSize", "cpuCores"):
        if values.get(name) is not None:
            values[name] = int(values[name])
    return SimulationInput.from_dict(values)
