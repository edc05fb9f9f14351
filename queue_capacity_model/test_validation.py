"""
Tests for input and scenario-name validation.
"""

import math
import pytest

from .model import SimulationInput, run_simulation
from .validation import (
    InputValidationError, parse_input, validate_input_dict, validate_scenario_name,
)


@pytest.fixture
def valid_data():
    return {
        "requestsPerSecond": 220,
        "averageLatencyMs": 180,
        "threadPoolSize": 64,
        "queueSize": 500,
        "cpuCores": 8,
        "targetUtilizationPct": 72,
        "timeoutThresholdMs": 1200,
    }


class TestValidateInputDict:

    def test_valid(self, valid_data):
        assert validate_input_dict(valid_data) == []

    def test_cpu_cores_optional(self, valid_data):
        del valid_data["cpuCores"]
        assert validate_input_dict(valid_data) == []

    def test_zero_queue_allowed(self, valid_data):
        valid_data["queueSize"] = 0
        assert validate_input_dict(valid_data) == []

    def test_missing_required(self, valid_data):
        del valid_data["threadPoolSize"]
        errors = validate_input_dict(valid_data)
        assert errors == ["threadPoolSize is required"]

    def test_negative_rate(self, valid_data):
        valid_data["requestsPerSecond"] = -5
        errors = validate_input_dict(valid_data)
        assert len(errors) == 1
        assert "requestsPerSecond" in errors[0]

    @pytest.mark.parametrize("field,value", [
        ("requestsPerSecond", 0),
        ("requestsPerSecond", 1_000_001),
        ("averageLatencyMs", 120_001),
        ("threadPoolSize", 0),
        ("threadPoolSize", 8.5),
        ("queueSize", -1),
        ("cpuCores", 4096),
        ("targetUtilizationPct", 0.5),
        ("targetUtilizationPct", 100),
        ("timeoutThresholdMs", 0),
        ("timeoutThresholdMs", math.inf),
        ("averageLatencyMs", math.nan),
        ("queueSize", True),
        ("threadPoolSize", "64"),
    ])
    def test_out_of_domain(self, valid_data, field, value):
        valid_data[field] = value
        errors = validate_input_dict(valid_data)
        assert len(errors) == 1
        assert field in errors[0]

    @pytest.mark.parametrize("field,value", [
        ("requestsPerSecond", 1_000_000),
        ("targetUtilizationPct", 1),
        ("targetUtilizationPct", 99),
        ("threadPoolSize", 100_000),
        ("timeoutThresholdMs", 300_000),
    ])
    def test_inclusive_upper_bounds(self, valid_data, field, value):
        valid_data[field] = value
        assert validate_input_dict(valid_data) == []

    def test_unknown_field(self, valid_data):
        valid_data["burstFactor"] = 2
        assert validate_input_dict(valid_data) == ["Unknown input fields: ['burstFactor']"]

    def test_not_a_mapping(self):
        assert validate_input_dict([1, 2]) == ["input must be an object, got list"]

    @pytest.mark.parametrize("field,value,expected", [
        ("threadPoolSize", 10**400, "threadPoolSize must be <= 100000"),
        ("queueSize", -10**400, "queueSize must be >= 0"),
        ("requestsPerSecond", -10**400, "requestsPerSecond must be > 0"),
    ])
    def test_integer_beyond_float_range(self, valid_data, field, value, expected):
        valid_data[field] = value
        assert validate_input_dict(valid_data) == [expected]

    def test_collects_every_error(self):
        errors = validate_input_dict({"requestsPerSecond": -5})
        assert len(errors) == 6


class TestValidateScenarioName:

    def test_valid(self):
        assert validate_scenario_name("peak traffic") == []

    def test_too_short_after_trim(self):
        assert validate_scenario_name("  a  ") != []

    def test_too_long(self):
        assert validate_scenario_name("x" * 121) != []
        assert validate_scenario_name("x" * 120) == []

    def test_not_a_string(self):
        assert validate_scenario_name(None) == ["Scenario name must be a string"]


class TestParseInput:

    def test_builds_input_and_runs(self, valid_data):
        inp = parse_input(valid_data)
        assert isinstance(inp, SimulationInput)
        assert inp.cpu_cores == 8
        output = run_simulation(inp)
        assert output.metrics.concurrency_required > 0

    def test_integral_floats_become_ints(self, valid_data):
        valid_data["threadPoolSize"] = 64.0
        assert isinstance(parse_input(valid_data).thread_pool_size, int)

    def test_raises_with_errors(self):
        with pytest.raises(InputValidationError) as exc_info:
            parse_input({"requestsPerSecond": -5})
        assert isinstance(exc_info.value, ValueError)
        assert len(exc_info.value.errors) == 6
