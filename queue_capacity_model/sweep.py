"""
Parameter sweep utilities for the capacity model.

Provides functions for sweeping one input field and for tracing the
latency-vs-utilization knee curve around the current operating point.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional
import logging

import numpy as np

from .model import Bottleneck, SimulationInput, SimulationOutput, run_simulation


logger = logging.getLogger(__name__)

# camelCase input field -> SimulationInput attribute
INPUT_FIELD_ATTRS = {
    "requestsPerSecond": "requests_per_second",
    "averageLatencyMs": "average_latency_ms",
    "threadPoolSize": "thread_pool_size",
    "queueSize": "queue_size",
    "targetUtilizationPct": "target_utilization_pct",
    "timeoutThresholdMs": "timeout_threshold_ms",
}


@dataclass
class SweepPoint:
    """Engine output at one swept value."""
    parameter_value: float
    output: SimulationOutput

    def to_dict(self) -> dict:
        m = self.output.metrics
        a = self.output.autoscaling_advisor
        return {
            "parameter_value": self.parameter_value,
            "concurrency_required": m.concurrency_required,
            "utilization_pct": m.utilization_pct,
            "queue_pressure": m.queue_pressure,
            "saturation_probability": m.saturation_probability,
            "bottleneck": self.output.bottleneck.value,
            "queue_explosion_risk": self.output.queue_explosion_risk.value,
            "recommended_thread_pool_size": a.recommended_thread_pool_size,
            "estimated_min_instances": a.estimated_min_instances,
            "estimated_queue_wait_ms": a.estimated_queue_wait_ms,
        }


@dataclass
class SweepResult:
    """Result of a parameter sweep."""
    param_name: str
    points: List[SweepPoint]

    @property
    def param_values(self) -> List[float]:
        return [p.parameter_value for p in self.points]

    @property
    def utilization_pct(self) -> List[float]:
        return [p.output.metrics.utilization_pct for p in self.points]

    @property
    def saturation_probability(self) -> List[float]:
        return [p.output.metrics.saturation_probability for p in self.points]

    @property
    def queue_wait_ms(self) -> List[Optional[float]]:
        return [p.output.autoscaling_advisor.estimated_queue_wait_ms for p in self.points]

    def first_unhealthy_value(self) -> Optional[float]:
        """First swept value (in sweep order) not classified healthy."""
        for point in self.points:
            if point.output.bottleneck is not Bottleneck.HEALTHY:
                return point.parameter_value
        return None

    def to_dict(self) -> dict:
        return {
            "parameter": self.param_name,
            "first_unhealthy_value": self.first_unhealthy_value(),
            "points": [p.to_dict() for p in self.points],
        }


def sweep_parameter(
    base_input: SimulationInput,
    parameter: str,
    values: List[float],
) -> SweepResult:
    """
    Evaluate the model at each value of one input field.

    parameter is the camelCase input field name; all other fields are held.
    """
    if parameter not in INPUT_FIELD_ATTRS:
        raise ValueError(f"Unknown sweep parameter: {parameter}. "
                         f"Valid: {list(INPUT_FIELD_ATTRS)}")
    attr = INPUT_FIELD_ATTRS[parameter]

    points = []
    for value in values:
        point_input = replace(base_input, **{attr: value})
        points.append(SweepPoint(parameter_value=value, output=run_simulation(point_input)))

    logger.debug("Swept %s over %d values", parameter, len(points))
    return SweepResult(param_name=parameter, points=points)


# --- Latency knee curve ---

CURVE_RHO_START = 0.12
CURVE_RHO_END = 0.985


@dataclass
class LatencyCurve:
    """
    Predicted latency as traffic intensity approaches 1.

    The curve is calibrated so that it passes through the observed
    latency at the current operating intensity.
    """
    rho: np.ndarray
    latency_ms: np.ndarray
    operating_rho: float
    operating_latency_ms: float
    service_time_sec: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rho": self.rho.tolist(),
            "latency_ms": self.latency_ms.tolist(),
            "operating_rho": self.operating_rho,
            "operating_latency_ms": self.operating_latency_ms,
            "service_time_sec": self.service_time_sec,
        }


def latency_curve(inp: SimulationInput, points: int = 28) -> LatencyCurve:
    """
    Trace the M/M/1 response curve T = S / (1 - rho) around the current load.

    Args:
        inp: Current configuration (its rps and latency fix the operating point)
        points: Number of samples between rho 0.12 and 0.985
    """
    rps = inp.requests_per_second
    throughput_limit = run_simulation(inp).metrics.throughput_limit

    mu = max(throughput_limit, rps * 1.05, 1.0)
    operating_rho = float(np.clip(rps / mu, 0.05, 0.97))
    service_time_sec = max(0.001, inp.latency_sec * (1 - operating_rho))

    rho = np.linspace(CURVE_RHO_START, CURVE_RHO_END, points)
    latency_ms = service_time_sec / (1 - rho) * 1000

    return LatencyCurve(
        rho=rho,
        latency_ms=latency_ms,
        operating_rho=operating_rho,
        operating_latency_ms=service_time_sec / (1 - operating_rho) * 1000,
        service_time_sec=service_time_sec,
    )
