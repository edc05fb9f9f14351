"""
Scenario comparison utilities.

Compares a candidate configuration against a baseline: metric deltas,
bottleneck and queue-risk transitions, and which warnings appear or clear.

Example:
    from queue_capacity_model import run_simulation, compare_outputs, format_delta

    comparison = compare_outputs(run_simulation(current), run_simulation(proposed))
    for row in comparison.rows:
        print(row.label, format_delta(row.delta))
"""

from dataclasses import dataclass, field
from typing import Callable, List, Tuple

from .model import Bottleneck, QueueRisk, SimulationOutput


@dataclass
class MetricDelta:
    """One compared metric."""
    label: str
    baseline: float
    candidate: float
    digits: int = 2
    unit: str = ""

    @property
    def delta(self) -> float:
        return self.candidate - self.baseline

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "baseline": self.baseline,
            "candidate": self.candidate,
            "delta": self.delta,
        }


@dataclass
class ScenarioComparison:
    """Result of comparing two outputs."""
    rows: List[MetricDelta]
    bottleneck_transition: Tuple[Bottleneck, Bottleneck]
    queue_risk_transition: Tuple[QueueRisk, QueueRisk]
    recommendations: Tuple[str, str]
    introduced_warnings: List[str] = field(default_factory=list)
    resolved_warnings: List[str] = field(default_factory=list)

    @property
    def bottleneck_changed(self) -> bool:
        return self.bottleneck_transition[0] is not self.bottleneck_transition[1]

    def to_dict(self) -> dict:
        return {
            "metrics": [r.to_dict() for r in self.rows],
            "bottleneck": {
                "baseline": self.bottleneck_transition[0].value,
                "candidate": self.bottleneck_transition[1].value,
            },
            "queueExplosionRisk": {
                "baseline": self.queue_risk_transition[0].value,
                "candidate": self.queue_risk_transition[1].value,
            },
            "scalingRecommendation": {
                "baseline": self.recommendations[0],
                "candidate": self.recommendations[1],
            },
            "introducedWarnings": list(self.introduced_warnings),
            "resolvedWarnings": list(self.resolved_warnings),
        }


# (label, extractor, digits, unit)
_COMPARED_METRICS: List[Tuple[str, Callable[[SimulationOutput], float], int, str]] = [
    ("Concurrency Required", lambda o: o.metrics.concurrency_required, 2, ""),
    ("Utilization %", lambda o: o.metrics.utilization_pct, 2, "%"),
    ("Queue Pressure", lambda o: o.metrics.queue_pressure, 2, ""),
    ("Throughput Limit (rps)", lambda o: o.metrics.throughput_limit, 2, ""),
    ("Saturation Probability", lambda o: o.metrics.saturation_probability * 100, 2, "%"),
    ("Recommended Threads", lambda o: o.autoscaling_advisor.recommended_thread_pool_size, 0, ""),
    ("Estimated Min Instances", lambda o: o.autoscaling_advisor.estimated_min_instances, 0, ""),
]


def format_delta(value: float, digits: int = 2) -> str:
    """Signed fixed-point delta; near-zero values print as 0.00."""
    if abs(value) < 0.0001:
        return "0.00"
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.{digits}f}"


def compare_outputs(
    baseline: SimulationOutput,
    candidate: SimulationOutput,
) -> ScenarioComparison:
    """Compare a candidate output against a baseline output."""
    rows = [
        MetricDelta(label, extract(baseline), extract(candidate), digits, unit)
        for label, extract, digits, unit in _COMPARED_METRICS
    ]

    baseline_warnings = set(baseline.warnings)
    candidate_warnings = set(candidate.warnings)

    return ScenarioComparison(
        rows=rows,
        bottleneck_transition=(baseline.bottleneck, candidate.bottleneck),
        queue_risk_transition=(baseline.queue_explosion_risk, candidate.queue_explosion_risk),
        recommendations=(baseline.scaling_recommendation, candidate.scaling_recommendation),
        introduced_warnings=[w for w in candidate.warnings if w not in baseline_warnings],
        resolved_warnings=[w for w in baseline.warnings if w not in candidate_warnings],
    )
