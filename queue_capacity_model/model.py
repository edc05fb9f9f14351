"""
Request-Serving Capacity Model

This module provides a closed-form framework for sizing a request-serving
system (thread pool + bounded queue) from its arrival rate and latency:
- Little's Law concurrency and utilization against a safe target
- Bottleneck and queue-explosion-risk classification
- M/M/1 wait-time and M/M/c-style thread/instance sizing advice

Every function here is pure: the same input always yields the same output.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple
import math


# Saturation blend weights and the ceiling applied to timeout proximity
SATURATION_WEIGHT_UTILIZATION = 0.55
SATURATION_WEIGHT_QUEUE = 0.30
SATURATION_WEIGHT_TIMEOUT = 0.15
TIMEOUT_PROXIMITY_CEILING = 2.0


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return min(high, max(low, value))


class Bottleneck(Enum):
    """Dominant bottleneck of a configuration."""
    HEALTHY = "healthy"
    THREAD_POOL_SATURATION = "thread_pool_saturation"
    QUEUE_SATURATION = "queue_saturation"
    TIMEOUT_RISK = "timeout_risk"
    SYSTEM_OVERLOAD = "system_overload"


class QueueRisk(Enum):
    """Ordinal risk that the request queue grows without bound."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class SimulationInput:
    """
    Description of a request-serving system.

    Args:
        requests_per_second: Arrival rate (lambda)
        average_latency_ms: Mean service time per request in milliseconds
        thread_pool_size: Number of concurrent workers
        queue_size: Maximum number of pending requests (0 = no queue)
        target_utilization_pct: Safe operating ceiling, % of thread capacity [1, 99]
        timeout_threshold_ms: Latency at which a request times out
        cpu_cores: Informational only, not used by any formula
    """
    requests_per_second: float
    average_latency_ms: float
    thread_pool_size: int
    queue_size: int
    target_utilization_pct: float
    timeout_threshold_ms: float
    cpu_cores: Optional[int] = None

    @property
    def latency_sec(self) -> float:
        return self.average_latency_ms / 1000

    def to_dict(self) -> dict:
        d = {
            "requestsPerSecond": self.requests_per_second,
            "averageLatencyMs": self.average_latency_ms,
            "threadPoolSize": self.thread_pool_size,
            "queueSize": self.queue_size,
            "targetUtilizationPct": self.target_utilization_pct,
            "timeoutThresholdMs": self.timeout_threshold_ms,
        }
        if self.cpu_cores is not None:
            d["cpuCores"] = self.cpu_cores
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "SimulationInput":
        return cls(
            requests_per_second=data["requestsPerSecond"],
            average_latency_ms=data["averageLatencyMs"],
            thread_pool_size=data["threadPoolSize"],
            queue_size=data["queueSize"],
            target_utilization_pct=data["targetUtilizationPct"],
            timeout_threshold_ms=data["timeoutThresholdMs"],
            cpu_cores=data.get("cpuCores"),
        )


@dataclass(frozen=True)
class SimulationMetrics:
    """Scalar metrics derived from a SimulationInput."""
    concurrency_required: float
    utilization_ratio: float
    utilization_pct: float
    queue_pressure: float
    throughput_limit: float
    saturation_probability: float  # Always in [0, 1]

    def to_dict(self) -> dict:
        return {
            "concurrencyRequired": self.concurrency_required,
            "utilizationRatio": self.utilization_ratio,
            "utilizationPct": self.utilization_pct,
            "queuePressure": self.queue_pressure,
            "throughputLimit": self.throughput_limit,
            "saturationProbability": self.saturation_probability,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SimulationMetrics":
        return cls(
            concurrency_required=data["concurrencyRequired"],
            utilization_ratio=data["utilizationRatio"],
            utilization_pct=data["utilizationPct"],
            queue_pressure=data["queuePressure"],
            throughput_limit=data["throughputLimit"],
            saturation_probability=data["saturationProbability"],
        )


@dataclass(frozen=True)
class AutoscalingAdvisor:
    """
    Queueing-model sizing advice.

    estimated_queue_wait_ms is None when the M/M/1 model does not apply
    (arrival rate at or above service rate): the wait cannot be estimated,
    which is not the same as zero.
    """
    current_service_rate_rps: float
    traffic_intensity: float
    estimated_queue_wait_ms: Optional[float]
    recommended_thread_pool_size: int
    estimated_min_instances: int

    def to_dict(self) -> dict:
        return {
            "currentServiceRateRps": self.current_service_rate_rps,
            "trafficIntensity": self.traffic_intensity,
            "estimatedQueueWaitMs": self.estimated_queue_wait_ms,
            "recommendedThreadPoolSize": self.recommended_thread_pool_size,
            "estimatedMinInstances": self.estimated_min_instances,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AutoscalingAdvisor":
        return cls(
            current_service_rate_rps=data["currentServiceRateRps"],
            traffic_intensity=data["trafficIntensity"],
            estimated_queue_wait_ms=data.get("estimatedQueueWaitMs"),
            recommended_thread_pool_size=data["recommendedThreadPoolSize"],
            estimated_min_instances=data["estimatedMinInstances"],
        )


@dataclass(frozen=True)
class SimulationOutput:
    """Fully derived result of one evaluation."""
    input: SimulationInput
    metrics: SimulationMetrics
    bottleneck: Bottleneck
    queue_explosion_risk: QueueRisk
    autoscaling_advisor: AutoscalingAdvisor
    scaling_recommendation: str
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        """Convert to the JSON-serializable boundary shape."""
        return {
            "input": self.input.to_dict(),
            "metrics": self.metrics.to_dict(),
            "bottleneck": self.bottleneck.value,
            "queueExplosionRisk": self.queue_explosion_risk.value,
            "autoscalingAdvisor": self.autoscaling_advisor.to_dict(),
            "scalingRecommendation": self.scaling_recommendation,
            "warnings": list(self.warnings),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SimulationOutput":
        return cls(
            input=SimulationInput.from_dict(data["input"]),
            metrics=SimulationMetrics.from_dict(data["metrics"]),
            bottleneck=Bottleneck(data["bottleneck"]),
            queue_explosion_risk=QueueRisk(data["queueExplosionRisk"]),
            autoscaling_advisor=AutoscalingAdvisor.from_dict(data["autoscalingAdvisor"]),
            scaling_recommendation=data["scalingRecommendation"],
            warnings=tuple(data.get("warnings", [])),
        )


# --- Metrics ---

def timeout_proximity(inp: SimulationInput) -> float:
    """Mean latency as a fraction of the timeout threshold."""
    if inp.timeout_threshold_ms > 0:
        return inp.average_latency_ms / inp.timeout_threshold_ms
    return 1.0


def recommended_thread_count(concurrency_required: float, target_utilization_pct: float) -> int:
    """
    Threads needed so that current demand sits exactly at the target utilization.

    Shared by the autoscaling advisor and the thread-pool recommendation text.
    """
    return math.ceil(concurrency_required / (target_utilization_pct / 100))


def calculate_metrics(inp: SimulationInput) -> SimulationMetrics:
    """
    Derive concurrency, utilization, queue pressure, throughput ceiling
    and the blended saturation probability.

    Degenerate capacities fall back instead of dividing by zero:
    - zero safe thread capacity counts as fully saturated (ratio 1)
    - zero queue size leaves the overflow demand unnormalized
    """
    latency_sec = inp.latency_sec
    # Little's Law: L = lambda * W
    concurrency_required = inp.requests_per_second * latency_sec

    safe_thread_capacity = inp.thread_pool_size * (inp.target_utilization_pct / 100)
    if safe_thread_capacity > 0:
        utilization_ratio = concurrency_required / safe_thread_capacity
    else:
        utilization_ratio = 1.0

    queue_depth_needed = max(0.0, concurrency_required - inp.thread_pool_size)
    if inp.queue_size > 0:
        queue_pressure = queue_depth_needed / inp.queue_size
    else:
        queue_pressure = queue_depth_needed

    throughput_limit = inp.thread_pool_size / latency_sec if latency_sec > 0 else 0.0

    proximity = _clamp(timeout_proximity(inp), 0.0, TIMEOUT_PROXIMITY_CEILING)
    saturation_probability = _clamp(
        SATURATION_WEIGHT_UTILIZATION * utilization_ratio
        + SATURATION_WEIGHT_QUEUE * queue_pressure
        + SATURATION_WEIGHT_TIMEOUT * proximity
    )

    return SimulationMetrics(
        concurrency_required=concurrency_required,
        utilization_ratio=utilization_ratio,
        utilization_pct=utilization_ratio * 100,
        queue_pressure=queue_pressure,
        throughput_limit=throughput_limit,
        saturation_probability=saturation_probability,
    )


# --- Classification ---

# Evaluated top to bottom, first match wins. Several predicates can hold at
# once, so the order is the tie-break.
BOTTLENECK_RULES: Tuple[Tuple[Callable[[SimulationInput, SimulationMetrics], bool], Bottleneck], ...] = (
    (lambda inp, m: m.utilization_ratio > 1.15 and m.queue_pressure > 1, Bottleneck.SYSTEM_OVERLOAD),
    (lambda inp, m: m.queue_pressure > 0.8, Bottleneck.QUEUE_SATURATION),
    (lambda inp, m: m.utilization_ratio > 1, Bottleneck.THREAD_POOL_SATURATION),
    (lambda inp, m: timeout_proximity(inp) >= 0.85, Bottleneck.TIMEOUT_RISK),
)

QUEUE_RISK_RULES: Tuple[Tuple[Callable[[SimulationMetrics], bool], QueueRisk], ...] = (
    (lambda m: m.queue_pressure > 1 or m.saturation_probability > 0.85, QueueRisk.HIGH),
    (lambda m: m.queue_pressure > 0.5 or m.saturation_probability > 0.6, QueueRisk.MEDIUM),
)


def classify_bottleneck(inp: SimulationInput, metrics: SimulationMetrics) -> Bottleneck:
    """Return the first matching bottleneck rule, or HEALTHY."""
    for predicate, bottleneck in BOTTLENECK_RULES:
        if predicate(inp, metrics):
            return bottleneck
    return Bottleneck.HEALTHY


def classify_queue_risk(metrics: SimulationMetrics) -> QueueRisk:
    """Return the first matching queue-risk rule, or LOW."""
    for predicate, risk in QUEUE_RISK_RULES:
        if predicate(metrics):
            return risk
    return QueueRisk.LOW


# --- Autoscaling ---

def build_autoscaling_advisor(
    inp: SimulationInput,
    metrics: SimulationMetrics,
) -> AutoscalingAdvisor:
    """
    Size the system with closed-form queueing approximations.

    Wait time uses M/M/1: Wq = rho / (mu - lambda), valid only for lambda < mu.
    Instance count treats the current thread pool as the per-instance
    server count (M/M/c style).
    """
    service_rate = metrics.throughput_limit
    arrival_rate = inp.requests_per_second
    traffic_intensity = arrival_rate / service_rate if service_rate > 0 else 1.0

    estimated_queue_wait_ms = None
    if service_rate > 0 and arrival_rate < service_rate:
        estimated_queue_wait_ms = (traffic_intensity / (service_rate - arrival_rate)) * 1000

    recommended_threads = max(
        1, recommended_thread_count(metrics.concurrency_required, inp.target_utilization_pct)
    )
    min_instances = max(1, math.ceil(recommended_threads / inp.thread_pool_size))

    return AutoscalingAdvisor(
        current_service_rate_rps=service_rate,
        traffic_intensity=traffic_intensity,
        estimated_queue_wait_ms=estimated_queue_wait_ms,
        recommended_thread_pool_size=recommended_threads,
        estimated_min_instances=min_instances,
    )


# --- Recommendation & warnings ---

RECOMMENDATION_TEMPLATES = {
    Bottleneck.HEALTHY: (
        "System is within safe bounds. Track latency variance before increasing traffic."
    ),
    Bottleneck.THREAD_POOL_SATURATION: (
        "Thread pool saturation detected. Increase worker threads toward {suggested_threads} "
        "or reduce latency to reclaim concurrency."
    ),
    Bottleneck.QUEUE_SATURATION: (
        "Queue saturation risk is elevated. Increase processing capacity first; "
        "queue growth without capacity can amplify tail latency."
    ),
    Bottleneck.TIMEOUT_RISK: (
        "Latency is approaching timeout threshold. Optimize critical path latency "
        "or increase timeout only with downstream protections."
    ),
    Bottleneck.SYSTEM_OVERLOAD: (
        "System operating beyond safe utilization. Horizontal scaling recommended "
        "with immediate load shedding or rate limiting."
    ),
}

WARNING_THREAD_POOL_SATURATION = "Thread pool saturation detected"
WARNING_BEYOND_SAFE_UTILIZATION = "System operating beyond safe utilization"
WARNING_QUEUE_GROWTH = "Queue growth may accelerate non-linearly under burst traffic"
WARNING_LATENCY_WAIT = "Latency increase will exponentially increase queue wait"
WARNING_HORIZONTAL_SCALING = "Horizontal scaling recommended"


def create_scaling_recommendation(
    inp: SimulationInput,
    metrics: SimulationMetrics,
    bottleneck: Bottleneck,
) -> str:
    """Human-readable guidance for the classified bottleneck."""
    template = RECOMMENDATION_TEMPLATES[bottleneck]
    if bottleneck is Bottleneck.THREAD_POOL_SATURATION:
        suggested = recommended_thread_count(
            metrics.concurrency_required, inp.target_utilization_pct
        )
        return template.format(suggested_threads=suggested)
    return template


def build_warnings(
    inp: SimulationInput,
    metrics: SimulationMetrics,
    bottleneck: Bottleneck,
) -> List[str]:
    """Independent warning checks; each fires at most once."""
    warnings = []
    if metrics.utilization_ratio > 1:
        warnings.append(WARNING_THREAD_POOL_SATURATION)
    if metrics.utilization_ratio > 1.2:
        warnings.append(WARNING_BEYOND_SAFE_UTILIZATION)
    if metrics.queue_pressure > 0.7:
        warnings.append(WARNING_QUEUE_GROWTH)
    if timeout_proximity(inp) > 0.9:
        warnings.append(WARNING_LATENCY_WAIT)
    if bottleneck is Bottleneck.SYSTEM_OVERLOAD:
        warnings.append(WARNING_HORIZONTAL_SCALING)
    return warnings


# --- Orchestration ---

def run_simulation(inp: SimulationInput) -> SimulationOutput:
    """Evaluate one configuration end to end."""
    metrics = calculate_metrics(inp)
    bottleneck = classify_bottleneck(inp, metrics)
    queue_risk = classify_queue_risk(metrics)
    advisor = build_autoscaling_advisor(inp, metrics)
    recommendation = create_scaling_recommendation(inp, metrics, bottleneck)
    warnings = build_warnings(inp, metrics, bottleneck)

    return SimulationOutput(
        input=inp,
        metrics=metrics,
        bottleneck=bottleneck,
        queue_explosion_risk=queue_risk,
        autoscaling_advisor=advisor,
        scaling_recommendation=recommendation,
        warnings=tuple(warnings),
    )


evaluate = run_simulation
