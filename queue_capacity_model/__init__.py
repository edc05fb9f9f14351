"""
Request-Serving Capacity Planning Model

A closed-form calculator that maps a description of a request-serving
system (arrival rate, latency, thread pool, queue depth, timeout) to
queueing metrics, a bottleneck classification, a queue-explosion risk
and autoscaling advice.

Example usage (programmatic):
    from queue_capacity_model import SimulationInput, evaluate

    output = evaluate(SimulationInput(
        requests_per_second=100,
        average_latency_ms=200,
        thread_pool_size=40,
        queue_size=500,
        target_utilization_pct=80,
        timeout_threshold_ms=2000,
    ))
    print(output.bottleneck.value, output.autoscaling_advisor.recommended_thread_pool_size)

Example usage (JSON config):
    from queue_capacity_model import load_config, Runner, save_result

    config = load_config("configs/checkout_api.json")
    result = Runner(config).run()
    save_result(result, "results/checkout_api.json")

CLI usage:
    python -m queue_capacity_model configs/checkout_api.json
"""

from .model import (
    Bottleneck,
    QueueRisk,
    SimulationInput,
    SimulationMetrics,
    AutoscalingAdvisor,
    SimulationOutput,
    calculate_metrics,
    classify_bottleneck,
    classify_queue_risk,
    build_autoscaling_advisor,
    create_scaling_recommendation,
    build_warnings,
    recommended_thread_count,
    timeout_proximity,
    run_simulation,
    evaluate,
)

from .validation import (
    InputValidationError,
    validate_input_dict,
    validate_scenario_name,
    parse_input,
)

from .config import (
    ExperimentConfig,
    SweepSpec,
    load_config,
    save_config,
    validate_config,
)

from .sweep import (
    SweepPoint,
    SweepResult,
    LatencyCurve,
    sweep_parameter,
    latency_curve,
)

from .runner import (
    Runner,
    RunResult,
    save_result,
    load_result,
)

from .store import (
    ScenarioRecord,
    ScenarioStore,
    open_store,
)

from .analysis import (
    MetricDelta,
    ScenarioComparison,
    compare_outputs,
    format_delta,
)

from .output import (
    OutputWriter,
    build_report,
    scenarios_to_csv,
)

__all__ = [
    # Core model
    'Bottleneck',
    'QueueRisk',
    'SimulationInput',
    'SimulationMetrics',
    'AutoscalingAdvisor',
    'SimulationOutput',
    'calculate_metrics',
    'classify_bottleneck',
    'classify_queue_risk',
    'build_autoscaling_advisor',
    'create_scaling_recommendation',
    'build_warnings',
    'recommended_thread_count',
    'timeout_proximity',
    'run_simulation',
    'evaluate',
    # Validation
    'InputValidationError',
    'validate_input_dict',
    'validate_scenario_name',
    'parse_input',
    # Config
    'ExperimentConfig',
    'SweepSpec',
    'load_config',
    'save_config',
    'validate_config',
    # Sweep utilities
    'SweepPoint',
    'SweepResult',
    'LatencyCurve',
    'sweep_parameter',
    'latency_curve',
    # Runner
    'Runner',
    'RunResult',
    'save_result',
    'load_result',
    # Scenario store
    'ScenarioRecord',
    'ScenarioStore',
    'open_store',
    # Comparison
    'MetricDelta',
    'ScenarioComparison',
    'compare_outputs',
    'format_delta',
    # Export
    'OutputWriter',
    'build_report',
    'scenarios_to_csv',
]

__version__ = '1.0.0'
