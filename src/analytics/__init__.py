from .performance import (  # noqa: F401
    LinkOutcome,
    compute_performance_metrics,
    find_matching_result,
    link_results_to_predictions,
    resolve_prediction,
)

__all__ = [
    "LinkOutcome",
    "compute_performance_metrics",
    "find_matching_result",
    "link_results_to_predictions",
    "resolve_prediction",
]
