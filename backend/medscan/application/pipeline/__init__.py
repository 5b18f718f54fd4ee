"""
Aggregation Pipeline

Phase executors and the engine that runs them.
"""

from .context import (
    AggregationContext,
    AggregationOutcome,
    AggregationPhase,
    PhaseError,
    PhaseMetrics,
)
from .phases import (
    PhaseExecutor,
    AdapterTask,
    PrimaryIdentificationPhase,
    PrescribingInfoPhase,
    PharmacologyPhase,
    SafetyPhase,
    RegulatoryManufacturingPhase,
    PricingAlternativesPhase,
    CrossReferencePhase,
    default_phases,
    run_tasks,
)
from .engine import AggregationEngine, AggregationEngineBuilder

__all__ = [
    "AggregationContext",
    "AggregationOutcome",
    "AggregationPhase",
    "PhaseError",
    "PhaseMetrics",
    "PhaseExecutor",
    "AdapterTask",
    "PrimaryIdentificationPhase",
    "PrescribingInfoPhase",
    "PharmacologyPhase",
    "SafetyPhase",
    "RegulatoryManufacturingPhase",
    "PricingAlternativesPhase",
    "CrossReferencePhase",
    "default_phases",
    "run_tasks",
    "AggregationEngine",
    "AggregationEngineBuilder",
]
