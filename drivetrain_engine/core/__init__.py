"""Core calculation and compatibility modules for the drivetrain engine."""

from drivetrain_engine.core.analysis import (
    USAGE_PROFILES,
    DrivetrainAnalysis,
    UsageEvaluation,
    UsageProfile,
    analyze_drivetrain,
    cadence_consistency,
    compare_setups,
    evaluate_for_usage,
    get_usage_profile,
    performance_metrics,
    target_speed_gears,
)
from drivetrain_engine.core.cache import GearTableCache, cached, setup_fingerprint
from drivetrain_engine.core.chain_line import (
    ChainLinePoint,
    ChainLineResult,
    analyze_chain_line,
    chain_efficiency,
    compare_chain_lines,
    chain_line_for_pair,
    chain_line_recommendations,
    chain_line_status,
    cross_chain_angle,
    ideal_chain_line,
)
from drivetrain_engine.core.compatibility import (
    CompatibilityCheck,
    CompatibilityWarning,
    ProblematicGears,
    check_drivetrain_compatibility,
)
from drivetrain_engine.core.components import (
    COMPONENT_TYPES,
    Cassette,
    Chain,
    Component,
    Crankset,
    FrontDerailleur,
    RearDerailleur,
)
from drivetrain_engine.core.gear_table import (
    DuplicateGroup,
    GearRange,
    GearStep,
    calculate_gear_range,
    calculate_gear_steps,
    find_gear_duplicates,
    get_optimal_gears,
    suggest_gear_for_speed,
)
from drivetrain_engine.core.gears import (
    GearCalculation,
    SpeedAtCadence,
    calculate_all_gears,
    calculate_gear,
    compare_gain_ratios_with_crank_lengths,
    gain_ratio,
    interpret_gain_ratio,
)
from drivetrain_engine.core.setup import DrivetrainSetup, WheelSetup
from drivetrain_engine.core.tire import (
    CircumferenceResult,
    TireCircumferenceResolver,
    TireMeasurement,
)

__all__ = [
    "COMPONENT_TYPES",
    "Cassette",
    "Chain",
    "ChainLinePoint",
    "ChainLineResult",
    "CircumferenceResult",
    "CompatibilityCheck",
    "CompatibilityWarning",
    "Component",
    "Crankset",
    "DrivetrainAnalysis",
    "DrivetrainSetup",
    "DuplicateGroup",
    "FrontDerailleur",
    "GearCalculation",
    "GearRange",
    "GearStep",
    "GearTableCache",
    "ProblematicGears",
    "RearDerailleur",
    "SpeedAtCadence",
    "TireCircumferenceResolver",
    "TireMeasurement",
    "USAGE_PROFILES",
    "UsageEvaluation",
    "UsageProfile",
    "WheelSetup",
    "analyze_chain_line",
    "analyze_drivetrain",
    "cached",
    "cadence_consistency",
    "calculate_all_gears",
    "calculate_gear",
    "calculate_gear_range",
    "calculate_gear_steps",
    "chain_efficiency",
    "chain_line_for_pair",
    "chain_line_recommendations",
    "chain_line_status",
    "check_drivetrain_compatibility",
    "compare_chain_lines",
    "compare_gain_ratios_with_crank_lengths",
    "compare_setups",
    "cross_chain_angle",
    "evaluate_for_usage",
    "find_gear_duplicates",
    "gain_ratio",
    "get_optimal_gears",
    "get_usage_profile",
    "ideal_chain_line",
    "interpret_gain_ratio",
    "performance_metrics",
    "setup_fingerprint",
    "suggest_gear_for_speed",
    "target_speed_gears",
]
