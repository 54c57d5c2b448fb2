"""Engine stages, engine assembly and engine parameters."""

from evalflow.core.engine.engine import Engine, TrainedEngine
from evalflow.core.engine.params import (
    EngineParams,
    EngineParamsGenerator,
    JsonParamsGenerator,
    OverrideParamsGenerator,
    StaticParamsGenerator,
    expand_grid,
    load_params_list,
)
from evalflow.core.engine.protocols import (
    Algorithm,
    FirstServing,
    IdentityPreparator,
    Preparator,
    Serving,
)

__all__ = [
    # Protocols
    "Preparator",
    "Algorithm",
    "Serving",
    # Implementations
    "IdentityPreparator",
    "FirstServing",
    "Engine",
    "TrainedEngine",
    # Parameters
    "EngineParams",
    "EngineParamsGenerator",
    "StaticParamsGenerator",
    "OverrideParamsGenerator",
    "JsonParamsGenerator",
    "load_params_list",
    "expand_grid",
]
