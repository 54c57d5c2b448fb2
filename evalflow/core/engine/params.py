"""Engine parameters: the configuration value evaluated by a search.

`EngineParams` is an immutable value object. Stage parameters are stored as
read-only mappings all the way down, so deriving a new configuration from a
shared base can never mutate the base; `override` and `with_algorithm_params`
always return a fresh value.
"""

from collections.abc import Mapping, Sequence
import itertools
import json
from pathlib import Path
from types import MappingProxyType
from typing import Annotated, Any, Protocol, runtime_checkable

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)

_STAGE_FIELDS = ("data_source_params", "preparator_params", "serving_params")


def freeze(value: Any) -> Any:
    """Recursively turn mappings into read-only mappings and sequences into tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Recursively copy a frozen value back into plain dicts and lists."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    return value


def _hashable(value: Any) -> Any:
    if isinstance(value, Mapping):
        return frozenset((key, _hashable(item)) for key, item in value.items())
    if isinstance(value, tuple):
        return tuple(_hashable(item) for item in value)
    return value


StageParams = Annotated[
    Mapping[str, Any],
    BeforeValidator(thaw),
    AfterValidator(freeze),
    PlainSerializer(thaw),
]


class EngineParams(BaseModel):
    """Parameters for every stage of an engine.

    Attributes:
        data_source_params: Parameters for reading the dataset.
        preparator_params: Parameters for the preparator.
        algorithm_params_list: Ordered `(algorithm name, parameters)` pairs, one per algorithm.
        serving_params: Parameters for the serving stage.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    data_source_params: StageParams = Field(default_factory=dict, validate_default=True)
    preparator_params: StageParams = Field(default_factory=dict, validate_default=True)
    algorithm_params_list: tuple[tuple[str, StageParams], ...] = Field(min_length=1)
    serving_params: StageParams = Field(default_factory=dict, validate_default=True)

    @field_validator("algorithm_params_list")
    @classmethod
    def has_unique_algorithm_names(cls, value):
        names = [name for name, _ in value]
        if len(names) != len(set(names)):
            raise ValueError(f"Algorithm names must be unique, got {names}")
        return value

    def __hash__(self) -> int:
        return hash(_hashable({name: getattr(self, name) for name in type(self).model_fields}))

    def __deepcopy__(self, memo: dict[int, Any]) -> "EngineParams":
        return self

    def __reduce__(self):
        # Read-only mappings cannot be pickled; workers rebuild from the plain dump
        return type(self).model_validate, (self.model_dump(),)

    @property
    def algorithm_names(self) -> list[str]:
        return [name for name, _ in self.algorithm_params_list]

    def algorithm_params(self, name: str) -> dict[str, Any]:
        """Get a plain copy of the parameters of the named algorithm.

        Raises:
            KeyError: If no algorithm has that name.
        """
        for algorithm_name, params in self.algorithm_params_list:
            if algorithm_name == name:
                return thaw(params)
        raise KeyError(f"Unknown algorithm '{name}', expected one of {self.algorithm_names}")

    def override(self, **fields: Any) -> "EngineParams":
        """Return a copy with the given fields replaced.

        The copy is validated, so invalid overrides fail here rather than
        later inside a worker.
        """
        return type(self).model_validate({**self.model_dump(), **fields})

    def with_algorithm_params(self, name: str, **params: Any) -> "EngineParams":
        """Return a copy whose named algorithm has `params` merged into its parameters."""
        self.algorithm_params(name)
        updated = tuple(
            (algorithm_name, {**current, **params} if algorithm_name == name else current)
            for algorithm_name, current in self.algorithm_params_list
        )
        return self.override(algorithm_params_list=updated)

    def merged(self, patch: Mapping[str, Any]) -> "EngineParams":
        """Return a copy with `patch` merged stage by stage.

        Stage dictionaries are merged key by key. `algorithm_params_list`
        entries are merged per algorithm name; unknown names are appended.
        """
        unknown = set(patch) - set(type(self).model_fields)
        if unknown:
            raise ValueError(f"Unknown engine params fields: {sorted(unknown)}")

        data = self.model_dump()
        for stage in _STAGE_FIELDS:
            if stage in patch:
                data[stage] = {**data[stage], **patch[stage]}

        if "algorithm_params_list" in patch:
            algorithms = dict(data["algorithm_params_list"])
            for name, params in patch["algorithm_params_list"]:
                algorithms[name] = {**algorithms.get(name, {}), **params}
            data["algorithm_params_list"] = tuple(algorithms.items())

        return type(self).model_validate(data)

    @classmethod
    def from_json(cls, path: str | Path) -> "EngineParams":
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))


@runtime_checkable
class EngineParamsGenerator(Protocol):
    """Protocol for producing the ordered list of configurations to search."""

    def engine_params_list(self) -> list[EngineParams]:
        """Get the configurations to evaluate, in search order."""
        ...


class StaticParamsGenerator:
    """Yields an explicit, already built list of configurations."""

    def __init__(self, params_list: Sequence[EngineParams]) -> None:
        self._params_list = list(params_list)

    def engine_params_list(self) -> list[EngineParams]:
        return list(self._params_list)


class OverrideParamsGenerator:
    """Derives configurations from a base and a list of explicit overrides.

    Each override is merged into the base with `EngineParams.merged`, so an
    override only needs to mention the fields it changes.
    """

    def __init__(self, base: EngineParams, overrides: Sequence[Mapping[str, Any]]) -> None:
        self._base = base
        self._overrides = list(overrides)

    def engine_params_list(self) -> list[EngineParams]:
        return [self._base.merged(patch) for patch in self._overrides]


class JsonParamsGenerator:
    """Loads configurations from a JSON document.

    The document is either a list of engine params objects, or an object
    with a `base` engine params object and a list of `overrides`.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def engine_params_list(self) -> list[EngineParams]:
        return load_params_list(self._path)


def load_params_list(path: str | Path) -> list[EngineParams]:
    """Load an ordered list of configurations from a JSON file."""
    document = json.loads(Path(path).read_text(encoding="utf-8"))

    if isinstance(document, list):
        return [EngineParams.model_validate(item) for item in document]

    if isinstance(document, dict) and "base" in document:
        base = EngineParams.model_validate(document["base"])
        overrides = document.get("overrides") or [{}]
        return OverrideParamsGenerator(base, overrides).engine_params_list()

    raise ValueError(f"{path}: expected a list of engine params or a 'base'/'overrides' object")


def expand_grid(
    base: EngineParams,
    algorithm: str,
    **axes: Sequence[Any],
) -> list[EngineParams]:
    """Expand parameter axes of one algorithm into an explicit list.

    The cartesian product is taken in keyword order with the last axis
    varying fastest, so the resulting order is stable.

    Args:
        base: The configuration every candidate starts from.
        algorithm: Name of the algorithm whose parameters vary.
        **axes: Parameter name to candidate values.

    Returns:
        One configuration per combination of axis values.
    """
    if not axes:
        return [base]

    names = list(axes)
    return [
        base.with_algorithm_params(algorithm, **dict(zip(names, values)))
        for values in itertools.product(*(axes[name] for name in names))
    ]


__all__ = [
    "freeze",
    "thaw",
    "EngineParams",
    "EngineParamsGenerator",
    "StaticParamsGenerator",
    "OverrideParamsGenerator",
    "JsonParamsGenerator",
    "load_params_list",
    "expand_grid",
]
