"""
Filter Registry - scoped before/after action filters.

Scopes are normalized once, at registration, into one of four variants:

    None                      -> AllActions()
    "show"                    -> NamedAction("show")
    {"only": ["show", "edit"]} -> OnlyActions({"show", "edit"})
    {"except": "index"}       -> ExceptActions({"index"})

All matching filters run, in registration order.
"""
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, FrozenSet, List, Union

from viewkit.core.errors import ConfigurationError


class FilterPhase(Enum):
    BEFORE = "before"
    AFTER = "after"


@dataclass(frozen=True)
class AllActions:
    def matches(self, action_name: str) -> bool:
        return True


@dataclass(frozen=True)
class NamedAction:
    name: str

    def matches(self, action_name: str) -> bool:
        return action_name == self.name


@dataclass(frozen=True)
class OnlyActions:
    names: FrozenSet[str]

    def matches(self, action_name: str) -> bool:
        return action_name in self.names


@dataclass(frozen=True)
class ExceptActions:
    names: FrozenSet[str]

    def matches(self, action_name: str) -> bool:
        return action_name not in self.names


FilterScope = Union[AllActions, NamedAction, OnlyActions, ExceptActions]
FilterAction = Union[str, Callable[..., Any]]

_SCOPE_TYPES = (AllActions, NamedAction, OnlyActions, ExceptActions)


def _name_set(value: Any, key: str) -> FrozenSet[str]:
    if isinstance(value, str):
        return frozenset([value])
    if isinstance(value, Iterable) and all(isinstance(v, str) for v in value):
        return frozenset(value)
    raise ConfigurationError(f"Filter scope '{key}' must be an action name or a list of names, got {value!r}")


def normalize_scope(spec: Any) -> FilterScope:
    """
    Turn a user-facing scope spec into a scope variant.

    Raises:
        ConfigurationError: For unsupported shapes or mixed only/except.
    """
    if spec is None:
        return AllActions()
    if isinstance(spec, _SCOPE_TYPES):
        return spec
    if isinstance(spec, str):
        return NamedAction(spec)
    if isinstance(spec, Mapping):
        keys = {("except" if k == "except_" else k) for k, v in spec.items() if v is not None}
        unknown = keys - {"only", "except"}
        if unknown:
            raise ConfigurationError(f"Unknown filter scope option(s): {sorted(unknown)}")
        if keys == {"only", "except"}:
            raise ConfigurationError("A filter scope cannot combine 'only' and 'except'")
        if "only" in keys:
            return OnlyActions(_name_set(spec["only"], "only"))
        if "except" in keys:
            raw = spec["except"] if "except" in spec else spec["except_"]
            return ExceptActions(_name_set(raw, "except"))
        return AllActions()
    raise ConfigurationError(f"Unsupported filter scope: {spec!r}")


@dataclass(frozen=True)
class FilterEntry:
    phase: FilterPhase
    scope: FilterScope
    action: FilterAction

    @property
    def name(self) -> str:
        if isinstance(self.action, str):
            return self.action
        return getattr(self.action, "__qualname__", None) or repr(self.action)

    def matches(self, action_name: str) -> bool:
        return self.scope.matches(action_name)


class FilterRegistry:
    """
    Ordered before/after filters.

    Example:
        registry = FilterRegistry()
        registry.register(FilterPhase.BEFORE, {"only": ["show"]}, "load_todo")
        registry.resolve(FilterPhase.BEFORE, "show")  # [FilterEntry(...)]
    """

    def __init__(self):
        self._entries: List[FilterEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def register(self, phase: FilterPhase, scope: Any, action: FilterAction) -> FilterEntry:
        phase = FilterPhase(phase)
        if not isinstance(action, str) and not callable(action):
            raise ConfigurationError(f"Filter must be a method name or a callable, got {action!r}")
        entry = FilterEntry(phase, normalize_scope(scope), action)
        self._entries.append(entry)
        return entry

    def resolve(self, phase: FilterPhase, action_name: str) -> List[FilterEntry]:
        phase = FilterPhase(phase)
        return [e for e in self._entries if e.phase is phase and e.matches(action_name)]

    def entries(self, phase: FilterPhase) -> List[FilterEntry]:
        phase = FilterPhase(phase)
        return [e for e in self._entries if e.phase is phase]

    def copy(self) -> 'FilterRegistry':
        clone = FilterRegistry()
        clone._entries = list(self._entries)
        return clone
