"""
Key paths and render contexts.

A key path is a dotted sequence of property names (``todo.errors.title``).
``RenderContext`` resolves the first segment against a stack of named
scopes, the rest against the objects found along the way.
``KeyPathObserver`` re-evaluates a key path whenever an observable object
on it emits ``propertyChanged``.
"""
from collections.abc import Mapping, MutableMapping, Sized
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

KeyPath = Tuple[str, ...]

_MISSING = object()


def parse_key_path(key) -> KeyPath:
    """Split ``"a.b.c"`` into ``("a", "b", "c")``; tuples pass through."""
    if isinstance(key, tuple):
        return key
    segments = tuple(part.strip() for part in str(key).split("."))
    if not segments or any(not part for part in segments):
        raise ValueError(f"Invalid key path: {key!r}")
    return segments


def format_key_path(segments: Sequence[str]) -> str:
    return ".".join(segments)


def resolve_segment(obj: Any, segment: str) -> Any:
    """Read one segment from ``obj``; missing values resolve to None."""
    if obj is None:
        return None
    resolver = getattr(obj, "resolve_key", None)
    if callable(resolver):
        return resolver(segment)
    if isinstance(obj, Mapping):
        return obj.get(segment)
    if segment == "length" and isinstance(obj, Sized) and not hasattr(obj, "length"):
        return len(obj)
    return getattr(obj, segment, None)


class RenderContext:
    """
    Stack of named scopes that key paths resolve against.

    Example:
        root = RenderContext({"currentTodo": todo})
        form_ctx = root.descend(todo=todo)
        form_ctx.get("todo.title")
    """

    def __init__(self, scope: Optional[Dict[str, Any]] = None, parent: Optional['RenderContext'] = None):
        self.scope: Dict[str, Any] = dict(scope or {})
        self.parent = parent

    def descend(self, scope: Optional[Dict[str, Any]] = None, **names: Any) -> 'RenderContext':
        merged = dict(scope or {})
        merged.update(names)
        return RenderContext(merged, parent=self)

    def lookup(self, name: str) -> Any:
        context: Optional[RenderContext] = self
        while context is not None:
            if name in context.scope:
                return context.scope[name]
            context = context.parent
        return None

    def objects_along(self, key) -> List[Any]:
        """Objects visited while resolving ``key``: root object, then each intermediate value."""
        segments = parse_key_path(key)
        objects = []
        current = self.lookup(segments[0])
        for segment in segments[1:]:
            if current is None:
                break
            objects.append(current)
            current = resolve_segment(current, segment)
        return objects

    def get(self, key) -> Any:
        segments = parse_key_path(key)
        current = self.lookup(segments[0])
        for segment in segments[1:]:
            current = resolve_segment(current, segment)
        return current

    def set(self, key, value: Any) -> None:
        """
        Write ``value`` at ``key``.

        Raises:
            KeyError: If the owner of the last segment cannot be resolved.
        """
        segments = parse_key_path(key)
        if len(segments) == 1:
            context: Optional[RenderContext] = self
            while context is not None:
                if segments[0] in context.scope:
                    context.scope[segments[0]] = value
                    return
                context = context.parent
            self.scope[segments[0]] = value
            return
        owner = self.get(segments[:-1])
        if owner is None:
            raise KeyError(f"Cannot set '{format_key_path(segments)}': owner is undefined")
        if isinstance(owner, MutableMapping):
            owner[segments[-1]] = value
        else:
            setattr(owner, segments[-1], value)


class KeyPathObserver:
    """
    Watches a key path and calls ``callback(value)`` when its value changes.

    Subscribes to ``propertyChanged`` on every observable object along the
    path and re-subscribes after each change, since intermediate objects
    may have been replaced.
    """

    def __init__(self, context: RenderContext, key, callback: Callable[[Any], None]):
        self.context = context
        self.key_path = parse_key_path(key)
        self.callback = callback
        self._sources: List[Any] = []
        self._value: Any = _MISSING
        self._disposed = False
        self._subscribe()
        self._value = self.context.get(self.key_path)

    @property
    def value(self) -> Any:
        return self._value

    def refresh(self) -> None:
        """Re-read the key path and notify if the value changed."""
        if self._disposed:
            return
        self._unsubscribe()
        self._subscribe()
        new_value = self.context.get(self.key_path)
        if new_value != self._value:
            self._value = new_value
            self.callback(new_value)

    def dispose(self) -> None:
        self._disposed = True
        self._unsubscribe()

    def _on_property_changed(self, name: str, value: Any) -> None:
        self.refresh()

    def _subscribe(self) -> None:
        for obj in self.context.objects_along(self.key_path):
            signal = getattr(obj, "propertyChanged", None)
            if signal is not None and callable(getattr(signal, "connect", None)):
                signal.connect(self._on_property_changed)
                self._sources.append(obj)

    def _unsubscribe(self) -> None:
        for obj in self._sources:
            try:
                obj.propertyChanged.disconnect(self._on_property_changed)
            except (RuntimeError, TypeError) as e:
                logger.debug(f"Observer for {format_key_path(self.key_path)} already detached: {e}")
        self._sources = []
