"""
Bindings between nodes and key paths.

Each binding associates one live node with one key path in a render
context. Bindings borrow their node; they are disposed when the node
leaves the tree. A binding may carry secondary bindings installed by a
coordinator; disposing the binding disposes those too.
"""
from typing import Any, Callable, List, Optional

from loguru import logger

from viewkit.ui.mvvm.keypath import KeyPathObserver, RenderContext, format_key_path, parse_key_path
from viewkit.ui.nodes import Event, Node


class Binding:
    """
    Base binding: observes ``key`` in ``context`` and pushes values to ``update``.

    Attributes:
        is_input: True for bindings that write user input back into state.
        is_upload: True for bindings whose input is a file selection.
    """

    is_input = False
    is_upload = False

    def __init__(self, node: Node, key, context: RenderContext):
        self.node = node
        self.key_path = parse_key_path(key)
        self.context = context
        self.disposed = False
        self._secondary: List['Binding'] = []
        self._dispose_callbacks: List[Callable[['Binding'], None]] = []
        self._observer: Optional[KeyPathObserver] = None

    @property
    def key(self) -> str:
        return format_key_path(self.key_path)

    @property
    def value(self) -> Any:
        return self.context.get(self.key_path)

    @property
    def secondary_bindings(self) -> List['Binding']:
        return list(self._secondary)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.key!r} on {self.node!r}>"

    def bind(self) -> 'Binding':
        """Start observing the key path and push the current value once."""
        if self._observer is None and not self.disposed:
            self._observer = KeyPathObserver(self.context, self.key_path, self.update)
            self.update(self._observer.value)
        return self

    def update(self, value: Any) -> None:
        """Reflect ``value`` onto the node. Subclasses override."""

    def add_secondary(self, binding: 'Binding') -> None:
        self._secondary.append(binding)
        binding.on_dispose(self._forget_secondary)

    def on_dispose(self, callback: Callable[['Binding'], None]) -> None:
        self._dispose_callbacks.append(callback)

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        if self._observer is not None:
            self._observer.dispose()
            self._observer = None
        for secondary in list(self._secondary):
            secondary.dispose()
        self._secondary.clear()
        callbacks, self._dispose_callbacks = self._dispose_callbacks, []
        for callback in callbacks:
            callback(self)
        logger.debug(f"Disposed {self!r}")

    def _forget_secondary(self, binding: 'Binding') -> None:
        if binding in self._secondary:
            self._secondary.remove(binding)


class ValueBinding(Binding):
    """Displays the value as the node's text."""

    def update(self, value: Any) -> None:
        self.node.text = "" if value is None else str(value)


class InputBinding(ValueBinding):
    """Two-way binding for form fields: ``change`` events write back into state."""

    is_input = True

    def bind(self) -> 'Binding':
        if self._observer is None and not self.disposed:
            self.node.on("change", self._on_change)
        return super().bind()

    def update(self, value: Any) -> None:
        self.node.value = value

    def dispose(self) -> None:
        self.node.off("change", self._on_change)
        super().dispose()

    def _on_change(self, event: Event) -> None:
        self.context.set(self.key_path, self.read_input(event))

    def read_input(self, event: Event) -> Any:
        return self.node.value


class FileBinding(InputBinding):
    """File input; the selected files are written back, state never drives the node."""

    is_upload = True

    def update(self, value: Any) -> None:
        pass

    def read_input(self, event: Event) -> Any:
        return list(event.detail.get("files", []))


class ClassToggleBinding(Binding):
    """Adds ``class_name`` to the node while the value is truthy."""

    def __init__(self, node: Node, key, context: RenderContext, class_name: str):
        super().__init__(node, key, context)
        self.class_name = class_name

    def update(self, value: Any) -> None:
        if value:
            self.node.add_class(self.class_name)
        else:
            self.node.remove_class(self.class_name)

    def dispose(self) -> None:
        super().dispose()
        self.node.remove_class(self.class_name)
