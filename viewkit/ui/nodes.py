"""
In-memory node tree.

A small element tree with the operations bindings and controllers rely on:
containment, attributes, classes, selector lookup, events with a
cancellable default action, and scroll requests. Bindings borrow nodes,
they never own them.
"""
import re
from typing import Any, Callable, Dict, Iterator, List, Optional

from loguru import logger

from viewkit.core.events import ObserverEvent

_SELECTOR_RE = re.compile(r"^(?P<tag>[a-zA-Z][\w-]*)?(?P<rest>(?:[.#][\w-]+)*)$")
_SELECTOR_PART_RE = re.compile(r"([.#])([\w-]+)")


class Event:
    """A node event; handlers may cancel its default action."""

    def __init__(self, name: str, target: 'Node', detail: Optional[Dict[str, Any]] = None):
        self.name = name
        self.target = target
        self.detail = detail or {}
        self.default_prevented = False

    def prevent_default(self) -> None:
        self.default_prevented = True


class Selector:
    """Compiled ``tag``, ``.class`` and ``#id`` selector (combinable, no combinators)."""

    def __init__(self, text: str):
        match = _SELECTOR_RE.match(text.strip())
        if not match or not text.strip():
            raise ValueError(f"Unsupported selector: {text!r}")
        self.text = text
        self.tag = match.group("tag")
        self.classes = set()
        self.node_id = None
        for kind, name in _SELECTOR_PART_RE.findall(match.group("rest") or ""):
            if kind == ".":
                self.classes.add(name)
            else:
                self.node_id = name

    def matches(self, node: 'Node') -> bool:
        if self.tag and node.tag != self.tag:
            return False
        if self.node_id and node.node_id != self.node_id:
            return False
        return self.classes.issubset(node.classes)


class Node:
    """
    One element in the live hierarchy.

    Example:
        form = Node("form")
        field = form.append(Node("input", type="text"))
        assert form.contains(field)
    """

    def __init__(self, tag: str, text: str = "", **attributes: Any):
        self.tag = tag
        self.text = text
        self.parent: Optional['Node'] = None
        self.children: List['Node'] = []
        self.attributes: Dict[str, Any] = {}
        self.classes = set()
        self.scrolled_into_view = False
        self._events: Dict[str, ObserverEvent] = {}
        for name, value in attributes.items():
            self.set_attribute(name.rstrip("_").replace("_", "-"), value)

    def __repr__(self) -> str:
        ident = f"#{self.node_id}" if self.node_id else ""
        return f"<Node {self.tag}{ident}>"

    # --- Structure ---

    def append(self, child: 'Node') -> 'Node':
        if child.parent is not None:
            child.parent.children.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def remove(self) -> None:
        """Detach this node (and its subtree) from its parent."""
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None

    def clear(self) -> None:
        for child in list(self.children):
            child.remove()

    def ancestors(self) -> Iterator['Node']:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def walk(self) -> Iterator['Node']:
        """Depth-first, document order, including self."""
        yield self
        for child in self.children:
            yield from child.walk()

    def contains(self, other: 'Node') -> bool:
        """True if ``other`` is this node or one of its descendants."""
        return other is self or any(a is self for a in other.ancestors())

    def find(self, selector: str) -> Optional['Node']:
        compiled = Selector(selector)
        for node in self.walk():
            if node is not self and compiled.matches(node):
                return node
        return None

    def find_by_id(self, node_id: str) -> Optional['Node']:
        """Descendant whose ``id`` equals ``node_id`` exactly, no selector parsing."""
        for node in self.walk():
            if node is not self and node.node_id == node_id:
                return node
        return None

    def find_all(self, selector: str) -> List['Node']:
        compiled = Selector(selector)
        return [n for n in self.walk() if n is not self and compiled.matches(n)]

    # --- Attributes ---

    @property
    def node_id(self) -> Optional[str]:
        return self.attributes.get("id")

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def set_attribute(self, name: str, value: Any) -> None:
        if name == "class":
            self.classes = set(str(value).split())
            return
        self.attributes[name] = value

    def remove_attribute(self, name: str) -> None:
        self.attributes.pop(name, None)

    @property
    def value(self) -> Any:
        return self.attributes.get("value")

    @value.setter
    def value(self, new_value: Any) -> None:
        self.attributes["value"] = new_value

    # --- Classes ---

    def add_class(self, name: str) -> None:
        self.classes.add(name)

    def remove_class(self, name: str) -> None:
        self.classes.discard(name)

    def has_class(self, name: str) -> bool:
        return name in self.classes

    # --- Events ---

    def on(self, event_name: str, handler) -> Callable[[], None]:
        """Listen for ``event_name``; returns a function that stops listening."""
        if event_name not in self._events:
            self._events[event_name] = ObserverEvent(f"{self.tag}.{event_name}")
        return self._events[event_name].connect(handler)

    def off(self, event_name: str, handler) -> None:
        event = self._events.get(event_name)
        if event is not None and event.disconnect(handler) and not event.subscriber_count:
            del self._events[event_name]

    def listener_count(self, event_name: str) -> int:
        event = self._events.get(event_name)
        return event.subscriber_count if event is not None else 0

    def trigger(self, event_name: str, **detail: Any) -> Event:
        """Fire an event on this node and return it so callers can check the default action."""
        event = Event(event_name, self, detail)
        if event_name in self._events:
            delivered = self._events[event_name].emit(event)
            logger.debug(f"{event_name} on {self!r} delivered to {delivered} handler(s)")
        return event

    def scroll_into_view(self) -> None:
        self.scrolled_into_view = True
        logger.debug(f"Scrolled {self!r} into view")
