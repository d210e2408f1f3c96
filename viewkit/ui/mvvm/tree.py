"""
BindingTree - parent/child relationships among live bindings.

Bindings register here when their node is instantiated. Owners that care
about bindings created below them (form coordinators) register an
interest callback; the tree calls it for every binding attached under the
owner's node, nearest interested ancestor first, exactly once per binding.
"""
from typing import Callable, Dict, List, Optional

from loguru import logger

from viewkit.ui.mvvm.binding import Binding
from viewkit.ui.nodes import Node

DescendantCallback = Callable[[Binding], None]


class DescendantInterest:
    """Handle returned by ``BindingTree.register_interest``."""

    def __init__(self, owner: Binding, callback: DescendantCallback):
        self.owner = owner
        self.callback = callback
        self.active = True
        self._notified = set()

    def deliver(self, binding: Binding) -> bool:
        if not self.active or binding in self._notified:
            return False
        self._notified.add(binding)
        self.callback(binding)
        return True

    def forget(self, binding: Binding) -> None:
        self._notified.discard(binding)


class _Entry:
    def __init__(self, node: Node, parent: Optional['_Entry']):
        self.node = node
        self.parent = parent
        self.bindings: List[Binding] = []
        self.interests: List[DescendantInterest] = []

    @property
    def is_empty(self) -> bool:
        return not self.bindings and not self.interests


class BindingTree:
    """
    Registry of bindings keyed by their node.

    Example:
        tree = BindingTree()
        tree.attach(InputBinding(field, "todo.title", ctx).bind())
    """

    def __init__(self):
        self._entries: Dict[Node, _Entry] = {}
        self._attached: List[Binding] = []

    def __contains__(self, binding: Binding) -> bool:
        return binding in self._attached

    def __len__(self) -> int:
        return len(self._attached)

    # --- Registration ---

    def attach(self, binding: Binding) -> None:
        """Register ``binding`` and notify interested ancestors, nearest first."""
        if binding in self._attached:
            return
        entry = self._ensure_entry(binding.node)
        entry.bindings.append(binding)
        self._attached.append(binding)
        logger.debug(f"Attached {binding!r}")

        ancestor = entry.parent
        while ancestor is not None:
            for interest in list(ancestor.interests):
                interest.deliver(binding)
            ancestor = ancestor.parent

    def detach(self, binding: Binding) -> None:
        """Remove ``binding`` and tear it down along with its secondary bindings."""
        if binding not in self._attached:
            return
        self._attached.remove(binding)
        entry = self._entries.get(binding.node)
        if entry is not None and binding in entry.bindings:
            entry.bindings.remove(binding)
        for interest in self._all_interests():
            interest.forget(binding)
        binding.dispose()
        if entry is not None:
            self._drop_if_empty(entry)
        logger.debug(f"Detached {binding!r}")

    def detach_node(self, node: Node) -> int:
        """Detach every binding on ``node`` or below it. Returns how many were detached."""
        doomed = [b for b in self._attached if node.contains(b.node)]
        # Deepest first so descendants tear down before their owners
        for binding in reversed(doomed):
            self.detach(binding)
        return len(doomed)

    def register_interest(self, owner: Binding, callback: DescendantCallback) -> DescendantInterest:
        """
        Ask to be told about bindings attached below ``owner.node``.

        Bindings already attached under the node are delivered immediately,
        in attach order.
        """
        entry = self._ensure_entry(owner.node)
        interest = DescendantInterest(owner, callback)
        entry.interests.append(interest)
        for binding in list(self._attached):
            if binding.node is not owner.node and owner.node.contains(binding.node):
                interest.deliver(binding)
        return interest

    def unregister_interest(self, interest: DescendantInterest) -> None:
        interest.active = False
        entry = self._entries.get(interest.owner.node)
        if entry is not None and interest in entry.interests:
            entry.interests.remove(interest)
            self._drop_if_empty(entry)

    # --- Introspection ---

    def bindings_for(self, node: Node) -> List[Binding]:
        entry = self._entries.get(node)
        return list(entry.bindings) if entry else []

    def parent_node(self, binding: Binding) -> Optional[Node]:
        """Node of the nearest ancestor entry, or None at the root."""
        entry = self._entries.get(binding.node)
        if entry is None or entry.parent is None:
            return None
        return entry.parent.node

    def ancestors_of(self, binding: Binding) -> List[Binding]:
        """Bindings on ancestor entries, nearest entry first."""
        result: List[Binding] = []
        entry = self._entries.get(binding.node)
        ancestor = entry.parent if entry else None
        while ancestor is not None:
            result.extend(ancestor.bindings)
            ancestor = ancestor.parent
        return result

    # --- Internals ---

    def _ensure_entry(self, node: Node) -> _Entry:
        entry = self._entries.get(node)
        if entry is not None:
            return entry
        entry = _Entry(node, self._nearest_entry_above(node))
        # Entries created earlier below this node now have a nearer parent
        for other in self._entries.values():
            if other.node is not node and node.contains(other.node) and other.parent is entry.parent:
                other.parent = entry
        self._entries[node] = entry
        return entry

    def _nearest_entry_above(self, node: Node) -> Optional[_Entry]:
        for ancestor in node.ancestors():
            entry = self._entries.get(ancestor)
            if entry is not None:
                return entry
        return None

    def _drop_if_empty(self, entry: _Entry) -> None:
        if not entry.is_empty or self._entries.get(entry.node) is not entry:
            return
        del self._entries[entry.node]
        for other in self._entries.values():
            if other.parent is entry:
                other.parent = entry.parent

    def _all_interests(self) -> List[DescendantInterest]:
        return [i for e in self._entries.values() for i in e.interests]
