"""
DirectiveBinder - instantiates bindings from node attributes.

Walks a node tree top-down so an owner's binding always exists before
the bindings of its descendants are created.

Supported directives:
    data-bind="todo.title"               value, input or file binding by tag
    data-formfor-todo="currentTodo"      FieldErrorCoordinator
    data-addclass-done="todo.completed"  class toggle
"""
from typing import List, Optional

from loguru import logger

from viewkit.core.config import BindingSettings
from viewkit.ui.mvvm.binding import Binding, ClassToggleBinding, FileBinding, InputBinding, ValueBinding
from viewkit.ui.mvvm.form import FieldErrorCoordinator
from viewkit.ui.mvvm.keypath import RenderContext
from viewkit.ui.mvvm.tree import BindingTree
from viewkit.ui.nodes import Node

BIND = "data-bind"
FORMFOR_PREFIX = "data-formfor-"
ADDCLASS_PREFIX = "data-addclass-"
FOREACH_PREFIX = "data-foreach-"
INPUT_TAGS = {"input", "textarea", "select"}


class DirectiveBinder:
    def __init__(self, tree: BindingTree, settings: Optional[BindingSettings] = None):
        self.tree = tree
        self.settings = settings or BindingSettings()

    def bind(self, root: Node, context: RenderContext) -> List[Binding]:
        """Create, bind and attach bindings for ``root`` and its subtree."""
        created: List[Binding] = []
        self._bind_node(root, context, created)
        logger.debug(f"Bound {len(created)} binding(s) under {root!r}")
        return created

    def unbind(self, root: Node) -> int:
        return self.tree.detach_node(root)

    def _bind_node(self, node: Node, context: RenderContext, created: List[Binding]) -> None:
        if any(name.startswith(FOREACH_PREFIX) for name in node.attributes):
            # Iteration templates are expanded by the renderer, once per item
            return
        child_context = context
        for name, value in list(node.attributes.items()):
            if name.startswith(FORMFOR_PREFIX):
                coordinator = FieldErrorCoordinator(
                    node,
                    name[len(FORMFOR_PREFIX):],
                    context,
                    self.tree,
                    key=value,
                    settings=self.settings,
                )
                self._attach(coordinator, created)
                child_context = coordinator.child_context
            elif name.startswith(ADDCLASS_PREFIX):
                self._attach(ClassToggleBinding(node, value, context, name[len(ADDCLASS_PREFIX):]), created)

        if node.has_attribute(BIND):
            self._attach(self._binding_for(node, child_context), created)

        for child in list(node.children):
            self._bind_node(child, child_context, created)

    def _binding_for(self, node: Node, context: RenderContext) -> Binding:
        key = node.get_attribute(BIND)
        if node.tag in INPUT_TAGS:
            if node.get_attribute("type") == "file":
                return FileBinding(node, key, context)
            return InputBinding(node, key, context)
        return ValueBinding(node, key, context)

    def _attach(self, binding: Binding, created: List[Binding]) -> None:
        binding.bind()
        self.tree.attach(binding)
        created.append(binding)
