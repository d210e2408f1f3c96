"""
ErrorsListPresenter - seeds a form's errors-list node.

The node is filled with an iteration over the record's errors and a
display binding on each error's full message. Rendering those directives
into live nodes is left to the renderer.
"""
from typing import Optional

from loguru import logger

from viewkit.ui.nodes import Node

DEFAULT_ERRORS_LIST_SELECTOR = "div.errors"
FOREACH_ATTRIBUTE = "data-foreach-error"
BIND_ATTRIBUTE = "data-bind"
SHOWIF_ATTRIBUTE = "data-showif"


class ErrorsListPresenter:
    """
    Args:
        container: Form node to search in.
        context_name: Name the record is bound under (``todo``).
        selector: Locator for the errors-list node.
        node: Explicit errors-list node; skips the lookup.
    """

    def __init__(
        self,
        container: Node,
        context_name: str,
        selector: str = DEFAULT_ERRORS_LIST_SELECTOR,
        node: Optional[Node] = None,
    ):
        self.container = container
        self.context_name = context_name
        self.selector = selector
        self.node = node

    def setup(self) -> Optional[Node]:
        """Populate the errors-list node. Returns it, or None when the form has none."""
        node = self.node or self.container.find(self.selector)
        if node is None:
            logger.debug(f"No errors list matching '{self.selector}' in {self.container!r}")
            return None
        self.node = node

        node.clear()
        item = Node("li")
        item.set_attribute(FOREACH_ATTRIBUTE, f"{self.context_name}.errors")
        item.set_attribute(BIND_ATTRIBUTE, "error.full_message")
        node.append(Node("ul")).append(item)

        if not node.has_attribute(SHOWIF_ATTRIBUTE):
            node.set_attribute(SHOWIF_ATTRIBUTE, f"{self.context_name}.errors.length")
        return node
