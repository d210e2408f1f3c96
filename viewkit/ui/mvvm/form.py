"""
FieldErrorCoordinator - per-field error indicators for forms.

A form bound to a record watches the input bindings created inside it.
For each one bound to a property of that record it installs a class
toggle reading ``<record>.errors.<field>.length``, so the field gets the
error class while the record has errors for it. A file input inside the
form marks the record as saved through this form (multipart upload).
"""
from typing import List, Optional

from loguru import logger

from viewkit.core.config import BindingSettings
from viewkit.ui.mvvm.binding import Binding, ClassToggleBinding
from viewkit.ui.mvvm.errors_list import ErrorsListPresenter
from viewkit.ui.mvvm.keypath import RenderContext, format_key_path
from viewkit.ui.mvvm.tree import BindingTree
from viewkit.ui.nodes import Event, Node


class FieldErrorCoordinator(Binding):
    """
    Binding for a ``data-formfor-<name>="<keypath>"`` container.

    Args:
        node: The form node.
        context_name: Name descendants use for the record (``todo``).
        key: Key path of the record in ``context``; defaults to ``context_name``.
        context: Render context the directive was found in.
        tree: Binding tree descendants attach to.
        settings: Error class, errors-list selector, upload enctype.
        errors_list: Explicit errors-list node.
    """

    def __init__(
        self,
        node: Node,
        context_name: str,
        context: RenderContext,
        tree: BindingTree,
        key: Optional[str] = None,
        settings: Optional[BindingSettings] = None,
        errors_list: Optional[Node] = None,
    ):
        super().__init__(node, key or context_name, context)
        self.context_name = context_name
        self.tree = tree
        self.settings = settings or BindingSettings()
        self.derived_bindings: List[ClassToggleBinding] = []
        self.upload_bindings: List[Binding] = []
        self._claimed_record = None

        self.child_context = context.descend({context_name: self.record})
        self.node.on("submit", self._on_submit)
        self.errors_list = ErrorsListPresenter(
            node,
            context_name,
            selector=self.settings.errors_list_selector,
            node=errors_list,
        ).setup()
        self._interest = tree.register_interest(self, self.on_descendant_attached)

    @property
    def record(self):
        return self.context.get(self.key_path)

    @property
    def upload_binding(self) -> Optional[Binding]:
        """The file input currently holding the record's form-save claim."""
        return self.upload_bindings[0] if self.upload_bindings else None

    def on_descendant_attached(self, binding: Binding) -> None:
        if not binding.is_input or binding.node is self.node or not self.node.contains(binding.node):
            return
        segments = binding.key_path
        if self.context_name not in segments:
            return
        index = segments.index(self.context_name)
        field_path = segments[index + 1:]
        if not field_path:
            return
        field = format_key_path(field_path)

        if binding.is_upload:
            self._register_upload(binding)

        derived = ClassToggleBinding(
            binding.node,
            self.key_path + ("errors",) + field_path + ("length",),
            self.context,
            self.settings.error_class,
        )
        derived.on_dispose(self._forget_derived)
        self.derived_bindings.append(derived)
        binding.add_secondary(derived)
        derived.bind()
        logger.debug(f"Form '{self.context_name}' watching errors for field '{field}'")

    def dispose(self) -> None:
        if self.disposed:
            return
        self.tree.unregister_interest(self._interest)
        self.node.off("submit", self._on_submit)
        for derived in list(self.derived_bindings):
            derived.dispose()
        self.upload_bindings.clear()
        self._release_upload()
        super().dispose()

    def _register_upload(self, binding: Binding) -> None:
        record = self.record
        claim = getattr(record, "claim_form_save", None)
        if claim is None:
            logger.warning(f"Form '{self.context_name}' has a file input but no record to save")
            return
        if record.has_pending_form_save and record.form_save_owner is not self:
            logger.debug(f"{record!r} already saves through another form; leaving claim")
            return
        claim(self)
        self._claimed_record = record
        if not self.upload_bindings:
            self.node.set_attribute("enctype", self.settings.upload_enctype)
        self.upload_bindings.append(binding)
        binding.on_dispose(self._on_upload_disposed)

    def _on_upload_disposed(self, binding: Binding) -> None:
        if binding in self.upload_bindings:
            self.upload_bindings.remove(binding)
            if not self.upload_bindings:
                self._release_upload()

    def _release_upload(self) -> None:
        if self._claimed_record is not None:
            self._claimed_record.release_form_save(self)
            self._claimed_record = None

    def _forget_derived(self, binding: Binding) -> None:
        if binding in self.derived_bindings:
            self.derived_bindings.remove(binding)

    def _on_submit(self, event: Event) -> None:
        event.prevent_default()
