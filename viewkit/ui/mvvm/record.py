"""
Observable records with validation errors.

A ``Record`` is the state a form binds to. It carries an ``ErrorSet``
that bindings can read through key paths like ``todo.errors.title.length``,
and the exclusive marker recording which form (if any) will save it with
a multipart upload.
"""
from typing import Any, Callable, Iterator, List, Optional

from loguru import logger

from viewkit.ui.mvvm.bindable import BindableBase


class FieldError:
    """One validation message attached to a record attribute."""

    def __init__(self, attribute: str, message: str):
        self.attribute = attribute
        self.message = message

    @property
    def full_message(self) -> str:
        label = self.attribute.replace("_", " ").replace(".", " ")
        return f"{label[:1].upper()}{label[1:]} {self.message}"

    def __repr__(self) -> str:
        return f"FieldError({self.attribute!r}, {self.message!r})"


class FieldErrors(list):
    """
    Errors for one attribute.

    Further key-path segments narrow to nested attributes, so
    ``errors.address.city`` reads the errors added for ``"address.city"``.
    """

    def __init__(self, errors: 'ErrorSet', attribute: str):
        super().__init__(errors.for_field(attribute))
        self.attribute = attribute
        self._errors = errors

    def resolve_key(self, segment: str) -> Any:
        if segment == "length":
            return len(self)
        return FieldErrors(self._errors, f"{self.attribute}.{segment}")


class ErrorSet:
    """
    Ordered collection of ``FieldError``.

    Iterating yields every error; key-path lookup by attribute name
    yields the errors for that attribute.
    """

    def __init__(self, on_change: Optional[Callable[['ErrorSet'], None]] = None):
        self._errors: List[FieldError] = []
        self._on_change = on_change

    def add(self, attribute: str, message: str) -> FieldError:
        error = FieldError(attribute, message)
        self._errors.append(error)
        self._changed()
        return error

    def clear(self) -> None:
        if self._errors:
            self._errors.clear()
            self._changed()

    def for_field(self, attribute: str) -> List[FieldError]:
        return [e for e in self._errors if e.attribute == attribute]

    def resolve_key(self, segment: str) -> Any:
        if segment == "length":
            return len(self._errors)
        return FieldErrors(self, segment)

    @property
    def length(self) -> int:
        return len(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __iter__(self) -> Iterator[FieldError]:
        return iter(list(self._errors))

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self)


class Record(BindableBase):
    """
    Observable record bound by forms.

    Example:
        class Todo(Record):
            title = BindableProperty(default="")

        todo = Todo(title="Draft")
        todo.errors.add("title", "can't be blank")
    """

    def __init__(self, **values: Any):
        super().__init__()
        self.errors = ErrorSet(self._on_errors_changed)
        self._form_save_owner: Any = None
        for name, value in values.items():
            setattr(self, name, value)

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def _on_errors_changed(self, errors: ErrorSet) -> None:
        self.notify_property_changed("errors", errors)

    # --- Form-save marker ---

    @property
    def form_save_owner(self) -> Any:
        return self._form_save_owner

    @property
    def has_pending_form_save(self) -> bool:
        return self._form_save_owner is not None

    def claim_form_save(self, owner: Any) -> bool:
        """
        Mark this record as saved through ``owner``'s form.

        Returns:
            True if ``owner`` holds the claim after the call. A record
            already claimed by another owner keeps its first claimant.
        """
        if self._form_save_owner is None:
            self._form_save_owner = owner
            logger.debug(f"{type(self).__name__} claimed for form save by {owner!r}")
            self.notify_property_changed("has_pending_form_save", True)
            return True
        return self._form_save_owner is owner

    def release_form_save(self, owner: Any) -> bool:
        """Clear the claim if ``owner`` holds it."""
        if self._form_save_owner is not owner:
            return False
        self._form_save_owner = None
        logger.debug(f"{type(self).__name__} form save claim released by {owner!r}")
        self.notify_property_changed("has_pending_form_save", False)
        return True
