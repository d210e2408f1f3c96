"""
Bindable Property Descriptor.

Provides automatic signal emission on property change so bindings can
observe records without polling.

Usage:
    class Todo(BindableBase):
        title = BindableProperty(default="")

    # Changing the property emits propertyChanged("title", value)
    todo.title = "Write tests"
"""
from typing import Any, Optional, Callable, TypeVar, Generic
from PySide6.QtCore import QObject, Signal

T = TypeVar('T')


class BindableProperty(Generic[T]):
    """
    Descriptor that emits ``propertyChanged`` when the value changes.

    Args:
        default: Default value for the property.
        coerce: Optional callable to coerce/validate the value before setting.

    Example:
        class Todo(Record):
            title = BindableProperty(default="")
            priority = BindableProperty(default=0, coerce=lambda x: max(0, int(x)))
    """
    
    def __init__(
        self, 
        default: T = None, 
        coerce: Optional[Callable[[Any], T]] = None
    ):
        self.default = default
        self.coerce = coerce
        self._attr_name: str = ""
        self._public_name: str = ""
    
    def __set_name__(self, owner: type, name: str) -> None:
        self._public_name = name
        self._attr_name = f"_bindable_{name}"
    
    def __get__(self, obj: Optional[QObject], objtype: type = None) -> T:
        if obj is None:
            return self  # type: ignore
        return getattr(obj, self._attr_name, self.default)
    
    def __set__(self, obj: QObject, value: Any) -> None:
        if self.coerce is not None:
            value = self.coerce(value)
        
        old_value = getattr(obj, self._attr_name, self.default)
        
        if old_value != value:
            setattr(obj, self._attr_name, value)
            obj.notify_property_changed(self._public_name, value)


class BindableBase(QObject):
    """
    Base class for observable objects.

    Provides a generic ``propertyChanged(name, value)`` signal that
    ``BindableProperty`` descriptors and key-path observers use.
    """
    
    # Generic signal emitted for any property change: (property_name, new_value)
    propertyChanged = Signal(str, object)
    
    def notify_property_changed(self, property_name: str, value: Any) -> None:
        """
        Manually emit a property changed notification.
        
        Use this for properties not using BindableProperty descriptor.
        """
        self.propertyChanged.emit(property_name, value)
