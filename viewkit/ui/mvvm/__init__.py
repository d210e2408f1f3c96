"""
MVVM Package - observable state and declarative bindings.

Provides:
- BindableProperty / BindableBase: observable objects (PySide6 signals)
- Record / ErrorSet: records with validation errors and the form-save marker
- RenderContext / KeyPathObserver: key-path resolution and observation
- Binding and subclasses: value, input, file and class-toggle bindings
- BindingTree: binding hierarchy with descendant-interest notification
- FieldErrorCoordinator / ErrorsListPresenter: form error presentation
- DirectiveBinder: builds bindings from node attributes
"""
from viewkit.ui.mvvm.bindable import BindableProperty, BindableBase
from viewkit.ui.mvvm.record import Record, ErrorSet, FieldError, FieldErrors
from viewkit.ui.mvvm.keypath import RenderContext, KeyPathObserver, parse_key_path
from viewkit.ui.mvvm.binding import (
    Binding,
    ValueBinding,
    InputBinding,
    FileBinding,
    ClassToggleBinding,
)
from viewkit.ui.mvvm.tree import BindingTree, DescendantInterest
from viewkit.ui.mvvm.errors_list import ErrorsListPresenter
from viewkit.ui.mvvm.form import FieldErrorCoordinator
from viewkit.ui.mvvm.binder import DirectiveBinder

__all__ = [
    # Observable state
    "BindableProperty",
    "BindableBase",
    "Record",
    "ErrorSet",
    "FieldError",
    "FieldErrors",

    # Key paths
    "RenderContext",
    "KeyPathObserver",
    "parse_key_path",

    # Bindings
    "Binding",
    "ValueBinding",
    "InputBinding",
    "FileBinding",
    "ClassToggleBinding",
    "BindingTree",
    "DescendantInterest",

    # Forms
    "ErrorsListPresenter",
    "FieldErrorCoordinator",
    "DirectiveBinder",
]
