"""
viewkit - declarative bindings and filtered controller dispatch.

Subpackages:
- viewkit.core: configuration, logging, errors, events and service wiring
- viewkit.ui.mvvm: observable records, key paths, bindings and the binding tree
- viewkit.ui.controllers: filter registry, dispatch lifecycle and controllers
"""
__version__ = "0.1.0"
