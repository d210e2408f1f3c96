"""
viewkit UI layer.

- nodes: in-memory node tree used as the live hierarchy bindings attach to
- mvvm: observable records, bindings and the binding tree
- controllers: filter registry and action dispatch
"""
