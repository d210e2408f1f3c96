"""
Error taxonomy for viewkit.

Configuration problems are fatal and surface before any filter runs.
Execution errors wrap the exception raised by a filter or action body
and abort the rest of the dispatch.
"""
from typing import Optional


class ViewkitError(Exception):
    """Base class for all viewkit errors."""


class ConfigurationError(ViewkitError):
    """Invalid setup: bad filter scope, missing routing key, unknown filter name."""


class UnknownActionError(ConfigurationError):
    """Dispatch was asked to run an action the controller does not define."""

    def __init__(self, controller: str, action: str):
        super().__init__(f"{controller} has no action named '{action}'")
        self.controller = controller
        self.action = action


class DoubleEffectError(ViewkitError):
    """A filter or action tried to render or redirect a second time."""


class DispatchError(ViewkitError):
    """Base for failures raised while a dispatch lifecycle is running."""

    def __init__(self, message: str, action: str, phase: Optional[str] = None):
        super().__init__(message)
        self.action = action
        self.phase = phase


class FilterExecutionError(DispatchError):
    """A before or after filter raised."""

    def __init__(self, action: str, filter_name: str, phase: str):
        super().__init__(
            f"Filter '{filter_name}' failed during {phase} of action '{action}'",
            action,
            phase,
        )
        self.filter_name = filter_name


class ActionExecutionError(DispatchError):
    """The action body, or the effect it triggered, raised."""

    def __init__(self, action: str):
        super().__init__(f"Action '{action}' failed", action, "action")
