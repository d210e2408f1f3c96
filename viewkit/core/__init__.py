"""
viewkit core - application infrastructure.

Provides:
- ServiceLocator: system registration and startup
- BaseSystem: abstract base for long-lived systems
- ConfigManager: pydantic-validated configuration with persistence
- ObserverEvent: lightweight synchronous signal
- Error taxonomy shared by bindings and controllers
"""
from .base_system import BaseSystem
from .locator import ServiceLocator
from .config import (
    ConfigManager,
    AppConfig,
    GeneralSettings,
    BindingSettings,
    DispatchSettings,
)
from .events import ObserverEvent
from .errors import (
    ViewkitError,
    ConfigurationError,
    UnknownActionError,
    DoubleEffectError,
    DispatchError,
    FilterExecutionError,
    ActionExecutionError,
)
from .logging import setup_logging
