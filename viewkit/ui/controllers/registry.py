"""
ControllerRegistry - startup validation and shared controller instances.
"""
from typing import Any, Dict, List, Optional, Type

from loguru import logger

from viewkit.core.base_system import BaseSystem
from viewkit.core.errors import ConfigurationError
from viewkit.ui.controllers.controller import Controller
from viewkit.ui.controllers.lifecycle import DispatchLifecycle


class ControllerRegistry(BaseSystem):
    """
    Maps routing keys to one shared controller each.

    With ``dispatch.require_routing_key`` enabled, every registered
    controller class must declare ``routing_key``; class names are not
    treated as stable identifiers. Validation runs in ``initialize()``
    for classes registered before startup and immediately afterwards.

    Usage:
        registry = locator.register_system(ControllerRegistry)
        registry.register(TodosController)
        await locator.start_all()
        await registry.dispatch("todos", "show", {"id": 1})
    """

    def __init__(self, locator, config):
        super().__init__(locator, config)
        self._classes: Dict[str, Type[Controller]] = {}
        self._pending: List[Type[Controller]] = []
        self._instances: Dict[str, Controller] = {}
        self.controller_options: Dict[str, Any] = {}

    async def initialize(self):
        for controller_cls in self._pending:
            self._add(controller_cls)
        self._pending.clear()
        logger.info(f"ControllerRegistry initialized with {len(self._classes)} controller(s)")
        await super().initialize()

    async def shutdown(self):
        for controller in self._instances.values():
            lifecycle = controller.current_lifecycle
            if lifecycle is not None:
                lifecycle.supersede()
        self._instances.clear()
        logger.info("ControllerRegistry shut down")
        await super().shutdown()

    @property
    def _settings(self):
        return self.config.data.dispatch

    def configure(self, **options: Any) -> None:
        """Set collaborators (renderer, navigator, scroller) passed to new controllers."""
        self.controller_options.update(options)

    def register(self, controller_cls: Type[Controller]) -> None:
        if self.is_ready:
            self._add(controller_cls)
        else:
            self._pending.append(controller_cls)

    def routing_key_for(self, controller_cls: Type[Controller]) -> str:
        """
        Raises:
            ConfigurationError: If routing keys are required and the class has none.
        """
        key = controller_cls.routing_key
        if key:
            return key
        if self._settings.require_routing_key:
            raise ConfigurationError(
                f"{controller_cls.__name__} must define routing_key when dispatch.require_routing_key is enabled"
            )
        return controller_cls.__name__

    def get(self, routing_key: str) -> Controller:
        if routing_key not in self._classes:
            raise KeyError(f"No controller registered for '{routing_key}'")
        if routing_key not in self._instances:
            controller_cls = self._classes[routing_key]
            self._instances[routing_key] = controller_cls(settings=self._settings, **self.controller_options)
        return self._instances[routing_key]

    def dispatch(self, routing_key: str, action_name: str, params: Optional[Dict[str, Any]] = None) -> DispatchLifecycle:
        return self.get(routing_key).dispatch(action_name, params)

    def _add(self, controller_cls: Type[Controller]) -> None:
        key = self.routing_key_for(controller_cls)
        existing = self._classes.get(key)
        if existing is not None and existing is not controller_cls:
            raise ConfigurationError(
                f"Routing key '{key}' is used by both {existing.__name__} and {controller_cls.__name__}"
            )
        self._classes[key] = controller_cls
        logger.debug(f"Registered controller {controller_cls.__name__} as '{key}'")
