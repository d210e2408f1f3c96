from typing import Dict, List, Optional, Type, TypeVar
from loguru import logger

from .base_system import BaseSystem
from .config import ConfigManager

T = TypeVar('T', bound=BaseSystem)


class ServiceLocator:
    """
    Holds the configuration and the registered systems of one application.

    Systems are started in registration order and stopped in reverse.
    """

    def __init__(self):
        self.config: Optional[ConfigManager] = None
        self._systems: Dict[Type[BaseSystem], BaseSystem] = {}
        self._order: List[Type[BaseSystem]] = []
        self.is_ready = False

    def init(self, config_path: Optional[str] = "viewkit.json"):
        if self.is_ready: return
        self.config = ConfigManager(config_path)
        self.is_ready = True

    def register_system(self, system_cls: Type[T]) -> T:
        """Instantiate and register a system. Registering twice returns the existing one."""
        if system_cls in self._systems:
            return self._systems[system_cls]
        if self.config is None:
            self.init()
        instance = system_cls(self, self.config)
        self._systems[system_cls] = instance
        self._order.append(system_cls)
        logger.debug(f"Registered system {system_cls.__name__}")
        return instance

    def get_system(self, system_cls: Type[T]) -> T:
        """
        Raises:
            KeyError: If the system was never registered.
        """
        if system_cls not in self._systems:
            raise KeyError(f"System not registered: {system_cls.__name__}")
        return self._systems[system_cls]

    async def start_all(self):
        for system_cls in self._order:
            system = self._systems[system_cls]
            if not system.is_ready:
                await system.initialize()
        logger.info(f"Started {len(self._order)} system(s)")

    async def stop_all(self):
        for system_cls in reversed(self._order):
            system = self._systems[system_cls]
            if system.is_ready:
                await system.shutdown()
        logger.info("All systems stopped")
