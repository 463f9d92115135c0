"""Dependency injection container."""

import os
from typing import Any, Callable, Dict, Optional

from .exceptions import ConfigurationError


class ServiceContainer:
    """Minimal dependency injection container keyed by interface."""

    def __init__(self) -> None:
        self._services: Dict[object, Any] = {}
        self._factories: Dict[object, Callable[[], Any]] = {}

    def register_singleton(self, interface: object, instance: Any) -> None:
        """Register a singleton service."""
        self._services[interface] = instance

    def register_factory(self, interface: object, factory: Callable[[], Any]) -> None:
        """Register a factory; the first resolved instance is cached."""
        self._factories[interface] = factory

    def resolve(self, interface: object) -> Any:
        """Resolve a service by interface."""
        if interface in self._services:
            return self._services[interface]

        if interface in self._factories:
            instance = self._factories[interface]()
            self._services[interface] = instance
            return instance

        name = getattr(interface, "__name__", repr(interface))
        raise ValueError(f"No registration found for {name}")

    async def aclose(self) -> None:
        """Close resolved services that hold connections, then forget everything."""
        for service in self._services.values():
            closer = getattr(service, "aclose", None)
            if closer is not None:
                await closer()
        self._services.clear()
        self._factories.clear()


def create_container(config: Optional[Dict[str, Any]] = None) -> ServiceContainer:
    """Create a container wired from configuration.

    Recognized keys in ``config``: ``config_file``, ``api_key``, plus any
    nested settings merged into the configuration manager (e.g. ``api``).
    The completion client is built lazily so commands that never call the
    backend do not need an API key.
    """
    container = ServiceContainer()
    config_dict: Dict[str, Any] = dict(config or {})

    from .infrastructure.config_manager import ConfigurationManager
    from .services import IConfigurationManager

    config_manager = ConfigurationManager(config_file=config_dict.pop("config_file", None))
    api_key = config_dict.pop("api_key", None)
    if config_dict:
        config_manager.merge(config_dict)
    container.register_singleton(IConfigurationManager, config_manager)

    from .infrastructure.completion_client import OpenAICompletionClient
    from .services import ICompletionService

    def build_completion_client() -> OpenAICompletionClient:
        key = api_key or os.getenv("OPENAI_API_KEY")
        if not key:
            raise ConfigurationError("an API key must be provided via key file or OPENAI_API_KEY")
        try:
            timeout = float(config_manager.get("api.timeout"))
            connect_timeout = float(config_manager.get("api.connect_timeout"))
            max_retries = int(config_manager.get("api.max_retries"))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"invalid api configuration: {exc}") from exc
        return OpenAICompletionClient(
            api_key=key,
            base_url=config_manager.get("api.base_url"),
            default_model=config_manager.get("api.default_model"),
            timeout=timeout,
            connect_timeout=connect_timeout,
            max_retries=max_retries,
        )

    container.register_factory(ICompletionService, build_completion_client)

    from .infrastructure.repositories import SnapshotRepository
    from .infrastructure.utility_services import FileSystemService
    from .services import IFileSystemService, ISnapshotRepository

    fs_service = FileSystemService()
    container.register_singleton(IFileSystemService, fs_service)
    container.register_singleton(ISnapshotRepository, SnapshotRepository(fs_service))

    return container


__all__ = ["ServiceContainer", "create_container"]
