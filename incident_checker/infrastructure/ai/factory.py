"""Factory for creating and managing inference providers."""

import logging
import os
from typing import Any, Callable, Dict, Optional

from .claude_adapter import ClaudeAdapter, ClaudeConfig
from .openrouter_adapter import OpenRouterAdapter, OpenRouterConfig

logger = logging.getLogger(__name__)

# Provider name -> (adapter class, config class, API key variable)
_DEFAULT_PROVIDERS = {
    "claude": (ClaudeAdapter, ClaudeConfig, "ANTHROPIC_API_KEY"),
    "openrouter": (OpenRouterAdapter, OpenRouterConfig, "OPENROUTER_API_KEY"),
}


class AIProviderFactory:
    """Factory for creating and managing inference providers."""

    def __init__(self):
        """Initialize the factory."""
        self._providers: Dict[str, Callable[..., Any]] = {}
        self._instances: Dict[str, Any] = {}

        for name, (adapter_class, config_class, key_variable) in _DEFAULT_PROVIDERS.items():
            self.register_provider(name, self._configured(adapter_class, config_class, key_variable))

    @staticmethod
    def _configured(adapter_class, config_class, key_variable: str) -> Callable[..., Any]:
        def build(**kwargs):
            config = config_class(api_key=os.getenv(key_variable, ""), **kwargs)
            return adapter_class(config=config)
        return build

    def register_provider(self, name: str, builder: Callable[..., Any]) -> None:
        """Register a new provider.

        Args:
            name: Provider name
            builder: Callable returning an uninitialised provider
        """
        self._providers[name] = builder

    async def create_provider(self, name: str, /, **kwargs) -> Any:
        """Create and initialize a provider instance.

        Args:
            name: Provider name
            **kwargs: Provider-specific configuration

        Returns:
            Initialized provider instance

        Raises:
            ValueError: If provider not found
        """
        if name not in self._providers:
            raise ValueError(f"Provider '{name}' not found")

        if name not in self._instances:
            provider = self._providers[name](**kwargs)
            await provider.initialize()
            self._instances[name] = provider

        return self._instances[name]

    def get_provider(self, name: str) -> Optional[Any]:
        """Get an existing provider instance, or None."""
        return self._instances.get(name)

    @property
    def available_providers(self) -> Dict[str, bool]:
        """Get dictionary of registered providers and their availability."""
        return {
            name: name in self._instances and self._instances[name].is_available
            for name in self._providers
        }

    async def shutdown(self) -> None:
        """Shutdown all provider instances."""
        for name, provider in self._instances.items():
            try:
                await provider.shutdown()
            except Exception as e:
                logger.warning(f"⚠️ Failed to shut down provider {name}: {e}")
        self._instances.clear()
