"""Explicit registry mapping input names to collector factories."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Type

from pydantic import BaseModel, ValidationError

from ..utils.errors import ConfigurationError
from .base import BaseCollector


CollectorFactory = Callable[[Any, logging.Logger], BaseCollector]


@dataclass
class RegistryEntry:
    """How to build one kind of collector."""

    name: str
    factory: CollectorFactory
    config_model: Type[BaseModel]
    description: str = ""
    sample_config: str = ""


class CollectorRegistry:
    """
    Collector factories, populated by the host at startup.

    Nothing registers itself on import; the host decides which collectors
    exist and in which order they are built.
    """

    def __init__(self):
        self._entries: Dict[str, RegistryEntry] = {}

    def add(
        self,
        name: str,
        factory: CollectorFactory,
        config_model: Type[BaseModel],
        description: str = "",
        sample_config: str = ""
    ) -> None:
        """
        Register a collector factory.

        Args:
            name: Input name as used under `inputs:` in the config file
            factory: Callable building a collector from (config, logger)
            config_model: Pydantic model validating one instance's settings
            description: Short summary of the collector
            sample_config: Commented YAML snippet for one instance

        Raises:
            ValueError: If the name is already registered
        """
        if name in self._entries:
            raise ValueError(f"Collector already registered: {name}")

        self._entries[name] = RegistryEntry(
            name=name,
            factory=factory,
            config_model=config_model,
            description=description,
            sample_config=sample_config
        )

    def names(self) -> List[str]:
        """Registered input names in registration order."""
        return list(self._entries)

    def get(self, name: str) -> RegistryEntry:
        """
        Look up a registered collector.

        Raises:
            ConfigurationError: If no collector is registered under the name
        """
        try:
            return self._entries[name]
        except KeyError:
            raise ConfigurationError(f"Unknown input: {name}") from None

    def create(self, name: str, settings: Dict[str, Any], logger: logging.Logger) -> BaseCollector:
        """
        Validate one instance's settings and build the collector.

        Args:
            name: Registered input name
            settings: Raw settings mapping from the config file
            logger: Parent logger for the collector

        Returns:
            BaseCollector: New, not yet initialized collector

        Raises:
            ConfigurationError: If the name is unknown or the settings are invalid
        """
        entry = self.get(name)

        try:
            config = entry.config_model.model_validate(settings)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings for input {name}: {e}") from e

        return entry.factory(config, logger)

    def build_all(
        self,
        inputs: Dict[str, List[Dict[str, Any]]],
        logger: logging.Logger
    ) -> List[BaseCollector]:
        """
        Build one collector per configured instance, in config order.

        Args:
            inputs: Mapping of input name to list of instance settings
            logger: Parent logger for the collectors

        Returns:
            List[BaseCollector]: Collectors, not yet initialized
        """
        collectors = []
        for name, instances in inputs.items():
            for settings in instances:
                collectors.append(self.create(name, settings, logger))
        return collectors

    def render_sample_config(self) -> str:
        """Render a sample configuration file covering every registered input."""
        lines = [
            "agent:",
            "  interval_seconds: 60",
            "  log_level: INFO",
            "  # metrics_file: /var/lib/azmon/metrics.jsonl",
            "",
            "inputs:",
        ]
        for entry in self._entries.values():
            if entry.description:
                lines.append(f"  # {entry.description}")
            lines.append(f"  {entry.name}:")
            for line in entry.sample_config.strip("\n").splitlines():
                lines.append(f"    {line}" if line.strip() else "")
        return "\n".join(lines) + "\n"
