"""Base collector abstract class for all input collectors."""

from abc import ABC, abstractmethod
from typing import Any
import logging

from ..services.accumulator import Accumulator


class BaseCollector(ABC):
    """Abstract base class for all collectors."""

    # Short human-readable summary, shown by --sample-config
    description: str = ""

    # Commented YAML snippet for one instance of this collector
    sample_config: str = ""

    def __init__(self, config: Any, logger: logging.Logger):
        """
        Initialize base collector.

        Args:
            config: Collector-specific configuration
            logger: Logger instance
        """
        self.config = config
        self.logger = logger.getChild(self.__class__.__name__)

    def init(self) -> None:
        """
        Validate settings and acquire long-lived resources.

        Called once by the host before the first collect(). Errors raised
        here are fatal to startup.
        """
        pass

    @abstractmethod
    async def collect(self, acc: Accumulator) -> int:
        """
        Run one poll cycle and emit the results to the accumulator.

        Args:
            acc: Downstream accumulator

        Returns:
            int: Number of samples emitted

        Raises:
            CollectorError: If the cycle failed. Nothing is emitted in that case.
        """
        pass
