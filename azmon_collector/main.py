"""Main application entry point for the Azure Monitor metrics collector."""

import argparse
import asyncio
import logging
import os
import signal
import sys
import time
from datetime import datetime, timezone
from typing import List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .collectors.azure_monitor import AzureMonitorCollector
from .collectors.base import BaseCollector
from .collectors.registry import CollectorRegistry
from .config.loader import ConfigLoader
from .config.models import AzureMonitorConfig, CollectorSystemConfig
from .services.accumulator import Accumulator, JsonLinesAccumulator
from .utils.errors import CollectorError
from .utils.logger import setup_logger


def build_registry() -> CollectorRegistry:
    """Register every collector this agent ships with."""
    registry = CollectorRegistry()
    registry.add(
        "azure_monitor",
        AzureMonitorCollector,
        AzureMonitorConfig,
        description=AzureMonitorCollector.description,
        sample_config=AzureMonitorCollector.sample_config
    )
    return registry


class CollectorApp:
    """
    Main collector application.

    Loads configuration, builds and initializes collectors, and runs
    poll cycles either once or on a fixed interval.
    """

    def __init__(
        self,
        config_path: str = "config/config.yaml",
        registry: Optional[CollectorRegistry] = None,
        accumulator: Optional[Accumulator] = None,
        log_level: Optional[str] = None
    ):
        """
        Initialize collector application.

        Args:
            config_path: Path to configuration file
            registry: Collector registry, defaults to build_registry()
            accumulator: Output sink, defaults to JSON lines on stdout or metrics_file
            log_level: Overrides the configured log level

        Raises:
            SystemExit: If configuration or collector initialization fails
        """
        self.config_path = config_path
        self.logger = setup_logger("azmon_collector", log_level or "INFO")
        self.registry = registry or build_registry()
        self.scheduler = None
        self._metrics_stream = None

        self.config = self._load_config()
        if log_level is None:
            self.logger.setLevel(self.config.agent.log_level)

        self.collectors = self._build_collectors()
        self.accumulator = accumulator or self._open_accumulator()
        self.logger.info(f"Application initialized with {len(self.collectors)} collector(s)")

    def _load_config(self) -> CollectorSystemConfig:
        """
        Load and validate configuration.

        Returns:
            CollectorSystemConfig: Loaded configuration

        Raises:
            SystemExit: If configuration is invalid
        """
        try:
            self.logger.info(f"Loading configuration from {self.config_path}")
            config = ConfigLoader.load_from_file(self.config_path)
            self.logger.info("Configuration loaded successfully")
            return config

        except FileNotFoundError:
            self.logger.error(
                f"Configuration file not found: {self.config_path}\n"
                "Please create config/config.yaml from config/config.example.yaml"
            )
            sys.exit(1)

        except Exception as e:
            self.logger.error(f"Failed to load configuration: {e}", exc_info=True)
            sys.exit(1)

    def _open_accumulator(self) -> Accumulator:
        """Open the configured metrics output."""
        if self.config.agent.metrics_file:
            self._metrics_stream = open(self.config.agent.metrics_file, 'a')
            return JsonLinesAccumulator(self._metrics_stream)
        return JsonLinesAccumulator(sys.stdout)

    def _build_collectors(self) -> List[BaseCollector]:
        """
        Build and initialize every configured collector.

        Raises:
            SystemExit: If any collector fails to initialize
        """
        try:
            collectors = self.registry.build_all(self.config.inputs, self.logger)
            for collector in collectors:
                collector.init()
            return collectors

        except CollectorError as e:
            self.logger.error(
                f"Collector initialization failed: {e}",
                extra={"error_type": type(e).__name__}
            )
            sys.exit(1)

    async def run_poll_cycle(self) -> bool:
        """
        Run one poll cycle of every collector concurrently.

        A failing collector is logged and does not affect the others.

        Returns:
            bool: True if every collector succeeded
        """
        self.logger.info("Starting poll cycle")
        start_time = time.time()

        tasks = [self._run_collector(collector) for collector in self.collectors]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        failures = 0
        emitted = 0
        for collector, result in zip(self.collectors, results):
            if isinstance(result, BaseException):
                failures += 1
                self.logger.error(
                    f"Poll failed: {result}",
                    exc_info=None if isinstance(result, CollectorError) else result,
                    extra={
                        "collector": collector.__class__.__name__,
                        "resource_id": getattr(collector.config, "resource_id", None),
                        "error_type": type(result).__name__
                    }
                )
            else:
                emitted += result

        duration = time.time() - start_time
        self.logger.info(
            f"Poll cycle completed in {duration:.2f}s: "
            f"{emitted} sample(s), {failures} failure(s)"
        )
        return failures == 0

    async def _run_collector(self, collector: BaseCollector) -> int:
        return await collector.collect(self.accumulator)

    async def serve(self) -> None:
        """
        Run poll cycles on the configured interval until stopped.

        The first cycle runs immediately. SIGTERM and SIGINT stop the loop.
        """
        interval = self.config.agent.interval_seconds
        stop_event = asyncio.Event()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._request_stop, sig, stop_event)

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self.run_poll_cycle,
            trigger=IntervalTrigger(seconds=interval),
            id='poll_cycle',
            name='Azure Monitor Poll Cycle',
            max_instances=1,  # Prevent overlapping executions
            coalesce=True,  # If missed, run once
            misfire_grace_time=interval,
            next_run_time=datetime.now(timezone.utc)  # First cycle runs immediately
        )
        self.scheduler.start()
        self.logger.info(f"Scheduler started with interval {interval}s")

        try:
            await stop_event.wait()
        finally:
            self.scheduler.shutdown(wait=False)
            self.close()
            self.logger.info("Scheduler stopped")

    def _request_stop(self, signum: int, stop_event: asyncio.Event) -> None:
        signal_name = signal.Signals(signum).name
        self.logger.info(f"Received {signal_name}, initiating graceful shutdown...")
        stop_event.set()

    def close(self) -> None:
        """Close the metrics file if one was opened."""
        if self._metrics_stream is not None:
            self._metrics_stream.close()
            self._metrics_stream = None


def main():
    """
    CLI entry point.

    Parses command-line arguments and starts the collector.
    """
    parser = argparse.ArgumentParser(
        description='Azure Monitor metrics collector',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Poll on the configured interval (default)
  azmon-collector

  # Poll once and exit (useful for testing)
  azmon-collector --run-once

  # Print a sample configuration file
  azmon-collector --sample-config > config/config.yaml

  # Use custom config file
  azmon-collector --config /path/to/config.yaml
        """
    )

    parser.add_argument(
        '--config',
        default='config/config.yaml',
        help='Path to configuration file (default: config/config.yaml)'
    )

    parser.add_argument(
        '--run-once',
        action='store_true',
        help='Run one poll cycle and exit (no scheduler)'
    )

    parser.add_argument(
        '--sample-config',
        action='store_true',
        help='Print a sample configuration file and exit'
    )

    parser.add_argument(
        '--log-level',
        default=os.getenv('LOG_LEVEL'),
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: config file or LOG_LEVEL env var)'
    )

    args = parser.parse_args()

    if args.sample_config:
        sys.stdout.write(build_registry().render_sample_config())
        sys.exit(0)

    try:
        app = CollectorApp(config_path=args.config, log_level=args.log_level)

        if args.run_once:
            try:
                succeeded = asyncio.run(app.run_poll_cycle())
            finally:
                app.close()
            sys.exit(0 if succeeded else 1)
        else:
            asyncio.run(app.serve())

    except Exception as e:
        logging.error(f"Application startup failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
