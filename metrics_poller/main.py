"""Command line entry point for the HTTP metrics poller."""

import argparse
import asyncio
import logging
import os
import signal
import sys
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .accumulator import Accumulator, JsonLinesAccumulator, MemoryAccumulator, summarize
from .config.loader import ConfigLoader
from .config.models import MetricsPollerConfig
from .poller import CycleReport, MetricsPoller
from .utils.logger import setup_logger


class PollerApp:
    """
    Metrics poller application.

    Runs gather cycles on a fixed interval, or once, and logs a summary
    of every cycle.
    """

    def __init__(
        self,
        config_path: str = "config/config.yaml",
        dry_run: bool = False,
        log_level: str = "INFO"
    ):
        """
        Initialize the application.

        Args:
            config_path: Path to configuration file
            dry_run: If True, keep records in memory and log them instead of writing
            log_level: Logging level name
        """
        self.config_path = config_path
        self.dry_run = dry_run
        self.logger = setup_logger("metrics_poller", log_level)
        self.scheduler = None
        self._stop = None

        self.config = self._load_config()
        self.accumulator = self._build_accumulator(self.config)
        self.poller = MetricsPoller(self.config, self.accumulator, self.logger)

    def _load_config(self) -> MetricsPollerConfig:
        """
        Load and validate configuration.

        Raises:
            SystemExit: If configuration is missing or invalid
        """
        try:
            self.logger.info(f"Loading configuration from {self.config_path}")
            config = ConfigLoader.load_from_file(self.config_path)
            self.logger.info("Configuration loaded successfully")
            return config

        except FileNotFoundError:
            self.logger.error(
                f"Configuration file not found: {self.config_path}\n"
                "Please create one from config/config.example.yaml"
            )
            sys.exit(1)

        except Exception as e:
            self.logger.error(f"Failed to load configuration: {e}", exc_info=True)
            sys.exit(1)

    def _build_accumulator(self, config: MetricsPollerConfig) -> Accumulator:
        if self.dry_run or config.output.format == "none":
            return MemoryAccumulator()
        return JsonLinesAccumulator.open(config.output.path, self.logger)

    async def run_cycle(self) -> CycleReport:
        """Execute one gather cycle and log its summary."""
        self.logger.info("Starting gather cycle")
        report = await self.poller.run_cycle()

        self.logger.info(
            f"Gather cycle completed in {report.duration_s:.2f}s: "
            f"{report.records} record(s), {report.error_count} error(s)",
            extra={"records": report.records, "errors": report.error_count}
        )
        for collector, messages in report.errors.items():
            for message in messages:
                self.logger.warning(f"[{collector}] {message}")

        if isinstance(self.accumulator, MemoryAccumulator):
            if self.dry_run:
                for record in self.accumulator.records:
                    self.logger.info("DRY RUN record", extra={"record": record.to_dict()})
                self.logger.info(
                    "DRY RUN summary",
                    extra={"measurements": summarize(self.accumulator.records)}
                )
            # Memory output is per cycle only
            self.accumulator.clear()

        return report

    async def run_once(self) -> int:
        """Run one cycle; return the process exit code."""
        try:
            report = await self.run_cycle()
        finally:
            await self.poller.aclose()
        return 0 if report.ok else 1

    async def serve(self) -> None:
        """
        Run cycles every `poller.interval_seconds` until SIGINT/SIGTERM.

        The first cycle starts immediately. Overlapping cycles are skipped.
        """
        interval = self.config.poller.interval_seconds
        self._stop = asyncio.Event()

        loop = asyncio.get_running_loop()
        for signum in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(signum, self._signal_handler, signum)

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self.run_cycle,
            trigger=IntervalTrigger(seconds=interval),
            id='gather_cycle',
            name='Metrics Gather Cycle',
            max_instances=1,  # Prevent overlapping executions
            coalesce=True,
            next_run_time=datetime.now()  # First cycle right away
        )
        self.scheduler.start()
        self.logger.info(f"Scheduler started, polling every {interval}s")

        try:
            await self._stop.wait()
        finally:
            if self.scheduler.running:
                self.scheduler.shutdown(wait=False)
            await self.poller.aclose()
            self.logger.info("Scheduler stopped")

    def _signal_handler(self, signum):
        signal_name = signal.Signals(signum).name
        self.logger.info(f"Received {signal_name}, initiating graceful shutdown...")
        self._stop.set()


def main():
    """
    CLI entry point.

    Parses command-line arguments and starts the poller.
    """
    parser = argparse.ArgumentParser(
        description='Poll HTTP metrics endpoints and emit flattened metrics',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Poll on the configured interval
  metrics-poller

  # Run one gather cycle and exit (exit code 1 if any server failed)
  metrics-poller --run-once

  # Gather but only log the records
  metrics-poller --run-once --dry-run

  # Use custom config file
  metrics-poller --config /path/to/config.yaml
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
        help='Run one gather cycle and exit (no scheduler)'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Log emitted records instead of writing them'
    )

    parser.add_argument(
        '--log-level',
        default=os.getenv('LOG_LEVEL', 'INFO'),
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: INFO or LOG_LEVEL env var)'
    )

    args = parser.parse_args()

    try:
        app = PollerApp(
            config_path=args.config,
            dry_run=args.dry_run,
            log_level=args.log_level
        )

        if args.run_once:
            sys.exit(asyncio.run(app.run_once()))

        asyncio.run(app.serve())

    except KeyboardInterrupt:
        pass

    except Exception as e:
        logging.error(f"Application startup failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
