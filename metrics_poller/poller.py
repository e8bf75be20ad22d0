"""Gather cycle orchestration across all configured collectors."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List

from .accumulator import Accumulator
from .collectors.base import BaseCollector
from .collectors.graylog_collector import GraylogCollector
from .collectors.icecast_collector import IcecastCollector
from .config.models import MetricsPollerConfig
from .errors import GatherError, describe_error
from .utils.logger import setup_logger


@dataclass
class CycleReport:
    """Outcome of one gather cycle."""

    records: int = 0
    duration_s: float = 0.0
    # collector name -> error messages
    errors: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def error_count(self) -> int:
        return sum(len(messages) for messages in self.errors.values())


class MetricsPoller:
    """
    Runs gather cycles for every configured collector.

    Collectors (and their HTTP transports) are built once and reused by
    every cycle; nothing else survives from one cycle to the next.
    """

    def __init__(
        self,
        config: MetricsPollerConfig,
        accumulator: Accumulator,
        logger: logging.Logger = None
    ):
        """
        Initialize the poller.

        Args:
            config: System configuration
            accumulator: Sink for emitted records
            logger: Optional logger instance
        """
        self.config = config
        self.accumulator = accumulator
        self.logger = logger or setup_logger("poller")

        self.collectors: Dict[str, BaseCollector] = {}

        if config.graylog and config.graylog.servers:
            self.collectors[GraylogCollector.name] = GraylogCollector(config.graylog, self.logger)

        if config.icecast and config.icecast.servers:
            self.collectors[IcecastCollector.name] = IcecastCollector(config.icecast, self.logger)

        self.logger.info(
            f"Initialized {len(self.collectors)} collector(s): "
            f"{', '.join(self.collectors) or 'none'}"
        )

    async def run_cycle(self) -> CycleReport:
        """
        Gather all collectors concurrently, once.

        Returns:
            CycleReport: Records emitted, duration and per-collector errors
        """
        start_time = time.time()
        records_before = self.accumulator.records_added

        names = list(self.collectors)
        results = await asyncio.gather(
            *(self.collectors[name].gather(self.accumulator) for name in names),
            return_exceptions=True
        )

        report = CycleReport()
        for name, result in zip(names, results):
            if isinstance(result, GatherError):
                report.errors[name] = result.errors
            elif isinstance(result, (Exception, asyncio.CancelledError)):
                # Setup failures (e.g. TLS files) fail the collector as a whole
                self.logger.error(
                    f"Collector {name} failed: {describe_error(result)}",
                    extra={"collector": name, "error_type": type(result).__name__}
                )
                report.errors[name] = [describe_error(result)]

        report.records = self.accumulator.records_added - records_before
        report.duration_s = time.time() - start_time
        return report

    async def aclose(self) -> None:
        """Close every collector's HTTP transport."""
        for collector in self.collectors.values():
            await collector.http_client.aclose()
        self.accumulator.close()
