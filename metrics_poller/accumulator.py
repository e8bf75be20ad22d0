"""Accumulators receiving flattened measurements from collectors."""

import json
import logging
import sys
from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, TextIO

from .utils.metrics import MetricRecord


class Accumulator(ABC):
    """
    Base class for metric sinks.

    Collectors call ``add_fields`` once per source record. Subclasses
    only decide where the resulting ``MetricRecord`` goes.
    """

    def __init__(self):
        self.records_added = 0

    def add_fields(
        self,
        measurement: str,
        fields: Mapping[str, float],
        tags: Optional[Mapping[str, str]] = None
    ) -> MetricRecord:
        """
        Accept one measurement.

        Args:
            measurement: Measurement name
            fields: Field name to numeric value
            tags: Tag name to value

        Returns:
            MetricRecord: The record that was written
        """
        record = MetricRecord(
            measurement=measurement,
            fields=dict(fields),
            tags=dict(tags or {})
        )
        self._write(record)
        self.records_added += 1
        return record

    @abstractmethod
    def _write(self, record: MetricRecord) -> None:
        """Deliver one record to the destination."""
        pass

    def close(self) -> None:
        """Release resources. Default implementation does nothing."""
        pass


class MemoryAccumulator(Accumulator):
    """Keeps records in memory, in the order they were added."""

    def __init__(self):
        super().__init__()
        self.records: List[MetricRecord] = []

    def _write(self, record: MetricRecord) -> None:
        self.records.append(record)

    def records_for(self, measurement: str) -> List[MetricRecord]:
        return [r for r in self.records if r.measurement == measurement]

    def has_field(self, measurement: str, field: str) -> bool:
        return any(field in r.fields for r in self.records_for(measurement))

    def tag_value(self, measurement: str, tag: str) -> Optional[str]:
        """Return the tag value from the first matching record, if any."""
        for record in self.records_for(measurement):
            if tag in record.tags:
                return record.tags[tag]
        return None

    def clear(self) -> None:
        self.records = []


class JsonLinesAccumulator(Accumulator):
    """
    Writes each record as one JSON object per line.

    Args:
        stream: Text stream to write to (stdout by default)
        logger: Optional logger instance
        owns_stream: Close the stream in close()
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        logger: logging.Logger = None,
        owns_stream: bool = False
    ):
        super().__init__()
        self.stream = stream or sys.stdout
        self.owns_stream = owns_stream
        self.logger = logger or logging.getLogger(__name__)

    def _write(self, record: MetricRecord) -> None:
        self.stream.write(json.dumps(record.to_dict(), sort_keys=True) + "\n")
        self.stream.flush()

    @classmethod
    def open(cls, path: str, logger: logging.Logger = None) -> "JsonLinesAccumulator":
        """
        Create an accumulator for a file path, or stdout for "-".

        Args:
            path: Output file path, appended to if it exists
            logger: Optional logger instance

        Returns:
            JsonLinesAccumulator: Accumulator owning the opened file
        """
        if path == "-":
            return cls(sys.stdout, logger)
        return cls(open(path, "a", encoding="utf-8"), logger, owns_stream=True)

    def close(self) -> None:
        if self.owns_stream:
            self.stream.close()
            self.logger.debug("Closed metrics output file")


def summarize(records: List[MetricRecord]) -> Dict[str, int]:
    """Count records per measurement."""
    counts: Dict[str, int] = {}
    for record in records:
        counts[record.measurement] = counts.get(record.measurement, 0) + 1
    return counts
