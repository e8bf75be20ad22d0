"""Metric record structure handed to accumulators."""

from dataclasses import dataclass, field
from typing import Optional, Dict
import time


@dataclass
class MetricRecord:
    """One emitted measurement with its fields and tags."""

    measurement: str
    fields: Dict[str, float]
    tags: Dict[str, str] = field(default_factory=dict)
    timestamp: Optional[float] = None

    def __post_init__(self):
        """Set timestamp if not provided."""
        if self.timestamp is None:
            self.timestamp = time.time()

    def to_dict(self) -> Dict[str, object]:
        return {
            "measurement": self.measurement,
            "fields": dict(self.fields),
            "tags": dict(self.tags),
            "timestamp": self.timestamp,
        }
