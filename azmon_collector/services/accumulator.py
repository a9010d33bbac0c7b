"""Downstream sinks that receive the field sets emitted by collectors."""

import json
import sys
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, TextIO

from ..utils.metrics import FieldValue, Metric


class Accumulator(ABC):
    """Receives timestamped samples from collectors."""

    @abstractmethod
    def add_fields(
        self,
        measurement: str,
        fields: Dict[str, FieldValue],
        tags: Dict[str, str],
        time: datetime
    ) -> None:
        """
        Record one sample.

        Args:
            measurement: Name identifying the emitting collector
            fields: Metric name to observed value
            tags: Identifying tags, e.g. resource_id
            time: Timestamp of the sample
        """
        pass


class MemoryAccumulator(Accumulator):
    """Keeps every sample in a list. Useful when embedding or testing."""

    def __init__(self):
        self.metrics: List[Metric] = []

    def add_fields(self, measurement, fields, tags, time) -> None:
        self.metrics.append(Metric(
            measurement=measurement,
            fields=dict(fields),
            tags=dict(tags),
            time=time
        ))


class JsonLinesAccumulator(Accumulator):
    """
    Writes each sample as one JSON object per line.

    The layout follows the Telegraf JSON serializer, so the stream can be
    fed to any pipeline that already ingests that format:

        {"name": ..., "fields": {...}, "tags": {...}, "timestamp": <epoch seconds>}
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout

    def add_fields(self, measurement, fields, tags, time) -> None:
        record = {
            "name": measurement,
            "fields": fields,
            "tags": tags,
            "timestamp": int(time.timestamp())
        }
        self.stream.write(json.dumps(record) + "\n")
        self.stream.flush()
