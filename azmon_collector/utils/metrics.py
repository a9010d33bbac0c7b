"""Metric data structures produced by collectors."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Union

# Closed set of value types a field may carry
FieldValue = Union[float, str]


@dataclass
class FieldSet:
    """All metric values observed at one timestamp during a poll cycle."""

    timestamp: str  # Raw RFC3339 string as sent by the provider
    time: datetime
    fields: Dict[str, FieldValue] = field(default_factory=dict)


@dataclass
class Metric:
    """One sample as recorded by an accumulator."""

    measurement: str
    fields: Dict[str, FieldValue]
    tags: Dict[str, str]
    time: datetime
