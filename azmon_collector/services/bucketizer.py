"""Regroup Azure Monitor time series into one field set per timestamp."""

import logging
import re
from datetime import datetime
from typing import Dict, List, Optional

from ..models.monitor_response import MonitorResponse
from ..utils.errors import MalformedTimestampError
from ..utils.metrics import FieldSet, FieldValue


_RFC3339 = re.compile(
    r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})$'
)


def parse_rfc3339(value: str) -> datetime:
    """
    Parse an RFC3339 timestamp into a timezone-aware datetime.

    Args:
        value: Timestamp such as "2024-01-01T00:00:00Z"

    Returns:
        datetime: Parsed timestamp

    Raises:
        MalformedTimestampError: If the string is not RFC3339
    """
    if not _RFC3339.match(value):
        raise MalformedTimestampError(value)

    iso_value = value[:-1] + '+00:00' if value.endswith('Z') else value

    try:
        return datetime.fromisoformat(iso_value)
    except ValueError as e:
        # Well-formed but out of range, e.g. month 13
        raise MalformedTimestampError(value) from e


def group_by_timestamp(response: MonitorResponse) -> Dict[str, Dict[str, FieldValue]]:
    """
    Collect every datum of every series of every metric under its timestamp.

    A later datum for the same metric and timestamp overwrites an earlier one.
    """
    fields_by_timestamp: Dict[str, Dict[str, FieldValue]] = {}

    for value in response.value:
        name = value.name.value

        for series in value.timeseries:
            for datum in series.data:
                slot = fields_by_timestamp.setdefault(datum.timestamp, {})
                slot[name] = datum.average

    return fields_by_timestamp


def bucketize(
    response: MonitorResponse,
    logger: Optional[logging.Logger] = None
) -> List[FieldSet]:
    """
    Reshape a metrics response into field sets, one per distinct timestamp.

    Field sets whose timestamp is not RFC3339 are dropped; the rest are
    returned unaffected. An empty response yields an empty list.

    Args:
        response: Decoded metrics payload
        logger: Optional logger for reporting dropped timestamps

    Returns:
        List[FieldSet]: Field sets in first-seen timestamp order
    """
    field_sets = []
    dropped = []

    for raw_timestamp, fields in group_by_timestamp(response).items():
        try:
            timestamp = parse_rfc3339(raw_timestamp)
        except MalformedTimestampError:
            dropped.append(raw_timestamp)
            continue

        field_sets.append(FieldSet(timestamp=raw_timestamp, time=timestamp, fields=fields))

    if dropped and logger is not None:
        logger.warning(
            f"Dropped {len(dropped)} sample(s) with invalid timestamps",
            extra={"dropped_timestamps": dropped}
        )

    return field_sets
