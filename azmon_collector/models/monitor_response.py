"""Pydantic models for the Azure Monitor metrics payload."""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def nulls_to_empty(items: Any) -> Any:
    """Replace null list elements with empty objects so they decode to defaults."""
    if isinstance(items, list):
        return [{} if item is None else item for item in items]
    return items


class ProviderModel(BaseModel):
    """
    Base for payload models.

    Key casing is provider-defined, so incoming keys are folded to lower
    case before validation; field aliases are therefore lower case too.
    JSON nulls are dropped so that field defaults apply, and null list
    elements decode as empty objects.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def fold_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                str(key).lower(): value
                for key, value in data.items()
                if value is not None
            }
        return data


class MetricName(ProviderModel):
    """Machine-readable key and display label of one metric."""
    value: str = ""
    localized_value: str = Field(default="", alias="localizedvalue")


class TimeSeriesPoint(ProviderModel):
    """One observed value."""
    average: float = 0.0  # Absent averages decode as zero
    timestamp: str = ""


class TimeSeries(ProviderModel):
    """Data points for one combination of dimension values."""
    data: List[TimeSeriesPoint] = Field(default_factory=list)
    metadata_values: List[Dict[str, Any]] = Field(default_factory=list, alias="metadatavalues")

    @field_validator('data', 'metadata_values', mode='before')
    @classmethod
    def null_items(cls, v: Any) -> Any:
        return nulls_to_empty(v)


class MetricValue(ProviderModel):
    """Full response for a single metric."""
    id: str = ""
    name: MetricName = Field(default_factory=MetricName)
    unit: str = ""
    type: str = ""
    error_code: str = Field(default="", alias="errorcode")
    display_description: str = Field(default="", alias="displaydescription")
    timeseries: List[TimeSeries] = Field(default_factory=list)

    @field_validator('timeseries', mode='before')
    @classmethod
    def null_items(cls, v: Any) -> Any:
        return nulls_to_empty(v)


class MonitorResponse(ProviderModel):
    """Top-level metrics payload for one resource and one request window."""
    cost: float = 0.0
    interval: str = ""
    namespace: str = ""
    resource_region: str = Field(default="", alias="resourceregion")
    timespan: str = ""
    value: List[MetricValue] = Field(default_factory=list)

    @field_validator('value', mode='before')
    @classmethod
    def null_items(cls, v: Any) -> Any:
        return nulls_to_empty(v)
