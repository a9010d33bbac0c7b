"""Tests for the Azure Monitor collector."""

from datetime import datetime, timezone
from unittest.mock import patch

import httpx
import pytest
from azure.core.exceptions import AzureError, ClientAuthenticationError

from azmon_collector.collectors.azure_monitor import MEASUREMENT, AzureMonitorCollector
from azmon_collector.config.models import AzureMonitorConfig
from azmon_collector.services.accumulator import MemoryAccumulator
from azmon_collector.utils.errors import (
    ConfigurationError,
    CredentialError,
    DecodeError,
    ProviderError,
    TransportError,
)

# Fixtures imported from conftest.py: azure_config, credential, make_transport, cpu_payload, logger


def make_collector(config, logger, credential, transport):
    collector = AzureMonitorCollector(config, logger, credential=credential, transport=transport)
    collector.init()
    return collector


@pytest.mark.asyncio
async def test_collect_single_datum(azure_config, logger, credential, make_transport, resource_id):
    """Test the reference single-datum response yields exactly one sample."""
    transport = make_transport(json_body={
        "value": [{
            "name": {"value": "Percentage CPU"},
            "timeseries": [{"data": [{"average": 42.5, "timeStamp": "2024-01-01T00:00:00Z"}]}]
        }]
    })
    collector = make_collector(azure_config, logger, credential, transport)
    acc = MemoryAccumulator()

    emitted = await collector.collect(acc)

    assert emitted == 1
    assert len(acc.metrics) == 1
    metric = acc.metrics[0]
    assert metric.measurement == MEASUREMENT == "azure_monitor"
    assert metric.fields == {"Percentage CPU": 42.5}
    assert metric.tags == {"resource_id": resource_id}
    assert metric.time == datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_request_shape(azure_config, logger, credential, make_transport, cpu_payload, resource_id):
    """Test one authorized GET against the templated metrics URL."""
    transport = make_transport(json_body=cpu_payload)
    collector = make_collector(azure_config, logger, credential, transport)

    await collector.collect(MemoryAccumulator())

    assert len(transport.requests) == 1
    request = transport.requests[0]
    assert request.method == "GET"
    assert str(request.url) == (
        f"https://management.azure.com{resource_id}"
        "/providers/microsoft.insights/metrics?api-version=2018-01-01"
    )
    assert request.headers["Authorization"] == "Bearer test-token"
    assert request.content == b""
    assert credential.scopes == [("https://management.azure.com/.default",)]


def test_url_normalizes_slashes(logger):
    config = AzureMonitorConfig(
        resource_id="subscriptions/s/resourceGroups/g/",
        management_endpoint="https://management.usgovcloudapi.net/",
        api_version="2023-10-01"
    )
    collector = AzureMonitorCollector(config, logger)

    assert collector.url == (
        "https://management.usgovcloudapi.net/subscriptions/s/resourceGroups/g"
        "/providers/microsoft.insights/metrics?api-version=2023-10-01"
    )
    assert collector.scope == "https://management.usgovcloudapi.net/.default"


def test_init_requires_resource_id(logger, make_transport):
    """Test empty resource_id fails before any credential or network use."""
    transport = make_transport()
    collector = AzureMonitorCollector(AzureMonitorConfig(), logger, transport=transport)

    with patch('azmon_collector.collectors.azure_monitor.DefaultAzureCredential') as mock_credential:
        with pytest.raises(ConfigurationError):
            collector.init()

        mock_credential.assert_not_called()

    assert transport.requests == []


def test_init_acquires_default_credential(azure_config, logger):
    collector = AzureMonitorCollector(azure_config, logger)

    with patch('azmon_collector.collectors.azure_monitor.DefaultAzureCredential') as mock_credential:
        collector.init()

        mock_credential.assert_called_once_with()


def test_init_credential_failure(azure_config, logger):
    collector = AzureMonitorCollector(azure_config, logger)

    with patch('azmon_collector.collectors.azure_monitor.DefaultAzureCredential') as mock_credential:
        mock_credential.side_effect = AzureError("no identity available")

        with pytest.raises(CredentialError) as exc_info:
            collector.init()

    assert "no identity available" in str(exc_info.value)


@pytest.mark.asyncio
async def test_collect_before_init(azure_config, logger, credential, make_transport):
    transport = make_transport()
    collector = AzureMonitorCollector(azure_config, logger, credential=credential, transport=transport)

    with pytest.raises(ConfigurationError):
        await collector.collect(MemoryAccumulator())

    assert transport.requests == []


@pytest.mark.asyncio
async def test_token_failure(azure_config, logger, make_credential, make_transport):
    """Test token errors abort the cycle before the request is sent."""
    credential = make_credential(error=ClientAuthenticationError("token expired"))
    transport = make_transport()
    collector = make_collector(azure_config, logger, credential, transport)
    acc = MemoryAccumulator()

    with pytest.raises(CredentialError):
        await collector.collect(acc)

    assert transport.requests == []
    assert acc.metrics == []


@pytest.mark.asyncio
async def test_provider_error(azure_config, logger, credential, make_transport):
    transport = make_transport(status_code=404, text='{"error":"not found"}')
    collector = make_collector(azure_config, logger, credential, transport)
    acc = MemoryAccumulator()

    with pytest.raises(ProviderError) as exc_info:
        await collector.collect(acc)

    assert exc_info.value.status_code == 404
    assert exc_info.value.body == '{"error":"not found"}'
    assert acc.metrics == []


@pytest.mark.asyncio
async def test_transport_error(azure_config, logger, credential, make_transport):
    transport = make_transport(error=httpx.ConnectError("connection refused"))
    collector = make_collector(azure_config, logger, credential, transport)
    acc = MemoryAccumulator()

    with pytest.raises(TransportError) as exc_info:
        await collector.collect(acc)

    assert "connection refused" in str(exc_info.value)
    assert acc.metrics == []


@pytest.mark.asyncio
async def test_timeout_is_transport_error(azure_config, logger, credential, make_transport):
    transport = make_transport(error=httpx.ReadTimeout("timed out"))
    collector = make_collector(azure_config, logger, credential, transport)

    with pytest.raises(TransportError):
        await collector.collect(MemoryAccumulator())


@pytest.mark.asyncio
async def test_decode_error(azure_config, logger, credential, make_transport):
    transport = make_transport(text="upstream proxy error")
    collector = make_collector(azure_config, logger, credential, transport)
    acc = MemoryAccumulator()

    with pytest.raises(DecodeError):
        await collector.collect(acc)

    assert acc.metrics == []


@pytest.mark.asyncio
async def test_malformed_timestamp_dropped(azure_config, logger, credential, make_transport):
    """Test a bad timestamp drops only its sample."""
    transport = make_transport(json_body={
        "value": [{
            "name": {"value": "Percentage CPU"},
            "timeseries": [{"data": [
                {"average": 1.0, "timeStamp": "not-a-date"},
                {"average": 2.0, "timeStamp": "2024-01-01T00:00:00Z"},
                {"average": 3.0, "timeStamp": "2024-01-01T00:01:00Z"},
            ]}]
        }]
    })
    collector = make_collector(azure_config, logger, credential, transport)
    acc = MemoryAccumulator()

    emitted = await collector.collect(acc)

    assert emitted == 2
    assert sorted(m.fields["Percentage CPU"] for m in acc.metrics) == [2.0, 3.0]


@pytest.mark.asyncio
async def test_empty_response_emits_nothing(azure_config, logger, credential, make_transport):
    transport = make_transport(json_body={"value": []})
    collector = make_collector(azure_config, logger, credential, transport)
    acc = MemoryAccumulator()

    emitted = await collector.collect(acc)

    assert emitted == 0
    assert acc.metrics == []


@pytest.mark.asyncio
async def test_multiple_metrics_merged_per_timestamp(azure_config, logger, credential, make_transport):
    transport = make_transport(json_body={
        "value": [
            {
                "name": {"value": "Percentage CPU"},
                "timeseries": [{"data": [
                    {"average": 10.0, "timeStamp": "2024-01-01T00:00:00Z"},
                    {"average": 11.0, "timeStamp": "2024-01-01T00:01:00Z"},
                ]}]
            },
            {
                "name": {"value": "Network In Total"},
                "timeseries": [{"data": [
                    {"average": 500.0, "timeStamp": "2024-01-01T00:00:00Z"},
                ]}]
            }
        ]
    })
    collector = make_collector(azure_config, logger, credential, transport)
    acc = MemoryAccumulator()

    await collector.collect(acc)

    by_time = {m.time.minute: m.fields for m in acc.metrics}
    assert by_time == {
        0: {"Percentage CPU": 10.0, "Network In Total": 500.0},
        1: {"Percentage CPU": 11.0},
    }


@pytest.mark.asyncio
async def test_cycles_are_independent(azure_config, logger, credential, make_transport, cpu_payload):
    """Test a failed cycle does not affect the next one."""
    responses = [
        httpx.Response(500, text="internal error"),
        httpx.Response(200, json=cpu_payload),
    ]
    transport = make_transport(handler=lambda request: responses.pop(0))
    collector = make_collector(azure_config, logger, credential, transport)
    acc = MemoryAccumulator()

    with pytest.raises(ProviderError):
        await collector.collect(acc)

    assert await collector.collect(acc) == 1
    assert len(acc.metrics) == 1


@pytest.mark.asyncio
async def test_null_datum_does_not_abort_cycle(azure_config, logger, credential, make_transport):
    """Test a null datum is dropped and the valid samples are still emitted."""
    transport = make_transport(json_body={
        "value": [{
            "name": {"value": "cpu"},
            "timeseries": [{"data": [
                None,
                {"average": 1, "timeStamp": "2024-01-01T00:00:00Z"},
            ]}]
        }]
    })
    collector = make_collector(azure_config, logger, credential, transport)
    acc = MemoryAccumulator()

    emitted = await collector.collect(acc)

    assert emitted == 1
    assert acc.metrics[0].fields == {"cpu": 1.0}
