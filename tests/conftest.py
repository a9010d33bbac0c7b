"""Shared pytest configuration and fixtures."""

import time

import httpx
import pytest
from azure.core.credentials import AccessToken

from azmon_collector.config.models import AzureMonitorConfig
from azmon_collector.utils.logger import setup_logger


RESOURCE_ID = (
    "/subscriptions/00000000-0000-0000-0000-000000000000/resourceGroups/rg-test"
    "/providers/Microsoft.Compute/virtualMachines/vm-test"
)


class FakeCredential:
    """Stands in for DefaultAzureCredential; records requested scopes."""

    def __init__(self, token="test-token", error=None):
        self.token = token
        self.error = error
        self.scopes = []

    def get_token(self, *scopes, **kwargs):
        self.scopes.append(scopes)
        if self.error is not None:
            raise self.error
        return AccessToken(self.token, int(time.time()) + 3600)


@pytest.fixture
def logger():
    """Create logger for tests."""
    return setup_logger("test")


@pytest.fixture
def resource_id():
    return RESOURCE_ID


@pytest.fixture
def azure_config():
    """Settings for a single monitored VM."""
    return AzureMonitorConfig(resource_id=RESOURCE_ID)


@pytest.fixture
def credential():
    return FakeCredential()


@pytest.fixture
def make_credential():
    """Factory for credentials with a custom token or failure."""
    return FakeCredential


@pytest.fixture
def make_transport():
    """
    Factory for httpx mock transports.

    The returned transport exposes the requests it received as `.requests`.
    """
    def factory(status_code=200, json_body=None, text="", error=None, handler=None):
        requests = []

        def handle(request):
            requests.append(request)
            if error is not None:
                raise error
            if handler is not None:
                return handler(request)
            if json_body is not None:
                return httpx.Response(status_code, json=json_body)
            return httpx.Response(status_code, text=text)

        transport = httpx.MockTransport(handle)
        transport.requests = requests
        return transport

    return factory


@pytest.fixture
def cpu_payload():
    """Single-metric payload with one datum, as returned for a VM."""
    return {
        "cost": 0,
        "timespan": "2024-01-01T00:00:00Z/2024-01-01T01:00:00Z",
        "interval": "PT1M",
        "namespace": "Microsoft.Compute/virtualMachines",
        "resourceregion": "westeurope",
        "value": [{
            "id": RESOURCE_ID + "/providers/Microsoft.Insights/metrics/Percentage CPU",
            "type": "Microsoft.Insights/metrics",
            "name": {"value": "Percentage CPU", "localizedValue": "Percentage CPU"},
            "displayDescription": "The percentage of allocated compute units in use",
            "unit": "Percent",
            "errorCode": "Success",
            "timeseries": [{
                "metadatavalues": [],
                "data": [{"timeStamp": "2024-01-01T00:00:00Z", "average": 42.5}]
            }]
        }]
    }
