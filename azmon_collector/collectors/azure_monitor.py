"""Azure resource metrics collector via the Azure Monitor REST API."""

import asyncio
import logging
from typing import Optional

import httpx
from azure.core.credentials import TokenCredential
from azure.core.exceptions import AzureError
from azure.identity import DefaultAzureCredential

from ..config.models import AzureMonitorConfig
from ..models.monitor_response import MonitorResponse
from ..services.accumulator import Accumulator
from ..services.bucketizer import bucketize
from ..services.response_parser import parse_response
from ..utils.errors import ConfigurationError, CredentialError, TransportError
from .base import BaseCollector


MEASUREMENT = "azure_monitor"


class AzureMonitorCollector(BaseCollector):
    """Collector for the metrics of one Azure resource."""

    description = "Gather Azure monitor metrics"

    sample_config = """
# The Azure Resource ID for which metrics will be gathered
#   ex: resource_id: "/subscriptions/<subscription_id>/resourceGroups/<resource_group>/providers/Microsoft.Storage/storageAccounts/<storage_account>"
- resource_id: "${AZURE_RESOURCE_ID}"
  # management_endpoint: "https://management.azure.com"
  # metrics_provider: "microsoft.insights"
  # api_version: "2018-01-01"
  # timeout_seconds: 30
"""

    def __init__(
        self,
        config: AzureMonitorConfig,
        logger: logging.Logger,
        credential: Optional[TokenCredential] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize Azure Monitor collector.

        Args:
            config: Settings for the monitored resource
            logger: Logger instance
            credential: Token credential to use instead of DefaultAzureCredential
            transport: httpx transport override, mainly for tests
        """
        super().__init__(config, logger)
        self._credential = credential
        self._transport = transport
        self._initialized = False

    @property
    def url(self) -> str:
        """Metrics endpoint for the configured resource."""
        return (
            f"{self.config.management_endpoint.rstrip('/')}/"
            f"{self.config.resource_id.strip('/')}/providers/"
            f"{self.config.metrics_provider}/metrics?api-version={self.config.api_version}"
        )

    @property
    def scope(self) -> str:
        """OAuth scope for tokens accepted by the management endpoint."""
        return f"{self.config.management_endpoint.rstrip('/')}/.default"

    def init(self) -> None:
        """
        Check settings and acquire the credential.

        Raises:
            ConfigurationError: If resource_id is empty
            CredentialError: If the identity provider cannot be set up
        """
        if not self.config.resource_id:
            raise ConfigurationError("resource_id must be configured")

        if self._credential is None:
            try:
                self._credential = DefaultAzureCredential()
            except (AzureError, ValueError) as e:
                raise CredentialError(f"Failed to acquire Azure credential: {e}") from e

        self._initialized = True
        self.logger.info(f"Initialized for resource {self.config.resource_id}")

    async def collect(self, acc: Accumulator) -> int:
        """
        Poll the metrics endpoint once and emit one sample per timestamp.

        Args:
            acc: Downstream accumulator

        Returns:
            int: Number of samples emitted

        Raises:
            ConfigurationError: If init() has not been called
            CredentialError: If no token could be obtained
            TransportError: If the request or body read failed
            ProviderError: If the API returned a non-2xx status
            DecodeError: If the payload could not be decoded
        """
        if not self._initialized:
            raise ConfigurationError("Collector used before init()")

        response = await self._fetch()

        # Bucketize fully before emitting so a failure never leaves partial data
        field_sets = bucketize(response, self.logger)

        tags = {"resource_id": self.config.resource_id}
        for field_set in field_sets:
            acc.add_fields(MEASUREMENT, dict(field_set.fields), dict(tags), field_set.time)

        self.logger.info(
            f"Emitted {len(field_sets)} sample(s) for {len(response.value)} metric(s)",
            extra={"resource_id": self.config.resource_id}
        )
        return len(field_sets)

    async def _fetch(self) -> MonitorResponse:
        """
        Send the metrics request and parse the reply.

        Returns:
            MonitorResponse: Decoded payload
        """
        headers = {"Authorization": await self._authorization()}

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                transport=self._transport
            ) as client:
                request = client.build_request("GET", self.url, headers=headers)
                response = await client.send(request, stream=True)
                return await parse_response(response)

        except httpx.HTTPError as e:
            raise TransportError(f"Azure monitor request failed: {e}") from e

    async def _authorization(self) -> str:
        """
        Build the Authorization header value.

        Returns:
            str: Bearer token header value
        """
        # azure-identity's sync credentials block, run them in the thread pool
        loop = asyncio.get_event_loop()
        try:
            token = await loop.run_in_executor(None, self._credential.get_token, self.scope)
        except AzureError as e:
            raise CredentialError(f"Failed to obtain Azure access token: {e}") from e

        return f"Bearer {token.token}"
