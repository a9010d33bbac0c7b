"""Pydantic configuration models for the collector agent."""

from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional


class AzureMonitorConfig(BaseModel):
    """Configuration for one monitored Azure resource."""
    # Fully-qualified resource path, checked by the collector's init()
    resource_id: str = ""
    management_endpoint: str = "https://management.azure.com"
    metrics_provider: str = "microsoft.insights"
    api_version: str = "2018-01-01"
    timeout_seconds: float = Field(default=30.0, gt=0)

    @field_validator('management_endpoint')
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Validate endpoint URL format."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError('management_endpoint must start with http:// or https://')
        return v.rstrip('/')


class AgentConfig(BaseModel):
    """Agent-wide scheduling and output settings."""
    interval_seconds: int = Field(default=60, ge=1)
    log_level: str = "INFO"
    metrics_file: Optional[str] = None  # stdout when unset

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Accept standard logging level names only."""
        level = v.upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f'Unknown log level: {v}')
        return level


class CollectorSystemConfig(BaseModel):
    """Root configuration model for the agent."""
    agent: AgentConfig = Field(default_factory=AgentConfig)
    # Input name -> list of per-instance settings, validated by the registry
    inputs: Dict[str, List[Dict[str, Any]]] = Field(default_factory=dict)
