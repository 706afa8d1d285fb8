"""Discovery engine configuration.

Environment Variables:
    KUBE_DISCOVERY_MODE: Exposure type to resolve (default: "LoadBalancer")
    KUBE_API_SERVER: Control plane URL (default: in-cluster config, then kubeconfig)
    KUBE_DISCOVERY_LB_PROTOCOL: Protocol for load-balancer URLs (default: "http")
    KUBE_DISCOVERY_EXTERNAL_NAME_PROTOCOL: Protocol for external-name URLs (default: "http")
    KUBE_DISCOVERY_REQUEST_TIMEOUT: Per-request timeout in seconds (default: 30)
    KUBE_DISCOVERY_MAX_ATTEMPTS: Attempts per cluster query (default: 3)
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from kube_discovery.models import ExposureType

logger = logging.getLogger(__name__)


class DiscoveryConfig(BaseModel):
    """Configuration for a ServiceDiscovery engine.

    The exposure type mode is fixed at engine construction: one engine
    resolves exactly one kind of exposure.
    """

    model_config = ConfigDict(frozen=True)

    exposure_type_mode: ExposureType = Field(
        ExposureType.LOAD_BALANCER, description="Exposure type resolved by the engine"
    )
    cluster_endpoint: Optional[str] = Field(None, description="Kubernetes API server URL")
    default_protocol_for_load_balancer: str = Field("http", min_length=1)
    default_protocol_for_external_name: str = Field("http", min_length=1)
    request_timeout: float = Field(30.0, gt=0, description="Per-request timeout in seconds")
    max_attempts: int = Field(3, ge=1, description="Attempts per cluster query")

    @field_validator("exposure_type_mode", mode="before")
    @classmethod
    def parse_mode(cls, v):
        """Accept mode strings in any case, e.g. "nodeport" or "NODE_PORT"."""
        if isinstance(v, str) and not isinstance(v, ExposureType):
            return ExposureType.parse(v)
        return v

    @classmethod
    def from_env(cls, **overrides) -> "DiscoveryConfig":
        """Build configuration from environment variables and a .env file.

        Invalid values are logged and replaced by their defaults. Keyword
        arguments take precedence over the environment.

        Example:
            >>> config = DiscoveryConfig.from_env(exposure_type_mode="NodePort")
        """
        load_dotenv()
        values = {}

        mode_str = os.getenv("KUBE_DISCOVERY_MODE")
        if mode_str:
            try:
                values["exposure_type_mode"] = ExposureType.parse(mode_str)
            except ValueError:
                logger.warning(
                    f"Invalid KUBE_DISCOVERY_MODE '{mode_str}', defaulting to "
                    f"'{ExposureType.LOAD_BALANCER.value}'"
                )

        endpoint = os.getenv("KUBE_API_SERVER")
        if endpoint:
            values["cluster_endpoint"] = endpoint

        for env_key, field_name in (
            ("KUBE_DISCOVERY_LB_PROTOCOL", "default_protocol_for_load_balancer"),
            ("KUBE_DISCOVERY_EXTERNAL_NAME_PROTOCOL", "default_protocol_for_external_name"),
        ):
            raw = os.getenv(env_key)
            if raw is None:
                continue
            protocol = raw.strip()
            if not protocol:
                logger.warning(f"Invalid value in {env_key}: {raw!r}")
                continue
            values[field_name] = protocol

        for env_key, field_name, convert in (
            ("KUBE_DISCOVERY_REQUEST_TIMEOUT", "request_timeout", float),
            ("KUBE_DISCOVERY_MAX_ATTEMPTS", "max_attempts", int),
        ):
            raw = os.getenv(env_key)
            if not raw:
                continue
            try:
                number = convert(raw)
            except ValueError:
                logger.warning(f"Invalid value in {env_key}: {raw}")
                continue
            if number <= 0:
                logger.warning(f"Invalid value in {env_key}: {raw}")
                continue
            values[field_name] = number

        values.update(overrides)
        config = cls(**values)
        logger.info(
            f"DiscoveryConfig loaded: mode={config.exposure_type_mode.value}, "
            f"endpoint={config.cluster_endpoint or 'auto'}"
        )
        return config
