"""Receiver configuration.

Values come from environment variables; the signing secret may instead live
in SSM Parameter Store under ``/paygate/{environment}/stripe/webhook_secret``.
"""

import logging
import os
from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from paygate.models.errors import ConfigurationError
from paygate.services.ssm_service import SSMService, SSMServiceError, get_ssm_service

logger = logging.getLogger(__name__)

Backend = Literal["dynamodb", "memory"]

# Environment variable -> settings field
ENV_FIELDS: dict[str, str] = {
    "ENVIRONMENT": "environment",
    "STRIPE_WEBHOOK_SIGNING_SECRET": "webhook_secret",
    "WEBHOOK_SECRET_SSM_PARAMETER": "webhook_secret_parameter",
    "STRIPE_PAYMENT_LINK_ID": "expected_product_reference",
    "MINIMUM_AMOUNT": "minimum_amount",
    "SIGNATURE_TOLERANCE_SECONDS": "tolerance_seconds",
    "IGNORED_STATUS_CODE": "ignored_status_code",
    "MAX_BODY_BYTES": "max_body_bytes",
    "LEDGER_BACKEND": "ledger_backend",
    "ENTITLEMENT_BACKEND": "entitlement_backend",
    "DYNAMODB_TABLE_PREFIX": "table_prefix",
    "LOG_LEVEL": "log_level",
}


class WebhookSettings(BaseModel):
    """Configuration consumed by the webhook receiver."""

    model_config = ConfigDict(frozen=True)

    environment: str = Field(default="dev")
    webhook_secret: SecretStr | None = Field(
        default=None,
        description="Shared signing secret (whsec_xxx); SSM is used when unset",
    )
    webhook_secret_parameter: str | None = Field(default=None)
    expected_product_reference: str | None = Field(
        default=None,
        description="Payment link the checkout must come from; deliveries fail while unset",
    )
    minimum_amount: int = Field(default=50, ge=0, description="Minor currency units")
    tolerance_seconds: int = Field(default=300, gt=0)
    ignored_status_code: int = Field(default=200)
    max_body_bytes: int = Field(default=1_048_576, gt=0)
    ledger_backend: Backend = "dynamodb"
    entitlement_backend: Backend = "dynamodb"
    table_prefix: str | None = Field(default=None)
    log_level: str = Field(default="INFO")

    @field_validator("ignored_status_code")
    @classmethod
    def _check_ignored_status(cls, value: int) -> int:
        if not (200 <= value < 300 or 400 <= value < 500):
            raise ValueError("must be a 2xx or 4xx status code")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level

    @property
    def secret_parameter_name(self) -> str:
        return self.webhook_secret_parameter or f"/paygate/{self.environment}/stripe/webhook_secret"

    @property
    def dynamodb_table_prefix(self) -> str:
        return self.table_prefix or f"paygate-{self.environment}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "WebhookSettings":
        """Build settings from environment variables.

        Empty variables count as unset.

        Raises:
            ConfigurationError: If a value fails validation.
        """
        environ = os.environ if environ is None else environ
        values = {
            field: environ[var]
            for var, field in ENV_FIELDS.items()
            if environ.get(var)
        }
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
            raise ConfigurationError(f"Invalid configuration: {fields}") from e


def resolve_webhook_secret(
    settings: WebhookSettings,
    ssm: SSMService | None = None,
) -> str:
    """Return the signing secret from settings, falling back to SSM.

    Raises:
        ConfigurationError: If no secret is available.
    """
    if settings.webhook_secret is not None:
        return settings.webhook_secret.get_secret_value()

    ssm = ssm or get_ssm_service()
    try:
        return ssm.get_parameter(settings.secret_parameter_name)
    except SSMServiceError as e:
        logger.error("Webhook signing secret unavailable: %s", e)
        raise ConfigurationError("Webhook signing secret unavailable") from e


def require_product_reference(settings: WebhookSettings) -> str:
    """Return the payment link checkouts must come from.

    Raises:
        ConfigurationError: If STRIPE_PAYMENT_LINK_ID is not set.
    """
    if not settings.expected_product_reference:
        logger.error("STRIPE_PAYMENT_LINK_ID is not set; refusing to fulfill checkouts")
        raise ConfigurationError("STRIPE_PAYMENT_LINK_ID is not set")
    return settings.expected_product_reference
