"""Signing secret lookup in AWS SSM Parameter Store.

Values are cached per process: the secret is needed on every delivery and
rotates rarely. Call ``clear_cache()`` (or restart) after a rotation.
"""

import logging
from functools import lru_cache
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

_ERROR_HINTS = {
    "ParameterNotFound": "not found",
    "AccessDeniedException": "access denied (needs ssm:GetParameter and kms:Decrypt)",
}


class SSMServiceError(Exception):
    """A parameter could not be read."""


class SSMService:
    """Reads SecureString parameters with decryption."""

    def __init__(self, client: Any | None = None) -> None:
        self._client = client or boto3.client("ssm")
        self._cache: dict[str, str] = {}

    def get_parameter(self, name: str, *, use_cache: bool = True) -> str:
        """Return the decrypted value of parameter ``name``.

        Raises:
            SSMServiceError: The parameter is missing, unreadable, or SSM failed.
        """
        if use_cache and name in self._cache:
            return self._cache[name]

        logger.info("Reading SSM parameter %s", name)
        try:
            response = self._client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            hint = _ERROR_HINTS.get(code, code)
            raise SSMServiceError(f"SSM parameter {name}: {hint}") from e
        except BotoCoreError as e:
            raise SSMServiceError(f"SSM parameter {name}: {e}") from e

        value: str = response["Parameter"]["Value"]
        self._cache[name] = value
        return value

    def clear_cache(self) -> None:
        self._cache.clear()


@lru_cache(maxsize=1)
def get_ssm_service() -> SSMService:
    return SSMService()
