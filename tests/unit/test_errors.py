"""Unit tests for the webhook error taxonomy."""

import pytest

from paygate.models.errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    ErrorCode,
    FulfillmentError,
    PayloadTooLargeError,
    WebhookError,
)


class TestWebhookError:
    def test_detail_defaults_to_none(self):
        exc = PayloadTooLargeError()

        assert exc.detail is None
        assert str(exc) == ERROR_MESSAGES[ErrorCode.PAYLOAD_TOO_LARGE]

    def test_detail_is_kept_for_logs(self):
        exc = FulfillmentError("entitlements table throttled")

        assert exc.detail == "entitlements table throttled"
        assert str(exc) == "entitlements table throttled"
        assert exc.message == ERROR_MESSAGES[ErrorCode.FULFILLMENT_FAILED]

    @pytest.mark.parametrize("code", list(ErrorCode))
    def test_every_code_has_message_and_recovery(self, code):
        assert ERROR_MESSAGES[code]
        assert ERROR_RECOVERY[code]

    def test_base_error_is_internal(self):
        assert WebhookError().code is ErrorCode.INTERNAL
