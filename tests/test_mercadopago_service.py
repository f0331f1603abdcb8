from unittest.mock import MagicMock, patch

import pytest
import requests

from betel.core.exceptions import GatewayNotConfiguredError, PaymentGatewayError
from betel.core.mercadopago_service import MercadoPagoService


def _response(payload, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    resp.text = str(payload)
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(response=resp)
    return resp


@pytest.fixture
def service():
    return MercadoPagoService(access_token="TEST-123", base_url="https://api.mp.test/", timeout=5)


def test_get_payment_parses_authoritative_fields(service):
    payload = {
        "id": 1234567890,
        "status": "approved",
        "status_detail": "accredited",
        "transaction_amount": 1700,
        "transaction_details": {"net_received_amount": 1615.5},
        "external_reference": "VAB-ABC123",
    }
    with patch("betel.core.mercadopago_service.requests.request", return_value=_response(payload)) as req:
        payment = service.get_payment("1234567890")

    req.assert_called_once()
    method, url = req.call_args.args
    assert method == "GET"
    assert url == "https://api.mp.test/v1/payments/1234567890"
    assert req.call_args.kwargs["headers"]["Authorization"] == "Bearer TEST-123"
    assert req.call_args.kwargs["timeout"] == 5

    assert payment.id == "1234567890"
    assert payment.status == "approved"
    assert payment.transaction_amount == 1700
    assert payment.net_received_amount == 1615.5
    assert payment.external_reference == "VAB-ABC123"


def test_create_preference_returns_redirect(service):
    payload = {"id": "pref-99", "init_point": "https://mp/init", "sandbox_init_point": "https://mp/sandbox"}
    with patch("betel.core.mercadopago_service.requests.request", return_value=_response(payload)) as req:
        result = service.create_preference({"items": [], "external_reference": "VAB-ABC123"})

    assert req.call_args.args == ("POST", "https://api.mp.test/checkout/preferences")
    assert req.call_args.kwargs["json"]["external_reference"] == "VAB-ABC123"
    assert result.preference_id == "pref-99"
    assert result.init_point == "https://mp/init"
    assert result.sandbox_init_point == "https://mp/sandbox"


def test_missing_token_raises_before_any_request():
    service = MercadoPagoService(access_token="")
    with patch("betel.core.mercadopago_service.requests.request") as req:
        with pytest.raises(GatewayNotConfiguredError):
            service.get_payment("1")
    req.assert_not_called()


def test_http_error_becomes_gateway_error(service):
    with patch(
        "betel.core.mercadopago_service.requests.request",
        return_value=_response({"message": "Payment not found"}, status_code=404),
    ):
        with pytest.raises(PaymentGatewayError) as exc:
            service.get_payment("404")
    assert "404" in str(exc.value)


def test_network_error_becomes_gateway_error(service):
    with patch(
        "betel.core.mercadopago_service.requests.request",
        side_effect=requests.exceptions.Timeout("read timed out"),
    ):
        with pytest.raises(PaymentGatewayError):
            service.get_payment("1")


def test_incomplete_preference_response(service):
    with patch("betel.core.mercadopago_service.requests.request", return_value=_response({"id": "pref-1"})):
        with pytest.raises(PaymentGatewayError):
            service.create_preference({"items": []})
