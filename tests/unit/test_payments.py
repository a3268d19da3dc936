from urllib.parse import parse_qs, urlsplit

import pytest

from horeca.config import BillingConfig, Settings
from horeca.db import crud
from horeca.services.payments import MockPaymentProvider, PaymentError, get_payment_provider
from horeca.services.tenant_bootstrap import create_tenant


def _settings(**billing) -> Settings:
    env = billing.pop("env", "development")
    return Settings(env=env, billing=BillingConfig(**billing))


def test_provider_selection():
    assert isinstance(get_payment_provider(_settings()), MockPaymentProvider)
    with pytest.raises(PaymentError, match="not implemented"):
        get_payment_provider(_settings(provider="stripe"))
    with pytest.raises(PaymentError, match="Unknown"):
        get_payment_provider(_settings(provider="paypal"))


async def test_mock_checkout_activates_subscription(db):
    tenant, owner = await create_tenant(db, "Paying", "o@pay.com", "secret123")
    provider = get_payment_provider(_settings(period_days=10))

    url = await provider.create_checkout_session(
        db, tenant.id, "PRO", "http://app/billing?tab=plan", "http://app/billing", owner.id,
    )
    query = parse_qs(urlsplit(url).query)
    assert query == {"tab": ["plan"], "mock": ["1"], "plan": ["PRO"]}

    sub = await crud.get_subscription(db, tenant.id)
    assert sub.plan == "PRO"
    assert sub.status == "ACTIVE"
    assert sub.provider == "mock"
    assert sub.current_period_end is not None


async def test_mock_blocked_in_production(db):
    provider = get_payment_provider(_settings(env="production"))
    with pytest.raises(PaymentError):
        await provider.create_checkout_session(db, "t", "PRO", "http://x", "http://x", "u")
    with pytest.raises(PaymentError):
        await provider.create_portal_session("t", "u", "http://x")

    allowed = get_payment_provider(_settings(env="production", allow_mock_in_prod=True))
    assert await allowed.create_portal_session("t", "u", "") == "/billing?portal=mock"


async def test_mock_webhook_event():
    event = await MockPaymentProvider(_settings()).verify_webhook(b"{}")
    assert event["type"] == "payment.succeeded"
    assert event["data"]["status"] == "succeeded"
