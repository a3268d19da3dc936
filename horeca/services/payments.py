"""Payment providers behind a small protocol. Only the mock provider exists;
it activates subscriptions directly without talking to anyone."""

from __future__ import annotations

import time
from datetime import datetime, timezone, timedelta
from typing import Protocol
from urllib.parse import urlencode, urlsplit, urlunsplit, parse_qsl

from sqlalchemy.ext.asyncio import AsyncSession

from horeca.config import Settings
from horeca.db import crud


class PaymentError(Exception):
    pass


class PaymentProvider(Protocol):
    name: str

    async def create_checkout_session(
        self, db: AsyncSession, tenant_id: str, plan: str, success_url: str, cancel_url: str, user_id: str,
    ) -> str: ...

    async def create_portal_session(self, tenant_id: str, user_id: str, return_url: str) -> str: ...

    async def verify_webhook(self, raw_body: bytes, signature: str | None = None) -> dict: ...


def _with_params(url: str, **params: str) -> str:
    parts = urlsplit(url)
    query = dict(parse_qsl(parts.query))
    query.update(params)
    return urlunsplit(parts._replace(query=urlencode(query)))


class MockPaymentProvider:
    name = "mock"

    def __init__(self, settings: Settings):
        self._settings = settings

    def _guard(self) -> None:
        if self._settings.is_production and not self._settings.billing.allow_mock_in_prod:
            raise PaymentError("Mock payment provider is not allowed in production")

    async def create_checkout_session(
        self, db: AsyncSession, tenant_id: str, plan: str, success_url: str, cancel_url: str, user_id: str,
    ) -> str:
        self._guard()
        await crud.upsert_subscription(
            db, tenant_id,
            plan=plan,
            status="ACTIVE",
            provider=self.name,
            current_period_end=datetime.now(timezone.utc) + timedelta(days=self._settings.billing.period_days),
        )
        return _with_params(success_url, mock="1", plan=plan)

    async def create_portal_session(self, tenant_id: str, user_id: str, return_url: str) -> str:
        self._guard()
        return return_url or "/billing?portal=mock"

    async def verify_webhook(self, raw_body: bytes, signature: str | None = None) -> dict:
        return {
            "type": "payment.succeeded",
            "data": {
                "id": f"mock_payment_{int(time.time() * 1000)}",
                "amount": 1000,
                "currency": "rub",
                "status": "succeeded",
            },
        }


def get_payment_provider(settings: Settings) -> PaymentProvider:
    provider = settings.billing.provider
    if provider == "mock":
        return MockPaymentProvider(settings)
    if provider in ("stripe", "yookassa"):
        raise PaymentError(f"{provider} provider is not implemented")
    raise PaymentError(f"Unknown payment provider: {provider}")
