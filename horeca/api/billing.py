"""Billing API: subscription status and the (mock) payment provider flows."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.config import Settings
from horeca.db import crud
from horeca.db.engine import get_db
from horeca.dependencies import get_settings_dep, require_auth, require_permission
from horeca.schemas import CheckoutRequest, SubscriptionRead
from horeca.services.auth import AuthContext
from horeca.services.payments import PaymentError, get_payment_provider
from horeca.services.scope import scope_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/billing", tags=["billing"])

_billing_dep = require_permission("special", "canManageBilling")


def _provider(settings: Settings):
    try:
        return get_payment_provider(settings)
    except PaymentError as e:
        raise HTTPException(400, str(e))


@router.get("/subscription")
async def get_subscription(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    scope = scope_for(auth)
    sub = await crud.get_subscription(db, scope.tenant_id)
    if not sub:
        return {"subscription": None}
    return {"subscription": SubscriptionRead.model_validate(sub).model_dump(by_alias=True, mode="json")}


@router.post("/checkout")
async def create_checkout(
    body: CheckoutRequest,
    auth: AuthContext = Depends(_billing_dep),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
):
    scope = scope_for(auth)
    provider = _provider(settings)
    base = settings.billing.public_url.rstrip("/")
    try:
        url = await provider.create_checkout_session(
            db, scope.tenant_id, body.plan,
            success_url=f"{base}/billing?success=true",
            cancel_url=f"{base}/billing?canceled=true",
            user_id=auth.user_id,
        )
    except PaymentError as e:
        raise HTTPException(400, str(e))
    logger.info(f"Checkout for tenant {scope.tenant_id}, plan {body.plan}")
    return {"url": url}


@router.post("/portal")
async def create_portal(
    auth: AuthContext = Depends(require_auth),
    settings: Settings = Depends(get_settings_dep),
):
    scope = scope_for(auth)
    provider = _provider(settings)
    try:
        url = await provider.create_portal_session(
            scope.tenant_id, auth.user_id, return_url=f"{settings.billing.public_url.rstrip('/')}/billing",
        )
    except PaymentError as e:
        raise HTTPException(400, str(e))
    return {"url": url}


@router.post("/webhook")
async def webhook(
    request: Request,
    settings: Settings = Depends(get_settings_dep),
):
    raw = await request.body()
    signature = request.headers.get("stripe-signature") or request.headers.get("x-yookassa-signature")
    provider = _provider(settings)
    try:
        event = await provider.verify_webhook(raw, signature)
    except PaymentError as e:
        raise HTTPException(400, str(e))
    logger.info(f"Webhook event received: {event.get('type')}")
    return {"ok": True}
