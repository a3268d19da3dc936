from __future__ import annotations

import datetime as dt
from typing import Literal

from horeca.schemas.common import CamelModel


class CheckoutRequest(CamelModel):
    plan: Literal["BASIC", "PRO"]


class SubscriptionRead(CamelModel):
    plan: str
    status: str
    provider: str
    current_period_end: dt.datetime | None = None
