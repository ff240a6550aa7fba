"""
Subscription plan resolver.

Lookup policy (evaluated in order):
  1. no authenticated caller            -> free/inactive
  2. admin caller                       -> privileged get_profile_for_admin
  3. own user or admin (fallback)       -> direct profiles read
  4. anything else / nothing found      -> free/inactive

Failures never propagate: the public get_user_subscription() always returns
a Subscription. resolve() additionally reports where the answer came from
and why it fell back, so tests and logs can tell "free" from "failed".
"""
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone

from app.auth import is_super_admin
from app.config import get_settings
from app.infrastructure.store.client import StoreClient

logger = logging.getLogger(__name__)

PLANS = ("free", "basic", "premium", "enterprise", "enterprise-annual")
STATUSES = ("active", "inactive", "cancelled")

SOURCE_ADMIN_RPC = "admin_rpc"
SOURCE_DIRECT = "direct"
SOURCE_DEFAULT = "default"

REASON_UNAUTHENTICATED = "unauthenticated"
REASON_UNAUTHORIZED = "unauthorized"
REASON_NOT_FOUND = "not_found"
REASON_LOOKUP_FAILED = "lookup_failed"


class SubscriptionUpdateError(ValueError):
    pass


@dataclass(frozen=True)
class Subscription:
    plan: str = "free"
    status: str = "inactive"
    current_period_start: str | None = None
    current_period_end: str | None = None
    payment_provider: str | None = None
    amount: float | None = None
    currency: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SubscriptionLookup:
    subscription: Subscription
    source: str
    reason: str | None = None


FREE_DEFAULT = Subscription()


def subscription_from_profile(row: dict) -> Subscription:
    """Single defaulting boundary for profiles.subscription_data."""
    data = row.get("subscription_data")
    if not isinstance(data, dict):
        data = {}
    plan = row.get("subscription")
    if plan not in PLANS:
        plan = "free"
    status = data.get("status")
    if status not in STATUSES:
        status = "inactive"
    return Subscription(
        plan=plan,
        status=status,
        current_period_start=data.get("current_period_start"),
        current_period_end=data.get("current_period_end"),
        payment_provider=data.get("payment_provider"),
        amount=data.get("amount"),
        currency=data.get("currency") or get_settings().DEFAULT_CURRENCY,
    )


class SubscriptionResolver:
    def __init__(self, store: StoreClient):
        self.store = store

    def resolve(self, target_user_id: str) -> SubscriptionLookup:
        caller = self.store.caller
        if caller is None:
            logger.warning("Subscription lookup without an authenticated caller")
            return SubscriptionLookup(FREE_DEFAULT, SOURCE_DEFAULT, REASON_UNAUTHENTICATED)

        is_own_user = caller.id == target_user_id
        is_admin = is_super_admin(caller)
        failed = False

        if is_admin:
            res = self.store.rpc("get_profile_for_admin", {"target_user_id": target_user_id})
            if res.error is None and res.data:
                return SubscriptionLookup(subscription_from_profile(res.data[0]), SOURCE_ADMIN_RPC)
            if res.error is not None:
                failed = True
                logger.error("Admin profile lookup failed for %s: %s", target_user_id, res.error.message)
            else:
                logger.info("Admin profile lookup returned nothing for %s, trying direct read", target_user_id)

        if is_own_user or is_admin:
            res = (
                self.store.table("profiles")
                .select("subscription, subscription_data")
                .eq("id", target_user_id)
                .single()
                .execute()
            )
            if res.error is None and res.data:
                return SubscriptionLookup(subscription_from_profile(res.data), SOURCE_DIRECT)
            if res.error is not None and res.error.code != "not_found":
                failed = True
                logger.error("Direct profile lookup failed for %s: %s", target_user_id, res.error.message)

        if not is_own_user and not is_admin:
            logger.info("Caller %s not authorized for %s, returning free plan", caller.id, target_user_id)
            return SubscriptionLookup(FREE_DEFAULT, SOURCE_DEFAULT, REASON_UNAUTHORIZED)

        reason = REASON_LOOKUP_FAILED if failed else REASON_NOT_FOUND
        logger.info("Returning free plan for %s as fallback (%s)", target_user_id, reason)
        return SubscriptionLookup(FREE_DEFAULT, SOURCE_DEFAULT, reason)

    def get_user_subscription(self, target_user_id: str) -> Subscription:
        return self.resolve(target_user_id).subscription

    def update_subscription(self, target_user_id: str, data: dict) -> bool:
        caller = self.store.caller
        if caller is None:
            logger.error("Subscription update without an authenticated caller")
            return False

        is_own_user = caller.id == target_user_id
        is_admin = is_super_admin(caller)
        if not is_own_user and not is_admin:
            logger.error("Caller %s not authorized to update subscription of %s", caller.id, target_user_id)
            return False

        plan = data.get("plan")
        if plan is not None and plan not in PLANS:
            raise SubscriptionUpdateError(f"Invalid plan: {plan}")
        status = data.get("status")
        if status is not None and status not in STATUSES:
            raise SubscriptionUpdateError(f"Invalid status: {status}")

        # absent keys are left untouched
        patch = {"subscription_data": data}
        if plan is not None:
            patch["subscription"] = plan

        if is_admin:
            res = self.store.rpc("admin_update_profile", {
                "target_user_id": target_user_id,
                "update_data": patch,
            })
            if res.error is None:
                logger.info("Subscription of %s updated via admin procedure", target_user_id)
                return True
            logger.error("Admin subscription update failed for %s: %s", target_user_id, res.error.message)

        res = (
            self.store.table("profiles")
            .update({**patch, "updated_at": datetime.now(timezone.utc)})
            .eq("id", target_user_id)
            .execute()
        )
        if res.error is None and res.data:
            logger.info("Subscription of %s updated via direct write", target_user_id)
            return True
        logger.error("Direct subscription update failed for %s: %s", target_user_id,
                     res.error.message if res.error else "no matching row")
        return False
