"""
Subscription plan API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from app.api.deps import get_store
from app.application.subscription import SubscriptionResolver, SubscriptionUpdateError
from app.infrastructure.store.client import StoreClient


router = APIRouter(prefix="/api/v1/subscription", tags=["subscription"])


class UpdateSubscriptionRequest(BaseModel):
    plan: str | None = None
    status: str = "active"
    current_period_start: str | None = None
    current_period_end: str | None = None
    payment_provider: str | None = None
    amount: float | None = None
    currency: str | None = None


@router.get("/{user_id}")
def get_subscription(user_id: str, store: StoreClient = Depends(get_store)):
    """Never fails: unknown / forbidden lookups read as the free plan."""
    return SubscriptionResolver(store).get_user_subscription(user_id).to_dict()


@router.put("/{user_id}")
def update_subscription(
    user_id: str,
    req: UpdateSubscriptionRequest,
    store: StoreClient = Depends(get_store),
):
    data = req.model_dump(exclude_none=True)
    try:
        ok = SubscriptionResolver(store).update_subscription(user_id, data)
    except SubscriptionUpdateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": ok}
