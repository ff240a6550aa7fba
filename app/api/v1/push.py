"""
Web Push subscription API endpoints.

Registering a device subscription is the server-side "permission granted".
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.application.notifications import NotificationPayload, NotificationService
from app.infrastructure.db.models import PushSubscription, User

router = APIRouter(prefix="/api/push", tags=["push"])


class PushKeys(BaseModel):
    p256dh: str
    auth: str


class SubscribeRequest(BaseModel):
    endpoint: str
    keys: PushKeys


@router.post("/subscribe")
def subscribe(body: SubscribeRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    existing = db.query(PushSubscription).filter(
        PushSubscription.endpoint == body.endpoint
    ).first()

    if existing:
        existing.user_id = user.id
        existing.p256dh = body.keys.p256dh
        existing.auth = body.keys.auth
    else:
        db.add(PushSubscription(
            user_id=user.id,
            endpoint=body.endpoint,
            p256dh=body.keys.p256dh,
            auth=body.keys.auth,
        ))

    db.commit()
    return {"success": True}


@router.delete("/unsubscribe")
def unsubscribe(body: SubscribeRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    deleted = db.query(PushSubscription).filter(
        PushSubscription.endpoint == body.endpoint,
        PushSubscription.user_id == user.id,
    ).delete()
    db.commit()
    return {"success": True, "deleted": deleted}


@router.post("/test")
def test_push(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Queue an immediate notification to verify the setup."""
    notification_id = NotificationService(db).schedule(
        user.id,
        NotificationPayload(title="Finance Flow", body="Push notifications are working!"),
    )
    return {"success": True, "notification_id": notification_id}


@router.delete("/notifications/{notification_id}")
def cancel_notification(notification_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    NotificationService(db).cancel(notification_id, user_id=user.id)
    return {"success": True}


@router.delete("/notifications")
def cancel_all_notifications(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    cancelled = NotificationService(db).cancel_all(user.id)
    return {"success": True, "cancelled": cancelled}
