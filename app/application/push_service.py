"""
Web Push delivery.

Sends push notifications via pywebpush and drops stale subscriptions.
"""
import json
import logging

from pywebpush import webpush, WebPushException
from sqlalchemy.orm import Session

from app.config import get_settings
from app.infrastructure.db.models import PushSubscription

logger = logging.getLogger(__name__)


def _vapid_private_key(raw_key: str) -> str:
    # .env may store PEM with literal \n or real newlines depending on quoting
    if "\\n" in raw_key:
        raw_key = raw_key.replace("\\n", "\n")
    # pywebpush accepts a raw base64url key; strip PEM armour if present
    if "BEGIN" in raw_key:
        lines = [l.strip() for l in raw_key.strip().splitlines()
                 if l.strip() and not l.strip().startswith("-----")]
        raw_key = "".join(lines)
    return raw_key


def send_web_push(db: Session, subscription: PushSubscription, payload: dict) -> bool:
    """
    Send one notification to one device.

    payload format:
        {"title": "...", "body": "...", "data": {...}}

    Returns True on success. Subscriptions answered with 404/410 are deleted.
    """
    settings = get_settings()
    if not settings.VAPID_PRIVATE_KEY or not settings.VAPID_PUBLIC_KEY:
        logger.warning("VAPID keys not configured, skipping push")
        return False

    subscription_info = {
        "endpoint": subscription.endpoint,
        "keys": {
            "p256dh": subscription.p256dh,
            "auth": subscription.auth,
        },
    }

    try:
        webpush(
            subscription_info=subscription_info,
            data=json.dumps(payload, ensure_ascii=False, default=str),
            vapid_private_key=_vapid_private_key(settings.VAPID_PRIVATE_KEY),
            vapid_claims={"sub": settings.VAPID_MAILTO},
        )
        return True
    except WebPushException as e:
        status_code = e.response.status_code if e.response is not None else 0
        if status_code in (404, 410):
            logger.info("Subscription expired (HTTP %d), removing: %s", status_code, subscription.endpoint[:60])
            db.query(PushSubscription).filter(PushSubscription.id == subscription.id).delete()
            db.commit()
        else:
            logger.error("WebPush error (HTTP %d): %s", status_code, e)
        return False


def send_push_to_user(db: Session, user_id: str, payload: dict) -> int:
    """Send to every registered device of a user. Returns deliveries count."""
    subs = db.query(PushSubscription).filter(PushSubscription.user_id == user_id).all()
    sent = 0
    for sub in subs:
        if send_web_push(db, sub, payload):
            sent += 1
    return sent
