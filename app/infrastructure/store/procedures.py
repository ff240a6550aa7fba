"""
Privileged procedures (bypass row policies).

Gate: the caller must carry the admin claim (see app.auth.is_super_admin).
"""
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.auth import AuthUser, is_super_admin
from app.infrastructure.store.client import StoreClient, StoreError


_PROFILE_FIELDS = ("subscription", "subscription_data")


def _require_admin(caller: AuthUser) -> None:
    if not is_super_admin(caller):
        raise StoreError("Procedure requires admin privileges", "forbidden")


def get_profile_for_admin(db: Session, caller: AuthUser, target_user_id: str) -> list[dict]:
    _require_admin(caller)
    res = (
        StoreClient.service(db)
        .table("profiles")
        .select("id, subscription, subscription_data")
        .eq("id", target_user_id)
        .execute()
    )
    if res.error:
        raise res.error
    return res.data


def admin_update_profile(db: Session, caller: AuthUser, target_user_id: str, update_data: dict) -> None:
    _require_admin(caller)
    patch = {k: v for k, v in update_data.items() if k in _PROFILE_FIELDS}
    patch["updated_at"] = datetime.now(timezone.utc)
    res = (
        StoreClient.service(db)
        .table("profiles")
        .update(patch)
        .eq("id", target_user_id)
        .execute()
    )
    if res.error:
        raise res.error
    if not res.data:
        raise StoreError(f"Profile {target_user_id} not found", "not_found")
    return None


PROCEDURES = {
    "get_profile_for_admin": get_profile_for_admin,
    "admin_update_profile": admin_update_profile,
}
