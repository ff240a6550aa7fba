"""
Row policies applied by the store gateway to non-privileged statements.

row_filter() restricts select / update / delete; check_insert() guards
new rows.
"""
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.auth import AuthUser
from app.infrastructure.db.models import Agency, AgencyMember


def _member_agency_ids(caller: AuthUser):
    return select(AgencyMember.agency_id).where(AgencyMember.user_id == caller.id)


def _owned_agency_ids(caller: AuthUser):
    return select(Agency.id).where(Agency.owner_id == caller.id)


def row_filter(name: str, model, caller: AuthUser):
    if name == "profiles":
        return model.id == caller.id
    if name == "expenses":
        return model.user_id == caller.id
    if name == "kanban_boards":
        return or_(
            model.user_id == caller.id,
            model.agency_id.in_(_member_agency_ids(caller)),
        )
    if name == "agencies":
        return or_(
            model.owner_id == caller.id,
            model.id.in_(_member_agency_ids(caller)),
        )
    if name == "agency_members":
        return or_(
            model.user_id == caller.id,
            model.agency_id.in_(_owned_agency_ids(caller)),
        )
    # unknown collections see nothing
    return model.id.is_(None)


def check_insert(db: Session, name: str, record: dict, caller: AuthUser) -> None:
    from app.infrastructure.store.client import StoreError

    allowed = False
    if name == "profiles":
        allowed = record.get("id") == caller.id
    elif name == "expenses":
        allowed = record.get("user_id") == caller.id
    elif name == "kanban_boards":
        agency_id = record.get("agency_id")
        if agency_id is None:
            allowed = record.get("user_id") == caller.id
        else:
            allowed = record.get("user_id") is None and db.query(AgencyMember).filter(
                AgencyMember.agency_id == agency_id,
                AgencyMember.user_id == caller.id,
            ).first() is not None
    elif name == "agencies":
        allowed = caller.is_admin or record.get("owner_id") == caller.id
    elif name == "agency_members":
        agency = db.get(Agency, record.get("agency_id"))
        allowed = agency is not None and (caller.is_admin or agency.owner_id == caller.id)

    if not allowed:
        raise StoreError(f"New row violates row policy for {name}", "row_policy")
