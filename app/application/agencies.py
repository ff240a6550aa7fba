"""
Agency (company / team) management and board context resolution.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.application.notices import Notice, success, failure
from app.auth import get_user_by_email
from app.domain.project import BoardScope
from app.infrastructure.store.client import StoreClient

logger = logging.getLogger(__name__)

INDIVIDUAL_CONTEXT = "individual"


class AgencyValidationError(ValueError):
    pass


class CreateAgencyUseCase:
    def __init__(self, db: Session, store: StoreClient):
        self.db = db
        self.store = store

    def execute(
        self,
        name: str,
        owner_email: str,
        cnpj: str | None = None,
        description: str | None = None,
    ) -> tuple[dict | None, Notice]:
        name = (name or "").strip()
        owner_email = (owner_email or "").strip()
        if not name or not owner_email:
            raise AgencyValidationError("Company name and owner are required")
        cnpj = (cnpj or "").strip() or None
        if cnpj is not None and len(cnpj) > 18:
            raise AgencyValidationError("CNPJ must be at most 18 characters")

        owner = get_user_by_email(self.db, owner_email)
        if owner is None:
            raise AgencyValidationError(f"User not found: {owner_email}")

        res = self.store.table("agencies").insert({
            "name": name,
            "owner_id": owner.id,
            "cnpj": cnpj,
            "description": (description or "").strip() or None,
            "created_at": datetime.now(timezone.utc),
        }).execute()
        if res.error:
            logger.error("Failed to create agency %r: %s", name, res.error.message)
            return None, failure("Failed to create company")
        agency = res.data[0]

        res = self.store.table("agency_members").insert({
            "agency_id": agency["id"],
            "user_id": owner.id,
            "role": "owner",
        }).execute()
        if res.error:
            logger.error("Owner membership for agency %s failed, removing it: %s", agency["id"], res.error.message)
            # an agency without members is unreachable through resolve_scope
            undo = StoreClient.service(self.db).table("agencies").delete().eq("id", agency["id"]).execute()
            if undo.error:
                logger.error("Failed to remove orphan agency %s: %s", agency["id"], undo.error.message)
            return None, failure("Failed to create company")

        logger.info("Agency %s created for owner %s", agency["id"], owner.id)
        return agency, success("Company Created", f'"{name}" was created successfully')


class AgencyReadService:
    def __init__(self, store: StoreClient):
        self.store = store

    def list_for_user(self) -> list[dict]:
        res = self.store.table("agencies").select("*").order("created_at").execute()
        if res.error:
            logger.error("Failed to load agencies: %s", res.error.message)
            return []
        return res.data


def resolve_scope(store: StoreClient, context: str | None) -> BoardScope:
    """
    Map a board context ("individual" or an agency id) to a BoardScope.

    Raises AgencyValidationError when the caller is not a member.
    """
    caller = store.caller
    if caller is None:
        raise AgencyValidationError("Not authenticated")
    if not context or context == INDIVIDUAL_CONTEXT:
        return BoardScope.individual(caller.id)

    res = (
        store.table("agency_members")
        .select("agency_id")
        .eq("agency_id", context)
        .eq("user_id", caller.id)
        .execute()
    )
    if res.error or not res.data:
        raise AgencyValidationError("Company not found or access denied")
    return BoardScope.agency(context)
