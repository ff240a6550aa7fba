"""
Company (agency) API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_store
from app.api.responses import notice_response
from app.application.agencies import AgencyReadService, AgencyValidationError, CreateAgencyUseCase
from app.infrastructure.store.client import StoreClient


router = APIRouter(prefix="/api/v1/agencies", tags=["agencies"])


class CreateAgencyRequest(BaseModel):
    name: str
    owner_email: str
    cnpj: str | None = None
    description: str | None = None


@router.get("")
def list_agencies(store: StoreClient = Depends(get_store)):
    return {"agencies": AgencyReadService(store).list_for_user()}


@router.post("")
def create_agency(
    req: CreateAgencyRequest,
    store: StoreClient = Depends(get_store),
    db: Session = Depends(get_db),
):
    try:
        agency, notice = CreateAgencyUseCase(db, store).execute(
            name=req.name,
            owner_email=req.owner_email,
            cnpj=req.cnpj,
            description=req.description,
        )
    except AgencyValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return notice_response(notice, agency=agency)
