"""
Kanban project API endpoints (EntregaFlow board)
"""
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from app.api.deps import get_store
from app.api.responses import notice_response
from app.application.agencies import AgencyValidationError, INDIVIDUAL_CONTEXT, resolve_scope
from app.application.kanban import (
    KanbanBoardStore, MoveProjectUseCase, ProjectDraft, ProjectValidationError,
)
from app.domain.pipeline import board_metrics, columns
from app.domain.project import BoardScope, Project
from app.infrastructure.store.client import StoreClient


router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


# === Request models ===

class ProjectRequest(BaseModel):
    title: str = ""
    client: str = ""
    due_date: date | None = None
    priority: str = "medium"
    status: str = "shot"
    description: str = ""
    links: list[str] = Field(default_factory=list)

    def to_draft(self) -> ProjectDraft:
        return ProjectDraft(**self.model_dump())


class MoveRequest(BaseModel):
    source: str
    destination: str | None = None


# === Helpers ===

def _scope(store: StoreClient, context: str) -> BoardScope:
    try:
        return resolve_scope(store, context)
    except AgencyValidationError as e:
        raise HTTPException(status_code=403, detail=str(e))


def _project_out(p: Project) -> dict:
    return {
        "id": p.id,
        "title": p.title,
        "client": p.client,
        "due_date": p.due_date,
        "priority": p.priority,
        "status": p.status,
        "description": p.description,
        "links": p.links,
        "user_id": p.user_id,
        "agency_id": p.agency_id,
        "created_at": p.created_at,
        "updated_at": p.updated_at,
    }


def _board_payload(projects: list[Project]) -> dict:
    now = datetime.now(timezone.utc)
    m = board_metrics(projects, now)
    return {
        "projects": [_project_out(p) for p in projects],
        "columns": [{"id": c.id, "title": c.title, "count": c.count} for c in columns(projects)],
        "metrics": {
            "active": m.active,
            "completed": m.completed,
            "urgent": m.urgent,
            "overdue_project_id": m.overdue_anchor.id if m.overdue_anchor else None,
            "overdue_days": m.overdue_days,
        },
    }


# === Endpoints ===

@router.get("")
def list_projects(
    context: str = Query(INDIVIDUAL_CONTEXT),
    store: StoreClient = Depends(get_store),
):
    """Projects of the board context, with columns and metrics."""
    scope = _scope(store, context)
    result = KanbanBoardStore(store).load_projects(scope)
    return notice_response(result.notice, **_board_payload(result.projects))


@router.post("")
def create_project(
    req: ProjectRequest,
    context: str = Query(INDIVIDUAL_CONTEXT),
    store: StoreClient = Depends(get_store),
):
    scope = _scope(store, context)
    board = KanbanBoardStore(store)
    try:
        notice = board.create_project(scope, req.to_draft())
    except ProjectValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    reloaded = board.load_projects(scope)
    return notice_response(notice, **_board_payload(reloaded.projects))


@router.put("/{project_id}")
def update_project(
    project_id: str,
    req: ProjectRequest,
    context: str = Query(INDIVIDUAL_CONTEXT),
    store: StoreClient = Depends(get_store),
):
    scope = _scope(store, context)
    board = KanbanBoardStore(store)
    try:
        notice = board.update_project(project_id, req.to_draft())
    except ProjectValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    reloaded = board.load_projects(scope)
    return notice_response(notice, **_board_payload(reloaded.projects))


@router.delete("/{project_id}")
def delete_project(
    project_id: str,
    context: str = Query(INDIVIDUAL_CONTEXT),
    store: StoreClient = Depends(get_store),
):
    scope = _scope(store, context)
    board = KanbanBoardStore(store)
    notice = board.delete_project(project_id)
    reloaded = board.load_projects(scope)
    return notice_response(notice, **_board_payload(reloaded.projects))


@router.post("/{project_id}/move")
def move_project(
    project_id: str,
    req: MoveRequest,
    context: str = Query(INDIVIDUAL_CONTEXT),
    store: StoreClient = Depends(get_store),
):
    """Drag-end: move a card between pipeline columns."""
    scope = _scope(store, context)
    board = KanbanBoardStore(store)
    current = board.load_projects(scope)
    try:
        result = MoveProjectUseCase(board).handle_drag_end(
            current.projects, project_id, req.source, req.destination, scope,
        )
    except ProjectValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return notice_response(result.notice, moved=result.moved, **_board_payload(result.projects))
