"""
Kanban board store and delivery pipeline use-cases.

Persistence goes through the store gateway ("kanban_boards" collection).
Remote failures are logged and turned into notices; nothing is retried
and nothing is locked (concurrent moves are last-write-wins).
"""
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone, date as date_type

from app.application.notices import Notice, success, failure
from app.domain.project import (
    BoardScope, Project, STAGES, STAGE_TITLES, PRIORITIES, DEFAULT_PRIORITY,
    project_from_board_record, to_board_data, parse_due_date,
)
from app.infrastructure.store.client import StoreClient

logger = logging.getLogger(__name__)


class ProjectValidationError(ValueError):
    pass


@dataclass
class ProjectDraft:
    """Editable project fields, as submitted by the create / edit forms."""
    title: str = ""
    client: str = ""
    due_date: date_type | str | None = None
    priority: str = DEFAULT_PRIORITY
    status: str = STAGES[0]
    description: str = ""
    links: list[str] = field(default_factory=list)


@dataclass
class LoadResult:
    projects: list[Project]
    notice: Notice | None = None


@dataclass
class MoveResult:
    projects: list[Project]
    moved: bool = False
    notice: Notice | None = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _validated_project(draft: ProjectDraft) -> Project:
    title = (draft.title or "").strip()
    client = (draft.client or "").strip()
    if not title or not client:
        raise ProjectValidationError("Fill in at least the title and client")
    priority = draft.priority or DEFAULT_PRIORITY
    if priority not in PRIORITIES:
        raise ProjectValidationError(f"Invalid priority: {priority}")
    status = draft.status or STAGES[0]
    if status not in STAGES:
        raise ProjectValidationError(f"Invalid status: {status}")
    return Project(
        id=None,
        title=title,
        client=client,
        due_date=parse_due_date(draft.due_date),
        priority=priority,
        status=status,
        description=(draft.description or "").strip(),
        links=[link.strip() for link in draft.links if link and link.strip()],
    )


class KanbanBoardStore:
    """Maps projects to / from board records for one caller."""

    def __init__(self, store: StoreClient):
        self.store = store

    @property
    def _author_id(self) -> str | None:
        return self.store.caller.id if self.store.caller else None

    def load_projects(self, scope: BoardScope) -> LoadResult:
        query = (
            self.store.table("kanban_boards")
            .select("*")
            .order("created_at", desc=True)
        )
        if scope.is_individual:
            query = query.eq("user_id", scope.user_id).is_("agency_id", None)
        else:
            query = query.eq("agency_id", scope.agency_id)

        res = query.execute()
        if res.error:
            logger.error("Failed to load projects for %s: %s", scope, res.error.message)
            return LoadResult(projects=[], notice=failure("Failed to load projects"))

        projects = [project_from_board_record(row) for row in res.data]
        logger.info("Loaded %d projects for %s", len(projects), scope)
        return LoadResult(projects=projects)

    def create_project(self, scope: BoardScope, draft: ProjectDraft) -> Notice:
        """Raises ProjectValidationError before any write on invalid input."""
        project = _validated_project(draft)
        now = _now()
        res = self.store.table("kanban_boards").insert({
            "board_data": to_board_data(project, author_id=self._author_id),
            "user_id": scope.user_id if scope.is_individual else None,
            "agency_id": scope.agency_id,
            "created_at": now,
            "updated_at": now,
        }).execute()
        if res.error:
            logger.error("Failed to create project %r: %s", project.title, res.error.message)
            return failure("Failed to create project")
        return success("Project Created", f'"{project.title}" was added successfully')

    def update_project(self, project_id: str, draft: ProjectDraft) -> Notice:
        project = _validated_project(draft)
        res = (
            self.store.table("kanban_boards")
            .update({
                "board_data": to_board_data(project, author_id=self._author_id),
                "updated_at": _now(),
            })
            .eq("id", project_id)
            .execute()
        )
        if res.error or not res.data:
            logger.error("Failed to update project %s: %s", project_id,
                         res.error.message if res.error else "no matching row")
            return failure("Failed to update project")
        return success("Project Updated", f'"{project.title}" was saved successfully')

    def delete_project(self, project_id: str) -> Notice:
        res = self.store.table("kanban_boards").delete().eq("id", project_id).execute()
        if res.error or not res.data:
            logger.error("Failed to delete project %s: %s", project_id,
                         res.error.message if res.error else "no matching row")
            return failure("Failed to delete project")
        return success("Project Deleted", "Project deleted successfully")

    def write_status(self, project: Project, status: str) -> bool:
        moved = replace(project, status=status)
        res = (
            self.store.table("kanban_boards")
            .update({
                "board_data": to_board_data(moved),
                "updated_at": _now(),
            })
            .eq("id", project.id)
            .execute()
        )
        if res.error:
            logger.error("Failed to move project %s: %s", project.id, res.error.message)
            return False
        if not res.data:
            logger.error("Failed to move project %s: no matching row", project.id)
            return False
        return True


class MoveProjectUseCase:
    """
    Drag-end protocol for a card dropped on a pipeline column.

    The local list is not updated before the write; the full list is
    reloaded from the store afterwards, so a failed write shows the card
    back in its stored column.
    """

    def __init__(self, board: KanbanBoardStore):
        self.board = board

    def handle_drag_end(
        self,
        projects: list[Project],
        draggable_id: str,
        source: str,
        destination: str | None,
        scope: BoardScope,
    ) -> MoveResult:
        if destination is None:
            return MoveResult(projects=projects)
        if source == destination:
            # no reordering within a column
            return MoveResult(projects=projects)

        project = next((p for p in projects if p.id == draggable_id), None)
        if project is None:
            return MoveResult(projects=projects)

        if destination not in STAGES:
            raise ProjectValidationError(f"Invalid status: {destination}")

        written = self.board.write_status(project, destination)
        reloaded = self.board.load_projects(scope)
        if reloaded.notice is not None:
            current = projects
        else:
            current = reloaded.projects

        if not written:
            return MoveResult(projects=current, notice=failure("Failed to move project"))
        return MoveResult(
            projects=current,
            moved=True,
            notice=success(
                "Project Moved",
                f'"{project.title}" moved to {STAGE_TITLES[destination]}',
            ),
        )
