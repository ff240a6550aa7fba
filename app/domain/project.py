"""
Kanban project (delivery pipeline card) and its board-record envelope.

Board records keep the project fields in an opaque board_data JSON blob.
project_from_board_record() is the only place where that blob is
defaulted:

    priority missing/unknown -> "medium"
    status missing/unknown   -> "shot"
    links not a list         -> []
    text fields missing      -> ""
    due_date unparseable     -> None
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

BOARD_DATA_VERSION = 1

STAGES = ("shot", "editing", "review", "delivered")
STAGE_TITLES = {
    "shot": "Shot",
    "editing": "Editing",
    "review": "Review",
    "delivered": "Delivered",
}
DELIVERED = "delivered"

PRIORITIES = ("high", "medium", "low")
DEFAULT_PRIORITY = "medium"


@dataclass(frozen=True)
class BoardScope:
    """Owner scope of a board: an individual user XOR an agency."""
    user_id: str | None = None
    agency_id: str | None = None

    def __post_init__(self):
        if (self.user_id is None) == (self.agency_id is None):
            raise ValueError("BoardScope needs exactly one of user_id / agency_id")

    @classmethod
    def individual(cls, user_id: str) -> "BoardScope":
        return cls(user_id=user_id)

    @classmethod
    def agency(cls, agency_id: str) -> "BoardScope":
        return cls(agency_id=agency_id)

    @property
    def is_individual(self) -> bool:
        return self.agency_id is None


@dataclass
class Project:
    id: str | None
    title: str
    client: str
    due_date: date | None = None
    priority: str = DEFAULT_PRIORITY
    status: str = STAGES[0]
    description: str = ""
    links: list[str] = field(default_factory=list)
    user_id: str | None = None
    agency_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


def parse_due_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def project_from_board_record(record: dict) -> Project:
    data = record.get("board_data")
    if not isinstance(data, dict):
        data = {}

    priority = data.get("priority")
    if priority not in PRIORITIES:
        priority = DEFAULT_PRIORITY
    status = data.get("status")
    if status not in STAGES:
        status = STAGES[0]
    links = data.get("links")
    links = [str(link) for link in links] if isinstance(links, list) else []

    return Project(
        id=record.get("id"),
        title=_text(data.get("title")),
        client=_text(data.get("client")),
        due_date=parse_due_date(data.get("due_date")),
        priority=priority,
        status=status,
        description=_text(data.get("description")),
        links=links,
        user_id=data.get("user_id"),
        agency_id=record.get("agency_id"),
        created_at=record.get("created_at"),
        updated_at=record.get("updated_at"),
    )


def to_board_data(project: Project, author_id: str | None = None) -> dict:
    return {
        "version": BOARD_DATA_VERSION,
        "title": project.title,
        "client": project.client,
        "due_date": project.due_date.isoformat() if project.due_date else None,
        "priority": project.priority,
        "status": project.status,
        "description": project.description,
        "links": list(project.links),
        "user_id": author_id if author_id is not None else project.user_id,
    }
