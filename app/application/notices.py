"""
User-facing notices (transient toasts) returned by application services.
"""
from dataclasses import dataclass, asdict


@dataclass(frozen=True)
class Notice:
    title: str
    description: str
    variant: str = "default"  # default / destructive

    def to_dict(self) -> dict:
        return asdict(self)


def success(title: str, description: str) -> Notice:
    return Notice(title=title, description=description)


def failure(description: str, title: str = "Error") -> Notice:
    return Notice(title=title, description=description, variant="destructive")
