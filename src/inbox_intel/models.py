from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class InboxMessage:
    message_id: str
    sender: str
    subject: str
    body: str


@dataclass(frozen=True)
class AnalysisResult:
    sender: str
    summary: str
    # None means "nothing to do" or "already an open task".
    action: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"sender": self.sender, "summary": self.summary, "action": self.action}


@dataclass(frozen=True)
class NewTask:
    text: str
    sender: str


@dataclass
class Task:
    id: str
    user_email: str
    text: str
    sender: str
    is_done: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_document(self) -> Dict[str, Any]:
        """Storage shape (the id lives outside the document)."""
        return {
            "userEmail": self.user_email,
            "text": self.text,
            "sender": self.sender,
            "isDone": self.is_done,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_document(cls, task_id: str, data: Dict[str, Any]) -> "Task":
        created = data.get("createdAt")
        if isinstance(created, str):
            created = datetime.fromisoformat(created)
        if created is None:
            created = datetime.now(timezone.utc)
        return cls(
            id=task_id,
            user_email=str(data.get("userEmail") or ""),
            text=str(data.get("text") or ""),
            sender=str(data.get("sender") or ""),
            is_done=bool(data.get("isDone", False)),
            created_at=created,
        )

    def to_api_dict(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "userEmail": self.user_email,
            "text": self.text,
            "sender": self.sender,
            "isDone": self.is_done,
            "createdAt": self.created_at.isoformat(),
        }
