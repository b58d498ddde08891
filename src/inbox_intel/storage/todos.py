"""Per-user to-do storage.

Every read and write is filtered by the owner's email address; there is no
other authorization layer.

Backends:
- Firestore: flat collection ``todos`` with a ``userEmail`` field per document
- File fallback: ``.state/todos.json`` for local development and tests
"""
from __future__ import annotations

import json
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Sequence

from google.cloud.firestore_v1.base_query import FieldFilter

from inbox_intel.config.settings import Settings
from inbox_intel.models import NewTask, Task

logger = logging.getLogger(__name__)


class TaskNotFoundError(LookupError):
    """No task with that id is owned by the caller."""


def _newest_first(tasks: List[Task]) -> List[Task]:
    return sorted(tasks, key=lambda t: t.created_at, reverse=True)


class TodoStore(ABC):
    @abstractmethod
    def list_open(self, user_email: str) -> List[Task]:
        """Open tasks of one user, newest first."""
        ...

    @abstractmethod
    def create_many(self, user_email: str, items: Sequence[NewTask]) -> int:
        """Insert one open task per item and return how many were written."""
        ...

    @abstractmethod
    def mark_done(self, user_email: str, task_id: str) -> None:
        """Complete a task owned by user_email or raise TaskNotFoundError."""
        ...

    def open_task_texts(self, user_email: str) -> List[str]:
        return [task.text for task in self.list_open(user_email)]


class FirestoreTodoStore(TodoStore):
    def __init__(self, db, collection: str = "todos"):
        self._db = db
        self._collection_name = collection

    @property
    def _collection(self):
        return self._db.collection(self._collection_name)

    def list_open(self, user_email: str) -> List[Task]:
        query = (
            self._collection
            .where(filter=FieldFilter("userEmail", "==", user_email))
            .where(filter=FieldFilter("isDone", "==", False))
        )
        tasks = [Task.from_document(doc.id, doc.to_dict() or {}) for doc in query.stream()]
        # Sorted here so the query needs no composite index.
        return _newest_first(tasks)

    def create_many(self, user_email: str, items: Sequence[NewTask]) -> int:
        if not items:
            raise ValueError("No items to add.")

        inserted = 0
        for item in items:
            doc_ref = self._collection.document()
            task = Task(id=doc_ref.id, user_email=user_email, text=item.text, sender=item.sender)
            doc_ref.set(task.to_document())
            inserted += 1
        logger.info("Inserted %d tasks for %s", inserted, user_email)
        return inserted

    def mark_done(self, user_email: str, task_id: str) -> None:
        # A slash would address a nested path rather than a document in this collection.
        if not task_id or "/" in task_id:
            raise TaskNotFoundError(task_id)
        doc_ref = self._collection.document(task_id)
        snapshot = doc_ref.get()
        if not snapshot.exists or (snapshot.to_dict() or {}).get("userEmail") != user_email:
            raise TaskNotFoundError(task_id)
        doc_ref.update({"isDone": True})
        logger.info("Marked task %s as done", task_id)


class FileTodoStore(TodoStore):
    def __init__(self, path: Path):
        self._path = path
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if not self._path.exists():
            return {}
        data = json.loads(self._path.read_text(encoding="utf-8"))
        return dict(data.get("tasks") or {})

    def _save(self, tasks: Dict[str, Dict[str, Any]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps({"tasks": tasks}, indent=2), encoding="utf-8")

    @staticmethod
    def _serialize(task: Task) -> Dict[str, Any]:
        doc = task.to_document()
        doc["createdAt"] = task.created_at.isoformat()
        return doc

    def list_open(self, user_email: str) -> List[Task]:
        with self._lock:
            docs = self._load()
        tasks = [
            Task.from_document(task_id, doc)
            for task_id, doc in docs.items()
            if doc.get("userEmail") == user_email and not doc.get("isDone", False)
        ]
        return _newest_first(tasks)

    def create_many(self, user_email: str, items: Sequence[NewTask]) -> int:
        if not items:
            raise ValueError("No items to add.")

        now = datetime.now(timezone.utc)
        with self._lock:
            docs = self._load()
            for item in items:
                task = Task(
                    id=uuid.uuid4().hex,
                    user_email=user_email,
                    text=item.text,
                    sender=item.sender,
                    created_at=now,
                )
                docs[task.id] = self._serialize(task)
            self._save(docs)
        logger.info("Inserted %d tasks for %s", len(items), user_email)
        return len(items)

    def mark_done(self, user_email: str, task_id: str) -> None:
        with self._lock:
            docs = self._load()
            doc = docs.get(task_id)
            if doc is None or doc.get("userEmail") != user_email:
                raise TaskNotFoundError(task_id)
            doc["isDone"] = True
            self._save(docs)
        logger.info("Marked task %s as done", task_id)


def open_todo_store(settings: Settings) -> TodoStore:
    if settings.todo_store == "file":
        return FileTodoStore(settings.todo_file_path)

    from inbox_intel.storage.firestore import get_firestore_client

    return FirestoreTodoStore(get_firestore_client(), collection=settings.todo_collection)
