from __future__ import annotations

import json
from pathlib import Path

import pytest

from inbox_intel.config.settings import Settings
from inbox_intel.models import NewTask
from inbox_intel.storage.todos import FileTodoStore, TaskNotFoundError, open_todo_store


def _seed(path: Path) -> None:
    path.write_text(
        json.dumps(
            {
                "tasks": {
                    "old": {
                        "userEmail": "me@example.com",
                        "text": "Reply to Alice",
                        "sender": "Alice",
                        "isDone": False,
                        "createdAt": "2024-05-01T08:00:00+00:00",
                    },
                    "new": {
                        "userEmail": "me@example.com",
                        "text": "Pay invoice",
                        "sender": "Bob",
                        "isDone": False,
                        "createdAt": "2024-05-02T08:00:00+00:00",
                    },
                    "done": {
                        "userEmail": "me@example.com",
                        "text": "Book flights",
                        "sender": "Travel",
                        "isDone": True,
                        "createdAt": "2024-05-03T08:00:00+00:00",
                    },
                    "foreign": {
                        "userEmail": "other@example.com",
                        "text": "Other user's task",
                        "sender": "Carol",
                        "isDone": False,
                        "createdAt": "2024-05-04T08:00:00+00:00",
                    },
                }
            }
        ),
        encoding="utf-8",
    )


def test_list_open_is_owner_scoped_and_newest_first(tmp_path: Path) -> None:
    path = tmp_path / "todos.json"
    _seed(path)
    store = FileTodoStore(path)

    tasks = store.list_open("me@example.com")

    assert [t.id for t in tasks] == ["new", "old"]
    assert all(not t.is_done for t in tasks)
    assert store.open_task_texts("me@example.com") == ["Pay invoice", "Reply to Alice"]


def test_list_open_on_missing_file_is_empty(tmp_path: Path) -> None:
    assert FileTodoStore(tmp_path / "todos.json").list_open("me@example.com") == []


def test_create_many_inserts_open_tasks(tmp_path: Path) -> None:
    store = FileTodoStore(tmp_path / "todos.json")

    inserted = store.create_many(
        "me@example.com",
        [NewTask(text="Reply to Alice", sender="Alice"), NewTask(text="Pay invoice", sender="Bob")],
    )

    assert inserted == 2
    tasks = store.list_open("me@example.com")
    assert sorted(t.text for t in tasks) == ["Pay invoice", "Reply to Alice"]
    assert all(t.user_email == "me@example.com" and not t.is_done for t in tasks)
    assert store.list_open("other@example.com") == []


def test_create_many_rejects_empty_items_without_writing(tmp_path: Path) -> None:
    path = tmp_path / "todos.json"
    store = FileTodoStore(path)

    with pytest.raises(ValueError):
        store.create_many("me@example.com", [])

    assert not path.exists()


def test_mark_done_hides_task_from_listing(tmp_path: Path) -> None:
    path = tmp_path / "todos.json"
    _seed(path)
    store = FileTodoStore(path)

    store.mark_done("me@example.com", "old")

    assert [t.id for t in store.list_open("me@example.com")] == ["new"]


def test_mark_done_on_foreign_task_is_not_found_and_leaves_it_open(tmp_path: Path) -> None:
    path = tmp_path / "todos.json"
    _seed(path)
    store = FileTodoStore(path)

    with pytest.raises(TaskNotFoundError):
        store.mark_done("me@example.com", "foreign")
    with pytest.raises(TaskNotFoundError):
        store.mark_done("me@example.com", "does-not-exist")

    assert [t.id for t in store.list_open("other@example.com")] == ["foreign"]


def test_open_todo_store_selects_file_backend(tmp_path: Path) -> None:
    settings = Settings(secrets_dir=tmp_path, state_dir=tmp_path, todo_store="file")

    store = open_todo_store(settings)

    assert isinstance(store, FileTodoStore)
