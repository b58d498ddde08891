import argparse
import asyncio
import json
import logging

from inbox_intel.config.settings import load_settings
from inbox_intel.gmail.client import GmailClient
from inbox_intel.llm.analyzer import EmailAnalyzer
from inbox_intel.models import NewTask
from inbox_intel.pipeline.orchestrator import sync_inbox
from inbox_intel.storage.todos import open_todo_store


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one inbox sync with a local Gmail token.")
    parser.add_argument(
        "--user-email",
        required=True,
        help="Owner whose open tasks seed the duplicate check (and receive --save).",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Store every proposed action as an open task.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = load_settings()
    logging.basicConfig(level=settings.log_level)

    # Installed-app OAuth client ("Desktop app") plus a cached token.
    gmail = GmailClient.from_token_file(
        credentials_path=settings.secrets_dir / "credentials.json",
        token_path=settings.secrets_dir / "gmail_token.json",
    )
    analyzer = EmailAnalyzer.from_settings(settings)
    store = open_todo_store(settings)

    open_task_texts = store.open_task_texts(args.user_email)
    results = asyncio.run(
        sync_inbox(gmail, analyzer, open_task_texts, max_results=settings.max_messages)
    )
    print(json.dumps({"results": [r.to_dict() for r in results]}, indent=2, ensure_ascii=False))

    if args.save:
        items = [NewTask(text=r.action, sender=r.sender) for r in results if r.action]
        if items:
            inserted = store.create_many(args.user_email, items)
            print(f"[save] inserted {inserted} tasks for {args.user_email}")
        else:
            print("[save] nothing to insert")


if __name__ == "__main__":
    main()
