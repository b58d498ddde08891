from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Dict, List

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from inbox_intel.models import InboxMessage
from inbox_intel.parsing.parser import extract_body_from_payload


# Readonly is all the sync needs.
SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]


class GmailClient:
    """Gmail API access for one user's credentials."""

    def __init__(self, credentials: Credentials, user_id: str = "me"):
        self._creds = credentials
        self._user_id = user_id
        # httplib2 is not thread-safe, so each worker thread gets its own service.
        self._local = threading.local()

    @classmethod
    def from_access_token(cls, access_token: str) -> "GmailClient":
        """Wrap a bearer token obtained by the web sign-in flow."""
        return cls(Credentials(token=access_token))

    @classmethod
    def from_token_file(cls, credentials_path: Path, token_path: Path) -> "GmailClient":
        """Installed-app login with a cached token, for local scripts."""
        creds = None

        if token_path.exists():
            creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)

        # If there are no (valid) credentials available, let the user log in.
        if not creds or not creds.valid:
            if creds and creds.expired and creds.refresh_token:
                creds.refresh(Request())
            else:
                flow = InstalledAppFlow.from_client_secrets_file(
                    str(credentials_path),
                    SCOPES,
                )
                creds = flow.run_local_server(port=0)

            # Save the credentials for the next run.
            token_path.parent.mkdir(parents=True, exist_ok=True)
            token_path.write_text(creds.to_json(), encoding="utf-8")

        return cls(creds)

    @property
    def service(self):
        service = getattr(self._local, "service", None)
        if service is None:
            service = build("gmail", "v1", credentials=self._creds, cache_discovery=False)
            self._local.service = service
        return service

    def list_messages(self, query: str = "", max_results: int = 100) -> List[str]:
        """
        List message IDs matching a Gmail search query.
        Example query: 'category:primary after:1700000000 before:1700172799'
        """
        resp = (
            self.service.users()
            .messages()
            .list(userId=self._user_id, q=query, maxResults=max_results)
            .execute()
        )
        msgs = resp.get("messages", [])
        return [m["id"] for m in msgs]

    def get_message(self, message_id: str, fmt: str = "full") -> Dict[str, Any]:
        """
        Fetch a full message resource.
        fmt: 'full' | 'metadata' | 'minimal' | 'raw'
        """
        return (
            self.service.users()
            .messages()
            .get(userId=self._user_id, id=message_id, format=fmt)
            .execute()
        )


def build_inbox_message(message_id: str, msg: Dict[str, Any]) -> InboxMessage:
    payload = msg.get("payload", {})
    headers = {h.get("name"): h.get("value") for h in payload.get("headers", [])}

    return InboxMessage(
        message_id=message_id,
        sender=headers.get("From") or "Unknown Sender",
        subject=headers.get("Subject") or "No Subject",
        body=extract_body_from_payload(payload),
    )
