from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional, Sequence

from openai import OpenAI, OpenAIError

from inbox_intel.config.settings import Settings
from inbox_intel.models import AnalysisResult, InboxMessage

logger = logging.getLogger(__name__)

ANALYSIS_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "sender": {"type": "string"},
        "summary": {"type": "string"},
        "action": {"type": ["string", "null"]},
    },
    "required": ["sender", "summary", "action"],
}

_FENCE_RE = re.compile(r"```(?:json)?", flags=re.IGNORECASE)


def build_prompt(
    sender: str,
    subject: str,
    body: str,
    open_task_texts: Sequence[str],
) -> str:
    return (
        f'Analyze the following email from "{sender}" with the subject "{subject}".\n'
        "Provide a response as a single, valid JSON object with three keys:\n"
        '1. "sender": The name of the sender.\n'
        '2. "summary": A very brief, one-sentence summary of the email.\n'
        '3. "action": A string containing the single most important actionable item. '
        "Carefully check if an action that is semantically identical to this one already "
        "exists in the list of existing to-do items below. You must consider minor "
        'variations in wording (e.g., "Reply to John" is the same as "Send a reply to John"). '
        "If a semantically identical match is found, or there is nothing to do, you MUST "
        "set the value to null. Otherwise, provide the action text.\n"
        "\n"
        f"Existing to-do items: {json.dumps(list(open_task_texts), ensure_ascii=False)}\n"
        "\n"
        "Email Content:\n"
        f"{body}"
    )


def parse_model_output(raw: str) -> Optional[Dict[str, Any]]:
    """Strip optional code fences and parse the model's JSON object."""
    cleaned = _FENCE_RE.sub("", raw or "").strip()
    if not cleaned:
        return None
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.warning("Model output is not valid JSON: %s", exc)
        return None
    if not isinstance(payload, dict):
        logger.warning("Model output is not a JSON object: %r", type(payload).__name__)
        return None
    return payload


def _normalize_action(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() == "null":
        return None
    return text


class EmailAnalyzer:
    def __init__(self, client: OpenAI, model: str = "gpt-4.1-mini"):
        self._client = client
        self._model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailAnalyzer":
        api_key = settings.require_openai_api_key()
        return cls(OpenAI(api_key=api_key), model=settings.openai_model)

    def _complete(self, prompt: str) -> Optional[str]:
        resp = self._client.responses.create(
            model=self._model,
            input=prompt,
            text={
                "format": {
                    "type": "json_schema",
                    "name": "email_analysis",
                    "schema": ANALYSIS_SCHEMA,
                }
            },
        )
        return getattr(resp, "output_text", None)

    def analyze(
        self,
        message: InboxMessage,
        open_task_texts: Sequence[str],
    ) -> Optional[AnalysisResult]:
        """
        Summarize one message and propose at most one new action.
        Returns None when the model call or its output is unusable.
        """
        prompt = build_prompt(message.sender, message.subject, message.body, open_task_texts)
        try:
            raw = self._complete(prompt)
        except OpenAIError as exc:
            logger.warning(
                "Analysis request failed for message %s: %s: %s",
                message.message_id,
                type(exc).__name__,
                exc,
            )
            return None

        if not raw:
            logger.warning("Empty model response for message %s", message.message_id)
            return None

        payload = parse_model_output(raw)
        if payload is None:
            return None

        return AnalysisResult(
            sender=str(payload.get("sender") or message.sender),
            summary=str(payload.get("summary") or "").strip(),
            action=_normalize_action(payload.get("action")),
        )
