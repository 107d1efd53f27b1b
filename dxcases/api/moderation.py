"""
Moderation Gate
===============

Every case passes the content-safety classifier before it is stored.

Submission outcomes
-------------------
- classifier error → `CompletionError` propagates; nothing is written.
- flagged → one `moderation_logs` row, no `cases` row; the caller gets the
  rejection message.
- clean → one `cases` row built from the conversation data.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from dxcases.api import prompts
from dxcases.api.completion_client import CompletionClient
from dxcases.database.core.funcs import create_case, create_moderation_log

logger = logging.getLogger("uvicorn")


@dataclass
class SubmissionOutcome:
    flagged: bool
    case: Optional[dict] = None
    message: Optional[str] = None
    moderation: Optional[dict] = None


def moderation_content(conversation_data: dict) -> str:
    """Text that represents a submission: the paragraph summary, else the raw summary."""
    return (conversation_data.get("paragraph_summary") or conversation_data.get("summary") or "").strip()


class ModerationGate:
    """Checks content with the classifier and records rejections."""

    def __init__(self, client: CompletionClient):
        self.client = client

    def check(self, content: str) -> dict:
        """Classify `content`; returns {flagged, categories, category_scores}."""
        return self.client.moderate(content)

    def submit(self, conversation_data: dict, messages: list[dict]) -> SubmissionOutcome:
        """
        Moderate a finalized conversation and persist it when clean.

        Raises
        ------
        ValueError
            If the conversation data holds no summary to moderate.
        CompletionError
            If the classifier call fails.
        """
        content = moderation_content(conversation_data)
        if not content:
            raise ValueError("conversationData.summary is required")

        result = self.check(content)
        if result["flagged"]:
            flagged_categories = [name for name, hit in result.get("categories", {}).items() if hit]
            logger.warning(f"Submission rejected by moderation: {flagged_categories}")
            create_moderation_log(content=content, moderation_result=result)
            return SubmissionOutcome(
                flagged=True,
                message=prompts.MODERATION_REJECTED_MESSAGE,
                moderation=result,
            )

        case = create_case(conversation_data=conversation_data, messages=messages)
        logger.info(f"Stored case {case['id']}")
        return SubmissionOutcome(flagged=False, case=case)
