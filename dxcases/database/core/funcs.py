"""
Service-layer operations for published cases and moderation logs.

All functions are wrapped with the `@transactional` decorator, which manages
SQLAlchemy sessions and transactions automatically. Each function accepts (and
uses) an injected `session: Session` provided by the decorator, so callers pass
keyword arguments only.

Rows are converted to plain dicts before the transaction closes; the router
never touches ORM objects.
"""

import json
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from dxcases.api.utils import extract_unique_tags, parse_tags
from dxcases.database.daos.case_dao import CaseDao
from dxcases.database.daos.moderation_log_dao import ModerationLogDao
from dxcases.database.entities.cases import Case
from dxcases.database.entities.moderation_logs import ModerationLog
from dxcases.database.helpers.transactionManagement import transactional


def _as_uuid(case_id) -> Optional[UUID]:
    if isinstance(case_id, UUID):
        return case_id
    try:
        return UUID(str(case_id))
    except ValueError:
        return None


def _load_json(raw: Optional[str], default):
    if not raw:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return default


def serialize_case(case: Case, include_conversation: bool = False) -> dict:
    """
    Convert a `Case` row to the JSON shape returned by the API.

    Tags are decoded to a list; the transcript is only included for detail views.
    """
    data = {
        "id": str(case.id),
        "title": case.title,
        "summary": case.summary,
        "tags": parse_tags(case.tags),
        "image_url": case.image_url,
        "when": case.when,
        "location": case.location,
        "who": case.who,
        "impact": case.impact,
        "cause": case.cause,
        "suggestions": case.suggestions,
        "paragraph_summary": case.paragraph_summary,
        "created_at": case.created_at.isoformat() if case.created_at else None,
        "updated_at": case.updated_at.isoformat() if case.updated_at else None,
    }
    if include_conversation:
        data["conversation"] = _load_json(case.conversation, [])
    return data


@transactional
def create_case(session: Session, conversation_data: dict, messages: list[dict]) -> dict:
    """
    Persist a case built from finalized conversation data.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    conversation_data : dict
        Accumulated ConversationData fields.
    messages : list[dict]
        Transcript ({role, content}) stored as the audit trail.

    Returns
    -------
    dict
        The stored case, serialized with its transcript.
    """
    case_dao = CaseDao()
    paragraph_summary = conversation_data.get("paragraph_summary")
    case = Case(
        title=conversation_data.get("title"),
        summary=paragraph_summary or conversation_data.get("summary"),
        tags=json.dumps(conversation_data.get("tags") or [], ensure_ascii=False),
        image_url=conversation_data.get("image_url"),
        when=conversation_data.get("when"),
        location=conversation_data.get("location"),
        who=conversation_data.get("who"),
        impact=conversation_data.get("impact"),
        cause=conversation_data.get("cause"),
        suggestions=conversation_data.get("suggestions"),
        conversation=json.dumps(messages, ensure_ascii=False),
        paragraph_summary=paragraph_summary,
    )
    case_dao.createCase(session, case)
    return serialize_case(case, include_conversation=True)


@transactional
def get_cases(
    session: Session,
    page: int,
    per_page: int,
    keyword: Optional[str] = None,
    tags: Iterable[str] = (),
) -> dict:
    """
    Return one gallery page.

    Returns
    -------
    dict
        {'cases', 'page', 'per_page', 'total', 'has_more'}
    """
    case_dao = CaseDao()
    offset = (page - 1) * per_page
    rows, total = case_dao.fetchCasesPage(
        session, offset=offset, limit=per_page, keyword=keyword, tags=tags
    )
    return {
        "cases": [serialize_case(row) for row in rows],
        "page": page,
        "per_page": per_page,
        "total": total,
        "has_more": offset + len(rows) < total,
    }


@transactional
def get_case(session: Session, case_id: str) -> Optional[dict]:
    """Return one case with its transcript, or None when the id is unknown or malformed."""
    case_uuid = _as_uuid(case_id)
    if case_uuid is None:
        return None
    case = CaseDao().fetchCaseById(session, case_uuid)
    return serialize_case(case, include_conversation=True) if case else None


@transactional
def update_case(
    session: Session,
    case_id: str,
    title: Optional[str],
    summary: Optional[str],
    tags: Optional[list[str]],
    image_url: Optional[str],
) -> Optional[dict]:
    """
    Apply an admin edit. Fields passed as None are left unchanged.

    Returns None when the case does not exist.
    """
    case_uuid = _as_uuid(case_id)
    if case_uuid is None:
        return None
    values = {"title": title, "summary": summary, "image_url": image_url}
    values = {key: value for key, value in values.items() if value is not None}
    if tags is not None:
        values["tags"] = json.dumps(tags, ensure_ascii=False)
    case = CaseDao().updateCase(session, case_uuid, values)
    return serialize_case(case, include_conversation=True) if case else None


@transactional
def delete_case(session: Session, case_id: str) -> bool:
    """Delete a case. Returns False when it does not exist."""
    case_uuid = _as_uuid(case_id)
    if case_uuid is None:
        return False
    return CaseDao().deleteCase(session, case_uuid)


@transactional
def get_unique_tags(session: Session) -> list[str]:
    """Sorted vocabulary of every tag used by a stored case."""
    return extract_unique_tags(CaseDao().fetchAllTagColumns(session))


@transactional
def create_moderation_log(session: Session, content: str, moderation_result: dict) -> dict:
    """
    Record a rejected submission.

    Parameters
    ----------
    content : str
        Text that was classified.
    moderation_result : dict
        Classifier output, stored JSON-encoded.
    """
    log = ModerationLog(
        content=content,
        moderation_result=json.dumps(moderation_result, ensure_ascii=False),
    )
    ModerationLogDao().createLog(session, log)
    return {
        "id": str(log.id),
        "content": log.content,
        "moderation_result": moderation_result,
        "created_at": log.created_at.isoformat() if log.created_at else None,
    }


@transactional
def get_moderation_logs(session: Session) -> list[dict]:
    """List moderation logs for the admin back-office, newest first."""
    return [
        {
            "id": str(log.id),
            "content": log.content,
            "moderation_result": _load_json(log.moderation_result, {}),
            "created_at": log.created_at.isoformat() if log.created_at else None,
        }
        for log in ModerationLogDao().fetchLogs(session)
    ]
