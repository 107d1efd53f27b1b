"""
FastAPI Router — Conversation • AI helpers • Moderation • Cases • Admin
======================================================================

Purpose
-------
Defines the HTTP API for:
- Conversational submission: one state-machine turn per request
- AI helpers: moderation, illustration from a summary, legacy analyze / image
- Submission of a finished conversation through the moderation gate
- Public gallery, case detail and tag vocabulary
- Admin back-office: login/logout, case list/edit/delete, moderation logs

Key Notes
---------
- The server keeps no conversation state: clients resend the transcript, the
  accumulated data and the state tag on every turn.
- Errors are returned as `{"error": <message>}` (see handlers in `dxcases.main`).
- Admin routes require the HttpOnly `token` cookie (JWT) set by `/api/admin/login`.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from dxcases.api.completion_client import CompletionClient, CompletionError, load_completion_client
from dxcases.api.conversation_flow import ConversationSession, parse_state, run_conversation_turn
from dxcases.api.models import (
    AdminCredentials,
    AnalyzeRequest,
    CaseSubmission,
    CaseUpdate,
    ChatMessage,
    ConversationData,
    GenerateImageRequest,
    ImageFromSummaryRequest,
    ModerationRequest,
)
from dxcases.api.moderation import ModerationGate
from dxcases.api.utils import check_password, create_access_token, normalize_tags, verify_token
from dxcases.database.config.config import settings
from dxcases.database.core.funcs import (
    delete_case,
    get_case,
    get_cases,
    get_moderation_logs,
    get_unique_tags,
    update_case,
)

router = APIRouter(prefix="/api")
"""Creates the FastAPI router in which we define its routes"""

logger = logging.getLogger("uvicorn")


def get_completion_client(request: Request) -> CompletionClient:
    """
    Return the application's completion client, building it on first use.

    Raises CompletionError (rendered as 500) when credentials are missing.
    """
    client = getattr(request.app.state, "completion_client", None)
    if client is None:
        client = load_completion_client()
        request.app.state.completion_client = client
    return client


def require_admin(token: str = Cookie(None)) -> str:
    """Resolve the admin name from the `token` cookie or fail with 401."""
    if not token:
        raise HTTPException(status_code=401, detail='Missing Token')
    username = verify_token(token)
    if not username:
        raise HTTPException(status_code=401, detail='Invalid or expired token')
    return username


async def parse_conversation_request(request: Request) -> dict:
    """Parse and validate the JSON body of /conversation.

    Validates:
        - messages: non-empty array of {role, content}, last one from the user
        - conversationData: optional object of known story fields
        - conversationState: optional state tag

    Returns:
        dict with normalized fields ready for the state machine.

    Raises:
        400 with a fixed `Invalid request: ...` detail on validation errors.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {}

    raw_messages = body.get("messages")
    if not raw_messages or not isinstance(raw_messages, list):
        raise HTTPException(status_code=400, detail='Invalid request: messages array is required')
    try:
        messages = [ChatMessage.model_validate(m) for m in raw_messages]
    except ValidationError:
        raise HTTPException(status_code=400, detail='Invalid request: each message needs a user/assistant role and text content')
    if messages[-1].role != "user":
        raise HTTPException(status_code=400, detail='Invalid request: last message must be from user')

    try:
        conversation_data = ConversationData.model_validate(body.get("conversationData") or {})
    except ValidationError:
        raise HTTPException(status_code=400, detail='Invalid request: conversationData is malformed')

    state = body.get("conversationState")
    if state is not None and not isinstance(state, str):
        raise HTTPException(status_code=400, detail='Invalid request: conversationState must be a string')

    return {
        "messages": [m.model_dump() for m in messages],
        "conversation_data": conversation_data.model_dump(exclude_none=True),
        "conversation_state": parse_state(state),
    }


@router.post('/conversation')
def conversation(
    request_data: dict = Depends(parse_conversation_request),
    client: CompletionClient = Depends(get_completion_client),
):
    """Advance the submission conversation by one user turn.

    Request body:
        {messages, conversationData?, conversationState?}

    Response:
        200: {message, conversationData, conversationState, nextState, complete}
        400: malformed request
        500: completion failure
    """
    session = ConversationSession(
        messages=request_data["messages"],
        conversation_data=request_data["conversation_data"],
        state=request_data["conversation_state"],
    )
    try:
        turn = run_conversation_turn(
            client,
            session,
            turn_threshold=settings.CONVERSATION_TURN_THRESHOLD,
            suggestion_turn_limit=settings.SUGGESTION_TURN_LIMIT,
        )
        conversation_data = ConversationData.model_validate(turn.conversation_data).model_dump(exclude_none=True)
    except Exception as e:
        logger.error(f"Error in conversation API: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return {
        "message": turn.message,
        "conversationData": conversation_data,
        "conversationState": turn.next_state.value,
        "nextState": turn.next_state.value,
        "complete": turn.complete,
    }


@router.post('/moderate')
def moderate(data: ModerationRequest, client: CompletionClient = Depends(get_completion_client)):
    """Classify text with the content-safety endpoint.

    Response:
        200: {flagged, categories, category_scores}
    """
    if not data.content:
        raise HTTPException(status_code=400, detail='Content text is required')
    try:
        return ModerationGate(client).check(data.content)
    except Exception as e:
        logger.error(f"Error in moderation API: {e}")
        raise HTTPException(status_code=500, detail='Failed to process the moderation request')


@router.post('/generate-image-from-summary')
def generate_image_from_summary(data: ImageFromSummaryRequest, client: CompletionClient = Depends(get_completion_client)):
    """Write an illustration prompt from a case summary and render it.

    Response:
        200: {imageUrl, prompt}
    """
    if not data.summary:
        raise HTTPException(status_code=400, detail='Summary is required')
    try:
        prompt = client.generate_image_prompt(data.summary, data.title)
        image_url = client.generate_image(prompt)
    except Exception as e:
        logger.error(f"Error generating image: {e}")
        raise HTTPException(status_code=500, detail=f'Failed to generate image: {e}')
    return {"imageUrl": image_url, "prompt": prompt}


@router.post('/analyze')
def analyze(data: AnalyzeRequest, client: CompletionClient = Depends(get_completion_client)):
    """Legacy one-shot flow: free text to {title, summary, tags}."""
    if not data.input:
        raise HTTPException(status_code=400, detail='Input text is required')
    try:
        result = client.analyze(data.input)
    except Exception as e:
        logger.error(f"Error in analyze API: {e}")
        raise HTTPException(status_code=500, detail='Failed to process the request')
    tags = result.get("tags")
    return {
        "title": result.get("title"),
        "summary": result.get("summary"),
        "tags": normalize_tags([str(tag) for tag in tags] if isinstance(tags, list) else tags),
    }


@router.post('/generate-image')
def generate_image(data: GenerateImageRequest, client: CompletionClient = Depends(get_completion_client)):
    """Legacy flow: render a ready-made prompt."""
    if not data.prompt:
        raise HTTPException(status_code=400, detail='Image prompt is required')
    try:
        return {"imageUrl": client.generate_image(data.prompt)}
    except Exception as e:
        logger.error(f"Error in generate-image API: {e}")
        raise HTTPException(status_code=500, detail='Failed to generate image')


@router.post('/cases', status_code=201)
def submit_case(data: CaseSubmission, client: CompletionClient = Depends(get_completion_client)):
    """Confirm a finished conversation: moderate it, then store it as a case.

    Response:
        201: {flagged: false, case}
        200: {flagged: true, message, moderation}; logged, not stored
        500: classifier or storage failure, nothing stored
    """
    try:
        outcome = ModerationGate(client).submit(
            conversation_data=data.conversation_data.model_dump(exclude_none=True),
            messages=[m.model_dump() for m in data.messages],
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f'Invalid request: {e}')
    except CompletionError as e:
        logger.error(f"Error in moderation gate: {e}")
        raise HTTPException(status_code=500, detail='Failed to process the moderation request')
    except Exception as e:
        logger.error(f"Error saving case: {e}")
        raise HTTPException(status_code=500, detail='Failed to save the case')

    if outcome.flagged:
        return JSONResponse(
            status_code=200,
            content={"flagged": True, "message": outcome.message, "moderation": outcome.moderation},
        )
    return {"flagged": False, "case": outcome.case}


@router.get('/cases')
def list_cases(
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=settings.MAX_CASES_PER_PAGE),
    q: Optional[str] = None,
    tag: List[str] = Query([]),
):
    """Public gallery page, newest first, filtered by keyword and tags."""
    return get_cases(
        page=page,
        per_page=per_page or settings.CASES_PER_PAGE,
        keyword=q.strip() if q and q.strip() else None,
        tags=[t for t in tag if t],
    )


@router.get('/cases/{case_id}')
def case_detail(case_id: str):
    """Case detail including the stored transcript."""
    case = get_case(case_id=case_id)
    if case is None:
        raise HTTPException(status_code=404, detail='Case not found')
    return case


@router.get('/tags')
def tags():
    """Sorted list of every tag used by a stored case."""
    return get_unique_tags()


@router.post('/admin/login')
def admin_login(data: AdminCredentials, response: Response):
    """Authenticate the administrator and set a signed JWT cookie."""
    if (
        not settings.ADMIN_USERNAME
        or not settings.ADMIN_PASSWORD_HASH
        or data.username != settings.ADMIN_USERNAME
        or not check_password(data.password, settings.ADMIN_PASSWORD_HASH)
    ):
        raise HTTPException(status_code=401, detail='Invalid credentials')

    access_token = create_access_token({'sub': data.username})
    response.set_cookie(
        key="token",
        value=access_token,
        httponly=True,
        secure=False,  # True behind HTTPS
        samesite="lax",
    )
    return {"username": data.username}


@router.post('/admin/logout')
def admin_logout(response: Response):
    """Logout by clearing the auth cookie `token`."""
    response.delete_cookie(key="token")
    return True


@router.get('/admin/cases')
def admin_list_cases(
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=settings.MAX_CASES_PER_PAGE),
    q: Optional[str] = None,
    admin: str = Depends(require_admin),
):
    return get_cases(
        page=page,
        per_page=per_page or settings.CASES_PER_PAGE,
        keyword=q.strip() if q and q.strip() else None,
    )


@router.get('/admin/cases/{case_id}')
def admin_get_case(case_id: str, admin: str = Depends(require_admin)):
    case = get_case(case_id=case_id)
    if case is None:
        raise HTTPException(status_code=404, detail='Case not found')
    return case


@router.put('/admin/cases/{case_id}')
def admin_update_case(case_id: str, data: CaseUpdate, admin: str = Depends(require_admin)):
    """Edit title, summary, tags and image URL of a case; omitted fields are kept."""
    case = update_case(
        case_id=case_id,
        title=data.title,
        summary=data.summary,
        tags=normalize_tags(data.tags) if data.tags is not None else None,
        image_url=data.image_url,
    )
    if case is None:
        raise HTTPException(status_code=404, detail='Case not found')
    logger.info(f"Case {case_id} updated by {admin}")
    return case


@router.delete('/admin/cases/{case_id}')
def admin_delete_case(case_id: str, admin: str = Depends(require_admin)):
    """Delete a case (the client asks for confirmation first)."""
    if not delete_case(case_id=case_id):
        raise HTTPException(status_code=404, detail='Case not found')
    logger.info(f"Case {case_id} deleted by {admin}")
    return {"deleted": True, "id": case_id}


@router.get('/admin/moderation-logs')
def admin_moderation_logs(admin: str = Depends(require_admin)):
    """Submissions rejected by the moderation gate, newest first."""
    return get_moderation_logs()
