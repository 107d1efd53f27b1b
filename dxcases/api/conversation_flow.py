"""
Conversation State Machine
==========================

Drives the conversational submission form. The server keeps no state between
requests: every turn receives a `ConversationSession` (full transcript,
accumulated conversation data, current state tag) and returns a
`ConversationTurn` the client sends back on its next turn.

Transition policy
-----------------
- waiting_for_initial_submission → asking_for_additional_details, always.
- asking_for_additional_details → conversation_completed when the latest user
  message contains an advice keyword; → asking_for_suggestions once the
  transcript holds `turn_threshold` user messages; otherwise unchanged.
- asking_for_suggestions → conversation_completed on an advice keyword, or once
  the transcript holds `suggestion_turn_limit` user messages (0 disables that cap).
- conversation_completed is terminal.

On the turn that enters conversation_completed a paragraph summary and then
tags/title are generated, each only if not already present.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from dxcases.api import prompts
from dxcases.api.completion_client import CompletionClient, CompletionError

logger = logging.getLogger("uvicorn")


class ConversationState(str, Enum):
    WAITING_FOR_INITIAL_SUBMISSION = "waiting_for_initial_submission"
    ASKING_FOR_ADDITIONAL_DETAILS = "asking_for_additional_details"
    ASKING_FOR_SUGGESTIONS = "asking_for_suggestions"
    CONVERSATION_COMPLETED = "conversation_completed"


STATE_ALIASES = {
    "initial": ConversationState.WAITING_FOR_INITIAL_SUBMISSION,
    "gathering_details": ConversationState.ASKING_FOR_ADDITIONAL_DETAILS,
    "seeking_suggestions": ConversationState.ASKING_FOR_SUGGESTIONS,
    "summarizing": ConversationState.CONVERSATION_COMPLETED,
}
"""Older state names still sent by some clients."""

ADVICE_KEYWORDS = (
    'すればよかった', 'しておけば', 'べきだった', 'した方が', 'するべき',
    'してほしい', 'してくれたら', 'してほしかった', 'すれば', 'するといい',
    '改善', 'アドバイス', '提案', '次回は', '今後は',
)

EXTRACTION_FIELDS = ("when", "location", "who", "summary", "impact", "cause", "suggestions")
"""Fields the extraction function call may fill."""

CONVERSATION_FIELDS = EXTRACTION_FIELDS + ("tags", "title", "paragraph_summary", "image_url")

LIST_FIELDS = ("tags",)


@dataclass
class ConversationSession:
    """Everything the client holds between turns."""
    messages: list[dict]
    conversation_data: dict = field(default_factory=dict)
    state: ConversationState = ConversationState.WAITING_FOR_INITIAL_SUBMISSION


@dataclass
class ConversationTurn:
    message: str
    conversation_data: dict
    next_state: ConversationState
    complete: bool


def parse_state(value: Optional[str]) -> ConversationState:
    """
    Resolve a client-supplied state tag.

    Canonical names and `STATE_ALIASES` are accepted; anything else starts the
    conversation from the initial state.
    """
    if not value:
        return ConversationState.WAITING_FOR_INITIAL_SUBMISSION
    if value in STATE_ALIASES:
        return STATE_ALIASES[value]
    try:
        return ConversationState(value)
    except ValueError:
        logger.warning(f"Unknown conversation state {value!r}; treating it as the initial state")
        return ConversationState.WAITING_FOR_INITIAL_SUBMISSION


def has_advice_or_suggestion(message: str) -> bool:
    return any(keyword in message for keyword in ADVICE_KEYWORDS)


def count_user_messages(messages: list[dict]) -> int:
    return sum(1 for m in messages if m.get("role") == "user")


def last_user_message(messages: list[dict]) -> str:
    for message in reversed(messages):
        if message.get("role") == "user":
            return message.get("content") or ""
    return ""


def get_next_conversation_state(
    current_state: ConversationState,
    messages: list[dict],
    turn_threshold: int = 3,
    suggestion_turn_limit: int = 0,
) -> tuple[ConversationState, bool]:
    """
    Decide the state after the latest user message.

    Returns
    -------
    tuple[ConversationState, bool]
        The next state and whether the conversation is complete.
    """
    latest = last_user_message(messages)
    user_turns = count_user_messages(messages)

    if current_state is ConversationState.WAITING_FOR_INITIAL_SUBMISSION:
        return ConversationState.ASKING_FOR_ADDITIONAL_DETAILS, False

    if current_state is ConversationState.ASKING_FOR_ADDITIONAL_DETAILS:
        if has_advice_or_suggestion(latest):
            return ConversationState.CONVERSATION_COMPLETED, True
        if user_turns >= turn_threshold:
            return ConversationState.ASKING_FOR_SUGGESTIONS, False
        return ConversationState.ASKING_FOR_ADDITIONAL_DETAILS, False

    if current_state is ConversationState.ASKING_FOR_SUGGESTIONS:
        if has_advice_or_suggestion(latest):
            return ConversationState.CONVERSATION_COMPLETED, True
        if suggestion_turn_limit and user_turns >= suggestion_turn_limit:
            logger.info(f"Suggestion phase reached {user_turns} user turns; completing without advice")
            return ConversationState.CONVERSATION_COMPLETED, True
        return ConversationState.ASKING_FOR_SUGGESTIONS, False

    return ConversationState.CONVERSATION_COMPLETED, True


def get_system_prompt_for_state(state: ConversationState, messages: list[dict]) -> str:
    """System instruction for the extraction call of a turn entering `state`."""
    if state is ConversationState.WAITING_FOR_INITIAL_SUBMISSION:
        return prompts.INITIAL_SUBMISSION_PROMPT
    if state is ConversationState.ASKING_FOR_ADDITIONAL_DETAILS:
        first_reply = count_user_messages(messages) <= 1
        return prompts.ADDITIONAL_DETAILS_PROMPT.format(
            role=prompts.ASSISTANT_ROLE,
            opening=prompts.FIRST_REPLY_HINT if first_reply else prompts.FOLLOWING_REPLY_HINT,
            instruction=prompts.EXTRACTION_INSTRUCTION,
        )
    if state is ConversationState.ASKING_FOR_SUGGESTIONS:
        return prompts.SUGGESTIONS_PROMPT
    return prompts.COMPLETED_PROMPT


def _is_empty(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def _has_field_type(key: str, value) -> bool:
    if key in LIST_FIELDS:
        return isinstance(value, list) and all(isinstance(item, str) for item in value)
    return isinstance(value, str)


def merge_conversation_data(current: dict, extracted: dict) -> dict:
    """
    Merge newly extracted fields into the accumulated data.

    Unknown keys, empty values and values of the wrong type are ignored, so a
    field that already holds content is never cleared. Non-empty values
    replace older ones. `tags` is a list of strings; every other field is text.
    """
    merged = {key: value for key, value in current.items() if not _is_empty(value)}
    for key, value in extracted.items():
        if key not in CONVERSATION_FIELDS or _is_empty(value):
            continue
        if not _has_field_type(key, value):
            logger.warning(f"Dropping {key!r} from extracted data: unexpected {type(value).__name__}")
            continue
        merged[key] = value
    return merged


def extraction_fields(extracted: dict) -> dict:
    """Keep only the story fields the extraction function is asked for."""
    ignored = [key for key in extracted if key not in EXTRACTION_FIELDS]
    if ignored:
        logger.warning(f"Ignoring fields outside the extraction schema: {ignored}")
    return {key: value for key, value in extracted.items() if key in EXTRACTION_FIELDS}


def finalize_conversation_data(client: CompletionClient, messages: list[dict], data: dict) -> dict:
    """
    Add the paragraph summary and tags/title, each only when still missing.

    A failing summary call propagates; a failing tag call is logged and the
    data is returned without tags.
    """
    if not data.get("paragraph_summary"):
        data = merge_conversation_data(
            data, {"paragraph_summary": client.generate_paragraph_summary(messages)}
        )

    if not data.get("tags"):
        try:
            data = merge_conversation_data(data, client.generate_tags_and_title(data["paragraph_summary"]))
        except CompletionError as e:
            logger.error(f"Error generating tags: {e}")
    return data


def confirmation_message(data: dict) -> str:
    return prompts.CONFIRMATION_MESSAGE.format(paragraph=data.get("paragraph_summary", ""))


def run_conversation_turn(
    client: CompletionClient,
    session: ConversationSession,
    turn_threshold: int = 3,
    suggestion_turn_limit: int = 0,
) -> ConversationTurn:
    """
    Advance the conversation by one user turn.

    Raises
    ------
    CompletionError
        When the extraction, reply or summary request fails.
    """
    data = merge_conversation_data(session.conversation_data, {})

    if session.state is ConversationState.CONVERSATION_COMPLETED:
        if not data.get("paragraph_summary"):
            data = finalize_conversation_data(client, session.messages, data)
        return ConversationTurn(confirmation_message(data), data, session.state, True)

    next_state, should_complete = get_next_conversation_state(
        session.state,
        session.messages,
        turn_threshold=turn_threshold,
        suggestion_turn_limit=suggestion_turn_limit,
    )
    logger.info(f"Conversation state {session.state.value} -> {next_state.value}")

    system_prompt = get_system_prompt_for_state(next_state, session.messages)
    reply, extracted = client.extract_conversation_data(system_prompt, session.messages)
    data = merge_conversation_data(data, extraction_fields(extracted))

    if should_complete:
        data = finalize_conversation_data(client, session.messages, data)
        return ConversationTurn(confirmation_message(data), data, next_state, True)

    if not reply:
        reply = client.generate_reply(system_prompt, session.messages)
    return ConversationTurn(reply or prompts.DEFAULT_REPLY, data, next_state, False)
