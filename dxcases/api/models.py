"""
Pydantic models used for request/response validation and API data contracts.

JSON bodies use the camelCase keys of the web client (`conversationData`,
`conversationState`); Python code reads the snake_case attribute names.
"""

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """
    One entry of the conversation transcript.
    """
    role: Literal["user", "assistant"]
    """Who wrote the message."""
    content: str
    """The message text."""


class ConversationData(BaseModel):
    """
    Structured story fields accumulated over the conversation.
    """
    model_config = ConfigDict(extra="ignore")

    when: Optional[str] = None
    """When the failure happened."""
    location: Optional[str] = None
    """Where it happened (team, project, site)."""
    who: Optional[str] = None
    """Who was involved."""
    summary: Optional[str] = None
    """Short description of what went wrong."""
    impact: Optional[str] = None
    """What the failure affected."""
    cause: Optional[str] = None
    """Root cause or reason."""
    suggestions: Optional[str] = None
    """Advice the submitter would give next time."""
    tags: Optional[List[str]] = None
    """Generated tags (at most five)."""
    title: Optional[str] = None
    """Generated case title."""
    paragraph_summary: Optional[str] = None
    """One-paragraph synthesis of the whole transcript."""
    image_url: Optional[str] = None
    """URL of the generated illustration."""


class ModerationRequest(BaseModel):
    content: Optional[str] = None
    """Text to classify."""


class ImageFromSummaryRequest(BaseModel):
    summary: Optional[str] = None
    """Summary of the case to illustrate."""
    title: Optional[str] = None
    """Optional case title used in the prompt."""


class AnalyzeRequest(BaseModel):
    input: Optional[str] = None
    """Free-text failure story (legacy one-shot flow)."""


class GenerateImageRequest(BaseModel):
    prompt: Optional[str] = None
    """Ready-made image prompt (legacy flow)."""


class CaseSubmission(BaseModel):
    """
    Confirmation of a finished conversation from the review screen.
    """
    model_config = ConfigDict(populate_by_name=True)

    conversation_data: ConversationData = Field(..., alias="conversationData")
    """Finalized conversation data, including the generated image URL."""
    messages: List[ChatMessage] = Field(default_factory=list)
    """Transcript stored with the case as an audit trail."""


class CaseUpdate(BaseModel):
    """
    Admin edit of a published case.
    """
    title: Optional[str] = None
    """New title; omitted keeps the current one."""
    summary: Optional[str] = None
    """New gallery summary; omitted keeps the current one."""
    tags: Union[List[str], str, None] = None
    """Either a list or a comma-separated string; omitted keeps the current tags."""
    image_url: Optional[str] = None
    """New illustration URL; omitted keeps the current one."""


class AdminCredentials(BaseModel):
    """
    Represents login credentials for the administrator.
    """
    username: str
    password: str
