"""
Completion Client — Extraction • Summaries • Tags • Illustrations • Moderation
==============================================================================

Purpose
-------
One object wrapping every call this service makes to the hosted AI provider:
- Chat completions through LangChain `ChatOpenAI` (structured extraction via a
  forced function call, paragraph summaries, tag/title generation, image
  prompts, JSON-mode analysis).
- Image synthesis and content moderation through the OpenAI SDK.

Failure Model
-------------
- Any request failure (network error, missing credentials, empty result) is
  raised as `CompletionError` with the cause chained.
- A malformed function-call payload is not a request failure: it is logged and
  treated as an empty result, so the caller keeps its previous data.
- No retries: one failure ends the current request.

Configuration (settings)
------------------------
- settings.OPENAI_API_KEY, settings.OPEN_AI_MODEL, settings.OPEN_AI_TEMPERATURE
- settings.IMAGE_MODEL, settings.IMAGE_SIZE, settings.IMAGE_QUALITY
"""

import logging
from typing import Optional

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from openai import OpenAI

from dxcases.api import prompts
from dxcases.api.utils import lc_text_from_content, parse_llm_json
from dxcases.database.config.config import settings

logger = logging.getLogger("uvicorn")


class CompletionError(Exception):
    """Raised when a call to the AI provider fails."""


def to_langchain_messages(system_prompt: Optional[str], messages: list[dict]) -> list:
    """
    Convert a {role, content} transcript into LangChain messages.

    Roles other than 'assistant' are sent as human turns.
    """
    lc_messages = [SystemMessage(content=system_prompt)] if system_prompt else []
    for message in messages:
        content = message.get("content") or ""
        if message.get("role") == "assistant":
            lc_messages.append(AIMessage(content=content))
        else:
            lc_messages.append(HumanMessage(content=content))
    return lc_messages


class CompletionClient:
    """
    Facade over the chat, image and moderation endpoints.

    Parameters
    ----------
    chat_model :
        A LangChain chat model supporting `invoke`, `bind_tools` and `bind`.
    openai_client :
        An `openai.OpenAI` client used for images and moderations.
    """

    def __init__(self, chat_model, openai_client):
        self.chat_model = chat_model
        self.openai_client = openai_client

    def _invoke(self, model, lc_messages, operation: str):
        try:
            return model.invoke(lc_messages)
        except Exception as e:
            logger.error(f"Error in CompletionClient.{operation}. Error: {e}")
            raise CompletionError(f"{operation} failed: {e}") from e

    @staticmethod
    def _function_arguments(response, function_name: str) -> dict:
        """Return the arguments of the named tool call, or {} if absent or malformed."""
        for call in getattr(response, "tool_calls", None) or []:
            if call.get("name") == function_name and isinstance(call.get("args"), dict):
                return dict(call["args"])
        for invalid in getattr(response, "invalid_tool_calls", None) or []:
            logger.error(
                f"Error parsing function call arguments for {function_name}: {invalid.get('error')}"
            )
        return {}

    def _call_function(self, function: dict, lc_messages: list, operation: str):
        name = function["function"]["name"]
        model = self.chat_model.bind_tools([function], tool_choice=name)
        response = self._invoke(model, lc_messages, operation)
        return lc_text_from_content(response.content).strip(), self._function_arguments(response, name)

    def extract_conversation_data(self, system_prompt: str, messages: list[dict]) -> tuple[str, dict]:
        """
        Ask for the next assistant reply while extracting story fields.

        Returns
        -------
        tuple[str, dict]
            The reply text (may be empty) and the extracted fields.
        """
        return self._call_function(
            prompts.EXTRACTION_FUNCTION,
            to_langchain_messages(system_prompt, messages),
            "extract_conversation_data",
        )

    def generate_reply(self, system_prompt: str, messages: list[dict]) -> str:
        """Plain conversational reply, without function calling."""
        response = self._invoke(
            self.chat_model, to_langchain_messages(system_prompt, messages), "generate_reply"
        )
        return lc_text_from_content(response.content).strip()

    def generate_paragraph_summary(self, messages: list[dict]) -> str:
        """Synthesize one flowing Japanese paragraph over the whole transcript."""
        response = self._invoke(
            self.chat_model,
            to_langchain_messages(prompts.PARAGRAPH_SUMMARY_PROMPT, messages),
            "generate_paragraph_summary",
        )
        return lc_text_from_content(response.content).strip() or prompts.SUMMARY_UNAVAILABLE

    def generate_tags_and_title(self, paragraph: str) -> dict:
        """
        Generate up to five tags and a concise title for a paragraph summary.

        Returns {} when the model answers without a usable function call.
        """
        _, arguments = self._call_function(
            prompts.TAGS_AND_TITLE_FUNCTION,
            [
                SystemMessage(content=prompts.TAGS_AND_TITLE_PROMPT),
                HumanMessage(content=prompts.TAGS_AND_TITLE_REQUEST.format(paragraph=paragraph)),
            ],
            "generate_tags_and_title",
        )
        result = {}
        tags = arguments.get("tags")
        if isinstance(tags, list):
            result["tags"] = [str(tag) for tag in tags if str(tag).strip()][: prompts.MAX_TAGS]
        if isinstance(arguments.get("title"), str) and arguments["title"].strip():
            result["title"] = arguments["title"].strip()
        return result

    def generate_image_prompt(self, summary: str, title: Optional[str] = None) -> str:
        """
        Write an English illustration prompt for a case.

        Falls back to a fixed template when the model returns no usable prompt.
        """
        _, arguments = self._call_function(
            prompts.IMAGE_PROMPT_FUNCTION,
            [
                SystemMessage(content=prompts.IMAGE_PROMPT_PROMPT),
                HumanMessage(content=prompts.IMAGE_PROMPT_REQUEST.format(title=title or "", summary=summary)),
            ],
            "generate_image_prompt",
        )
        prompt = arguments.get("prompt")
        if isinstance(prompt, str) and prompt.strip():
            return prompt.strip()
        return prompts.FALLBACK_IMAGE_PROMPT.format(subject=title or summary)

    def generate_image(self, prompt: str) -> str:
        """Synthesize one illustration and return its URL."""
        try:
            response = self.openai_client.images.generate(
                model=settings.IMAGE_MODEL,
                prompt=prompt,
                n=1,
                size=settings.IMAGE_SIZE,
                quality=settings.IMAGE_QUALITY,
            )
        except Exception as e:
            logger.error(f"Error in CompletionClient.generate_image. Error: {e}")
            raise CompletionError(f"image generation failed: {e}") from e

        if not response or not response.data:
            raise CompletionError("No image data returned from the image API")
        image_url = response.data[0].url
        if not image_url:
            raise CompletionError("No image URL in the image API response")
        return image_url

    def moderate(self, content: str) -> dict:
        """
        Classify `content` with the content-safety endpoint.

        Returns
        -------
        dict
            {'flagged': bool, 'categories': dict, 'category_scores': dict}
        """
        try:
            response = self.openai_client.moderations.create(input=content)
        except Exception as e:
            logger.error(f"Error in CompletionClient.moderate. Error: {e}")
            raise CompletionError(f"moderation failed: {e}") from e

        if not response or not response.results:
            raise CompletionError("Failed to get moderation results")
        result = response.results[0]
        return {
            "flagged": bool(result.flagged),
            "categories": _as_dict(result.categories),
            "category_scores": _as_dict(result.category_scores),
        }

    def analyze(self, text: str) -> dict:
        """One-shot JSON analysis of a free-text story: {title, summary, tags}."""
        json_model = self.chat_model.bind(response_format={"type": "json_object"})
        response = self._invoke(
            json_model,
            [
                SystemMessage(content=prompts.ANALYZE_SYSTEM_PROMPT),
                HumanMessage(content=prompts.ANALYZE_REQUEST.format(input=text)),
            ],
            "analyze",
        )
        raw = lc_text_from_content(response.content)
        if not raw.strip():
            raise CompletionError("Failed to generate response")
        try:
            return parse_llm_json(raw)
        except ValueError as e:
            logger.error(f"Error in CompletionClient.analyze. Error: {e}")
            raise CompletionError(str(e)) from e


def _as_dict(value) -> dict:
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if hasattr(value, "model_dump"):
        return value.model_dump(by_alias=True)
    return dict(value)


def load_completion_client() -> CompletionClient:
    """
    Build a `CompletionClient` from settings.

    Raises
    ------
    CompletionError
        If OPENAI_API_KEY is not configured.
    """
    if not settings.OPENAI_API_KEY:
        raise CompletionError("OPENAI_API_KEY environment variable is missing")
    chat_model = ChatOpenAI(
        model=settings.OPEN_AI_MODEL,
        api_key=settings.OPENAI_API_KEY,
        temperature=settings.OPEN_AI_TEMPERATURE,
    )
    return CompletionClient(chat_model, OpenAI(api_key=settings.OPENAI_API_KEY))
