"""
Completion Client Tests

Drives `CompletionClient` with a fake LangChain chat model and a fake OpenAI
SDK client; no network access.

Run with: pytest tests/test_completion_client.py -v
"""

from types import SimpleNamespace

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from dxcases.api import prompts
from dxcases.api.completion_client import (
    CompletionClient,
    CompletionError,
    load_completion_client,
    to_langchain_messages,
)


# =============================================================================
# FAKES
# =============================================================================

class FakeChatModel:
    """Records bindings and invocations; answers with a fixed AIMessage."""

    def __init__(self, response=None, error=None):
        self.response = response if response is not None else AIMessage(content="")
        self.error = error
        self.bound_tools = []
        self.bound_kwargs = []
        self.invocations = []

    def bind_tools(self, tools, tool_choice=None):
        self.bound_tools.append((tools, tool_choice))
        return self

    def bind(self, **kwargs):
        self.bound_kwargs.append(kwargs)
        return self

    def invoke(self, messages):
        self.invocations.append(messages)
        if self.error:
            raise self.error
        return self.response


class FakeOpenAI:
    """Minimal stand-in for `openai.OpenAI` with images and moderations."""

    def __init__(self, image_response=None, moderation_response=None, error=None):
        self.image_response = image_response
        self.moderation_response = moderation_response
        self.error = error
        self.image_requests = []
        self.moderation_requests = []
        self.images = SimpleNamespace(generate=self._generate)
        self.moderations = SimpleNamespace(create=self._create)

    def _generate(self, **kwargs):
        self.image_requests.append(kwargs)
        if self.error:
            raise self.error
        return self.image_response

    def _create(self, **kwargs):
        self.moderation_requests.append(kwargs)
        if self.error:
            raise self.error
        return self.moderation_response


def tool_message(name, args, content=""):
    return AIMessage(content=content, tool_calls=[{"name": name, "args": args, "id": "call_1"}])


@pytest.fixture
def openai_client():
    return FakeOpenAI(
        image_response=SimpleNamespace(data=[SimpleNamespace(url="https://images.example.com/a.png")]),
        moderation_response=SimpleNamespace(
            results=[
                SimpleNamespace(
                    flagged=True,
                    categories={"violence": True, "hate": False},
                    category_scores={"violence": 0.97, "hate": 0.01},
                )
            ]
        ),
    )


# =============================================================================
# MESSAGE CONVERSION
# =============================================================================

def test_to_langchain_messages():
    lc_messages = to_langchain_messages(
        "system",
        [{"role": "user", "content": "こんにちは"}, {"role": "assistant", "content": "どうぞ"}],
    )
    assert [type(m) for m in lc_messages] == [SystemMessage, HumanMessage, AIMessage]
    assert lc_messages[1].content == "こんにちは"


def test_to_langchain_messages_without_system_prompt():
    assert len(to_langchain_messages(None, [{"role": "user", "content": "x"}])) == 1


# =============================================================================
# EXTRACTION
# =============================================================================

def test_extract_conversation_data_forces_the_function(openai_client):
    name = prompts.EXTRACTION_FUNCTION["function"]["name"]
    chat = FakeChatModel(tool_message(name, {"when": "昨年", "impact": "遅延"}, content=" いつ頃ですか？ "))
    client = CompletionClient(chat, openai_client)

    reply, extracted = client.extract_conversation_data("system", [{"role": "user", "content": "失敗した"}])

    assert reply == "いつ頃ですか？"
    assert extracted == {"when": "昨年", "impact": "遅延"}
    assert chat.bound_tools == [([prompts.EXTRACTION_FUNCTION], name)]


def test_malformed_function_arguments_yield_empty_extraction(openai_client):
    response = AIMessage(
        content="続けてください",
        invalid_tool_calls=[
            {"name": "extract_conversation_data", "args": "{not json", "id": "call_1", "error": "bad json"}
        ],
    )
    client = CompletionClient(FakeChatModel(response), openai_client)

    reply, extracted = client.extract_conversation_data("system", [{"role": "user", "content": "x"}])

    assert reply == "続けてください"
    assert extracted == {}


def test_request_failure_raises_completion_error(openai_client):
    client = CompletionClient(FakeChatModel(error=RuntimeError("connection reset")), openai_client)
    with pytest.raises(CompletionError):
        client.extract_conversation_data("system", [{"role": "user", "content": "x"}])


# =============================================================================
# SUMMARIES, TAGS, PROMPTS
# =============================================================================

def test_paragraph_summary(openai_client):
    client = CompletionClient(FakeChatModel(AIMessage(content="  一段落の要約。 ")), openai_client)
    assert client.generate_paragraph_summary([{"role": "user", "content": "x"}]) == "一段落の要約。"


def test_empty_paragraph_summary_uses_placeholder(openai_client):
    client = CompletionClient(FakeChatModel(AIMessage(content="")), openai_client)
    assert client.generate_paragraph_summary([{"role": "user", "content": "x"}]) == prompts.SUMMARY_UNAVAILABLE


def test_tags_are_capped_and_title_trimmed(openai_client):
    chat = FakeChatModel(
        tool_message("generate_tags_and_title", {"tags": ["a", "b", "", "c", "d", "e", "f"], "title": " タイトル "})
    )
    result = CompletionClient(chat, openai_client).generate_tags_and_title("要約")
    assert result == {"tags": ["a", "b", "c", "d", "e"], "title": "タイトル"}


def test_tags_without_function_call(openai_client):
    client = CompletionClient(FakeChatModel(AIMessage(content="no call")), openai_client)
    assert client.generate_tags_and_title("要約") == {}


def test_image_prompt_from_function_call(openai_client):
    chat = FakeChatModel(tool_message("generate_image_prompt", {"prompt": "A broken robot"}))
    assert CompletionClient(chat, openai_client).generate_image_prompt("要約", "題") == "A broken robot"


def test_image_prompt_falls_back_to_template(openai_client):
    client = CompletionClient(FakeChatModel(AIMessage(content="")), openai_client)
    prompt = client.generate_image_prompt("要約", "題")
    assert prompt == prompts.FALLBACK_IMAGE_PROMPT.format(subject="題")


# =============================================================================
# IMAGES & MODERATION
# =============================================================================

def test_generate_image_returns_url(openai_client):
    client = CompletionClient(FakeChatModel(), openai_client)
    assert client.generate_image("A robot") == "https://images.example.com/a.png"
    assert openai_client.image_requests[0]["prompt"] == "A robot"
    assert openai_client.image_requests[0]["n"] == 1


def test_generate_image_without_data_fails():
    client = CompletionClient(FakeChatModel(), FakeOpenAI(image_response=SimpleNamespace(data=[])))
    with pytest.raises(CompletionError):
        client.generate_image("A robot")


def test_generate_image_sdk_error_fails():
    client = CompletionClient(FakeChatModel(), FakeOpenAI(error=RuntimeError("quota")))
    with pytest.raises(CompletionError):
        client.generate_image("A robot")


def test_moderate_violent_text(openai_client):
    client = CompletionClient(FakeChatModel(), openai_client)

    result = client.moderate("殴ってやる")

    assert result["flagged"] is True
    assert result["categories"]["violence"] is True
    assert result["category_scores"]["violence"] == pytest.approx(0.97)
    assert openai_client.moderation_requests == [{"input": "殴ってやる"}]


def test_moderate_without_results_fails():
    client = CompletionClient(FakeChatModel(), FakeOpenAI(moderation_response=SimpleNamespace(results=[])))
    with pytest.raises(CompletionError):
        client.moderate("text")


# =============================================================================
# ANALYZE
# =============================================================================

def test_analyze_parses_fenced_json(openai_client):
    chat = FakeChatModel(AIMessage(content='```json\n{"title": "T", "summary": "S", "tags": ["x"]}\n```'))

    result = CompletionClient(chat, openai_client).analyze("story")

    assert result == {"title": "T", "summary": "S", "tags": ["x"]}
    assert chat.bound_kwargs == [{"response_format": {"type": "json_object"}}]


def test_analyze_empty_answer_fails(openai_client):
    with pytest.raises(CompletionError):
        CompletionClient(FakeChatModel(AIMessage(content="")), openai_client).analyze("story")


# =============================================================================
# CONSTRUCTION
# =============================================================================

def test_missing_api_key_is_reported():
    with pytest.raises(CompletionError, match="OPENAI_API_KEY"):
        load_completion_client()
