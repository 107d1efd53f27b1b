"""
API Package — FastAPI Router • Models • Completion Client • Conversation Flow • Moderation
========================================================================================

Mission
-------
This package defines the backend's HTTP interface and the AI orchestration behind
the conversational failure-case form: a stateless state machine that interviews the
submitter, extracts structured fields through forced function calls, writes a
paragraph summary, tags and a title, illustrates the case, and passes everything
through a moderation gate before it is published in the gallery.

Contents
--------
- fast_api
    FastAPI router mounted under `/api`:
      • /conversation: one state-machine turn per request
      • /moderate, /generate-image-from-summary: helpers of the review screen
      • /analyze, /generate-image: legacy one-shot flow
      • /cases, /cases/{id}, /tags: submission and public gallery
      • /admin/*: cookie-authenticated back-office (cases, moderation logs)

- models
    Pydantic data contracts for request validation.

- completion_client
    `CompletionClient` wrapping LangChain `ChatOpenAI` and the OpenAI SDK;
    every provider failure surfaces as `CompletionError`.

- conversation_flow
    States, transition policy, field merging and finalization of a turn.

- moderation
    `ModerationGate`: classify, log rejections, store clean cases.

- prompts
    Japanese system prompts and function-call schemas.

- utils
    JWT and bcrypt helpers, tag conversions, LLM output normalization.

Operational Notes
-----------------
- Security: admin access via HttpOnly `token` cookie (JWT). Never log secrets.
- Language: prompts and user-facing messages are Japanese; image prompts are English.
"""
