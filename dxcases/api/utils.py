"""
Shared helpers for the API layer.

Functions
---------
create_access_token(data: dict) -> str
    Creates a signed JWT access token with an expiration (`exp`) claim.
verify_token(token: str) -> str | None
    Verify a JWT's signature & expiration and return the subject (`sub`) if valid.
hash_password / check_password
    bcrypt helpers for the administrator password.
parse_tags / normalize_tags / extract_unique_tags
    Conversions between the stored JSON tag text and Python lists.
lc_text_from_content / parse_llm_json
    Normalization of LangChain message content and lenient JSON decoding.

Environment contract (from `settings`)
--------------------------------------
SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
"""

import json
import logging
import re
from datetime import datetime
from typing import Iterable, Optional, Union

import bcrypt
from jose import jwt, JWTError
from json_repair import repair_json

from dxcases.database.config.config import settings

logger = logging.getLogger("uvicorn")


def create_access_token(data: dict) -> str:
    """
    Create a signed JWT access token.

    Adds an `exp` (expiration) claim calculated from ACCESS_TOKEN_EXPIRE_MINUTES
    and signs with `settings.SECRET_KEY` / `settings.ALGORITHM`.
    """
    encoding = data.copy()
    expires = int(datetime.now().timestamp()) + (int(settings.ACCESS_TOKEN_EXPIRE_MINUTES) * 60)
    encoding.update({"exp": expires})
    return jwt.encode(encoding, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> Optional[str]:
    """
    Verify a JWT and return its subject.

    On any JWTError (invalid signature, expired, malformed) returns None.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload.get("sub")
    except JWTError as e:
        logger.info(f"Rejected admin token: {e}")
        return None


def hash_password(text: str) -> str:
    """Hash a plaintext password with a fresh bcrypt salt."""
    return bcrypt.hashpw(text.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(plain_text: str, hashed: str) -> bool:
    """True if `plain_text` matches the bcrypt `hashed` value."""
    try:
        return bcrypt.checkpw(plain_text.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # malformed hash in configuration
        logger.error("ADMIN_PASSWORD_HASH is not a valid bcrypt hash")
        return False


def parse_tags(raw: Union[str, list, None]) -> list[str]:
    """
    Decode a stored tag value.

    Accepts the JSON text stored in the `tags` column or an already decoded
    list. Anything that does not decode to a list yields [].
    """
    if isinstance(raw, list):
        return [str(tag) for tag in raw]
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing tags: {e}")
        return []
    return [str(tag) for tag in parsed] if isinstance(parsed, list) else []


def normalize_tags(tags: Union[str, Iterable[str], None]) -> list[str]:
    """
    Turn admin input into a clean tag list.

    A string is split on commas; every entry is stripped and empty entries dropped.
    """
    if tags is None:
        return []
    items = tags.split(",") if isinstance(tags, str) else tags
    return [tag.strip() for tag in items if tag and tag.strip()]


def extract_unique_tags(tag_values: Iterable[Union[str, list, None]]) -> list[str]:
    """Collect unique tags over many stored values, sorted."""
    all_tags = set()
    for raw in tag_values:
        all_tags.update(parse_tags(raw))
    return sorted(all_tags)


def lc_text_from_content(content) -> str:
    """Normalize LangChain message content (str or list of parts) to plain text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(p.get("text", "") for p in content if isinstance(p, dict) and p.get("type") == "text")
    return str(content)


def parse_llm_json(raw: str) -> dict:
    """
    Parse model output into a JSON object with optional repair.

    Steps:
        1) Strip markdown code fences.
        2) Try `json.loads`.
        3) Fallback: `json_repair.repair_json` then `json.loads`.

    Raises:
        ValueError if the text still cannot be decoded into an object.
    """
    raw = raw.strip()
    if raw.startswith("```"):
        raw = re.sub(r"^```(?:json)?\n", "", raw)
        raw = re.sub(r"\n```$", "", raw)

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        try:
            parsed = json.loads(repair_json(raw))
        except Exception as e:
            raise ValueError(f"Failed to parse LLM JSON: {e}\nRAW:\n{raw[:500]}")
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed
