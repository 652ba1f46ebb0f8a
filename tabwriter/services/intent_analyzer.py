"""
User-intent analysis.

Summarises the user's draft into a ``UserIntent`` (argument, topics,
evidence needs, gaps, audience) that the relevance scorer reads.
"""

from __future__ import annotations

import structlog
from pydantic import ValidationError

from tabwriter.core.exceptions import InvalidInputError
from tabwriter.models.evidence import UserIntent
from tabwriter.services.llm_client import CompletionClient
from tabwriter.utils.json_extract import extract_json_object

logger = structlog.get_logger(__name__)

INTENT_SYSTEM_PROMPT = """Analyze the user's text to understand what kind of supporting evidence would be most valuable.

Identify:
1. Main argument or thesis
2. Key topics and themes
3. Type of evidence needed (statistics, expert quotes, research findings, etc.)
4. Gaps where supporting data would strengthen the argument
5. Writing style and target audience

Return as JSON: {"mainArgument": "...", "keyTopics": ["..."], "evidenceNeeds": ["..."], "gaps": ["..."], "audience": "..."}"""


def _build_prompt(user_text: str) -> str:
    return (
        "Analyze this text to understand what supporting evidence would be most helpful:"
        f'\n\n"{user_text}"'
    )


async def analyze_user_intent(user_text: str, client: CompletionClient) -> UserIntent:
    """Derive the writer's intent; unparseable replies give ``UserIntent.placeholder()``.

    ``CompletionUnavailable`` from the client propagates.
    """
    if not user_text or not user_text.strip():
        raise InvalidInputError("User text is required")

    reply = await client.complete(
        INTENT_SYSTEM_PROMPT,
        _build_prompt(user_text),
        max_tokens=300,
        temperature=0.2,
    )

    payload = extract_json_object(reply)
    if payload is None:
        logger.warning("Intent analysis reply had no JSON object", reply_preview=reply[:120])
        return UserIntent.placeholder()
    try:
        intent = UserIntent.model_validate(payload)
    except ValidationError as ve:
        logger.warning("Intent analysis reply failed validation", error=str(ve))
        return UserIntent.placeholder()

    if not intent.main_argument:
        intent = intent.model_copy(update={"main_argument": UserIntent.placeholder().main_argument})
    logger.debug("User intent analysed", topics=intent.key_topics, audience=intent.audience)
    return intent
