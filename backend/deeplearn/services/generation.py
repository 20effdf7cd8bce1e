"""AI-backed operations: feed generation, thread expansion, follow-ups and Home suggestions.

Each operation runs strictly in sequence: sanitize input, optionally classify
whether web grounding is needed, call the completion endpoint, recover the
structured payload and persist it.
"""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from deeplearn.core.config import settings
from deeplearn.core.security import Identity
from deeplearn.models.feed import FeedGenerateResponse
from deeplearn.models.thread import OriginalReply, ThreadCreate
from deeplearn.models.topic import TopicCreate
from deeplearn.services import interests, prompts, suggestions, threads, topics
from deeplearn.services.llm import (
    CompletionClient,
    CompletionResult,
    LLMServiceError,
    classify_needs_web_grounding,
    get_completion_client,
    log_ai,
    select_model,
)
from deeplearn.services.recovery import parse_replies, parse_string_array, parse_thread_batch
from deeplearn.services.storage import storage_errors
from deeplearn.utils.text_sanitize import sanitize_for_db, sanitize_for_prompt


logger = logging.getLogger(__name__)

TOPIC_MAX_CHARS = 500
QUESTION_MAX_CHARS = 2000
REPLY_CONTEXT_MAX_CHARS = 2000
SUGGESTION_MAX_CHARS = 1000
ANSWER_MAX_CHARS = 8000
THREAD_TEXT_MAX_CHARS = 4000
INTEREST_MAX_CHARS = 80
COVERED_ITEM_MAX_CHARS = 200
MIN_ANSWER_CHARS = 2


class InvalidInputError(ValueError):
    """Raised when a required field is missing or empty after sanitizing."""


class GenerationError(RuntimeError):
    """Raised when the AI step fails or yields nothing usable; surfaced as 502."""


async def _complete(
    fn: str,
    client: CompletionClient,
    *,
    model: str,
    prompt: str,
    temperature: float,
    max_tokens: int,
) -> CompletionResult:
    try:
        result = await client.complete(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except LLMServiceError as exc:
        log_ai(fn, model=model, error=exc)
        raise GenerationError("AI service error") from exc
    log_ai(fn, model=model, result=result)
    return result


async def _grounded_model(client: CompletionClient, classifier_prompt: str) -> str:
    use_web = await classify_needs_web_grounding(client, classifier_prompt)
    return select_model(use_web)


async def generate_feed(
    identity: Identity,
    raw_topic: str,
    *,
    client: Optional[CompletionClient] = None,
) -> FeedGenerateResponse:
    raw_topic = raw_topic.strip() if isinstance(raw_topic, str) else ""
    topic = sanitize_for_prompt(raw_topic, TOPIC_MAX_CHARS)
    if not topic:
        raise InvalidInputError("Missing or empty topic")

    client = client or get_completion_client()
    model = await _grounded_model(client, prompts.feed_classifier_prompt(topic))
    logger.info("[feed-generate] request model=%s topic=%r", model, topic)

    result = await _complete(
        "feed-generate",
        client,
        model=model,
        prompt=prompts.feed_prompt(
            topic,
            threads_count=settings.feed_threads_count,
            replies_per_thread=settings.feed_replies_per_thread,
        ),
        temperature=settings.feed_temperature,
        max_tokens=settings.feed_max_output_tokens,
    )

    drafts = parse_thread_batch(
        result.content,
        settings.feed_threads_count,
        settings.feed_replies_per_thread,
    )
    if not drafts:
        logger.error(
            "[feed-generate] no threads recovered model=%s raw=%r",
            model,
            result.content[:500],
        )
        raise GenerationError("No threads generated. Please try again.")

    with storage_errors("Failed to save topic"):
        topic_row = await topics.create_topic(
            TopicCreate(
                user_id=identity.user_id,
                query=sanitize_for_db(raw_topic, TOPIC_MAX_CHARS) or topic,
            )
        )

    with storage_errors("Failed to save threads"):
        created = await threads.create_threads(
            [
                ThreadCreate(
                    topic_id=topic_row.id,
                    main_post=draft.main,
                    replies=[OriginalReply(content=reply) for reply in draft.replies],
                )
                for draft in drafts
            ]
        )

    logger.info(
        "[feed-generate] success topic=%s threads=%s",
        topic_row.id,
        [str(thread.id) for thread in created],
    )
    return FeedGenerateResponse(
        topic_id=topic_row.id,
        thread_ids=[thread.id for thread in created],
        threads=created,
    )


async def expand_suggestion(
    identity: Identity,
    raw_suggestion: str,
    *,
    client: Optional[CompletionClient] = None,
) -> UUID:
    """Turn a Home suggestion into a thread under the user's Home topic."""

    raw_suggestion = raw_suggestion.strip() if isinstance(raw_suggestion, str) else ""
    suggestion = sanitize_for_prompt(raw_suggestion, SUGGESTION_MAX_CHARS)
    if not suggestion:
        raise InvalidInputError("Missing or empty suggestion")

    client = client or get_completion_client()

    with storage_errors("Failed to create topic"):
        home_topic = await topics.get_or_create_home_topic(identity.user_id)

    with storage_errors("Failed to create thread"):
        thread = await threads.create_thread(
            ThreadCreate(
                topic_id=home_topic.id,
                main_post=sanitize_for_db(raw_suggestion, SUGGESTION_MAX_CHARS) or suggestion,
                replies=[],
            )
        )

    model = await _grounded_model(client, prompts.expand_classifier_prompt(suggestion))
    logger.info("[thread-from-suggestion] request model=%s chars=%s", model, len(suggestion))

    result = await _complete(
        "thread-from-suggestion",
        client,
        model=model,
        prompt=prompts.expand_prompt(suggestion, replies_count=settings.expand_replies_count),
        temperature=settings.expand_temperature,
        max_tokens=settings.expand_max_output_tokens,
    )
    if not result.content:
        raise GenerationError("AI returned an empty response. Please try again.")

    replies = parse_replies(result.content, settings.expand_replies_count)
    if not replies:
        logger.error(
            "[thread-from-suggestion] no replies recovered model=%s raw=%r",
            model,
            result.content[:200],
        )
        raise GenerationError("AI could not generate replies. Please try again.")

    with storage_errors("Failed to save replies"):
        await threads.replace_replies(
            thread.id, [OriginalReply(content=reply) for reply in replies]
        )

    logger.info("[thread-from-suggestion] success thread=%s replies=%s", thread.id, len(replies))
    return thread.id


async def answer_follow_up(
    identity: Identity,
    thread_id: UUID,
    raw_question: str,
    *,
    reply_context: Optional[str] = None,
    reply_index: Optional[int] = None,
    client: Optional[CompletionClient] = None,
) -> str:
    """Answer a question about a thread and splice the exchange into its replies.

    Raises ``ThreadNotFoundError`` / ``ThreadAccessDeniedError`` from the
    ownership check before any model call is made.
    """

    raw_question = raw_question.strip() if isinstance(raw_question, str) else ""
    question = sanitize_for_prompt(raw_question, QUESTION_MAX_CHARS)
    if not question:
        raise InvalidInputError("Missing or invalid question")
    focus = (
        sanitize_for_prompt(reply_context.strip(), REPLY_CONTEXT_MAX_CHARS)
        if isinstance(reply_context, str) and reply_context.strip()
        else None
    )
    if reply_index is not None and reply_index < 0:
        reply_index = None

    client = client or get_completion_client()

    with storage_errors("Failed to load thread"):
        thread = await threads.get_owned_thread(thread_id, identity.user_id)

    context = prompts.thread_context(
        sanitize_for_prompt(thread.main_post, THREAD_TEXT_MAX_CHARS),
        [sanitize_for_prompt(reply.content, THREAD_TEXT_MAX_CHARS) for reply in thread.replies],
    )

    model = await _grounded_model(client, prompts.ask_classifier_prompt(context, question))
    logger.info(
        "[thread-ask] request thread=%s model=%s question_chars=%s",
        thread_id,
        model,
        len(question),
    )

    result = await _complete(
        "thread-ask",
        client,
        model=model,
        prompt=prompts.ask_prompt(context, question, focus),
        temperature=settings.ask_temperature,
        max_tokens=settings.ask_max_output_tokens,
    )
    answer = result.content
    if not answer or len(answer) < MIN_ANSWER_CHARS:
        logger.error("[thread-ask] empty reply model=%s", model)
        raise GenerationError("AI returned an empty response. Please try again.")

    updated = threads.splice_exchange(
        thread.replies,
        sanitize_for_db(raw_question, QUESTION_MAX_CHARS),
        sanitize_for_db(answer, ANSWER_MAX_CHARS),
        reply_index,
    )
    with storage_errors("Failed to save reply"):
        await threads.replace_replies(thread.id, updated)

    logger.info("[thread-ask] success thread=%s", thread_id)
    return answer


async def generate_home_suggestions(
    identity: Identity,
    *,
    client: Optional[CompletionClient] = None,
) -> List[str]:
    """Generate new Home ideas from the user's interests; returns the merged list newest first."""

    with storage_errors("Failed to load interests"):
        raw_interests = await interests.get_interests(identity.user_id)
    tags = [
        cleaned
        for cleaned in (sanitize_for_prompt(tag.strip(), INTEREST_MAX_CHARS) for tag in raw_interests)
        if cleaned
    ]
    if not tags:
        logger.info("[home-suggestions] no interests for %s", identity.user_id)
        return []

    client = client or get_completion_client()

    with storage_errors("Failed to load suggestions"):
        home_topic = await topics.find_home_topic(identity.user_id)
        home_threads = await threads.list_threads([home_topic.id]) if home_topic else []
        stored = await suggestions.get_suggestions(identity.user_id)

    opened = [thread.main_post.strip() for thread in home_threads if thread.main_post.strip()]
    covered = suggestions.merge_suggestions(opened, stored)[: settings.home_max_already_covered]
    covered_lines = [
        line
        for line in (sanitize_for_prompt(item, COVERED_ITEM_MAX_CHARS) for item in covered)
        if line
    ]

    model = await _grounded_model(client, prompts.home_classifier_prompt(tags))
    logger.info("[home-suggestions] request model=%s interests=%s", model, len(tags))
    result = await _complete(
        "home-suggestions",
        client,
        model=model,
        prompt=prompts.home_suggestions_prompt(
            tags,
            covered_lines,
            max_suggestions=settings.home_max_suggestions,
        ),
        temperature=settings.home_temperature,
        max_tokens=settings.home_max_output_tokens,
    )
    if not result.content:
        raise GenerationError("AI returned an empty response. Please try again.")

    fresh = parse_string_array(result.content, settings.home_max_suggestions)
    if not fresh:
        logger.error(
            "[home-suggestions] no suggestions recovered model=%s raw=%r",
            model,
            result.content[:200],
        )
        raise GenerationError("AI could not generate suggestions. Please try again.")

    merged = suggestions.merge_suggestions(
        stored,
        fresh,
        max_stored=settings.home_suggestions_max_stored,
    )
    with storage_errors("Failed to save suggestions"):
        await suggestions.save_suggestions(identity.user_id, merged)

    logger.info("[home-suggestions] success total=%s new=%s", len(merged), len(fresh))
    return list(reversed(merged))
