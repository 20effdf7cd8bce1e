"""Prompt templates for every AI-backed endpoint.

All interpolated values must already be flattened with
``sanitize_for_prompt`` so they cannot break out of their delimited section.
"""

from __future__ import annotations

from typing import Optional, Sequence

YES_NO_SUFFIX = "Reply with only YES or NO."


def feed_classifier_prompt(topic: str) -> str:
    return (
        "Does generating informative, accurate content for the following topic require "
        "external or up-to-date information beyond general knowledge? (e.g. recent events, "
        f"current stats, breaking news.) {YES_NO_SUFFIX}\n\n"
        f"---TOPIC---\n{topic}\n---"
    )


def feed_prompt(topic: str, *, threads_count: int, replies_per_thread: int) -> str:
    reply_slots = ",".join(['"..."'] * replies_per_thread)
    example = f'{{"main":"...","replies":[{reply_slots}]}}'
    return f"""You are an expert educator. Generate exactly {threads_count} informative threads about the topic below.

---TOPIC---
{topic}
---END TOPIC---

Each thread has one main post (a clear hook or key idea, 1-2 sentences) and {replies_per_thread} reply posts that expand on it. Requirements:
- Be factual and accurate. Only state information that is true and verifiable. Use real people, real events, real studies, real works; no invented examples or speculation. If something is uncertain, say so.
- Be substantive and informative. Explain concepts clearly; avoid one-line definitions or vague bullets.
- Include real-life examples where they fit: actual names, events, inventions, historical moments, or published research.
- Each main post or reply can be 1-4 sentences (up to ~400 characters each). Prioritize clarity and usefulness over brevity.
- Keep a conversational but knowledgeable tone. No bullet lists; write in flowing sentences.

Return ONLY valid JSON, no markdown or explanation, in this exact shape:
{{"threads":[{example},{example}, ...]}}

Rules: Output a single JSON object only. Do not wrap in code fences. Do not put actual newline characters inside any string; keep each main and replies item on one line. Never use the double-quote character inside any main or reply string (use single quotes for titles and quoted speech). No trailing commas."""


def expand_classifier_prompt(suggestion: str) -> str:
    return (
        "Does expanding this tweet into an informative thread require external or "
        "up-to-date information beyond general knowledge? (e.g. recent events, current "
        f"stats, specific names/dates.) {YES_NO_SUFFIX}\n\n"
        f"---TWEET---\n{suggestion}\n---"
    )


def expand_prompt(suggestion: str, *, replies_count: int) -> str:
    reply_slots = ",".join(['"..."'] * replies_count)
    return f"""You are an expert educator. This is a single "tweet" (main post) that a reader clicked on. Generate exactly {replies_count} reply posts that expand on it in a thread. Be factual and accurate: only state true, verifiable information. Use real people, real events, real studies; no invented examples. If something is uncertain, say so. Each reply 1-4 sentences, up to ~400 characters. Conversational, flowing sentences; no bullet lists.

---MAIN POST---
{suggestion}
---END MAIN POST---

Return ONLY valid JSON, no markdown, in this exact shape:
{{"replies":[{reply_slots}]}}

Rules: One JSON object only. No code fences. No newlines inside strings. Use single quotes for any quoted text inside a reply. No trailing commas."""


def thread_context(main_post: str, replies: Sequence[str]) -> str:
    lines = [f"Thread (main): {main_post}"]
    lines.extend(f"Reply {idx}: {text}" for idx, text in enumerate(replies, start=1))
    return "\n".join(lines)


def ask_classifier_prompt(context: str, question: str, *, context_chars: int = 2000) -> str:
    return (
        "Given this thread and the user's question, does answering accurately require "
        "external or up-to-date information that is NOT in the thread? (e.g. recent events, "
        f"specific numbers, names, dates, or facts beyond the thread.) {YES_NO_SUFFIX}\n\n"
        f"---THREAD---\n{context[:context_chars]}\n---QUESTION---\n{question}\n---"
    )


def ask_prompt(context: str, question: str, reply_context: Optional[str] = None) -> str:
    context_note = ""
    if reply_context:
        context_note = (
            "\nThe user is asking specifically about this part of the thread: "
            f"«{reply_context}»\nAnswer in that context.\n\n"
        )
    return f"""You are an informative, friendly tutor. Given this thread:

---BEGIN THREAD---
{context}
---END THREAD---

{context_note}---USER QUESTION---
{question}
---END USER QUESTION---

Reply in 1-4 clear sentences. Be helpful and conversational. Only state factual, verifiable information; use real examples, real names, real studies. Do not invent or speculate; if unsure, say so. No JSON, no quotes; just the reply text."""


def home_suggestions_prompt(
    interests: Sequence[str],
    already_covered: Sequence[str],
    *,
    max_suggestions: int,
) -> str:
    covered_block = ""
    if already_covered:
        covered_lines = "\n".join(already_covered)
        covered_block = (
            "\n\nIMPORTANT: The user has already been shown or has opened threads for these "
            "topics. Do NOT suggest anything similar or duplicate. Generate only NEW, different "
            f"ideas:\n---ALREADY COVERED---\n{covered_lines}\n---END---\n"
        )
    return f"""---USER INTERESTS---
{", ".join(interests)}
---END USER INTERESTS---
{covered_block}

Generate between 5 and {max_suggestions} short "tweet" ideas that would make this reader want to click and learn more. Each tweet should be an engaging, educational hook (1-2 sentences, under 280 characters). Base ideas on real, factual topics: real concepts, real history, real science, real people or works. Do not invent or speculate. Mix angles: surprising facts, how-to hooks, "why X matters", or intriguing questions.

Return ONLY a JSON array of strings, nothing else. No markdown, no code fences, no explanation. Example format:
["First tweet text here.","Second tweet here.",...]

Rules: Use single quotes inside strings if needed; avoid unescaped double quotes inside the tweet text. No trailing comma."""


def home_classifier_prompt(interests: Sequence[str]) -> str:
    return (
        "Does suggesting fresh, accurate post ideas for a reader with these interests "
        "require external or up-to-date information beyond general knowledge? (e.g. recent "
        f"events, current stats, new releases.) {YES_NO_SUFFIX}\n\n"
        f"---INTERESTS---\n{', '.join(interests)}\n---"
    )
