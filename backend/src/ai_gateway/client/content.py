"""Study-content generation on top of the gateway.

Every operation goes through ``AIExecutor`` so it inherits the quota
pre-check and retry policy; structured outputs go through the parsing
helpers.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import orjson
import structlog

from ai_gateway.client.execution import AIExecutor
from ai_gateway.client.gateway import GatewayClient
from ai_gateway.client.parsing import clean_json, parse_json_payload, split_dual_sections
from ai_gateway.client.prompts import PromptSet, PromptTemplates, render_template
from ai_gateway.domain.enums import UsageClass
from ai_gateway.domain.exceptions import GatewayError

logger = structlog.get_logger(__name__)

MCQ_BATCH_SIZE = 20
MCQ_BATCH_THRESHOLD = 30
DEFAULT_BULK_CONCURRENCY = 50

_JSON_ARRAY_SYSTEM = (
    "You are a helpful educational assistant. You MUST return strictly valid JSON array. "
    "Do not wrap in markdown block."
)
_MCQ_SYSTEM = (
    "You are an exam generator. You MUST return strict valid JSON array only. "
    "No introduction, no markdown formatting, no ending notes. Just the raw JSON array."
)
_TUTOR_SYSTEM = "You are an expert teacher. Provide high quality, well-formatted markdown content."
_ANALYST_SYSTEM = "You are a data analyst. Return only valid JSON."


@dataclass(frozen=True, slots=True)
class LessonContext:
    board: str
    class_level: str
    subject: str
    chapter: str = ""
    stream: str | None = None
    language: str = "English"
    competition: bool = False

    @property
    def audience(self) -> str:
        if self.class_level == "COMPETITION":
            return "Competitive Exam"
        return f"Class {self.class_level}"

    @property
    def style(self) -> str:
        if self.competition:
            return "STYLE: Fact-Heavy, Direct. HIGHLIGHT PYQs (Previous Year Questions) if relevant."
        return "STYLE: Strict NCERT Pattern."


@dataclass(frozen=True, slots=True)
class Chapter:
    id: str
    title: str
    description: str = ""


@dataclass(frozen=True, slots=True)
class DualNotes:
    premium: str
    summary: str


DEFAULT_CHAPTERS: tuple[Chapter, ...] = (
    Chapter(id="1", title="Chapter 1"),
    Chapter(id="2", title="Chapter 2"),
)


def _system_user(system: str, prompt: str) -> list[dict[str, Any]]:
    return [{"role": "system", "content": system}, {"role": "user", "content": prompt}]


class ContentService:
    def __init__(
        self,
        client: GatewayClient,
        executor: AIExecutor,
        *,
        instruction: str = "",
        templates: PromptTemplates | None = None,
        bulk_concurrency: int = DEFAULT_BULK_CONCURRENCY,
    ) -> None:
        self._client = client
        self._executor = executor
        self._bulk_concurrency = bulk_concurrency
        self._instruction = f"IMPORTANT INSTRUCTION: {instruction}" if instruction else ""
        self._templates = templates or PromptTemplates()
        self._chapter_cache: dict[str, list[Chapter]] = {}

    # ── Chapters ─────────────────────────────────────────────
    async def fetch_chapters(self, ctx: LessonContext) -> list[Chapter]:
        """Chapter list for a subject; a two-chapter placeholder on failure."""
        cache_key = f"{ctx.board}-{ctx.class_level}-{ctx.stream or ''}-{ctx.subject}-{ctx.language}"
        if cache_key in self._chapter_cache:
            return self._chapter_cache[cache_key]

        prompt = (
            f"List 15 standard chapters for {ctx.audience} {ctx.stream or ''} "
            f"Subject: {ctx.subject} ({ctx.board}). "
            'Return JSON array: [{"title": "...", "description": "..."}].'
        )

        async def _op() -> list[Any]:
            content = await self._client.complete(_system_user(_JSON_ARRAY_SYSTEM, prompt))
            return parse_json_payload(content, expected=list)

        try:
            items = await self._executor.execute(_op, UsageClass.STUDENT)
            chapters = [
                Chapter(
                    id=f"ch-{idx + 1}",
                    title=str(item.get("title", "")),
                    description=str(item.get("description") or ""),
                )
                for idx, item in enumerate(items)
                if isinstance(item, dict)
            ]
        except GatewayError as exc:
            logger.error("chapter_fetch_failed", subject=ctx.subject, error=exc.message)
            chapters = list(DEFAULT_CHAPTERS)

        self._chapter_cache[cache_key] = chapters
        return chapters

    # ── Prompt templates ─────────────────────────────────────
    def _prompt_set(self, ctx: LessonContext) -> PromptSet:
        return self._templates.resolve(board=ctx.board, competition=ctx.competition)

    def _render(self, template: str, ctx: LessonContext, **extra: str) -> str:
        replacements = {
            "board": ctx.board,
            "class": ctx.class_level,
            "stream": ctx.stream or "",
            "subject": ctx.subject,
            "chapter": ctx.chapter,
            "language": ctx.language,
            "instruction": self._instruction,
        }
        replacements.update(extra)
        return render_template(template, replacements)

    # ── MCQs ─────────────────────────────────────────────────
    def _mcq_prompt(self, ctx: LessonContext, count: int, extra: str = "") -> str:
        template = self._prompt_set(ctx).mcq
        if template:
            instruction = f"{self._instruction}\n{extra}" if extra else self._instruction
            return self._render(template, ctx, count=str(count), instruction=instruction)
        return (
            f"{self._instruction}\n{extra}\n"
            f'Create {count} MCQs for {ctx.board} {ctx.audience} {ctx.subject}, Chapter: "{ctx.chapter}".\n'
            f"Language: {ctx.language}.\n{ctx.style}\n"
            "Return ONLY a valid JSON array of objects with keys "
            '"question", "options" (4 strings), "correctAnswer" (index 0-3), '
            '"explanation", "mnemonic", "concept".\n'
            f"You MUST return EXACTLY {count} questions covering every detail of the chapter."
        )

    async def generate_mcqs(
        self,
        ctx: LessonContext,
        count: int = 15,
        *,
        usage_class: UsageClass = UsageClass.STUDENT,
    ) -> list[dict[str, Any]]:
        """Generate ``count`` questions.

        Large requests are split into batches of ``MCQ_BATCH_SIZE`` run in
        parallel, then de-duplicated by question text and truncated.
        """
        if count <= MCQ_BATCH_THRESHOLD:
            prompt = self._mcq_prompt(ctx, count)

            async def _single() -> list[Any]:
                content = await self._client.complete(_system_user(_MCQ_SYSTEM, prompt))
                return parse_json_payload(content, expected=list)

            return await self._executor.execute(_single, usage_class)

        batches = math.ceil(count / MCQ_BATCH_SIZE)
        tasks = [self._mcq_batch_task(ctx, i, batches) for i in range(batches)]
        batch_results = await self._executor.run_bulk(
            tasks, concurrency=self._bulk_concurrency, usage_class=usage_class
        )

        seen: set[str] = set()
        questions: list[dict[str, Any]] = []
        for batch in batch_results:
            for item in batch:
                if not isinstance(item, dict):
                    continue
                text = str(item.get("question", ""))
                if text in seen:
                    continue
                seen.add(text)
                questions.append(item)
        logger.info("mcq_bulk_generated", requested=count, generated=len(questions), batches=batches)
        return questions[:count]

    def _mcq_batch_task(
        self, ctx: LessonContext, index: int, batches: int
    ) -> Callable[[], Any]:
        prompt = self._mcq_prompt(
            ctx,
            MCQ_BATCH_SIZE,
            extra=f"BATCH {index + 1}/{batches}. Ensure diversity. Avoid duplicates from previous batches if possible.",
        )

        async def _task() -> list[Any]:
            content = await self._client.complete(_system_user(_MCQ_SYSTEM, prompt))
            return parse_json_payload(content, expected=list)

        return _task

    # ── Notes ────────────────────────────────────────────────
    async def generate_notes(
        self,
        ctx: LessonContext,
        *,
        detailed: bool = False,
        usage_class: UsageClass = UsageClass.STUDENT,
        on_chunk: Callable[[str], None] | None = None,
    ) -> str:
        prompts = self._prompt_set(ctx)
        template = prompts.notes_premium if detailed else prompts.notes
        if template:
            prompt = self._render(template, ctx)
        elif detailed:
            prompt = (
                f"{self._instruction}\n"
                f'Write PREMIUM DEEP DIVE NOTES for {ctx.board} {ctx.audience} {ctx.subject}, Chapter: "{ctx.chapter}".\n'
                f"Language: {ctx.language}.\n{ctx.style}\n"
                "STRICT TARGET: 1000-1500 Words. Detailed, conversational, analytical. "
                "Cover introduction, detailed explanation, text diagrams, deep dive, examples, "
                "exam alerts, a topper's trick and 20 practice MCQs. Use bold text for keywords."
            )
        else:
            prompt = (
                f"{self._instruction}\n"
                f'Write SHORT SUMMARY NOTES for {ctx.board} {ctx.audience} {ctx.subject}, Chapter: "{ctx.chapter}".\n'
                f"Language: {ctx.language}.\n"
                "STRICT TARGET: 200-300 Words. Basic definition, key points and 5 practice MCQs. "
                "Keep it concise."
            )
        messages = _system_user(_TUTOR_SYSTEM, prompt)

        async def _op() -> str:
            if on_chunk is not None:
                return await self._client.complete_buffered(messages, on_chunk)
            return await self._client.complete(messages)

        return await self._executor.execute(_op, usage_class)

    async def generate_dual_notes(
        self,
        ctx: LessonContext,
        *,
        usage_class: UsageClass = UsageClass.STUDENT,
    ) -> DualNotes:
        """Premium notes and a short summary from a single completion."""
        prompt = (
            f"{self._instruction}\n"
            "TASK:\n"
            f'1. Generate Premium Detailed Analysis Notes for {ctx.board} {ctx.audience} {ctx.subject}, Chapter: "{ctx.chapter}".\n'
            "2. Generate a 200-300 word Summary.\n"
            f"Language: {ctx.language}.\n{ctx.style}\n"
            "OUTPUT FORMAT STRICTLY:\n<<<PREMIUM>>>\n[Content]\n<<<SUMMARY>>>\n[Content]\n"
        )

        async def _op() -> str:
            return await self._client.complete([{"role": "user", "content": prompt}])

        raw = await self._executor.execute(_op, usage_class)
        premium, summary = split_dual_sections(raw)
        return DualNotes(premium=premium, summary=summary)

    async def generate_custom_notes(self, topic: str, admin_prompt: str = "") -> str:
        prompt = (
            f"{admin_prompt or 'Generate detailed notes for the following topic:'}\n"
            f"TOPIC: {topic}\n"
            "Ensure the content is well-structured with headings and bullet points."
        )

        async def _op() -> str:
            return await self._client.complete([{"role": "user", "content": prompt}])

        return await self._executor.execute(_op, UsageClass.STUDENT)

    # ── Translation ──────────────────────────────────────────
    async def translate_to_hindi(
        self,
        content: str,
        *,
        is_json: bool = False,
        usage_class: UsageClass = UsageClass.STUDENT,
    ) -> str:
        kind = "JSON Data" if is_json else "Educational Content"
        rule = (
            "Maintain strict JSON structure. Only translate values (question, options, "
            "explanation, etc). Do NOT translate keys."
            if is_json
            else "Keep Markdown formatting intact."
        )
        prompt = (
            "You are an expert translator for Bihar Board students.\n"
            f"Translate the following {kind} into Hindi (Devanagari).\n"
            'Use "Hinglish" for technical terms (e.g., "Force" -> "Force (बल)"). '
            f"Keep tone simple and student-friendly. {rule}\n\nCONTENT:\n{content}"
        )

        async def _op() -> str:
            return await self._client.complete([{"role": "user", "content": prompt}])

        translated = await self._executor.execute(_op, usage_class)
        return clean_json(translated) if is_json else translated

    # ── Performance analysis ─────────────────────────────────
    async def generate_performance_analysis(
        self,
        *,
        questions: list[dict[str, Any]],
        user_answers: dict[int, int],
        score: int,
        total: int,
        subject: str,
        chapter: str,
        class_level: str,
    ) -> dict[str, Any]:
        """Structured feedback on a completed test."""
        attempted = []
        for idx, q in enumerate(questions):
            options = q.get("options") or []
            correct = q.get("correctAnswer")
            selected = user_answers.get(idx)
            chosen = (
                options[selected]
                if isinstance(selected, int) and 0 <= selected < len(options)
                else "Skipped"
            )
            attempted.append({
                "question": q.get("question", ""),
                "correctAnswer": options[correct] if isinstance(correct, int) and 0 <= correct < len(options) else None,
                "userSelected": chosen,
                "isCorrect": selected == correct,
                "concept": q.get("concept") or q.get("explanation") or "General Concept",
            })

        prompt = (
            f"{self._instruction}\n"
            "ROLE: Expert Educational Mentor & Analyst.\n"
            f"CONTEXT: Student Class: {class_level}, Subject: {subject}, Chapter: {chapter}, "
            f"Score: {score}/{total}\n"
            "TASK: Analyze the student's performance and provide a structured JSON analysis.\n"
            f"DATA: {orjson.dumps(attempted, option=orjson.OPT_INDENT_2).decode()}\n"
            "OUTPUT FORMAT (STRICT JSON ONLY):\n"
            '{"topics": [{"name": "...", "status": "WEAK", "questions": [], "actionPlan": "...", '
            '"studyMode": "REVISION"}], "motivation": "...", '
            '"nextSteps": {"duration": "...", "focusTopics": [], "action": "..."}, '
            '"weakToStrongPath": []}'
        )

        async def _op() -> dict[str, Any]:
            content = await self._client.complete(_system_user(_ANALYST_SYSTEM, prompt))
            return parse_json_payload(content, expected=dict)

        return await self._executor.execute(_op, UsageClass.STUDENT)
