"""
Counsellor-note generation.

`AIExplainer` turns a prompt into a counsellor note or a chat reply. The
provider call runs under a hard per-attempt timeout and an explicit `RetryPolicy`. When
the policy gives up, the deterministic mock note is returned with
`provider="mock-fallback"`, so the caller always gets text. Any exception a
generator raises counts as a failed attempt.
"""

import asyncio
import logging
import re
import time
from typing import Awaitable, Callable, List, Optional, Protocol, Tuple

import openai
from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random,
)

from ..logic.contracts import ModelMeta
from .prompt_builder import build_system_prompt

logger = logging.getLogger(__name__)

MOCK_MODEL = "mock-model"
DEFAULT_PRIORITIES = ["placements", "faculty", "campus life"]


class TextGenerationError(RuntimeError):
    """Provider call failed, timed out or returned nothing."""


class GeneratedText(BaseModel):
    text: str
    tokens_in: int = 0
    tokens_out: int = 0
    latency_ms: int = 0


class TextGenerator(Protocol):
    provider: str
    model: str

    async def generate(self, prompt: str, max_tokens: int, temperature: float) -> GeneratedText:
        ...


class OpenAITextGenerator:
    """Chat-completions backed generator."""

    provider = "openai"

    def __init__(self, api_key: str, model: str = "gpt-4o-mini",
                 client: Optional[openai.AsyncOpenAI] = None):
        self.model = model
        self.client = client or openai.AsyncOpenAI(api_key=api_key)

    async def generate(self, prompt: str, max_tokens: int, temperature: float) -> GeneratedText:
        start = time.monotonic()
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": build_system_prompt()},
                    {"role": "user", "content": prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.OpenAIError as e:
            raise TextGenerationError(str(e)) from e

        text = (response.choices[0].message.content or "") if response.choices else ""
        if not text.strip():
            raise TextGenerationError("Empty response from provider")

        usage = response.usage
        return GeneratedText(
            text=text,
            tokens_in=usage.prompt_tokens if usage else round(len(prompt) / 4),
            tokens_out=usage.completion_tokens if usage else round(len(text) / 4),
            latency_ms=int((time.monotonic() - start) * 1000),
        )


def mock_counsellor_note(prompt: str, reason: Optional[str] = None) -> Tuple[str, ModelMeta]:
    """
    Deterministic note built from the prompt itself: the field of study,
    the priorities and the first three bolded university names.
    """
    field_match = re.search(r'fieldOfStudy":\s*"([^"]+)"', prompt, re.IGNORECASE)
    priorities_match = re.search(r'priorities":\s*\[(.*?)\]', prompt, re.IGNORECASE)

    field_of_study = field_match.group(1) if field_match and field_match.group(1) != "N/A" \
        else "your chosen field"
    priorities: List[str] = DEFAULT_PRIORITIES
    if priorities_match:
        items = re.findall(r'"([^"]+)"', priorities_match.group(1))
        if items:
            priorities = items
    universities = re.findall(r"\*\*([^*]+)\*\*", prompt)[:3]

    first = priorities[0] if priorities else "placements"
    second = priorities[1] if len(priorities) > 1 else "faculty"
    picks = "\n\n".join(
        f"{i}. **{name}** - This institution stands out for its excellent {first} and {second}. "
        f"Their {field_of_study} program matches your academic profile."
        for i, name in enumerate(universities, 1)
    )

    text = (
        "Dear student,\n\n"
        f"I'm thrilled to help you explore your options for higher education in {field_of_study}. "
        "Based on your academic achievements and interests, you're well-positioned for success!\n\n"
        f"Based on your priorities ({', '.join(priorities)}), these universities align with your goals:\n\n"
        f"{picks}\n\n"
        "Each of these universities offers unique opportunities. Explore their websites and reach "
        "out to current students to get a better feel for campus life.\n\n"
        "Stay confident, your preparation positions you strongly wherever you choose to go!"
    )
    meta = ModelMeta(
        provider="mock",
        model=MOCK_MODEL,
        tokens_in=round(len(prompt) / 4),
        tokens_out=round(len(text) / 4),
        latency_ms=0,
        fallback_reason=reason,
    )
    return text, meta


_QUESTION_RE = re.compile(r"Current User Question:\s*([^\n]+)", re.IGNORECASE)


def mock_chat_reply(prompt: str, reason: Optional[str] = None) -> Tuple[str, ModelMeta]:
    """Keyword-driven answer about the first context university."""
    question_match = _QUESTION_RE.search(prompt)
    question = question_match.group(1).lower() if question_match else ""
    universities = re.findall(r"\*\*([^*]+)\*\*", prompt)[:3]
    first = universities[0] if universities else None

    if "placement" in question or "job" in question:
        text = (
            f"Regarding placements, {first or 'the recommended universities'} has an excellent "
            "placement record with top companies regularly recruiting from campus. Check the "
            "latest placement report for current figures."
        )
    elif any(word in question for word in ("fee", "cost", "afford")):
        text = (
            f"Regarding tuition fees, {first or 'these universities'} offers financial aid options "
            "including merit and need based scholarships. Their financial aid office lists the "
            "current eligibility criteria."
        )
    elif any(word in question for word in ("hostel", "accommodation", "campus")):
        text = (
            f"Most students at {first or 'these universities'} stay in on-campus hostels, especially "
            "in their first year. Campus life is vibrant with numerous clubs and activities."
        )
    else:
        named = ", ".join(universities) or "the recommended universities"
        text = (
            f"That's a good question! Based on the universities I recommended, {named}, I would "
            "suggest exploring their official websites for the most accurate and up-to-date "
            "information. Is there a specific aspect you'd like to know more about?"
        )

    meta = ModelMeta(
        provider="mock",
        model=MOCK_MODEL,
        tokens_in=round(len(prompt) / 4),
        tokens_out=round(len(text) / 4),
        latency_ms=0,
        fallback_reason=reason,
    )
    return text, meta


class RetryPolicy(BaseModel):
    """
    How many times a generation is attempted and how long to wait between
    attempts. `max_attempts=1` means no retry.
    """

    max_attempts: int = 1
    jitter_min_s: float = 0.1
    jitter_max_s: float = 0.2

    @classmethod
    def from_flag(cls, retry_enabled: bool) -> "RetryPolicy":
        return cls(max_attempts=2 if retry_enabled else 1)

    async def run(self, operation: Callable[[], Awaitable[GeneratedText]]) -> GeneratedText:
        """Run `operation`, re-raising the last `TextGenerationError` once attempts run out."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_random(min=self.jitter_min_s, max=self.jitter_max_s),
            retry=retry_if_exception_type(TextGenerationError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                result = await operation()
        return result


class AIExplainer:
    """Writes the counsellor note for a ranked shortlist and answers chat questions."""

    def __init__(
        self,
        generator: Optional[TextGenerator] = None,
        retry_policy: Optional[RetryPolicy] = None,
        timeout_ms: int = 8000,
        max_tokens: int = 800,
        temperature: float = 0.4,
        disabled_reason: str = "provider=mock",
        chat_max_tokens: int = 500,
    ):
        self.generator = generator
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout_ms = timeout_ms
        self.max_tokens = max_tokens
        self.chat_max_tokens = chat_max_tokens
        self.temperature = temperature
        self.disabled_reason = disabled_reason

    @property
    def provider(self) -> str:
        return self.generator.provider if self.generator else "mock"

    async def _attempt(self, prompt: str, max_tokens: int) -> GeneratedText:
        try:
            return await asyncio.wait_for(
                self.generator.generate(prompt, max_tokens, self.temperature),
                timeout=self.timeout_ms / 1000,
            )
        except asyncio.TimeoutError as e:
            raise TextGenerationError(f"timeout after {self.timeout_ms}ms") from e
        except TextGenerationError:
            raise
        except Exception as e:
            # Transport errors and SDK bugs are retried and then fall back like any other failure
            raise TextGenerationError(str(e) or type(e).__name__) from e

    async def _generate(
        self,
        prompt: str,
        max_tokens: int,
        mock: Callable[..., Tuple[str, ModelMeta]],
        purpose: str,
    ) -> Tuple[str, ModelMeta]:
        logger.info(f"🤖 AI provider in use: {self.provider}")
        if self.generator is None:
            return mock(prompt, reason=self.disabled_reason)

        try:
            result = await self.retry_policy.run(lambda: self._attempt(prompt, max_tokens))
        except TextGenerationError as e:
            logger.error(f"❌ {purpose} generation failed: {e}")
            logger.warning(f"⚠️ Using mock fallback for {purpose.lower()} (model={self.generator.model})")
            text, meta = mock(prompt, reason=str(e))
            meta.provider = "mock-fallback"
            return text, meta

        return result.text, ModelMeta(
            provider=self.generator.provider,
            model=self.generator.model,
            tokens_in=result.tokens_in,
            tokens_out=result.tokens_out,
            latency_ms=result.latency_ms,
        )

    async def write_note(self, prompt: str) -> Tuple[str, ModelMeta]:
        return await self._generate(prompt, self.max_tokens, mock_counsellor_note, "Counsellor note")

    async def reply(self, prompt: str) -> Tuple[str, ModelMeta]:
        """Answer one chat question. Falls back to `mock_chat_reply` like `write_note`."""
        return await self._generate(prompt, self.chat_max_tokens, mock_chat_reply, "Chat reply")
