"""
Test prompt building, the safety filter, note generation with retry and
fallback, and the embedding rerank.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai

from recommendation.ai.embeddings import EmbeddingReranker, build_profile_query
from recommendation.ai.explainer import (
    AIExplainer,
    GeneratedText,
    OpenAITextGenerator,
    RetryPolicy,
    TextGenerationError,
    mock_chat_reply,
    mock_counsellor_note,
)
from recommendation.ai.prompt_builder import (
    build_chat_prompt,
    build_system_prompt,
    build_recommendation_prompt,
    sanitize_universities_for_prompt,
    sanitize_user_input,
)
from recommendation.ai.safety_rules import SAFETY_RULES, strip_unlisted_universities
from recommendation.logic.aggregator import batch_aggregate
from recommendation.logic.contracts import ChatContext, ChatContextUniversity, ChatTurn, University
from recommendation.logic.dimension_scorers import normalize_batch
from recommendation.logic.profile_parser import parse_profile
from recommendation.logic.ranker import rank_candidates
from recommendation.tests.factories import make_university

NO_WAIT = RetryPolicy(max_attempts=2, jitter_min_s=0, jitter_max_s=0)


class ScriptedGenerator:
    """Replays a list of outcomes: text to return or exceptions to raise."""

    provider = "openai"
    model = "scripted"

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def generate(self, prompt, max_tokens, temperature):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, float):
            await asyncio.sleep(outcome)
            return GeneratedText(text="too late")
        return GeneratedText(text=outcome, tokens_in=12, tokens_out=34, latency_ms=5)


def _ranked(*docs):
    universities = [University.model_validate({**d, "id": str(i)}) for i, d in enumerate(docs)]
    return rank_candidates(batch_aggregate(normalize_batch(universities), ["Research"]))


def _profile():
    return parse_profile({
        "academics": {"board": "CBSE\x07`", "grade12Score": 92},
        "interests": {"fieldOfStudy": "Engineering"},
        "preferences": {"locations": ["India"], "budget": 250000, "priorities": ["Research"]},
    })


def test_user_input_is_sanitised():
    assert sanitize_user_input("a\\b`c\x00d\n") == "abcd"
    assert sanitize_user_input(None) == ""


def test_prompt_universities_are_minimised():
    ranked = _ranked(make_university(
        "IIT X", city="Pune", state="Maharashtra", fee=212345,
        features=["Research parks", "Hostels"],
    ))
    [entry] = sanitize_universities_for_prompt(ranked)

    assert entry["location"] == "Pune, Maharashtra"
    assert entry["annualFee"] == 212000
    assert entry["priorityMatches"] == ["Research"]


def test_prompt_bolds_every_shortlisted_name():
    ranked = _ranked(make_university("Alpha"), make_university("Beta"))
    prompt = build_recommendation_prompt(_profile(), sanitize_universities_for_prompt(ranked))

    assert "**Alpha**" in prompt and "**Beta**" in prompt
    assert '"board": "CBSE"' in prompt
    assert '"fieldOfStudy": "Engineering"' in prompt


def test_safety_filter_removes_unlisted_names():
    note = "Consider **Alpha** and also **Harvard University**."
    assert strip_unlisted_universities(note, ["Alpha"]) == "Consider **Alpha** and also ."


def test_mock_note_uses_prompt_content():
    ranked = _ranked(make_university("Alpha"), make_university("Beta"))
    prompt = build_recommendation_prompt(_profile(), sanitize_universities_for_prompt(ranked))

    text, meta = mock_counsellor_note(prompt, reason="provider=mock")

    assert "Engineering" in text
    assert "**Alpha**" in text and "**Beta**" in text
    assert "(Research)" in text
    assert meta.provider == "mock"
    assert meta.fallback_reason == "provider=mock"


async def test_explainer_without_generator_uses_mock():
    text, meta = await AIExplainer().write_note("**Alpha**")
    assert meta.provider == "mock"
    assert "**Alpha**" in text


async def test_retry_recovers_from_one_failure():
    generator = ScriptedGenerator(TextGenerationError("boom"), "Real note")
    text, meta = await AIExplainer(generator, retry_policy=NO_WAIT).write_note("prompt")

    assert text == "Real note"
    assert generator.calls == 2
    assert meta.provider == "openai"
    assert (meta.tokens_in, meta.tokens_out) == (12, 34)


async def test_exhausted_retries_fall_back_to_mock():
    generator = ScriptedGenerator(TextGenerationError("boom"), TextGenerationError("boom again"))
    text, meta = await AIExplainer(generator, retry_policy=NO_WAIT).write_note("**Alpha**")

    assert meta.provider == "mock-fallback"
    assert meta.fallback_reason == "boom again"
    assert "**Alpha**" in text


async def test_timeout_counts_as_failure_without_retry():
    generator = ScriptedGenerator(1.0)
    _, meta = await AIExplainer(generator, timeout_ms=10).write_note("prompt")

    assert generator.calls == 1
    assert meta.provider == "mock-fallback"
    assert "timeout" in meta.fallback_reason


def test_retry_policy_from_flag():
    assert RetryPolicy.from_flag(True).max_attempts == 2
    assert RetryPolicy.from_flag(False).max_attempts == 1


async def test_openai_generator_reads_usage():
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content="Dear student"))],
        usage=SimpleNamespace(prompt_tokens=100, completion_tokens=20),
    ))
    result = await OpenAITextGenerator("key", model="gpt-4o-mini", client=client).generate("p", 800, 0.4)

    assert result.text == "Dear student"
    assert (result.tokens_in, result.tokens_out) == (100, 20)
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["max_tokens"] == 800
    assert kwargs["messages"][1] == {"role": "user", "content": "p"}


async def test_openai_generator_wraps_provider_errors():
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=openai.OpenAIError("quota"))
    generator = OpenAITextGenerator("key", client=client)

    _, meta = await AIExplainer(generator).write_note("prompt")
    assert meta.provider == "mock-fallback"
    assert meta.fallback_reason == "quota"


def _embedding_client(vectors):
    client = MagicMock()
    client.embeddings.create = AsyncMock(return_value=SimpleNamespace(
        data=[SimpleNamespace(embedding=v) for v in vectors]
    ))
    return client


def test_profile_query_text():
    assert build_profile_query(_profile()) == "grade:92 | field:Engineering | priorities:Research | loc:India"


async def test_rerank_orders_by_similarity():
    ranked = _ranked(make_university("Alpha", placement=95), make_university("Beta", placement=60))
    client = _embedding_client([[1.0, 0.0], [0.0, 1.0], [1.0, 0.1]])

    reranked = await EmbeddingReranker(enabled=True, client=client).rerank(_profile(), ranked)

    assert [s.university.name for s in reranked] == ["Beta", "Alpha"]
    assert reranked[0].debug_meta.embed_score > reranked[1].debug_meta.embed_score


async def test_rerank_keeps_order_on_count_mismatch():
    ranked = _ranked(make_university("Alpha", placement=95), make_university("Beta", placement=60))
    client = _embedding_client([[1.0, 0.0], [0.0, 1.0]])

    reranked = await EmbeddingReranker(enabled=True, client=client).rerank(_profile(), ranked)
    assert [s.university.name for s in reranked] == ["Alpha", "Beta"]


async def test_disabled_rerank_is_a_no_op():
    ranked = _ranked(make_university("Alpha"), make_university("Beta"))
    client = _embedding_client([])

    assert await EmbeddingReranker(enabled=False, client=client).rerank(_profile(), ranked) == ranked
    client.embeddings.create.assert_not_called()


async def test_unexpected_generator_errors_fall_back_to_mock():
    generator = ScriptedGenerator(httpx.ConnectError("provider unreachable"))
    text, meta = await AIExplainer(generator).write_note("**Alpha**")

    assert meta.provider == "mock-fallback"
    assert meta.fallback_reason == "provider unreachable"
    assert "**Alpha**" in text


async def test_unexpected_generator_errors_are_retried():
    generator = ScriptedGenerator(RuntimeError("sdk bug"), "Recovered note")
    text, _ = await AIExplainer(generator, retry_policy=NO_WAIT).write_note("prompt")

    assert text == "Recovered note"
    assert generator.calls == 2


async def test_rerank_keeps_order_when_client_raises():
    ranked = _ranked(make_university("Alpha", placement=95), make_university("Beta", placement=60))
    client = MagicMock()
    client.embeddings.create = AsyncMock(side_effect=RuntimeError("bad payload"))

    reranked = await EmbeddingReranker(enabled=True, client=client).rerank(_profile(), ranked)
    assert [s.university.name for s in reranked] == ["Alpha", "Beta"]


async def test_rerank_keeps_order_on_malformed_payload():
    ranked = _ranked(make_university("Alpha", placement=95), make_university("Beta", placement=60))
    client = MagicMock()
    client.embeddings.create = AsyncMock(return_value=SimpleNamespace(data=None))

    reranked = await EmbeddingReranker(enabled=True, client=client).rerank(_profile(), ranked)
    assert [s.university.name for s in reranked] == ["Alpha", "Beta"]


def _chat_context():
    return ChatContext(recommended_universities=[
        ChatContextUniversity(
            name="Alpha", location="Pune, Maharashtra, India", ranking=4,
            key_features=["Research parks", "Hostels", "Clubs", "Labs"],
        ),
        ChatContextUniversity(name="Beta", location="Delhi", key_features=[]),
    ])


def test_chat_prompt_keeps_last_three_turns():
    history = [ChatTurn(message=f"question {i}", reply=f"answer {i}") for i in range(5)]
    prompt = build_chat_prompt("What about **Harvard** fees?", _chat_context(), history)

    assert "question 0" not in prompt and "question 1" not in prompt
    assert "User: question 4\nAI: answer 4" in prompt
    assert "1. **Alpha**: Located in Pune, Maharashtra, India, ranked 4. Known for Research parks, Hostels, Clubs." in prompt
    assert "Labs" not in prompt
    assert "Current User Question:\nWhat about Harvard fees?" in prompt


def test_mock_chat_reply_follows_question_keywords():
    prompt = build_chat_prompt("How are the placements?", _chat_context(), [])
    text, meta = mock_chat_reply(prompt, reason="provider=mock")

    assert text.startswith("Regarding placements, Alpha")
    assert meta.provider == "mock"
    assert meta.fallback_reason == "provider=mock"

    fees, _ = mock_chat_reply(build_chat_prompt("Can I afford it?", _chat_context(), []))
    assert fees.startswith("Regarding tuition fees, Alpha")

    other, _ = mock_chat_reply(build_chat_prompt("Any advice?", _chat_context(), []))
    assert "Alpha, Beta" in other


async def test_chat_reply_uses_chat_token_limit_and_falls_back():
    generator = ScriptedGenerator()
    generator.generate = AsyncMock(side_effect=openai.OpenAIError("quota"))
    prompt = build_chat_prompt("Is there a hostel?", _chat_context(), [])

    text, meta = await AIExplainer(generator, chat_max_tokens=321).reply(prompt)

    assert generator.generate.await_args.args[1] == 321
    assert meta.provider == "mock-fallback"
    assert text.startswith("Most students at Alpha")


def test_system_prompt_lists_every_safety_rule():
    prompt = build_system_prompt()

    assert prompt.startswith("You are an expert, empathetic, and encouraging student counsellor.")
    for rule in SAFETY_RULES:
        assert f"- {rule}" in prompt
