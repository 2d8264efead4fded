from .embeddings import EmbeddingReranker
from .explainer import (
    AIExplainer,
    GeneratedText,
    OpenAITextGenerator,
    RetryPolicy,
    TextGenerationError,
    TextGenerator,
    mock_chat_reply,
    mock_counsellor_note,
)
from .prompt_builder import (
    build_chat_prompt,
    build_recommendation_prompt,
    sanitize_universities_for_prompt,
)
from .safety_rules import strip_unlisted_universities
