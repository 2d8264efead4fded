import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip() == "1"


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    MONGO_DATABASE: str = os.getenv("MONGO_DATABASE", "university_recommender")
    USE_MOCK_STORE: bool = _flag("USE_MOCK_STORE")

    # Auth
    JWT_SECRET: str = os.getenv("JWT_SECRET", "dev_secret_change_me")

    # Text generation
    AI_PROVIDER: str = os.getenv("AI_PROVIDER", "mock")
    MODEL_NAME: str = os.getenv("MODEL_NAME", "gpt-4o-mini")
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    AI_TIMEOUT_MS: int = int(os.getenv("AI_TIMEOUT_MS", "8000"))
    AI_MAX_REC_TOKENS: int = int(os.getenv("AI_MAX_REC_TOKENS", "800"))
    AI_MAX_CHAT_TOKENS: int = int(os.getenv("AI_MAX_CHAT_TOKENS", "500"))
    AI_TEMPERATURE: float = float(os.getenv("AI_TEMPERATURE", "0.4"))
    AI_RETRY: bool = _flag("AI_RETRY")
    PROMPT_VERSION_RECOMMEND: str = os.getenv("PROMPT_VERSION_RECOMMEND", "recommendation.v1")

    # Cache
    CACHE_PROFILE_TTL_MIN: int = int(os.getenv("CACHE_PROFILE_TTL_MIN", "1440"))
    CACHE_MAX_ENTRIES: int = int(os.getenv("CACHE_MAX_ENTRIES", "1000"))

    # Embedding rerank
    ENABLE_EMBED_RERANK: bool = _flag("ENABLE_EMBED_RERANK")
    EMBED_MODEL: str = os.getenv("EMBED_MODEL", "text-embedding-3-small")

    # Enrichment
    ENRICH_ON_REQUEST: bool = _flag("ENRICH_ON_REQUEST", "1")
    ENRICH_INTERVAL_HOURS: float = float(os.getenv("ENRICH_INTERVAL_HOURS", "6"))
    ENRICH_MAX_COUNTRIES: int = int(os.getenv("ENRICH_MAX_COUNTRIES", "10"))
    INGEST_SOURCE_URL: str = os.getenv("INGEST_SOURCE_URL", "http://universities.hipolabs.com/search")
    INGEST_TIMEOUT_S: float = float(os.getenv("INGEST_TIMEOUT_S", "8"))

    # CORS
    ALLOWED_ORIGINS: list = [
        o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()
    ]

    @property
    def uses_real_provider(self) -> bool:
        return self.AI_PROVIDER == "openai" and bool(self.OPENAI_API_KEY)


settings = Settings()
