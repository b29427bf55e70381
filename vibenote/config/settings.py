"""
Configuration settings for VibeNote application.
"""
from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache
from pathlib import Path


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # MongoDB Configuration
    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_database: str = Field(default="vibenote", alias="MONGODB_DATABASE")

    # GROQ API Configuration
    groq_api_key: str = Field(default="", alias="GROQ_API_KEY")
    chat_model: str = Field(default="meta-llama/llama-4-scout-17b-16e-instruct", alias="CHAT_MODEL")
    title_model: str = Field(default="llama-3.1-8b-instant", alias="TITLE_MODEL")
    study_model: str = Field(default="llama-3.1-8b-instant", alias="STUDY_MODEL")
    llm_temperature: float = Field(default=0.7, alias="LLM_TEMPERATURE")
    title_temperature: float = Field(default=0.3, alias="TITLE_TEMPERATURE")
    llm_max_tokens: int = Field(default=4096, alias="LLM_MAX_TOKENS")

    # External services (library ingest/retrieval, video generation, reminders)
    library_api_url: str = Field(default="http://127.0.0.1:5001", alias="LIBRARY_API_URL")
    ingest_endpoint: str = Field(default="/api/v1/ingest", alias="INGEST_ENDPOINT")
    retrieval_endpoint: str = Field(default="/api/v1/retrieval", alias="RETRIEVAL_ENDPOINT")
    video_api_url: str = Field(default="http://127.0.0.1:5001/generate-video", alias="VIDEO_API_URL")
    reminder_api_url: str = Field(default="", alias="REMINDER_API_URL")
    http_timeout: float = Field(default=30.0, alias="HTTP_TIMEOUT")
    video_timeout: float = Field(default=300.0, alias="VIDEO_TIMEOUT")

    # Public address used to build storage upload / download URLs
    public_base_url: str = Field(default="http://127.0.0.1:8080", alias="PUBLIC_BASE_URL")
    upload_slot_ttl_seconds: int = Field(default=3600, alias="UPLOAD_SLOT_TTL_SECONDS")
    max_upload_bytes: int = Field(default=20 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")

    # Request identity headers (set by the fronting auth proxy)
    user_id_header: str = Field(default="X-User-Id", alias="USER_ID_HEADER")
    chat_id_header: str = Field(default="id", alias="CHAT_ID_HEADER")

    # MongoDB Collection Names
    chats_collection: str = Field(default="chats", alias="CHATS_COLLECTION")
    messages_collection: str = Field(default="messages", alias="MESSAGES_COLLECTION")
    flashcards_collection: str = Field(default="flashcard_decks", alias="FLASHCARDS_COLLECTION")
    documents_collection: str = Field(default="documents", alias="DOCUMENTS_COLLECTION")
    videos_collection: str = Field(default="videos", alias="VIDEOS_COLLECTION")
    upload_slots_collection: str = Field(default="upload_slots", alias="UPLOAD_SLOTS_COLLECTION")
    storage_bucket: str = Field(default="blobs", alias="STORAGE_BUCKET")

    # Chat Configuration
    default_chat_title: str = Field(default="New Chat", alias="DEFAULT_CHAT_TITLE")
    max_image_width: int = Field(default=1024, alias="MAX_IMAGE_WIDTH")
    recent_chats_limit: int = Field(default=10, alias="RECENT_CHATS_LIMIT")

    # Study Configuration
    default_flashcards: int = Field(default=3, alias="DEFAULT_FLASHCARDS")
    max_quiz_questions: int = Field(default=20, alias="MAX_QUIZ_QUESTIONS")

    # Logging Configuration
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: Path = Field(default=Path("./logs"), alias="LOG_DIR")
    log_json: bool = Field(default=True, alias="LOG_JSON")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def service_url(self, endpoint: str) -> str:
        """Full URL for a library service endpoint ("ingest" or "retrieval")."""
        path = {"ingest": self.ingest_endpoint, "retrieval": self.retrieval_endpoint}[endpoint]
        return f"{self.library_api_url.rstrip('/')}{path}"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
