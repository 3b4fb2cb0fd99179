import os
from typing import List, Optional
from pydantic_settings import BaseSettings


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value else None


def _optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value else None


class Settings(BaseSettings):
    """Application settings and configuration"""

    # ============ APP SETTINGS ============
    APP_NAME: str = "Chat Relay"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"

    # ============ SERVER SETTINGS ============
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 8000))
    RELOAD: bool = os.getenv("RELOAD", "False").lower() == "true"

    # ============ CORS SETTINGS ============
    # Comma separated list of origins
    ALLOWED_ORIGINS: str = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000")

    # ============ LLM SETTINGS (Groq) ============
    LLM_TYPE: str = os.getenv("LLM_TYPE", "groq")  # groq or echo
    GROQ_API_KEY: Optional[str] = os.getenv("GROQ_API_KEY", None)
    LLM_MODEL_NAME: str = os.getenv("LLM_MODEL_NAME", "llama-3.1-8b-instant")
    LLM_TEMPERATURE: Optional[float] = _optional_float("LLM_TEMPERATURE")
    LLM_MAX_TOKENS: Optional[int] = _optional_int("LLM_MAX_TOKENS")
    LLM_TIMEOUT: float = float(os.getenv("LLM_TIMEOUT", 60))

    # System instruction prepended to every conversation: fate or assistant
    SYSTEM_PROMPT: str = os.getenv("SYSTEM_PROMPT", "fate")

    # ============ RETRIEVAL SETTINGS ============
    RAG_ENABLED: bool = os.getenv("RAG_ENABLED", "False").lower() == "true"

    # Embeddings (local sentence-transformers model)
    EMBEDDING_MODEL: str = os.getenv("EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2")
    EMBEDDING_DEVICE: Optional[str] = os.getenv("EMBEDDING_DEVICE", None)

    # Vector store (Chroma). CHROMA_HOST selects a server, otherwise
    # VECTOR_STORE_PATH is opened as an embedded persistent store.
    CHROMA_HOST: Optional[str] = os.getenv("CHROMA_HOST", None)
    CHROMA_PORT: int = int(os.getenv("CHROMA_PORT", 8000))
    CHROMA_SSL: bool = os.getenv("CHROMA_SSL", "False").lower() == "true"
    CHROMA_TENANT: str = os.getenv("CHROMA_TENANT", "default_tenant")
    CHROMA_DATABASE: str = os.getenv("CHROMA_DATABASE", "default_database")
    CHROMA_COLLECTION_NAME: str = os.getenv("CHROMA_COLLECTION_NAME", "chat-documents")
    VECTOR_STORE_PATH: str = os.getenv("VECTOR_STORE_PATH", "./data/chroma")
    VECTOR_STORE_POOL_SIZE: int = int(os.getenv("VECTOR_STORE_POOL_SIZE", 4))
    VECTOR_STORE_POOL_TIMEOUT: float = float(os.getenv("VECTOR_STORE_POOL_TIMEOUT", 30))

    # Retrieval
    RETRIEVAL_TOP_K: int = int(os.getenv("RETRIEVAL_TOP_K", 3))
    RETRIEVAL_NUM_CANDIDATES: int = int(os.getenv("RETRIEVAL_NUM_CANDIDATES", 100))
    SIMILARITY_THRESHOLD: float = float(os.getenv("SIMILARITY_THRESHOLD", 0.0))

    # ============ LOGGING SETTINGS ============
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE", "logs/app.log")

    @property
    def allowed_origins(self) -> List[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Instantiate settings
settings = Settings()
