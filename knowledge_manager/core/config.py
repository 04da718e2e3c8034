"""
Core configuration module for the Knowledge Assistant.

This module contains all configuration settings in a single dataclass so that
connectors, the vector index and the agent read from one place.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass
class Config:
    """
    Application configuration class.

    Centralizes all configuration settings with proper type hints
    and default values from environment variables.
    """

    # Milvus Database Configuration
    MILVUS_HOST: str = os.getenv("MILVUS_HOST", "localhost")
    MILVUS_PORT: int = int(os.getenv("MILVUS_PORT", "19530"))
    MILVUS_TOKEN: str = os.getenv("MILVUS_TOKEN", "")
    MILVUS_TIMEOUT_SECONDS: float = float(os.getenv("MILVUS_TIMEOUT_SECONDS", "30"))
    VECTOR_DIM: int = int(os.getenv("VECTOR_DIM", "1024"))  # mxbai-embed-large
    NOTION_COLLECTION: str = os.getenv("NOTION_COLLECTION", "notion_pages")
    GMAIL_COLLECTION: str = os.getenv("GMAIL_COLLECTION", "gmail_messages")

    # Flask Configuration
    FLASK_HOST: str = os.getenv("FLASK_HOST", "0.0.0.0")
    FLASK_PORT: int = int(os.getenv("FLASK_PORT", "3000"))
    FLASK_DEBUG: bool = os.getenv("FLASK_DEBUG", "False").lower() == "true"
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")
    LOG_DIR: str = os.getenv("LOG_DIR", "logs")

    # Embedding Model Configuration
    EMBEDDING_MODEL: str = os.getenv("EMBEDDING_MODEL", "mxbai-embed-large")
    OLLAMA_EMBEDDING_HOST: str = os.getenv("OLLAMA_EMBEDDING_HOST", "localhost")
    OLLAMA_EMBEDDING_PORT: int = int(os.getenv("OLLAMA_EMBEDDING_PORT", "11434"))

    # Chat Model Configuration
    CHAT_MODEL: str = os.getenv('CHAT_MODEL', 'llama3.1:8b')
    CHAT_BASE_URL: str = os.getenv(
        'CHAT_BASE_URL',
        f"http://{os.getenv('OLLAMA_CHAT_HOST','localhost')}:{os.getenv('OLLAMA_CHAT_PORT','11434')}"
    )
    CHAT_TEMPERATURE: float = float(os.getenv('CHAT_TEMPERATURE', '0.7'))
    MODEL_TIMEOUT_SECONDS: float = float(os.getenv('MODEL_TIMEOUT_SECONDS', '120'))
    MAX_AGENT_ITERATIONS: int = int(os.getenv('MAX_AGENT_ITERATIONS', '25'))

    # PostgreSQL Configuration
    POSTGRES_HOST: str = os.getenv("POSTGRES_HOST", "localhost")
    POSTGRES_PORT: int = int(os.getenv("POSTGRES_PORT", "5432"))
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "knowledge_assistant")
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "assistant_user")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "secure_password")

    # OAuth client credentials (used for token refresh only)
    NOTION_CLIENT_ID: str = os.getenv("NOTION_CLIENT_ID", "")
    NOTION_CLIENT_SECRET: str = os.getenv("NOTION_CLIENT_SECRET", "")
    GOOGLE_CLIENT_ID: str = os.getenv("GOOGLE_CLIENT_ID", "")
    GOOGLE_CLIENT_SECRET: str = os.getenv("GOOGLE_CLIENT_SECRET", "")
    HUBSPOT_CLIENT_ID: str = os.getenv("HUBSPOT_CLIENT_ID", "")
    HUBSPOT_CLIENT_SECRET: str = os.getenv("HUBSPOT_CLIENT_SECRET", "")
    TOKEN_REFRESH_MARGIN_MINUTES: int = int(os.getenv("TOKEN_REFRESH_MARGIN_MINUTES", "5"))
    HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

    # Notion sync settings
    NOTION_API_VERSION: str = os.getenv("NOTION_API_VERSION", "2022-06-28")
    NOTION_PAGE_SIZE: int = int(os.getenv("NOTION_PAGE_SIZE", "100"))
    NOTION_CHUNK_SIZE: int = int(os.getenv("NOTION_CHUNK_SIZE", "1000"))
    NOTION_CHUNK_OVERLAP: int = int(os.getenv("NOTION_CHUNK_OVERLAP", "200"))
    NOTION_RECORD_DELAY_SECONDS: float = float(os.getenv("NOTION_RECORD_DELAY_SECONDS", "0.5"))

    # Gmail sync settings
    GMAIL_LOOKBACK_DAYS: int = int(os.getenv("GMAIL_LOOKBACK_DAYS", "5"))
    GMAIL_PAGE_SIZE: int = int(os.getenv("GMAIL_PAGE_SIZE", "100"))
    GMAIL_RECORD_DELAY_SECONDS: float = float(os.getenv("GMAIL_RECORD_DELAY_SECONDS", "0.2"))

    # Background sync workers
    SYNC_WORKERS: int = int(os.getenv("SYNC_WORKERS", "4"))
