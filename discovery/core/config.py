import os
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Project Info
    PROJECT_NAME: str = "Content Discovery Service"
    API_V1_STR: str = "/api/v1"
    HOST: str = Field("0.0.0.0", description="Interface the HTTP adapter binds to")
    PORT: int = Field(3003, description="Port the HTTP adapter listens on")

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = Field(False, description="Emit structured JSON log lines")

    # MongoDB Configuration
    MONGODB_URI: str = Field(
        "mongodb://localhost:27017",
        description="MongoDB connection string"
    )
    MONGODB_DB_NAME: str = Field(
        "discovery",
        description="MongoDB database name"
    )
    MONGODB_CONNECT_TIMEOUT_MS: int = 5000

    @field_validator("MONGODB_URI")
    @classmethod
    def validate_mongodb_uri(cls, v):
        if not v.startswith("mongodb://") and not v.startswith("mongodb+srv://"):
            raise ValueError("MongoDB URI must start with mongodb:// or mongodb+srv://")
        return v

    # Redis Configuration
    REDIS_URL: str = Field(
        "redis://localhost:6379/0",
        description="Full Redis connection URL including credentials"
    )
    REDIS_MAX_CONNECTIONS: int = 10

    # Elasticsearch Configuration
    ELASTICSEARCH_URI: str = Field(
        "http://localhost:9200",
        description="Primary search backend node URL"
    )
    ELASTICSEARCH_INDEX: str = "content"
    ELASTICSEARCH_USERNAME: Optional[str] = None
    ELASTICSEARCH_PASSWORD: Optional[str] = None
    ELASTICSEARCH_MAX_RETRIES: int = 2
    ELASTICSEARCH_REQUEST_TIMEOUT: float = 10.0
    SEARCH_TIMEOUT_SECONDS: float = Field(
        5.0,
        description="Upper bound for a single primary search backend call before falling back"
    )

    # Cache Configuration
    CACHE_TTL: int = Field(300, description="Time-to-live of every cached result set, in seconds")
    CACHE_PRUNE_INTERVAL_SECONDS: int = Field(
        60,
        description="Seconds between passes that drop expired keys from the namespace indexes"
    )

    # Query limits
    DEFAULT_RESULT_LIMIT: int = 10
    MAX_RESULT_LIMIT: int = 50
    SEARCH_RESULT_SIZE: int = 20
    SEARCH_FALLBACK_CANDIDATES: int = 200
    DEFAULT_MANUAL_SEARCH_LIMIT: int = 20
    MAX_MANUAL_SEARCH_LIMIT: int = 100

    # Rate limits
    PUBLIC_RATE_LIMIT: str = "100/minute"
    RECOMMENDATIONS_RATE_LIMIT: str = "50/minute"
    PREFERENCE_WRITE_RATE_LIMIT: str = "20/minute"

    class Config:
        env_file = ".env" if os.path.isfile(".env") else None
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"
        validate_assignment = True


settings = Settings()
