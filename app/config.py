from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./app.db"

    # JWT
    secret_key: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Frontend URL for CORS
    frontend_url: str = "http://localhost:3000"

    # Logging level for the root logger (DEBUG shows cache hit/miss lines)
    log_level: str = "INFO"

    # Gemini: Vertex AI when vertex_project_id is set, otherwise gemini_api_key
    vertex_project_id: str = ""
    vertex_location: str = "us-central1"
    vertex_credentials_path: str = ""  # path to service account JSON; empty = use ADC
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    analysis_temperature: float = 0.1
    test_generation_temperature: float = 0.2
    analysis_max_output_tokens: int = 4096

    # Redis (optional hot cache for AI analyses; empty = no Redis, DB only)
    redis_url: str = ""  # e.g. redis://localhost:6379/0
    analysis_cache_ttl_seconds: int = 86400

    # Compilation sandbox (Sphere Engine widget endpoints)
    compiler_token: str = ""
    compiler_submit_url: str = ""
    compiler_status_url: str = ""
    compiler_default_time_limit: int = 5
    compiler_timeout_seconds: float = 30.0

    # Job search (GraphQL endpoints of the job board)
    job_search_url: str = ""
    job_details_url: str = ""
    job_search_bearer_token: str = ""
    job_search_timeout_seconds: float = 20.0

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
