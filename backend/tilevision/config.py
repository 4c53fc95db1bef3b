from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {
        "env_file": "../.env",
        "extra": "ignore",
        "env_prefix": "",
        "case_sensitive": False,
    }

    # AI APIs
    google_ai_api_key: str = ""
    gemini_image_model: str = "gemini-2.5-flash-image-preview"
    gemini_text_model: str = "gemini-2.5-flash"

    # Sessions
    use_mock_service: bool = True
    detection_failure_policy: Literal["lenient", "strict"] = "lenient"
    max_upload_bytes: int = 20 * 1024 * 1024
    http_timeout_seconds: float = 30.0
    session_idle_seconds: float = 3600.0

    # App
    environment: str = "development"
    log_level: str = "INFO"
    log_file: str = ""


settings = Settings()
