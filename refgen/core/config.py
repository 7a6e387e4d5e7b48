from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    backend_base_url: str = "http://localhost:8000"
    backend_api_token: Optional[str] = None
    request_timeout: float = 300.0

    generation_provider: str = "backend"

    replicate_api_token: str = ""
    replicate_model: str = "black-forest-labs/flux-schnell"

    fake_generation_latency: float = 0.0

    progress_tick_interval: float = 1.0
    job_cleanup_delay: float = 5.0
    ms_per_image_estimate: int = 15000

    preferences_path: str = "./.refgen_preferences.json"

    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    class Config:
        env_file = [".env", ".env.development"]
        case_sensitive = False


settings = Settings()
