import yaml
import os
import logging
from pydantic import BaseModel
from typing import Optional

logger = logging.getLogger(__name__)

PLACEHOLDER_API_KEY = "0000000000"  # anonymous, lowest-priority Horde access

class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_dir: str = "logs"

class ApiConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080
    expose_error_details: bool = True

class HordeConfig(BaseModel):
    base_url: str = "https://horde.koboldai.net/api/v2"
    submit_path: str = "/generate/text/async"
    status_path: str = "/generate/text/status"
    anonymous_api_key: str = PLACEHOLDER_API_KEY
    request_timeout_seconds: float = 30.0
    client_agent: str = "hordegate:0.1.0:unknown"

    @property
    def submit_url(self) -> str:
        return self.base_url.rstrip("/") + self.submit_path

    def status_url(self, job_id: str) -> str:
        return f"{self.base_url.rstrip('/')}{self.status_path.rstrip('/')}/{job_id}"

class PollConfig(BaseModel):
    interval_seconds: float = 2.0
    max_attempts: Optional[int] = None          # None = no attempt cap
    max_duration_seconds: Optional[float] = 600.0  # None = wait forever
    cancel_on_disconnect: bool = True

class GenerationConfig(BaseModel):
    max_context_length: int = 1024
    chat_max_length: int = 100
    default_max_length: int = 100  # completions without max_tokens
    completion_model_name: str = "davinci-codex"
    trusted_workers: bool = False

class Config(BaseModel):
    api: ApiConfig = ApiConfig()
    horde: HordeConfig = HordeConfig()
    poll: PollConfig = PollConfig()
    generation: GenerationConfig = GenerationConfig()
    logging: LoggingConfig = LoggingConfig()

def load_config(path: str = "config.yaml") -> Config:
    if not os.path.exists(path):
        logger.warning(f"Config file {path} not found. Using defaults.")
        return Config()
    
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
            return Config(**data)
    except Exception as e:
        logger.error(f"Failed to load config: {e}. Using defaults.")
        return Config()
