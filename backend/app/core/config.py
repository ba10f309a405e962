import os
from dataclasses import dataclass


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """Runtime configuration read from the environment (see backend/.env)."""
    nylas_client_id: str = ''
    nylas_client_secret: str = ''
    nylas_api_server: str = 'https://api.nylas.com'
    client_uri: str = 'http://localhost:3000'
    openai_api_key: str = ''
    openai_base: str = 'https://api.openai.com/v1'
    openai_model: str = 'gpt-3.5-turbo-instruct'
    completion_max_tokens: int = 400
    ingest_thread_limit: int = 5
    http_timeout: float = 30.0
    reply_job_ttl_seconds: float = 3600.0
    reply_job_max: int = 500

    @classmethod
    def from_env(cls) -> "Settings":
        port = os.getenv('PORT', '3000')
        return cls(
            nylas_client_id=os.getenv('NYLAS_CLIENT_ID', ''),
            nylas_client_secret=os.getenv('NYLAS_CLIENT_SECRET', ''),
            nylas_api_server=os.getenv('NYLAS_API_SERVER', 'https://api.nylas.com').rstrip('/'),
            client_uri=os.getenv('CLIENT_URI') or f"http://localhost:{port}",
            openai_api_key=os.getenv('OPENAI_API_KEY', ''),
            openai_base=os.getenv('OPENAI_BASE', 'https://api.openai.com/v1').rstrip('/'),
            openai_model=os.getenv('OPENAI_MODEL', 'gpt-3.5-turbo-instruct'),
            completion_max_tokens=_int_env('COMPLETION_MAX_TOKENS', 400),
            ingest_thread_limit=_int_env('INGEST_THREAD_LIMIT', 5),
            http_timeout=_float_env('HTTP_TIMEOUT', 30.0),
            reply_job_ttl_seconds=_float_env('REPLY_JOB_TTL_SECONDS', 3600.0),
            reply_job_max=_int_env('REPLY_JOB_MAX', 500),
        )
