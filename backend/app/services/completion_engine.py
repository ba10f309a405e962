import logging
import httpx
from ..core.errors import ExternalServiceError

log = logging.getLogger(__name__)

SERVICE = 'completion'


class CompletionEngine:
    """Single-shot text completion against an OpenAI-compatible /completions endpoint."""

    def __init__(self, http: httpx.AsyncClient, api_key: str, base_url: str = 'https://api.openai.com/v1',
                 model: str = 'gpt-3.5-turbo-instruct', max_tokens: int = 400):
        self._http = http
        self.api_key = api_key
        self.endpoint = base_url.rstrip('/') + '/completions'
        self.model = model
        self.max_tokens = max_tokens

    def _payload(self, prompt: str) -> dict:
        # fixed generation parameters: bounded length, no nucleus truncation, no penalties
        return {
            'model': self.model,
            'prompt': prompt,
            'max_tokens': self.max_tokens,
            'top_p': 1,
            'frequency_penalty': 0,
            'presence_penalty': 0,
        }

    async def complete(self, prompt: str) -> str:
        if not self.api_key:
            raise ExternalServiceError(SERVICE, 'missing OPENAI_API_KEY')
        headers = {
            'Authorization': f'Bearer {self.api_key}',
            'Content-Type': 'application/json',
        }
        try:
            resp = await self._http.post(self.endpoint, headers=headers, json=self._payload(prompt))
        except httpx.HTTPError as e:
            raise ExternalServiceError(SERVICE, f'request failed: {type(e).__name__}') from e
        if resp.status_code >= 400:
            raise ExternalServiceError(SERVICE, f'http_{resp.status_code}: {resp.text[:160]}', resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise ExternalServiceError(SERVICE, 'invalid JSON response', resp.status_code) from e
        choices = data.get('choices') or []
        if not choices:
            raise ExternalServiceError(SERVICE, 'response contained no choices', resp.status_code)
        text = choices[0].get('text') or ''
        log.debug("completion_generated", extra={"service": SERVICE})
        return text
