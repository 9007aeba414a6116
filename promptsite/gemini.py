"""
Client for the Gemini ``generateContent`` REST endpoint.

``GeminiGateway`` exposes the four operations the editor needs. All of them
raise ``GatewayError`` on any failure so callers only handle one type.
"""
import json
import logging
import time  # For exponential backoff

import requests

from .config import Config
from .document import Document
from .errors import EmptyResultError, GatewayError
from .extractor import parse_combined_code
from .images import shrink_data_uri
from . import prompts

log = logging.getLogger(__name__)


# --- Helper function for exponential backoff ---
def api_call_with_backoff(url, headers, payload, max_retries=5, initial_delay=1, timeout=300):
    """
    Makes a POST request to an API with exponential backoff for retries.
    A 400 means the request itself is wrong, so it is raised right away.
    """
    for i in range(max_retries):
        try:
            response = requests.post(url, headers=headers, data=json.dumps(payload), timeout=timeout)
            if not response.ok:
                log.warning("API error response: status=%s body=%s", response.status_code, response.text[:2000])
            response.raise_for_status()  # Raises an HTTPError for bad responses (4xx or 5xx)
            return response.json()
        except requests.exceptions.HTTPError as e:
            log.warning("API call failed with HTTPError (retry %d/%d): %s", i + 1, max_retries, e)
            if e.response is not None and e.response.status_code == 400:
                raise
            if i >= max_retries - 1:
                raise
            time.sleep(initial_delay * (2 ** i))
        except requests.exceptions.RequestException as e:
            log.warning("API call failed with network error (retry %d/%d): %s", i + 1, max_retries, e)
            if i >= max_retries - 1:
                raise
            time.sleep(initial_delay * (2 ** i))


def _parts(result):
    try:
        parts = result["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError) as e:
        raise GatewayError(f"Unexpected response shape: {e!r}") from e
    if not isinstance(parts, list):
        raise GatewayError(f"Unexpected response shape: parts is {type(parts).__name__}")
    return parts


def _text(result):
    text = "".join(
        part["text"] for part in _parts(result)
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    )
    if not text.strip():
        raise EmptyResultError("The model returned an empty response.")
    return text


def _json_field(text, key):
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise GatewayError(f"Model did not return valid JSON: {e}") from e
    if not isinstance(data, dict) or not isinstance(data.get(key), str):
        raise GatewayError(f"Model response has no '{key}' field.")
    return data[key]


class GeminiGateway:
    def __init__(self, config=Config):
        self.config = config

    def _url(self, model):
        return f"{self.config.GEMINI_API_BASE}/models/{model}:generateContent?key={self.config.GEMINI_API_KEY}"

    def _call(self, model, prompt, generation_config):
        if not self.config.GEMINI_API_KEY:
            raise GatewayError("GEMINI_API_KEY is not configured on the server.")
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }
        try:
            return api_call_with_backoff(
                self._url(model),
                headers={"Content-Type": "application/json"},
                payload=payload,
                max_retries=self.config.MAX_RETRIES,
                timeout=self.config.REQUEST_TIMEOUT,
            )
        except (requests.exceptions.RequestException, ValueError) as e:
            raise GatewayError(f"Failed to call Gemini API: {e}") from e

    def _call_json(self, prompt, temperature):
        return _text(self._call(self.config.TEXT_MODEL, prompt, {
            "temperature": temperature,
            "topP": 0.95,
            "maxOutputTokens": 8192,
            "responseMimeType": "application/json",
        }))

    def generate_website(self, description):
        text = self._call_json(prompts.build_generate_prompt(description), temperature=0.8)
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            data = None
        if isinstance(data, dict) and any(k in data for k in ("html", "css", "javascript")):
            document = Document.from_dict(data)
        else:
            log.info("Generation answer is not the expected JSON, extracting code from text")
            document = parse_combined_code(text)
        if document.is_empty():
            raise EmptyResultError("The model returned no website code.")
        return document

    def enhance_prompt(self, idea):
        enhanced = _json_field(self._call_json(prompts.build_enhance_prompt(idea), temperature=0.9), "enhancedPrompt")
        return enhanced.strip()

    def modify_code(self, original_code, modification_request):
        """Returns the model's combined code text, possibly empty."""
        text = self._call_json(prompts.build_modify_prompt(original_code, modification_request), temperature=0.4)
        return _json_field(text, "modifiedCode")

    def generate_image(self, description):
        result = self._call(self.config.IMAGE_MODEL, prompts.build_image_prompt(description), {
            "responseModalities": ["TEXT", "IMAGE"],
        })
        for part in _parts(result):
            if not isinstance(part, dict):
                continue
            inline = part.get("inlineData") or part.get("inline_data")
            if isinstance(inline, dict) and inline.get("data"):
                mime_type = inline.get("mimeType") or inline.get("mime_type") or "image/png"
                uri = f"data:{mime_type};base64,{inline['data']}"
                return shrink_data_uri(uri, self.config.IMAGE_MAX_SIZE)
            file_data = part.get("fileData") or {}
            if isinstance(file_data, dict) and file_data.get("fileUri"):
                return file_data["fileUri"]
        raise EmptyResultError("The model returned no image.")
