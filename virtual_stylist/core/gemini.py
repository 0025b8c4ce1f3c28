import json
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from virtual_stylist.config import (
    DEFAULT_ANALYSIS_MODEL,
    DEFAULT_BASE_URL,
    DEFAULT_IMAGE_MODEL,
    DEFAULT_TIMEOUT_SECONDS,
    StylistSettings,
    logger,
)
from virtual_stylist.core.errors import GenerationError, ParseError, TransportError
from virtual_stylist.core.images import (
    DEFAULT_GENERATED_MEDIA_TYPE,
    build_data_uri,
    split_data_uri,
)
from virtual_stylist.core.prompt_templates import (
    ANALYSIS_RESPONSE_SCHEMA,
    build_analysis_prompt,
    build_flat_lay_prompt,
)
from virtual_stylist.models import OutfitAnalysis, OutfitSuggestion

IMAGE_GENERATION_CONFIG = {
    "responseModalities": ["TEXT", "IMAGE"],
    "imageConfig": {"aspectRatio": "1:1"},
}


class GeminiClient:
    """
    Thin async client over the Gemini ``generateContent`` REST endpoint.

    The API key is supplied at construction. Pass ``http_client`` to reuse a
    connection pool or to substitute a transport in tests; a client created
    here is closed by :meth:`aclose`.
    """

    def __init__(
        self,
        api_key: Optional[str],
        http_client: Optional[httpx.AsyncClient] = None,
        analysis_model: str = DEFAULT_ANALYSIS_MODEL,
        image_model: str = DEFAULT_IMAGE_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.api_key = api_key
        self.analysis_model = analysis_model
        self.image_model = image_model
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

        logger.info(f"Gemini client initialized with API key: {bool(api_key)}")

    @classmethod
    def from_settings(
        cls,
        settings: StylistSettings,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "GeminiClient":
        return cls(
            api_key=settings.api_key,
            http_client=http_client,
            analysis_model=settings.analysis_model,
            image_model=settings.image_model,
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "GeminiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def analyze_item_and_suggest_outfits(
        self, image_b64: str, media_type: str
    ) -> OutfitAnalysis:
        """
        Analyze an uploaded clothing item and suggest one outfit per category.

        Args:
            image_b64: Raw base64 content of the item photo (a data URI is accepted)
            media_type: Declared media type of the upload

        Returns:
            OutfitAnalysis with the item description and three suggestions

        Raises:
            TransportError: If the request fails
            ParseError: If the response is not the expected JSON shape
        """
        _, payload_b64 = split_data_uri(image_b64, media_type)

        payload = {
            "contents": [
                {
                    "parts": [
                        {"inline_data": {"mime_type": media_type, "data": payload_b64}},
                        {"text": build_analysis_prompt()},
                    ]
                }
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": ANALYSIS_RESPONSE_SCHEMA,
            },
        }

        logger.info(f"Requesting outfit analysis from {self.analysis_model}")
        api_result = await self._generate_content(self.analysis_model, payload)

        result_text = "".join(
            part["text"]
            for part in _candidate_parts(api_result)
            if isinstance(part.get("text"), str)
        )
        if not result_text.strip():
            raise ParseError("Analysis response contained no text output")

        logger.debug(f"Analysis raw response text: {result_text[:500]}...")
        data = _extract_json(result_text)

        try:
            return OutfitAnalysis.model_validate(data)
        except ValidationError as exc:
            logger.error(f"Analysis JSON failed validation: {exc}")
            raise ParseError(f"Analysis response has an unexpected shape: {exc}") from exc

    async def generate_outfit_image(
        self, item_description: str, suggestion: OutfitSuggestion
    ) -> str:
        """Render a square flat-lay image for one suggestion and return it as a data URI."""

        prompt = build_flat_lay_prompt(item_description, suggestion.items)
        logger.debug(f"Flat-lay prompt for {suggestion.category.value}: {prompt}")

        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": IMAGE_GENERATION_CONFIG,
        }

        api_result = await self._generate_content(self.image_model, payload)
        return _extract_inline_image(api_result, "Failed to generate image")

    async def edit_outfit_image(self, current_image: str, instruction: str) -> str:
        """Resubmit an outfit image with a free-text edit instruction."""

        media_type, image_b64 = split_data_uri(current_image, DEFAULT_GENERATED_MEDIA_TYPE)

        payload = {
            "contents": [
                {
                    "parts": [
                        {"inline_data": {"mime_type": media_type, "data": image_b64}},
                        {"text": instruction},
                    ]
                }
            ],
            "generationConfig": IMAGE_GENERATION_CONFIG,
        }

        logger.info(f"Requesting image edit ({len(image_b64)} base64 chars)")
        api_result = await self._generate_content(self.image_model, payload)
        return _extract_inline_image(api_result, "Failed to edit image")

    async def _generate_content(self, model: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}/models/{model}:generateContent"
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["x-goog-api-key"] = self.api_key

        try:
            response = await self._http.post(url, json=payload, headers=headers)
            response.raise_for_status()
            api_result = response.json()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"Gemini API HTTP error: {exc.response.status_code} - {exc.response.text}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.RequestError as exc:
            raise TransportError(f"Network error calling Gemini API: {exc}") from exc
        except ValueError as exc:
            raise TransportError(f"Gemini API returned a non-JSON body: {exc}") from exc

        if not isinstance(api_result, dict):
            raise TransportError("Gemini API returned an unexpected body")

        if "error" in api_result:
            error = api_result["error"]
            if not isinstance(error, dict):
                error = {"message": str(error)}
            raise TransportError(
                f"Gemini API error: {error.get('message', error)}",
                status_code=error.get("code"),
            )

        return api_result


def _candidate_parts(api_result: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Return the parts of the first candidate, or an empty list."""

    candidates = api_result.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return []
    candidate = candidates[0]
    if not isinstance(candidate, dict):
        return []
    content = candidate.get("content")
    if not isinstance(content, dict):
        return []
    parts = content.get("parts")
    if not isinstance(parts, list):
        return []
    return [part for part in parts if isinstance(part, dict)]


def _extract_inline_image(api_result: Dict[str, Any], failure_message: str) -> str:
    """Return the first inline image part of a response as a data URI."""

    for part in _candidate_parts(api_result):
        # Check both camelCase and snake_case formats
        inline = part.get("inlineData") or part.get("inline_data")
        if not isinstance(inline, dict):
            continue
        data = inline.get("data")
        if isinstance(data, str) and data:
            media_type = inline.get("mimeType") or inline.get("mime_type")
            if not isinstance(media_type, str) or not media_type:
                media_type = DEFAULT_GENERATED_MEDIA_TYPE
            return build_data_uri(data, media_type)

    raise GenerationError(f"{failure_message}: no image returned in Gemini API response")


def _extract_json(raw_text: str) -> Dict[str, Any]:
    """Attempt to parse a JSON object from the model's text output."""

    cleaned = raw_text.strip()

    # Remove markdown code block delimiters
    if cleaned.startswith("```"):
        # Find the first newline after ``` to skip the language identifier
        first_newline = cleaned.find("\n")
        if first_newline > 0:
            cleaned = cleaned[first_newline + 1 :]
        # Remove trailing ```
        if cleaned.endswith("```"):
            cleaned = cleaned[:-3]
        cleaned = cleaned.strip()

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        # Fall back to the outermost object when the model wrapped it in prose
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            logger.error(f"Failed to parse JSON from analysis. Raw text: {raw_text[:500]}")
            raise ParseError(f"Analysis response was not valid JSON: {exc}") from exc
        try:
            data = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as inner_exc:
            logger.error(f"Failed to parse JSON from analysis. Raw text: {raw_text[:500]}")
            raise ParseError(
                f"Analysis response was not valid JSON: {inner_exc}"
            ) from inner_exc

    if not isinstance(data, dict):
        raise ParseError("Analysis response JSON is not an object")

    missing_keys = {"suggestions"} - set(data.keys())
    if missing_keys:
        logger.error(f"Analysis JSON missing keys: {missing_keys}")
        logger.error(f"Received keys: {list(data.keys())}")
        raise ParseError(f"Analysis JSON is missing required keys: {missing_keys}")

    return data


__all__ = ["GeminiClient", "IMAGE_GENERATION_CONFIG"]
