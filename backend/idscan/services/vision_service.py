"""
Vision OCR Service
Extracts ID fields with a remote vision-language model (OpenAI-compatible chat completions)
"""
import base64
import json
import re
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from idscan.config import Settings, settings as default_settings
from idscan.models.card import VisionFields, VisionResult


EXTRACTION_PROMPT = (
    "Analyze this Philippine ID card image and extract the following information. "
    "Return ONLY a JSON object with these exact fields (use empty string if not found): "
    "{ \"fullName\": \"extracted full name\", \"idNumber\": \"extracted ID number\", "
    "\"dob\": \"date of birth in YYYY-MM-DD format\", \"address\": \"extracted address\", "
    "\"idType\": \"type of ID (e.g. Driver's License, SSS ID, National ID, UMID)\", "
    "\"gender\": \"Male or Female based on SEX/M/F field on ID\" } "
    "Important: For names, use format FIRSTNAME MIDDLENAME LASTNAME. "
    "For dates, convert to YYYY-MM-DD format. "
    "For gender, look for SEX field or M/F indicator and return 'Male' or 'Female'. "
    "Extract the ID/License number exactly as shown. Only return the JSON, no other text."
)

FIELD_KEYS = {
    "fullName": "full_name",
    "idNumber": "id_number",
    "dob": "dob",
    "address": "address",
    "idType": "id_type",
    "gender": "gender",
}

CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class VisionOcrError(Exception):
    """Vision model response could not be used"""


def extract_json_block(content: str) -> Dict[str, Any]:
    """Parse the first {...} object out of a model reply, tolerating ``` fences"""
    cleaned = CODE_FENCE.sub("", (content or "").strip()).strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        raise VisionOcrError("No JSON object in model response")
    try:
        data = json.loads(cleaned[start:end + 1])
    except json.JSONDecodeError as e:
        raise VisionOcrError(f"Invalid JSON in model response: {e}") from e
    if not isinstance(data, dict):
        raise VisionOcrError("Model response JSON is not an object")
    return data


def fields_from_json(data: Dict[str, Any]) -> VisionFields:
    values = {}
    for wire_key, attr in FIELD_KEYS.items():
        value = data.get(wire_key)
        values[attr] = str(value).strip() if value is not None else ""
    return VisionFields(**values)


class VisionOcrService:
    """Client for the vision-model extraction path"""

    def __init__(self, settings: Settings = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or default_settings
        self.transport = transport

    def _build_payload(self, image_bytes: bytes, mime_type: str) -> Dict[str, Any]:
        encoded = base64.b64encode(image_bytes).decode("ascii")
        return {
            "model": self.settings.VISION_MODEL,
            "max_tokens": self.settings.VISION_MAX_TOKENS,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": EXTRACTION_PROMPT},
                        {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}},
                    ],
                }
            ],
        }

    async def extract_fields(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> VisionResult:
        """
        Send the card image to the vision model and parse its JSON reply.
        Returns success=False with an error message instead of raising.
        """
        model = self.settings.VISION_MODEL

        if not self.settings.VISION_API_KEY:
            return VisionResult(success=False, model=model, error="Vision OCR is not configured (VISION_API_KEY)")
        if not image_bytes:
            return VisionResult(success=False, model=model, error="Empty file")

        headers = {
            "Authorization": f"Bearer {self.settings.VISION_API_KEY}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.settings.VISION_REFERER,
            "X-Title": self.settings.VISION_TITLE,
        }

        async with httpx.AsyncClient(transport=self.transport) as client:
            try:
                response = await client.post(
                    self.settings.VISION_API_URL,
                    json=self._build_payload(image_bytes, mime_type),
                    headers=headers,
                    timeout=self.settings.VISION_TIMEOUT_SECONDS
                )

                if response.status_code != 200:
                    logger.error(f"Vision API error: {response.status_code} - {response.text[:200]}")
                    return VisionResult(
                        success=False, model=model,
                        error=f"Vision API returned {response.status_code}"
                    )

                content = response.json()["choices"][0]["message"]["content"]

            except httpx.HTTPError as e:
                logger.error(f"Vision API request failed: {e}")
                return VisionResult(success=False, model=model, error=f"Vision OCR failed: {e}")
            except (KeyError, IndexError, TypeError, ValueError) as e:
                logger.error(f"Unexpected vision API response: {e}")
                return VisionResult(success=False, model=model, error="Failed to parse response")

        try:
            fields = fields_from_json(extract_json_block(content))
        except VisionOcrError as e:
            logger.warning(f"Vision model reply unusable: {e}")
            return VisionResult(success=False, model=model, error=str(e), raw_response=content)

        logger.info(f"Vision OCR extracted fields with {model}")
        return VisionResult(success=True, model=model, fields=fields, raw_response=content)
