"""
LLM Extract - product extraction from PDF/image documents.

The document is sent inline to an OpenAI chat model which answers with a
JSON object listing the products found. The client is built per call from
an explicit AIServiceConfig.
"""
import base64
import json
import logging
import time
from typing import Any, Dict, List, Optional

import openai

from core.config import AIServiceConfig
from core.errors import DocumentExtractionError
from ingest.gate import DOCUMENT_MIME_TYPES

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """Analyse this professional stock inventory document.
Extract EVERY item listed, without exception.

Portuguese tax-authority rules:
1. Identify code, designation, quantity and unit value of each item.
2. Mandatory categories (use ONLY these letters):
   M - merchandise
   P - raw materials, consumables
   A - finished and intermediate goods
   S - by-products, waste and scrap
   T - work in progress
3. If the category is not explicit, assume 'M'.
4. Default unit of measure: 'UN' when omitted.

Answer ONLY with JSON in this format:
{"products": [{"code": string, "description": string, "type": "M"|"P"|"A"|"S"|"T",
  "unit": string, "quantity": number, "unitValue": number,
  "suggestions": string|null}]}
Use "suggestions" for a short correction note when the data is ambiguous."""


def create_openai_client(ai_config: AIServiceConfig) -> openai.AsyncOpenAI:
    """
    Build an async OpenAI client for one extraction call.

    Raises:
        DocumentExtractionError: API key not configured
    """
    if not ai_config.enabled:
        raise DocumentExtractionError("AI service not configured (OPENAI_API_KEY missing)")
    return openai.AsyncOpenAI(api_key=ai_config.api_key, timeout=ai_config.timeout_sec)


def build_document_part(file_content: bytes, file_name: str, ext: str) -> Dict[str, Any]:
    """Inline the document as a base64 content part (file for PDF, image_url for images)."""
    mime_type = DOCUMENT_MIME_TYPES.get(ext, 'application/octet-stream')
    data_url = f"data:{mime_type};base64,{base64.b64encode(file_content).decode('ascii')}"
    if ext == 'pdf':
        return {"type": "file", "file": {"filename": file_name, "file_data": data_url}}
    return {"type": "image_url", "image_url": {"url": data_url}}


def parse_ai_response(content: Optional[str]) -> List[Any]:
    """
    Decode the model answer into the raw product list.

    Accepts {"products": [...]} or a bare JSON array.

    Raises:
        DocumentExtractionError: Empty, non-JSON or wrongly shaped answer
    """
    if not content or not content.strip():
        raise DocumentExtractionError("No response from the AI service")

    text = content.strip()
    # Some models wrap JSON in a markdown fence
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"[LLM_EXTRACT] Malformed JSON from AI: {text[:200]}")
        raise DocumentExtractionError(f"Malformed AI response: {e}") from e

    if isinstance(payload, dict):
        payload = payload.get("products")
    if not isinstance(payload, list):
        raise DocumentExtractionError("Malformed AI response: no product list")
    return payload


async def extract_document_candidates(
    file_content: bytes,
    file_name: str,
    ext: str,
    ai_config: AIServiceConfig,
    client: Optional[openai.AsyncOpenAI] = None,
) -> List[Any]:
    """
    Extract raw product candidates from a document.

    Args:
        file_content: Document bytes
        file_name: Original file name
        ext: Normalized extension (pdf, jpg, jpeg, png)
        ai_config: AI settings for this call
        client: Pre-built client (tests); built from ai_config when None

    Returns:
        Raw list of candidate dicts, as returned by the model

    Raises:
        DocumentExtractionError: Service unavailable or unusable response
    """
    if not file_content:
        raise DocumentExtractionError("Empty document")

    if client is None:
        client = create_openai_client(ai_config)

    start_time = time.time()
    try:
        response = await client.chat.completions.create(
            model=ai_config.model,
            messages=[
                {
                    "role": "system",
                    "content": "You extract stock inventory tables from documents. Answer ONLY with JSON."
                },
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": EXTRACTION_PROMPT},
                        build_document_part(file_content, file_name, ext),
                    ]
                },
            ],
            response_format={"type": "json_object"},
            temperature=ai_config.temperature,
            max_tokens=ai_config.max_output_tokens,
        )
    except openai.OpenAIError as e:
        logger.error(f"[LLM_EXTRACT] AI call failed for {file_name}: {e}")
        raise DocumentExtractionError(f"Error processing document: {e}") from e

    elapsed_ms = (time.time() - start_time) * 1000

    choices = getattr(response, "choices", None) or []
    content = choices[0].message.content if choices else None
    candidates = parse_ai_response(content)

    logger.info(
        f"[LLM_EXTRACT] {len(candidates)} candidates extracted from {file_name} "
        f"(model={ai_config.model}, elapsed_ms={elapsed_ms:.0f})"
    )
    return candidates
