from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import anyio
import google.generativeai as genai
from google.generativeai import types as genai_types

from ..config import get_settings
from ..parser import hint_category
from ..schemas.ocr import ReceiptScan
from ..schemas.transaction import TransactionItem

logger = logging.getLogger(__name__)

DEFAULT_RECEIPT_PROMPT = """You are a receipt/invoice OCR parser. Analyze this image of a receipt and extract the following information in JSON format:

{
  "total": <number or null, the grand total/final amount paid>,
  "date": <string "YYYY-MM-DD" or null, the transaction date>,
  "merchant": <string or null, the store/merchant name>,
  "items": [{"name": "<item name>", "price": <number>, "quantity": <number or 1>}],
  "rawText": "<full text content of the receipt>",
  "confidence": "<high|medium|low>"
}

Rules:
- For Indonesian receipts: "total", "jumlah", "bayar", "grand total" indicate the final amount
- Amounts are in the local currency (likely IDR); return raw numbers without currency symbols
- If the receipt is blurry or partially visible, still extract what you can and set confidence to "low"
- Return ONLY the JSON object, no markdown or explanation
- If this is not a receipt/invoice image, return: {"total": null, "date": null, "merchant": null, "items": [], "rawText": "", "confidence": "low"}"""


class ReceiptExtractionError(RuntimeError):
    """Raised when the model cannot return usable receipt data."""


class ReceiptServiceUnavailable(RuntimeError):
    """Raised when the receipt model cannot be set up, e.g. without an API key."""


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def build_receipt_scan(payload: dict[str, Any]) -> ReceiptScan:
    """Turn the model's JSON into a ``ReceiptScan``, tolerating sloppy fields."""
    if not isinstance(payload, dict):
        raise ReceiptExtractionError("Receipt data must be a JSON object")

    items: list[TransactionItem] = []
    raw_items = payload.get("items")
    for entry in raw_items if isinstance(raw_items, list) else []:
        if not isinstance(entry, dict):
            continue
        price = _to_decimal(entry.get("price"))
        if price is None:
            continue
        items.append(
            TransactionItem(
                name=str(entry.get("name") or "Item"),
                quantity=_to_decimal(entry.get("quantity")) or Decimal("1"),
                price=price,
            )
        )

    merchant = payload.get("merchant") or None
    category = payload.get("category") or hint_category(
        " ".join([merchant or ""] + [item.name for item in items]).lower()
    )
    confidence = payload.get("confidence")
    return ReceiptScan(
        total=_to_decimal(payload.get("total")),
        date=payload.get("date") or None,
        merchant=merchant,
        items=items,
        category=category,
        raw_text=payload.get("rawText") or "",
        confidence=confidence if confidence in ("high", "medium", "low") else "low",
    )


class GeminiReceiptService:
    """Thin wrapper around Google's Gemini API for extracting receipt data."""

    def __init__(self, prompt_path: Path | None = None, model_name: str = "gemini-2.0-flash") -> None:
        settings = get_settings()
        if not settings.gemini_api_key:
            raise ReceiptServiceUnavailable("GEMINI_API_KEY is not configured.")
        genai.configure(api_key=settings.gemini_api_key)
        self.model = genai.GenerativeModel(
            model_name,
            generation_config=genai_types.GenerationConfig(
                temperature=0.1,
                top_k=1,
                top_p=0.8,
                max_output_tokens=2048,
                response_mime_type="application/json",
            ),
        )
        self.prompt = self._load_prompt(prompt_path or settings.receipt_prompt_path)

    @staticmethod
    def _load_prompt(path: Path) -> str:
        if path.exists():
            return path.read_text(encoding="utf-8")
        return DEFAULT_RECEIPT_PROMPT

    def _call_model(self, image_bytes: bytes, mime_type: str) -> str:
        response = self.model.generate_content(
            [self.prompt, {"mime_type": mime_type, "data": image_bytes}]
        )
        if not response or not response.text:
            raise ReceiptExtractionError("Gemini did not return any text.")
        return response.text

    @staticmethod
    def _clean_model_output(raw_text: str) -> str:
        """Remove Markdown code fences that Gemini may wrap around JSON."""
        text = raw_text.strip()
        if text.startswith("```"):
            first_newline = text.find("\n")
            text = text[first_newline + 1 :] if first_newline != -1 else ""
        if text.endswith("```"):
            text = text[: text.rfind("```")]
        return text.strip()

    async def parse_receipt(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> ReceiptScan:
        raw_text = await anyio.to_thread.run_sync(self._call_model, image_bytes, mime_type)
        cleaned_text = self._clean_model_output(raw_text)
        try:
            payload = json.loads(cleaned_text)
        except json.JSONDecodeError as exc:
            logger.warning("Unparseable Gemini output: %s", raw_text)
            raise ReceiptExtractionError("Could not parse receipt data") from exc
        return build_receipt_scan(payload)


_service: GeminiReceiptService | None = None


def get_receipt_service() -> GeminiReceiptService:
    global _service
    if _service is None:
        _service = GeminiReceiptService()
    return _service
