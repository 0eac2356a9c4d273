from __future__ import annotations

import json
import unittest
from decimal import Decimal
from types import SimpleNamespace
from unittest import IsolatedAsyncioTestCase
from unittest.mock import MagicMock, patch

from fintrack.services.ocr import (
    GeminiReceiptService,
    ReceiptExtractionError,
    ReceiptServiceUnavailable,
    build_receipt_scan,
)


def _service(raw_output: str) -> GeminiReceiptService:
    service = GeminiReceiptService.__new__(GeminiReceiptService)
    service.prompt = "prompt"
    service.model = MagicMock()
    service.model.generate_content.return_value = MagicMock(text=raw_output)
    return service


class BuildReceiptScanTests(unittest.TestCase):
    def test_full_payload(self) -> None:
        scan = build_receipt_scan(
            {
                "total": 45500,
                "date": "2026-10-18",
                "merchant": "Warung Kopi Senja",
                "items": [
                    {"name": "Kopi susu", "price": "18000", "quantity": 2},
                    {"name": "Roti bakar", "price": 9500},
                ],
                "rawText": "TOTAL 45.500",
                "confidence": "high",
            }
        )

        self.assertEqual(scan.total, Decimal("45500"))
        self.assertEqual(scan.merchant, "Warung Kopi Senja")
        self.assertEqual(len(scan.items), 2)
        self.assertEqual(scan.items[1].quantity, Decimal("1"))
        self.assertEqual(scan.category, "foodDrinks")
        self.assertEqual(scan.confidence, "high")
        self.assertEqual(scan.raw_text, "TOTAL 45.500")

    def test_sloppy_fields_are_tolerated(self) -> None:
        scan = build_receipt_scan(
            {
                "total": "n/a",
                "items": ["junk", {"name": "No price"}, {"price": 1000}],
                "confidence": "very sure",
            }
        )

        self.assertIsNone(scan.total)
        self.assertEqual([item.name for item in scan.items], ["Item"])
        self.assertEqual(scan.confidence, "low")
        self.assertIsNone(scan.category)

    def test_non_object_rejected(self) -> None:
        with self.assertRaises(ReceiptExtractionError):
            build_receipt_scan(["not", "a", "dict"])


class ServiceSetupTests(unittest.TestCase):
    def test_missing_api_key_marks_service_unavailable(self) -> None:
        with patch(
            "fintrack.services.ocr.get_settings", return_value=SimpleNamespace(gemini_api_key=None)
        ), patch("fintrack.services.ocr.genai") as genai_mock:
            with self.assertRaises(ReceiptServiceUnavailable):
                GeminiReceiptService()

        genai_mock.configure.assert_not_called()


class CleanModelOutputTests(unittest.TestCase):
    def test_strips_code_fences(self) -> None:
        raw = '```json\n{"total": 1}\n```'
        self.assertEqual(GeminiReceiptService._clean_model_output(raw), '{"total": 1}')

    def test_plain_json_unchanged(self) -> None:
        self.assertEqual(GeminiReceiptService._clean_model_output(' {"a": 1} '), '{"a": 1}')


class ParseReceiptTests(IsolatedAsyncioTestCase):
    async def test_parse_receipt(self) -> None:
        service = _service("```json\n" + json.dumps({"total": 12000, "merchant": "Indomaret"}) + "\n```")

        scan = await service.parse_receipt(b"jpeg-bytes", "image/png")

        self.assertEqual(scan.total, Decimal("12000"))
        parts = service.model.generate_content.call_args.args[0]
        self.assertEqual(parts[1], {"mime_type": "image/png", "data": b"jpeg-bytes"})

    async def test_unparseable_output(self) -> None:
        service = _service("I cannot read this receipt")

        with self.assertLogs("fintrack.services.ocr", level="WARNING"):
            with self.assertRaises(ReceiptExtractionError):
                await service.parse_receipt(b"x")

    async def test_empty_response(self) -> None:
        service = _service("")

        with self.assertRaises(ReceiptExtractionError):
            await service.parse_receipt(b"x")
