"""Receipt transaction extraction: model response parsing and regex fallback."""

import logging
import unittest
from datetime import datetime, timezone

import pytest

from finance_tracker.services.ai.common.json_tools import extract_json_array, strip_code_fences
from finance_tracker.services.ai.common.providers.base import BaseProvider
from finance_tracker.services.ai.common.providers.mock import MockProvider
from finance_tracker.services.ai.receipt_extract.contracts import (
    ExtractedTransaction,
    coerce_amount,
    filter_valid_transactions,
    to_valid_transaction,
)
from finance_tracker.services.ai.receipt_extract.service import (
    build_prompt,
    extract_transactions,
    fallback_transactions,
    find_amount,
    parse_model_response,
)


def _utc_today():
    return datetime.now(timezone.utc).date().isoformat()


class RaisingProvider(BaseProvider):
    name = "raising"

    def __init__(self):
        self.calls = 0

    async def generate(self, prompt, **kwargs):
        self.calls += 1
        raise TimeoutError("model timed out")


class JsonToolsTests(unittest.TestCase):
    def test_strip_code_fences(self):
        self.assertEqual(strip_code_fences('```json\n[1]\n```'), "[1]\n")

    def test_plain_array(self):
        self.assertEqual(extract_json_array("[1, 2, 3]"), [1, 2, 3])

    def test_fenced_array_with_prose(self):
        text = 'Sure! Here you go:\n```json\n[{"amount": 12.5}]\n```\nAnything else?'
        self.assertEqual(extract_json_array(text), [{"amount": 12.5}])

    def test_first_open_to_last_close(self):
        text = 'a [{"amount": 1, "tags": ["x"]}] b'
        self.assertEqual(extract_json_array(text), [{"amount": 1, "tags": ["x"]}])

    def test_closing_before_opening_returns_none(self):
        self.assertIsNone(extract_json_array("] nothing ["))

    def test_no_brackets_returns_none(self):
        self.assertIsNone(extract_json_array('{"amount": 3}'))

    def test_invalid_json_returns_none(self):
        self.assertIsNone(extract_json_array("[amount: 3]"))

    def test_empty_returns_none(self):
        self.assertIsNone(extract_json_array(""))
        self.assertIsNone(extract_json_array("   "))


class ValidityFilterTests(unittest.TestCase):
    def test_zero_amount_dropped(self):
        self.assertIsNone(to_valid_transaction({"amount": 0, "description": "x", "merchant": "y"}))

    def test_negative_amount_dropped(self):
        self.assertIsNone(to_valid_transaction({"amount": -5, "description": "x", "merchant": "y"}))

    def test_missing_amount_dropped(self):
        self.assertIsNone(to_valid_transaction({"description": "x", "merchant": "y"}))
        self.assertIsNone(to_valid_transaction({"amount": None, "description": "x", "merchant": "y"}))

    def test_empty_description_or_merchant_dropped(self):
        self.assertIsNone(to_valid_transaction({"amount": 5, "description": "", "merchant": "y"}))
        self.assertIsNone(to_valid_transaction({"amount": 5, "description": "x", "merchant": None}))

    def test_non_dict_dropped(self):
        self.assertIsNone(to_valid_transaction("amount 5"))
        self.assertIsNone(to_valid_transaction([5]))

    def test_numeric_string_amount_accepted(self):
        txn = to_valid_transaction({"amount": "42.10", "description": "Fuel", "merchant": "Shell", "date": "2025-03-01"})
        self.assertEqual(txn.amount, 42.10)
        self.assertEqual(txn.date, "2025-03-01")

    def test_bool_and_nan_amount_rejected(self):
        self.assertIsNone(coerce_amount(True))
        self.assertIsNone(coerce_amount("nan"))
        self.assertIsNone(coerce_amount("abc"))

    def test_missing_date_defaults_to_today(self):
        txn = to_valid_transaction({"amount": 3, "description": "x", "merchant": "y"})
        self.assertEqual(txn.date, _utc_today())

    def test_filter_keeps_order(self):
        entries = [
            {"amount": 10, "description": "A", "merchant": "M1", "date": "2025-01-01"},
            {"amount": 0, "description": "B", "merchant": "M2", "date": "2025-01-02"},
            {"amount": 30, "description": "C", "merchant": "M3", "date": "2025-01-03"},
        ]
        result = filter_valid_transactions(entries)
        self.assertEqual([t.description for t in result], ["A", "C"])


class PromptTests(unittest.TestCase):
    def test_prompt_embeds_text_and_shape(self):
        prompt = build_prompt("ACME LTD Amount Payable 99.00")
        self.assertIn('Text: "ACME LTD Amount Payable 99.00"', prompt)
        self.assertIn("Return ONLY a JSON array", prompt)
        self.assertIn('"amount": <number>', prompt)
        self.assertIn('"merchant": "<company>"', prompt)


class FallbackTests(unittest.TestCase):
    def test_amount_payable_preferred(self):
        self.assertEqual(find_amount("Total 50.00\nAmount Payable: Rs. 1200.00"), 1200.0)

    def test_total_pattern(self):
        self.assertEqual(find_amount("Subtotal: 10.00 TOTAL: 45.50"), 10.0)

    def test_currency_prefixed_number(self):
        self.assertEqual(find_amount("Paid ₹ 300"), 300.0)
        self.assertEqual(find_amount("paid rs.75.25 cash"), 75.25)

    def test_zero_match_tries_next_pattern(self):
        self.assertEqual(find_amount("Amount payable: 0 Rs. 20.00"), 20.0)

    def test_no_match(self):
        self.assertIsNone(find_amount("thank you for shopping"))
        self.assertEqual(fallback_transactions("thank you for shopping"), [])

    def test_fallback_transaction_shape(self):
        result = fallback_transactions("Amount Payable: Rs. 1200.00")
        self.assertEqual(len(result), 1)
        txn = result[0]
        self.assertEqual(txn.amount, 1200.0)
        self.assertEqual(txn.description, "Transaction")
        self.assertEqual(txn.merchant, "Unknown Merchant")
        self.assertEqual(txn.date, _utc_today())

    def test_fallback_output_passes_validity_filter(self):
        txn = fallback_transactions("TOTAL 19.99")[0]
        again = filter_valid_transactions([txn.model_dump()])
        self.assertEqual(again, [txn])

    def test_parse_model_response_empty_for_no_json(self):
        self.assertEqual(parse_model_response("nothing"), [])


class HugeAmountTests(unittest.TestCase):
    def test_amount_beyond_float_range_is_invalid(self):
        self.assertIsNone(coerce_amount(10**400))

    def test_huge_entry_dropped_alone(self):
        entries = [
            {"amount": 10**400, "description": "Overflow", "merchant": "Bank"},
            {"amount": 12, "description": "Lunch", "merchant": "Cafe", "date": "2026-10-01"},
        ]
        self.assertEqual([t.merchant for t in filter_valid_transactions(entries)], ["Cafe"])


# --- extract_transactions ---

SERVICE_LOGGER = "finance_tracker.services.ai.receipt_extract.service"


@pytest.mark.asyncio
async def test_empty_text_makes_no_call():
    provider = MockProvider('[{"amount": 1, "description": "x", "merchant": "y"}]')
    assert await extract_transactions("", provider=provider) == []
    assert await extract_transactions("  \n\t ", provider=provider) == []
    assert provider.prompts == []


@pytest.mark.asyncio
async def test_model_entries_returned():
    provider = MockProvider(
        '```json\n[{"amount": 899.0, "description": "Broadband", '
        '"date": "2025-06-01", "merchant": "Airtel"}]\n```'
    )
    result = await extract_transactions("Airtel invoice ...", provider=provider)
    assert result == [ExtractedTransaction(amount=899.0, description="Broadband", date="2025-06-01", merchant="Airtel")]
    assert len(provider.prompts) == 1
    assert "Airtel invoice ..." in provider.prompts[0]


@pytest.mark.asyncio
async def test_invalid_entries_filtered_out():
    provider = MockProvider(
        '[{"amount": 0, "description": "Fee", "merchant": "Bank"},'
        ' {"amount": 12, "description": "Lunch", "merchant": "Cafe", "date": "2025-02-02"}]'
    )
    result = await extract_transactions("Cafe receipt total 12", provider=provider)
    assert [t.merchant for t in result] == ["Cafe"]


@pytest.mark.asyncio
async def test_huge_integer_amount_keeps_valid_siblings():
    provider = MockProvider(
        '[{"amount": 1' + "0" * 400 + ', "description": "Overflow", "merchant": "Bank"},'
        ' {"amount": 12, "description": "Lunch", "merchant": "Cafe", "date": "2026-10-01"}]'
    )
    result = await extract_transactions("Cafe receipt Rs. 99", provider=provider)
    assert [t.merchant for t in result] == ["Cafe"]
    assert result[0].amount == 12.0


@pytest.mark.asyncio
async def test_only_zero_amount_entry_triggers_fallback():
    provider = MockProvider('[{"amount": 0, "description": "Fee", "merchant": "Bank", "date": "2025-01-01"}]')
    result = await extract_transactions("Total: 450.50", provider=provider)
    assert len(result) == 1
    assert result[0].amount == 450.5
    assert result[0].merchant == "Unknown Merchant"


@pytest.mark.asyncio
async def test_provider_exception_triggers_fallback(caplog):
    provider = RaisingProvider()
    with caplog.at_level(logging.ERROR, logger=SERVICE_LOGGER):
        result = await extract_transactions("Amount Payable: 77.00", provider=provider)
    assert "Language model receipt extraction failed" in caplog.text
    assert provider.calls == 1
    assert result[0].amount == 77.0
    assert result[0].description == "Transaction"


@pytest.mark.asyncio
async def test_unparseable_response_triggers_fallback():
    provider = MockProvider("I could not find any transaction, sorry.")
    result = await extract_transactions("Rs. 15", provider=provider)
    assert result[0].amount == 15.0


@pytest.mark.asyncio
async def test_object_instead_of_array_triggers_fallback():
    provider = MockProvider('{"amount": 10, "description": "x", "merchant": "y"}')
    assert await extract_transactions("no amounts here", provider=provider) == []


@pytest.mark.asyncio
async def test_fallback_may_return_empty():
    assert await extract_transactions("hello world", provider=RaisingProvider()) == []


@pytest.mark.asyncio
async def test_configured_provider_used_when_none_given(monkeypatch):
    monkeypatch.setenv("AI_RECEIPT_PROVIDER", "mock")
    monkeypatch.setenv("AI_ALLOWED_PROVIDERS", "mock")
    # Mock provider answers "[]", so the regex fallback supplies the result.
    result = await extract_transactions("Total 5.00")
    assert result[0].amount == 5.0
