import unittest

from crypto_gateway.errors import EmsResultError
from crypto_gateway.schemas.crypto_quote import CryptoQuoteResult
from crypto_gateway.schemas.result import (
    ErrorCode,
    ErrorResult,
    Result,
    ResultMeta,
    split_result_fields,
)


class ResultMetaTest(unittest.TestCase):
    def test_status_helpers(self):
        self.assertTrue(ResultMeta(status="SUCCESS").is_success())
        self.assertFalse(ResultMeta(status="SUCCESS").is_error())
        self.assertTrue(ResultMeta(status="ERROR").is_error())
        self.assertFalse(ResultMeta().is_success())

    def test_is_empty(self):
        self.assertTrue(ResultMeta().is_empty())
        self.assertFalse(ResultMeta(token="t").is_empty())

    def test_split_result_fields(self):
        meta, body = split_result_fields({"status": "SUCCESS", "shortMessage": "ok", "ask": 1.0})

        self.assertEqual(meta, {"status": "SUCCESS", "shortMessage": "ok"})
        self.assertEqual(body, {"ask": 1.0})

    def test_result_types_satisfy_result_protocol(self):
        self.assertIsInstance(CryptoQuoteResult(), Result)
        self.assertIsInstance(ErrorResult(), Result)


class ErrorResultTest(unittest.TestCase):
    def test_from_wire_parses_error_payload(self):
        payload = {
            "status": "ERROR",
            "token": "t-1",
            "shortMessage": "Session Expired",
            "longMessages": ["Your session has expired. Please try again"],
            "code": 600,
            "systemMessage": "session expired",
        }

        result = ErrorResult.from_wire(payload)

        self.assertTrue(result.meta.is_error())
        self.assertEqual(result.error_code(), ErrorCode.SESSION_EXPIRED)
        self.assertEqual(result.system_message, "session expired")
        self.assertEqual(result.describe(), "Session Expired")
        self.assertEqual(result.to_wire(), payload)

    def test_unknown_code_maps_to_none(self):
        result = ErrorResult(code=999)

        self.assertIsNone(result.error_code())
        self.assertIsNone(ErrorResult().error_code())

    def test_describe_falls_back_to_system_message(self):
        self.assertEqual(ErrorResult(system_message="boom").describe(), "boom")
        self.assertEqual(ErrorResult().describe(), "EMS request failed")

    def test_result_error_carries_result(self):
        result = ErrorResult.from_wire({"status": "ERROR", "shortMessage": "Bad pair", "code": 500})

        exc = EmsResultError(result, status_code=200)

        self.assertEqual(str(exc), "Bad pair")
        self.assertIs(exc.result, result)
        self.assertEqual(exc.status_code, 200)
        self.assertEqual(exc.payload["code"], 500)


if __name__ == "__main__":
    unittest.main()
