import unittest

from kamunsync.errors.exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    HttpErrorInfo,
    InvalidArgumentError,
    KamunSyncError,
    NotFoundError,
    RateLimitError,
    RemoteWriteFailure,
    ValidationError,
    map_http_error,
)


class TestExceptions(unittest.TestCase):
    def test_base_error_keeps_details_and_cause(self) -> None:
        cause = RuntimeError("root")
        err = KamunSyncError("msg", details={"k": "v"}, cause=cause)
        self.assertEqual(str(err), "msg")
        self.assertEqual(err.details["k"], "v")
        self.assertIs(err.cause, cause)

    def test_details_default_to_empty_dict(self) -> None:
        err = ValidationError("bad")
        self.assertEqual(err.details, {})
        self.assertIsNone(err.cause)

    def test_subclasses_share_base(self) -> None:
        self.assertTrue(issubclass(RemoteWriteFailure, KamunSyncError))
        self.assertTrue(issubclass(ValidationError, KamunSyncError))

    def test_map_http_error_basic(self) -> None:
        err = map_http_error(HttpErrorInfo(status_code=404, message="not found"))
        self.assertIsInstance(err, NotFoundError)

        err = map_http_error(HttpErrorInfo(status_code=400, message="bad req"))
        self.assertIsInstance(err, InvalidArgumentError)

        err = map_http_error(HttpErrorInfo(status_code=429, message="rate"))
        self.assertIsInstance(err, RateLimitError)

        err = map_http_error(HttpErrorInfo(status_code=409, message="conflict"))
        self.assertIsInstance(err, ConflictError)

        err = map_http_error(HttpErrorInfo(status_code=401, message="auth"))
        self.assertIsInstance(err, AuthError)

    def test_map_http_error_403_is_auth(self) -> None:
        err = map_http_error(HttpErrorInfo(status_code=403, message="row-level security"))
        self.assertIsInstance(err, AuthError)

    def test_map_http_error_5xx_is_api_error_with_status(self) -> None:
        err = map_http_error(HttpErrorInfo(status_code=503, reason="Service Unavailable"))
        self.assertIsInstance(err, ApiError)
        self.assertEqual(err.details["status_code"], 503)
        self.assertEqual(str(err), "HTTP error 503")

    def test_map_http_error_merges_details(self) -> None:
        err = map_http_error(
            HttpErrorInfo(status_code=409, message="dup", details={"code": "23505"})
        )
        self.assertEqual(err.details["code"], "23505")
        self.assertEqual(err.details["status_code"], 409)

    def test_map_http_error_other_is_api_error(self) -> None:
        err = map_http_error(HttpErrorInfo(status_code=418, message="teapot"))
        self.assertIsInstance(err, ApiError)


if __name__ == "__main__":
    unittest.main()
