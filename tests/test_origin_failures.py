import asyncio

from vidcloak.origin import describe_failure


def test_timeout_is_described_without_detail():
    assert describe_failure(asyncio.TimeoutError("http://origin.example/secret")) == "Origin request timed out"


def test_unknown_errors_fall_back_to_type_name():
    assert describe_failure(ValueError("http://origin.example/secret")) == "ValueError"
