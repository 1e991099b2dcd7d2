import pytest

from vidcloak.errors import Err, FailureKind, Ok
from vidcloak.tokens import decode_token, encode_token


def test_encode_token_matches_published_example():
    assert encode_token("https://example.com/v.mp4") == "aHR0cHM6Ly9leGFtcGxlLmNvbS92Lm1wNA=="


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/v.mp4",
        "http://cdn.example.org/path/with%20space/video.m3u8?sig=abc&exp=1",
        "https://例え.jp/動画.mp4",
    ],
)
def test_decode_reverses_encode(url):
    assert decode_token(encode_token(url)) == Ok(url)


def test_missing_padding_is_accepted():
    token = encode_token("https://example.com/v.mp4").rstrip("=")
    assert decode_token(token) == Ok("https://example.com/v.mp4")


def test_ascii_whitespace_is_ignored():
    token = encode_token("https://example.com/v.mp4")
    assert decode_token(f" {token[:8]}\n{token[8:]}\t") == Ok("https://example.com/v.mp4")


@pytest.mark.parametrize("token", [None, ""])
def test_absent_token_is_missing(token):
    assert decode_token(token) == Err(FailureKind.MISSING_TOKEN)


@pytest.mark.parametrize(
    "token",
    [
        "not base64!",
        "abcde",  # length remainder of 1 can never be valid
        "ab=c",
        "aGVsbG8-",  # url-safe alphabet is not accepted
        "//4=",  # decodes to bytes that are not UTF-8
    ],
)
def test_malformed_token_is_invalid(token):
    assert decode_token(token) == Err(FailureKind.INVALID_TOKEN)


def test_decoded_value_is_not_validated_as_url():
    assert decode_token(encode_token("not a url")) == Ok("not a url")
