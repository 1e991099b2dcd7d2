"""Origin URL validation and the hostname allowlist."""

from collections.abc import Iterable
from dataclasses import dataclass

from yarl import URL

from .config import Settings
from .errors import Err, FailureKind, Ok, Result

ALLOWED_PREFIXES = ("http://", "https://")


@dataclass(frozen=True)
class AllowlistPolicy:
    """Ordered hostname substrings; an empty policy allows every host."""

    entries: tuple[str, ...] = ()

    @classmethod
    def of(cls, entries: Iterable[str]) -> "AllowlistPolicy":
        return cls(tuple(entry for entry in entries if entry))

    @classmethod
    def from_settings(cls, settings: Settings) -> "AllowlistPolicy":
        return cls.of(settings.allowed_domains)

    def allows(self, hostname: str) -> bool:
        """
        Substring match: ``cdn.example.com.evil.org`` passes entry ``example.com``.

        The loose match is kept on purpose; some deployments rely on it as a
        subdomain wildcard.
        """
        if not self.entries:
            return True
        return any(entry in hostname for entry in self.entries)


def validate_origin_url(candidate: str, policy: AllowlistPolicy) -> Result[URL]:
    """Check scheme, parseability and allowlist for a decoded token."""
    if not candidate.startswith(ALLOWED_PREFIXES):
        return Err(FailureKind.INVALID_URL)

    try:
        # ASCII URLs go upstream exactly as decoded; only non-ASCII ones need quoting
        url = URL(candidate, encoded=True) if candidate.isascii() else URL(candidate)
        hostname = url.host
    except (ValueError, TypeError, UnicodeError):
        return Err(FailureKind.INVALID_URL)

    if not hostname:
        return Err(FailureKind.INVALID_URL)

    if not policy.allows(hostname.lower()):
        return Err(FailureKind.UNAUTHORIZED_DOMAIN)

    return Ok(url)
