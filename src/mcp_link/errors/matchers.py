"""Error matchers for converting exceptions to LinkErrors."""

import asyncio
import json

import httpx
from websockets.exceptions import WebSocketException

from .errors import ErrorMatcher, MatchResult


class TimeoutErrorMatcher(ErrorMatcher):
    """Matches timeout errors."""

    def matches(self, error: Exception) -> bool:
        """Check if error is a timeout error.

        Args:
            error: Exception to check

        Returns:
            True for asyncio and httpx timeouts
        """
        return isinstance(error, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException))

    def extract(self, error: Exception) -> MatchResult:
        """Extract timeout error info.

        Args:
            error: Exception to extract from

        Returns:
            MatchResult with CONNECTION_TIMEOUT code
        """
        return MatchResult(
            code="CONNECTION_TIMEOUT",
            context={"timeout_seconds": "unknown", "detail": str(error) or None},
            retryable=True,
        )


class HTTPStatusErrorMatcher(ErrorMatcher):
    """Matches non-success HTTP responses raised by httpx."""

    def matches(self, error: Exception) -> bool:
        return isinstance(error, httpx.HTTPStatusError)

    def extract(self, error: Exception) -> MatchResult:
        assert isinstance(error, httpx.HTTPStatusError)
        status = error.response.status_code
        return MatchResult(
            code="CONNECTION_FAILED",
            context={"status_code": status, "detail": f"HTTP {status} from {error.request.url}"},
            retryable=status >= 500,
        )


class NetworkErrorMatcher(ErrorMatcher):
    """Matches network-level failures (refused, reset, DNS, socket closed)."""

    def matches(self, error: Exception) -> bool:
        return isinstance(error, (httpx.TransportError, WebSocketException, OSError))

    def extract(self, error: Exception) -> MatchResult:
        return MatchResult(
            code="CONNECTION_FAILED",
            context={"detail": str(error) or type(error).__name__},
            retryable=True,
        )


class MalformedMessageMatcher(ErrorMatcher):
    """Matches payloads that are not valid JSON."""

    def matches(self, error: Exception) -> bool:
        return isinstance(error, (json.JSONDecodeError, UnicodeDecodeError))

    def extract(self, error: Exception) -> MatchResult:
        return MatchResult(
            code="MESSAGE_MALFORMED",
            context={"detail": str(error)},
            retryable=False,
        )


class GenericErrorMatcher(ErrorMatcher):
    """Fallback matcher for any exception."""

    def matches(self, error: Exception) -> bool:
        """Always matches."""
        return True

    def extract(self, error: Exception) -> MatchResult:
        """Extract generic error info.

        Args:
            error: Exception to extract from

        Returns:
            MatchResult with INTERNAL_ERROR code
        """
        return MatchResult(
            code="INTERNAL_ERROR",
            context={"detail": str(error), "error_type": type(error).__name__},
            retryable=False,
        )


class ErrorMatcherChain:
    """Ordered chain of matchers. First match wins."""

    def __init__(self) -> None:
        """Initialize matcher chain with built-in matchers."""
        self.matchers: list[ErrorMatcher] = []
        self._load_builtin_matchers()

    def match(self, error: Exception) -> MatchResult:
        """Find first matching matcher and extract result.

        Args:
            error: Exception to match

        Returns:
            MatchResult from first matching matcher
        """
        for matcher in self.matchers:
            if matcher.matches(error):
                return matcher.extract(error)

        # Should never reach here due to GenericErrorMatcher
        return MatchResult(
            code="INTERNAL_ERROR",
            context={"detail": str(error), "error_type": type(error).__name__},
            retryable=False,
        )

    def _load_builtin_matchers(self) -> None:
        """Load built-in matchers in priority order."""
        # Order matters - timeouts are also transport errors in httpx
        self.matchers = [
            TimeoutErrorMatcher(),
            HTTPStatusErrorMatcher(),
            NetworkErrorMatcher(),
            MalformedMessageMatcher(),
            GenericErrorMatcher(),  # Fallback - must be last
        ]
