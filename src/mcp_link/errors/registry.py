"""Error registry for creating errors from templates."""

from typing import Any

from .errors import ErrorCategory, ErrorTemplate, LinkError


class ErrorRegistry:
    """Registry of error templates. Creates errors from templates + context."""

    def __init__(self) -> None:
        """Initialize error registry with built-in templates."""
        self._templates: dict[str, ErrorTemplate] = {}
        self._load_builtin_templates()

    def get_template(self, code: str) -> ErrorTemplate | None:
        """Get template by error code.

        Args:
            code: Error code to look up

        Returns:
            ErrorTemplate if found, None otherwise
        """
        return self._templates.get(code)

    def register(self, template: ErrorTemplate) -> None:
        """Register or replace a template."""
        self._templates[template.code] = template

    def list_codes(self) -> list[str]:
        """List all registered error codes."""
        return list(self._templates.keys())

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        cause: LinkError | None = None,
    ) -> LinkError:
        """Create error instance from template + context.

        Args:
            code: Error code
            context: Context variables for template interpolation
            cause: Optional cause error

        Returns:
            LinkError instance

        Raises:
            ValueError: If error code not found
        """
        template = self.get_template(code)
        if not template:
            msg = f"Unknown error code: {code}"
            raise ValueError(msg)

        context = context or {}

        message = self._interpolate(template.message_template, context)
        detail = context.get("detail") or self._interpolate(template.detail_template, context)
        suggestion = self._interpolate(template.suggestion_template, context)

        if message is None:
            message = f"Error {code}"

        return LinkError(
            code=template.code,
            category=template.category,
            message=message,
            detail=detail,
            suggestion=suggestion,
            retryable=template.default_retryable,
            connection=context.get("connection"),
            status_code=context.get("status_code"),
            cause=cause,
        )

    def _interpolate(
        self,
        template: str | None,
        context: dict[str, Any],
    ) -> str | None:
        """Safe string interpolation.

        Args:
            template: Template string with {var} placeholders
            context: Context variables

        Returns:
            Interpolated string or None if template is None
        """
        if template is None:
            return None

        try:
            return template.format(**context)
        except KeyError:
            # Missing context variable - return template as-is
            return template

    def _load_builtin_templates(self) -> None:
        """Load hardcoded built-in templates."""
        # CONNECTION errors
        self._templates["CONNECTION_FAILED"] = ErrorTemplate(
            code="CONNECTION_FAILED",
            category=ErrorCategory.CONNECTION,
            message_template="Connection '{connection}' failed",
            detail_template="The event stream could not be opened or was lost",
            suggestion_template="Check that the server is running and the URL is reachable",
            default_retryable=True,
        )

        self._templates["CONNECTION_TIMEOUT"] = ErrorTemplate(
            code="CONNECTION_TIMEOUT",
            category=ErrorCategory.CONNECTION,
            message_template="Connection '{connection}' timed out",
            detail_template="Handshake did not complete within {timeout_seconds}s",
            suggestion_template="Check that the server announces its message endpoint",
            default_retryable=True,
        )

        self._templates["NOT_CONNECTED"] = ErrorTemplate(
            code="NOT_CONNECTED",
            category=ErrorCategory.CONNECTION,
            message_template="Connection '{connection}' is not ready",
            suggestion_template="Call connect() before sending requests",
            default_retryable=True,
        )

        # HANDSHAKE errors
        self._templates["HANDSHAKE_FAILED"] = ErrorTemplate(
            code="HANDSHAKE_FAILED",
            category=ErrorCategory.HANDSHAKE,
            message_template="{step} failed: {status_code} {body}",
            detail_template="The server rejected the MCP handshake",
            default_retryable=False,
        )

        self._templates["ENDPOINT_INVALID"] = ErrorTemplate(
            code="ENDPOINT_INVALID",
            category=ErrorCategory.HANDSHAKE,
            message_template="Invalid message endpoint: {endpoint!r}",
            detail_template="The endpoint event payload is not a usable http(s) URL",
            default_retryable=False,
        )

        # TRANSPORT errors
        self._templates["TRANSPORT_UNSUPPORTED"] = ErrorTemplate(
            code="TRANSPORT_UNSUPPORTED",
            category=ErrorCategory.TRANSPORT,
            message_template="Unsupported transport variant: {transport}",
            suggestion_template="Use 'sse' or 'websocket'",
            default_retryable=False,
        )

        self._templates["MESSAGE_MALFORMED"] = ErrorTemplate(
            code="MESSAGE_MALFORMED",
            category=ErrorCategory.TRANSPORT,
            message_template="Malformed message payload",
            default_retryable=False,
        )

        # REQUEST errors
        self._templates["REQUEST_FAILED"] = ErrorTemplate(
            code="REQUEST_FAILED",
            category=ErrorCategory.REQUEST,
            message_template="Request to '{connection}' failed",
            default_retryable=True,
        )

        self._templates["HANDLER_CONFLICT"] = ErrorTemplate(
            code="HANDLER_CONFLICT",
            category=ErrorCategory.REQUEST,
            message_template="Connection '{connection}' already has a message handler",
            detail_template="The message handler is fixed for the lifetime of a connection",
            suggestion_template="Create a new connection to use a different handler",
            default_retryable=False,
        )

        # CONFIG errors
        self._templates["CONFIG_INVALID"] = ErrorTemplate(
            code="CONFIG_INVALID",
            category=ErrorCategory.CONFIG,
            message_template="Invalid configuration",
            suggestion_template="Check the configuration file against the documented schema",
            default_retryable=False,
        )

        self._templates["CONNECTION_NOT_FOUND"] = ErrorTemplate(
            code="CONNECTION_NOT_FOUND",
            category=ErrorCategory.CONFIG,
            message_template="Connection '{connection}' is not configured",
            default_retryable=False,
        )

        # SYSTEM errors
        self._templates["INTERNAL_ERROR"] = ErrorTemplate(
            code="INTERNAL_ERROR",
            category=ErrorCategory.SYSTEM,
            message_template="Internal error ({error_type})",
            default_retryable=False,
        )
