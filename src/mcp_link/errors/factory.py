"""Error factory for creating LinkErrors from any exception type."""

from typing import Any

from .errors import LinkError
from .matchers import ErrorMatcherChain
from .registry import ErrorRegistry


class ErrorFactory:
    """Creates LinkErrors from any exception type."""

    def __init__(
        self,
        registry: ErrorRegistry | None = None,
        matcher_chain: ErrorMatcherChain | None = None,
    ):
        """Initialize error factory.

        Args:
            registry: Error registry (defaults to new ErrorRegistry())
            matcher_chain: Matcher chain (defaults to new ErrorMatcherChain())
        """
        self.registry = registry or ErrorRegistry()
        self.matcher_chain = matcher_chain or ErrorMatcherChain()

    def from_exception(self, error: Exception, connection: str | None = None) -> LinkError:
        """Convert any exception to LinkError.

        Args:
            error: Exception to convert
            connection: Optional connection name

        Returns:
            LinkError instance
        """
        if isinstance(error, LinkError):
            return error.with_context(connection=connection)

        match_result = self.matcher_chain.match(error)

        context = match_result.context.copy()
        if connection:
            context["connection"] = connection

        link_error = self.registry.create(code=match_result.code, context=context)

        if match_result.retryable is not None:
            link_error.retryable = match_result.retryable

        return link_error

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> LinkError:
        """Create LinkError directly from code.

        Args:
            code: Error code
            context: Context variables for template interpolation
            **kwargs: Additional context variables

        Returns:
            LinkError instance
        """
        merged_context = dict(context or {})
        merged_context.update(kwargs)

        return self.registry.create(code=code, context=merged_context)


# Convenience singleton
_default_factory: ErrorFactory | None = None


def get_error_factory() -> ErrorFactory:
    """Get default error factory singleton."""
    global _default_factory  # noqa: PLW0603
    if _default_factory is None:
        _default_factory = ErrorFactory()
    return _default_factory


def create_error(code: str, **context: Any) -> LinkError:
    """Convenience function to create error.

    Args:
        code: Error code
        **context: Context variables for template interpolation

    Returns:
        LinkError instance
    """
    return get_error_factory().create(code, context)
