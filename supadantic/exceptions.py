"""
Custom exception hierarchy for supadantic.

Every error carries a human-readable message plus optional context and
recovery suggestions, so the CLI can print something actionable.
"""

from typing import Dict, Any, Optional, List


class SupadanticError(Exception):
    """
    Base exception for all supadantic errors.

    Provides rich context and error recovery guidance.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        error_code: Optional[str] = None
    ):
        """
        Initialize the exception with context and recovery suggestions.

        Args:
            message: Human-readable error message
            context: Additional context about where/why the error occurred
            suggestions: List of potential solutions or next steps
            error_code: Unique error code for programmatic handling
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.suggestions = suggestions or []
        self.error_code = error_code

    def __str__(self) -> str:
        """Return formatted error message with context."""
        lines = [self.message]

        if self.error_code:
            lines.append(f"Error Code: {self.error_code}")

        if self.context:
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        if self.suggestions:
            lines.append("Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"  • {suggestion}")

        return "\n".join(lines)


class ConfigurationError(SupadanticError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_file: str = None, issues: List[str] = None, **kwargs):
        context = kwargs.get('context', {})
        if config_file:
            context['config_file'] = config_file
        if issues:
            context['issues'] = "; ".join(issues)

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check the supadantic.yaml syntax",
                "Set SUPABASE_DATA_API_URL and SUPABASE_SECRET_KEY in .env or the environment",
                "Use either 'include' or 'exclude', not both",
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="CONFIG_ERROR"
        )
        self.issues = issues or []


class SchemaFetchError(SupadanticError):
    """Raised when the schema could not be retrieved from the Data API."""

    def __init__(self, message: str, status_code: int = None, response_body: str = None, **kwargs):
        context = kwargs.get('context', {})
        if status_code is not None:
            context['status_code'] = status_code
        if response_body:
            # Long error pages are not useful in a terminal
            context['response'] = response_body if len(response_body) <= 500 else f"{response_body[:500]}..."

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Verify the Data API URL (https://<project>.supabase.co)",
                "Verify the secret key is the service_role key, not the anon key",
                "Check that the project is active and reachable",
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="FETCH_ERROR"
        )
        self.status_code = status_code
        self.response_body = response_body


class NoCacheAvailableError(SupadanticError):
    """Raised when a run needs the cached schema snapshot but none exists."""

    def __init__(self, message: str, cache_dir: str = None, **kwargs):
        context = kwargs.get('context', {})
        if cache_dir:
            context['cache_dir'] = cache_dir

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Run once with 'fetch: always' to populate the cache",
                "Check the 'cache_dir' setting",
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="NO_CACHE"
        )


class CodeGenerationError(SupadanticError):
    """Raised when a model module cannot be rendered."""

    def __init__(self, message: str, table: str = None, **kwargs):
        context = kwargs.get('context', {})
        if table:
            context['table'] = table

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check the table schema for unsupported patterns",
                "Check for naming conflicts or reserved words",
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="CODE_GENERATION_ERROR"
        )
