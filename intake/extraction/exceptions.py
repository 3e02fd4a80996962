class ParserError(Exception):
    """Raised when document parsing fails."""


class ParserValidationError(ParserError):
    """Raised when the parser's structured output fails domain validation."""


class ParserNetworkError(ParserError):
    """Raised when the AI provider call fails due to network/infrastructure issues."""


class TextExtractionError(ParserError):
    """Raised when text cannot be read out of the stored document."""
