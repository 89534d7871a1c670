"""Exceptions raised by the docgen template renderer and metadata extractor.

Template errors carry the name of the template being rendered and, when it
is known, the 1-based line of the offending directive. Functions that fail
while a template renders do not know which template called them, so they
raise without a name and ``render_template`` fills it in on the way out.
"""

from typing import Optional


class DocgenError(Exception):
    """Base exception for everything raised by this package."""


class TemplateError(DocgenError):
    """Base exception for template rendering errors.

    Attributes:
        message: Human-readable error description without location.
        template_name: Name of the template being rendered, if known.
        line: 1-based line of the directive that failed, if known.
    """

    def __init__(self, message: str, template_name: Optional[str] = None, line: Optional[int] = None):
        self.message = message
        self.template_name = template_name
        self.line = line
        super().__init__(message)

    def __str__(self) -> str:
        if self.template_name is None:
            return self.message
        if self.line is None:
            return f"template: {self.template_name}: {self.message}"
        return f"template: {self.template_name}:{self.line}: {self.message}"

    def located(self, template_name: str, line: Optional[int] = None) -> "TemplateError":
        """Fill in the template name and line when they are still unset.

        Returns:
            The same exception instance, for use in a ``raise`` statement.
        """
        if self.template_name is None:
            self.template_name = template_name
        if self.line is None:
            self.line = line
        return self


class TemplateSyntaxError(TemplateError):
    """Raised when a directive cannot be parsed."""


class UndefinedReferenceError(TemplateError):
    """Raised when a directive names an unknown function, variable or field."""


class IndexOutOfRangeError(TemplateError):
    """Raised by ``index`` when a position falls outside the sequence."""

    def __init__(self, position: int, length: int):
        self.position = position
        self.length = length
        super().__init__(f"error calling index: index out of range: {position} (length {length})")


class TemplateExecutionError(TemplateError):
    """Raised when a template function fails for any other reason."""


class ExtractionError(DocgenError):
    """Raised when a text blob cannot be examined for metadata at all.

    Malformed or missing metadata is never an error; the extractor then
    reports no metadata. This is reserved for input that is not text.
    """
