"""Template rendering for generated provider documentation.

Templates use Go text/template style actions (see ``directives.py``) and are
rendered by Jinja2's immutable sandbox, so a template can read the data it is
given but never change it.
"""

import inspect
from collections.abc import Mapping
from typing import Any, Callable, Optional

from fastmcp.utilities.logging import get_logger
from jinja2 import StrictUndefined, TemplateSyntaxError as JinjaSyntaxError, UndefinedError
from jinja2.exceptions import SecurityError
from jinja2.sandbox import ImmutableSandboxedEnvironment

from . import functions as _builtins  # noqa: F401  registers the built-in helpers
from .directives import translate
from .errors import (
    TemplateError,
    TemplateExecutionError,
    TemplateSyntaxError,
    UndefinedReferenceError,
)
from .registry import functions_for

logger = get_logger(__name__)


def _finalize(value):
    """Print values the way the directive syntax expects."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(str(_finalize(item)) for item in value) + "]"
    return value


# Shared, read-only after creation.
_environment = ImmutableSandboxedEnvironment(
    undefined=StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
    finalize=_finalize,
)


def lookup_field(value: Any, name: str) -> Any:
    """Read field *name* from a render context value.

    Mappings are read by key and anything else by public attribute. Methods
    and names starting with an underscore are not fields.

    Raises:
        UndefinedReferenceError: If the field does not exist.
    """
    if isinstance(value, Mapping):
        if name in value:
            return value[name]
        raise UndefinedReferenceError(f"map has no entry for key {name!r}")
    if value is None:
        raise UndefinedReferenceError(f"nil data; no entry for key {name!r}")
    if name.startswith("_"):
        raise UndefinedReferenceError(f"{name} is an unexported field of type {type(value).__name__}")

    try:
        result = getattr(value, name)
    except AttributeError:
        raise UndefinedReferenceError(
            f"can't evaluate field {name} in type {type(value).__name__}") from None
    if inspect.isroutine(result):
        raise UndefinedReferenceError(f"{name} is a method of type {type(value).__name__}, not a field")
    return result


def _template_line(exc: BaseException) -> Optional[int]:
    # Jinja2 rewrites tracebacks so template frames carry template line numbers.
    line = None
    tb = exc.__traceback__
    while tb is not None:
        if tb.tb_frame.f_code.co_filename == "<template>":
            line = tb.tb_lineno
        tb = tb.tb_next
    return line


def render_template(template_name: str,
                    template_text: str,
                    data: Any,
                    functions: Optional[Mapping[str, Callable]] = None) -> str:
    """Render a template against a data value.

    Args:
        template_name: Name reported in error messages.
        template_text: Template text with ``{{ ... }}`` actions.
        data: The value ``.`` refers to; a mapping or any object with
            public attributes.
        functions: Extra functions to offer on top of the built-ins. A name
            that matches a built-in replaces it for this call only.

    Returns:
        The rendered text.

    Raises:
        TemplateSyntaxError: If an action cannot be parsed.
        UndefinedReferenceError: If a function, variable or field is unknown.
        IndexOutOfRangeError: If ``index`` is given a position out of range.
        TemplateExecutionError: If a function fails while rendering.

    Example:
        >>> render_template("greeting", "Hello {{ upper .Name }}!", {"Name": "netbox"})
        'Hello NETBOX!'
    """
    registry = functions_for(functions)
    logger.debug(f"Rendering template {template_name} ({len(template_text)} chars)")

    translation = translate(template_name, template_text, registry)
    try:
        template = _environment.from_string(translation.source)
    except JinjaSyntaxError as e:
        raise TemplateSyntaxError(e.message or str(e), template_name, e.lineno) from e

    try:
        return template.render(
            dot=data,
            fn=registry,
            field=lookup_field,
            lit=translation.literals,
        )
    except TemplateError as e:
        raise e.located(template_name, _template_line(e))
    except UndefinedError as e:
        raise UndefinedReferenceError(e.message or str(e), template_name, _template_line(e)) from e
    except SecurityError as e:
        raise TemplateExecutionError(str(e), template_name, _template_line(e)) from e
    except Exception as e:
        raise TemplateExecutionError(
            f"error calling function: {e}", template_name, _template_line(e)) from e
