"""Template function registry.

Provides:
  - template_function: a decorator that collects plain functions into the
    module-level registry under a template-facing name.
  - functions_for: builds the read-only name -> function mapping used by one
    render call, with caller-supplied functions layered over the built-ins.

The built-in helpers in ``functions.py`` register themselves at import time.
Nothing mutates the registry once those imports have run.
"""

from types import MappingProxyType
from typing import Callable, Mapping, Optional

# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

# Module-level dict that the decorator writes to.
_function_registry: dict[str, Callable] = {}


def template_function(name: str = None):
    """Register a function so templates can call it by name.

    Args:
        name: Name used inside directives. Defaults to the function's
            ``__name__``.

    Returns:
        The original function, unmodified.
    """
    def decorator(fn):
        _function_registry[name or fn.__name__] = fn
        return fn
    return decorator


def builtin_functions() -> Mapping[str, Callable]:
    """Return a read-only view of every registered function."""
    return MappingProxyType(_function_registry)


def functions_for(extra: Optional[Mapping[str, Callable]] = None) -> Mapping[str, Callable]:
    """Build the function mapping for a single render call.

    Entries in *extra* win over built-ins with the same name. The result is
    a fresh read-only mapping, so neither the registry nor *extra* is
    touched by whoever uses it.

    Args:
        extra: Additional functions supplied by the caller.

    Returns:
        A read-only mapping of function name to callable.

    Raises:
        TypeError: If an entry in *extra* is not callable.
    """
    if not extra:
        return builtin_functions()

    merged = dict(_function_registry)
    for fn_name, fn in extra.items():
        if not callable(fn):
            raise TypeError(f"template function {fn_name!r} is not callable")
        merged[fn_name] = fn
    return MappingProxyType(merged)
