"""Built-in template functions.

Every function here is pure and registers itself with the template function
registry under the name templates use to call it. String helpers reject
non-string arguments with a ``TemplateExecutionError`` instead of coercing
them, so a template that passes the wrong field fails loudly.
"""

import re
from collections.abc import Mapping, Sequence

from .errors import IndexOutOfRangeError, TemplateExecutionError
from .registry import template_function

# Block-level markdown, applied line by line (MULTILINE).
_FENCE_RE = re.compile(r"^[ \t]*(?:```|~~~).*\n?", re.MULTILINE)
_REFERENCE_DEF_RE = re.compile(r"^[ ]{0,3}\[[^\]]+\]:[ \t]+\S.*\n?", re.MULTILINE)
_RULE_RE = re.compile(r"^[ ]{0,3}([-*_=])(?:[ \t]*\1){2,}[ \t]*$\n?", re.MULTILINE)
_HEADING_RE = re.compile(r"^[ ]{0,3}#{1,6}[ \t]+(.*?)(?:[ \t]+#+)?[ \t]*$", re.MULTILINE)
_BLOCKQUOTE_RE = re.compile(r"^[ ]{0,3}(?:>[ \t]?)+", re.MULTILINE)
_LIST_MARKER_RE = re.compile(r"^([ \t]*)(?:[-*+]|\d+[.)])[ \t]+", re.MULTILINE)

# Inline markdown.
_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_REFERENCE_LINK_RE = re.compile(r"\[([^\]]+)\]\[[^\]]*\]")
_AUTOLINK_RE = re.compile(r"<((?:https?|ftp|mailto):[^>\s]+)>")
_HTML_TAG_RE = re.compile(r"</?[A-Za-z][^>\n]*>")
_CODE_SPAN_RE = re.compile(r"(`+)(.+?)\1", re.DOTALL)
_STRONG_RE = re.compile(r"(\*\*|__)(?=\S)(.+?)(?<=\S)\1", re.DOTALL)
_STAR_EMPHASIS_RE = re.compile(r"(?<![\w*])\*(?=\S)(.+?)(?<=\S)\*(?!\*)", re.DOTALL)
_UNDERSCORE_EMPHASIS_RE = re.compile(r"(?<![\w_])_(?=\S)(.+?)(?<=\S)_(?![\w_])", re.DOTALL)
_STRIKETHROUGH_RE = re.compile(r"~~(?=\S)(.+?)(?<=\S)~~", re.DOTALL)
_ESCAPE_RE = re.compile(r"\\([\\`*_{}\[\]()#+\-.!>~|])")
# Escaped characters are parked behind private-use placeholders during the
# inline passes.
_PLACEHOLDER_RE = re.compile("\ue000(\\d+)\ue001")

# A word starts with a letter or digit and runs through letters, digits and
# underscores, optionally joined by apostrophes.
_WORD_RE = re.compile(r"[^\W_]\w*(?:['’]\w+)*")


def _require_str(fn_name: str, value) -> str:
    if not isinstance(value, str):
        raise TemplateExecutionError(
            f"error calling {fn_name}: expected string; got {type(value).__name__}")
    return value


@template_function("plainmarkdown")
def plainmarkdown(s: str) -> str:
    """Strip markdown formatting, keeping only the readable text.

    Links and images collapse to their text, emphasis and code markers are
    dropped, headings/quotes/list bullets lose their prefixes and rules and
    code fences disappear entirely.

    Example:
        >>> plainmarkdown("See the **[docs](https://example.com)**.")
        'See the docs.'
    """
    text = _require_str("plainmarkdown", s)

    text = _FENCE_RE.sub("", text)
    text = _REFERENCE_DEF_RE.sub("", text)
    text = _RULE_RE.sub("", text)
    text = _HEADING_RE.sub(r"\1", text)
    text = _BLOCKQUOTE_RE.sub("", text)
    text = _LIST_MARKER_RE.sub(r"\1", text)

    escaped = []

    def _park(match):
        escaped.append(match.group(1))
        return f"\ue000{len(escaped) - 1}\ue001"

    text = _ESCAPE_RE.sub(_park, text)
    text = _IMAGE_RE.sub(r"\1", text)
    text = _LINK_RE.sub(r"\1", text)
    text = _REFERENCE_LINK_RE.sub(r"\1", text)
    text = _AUTOLINK_RE.sub(r"\1", text)
    text = _HTML_TAG_RE.sub("", text)
    text = _CODE_SPAN_RE.sub(r"\2", text)
    text = _STRONG_RE.sub(r"\2", text)
    text = _STAR_EMPHASIS_RE.sub(r"\1", text)
    text = _UNDERSCORE_EMPHASIS_RE.sub(r"\1", text)
    text = _STRIKETHROUGH_RE.sub(r"\1", text)
    text = _PLACEHOLDER_RE.sub(lambda m: escaped[int(m.group(1))], text)

    return text.strip()


@template_function("split")
def split(s: str, sep: str) -> list[str]:
    """Split *s* on every occurrence of *sep*.

    An empty separator splits the string into single characters.
    """
    text = _require_str("split", s)
    separator = _require_str("split", sep)
    if not separator:
        return list(text)
    return text.split(separator)


@template_function("index")
def index(item, *indices):
    """Walk *item* by each index in turn, e.g. ``index $x 1 2`` is ``x[1][2]``.

    Sequences take non-negative integer positions and raise
    ``IndexOutOfRangeError`` outside their bounds. Mappings take keys and
    yield ``None`` for keys they do not hold.
    """
    current = item
    for position in indices:
        if current is None:
            raise TemplateExecutionError("error calling index: index of nil value")
        if isinstance(current, Mapping):
            current = current.get(position)
        elif isinstance(current, Sequence):
            if isinstance(position, bool) or not isinstance(position, int):
                raise TemplateExecutionError(
                    f"error calling index: cannot index {type(current).__name__} "
                    f"with {type(position).__name__}")
            if position < 0 or position >= len(current):
                raise IndexOutOfRangeError(position, len(current))
            current = current[position]
        else:
            raise TemplateExecutionError(
                f"error calling index: can't index item of type {type(current).__name__}")
    return current


@template_function("trimspace")
def trimspace(s: str) -> str:
    return _require_str("trimspace", s).strip()


@template_function("upper")
def upper(s: str) -> str:
    return _require_str("upper", s).upper()


@template_function("lower")
def lower(s: str) -> str:
    return _require_str("lower", s).lower()


@template_function("title")
def title(s: str) -> str:
    """Capitalize the first letter of each word and lower-case the rest.

    Whitespace and punctuation between words are kept as they are. An
    apostrophe or underscore does not start a new word, so "don't" becomes
    "Don't" and "ip_address" becomes "Ip_address".
    """
    text = _require_str("title", s)
    return _WORD_RE.sub(lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), text)


@template_function("prefixlines")
def prefixlines(prefix: str, s: str) -> str:
    """Prepend *prefix* to every line of *s*, blank lines included."""
    head = _require_str("prefixlines", prefix)
    text = _require_str("prefixlines", s)
    return "\n".join(head + line for line in text.split("\n"))


@template_function("len")
def length(item) -> int:
    if isinstance(item, (str, Sequence, Mapping)):
        return len(item)
    raise TemplateExecutionError(
        f"error calling len: len of type {type(item).__name__}")


@template_function("join")
def join(items, sep: str) -> str:
    separator = _require_str("join", sep)
    if isinstance(items, str) or not isinstance(items, Sequence):
        raise TemplateExecutionError(
            f"error calling join: expected list; got {type(items).__name__}")
    return separator.join(_require_str("join", item) for item in items)
