"""Metadata extraction from resource descriptions.

A description may open with a metadata section that the documentation
generator reads before writing the page, e.g. with the default delimiter::

    :meta:subcategory:IP Address Management (IPAM):Manages an aggregate.

gives ``{"subcategory": "IP Address Management (IPAM)"}`` and the description
``"Manages an aggregate."``.

Tokens are consumed in key/value pairs. A token is only taken as a key when
it looks like an identifier (``\\w[\\w.-]*``) and is followed by a delimiter.
Its value must be closed by another delimiter, stay on one line and not start
with whitespace, so a description such as ``Warning: do not use this.`` is
left alone. The only value allowed to run to the end of the text is that of
a lone pair (``:meta:subcategory:IPAM``). The first token that breaks these
rules starts the description, which is returned verbatim. Extraction never
fails on the shape of the text: anything that does not parse as metadata is
description.

The ``meta`` marker is fixed; only the delimiter can be configured.
"""

import re

from fastmcp.utilities.logging import get_logger
from pydantic import BaseModel, Field

from .config import load_config
from .errors import ExtractionError

logger = get_logger(__name__)

_MARKER = "meta"
_KEY_RE = re.compile(r"\w[\w.-]*")


class ExtractedDocument(BaseModel):
    """A description split into its metadata and remaining text."""

    metadata: dict[str, str] = Field(default_factory=dict)
    description: str = ""


def parse_document(full: str, delimiter: str = None) -> ExtractedDocument:
    """Split *full* into metadata pairs and the description that follows.

    Args:
        full: The complete description text.
        delimiter: Literal string separating metadata tokens. Defaults to the
            configured ``metadata_delimiter``. An empty delimiter never
            matches, so the text is all description.

    Returns:
        The metadata mapping (empty when there is no metadata section) and
        the remaining description.

    Raises:
        ExtractionError: If *full* or *delimiter* is not a string.
    """
    if delimiter is None:
        delimiter = load_config().metadata_delimiter
    if not isinstance(full, str):
        raise ExtractionError(f"expected description text, got {type(full).__name__}")
    if not isinstance(delimiter, str):
        raise ExtractionError(f"expected delimiter string, got {type(delimiter).__name__}")

    prefix = f"{delimiter}{_MARKER}{delimiter}"
    if not delimiter or not full.startswith(prefix):
        return ExtractedDocument(metadata={}, description=full)

    metadata = {}
    rest = full[len(prefix):]
    while rest:
        key, found, after_key = rest.partition(delimiter)
        if not found or not _KEY_RE.fullmatch(key):
            break
        value, closed, remainder = after_key.partition(delimiter)
        if "\n" in value or value[:1].isspace():
            break
        if not closed and metadata:
            break
        metadata[key] = value
        rest = remainder

    logger.debug(f"Extracted {len(metadata)} metadata entries: {', '.join(metadata)}")
    return ExtractedDocument(metadata=metadata, description=rest)


def extract_metadata(full: str, delimiter: str = None) -> dict[str, str]:
    """Return the metadata pairs at the start of *full*, or ``{}``."""
    return parse_document(full, delimiter).metadata


def extract_description(full: str, delimiter: str = None) -> str:
    """Return *full* without its metadata section."""
    return parse_document(full, delimiter).description
