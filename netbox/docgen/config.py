"""Docgen configuration.

Declarative option definitions bound to environment variables. Each option
is a dict with its name, default, optional type and env var binding; the
resolved values are validated into a ``DocgenConfig`` model.

Env var naming follows the DOCGEN_ prefix convention.
"""

import os

from pydantic import BaseModel, Field


# Option definitions as a list of dicts.
# Each dict contains:
#   - name: field name on DocgenConfig
#   - env: primary env var name (or list for fallback chain)
#   - default: value used when no env var is set
#   - type: optional cast applied to env values
OPTIONS = [
    {
        "name": "metadata_delimiter",
        "default": ":",
        "env": ["DOCGEN_METADATA_DELIMITER", "METADATA_DELIMITER"],
    },
]


class DocgenConfig(BaseModel):
    """Resolved docgen settings."""

    metadata_delimiter: str = Field(
        default=":",
        min_length=1,
        description="Literal string separating metadata tokens.",
    )


def _resolve_env_default(option: dict):
    """Resolve an option's value from environment variables.

    Checks env vars in order (supports fallback chains) and returns the
    first non-empty value, cast to the option's type if one is declared.
    Falls back to the declared default.

    Args:
        option: An option definition dict.

    Returns:
        The resolved value.
    """
    env = option.get("env")
    if not env:
        return option.get("default")

    # Normalize to list for fallback chain
    env_vars = [env] if isinstance(env, str) else env

    for var in env_vars:
        val = os.getenv(var)
        if val:
            cast = option.get("type")
            return cast(val) if cast else val

    return option.get("default")


def load_config() -> DocgenConfig:
    """Build a DocgenConfig from the current environment.

    The environment is read on every call, so changes made after import
    are picked up. The extractor only calls this when no delimiter is
    passed explicitly.

    Returns:
        A validated DocgenConfig instance.
    """
    return DocgenConfig(**{
        option["name"]: _resolve_env_default(option)
        for option in OPTIONS
    })
