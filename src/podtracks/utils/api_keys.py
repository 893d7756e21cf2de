"""Directory credential validation.

Catches configuration mistakes (missing, quoted, pasted with a newline)
before a batch run starts, instead of discovering them as a 401 on the
first directory call.
"""

import re

from podtracks.utils.errors import AuthError

API_KEY_ENV = "PODCAST_INDEX_API_KEY"
API_SECRET_ENV = "PODCAST_INDEX_API_SECRET"

_TOKEN_RE = re.compile(r"^[A-Za-z0-9$#^_\-]+$")


class APIKeyError(AuthError):
    """Raised when a directory credential is invalid or missing."""

    pass


def validate_credential(value: str | None, name: str, min_length: int) -> str:
    """Validate a directory credential and return it stripped.

    Args:
        value: The credential to validate (may be None)
        name: Environment variable name (for error messages)
        min_length: Minimum plausible length

    Returns:
        Validated and stripped credential

    Raises:
        APIKeyError: If the credential is missing, empty, or malformed
    """
    if value is None or not value.strip():
        raise APIKeyError(
            f"Directory credential is required.\n"
            f"Set the {name} environment variable or run "
            f"'podtracks config set directory.{_field_for(name)} <value>'."
        )

    stripped = value.strip()
    if (stripped.startswith('"') and stripped.endswith('"')) or (
        stripped.startswith("'") and stripped.endswith("'")
    ):
        raise APIKeyError(f"{name} should not be quoted.")

    if any(char in value for char in ["\n", "\r", "\0", "\t"]):
        raise APIKeyError(f"{name} contains newlines or control characters.")

    if len(stripped) < min_length:
        raise APIKeyError(
            f"{name} appears invalid (too short): expected at least "
            f"{min_length} characters, got {len(stripped)}."
        )

    if not _TOKEN_RE.match(stripped):
        raise APIKeyError(f"{name} contains unexpected characters.")

    return stripped


def validate_directory_credentials(api_key: str | None, api_secret: str | None) -> tuple[str, str]:
    """Validate the directory key/secret pair.

    Returns:
        (api_key, api_secret), stripped

    Raises:
        APIKeyError: If either credential is unusable
    """
    key = validate_credential(api_key, API_KEY_ENV, min_length=8)
    secret = validate_credential(api_secret, API_SECRET_ENV, min_length=16)
    return key, secret


def mask_secret(value: str | None) -> str:
    """Mask a credential for display, keeping the first four characters."""
    if not value:
        return "(not set)"
    if len(value) <= 4:
        return "****"
    return value[:4] + "*" * (len(value) - 4)


def _field_for(env_name: str) -> str:
    return "api_secret" if env_name == API_SECRET_ENV else "api_key"
