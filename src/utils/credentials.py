"""Google credential bootstrap backed by the system keyring.

Stores the path of the service account JSON used by the storage client and
the recognize tool, and exports it as GOOGLE_APPLICATION_CREDENTIALS before
a suite runs.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import keyring
import keyring.errors

logger = logging.getLogger(__name__)

# Service name for credential storage
SERVICE_NAME = "recognize-harness"

GOOGLE_CREDENTIALS_KEY = "GOOGLE_APPLICATION_CREDENTIALS"


def _normalize_path(path: str) -> str:
    """Strip whitespace/quotes and expand ~ and environment variables."""
    if not path:
        return ""
    cleaned = path.strip().strip('"').strip("'").strip()
    cleaned = os.path.expandvars(cleaned)
    return os.path.expanduser(cleaned)


def save_google_credentials_path(path: str) -> str:
    """Save Google service account JSON path to the keyring.

    Args:
        path: Path to the service account JSON file

    Returns:
        The normalized path that was saved

    Raises:
        ValueError: If path is empty
        FileNotFoundError: If the file doesn't exist at the normalized path
        RuntimeError: If keyring operation fails
    """
    normalized = _normalize_path(path)
    if not normalized:
        raise ValueError("Google credentials path cannot be empty")
    if not os.path.exists(normalized):
        raise FileNotFoundError(
            f"Google credentials file not found at: {normalized}\n"
            f"(Original input: {path})"
        )

    try:
        keyring.set_password(SERVICE_NAME, GOOGLE_CREDENTIALS_KEY, normalized)
    except keyring.errors.KeyringError as e:
        logger.error(f"Failed to save credential {GOOGLE_CREDENTIALS_KEY}: {e}")
        raise RuntimeError(f"Keyring error for {GOOGLE_CREDENTIALS_KEY}: {e}") from e
    logger.info(f"Saved credential: {GOOGLE_CREDENTIALS_KEY}")
    return normalized


def get_google_credentials_path() -> Optional[str]:
    """Return the stored credentials path, or None if not found."""
    try:
        return keyring.get_password(SERVICE_NAME, GOOGLE_CREDENTIALS_KEY)
    except keyring.errors.KeyringError as e:
        logger.error(f"Failed to get credential {GOOGLE_CREDENTIALS_KEY}: {e}")
        return None


def delete_google_credentials_path() -> bool:
    try:
        keyring.delete_password(SERVICE_NAME, GOOGLE_CREDENTIALS_KEY)
    except keyring.errors.PasswordDeleteError:
        # Credential doesn't exist, that's fine
        return True
    except keyring.errors.KeyringError as e:
        logger.error(f"Failed to delete credential {GOOGLE_CREDENTIALS_KEY}: {e}")
        return False
    logger.info(f"Deleted credential: {GOOGLE_CREDENTIALS_KEY}")
    return True


def load_credentials_to_env() -> bool:
    """Export the stored credentials path unless the environment already has one.

    Returns:
        True if GOOGLE_APPLICATION_CREDENTIALS is set afterwards
    """
    if os.getenv(GOOGLE_CREDENTIALS_KEY):
        return True
    value = get_google_credentials_path()
    if not value:
        return False
    os.environ[GOOGLE_CREDENTIALS_KEY] = value
    logger.info(f"Loaded credential to env: {GOOGLE_CREDENTIALS_KEY}")
    return True
