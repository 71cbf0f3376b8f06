"""Bootstrap the Search Console credential file from environment variables.

On Render (and similar PaaS), credential JSON files can't be committed
to git.  Instead, paste the JSON content into an env var and this module
writes it to GSC_CREDENTIALS_PATH at startup.

Checked in order:
    GSC_CREDENTIALS_JSON    explicit JSON var
    GSC_CREDENTIALS_PATH    if the value looks like JSON rather than a path
    GOOGLE_SA_JSON          shared service account
"""
import json
import os
from typing import Any, Dict, Optional

from sitepulse.config import Settings
from sitepulse.utils.logger import log

_CREDENTIAL_ENV_VARS = ("GSC_CREDENTIALS_JSON", "GSC_CREDENTIALS_PATH", "GOOGLE_SA_JSON")


def _is_json(value: str) -> bool:
    """Check if a string looks like JSON content (not a file path)."""
    stripped = value.strip()
    return stripped.startswith("{") and stripped.endswith("}")


def bootstrap_credentials(settings: Settings) -> Optional[str]:
    """Write the credential file from env vars if it doesn't exist.

    Returns the env var the file was written from, or None.
    """
    file_path = settings.gsc_credentials_path
    if _is_json(file_path):
        # GSC_CREDENTIALS_PATH itself holds JSON; it is not a usable path
        file_path = "./credentials/gsc-credentials.json"
        settings.gsc_credentials_path = file_path

    if os.path.exists(file_path):
        log.info(f"Credential file {file_path} already exists, skipping")
        return None

    for var in _CREDENTIAL_ENV_VARS:
        value = os.environ.get(var, "")
        if not value or not _is_json(value):
            continue
        try:
            json.loads(value)  # Validate it's real JSON
            os.makedirs(os.path.dirname(file_path) or ".", exist_ok=True)
            with open(file_path, "w") as f:
                f.write(value)
            log.info(f"Wrote {file_path} from {var}")
            return var
        except json.JSONDecodeError:
            log.error(f"{var} is not valid JSON, skipping")
        except OSError as e:
            log.error(f"Failed to write {file_path} from {var}: {e}")
    return None


def service_account_info(settings: Settings) -> Optional[Dict[str, Any]]:
    """Service account info built from GOOGLE_SERVICE_ACCOUNT_EMAIL / GOOGLE_PRIVATE_KEY.

    Private keys pasted into env vars usually carry literal \\n sequences.
    """
    email = settings.google_service_account_email
    private_key = settings.google_private_key
    if not email or not private_key:
        return None
    return {
        "type": "service_account",
        "client_email": email,
        "private_key": private_key.replace("\\n", "\n"),
        "token_uri": "https://oauth2.googleapis.com/token",
    }
