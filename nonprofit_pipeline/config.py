"""
Central configuration.

Everything is read from environment variables. Entry points call
``load_dotenv()`` first so a local ``.env`` works the same way.

Database: DoltDB / MySQL protocol.
  - DOLT_HOST (default: 127.0.0.1)
  - DOLT_PORT (default: 3306)
  - DOLT_USER (default: root)
  - DOLT_PASSWORD (default: empty)
  - DOLT_DATABASE (default: nonprofits)

Language model:
  - NONPROFIT_LLM_MODEL (optional; pins one model and disables fallback,
    otherwise each task uses its own model chain)
  - OPENAI_API_KEY / GEMINI_API_KEY / ANTHROPIC_API_KEY

Fetching:
  - NONPROFIT_PROFILE_URL_TEMPLATE (must contain ``{ein_digits}``)
  - NONPROFIT_HTTP_TIMEOUT (seconds, default: 20)
  - NONPROFIT_USER_AGENT
"""

import os
from typing import Dict, Optional

import httpx

# ProPublica Nonprofit Explorer organization page, keyed by 9-digit EIN
DEFAULT_PROFILE_URL_TEMPLATE = "https://projects.propublica.org/nonprofits/organizations/{ein_digits}"

DEFAULT_HTTP_TIMEOUT = 20.0

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def get_database_config() -> Dict:
    """Connection settings for the organization store."""
    return {
        "host": os.environ.get("DOLT_HOST", "127.0.0.1"),
        "port": int(os.environ.get("DOLT_PORT", "3306")),
        "user": os.environ.get("DOLT_USER", "root"),
        "password": os.environ.get("DOLT_PASSWORD", ""),
        "database": os.environ.get("DOLT_DATABASE", "nonprofits"),
    }


def get_llm_model() -> Optional[str]:
    """Explicitly configured model, or None to use the task model chains."""
    return os.environ.get("NONPROFIT_LLM_MODEL") or None


def get_api_keys() -> Dict[str, str]:
    """Provider -> API key, only for keys that are set."""
    keys = {
        "openai": os.environ.get("OPENAI_API_KEY"),
        "google": os.environ.get("GEMINI_API_KEY"),
        "anthropic": os.environ.get("ANTHROPIC_API_KEY"),
    }
    return {provider: key for provider, key in keys.items() if key}


def get_profile_url_template() -> str:
    """URL template for an organization's profile page."""
    template = os.environ.get("NONPROFIT_PROFILE_URL_TEMPLATE", DEFAULT_PROFILE_URL_TEMPLATE)
    if "{ein_digits}" not in template:
        raise ValueError(f"NONPROFIT_PROFILE_URL_TEMPLATE must contain '{{ein_digits}}': {template}")
    return template


def get_http_timeout() -> float:
    """Transport timeout in seconds for page fetches."""
    return float(os.environ.get("NONPROFIT_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT))


def get_http_client() -> httpx.AsyncClient:
    """
    Build the shared async HTTP client.

    The caller owns its lifecycle (use it as an async context manager).
    """
    return httpx.AsyncClient(
        headers={
            "User-Agent": os.environ.get("NONPROFIT_USER_AGENT", DEFAULT_USER_AGENT),
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        },
        follow_redirects=True,
        timeout=httpx.Timeout(get_http_timeout(), connect=10.0),
    )
