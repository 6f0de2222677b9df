"""Credential provider backed by an exported LinkedIn cookie header.

The CSRF token LinkedIn expects is the JSESSIONID cookie value with its
surrounding quotes removed; the session itself rides on the full cookie
header (li_at, JSESSIONID, ...).
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from contactsweep.domain.errors import NotAuthenticatedError
from contactsweep.domain.interfaces.credentials import CredentialProvider

logger = logging.getLogger(__name__)

CSRF_COOKIE_NAME = "JSESSIONID"
LINKEDIN_DOMAIN = "linkedin.com"


def parse_cookie_header(header: str) -> Dict[str, str]:
    """Splits a `name=value; name2=value2` header into a dict. Later duplicates win."""
    cookies: Dict[str, str] = {}
    for part in header.split(";"):
        name, sep, value = part.strip().partition("=")
        if sep and name:
            cookies[name.strip()] = value.strip()
    return cookies


class CookieCredentialProvider(CredentialProvider):
    """Derives credentials from a raw `Cookie` header string."""

    def __init__(self, cookie_header: Optional[str] = None):
        self._cookies = parse_cookie_header(cookie_header or "")
        logger.debug(f"CookieCredentialProvider initialized with {len(self._cookies)} cookie(s).")

    @classmethod
    def from_file(cls, path: Path) -> "CookieCredentialProvider":
        """Loads cookies from a file.

        Accepts either a raw header line (as copied from DevTools) or a JSON
        list of `{"name", "value", "domain"}` objects as written by common
        cookie-export browser extensions.
        """
        text = Path(path).read_text(encoding="utf-8").strip()
        if text.startswith("["):
            try:
                entries = json.loads(text)
            except ValueError as e:
                raise NotAuthenticatedError(f"Cookie file {path} is not valid JSON: {e}") from e
            pairs = []
            for entry in entries:
                if not isinstance(entry, dict) or "name" not in entry:
                    continue
                domain = str(entry.get("domain", LINKEDIN_DOMAIN))
                if LINKEDIN_DOMAIN not in domain:
                    continue
                pairs.append(f"{entry['name']}={entry.get('value', '')}")
            text = "; ".join(pairs)
        logger.info(f"Loaded cookies from {path}")
        return cls(text)

    def get_csrf_token(self) -> str:
        raw = self._cookies.get(CSRF_COOKIE_NAME, "")
        # LinkedIn wraps the value in quotes sometimes
        token = raw.strip('"')
        if not token:
            raise NotAuthenticatedError()
        return token

    def get_cookie_header(self) -> str:
        if not self._cookies:
            raise NotAuthenticatedError("Not logged into LinkedIn: no session cookies configured.")
        return "; ".join(f"{name}={value}" for name, value in self._cookies.items())
