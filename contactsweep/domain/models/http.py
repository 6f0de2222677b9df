"""Domain model for a normalized transport outcome."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict

from contactsweep.domain.errors import TransportError


@dataclass
class TransportResponse:
    """A successful (2xx) HTTP response, independent of the HTTP library."""
    status_code: int
    text: str = ""
    headers: Dict[str, str] = field(default_factory=dict)

    def json(self) -> Any:
        """Decodes the body as JSON.

        Raises:
            TransportError: If the body is not valid JSON.
        """
        try:
            return json.loads(self.text)
        except ValueError as e:
            raise TransportError(f"Response body is not valid JSON: {e}") from e
