"""Interface for session credentials.

The core never manages login. It only needs a CSRF-equivalent token and a
session-cookie header derived from an authenticated browsing session.
"""

import abc

from ..errors import NotAuthenticatedError


class CredentialProvider(abc.ABC):
    """Abstract Base Class for access to the authenticated session."""

    @abc.abstractmethod
    def get_csrf_token(self) -> str:
        """Returns the CSRF token.

        Raises:
            NotAuthenticatedError: If no session is available.
        """
        pass

    @abc.abstractmethod
    def get_cookie_header(self) -> str:
        """Returns the value for the `Cookie` request header.

        Raises:
            NotAuthenticatedError: If no session is available.
        """
        pass

    def is_authenticated(self) -> bool:
        """Checks whether both credentials can be produced."""
        try:
            self.get_csrf_token()
            self.get_cookie_header()
        except NotAuthenticatedError:
            return False
        return True
