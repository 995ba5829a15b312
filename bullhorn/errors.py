"""
Bullhorn backend error handling.

Maps login/search/token failures to stable categories. None of these are
fatal: the HTTP layer turns them into error responses and the bridge turns
them into a spoken warning.
"""
from typing import Optional


class BackendErrorCategory:
    """Stable error categories."""

    # No credential material at all
    NOT_CONNECTED = "backend.not_connected"

    # Call failures
    TOKEN_EXCHANGE_FAILED = "backend.token_exchange_failed"
    LOGIN_FAILED = "backend.login_failed"
    SEARCH_FAILED = "backend.search_failed"
    NETWORK_ERROR = "backend.network_error"


class BackendError(Exception):
    """Base class for Bullhorn failures; carries a stable category."""

    category = "backend.unknown_error"

    def __init__(
        self,
        detail: str = "",
        *,
        category: Optional[str] = None,
        status: Optional[int] = None,
    ):
        super().__init__(detail or self.category)
        if category:
            self.category = category
        self.detail = detail
        self.status = status


class BackendUnauthenticated(BackendError):
    """No Bullhorn session has been established; nothing was sent upstream."""

    category = BackendErrorCategory.NOT_CONNECTED


class BackendUnavailable(BackendError):
    """A login, token or search call failed."""

    category = BackendErrorCategory.SEARCH_FAILED


def get_user_message(category: str) -> str:
    """User-facing text for a category, used in warnings shown and spoken."""
    messages = {
        BackendErrorCategory.NOT_CONNECTED: "Bullhorn isn't connected yet, so I can't search candidates right now.",
        BackendErrorCategory.LOGIN_FAILED: "I couldn't sign in to Bullhorn just now.",
        BackendErrorCategory.SEARCH_FAILED: "The Bullhorn search didn't go through.",
        BackendErrorCategory.NETWORK_ERROR: "I couldn't reach Bullhorn just now.",
        BackendErrorCategory.TOKEN_EXCHANGE_FAILED: "Connecting to Bullhorn failed.",
    }

    return messages.get(category, "Sorry, the candidate search isn't available right now.")
