import logging
from typing import Mapping

logger = logging.getLogger(__name__)

# Set by the Databricks Apps proxy for the signed-in user.
USER_HEADERS = ("x-forwarded-user", "x-forwarded-email")


class HeaderIdentityProvider:
    """Resolves the current user from forwarded request headers."""

    def __init__(self, anonymous_user_id: str = "anonymous"):
        self.anonymous_user_id = anonymous_user_id

    def current_user_id(self, headers: Mapping[str, str]) -> str:
        for name in USER_HEADERS:
            value = (headers.get(name) or "").strip()
            if value:
                return value
        logger.debug("No forwarded user header; using anonymous id %r", self.anonymous_user_id)
        return self.anonymous_user_id
