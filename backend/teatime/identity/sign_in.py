import logging
from enum import StrEnum

from ..models import ApplicationUser
from .cookies import ClaimsUser
from .managers import UserManager

logger = logging.getLogger(__name__)


class SignInResult(StrEnum):
    SUCCEEDED = "succeeded"
    NOT_ALLOWED = "not_allowed"
    FAILED = "failed"


class SignInManager:
    """Checks credentials and sign-in policy, and builds the cookie principal."""

    def __init__(self, user_manager: UserManager, require_confirmed_account: bool) -> None:
        self._users = user_manager
        self._require_confirmed_account = require_confirmed_account

    def can_sign_in(self, user: ApplicationUser) -> bool:
        return user.email_confirmed or not self._require_confirmed_account

    def create_principal(self, user: ApplicationUser) -> ClaimsUser:
        return ClaimsUser(
            id=user.id,
            email=user.email,
            name=user.name,
            roles=self._users.get_roles(user),
        )

    async def password_sign_in(
        self, email: str, password: str
    ) -> tuple[SignInResult, ClaimsUser | None]:
        user = await self._users.find_by_email(email)
        if user is None or not self._users.check_password(user, password):
            logger.info("Invalid login attempt for %s", email)
            return SignInResult.FAILED, None
        if not self.can_sign_in(user):
            logger.info("User %s must confirm their account before signing in", user.id)
            return SignInResult.NOT_ALLOWED, None
        logger.info("User %s logged in", user.id)
        return SignInResult.SUCCEEDED, self.create_principal(user)
