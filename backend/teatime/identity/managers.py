import logging
import uuid
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import ApplicationUser, Role
from ..domain import IUnitOfWork
from .passwords import get_password_hash, validate_password, verify_password
from .tokens import EMAIL_CONFIRMATION, RESET_PASSWORD, TokenProvider

logger = logging.getLogger(__name__)


@dataclass
class IdentityResult:
    succeeded: bool
    errors: list[str] = field(default_factory=list)

    @classmethod
    def success(cls) -> "IdentityResult":
        return cls(succeeded=True)

    @classmethod
    def failed(cls, *errors: str) -> "IdentityResult":
        return cls(succeeded=False, errors=list(errors))


class RoleManager:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_name(self, name: str) -> Role | None:
        result = await self._session.execute(
            select(Role).where(Role.normalized_name == name.upper())
        )
        return result.scalars().first()

    async def role_exists(self, name: str) -> bool:
        return await self.find_by_name(name) is not None

    async def create(self, name: str) -> IdentityResult:
        """Stage a new role; persisted by the unit of work."""
        if await self.role_exists(name):
            return IdentityResult.failed(f"Role name '{name}' is already taken.")
        self._session.add(Role(id=str(uuid.uuid4()), name=name, normalized_name=name.upper()))
        return IdentityResult.success()


class UserManager:
    """
    User store operations: creation, roles, passwords and account tokens.

    Changes are staged through the unit of work; callers decide when to save.
    """

    def __init__(
        self,
        unit_of_work: IUnitOfWork,
        role_manager: RoleManager,
        token_provider: TokenProvider,
    ) -> None:
        self._uow = unit_of_work
        self._roles = role_manager
        self._tokens = token_provider

    async def find_by_id(self, user_id: str) -> ApplicationUser | None:
        return await self._uow.application_user.get_by_id(user_id)

    async def find_by_email(self, email: str) -> ApplicationUser | None:
        return await self._uow.application_user.get_by_email(email)

    async def create(self, user: ApplicationUser, password: str) -> IdentityResult:
        errors = validate_password(password)
        if not user.email or "@" not in user.email:
            errors.append(f"Email '{user.email}' is invalid.")
        elif await self.find_by_email(user.email) is not None:
            errors.append(f"Email '{user.email}' is already taken.")
        if errors:
            return IdentityResult.failed(*errors)

        user.id = user.id or str(uuid.uuid4())
        user.user_name = user.user_name or user.email
        user.normalized_email = user.email.strip().upper()
        user.email_confirmed = bool(user.email_confirmed)
        user.password_hash = get_password_hash(password)
        user.security_stamp = str(uuid.uuid4())
        # Pending users must never lazy-load roles on the async session
        user.roles = []
        self._uow.application_user.add(user)
        logger.info("Created user %s", user.id)
        return IdentityResult.success()

    async def add_to_role(self, user: ApplicationUser, role_name: str) -> IdentityResult:
        role = await self._roles.find_by_name(role_name)
        if role is None:
            return IdentityResult.failed(f"Role {role_name} does not exist.")
        if role in user.roles:
            return IdentityResult.failed(f"User already in role '{role_name}'.")
        user.roles.append(role)
        return IdentityResult.success()

    def get_roles(self, user: ApplicationUser) -> list[str]:
        return [role.name for role in user.roles]

    def is_in_role(self, user: ApplicationUser, role_name: str) -> bool:
        return any(role.normalized_name == role_name.upper() for role in user.roles)

    def check_password(self, user: ApplicationUser, password: str) -> bool:
        return verify_password(password, user.password_hash)

    def generate_email_confirmation_token(self, user: ApplicationUser) -> str:
        return self._tokens.generate(EMAIL_CONFIRMATION, user)

    async def confirm_email(self, user: ApplicationUser, token: str) -> IdentityResult:
        if not self._tokens.validate(EMAIL_CONFIRMATION, token, user):
            return IdentityResult.failed("Invalid token.")
        user.email_confirmed = True
        user.security_stamp = str(uuid.uuid4())
        return IdentityResult.success()

    def generate_password_reset_token(self, user: ApplicationUser) -> str:
        return self._tokens.generate(RESET_PASSWORD, user)

    async def reset_password(
        self, user: ApplicationUser, token: str, new_password: str
    ) -> IdentityResult:
        if not self._tokens.validate(RESET_PASSWORD, token, user):
            return IdentityResult.failed("Invalid token.")
        errors = validate_password(new_password)
        if errors:
            return IdentityResult.failed(*errors)
        user.password_hash = get_password_hash(new_password)
        user.security_stamp = str(uuid.uuid4())
        return IdentityResult.success()
