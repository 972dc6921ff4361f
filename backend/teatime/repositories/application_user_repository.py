from ..models import ApplicationUser
from .repository import Repository


class ApplicationUserRepository(Repository[ApplicationUser]):
    model = ApplicationUser

    async def get_by_email(self, email: str) -> ApplicationUser | None:
        return await self.get(ApplicationUser.normalized_email == email.strip().upper())
