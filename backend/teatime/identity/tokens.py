from itsdangerous import BadSignature, URLSafeTimedSerializer

from ..models import ApplicationUser

EMAIL_CONFIRMATION = "EmailConfirmation"
RESET_PASSWORD = "ResetPassword"


class TokenProvider:
    """
    Issues and checks signed, time-limited account tokens.

    A token binds the user id to the user's current security stamp, so it
    stops validating as soon as the stamp is rotated.
    """

    def __init__(self, secret_key: str, lifespan_minutes: int) -> None:
        self._secret_key = secret_key
        self._max_age = lifespan_minutes * 60

    def _serializer(self, purpose: str) -> URLSafeTimedSerializer:
        return URLSafeTimedSerializer(self._secret_key, salt=f"teatime.{purpose}")

    def generate(self, purpose: str, user: ApplicationUser) -> str:
        return self._serializer(purpose).dumps([user.id, user.security_stamp])

    def validate(self, purpose: str, token: str, user: ApplicationUser) -> bool:
        try:
            user_id, stamp = self._serializer(purpose).loads(token, max_age=self._max_age)
        except (BadSignature, ValueError, TypeError):
            return False
        return user_id == user.id and stamp == user.security_stamp
