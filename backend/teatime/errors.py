"""Exceptions raised by the application layers."""


class ConfigurationError(RuntimeError):
    """Required configuration is missing or invalid; the app cannot start."""


class DbInitializationError(RuntimeError):
    """Creating the schema or seeding baseline data failed."""


class LoginRequiredError(Exception):
    """The endpoint needs a signed-in user and the request has none."""

    def __init__(self, return_url: str) -> None:
        super().__init__(return_url)
        self.return_url = return_url


class AccessDeniedError(Exception):
    """The signed-in user lacks a role the endpoint requires."""

    def __init__(self, return_url: str) -> None:
        super().__init__(return_url)
        self.return_url = return_url
