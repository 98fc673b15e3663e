"""Admin login schemas."""

from opencdn.schemas.common import CamelModel


class LoginRequest(CamelModel):
    username: str | None = None
    password: str | None = None


class LoginResponse(CamelModel):
    success: bool = True
    message: str = "Login successful"
    api_keys: dict[str, str]  # tier -> label
