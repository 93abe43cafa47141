"""Authentication schema objects."""

from pydantic import BaseModel, ConfigDict, Field


class AdminLoginInput(BaseModel):
    """Validated login payload."""

    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=1, max_length=128)

    model_config = ConfigDict(str_strip_whitespace=True)


class AdminIdentity(BaseModel):
    """Authenticated admin as carried by an access token."""

    id: int
    username: str


class LoginResponse(BaseModel):
    """Successful login payload."""

    success: bool = True
    message: str = "Login successful"
    token: str
    user: AdminIdentity


class VerifyResponse(BaseModel):
    """Token verification payload."""

    success: bool = True
    user: AdminIdentity
