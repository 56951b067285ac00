from typing import Any, Optional

from pydantic import BaseModel


class ApiError(BaseModel):
    message: str


class MutationResult(BaseModel):
    error: Optional[ApiError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, message: str, **kwargs: Any):
        return cls(error=ApiError(message=message), **kwargs)


class DataResult(MutationResult):
    data: Any = None


class UploadResult(MutationResult):
    url: Optional[str] = None


class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None


class AuthSession(BaseModel):
    user: Optional[AuthUser] = None
    session: Optional[dict] = None
    is_admin: bool = False


LOCAL_ADMIN = AuthUser(id="local-admin", email="admin@local")
