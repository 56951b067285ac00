from pydantic import BaseModel


class SessionUser(BaseModel):
    id: str
    email: str


class SessionOut(BaseModel):
    user: SessionUser
    isAdmin: bool


LOCAL_ADMIN = SessionUser(id="local-admin", email="admin@local")
