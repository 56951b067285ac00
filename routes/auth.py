from fastapi import APIRouter

from schemas.auth import LOCAL_ADMIN, SessionOut

router = APIRouter(prefix="/auth", tags=["auth"])

# The direct-database backend has no user accounts: every caller is the
# local admin and the admin routes are protected by ADMIN_API_KEY instead.


@router.get("/session", response_model=SessionOut)
def get_session():
    return SessionOut(user=LOCAL_ADMIN, isAdmin=True)


@router.post("/login", response_model=SessionOut)
def login():
    return SessionOut(user=LOCAL_ADMIN, isAdmin=True)


@router.post("/logout")
def logout():
    return {"success": True}
