from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from app.core.security import SESSION_MAX_AGE, create_session_cookie
from app.deps import SESSION_COOKIE_NAME, get_current_account
from app.models.account import AccountRecord
from app.services import accounts as account_service
from app.storage.base import AccountStore, get_account_store

router = APIRouter()


class CredentialsRequest(BaseModel):
    # Optional so missing values get the 400 envelope instead of a 422
    username: str | None = None
    password: str | None = None


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def auth_register(body: CredentialsRequest, store: AccountStore = Depends(get_account_store)):
    """Create an account. 409 when the username is taken."""
    account = await account_service.register(store, body.username, body.password)
    return {"success": True, "message": "Registration successful", "id": account.id}


@router.post("/login")
async def auth_login(
    body: CredentialsRequest,
    response: Response,
    store: AccountStore = Depends(get_account_store),
):
    """Check credentials; set httpOnly session cookie."""
    account = await account_service.login(store, body.username, body.password)
    session_value = create_session_cookie(account_service.session_payload_for_account(account))
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_value,
        max_age=SESSION_MAX_AGE,
        httponly=True,
        secure=False,  # set True in prod with HTTPS
        samesite="lax",
        path="/",
    )
    return {"success": True, "message": "Login successful"}


@router.get("/me")
async def auth_me(account: AccountRecord = Depends(get_current_account)):
    """Return current account. Requires session cookie."""
    return {
        "id": account.id,
        "username": account.username,
        "created_at": account.created_at.isoformat(),
    }
