"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Header, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from sportsclub.auth.jwt import verify_token
from sportsclub.db.models import Account
from sportsclub.dependencies import get_stores
from sportsclub.storage import Stores

_bearer = HTTPBearer(auto_error=False)


async def get_current_account(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    x_auth_token: str | None = Header(None),
    stores: Stores = Depends(get_stores),
) -> Account:
    """
    Extract and verify the session token, return the Account.

    Accepts ``Authorization: Bearer <token>`` or the ``x-auth-token`` header.
    Raises 401 on a missing, invalid or expired token.
    """
    token = credentials.credentials if credentials is not None else x_auth_token
    if not token:
        raise HTTPException(status_code=401, detail="No token, authorization denied")
    try:
        payload = verify_token(token, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    try:
        account_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(status_code=401, detail="Invalid token subject") from e

    account = await stores.accounts.find_by_id(account_id)
    if account is None:
        raise HTTPException(status_code=401, detail="User not found")
    return account
