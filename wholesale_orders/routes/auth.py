# wholesale_orders/routes/auth.py

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jwt import encode, decode, ExpiredSignatureError, InvalidTokenError
from datetime import datetime, timedelta, timezone
from typing import Optional
from wholesale_orders.utils.security import verify_password
from wholesale_orders.config import settings
from wholesale_orders.schemas.user import UserResponse, TokenResponse
from wholesale_orders.services.user import read_user_by_login_service

router = APIRouter()

# ────────────── JWT ──────────────
ALGORITHM = "HS256"
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """
    Builds a JWT for the given claims.
    In: dict (e.g. {"sub": "login"})
    Out: encoded token
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=15))
    to_encode.update({"exp": expire})
    return encode(to_encode, settings.AUTH_SECRET_KEY, algorithm=ALGORITHM)


async def get_current_user(request: Request, token: str = Depends(oauth2_scheme)):
    """
    Resolves the bearer token to the acting user (id and role).

    **Statuses:**
    - 401 Unauthorized – token expired, invalid, or the user no longer exists
    """
    log = request.app.state.log
    try:
        payload = decode(token, settings.AUTH_SECRET_KEY, algorithms=[ALGORITHM])
        login: str = payload.get("sub")
        if login is None:
            await log.log_error("auth", "Token has no subject")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    except ExpiredSignatureError:
        await log.log_warning("auth", "Token expired")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except InvalidTokenError:
        await log.log_warning("auth", "Invalid token")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token invalid")

    user = await read_user_by_login_service(login, request)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    return user


# ────────────── TOKEN ──────────────
@router.post(
    "/token",
    response_model=TokenResponse,
    summary="Issue a JWT for a user",
    responses={
        200: {"description": "Token issued"},
        401: {"description": "Wrong login or password"},
        422: {"description": "Missing username or password"},
    }
)
async def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends()
):
    """
    Checks login and password and returns a bearer token with the user's role.
    """
    log = request.app.state.log

    user = await read_user_by_login_service(form_data.username, request)
    if not user or not verify_password(form_data.password, user.password):
        await log.log_warning("auth", "Failed login", {"username": form_data.username})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Wrong login or password",
            headers={"WWW-Authenticate": "Bearer"}
        )

    access_token = create_access_token(
        data={"sub": user.login, "role": user.role.value},
        expires_delta=timedelta(minutes=settings.AUTH_TOKEN_EXPIRE_MINUTES)
    )
    await log.log_info("auth", "User logged in", {"login": user.login, "role": user.role})

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": UserResponse.model_validate(user),
    }


# ────────────── ME ──────────────
@router.get(
    "/me",
    response_model=UserResponse,
    summary="Current user",
    responses={
        200: {"description": "The authenticated user"},
        401: {"description": "Missing or invalid token"},
    }
)
async def read_me(current_user=Depends(get_current_user)):
    return current_user
