"""Account management FastAPI application.

This module exposes the endpoints clients use to manage their account:

- ``GET /api/user/users`` and ``GET /api/user/user/{id}``: read users.
- ``POST /api/user``: register a new user and email a confirmation.
- ``POST /api/user/login``: authenticate and return a JSON Web Token.
- ``DELETE /api/user``: delete the caller's account after re-checking the
  password.
- ``POST /api/user/update-email`` and ``POST /api/user/update-password``:
  change credentials after re-checking the current password.
- ``GET /api/shelves`` and ``POST /api/shelves/custom``: the caller's
  shelves.

Sensitive operations receive the caller as an explicit
:class:`~account_service.security.AuthenticatedIdentity` (``None`` when the
request is anonymous). Every :class:`~account_service.errors.AccountError`
is rendered by a single exception handler.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from account_service import config
from account_service.database import engine, init_db
from account_service.dependencies import get_shelf_service, get_user_service
from account_service.email_templates import (
    ACCOUNT_CREATED_SUBJECT,
    ACCOUNT_DELETED_SUBJECT,
    ACCOUNT_PASSWORD_CHANGED_SUBJECT,
    account_created_email,
    account_deleted_email,
    password_changed_email,
)
from account_service.errors import (
    AccountError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from account_service.models import User
from account_service.notifications import EmailSender, get_email_sender
from account_service.schemas import (
    CustomShelfCreate,
    ShelfResponse,
    Token,
    UserLogin,
    UserResponse,
    UserToDelete,
    UserToRegister,
)
from account_service.security import (
    AuthenticatedIdentity,
    create_token_for_user,
    get_current_identity,
    verify_password,
)
from account_service.shelf_service import ShelfAlreadyExistsError, ShelfService
from account_service.user_service import UserAlreadyRegisteredError, UserService
from account_service.validation import PASSWORD_WEAK_MESSAGE, PasswordStrength, check_password_strength

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

INCORRECT_PASSWORD_ERROR_MESSAGE = "The current password entered is incorrect"
WRONG_PASSWORD_ERROR_MESSAGE = "Wrong password."
USER_NOT_FOUND_ERROR_MESSAGE = "Could not find the user with ID %d"
CURRENT_USER_NOT_FOUND_ERROR_MESSAGE = "Could not determine the current user"
EMAIL_TAKEN_ERROR_MESSAGE = "email taken"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Optionally create tables on startup and release the engine on shutdown."""
    if config.CREATE_DB:
        await init_db()
    try:
        yield
    finally:
        await engine.dispose()


app = FastAPI(
    root_path=config.ROOT_PATH,
    title="Book Project Account Service",
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AccountError)
async def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    """Render account errors as ``{"detail": ...}`` with their status."""
    logger.info(
        "%s %s failed with %s: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


async def _require_current_user(
    users: UserService, identity: Optional[AuthenticatedIdentity], message: str
) -> User:
    user = await users.get_current_user(identity)
    if user is None:
        raise NotFoundError(message)
    return user


@app.get("/health")
async def health() -> Dict[str, str]:
    """Health check endpoint returning the service status."""
    return {"status": "ok"}


@app.get("/api/user/users", response_model=List[UserResponse])
async def get_all_users(users: UserService = Depends(get_user_service)) -> List[User]:
    return await users.find_all()


@app.get("/api/user/user/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, users: UserService = Depends(get_user_service)) -> User:
    user = await users.find_user_by_id(user_id)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND_ERROR_MESSAGE % user_id)
    return user


@app.post("/api/user")
async def register(
    user: UserToRegister,
    users: UserService = Depends(get_user_service),
    sender: EmailSender = Depends(get_email_sender),
) -> dict:
    """Register a new user and send them an account-created email.

    The account is kept even if the email cannot be delivered; the delivery
    error is still reported to the caller.
    """
    try:
        result = await users.register(user.email, user.password, user.display_name)
    except UserAlreadyRegisteredError as exc:
        raise ConflictError(EMAIL_TAKEN_ERROR_MESSAGE) from exc

    if not result.ok:
        raise ValidationError(result.violations)

    new_user = result.value
    await sender.send_message(
        new_user.email, ACCOUNT_CREATED_SUBJECT, account_created_email(new_user.email)
    )
    return {"msg": "user created"}


@app.post("/api/user/login", response_model=Token)
async def login(user: UserLogin, users: UserService = Depends(get_user_service)) -> Token:
    """Authenticate user and return an access token."""
    db_user = await users.authenticate(user.email, user.password)
    if db_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_token_for_user(db_user.id, db_user.email)
    return Token(access_token=access_token, token_type="bearer")


@app.delete("/api/user", status_code=status.HTTP_204_NO_CONTENT)
async def delete_current_user(
    request: UserToDelete,
    identity: Optional[AuthenticatedIdentity] = Depends(get_current_identity),
    users: UserService = Depends(get_user_service),
    sender: EmailSender = Depends(get_email_sender),
) -> Response:
    """Delete the caller's account once their password has been confirmed."""
    user = await _require_current_user(users, identity, "User not found")
    if not verify_password(request.password, user.hashed_password):
        raise UnauthorizedError(WRONG_PASSWORD_ERROR_MESSAGE)

    email = user.email
    await users.delete_user_by_id(user.id)
    await sender.send_message(email, ACCOUNT_DELETED_SUBJECT, account_deleted_email(email))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/api/user/update-email")
async def update_email(
    new_email: str = Query(..., alias="newEmail"),
    current_password: str = Query(..., alias="currentPassword"),
    identity: Optional[AuthenticatedIdentity] = Depends(get_current_identity),
    users: UserService = Depends(get_user_service),
) -> Response:
    user = await _require_current_user(users, identity, CURRENT_USER_NOT_FOUND_ERROR_MESSAGE)
    if not verify_password(current_password, user.hashed_password):
        raise UnauthorizedError(INCORRECT_PASSWORD_ERROR_MESSAGE)

    try:
        result = await users.change_user_email(user, new_email)
    except UserAlreadyRegisteredError as exc:
        raise ValidationError(str(exc)) from exc
    if not result.ok:
        raise ValidationError(result.violations)
    return Response(status_code=status.HTTP_200_OK)


@app.post("/api/user/update-password")
async def update_password(
    current_password: str = Query(..., alias="currentPassword"),
    new_password: str = Query(..., alias="newPassword"),
    identity: Optional[AuthenticatedIdentity] = Depends(get_current_identity),
    users: UserService = Depends(get_user_service),
    sender: EmailSender = Depends(get_email_sender),
) -> bool:
    """Change the caller's password and email them about it.

    A weak new password is rejected before the caller is looked up.
    """
    if not check_password_strength(new_password, PasswordStrength.STRONG):
        raise ValidationError(PASSWORD_WEAK_MESSAGE)

    user = await _require_current_user(users, identity, CURRENT_USER_NOT_FOUND_ERROR_MESSAGE)
    if not verify_password(current_password, user.hashed_password):
        raise UnauthorizedError(INCORRECT_PASSWORD_ERROR_MESSAGE)

    result = await users.change_user_password(user, new_password)
    if not result.ok:
        raise ValidationError(result.violations)

    await sender.send_message(
        user.email, ACCOUNT_PASSWORD_CHANGED_SUBJECT, password_changed_email(user.email)
    )
    return True


@app.get("/api/shelves", response_model=List[ShelfResponse])
async def get_shelves(
    identity: Optional[AuthenticatedIdentity] = Depends(get_current_identity),
    users: UserService = Depends(get_user_service),
    shelves: ShelfService = Depends(get_shelf_service),
) -> List[dict]:
    user = await _require_current_user(users, identity, CURRENT_USER_NOT_FOUND_ERROR_MESSAGE)
    return [shelf.to_dict() for shelf in await shelves.find_shelves(user.id)]


@app.post(
    "/api/shelves/custom",
    response_model=ShelfResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_custom_shelf(
    shelf: CustomShelfCreate,
    identity: Optional[AuthenticatedIdentity] = Depends(get_current_identity),
    users: UserService = Depends(get_user_service),
    shelves: ShelfService = Depends(get_shelf_service),
) -> dict:
    user = await _require_current_user(users, identity, CURRENT_USER_NOT_FOUND_ERROR_MESSAGE)
    try:
        result = await shelves.add_custom_shelf(user, shelf.shelf_name)
    except ShelfAlreadyExistsError as exc:
        raise ConflictError("Shelf already exists") from exc
    if not result.ok:
        raise ValidationError(result.violations)
    return result.value.to_dict()
