"""HTTP API exposing the GitHub account age gate and profile sync."""

from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterable, NoReturn, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from .account_age import AccountAgeGate
from .config import Settings, load_settings
from .database import Database
from .errors import GitHubErrorKind, GitHubIdentityError, UserNotFound
from .github import GitHubClient, IdentityResolver
from .models import User
from .profile_sync import ProfileSyncer, should_schedule_profile_sync
from .timeutil import Clock, now_ms

logger = logging.getLogger("clawhub.service")

DELETED_ACCOUNT_MESSAGE = "This account has been permanently deleted and cannot be restored."

_STATUS_BY_KIND: Dict[GitHubErrorKind, int] = {
    GitHubErrorKind.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    GitHubErrorKind.ACCOUNT_TOO_YOUNG: status.HTTP_403_FORBIDDEN,
    GitHubErrorKind.GITHUB_ACCOUNT_REQUIRED: status.HTTP_403_FORBIDDEN,
    GitHubErrorKind.GITHUB_LOOKUP_FAILED: status.HTTP_502_BAD_GATEWAY,
    GitHubErrorKind.RATE_LIMIT_EXCEEDED: status.HTTP_429_TOO_MANY_REQUESTS,
}


class UserView(BaseModel):
    id: int
    name: Optional[str]
    image: Optional[str]
    active: bool
    github_created_at: Optional[int]
    github_profile_synced_at: Optional[int]


class ProfileSyncResponse(BaseModel):
    updated: bool
    user: UserView


class SignInResponse(BaseModel):
    user_id: int
    profile_sync_scheduled: bool


class OperatorAuth:
    """Require one of the configured operator tokens as a bearer credential."""

    def __init__(self, tokens: Iterable[str]):
        self._tokens = [token.strip() for token in tokens if token.strip()]
        if not self._tokens:
            raise ValueError("At least one API token must be configured (CLAWHUB_API_TOKENS)")
        self._bearer = HTTPBearer(auto_error=False)

    async def __call__(self, request: Request) -> None:
        credentials: HTTPAuthorizationCredentials | None = await self._bearer(request)  # type: ignore[assignment]
        if credentials is None:
            logger.warning("Rejected %s %s: missing bearer token", request.method, request.url.path)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Missing bearer token",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if not any(secrets.compare_digest(credentials.credentials, token) for token in self._tokens):
            logger.warning("Rejected %s %s: unknown operator token", request.method, request.url.path)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid API token")


def _user_to_view(user: User) -> UserView:
    return UserView(
        id=user.id,
        name=user.name,
        image=user.image,
        active=user.is_active,
        github_created_at=user.github_created_at,
        github_profile_synced_at=user.github_profile_synced_at,
    )


def _raise_http(exc: GitHubIdentityError) -> NoReturn:
    raise HTTPException(
        status_code=_STATUS_BY_KIND[exc.kind],
        detail={"code": exc.kind.value, "message": str(exc)},
    ) from exc


def _run_background_sync(syncer: ProfileSyncer, user_id: int) -> None:
    try:
        syncer.sync_profile(user_id)
    except GitHubIdentityError as exc:
        logger.warning("Background GitHub profile sync failed for user %s: %s", user_id, exc)


def register_api_routes(
    app: FastAPI,
    database: Database,
    *,
    gate: AccountAgeGate,
    syncer: ProfileSyncer,
    auth: OperatorAuth,
    clock: Clock,
) -> None:
    """Expose the JSON API endpoints on the provided FastAPI application."""

    @app.get("/healthz")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    router = APIRouter(prefix="/v1", dependencies=[Depends(auth)])

    @router.get("/users/{user_id}", response_model=UserView)
    def get_user(user_id: int) -> UserView:
        user = database.get_user(user_id)
        if user is None:
            _raise_http(UserNotFound())
        return _user_to_view(user)

    @router.post("/users/{user_id}/sign-in", response_model=SignInResponse)
    def sign_in(user_id: int, background_tasks: BackgroundTasks) -> SignInResponse:
        user = database.get_user(user_id)
        if user is None:
            _raise_http(UserNotFound())
        if not user.is_active:
            if database.finalize_deleted_user(user.id):
                logger.info("Moved legacy deletion of user %s to a permanent deactivation", user.id)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=DELETED_ACCOUNT_MESSAGE)

        scheduled = should_schedule_profile_sync(user, clock(), syncer.window)
        if scheduled:
            background_tasks.add_task(_run_background_sync, syncer, user.id)
        return SignInResponse(user_id=user.id, profile_sync_scheduled=scheduled)

    @router.post(
        "/users/{user_id}/github/account-age",
        status_code=status.HTTP_204_NO_CONTENT,
        response_class=Response,
    )
    def require_account_age(user_id: int) -> Response:
        try:
            gate.require_account_age(user_id)
        except GitHubIdentityError as exc:
            _raise_http(exc)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.post("/users/{user_id}/github/profile-sync", response_model=ProfileSyncResponse)
    def sync_profile(user_id: int) -> ProfileSyncResponse:
        try:
            updated = syncer.sync_profile(user_id)
        except GitHubIdentityError as exc:
            _raise_http(exc)

        user = database.get_user(user_id)
        if user is None:
            _raise_http(UserNotFound())
        if updated:
            logger.info("Profile for user %s refreshed through the API", user_id)
        return ProfileSyncResponse(updated=updated, user=_user_to_view(user))

    app.include_router(router)


def create_app(
    *,
    database: Database | None = None,
    settings: Settings | None = None,
    github_client: GitHubClient | None = None,
    api_tokens: Iterable[str] | None = None,
    clock: Clock = now_ms,
) -> FastAPI:
    """Instantiate the FastAPI application for the identity service."""

    app_settings = settings or load_settings()

    db = database or Database(app_settings.database_path)
    db.initialize()

    owns_client = github_client is None
    client = github_client or GitHubClient(app_settings.github)
    if not client.settings.token:
        logger.warning(
            "No GitHub token configured; GitHub lookups use the unauthenticated rate limit."
        )

    resolver = IdentityResolver(db, client)
    gate = AccountAgeGate(db, resolver, clock=clock)
    syncer = ProfileSyncer(db, resolver, window=app_settings.profile_sync_window, clock=clock)
    auth = OperatorAuth(api_tokens if api_tokens is not None else app_settings.api_tokens)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        if owns_client:
            client.close()

    app = FastAPI(
        title="clawhub Identity Service",
        version="0.1.0",
        description="GitHub account age verification and profile sync for the skill registry.",
        lifespan=lifespan,
    )

    app.state.database = db
    app.state.account_age_gate = gate
    app.state.profile_syncer = syncer

    register_api_routes(app, db, gate=gate, syncer=syncer, auth=auth, clock=clock)

    return app


__all__ = ["create_app", "register_api_routes"]
