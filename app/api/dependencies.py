"""
Request dependencies for the gateway API.

The long-lived clients are built once in the application lifespan and kept
on ``app.state``; these helpers hand them to route handlers so tests can
swap them through ``app.state`` or ``app.dependency_overrides``.
"""

import logging
from typing import AsyncIterator

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.errors import Unauthorized
from app.models.schemas import AuthenticatedUser
from app.services.arxiv_client import ArxivClient
from app.services.completion_client import CompletionClient
from app.services.identity_provider import SupabaseIdentityProvider
from app.services.report_repository import ReportRepository

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is reported by us, as a 401
security = HTTPBearer(auto_error=False)


def get_identity_provider(request: Request) -> SupabaseIdentityProvider:
    return request.app.state.identity_provider


def get_search_client(request: Request) -> ArxivClient:
    return request.app.state.search_client


def get_completion_client(request: Request) -> CompletionClient:
    return request.app.state.completion_client


async def get_report_repository(request: Request) -> AsyncIterator[ReportRepository]:
    """Open a session for the duration of the request."""
    async with request.app.state.db_session_factory() as session:
        yield ReportRepository(session)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(security),
    identity_provider: SupabaseIdentityProvider = Depends(get_identity_provider),
) -> AuthenticatedUser:
    """
    Resolve the authenticated user for this request.

    Applied to every endpoint that attributes ownership or spends provider
    quota. Runs before the endpoint body, so a rejected request never
    reaches a pipeline.

    Raises:
        Unauthorized: If the header is missing or malformed, or the token is rejected.
    """
    if credentials is None:
        if request.headers.get("Authorization"):
            raise Unauthorized("Invalid authorization header")
        raise Unauthorized("No authorization header")

    token = credentials.credentials.strip()
    if not token:
        raise Unauthorized("Invalid authorization header")

    user = await identity_provider.verify(token)
    logger.debug("Authenticated user %s", user.id)
    return user
