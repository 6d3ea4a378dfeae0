"""Bearer-token verification against Supabase auth."""

import httpx
from loguru import logger

from app.errors import Unauthorized
from app.models.schemas import AuthenticatedUser


class SupabaseIdentityProvider:
    """Resolves an access token to the Supabase user it was issued to.

    Calls ``GET {supabase_url}/auth/v1/user`` with the project's service key
    as ``apikey``. Nothing is cached: every request is verified again.
    """

    def __init__(
        self,
        supabase_url: str,
        service_key: str,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.user_endpoint = f"{supabase_url.rstrip('/')}/auth/v1/user"
        self._service_key = service_key
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def verify(self, token: str) -> AuthenticatedUser:
        """Return the user owning ``token``.

        Raises:
            Unauthorized: If the token is rejected, or the provider cannot be reached.
        """
        try:
            response = await self._http_client.get(
                self.user_endpoint,
                headers={
                    "apikey": self._service_key,
                    "Authorization": f"Bearer {token}",
                },
            )
        except httpx.HTTPError as e:
            logger.warning(f"Identity provider unreachable: {e}")
            raise Unauthorized("Authentication failed") from e

        if response.status_code in (401, 403):
            raise Unauthorized("Invalid token")
        if response.is_error:
            logger.warning(f"Identity provider error: {response.status_code}")
            raise Unauthorized("Authentication failed")

        try:
            data = response.json()
        except ValueError as e:
            raise Unauthorized("Authentication failed") from e

        user_id = data.get("id") if isinstance(data, dict) else None
        if not user_id:
            raise Unauthorized("Invalid token")
        return AuthenticatedUser(id=str(user_id), email=data.get("email"))

    async def close(self):
        """Close the underlying HTTP client."""
        await self._http_client.aclose()
