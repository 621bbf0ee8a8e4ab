"""Bearer-token checks delegated to an external verification endpoint.

Signature, audience and issuer checks happen behind `verify_url`; this
module only forwards the token and reads back the claim set.
"""

import logging

import httpx

from ..core.errors import MissingConfigError, PagewiseError, ServiceError

logger = logging.getLogger(__name__)


class AuthError(PagewiseError):
    """The token is missing or was rejected (answered as 401)."""


def bearer_token(authorization: str | None) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthError("Missing token")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise AuthError("Missing token")
    return token


class TokenVerifier:
    def __init__(
        self,
        verify_url: str = "",
        enabled: bool = False,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.verify_url = verify_url
        self.enabled = enabled
        self.timeout = timeout
        self.transport = transport

    async def verify(self, authorization: str | None) -> dict:
        """Return the validated claims for an `Authorization: Bearer …` header value."""
        token = bearer_token(authorization)
        if not self.verify_url:
            raise MissingConfigError("auth.verify_url")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(
                    self.verify_url, headers={"Authorization": f"Bearer {token}"}
                )
        except httpx.HTTPError as e:
            logger.error("Token verification endpoint unreachable: %s", e)
            raise ServiceError(
                f"Token verification failed: {e}", service="auth", failure_kind="transport"
            ) from e

        if resp.status_code in (401, 403):
            raise AuthError(_error_text(resp) or "Invalid token")
        if resp.status_code >= 400:
            raise ServiceError(
                f"Token verification failed: {resp.status_code}",
                service="auth",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise ServiceError(
                "Token verification returned invalid JSON", service="auth", failure_kind="malformed"
            ) from e
        if not data.get("ok"):
            raise AuthError(data.get("error") or "Invalid token")
        return data.get("payload") or {}


def _error_text(resp: httpx.Response) -> str:
    try:
        return resp.json().get("error", "")
    except (ValueError, AttributeError):
        return ""
