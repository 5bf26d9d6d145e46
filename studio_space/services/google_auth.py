"""Google ID token verification."""

import os

import httpx
import structlog

logger = structlog.get_logger(__name__)

GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


class GoogleTokenVerifier:
    """Validates Google sign-in ID tokens.

    Calls Google's tokeninfo endpoint to verify the token signature and
    expiry, then extracts the account identity.
    """

    def __init__(
        self,
        client_id: str | None = None,
        tokeninfo_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize verifier.

        Args:
            client_id: Expected token audience (GOOGLE_CLIENT_ID); audience is
                not checked when unset
            tokeninfo_url: Google tokeninfo endpoint
            http_client: HTTP client to use (a new one is created if omitted)
        """
        self.client_id = client_id or os.getenv("GOOGLE_CLIENT_ID")
        self.tokeninfo_url = tokeninfo_url or os.getenv(
            "GOOGLE_TOKENINFO_URL",
            "https://oauth2.googleapis.com/tokeninfo",
        )
        self.http_client = http_client or httpx.AsyncClient()

    async def verify(self, id_token: str) -> dict | None:
        """Verify an ID token and extract the Google identity.

        Args:
            id_token: Credential returned by Google sign-in

        Returns:
            Identity dict with email, name, avatar_url, provider_id if valid,
            None otherwise
        """
        try:
            response = await self.http_client.get(
                self.tokeninfo_url,
                params={"id_token": id_token},
                timeout=5.0,
            )

            if response.status_code != 200:
                return None

            token_info = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("google_tokeninfo_failed", error=str(exc))
            return None

        if token_info.get("iss") not in GOOGLE_ISSUERS:
            return None

        if self.client_id and token_info.get("aud") != self.client_id:
            logger.warning("google_token_audience_mismatch", audience=token_info.get("aud"))
            return None

        email = token_info.get("email")
        if not email:
            return None

        return {
            "email": email.lower(),
            "name": token_info.get("name") or email.split("@")[0],
            "avatar_url": token_info.get("picture"),
            "provider_id": token_info.get("sub"),
            "email_verified": str(token_info.get("email_verified", "false")).lower() == "true",
        }

    async def close(self) -> None:
        """Close HTTP client."""
        await self.http_client.aclose()


# Shared verifier (one HTTP connection pool per process)
_verifier: GoogleTokenVerifier | None = None


def get_google_verifier() -> GoogleTokenVerifier:
    """FastAPI dependency for the Google token verifier."""
    global _verifier
    if _verifier is None:
        _verifier = GoogleTokenVerifier()
    return _verifier


async def close_google_verifier() -> None:
    """Release the shared verifier's HTTP client (call on application shutdown)."""
    global _verifier
    if _verifier is not None:
        await _verifier.close()
        _verifier = None
