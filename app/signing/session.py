"""
HTTP plumbing for the signing client.

An `ApiSession` is created at sign-in (or anonymously for a public signing link),
passed explicitly to whatever issues requests, and cleared at sign-out.
"""
import logging
from typing import Any, Optional
import httpx
from app.signing.config import SigningSettings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Backend answered with an error status; `message` is its `error` body text, if any."""

    def __init__(self, status_code: Optional[int], message: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        super().__init__(message or f"HTTP {status_code}")


class IpLookupError(Exception):
    """Public IP could not be determined"""
    pass


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return None


class ApiSession:
    """Backend client bound to one base URL and, optionally, one bearer token."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        access_token: Optional[str] = None,
        settings: Optional[SigningSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = settings or SigningSettings()
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        self.access_token = access_token
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.REQUEST_TIMEOUT,
            transport=transport,
        )

    @property
    def authenticated(self) -> bool:
        return self.access_token is not None

    def sign_in(self, access_token: str) -> None:
        self.access_token = access_token

    def sign_out(self) -> None:
        self.access_token = None

    def _headers(self) -> dict:
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        return {}

    async def request(self, method: str, path: str, json: Any = None) -> Any:
        """
        Issue one request and return the decoded JSON body.

        Raises:
            ApiError: On any 4xx/5xx answer, or a success body that is not JSON
            httpx.HTTPError: On transport failures
        """
        response = await self._client.request(method, path, json=json, headers=self._headers())
        if response.is_error:
            message = _error_message(response)
            logger.warning(f"{method} {path} failed with {response.status_code}: {message}")
            raise ApiError(response.status_code, message)
        try:
            return response.json()
        except ValueError:
            logger.warning(f"{method} {path} returned a non-JSON body ({response.status_code})")
            raise ApiError(response.status_code, None)

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


class IpEchoClient:
    """Third-party service echoing the caller's public IP as `{"ip": "..."}`."""

    def __init__(
        self,
        url: Optional[str] = None,
        settings: Optional[SigningSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = settings or SigningSettings()
        self.url = url or settings.IP_ECHO_URL
        self.timeout = settings.REQUEST_TIMEOUT
        self.transport = transport

    async def __call__(self) -> str:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self.url)
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise IpLookupError(f"IP lookup failed: {e}")

        ip = body.get("ip") if isinstance(body, dict) else None
        if not ip:
            raise IpLookupError("IP lookup returned no address")
        return ip
