import hmac
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from prpal.config import settings
from prpal.core.errors import AuthenticationError

API_KEY_NAME = "X-PRPal-API-KEY"

api_key_header = APIKeyHeader(name=API_KEY_NAME, auto_error=False)


async def get_api_key(api_key: Optional[str] = Security(api_key_header)) -> str:
    """Guard for the /admin endpoints."""
    if not settings.PRPAL_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="API Key not configured on server.",
        )

    if api_key is None or not hmac.compare_digest(
        api_key.encode(), settings.PRPAL_API_KEY.encode()
    ):
        raise AuthenticationError("Invalid or missing API Key")
    return api_key
