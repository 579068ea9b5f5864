"""API key authentication for the scan endpoint."""

import logging

from fastapi import HTTPException, Request

from ..core.config import ScannerConfig

logger = logging.getLogger(__name__)


def extract_api_key(request: Request) -> str | None:
    """Key from ``X-API-Key`` or ``Authorization: Bearer <key>``."""
    key = request.headers.get("x-api-key")
    if key:
        return key
    authorization = request.headers.get("authorization", "")
    if authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip() or None
    return None


class ApiKeyAuth:
    """FastAPI dependency checking the caller's key against the allow-set."""

    def __init__(self, config: ScannerConfig):
        self.required = config.require_api_key
        self.valid_keys = frozenset(config.api_keys)

    async def __call__(self, request: Request) -> None:
        if not self.required:
            return

        api_key = extract_api_key(request)
        if not api_key:
            logger.warning(f"API request rejected: No API key provided (path={request.url.path})")
            raise HTTPException(
                status_code=401,
                detail="API key required. Provide via X-API-Key header or Authorization: Bearer <key>",
            )

        if api_key not in self.valid_keys:
            logger.warning(
                f"API request rejected: Invalid API key {api_key[:8]}... "
                f"(path={request.url.path})"
            )
            raise HTTPException(status_code=403, detail="Invalid API key")

        logger.debug(f"API request authenticated (path={request.url.path})")
