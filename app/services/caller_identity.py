from __future__ import annotations

from dataclasses import dataclass

import structlog
from fastapi import HTTPException, Request

from app.core.config import get_settings
from app.services.internal_auth import extract_client_ip, is_trusted_gateway_request

logger = structlog.get_logger(__name__)

CALLER_ID_HEADER = "X-Caller-Id"
CALLER_ROLE_HEADER = "X-Caller-Role"
CALLER_ID_MAX_LENGTH = 64
ADMIN_ROLE = "admin"


@dataclass(frozen=True, slots=True)
class CallerIdentity:
    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def resolve_caller(request: Request) -> CallerIdentity:
    settings = get_settings()
    if not is_trusted_gateway_request(
        request,
        expected_token=settings.internal_api_token,
        allowlist=settings.internal_api_allowlist,
        trusted_proxies=settings.internal_api_trusted_proxies,
    ):
        logger.warning(
            "caller_identity_untrusted_source",
            client_ip=extract_client_ip(
                request,
                trusted_proxies=settings.internal_api_trusted_proxies,
            ),
            path=request.url.path,
        )
        raise HTTPException(status_code=401, detail={"code": "E_UNAUTHENTICATED"})

    user_id = (request.headers.get(CALLER_ID_HEADER) or "").strip()
    if not user_id or len(user_id) > CALLER_ID_MAX_LENGTH:
        raise HTTPException(status_code=401, detail={"code": "E_UNAUTHENTICATED"})

    role = (request.headers.get(CALLER_ROLE_HEADER) or "user").strip().lower() or "user"
    return CallerIdentity(user_id=user_id, role=role)


def require_admin(request: Request) -> CallerIdentity:
    caller = resolve_caller(request)
    if not caller.is_admin:
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})
    return caller
