"""
FastAPI dependencies shared by the CMS routers.

Services are built per request around the process-wide field type registry; tests
override these providers through `app.dependency_overrides`.
"""

import hmac
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from content_cms.config import settings
from content_cms.managers.logging_manager import get_logger
from content_cms.models.field_types import DEFAULT_FIELD_TYPE_REGISTRY
from content_cms.services.component_service import ComponentService
from content_cms.services.component_type_service import ComponentTypeService
from content_cms.services.layout_service import LayoutService
from content_cms.services.page_service import PageService

logger = get_logger(prefix="[Admin Dependencies]")

bearer_scheme = HTTPBearer(auto_error=False)

ADMIN_PRINCIPAL = "admin"


async def require_admin(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> str:
    """
    Authorize an admin request with the configured bearer token.

    Returns:
        str: The principal recorded as `created_by`/`updated_by`.

    Raises:
        HTTPException: 503 when no admin token is configured, 401 on a missing or wrong token.
    """
    if not settings.admin_token_configured:
        logger.error("Admin request rejected: ADMIN_API_TOKEN is not configured")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Admin API is not configured")

    if credentials is None or not hmac.compare_digest(
        credentials.credentials.encode(), settings.ADMIN_API_TOKEN.get_secret_value().encode()
    ):
        logger.warning("Admin request rejected: invalid bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing admin token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return ADMIN_PRINCIPAL


async def get_component_type_service() -> ComponentTypeService:
    return ComponentTypeService(DEFAULT_FIELD_TYPE_REGISTRY)


async def get_component_service() -> ComponentService:
    return ComponentService(DEFAULT_FIELD_TYPE_REGISTRY)


async def get_layout_service() -> LayoutService:
    return LayoutService(DEFAULT_FIELD_TYPE_REGISTRY)


async def get_page_service() -> PageService:
    return PageService(DEFAULT_FIELD_TYPE_REGISTRY)
