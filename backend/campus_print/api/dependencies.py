"""Request Dependencies — access to lifespan-built services and the admin gate.

Invariants:
    - Services are built once in the lifespan and read from app.state, never
      constructed per request
    - require_admin rejects missing, malformed, forged and expired bearer
      tokens with AuthError (401)
"""

from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from campus_print.config import Settings
from campus_print.core.errors import AuthError
from campus_print.core.repository_protocols import BlobStore
from campus_print.infrastructure.admin_auth import AdminAuth
from campus_print.infrastructure.database import DatabaseSessionManager
from campus_print.services.order_service import OrderService
from campus_print.services.page_counter import PageCounter
from campus_print.services.upload_intake import UploadIntake


@dataclass
class AppServices:
    """Everything the routes need, wired once per process."""
    settings: Settings
    db: DatabaseSessionManager
    blob_store: BlobStore
    page_counter: PageCounter
    intake: UploadIntake
    orders: OrderService
    admin_auth: AdminAuth


_bearer = HTTPBearer(auto_error=False)


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_order_service(services: AppServices = Depends(get_services)) -> OrderService:
    return services.orders


def get_upload_intake(services: AppServices = Depends(get_services)) -> UploadIntake:
    return services.intake


def get_admin_auth(services: AppServices = Depends(get_services)) -> AdminAuth:
    return services.admin_auth


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    admin_auth: AdminAuth = Depends(get_admin_auth),
) -> str:
    """Resolve to the admin subject or raise AuthError."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError()
    return admin_auth.verify(credentials.credentials)
