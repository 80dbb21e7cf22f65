from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from storefront.adapters.mock_notifier import MockNotifierAdapter
from storefront.config import settings
from storefront.db import get_db
from storefront.db.unit_of_work import SqlAlchemyUnitOfWork
from storefront.services.identity_service import (
    IdentityException,
    IdentityResolver,
    Principal,
)

bearer = HTTPBearer(auto_error=False)

_UNAUTHENTICATED = {"WWW-Authenticate": "Bearer"}


def get_uow(db: Session = Depends(get_db)) -> SqlAlchemyUnitOfWork:
    return SqlAlchemyUnitOfWork(db)


@lru_cache
def get_notifier() -> MockNotifierAdapter:
    return MockNotifierAdapter(sender=settings.NOTIFY_SENDER, delay_ms=settings.NOTIFY_DELAY_MS)


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
) -> Principal:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided",
            headers=_UNAUTHENTICATED,
        )
    try:
        return IdentityResolver(uow).resolve(credentials.credentials)
    except IdentityException:
        # cause already logged by the resolver
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers=_UNAUTHENTICATED,
        )


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return principal
