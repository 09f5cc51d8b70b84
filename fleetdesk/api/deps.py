"""
Dependances d'authentification et de services / Authentication and service dependencies.
Injectees dans les routes via Depends().
"""

from fastapi import Depends, Header, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fleetdesk.database import get_db, get_session_factory
from fleetdesk.models.user import User
from fleetdesk.services.errors import NotFoundError
from fleetdesk.services.import_service import ImportService
from fleetdesk.services.inventory_service import InventoryService
from fleetdesk.services.snapshot_service import SnapshotService
from fleetdesk.utils.auth import decode_token

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extraire et valider l'utilisateur depuis le JWT / Extract and validate user from JWT."""
    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("type") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    user_id = int(payload["sub"])
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")

    return user


def get_inventory_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> InventoryService:
    return InventoryService(session_factory)


def get_snapshot_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> SnapshotService:
    return SnapshotService(session_factory)


def get_import_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ImportService:
    return ImportService(session_factory)


def idempotency_key(
    key: str | None = Header(None, alias="Idempotency-Key", max_length=100),
) -> str | None:
    """Cle d'idempotence optionnelle / Optional idempotency key header."""
    return key or None


async def get_owned(db: AsyncSession, model, owner_id: int, entity_id: int, label: str):
    """Charger une ligne du compte ou 404 / Load an owner's row or raise NotFound.

    Une ligne d'un autre compte est traitee comme absente.
    Another owner's row is treated as missing.
    """
    obj = await db.get(model, entity_id)
    if obj is None or obj.owner_id != owner_id:
        raise NotFoundError(label, entity_id)
    return obj


class ListParams:
    """Filtres communs des listes / Common list query parameters."""

    def __init__(
        self,
        search: str | None = Query(None, max_length=100),
        limit: int = Query(100, ge=1, le=1000),
        offset: int = Query(0, ge=0),
    ):
        self.search = search.strip() if search else None
        self.limit = limit
        self.offset = offset

    def page(self, query):
        return query.limit(self.limit).offset(self.offset)
