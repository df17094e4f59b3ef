"""Creator Request Routes — an investor applies to become a creator."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from crowdchain.api.dependencies import broadcaster_dep, require_roles
from crowdchain.config import Settings, get_settings
from crowdchain.core.domain_types import Identity, Role
from crowdchain.infrastructure.database import get_db
from crowdchain.schemas.creator_request import CreatorRequestCreate, CreatorRequestResponse
from crowdchain.services.account_service import AccountService
from crowdchain.services.broadcaster import NotificationBroadcaster

router = APIRouter(prefix="/api/v1/creator-requests", tags=["creator-requests"])


@router.post(
    "", response_model=CreatorRequestResponse, status_code=status.HTTP_201_CREATED,
)
async def submit_creator_request(
    body: CreatorRequestCreate,
    identity: Identity = Depends(require_roles(Role.INVESTOR, Role.CREATOR)),
    db: AsyncSession = Depends(get_db),
    broadcaster: NotificationBroadcaster = Depends(broadcaster_dep),
    settings: Settings = Depends(get_settings),
):
    request = await AccountService(db, broadcaster, settings).submit_creator_request(
        identity.id, body,
    )
    return CreatorRequestResponse.model_validate(request)
