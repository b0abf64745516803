"""Request dependencies — caller identity, upload receiver, content store."""

from fastapi import Header

from dataroom.config import get_settings
from dataroom.core.domain_types import CallerIdentity, OrganizationId, UserId
from dataroom.core.errors import AuthenticationRequiredError
from dataroom.infrastructure.upload_receiver import TemporaryUploadReceiver


async def get_caller(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    x_organization_id: str | None = Header(None, alias="X-Organization-Id"),
) -> CallerIdentity:
    """Identity asserted by the upstream gateway; missing or blank -> 401."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise AuthenticationRequiredError()
    organization_id = (x_organization_id or "").strip() or None
    return CallerIdentity(
        user_id=UserId(user_id),
        organization_id=OrganizationId(organization_id) if organization_id else None,
    )


def get_upload_receiver() -> TemporaryUploadReceiver:
    return TemporaryUploadReceiver(get_settings().upload_policy())
