from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import Cookie, Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import ForbiddenError
from src.service.ticketing.domain.entity.user_entity import UserEntity
from src.service.ticketing.domain.enum.user_role import UserRole
from src.service.ticketing.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


STAFF_ROLES = frozenset({UserRole.ORGANIZER_STAFF, UserRole.ADMIN, UserRole.SUPER_ADMIN})
ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})


@inject
async def get_current_user(
    jwt_auth: JwtAuth = Depends(Provide[Container.jwt_auth]),
    token: Optional[str] = Cookie(None, alias=settings.AUTH_COOKIE_NAME),
) -> UserEntity:
    return jwt_auth.get_current_user_info_from_jwt(token)


def _require_role(user: UserEntity, *, allowed: frozenset, message: str) -> UserEntity:
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(
        'auth.require_role', attributes={'user.id': user.id, 'user.role': user.role.value}
    ):
        if user.role not in allowed:
            raise ForbiddenError(message)
        return user


async def require_staff(current_user: UserEntity = Depends(get_current_user)) -> UserEntity:
    return _require_role(
        current_user, allowed=STAFF_ROLES, message='Only event staff can perform this action'
    )


async def require_admin(current_user: UserEntity = Depends(get_current_user)) -> UserEntity:
    return _require_role(
        current_user, allowed=ADMIN_ROLES, message='Only admins can perform this action'
    )


async def require_super_admin(
    current_user: UserEntity = Depends(get_current_user),
) -> UserEntity:
    return _require_role(
        current_user,
        allowed=frozenset({UserRole.SUPER_ADMIN}),
        message='Only super admins can perform this action',
    )
