import attrs

from src.platform.exception.exceptions import AuthenticationError, ForbiddenError
from src.service.ticketing.domain.enum.user_role import UserRole


@attrs.define
class UserEntity:
    """
    Caller identity decoded from the auth cookie.

    Accounts live in the identity service; the engine only needs who is calling
    and with which role.
    """

    id: int
    role: UserRole = UserRole.CUSTOMER
    email: str = ''
    name: str = ''
    is_active: bool = True

    def validate_active(self) -> None:
        if not self.is_active:
            raise ForbiddenError('User is inactive')

    def validate_exists(self) -> None:
        if not self.id:
            raise AuthenticationError('User not found')

    def can_access_order(self, *, owner_id: int) -> bool:
        return self.role.is_staff or self.id == owner_id

    def validate_order_access(self, *, owner_id: int) -> None:
        if not self.can_access_order(owner_id=owner_id):
            raise ForbiddenError('Order belongs to another user')
