from enum import Enum


class UserRole(str, Enum):
    CUSTOMER = 'customer'
    ORGANIZER_STAFF = 'organizer_staff'
    ADMIN = 'admin'
    SUPER_ADMIN = 'super_admin'

    @property
    def is_staff(self) -> bool:
        return self is not UserRole.CUSTOMER
