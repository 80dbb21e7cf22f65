import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from storefront.security.tokens import TokenError, decode_token

log = logging.getLogger("storefront.identity")

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class IdentityException(Exception):
    pass


class InvalidCredential(IdentityException):
    pass


class PrincipalNotFound(IdentityException):
    pass


class AdminNotFound(IdentityException):
    pass


@dataclass(frozen=True)
class Principal:
    """
    Resolved caller.

    ``id_space`` says which table ``id`` belongs to: "user" when it is a
    users row (including an admin's mirror row), "admin" when an admin has
    no mirror yet and ``id`` is the admin's own id. Ownership of carts and
    orders is keyed on ``(id_space, id)`` so the two spaces never collide.
    """

    id: int
    email: str
    role: str
    id_space: str = ROLE_USER
    admin_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def owner_key(self):
        return self.id_space, self.id


class IdentityResolver:
    def __init__(self, uow):
        self.uow = uow

    def resolve(self, credential: str) -> Principal:
        try:
            claims = decode_token(credential)
        except TokenError as e:
            log.info(f"rejected credential: {e}")
            raise InvalidCredential("Invalid or expired token")

        subject = claims.get("id")
        if isinstance(subject, bool) or not isinstance(subject, int):
            log.info(f"rejected credential: subject id {subject!r} is not an integer")
            raise InvalidCredential("Invalid or expired token")

        role = claims.get("role")
        if role == ROLE_ADMIN:
            return self._resolve_admin(subject)
        if role in (None, ROLE_USER):
            return self._resolve_user(subject)
        log.info(f"rejected credential: unknown role claim {role!r}")
        raise InvalidCredential("Invalid or expired token")

    def _resolve_admin(self, admin_id: int) -> Principal:
        admin = self.uow.identities.get_admin(admin_id)
        if not admin:
            raise PrincipalNotFound("Account not found")
        try:
            mirror = self.uow.identities.get_mirror_user(admin.admin_id)
        except SQLAlchemyError:
            # the admin id is still a usable identity
            log.warning(f"mirror lookup failed for admin {admin.admin_id}", exc_info=True)
            mirror = None
        if mirror:
            return Principal(
                id=mirror.id,
                email=admin.email,
                role=ROLE_ADMIN,
                id_space=ROLE_USER,
                admin_id=admin.admin_id,
            )
        return Principal(
            id=admin.admin_id,
            email=admin.email,
            role=ROLE_ADMIN,
            id_space=ROLE_ADMIN,
            admin_id=admin.admin_id,
        )

    def _resolve_user(self, user_id: int) -> Principal:
        user = self.uow.identities.get_user(user_id)
        if not user:
            raise PrincipalNotFound("Account not found")
        return Principal(
            id=user.id,
            email=user.email,
            role=user.role if user.role in (ROLE_USER, ROLE_ADMIN) else ROLE_USER,
            id_space=ROLE_USER,
            admin_id=user.admin_id,
        )

    def link_admin_mirror(self, admin_id: int):
        """
        Create the users row that mirrors an admin, or link an existing user
        with the same email. Carts and orders created under the bare admin id
        stay where they are; they are counted and reported, not moved.
        """
        with self.uow.transaction():
            admin = self.uow.identities.get_admin(admin_id)
            if not admin:
                raise AdminNotFound(f"Admin {admin_id} not found")
            mirror = self.uow.identities.get_mirror_user(admin_id)
            if mirror:
                return mirror
            existing = self.uow.identities.get_user_by_email(admin.email)
            if existing and existing.admin_id is None:
                mirror = self.uow.identities.link_user_to_admin(existing, admin_id)
            else:
                mirror = self.uow.identities.create_user(
                    name=admin.name, email=admin.email, role=ROLE_ADMIN, admin_id=admin_id
                )

            orphaned_orders = self.uow.orders.count_by_owner(ROLE_ADMIN, admin_id)
            orphaned_cart = self.uow.carts.get_by_owner(ROLE_ADMIN, admin_id)
        if orphaned_orders or orphaned_cart:
            log.warning(
                f"admin {admin_id} now resolves to user {mirror.id}; "
                f"{orphaned_orders} order(s) and {1 if orphaned_cart else 0} cart "
                f"remain under the bare admin id"
            )
        log.info(f"linked admin {admin_id} to mirror user {mirror.id}")
        return mirror
