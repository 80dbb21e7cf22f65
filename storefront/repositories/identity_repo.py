from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.models.admin import Admin
from storefront.models.user import User


class IdentityRepository:
    """Reads and writes over the two account tables: admins and users."""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def get_admin(self, admin_id: int) -> Optional[Admin]:
        return self.db.query(Admin).filter(Admin.admin_id == admin_id).first()

    def get_admin_by_email(self, email: str) -> Optional[Admin]:
        return self.db.query(Admin).filter(Admin.email == email).first()

    def get_mirror_user(self, admin_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.admin_id == admin_id).first()

    def create_admin(self, name: str, email: str) -> Admin:
        a = Admin(name=name, email=email)
        self.db.add(a)
        self.db.flush()
        return a

    def create_user(
        self, name: str, email: str, role: str = "user", admin_id: Optional[int] = None
    ) -> User:
        u = User(name=name, email=email, role=role, admin_id=admin_id)
        self.db.add(u)
        self.db.flush()
        return u

    def link_user_to_admin(self, user: User, admin_id: int) -> User:
        user.admin_id = admin_id
        user.role = "admin"
        self.db.flush()
        return user

    def count_customers(self) -> int:
        return (
            self.db.query(func.count(User.id)).filter(User.role == "user").scalar() or 0
        )
