"""Repository for tenant users."""

from typing import Optional

from ..db.db_user_models import User
from .base_repository import TenantScopedRepository


class UserRepository(TenantScopedRepository[User]):
    def __init__(self, session, logger=None):
        super().__init__(session, User, logger)

    def get_by_email(self, tenant_id: str, email: str) -> Optional[User]:
        with self._session_operation("get_by_email", is_read_only=True) as session:
            query = self._scoped(tenant_id, User.email == email.lower())
            return session.execute(query).scalar_one_or_none()
