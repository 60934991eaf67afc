"""
Tenant users: the actors of every mutation and the drivers of orders.

Authentication happens outside the core; callers look up the authenticated
user here to obtain an Actor.
"""

from typing import Any, Mapping, Optional, Union

from ..context.operation_context import operation
from ..context.service_decorators import handle_service_errors, transactional
from ..context.tenant_context import TenantContext
from ..exceptions import duplicate
from ..repositories.user_repository import UserRepository
from ..schemas.user_schema import Actor, UserCreate, UserRead
from .base_service import SessionManagedService


class UserService(SessionManagedService):
    def __init__(self, session=None, logger=None):
        super().__init__(session=session, logger=logger)
        self.repository = UserRepository(self.session, self.logger)

    @operation()
    @transactional()
    @handle_service_errors()
    def create_user(
        self, tenant: TenantContext, user_data: Union[UserCreate, Mapping[str, Any]]
    ) -> UserRead:
        user_data = self._validate(UserCreate, user_data)
        if self.repository.get_by_email(tenant.tenant_id, user_data.email) is not None:
            raise duplicate("User", email=user_data.email)
        user = self.repository.add(tenant.tenant_id, **user_data.model_dump())
        return self._to_read(UserRead, user)

    @operation()
    def get_user(self, tenant: TenantContext, user_id: str) -> UserRead:
        return self._to_read(UserRead, self.repository.get_or_404(tenant.tenant_id, user_id))

    def get_actor(
        self, tenant: TenantContext, user_id: str, ip_address: Optional[str] = None
    ) -> Actor:
        """Actor for a user of this tenant; a user of another tenant is not found."""
        return Actor.from_user(self.get_user(tenant, user_id), ip_address=ip_address)
