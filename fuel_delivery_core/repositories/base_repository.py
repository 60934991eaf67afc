"""
Base repository implementation with common functionality for all repositories.

Every method of a tenant-scoped repository takes ``tenant_id`` as its first
positional argument and filters on it, so a query can never be issued
without a tenant scope.
"""

from contextlib import contextmanager
from typing import Any, Dict, Generic, List, NoReturn, Optional, Type, TypeVar

from sqlalchemy import asc, desc, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..context.service_decorators import is_serialization_failure
from ..exceptions import BaseError, ErrorCode, RepositoryError, duplicate, not_found
from ..utils.logger import ContextAwareLogger, get_logger

# Type variable for entity models
T = TypeVar("T")


class BaseRepository(Generic[T]):
    """Base repository with common functionality for all repositories."""

    def __init__(
        self,
        session: Session,
        entity_class: Type[T],
        logger: Optional[ContextAwareLogger] = None,
    ):
        """
        Initialize the base repository.

        Args:
            session: SQLAlchemy session for database operations
            entity_class: SQLAlchemy model class this repository handles
            logger: Optional logger instance
        """
        self.session = session
        self.entity_class = entity_class
        self.logger = logger or get_logger()
        self.entity_name = entity_class.__name__

    def _handle_db_error(
        self,
        e: Exception,
        operation_name: str,
        entity_id: Optional[str] = None,
        **context: Any,
    ) -> NoReturn:
        """
        Map a database error onto the package exception hierarchy.

        Args:
            e: The original exception
            operation_name: Name of the operation that failed
            entity_id: Optional entity ID involved in the operation
            **context: Additional context for the error

        Raises:
            RepositoryError or DomainError: With appropriate error code and context
        """
        # Package errors raised inside the block keep their meaning
        if isinstance(e, BaseError):
            raise e

        error_context = {
            "operation_name": operation_name,
            "entity_type": self.entity_name,
            **context,
        }
        if entity_id:
            error_context["entity_id"] = entity_id

        if is_serialization_failure(e):
            raise RepositoryError(
                f"Serialization failure in {operation_name} for {self.entity_name}",
                error_code=ErrorCode.SERIALIZATION_FAILURE,
                cause=e,
                **error_context,
            )

        if isinstance(e, IntegrityError):
            error_message = str(e.orig).lower() if hasattr(e, "orig") else str(e).lower()

            if "foreign key constraint" in error_message:
                self.logger.warning(
                    f"Foreign key constraint violation in {operation_name}: {str(e)}",
                    extra=error_context,
                )
                raise RepositoryError(
                    f"Invalid tenant or reference in {self.entity_name}: {str(e)}",
                    error_code=ErrorCode.CONSTRAINT_VIOLATION,
                    cause=e,
                    **error_context,
                )

            elif "unique constraint" in error_message or "duplicate" in error_message:
                self.logger.warning(
                    f"Duplicate {self.entity_name} in {operation_name}: {str(e)}",
                    extra=error_context,
                )
                raise duplicate(
                    resource_type=self.entity_name,
                    cause=e,
                    **error_context,
                )

            else:
                self.logger.error(
                    f"Integrity constraint violation in {operation_name}: {str(e)}",
                    extra=error_context,
                )
                raise RepositoryError(
                    f"Database constraint violation for {self.entity_name}: {str(e)}",
                    error_code=ErrorCode.CONSTRAINT_VIOLATION,
                    cause=e,
                    **error_context,
                )

        elif isinstance(e, SQLAlchemyError):
            self.logger.error(
                f"Database error in {operation_name}: {str(e)}",
                extra=error_context,
            )
            raise RepositoryError(
                f"Database error for {self.entity_name}: {str(e)}",
                error_code=ErrorCode.DATABASE_ERROR,
                cause=e,
                **error_context,
            )

        else:
            self.logger.error(
                f"Unexpected error in {operation_name}: {str(e)}",
                extra=error_context,
            )
            raise RepositoryError(
                f"Unexpected error for {self.entity_name}: {str(e)}",
                error_code=ErrorCode.INTERNAL_ERROR,
                cause=e,
                **error_context,
            )

    @contextmanager
    def _session_operation(
        self, operation_name: str, entity_id: Optional[str] = None, is_read_only: bool = False
    ):
        """
        Context manager for operations on the shared session with error handling.

        The repository never commits or rolls back; the service's unit of work
        does. Write operations flush so constraint violations surface here.

        Yields:
            The existing session

        Raises:
            RepositoryError: If there's a database error
        """
        try:
            yield self.session
            if not is_read_only:
                self.session.flush()
        except Exception as e:
            self._handle_db_error(e, operation_name, entity_id)

    @staticmethod
    def _apply_pagination(query, limit: int = 100, offset: int = 0):
        return query.offset(offset).limit(limit)

    def _apply_ordering(self, query, sort_by: Optional[str] = None, sort_direction: str = "desc"):
        """
        Apply ordering to a query. Default sort is by created_at.
        """
        sort_field = getattr(self.entity_class, sort_by or "created_at")

        if sort_direction.lower() == "asc":
            return query.order_by(asc(sort_field), asc(self.entity_class.id))
        return query.order_by(desc(sort_field), desc(self.entity_class.id))


class TenantScopedRepository(BaseRepository[T]):
    """
    Repository for rows owned by a tenant.

    ``tenant_id`` is a required positional argument of every public method.
    """

    def _scoped(self, tenant_id: str, *criteria):
        if not tenant_id:
            raise RepositoryError(
                f"Refusing unscoped {self.entity_name} query",
                error_code=ErrorCode.PRECONDITION_FAILED,
            )
        return select(self.entity_class).where(
            self.entity_class.tenant_id == tenant_id, *criteria
        )

    def get_by_id(self, tenant_id: str, entity_id: str, for_update: bool = False) -> Optional[T]:
        """
        Get an entity of this tenant by its ID.

        Args:
            tenant_id: Owning tenant
            entity_id: The entity's ID
            for_update: Lock the row until the unit of work ends

        Returns:
            The entity or None if it does not exist in this tenant
        """
        with self._session_operation("get_by_id", entity_id, is_read_only=True) as session:
            query = self._scoped(tenant_id, self.entity_class.id == entity_id)
            if for_update:
                query = query.with_for_update()
            return session.execute(query).scalar_one_or_none()

    def get_or_404(self, tenant_id: str, entity_id: str, for_update: bool = False) -> T:
        entity = self.get_by_id(tenant_id, entity_id, for_update=for_update)
        if entity is None:
            raise not_found(self.entity_name, id=entity_id)
        return entity

    def add(self, tenant_id: str, **fields: Any) -> T:
        """Create a row stamped with the given tenant and flush it."""
        fields.pop("tenant_id", None)
        with self._session_operation("add") as session:
            entity = self.entity_class(tenant_id=tenant_id, **fields)
            session.add(entity)
        self.logger.debug(
            f"Created {self.entity_name}",
            extra={"tenant_id": tenant_id, "entity_id": entity.id},
        )
        return entity

    def update(self, tenant_id: str, entity: T, changes: Dict[str, Any]) -> T:
        """Apply field changes to a row of this tenant and flush them."""
        if entity.tenant_id != tenant_id:
            raise not_found(self.entity_name, id=entity.id)
        with self._session_operation("update", entity.id):
            for field, value in changes.items():
                if field in ("id", "tenant_id"):
                    continue
                setattr(entity, field, value)
        return entity

    def delete(self, tenant_id: str, entity: T) -> None:
        if entity.tenant_id != tenant_id:
            raise not_found(self.entity_name, id=entity.id)
        entity_id = entity.id
        with self._session_operation("delete", entity_id) as session:
            session.delete(entity)
        self.logger.info(
            f"Deleted {self.entity_name} with ID: {entity_id}",
            extra={"tenant_id": tenant_id, "entity_id": entity_id, "entity_type": self.entity_name},
        )

    def list(
        self,
        tenant_id: str,
        *criteria,
        limit: int = 100,
        offset: int = 0,
        sort_by: Optional[str] = None,
        sort_direction: str = "desc",
    ) -> List[T]:
        with self._session_operation("list", is_read_only=True) as session:
            query = self._apply_ordering(self._scoped(tenant_id, *criteria), sort_by, sort_direction)
            query = self._apply_pagination(query, limit, offset)
            return list(session.execute(query).scalars().all())

    def count(self, tenant_id: str, *criteria) -> int:
        with self._session_operation("count", is_read_only=True) as session:
            query = select(func.count()).select_from(self._scoped(tenant_id, *criteria).subquery())
            return int(session.execute(query).scalar_one())

    def exists(self, tenant_id: str, *criteria) -> bool:
        return self.count(tenant_id, *criteria) > 0
