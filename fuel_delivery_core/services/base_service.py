"""
Base service implementation with common functionality for all services.

Services own (or borrow) one SQLAlchemy session. Repositories and
collaborating services built by a service share that session, so everything
a public method does lands in the same unit of work.
"""

from typing import Any, List, Mapping, NoReturn, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ..db.db_config import get_db_manager
from ..exceptions import ErrorCode, ServiceError, from_pydantic
from ..utils.logger import ContextAwareLogger, get_logger

TSchema = TypeVar("TSchema", bound=BaseModel)


class SessionManagedService:
    """
    Service that owns or borrows a database session.

    Pass ``session`` to share a unit of work with other services (and in
    tests); otherwise a fresh session is taken from the global database
    manager and closed by ``close()``.
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        logger: Optional[ContextAwareLogger] = None,
    ):
        if session is not None:
            self.session = session
            self._owns_session = False
        else:
            self.session = get_db_manager().new_session()
            self._owns_session = True
        self.logger = logger or get_logger()

    def _handle_service_exception(
        self, operation: str, exception: Exception, entity_id: Optional[str] = None
    ) -> NoReturn:
        """
        Log an unexpected exception and re-raise it as a ServiceError.

        Args:
            operation: Operation being performed
            exception: Exception that occurred
            entity_id: Optional ID of the entity involved
        """
        error_msg = f"Error in {operation}: {str(exception)}"
        self.logger.error(
            error_msg,
            extra={
                "operation": operation,
                "entity_id": entity_id,
                "error_type": type(exception).__name__,
                "error_details": str(exception),
            },
        )
        raise ServiceError(
            error_msg,
            error_code=ErrorCode.INTERNAL_ERROR,
            operation=operation,
            entity_id=entity_id,
            cause=exception,
        ) from exception

    @staticmethod
    def _validate(schema_class: Type[TSchema], data: Union[TSchema, Mapping[str, Any]]) -> TSchema:
        """Accept a schema instance or a raw mapping; pydantic errors become ValidationError."""
        if isinstance(data, schema_class):
            return data
        try:
            return schema_class.model_validate(data)
        except PydanticValidationError as e:
            raise from_pydantic(e, schema_class.__name__) from e

    @staticmethod
    def _to_read(schema_class: Type[TSchema], entity: Any) -> TSchema:
        return schema_class.model_validate(entity)

    @staticmethod
    def _to_reads(schema_class: Type[TSchema], entities: List[Any]) -> List[TSchema]:
        return [schema_class.model_validate(e) for e in entities]

    def rollback(self):
        """Manually rollback the current transaction."""
        self.session.rollback()

    def close(self):
        """Close the session if we own it."""
        if self._owns_session and self.session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.rollback()
        self.close()
