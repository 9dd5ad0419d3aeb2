"""
Typed failures raised by the service layer.

Routes never catch these; ``register_exception_handlers`` maps each one to an
HTTP status so the same services can be used in-process or behind the API.
"""
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class ServiceError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class DuplicateKeyError(ServiceError):
    status_code = 409

    def __init__(self, entity: str, field: str, value: Any):
        super().__init__(f"{entity} with this {field.replace('_', ' ')} already exists")
        self.entity = entity
        self.field = field
        self.value = value


class InvalidTransitionError(ServiceError):
    status_code = 409

    def __init__(self, entity: str, current: Optional[str], target: str):
        super().__init__(f"Cannot change {entity} status from {current} to {target}")
        self.entity = entity
        self.current = current
        self.target = target


class InvalidFieldError(ServiceError):
    status_code = 422

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
