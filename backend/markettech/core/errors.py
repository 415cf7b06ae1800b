"""
Structured application errors and their HTTP mapping

Routes raise AppError (usually through CommonErrors) or HTTPException;
the handlers registered here turn AppError and database failures into
JSON responses with a localized message.
"""
import logging
from enum import Enum
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from markettech.core.database import utcnow

logger = logging.getLogger(__name__)


class ErrorType(str, Enum):
    VALIDATION = "VALIDATION"
    AUTHENTICATION = "AUTHENTICATION"
    AUTHORIZATION = "AUTHORIZATION"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMIT = "RATE_LIMIT"
    FILE_UPLOAD = "FILE_UPLOAD"
    DATABASE = "DATABASE"


class AppError(Exception):
    """Error with a type, code and HTTP status"""

    def __init__(
        self,
        error_type: ErrorType,
        message: str,
        status_code: int = 500,
        details: Any = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.type = error_type
        self.message = message
        self.status_code = status_code
        self.details = details
        self.code = code
        self.timestamp = utcnow().isoformat()

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "type": self.type.value,
            "code": self.code,
            "details": self.details,
            "timestamp": self.timestamp,
        }


class CommonErrors:
    """Predefined errors shared by the routers"""

    @staticmethod
    def INVALID_INPUT(field: str, details: Any = None) -> AppError:
        return AppError(ErrorType.VALIDATION, f"Datos de entrada inválidos: {field}", 400, details, "INVALID_INPUT")

    @staticmethod
    def MISSING_REQUIRED_FIELD(field: str) -> AppError:
        return AppError(ErrorType.VALIDATION, f"Campo requerido faltante: {field}", 400, {"field": field}, "MISSING_REQUIRED_FIELD")

    @staticmethod
    def INVALID_FILE_TYPE(expected_types: list) -> AppError:
        return AppError(
            ErrorType.FILE_UPLOAD,
            f"Tipo de archivo no permitido. Tipos permitidos: {', '.join(expected_types)}",
            400,
            {"expectedTypes": expected_types},
            "INVALID_FILE_TYPE",
        )

    @staticmethod
    def INVALID_CREDENTIALS() -> AppError:
        return AppError(ErrorType.AUTHENTICATION, "Credenciales inválidas", 401, None, "INVALID_CREDENTIALS")

    @staticmethod
    def UNAUTHORIZED() -> AppError:
        return AppError(ErrorType.AUTHENTICATION, "Token de autorización requerido", 401, None, "UNAUTHORIZED")

    @staticmethod
    def FORBIDDEN() -> AppError:
        return AppError(ErrorType.AUTHORIZATION, "Acceso denegado", 403, None, "FORBIDDEN")

    @staticmethod
    def PRODUCT_NOT_FOUND(product_id: Any = None) -> AppError:
        return AppError(ErrorType.NOT_FOUND, "Producto no encontrado", 404, {"productId": product_id}, "PRODUCT_NOT_FOUND")

    @staticmethod
    def ORDER_NOT_FOUND(order_id: Any = None) -> AppError:
        return AppError(ErrorType.NOT_FOUND, "Pedido no encontrado", 404, {"orderId": order_id}, "ORDER_NOT_FOUND")

    @staticmethod
    def RATE_LIMIT_EXCEEDED(retry_after: Optional[int] = None) -> AppError:
        return AppError(ErrorType.RATE_LIMIT, "Demasiadas solicitudes. Intenta de nuevo más tarde.", 429, {"retryAfter": retry_after}, "RATE_LIMIT_EXCEEDED")

    @staticmethod
    def DB_OPERATION_FAILED(details: Any = None) -> AppError:
        return AppError(ErrorType.DATABASE, "Error en operación de base de datos", 500, details, "DB_OPERATION_FAILED")


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: [{exc.code}] {exc.message} {exc.details}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} [{exc.code}]")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    error = CommonErrors.DB_OPERATION_FAILED()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": "Datos de entrada inválidos",
            "type": ErrorType.VALIDATION.value,
            "code": "INVALID_INPUT",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
