"""
Tests for the error types and exception handlers

Author: TM3
Date: 2026-02-09
"""
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from markettech.core.errors import AppError, CommonErrors, ErrorType
from markettech.repositories.product_repository import ProductRepository


class TestAppError:

    def test_to_dict(self):
        error = CommonErrors.ORDER_NOT_FOUND(42)

        data = error.to_dict()

        assert data["detail"] == "Pedido no encontrado"
        assert data["type"] == "NOT_FOUND"
        assert data["code"] == "ORDER_NOT_FOUND"
        assert data["details"] == {"orderId": 42}
        assert data["timestamp"]

    def test_status_codes(self):
        assert CommonErrors.UNAUTHORIZED().status_code == 401
        assert CommonErrors.FORBIDDEN().status_code == 403
        assert CommonErrors.DB_OPERATION_FAILED().status_code == 500
        assert CommonErrors.RATE_LIMIT_EXCEEDED(30).details == {"retryAfter": 30}
        assert isinstance(CommonErrors.PRODUCT_NOT_FOUND(1), AppError)


class TestExceptionHandlers:

    def test_app_error_response(self, client):
        response = client.get("/api/v1/products/9999")

        assert response.status_code == 404
        assert response.json()["code"] == "PRODUCT_NOT_FOUND"
        assert response.json()["type"] == ErrorType.NOT_FOUND.value

    def test_validation_errors_become_400(self, client):
        response = client.get("/api/v1/shipping/calculate?orderTotal=abc")

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "INVALID_INPUT"
        assert data["errors"][0]["loc"] == ["query", "orderTotal"]

    def test_database_errors_become_500(self, client):
        failure = OperationalError("SELECT 1", {}, Exception("connection lost"))
        with patch.object(ProductRepository, "find_by_id", side_effect=failure):
            response = client.get("/api/v1/products/1")

        assert response.status_code == 500
        data = response.json()
        assert data["code"] == "DB_OPERATION_FAILED"
        assert data["type"] == ErrorType.DATABASE.value
        assert "connection lost" not in data["detail"]
