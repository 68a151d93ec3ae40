"""
Domain errors raised by the services.

Each carries the HTTP status the API answers with; ``main`` registers a
single handler that renders them as ``{"detail": ...}`` like HTTPException.
"""
from typing import Any, Mapping, Optional


class EatMeError(Exception):
    http_status = 400

    def __init__(self, message: str = "Request failed", details: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"detail": self.message}
        if self.details:
            payload["errors"] = dict(self.details)
        return payload

    def __str__(self) -> str:
        return self.message


class NotFoundError(EatMeError):
    http_status = 404


class ConflictError(EatMeError):
    http_status = 409


class ServiceValidationError(EatMeError):
    http_status = 422


class IngredientNotFoundError(NotFoundError):
    pass


class AliasNotFoundError(NotFoundError):
    pass


class DishNotFoundError(NotFoundError):
    pass


class RestaurantNotFoundError(NotFoundError):
    pass


class DishCategoryNotFoundError(NotFoundError):
    pass


class DuplicateIngredientError(ConflictError):
    pass


class IngredientInUseError(ConflictError):
    """Canonical ingredient still linked from dishes; deleting it would orphan derived attributes."""


class DishValidationError(ServiceValidationError):
    """Dish draft failed validation; nothing was written."""


class NearbySearchError(EatMeError):
    """The hosted nearby-restaurant function failed or returned garbage."""
    http_status = 502
