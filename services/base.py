import logging
from typing import Any, Optional

from pydantic import BaseModel

from api_client import ApiError

logger = logging.getLogger(__name__)


class ServiceResult(BaseModel):
    success: bool
    data: Any = None
    error: Optional[str] = None
    pagination: Optional[dict] = None
    status_code: Optional[int] = None


def error_message(error: Exception, default: str) -> str:
    if isinstance(error, ApiError) and error.message:
        return error.message
    return str(error) or default


class BaseService:
    name = "Service"

    def __init__(self, client):
        self.client = client

    def _call(self, action, request, default_error, empty=None, with_pagination=False, unwrap=True):
        # Payloads come wrapped as {"data": ..., "pagination": ...}
        try:
            body = request()
        except ApiError as e:
            logger.error(f"[{self.name}] Error {action}: {e}")
            return self._failed(error_message(e, default_error), empty, e.status_code)

        if body is None:
            body = {}
        if not isinstance(body, dict):
            logger.error(f"[{self.name}] Error {action}: unexpected response {type(body).__name__}")
            return self._failed(default_error, empty)

        result = ServiceResult(success=True, data=body.get("data") if unwrap else body)
        if with_pagination:
            result.pagination = body.get("pagination")
        return result

    @staticmethod
    def _failed(error, empty, status_code=None):
        return ServiceResult(
            success=False,
            error=error,
            data=empty() if callable(empty) else empty,
            status_code=status_code,
        )
