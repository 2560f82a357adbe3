"""
Response envelopes shared by all routers.

Success: ``{"success": true, "data": ...}``
Failure: ``{"success": false, "error": {"type", "message", ...}}`` with a
status code chosen from the error kind.
"""

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from herdpulse.utils.result import Result

ERROR_STATUS_CODES = {
    "ValidationError": 400,
    "PeriodError": 400,
    "DataInsufficientError": 422,
    "MetricError": 422,
    "CalculationError": 422,
    "InfraError": 500,
}


def error_response(error: BaseModel) -> JSONResponse:
    status_code = ERROR_STATUS_CODES.get(getattr(error, "type", ""), 500)
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error.model_dump(mode="json")},
    )


def result_response(result: Result[Any, Any]) -> Any:
    """Unwrap a service result into the API envelope."""
    if not result.ok:
        return error_response(result.error)
    return {"success": True, "data": result.value.model_dump(mode="json")}
