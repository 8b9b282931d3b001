"""
app/api/responses.py

Purpose: Response emission

- JSON success responses (ObjectId and datetime aware)
- 204 No Content responses
- Problem documents (status, title, detail)
"""

from typing import Any, Optional

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from app.schemas.response import ProblemDetail

PROBLEM_MEDIA_TYPE = "application/problem+json"


def encode(body: Any) -> Any:
    """Converts a document into JSON-compatible data."""
    return jsonable_encoder(body, custom_encoder={ObjectId: str})


def problem_response(status_code: int, title: str, detail: Optional[str] = None, errors: Any = None) -> Response:
    problem =ProblemDetail(status=status_code, title=title, detail=detail, errors=errors)
    return JSONResponse(
        status_code=status_code,
        content=encode(problem.model_dump(exclude_none=True)),
        media_type=PROBLEM_MEDIA_TYPE
    )


class Responder:
    """
    Builds the responses handlers emit.
    
    Handlers never construct responses themselves, so the wire format
    of successes and problems lives in one place.
    """
    
    def problem(self, status_code: int, title: str, detail: Optional[str] = None) -> Response:
        return problem_response(status_code, title, detail)
    
    def json(self, status_code: int, body: Any = None) -> Response:
        if status_code == 204:
            return Response(status_code=204)
        return JSONResponse(status_code=status_code, content=encode(body))
