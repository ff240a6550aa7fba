"""
JSON envelope for endpoints that surface a notice.

A destructive notice means the store call failed; it is answered with
502 so clients can tell it apart from validation errors (400).
"""
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.application.notices import Notice


def notice_response(notice: Notice | None, **payload) -> JSONResponse:
    failed = notice is not None and notice.variant == "destructive"
    body = {
        "success": not failed,
        "notice": notice.to_dict() if notice else None,
        **payload,
    }
    return JSONResponse(jsonable_encoder(body), status_code=502 if failed else 200)
