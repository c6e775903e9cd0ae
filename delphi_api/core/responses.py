from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success(data: Any = None, message: str = "OK", meta: Optional[dict] = None, status_code: int = 200):
    body = {"success": True, "message": message, "data": data}
    if meta is not None:
        body["meta"] = meta
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def created(data: Any = None, message: str = "Created"):
    return success(data, message, status_code=201)


def listing(items: list, message: str = "OK", **meta):
    meta.setdefault("count", len(items))
    return success(items, message, meta=meta)
