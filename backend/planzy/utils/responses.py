from typing import Any


def success_response(data: Any, msg: str = "ok", code: int = 0) -> dict[str, Any]:
    """Wrap a payload in the ``{code, msg, data}`` envelope used by every route."""
    return {"code": code, "msg": msg, "data": data}


def error_response(msg: str, code: int = 14000, data: Any = None) -> dict[str, Any]:
    return {"code": code, "msg": msg, "data": data}
