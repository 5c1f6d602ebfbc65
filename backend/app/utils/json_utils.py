from typing import Any
from fastapi.encoders import jsonable_encoder
from .json import dumps_bytes as _json_dumps


def dumps(obj: Any) -> str:
    """Serialize pydantic models, datetimes and Decimals to a compact JSON string."""
    return _json_dumps(jsonable_encoder(obj)).decode("utf-8")
