from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

import orjson


def _default(o: Any):
    # orjson handles datetime natively; Decimal prices and bare times need help.
    if isinstance(o, Decimal):
        return float(o)
    if isinstance(o, (datetime, date, time)):
        return o.isoformat()
    return str(o)


def dumps_bytes(obj: Any) -> bytes:
    return orjson.dumps(obj, option=orjson.OPT_NON_STR_KEYS, default=_default)


def loads(raw: bytes | str) -> Any:
    return orjson.loads(raw)
