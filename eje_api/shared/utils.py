# eje_api/shared/utils.py
import re
from datetime import datetime, timezone
from typing import Optional

CUIJ_NUMBER_YEAR = re.compile(r"(\d+)(?:-\d+)?/(\d{4})")
CUIJ_PREFIX = re.compile(r"^(IPP|EXP|INC)\s+", re.IGNORECASE)


def utcnow() -> datetime:
    """Naive UTC timestamp; every DateTime column stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_cuij(cuij: Optional[str]) -> Optional[dict]:
    """
    'EXP J-01-00015050-5/2021-0' -> {"numero": 15050, "anio": 2021}
    The check digit between the number and the slash is skipped.
    """
    if not cuij:
        return None
    m = CUIJ_NUMBER_YEAR.search(cuij)
    if not m:
        return None
    return {"numero": int(m.group(1)), "anio": int(m.group(2))}


def clean_cuij_for_search(cuij: Optional[str]) -> str:
    if not cuij:
        return ""
    return CUIJ_PREFIX.sub("", cuij).strip()


def sanitize_params(params: dict) -> dict:
    """Drop None/empty values and trim strings."""
    out = {}
    for k, v in params.items():
        if v is None or v == "":
            continue
        if isinstance(v, str):
            v = v.strip()
            if not v:
                continue
        out[k] = v
    return out
