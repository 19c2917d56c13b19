"""Clock-derived operator access codes.

A code is the current wall-clock minute in the configured timezone rendered as
``yyyyMMddHHmm``; codes within a small window either side are accepted.
"""
from datetime import datetime, timedelta
from typing import List, Optional
from zoneinfo import ZoneInfo

CODE_FORMAT = "%Y%m%d%H%M"
CODE_LENGTH = 12


def is_valid_code_format(code: Optional[str]) -> bool:
    if not code or len(code) != CODE_LENGTH or not code.isdigit():
        return False
    try:
        datetime.strptime(code, CODE_FORMAT)
    except ValueError:
        return False
    return True


def expected_codes(now: datetime, tolerance_minutes: int) -> List[str]:
    return [
        (now + timedelta(minutes=offset)).strftime(CODE_FORMAT)
        for offset in range(-tolerance_minutes, tolerance_minutes + 1)
    ]


def verify_access_code(
    code: Optional[str],
    tz_name: str,
    tolerance_minutes: int = 2,
    now: Optional[datetime] = None,
) -> bool:
    if not is_valid_code_format(code):
        return False
    current = now or datetime.now(ZoneInfo(tz_name))
    return code in expected_codes(current, tolerance_minutes)
