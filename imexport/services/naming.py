from datetime import datetime
from typing import List, Optional, Sequence

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
ERROR_HEADERS = ["rowIndex", "errorMessage"]


def timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def export_file_name(base: str, extension: str, now: Optional[datetime] = None) -> str:
    return f"{base}_{timestamp(now)}.{extension}"


def error_file_name(business_type: str, extension: str, now: Optional[datetime] = None) -> str:
    return f"error_{business_type}_{timestamp(now)}.{extension}"


def template_file_name(base: str, extension: str) -> str:
    return f"{base}_template.{extension}"


def timestamped_template_file_name(base: str, extension: str, now: Optional[datetime] = None) -> str:
    return f"{base}_template_{timestamp(now)}.{extension}"


def build_error_headers(headers: Sequence[str]) -> List[str]:
    return ERROR_HEADERS + list(headers)
