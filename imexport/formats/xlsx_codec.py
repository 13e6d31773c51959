import io
import re
from typing import Any, Iterable, List, Sequence

from openpyxl import Workbook, load_workbook

from .base import Codec

# Excel caps sheet titles at 31 characters
MAX_SHEET_TITLE = 31
INVALID_TITLE_CHARS = re.compile(r"[\[\]:*?/\\]")


class XlsxCodec(Codec):
    name = "xlsx"
    extension = "xlsx"
    content_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

    def encode_rows(self, rows: Iterable[Sequence[Any]], headers: Sequence[str], sheet_name: str | None = None) -> bytes:
        wb = Workbook()
        ws = wb.active
        if sheet_name:
            ws.title = INVALID_TITLE_CHARS.sub("_", sheet_name)[:MAX_SHEET_TITLE]
        ws.append(list(headers))
        for row in rows:
            ws.append(list(row))
        out = io.BytesIO()
        wb.save(out)
        return out.getvalue()

    def decode_rows(self, data: bytes) -> List[List[Any]]:
        wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        try:
            ws = wb.worksheets[0]
            rows = []
            for i, values in enumerate(ws.iter_rows(values_only=True)):
                if i == 0:
                    continue
                if all(v is None or (isinstance(v, str) and not v.strip()) for v in values):
                    continue
                rows.append(list(values))
            return rows
        finally:
            wb.close()
