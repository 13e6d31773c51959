import csv
import io
from typing import Any, Iterable, List, Sequence

from ..exceptions import CodecError
from .base import Codec


class CsvCodec(Codec):
    name = "csv"
    extension = "csv"
    content_type = "text/csv"

    def __init__(self, encoding: str = "utf-8", delimiter: str = ","):
        self.encoding = encoding
        self.delimiter = delimiter

    def encode_rows(self, rows: Iterable[Sequence[Any]], headers: Sequence[str], sheet_name: str | None = None) -> bytes:
        buf = io.StringIO()
        writer = csv.writer(buf, delimiter=self.delimiter, lineterminator="\n")
        writer.writerow(list(headers))
        for row in rows:
            writer.writerow(["" if v is None else v for v in row])
        return buf.getvalue().encode(self.encoding)

    def decode_rows(self, data: bytes) -> List[List[Any]]:
        # utf-8-sig drops the BOM spreadsheet tools prepend on save
        encoding = "utf-8-sig" if self.encoding.lower().replace("_", "-") == "utf-8" else self.encoding
        try:
            text = data.decode(encoding)
        except UnicodeDecodeError as exc:
            raise CodecError(f"csv decode failed: {exc}") from exc

        reader = csv.reader(io.StringIO(text, newline=""), delimiter=self.delimiter)
        rows = list(reader)
        if not rows:
            return []
        return [row for row in rows[1:] if any(cell.strip() for cell in row)]
