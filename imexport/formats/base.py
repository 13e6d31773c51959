from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence, Type

from pydantic import BaseModel, ValidationError

from ..exceptions import CodecError


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def as_str(value: Any) -> Optional[str]:
    if _blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        # spreadsheet cells holding digits come back as floats
        value = int(value)
    return str(value).strip()


def as_int(value: Any) -> Optional[int]:
    if _blank(value):
        return None
    if isinstance(value, bool):
        raise ValueError(f"not an integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"not an integer: {value!r}")
        return int(value)
    return int(str(value).strip())


def as_float(value: Any) -> Optional[float]:
    if _blank(value):
        return None
    return float(str(value).strip()) if isinstance(value, str) else float(value)


_TRUE = {"1", "true", "yes", "y"}
_FALSE = {"0", "false", "no", "n"}


def as_bool(value: Any) -> Optional[bool]:
    if _blank(value):
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def render(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


@dataclass(frozen=True)
class Column:
    """Binds one file column (by position) to one record field."""

    header: str
    field: str
    parse: Callable[[Any], Any] = as_str
    format: Callable[[Any], Any] = render


@dataclass(frozen=True)
class RecordSchema:
    model: Type[BaseModel]
    columns: Sequence[Column]

    def headers(self) -> List[str]:
        return [c.header for c in self.columns]

    def check_headers(self, headers: Sequence[str] | None) -> List[str]:
        """Return ``headers`` (default: the column headers) if they line up one-to-one with the columns."""
        if headers is None:
            return self.headers()
        headers = list(headers)
        if len(headers) != len(self.columns):
            raise CodecError(f"{len(headers)} headers for {len(self.columns)} columns: {headers}")
        return headers

    def to_row(self, record: Any) -> List[Any]:
        return [c.format(getattr(record, c.field, None)) for c in self.columns]

    def from_row(self, values: Sequence[Any]) -> BaseModel:
        data = {}
        for i, column in enumerate(self.columns):
            raw = values[i] if i < len(values) else None
            try:
                data[column.field] = column.parse(raw)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"column '{column.header}': {exc}") from exc
        return self.model(**data)


class Codec:
    """Converts between bytes and ordered rows for one tabular format."""

    name: str = ""
    extension: str = ""
    content_type: str = "application/octet-stream"

    def encode_rows(self, rows: Iterable[Sequence[Any]], headers: Sequence[str], sheet_name: str | None = None) -> bytes:
        raise NotImplementedError

    def decode_rows(self, data: bytes) -> List[List[Any]]:
        """Return data rows in file order, header row excluded."""
        raise NotImplementedError

    def encode(self, records: Iterable[Any] | None, schema: RecordSchema, headers: Sequence[str] | None = None,
               sheet_name: str | None = None) -> bytes:
        headers = schema.check_headers(headers)
        rows = [schema.to_row(r) for r in (records or [])]
        try:
            return self.encode_rows(rows, headers, sheet_name=sheet_name)
        except CodecError:
            raise
        except Exception as exc:
            raise CodecError(f"{self.name} encode failed: {exc}") from exc

    def decode(self, data: bytes, schema: RecordSchema, headers: Sequence[str] | None = None) -> List[BaseModel]:
        width = len(schema.check_headers(headers))
        try:
            rows = self.decode_rows(data)
        except CodecError:
            raise
        except Exception as exc:
            raise CodecError(f"{self.name} decode failed: {exc}") from exc

        records = []
        for row_index, row in enumerate(rows, start=1):
            try:
                records.append(schema.from_row(list(row)[:width]))
            except (ValueError, ValidationError) as exc:
                raise CodecError(f"{self.name} decode failed at row {row_index}: {exc}") from exc
        return records
