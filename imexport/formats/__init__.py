from ..exceptions import CodecError
from .base import Codec, Column, RecordSchema, as_bool, as_float, as_int, as_str
from .csv_codec import CsvCodec
from .xlsx_codec import XlsxCodec

_CODECS = {
    "csv": CsvCodec,
    "xlsx": XlsxCodec,
}


def get_codec(file_format: str) -> Codec:
    try:
        return _CODECS[file_format.lower()]()
    except KeyError:
        raise CodecError(f"Unsupported file format: {file_format}") from None


def supported_formats():
    return sorted(_CODECS)


__all__ = [
    "Codec", "Column", "RecordSchema", "CsvCodec", "XlsxCodec",
    "as_bool", "as_float", "as_int", "as_str", "get_codec", "supported_formats",
]
