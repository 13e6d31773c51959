from urllib.parse import parse_qs, urlparse

import pytest

from conftest import ItemTemplate
from imexport.exceptions import CodecError
from imexport.formats import CsvCodec, XlsxCodec
from imexport.storage.blobs import verify_signature


def test_template_is_header_only(pipeline, storage, repo):
    ref = pipeline.generate_template(ItemTemplate(), file_format="xlsx")

    name, content_type, _ = storage.puts[-1]
    assert name == "items_template.xlsx"
    assert content_type == XlsxCodec.content_type
    assert XlsxCodec().decode_rows(storage.get(ref)) == []
    assert repo.list() == []


def test_csv_template_header(pipeline, storage):
    ref = pipeline.generate_template(ItemTemplate())
    assert storage.get(ref) == b"Name,Qty\n"
    assert CsvCodec().decode_rows(storage.get(ref)) == []


def test_template_download_url_is_signed(pipeline, storage):
    url = pipeline.generate_template_download_url(ItemTemplate(), ttl_seconds=120)

    name, _, ref = storage.puts[-1]
    assert name.startswith("items_template_") and name.endswith(".csv")
    parsed = urlparse(url)
    assert url.startswith("https://files.test/test/")
    assert parsed.path.endswith("/" + name)
    query = parse_qs(parsed.query)
    expires = int(query["expires"][0])
    signature = query["signature"][0]
    assert verify_signature(ref.split("://", 1)[1], expires, signature, secret="s3cret")
    assert not verify_signature(ref.split("://", 1)[1], expires, signature, secret="other")


def test_template_rejects_headers_out_of_line_with_columns(pipeline, storage):
    class Mislabelled(ItemTemplate):
        def headers(self):
            return ["Name"]

    with pytest.raises(CodecError):
        pipeline.generate_template(Mislabelled())
    assert storage.puts == []
