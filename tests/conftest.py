from pathlib import Path
import sys
import threading
from typing import List, Optional

import pytest
from pydantic import BaseModel

sys.path.append(str(Path(__file__).resolve().parents[1]))

from imexport.formats import Column, CsvCodec, RecordSchema, as_int
from imexport.services import registry
from imexport.services.observer import PipelineObserver
from imexport.services.pipeline import Pipeline
from imexport.services.providers import ExportProvider, RowProcessor, TemplateProvider
from imexport.storage.blobs import InMemoryBlobStorage
from imexport.storage.repo import InMemoryTaskRepo


class Item(BaseModel):
    name: Optional[str] = None
    qty: Optional[int] = None


ITEM_SCHEMA = RecordSchema(
    model=Item,
    columns=(Column("Name", "name"), Column("Qty", "qty", parse=as_int)),
)


class ItemProcessor(RowProcessor):
    """Rejects rows whose name is listed in ``bad_names``; records every sink call."""

    schema = ITEM_SCHEMA

    def __init__(self, business_type="items", bad_names=(), sink_error=None):
        self.business_type = business_type
        self.bad_names = set(bad_names)
        self.sink_error = sink_error
        self.batches: List[List[Item]] = []
        self.seen: List[int] = []
        self._lock = threading.Lock()

    def validate_row(self, record, row_index):
        with self._lock:
            self.seen.append(row_index)
        if record.name in self.bad_names:
            return f"bad name {record.name}"
        return None

    def process_valid_rows(self, records):
        if self.sink_error:
            raise self.sink_error
        self.batches.append(list(records))


class ItemExporter(ExportProvider):
    business_type = "items"
    schema = ITEM_SCHEMA
    export_file_name = "items"

    def __init__(self, records=None, error=None):
        self.records = records
        self.error = error
        self.params = []

    def query_export_data(self, params):
        self.params.append(params)
        if self.error:
            raise self.error
        return self.records


class ItemTemplate(TemplateProvider):
    business_type = "items"
    schema = ITEM_SCHEMA
    template_file_name = "items"


class Interrupt(BaseException):
    """Stands in for SystemExit or a worker time limit."""


class BrokenObserver(PipelineObserver):
    def task_created(self, task):
        raise RuntimeError("observer down")

    def row_classified(self, task_id, row_index, error):
        raise RuntimeError("observer down")

    def task_finalized(self, task_id, status, error_message=None):
        raise RuntimeError("observer down")


class RecordingStorage(InMemoryBlobStorage):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.puts = []

    def put(self, data, name, content_type):
        ref = super().put(data, name, content_type)
        self.puts.append((name, content_type, ref))
        return ref


def items_csv(names) -> bytes:
    rows = [[n, i] for i, n in enumerate(names, start=1)]
    return CsvCodec().encode_rows(rows, ITEM_SCHEMA.headers())


@pytest.fixture
def repo():
    return InMemoryTaskRepo()


@pytest.fixture
def storage():
    return RecordingStorage(bucket="test", public_base_url="https://files.test", secret="s3cret")


@pytest.fixture
def pipeline(repo, storage):
    return Pipeline(repo, storage, default_format="csv")


@pytest.fixture
def registered(monkeypatch):
    """Register item wiring for the duration of one test; returns (exporter, processor)."""
    exporter, processor = ItemExporter([Item(name="a", qty=1)]), ItemProcessor(bad_names={"bad"})
    monkeypatch.setitem(registry._exporters, "items", exporter)
    monkeypatch.setitem(registry._processors, "items", processor)
    return exporter, processor
