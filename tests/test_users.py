import pytest

from imexport.business.users import (
    USER_SCHEMA, UserExportProvider, UserImportProcessor, UserRecord, UserRepository, UserTemplateProvider,
)
from imexport.formats import CsvCodec


@pytest.fixture
def processor():
    return UserImportProcessor(UserRepository())


def valid_user(**kw):
    data = dict(username="testuser", email="test@example.com", phone="13800138000", age=25, department="R&D")
    data.update(kw)
    return UserRecord(**data)


def test_valid_user_passes(processor):
    assert processor.validate_row(valid_user(), 1) is None
    assert processor.validate_row(valid_user(phone=None, age=None, department=None), 1) is None


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"username": None}, "Username is required"),
        ({"username": "u" * 51}, "Username must be at most 50 characters"),
        ({"email": None}, "Email is required"),
        ({"email": "invalid-email"}, "Email is malformed"),
        ({"phone": "12345"}, "Phone number is malformed"),
        ({"age": 151}, "Age must be between 0 and 150"),
        ({"age": -1}, "Age must be between 0 and 150"),
    ],
)
def test_invalid_users(processor, overrides, message):
    assert processor.validate_row(valid_user(**overrides), 2) == message


def test_headers_follow_field_order():
    assert UserTemplateProvider().headers() == ["Username", "Email", "Phone", "Age", "Department"]
    assert USER_SCHEMA.to_row(valid_user()) == ["testuser", "test@example.com", "13800138000", 25, "R&D"]


def test_import_and_export_through_pipeline(pipeline, storage):
    repository = UserRepository()
    rows = [
        ["alice", "alice@example.com", "13912345678", "30", "Ops"],
        ["", "nobody@example.com", "", "", ""],
        ["bob", "bob@example.com", "", "41", "R&D"],
    ]
    ref = storage.put(CsvCodec().encode_rows(rows, USER_SCHEMA.headers()), "users.csv", "text/csv")

    result = pipeline.import_file(ref, UserImportProcessor(repository), file_format="csv")

    assert (result.total_rows, result.success_rows, result.error_rows) == (3, 2, 1)
    assert [u.username for u in repository.find()] == ["alice", "bob"]
    error_rows = CsvCodec().decode_rows(storage.get(result.error_file_ref))
    assert error_rows == [["2", "Username is required", "", "nobody@example.com", "", "", ""]]

    file_ref = pipeline.export(UserExportProvider(repository), {"department": "R&D"}, file_format="csv")
    exported = CsvCodec().decode(storage.get(file_ref), USER_SCHEMA)
    assert [u.username for u in exported] == ["bob"]
