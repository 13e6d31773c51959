"""Example business wiring: user accounts."""
import re
import threading
from typing import Any, List, Optional

from pydantic import BaseModel

from ..formats import Column, RecordSchema, as_int
from ..logging_config import get_logger
from ..services.providers import ExportProvider, RowProcessor, TemplateProvider

logger = get_logger(__name__)

BUSINESS_TYPE = "users"

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+$")
PHONE_PATTERN = re.compile(r"^1[3-9]\d{9}$")
MAX_USERNAME_LENGTH = 50


class UserRecord(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    age: Optional[int] = None
    department: Optional[str] = None


USER_SCHEMA = RecordSchema(
    model=UserRecord,
    columns=(
        Column("Username", "username"),
        Column("Email", "email"),
        Column("Phone", "phone"),
        Column("Age", "age", parse=as_int),
        Column("Department", "department"),
    ),
)


class UserRepository:
    """In-process stand-in for the user table."""

    def __init__(self, seed: Optional[List[UserRecord]] = None):
        self._users: List[UserRecord] = list(seed or [])
        self._lock = threading.Lock()

    def bulk_insert(self, users: List[UserRecord]) -> int:
        with self._lock:
            self._users.extend(users)
        return len(users)

    def find(self, department: Optional[str] = None) -> List[UserRecord]:
        with self._lock:
            users = list(self._users)
        if department:
            users = [u for u in users if u.department == department]
        return users


class UserExportProvider(ExportProvider):
    business_type = BUSINESS_TYPE
    schema = USER_SCHEMA
    export_file_name = "users_export"

    def __init__(self, repository: UserRepository):
        self.repository = repository

    def query_export_data(self, params: Any) -> List[UserRecord]:
        department = params.get("department") if isinstance(params, dict) else None
        return self.repository.find(department=department)


class UserTemplateProvider(TemplateProvider):
    business_type = BUSINESS_TYPE
    schema = USER_SCHEMA
    template_file_name = "users"


class UserImportProcessor(RowProcessor):
    business_type = BUSINESS_TYPE
    schema = USER_SCHEMA

    def __init__(self, repository: UserRepository):
        self.repository = repository

    def validate_row(self, record: UserRecord, row_index: int) -> Optional[str]:
        if not record.username:
            return "Username is required"
        if len(record.username) > MAX_USERNAME_LENGTH:
            return f"Username must be at most {MAX_USERNAME_LENGTH} characters"
        if not record.email:
            return "Email is required"
        if not EMAIL_PATTERN.match(record.email):
            return "Email is malformed"
        if record.phone and not PHONE_PATTERN.match(record.phone):
            return "Phone number is malformed"
        if record.age is not None and not 0 <= record.age <= 150:
            return "Age must be between 0 and 150"
        return None

    def process_valid_rows(self, records: List[UserRecord]) -> None:
        count = self.repository.bulk_insert(records)
        logger.info("users_saved", count=count)
