from ..services import registry
from .users import (
    UserExportProvider, UserImportProcessor, UserRecord, UserRepository, UserTemplateProvider, USER_SCHEMA,
)

user_repository = UserRepository()


def register_all() -> None:
    registry.register_export_provider(UserExportProvider(user_repository))
    registry.register_import_processor(UserImportProcessor(user_repository))
    registry.register_template_provider(UserTemplateProvider())


register_all()

__all__ = [
    "UserExportProvider", "UserImportProcessor", "UserRecord", "UserRepository", "UserTemplateProvider",
    "USER_SCHEMA", "register_all", "user_repository",
]
