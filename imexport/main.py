from fastapi import FastAPI

from . import business  # noqa: F401  registers business wiring
from .config import settings
from .logging_config import configure_logging
from .routers import tasks

configure_logging(settings.log_level, settings.log_format)

app = FastAPI(title="ImExport API", version="1.0.0")
app.include_router(tasks.router)
