from typing import Optional

from ..config import settings
from ..formats import Codec
from ..logging_config import get_logger
from ..storage.blobs import BlobStorage
from .naming import template_file_name, timestamped_template_file_name
from .providers import TemplateProvider

logger = get_logger(__name__)


class TemplateService:
    """Header-only template files. Stateless, so no task is tracked."""

    def __init__(self, storage: BlobStorage):
        self.storage = storage

    def generate_template(self, provider: TemplateProvider, codec: Codec) -> str:
        name = template_file_name(provider.file_base_name(), codec.extension)
        return self._upload(provider, codec, name)

    def generate_template_download_url(self, provider: TemplateProvider, codec: Codec,
                                       ttl_seconds: Optional[int] = None) -> str:
        ttl = ttl_seconds if ttl_seconds is not None else settings.template_url_ttl_seconds
        name = timestamped_template_file_name(provider.file_base_name(), codec.extension)
        ref = self._upload(provider, codec, name)
        return self.storage.sign(ref, ttl)

    def _upload(self, provider: TemplateProvider, codec: Codec, name: str) -> str:
        data = codec.encode([], provider.schema, provider.headers(), sheet_name=provider.business_type)
        ref = self.storage.put(data, name, codec.content_type)
        logger.info("template_generated", business_type=provider.business_type, ref=ref)
        return ref
