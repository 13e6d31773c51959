import hashlib
import hmac
import threading
import time
import uuid
from typing import Dict, Optional, Tuple
from urllib.parse import quote, urlencode

import redis

from ..config import settings
from ..exceptions import StorageError
from ..logging_config import get_logger

logger = get_logger(__name__)


def sign_path(path: str, expires: int, secret: Optional[str] = None) -> str:
    key = (secret or settings.signing_secret).encode()
    return hmac.new(key, f"{path}\n{expires}".encode(), hashlib.sha256).hexdigest()


def verify_signature(path: str, expires: int, signature: str, secret: Optional[str] = None,
                     now: Optional[float] = None) -> bool:
    if (now if now is not None else time.time()) > expires:
        return False
    return hmac.compare_digest(sign_path(path, expires, secret), signature)


class BlobStorage:
    """Stores byte blobs under opaque refs of the form ``<scheme>://<bucket>/<id>/<name>``."""

    scheme = "blob"

    def __init__(self, bucket: Optional[str] = None, public_base_url: Optional[str] = None,
                 secret: Optional[str] = None):
        self.bucket = bucket or settings.storage_bucket
        self.public_base_url = (public_base_url or settings.public_base_url).rstrip("/")
        self.secret = secret or settings.signing_secret

    def put(self, data: bytes, name: str, content_type: str) -> str:
        raise NotImplementedError

    def get(self, ref: str) -> bytes:
        raise NotImplementedError

    def exists(self, ref: str) -> bool:
        raise NotImplementedError

    def sign(self, ref: str, ttl_seconds: int) -> str:
        if not self.exists(ref):
            raise StorageError(f"Cannot sign unknown blob: {ref}")
        path = self._path(ref)
        expires = int(time.time()) + int(ttl_seconds)
        query = urlencode({"expires": expires, "signature": sign_path(path, expires, self.secret)})
        url = f"{self.public_base_url}/{quote(path)}?{query}"
        logger.info("url_signed", ref=ref, ttl_seconds=ttl_seconds)
        return url

    def _new_ref(self, name: str) -> Tuple[str, str]:
        blob_id = uuid.uuid4().hex
        return blob_id, f"{self.scheme}://{self.bucket}/{blob_id}/{name}"

    def _path(self, ref: str) -> str:
        prefix = f"{self.scheme}://"
        if not ref.startswith(prefix):
            raise StorageError(f"Foreign blob ref: {ref}")
        return ref[len(prefix):]

    def _blob_id(self, ref: str) -> str:
        parts = self._path(ref).split("/", 2)
        if len(parts) != 3 or parts[0] != self.bucket:
            raise StorageError(f"Malformed blob ref: {ref}")
        return parts[1]


class InMemoryBlobStorage(BlobStorage):
    scheme = "oss"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._blobs: Dict[str, Tuple[bytes, str]] = {}
        self._lock = threading.Lock()

    def put(self, data: bytes, name: str, content_type: str) -> str:
        blob_id, ref = self._new_ref(name)
        with self._lock:
            self._blobs[blob_id] = (bytes(data), content_type)
        logger.info("blob_uploaded", file_name=name, size=len(data), ref=ref)
        return ref

    def get(self, ref: str) -> bytes:
        blob_id = self._blob_id(ref)
        with self._lock:
            entry = self._blobs.get(blob_id)
        if entry is None:
            raise StorageError(f"Blob not found: {ref}")
        return entry[0]

    def exists(self, ref: str) -> bool:
        try:
            blob_id = self._blob_id(ref)
        except StorageError:
            return False
        with self._lock:
            return blob_id in self._blobs


class RedisBlobStorage(BlobStorage):
    scheme = "redis"

    def __init__(self, client: Optional[redis.Redis] = None, prefix: Optional[str] = None,
                 ttl_seconds: Optional[int] = None, **kwargs):
        super().__init__(**kwargs)
        # blobs are raw bytes, so no decode_responses here
        self.r = client or redis.from_url(settings.redis_url)
        self.prefix = prefix or settings.storage_key_prefix
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.blob_ttl_seconds

    def _key(self, blob_id: str) -> str:
        return f"{self.prefix}:blob:{blob_id}"

    def put(self, data: bytes, name: str, content_type: str) -> str:
        blob_id, ref = self._new_ref(name)
        key = self._key(blob_id)
        try:
            pipe = self.r.pipeline()
            pipe.hset(key, mapping={"data": bytes(data), "content_type": content_type, "name": name})
            if self.ttl_seconds:
                pipe.expire(key, self.ttl_seconds)
            pipe.execute()
        except redis.RedisError as exc:
            raise StorageError(f"Upload of {name} failed: {exc}") from exc
        logger.info("blob_uploaded", file_name=name, size=len(data), ref=ref)
        return ref

    def get(self, ref: str) -> bytes:
        try:
            data = self.r.hget(self._key(self._blob_id(ref)), "data")
        except redis.RedisError as exc:
            raise StorageError(f"Download of {ref} failed: {exc}") from exc
        if data is None:
            raise StorageError(f"Blob not found: {ref}")
        return data

    def exists(self, ref: str) -> bool:
        try:
            blob_id = self._blob_id(ref)
        except StorageError:
            return False
        return bool(self.r.exists(self._key(blob_id)))
