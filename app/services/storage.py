import os
import uuid
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote, unquote, urlparse

from azure.core.credentials import AzureNamedKeyCredential
from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings

from app.core.config import Settings

_VIDEO_EXTENSIONS = {".mp4", ".mov", ".m4v", ".3gp", ".webm"}


def content_type_for(filename: str, media_type: str) -> str:
	extension = os.path.splitext(filename)[1].lower()
	if media_type == "video" or extension in _VIDEO_EXTENSIONS:
		return "video/mp4" if extension in ("", ".mp4", ".m4v") else f"video/{extension.lstrip('.')}"
	if extension == ".png":
		return "image/png"
	if extension == ".webp":
		return "image/webp"
	return "image/jpeg"


class StorageService:
	"""Object storage for listing media and profile pictures.

	Each logical bucket is a blob container of the same name. Objects are
	addressed by ``(bucket, path)`` and exposed through a public URL.
	"""

	def __init__(self, settings: Settings) -> None:
		self._settings = settings
		self._blob_client: Optional[BlobServiceClient] = None

	def _get_blob_service_client(self) -> BlobServiceClient:
		if self._blob_client is not None:
			return self._blob_client
		settings = self._settings
		if settings.AZURE_STORAGE_CONN_STRING:
			self._blob_client = BlobServiceClient.from_connection_string(settings.AZURE_STORAGE_CONN_STRING)
			return self._blob_client
		if settings.AZURE_STORAGE_ACCOUNT and settings.AZURE_STORAGE_KEY:
			account_url = f"https://{settings.AZURE_STORAGE_ACCOUNT}.blob.core.windows.net"
			credential = AzureNamedKeyCredential(settings.AZURE_STORAGE_ACCOUNT, settings.AZURE_STORAGE_KEY)
			self._blob_client = BlobServiceClient(account_url=account_url, credential=credential)
			return self._blob_client
		raise RuntimeError("Azure Storage is not configured. Set AZURE_STORAGE_CONN_STRING or AZURE_STORAGE_ACCOUNT and AZURE_STORAGE_KEY.")

	def public_url(self, bucket: str, path: str) -> str:
		base = (self._settings.CDN_BASE_URL or "").rstrip("/")
		if base:
			return f"{base}/{bucket}/{path}"
		client = self._get_blob_service_client()
		return client.get_blob_client(container=bucket, blob=path).url

	def path_from_url(self, bucket: str, url: str) -> Optional[str]:
		"""Recover the object path from a public URL produced by ``public_url``."""
		parsed = urlparse(url)
		marker = f"/{bucket}/"
		if marker not in parsed.path:
			return None
		return unquote(parsed.path.split(marker, 1)[1])

	def upload_object(self, bucket: str, path: str, content_type: Optional[str], data: bytes) -> str:
		"""Upload bytes to ``bucket/path`` and return the public URL."""
		client = self._get_blob_service_client()
		blob_client = client.get_blob_client(container=bucket, blob=path)
		settings_obj = ContentSettings(content_type=content_type or "application/octet-stream")
		blob_client.upload_blob(data, overwrite=True, content_settings=settings_obj)
		return self.public_url(bucket, path)

	def delete_object(self, bucket: str, path: str) -> bool:
		client = self._get_blob_service_client()
		try:
			client.get_blob_client(container=bucket, blob=path).delete_blob()
		except ResourceNotFoundError:
			return False
		return True

	def delete_by_url(self, bucket: str, url: str) -> bool:
		path = self.path_from_url(bucket, url)
		if path is None:
			return False
		return self.delete_object(bucket, path)

	@staticmethod
	def listing_media_path(domain_name: str, is_rental: bool, listing_id: uuid.UUID, index: int, filename: str) -> str:
		"""Path of one listing media object; ``index`` is the reserved display order."""
		extension = os.path.splitext(filename)[1].lower() or ".jpg"
		stamp = int(datetime.now(timezone.utc).timestamp() * 1000)
		name = quote(f"{stamp}_{index}{extension}")
		if is_rental:
			return f"{listing_id}/{name}"
		return f"{domain_name}/{listing_id}/{name}"

	@staticmethod
	def avatar_path(user_id: uuid.UUID, filename: str) -> str:
		extension = os.path.splitext(filename)[1].lower() or ".jpg"
		return f"{user_id}/{uuid.uuid4().hex}{extension}"
