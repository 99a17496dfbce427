import asyncio
import mimetypes
import posixpath
import uuid
from typing import List, Optional

from supabase import create_client, Client

from offerhub.config import settings
from offerhub.exceptions import AssetStoreError, UploadError
from offerhub.models.asset import AssetDescriptor, UploadedFile
from offerhub.services.asset_store import AssetStore
from offerhub.utils.logger import logger

# Supabase Storage has no real folders; the dashboard materializes one by
# writing this zero-byte object into it, and so do we.
FOLDER_PLACEHOLDER = ".emptyFolderPlaceholder"
LIST_PAGE_SIZE = 100

_supabase_client: Client = None

def get_supabase_client() -> Optional[Client]:
    global _supabase_client
    if _supabase_client:
        return _supabase_client

    url = settings.SUPABASE_URL
    key = settings.supabase_key

    if not url or not key:
        logger.warning("SUPABASE_URL or SUPABASE_KEY/SUPABASE_SERVICE_ROLE_KEY not set. Storage operations will fail.")
        return None

    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        logger.warning("SUPABASE_SERVICE_ROLE_KEY not set. Using SUPABASE_KEY (Anon). Uploads may fail due to RLS.")

    _supabase_client = create_client(url, key)
    return _supabase_client


def _extension_for(file: UploadedFile) -> str:
    if file.filename and "." in file.filename:
        return "." + file.filename.rsplit(".", 1)[-1].lower()
    return mimetypes.guess_extension(file.content_type or "") or ""


class SupabaseAssetStore(AssetStore):
    """AssetStore backed by one Supabase Storage bucket.

    The supabase client is synchronous; each call is pushed to a worker
    thread so sibling uploads and moves of one request overlap.

    A call that exceeds ``timeout`` fails the request, but its worker thread
    is not interrupted: a timed-out upload may still complete later and
    leave an unreferenced object under the tmp root.
    """

    def __init__(
        self,
        bucket_name: Optional[str] = None,
        tmp_root: Optional[str] = None,
        client_factory=None,
        timeout: Optional[float] = None,
    ):
        self.bucket_name = bucket_name or settings.STORAGE_BUCKET
        self.tmp_root = (tmp_root or settings.UPLOAD_TMP_ROOT).strip("/")
        self._client_factory = client_factory or get_supabase_client
        self.timeout = timeout or settings.STORAGE_TIMEOUT_SECONDS

    def _bucket(self):
        client = self._client_factory()
        if not client:
            raise AssetStoreError("Supabase client not initialized")
        return client.storage.from_(self.bucket_name)

    def _describe(self, bucket, public_id: str, content_type: Optional[str] = None, size_bytes: Optional[int] = None) -> AssetDescriptor:
        return AssetDescriptor(
            public_id=public_id,
            folder=posixpath.dirname(public_id),
            url=bucket.get_public_url(public_id),
            content_type=content_type,
            size_bytes=size_bytes,
        )

    def _upload_sync(self, file: UploadedFile) -> AssetDescriptor:
        path = f"{self.tmp_root}/{uuid.uuid4().hex}{_extension_for(file)}"
        logger.info(f"Uploading file to Supabase Storage: bucket={self.bucket_name}, path={path}, size={len(file.data)}")
        try:
            bucket = self._bucket()
            bucket.upload(
                path=path,
                file=file.data,
                file_options={"content-type": file.content_type, "upsert": "false"}
            )
            return self._describe(bucket, path, file.content_type, len(file.data))
        except AssetStoreError as e:
            raise UploadError(e.message) from e
        except Exception as e:
            logger.error(f"Failed to upload to Supabase Storage: {e}")
            raise UploadError(f"Error during the file upload: {e}") from e

    def _delete_sync(self, public_id: str) -> None:
        bucket = self._bucket()
        try:
            # Removing a path that does not exist returns an empty list.
            bucket.remove([public_id])
            logger.info(f"Deleted file from storage: bucket={self.bucket_name}, path={public_id}")
        except Exception as e:
            logger.error(f"Failed to delete file from storage: {e}")
            raise AssetStoreError(f"Error during the file deletion: {e}") from e

    def _list_subfolders_sync(self, path: str) -> List[str]:
        bucket = self._bucket()
        names = []
        offset = 0
        try:
            while True:
                entries = bucket.list(path, {"limit": LIST_PAGE_SIZE, "offset": offset})
                # Folders are the entries without an object id.
                names.extend(e["name"] for e in entries if e.get("id") is None)
                if len(entries) < LIST_PAGE_SIZE:
                    return names
                offset += LIST_PAGE_SIZE
        except Exception as e:
            logger.error(f"Failed to list storage folder {path}: {e}")
            raise AssetStoreError(f"Error while listing folder {path}: {e}") from e

    def _create_folder_sync(self, path: str) -> None:
        bucket = self._bucket()
        try:
            bucket.upload(
                path=f"{path}/{FOLDER_PLACEHOLDER}",
                file=b"",
                file_options={"content-type": "application/octet-stream", "upsert": "true"}
            )
        except Exception as e:
            logger.error(f"Failed to create storage folder {path}: {e}")
            raise AssetStoreError(f"Error while creating folder {path}: {e}") from e

    def _move_sync(self, public_id: str, new_public_id: str) -> AssetDescriptor:
        bucket = self._bucket()
        try:
            bucket.move(public_id, new_public_id)
            logger.info(f"Moved file in storage: {public_id} -> {new_public_id}")
            return self._describe(bucket, new_public_id)
        except Exception as e:
            logger.error(f"Failed to move {public_id} to {new_public_id}: {e}")
            raise AssetStoreError(f"Error while moving file {public_id}: {e}") from e

    def _delete_folder_sync(self, path: str) -> None:
        bucket = self._bucket()
        try:
            bucket.remove([f"{path}/{FOLDER_PLACEHOLDER}"])
            logger.info(f"Deleted storage folder {path}")
        except Exception as e:
            logger.error(f"Failed to delete storage folder {path}: {e}")
            raise AssetStoreError(f"Error while deleting folder {path}: {e}") from e

    async def _run(self, func, *args, error_cls=AssetStoreError):
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Storage call {func.__name__} timed out after {self.timeout}s")
            raise error_cls(f"Storage call timed out after {self.timeout}s") from e

    async def upload(self, file: UploadedFile) -> AssetDescriptor:
        return await self._run(self._upload_sync, file, error_cls=UploadError)

    async def delete(self, public_id: str) -> None:
        await self._run(self._delete_sync, public_id)

    async def list_subfolders(self, path: str) -> List[str]:
        return await self._run(self._list_subfolders_sync, path)

    async def create_folder(self, path: str) -> None:
        await self._run(self._create_folder_sync, path)

    async def rename_or_move(self, public_id: str, new_public_id: str) -> AssetDescriptor:
        return await self._run(self._move_sync, public_id, new_public_id)

    async def delete_folder(self, path: str) -> None:
        await self._run(self._delete_folder_sync, path)


asset_store = SupabaseAssetStore()


def get_asset_store() -> AssetStore:
    return asset_store
