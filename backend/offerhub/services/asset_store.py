import posixpath
from abc import ABC, abstractmethod
from typing import List, Optional

from offerhub.models.asset import AssetDescriptor, UploadedFile
from offerhub.utils.logger import logger


class AssetStore(ABC):
    """Hierarchical binary store holding offer pictures and avatars.

    Subclasses implement the six primitives against a concrete provider;
    :meth:`relocate` and :meth:`replace_asset` are built on top of them.
    """

    @abstractmethod
    async def upload(self, file: UploadedFile) -> AssetDescriptor:
        """Store ``file`` at a temporary location. Raises UploadError."""

    @abstractmethod
    async def delete(self, public_id: str) -> None:
        """Remove an asset. Removing a missing asset is a no-op."""

    @abstractmethod
    async def list_subfolders(self, path: str) -> List[str]:
        """Names of the direct child folders of ``path``."""

    @abstractmethod
    async def create_folder(self, path: str) -> None:
        pass

    @abstractmethod
    async def rename_or_move(self, public_id: str, new_public_id: str) -> AssetDescriptor:
        pass

    @abstractmethod
    async def delete_folder(self, path: str) -> None:
        """Remove an empty folder."""

    async def relocate(
        self,
        asset: AssetDescriptor,
        destination_folder: str,
        destination_name: Optional[str] = None,
    ) -> AssetDescriptor:
        """Move ``asset`` into ``destination_folder``, creating the folder lazily.

        The existence check lists the children of the folder's parent and
        compares names, so two concurrent relocations into a brand-new folder
        may both try to create it. Folder names are offer/account ids, which
        are never created twice.
        """
        destination_folder = destination_folder.rstrip("/")
        root, folder_name = posixpath.split(destination_folder)

        existing = await self.list_subfolders(root)
        if folder_name not in existing:
            logger.info(f"Creating asset folder {destination_folder}")
            await self.create_folder(destination_folder)

        name = destination_name or posixpath.basename(asset.public_id)
        moved = await self.rename_or_move(asset.public_id, f"{destination_folder}/{name}")
        return moved.model_copy(update={
            "content_type": moved.content_type or asset.content_type,
            "size_bytes": moved.size_bytes if moved.size_bytes is not None else asset.size_bytes,
        })

    async def replace_asset(
        self,
        old_public_id: Optional[str],
        new_file: Optional[UploadedFile],
    ) -> Optional[AssetDescriptor]:
        """Delete the old asset (if any), then upload the new one (if any).

        Delete runs first so at most one copy is ever live; if the upload then
        fails the owner is left without an asset until the caller retries.
        """
        if old_public_id:
            await self.delete(old_public_id)
        if new_file is not None:
            return await self.upload(new_file)
        return None
