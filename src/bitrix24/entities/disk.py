"""
Disk service.

Storages, folders and file uploads (``disk.*``). File content travels
base64-encoded inside the form body.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from bitrix24.core.pager import OffsetPager
from bitrix24.entities.base import FileContent, encode_file_content

if TYPE_CHECKING:
    from bitrix24.client import Bitrix24


class DiskService:
    """Disk storages and folders."""

    def __init__(self, api: "Bitrix24"):
        self.api = api

    def storages(self, filter: Optional[Mapping[str, Any]] = None) -> OffsetPager:
        """Return the available storages as a lazy sequence of pages."""
        return self.api.get_list("disk.storage.getlist", {"filter": dict(filter or {})})

    def storage_children(
        self,
        storage_id: Any,
        filter: Optional[Mapping[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Return the files and folders in the root of a storage."""
        return self.api.request(
            "disk.storage.getchildren",
            {"id": storage_id, "filter": dict(filter or {})},
        )

    def upload_file(
        self,
        folder_id: Any,
        content: FileContent,
        data: Mapping[str, Any],
        is_base64: bool = True,
    ) -> Dict[str, Any]:
        """
        Upload a new file into a folder.
        
        Args:
            folder_id: Target folder ID
            content: File content, raw or already base64-encoded
            data: File description; ``NAME`` is mandatory
            is_base64: Whether ``content`` is already base64-encoded
            
        Returns:
            Description of the created file
        """
        return self.api.request(
            "disk.folder.uploadfile",
            {
                "id": folder_id,
                "fileContent": encode_file_content(content, is_base64),
                "data": dict(data),
            },
        )
