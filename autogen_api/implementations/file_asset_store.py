import os
import uuid
from pathlib import Path
from typing import List

import aiofiles
import aiofiles.os

from autogen_api.errors import AssetStoreError
from autogen_api.interfaces.asset_store import AssetStore
from autogen_api.utils.logging_config import get_logger

class FileAssetStore(AssetStore):
    """Disk-backed asset store; keys map to paths under ``root``"""
    
    def __init__(self, root: str = "."):
        self.root = Path(root).resolve()
        self.logger = get_logger(__name__)
    
    def path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            raise AssetStoreError(f"Key escapes the storage root: {key}")
        return path
    
    async def exists(self, key: str) -> bool:
        return await aiofiles.os.path.isfile(self.path_for(key))
    
    async def read(self, key: str) -> bytes:
        path = self.path_for(key)
        async with aiofiles.open(path, 'rb') as in_file:
            return await in_file.read()
    
    async def write(self, key: str, data: bytes) -> bool:
        """Write via a temp file and rename, so readers never see partial files"""
        path = self.path_for(key)
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(tmp_path, 'wb') as out_file:
                await out_file.write(data)
            await aiofiles.os.replace(tmp_path, path)
        except OSError as e:
            self.logger.error(f"Failed to write {key}: {str(e)}")
            if tmp_path.exists():
                os.remove(tmp_path)
            return False
        self.logger.debug(f"Wrote {len(data)} bytes to {path}")
        return True
    
    async def delete(self, key: str) -> bool:
        try:
            await aiofiles.os.remove(self.path_for(key))
        except FileNotFoundError:
            return False
        except OSError as e:
            self.logger.error(f"Failed to delete {key}: {str(e)}")
            return False
        return True
    
    async def list_with_prefix(self, namespace: str, prefix: str) -> List[str]:
        directory = self.path_for(namespace)
        if not await aiofiles.os.path.isdir(directory):
            return []
        names = await aiofiles.os.listdir(directory)
        return sorted(
            name for name in names 
            if name.startswith(prefix) and not name.startswith(".") and (directory / name).is_file()
        )
