from typing import Dict, List

from autogen_api.interfaces.asset_store import AssetStore

class MemoryAssetStore(AssetStore):
    """In-process asset store for tests and ephemeral deployments"""
    
    def __init__(self, initial: Dict[str, bytes] = None):
        self._objects: Dict[str, bytes] = dict(initial or {})
    
    async def exists(self, key: str) -> bool:
        return key in self._objects
    
    async def read(self, key: str) -> bytes:
        try:
            return self._objects[key]
        except KeyError:
            raise FileNotFoundError(key)
    
    async def write(self, key: str, data: bytes) -> bool:
        self._objects[key] = bytes(data)
        return True
    
    async def delete(self, key: str) -> bool:
        return self._objects.pop(key, None) is not None
    
    async def list_with_prefix(self, namespace: str, prefix: str) -> List[str]:
        start = f"{namespace.rstrip('/')}/"
        names = [key[len(start):] for key in self._objects if key.startswith(start)]
        return sorted(name for name in names if "/" not in name and name.startswith(prefix))
    
    def keys(self) -> List[str]:
        return sorted(self._objects)
