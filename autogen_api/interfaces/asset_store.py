from abc import ABC, abstractmethod
from typing import List

class AssetStore(ABC):
    """Interface for the storage backing templates, designs and outputs.
    
    Keys are logical ``namespace/name`` strings so the backend (disk,
    object store, memory) can be swapped without touching the pipeline.
    """
    
    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass
    
    @abstractmethod
    async def read(self, key: str) -> bytes:
        """Return the stored bytes; raises FileNotFoundError when absent."""
        pass
    
    @abstractmethod
    async def write(self, key: str, data: bytes) -> bool:
        pass
    
    @abstractmethod
    async def delete(self, key: str) -> bool:
        pass
    
    @abstractmethod
    async def list_with_prefix(self, namespace: str, prefix: str) -> List[str]:
        """Return the names in ``namespace`` that start with ``prefix``."""
        pass
