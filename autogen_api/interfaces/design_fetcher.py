from abc import ABC, abstractmethod

class DesignFetcher(ABC):
    """Interface for downloading design assets from the remote source"""
    
    @abstractmethod
    async def fetch(self, remote_key: str) -> bytes:
        """
        Download a design asset.
        
        Raises:
            AssetFetchFailed: when the asset is missing or below the
                minimum byte-size sanity threshold.
        """
        pass
