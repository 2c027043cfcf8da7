from typing import Optional

import httpx

from autogen_api.errors import AssetFetchFailed
from autogen_api.interfaces.design_fetcher import DesignFetcher
from autogen_api.utils.logging_config import get_logger

class HttpDesignFetcher(DesignFetcher):
    """Downloads design PNGs from ``base_url`` with httpx"""
    
    def __init__(
        self,
        base_url: str,
        min_bytes: int = 7000,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.logger = get_logger(__name__)
        self.base_url = base_url
        self.min_bytes = min_bytes
        self.timeout = timeout
        self._client = client
    
    def url_for(self, remote_key: str) -> str:
        return f"{self.base_url}{remote_key}"
    
    async def fetch(self, remote_key: str) -> bytes:
        if not self.base_url:
            raise AssetFetchFailed("BASE_DESIGN_URL is not configured", details={'remote_key': remote_key})
        
        url = self.url_for(remote_key)
        self.logger.debug(f"Downloading design from {url}")
        try:
            if self._client is not None:
                response = await self._client.get(url, follow_redirects=True, timeout=self.timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(url, follow_redirects=True, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise AssetFetchFailed(
                f"Design server returned {e.response.status_code} for {remote_key}",
                details={'url': url, 'status_code': e.response.status_code}
            ) from e
        except httpx.RequestError as e:
            raise AssetFetchFailed(f"Failed to fetch design {remote_key}: {e}", details={'url': url}) from e
        
        content = response.content
        if len(content) < self.min_bytes:
            raise AssetFetchFailed(
                f"Design {remote_key} is {len(content)} bytes, below the {self.min_bytes} byte minimum",
                details={'url': url, 'size': len(content)}
            )
        
        self.logger.info(f"Downloaded design {remote_key} ({len(content)} bytes)")
        return content
