from dataclasses import dataclass, field
from typing import List, Optional

from autogen_api.errors import AssetStoreError, RequestParseError
from autogen_api.interfaces.asset_store import AssetStore
from autogen_api.services.request_parser import (
    is_valid_design_number, parse_request_identifier
)
from autogen_api.utils.logging_config import get_logger

@dataclass
class BustReport:
    """Outcome of a cache invalidation"""
    design_number: str
    cleared_design_files: List[str] = field(default_factory=list)
    cleared_output_files: List[str] = field(default_factory=list)
    failed_deletions: List[str] = field(default_factory=list)
    
    @property
    def success(self) -> bool:
        return not self.failed_deletions

class CacheCoordinator:
    """Derives cache keys and invalidates artifacts of a design number.
    
    Layout of the three namespaces:
        template/<templateIdentifier>.<templateExt>   read-only input
        design/<designNumber>.png                     downloaded design asset
        design/<designNumber>-<productType>.png       repositioned intermediate
        output/<templateIdentifier>-<designNumber>.<ext>  finished composite
    
    Entries are write-once: a hit is trusted until explicitly invalidated.
    """
    
    def __init__(
        self, 
        store: AssetStore, 
        template_dir: str = "template", 
        design_dir: str = "design", 
        output_dir: str = "output",
        template_extension: str = "jpg"
    ):
        self.store = store
        self.template_dir = template_dir
        self.design_dir = design_dir
        self.output_dir = output_dir
        self.template_extension = template_extension
        self.logger = get_logger(__name__)
    
    def composite_cache_key(self, template_identifier: str, design_number: str, extension: str = "jpg") -> str:
        return f"{self.output_dir}/{template_identifier}-{design_number}.{extension}"
    
    def design_asset_key(self, design_number: str) -> str:
        return f"{self.design_dir}/{design_number}.png"
    
    def intermediate_cache_key(self, design_number: str, placement_key: str) -> str:
        return f"{self.design_dir}/{design_number}-{placement_key}.png"
    
    def template_key(self, template_identifier: str) -> str:
        return f"{self.template_dir}/{template_identifier}.{self.template_extension}"
    
    def asset_key(self, name: str) -> str:
        """Key of a named file in the template namespace (e.g. the fallback)."""
        return f"{self.template_dir}/{name}"
    
    async def get(self, key: str) -> Optional[bytes]:
        if not await self.store.exists(key):
            return None
        try:
            return await self.store.read(key)
        except FileNotFoundError:
            # Deleted between the existence check and the read
            return None
    
    async def put(self, key: str, data: bytes) -> bool:
        try:
            written = await self.store.write(key, data)
        except AssetStoreError as e:
            self.logger.error(f"Cache write failed for {key}: {e.message}")
            return False
        if not written:
            self.logger.warning(f"Cache write failed for {key}")
        return written
    
    def _is_design_artifact(self, name: str, design_number: str) -> bool:
        return name == f"{design_number}.png" or (
            name.startswith(f"{design_number}-") and name.endswith(".png")
        )
    
    async def _delete(self, namespace: str, name: str, cleared: List[str], report: BustReport) -> None:
        key = f"{namespace}/{name}"
        if await self.store.delete(key):
            cleared.append(name)
        elif await self.store.exists(key):
            report.failed_deletions.append(key)
    
    async def _invalidate_design_artifacts(self, design_number: str, report: BustReport) -> None:
        names = await self.store.list_with_prefix(self.design_dir, design_number)
        for name in names:
            if self._is_design_artifact(name, design_number):
                await self._delete(self.design_dir, name, report.cleared_design_files, report)
    
    def _check_design_number(self, design_number: str) -> None:
        if not is_valid_design_number(design_number):
            raise RequestParseError(f"Invalid design number '{design_number}'", details={'design_number': design_number})
    
    async def invalidate(self, design_number: str, composite_key: Optional[str] = None) -> BustReport:
        """Remove the design asset and intermediates of ``design_number``,
        plus the single composite ``composite_key`` when given."""
        self._check_design_number(design_number)
        report = BustReport(design_number=design_number)
        
        if composite_key is not None:
            namespace, _, name = composite_key.rpartition("/")
            await self._delete(namespace, name, report.cleared_output_files, report)
        await self._invalidate_design_artifacts(design_number, report)
        
        self.logger.info(f"[bust] cleared {len(report.cleared_design_files)} design files and "
                         f"{len(report.cleared_output_files)} outputs for design {design_number}")
        return report
    
    async def invalidate_all(self, design_number: str) -> BustReport:
        """Remove every artifact of ``design_number`` across all templates."""
        self._check_design_number(design_number)
        report = BustReport(design_number=design_number)
        await self._invalidate_design_artifacts(design_number, report)
        
        for name in await self.store.list_with_prefix(self.output_dir, ""):
            try:
                parsed = parse_request_identifier(name)
            except RequestParseError:
                continue
            if parsed.design_number == design_number:
                await self._delete(self.output_dir, name, report.cleared_output_files, report)
        
        self.logger.info(f"[bust-all] cleared {len(report.cleared_design_files)} design files and "
                         f"{len(report.cleared_output_files)} outputs for design {design_number}")
        return report
