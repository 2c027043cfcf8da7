from functools import lru_cache


from autogen_api.config import Settings, get_settings
from autogen_api.interfaces.asset_store import AssetStore
from autogen_api.interfaces.design_fetcher import DesignFetcher
from autogen_api.interfaces.mockup_generator import MockupGenerator
from autogen_api.implementations.cv_mockup_generator import CVMockupGenerator
from autogen_api.implementations.file_asset_store import FileAssetStore
from autogen_api.implementations.http_design_fetcher import HttpDesignFetcher
from autogen_api.implementations.mockup.placement_registry import PlacementRegistry
from autogen_api.implementations.mockup.product_classifier import ProductClassifier
from autogen_api.services.autogen_service import AutogenService
from autogen_api.services.cache_coordinator import CacheCoordinator

def get_asset_store(settings: Settings) -> AssetStore:
    """Storage backend for templates, designs and outputs"""
    return FileAssetStore(settings.STORAGE_ROOT)

def get_design_fetcher(settings: Settings) -> DesignFetcher:
    """Remote source of design assets"""
    return HttpDesignFetcher(
        base_url=settings.BASE_DESIGN_URL,
        min_bytes=settings.MIN_DESIGN_BYTES,
        timeout=settings.FETCH_TIMEOUT_SECONDS
    )

def get_mockup_generator(settings: Settings) -> MockupGenerator:
    """Dependency for getting the mockup generator implementation"""
    return CVMockupGenerator(
        canvas_size=(settings.CANVAS_WIDTH, settings.CANVAS_HEIGHT),
        min_extracted_size=settings.MIN_EXTRACTED_SIZE,
        allow_upscale=settings.ALLOW_UPSCALE
    )

def build_autogen_service(settings: Settings) -> AutogenService:
    """Wire the pipeline from settings"""
    canvas_size = (settings.CANVAS_WIDTH, settings.CANVAS_HEIGHT)
    cache = CacheCoordinator(
        get_asset_store(settings),
        template_dir=settings.TEMPLATE_DIR,
        design_dir=settings.DESIGN_DIR,
        output_dir=settings.OUTPUT_DIR,
        template_extension=settings.TEMPLATE_EXTENSION
    )
    return AutogenService(
        cache=cache,
        fetcher=get_design_fetcher(settings),
        mockup_generator=get_mockup_generator(settings),
        classifier=ProductClassifier(),
        registry=PlacementRegistry(canvas_size=canvas_size),
        generation_timeout=settings.GENERATION_TIMEOUT_SECONDS,
        max_concurrent_composites=settings.MAX_CONCURRENT_COMPOSITES,
        fallback_image=settings.FALLBACK_IMAGE,
        jpeg_quality=settings.JPEG_QUALITY
    )

@lru_cache()
def _shared_autogen_service() -> AutogenService:
    return build_autogen_service(get_settings())

def get_autogen_service() -> AutogenService:
    """Dependency for getting the process-wide autogen service.
    
    One instance per process so in-flight generations are shared.
    """
    return _shared_autogen_service()
