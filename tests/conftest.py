import asyncio
import os
import sys

import cv2
import numpy as np
import pytest

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

os.environ.setdefault("LOG_TO_FILE", "False")
os.environ.setdefault("DEBUG", "False")

from autogen_api.errors import AssetFetchFailed
from autogen_api.implementations.cv_mockup_generator import CVMockupGenerator
from autogen_api.implementations.memory_asset_store import MemoryAssetStore
from autogen_api.implementations.mockup.placement_registry import PlacementRegistry
from autogen_api.implementations.mockup.product_classifier import ProductClassifier
from autogen_api.interfaces.design_fetcher import DesignFetcher
from autogen_api.services.autogen_service import AutogenService
from autogen_api.services.cache_coordinator import CacheCoordinator

CANVAS_SIZE = (826, 1011)

def make_design(box=(313, 152, 200, 100), color=(40, 80, 200), canvas_size=CANVAS_SIZE):
    """Transparent canvas with an opaque rectangle at box=(x, y, w, h)"""
    canvas_w, canvas_h = canvas_size
    image = np.zeros((canvas_h, canvas_w, 4), dtype=np.uint8)
    x, y, w, h = box
    image[y:y + h, x:x + w, :3] = color
    image[y:y + h, x:x + w, 3] = 255
    return image

def make_template(color=(200, 200, 200), canvas_size=CANVAS_SIZE):
    canvas_w, canvas_h = canvas_size
    return np.full((canvas_h, canvas_w, 3), color, dtype=np.uint8)

def encode(image, ext=".png"):
    ok, buffer = cv2.imencode(ext, image)
    assert ok
    return buffer.tobytes()

class FakeDesignFetcher(DesignFetcher):
    """Serves designs from a dict and counts downloads"""
    
    def __init__(self, designs=None, delay=0.0):
        self.designs = dict(designs or {})
        self.delay = delay
        self.calls = []
    
    async def fetch(self, remote_key):
        self.calls.append(remote_key)
        if self.delay:
            await asyncio.sleep(self.delay)
        if remote_key not in self.designs:
            raise AssetFetchFailed(f"Design {remote_key} not found")
        return self.designs[remote_key]

@pytest.fixture
def store():
    return MemoryAssetStore()

@pytest.fixture
def cache(store):
    return CacheCoordinator(store)

@pytest.fixture
def fetcher():
    return FakeDesignFetcher()

@pytest.fixture
def service_factory(cache, fetcher):
    """Build an AutogenService over the in-memory store"""
    created = []
    
    def factory(generator=None, **kwargs):
        service = AutogenService(
            cache=cache,
            fetcher=kwargs.pop("fetcher", fetcher),
            mockup_generator=generator or CVMockupGenerator(canvas_size=CANVAS_SIZE),
            classifier=ProductClassifier(),
            registry=PlacementRegistry(canvas_size=CANVAS_SIZE),
            **kwargs
        )
        created.append(service)
        return service
    
    yield factory
    for service in created:
        service.close()

@pytest.fixture
def service(service_factory):
    return service_factory()
