import asyncio

import pytest

from autogen_api.errors import RequestParseError
from autogen_api.implementations.memory_asset_store import MemoryAssetStore
from autogen_api.services.cache_coordinator import CacheCoordinator

def seeded_store():
    return MemoryAssetStore({
        "design/167.png": b"generic",
        "design/167-hoodie.png": b"hoodie",
        "design/167-coach.png": b"coach",
        "design/16.png": b"other design",
        "design/16-hat.png": b"other intermediate",
        "design/1670.png": b"longer number",
        "output/hoodie-black-167.jpg": b"out",
        "output/coach-navy-167.jpg": b"out",
        "output/tee-white-167.png": b"out",
        "output/tee-white-16.jpg": b"other output",
        "output/tee-white-1670.jpg": b"other output",
        "output/notes.txt": b"unrelated",
        "template/hoodie-black.jpg": b"template",
    })

def test_keys():
    cache = CacheCoordinator(MemoryAssetStore())
    assert cache.composite_cache_key("hoodie-black", "4001") == "output/hoodie-black-4001.jpg"
    assert cache.composite_cache_key("hoodie-black", "4001", "png") == "output/hoodie-black-4001.png"
    assert cache.design_asset_key("4001") == "design/4001.png"
    assert cache.intermediate_cache_key("4001", "hoodie") == "design/4001-hoodie.png"
    assert cache.template_key("hoodie-black") == "template/hoodie-black.jpg"
    assert cache.asset_key("fallback.jpg") == "template/fallback.jpg"

def test_keys_are_deterministic():
    cache = CacheCoordinator(MemoryAssetStore())
    assert cache.composite_cache_key("a-b", "1") == cache.composite_cache_key("a-b", "1")
    assert cache.composite_cache_key("a-b", "1") != cache.composite_cache_key("a-b", "2")

def test_get_and_put():
    cache = CacheCoordinator(MemoryAssetStore())
    assert asyncio.run(cache.get("output/x-y-1.jpg")) is None
    assert asyncio.run(cache.put("output/x-y-1.jpg", b"data")) is True
    assert asyncio.run(cache.get("output/x-y-1.jpg")) == b"data"

def test_invalidate_single_template():
    store = seeded_store()
    cache = CacheCoordinator(store)
    report = asyncio.run(cache.invalidate("167", "output/hoodie-black-167.jpg"))
    
    assert sorted(report.cleared_design_files) == ["167-coach.png", "167-hoodie.png", "167.png"]
    assert report.cleared_output_files == ["hoodie-black-167.jpg"]
    assert report.success
    
    remaining = store.keys()
    assert "output/coach-navy-167.jpg" in remaining
    assert "output/tee-white-167.png" in remaining
    # a design number that is a prefix of another is left alone
    assert "design/16.png" in remaining
    assert "design/1670.png" in remaining

def test_invalidate_all_templates():
    store = seeded_store()
    cache = CacheCoordinator(store)
    report = asyncio.run(cache.invalidate_all("167"))
    
    assert len(report.cleared_design_files) == 3
    assert sorted(report.cleared_output_files) == [
        "coach-navy-167.jpg", "hoodie-black-167.jpg", "tee-white-167.png"
    ]
    remaining = store.keys()
    assert not [key for key in remaining if "-167." in key or key.startswith(("design/167.", "design/167-"))]
    assert "output/tee-white-16.jpg" in remaining
    assert "output/tee-white-1670.jpg" in remaining
    assert "design/16-hat.png" in remaining
    assert "output/notes.txt" in remaining
    assert "template/hoodie-black.jpg" in remaining

def test_invalidate_missing_composite_is_not_a_failure():
    cache = CacheCoordinator(MemoryAssetStore())
    report = asyncio.run(cache.invalidate("5", "output/tee-white-5.jpg"))
    assert report.cleared_output_files == []
    assert report.success

@pytest.mark.parametrize("design_number", ["", "16-hat", "../x"])
def test_invalid_design_number_rejected(design_number):
    cache = CacheCoordinator(MemoryAssetStore())
    with pytest.raises(RequestParseError):
        asyncio.run(cache.invalidate_all(design_number))

def test_failed_deletion_is_reported():
    class StickyStore(MemoryAssetStore):
        async def delete(self, key):
            return False
    
    store = StickyStore({"design/9.png": b"x"})
    report = asyncio.run(CacheCoordinator(store).invalidate_all("9"))
    assert report.failed_deletions == ["design/9.png"]
    assert not report.success
