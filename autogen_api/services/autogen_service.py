import asyncio
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

import numpy as np

from autogen_api.errors import (
    AssetFetchFailed, AutogenError, ClassificationAmbiguous, CompositionFailed,
    ExtractionFailed, GenerationTimeout, RequestParseError, TemplateNotFound
)
from autogen_api.interfaces.design_fetcher import DesignFetcher
from autogen_api.interfaces.mockup_generator import MockupGenerator
from autogen_api.implementations.mockup.placement_registry import PlacementRegistry, PlacementSpec
from autogen_api.implementations.mockup.product_classifier import ProductClassifier, ProductType
from autogen_api.services.cache_coordinator import BustReport, CacheCoordinator
from autogen_api.services.request_parser import RequestIdentifier, is_valid_design_number, parse_request_identifier
from autogen_api.utils.image_utils import decode_image, encode_image, media_type_for
from autogen_api.utils.logging_config import get_logger
from autogen_api.utils.debug_utils import async_debug_timing

class CacheStatus(str, Enum):
    HIT = "hit"
    MISS = "miss"
    FALLBACK = "fallback"

class BustScope(str, Enum):
    SINGLE_TEMPLATE = "single-template"
    ALL_TEMPLATES = "all-templates"

@dataclass(frozen=True)
class GenerationResult:
    """Image bytes handed back to the serving layer"""
    content: bytes
    media_type: str
    status: CacheStatus
    request: Optional[RequestIdentifier] = None

    @property
    def is_fallback(self) -> bool:
        return self.status == CacheStatus.FALLBACK

class AutogenService:
    """Runs the classify -> place -> composite pipeline behind the cache.

    Concurrent requests for the same composite share one in-flight
    generation. Every generation runs under its own deadline; when it
    expires the awaited I/O is cancelled and the CPU stages are signalled to
    stop at their next checkpoint. Decode/encode work runs on a bounded
    thread pool so image work never exceeds ``max_concurrent_composites``.

    A bust bumps the design number's epoch and detaches its in-flight
    generations. Those still answer their waiters but no longer write to the
    cache, so nothing generated before a bust survives it.
    """

    def __init__(
        self,
        cache: CacheCoordinator,
        fetcher: DesignFetcher,
        mockup_generator: MockupGenerator,
        classifier: ProductClassifier,
        registry: PlacementRegistry,
        generation_timeout: float = 15.0,
        max_concurrent_composites: int = 2,
        fallback_image: str = "fallback.jpg",
        jpeg_quality: int = 92
    ):
        self.cache = cache
        self.fetcher = fetcher
        self.mockup_generator = mockup_generator
        self.classifier = classifier
        self.registry = registry
        self.generation_timeout = generation_timeout
        self.fallback_image = fallback_image
        self.jpeg_quality = jpeg_quality
        self.logger = get_logger(__name__)

        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_concurrent_composites),
            thread_name_prefix="autogen-image"
        )
        self._inflight: Dict[str, asyncio.Task] = {}
        self._epochs: Dict[str, int] = {}
        self._fallback_content: Optional[bytes] = None

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    async def _run_cpu(self, func, *args):
        """Run blocking image work on the bounded pool"""
        return await asyncio.wrap_future(self._executor.submit(func, *args))

    async def generate(self, request_identifier: str) -> GenerationResult:
        """Return the composite for ``request_identifier``, or the fallback image."""
        try:
            request = parse_request_identifier(request_identifier)
        except RequestParseError as e:
            self.logger.warning(f"[autogen] rejected request '{request_identifier}': {e.message}")
            return await self.fallback()

        key = self.cache.composite_cache_key(
            request.template_identifier, request.design_number, request.extension
        )
        media_type = media_type_for(request.extension)

        cached = await self.cache.get(key)
        if cached is not None:
            self.logger.info(f"[autogen] cache hit: {request.filename}")
            return GenerationResult(cached, media_type, CacheStatus.HIT, request)

        self.logger.info(f"[autogen] cache miss, generating: {request.filename}")
        start = time.time()
        try:
            content = await self._generate_once(request, key)
        except AutogenError as e:
            duration = (time.time() - start) * 1000
            self.logger.warning(f"[autogen] failed: {request.filename} ({duration:.0f}ms) - "
                                f"{e.__class__.__name__}: {e.message}")
            return await self.fallback(request)
        except Exception as e:
            self.logger.error(f"[autogen] unexpected error for {request.filename}: {str(e)}", exc_info=True)
            return await self.fallback(request)

        duration = (time.time() - start) * 1000
        self.logger.info(f"[autogen] generated: {request.filename} ({duration:.0f}ms)")
        return GenerationResult(content, media_type, CacheStatus.MISS, request)

    async def bust(
        self,
        design_number: str,
        scope: BustScope = BustScope.ALL_TEMPLATES,
        request: Optional[RequestIdentifier] = None
    ) -> BustReport:
        """Invalidate cached artifacts of ``design_number``.

        SINGLE_TEMPLATE drops the design asset, its intermediates and the
        composite of ``request``; ALL_TEMPLATES drops every composite of the
        design number as well.
        """
        if is_valid_design_number(design_number):
            self._supersede(design_number)

        if scope == BustScope.ALL_TEMPLATES:
            return await self.cache.invalidate_all(design_number)

        composite_key = None
        if request is not None:
            composite_key = self.cache.composite_cache_key(
                request.template_identifier, request.design_number, request.extension
            )
        return await self.cache.invalidate(design_number, composite_key)

    def _supersede(self, design_number: str) -> None:
        self._epochs[design_number] = self._epochs.get(design_number, 0) + 1
        for key in list(self._inflight):
            if self._design_number_of(key) == design_number:
                self.logger.info(f"[bust] detaching in-flight generation: {key}")
                del self._inflight[key]

    def _design_number_of(self, composite_key: str) -> Optional[str]:
        try:
            return parse_request_identifier(composite_key.rpartition("/")[2]).design_number
        except RequestParseError:
            return None

    def _is_current(self, design_number: str, epoch: int) -> bool:
        return self._epochs.get(design_number, 0) == epoch

    async def _store(self, key: str, content: bytes, design_number: str, epoch: int) -> bool:
        """Cache ``content`` unless design_number was busted since ``epoch``."""
        if not self._is_current(design_number, epoch):
            self.logger.info(f"[autogen] design {design_number} busted mid-generation, not caching {key}")
            return False
        if not await self.cache.put(key, content):
            self.logger.warning(f"[autogen] could not cache {key}")
            return False
        if not self._is_current(design_number, epoch):
            # Bust landed while the write was in progress
            await self.cache.store.delete(key)
            return False
        return True

    async def bust_and_regenerate(self, request_identifier: str) -> Tuple[Optional[BustReport], GenerationResult]:
        """Single-template bust followed by a fresh generation."""
        try:
            request = parse_request_identifier(request_identifier)
        except RequestParseError as e:
            self.logger.warning(f"[bust] rejected request '{request_identifier}': {e.message}")
            return None, await self.fallback()

        report = await self.bust(request.design_number, BustScope.SINGLE_TEMPLATE, request)
        result = await self.generate(request.filename)
        return report, result

    async def fallback(self, request: Optional[RequestIdentifier] = None) -> GenerationResult:
        """Placeholder image served whenever generation fails.

        The stored fallback is read once and kept. While it is missing a blank
        JPEG is synthesised on every call, so a fallback added later is picked up.
        """
        if self._fallback_content is None:
            self._fallback_content = await self.cache.get(self.cache.asset_key(self.fallback_image))

        if self._fallback_content is None:
            self.logger.warning(f"Fallback image {self.fallback_image} missing, using a blank placeholder")
            content = await self._run_cpu(self._blank_placeholder)
            return GenerationResult(content, media_type_for("jpg"), CacheStatus.FALLBACK, request)

        extension = self.fallback_image.rpartition(".")[2]
        return GenerationResult(self._fallback_content, media_type_for(extension), CacheStatus.FALLBACK, request)

    async def _generate_once(self, request: RequestIdentifier, key: str) -> bytes:
        task = self._inflight.get(key)
        if task is None:
            epoch = self._epochs.get(request.design_number, 0)
            task = asyncio.create_task(self._run_with_deadline(request, key, epoch))
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget(k, t))
        else:
            self.logger.info(f"[autogen] joining in-flight generation: {request.filename}")

        # Shielded so a caller going away does not cancel the shared task
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            task.exception()  # marks the exception as retrieved

    async def _run_with_deadline(self, request: RequestIdentifier, key: str, epoch: int) -> bytes:
        cancel_event = threading.Event()
        try:
            return await asyncio.wait_for(
                self._pipeline(request, key, epoch, cancel_event),
                timeout=self.generation_timeout
            )
        except asyncio.TimeoutError as e:
            cancel_event.set()
            raise GenerationTimeout(
                f"Generation of {request.filename} timed out after {self.generation_timeout}s",
                details={'timeout': self.generation_timeout}
            ) from e

    def _classify(self, template_identifier: str) -> Optional[ProductType]:
        try:
            return self.classifier.require(template_identifier)
        except ClassificationAmbiguous as e:
            self.logger.info(f"[autogen] {e.message}; using base placement")
            return None

    @async_debug_timing
    async def _pipeline(
        self,
        request: RequestIdentifier,
        key: str,
        epoch: int,
        cancel_event: threading.Event
    ) -> bytes:
        product_type = self._classify(request.template_identifier)
        placement = self.registry.lookup(product_type)

        design_content = await self._load_design_asset(request.design_number, epoch)
        overlay_content = await self._load_overlay(
            request.design_number, design_content, placement, epoch, cancel_event
        )
        template_content = await self._load_template(request.template_identifier)

        content = await self._run_cpu(
            self._render, template_content, overlay_content, request.extension, cancel_event
        )
        await self._store(key, content, request.design_number, epoch)
        return content

    async def _load_design_asset(self, design_number: str, epoch: int) -> bytes:
        key = self.cache.design_asset_key(design_number)
        content = await self.cache.get(key)
        if content is not None:
            return content

        content = await self.fetcher.fetch(f"{design_number}.png")
        await self._store(key, content, design_number, epoch)
        return content

    async def _load_overlay(
        self,
        design_number: str,
        design_content: bytes,
        placement: PlacementSpec,
        epoch: int,
        cancel_event: threading.Event
    ) -> bytes:
        if not placement.reposition_required:
            self.logger.info(f"[autogen] {placement.key} placement, using design as-is")
            return design_content

        key = self.cache.intermediate_cache_key(design_number, placement.key)
        cached = await self.cache.get(key)
        if cached is not None:
            self.logger.info(f"[autogen] using cached repositioned: {key}")
            return cached

        repositioned = await self._run_cpu(self._reposition, design_content, placement, cancel_event)
        if repositioned is None:
            self.logger.info(f"[autogen] extract failed, using untrimmed design for {placement.key}")
            return design_content

        if await self._store(key, repositioned, design_number, epoch):
            self.logger.info(f"[autogen] repositioned for {placement.key}: {key}")
        return repositioned

    async def _load_template(self, template_identifier: str) -> bytes:
        key = self.cache.template_key(template_identifier)
        content = await self.cache.get(key)
        if content is None:
            raise TemplateNotFound(f"Template {key} does not exist", details={'key': key})
        return content

    # CPU-bound stages below run on the worker pool

    def _decode_design(self, design_content: bytes) -> np.ndarray:
        design_image = decode_image(design_content)
        if design_image is None:
            raise AssetFetchFailed("Design asset could not be decoded")
        return design_image

    def _reposition(
        self,
        design_content: bytes,
        placement: PlacementSpec,
        cancel_event: threading.Event
    ) -> Optional[bytes]:
        design_image = self._decode_design(design_content)
        try:
            canvas = self.mockup_generator.reposition_design(design_image, placement, cancel_event)
        except ExtractionFailed as e:
            self.logger.info(f"[autogen] {e.message}")
            return None

        encoded = encode_image(canvas, "png")
        if encoded is None:
            raise CompositionFailed(f"Could not encode repositioned design for {placement.key}")
        return encoded

    def _render(
        self,
        template_content: bytes,
        overlay_content: bytes,
        extension: str,
        cancel_event: threading.Event
    ) -> bytes:
        template_image = decode_image(template_content)
        if template_image is None:
            raise CompositionFailed("Template could not be decoded")
        overlay_image = self._decode_design(overlay_content)

        final_image = self.mockup_generator.composite_on_template(template_image, overlay_image, cancel_event)
        encoded = encode_image(final_image, extension, self.jpeg_quality)
        if encoded is None:
            raise CompositionFailed(f"Could not encode composite as {extension}")
        return encoded

    def _blank_placeholder(self) -> bytes:
        canvas_w, canvas_h = self.registry.canvas_size
        placeholder = np.full((canvas_h, canvas_w, 3), 235, dtype=np.uint8)
        return encode_image(placeholder, "jpg", self.jpeg_quality)
