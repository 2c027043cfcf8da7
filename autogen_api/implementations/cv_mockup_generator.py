import numpy as np
from threading import Event
from typing import Optional, Tuple

from autogen_api.errors import GenerationCancelled
from autogen_api.interfaces.mockup_generator import MockupGenerator
from autogen_api.implementations.mockup.compositor import Compositor
from autogen_api.implementations.mockup.design_extractor import DesignExtractor
from autogen_api.implementations.mockup.design_placer import DesignPlacer
from autogen_api.implementations.mockup.placement_registry import PlacementSpec
from autogen_api.utils.logging_config import get_logger
from autogen_api.utils.debug_utils import save_debug_image, debug_timing, debug_exception

class CVMockupGenerator(MockupGenerator):
    """OpenCV-based implementation of the mockup generator"""
    
    def __init__(
        self,
        canvas_size: Tuple[int, int] = (826, 1011),
        min_extracted_size: int = 10,
        allow_upscale: bool = True
    ):
        self.logger = get_logger(__name__)
        self.canvas_size = canvas_size
        self.design_extractor = DesignExtractor(min_size=min_extracted_size)
        self.design_placer = DesignPlacer(canvas_size=canvas_size, allow_upscale=allow_upscale)
        self.compositor = Compositor()
    
    def _check_cancelled(self, cancel_event: Optional[Event], step: str) -> None:
        if cancel_event is not None and cancel_event.is_set():
            self.logger.info(f"Generation cancelled before {step}")
            raise GenerationCancelled(f"Generation cancelled before {step}")
    
    @debug_timing
    @debug_exception
    def reposition_design(
        self,
        design_image: np.ndarray,
        placement: PlacementSpec,
        cancel_event: Optional[Event] = None
    ) -> np.ndarray:
        """
        Extract the design from its delivered canvas and place it for a product.

        Parameters:
        - design_image: design asset as delivered (positioned for a tee).
        - placement: placement box of the target product.
        - cancel_event: set by the caller once the generation is abandoned.

        Returns:
        - canvas: BGRA canvas with the design in the product's placement box.

        Raises ExtractionFailed when the asset has no usable content.
        """
        self._check_cancelled(cancel_event, "extraction")
        self.logger.debug(f"Step 1: Extracting design for {placement.key}")
        extracted = self.design_extractor.extract(design_image)
        save_debug_image(extracted.image, f"extracted_{placement.key}")
        
        self._check_cancelled(cancel_event, "scaling")
        self.logger.debug("Step 2: Computing design placement")
        target = self.design_placer.compute_design_placement(extracted.image.shape, placement)
        resized = self.design_placer.resize_design(extracted.image, target)
        
        self._check_cancelled(cancel_event, "canvas placement")
        self.logger.debug("Step 3: Placing design on transparent canvas")
        canvas = self.compositor.place_on_canvas(resized, target, self.canvas_size)
        save_debug_image(canvas, f"repositioned_{placement.key}")
        return canvas
    
    @debug_timing
    @debug_exception
    def composite_on_template(
        self,
        template_image: np.ndarray,
        overlay_image: np.ndarray,
        cancel_event: Optional[Event] = None
    ) -> np.ndarray:
        """Blend a canvas-sized overlay onto the garment template."""
        self._check_cancelled(cancel_event, "compositing")
        final_image = self.compositor.composite(template_image, overlay_image)
        self.logger.debug(f"Composite produced {final_image.shape[1]}x{final_image.shape[0]} image")
        return final_image
