import numpy as np
from typing import Optional, Tuple

from autogen_api.errors import CompositionFailed
from autogen_api.implementations.mockup.design_placer import Placement
from autogen_api.utils.image_utils import to_bgra
from autogen_api.utils.logging_config import get_logger
from autogen_api.utils.debug_utils import debug_exception, save_debug_image

class Compositor:
    """Handles image compositing for the mockup generator"""
    
    def __init__(self):
        self.logger = get_logger(__name__)
    
    def centered_position(
        self, 
        base_shape: Tuple[int, ...], 
        overlay_shape: Tuple[int, ...]
    ) -> Tuple[int, int]:
        """(left, top) that centres the overlay on the base."""
        base_h, base_w = base_shape[:2]
        overlay_h, overlay_w = overlay_shape[:2]
        return (base_w - overlay_w) // 2, (base_h - overlay_h) // 2
    
    def _check_bounds(
        self, 
        base_shape: Tuple[int, ...], 
        overlay_shape: Tuple[int, ...], 
        left: int, 
        top: int
    ) -> None:
        base_h, base_w = base_shape[:2]
        overlay_h, overlay_w = overlay_shape[:2]
        if left < 0 or top < 0 or left + overlay_w > base_w or top + overlay_h > base_h:
            raise CompositionFailed(
                f"Overlay {overlay_w}x{overlay_h} at (left={left}, top={top}) "
                f"falls outside the {base_w}x{base_h} base",
                details={'left': left, 'top': top, 'overlay': (overlay_w, overlay_h), 'base': (base_w, base_h)}
            )
    
    @debug_exception
    def place_on_canvas(
        self, 
        design_image: np.ndarray, 
        placement: Placement, 
        canvas_size: Tuple[int, int]
    ) -> np.ndarray:
        """Put a scaled BGRA design onto a fully transparent canvas."""
        canvas_w, canvas_h = canvas_size
        if design_image.shape[:2] != (placement.height, placement.width):
            raise CompositionFailed(
                f"Design shape {design_image.shape[:2]} does not match placement "
                f"{(placement.height, placement.width)}"
            )
        self._check_bounds((canvas_h, canvas_w), design_image.shape, placement.left, placement.top)
        
        canvas = np.zeros((canvas_h, canvas_w, 4), dtype=np.uint8)
        canvas[placement.top:placement.bottom, placement.left:placement.right] = to_bgra(design_image)
        return canvas
    
    @debug_exception
    def composite(
        self, 
        base_image: Optional[np.ndarray], 
        overlay_image: Optional[np.ndarray], 
        position: Optional[Tuple[int, int]] = None
    ) -> np.ndarray:
        """Alpha-blend ``overlay_image`` onto ``base_image`` at ``position``.
        
        Args:
            base_image: Template image (BGR, BGRA or grayscale)
            overlay_image: Overlay image; BGRA alpha is honoured
            position: (left, top) of the overlay; centred when omitted
        
        Returns:
            Opaque BGR image the size of the base. Transparent parts of the
            base are flattened over white.
        """
        if base_image is None or base_image.size == 0:
            raise CompositionFailed("Base template could not be decoded")
        if overlay_image is None or overlay_image.size == 0:
            raise CompositionFailed("Overlay image could not be decoded")
        
        if position is None:
            position = self.centered_position(base_image.shape, overlay_image.shape)
        left, top = position
        self._check_bounds(base_image.shape, overlay_image.shape, left, top)
        
        base = to_bgra(base_image).astype(np.float32)
        overlay = to_bgra(overlay_image).astype(np.float32)
        overlay_h, overlay_w = overlay.shape[:2]
        
        base_alpha = base[:, :, 3:4] / 255.0
        self.logger.debug(f"Compositing overlay {overlay_w}x{overlay_h} at (left={left}, top={top}) "
                          f"onto base {base.shape[1]}x{base.shape[0]}")
        
        # Premultiplied colour of the base; becomes the output after flattening
        result = base[:, :, :3] * base_alpha
        result_alpha = base_alpha.copy()
        
        region = (slice(top, top + overlay_h), slice(left, left + overlay_w))
        overlay_alpha = overlay[:, :, 3:4] / 255.0
        result[region] = overlay[:, :, :3] * overlay_alpha + result[region] * (1.0 - overlay_alpha)
        result_alpha[region] = overlay_alpha + result_alpha[region] * (1.0 - overlay_alpha)
        
        # Flatten over white so the output is always opaque
        final_image = result + 255.0 * (1.0 - result_alpha)
        final_image = np.clip(np.rint(final_image), 0, 255).astype(np.uint8)
        
        save_debug_image(final_image, "final_after_composite")
        return final_image
