import cv2
import numpy as np
from dataclasses import dataclass
from typing import Tuple

from autogen_api.implementations.mockup.placement_registry import Anchor, PlacementSpec
from autogen_api.utils.image_utils import round_half_up
from autogen_api.utils.logging_config import get_logger
from autogen_api.utils.debug_utils import debug_exception

@dataclass(frozen=True)
class Placement:
    """Target box of a scaled design on the canvas"""
    width: int
    height: int
    top: int
    left: int
    scale: float = 1.0
    
    @property
    def right(self) -> int:
        return self.left + self.width
    
    @property
    def bottom(self) -> int:
        return self.top + self.height

class DesignPlacer:
    """Handles design scaling and placement calculations for the mockup generator"""
    
    def __init__(self, canvas_size: Tuple[int, int] = (826, 1011), allow_upscale: bool = True):
        self.logger = get_logger(__name__)
        self.canvas_size = canvas_size
        self.allow_upscale = allow_upscale
    
    @debug_exception
    def compute_design_placement(
        self, 
        design_shape: Tuple[int, int], 
        placement: PlacementSpec
    ) -> Placement:
        """Fit a design of ``design_shape`` (h, w) inside the placement box."""
        canvas_w, canvas_h = self.canvas_size
        dh, dw = design_shape[:2]
        if dw <= 0 or dh <= 0:
            raise ValueError(f"Design dimensions must be positive, got {dw}x{dh}")
        
        max_w = round_half_up(canvas_w * placement.max_width_fraction)
        max_h = round_half_up(canvas_h * placement.max_height_fraction)
        
        scale = min(max_w / dw, max_h / dh)
        if not self.allow_upscale:
            scale = min(scale, 1.0)
        
        # Rounding can never push a side past its box
        target_w = max(1, min(round_half_up(dw * scale), max_w))
        target_h = max(1, min(round_half_up(dh * scale), max_h))
        
        top = round_half_up(canvas_h * placement.vertical_offset_fraction)
        if placement.anchor == Anchor.FIXED:
            left = round_half_up(canvas_w * placement.fixed_horizontal_fraction)
        else:
            left = round_half_up((canvas_w - target_w) / 2)
        
        result = Placement(width=target_w, height=target_h, top=top, left=left, scale=scale)
        self.logger.debug(
            f"Placement for {placement.key}: design={dw}x{dh}, box={max_w}x{max_h}, "
            f"scale={scale:.4f}, target={target_w}x{target_h} at (left={left}, top={top})"
        )
        return result
    
    @debug_exception
    def resize_design(self, design_image: np.ndarray, placement: Placement) -> np.ndarray:
        """Resize a BGRA design to the placement size.
        
        Colour is resized premultiplied by alpha so transparent pixels do not
        bleed dark fringes into the edges.
        """
        h, w = design_image.shape[:2]
        target_w, target_h = placement.width, placement.height
        if (w, h) == (target_w, target_h):
            return design_image.copy()
        
        interpolation = cv2.INTER_CUBIC if (target_w > w or target_h > h) else cv2.INTER_AREA
        
        alpha = design_image[:, :, 3:4].astype(np.float32) / 255.0
        premultiplied = np.concatenate(
            [design_image[:, :, :3].astype(np.float32) * alpha, alpha * 255.0], axis=2
        )
        resized = cv2.resize(premultiplied, (target_w, target_h), interpolation=interpolation)
        resized = np.clip(resized, 0.0, 255.0)
        
        out_alpha = resized[:, :, 3:4] / 255.0
        safe_alpha = np.where(out_alpha > 0, out_alpha, 1.0)
        colour = np.where(out_alpha > 0, resized[:, :, :3] / safe_alpha, 0.0)
        
        result = np.concatenate([colour, resized[:, :, 3:4]], axis=2)
        self.logger.debug(f"Resized design from {(w, h)} to {(target_w, target_h)}")
        return np.clip(np.rint(result), 0, 255).astype(np.uint8)
