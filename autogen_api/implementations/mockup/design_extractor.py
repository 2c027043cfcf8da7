import cv2
import numpy as np
from dataclasses import dataclass
from typing import Tuple

from autogen_api.errors import ExtractionFailed
from autogen_api.utils.image_utils import to_bgra
from autogen_api.utils.logging_config import get_logger
from autogen_api.utils.debug_utils import debug_exception, debug_timing

@dataclass(frozen=True)
class ExtractedDesign:
    """Tight crop of a design's visible content"""
    image: np.ndarray
    bbox: Tuple[int, int, int, int]  # x, y, w, h in the source asset
    
    @property
    def width(self) -> int:
        return self.image.shape[1]
    
    @property
    def height(self) -> int:
        return self.image.shape[0]

class DesignExtractor:
    """Trims transparent or uniform borders off a design asset"""
    
    def __init__(self, min_size: int = 10, threshold: int = 10):
        self.logger = get_logger(__name__)
        self.min_size = min_size
        self.threshold = threshold
    
    def content_mask(self, design_image: np.ndarray) -> np.ndarray:
        """Boolean mask of pixels that differ from the border background.
        
        The background is taken from the top-left pixel. A transparent
        top-left pixel means "anything visible is content"; otherwise a pixel
        is content when any channel differs from it by more than the threshold.
        """
        bgra = to_bgra(design_image)
        background = bgra[0, 0].astype(np.int16)
        
        if background[3] == 0:
            return bgra[:, :, 3] > 0
        
        diff = np.abs(bgra.astype(np.int16) - background)
        return diff.max(axis=2) > self.threshold
    
    @debug_timing
    @debug_exception
    def extract(self, design_image: np.ndarray) -> ExtractedDesign:
        """Crop ``design_image`` to its content bounding box.
        
        Raises:
            ExtractionFailed: when there is no content, or the content is
                smaller than ``min_size`` in either dimension.
        """
        if design_image is None or design_image.size == 0:
            raise ExtractionFailed("Design image is empty")
        
        mask = self.content_mask(design_image)
        points = cv2.findNonZero(mask.astype(np.uint8))
        if points is None:
            raise ExtractionFailed(
                "Design has no visible content",
                details={'shape': design_image.shape}
            )
        
        x, y, w, h = cv2.boundingRect(points)
        self.logger.debug(f"Trimmed design bbox: x={x}, y={y}, w={w}, h={h} (source {design_image.shape[1]}x{design_image.shape[0]})")
        
        if w < self.min_size or h < self.min_size:
            raise ExtractionFailed(
                f"Extracted design is degenerate: {w}x{h} below minimum {self.min_size}px",
                details={'width': w, 'height': h}
            )
        
        cropped = to_bgra(design_image)[y:y + h, x:x + w].copy()
        return ExtractedDesign(image=cropped, bbox=(x, y, w, h))
