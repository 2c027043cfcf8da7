from abc import ABC, abstractmethod
from threading import Event
from typing import Optional
import numpy as np

from autogen_api.implementations.mockup.placement_registry import PlacementSpec

class MockupGenerator(ABC):
    """Interface for the image side of mockup generation"""
    
    @abstractmethod
    def reposition_design(
        self,
        design_image: np.ndarray,
        placement: PlacementSpec,
        cancel_event: Optional[Event] = None
    ) -> np.ndarray:
        """
        Trim a design and place it on a transparent canvas according to
        ``placement``.
        
        Returns:
            np.ndarray: BGRA canvas-sized image
        """
        pass
    
    @abstractmethod
    def composite_on_template(
        self,
        template_image: np.ndarray,
        overlay_image: np.ndarray,
        cancel_event: Optional[Event] = None
    ) -> np.ndarray:
        """
        Alpha-blend a canvas-sized overlay onto a template.
        
        Returns:
            np.ndarray: opaque BGR mockup image
        """
        pass
