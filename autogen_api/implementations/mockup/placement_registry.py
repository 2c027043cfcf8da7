from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from autogen_api.errors import RegistryError
from autogen_api.implementations.mockup.product_classifier import ProductType
from autogen_api.utils.image_utils import round_half_up
from autogen_api.utils.logging_config import get_logger

class Anchor(str, Enum):
    CENTERED = "centered"
    FIXED = "fixed"

@dataclass(frozen=True)
class PlacementSpec:
    """Placement box for one product type, as fractions of the canvas.
    
    ``fixed_horizontal_fraction`` is only set for the FIXED anchor, where it
    gives the left edge of the design (e.g. a left-chest print).
    """
    key: str
    reposition_required: bool
    max_width_fraction: float = 1.0
    max_height_fraction: float = 1.0
    vertical_offset_fraction: float = 0.0
    anchor: Anchor = Anchor.CENTERED
    fixed_horizontal_fraction: Optional[float] = None

REGISTRY_VERSION = "4.0"

# The design PNG is delivered positioned for a tee (centered, ~15% from top),
# so tees use it as-is and every other product is extracted and repositioned.
BASE_PLACEMENT = PlacementSpec(key=ProductType.TEE.value, reposition_required=False)

PLACEMENTS: Mapping[ProductType, PlacementSpec] = MappingProxyType({
    ProductType.TEE: BASE_PLACEMENT,
    ProductType.HOODIE: PlacementSpec(
        key=ProductType.HOODIE.value, reposition_required=True,
        max_width_fraction=0.50, max_height_fraction=0.38, vertical_offset_fraction=0.24,
    ),
    ProductType.SWEAT: PlacementSpec(
        key=ProductType.SWEAT.value, reposition_required=True,
        max_width_fraction=0.445, max_height_fraction=0.52, vertical_offset_fraction=0.23,
    ),
    ProductType.COACH: PlacementSpec(
        key=ProductType.COACH.value, reposition_required=True,
        max_width_fraction=0.190, max_height_fraction=0.156, vertical_offset_fraction=0.28,
        anchor=Anchor.FIXED, fixed_horizontal_fraction=0.55,  # wearer's left chest
    ),
    ProductType.ONESIE: PlacementSpec(
        key=ProductType.ONESIE.value, reposition_required=True,
        max_width_fraction=0.40, max_height_fraction=0.48, vertical_offset_fraction=0.17,
    ),
    ProductType.LUNCHBOX: PlacementSpec(
        key=ProductType.LUNCHBOX.value, reposition_required=True,
        max_width_fraction=0.75, max_height_fraction=0.43, vertical_offset_fraction=0.21,
    ),
    ProductType.SPORTBAG: PlacementSpec(
        key=ProductType.SPORTBAG.value, reposition_required=True,
        max_width_fraction=0.55, max_height_fraction=0.48, vertical_offset_fraction=0.29,
    ),
    ProductType.HAT: PlacementSpec(
        key=ProductType.HAT.value, reposition_required=True,
        max_width_fraction=0.35, max_height_fraction=0.30, vertical_offset_fraction=0.22,
    ),
})

class PlacementRegistry:
    """Immutable product type -> placement table, validated when built"""
    
    def __init__(
        self,
        placements: Mapping[ProductType, PlacementSpec] = PLACEMENTS,
        canvas_size: Tuple[int, int] = (826, 1011),
        default: PlacementSpec = BASE_PLACEMENT,
        version: str = REGISTRY_VERSION
    ):
        self.logger = get_logger(__name__)
        self.canvas_size = canvas_size
        self.default = default
        self.version = version
        self._placements = MappingProxyType(dict(placements))
        
        for spec in (default, *self._placements.values()):
            self._validate(spec)
        self.logger.debug(f"Placement registry v{version} loaded with {len(self._placements)} entries")
    
    def __len__(self) -> int:
        return len(self._placements)
    
    def __iter__(self):
        return iter(self._placements.items())
    
    def lookup(self, product_type: Optional[ProductType]) -> PlacementSpec:
        """Resolve a product type; unclassified or unknown types get the default."""
        if product_type is None:
            return self.default
        return self._placements.get(product_type, self.default)
    
    def _validate(self, spec: PlacementSpec) -> None:
        canvas_w, canvas_h = self.canvas_size
        fractions = {
            'max_width_fraction': spec.max_width_fraction,
            'max_height_fraction': spec.max_height_fraction,
        }
        for name, value in fractions.items():
            if not 0 < value <= 1:
                raise RegistryError(f"{spec.key}: {name} must be in (0, 1], got {value}")
        if not 0 <= spec.vertical_offset_fraction < 1:
            raise RegistryError(
                f"{spec.key}: vertical_offset_fraction must be in [0, 1), got {spec.vertical_offset_fraction}"
            )
        
        if spec.anchor == Anchor.FIXED:
            if spec.fixed_horizontal_fraction is None:
                raise RegistryError(f"{spec.key}: fixed anchor requires fixed_horizontal_fraction")
            if not 0 <= spec.fixed_horizontal_fraction < 1:
                raise RegistryError(
                    f"{spec.key}: fixed_horizontal_fraction must be in [0, 1), got {spec.fixed_horizontal_fraction}"
                )
        elif spec.fixed_horizontal_fraction is not None:
            raise RegistryError(f"{spec.key}: fixed_horizontal_fraction is only valid with a fixed anchor")
        
        if not spec.reposition_required:
            return
        
        # The whole placement box has to stay on the canvas
        max_w = round_half_up(canvas_w * spec.max_width_fraction)
        max_h = round_half_up(canvas_h * spec.max_height_fraction)
        top = round_half_up(canvas_h * spec.vertical_offset_fraction)
        if top + max_h > canvas_h:
            raise RegistryError(f"{spec.key}: placement box bottom {top + max_h} exceeds canvas height {canvas_h}")
        if spec.anchor == Anchor.FIXED:
            left = round_half_up(canvas_w * spec.fixed_horizontal_fraction)
            if left + max_w > canvas_w:
                raise RegistryError(f"{spec.key}: placement box right edge {left + max_w} exceeds canvas width {canvas_w}")
