from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from autogen_api.errors import ClassificationAmbiguous
from autogen_api.utils.logging_config import get_logger

class ProductType(str, Enum):
    """Placement categories a template can belong to"""
    TEE = "tee"
    HOODIE = "hoodie"
    SWEAT = "sweat"
    COACH = "coach"
    ONESIE = "onesie"
    LUNCHBOX = "lunchbox"
    SPORTBAG = "sportbag"
    HAT = "hat"

VOCABULARY_VERSION = "4.0"

# Template prefix -> product type. Several garment variants share one placement.
PRODUCT_VOCABULARY: Mapping[str, ProductType] = MappingProxyType({
    # Standard tees
    "tee": ProductType.TEE, "teeback": ProductType.TEE,
    "nltbtee": ProductType.TEE, "5300": ProductType.TEE,
    "lstee": ProductType.TEE, "lsteeback": ProductType.TEE,
    "performancelstee": ProductType.TEE, "performancelsteeback": ProductType.TEE,
    "tank": ProductType.TEE, "tankback": ProductType.TEE,
    "sleeveless": ProductType.TEE, "sleevelessback": ProductType.TEE,
    "raglan": ProductType.TEE, "raglanback": ProductType.TEE,
    "ring": ProductType.TEE, "ringback": ProductType.TEE,
    "nl6733": ProductType.TEE,
    "nl3900": ProductType.TEE, "nl3900back": ProductType.TEE,
    "64v00l": ProductType.TEE, "64v00lback": ProductType.TEE,
    "youthtee": ProductType.TEE, "youthteeback": ProductType.TEE,
    "toddlertee": ProductType.TEE, "toddlerteeback": ProductType.TEE,
    "td1000": ProductType.TEE,
    "g5000real": ProductType.TEE, "g5000realb": ProductType.TEE, "g5000realc": ProductType.TEE,
    "tote": ProductType.TEE,
    
    # Hoodies
    "hoodie": ProductType.HOODIE, "hoodieback": ProductType.HOODIE,
    "jha009": ProductType.HOODIE, "jha009back": ProductType.HOODIE,
    "ythhoodie": ProductType.HOODIE, "ythhoodieback": ProductType.HOODIE,
    "toddlerhoodie": ProductType.HOODIE, "toddlerhoodieback": ProductType.HOODIE,
    "lsteehoodie": ProductType.HOODIE, "lsteehoodieback": ProductType.HOODIE,
    
    # Sweatshirts
    "sweat": ProductType.SWEAT, "sweatback": ProductType.SWEAT,
    "youthsweat": ProductType.SWEAT, "youthsweatback": ProductType.SWEAT,
    "toddlersweat": ProductType.SWEAT, "toddlersweatback": ProductType.SWEAT,
    
    # Coach jacket; workshirts share the left-chest placement
    "coach": ProductType.COACH, "coachback": ProductType.COACH,
    "workshirt": ProductType.COACH, "workshirtback": ProductType.COACH,
    
    "onesie": ProductType.ONESIE,
    "lunchbox": ProductType.LUNCHBOX,
    "sportbag": ProductType.SPORTBAG,
    
    # Hats
    "trucker": ProductType.HAT,
    "ottowashed6p": ProductType.HAT,
})

class ProductClassifier:
    """Maps template identifiers to product types by longest matching prefix"""
    
    def __init__(
        self, 
        vocabulary: Mapping[str, ProductType] = PRODUCT_VOCABULARY, 
        separator: str = "-"
    ):
        self.logger = get_logger(__name__)
        self.separator = separator
        self._vocabulary = MappingProxyType({k.lower(): v for k, v in vocabulary.items()})
        # Longest first; equal lengths fall back to alphabetical order
        self._candidates: Tuple[str, ...] = tuple(
            sorted(self._vocabulary, key=lambda prefix: (-len(prefix), prefix))
        )
    
    @property
    def vocabulary(self) -> Mapping[str, ProductType]:
        return self._vocabulary
    
    def match_prefix(self, template_identifier: str) -> Optional[str]:
        """Return the vocabulary prefix that wins for ``template_identifier``."""
        lower = template_identifier.lower()
        for prefix in self._candidates:
            if lower == prefix or lower.startswith(prefix + self.separator):
                return prefix
        return None
    
    def classify(self, template_identifier: str) -> Optional[ProductType]:
        """Classify a template identifier; None means unclassified."""
        prefix = self.match_prefix(template_identifier)
        if prefix is None:
            self.logger.debug(f"Template '{template_identifier}' is unclassified")
            return None
        
        product_type = self._vocabulary[prefix]
        self.logger.debug(f"Template '{template_identifier}' matched prefix '{prefix}' -> {product_type.value}")
        return product_type
    
    def require(self, template_identifier: str) -> ProductType:
        """Classify or raise ClassificationAmbiguous for unknown templates."""
        product_type = self.classify(template_identifier)
        if product_type is None:
            raise ClassificationAmbiguous(
                f"No product prefix matches template '{template_identifier}'",
                details={'template_identifier': template_identifier}
            )
        return product_type
