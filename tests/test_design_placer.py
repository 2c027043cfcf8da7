import numpy as np
import pytest

from autogen_api.implementations.mockup.design_placer import DesignPlacer, Placement
from autogen_api.implementations.mockup.placement_registry import (
    PLACEMENTS, Anchor, PlacementSpec
)
from autogen_api.implementations.mockup.product_classifier import ProductType
from autogen_api.utils.image_utils import round_half_up

CANVAS_W, CANVAS_H = 826, 1011
placer = DesignPlacer(canvas_size=(CANVAS_W, CANVAS_H))

def test_hoodie_scenario():
    spec = PLACEMENTS[ProductType.HOODIE]
    placement = placer.compute_design_placement((300, 600), spec)
    assert placement.scale == pytest.approx(413 / 600)
    assert placement.width == 413
    assert placement.height in (206, 207)
    assert placement.top == 243
    assert placement.left == 207

def test_coach_uses_fixed_left_chest_anchor():
    spec = PLACEMENTS[ProductType.COACH]
    placement = placer.compute_design_placement((400, 400), spec)
    # box is 157x158, so the square design is width-bound
    assert (placement.width, placement.height) == (157, 157)
    assert placement.left == round_half_up(CANVAS_W * 0.55)
    assert placement.top == round_half_up(CANVAS_H * 0.28)

repositioned_types = [t for t, s in PLACEMENTS.items() if s.reposition_required]

@pytest.mark.parametrize("product_type", repositioned_types)
@pytest.mark.parametrize("design_shape", [(300, 600), (800, 200), (50, 40), (1011, 826), (13, 700)])
def test_fit_inside_preserves_aspect_and_stays_in_box(product_type, design_shape):
    spec = PLACEMENTS[product_type]
    dh, dw = design_shape
    placement = placer.compute_design_placement(design_shape, spec)
    
    max_w = round_half_up(CANVAS_W * spec.max_width_fraction)
    max_h = round_half_up(CANVAS_H * spec.max_height_fraction)
    assert placement.width <= max_w
    assert placement.height <= max_h
    # one side touches its box
    assert placement.width == max_w or placement.height == max_h
    # aspect ratio within one pixel of rounding on either side
    assert abs(placement.width - dw * placement.scale) <= 1
    assert abs(placement.height - dh * placement.scale) <= 1
    
    assert 0 <= placement.left and placement.right <= CANVAS_W
    assert 0 <= placement.top and placement.bottom <= CANVAS_H

def test_centered_anchor_centres_horizontally():
    spec = PLACEMENTS[ProductType.LUNCHBOX]
    placement = placer.compute_design_placement((100, 300), spec)
    assert abs((placement.left + placement.right) / 2 - CANVAS_W / 2) <= 0.5

def test_small_design_is_upscaled_by_default():
    spec = PLACEMENTS[ProductType.HAT]
    placement = placer.compute_design_placement((50, 100), spec)
    assert placement.scale > 1
    assert placement.width == round_half_up(CANVAS_W * 0.35)

def test_upscale_can_be_disabled():
    no_upscale = DesignPlacer(canvas_size=(CANVAS_W, CANVAS_H), allow_upscale=False)
    spec = PLACEMENTS[ProductType.HAT]
    placement = no_upscale.compute_design_placement((50, 100), spec)
    assert placement.scale == 1.0
    assert (placement.width, placement.height) == (100, 50)
    # large designs are still reduced
    assert no_upscale.compute_design_placement((300, 600), PLACEMENTS[ProductType.HOODIE]).scale < 1

def test_invalid_design_dimensions():
    with pytest.raises(ValueError):
        placer.compute_design_placement((0, 100), PLACEMENTS[ProductType.HAT])

def test_round_half_up():
    assert round_half_up(206.5) == 207
    assert round_half_up(242.64) == 243
    assert round_half_up(0.49) == 0

def test_resize_design_matches_placement_and_keeps_edges_clean():
    design = np.zeros((300, 600, 4), dtype=np.uint8)
    design[:, :, :3] = (10, 200, 30)
    design[:, :, 3] = 255
    design[:, :21, 3] = 0  # transparent strip with black colour underneath
    design[:, :21, :3] = 0
    placement = Placement(width=300, height=150, top=0, left=0, scale=0.5)
    resized = placer.resize_design(design, placement)
    assert resized.shape == (150, 300, 4)
    # partially transparent edge pixels keep the design colour instead of going dark
    edge = resized[75, 10]
    assert 0 < edge[3] < 255
    assert abs(int(edge[1]) - 200) <= 2
    assert np.all(resized[:, 11:, 3] == 255)
    assert np.all(resized[:, :10, 3] == 0)

def test_resize_noop_returns_copy():
    design = np.zeros((10, 20, 4), dtype=np.uint8)
    result = placer.resize_design(design, Placement(width=20, height=10, top=0, left=0))
    assert result is not design
    assert np.array_equal(result, design)

def test_placement_properties():
    placement = Placement(width=10, height=20, top=5, left=7)
    assert placement.right == 17
    assert placement.bottom == 25

def test_custom_spec_fixed_anchor_left_edge():
    spec = PlacementSpec(key="left", reposition_required=True, max_width_fraction=0.2,
                         max_height_fraction=0.2, anchor=Anchor.FIXED, fixed_horizontal_fraction=0.1)
    placement = placer.compute_design_placement((100, 100), spec)
    assert placement.left == round_half_up(CANVAS_W * 0.1)
    assert placement.top == 0
