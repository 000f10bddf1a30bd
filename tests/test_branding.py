"""
Tests for the branding compositor (watermark and badges).
"""
import itertools

import numpy as np
import pytest

from imobiedit.images.branding import (
    anchor_position, composite, draw_branding, layout_branding, PlacedElement, render_text,
)
from imobiedit.images.errors import DecodeFailure
from imobiedit.models import BadgeSettings, BrandingPosition, WatermarkSettings

from conftest import solid, to_png_bytes

NO_WATERMARK = WatermarkSettings(enabled=False)


class TestAnchorPosition:
    """Test the 3x3 placement grid."""

    def test_nine_positions_distinct_and_inside(self):
        canvas, element = (400, 300), (80, 40)
        corners = {p: anchor_position(canvas, element, p) for p in BrandingPosition}
        assert len(set(corners.values())) == 9
        for x, y in corners.values():
            assert 0 <= x and x + element[0] <= canvas[0]
            assert 0 <= y and y + element[1] <= canvas[1]

    @pytest.mark.parametrize("position,expected", [
        (BrandingPosition.TOP_LEFT, (0, 0)),
        (BrandingPosition.TOP_CENTER, (160, 0)),
        (BrandingPosition.TOP_RIGHT, (320, 0)),
        (BrandingPosition.MIDDLE_LEFT, (0, 130)),
        (BrandingPosition.CENTER, (160, 130)),
        (BrandingPosition.MIDDLE_RIGHT, (320, 130)),
        (BrandingPosition.BOTTOM_LEFT, (0, 260)),
        (BrandingPosition.BOTTOM_CENTER, (160, 260)),
        (BrandingPosition.BOTTOM_RIGHT, (320, 260)),
    ])
    def test_grid_coordinates(self, position, expected):
        assert anchor_position((400, 300), (80, 40), position) == expected


class TestLayout:
    """Test element sizing and placement."""

    def test_text_watermark_bottom_right_touches_edges(self):
        """Test the text box's right/bottom edges sit on the canvas edges."""
        watermark = WatermarkSettings(enabled=True, text="IMOBI", scale=15, opacity=60,
                                      position=BrandingPosition.BOTTOM_RIGHT)
        placed = layout_branding((800, 600), watermark, [])
        assert len(placed) == 1
        left, top, right, bottom = placed[0].box
        assert right == 800
        assert bottom == 600
        assert left > 0 and top > 0

    def test_offsets_added_after_anchor(self):
        watermark = WatermarkSettings(text="IMOBI", position=BrandingPosition.BOTTOM_RIGHT,
                                      offset_x=-20, offset_y=15)
        base = layout_branding((800, 600), watermark.with_changes(offset_x=0, offset_y=0), [])[0]
        moved = layout_branding((800, 600), watermark, [])[0]
        assert (moved.x, moved.y) == (base.x - 20, base.y + 15)

    def test_logo_scaled_to_canvas_width(self, red_logo_bytes):
        """Test a 100x50 logo at scale 25 on a 400px canvas becomes 100x50."""
        watermark = WatermarkSettings(logo=red_logo_bytes, scale=25, position=BrandingPosition.TOP_LEFT)
        placed = layout_branding((400, 300), watermark, [])
        assert placed[0].image.size == (100, 50)
        assert placed[0].box == (0, 0, 100, 50)

    def test_logo_preferred_over_text(self, red_logo_bytes):
        watermark = WatermarkSettings(text="IGNORED", logo=red_logo_bytes, scale=25)
        placed = layout_branding((400, 300), watermark, [])
        assert placed[0].image.size == (100, 50)

    def test_skips_undrawable_elements(self, red_logo_bytes):
        watermark = WatermarkSettings(enabled=True, text="")
        badges = [
            BadgeSettings(image=red_logo_bytes, enabled=False),
            BadgeSettings(image=None),
            BadgeSettings(image=red_logo_bytes),
        ]
        placed = layout_branding((400, 300), watermark, badges)
        assert [p.kind for p in placed] == ['badge']

    def test_watermark_then_badges_in_order(self, red_logo_bytes):
        badges = [BadgeSettings(image=red_logo_bytes, id='a'), BadgeSettings(image=red_logo_bytes, id='b')]
        placed = layout_branding((400, 300), WatermarkSettings(text="X"), badges)
        assert [p.kind for p in placed] == ['watermark', 'badge', 'badge']

    def test_undecodable_badge_raises(self):
        badge = BadgeSettings(image=b"not an image")
        with pytest.raises(DecodeFailure):
            layout_branding((400, 300), NO_WATERMARK, [badge])


class TestComposite:
    """Test alpha compositing."""

    def test_later_badge_painted_on_top(self):
        red = to_png_bytes(solid(100, 100, (255, 0, 0, 255)))
        blue = to_png_bytes(solid(100, 100, (0, 0, 255, 255)))
        badges = [
            BadgeSettings(image=red, id='red', scale=50, position=BrandingPosition.CENTER),
            BadgeSettings(image=blue, id='blue', scale=50, position=BrandingPosition.CENTER),
        ]
        out = draw_branding(solid(400, 400, (0, 0, 0, 255)), NO_WATERMARK, badges)
        assert out.getpixel((200, 200)) == (0, 0, 255, 255)

    def test_opacity_blends_with_background(self):
        white = to_png_bytes(solid(100, 100, (255, 255, 255, 255)))
        badge = BadgeSettings(image=white, scale=50, opacity=50, position=BrandingPosition.CENTER)
        out = draw_branding(solid(400, 400, (0, 0, 0, 255)), NO_WATERMARK, [badge])
        r, g, b, _ = out.getpixel((200, 200))
        assert 110 <= r <= 145

    def test_zero_opacity_leaves_canvas_unchanged(self):
        white = to_png_bytes(solid(100, 100, (255, 255, 255, 255)))
        canvas = solid(200, 200, (30, 60, 90, 255))
        badge = BadgeSettings(image=white, scale=50, opacity=0, position=BrandingPosition.CENTER)
        out = draw_branding(canvas, NO_WATERMARK, [badge])
        assert np.array_equal(np.asarray(out), np.asarray(canvas))

    def test_shadow_darkens_around_element(self):
        white = to_png_bytes(solid(100, 100, (255, 255, 255, 255)))
        badge = BadgeSettings(image=white, scale=50, position=BrandingPosition.CENTER)
        out = draw_branding(solid(400, 400, (200, 200, 200, 255)), NO_WATERMARK, [badge])
        # just outside the element's left edge (element spans x 100..299)
        assert out.getpixel((97, 200))[0] < 200

    def test_offsets_can_leave_the_canvas(self):
        """Test elements pushed off-canvas are clipped instead of failing."""
        element = solid(50, 50, (255, 255, 255, 255))
        canvas = solid(100, 100, (0, 0, 0, 255))
        for x, y in itertools.product((-200, -25, 75, 300), repeat=2):
            out = composite(canvas, PlacedElement('badge', element, x, y, 100))
            assert out.size == canvas.size

    def test_input_canvas_not_modified(self):
        white = to_png_bytes(solid(10, 10, (255, 255, 255, 255)))
        canvas = solid(100, 100, (0, 0, 0, 255))
        draw_branding(canvas, NO_WATERMARK, [BadgeSettings(image=white)])
        assert canvas.getpixel((0, 0)) == (0, 0, 0, 255)


class TestRenderText:
    """Test text watermark rendering."""

    def test_text_box_is_tight_and_white(self):
        img = render_text("IMOBI", 40)
        assert img.width > 0 and img.height > 0
        alpha = np.asarray(img)[:, :, 3]
        assert alpha.max() > 0
        opaque = np.asarray(img)[alpha == 255]
        if len(opaque):
            assert (opaque[:, :3] == 255).all()
