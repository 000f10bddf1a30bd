"""
Tests for the edit settings models.
"""
import pytest

from imobiedit.models import (
    BadgeSettings, BrandingPosition, CropRatio, DEFAULT_SETTINGS, EditSettings,
    RenamePosition, RenameSettings, WatermarkSettings,
)


class TestClamping:
    """Test range clamping at construction and update time."""

    def test_sharpness_clamped(self):
        assert EditSettings(sharpness=250).sharpness == 100
        assert EditSettings(sharpness=-5).sharpness == 0

    def test_scale_and_opacity_clamped(self):
        watermark = WatermarkSettings(scale=1, opacity=140)
        assert watermark.scale == 5
        assert watermark.opacity == 100
        badge = BadgeSettings(scale=95, opacity=-1)
        assert badge.scale == 90
        assert badge.opacity == 0

    def test_clamped_on_update(self):
        settings = DEFAULT_SETTINGS.with_changes(sharpness=1000)
        assert settings.sharpness == 100
        watermark = settings.watermark.with_changes(scale=200)
        assert watermark.scale == 90

    def test_unusable_numbers_fall_back_to_defaults(self):
        settings = EditSettings.from_dict({
            'sharpness': None,
            'watermark': {'scale': None, 'opacity': float('nan')},
            'badges': [{'id': 'b1', 'scale': 'big', 'opacity': float('inf'), 'offsetX': None}],
        })
        assert settings.sharpness == 30
        assert settings.watermark.scale == 15
        assert settings.watermark.opacity == 60
        assert settings.badges[0].scale == 15
        assert settings.badges[0].opacity == 100
        assert settings.badges[0].offset_x == 0

    def test_start_number_at_least_one(self):
        assert RenameSettings(start_number=0).start_number == 1

    def test_settings_are_frozen(self):
        with pytest.raises(AttributeError):
            DEFAULT_SETTINGS.sharpness = 10


class TestNaming:
    """Test export file names."""

    def test_after(self):
        naming = RenameSettings(format="IMOBI", position=RenamePosition.AFTER, start_number=1)
        assert [naming.file_name(i) for i in range(3)] == ["IMOBI 1.jpeg", "IMOBI 2.jpeg", "IMOBI 3.jpeg"]

    def test_before(self):
        naming = RenameSettings(format="CASA", position="before", start_number=10)
        assert [naming.file_name(i) for i in range(2)] == ["10 CASA.jpeg", "11 CASA.jpeg"]


class TestDefaults:
    """Test the defaults of a freshly uploaded image."""

    def test_default_settings(self):
        assert DEFAULT_SETTINGS.optimized is True
        assert DEFAULT_SETTINGS.aligned is False
        assert DEFAULT_SETTINGS.sharpness == 30
        assert DEFAULT_SETTINGS.crop_ratio is CropRatio.ORIGINAL
        assert DEFAULT_SETTINGS.watermark.position is BrandingPosition.BOTTOM_RIGHT
        assert DEFAULT_SETTINGS.watermark.scale == 15
        assert DEFAULT_SETTINGS.watermark.opacity == 60
        assert DEFAULT_SETTINGS.naming.file_name(0) == "IMOBI 1.jpeg"

    def test_new_badge_defaults(self):
        badge = BadgeSettings(image=b"x")
        assert badge.position is BrandingPosition.TOP_LEFT
        assert badge.opacity == 100
        assert len(badge.id) == 9
        assert badge.id != BadgeSettings(image=b"x").id

    def test_empty_text_watermark_not_drawable(self):
        assert not DEFAULT_SETTINGS.watermark.is_drawable
        assert DEFAULT_SETTINGS.watermark.with_changes(text="IMOBI").is_drawable


class TestBadges:
    """Test badge list invariants."""

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError):
            EditSettings(badges=(BadgeSettings(id='a'), BadgeSettings(id='a')))

    def test_get_badge(self):
        settings = EditSettings(badges=[BadgeSettings(id='a'), BadgeSettings(id='b')])
        assert isinstance(settings.badges, tuple)
        assert settings.get_badge('b').id == 'b'
        assert settings.get_badge('zzz') is None


class TestSerialization:
    """Test the editor's JSON shape."""

    def test_from_dict_camel_case(self):
        settings = EditSettings.from_dict({
            'optimized': False,
            'aligned': True,
            'sharpness': 80,
            'cropRatio': '9:16',
            'watermark': {'enabled': True, 'text': 'IMOBI', 'scale': 20, 'opacity': 50,
                          'position': 'top-center', 'offsetX': 5, 'offsetY': -7},
            'badges': [{'id': 'b1', 'enabled': True, 'image': 'data:image/png;base64,AAAA',
                        'scale': 10, 'opacity': 90, 'position': 'bottom-left', 'offsetX': 0, 'offsetY': 0}],
            'naming': {'format': 'CASA', 'position': 'before', 'startNumber': 3},
        })
        assert settings.crop_ratio is CropRatio.PORTRAIT_9_16
        assert settings.watermark.position is BrandingPosition.TOP_CENTER
        assert (settings.watermark.offset_x, settings.watermark.offset_y) == (5, -7)
        assert settings.badges[0].id == 'b1'
        assert settings.badges[0].position is BrandingPosition.BOTTOM_LEFT
        assert settings.naming.file_name(0) == "3 CASA.jpeg"

    def test_to_dict_round_trip(self):
        settings = EditSettings(sharpness=12, crop_ratio=CropRatio.SQUARE,
                                badges=(BadgeSettings(id='x', image='data:image/png;base64,AAAA'),))
        assert EditSettings.from_dict(settings.to_dict()) == settings

    def test_unknown_values_fall_back(self):
        settings = EditSettings.from_dict({'cropRatio': '7:3', 'watermark': {'position': 'nowhere'},
                                           'naming': {'position': 'middle'}})
        assert settings.crop_ratio is CropRatio.ORIGINAL
        assert settings.watermark.position is BrandingPosition.BOTTOM_RIGHT
        assert settings.naming.position is RenamePosition.AFTER

    def test_underscore_positions_accepted(self):
        assert WatermarkSettings(position='bottom_left').position is BrandingPosition.BOTTOM_LEFT
