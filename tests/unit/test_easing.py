"""Unit tests for easing functions."""

import pytest

from framecue.config.defaults import get_easing_names
from framecue.utils.math.easing import (
    EASING_PRESETS,
    EASINGS,
    cubic_bezier,
    ease_in_out_cubic,
    ease_in_quad,
    ease_out_bounce,
    ease_out_cubic,
    get_easing,
    linear,
    normalize_easing_name,
)


class TestEasingFunctions:
    """Endpoints and known values of the standard curves."""

    @pytest.mark.parametrize("name", sorted(EASINGS))
    def test_endpoints(self, name):
        ease = EASINGS[name]
        assert ease(0) == pytest.approx(0, abs=1e-6)
        assert ease(1) == pytest.approx(1, abs=1e-6)

    def test_known_values(self):
        assert linear(0.3) == 0.3
        assert ease_in_quad(0.5) == 0.25
        assert ease_out_cubic(0.5) == 0.875
        assert ease_in_out_cubic(0.5) == 0.5

    def test_bounce_stays_in_range(self):
        for i in range(101):
            assert 0 <= ease_out_bounce(i / 100) <= 1 + 1e-9

    def test_back_overshoots(self):
        assert EASINGS["ease_in_back"](0.2) < 0
        assert EASINGS["ease_out_back"](0.8) > 1


class TestCubicBezier:
    """Test cubic_bezier easing."""

    def test_linear_control_points(self):
        ease = cubic_bezier(0.3, 0.3, 0.7, 0.7)
        assert ease(0.42) == 0.42

    def test_endpoints_exact(self):
        ease = cubic_bezier(0.4, 0, 0.2, 1)
        assert ease(0) == 0
        assert ease(1) == 1

    def test_css_ease_midpoint(self):
        # CSS "ease" is cubic-bezier(0.25, 0.1, 0.25, 1)
        assert cubic_bezier(0.25, 0.1, 0.25, 1)(0.5) == pytest.approx(0.8024, abs=1e-3)

    def test_symmetric_curve(self):
        ease = cubic_bezier(0.42, 0, 0.58, 1)
        assert ease(0.5) == pytest.approx(0.5, abs=1e-6)
        assert ease(0.25) == pytest.approx(1 - ease(0.75), abs=1e-6)

    def test_monotonic(self):
        ease = EASING_PRESETS["smooth"]
        values = [ease(i / 50) for i in range(51)]
        assert values == sorted(values)


class TestGetEasing:
    """Test name resolution."""

    def test_camel_case(self):
        assert get_easing("easeInOutCubic") is ease_in_out_cubic

    def test_snake_and_kebab(self):
        assert get_easing("ease_out_cubic") is ease_out_cubic
        assert get_easing("ease-out-cubic") is ease_out_cubic

    def test_presets(self):
        assert get_easing("bouncy") is EASING_PRESETS["bouncy"]

    def test_none_uses_default(self):
        assert get_easing(None) is linear
        assert get_easing(None, default=ease_out_cubic) is ease_out_cubic

    def test_callable_passes_through(self):
        fn = lambda t: t  # noqa: E731
        assert get_easing(fn) is fn

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown easing: wobble"):
            get_easing("wobble")

    def test_normalize(self):
        assert normalize_easing_name("easeInOutQuad") == "ease_in_out_quad"
        assert normalize_easing_name(" linear ") == "linear"

    def test_every_listed_name_resolves(self):
        for name in get_easing_names():
            assert callable(get_easing(name))
