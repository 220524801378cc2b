from __future__ import annotations

from config import AppSettings
from models import OverlayMode, Region, RegionFraction
from overlay_state import OverlayState

from fakes import FakeRenderer


def _settings(resting: str = "/img/rest.png", talking: str = "/img/talk.png", enabled: bool = True) -> AppSettings:
    return AppSettings(resting_image_path=resting, talking_image_path=talking, overlay_enabled=enabled)


def test_toggle_alternates_hidden_and_resting() -> None:
    renderer = FakeRenderer()
    overlay = OverlayState(renderer, _settings())

    overlay.toggle()
    assert overlay.mode == OverlayMode.RESTING
    assert renderer.shown[-1][0] == "/img/rest.png"

    overlay.toggle()
    assert overlay.mode == OverlayMode.HIDDEN
    assert renderer.hidden == 1


def test_toggle_from_talking_hides() -> None:
    renderer = FakeRenderer()
    overlay = OverlayState(renderer, _settings())

    overlay.show_talking()
    assert overlay.mode == OverlayMode.TALKING
    assert renderer.shown[-1][0] == "/img/talk.png"

    overlay.toggle()
    assert overlay.mode == OverlayMode.HIDDEN


def test_default_region_is_bottom_right_cell() -> None:
    renderer = FakeRenderer(screen=Region(0, 0, 1600, 1000))
    overlay = OverlayState(renderer, _settings())

    overlay.show_resting()

    assert renderer.shown[-1][1] == Region(1200, 500, 400, 500)


def test_region_is_configurable() -> None:
    renderer = FakeRenderer(screen=Region(100, 0, 1000, 1000))
    overlay = OverlayState(renderer, _settings())
    overlay.show_resting()

    overlay.set_region(RegionFraction(x=0.0, y=0.0, width=0.5, height=0.5))

    assert renderer.shown[-1] == ("/img/rest.png", Region(100, 0, 500, 500))


def test_missing_asset_skips_all_show_operations() -> None:
    renderer = FakeRenderer()
    overlay = OverlayState(renderer, _settings(talking=""))

    overlay.show_resting()
    overlay.show_talking()
    overlay.toggle()

    assert overlay.mode == OverlayMode.HIDDEN
    assert renderer.shown == []


def test_unloadable_image_keeps_mode_hidden() -> None:
    renderer = FakeRenderer()
    renderer.unloadable.add("/img/rest.png")
    modes: list = []
    overlay = OverlayState(renderer, _settings(), on_mode_change=lambda a, b: modes.append(b))

    overlay.toggle()
    assert overlay.mode == OverlayMode.HIDDEN
    assert renderer.hidden == 0

    renderer.unloadable.clear()
    overlay.toggle()
    assert overlay.mode == OverlayMode.RESTING
    assert modes == [OverlayMode.RESTING]


def test_unloadable_talking_image_keeps_resting() -> None:
    renderer = FakeRenderer()
    renderer.unloadable.add("/img/talk.png")
    overlay = OverlayState(renderer, _settings())

    overlay.show_resting()
    overlay.show_talking()

    assert overlay.mode == OverlayMode.RESTING
    assert [path for path, _ in renderer.shown] == ["/img/rest.png"]


def test_disabled_overlay_stays_hidden() -> None:
    renderer = FakeRenderer()
    overlay = OverlayState(renderer, _settings(enabled=False))

    overlay.toggle()

    assert overlay.mode == OverlayMode.HIDDEN
    assert renderer.shown == []


def test_hide_when_hidden_is_noop() -> None:
    renderer = FakeRenderer()
    overlay = OverlayState(renderer, _settings())

    overlay.hide()

    assert renderer.hidden == 0


def test_mode_change_callback() -> None:
    transitions: list[tuple[OverlayMode, OverlayMode]] = []
    overlay = OverlayState(FakeRenderer(), _settings(), on_mode_change=lambda f, t: transitions.append((f, t)))

    overlay.show_resting()
    overlay.show_resting()
    overlay.show_talking()
    overlay.hide()

    assert transitions == [
        (OverlayMode.HIDDEN, OverlayMode.RESTING),
        (OverlayMode.RESTING, OverlayMode.TALKING),
        (OverlayMode.TALKING, OverlayMode.HIDDEN),
    ]


def test_asset_for() -> None:
    overlay = OverlayState(FakeRenderer(), _settings())

    assert overlay.asset_for(OverlayMode.RESTING) == "/img/rest.png"
    assert overlay.asset_for(OverlayMode.TALKING) == "/img/talk.png"
    assert overlay.asset_for(OverlayMode.HIDDEN) is None
