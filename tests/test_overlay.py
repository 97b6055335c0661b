"""Tests for overlay HTML rendering: initial state, escaping, visibility."""

import copy
import json
import re

from hp_tracker import storage
from hp_tracker.overlay import build_context, render_overlay

CHAR = {
    "id": "c-1",
    "name": "Gareth",
    "icon": "/uploads/1-gareth.png",
    "hp": 7,
    "maxHp": 12,
    "createdAt": "2026-01-01T00:00:00+00:00",
}


def _settings(**overlay):
    settings = copy.deepcopy(storage.DEFAULT_SETTINGS)
    settings["overlay"].update(overlay)
    return settings


def _style_of(html, element_id):
    tag = re.search(rf'<[^>]*id="{element_id}"[^>]*>', html).group(0)
    return re.search(r'style="([^"]*)"', tag).group(1)


def test_render_inlines_character():
    html = render_overlay(CHAR, _settings())
    assert "<title>Overlay - Gareth</title>" in html
    assert '<span id="hpText">7 / 12</span>' in html
    assert 'src="/uploads/1-gareth.png"' in html
    assert '<h3 class="character-name" id="characterName"' in html


def test_render_inlines_font_and_sizes():
    html = render_overlay(CHAR, _settings(font_size=22, font_color="#ABCDEF",
                                          font_family="Georgia", icons_size=40,
                                          character_icon_size=120))
    assert "font-size: 22px;" in html
    assert "color: #ABCDEF;" in html
    assert "Georgia" in html
    assert "width: 40px;" in html
    assert "width: 120px;" in html


def test_render_defaults_for_missing_settings():
    html = render_overlay(CHAR, {"overlay": {}})
    assert "font-size: 14px;" in html
    assert "color: #FFFFFF;" in html
    assert "Poppins" in html


def test_toggles_hide_but_keep_elements():
    html = render_overlay(CHAR, _settings(show_name=False, show_health=False,
                                          show_character_icon=False, show_icon=False,
                                          health_icon_file_path="/uploads/heart.png"))
    for element_id in ("characterName", "hpContainer", "characterIcon", "healthIcon"):
        assert f'id="{element_id}"' in html
        assert "display: none" in _style_of(html, element_id)


def test_toggles_on_show_elements():
    html = render_overlay(CHAR, _settings(health_icon_file_path="/uploads/heart.png"))
    assert "display: block" in _style_of(html, "characterName")
    assert "display: flex" in _style_of(html, "hpContainer")
    assert "display: block" in _style_of(html, "characterIcon")
    assert "display: block" in _style_of(html, "healthIcon")
    assert 'src="/uploads/heart.png"' in html


def test_missing_icons_hidden():
    html = render_overlay({**CHAR, "icon": ""}, _settings())
    assert "display: none" in _style_of(html, "characterIcon")
    assert "display: none" in _style_of(html, "healthIcon")


def test_name_is_escaped():
    html = render_overlay({**CHAR, "name": "<script>alert(1)</script>"}, _settings())
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html


def test_script_state_cannot_close_script_tag():
    ctx = build_context({**CHAR, "name": "</script><b>"}, _settings())
    assert "</script>" not in ctx["state_json"]
    assert json.loads(ctx["state_json"])["character"]["name"] == "</script><b>"


def test_script_subscribes_to_events():
    html = render_overlay(CHAR, _settings())
    assert 'const CHARACTER_ID = "c-1";' in html
    assert '"/ws"' in html
    for event in ("characterUpdated", "charactersUpdated", "settingsUpdated"):
        assert f'"{event}"' in html
