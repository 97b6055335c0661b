"""Handlebars rendering of the per-character live overlay page.

The page inlines the character (name, hp/maxHp, icon) and four settings
groups (font, icon sizes, visibility, health icon) as its first paint,
then subscribes to /ws and patches the DOM in place on characterUpdated,
charactersUpdated, and settingsUpdated.

Every element is always rendered; a visibility toggle only switches its
element to display:none, so a later settingsUpdated can bring it back.
"""

import json
from collections.abc import Callable
from typing import Any

import pybars

DEFAULT_FONT_SIZE = 14
DEFAULT_FONT_FAMILY = "Poppins"
DEFAULT_FONT_COLOR = "#FFFFFF"
DEFAULT_ICONS_SIZE = 64
DEFAULT_CHARACTER_ICON_SIZE = 170

OVERLAY_TEMPLATE = """<!doctype html>
<html>
<head>
  <meta charset="utf-8"/>
  <meta name="viewport" content="width=device-width,initial-scale=1"/>
  <title>Overlay - {{character.name}}</title>
  <link href="https://fonts.googleapis.com/css2?family=Poppins:wght@400;700&display=swap" rel="stylesheet">
  <style>
    body { margin: 0; background: transparent; }
    .character-overlay {
      width: 20%;
      font-size: {{font.size}}px;
      color: {{font.color}};
      font-family: "{{font.family}}", Arial, sans-serif;
      display: flex;
      flex-direction: column;
      align-items: center;
      gap: 4px;
    }
    .character-name { font-weight: bold; margin: 0; text-align: center; }
    .hp-container { display: flex; align-items: center; gap: 6px; }
    .character-icon {
      width: {{icons.character}}px;
      height: {{icons.character}}px;
      object-fit: cover;
      border-radius: 5%;
    }
    .health-icon {
      width: {{icons.health}}px;
      height: {{icons.health}}px;
      object-fit: contain;
    }
  </style>
</head>
<body>
  <div id="root">
    <div class="character-overlay" id="characterOverlay">
      <img class="character-icon" id="characterIcon"{{#if character.icon}} src="{{character.icon}}"{{/if}} style="display: {{#if visible.character_icon}}block{{else}}none{{/if}};"/>
      <h3 class="character-name" id="characterName" style="display: {{#if visible.name}}block{{else}}none{{/if}};">{{character.name}}</h3>
      <div class="hp-container" id="hpContainer" style="display: {{#if visible.health}}flex{{else}}none{{/if}};">
        <img class="health-icon" id="healthIcon"{{#if health_icon}} src="{{health_icon}}"{{/if}} style="display: {{#if visible.health_icon}}block{{else}}none{{/if}};"/>
        <span id="hpText">{{character.hp}} / {{character.maxHp}}</span>
      </div>
    </div>
  </div>

  <script>
    (function () {
      const CHARACTER_ID = {{{character_id_json}}};
      const DEFAULTS = {{{defaults_json}}};
      const state = {{{state_json}}};

      const els = {
        overlay: document.getElementById("characterOverlay"),
        characterIcon: document.getElementById("characterIcon"),
        name: document.getElementById("characterName"),
        hpContainer: document.getElementById("hpContainer"),
        healthIcon: document.getElementById("healthIcon"),
        hpText: document.getElementById("hpText"),
      };

      function show(el, visible, display) {
        el.style.display = visible ? display : "none";
      }

      function setSrc(el, src) {
        if (src) {
          if (el.getAttribute("src") !== src) el.src = src;
        } else {
          el.removeAttribute("src");
        }
      }

      function applyCharacter() {
        const c = state.character;
        const o = state.overlay;
        els.name.textContent = c.name || "";
        els.hpText.textContent = (c.hp ?? 0) + " / " + (c.maxHp ?? 0);
        setSrc(els.characterIcon, c.icon);
        show(els.characterIcon, o.show_character_icon !== false && !!c.icon, "block");
      }

      function applySettings() {
        const o = state.overlay;
        const iconSize = (o.icons_size || DEFAULTS.icons_size) + "px";
        const characterIconSize = (o.character_icon_size || DEFAULTS.character_icon_size) + "px";

        els.overlay.style.fontSize = (o.font_size || DEFAULTS.font_size) + "px";
        els.overlay.style.color = o.font_color || DEFAULTS.font_color;
        els.overlay.style.fontFamily = '"' + (o.font_family || DEFAULTS.font_family) + '", Arial, sans-serif';

        show(els.name, o.show_name !== false, "block");
        show(els.hpContainer, o.show_health !== false, "flex");

        els.characterIcon.style.width = characterIconSize;
        els.characterIcon.style.height = characterIconSize;
        show(els.characterIcon, o.show_character_icon !== false && !!state.character.icon, "block");

        setSrc(els.healthIcon, o.health_icon_file_path);
        els.healthIcon.style.width = iconSize;
        els.healthIcon.style.height = iconSize;
        show(els.healthIcon, o.show_icon !== false && !!o.health_icon_file_path, "block");
      }

      function setCharacter(character) {
        if (!character) return;
        state.character = character;
        applyCharacter();
      }

      function setSettings(settings) {
        if (!settings || !settings.overlay) return;
        state.overlay = settings.overlay;
        applySettings();
        applyCharacter();
      }

      function findCharacter(list) {
        return (list || []).find(function (c) { return c.id === CHARACTER_ID; });
      }

      function handle(message) {
        switch (message.event) {
          case "characterUpdated":
            if (message.data && message.data.id === CHARACTER_ID) setCharacter(message.data.character);
            break;
          case "charactersUpdated":
            setCharacter(findCharacter(message.data));
            break;
          case "settingsUpdated":
            setSettings(message.data);
            break;
        }
      }

      function resync() {
        fetch("/api/characters").then(function (r) { return r.json(); }).then(function (list) {
          setCharacter(findCharacter(list));
        }).catch(function () {});
        fetch("/api/settings").then(function (r) { return r.json(); }).then(setSettings).catch(function () {});
      }

      function connect() {
        const scheme = location.protocol === "https:" ? "wss://" : "ws://";
        const ws = new WebSocket(scheme + location.host + "/ws");
        ws.onopen = resync;
        ws.onmessage = function (e) {
          try {
            handle(JSON.parse(e.data));
          } catch (err) {
            console.error("Bad overlay message", err);
          }
        };
        ws.onclose = function () { setTimeout(connect, 2000); };
      }

      connect();
    })();
  </script>
</body>
</html>
"""

_compiler = pybars.Compiler()
_template: Callable | None = None


class OverlayError(Exception):
    """Raised when the overlay template fails to render."""


def _script_json(value: Any) -> str:
    """JSON safe to embed inside a <script> element."""
    return json.dumps(value).replace("</", "<\\/")


def build_context(character: dict[str, Any], settings: dict[str, Any]) -> dict[str, Any]:
    """Assemble template variables from a character and the settings document."""
    overlay = settings.get("overlay") or {}
    health_icon = overlay.get("health_icon_file_path") or ""
    icon = character.get("icon") or ""
    show_character_icon = overlay.get("show_character_icon") is not False
    show_icon = overlay.get("show_icon") is not False
    defaults = {
        "font_size": DEFAULT_FONT_SIZE,
        "font_family": DEFAULT_FONT_FAMILY,
        "font_color": DEFAULT_FONT_COLOR,
        "icons_size": DEFAULT_ICONS_SIZE,
        "character_icon_size": DEFAULT_CHARACTER_ICON_SIZE,
    }
    return {
        "character": {
            "name": character.get("name", ""),
            "icon": icon,
            "hp": character.get("hp", 0),
            "maxHp": character.get("maxHp", 0),
        },
        "font": {
            "size": overlay.get("font_size") or DEFAULT_FONT_SIZE,
            "family": overlay.get("font_family") or DEFAULT_FONT_FAMILY,
            "color": overlay.get("font_color") or DEFAULT_FONT_COLOR,
        },
        "icons": {
            "health": overlay.get("icons_size") or DEFAULT_ICONS_SIZE,
            "character": overlay.get("character_icon_size") or DEFAULT_CHARACTER_ICON_SIZE,
        },
        "visible": {
            "name": overlay.get("show_name") is not False,
            "health": overlay.get("show_health") is not False,
            "character_icon": show_character_icon and bool(icon),
            "health_icon": show_icon and bool(health_icon),
        },
        "health_icon": health_icon,
        "character_id_json": _script_json(character["id"]),
        "defaults_json": _script_json(defaults),
        "state_json": _script_json({"character": character, "overlay": overlay}),
    }


def render_overlay(character: dict[str, Any], settings: dict[str, Any]) -> str:
    """Render the standalone overlay HTML for one character."""
    global _template
    try:
        if _template is None:
            _template = _compiler.compile(OVERLAY_TEMPLATE)
        return str(_template(build_context(character, settings)))
    except Exception as e:
        raise OverlayError(f"Overlay render failed: {e}") from e
