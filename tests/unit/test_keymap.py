"""Tests for the modal keymap and custom keymap providers."""

from __future__ import annotations

from modalkeys.engine import (
    ModalBinding,
    ModalKeymapConfig,
    ModalKeymapProvider,
    Mode,
    SubMode,
    SubSubMode,
    get_modal_keymap,
    reset_modal_keymap,
    set_modal_keymap,
)
from modalkeys.engine.keymap import BindingType, DefaultModalKeymapProvider
from modalkeys.engine.motions import get_motion_handler


class DownOnQKeymapProvider(ModalKeymapProvider):
    """Default bindings plus Q as a second 'down' key."""

    def __init__(self) -> None:
        self._config = ModalKeymapConfig()
        self._config.motions["Q"] = ModalBinding("Q", BindingType.MOTION, "motion_down", "Down", template="j")
        del self._config.emacs["ctrl+e"]

    def get_config(self) -> ModalKeymapConfig:
        return self._config


class TestDefaultKeymap:
    """Tests for the default bindings."""

    def test_lookup_by_group(self):
        """Each key resolves to the binding of its group."""
        keymap = DefaultModalKeymapProvider()
        assert keymap.lookup("w").type == BindingType.MOTION
        assert keymap.lookup("d").submode == SubMode.DELETE
        assert keymap.lookup("i").handler == "action_insert"
        assert keymap.lookup("v").type == BindingType.MODE_SWITCH
        assert keymap.lookup("f").type == BindingType.PENDING
        assert keymap.lookup("%").handler == "action_matching_bracket"
        assert keymap.lookup("ctrl+t") is None

    def test_motion_handlers_exist(self):
        """Every motion binding names a registered motion function."""
        keymap = DefaultModalKeymapProvider()
        for binding in keymap.get_config().motions.values():
            assert get_motion_handler(binding.handler) is not None, binding.key

    def test_dot_template(self):
        """Alias keys record the canonical key in the dot command."""
        keymap = DefaultModalKeymapProvider()
        assert keymap.get_motion("right").dot_template == "l"
        assert keymap.get_motion("w").dot_template == "w"

    def test_pending_handlers(self):
        """Sub-submodes take precedence over submodes."""
        keymap = DefaultModalKeymapProvider()
        assert keymap.pending_handler(SubMode.DELETE, SubSubMode.FIND_CHAR) == "complete_find_char"
        assert keymap.pending_handler(SubMode.REPLACE, SubSubMode.NONE) == "complete_replace_char"
        assert keymap.pending_handler(SubMode.DELETE, SubSubMode.NONE) is None

    def test_mode_handlers(self):
        keymap = DefaultModalKeymapProvider()
        assert keymap.mode_handler(Mode.INSERT) == "handle_insert_mode"
        assert keymap.mode_handler(Mode.SEARCH_BACKWARD) == "handle_minibuffer_mode"

    def test_visual_actions_and_emacs(self):
        keymap = DefaultModalKeymapProvider()
        assert keymap.get_visual_action("o").handler == "visual_other_end"
        assert keymap.get_emacs("ctrl+k") == "emacs_kill_line"
        assert keymap.get_emacs("k") is None


class TestCustomKeymap:
    """Tests for swapping the keymap provider."""

    def test_global_provider(self):
        """set_modal_keymap replaces the provider until reset."""
        custom = DownOnQKeymapProvider()
        set_modal_keymap(custom)
        assert get_modal_keymap() is custom
        reset_modal_keymap()
        assert isinstance(get_modal_keymap(), DefaultModalKeymapProvider)

    def test_engine_uses_custom_bindings(self, make_engine, feed):
        """Engines created after set_modal_keymap use the custom bindings."""
        set_modal_keymap(DownOnQKeymapProvider())
        engine = make_engine("ab\ncd\nef")
        feed(engine, "Q")
        assert engine.position == 3
        feed(engine, "dQ")
        assert engine.buffer.text == "ab"

    def test_removed_emacs_chord(self, make_engine, feed):
        """A chord removed from the keymap is no longer handled."""
        set_modal_keymap(DownOnQKeymapProvider())
        engine = make_engine("abc")
        feed(engine, "<ctrl+e>")
        assert engine.position == 0
