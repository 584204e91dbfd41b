"""Tests for the deep-focus presentation-mode controller."""

from __future__ import annotations

import pytest
from PyQt6.QtWidgets import QLabel, QMainWindow, QVBoxLayout, QWidget

from focusrank.effects import DesktopEffects
from focusrank.notifications import TrayNotifier, PERMISSION_DEFAULT, PERMISSION_DENIED
from focusrank.settings import Configuration
from focusrank.ui.presentation import (
    PresentationModeController, PresentationOptions, DIM_OPACITY,
)

from helpers import SignalCollector


@pytest.fixture
def window(qapp):
    win = QMainWindow()
    central = QWidget()
    layout = QVBoxLayout(central)
    win.chrome = QLabel("toolbar", central)
    win.side = QLabel("sidebar", central)
    layout.addWidget(win.chrome)
    layout.addWidget(win.side)
    win.setCentralWidget(central)
    win.statusBar()
    win.show()
    yield win
    win.close()


@pytest.fixture
def controller(window):
    ctl = PresentationModeController(window)
    ctl.register_chrome(window.chrome)
    ctl.register_surrounding(window.side)
    return ctl


class TestEnterExit:
    def test_enter_hides_dims_and_mutes(self, controller, window):
        controller.enter()
        assert controller.is_active
        assert not window.chrome.isVisibleTo(window)
        assert not window.statusBar().isVisibleTo(window)
        assert window.side.graphicsEffect() is not None
        assert window.side.graphicsEffect().opacity() == pytest.approx(DIM_OPACITY)
        assert controller.notifications_suppressed

    def test_exit_restores_everything(self, controller, window):
        controller.enter()
        controller.exit()
        assert not controller.is_active
        assert window.chrome.isVisibleTo(window)
        assert window.statusBar().isVisibleTo(window)
        assert window.side.graphicsEffect() is None
        assert not controller.notifications_suppressed

    def test_enter_twice_then_exit_once_fully_restores(self, controller, window):
        entered = SignalCollector()
        controller.entered.connect(entered)
        controller.enter()
        controller.enter()
        assert len(entered) == 1
        controller.exit()
        assert window.chrome.isVisibleTo(window)
        assert window.side.graphicsEffect() is None
        assert not controller.notifications_suppressed
        assert not controller.is_active

    def test_teardown_without_exit_restores(self, controller, window):
        controller.enter()
        controller.enter()
        controller.close()
        assert not controller.is_active
        assert window.chrome.isVisibleTo(window)
        assert window.statusBar().isVisibleTo(window)
        assert window.side.graphicsEffect() is None
        assert not controller.notifications_suppressed

    def test_application_quit_restores(self, qapp, controller, window):
        controller.enter()
        controller.enter()
        qapp.aboutToQuit.emit()
        assert not controller.is_active
        assert window.chrome.isVisibleTo(window)
        assert window.side.graphicsEffect() is None
        assert not controller.notifications_suppressed

    def test_exit_without_enter_is_harmless(self, controller, window):
        exited = SignalCollector()
        controller.exited.connect(exited)
        controller.exit()
        assert len(exited) == 0
        assert window.chrome.isVisibleTo(window)

    def test_already_hidden_chrome_stays_hidden(self, controller, window):
        window.chrome.hide()
        controller.enter()
        controller.exit()
        assert not window.chrome.isVisibleTo(window)

    def test_existing_graphics_effect_is_kept(self, controller, window):
        from PyQt6.QtWidgets import QGraphicsBlurEffect
        blur = QGraphicsBlurEffect(window.side)
        window.side.setGraphicsEffect(blur)
        controller.enter()
        controller.exit()
        assert window.side.graphicsEffect() is blur


class TestOptions:
    def test_only_selected_effects(self, window):
        ctl = PresentationModeController(
            window, options=PresentationOptions(
                dim_interface=False, mute_notifications=False, hide_elements=True,
            ),
        )
        ctl.register_chrome(window.chrome)
        ctl.register_surrounding(window.side)
        ctl.enter()
        assert not window.chrome.isVisibleTo(window)
        assert window.side.graphicsEffect() is None
        assert not ctl.notifications_suppressed
        ctl.exit()

    def test_options_changed_while_active_still_undo(self, controller, window):
        controller.enter()
        controller.set_options(PresentationOptions(
            dim_interface=False, mute_notifications=False, hide_elements=False,
        ))
        controller.exit()
        assert window.chrome.isVisibleTo(window)
        assert window.side.graphicsEffect() is None

    def test_from_configuration(self):
        opts = PresentationOptions.from_configuration(
            Configuration(dim_interface=False, fullscreen=True),
        )
        assert opts.dim_interface is False
        assert opts.fullscreen is True
        assert opts.hide_elements is True

    def test_disabled_controller_does_nothing(self, window):
        ctl = PresentationModeController(window, enabled=False)
        ctl.register_chrome(window.chrome)
        ctl.enter()
        assert not ctl.is_active
        assert window.chrome.isVisibleTo(window)

    def test_disabling_exits(self, controller, window):
        controller.enter()
        controller.enabled = False
        assert not controller.is_active
        assert window.chrome.isVisibleTo(window)


# ═══════════════════════════════════════════════════════════════════════
#  EFFECTS ADAPTER
# ═══════════════════════════════════════════════════════════════════════


class _FakeNotifier:
    def __init__(self, permitted=True):
        self.permitted = permitted
        self.shown = []

    def is_permitted(self):
        return self.permitted

    def show(self, title, body):
        self.shown.append((title, body))


class TestDesktopEffects:
    def test_notify_when_permitted(self):
        notifier = _FakeNotifier()
        DesktopEffects(notifier=notifier).notify("Hi", "there")
        assert notifier.shown == [("Hi", "there")]

    def test_notify_without_permission(self):
        notifier = _FakeNotifier(permitted=False)
        DesktopEffects(notifier=notifier).notify("Hi", "there")
        assert notifier.shown == []

    def test_deep_focus_mutes_notifications(self, controller):
        notifier = _FakeNotifier()
        effects = DesktopEffects(notifier=notifier, presentation=controller)
        effects.enter_presentation_mode()
        effects.notify("Work session completed!", "Time for a break!")
        assert notifier.shown == []
        effects.exit_presentation_mode()
        effects.notify("Break completed!", "Ready to get back to work?")
        assert len(notifier.shown) == 1

    def test_adapter_errors_are_swallowed(self):
        class Broken:
            def play(self, name):
                raise OSError("no audio device")

        DesktopEffects(sounds=Broken()).play_sound("click")

    def test_missing_adapters_are_fine(self):
        effects = DesktopEffects()
        effects.notify("a", "b")
        effects.play_ambient("rain")
        effects.stop_sound()
        effects.set_volume(10)
        effects.enter_presentation_mode()
        effects.exit_presentation_mode()


class TestTrayNotifier:
    def test_permission_starts_default(self):
        assert TrayNotifier().permission == PERMISSION_DEFAULT

    def test_no_tray_means_denied(self, qapp):
        notifier = TrayNotifier(None)
        assert notifier.request_permission() == PERMISSION_DENIED
        assert not notifier.is_permitted()
        notifier.show("ignored", "silently")
