"""Tests for the overlay state machine and how it drives the window surface.

Covers: tm.core.overlay, tm.core.surface
"""

import unittest

from fakes import RecordingSurface, ScriptedInputSource

OWN_WINDOW = 42
OTHER_WINDOW = 99


def _controller(surface=None, summary=None, **kwargs):
    from fakes import ManualClock
    from tm.core.overlay import OverlayController
    surface = surface or RecordingSurface(identity=OWN_WINDOW)
    controller = OverlayController(surface, summary_source=summary, clock=ManualClock(), **kwargs)
    return controller, surface


class TestOpacityPolicy(unittest.TestCase):

    def test_table(self):
        from tm.core.overlay import Focus, LockMode, OpacityPolicy
        policy = OpacityPolicy()
        self.assertEqual(policy.opacity_for(LockMode.UNLOCKED, Focus.FOCUSED), 255)
        self.assertEqual(policy.opacity_for(LockMode.UNLOCKED, Focus.UNFOCUSED), 180)
        self.assertEqual(policy.opacity_for(LockMode.CLICK_THROUGH, Focus.FOCUSED), 120)
        self.assertEqual(policy.opacity_for(LockMode.CLICK_THROUGH, Focus.UNFOCUSED), 120)

    def test_values_are_clamped(self):
        from tm.core.overlay import Focus, LockMode, OpacityPolicy
        policy = OpacityPolicy(focused=400, unfocused=-10)
        self.assertEqual(policy.opacity_for(LockMode.UNLOCKED, Focus.FOCUSED), 255)
        self.assertEqual(policy.opacity_for(LockMode.UNLOCKED, Focus.UNFOCUSED), 0)


class TestOverlayController(unittest.TestCase):

    def test_initial_state(self):
        from tm.core.overlay import Focus, LockMode, Visibility
        controller, _ = _controller()
        state = controller.state
        self.assertIs(state.visibility, Visibility.NORMAL)
        self.assertIs(state.lock, LockMode.UNLOCKED)
        self.assertIs(state.focus, Focus.UNFOCUSED)
        self.assertEqual(controller.lock_label(), "")

    def test_focus_drives_opacity(self):
        controller, surface = _controller()
        controller.on_focus_sample(OWN_WINDOW)
        self.assertEqual(surface.opacity, 255)
        controller.on_focus_sample(OTHER_WINDOW)
        self.assertEqual(surface.opacity, 180)
        controller.on_focus_sample(None)
        self.assertEqual(surface.opacity, 180)

    def test_opacity_is_reapplied_every_sample(self):
        controller, surface = _controller()
        for _ in range(3):
            controller.on_focus_sample(OTHER_WINDOW)
        self.assertEqual(surface.named("set_opacity"), [("set_opacity", 180)] * 3)

    def test_lock_toggle_enables_click_through(self):
        from tm.core.input_watcher import OverlayEvent
        from tm.core.overlay import LockMode
        controller, surface = _controller()
        controller.handle_event(OverlayEvent.LOCK_TOGGLE)
        self.assertIs(controller.state.lock, LockMode.CLICK_THROUGH)
        self.assertTrue(surface.click_through)
        controller.on_focus_sample(OWN_WINDOW)
        self.assertEqual(surface.opacity, 120)
        self.assertEqual(controller.lock_label(), "\U0001F512 LOCKED (Ctrl+Shift+L to unlock)")

        controller.handle_event(OverlayEvent.LOCK_TOGGLE)
        self.assertIs(controller.state.lock, LockMode.UNLOCKED)
        self.assertFalse(surface.click_through)
        controller.on_focus_sample(OWN_WINDOW)
        self.assertEqual(surface.opacity, 255)

    def test_always_on_top_applied_once(self):
        controller, surface = _controller()
        controller.on_focus_sample(None)
        controller.on_focus_sample(None)
        self.assertEqual(surface.named("set_always_on_top"), [("set_always_on_top",)])

    def test_always_on_top_can_be_disabled(self):
        controller, surface = _controller(always_on_top=False)
        controller.on_focus_sample(None)
        self.assertFalse(surface.on_top)

    def test_surface_failures_are_retried(self):
        from tm.core.overlay import LockMode
        surface = RecordingSurface(identity=OWN_WINDOW, ready=False)
        controller, _ = _controller(surface=surface)
        # Not ready: the state still changes, nothing raises
        controller.toggle_lock()
        controller.on_focus_sample(OWN_WINDOW)
        self.assertIs(controller.state.lock, LockMode.CLICK_THROUGH)
        self.assertEqual(surface.calls, [])

        surface.ready = True
        controller.on_focus_sample(OWN_WINDOW)
        self.assertTrue(surface.click_through)
        self.assertTrue(surface.on_top)
        self.assertEqual(surface.opacity, 120)

    def test_mini_geometry_centred_and_restored(self):
        from tm.core.overlay import Visibility
        surface = RecordingSurface(identity=OWN_WINDOW, screen=(1920, 1080), geometry=(100, 200, 300, 220))
        controller, _ = _controller(surface=surface)

        controller.toggle_mini()
        self.assertIs(controller.state.visibility, Visibility.MINI)
        self.assertEqual(surface.current_geometry, (735, 10, 450, 40))

        controller.toggle_mini()
        self.assertIs(controller.state.visibility, Visibility.NORMAL)
        self.assertEqual(surface.current_geometry, (100, 200, 300, 220))

    def test_mini_centred_on_secondary_screen(self):
        """A screen to the right of the primary one: the mini bar lands on it, not on the primary."""
        surface = RecordingSurface(identity=OWN_WINDOW, screen=(2560, 1400), origin=(1920, 40),
                                   geometry=(2000, 300, 300, 220))
        controller, _ = _controller(surface=surface)
        controller.toggle_mini()
        self.assertEqual(surface.current_geometry, (1920 + 1280 - 225, 40 + 10, 450, 40))
        controller.toggle_mini()
        self.assertEqual(surface.current_geometry, (2000, 300, 300, 220))

    def test_lock_and_mini_are_independent(self):
        controller, surface = _controller()
        controller.toggle_lock()
        controller.toggle_mini()
        state = controller.state
        self.assertTrue(state.locked)
        self.assertTrue(state.mini)
        self.assertTrue(surface.click_through)

    def test_listeners_see_every_change(self):
        controller, _ = _controller()
        seen = []
        controller.add_listener(seen.append)
        controller.toggle_lock()
        controller.toggle_mini()
        controller.toggle_lock()
        self.assertEqual([(s.locked, s.mini) for s in seen], [(True, False), (True, True), (False, True)])

    def test_listener_errors_are_contained(self):
        controller, _ = _controller()

        def broken(state):
            raise RuntimeError("renderer gone")

        seen = []
        controller.add_listener(broken)
        controller.add_listener(seen.append)
        controller.toggle_lock()
        self.assertEqual(len(seen), 1)

    def test_mini_text(self):
        controller, _ = _controller(summary=lambda: ("Coding", "00:12:34"))
        self.assertEqual(controller.mini_text.get(), "Ready")
        controller.toggle_mini()
        self.assertEqual(controller.mini_text.get(), "[ Coding 00:12:34 | Mon, 05 Jan 2026 09:00 ]")

    def test_chord_through_watcher(self):
        """Ctrl+Shift+L held for three polls → ClickThrough, and opacity 120 on the next cycle."""
        from fakes import ManualTicker
        from tm.core.input_watcher import InputWatcher
        controller, surface = _controller()
        source = ScriptedInputSource(foreground=OWN_WINDOW)
        watcher = InputWatcher(source, controller, "ctrl+shift+l", "ctrl+shift+k", ticker_factory=ManualTicker)

        watcher.poll_once()
        self.assertEqual(surface.opacity, 255)
        source.press("ctrl", "shift", "l")
        for _ in range(3):
            watcher.poll_once()
        self.assertTrue(controller.state.locked)
        self.assertEqual(surface.named("set_click_through"), [("set_click_through", True)])
        self.assertEqual(surface.opacity, 120)


class TestNullSurface(unittest.TestCase):

    def test_records_calls(self):
        from tm.core.surface import NullSurface
        surface = NullSurface()
        surface.set_opacity(180)
        surface.set_click_through(True)
        surface.move_and_resize(1, 2, 3, 4)
        self.assertEqual(surface.opacity, 180)
        self.assertTrue(surface.click_through)
        self.assertEqual(surface.geometry(), (1, 2, 3, 4))
        self.assertEqual(NullSurface(origin=(1920, 0)).screen_origin(), (1920, 0))


if __name__ == "__main__":
    unittest.main()
