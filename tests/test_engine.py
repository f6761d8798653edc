"""Tests for the frame driver."""

import numpy as np
import pygame
import pytest

from floatingdots.core.lightning import MODES, LineEffectConfig, distance_intensity_factor
from floatingdots.core.points import MAX_POINTS, MIN_POINTS, XY_LIMIT, Z_MAX, Z_MIN
from floatingdots.engine import EngineConfig, SculptureEngine
from floatingdots.io.recorder import SimulatedClock

FRAME_MS = 1000.0 / 60


def _engine(clock, audio=None, **kwargs) -> SculptureEngine:
    cfg = EngineConfig(width=160, height=120, **{"seed": 42, "point_count": 6, **kwargs})
    return SculptureEngine(cfg, clock=clock, audio=audio)


def _positions(engine) -> np.ndarray:
    return np.array([p.position for p in engine.sculpture.points])


class TestSculptureEngine:
    def test_initial_state(self, clock, offline_mapper):
        engine = _engine(clock, offline_mapper)
        assert len(engine.sculpture.points) == 6
        assert engine.sculpture.start_time == 0.0
        assert engine.viewport.width == 160
        assert not engine.sound_enabled
        assert engine.frame_count == 0

    def test_default_line_style_when_not_randomized(self, clock, offline_mapper):
        engine = _engine(clock, offline_mapper, randomize_on_start=False)
        assert engine.line_config == LineEffectConfig()

    def test_first_frame_at_start_position(self, clock, offline_mapper):
        engine = _engine(clock, offline_mapper)
        stats = engine.on_frame()
        for point in engine.sculpture.points:
            np.testing.assert_allclose(point.position, engine.sculpture.start_position)
        assert stats.average_distance_from_centroid == pytest.approx(0.0, abs=1e-9)
        assert engine.frame_count == 1

    def test_points_stay_in_bounds(self, clock, offline_mapper):
        engine = _engine(clock, offline_mapper, point_count=20)
        for _ in range(600):
            engine.on_frame()
            pos = _positions(engine)
            assert np.all(np.abs(pos[:, :2]) <= XY_LIMIT)
            assert np.all((pos[:, 2] >= Z_MIN) & (pos[:, 2] <= Z_MAX))
            clock.advance(FRAME_MS * 10)

    def test_same_seed_same_motion(self):
        runs = []
        for _ in range(2):
            clock = SimulatedClock()
            engine = _engine(clock)
            for _ in range(300):
                engine.on_frame()
                clock.advance(FRAME_MS)
            runs.append(_positions(engine))
        np.testing.assert_array_equal(runs[0], runs[1])

    def test_drawing_does_not_change_motion(self):
        surface = pygame.Surface((160, 120))
        clock_a, clock_b = SimulatedClock(), SimulatedClock()
        drawn, headless = _engine(clock_a), _engine(clock_b)
        for _ in range(250):
            drawn.on_frame(surface)
            headless.on_frame()
            clock_a.advance(FRAME_MS)
            clock_b.advance(FRAME_MS)
        np.testing.assert_array_equal(_positions(drawn), _positions(headless))

    def test_restart_random_count(self, clock, offline_mapper):
        engine = _engine(clock, offline_mapper)
        for _ in range(20):
            sculpture = engine.restart()
            assert MIN_POINTS <= len(sculpture.points) <= MAX_POINTS
            assert engine.sculpture is sculpture

    def test_restart_uses_current_time(self, clock, offline_mapper):
        engine = _engine(clock, offline_mapper)
        clock.advance(5000.0)
        engine.on_frame()
        sculpture = engine.restart(point_count=10)
        assert sculpture.start_time == 5000.0
        engine.on_frame()
        for point in sculpture.points:
            np.testing.assert_allclose(point.position, sculpture.start_position)

    def test_restart_rejects_bad_count(self, clock, offline_mapper):
        engine = _engine(clock, offline_mapper)
        previous = engine.sculpture
        with pytest.raises(ValueError):
            engine.restart(point_count=MAX_POINTS + 1)
        assert engine.sculpture is previous

    def test_randomize_covers_every_mode(self, clock, offline_mapper):
        engine = _engine(clock, offline_mapper)
        modes = {engine.randomize_line_effect().mode for _ in range(100)}
        assert modes == set(MODES)

    def test_randomize_replaces_config(self, clock, offline_mapper):
        engine = _engine(clock, offline_mapper)
        before = engine.line_config
        after = engine.randomize_line_effect()
        assert engine.line_config is after
        assert after is not before

    def test_sound_toggle_before_any_frame(self, clock, offline_mapper):
        engine = _engine(clock, offline_mapper)
        assert engine.toggle_sound() is True
        assert engine.toggle_sound() is False
        assert not engine.sound_enabled

    def test_sound_toggle_without_device(self, clock, broken_mapper):
        engine = _engine(clock, broken_mapper)
        assert engine.toggle_sound() is False
        assert engine.toggle_sound() is False
        engine.on_frame()
        engine.close()

    def test_audio_follows_frames_when_enabled(self, clock, offline_mapper):
        engine = _engine(clock, offline_mapper)
        engine.on_frame()
        assert offline_mapper.last_targets is None

        engine.set_sound_enabled(True)
        clock.advance(FRAME_MS)
        engine.on_frame()
        assert offline_mapper.last_targets is not None

    def test_resize(self, clock, offline_mapper):
        engine = _engine(clock, offline_mapper)
        engine.resize(640, 480)
        assert (engine.viewport.width, engine.viewport.height) == (640, 480)
        engine.resize(0, -5)
        assert (engine.viewport.width, engine.viewport.height) == (1, 1)

    def test_projected_points(self, clock, offline_mapper):
        engine = _engine(clock, offline_mapper)
        screen = engine.projected_points()
        assert screen.shape == (6, 2)
        assert np.all(np.isfinite(screen))

    def test_render_frame(self, clock, offline_mapper):
        engine = _engine(clock, offline_mapper)
        # Large enough that every projected point lands on screen
        engine.resize(800, 800)
        surface = pygame.Surface((800, 800))
        clock.advance(4000.0)
        engine.on_frame(surface)
        frame = engine.renderer.surface_to_array(surface)
        assert frame.shape == (800, 800, 3)
        assert frame.max() > 0

    def test_close(self, clock, offline_mapper):
        engine = _engine(clock, offline_mapper)
        engine.set_sound_enabled(True)
        engine.close()
        assert not engine.sound_enabled


class TestEngineConfig:
    @pytest.mark.parametrize("kwargs", [
        {"spread_duration_ms": -1.0},
        {"point_count": MIN_POINTS - 1},
        {"point_count": MAX_POINTS + 1},
    ])
    def test_rejects_invalid(self, kwargs):
        with pytest.raises(ValueError):
            EngineConfig(**kwargs)

    def test_zero_spread_duration_runs(self):
        clock = SimulatedClock()
        engine = SculptureEngine(EngineConfig(seed=1, spread_duration_ms=0.0), clock=clock)
        engine.on_frame()
        for point in engine.sculpture.points:
            np.testing.assert_allclose(point.position, point.target, atol=1e-9)
        for _ in range(10):
            clock.advance(FRAME_MS)
            engine.on_frame()
        assert engine.frame_count == 11


class TestStreamIndependence:
    def test_restyling_does_not_change_motion(self):
        clock_a, clock_b = SimulatedClock(), SimulatedClock()
        restyled, untouched = _engine(clock_a), _engine(clock_b)
        for i in range(400):
            if i % 50 == 0:
                restyled.randomize_line_effect()
            restyled.on_frame()
            untouched.on_frame()
            clock_a.advance(FRAME_MS)
            clock_b.advance(FRAME_MS)
        np.testing.assert_array_equal(_positions(restyled), _positions(untouched))

    def test_line_strength_reaches_audio(self, clock, offline_mapper, monkeypatch):
        engine = _engine(clock, offline_mapper)
        engine.state.line_config = LineEffectConfig(mode="distance", distance_mode="normal")
        engine.set_sound_enabled(True)
        clock.advance(4000.0)

        seen = {}
        original = offline_mapper.update

        def spy(stats, line_config, now_s, intensity_factor=0.0):
            seen["factor"] = intensity_factor
            return original(stats, line_config, now_s, intensity_factor=intensity_factor)

        monkeypatch.setattr(offline_mapper, "update", spy)
        engine.on_frame()

        expected = distance_intensity_factor(engine.projected_points(), engine.line_config)
        assert seen["factor"] == pytest.approx(expected)
        assert seen["factor"] > 0.0
