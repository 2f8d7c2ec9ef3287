"""Tests for the dynamic point light manager."""

from __future__ import annotations

import numpy as np
import pytest

from lighting_core.constants import DynamicLightConfig
from lighting_core.dynamic_lights import DynamicLightManager, LightHandle


@pytest.fixture
def manager() -> DynamicLightManager:
    return DynamicLightManager(seed=7)


class TestLightArena:
    """Adding, looking up and removing lights."""

    def test_add_light_fields(self, manager: DynamicLightManager) -> None:
        handle = manager.add_light((1, 2, 3), (1.0, 0.5, 0.2), intensity=2.0, radius=12.0)
        light = manager[handle]

        np.testing.assert_array_equal(light.position, [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(light.color, [1.0, 0.5, 0.2])
        assert light.intensity == 2.0
        assert light.original_intensity == 2.0
        assert light.radius == 12.0
        assert light.flicker_amount == pytest.approx(0.2)

    def test_bright_light_casts_shadow(self, manager: DynamicLightManager) -> None:
        light = manager[manager.add_light((0, 0, 0), (1, 1, 1), intensity=2.0, radius=10.0)]
        assert light.cast_shadow
        assert light.shadow_map_size == 512
        assert light.shadow_near == 0.5
        assert light.shadow_far == 10.0

    def test_shadow_threshold_is_strict(self, manager: DynamicLightManager) -> None:
        at = manager[manager.add_light((0, 0, 0), (1, 1, 1), intensity=1.0, radius=5.0)]
        below = manager[manager.add_light((0, 0, 0), (1, 1, 1), intensity=0.5, radius=5.0)]
        assert not at.cast_shadow
        assert not below.cast_shadow

    def test_len_and_iter(self, manager: DynamicLightManager) -> None:
        a = manager.add_light((0, 0, 0), (1, 1, 1), 1.0, 5.0)
        manager.add_light((1, 0, 0), (1, 1, 1), 1.0, 5.0)
        assert len(manager) == 2
        assert len(list(manager)) == 2
        assert a in manager
        assert manager.handles()[0] == a

    def test_remove_light(self, manager: DynamicLightManager) -> None:
        handle = manager.add_light((0, 0, 0), (1, 1, 1), 1.0, 5.0)
        assert manager.remove_light(handle)
        assert handle not in manager
        assert len(manager) == 0
        assert manager.get(handle) is None
        with pytest.raises(KeyError):
            manager[handle]

    def test_remove_twice_is_noop(self, manager: DynamicLightManager) -> None:
        handle = manager.add_light((0, 0, 0), (1, 1, 1), 1.0, 5.0)
        manager.remove_light(handle)
        assert not manager.remove_light(handle)

    def test_unknown_handle(self, manager: DynamicLightManager) -> None:
        assert not manager.remove_light(LightHandle(99, 0))
        assert LightHandle(99, 0) not in manager
        assert "not a handle" not in manager

    def test_stale_handle_after_slot_reuse(self, manager: DynamicLightManager) -> None:
        """A reused slot gets a new generation; the old handle stays dead."""
        old = manager.add_light((0, 0, 0), (1, 1, 1), 1.0, 5.0)
        manager.remove_light(old)
        new = manager.add_light((5, 5, 5), (1, 0, 0), 3.0, 8.0)

        assert new.index == old.index
        assert new.generation == old.generation + 1
        assert old not in manager
        assert manager.get(old) is None
        assert manager[new].intensity == 3.0

    def test_negative_flicker_rejected(self, manager: DynamicLightManager) -> None:
        with pytest.raises(ValueError):
            manager.add_light((0, 0, 0), (1, 1, 1), 1.0, 5.0, flicker_amount=-0.1)
        with pytest.raises(ValueError):
            DynamicLightManager(flicker_amount=-1.0)


class TestFlicker:
    """Per-tick intensity animation."""

    def test_intensity_stays_in_band(self, manager: DynamicLightManager) -> None:
        handle = manager.add_light((0, 0, 0), (1, 1, 1), intensity=2.0, radius=5.0)
        for _ in range(500):
            manager.update(1.0 / 60.0)
            intensity = manager[handle].intensity
            assert 1.6 <= intensity <= 2.4, f"Flicker left ±20% band: {intensity}"

    def test_original_intensity_unchanged(self, manager: DynamicLightManager) -> None:
        handle = manager.add_light((0, 0, 0), (1, 1, 1), intensity=2.0, radius=5.0)
        for _ in range(20):
            manager.update(0.016)
        assert manager[handle].original_intensity == 2.0

    def test_no_drift(self, manager: DynamicLightManager) -> None:
        """Each tick modulates the original value, so the mean stays put."""
        handle = manager.add_light((0, 0, 0), (1, 1, 1), intensity=1.0, radius=5.0)
        samples = []
        for _ in range(5000):
            manager.update(0.016)
            samples.append(manager[handle].intensity)
        assert np.mean(samples) == pytest.approx(1.0, abs=0.01)

    def test_zero_flicker_is_static(self, manager: DynamicLightManager) -> None:
        handle = manager.add_light((0, 0, 0), (1, 1, 1), 1.5, 5.0, flicker_amount=0.0)
        for _ in range(10):
            manager.update(0.016)
        assert manager[handle].intensity == 1.5

    def test_same_seed_same_sequence(self) -> None:
        traces = []
        for _ in range(2):
            m = DynamicLightManager(seed=123)
            h = m.add_light((0, 0, 0), (1, 1, 1), 1.0, 5.0)
            trace = []
            for _ in range(30):
                m.update(0.016)
                trace.append(m[h].intensity)
            traces.append(trace)
        assert traces[0] == traces[1]

    def test_injected_rng(self) -> None:
        rng = np.random.default_rng(0)
        expected = 1.0 * (1.0 + 0.2 * np.random.default_rng(0).uniform(-1.0, 1.0))

        m = DynamicLightManager(rng=rng)
        h = m.add_light((0, 0, 0), (1, 1, 1), 1.0, 5.0)
        m.update(0.016)
        assert m[h].intensity == pytest.approx(expected)

    def test_update_with_no_lights(self, manager: DynamicLightManager) -> None:
        manager.update(0.016)
        assert len(manager) == 0

    def test_from_config(self) -> None:
        config = DynamicLightConfig(flicker_amount=0.5, shadow_intensity_threshold=3.0, seed=1)
        m = DynamicLightManager.from_config(config)
        light = m[m.add_light((0, 0, 0), (1, 1, 1), intensity=2.0, radius=4.0)]
        assert light.flicker_amount == 0.5
        assert not light.cast_shadow
