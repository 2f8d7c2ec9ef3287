"""Tests for voxel sampling, ambient occlusion and shadow ray marching.

Test Strategy
-------------
1. Solidity lookup: floor-modulo addressing, fractional and negative
   coordinates, short buffers.
2. Occlusion: all-solid / all-empty extremes, single neighbours, corner
   exclusion.
3. Shadow: the two-valued output, first-hit short circuit, march length.
"""

from __future__ import annotations

import numpy as np
import pytest

from lighting_core.occlusion import AO_DIRECTIONS, ambient_occlusion
from lighting_core.shadow import cast_shadow_ray
from lighting_core.voxel_sampler import as_voxel_buffer, is_solid

_SIZE = 16


def _idx(x: int, y: int, z: int) -> int:
    return y * _SIZE * _SIZE + z * _SIZE + x


def _chunk_with(*solids: tuple[int, int, int]) -> np.ndarray:
    voxels = np.zeros(_SIZE ** 3, dtype=np.uint8)
    for x, y, z in solids:
        voxels[_idx(x, y, z)] = 1
    return voxels


# ===================================================================
# VOXEL SAMPLER
# ===================================================================


class TestIsSolid:
    """Test suite for chunk-local solidity lookup."""

    def test_empty_and_solid_voxels(self) -> None:
        voxels = _chunk_with((3, 4, 5))
        assert is_solid(3, 4, 5, voxels, _SIZE)
        assert not is_solid(4, 4, 5, voxels, _SIZE)

    def test_any_nonzero_material_is_solid(self) -> None:
        voxels = np.zeros(_SIZE ** 3, dtype=np.uint8)
        voxels[_idx(1, 1, 1)] = 200
        assert is_solid(1, 1, 1, voxels, _SIZE)

    def test_index_layout_is_y_major(self) -> None:
        """Index = y·size² + z·size + x."""
        voxels = np.zeros(_SIZE ** 3, dtype=np.uint8)
        voxels[1 * 256 + 2 * 16 + 3] = 1
        assert is_solid(3, 1, 2, voxels, _SIZE)
        assert not is_solid(1, 2, 3, voxels, _SIZE)

    def test_fractional_coordinates_are_floored(self) -> None:
        voxels = _chunk_with((3, 4, 5))
        assert is_solid(3.9, 4.01, 5.5, voxels, _SIZE)
        assert not is_solid(2.99, 4.0, 5.0, voxels, _SIZE)

    def test_negative_coordinates_use_floor_modulo(self) -> None:
        """World x = -1 maps to local x = 15, not -1."""
        voxels = _chunk_with((15, 0, 0))
        assert is_solid(-1, 0, 0, voxels, _SIZE)
        assert is_solid(-0.5, 0.0, 0.0, voxels, _SIZE)
        assert is_solid(-17, 16, 32, voxels, _SIZE)

    def test_coordinates_wrap_onto_same_chunk(self) -> None:
        voxels = _chunk_with((0, 0, 0))
        assert is_solid(16, 32, -16, voxels, _SIZE)

    def test_short_buffer_reads_empty_past_end(self) -> None:
        voxels = np.ones(10, dtype=np.uint8)
        assert is_solid(5, 0, 0, voxels, _SIZE)
        assert not is_solid(0, 1, 0, voxels, _SIZE), "Index 256 is past the buffer"

    def test_default_chunk_size(self) -> None:
        voxels = _chunk_with((15, 15, 15))
        assert is_solid(-1, -1, -1, voxels)


class TestAsVoxelBuffer:
    """Test conversion of array-likes into the kernel layout."""

    def test_flat_uint8_is_not_copied(self, air_chunk: np.ndarray) -> None:
        assert np.shares_memory(as_voxel_buffer(air_chunk), air_chunk)

    def test_list_is_converted(self) -> None:
        voxels = as_voxel_buffer([0, 1] * (_SIZE ** 3 // 2))
        assert voxels.dtype == np.uint8
        assert voxels.shape == (_SIZE ** 3,)

    def test_grid_flattens_to_same_layout(self) -> None:
        grid = np.zeros((_SIZE, _SIZE, _SIZE), dtype=np.int32)  # [y, z, x]
        grid[2, 3, 4] = 7
        voxels = as_voxel_buffer(grid)
        assert voxels[_idx(4, 2, 3)] == 7

    def test_bytes_read_as_unsigned_ids(self) -> None:
        raw = bytes([0, 1, 255]) + bytes(_SIZE ** 3 - 3)
        voxels = as_voxel_buffer(raw)
        assert voxels.dtype == np.uint8
        assert voxels.shape == (_SIZE ** 3,)
        assert voxels[:3].tolist() == [0, 1, 255]
        assert is_solid(2, 0, 0, voxels, _SIZE)

    def test_memoryview_accepted(self) -> None:
        voxels = as_voxel_buffer(memoryview(bytearray(_SIZE ** 3)))
        assert voxels.shape == (_SIZE ** 3,)
        assert not voxels.any()

    def test_out_of_range_ids_rejected(self) -> None:
        with pytest.raises(ValueError):
            as_voxel_buffer(np.full(_SIZE ** 3, 300))

    def test_wrong_length_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("WARNING"):
            voxels = as_voxel_buffer(np.zeros(100, dtype=np.uint8))
        assert voxels.shape == (100,)
        assert "expected 4096" in caplog.text


# ===================================================================
# AMBIENT OCCLUSION
# ===================================================================


class TestAmbientOcclusion:
    """Test suite for the 18-neighbour occlusion estimate."""

    def test_direction_set(self) -> None:
        """6 axis + 12 face diagonals, no corners, no duplicates."""
        assert AO_DIRECTIONS.shape == (18, 3)
        nonzero = np.count_nonzero(AO_DIRECTIONS, axis=1)
        assert np.sum(nonzero == 1) == 6
        assert np.sum(nonzero == 2) == 12
        assert len({tuple(d) for d in AO_DIRECTIONS}) == 18

    def test_all_solid_is_fully_occluded(self, solid_chunk: np.ndarray) -> None:
        assert ambient_occlusion(8, 8, 8, solid_chunk, _SIZE) == 1.0

    def test_chunk_edge_fully_occluded_when_solid(self, solid_chunk: np.ndarray) -> None:
        """Neighbours past the chunk face wrap onto the same buffer."""
        assert ambient_occlusion(0, 0, 0, solid_chunk, _SIZE) == 1.0
        assert ambient_occlusion(15, 15, 15, solid_chunk, _SIZE) == 1.0

    def test_all_empty_is_unoccluded(self, air_chunk: np.ndarray) -> None:
        assert ambient_occlusion(8, 8, 8, air_chunk, _SIZE) == 0.0

    def test_single_axis_neighbour(self) -> None:
        voxels = _chunk_with((9, 8, 8))
        assert ambient_occlusion(8, 8, 8, voxels, _SIZE) == pytest.approx(1.0 / 18.0)

    def test_single_face_diagonal(self) -> None:
        voxels = _chunk_with((9, 9, 8))
        assert ambient_occlusion(8, 8, 8, voxels, _SIZE) == pytest.approx(1.0 / 18.0)

    def test_corner_diagonal_ignored(self) -> None:
        voxels = _chunk_with((9, 9, 9))
        assert ambient_occlusion(8, 8, 8, voxels, _SIZE) == 0.0

    def test_sample_voxel_itself_ignored(self) -> None:
        voxels = _chunk_with((8, 8, 8))
        assert ambient_occlusion(8, 8, 8, voxels, _SIZE) == 0.0

    def test_symmetric_under_mirroring(self) -> None:
        """Mirroring the neighbourhood through the sample keeps the count."""
        a = _chunk_with((9, 8, 8), (8, 9, 9), (7, 7, 8))
        b = _chunk_with((7, 8, 8), (8, 7, 7), (9, 9, 8))
        assert ambient_occlusion(8, 8, 8, a, _SIZE) == ambient_occlusion(8, 8, 8, b, _SIZE)

    def test_half_occluded_floor(self) -> None:
        """Standing on a full floor: y-1 layer gives 1 axis + 4 diagonals."""
        voxels = np.zeros(_SIZE ** 3, dtype=np.uint8)
        voxels[_idx(0, 7, 0):_idx(0, 8, 0)] = 1  # whole y = 7 layer
        assert ambient_occlusion(8, 8, 8, voxels, _SIZE) == pytest.approx(5.0 / 18.0)


# ===================================================================
# SHADOW RAY MARCHING
# ===================================================================


class TestCastShadowRay:
    """Test suite for the fixed-step shadow ray."""

    @pytest.fixture
    def up(self) -> np.ndarray:
        return np.array([0.0, 1.0, 0.0], dtype=np.float64)

    def test_unobstructed_ray_is_lit(self, air_chunk: np.ndarray, up: np.ndarray) -> None:
        assert cast_shadow_ray(3, 2, 3, up, air_chunk, _SIZE, 32, 0.5) == 1.0

    def test_blocked_ray_is_soft_shadow(self, up: np.ndarray) -> None:
        voxels = _chunk_with((3, 7, 3))
        assert cast_shadow_ray(3, 2, 3, up, voxels, _SIZE, 32, 0.5) == 0.5

    def test_start_voxel_is_not_tested(self, up: np.ndarray) -> None:
        """The march tests positions after each step, never the origin."""
        voxels = _chunk_with((3, 2, 3))
        assert cast_shadow_ray(3, 2, 3, up, voxels, _SIZE, 15, 0.5) == 1.0

    def test_blocker_beyond_march_length(self, up: np.ndarray) -> None:
        voxels = _chunk_with((3, 7, 3))
        assert cast_shadow_ray(3, 2, 3, up, voxels, _SIZE, 4, 0.5) == 1.0
        assert cast_shadow_ray(3, 2, 3, up, voxels, _SIZE, 5, 0.5) == 0.5

    def test_zero_steps_never_shadowed(self, solid_chunk: np.ndarray, up: np.ndarray) -> None:
        assert cast_shadow_ray(3, 2, 3, up, solid_chunk, _SIZE, 0, 0.5) == 1.0

    def test_diagonal_ray(self) -> None:
        direction = np.array([1.0, 1.0, 0.0]) / np.sqrt(2.0)
        voxels = _chunk_with((6, 6, 0))
        assert cast_shadow_ray(0.5, 0.5, 0.5, direction, voxels, _SIZE, 32, 0.5) == 0.5

    def test_only_two_outputs(self) -> None:
        """Random buffers and directions only ever yield 0.5 or 1.0."""
        rng = np.random.default_rng(1234)
        for _ in range(50):
            voxels = (rng.random(_SIZE ** 3) < 0.05).astype(np.uint8)
            d = rng.normal(size=3)
            d /= np.linalg.norm(d)
            x, y, z = rng.uniform(0, _SIZE, size=3)
            factor = cast_shadow_ray(x, y, z, d, voxels, _SIZE, 32, 0.5)
            assert factor in (0.5, 1.0), f"Unexpected shadow factor {factor}"

    def test_default_parameters(self, up: np.ndarray) -> None:
        voxels = _chunk_with((3, 7, 3))
        assert cast_shadow_ray(3, 2, 3, up, voxels) == 0.5
