import cv2
import numpy as np

from core.filters.blend import anonymize, blend_region, blur_face_region, blur_kernel_size, feathered_mask
from core.pipeline.backends.base import FaceRect


def test_kernel_size_is_odd_and_at_least_five_for_all_intensities():
    for intensity in range(0, 101):
        k = blur_kernel_size(intensity)
        assert k >= 5
        assert k % 2 == 1


def test_kernel_size_examples():
    assert blur_kernel_size(0) == 5
    assert blur_kernel_size(50) == 35
    assert blur_kernel_size(100) == 65
    # 0.6 * 2 = 1.2 -> 6, bumped to the next odd size
    assert blur_kernel_size(2) == 7


def test_mask_values_stay_in_unit_interval():
    mask = feathered_mask(80, 60)
    assert mask.dtype == np.float32
    assert mask.shape == (60, 80)
    assert mask.min() >= 0.0
    assert mask.max() <= 1.0


def test_mask_for_scenario_face():
    mask = feathered_mask(80, 80, 1.25)
    assert mask[40, 40] == 1.0
    assert mask[0, 0] == 0.0


def test_mask_is_zero_at_and_beyond_boundary():
    mask = feathered_mask(40, 40, 0.5)
    # semi-axes are 10 px, so the rim sits 10 px from the centre
    assert mask[20, 30] == 0.0
    assert mask[20, 35] == 0.0
    assert mask[20, 29] > 0.0


def test_mask_is_non_increasing_from_centre_along_rays():
    mask = feathered_mask(81, 61)
    row = mask[30, 40:]
    column = mask[30:, 40]
    diagonal = np.array([mask[30 + i, 40 + i] for i in range(31)])
    for ray in (row, column, diagonal):
        assert np.all(np.diff(ray) <= 0)


def test_zero_scale_gives_empty_mask():
    assert not feathered_mask(20, 20, 0.0).any()


def test_blend_with_zero_alpha_keeps_original(noise_frame):
    region = noise_frame[100:180, 100:180]
    blurred = cv2.GaussianBlur(region, (35, 35), 0)
    out = blend_region(region, blurred, np.zeros((80, 80), dtype=np.float32))
    assert np.array_equal(out, region)


def test_blend_with_full_alpha_takes_blurred(noise_frame):
    region = noise_frame[100:180, 100:180]
    blurred = cv2.GaussianBlur(region, (35, 35), 0)
    out = blend_region(region, blurred, np.ones((80, 80), dtype=np.float32))
    assert np.array_equal(out, blurred)


def test_blend_rounds_half_weights():
    original = np.full((1, 1, 4), 10, dtype=np.uint8)
    blurred = np.full((1, 1, 4), 21, dtype=np.uint8)
    out = blend_region(original, blurred, np.full((1, 1), 0.5, dtype=np.float32))
    assert out.dtype == np.uint8
    assert out[0, 0, 0] in (15, 16)


def test_anonymize_only_touches_face_region(noise_frame):
    frame = noise_frame.copy()
    face = FaceRect(100, 100, 80, 80)

    assert anonymize(frame, face, 50) is True

    expected_blur = cv2.GaussianBlur(noise_frame[100:180, 100:180], (35, 35), 0)
    assert np.array_equal(frame[140, 140], expected_blur[40, 40])
    # rectangle corner lies outside the ellipse
    assert np.array_equal(frame[100, 100], noise_frame[100, 100])
    outside = np.ones(frame.shape[:2], dtype=bool)
    outside[100:180, 100:180] = False
    assert np.array_equal(frame[outside], noise_frame[outside])


def test_anonymize_clamps_rectangles_to_frame(noise_frame):
    frame = noise_frame.copy()
    assert anonymize(frame, FaceRect(600, 440, 80, 80), 20) is True
    assert np.array_equal(frame[:440], noise_frame[:440])
    assert not np.array_equal(frame[440:, 600:], noise_frame[440:, 600:])


def test_anonymize_skips_degenerate_rectangles(noise_frame):
    frame = noise_frame.copy()
    assert anonymize(frame, FaceRect(10, 10, 0, 40), 50) is False
    assert anonymize(frame, FaceRect(700, 10, 40, 40), 50) is False
    assert np.array_equal(frame, noise_frame)


def test_overlapping_faces_depend_on_cache_order(noise_frame):
    first = FaceRect(100, 100, 80, 80)
    second = FaceRect(140, 140, 80, 80)

    forward = noise_frame.copy()
    anonymize(forward, first, 60)
    anonymize(forward, second, 60)

    backward = noise_frame.copy()
    anonymize(backward, second, 60)
    anonymize(backward, first, 60)

    assert not np.array_equal(forward[140:180, 140:180], backward[140:180, 140:180])


def test_face_blur_uses_pixels_beyond_the_box(noise_frame):
    rect = FaceRect(100, 100, 80, 80)
    whole = cv2.GaussianBlur(noise_frame, (35, 35), 0)

    region = blur_face_region(noise_frame, rect, 35)

    assert region.shape == (80, 80, 4)
    assert np.array_equal(region, whole[100:180, 100:180])
    # a box-local blur reflects at the box edge and differs there
    isolated = cv2.GaussianBlur(noise_frame[100:180, 100:180], (35, 35), 0)
    assert not np.array_equal(region[0], isolated[0])


def test_face_blur_at_frame_corner_reflects_frame_border(noise_frame):
    rect = FaceRect(600, 440, 80, 80).clamp(640, 480)
    whole = cv2.GaussianBlur(noise_frame, (17, 17), 0)

    region = blur_face_region(noise_frame, rect, 17)

    assert np.array_equal(region, whole[440:480, 600:640])


def test_anonymize_centre_matches_full_frame_blur(noise_frame):
    frame = noise_frame.copy()
    whole = cv2.GaussianBlur(noise_frame, (35, 35), 0)

    anonymize(frame, FaceRect(100, 100, 80, 80), 50)

    assert np.array_equal(frame[140, 140], whole[140, 140])
