import cv2
import numpy as np
import pytest

from pblite.cues import histogram_smoothing_kernel
from pblite.gradients import (
    chi_squared,
    fit_parabolas,
    gradient_hist_2d,
    half_disc_histograms,
    half_disc_masks,
    impulse_kernel,
    orientation_slice_map,
    parabolic_filter,
    smooth_histograms,
    weight_matrix_disc,
)


def _pad(labels, r):
    return cv2.copyMakeBorder(labels.astype(np.int32), r, r, r, r, cv2.BORDER_REFLECT)


class TestDiscGeometry:
    def test_weight_matrix_small_disc(self):
        expected = np.array([[0, 1, 0],
                             [1, 0, 1],
                             [0, 1, 0]])
        np.testing.assert_array_equal(weight_matrix_disc(1), expected)

    @pytest.mark.parametrize("r", [2, 5, 10])
    def test_weight_matrix_is_point_symmetric(self, r):
        weights = weight_matrix_disc(r)
        assert weights.shape == (2 * r + 1, 2 * r + 1)
        assert weights[r, r] == 0
        np.testing.assert_array_equal(weights, np.rot90(weights, 2))

    def test_slice_map_angles(self):
        expected = np.array([[135, 90, 45],
                             [180, 0, 0],
                             [-135, -90, -45]], dtype=np.float32)
        np.testing.assert_allclose(orientation_slice_map(1), expected)

    def test_slice_map_range(self):
        slice_map = orientation_slice_map(6)
        assert slice_map.min() > -180
        assert slice_map.max() <= 180

    def test_masks_split_the_disc(self):
        weights = weight_matrix_disc(4)
        for left, right in half_disc_masks(4, 8):
            np.testing.assert_array_equal(left + right, weights)
            assert np.all(left * right == 0)

    def test_boundary_offsets_belong_to_right_half(self):
        left, right = half_disc_masks(1, 2)[0]
        # theta = 0: right half is (-180, 0], so the +x axis is right and the -x axis left
        np.testing.assert_array_equal(right, [[0, 0, 0],
                                              [0, 0, 1],
                                              [0, 1, 0]])
        np.testing.assert_array_equal(left, [[0, 1, 0],
                                             [1, 0, 0],
                                             [0, 0, 0]])

    def test_negative_radius_rejected(self):
        with pytest.raises(ValueError):
            weight_matrix_disc(-1)


class TestChiSquared:
    def test_disjoint_histograms(self):
        assert chi_squared([1.0, 0.0], [0.0, 1.0]) == pytest.approx(1.0)

    def test_symmetric(self):
        rng = np.random.default_rng(11)
        left = rng.random((5, 6))
        right = rng.random((5, 6))
        np.testing.assert_allclose(chi_squared(left, right), chi_squared(right, left))

    def test_zero_for_proportional_histograms(self):
        assert chi_squared([2.0, 4.0, 0.0], [1.0, 2.0, 0.0]) == pytest.approx(0.0)

    def test_positive_for_different_histograms(self):
        assert chi_squared([1.0, 2.0], [2.0, 1.0]) > 0.0

    def test_empty_histograms(self):
        assert chi_squared([0.0, 0.0], [0.0, 0.0]) == 0.0

    def test_empty_side_left_raw(self):
        # an empty side stays all zero; the other side is a distribution
        assert chi_squared([0.0, 0.0], [3.0, 1.0]) == pytest.approx(0.5)


class TestSmoothing:
    def test_impulse_keeps_histogram(self):
        hist = np.array([0.0, 3.0, 1.0, 5.0])
        np.testing.assert_allclose(smooth_histograms(hist, impulse_kernel()), hist, atol=1e-12)

    def test_stack_of_histograms(self):
        hists = np.arange(24, dtype=float).reshape(2, 3, 4)
        kernel = np.array([0.25, 0.5, 0.25])
        out = smooth_histograms(hists, kernel)
        assert out.shape == hists.shape
        np.testing.assert_allclose(out[1, 2], np.convolve(hists[1, 2], kernel, mode="full")[1:5], atol=1e-10)


class TestGradientHist2D:
    def test_half_split_disc_scores_one(self):
        r = 10
        slice_map = orientation_slice_map(r)
        labels = ((slice_map > -90.0) & (slice_map <= 90.0)).astype(np.int32)

        hist_left, hist_right = half_disc_histograms(_pad(labels, r), r, r, r, 90.0, 2)
        assert hist_left[1] == 0 and hist_left[0] > 0
        assert hist_right[0] == 0 and hist_right[1] > 0
        assert chi_squared(hist_left, hist_right) == 1.0

        gradients = gradient_hist_2d(labels, r, 4, 2)
        assert gradients[2][r, r] == pytest.approx(1.0, abs=1e-9)

    @pytest.mark.parametrize("kernel", [None, np.array([0.25, 0.5, 0.25])])
    def test_uniform_labels_give_zero_gradient(self, kernel):
        labels = np.ones((9, 11), dtype=np.int32)
        gradients = gradient_hist_2d(labels, 3, 4, 3, kernel)
        assert len(gradients) == 4
        for gradient in gradients:
            assert gradient.shape == labels.shape
            np.testing.assert_allclose(gradient, 0.0, atol=1e-12)

    def test_matches_per_pixel_scan(self):
        rng = np.random.default_rng(5)
        labels = rng.integers(0, 4, size=(12, 10))
        r, n_ori, num_bins = 3, 4, 4
        gradients = gradient_hist_2d(labels, r, n_ori, num_bins)
        padded = _pad(labels, r)
        for k, theta in enumerate([0.0, 45.0, 90.0, 135.0]):
            for row in range(labels.shape[0]):
                for col in range(labels.shape[1]):
                    hist_left, hist_right = half_disc_histograms(padded, row, col, r, theta, num_bins)
                    expected = chi_squared(hist_left, hist_right)
                    assert gradients[k][row, col] == pytest.approx(expected, abs=1e-9)

    def test_default_kernel_leaves_counts_exact(self):
        rng = np.random.default_rng(7)
        labels = rng.integers(0, 5, size=(9, 7))
        gradients = gradient_hist_2d(labels, 4, 2, 5)
        padded = _pad(labels, 4)
        for row, col in [(0, 0), (4, 3), (8, 6)]:
            hist_left, hist_right = half_disc_histograms(padded, row, col, 4, 0.0, 5)
            assert gradients[0][row, col] == chi_squared(hist_left, hist_right)

    def test_smoothing_kernel_matches_per_pixel_scan(self):
        rng = np.random.default_rng(6)
        labels = rng.integers(0, 8, size=(8, 8))
        kernel = histogram_smoothing_kernel(8, 0.1)
        gradients = gradient_hist_2d(labels, 2, 2, 8, kernel)
        padded = _pad(labels, 2)
        hist_left, hist_right = half_disc_histograms(padded, 4, 3, 2, 90.0, 8)
        expected = chi_squared(smooth_histograms(hist_left, kernel), smooth_histograms(hist_right, kernel))
        assert gradients[1][4, 3] == pytest.approx(expected, abs=1e-9)

    def test_vertical_edge_prefers_vertical_split(self):
        labels = np.zeros((15, 15), dtype=np.int32)
        labels[:, 7:] = 1
        gradients = gradient_hist_2d(labels, 3, 4, 2)
        assert gradients[2][7, 7] > 0.5
        assert gradients[0][7, 7] < 0.1

    def test_zero_radius_gives_zero_gradient(self):
        labels = np.arange(12).reshape(3, 4) % 3
        for gradient in gradient_hist_2d(labels, 0, 2, 3):
            np.testing.assert_allclose(gradient, 0.0)

    def test_float_labels_accepted(self):
        labels = np.zeros((6, 6), dtype=np.float32)
        labels[:, 3:] = 1.0
        gradients = gradient_hist_2d(labels, 2, 2, 2)
        assert gradients[1][2, 3] > 0.0

    def test_invalid_arguments(self):
        labels = np.zeros((5, 5), dtype=np.int32)
        with pytest.raises(ValueError):
            gradient_hist_2d(labels, -1, 4, 2)
        with pytest.raises(ValueError):
            gradient_hist_2d(labels, 2, 0, 2)
        with pytest.raises(ValueError):
            gradient_hist_2d(labels + 2, 2, 4, 2)
        with pytest.raises(ValueError):
            gradient_hist_2d(labels + 0.5, 2, 4, 2)
        with pytest.raises(ValueError):
            gradient_hist_2d(np.zeros(5), 2, 4, 2)
        with pytest.raises(ValueError):
            gradient_hist_2d(np.zeros((0, 4), dtype=np.int32), 2, 2, 2)
        with pytest.raises(ValueError):
            gradient_hist_2d(np.zeros((3, 0)), 0, 2, 2)


class TestParabolicFit:
    def test_kernel_shape(self):
        assert parabolic_filter(3, 0.0).shape == (7, 7, 3)
        assert parabolic_filter(1, 0.0).shape == (3, 3, 3)

    @pytest.mark.parametrize("theta", [0.0, np.pi / 4, np.pi / 2])
    def test_constant_signal(self, theta):
        signal = np.full((10, 12), 5.0)
        a, b, c = fit_parabolas(signal, 3, theta)
        np.testing.assert_allclose(a, 5.0, atol=1e-9)
        np.testing.assert_allclose(b, 0.0, atol=1e-9)
        np.testing.assert_allclose(c, 0.0, atol=1e-9)

    @pytest.mark.parametrize("theta, axis, expected_b", [(0.0, 0, 0.5), (np.pi / 2, 1, -0.5)])
    def test_quadratic_signal(self, theta, axis, expected_b):
        offsets = np.mgrid[0:15, 0:15][axis] - 7.0
        signal = 2.0 + 0.5 * offsets + 0.25 * offsets ** 2
        a, b, c = fit_parabolas(signal, 3, theta)
        assert a[7, 7] == pytest.approx(2.0, abs=1e-9)
        assert b[7, 7] == pytest.approx(expected_b, abs=1e-9)
        assert c[7, 7] == pytest.approx(0.25, abs=1e-9)
