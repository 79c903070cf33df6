"""
Oriented gradients of label maps from half-disc histogram differences.

For every pixel and orientation the disc of radius r around the pixel is split
by the diameter at that orientation, the labels of each half are histogrammed,
smoothed along the bins and compared with the chi-squared distance.
"""

import logging

import cv2
import numpy as np

from .filters import EPSILON, AngleUnit, ConvolutionMode, convolve_dft, standard_filter_orientations

logger = logging.getLogger(__name__)

IMPULSE_LENGTH = 7


def impulse_kernel(length=IMPULSE_LENGTH):
    """Smoothing kernel that leaves histograms unchanged."""
    kernel = np.zeros(length, dtype=np.float64)
    kernel[(length - 1) // 2] = 1.0
    return kernel


def _check_radius(r):
    if r < 0:
        raise ValueError(f"disc radius must be non-negative, got {r}")


def weight_matrix_disc(r):
    """Disc of radius r (center excluded) as a (2r+1, 2r+1) 0/1 matrix."""
    _check_radius(r)
    offsets = np.arange(-r, r + 1)
    y, x = np.meshgrid(offsets, offsets, indexing="ij")
    weights = (x * x + y * y <= r * r).astype(np.int32)
    weights[r, r] = 0
    return weights


def orientation_slice_map(r):
    """Angle in degrees of every disc offset, row i at y = r - i and column j at x = j - r."""
    _check_radius(r)
    size = 2 * r + 1
    y = (size // 2 - np.arange(size))[:, None]
    x = (np.arange(size) - size // 2)[None, :]
    slice_map = np.arctan2(y, x) / np.pi * 180.0
    return slice_map.astype(np.float32)


def _right_half(slice_map, theta):
    # right half is (theta - 180, theta]; the boundary belongs to it
    angles = slice_map.astype(np.float64)
    return (angles > theta - 180.0) & (angles <= theta)


#generating half disk
def half_disc_masks(r, n_ori):
    """(left, right) weight masks for each standard orientation."""
    weights = weight_matrix_disc(r)
    slice_map = orientation_slice_map(r)
    masks = []
    for theta in standard_filter_orientations(n_ori, AngleUnit.DEGREES):
        right = _right_half(slice_map, theta)
        masks.append((weights * ~right, weights * right))
    return masks


def half_disc_histograms(labels_padded, row, col, r, theta, num_bins):
    """
    Left and right label histograms of one pixel of a map padded by r.

    (row, col) index the unpadded map; theta is in degrees.
    """
    weights = weight_matrix_disc(r)
    right = _right_half(orientation_slice_map(r), theta)
    hist_left = np.zeros(num_bins, dtype=np.float64)
    hist_right = np.zeros(num_bins, dtype=np.float64)
    window = labels_padded[row:row + 2 * r + 1, col:col + 2 * r + 1]
    for x in range(2 * r + 1):
        for y in range(2 * r + 1):
            bin_idx = int(window[x, y])
            if right[x, y]:
                hist_right[bin_idx] += weights[x, y]
            else:
                hist_left[bin_idx] += weights[x, y]
    return hist_left, hist_right


def smooth_histograms(hist, kernel):
    """Same-size convolution of each histogram (last axis) with a 1D kernel."""
    hist = np.asarray(hist, dtype=np.float64)
    flat = hist.reshape(-1, hist.shape[-1])
    return convolve_dft(flat, kernel, ConvolutionMode.SAME).reshape(hist.shape)


def chi_squared(hist_left, hist_right):
    """
    Chi-squared distance between histograms along the last axis.

    Each histogram is normalized by its own sum (left raw if the sum is 0);
    bins whose summed probability is below EPSILON use a denominator of 1.
    """
    hist_left = np.asarray(hist_left, dtype=np.float64)
    hist_right = np.asarray(hist_right, dtype=np.float64)
    sum_l = hist_left.sum(axis=-1, keepdims=True)
    sum_r = hist_right.sum(axis=-1, keepdims=True)
    p_l = np.divide(hist_left, sum_l, out=hist_left.copy(), where=sum_l != 0)
    p_r = np.divide(hist_right, sum_r, out=hist_right.copy(), where=sum_r != 0)

    diff = p_r - p_l
    total = p_r + p_l
    total = np.where(total < EPSILON, 1.0, total)
    return 0.5 * np.sum(diff * diff / total, axis=-1)


def _as_label_map(labels, num_bins):
    labels = np.asarray(labels)
    if labels.ndim != 2:
        raise ValueError(f"label map must be 2D, got shape {labels.shape}")
    if labels.size == 0:
        raise ValueError(f"label map must not be empty, got shape {labels.shape}")
    label_ints = labels.astype(np.int32)
    if np.any(label_ints != labels):
        raise ValueError("label map must hold integer labels")
    if label_ints.min() < 0 or label_ints.max() >= num_bins:
        raise ValueError(f"labels must lie in [0, {num_bins})")
    return label_ints


def gradient_hist_2d(labels, r, n_ori, num_bins, kernel=None):
    """
    Oriented chi-squared gradients of a label map.

    Args:
        labels: (H, W) integer label map with values in [0, num_bins).
        r: disc radius.
        n_ori: number of orientations over [0, 180) degrees.
        num_bins: number of histogram bins.
        kernel: 1D histogram smoothing kernel; no smoothing if None.

    Returns:
        List of n_ori (H, W) gradient maps.
    """
    _check_radius(r)
    if n_ori < 1:
        raise ValueError(f"orientation count must be at least 1, got {n_ori}")
    if num_bins < 1:
        raise ValueError(f"bin count must be at least 1, got {num_bins}")
    label_map = _as_label_map(labels, num_bins)

    height, width = label_map.shape
    padded = cv2.copyMakeBorder(label_map, r, r, r, r, cv2.BORDER_REFLECT)
    indicators = [(padded == bin_idx).astype(np.float32) for bin_idx in range(num_bins)]

    logger.info("Computing gradients: r=%d, n_ori=%d, num_bins=%d", r, n_ori, num_bins)
    gradients = []
    for left_mask, right_mask in half_disc_masks(r, n_ori):
        left_mask = left_mask.astype(np.float32)
        right_mask = right_mask.astype(np.float32)
        hist_left = np.zeros((height, width, num_bins), dtype=np.float32)
        hist_right = np.zeros((height, width, num_bins), dtype=np.float32)

        # Compute histograms using correlation; weights are 0/1 so counts are integral
        for bin_idx, bin_mask in enumerate(indicators):
            g = cv2.filter2D(bin_mask, cv2.CV_32F, left_mask, borderType=cv2.BORDER_CONSTANT)
            h = cv2.filter2D(bin_mask, cv2.CV_32F, right_mask, borderType=cv2.BORDER_CONSTANT)
            hist_left[:, :, bin_idx] = np.rint(g[r:r + height, r:r + width])
            hist_right[:, :, bin_idx] = np.rint(h[r:r + height, r:r + width])

        # no kernel means no smoothing; the impulse would leave the counts unchanged
        if kernel is not None:
            hist_left = smooth_histograms(hist_left, kernel)
            hist_right = smooth_histograms(hist_right, kernel)
        gradients.append(chi_squared(hist_left, hist_right))

    return gradients


#PARABOLIC FITTING
def parabolic_filter(radius, theta):
    """
    Least-squares parabola fitting kernels for an oriented elliptical support.

    theta is in radians. Channel n of the (2w+1, 2w+1, 3) result gives the
    coefficient of a**n of the fitted parabola, a being the coordinate across
    the orientation.
    """
    ra = max(1.5, float(radius))
    rb = max(1.5, float(radius) / 4)
    ira2 = 1.0 / ra ** 2
    irb2 = 1.0 / rb ** 2
    wr = int(max(ra, rb))
    sint = np.sin(theta)
    cost = np.cos(theta)

    offsets = np.arange(2 * wr + 1) - wr
    i, j = np.meshgrid(offsets, offsets, indexing="ij")
    ai = -i * sint + j * cost
    bi = i * cost + j * sint
    inside = ai * ai * ira2 + bi * bi * irb2 <= 1

    moments = np.array([np.sum(ai[inside] ** n) for n in range(5)])
    A = np.array([[moments[row + col] for col in range(3)] for row in range(3)])
    A_inv = np.linalg.pinv(A)

    powers = np.stack([np.ones_like(ai), ai, ai * ai], axis=-1)
    coeffs = powers @ A_inv.T
    coeffs[~inside] = 0.0
    # kernel rows follow the second offset index
    return np.ascontiguousarray(coeffs.transpose(1, 0, 2))


def fit_parabolas(signal, radius, theta):
    """Fit local parabolas to a 2D signal; returns the (a, b, c) coefficient maps."""
    signal = np.asarray(signal, dtype=np.float64)
    if signal.ndim != 2:
        raise ValueError(f"signal must be 2D, got shape {signal.shape}")
    kernel = parabolic_filter(radius, theta)
    return tuple(
        cv2.filter2D(signal, cv2.CV_64F, np.ascontiguousarray(kernel[:, :, n]), borderType=cv2.BORDER_REFLECT)
        for n in range(3)
    )
