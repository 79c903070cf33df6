"""
Gaussian-derivative filter synthesis for oriented boundary cues.

Contents:
    1D multi-order gaussian filters (optionally Hilbert transformed)
    2D multi-order anisotropic gaussian filters (optionally Hilbert transformed)
    2D center-surround gaussian filters
    oriented filter sets and the texton filter bank

All kernels are float64 numpy arrays. Orientations of 2D filters are given in
degrees and follow the OpenCV convention (positive angles rotate
counter-clockwise with the origin at the top-left corner).
"""

import enum
import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)

# sums below this are treated as degenerate
EPSILON = 1e-5


class ConvolutionMode(enum.Enum):
    SAME = "same"
    FULL = "full"


class AngleUnit(enum.Enum):
    DEGREES = "degrees"
    RADIANS = "radians"


class Normalization(enum.Enum):
    ZERO_MEAN = "zero_mean"
    NON_ZERO_MEAN = "non_zero_mean"


class Axis(enum.Enum):
    X = "x"
    Y = "y"


class Parity(enum.Enum):
    EVEN = "even"
    ODD = "odd"


def _as_vector(signal, name="signal"):
    """Flatten a flat, row or column array; reject true 2D arrays."""
    arr = np.asarray(signal, dtype=np.float64)
    if arr.ndim > 2 or (arr.ndim == 2 and min(arr.shape) > 1):
        raise ValueError(f"{name} must be a 1D array, got shape {arr.shape}")
    return arr.ravel()


#FFT CONVOLUTION
def convolve_dft(a, b, mode=ConvolutionMode.SAME):
    """
    Row-wise linear convolution of `a` with the 1D kernel `b` through the DFT.

    Args:
        a: 1D signal, or 2D array whose rows are convolved independently.
        b: 1D kernel (a single row or column is accepted).
        mode: SAME returns len(a) samples centered on the full result,
            FULL returns all len(a) + len(b) - 1 samples.

    Returns:
        Convolved array with the same number of dimensions as `a`.
    """
    a = np.asarray(a, dtype=np.float64)
    if a.ndim not in (1, 2):
        raise ValueError(f"signal must be 1D or 2D, got shape {a.shape}")
    kernel = _as_vector(b, "kernel")

    rows = np.atleast_2d(a)
    n_rows, a_len = rows.shape
    b_len = kernel.size
    if a_len == 0 or b_len == 0:
        raise ValueError("cannot convolve empty arrays")
    full_len = a_len + b_len - 1
    width = cv2.getOptimalDFTSize(full_len)

    padded_a = np.zeros((n_rows, width), dtype=np.float64)
    padded_a[:, :a_len] = rows
    padded_b = np.zeros((n_rows, width), dtype=np.float64)
    padded_b[:, :b_len] = kernel

    spectrum_a = cv2.dft(padded_a, flags=cv2.DFT_ROWS)
    spectrum_b = cv2.dft(padded_b, flags=cv2.DFT_ROWS)
    product = cv2.mulSpectrums(spectrum_a, spectrum_b, cv2.DFT_ROWS)
    result = cv2.dft(product, flags=cv2.DFT_INVERSE | cv2.DFT_SCALE | cv2.DFT_ROWS | cv2.DFT_REAL_OUTPUT)

    if mode == ConvolutionMode.SAME:
        offset = (b_len - 1) // 2
        result = result[:, offset:offset + a_len]
    else:
        result = result[:, :full_len]

    if a.ndim == 1:
        return result[0].copy()
    return np.ascontiguousarray(result)


#HILBERT TRANSFORM
def hilbert_transform_1d(signal):
    """Discrete Hilbert transform of an odd-length 1D signal (same size)."""
    shape = np.shape(signal)
    values = _as_vector(signal)
    length = values.size
    half_len = (length - 1) // 2

    m = np.arange(length) - half_len
    kernel = np.zeros(length, dtype=np.float64)
    odd = m % 2 != 0
    kernel[odd] = 1.0 / (np.pi * m[odd])

    return convolve_dft(values, kernel, ConvolutionMode.SAME).reshape(shape)


#ORIENTATIONS
def standard_filter_orientations(n_ori, unit=AngleUnit.DEGREES):
    """n_ori evenly spaced orientations over [0, 180) degrees or [0, pi)."""
    if n_ori < 0:
        raise ValueError(f"orientation count must be non-negative, got {n_ori}")
    upper = 180.0 if unit == AngleUnit.DEGREES else np.pi
    return np.linspace(0, upper, n_ori, endpoint=False)


#NORMALIZATION
def normalize_distribution(values, policy=Normalization.NON_ZERO_MEAN):
    """
    Scale `values` so the sum of absolute values is 1.

    ZERO_MEAN shifts the values to zero mean first. A sum of absolute values
    below EPSILON leaves the (shifted) values unscaled.
    """
    output = np.array(values, dtype=np.float64)
    if policy == Normalization.ZERO_MEAN:
        output -= output.mean()
    sum_abs = np.abs(output).sum()
    if sum_abs < EPSILON:
        return output
    return output / sum_abs


#ROTATION
def support_rotated(x, y, angle, axis=Axis.X, unit=AngleUnit.RADIANS):
    """Half extent along `axis` needed to cover an (x, y) half-extent box rotated by `angle`."""
    theta = np.deg2rad(angle) if unit == AngleUnit.DEGREES else angle
    if axis == Axis.X:
        p = x * np.cos(theta)
        q = y * np.sin(theta)
    else:
        p = y * np.cos(theta)
        q = x * np.sin(theta)
    return int(max(abs(p - q), abs(p + q)) + 1.0)


def rotate_2d_crop(kernel, angle, rows, cols, unit=AngleUnit.DEGREES):
    """Rotate a 2D kernel about its center (linear interpolation), then crop to (rows, cols)."""
    kernel = np.asarray(kernel, dtype=np.float64)
    if kernel.ndim != 2:
        raise ValueError(f"kernel must be 2D, got shape {kernel.shape}")
    in_rows, in_cols = kernel.shape
    if rows > in_rows or cols > in_cols or rows < 1 or cols < 1:
        raise ValueError(f"cannot crop a {kernel.shape} kernel to ({rows}, {cols})")

    degrees = np.rad2deg(angle) if unit == AngleUnit.RADIANS else angle
    center = (float((in_cols - 1) // 2), float((in_rows - 1) // 2))
    rotation_matrix = cv2.getRotationMatrix2D(center, float(degrees), 1.0)
    rotated = cv2.warpAffine(kernel, rotation_matrix, (in_cols, in_rows), flags=cv2.INTER_LINEAR)

    border_rows = (in_rows - rows) // 2
    border_cols = (in_cols - cols) // 2
    return rotated[border_rows:border_rows + rows, border_cols:border_cols + cols].copy()


def rotate_2d(kernel, angle, unit=AngleUnit.DEGREES):
    """Rotate a 2D kernel about its center keeping its extent."""
    kernel = np.asarray(kernel)
    if kernel.ndim != 2:
        raise ValueError(f"kernel must be 2D, got shape {kernel.shape}")
    return rotate_2d_crop(kernel, angle, kernel.shape[0], kernel.shape[1], unit)


#GAUSSIAN FILTERS
def _check_gaussian_args(half_len, sigma, deriv):
    if half_len < 0:
        raise ValueError(f"half length must be non-negative, got {half_len}")
    if sigma <= 0:
        raise ValueError(f"sigma must be positive, got {sigma}")
    if deriv not in (0, 1, 2):
        raise ValueError(f"derivative order must be 0, 1 or 2, got {deriv}")


def _policy_for(deriv):
    return Normalization.ZERO_MEAN if deriv > 0 else Normalization.NON_ZERO_MEAN


def gaussian_filter_1d(half_len, sigma, deriv=0, hilbert=False):
    """
    1D gaussian filter of length 2 * half_len + 1 and derivative order 0, 1 or 2.

    Derivative filters are zero-mean normalized, the smoothing filter is
    normalized to unit sum.
    """
    _check_gaussian_args(half_len, sigma, deriv)
    length = 2 * half_len + 1
    output = cv2.getGaussianKernel(length, sigma, cv2.CV_64F).ravel()
    idx = np.arange(length, dtype=np.float64)

    if deriv == 1:
        output = output * (half_len - idx)
    elif deriv == 2:
        x = idx - half_len
        output = output * (x * x / sigma - 1.0)

    if hilbert:
        output = hilbert_transform_1d(output)

    return normalize_distribution(output, _policy_for(deriv))


def gaussian_filter_1d_auto(sigma, deriv=0, hilbert=False):
    """1D gaussian filter with half length floor(3 * sigma)."""
    return gaussian_filter_1d(int(sigma * 3.0), sigma, deriv, hilbert)


def gaussian_filter_2d(half_len, ori, sigma_x, sigma_y, deriv=0, hilbert=False):
    """
    2D anisotropic gaussian filter of extent (2 * half_len + 1) squared.

    The filter is synthesized on a support large enough to survive the
    rotation by `ori` degrees: an order 0 profile along x (sigma_x) times an
    order `deriv` profile along y (sigma_y), then rotated and cropped.
    """
    _check_gaussian_args(half_len, sigma_x, deriv)
    if sigma_y <= 0:
        raise ValueError(f"sigma must be positive, got {sigma_y}")
    length = 2 * half_len + 1
    half_len_rotate_x = support_rotated(half_len, half_len, ori, Axis.X, AngleUnit.DEGREES)
    half_len_rotate_y = support_rotated(half_len, half_len, ori, Axis.Y, AngleUnit.DEGREES)
    half_rotate_len = max(half_len_rotate_x, half_len_rotate_y)

    output_x = gaussian_filter_1d(half_rotate_len, sigma_x, 0, False)
    output_y = gaussian_filter_1d(half_rotate_len, sigma_y, deriv, hilbert)
    output = np.outer(output_x, output_y)
    output = rotate_2d_crop(output, ori, length, length, AngleUnit.DEGREES)

    return normalize_distribution(output, _policy_for(deriv))


def gaussian_filter_2d_auto(ori, sigma_x, sigma_y, deriv=0, hilbert=False):
    """2D gaussian filter with half length max(floor(3 * sigma_x), floor(3 * sigma_y))."""
    half_len = max(int(sigma_x * 3.0), int(sigma_y * 3.0))
    return gaussian_filter_2d(half_len, ori, sigma_x, sigma_y, deriv, hilbert)


def gaussian_filter_2d_cs(half_len, sigma_x, sigma_y, scale_factor):
    """Center-surround filter: surround gaussian minus a center gaussian narrower by `scale_factor`."""
    if scale_factor <= 1:
        raise ValueError(f"scale factor must be greater than 1, got {scale_factor}")
    center = gaussian_filter_2d(half_len, 0.0, sigma_x / scale_factor, sigma_y / scale_factor, 0, False)
    surround = gaussian_filter_2d(half_len, 0.0, sigma_x, sigma_y, 0, False)
    return normalize_distribution(surround - center, Normalization.ZERO_MEAN)


def gaussian_filter_2d_cs_auto(sigma_x, sigma_y, scale_factor):
    half_len = max(int(sigma_x * 3.0), int(sigma_y * 3.0))
    return gaussian_filter_2d_cs(half_len, sigma_x, sigma_y, scale_factor)


#FILTER SETS
def gaussian_filters(n_ori, sigma, deriv, hilbert, elongation):
    """One anisotropic gaussian filter per standard orientation (sigma_y = sigma / elongation)."""
    sigma_x = sigma
    sigma_y = sigma / elongation
    return [gaussian_filter_2d_auto(ori, sigma_x, sigma_y, deriv, hilbert)
            for ori in standard_filter_orientations(n_ori, AngleUnit.DEGREES)]


def oe_filters(n_ori, sigma, parity=Parity.EVEN):
    """Even (second derivative) or odd (its Hilbert pair) oriented filters."""
    return gaussian_filters(n_ori, sigma, 2, parity == Parity.ODD, 3.0)


def texton_filters(n_ori, sigma):
    """Texton filter bank: n even filters, n odd filters, one center-surround filter."""
    if n_ori < 1:
        raise ValueError(f"orientation count must be at least 1, got {n_ori}")
    logger.debug("Building texton filters: n_ori=%d, sigma=%.3f", n_ori, sigma)
    even_filters = oe_filters(n_ori, sigma, Parity.EVEN)
    odd_filters = oe_filters(n_ori, sigma, Parity.ODD)
    f_cs = gaussian_filter_2d_cs_auto(sigma, sigma, np.sqrt(2.0))
    return even_filters + odd_filters + [f_cs]
