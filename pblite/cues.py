"""
Brightness, colour and texture gradient stacks ("Pb parts") of an image.

The parts are the per-cue, per-radius oriented gradients that a multiscale
boundary detector combines; this module stops before any combination.
"""

import logging
from dataclasses import dataclass, field

import cv2
import numpy as np

from .config import CueConfig
from .gradients import gradient_hist_2d
from .textons import texton_run

logger = logging.getLogger(__name__)

# Lab normalization: L in [0, 100], a and b shifted by 73 over a range of 168
L_SCALE = 100.0
AB_OFFSET = 73.0
AB_SCALE = 168.0


@dataclass
class PbParts:
    textons: np.ndarray
    gradients: dict = field(default_factory=dict)


def histogram_smoothing_kernel(num_bins, sigma):
    """Gaussian kernel for smoothing a histogram of `num_bins` bins, sigma relative to the bin count."""
    if num_bins < 1:
        raise ValueError(f"bin count must be at least 1, got {num_bins}")
    if sigma <= 0:
        raise ValueError(f"sigma must be positive, got {sigma}")
    bin_sigma = num_bins * sigma
    length = 2 * int(3.0 * bin_sigma + 0.5) + 1
    return cv2.getGaussianKernel(length, bin_sigma, cv2.CV_64F).ravel()


def _to_bgr(image):
    image = np.asarray(image)
    if image.ndim == 2:
        return np.dstack([image] * 3)
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"image must be grey or BGR, got shape {image.shape}")
    return image


def _quantize(values, num_bins):
    values = np.clip(values, 0.0, 1.0)
    bins = np.floor(values * num_bins).astype(np.int32)
    bins[bins == num_bins] = num_bins - 1
    return bins


def quantize_lab(image, num_bins):
    """
    Quantize a BGR image (values in [0, 255]) into L, a and b label maps.

    Returns:
        Tuple of three (H, W) int32 maps with values in [0, num_bins).
    """
    if num_bins < 1:
        raise ValueError(f"bin count must be at least 1, got {num_bins}")
    color = _to_bgr(image).astype(np.float32) / 255.0
    lab = cv2.cvtColor(color, cv2.COLOR_BGR2Lab)

    l_map = _quantize(lab[:, :, 0] / L_SCALE, num_bins)
    a_map = _quantize((lab[:, :, 1] + AB_OFFSET) / AB_SCALE, num_bins)
    b_map = _quantize((lab[:, :, 2] + AB_OFFSET) / AB_SCALE, num_bins)
    return l_map, a_map, b_map


def _gradient_stack(labels, radii, n_ori, num_bins, kernel, name, crop):
    stacks = {}
    for r in radii:
        gradients = gradient_hist_2d(labels, r, n_ori, num_bins, kernel)
        stacks[f"{name}_r{r}"] = [crop(g) for g in gradients]
    return stacks


def pb_parts(image, config=None):
    """
    Compute the brightness (bg), colour a/b (cga, cgb) and texture (tg) gradients.

    Args:
        image: grey (H, W) or BGR (H, W, 3) image with values in [0, 255].
        config: CueConfig; the defaults if None.

    Returns:
        PbParts with the (H, W) texton map and gradient stacks keyed
        "bg_r3", ..., "tg_r20", each a list of config.n_ori (H, W) maps.
    """
    config = config or CueConfig()
    color = _to_bgr(image).astype(np.float32)
    height, width = color.shape[:2]
    border = config.border

    color = cv2.copyMakeBorder(color, border, border, border, border, cv2.BORDER_REFLECT)
    grey = cv2.cvtColor(color, cv2.COLOR_BGR2GRAY)

    def crop(values):
        return values[border:border + height, border:border + width]

    logger.info("Quantizing Lab channels into %d bins...", config.num_bins)
    l_map, a_map, b_map = quantize_lab(color, config.num_bins)
    bg_smooth_kernel = histogram_smoothing_kernel(config.num_bins, config.bg_smooth_sigma)
    cg_smooth_kernel = histogram_smoothing_kernel(config.num_bins, config.cg_smooth_sigma)

    logger.info("Computing texton map...")
    textons = texton_run(grey, config.n_ori, config.n_textons,
                         config.sigma_tg_filt_sm, config.sigma_tg_filt_lg, config.seed)

    gradients = {}
    logger.info("Computing brightness gradients...")
    gradients.update(_gradient_stack(l_map, config.r_bg, config.n_ori, config.num_bins,
                                     bg_smooth_kernel, "bg", crop))
    logger.info("Computing color gradients...")
    gradients.update(_gradient_stack(a_map, config.r_cg, config.n_ori, config.num_bins,
                                     cg_smooth_kernel, "cga", crop))
    gradients.update(_gradient_stack(b_map, config.r_cg, config.n_ori, config.num_bins,
                                     cg_smooth_kernel, "cgb", crop))
    logger.info("Computing texture gradients...")
    gradients.update(_gradient_stack(textons, config.r_tg, config.n_ori, config.n_textons,
                                     None, "tg", crop))

    return PbParts(textons=crop(textons), gradients=gradients)
