"""Oriented local-contrast cues: gaussian filter banks, textons and half-disc gradients"""

from .filters import (
    AngleUnit,
    Axis,
    ConvolutionMode,
    Normalization,
    Parity,
    convolve_dft,
    gaussian_filter_1d,
    gaussian_filter_1d_auto,
    gaussian_filter_2d,
    gaussian_filter_2d_auto,
    gaussian_filter_2d_cs,
    gaussian_filter_2d_cs_auto,
    gaussian_filters,
    hilbert_transform_1d,
    normalize_distribution,
    oe_filters,
    rotate_2d,
    rotate_2d_crop,
    standard_filter_orientations,
    support_rotated,
    texton_filters,
)
from .textons import compute_filter_responses, compute_texton_map, texton_features, texton_run
from .gradients import (
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
from .config import CueConfig
from .cues import PbParts, histogram_smoothing_kernel, pb_parts, quantize_lab
from .logger import setup_logger

__all__ = [
    'AngleUnit',
    'Axis',
    'ConvolutionMode',
    'Normalization',
    'Parity',
    'convolve_dft',
    'gaussian_filter_1d',
    'gaussian_filter_1d_auto',
    'gaussian_filter_2d',
    'gaussian_filter_2d_auto',
    'gaussian_filter_2d_cs',
    'gaussian_filter_2d_cs_auto',
    'gaussian_filters',
    'hilbert_transform_1d',
    'normalize_distribution',
    'oe_filters',
    'rotate_2d',
    'rotate_2d_crop',
    'standard_filter_orientations',
    'support_rotated',
    'texton_filters',
    'compute_filter_responses',
    'compute_texton_map',
    'texton_features',
    'texton_run',
    'chi_squared',
    'fit_parabolas',
    'gradient_hist_2d',
    'half_disc_histograms',
    'half_disc_masks',
    'impulse_kernel',
    'orientation_slice_map',
    'parabolic_filter',
    'smooth_histograms',
    'weight_matrix_disc',
    'CueConfig',
    'PbParts',
    'histogram_smoothing_kernel',
    'pb_parts',
    'quantize_lab',
    'setup_logger',
]
