"""
Texton labelling: filter bank responses at two scales clustered with k-means.
"""

import logging

import cv2
import numpy as np
from sklearn.cluster import KMeans

from .filters import texton_filters

logger = logging.getLogger(__name__)

# k-means stopping criteria and restarts
KMEANS_MAX_ITER = 10
KMEANS_TOL = 1e-4
KMEANS_N_INIT = 3


def _to_gray(image):
    image = np.asarray(image)
    if image.ndim == 3:
        if image.shape[2] == 1:
            return image[:, :, 0]
        return cv2.cvtColor(image.astype(np.float32), cv2.COLOR_BGR2GRAY)
    if image.ndim != 2:
        raise ValueError(f"image must be 2D or BGR, got shape {image.shape}")
    return image


#Filtering image with filter bank
def compute_filter_responses(image, filter_bank):
    """Compute responses for all filters (reflected borders), stacked as (H, W, F)."""
    img = np.asarray(image, dtype=np.float64)
    if img.ndim != 2:
        raise ValueError(f"image must be 2D, got shape {img.shape}")
    height, width = img.shape
    responses = np.zeros((height, width, len(filter_bank)), dtype=np.float64)

    for i, kernel in enumerate(filter_bank):
        responses[:, :, i] = cv2.filter2D(img, cv2.CV_64F, kernel, borderType=cv2.BORDER_REFLECT)

    return responses


def texton_features(image, n_ori, sigma_small, sigma_large):
    """Feature vectors of length 2 * (2 * n_ori + 1): small scale bank first, then large."""
    gray = _to_gray(image)
    filters = texton_filters(n_ori, sigma_small) + texton_filters(n_ori, sigma_large)
    logger.debug("Texton bank has %d filters", len(filters))
    return compute_filter_responses(gray, filters)


# computation of texton map
def compute_texton_map(filter_responses, n_clusters=64, seed=0):
    """Compute texton map using K-means clustering."""
    height, width, n_filters = filter_responses.shape
    if n_clusters < 1:
        raise ValueError(f"cluster count must be at least 1, got {n_clusters}")
    if n_clusters > height * width:
        raise ValueError(f"cannot form {n_clusters} clusters from {height * width} pixels")
    responses_2d = filter_responses.reshape(-1, n_filters)

    logger.info("Performing K-means clustering with %d clusters...", n_clusters)
    kmeans = KMeans(n_clusters=n_clusters, init="k-means++", n_init=KMEANS_N_INIT,
                    max_iter=KMEANS_MAX_ITER, tol=KMEANS_TOL, random_state=seed)
    cluster_ids = kmeans.fit_predict(responses_2d)

    return cluster_ids.reshape(height, width).astype(np.int32)


def texton_run(image, n_ori, k, sigma_small, sigma_large, seed=0):
    """
    Label every pixel of `image` with one of `k` textons.

    Args:
        image: grey (H, W) or BGR (H, W, 3) image.
        n_ori: number of orientations of each texton filter bank.
        k: number of textons (clusters).
        sigma_small: scale of the first filter bank.
        sigma_large: scale of the second filter bank.
        seed: random state of the k-means seeding.

    Returns:
        (H, W) int32 label map with values in [0, k).
    """
    if n_ori < 1:
        raise ValueError(f"orientation count must be at least 1, got {n_ori}")
    if k < 1:
        raise ValueError(f"cluster count must be at least 1, got {k}")
    gray = _to_gray(image)
    height, width = gray.shape
    if k > height * width:
        raise ValueError(f"cannot form {k} clusters from {height * width} pixels")
    logger.info("Computing texton features (n_ori=%d, sigma=%.3f/%.3f)", n_ori, sigma_small, sigma_large)
    responses = texton_features(gray, n_ori, sigma_small, sigma_large)
    return compute_texton_map(responses, k, seed)
