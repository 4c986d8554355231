import numpy as np

from scipy import spatial

import torch


@torch.no_grad()
def unit_norm_error(y):
    r"""Returns the largest deviation from unit norm over the samples with a finite output

    Args:
        y (torch.Tensor): normalized batch, shape (N, ...)

    Returns:
        error (float): max_i |sum_j y[i, j]^2 - 1|, 0 if no sample is finite
    """
    y = y.reshape(y.shape[0], -1)
    finite = torch.isfinite(y).all(dim=1)
    if not torch.any(finite):
        return 0.0
    squared = torch.sum(y[finite].double() ** 2, dim=1)
    return torch.max(torch.abs(squared - 1.0)).item()


@torch.no_grad()
def compute_angle(x, y):
    r"""Returns the angle (in degrees) between each input sample and its output sample

    Args:
        x (torch.Tensor): input batch, shape (N, ...)
        y (torch.Tensor): output batch, same shape as x

    Returns:
        angles (np.ndarray): per-sample angles, shape (N,)
    """
    x = x.reshape(x.shape[0], -1).double().cpu().numpy()
    y = y.reshape(y.shape[0], -1).double().cpu().numpy()
    angles = []
    for xi, yi in zip(x, y):
        cos = np.clip(1 - spatial.distance.cosine(xi, yi), -1.0, 1.0)
        angles.append(np.arccos(cos) * 180 / np.pi)
    return np.array(angles)
