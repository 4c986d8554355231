r"""Per-sample L2 normalization kernels.

Every execution path of the Normalize layer (the blob based NormalizeLayer and the autograd
binding used by the Normalization module) goes through the two kernels below, so they share
the exact same numerics.

Inputs are flattened to (N, D): the leading dimension indexes the samples, the remaining
dimensions form the feature vector of each sample.
"""

from loguru import logger

import torch


def check_eps(eps):
    r"""Validates the denominator clamp

    Args:
        eps (float): lower bound of the norm, 0 disables the clamp
    """
    if eps < 0:
        logger.error(f"eps must be non negative, got {eps}")
        raise ValueError(f"eps must be non negative, got {eps}")
    return float(eps)


def sample_norm(squared, eps=0.0):
    r"""Returns the per-sample norm from the per-sample sum of squares

    Args:
        squared (torch.Tensor): sums of squares, shape (N,)
        eps (float, optional): lower bound of the norm, 0 disables the clamp (default is 0.0)

    Returns:
        norm (torch.Tensor): shape (N, 1), ready to broadcast over the features
    """
    norm = torch.sqrt(squared)
    if eps > 0:
        norm = torch.clamp(norm, min=eps)
    return norm.unsqueeze(1)


def l2_normalize_forward(x, eps=0.0):
    r"""Rescales each sample to unit Euclidean norm

    With eps=0 an all-zero sample is divided by zero and its output is non-finite.

    Args:
        x (torch.Tensor): input, shape (N, D)
        eps (float, optional): lower bound of the norm, 0 disables the clamp (default is 0.0)

    Returns:
        y (torch.Tensor): normalized input, shape (N, D)
        squared (torch.Tensor): sum of squares of each sample, shape (N,)
    """
    squared = torch.sum(x * x, dim=1)
    y = x / sample_norm(squared, eps)
    return y, squared


def l2_normalize_backward(dy, y, squared, eps=0.0):
    r"""Gradient of the per-sample normalization with respect to its input

    dx = (dy - y * <dy, y>) / ||x||, computed independently for each sample. A sample whose
    norm was clamped to eps went through the linear map y = x / eps, so its gradient is dy / eps.

    Args:
        dy (torch.Tensor): upstream gradient, shape (N, D)
        y (torch.Tensor): output of the matching forward pass, shape (N, D)
        squared (torch.Tensor): sums of squares cached by the matching forward pass, shape (N,)
        eps (float, optional): the clamp used by the matching forward pass (default is 0.0)

    Returns:
        dx (torch.Tensor): downstream gradient, shape (N, D)
    """
    inner = torch.sum(dy * y, dim=1, keepdim=True)
    projected = dy - y * inner
    if eps > 0:
        clamped = (torch.sqrt(squared) < eps).unsqueeze(1)
        projected = torch.where(clamped, dy, projected)
    return projected / sample_norm(squared, eps)


class L2Normalize(torch.autograd.Function):
    r"""Autograd binding of the per-sample normalization kernels"""

    @staticmethod
    def forward(ctx, x, eps=0.0):
        y, squared = l2_normalize_forward(x.reshape(x.shape[0], -1), eps)
        out = y.view(x.shape)
        ctx.eps = eps
        ctx.save_for_backward(out, squared)
        return out

    @staticmethod
    def backward(ctx, grad_output):
        out, squared = ctx.saved_tensors
        n = out.shape[0]
        dx = l2_normalize_backward(
            grad_output.reshape(n, -1), out.reshape(n, -1), squared, ctx.eps
        )
        return dx.view(out.shape), None


def l2_normalize(x, eps=0.0):
    r"""Normalizes each sample of x (leading dimension) to unit L2 norm

    Args:
        x (torch.Tensor): input, shape (N, ...)
        eps (float, optional): lower bound of the norm, 0 disables the clamp (default is 0.0)

    Returns:
        output (torch.Tensor): normalized input, same shape as x
    """
    return L2Normalize.apply(x, check_eps(eps))
