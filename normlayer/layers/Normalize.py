from loguru import logger

import torch

from normlayer.core.layer import Layer
from normlayer.layers.functional import check_eps, l2_normalize_forward, l2_normalize_backward


class NormalizeLayer(Layer):
    r"""Normalizes each sample (leading dimension of the input) to unit L2 norm

    Forward: y = x / ||x||, with ||x|| computed over all the non batch dimensions.
    Backward: dx = (dy - y * <dy, y>) / ||x||.

    The layer has no learnable parameters. The per-sample sum of squares computed by the
    forward pass is kept in `squared` and read by the following backward pass.

    Attributes:
        eps (float): lower bound of the norm, 0 reproduces the unclamped division
        squared (torch.Tensor): sums of squares of the last forward pass, shape (N,)
    """

    exact_num_bottom_blobs = 1
    exact_num_top_blobs = 1

    def __init__(self, hparams=None):
        r"""
        Args:
            hparams (CfgNode, optional): configuration, LAYER.EPS is read (default are the package defaults)
        """
        super().__init__(hparams)
        self.eps = check_eps(self.hparams.LAYER.EPS)
        self.squared = torch.empty(0)
        if self.eps > 0:
            logger.info(f"Normalize layer clamps the norm to {self.eps}")

    @property
    def type(self):
        return "Normalize"

    def extra_repr(self):
        return "eps={}".format(self.eps)

    def reshape(self, bottom, top):
        top[0].reshape_like(bottom[0])
        num = bottom[0].num
        if (
            self.squared.shape != (num,)
            or self.squared.dtype != bottom[0].dtype
            or self.squared.device != bottom[0].device
        ):
            self.squared = torch.zeros(num, dtype=bottom[0].dtype, device=bottom[0].device)

    @torch.no_grad()
    def _forward(self, bottom, top):
        num = bottom[0].num
        y, squared = l2_normalize_forward(bottom[0].data.reshape(num, -1), self.eps)
        self.squared.copy_(squared)
        top[0].data.view(num, -1).copy_(y)

        if self.eps == 0:
            n_zero = int(torch.count_nonzero(squared == 0))
            if n_zero:
                logger.warning(f"{n_zero} sample(s) with zero norm, their output is not finite")

    @torch.no_grad()
    def _backward(self, top, propagate_down, bottom):
        mask = torch.as_tensor(propagate_down, dtype=torch.bool, device=bottom[0].device)
        if not torch.any(mask):
            return

        num = top[0].num
        dx = l2_normalize_backward(
            top[0].diff.reshape(num, -1),
            top[0].data.reshape(num, -1),
            self.squared,
            self.eps,
        )
        bottom_diff = bottom[0].diff.view(num, -1)
        if torch.all(mask):
            bottom_diff.copy_(dx)
        else:
            bottom_diff[mask] = dx[mask]
