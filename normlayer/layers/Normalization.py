import torch.nn as nn

from normlayer.layers.functional import check_eps, l2_normalize

class Normalization(nn.Module):
    r"""Normalization layer: each sample of the output is the L2 normalized input sample
    """
    def __init__(self, eps=0.0):
        r"""
        Args:
            eps (float, optional): lower bound of the norm, 0 disables the clamp (default is 0.0)
        """
        super().__init__()
        self.eps = check_eps(eps)

    def extra_repr(self):
        return "eps={}".format(self.eps)

    def forward(self, X):
        return l2_normalize(X, self.eps)
