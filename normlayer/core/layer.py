from abc import ABC, abstractmethod

from loguru import logger

from .config import get_hparams_defaults


class Layer(ABC):
    r"""Differentiable operator invoked through a forward and a backward pass

    Subclasses implement reshape, _forward and _backward. Inputs (bottom) and outputs (top)
    are lists of Blobs.

    Attributes:
        hparams (CfgNode): configuration the layer was built from
        blobs (list(Blob)): learnable parameters of the layer
    """

    exact_num_bottom_blobs = -1
    exact_num_top_blobs = -1

    def __init__(self, hparams=None):
        r"""
        Args:
            hparams (CfgNode, optional): configuration (default are the package defaults)
        """
        self.hparams = hparams if hparams is not None else get_hparams_defaults()
        self.blobs = []

    @property
    @abstractmethod
    def type(self):
        r"""Name of the operator type"""

    def extra_repr(self):
        return ""

    def __repr__(self):
        extra = self.extra_repr()
        return f"{self.__class__.__name__}(type={self.type!r}" + (f", {extra})" if extra else ")")

    def check_blob_counts(self, bottom, top):
        r"""Checks the number of input and output blobs

        Args:
            bottom (list(Blob)): inputs
            top (list(Blob)): outputs
        """
        if self.exact_num_bottom_blobs >= 0 and len(bottom) != self.exact_num_bottom_blobs:
            logger.error(f"{self.type} layer takes {self.exact_num_bottom_blobs} bottom blob(s), got {len(bottom)}")
            raise ValueError(f"{self.type} layer takes {self.exact_num_bottom_blobs} bottom blob(s) as input")
        if self.exact_num_top_blobs >= 0 and len(top) != self.exact_num_top_blobs:
            logger.error(f"{self.type} layer produces {self.exact_num_top_blobs} top blob(s), got {len(top)}")
            raise ValueError(f"{self.type} layer produces {self.exact_num_top_blobs} top blob(s) as output")

    def setup(self, bottom, top):
        r"""Checks the blobs and sizes the outputs

        Args:
            bottom (list(Blob)): inputs
            top (list(Blob)): outputs
        """
        self.check_blob_counts(bottom, top)
        self.reshape(bottom, top)

    @abstractmethod
    def reshape(self, bottom, top):
        r"""Adjusts the shapes of the outputs and of internal buffers to the inputs"""

    def forward(self, bottom, top):
        r"""Sizes the outputs and computes them from the inputs

        Args:
            bottom (list(Blob)): inputs
            top (list(Blob)): outputs, written in place
        """
        self.check_blob_counts(bottom, top)
        self.reshape(bottom, top)
        self._forward(bottom, top)

    def backward(self, top, propagate_down, bottom):
        r"""Computes the gradient with respect to the inputs

        Args:
            top (list(Blob)): outputs, carrying the forward result and the upstream gradient
            propagate_down (list(bool)): per-sample flags, the gradient is computed only where set
            bottom (list(Blob)): inputs, whose diff receives the downstream gradient
        """
        self.check_blob_counts(bottom, top)
        if len(propagate_down) != bottom[0].num:
            logger.error(f"{self.type} layer got {len(propagate_down)} propagate_down flag(s) for {bottom[0].num} sample(s)")
            raise ValueError(f"{self.type} layer takes one propagate_down flag per sample")
        self._backward(top, propagate_down, bottom)

    @abstractmethod
    def _forward(self, bottom, top):
        pass

    @abstractmethod
    def _backward(self, top, propagate_down, bottom):
        pass
