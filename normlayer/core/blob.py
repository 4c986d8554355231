import torch


class Blob:
    r"""Array handle passed between layers: a data buffer and a diff buffer of the same shape

    Attributes:
        data (torch.Tensor): values computed by the forward pass
        diff (torch.Tensor): gradients of the objective with respect to data
    """

    def __init__(self, shape=(), dtype=torch.float32, device="cpu"):
        r"""
        Args:
            shape (tuple(int), optional): initial shape (default is an empty shape)
            dtype (torch.dtype, optional): element type (default is torch.float32)
            device (str, optional): device holding the buffers (default is 'cpu')
        """
        self.dtype = dtype
        self.device = torch.device(device)
        self.data = torch.zeros(tuple(shape), dtype=dtype, device=self.device)
        self.diff = torch.zeros_like(self.data)

    def __repr__(self):
        return f"Blob(shape={self.shape}, dtype={self.dtype}, device={self.device})"

    @property
    def shape(self):
        return tuple(self.data.shape)

    @property
    def num(self):
        r"""Size of the leading (batch) dimension"""
        return self.shape[0] if self.shape else 1

    @property
    def count(self):
        return self.data.numel()

    def reshape(self, shape):
        r"""Resizes the buffers, allocating zeroed memory only when the shape changes

        Args:
            shape (tuple(int)): new shape
        """
        shape = tuple(shape)
        if shape == self.shape:
            return
        self.data = torch.zeros(shape, dtype=self.dtype, device=self.device)
        self.diff = torch.zeros_like(self.data)

    def reshape_like(self, other):
        r"""Gives this blob the shape, dtype and device of another blob

        Args:
            other (Blob): reference blob
        """
        if other.dtype != self.dtype or other.device != self.device:
            self.dtype = other.dtype
            self.device = other.device
            self.data = torch.zeros(other.shape, dtype=self.dtype, device=self.device)
            self.diff = torch.zeros_like(self.data)
        else:
            self.reshape(other.shape)

    def set_data(self, values):
        r"""Reshapes the blob to the shape of values and copies them into data

        Args:
            values (array_like): new contents
        """
        values = torch.as_tensor(values, dtype=self.dtype, device=self.device)
        self.reshape(values.shape)
        self.data.copy_(values)
