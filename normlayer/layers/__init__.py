from loguru import logger

from .Normalize import NormalizeLayer
from .Normalization import Normalization
from .functional import L2Normalize, l2_normalize, l2_normalize_forward, l2_normalize_backward


def layerpool(LAYERNAME, hparams=None):
    r"""Return the layer registered under the given type name

    Args:
        LAYERNAME (string): the type name of the layer (case insensitive)
        hparams (CfgNode, optional): configuration passed to the layer (default are the package defaults)

    Return:
        layer (Layer): the configured layer
    """

    if LAYERNAME.lower() == 'normalize':
        return NormalizeLayer(hparams)
    else:
        logger.error(f'Layer \'{LAYERNAME.lower()}\' is not implemented yet')
        raise ValueError(f'unknown layer type {LAYERNAME!r}')
