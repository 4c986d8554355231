import os
import random

from loguru import logger

import numpy as np
import pytorch_lightning as pl
import torch


def seed_everything(seed_value):
    r"""Seeds every random source used to fill input blobs

    Args:
        seed_value (int): seed value

    Returns:
        generator (torch.Generator): generator seeded with seed_value, to pass to fill_blob
    """
    if seed_value < 0:
        logger.error(f"Value {seed_value} is not valid: seed value must be non negative")
        raise ValueError(f"seed value must be non negative, got {seed_value}")
    logger.warning(f"Seed value for the check {seed_value}")
    os.environ["PYTHONHASHSEED"] = str(seed_value)
    random.seed(seed_value)
    np.random.seed(seed_value)
    pl.seed_everything(seed_value)
    return torch.Generator().manual_seed(seed_value)


@torch.no_grad()
def fill_blob(blob, filler="gaussian", mean=0.0, std=1.0, low=0.0, high=1.0, value=0.0, generator=None):
    r"""Fills the data of a blob in place

    Args:
        blob (Blob): blob to fill
        filler (str, optional): one of 'gaussian', 'uniform', 'constant' (default is 'gaussian')
        mean (float, optional): mean of the gaussian filler (default is 0.0)
        std (float, optional): standard deviation of the gaussian filler (default is 1.0)
        low (float, optional): lower bound of the uniform filler (default is 0.0)
        high (float, optional): upper bound of the uniform filler (default is 1.0)
        value (float, optional): value of the constant filler (default is 0.0)
        generator (torch.Generator, optional): random generator (default is the global one)

    Returns:
        blob (Blob): the filled blob
    """
    if filler.lower() == "gaussian":
        blob.data.normal_(mean=mean, std=std, generator=generator)
    elif filler.lower() == "uniform":
        blob.data.uniform_(low, high, generator=generator)
    elif filler.lower() == "constant":
        blob.data.fill_(value)
    else:
        logger.error(f"Filler '{filler.lower()}' is not valid")
        raise ValueError(f"unknown filler {filler!r}")
    return blob
