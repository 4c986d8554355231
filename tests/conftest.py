import pytest
import torch

from normlayer.core.blob import Blob
from normlayer.utils.fillers import seed_everything


@pytest.fixture(params=[torch.float32, torch.float64], ids=["float32", "float64"])
def dtype(request):
    return request.param


@pytest.fixture(autouse=True)
def seed():
    seed_everything(1701)


@pytest.fixture
def blobs(dtype):
    """Empty bottom and top blob vectors of the parametrized dtype"""
    return [Blob(dtype=dtype)], [Blob(dtype=dtype)]
