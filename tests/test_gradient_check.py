import torch

from normlayer.core.blob import Blob
from normlayer.core.config import get_hparams_defaults
from normlayer.layers import NormalizeLayer
from normlayer.utils.fillers import fill_blob
from normlayer.utils.gradient_check import GradientChecker


class UnprojectedNormalizeLayer(NormalizeLayer):
    """Drops the projection term of the gradient, so the check must fail"""

    def _backward(self, top, propagate_down, bottom):
        num = top[0].num
        norm = torch.sqrt(self.squared).unsqueeze(1)
        bottom[0].diff.view(num, -1).copy_(top[0].diff.reshape(num, -1) / norm)


def filled_blobs(shape, dtype):
    bottom = Blob(shape, dtype=dtype)
    fill_blob(bottom, "gaussian")
    return [bottom], [Blob(dtype=dtype)]


def test_gradient(dtype):
    bottom, top = filled_blobs((2, 3, 4), dtype)
    checker = GradientChecker(stepsize=1e-2, threshold=1e-3)

    assert checker.check_gradient(NormalizeLayer(), bottom, top) == []


def test_gradient_exhaustive(dtype):
    bottom, top = filled_blobs((2, 8), dtype)
    checker = GradientChecker(stepsize=1e-2, threshold=1e-3)

    assert checker.check_gradient_exhaustive(NormalizeLayer(), bottom, top) == []


def test_input_restored_after_check(dtype):
    bottom, top = filled_blobs((3, 4), dtype)
    before = bottom[0].data.clone()
    layer = NormalizeLayer()

    GradientChecker().check_gradient(layer, bottom, top)

    assert torch.equal(bottom[0].data, before)
    assert torch.allclose(layer.squared, torch.sum(before ** 2, dim=1))


def test_wrong_gradient_detected():
    bottom, top = filled_blobs((2, 4), torch.float64)

    failures = GradientChecker().check_gradient(UnprojectedNormalizeLayer(), bottom, top)

    assert len(failures) > 0
    index, analytic, numeric = failures[0]
    assert 0 <= index < 8
    assert abs(analytic - numeric) > 1e-3


def clamped_layer(eps):
    hparams = get_hparams_defaults()
    hparams.LAYER.EPS = eps
    return NormalizeLayer(hparams)


def test_gradient_with_clamped_norm(dtype):
    bottom, top = [Blob(dtype=dtype)], [Blob(dtype=dtype)]
    bottom[0].set_data([[0.3, 0.4, 0.1]])

    assert GradientChecker().check_gradient_exhaustive(clamped_layer(1.0), bottom, top) == []


def test_gradient_with_mixed_clamped_and_unclamped_samples():
    bottom, top = [Blob(dtype=torch.float64)], [Blob(dtype=torch.float64)]
    bottom[0].set_data([[1e-4, 2e-4], [3.0, 4.0]])
    checker = GradientChecker(stepsize=1e-5, threshold=1e-4)

    assert checker.check_gradient_exhaustive(clamped_layer(1e-3), bottom, top) == []
