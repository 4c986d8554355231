import pytest
import torch
import torch.nn as nn
import torch.nn.functional as F

from normlayer.core.blob import Blob
from normlayer.layers import Normalization, NormalizeLayer, l2_normalize
from normlayer.layers.functional import l2_normalize_backward, l2_normalize_forward


def test_forward_kernel_returns_sum_of_squares(dtype):
    x = torch.tensor([[3.0, 4.0], [1.0, 1.0]], dtype=dtype)

    y, squared = l2_normalize_forward(x)

    assert squared.tolist() == [25.0, 2.0]
    assert y[0].tolist() == pytest.approx([0.6, 0.8])


def test_backward_kernel_projects_out_output_direction(dtype):
    x = torch.randn(5, 4, dtype=dtype)
    dy = torch.randn(5, 4, dtype=dtype)
    y, squared = l2_normalize_forward(x)

    dx = l2_normalize_backward(dy, y, squared)

    # the gradient is orthogonal to the input of each sample
    inner = torch.sum(dx * x, dim=1)
    assert torch.allclose(inner, torch.zeros_like(inner), atol=1e-5)
    # an upstream gradient along the output has no effect
    along = l2_normalize_backward(3.0 * y, y, squared)
    assert torch.allclose(along, torch.zeros_like(along), atol=1e-5)


def test_gradcheck():
    x = torch.randn(3, 4, 2, dtype=torch.float64, requires_grad=True)
    assert torch.autograd.gradcheck(l2_normalize, (x,))


def test_gradcheck_with_eps():
    x = torch.randn(3, 5, dtype=torch.float64, requires_grad=True)
    assert torch.autograd.gradcheck(lambda t: l2_normalize(t, eps=1e-3), (x,))


def test_matches_torch_normalize(dtype):
    x = torch.randn(4, 3, 2, dtype=dtype)

    expected = F.normalize(x.reshape(4, -1), dim=1, eps=0.0).view(x.shape)

    assert torch.allclose(l2_normalize(x), expected, rtol=1e-5, atol=1e-6)


def test_eps_matches_torch_normalize_on_zero_sample(dtype):
    x = torch.tensor([[0.0, 0.0], [1e-4, 0.0], [3.0, 4.0]], dtype=dtype)

    out = l2_normalize(x, eps=1e-3)

    assert torch.allclose(out, F.normalize(x, dim=1, eps=1e-3))
    assert out[0].tolist() == [0.0, 0.0]


def test_autograd_matches_layer(dtype):
    x = torch.randn(3, 2, 4, dtype=dtype)
    dy = torch.randn(3, 2, 4, dtype=dtype)

    leaf = x.clone().requires_grad_(True)
    out = l2_normalize(leaf)
    out.backward(dy)

    layer = NormalizeLayer()
    bottom, top = Blob(dtype=dtype), Blob(dtype=dtype)
    bottom.set_data(x)
    layer.forward([bottom], [top])
    top.diff.copy_(dy)
    layer.backward([top], [True] * 3, [bottom])

    assert torch.equal(out.detach(), top.data)
    assert torch.allclose(leaf.grad, bottom.diff, rtol=1e-6, atol=1e-7)


def test_module_in_network():
    model = nn.Sequential(nn.Linear(6, 4, bias=False), Normalization())
    x = torch.randn(8, 6)

    out = model(x)
    out.sum().backward()

    assert out.shape == (8, 4)
    assert torch.allclose(torch.linalg.norm(out, dim=1), torch.ones(8), atol=1e-5)
    assert model[0].weight.grad is not None
    assert torch.isfinite(model[0].weight.grad).all()


def test_module_description():
    assert repr(Normalization(eps=1e-6)) == "Normalization(eps=1e-06)"
    with pytest.raises(ValueError):
        Normalization(eps=-1e-6)


def test_gradcheck_inside_clamp():
    # first sample has 0 < norm < eps
    x = torch.tensor([[1e-4, 2e-4], [3.0, 4.0]], dtype=torch.float64, requires_grad=True)
    assert torch.autograd.gradcheck(lambda t: l2_normalize(t, eps=1e-3), (x,))


def test_clamped_gradient_matches_torch_normalize(dtype):
    x = torch.tensor([[1e-4, 2e-4], [3.0, 4.0]], dtype=dtype)
    dy = torch.tensor([[1.0, 0.0], [0.5, -2.0]], dtype=dtype)

    ours = x.clone().requires_grad_(True)
    l2_normalize(ours, eps=1e-3).backward(dy)
    reference = x.clone().requires_grad_(True)
    F.normalize(reference, dim=1, eps=1e-3).backward(dy)

    # the clamped sample goes through x / eps, a linear map
    assert ours.grad[0].tolist() == pytest.approx([1000.0, 0.0])
    assert torch.allclose(ours.grad, reference.grad, rtol=1e-5, atol=1e-6)
