from loguru import logger

import torch


class GradientChecker:
    r"""Compares the gradient computed by a layer's backward pass with central finite differences

    The objective is sum(top.data * w), where w is either a seeded random weighting of the
    outputs or a one-hot vector selecting a single output element. A gradient element fails
    when |analytic - numeric| > threshold * max(|analytic|, |numeric|, 1).
    """

    def __init__(self, stepsize=1e-2, threshold=1e-3, seed=1701):
        r"""
        Args:
            stepsize (float, optional): finite difference step (default is 1e-2)
            threshold (float, optional): relative tolerance (default is 1e-3)
            seed (int, optional): seed of the random output weighting (default is 1701)
        """
        self.stepsize = stepsize
        self.threshold = threshold
        self.seed = seed

    def _output_weights(self, top, top_data_id):
        if top_data_id < 0:
            generator = torch.Generator().manual_seed(self.seed)
            weights = torch.randn(top.shape, generator=generator, dtype=top.dtype)
            return weights.to(top.device)
        weights = torch.zeros_like(top.data)
        weights.view(-1)[top_data_id] = 1.0
        return weights

    @torch.no_grad()
    def _objective(self, layer, bottom, top, weights):
        layer.forward(bottom, top)
        return torch.sum(top[0].data.double() * weights.double()).item()

    @torch.no_grad()
    def check_gradient_single(self, layer, bottom, top, top_data_id=-1):
        r"""Checks the gradient of one objective with respect to every input element

        Args:
            layer (Layer): layer to check
            bottom (list(Blob)): inputs, their data is perturbed and then restored
            top (list(Blob)): outputs
            top_data_id (int, optional): output element used as objective, -1 uses a random weighting of all the outputs (default is -1)

        Returns:
            failures (list(tuple(int, float, float))): (input index, analytic, numeric) of each mismatch
        """
        layer.forward(bottom, top)
        weights = self._output_weights(top[0], top_data_id)

        top[0].diff.copy_(weights)
        bottom[0].diff.zero_()
        layer.backward(top, [True] * bottom[0].num, bottom)
        computed = bottom[0].diff.reshape(-1).double().clone()

        x = bottom[0].data.view(-1)
        failures = []
        for i in range(x.numel()):
            original = x[i].item()
            x[i] = original + self.stepsize
            positive = self._objective(layer, bottom, top, weights)
            x[i] = original - self.stepsize
            negative = self._objective(layer, bottom, top, weights)
            x[i] = original

            analytic = computed[i].item()
            numeric = (positive - negative) / (2.0 * self.stepsize)
            scale = max(abs(analytic), abs(numeric), 1.0)
            if abs(analytic - numeric) > self.threshold * scale:
                failures.append((i, analytic, numeric))

        layer.forward(bottom, top)
        return failures

    def check_gradient(self, layer, bottom, top):
        r"""Checks the gradient of a random weighting of the outputs

        Args:
            layer (Layer): layer to check
            bottom (list(Blob)): inputs
            top (list(Blob)): outputs

        Returns:
            failures (list(tuple(int, float, float))): (input index, analytic, numeric) of each mismatch
        """
        logger.info(f"Checking gradient of {layer} on input of shape {bottom[0].shape}")
        failures = self.check_gradient_single(layer, bottom, top)
        self._report(failures)
        return failures

    def check_gradient_exhaustive(self, layer, bottom, top):
        r"""Checks the gradient of every output element separately

        Args:
            layer (Layer): layer to check
            bottom (list(Blob)): inputs
            top (list(Blob)): outputs

        Returns:
            failures (list(tuple(int, int, float, float))): (output index, input index, analytic, numeric) of each mismatch
        """
        logger.info(f"Exhaustively checking gradient of {layer} on input of shape {bottom[0].shape}")
        layer.setup(bottom, top)
        failures = []
        for j in range(top[0].count):
            for i, analytic, numeric in self.check_gradient_single(layer, bottom, top, top_data_id=j):
                failures.append((j, i, analytic, numeric))
        self._report(failures)
        return failures

    def _report(self, failures):
        if failures:
            logger.error(f"Gradient check failed on {len(failures)} element(s), first: {failures[0]}")
        else:
            logger.info("Gradient check passed")
