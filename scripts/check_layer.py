import os
import sys
import torch
import argparse

from loguru import logger

sys.path.append('')

from normlayer.core.blob import Blob
from normlayer.core.config import get_dtype, load_exp_hparams, update_hparams, update_hparams_from_cfg, save_config
from normlayer.layers import layerpool
from normlayer.utils.diagnostics import compute_angle, unit_norm_error
from normlayer.utils.fillers import fill_blob, seed_everything
from normlayer.utils.gradient_check import GradientChecker

def main(hparams):

    log_dir = hparams.LOG_DIR
    device = hparams.HARDWARE.DEVICE
    if device == 'cuda' and not torch.cuda.is_available():
        logger.warning('CUDA is not available, falling back to cpu')
        device = 'cpu'

    generator = seed_everything(hparams.SEED_VALUE)

    layer = layerpool(hparams.LAYER.TYPE, hparams)

    os.makedirs(log_dir, exist_ok=True)
    sink = logger.add(
        os.path.join(log_dir, 'check.log'),
        level='INFO',
        colorize=False,
    )

    try:
        logger.info(f'Using device: {device}')
        logger.info(f'Hyperparameters: \n {hparams}')

        bottom = Blob(hparams.DATA.SHAPE, dtype=get_dtype(hparams.DATA.DTYPE), device=device)
        top = Blob(dtype=bottom.dtype, device=device)
        fill_blob(bottom, hparams.DATA.FILLER, mean=hparams.DATA.MEAN, std=hparams.DATA.STD, generator=generator)

        save_config(hparams)

        logger.info('*** Started layer check ***')
        layer.setup([bottom], [top])
        layer.forward([bottom], [top])
        logger.info(f'Output shape: {top.shape}')
        logger.info(f'Max deviation from unit norm: {unit_norm_error(top.data):.3e}')
        logger.info(f'Max angle between input and output: {compute_angle(bottom.data, top.data).max():.3e} deg')

        checker = GradientChecker(
            stepsize=hparams.GRADCHECK.STEPSIZE,
            threshold=hparams.GRADCHECK.THRESHOLD,
            seed=hparams.SEED_VALUE,
        )
        if hparams.GRADCHECK.EXHAUSTIVE:
            failures = checker.check_gradient_exhaustive(layer, [bottom], [top])
        else:
            failures = checker.check_gradient(layer, [bottom], [top])
        logger.info('*** Layer check Ended ***')
    finally:
        logger.remove(sink)

    return len(failures) == 0


if __name__ == '__main__':
    from utils import create_arg_cfg

    parser = argparse.ArgumentParser()

    parser.add_argument('-cfg', '--config_file', type=str, help='cfg file path')
    parser.add_argument('-re', '--reload', action='store_true', help='Reload the saved config of the experiment')
    parser.add_argument('-en', '--exp_name', type=str, default='normalize_check', help="Experiment name")
    parser.add_argument('-s', '--seed', type=int, default=1701, help="Seed value")
    parser.add_argument('-dev', '--device', type=str, default='cpu', help="Device")
    parser.add_argument('-l', '--layer', type=str, default='Normalize', help="Layer type")
    parser.add_argument('-eps', '--eps', type=float, default=0.0, help="Lower bound of the norm, 0 disables the clamp")
    parser.add_argument('-sh', '--shape', nargs='*', type=int, default=[2, 3, 4], help="Shape of the input batch")
    parser.add_argument('-dt', '--dtype', type=str, default='float64', help="Input dtype")
    parser.add_argument('-f', '--filler', type=str, default='gaussian', help="Input filler")
    parser.add_argument('-m', '--mean', type=float, default=0.0, help="Mean of the gaussian filler")
    parser.add_argument('-std', '--std', type=float, default=1.0, help="Standard deviation of the gaussian filler")
    parser.add_argument('-ss', '--stepsize', type=float, default=1e-2, help="Finite difference step")
    parser.add_argument('-th', '--threshold', type=float, default=1e-3, help="Gradient check tolerance")
    parser.add_argument('-ex', '--exhaustive', action='store_true', help='Check every output element separately')

    args = parser.parse_args()

    if args.config_file is not None:
        hparams = update_hparams(args.config_file)
    elif args.reload:
        hparams = load_exp_hparams(args.exp_name)
    else:
        hparams = update_hparams_from_cfg(create_arg_cfg(args))

    logger.info(f'Input arguments: \n {args}')

    sys.exit(0 if main(hparams) else 1)
