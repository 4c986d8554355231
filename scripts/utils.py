from yacs.config import CfgNode as CN

import random

def create_arg_cfg(args):
    r"""Returns cfg given the arguments

    Args:
        args (Namespace): arguments for creating the cfg
    """
    cfg = CN()
    cfg.EXP_NAME = args.exp_name
    cfg.SEED_VALUE = args.seed if args.seed is not None else random.randint(0, 4294967295)

    cfg.HARDWARE = CN()
    cfg.HARDWARE.DEVICE = args.device

    cfg.LAYER = CN()
    cfg.LAYER.TYPE = args.layer
    cfg.LAYER.EPS = args.eps

    cfg.DATA = CN()
    cfg.DATA.SHAPE = args.shape
    cfg.DATA.DTYPE = args.dtype
    cfg.DATA.FILLER = args.filler
    cfg.DATA.MEAN = args.mean
    cfg.DATA.STD = args.std

    cfg.GRADCHECK = CN()
    cfg.GRADCHECK.STEPSIZE = args.stepsize
    cfg.GRADCHECK.THRESHOLD = args.threshold
    cfg.GRADCHECK.EXHAUSTIVE = args.exhaustive

    return cfg
