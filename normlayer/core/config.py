from yacs.config import CfgNode as CN

from loguru import logger

import torch

import os

### CONSTANTS ###
DTYPES = {"float32": torch.float32, "float64": torch.float64}

### CONFIGS ###
hparams = CN()

# General settings
hparams.EXP_NAME = "normalize_check"
hparams.LOG_DIR = f"experiments/{hparams.EXP_NAME}/logs"
hparams.CONFIG_PATH = f"experiments/{hparams.EXP_NAME}"
hparams.SEED_VALUE = 1701

# Hardware
hparams.HARDWARE = CN()
hparams.HARDWARE.DEVICE = "cpu"

# Layer parameters
hparams.LAYER = CN()
hparams.LAYER.TYPE = "Normalize"
hparams.LAYER.EPS = 0.0

# Input batch used by the checks
hparams.DATA = CN()
hparams.DATA.SHAPE = [2, 3, 4]
hparams.DATA.DTYPE = "float64"
hparams.DATA.FILLER = "gaussian"
hparams.DATA.MEAN = 0.0
hparams.DATA.STD = 1.0

# Finite difference gradient check
hparams.GRADCHECK = CN()
hparams.GRADCHECK.STEPSIZE = 1e-2
hparams.GRADCHECK.THRESHOLD = 1e-3
hparams.GRADCHECK.EXHAUSTIVE = False


def get_hparams_defaults():
    """Get a yacs hparamsNode object with default values for normlayer."""
    return hparams.clone()


def get_dtype(name):
    """Return the torch dtype with the given name

    Args:
        name (string): one of the keys of DTYPES
    """
    if name.lower() not in DTYPES:
        logger.error(f"Dtype '{name}' is not supported")
        raise ValueError(f"unsupported dtype {name!r}, expected one of {sorted(DTYPES)}")
    return DTYPES[name.lower()]


def update_paths(hparams):
    """Update hparams paths

    Args:
        hparams (CfgNode): params to update
    """
    hparams.LOG_DIR = f"experiments/{hparams.EXP_NAME}/logs"
    hparams.CONFIG_PATH = f"experiments/{hparams.EXP_NAME}"


def update_hparams(hparams_file):
    """Return an updated yacs hparamsNode

    Args:
        hparams_file (string): path to the .yaml file
    """
    hparams = get_hparams_defaults()
    hparams.merge_from_file(hparams_file)
    update_paths(hparams)
    logger.info(f"Loaded current configuration from {hparams_file}")
    return hparams.clone()


def load_exp_hparams(exp_name):
    """Handles loading of hparams for given experiment

    Args:
        exp_name (string): name of the experiment
    """
    exp_hparams = get_hparams_defaults()
    exp_hparams.EXP_NAME = exp_name
    update_paths(exp_hparams)
    hparams_file = os.path.join(exp_hparams.CONFIG_PATH, "config.yaml")
    return update_hparams(hparams_file)


def update_hparams_from_cfg(cfg):
    """Return an updated yacs hparamsNode

    Args:
        cfg (CfgNode): node with the updated hparams
    """
    hparams = get_hparams_defaults()
    hparams.merge_from_other_cfg(cfg)
    update_paths(hparams)
    return hparams.clone()


def save_config(hparams):
    """Saves the current configuration as .yaml

    Args:
        hparams (CfgNode): hparams to save
    """
    os.makedirs(hparams.CONFIG_PATH, exist_ok=True)
    with open(os.path.join(hparams.CONFIG_PATH, "config.yaml"), "w") as f:
        f.write(hparams.dump())
        logger.info(f"Saved current configuration at {hparams.CONFIG_PATH}/config.yaml")
