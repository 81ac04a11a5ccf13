"""
Core robot-pair algorithms
"""

from .clone_factory import CloneFactory, create2_address, load_params_from_code, pair_salt
from .pair_config import PairConfig, scale_factors
from .robot_engine import RobotLogic, RobotPair, attach, deploy_robot_logic

__all__ = [
    "CloneFactory",
    "create2_address",
    "load_params_from_code",
    "pair_salt",
    "PairConfig",
    "scale_factors",
    "RobotLogic",
    "RobotPair",
    "attach",
    "deploy_robot_logic",
]
