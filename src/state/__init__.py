"""
State management for RobotSwap pairs
"""

from .chain import Chain, LogEntry
from .robots import RobotInfo, RobotLedger, decode_robot_id, encode_robot_id
from .tokens import Erc20Token

__all__ = [
    "Chain",
    "LogEntry",
    "RobotInfo",
    "RobotLedger",
    "decode_robot_id",
    "encode_robot_id",
    "Erc20Token",
]
