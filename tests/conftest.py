from __future__ import annotations

from dataclasses import dataclass

import pytest

from src.core.clone_factory import CloneFactory
from src.core.robot_engine import RobotPair, attach, deploy_robot_logic
from src.state.chain import Chain
from src.state.tokens import Erc20Token


OWNER = "0x" + "a0" * 20
ACC1 = "0x" + "a1" * 20
TAKER = "0x" + "b0" * 20


@dataclass
class World:
    chain: Chain
    logic: str
    factory: CloneFactory
    stock: Erc20Token
    money: Erc20Token
    pair: RobotPair


def _build_world(money_decimals: int = 8, stock_decimals: int = 18) -> World:
    chain = Chain()
    logic = deploy_robot_logic(chain, OWNER)
    factory = CloneFactory.deploy(chain, OWNER)
    stock = chain.deploy_token(OWNER, symbol="wBCH", decimals=stock_decimals, supply=10_000_000 * 10**stock_decimals)
    money = chain.deploy_token(OWNER, symbol="USD", decimals=money_decimals, supply=10_000_000 * 10**money_decimals)
    pair_address = factory.create(stock.address, money.address, logic)
    return World(chain=chain, logic=logic, factory=factory, stock=stock, money=money, pair=attach(chain, pair_address))


@pytest.fixture
def make_world():
    """Factory fixture: fresh chain with logic, factory, wBCH/USD tokens and their pair."""
    return _build_world


@pytest.fixture
def world() -> World:
    return _build_world()
