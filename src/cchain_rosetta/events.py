"""Token event topic hashes."""

from enum import Enum

from hexbytes import HexBytes


class TokenEvent(Enum):
    """Transfer event shared by ERC20 and ERC721 tokens.

    Both standards emit `Transfer(address,address,uint256)`. ERC721 indexes the
    token id, so the two are told apart by topic count.
    """

    TRANSFER = HexBytes("0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef")


TOPICS_IN_ERC20_TRANSFER = 3
TOPICS_IN_ERC721_TRANSFER = 4
