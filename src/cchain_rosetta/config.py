"""Mapper configuration and public network presets."""

from __future__ import annotations

from dataclasses import dataclass, field

from cchain_rosetta.types import NetworkIdentifier

AVALANCHE_BLOCKCHAIN = "Avalanche"
MAINNET_NETWORK = "Mainnet"
FUJI_NETWORK = "Fuji"

# Chain aliases used when formatting addresses on other chains
X_CHAIN_ALIAS = "X"
P_CHAIN_ALIAS = "P"
C_CHAIN_ALIAS = "C"

P_CHAIN_ID = "11111111111111111111111111111111LpoYY"

MAINNET_AVAX_ASSET_ID = "FvwEAhmxKfeiG8SnEvq42hc6whRyY3EFYAvebMqDNDGCgxN5Z"
MAINNET_X_CHAIN_ID = "2oYMBNV4eNHyqk2fjjV5nVQLDbtmNJzq5s3qs3Lo6ftnC6FByM"
MAINNET_C_CHAIN_ID = "2q9e4r6Mu3U68nU1fYjgbR6JvwrRx36CohpAX5UQxse55x1Q5"
MAINNET_AP5_ACTIVATION_TIME = 1638468000

FUJI_AVAX_ASSET_ID = "U8iRqJoiJm8xZHAacmvYyZVwqQx6uDNtQeP3CQ6fcgQk3JqnK"
FUJI_X_CHAIN_ID = "2JVSBoinj9C2J33VntvzYtVJNZdN2NKiwwKjcumHUWEb5DbBrm"
FUJI_C_CHAIN_ID = "yH8D7ThNJkxmtkuv2jgBa4P1Rn3Qpr4pPr7QYNfcdoS6k6HWp"
FUJI_AP5_ACTIVATION_TIME = 1637766000


@dataclass(frozen=True)
class MapperConfig:
    """Policy and network constants consumed by the mapper.

    Args:
        network_identifier: Network the mapped blocks belong to.
        analytics_mode: Process every token transfer instead of only
            allow-listed contracts.
        standard_mode_allow_list: Token contracts processed in standard mode.
            Matched case-insensitively.
        include_unknown_tokens: Keep transfers of tokens whose metadata
            could not be resolved.
        ap5_activation_time: Block timestamp from which block payloads carry
            a batch of atomic transactions instead of a single one.
        native_asset_id: CB58 id of AVAX on the network.
        chain_id_to_alias: CB58 chain id to chain alias ("X", "P").
    """

    network_identifier: NetworkIdentifier
    analytics_mode: bool = False
    standard_mode_allow_list: frozenset[str] = field(default_factory=frozenset)
    include_unknown_tokens: bool = False
    ap5_activation_time: int = 0
    native_asset_id: str = MAINNET_AVAX_ASSET_ID
    chain_id_to_alias: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "standard_mode_allow_list",
            frozenset(address.lower() for address in self.standard_mode_allow_list),
        )

    def is_token_allowed(self, address: str) -> bool:
        return address.lower() in self.standard_mode_allow_list


MAINNET_CONFIG = MapperConfig(
    network_identifier=NetworkIdentifier(
        blockchain=AVALANCHE_BLOCKCHAIN, network=MAINNET_NETWORK
    ),
    ap5_activation_time=MAINNET_AP5_ACTIVATION_TIME,
    native_asset_id=MAINNET_AVAX_ASSET_ID,
    chain_id_to_alias={
        MAINNET_X_CHAIN_ID: X_CHAIN_ALIAS,
        P_CHAIN_ID: P_CHAIN_ALIAS,
    },
)

FUJI_CONFIG = MapperConfig(
    network_identifier=NetworkIdentifier(blockchain=AVALANCHE_BLOCKCHAIN, network=FUJI_NETWORK),
    ap5_activation_time=FUJI_AP5_ACTIVATION_TIME,
    native_asset_id=FUJI_AVAX_ASSET_ID,
    chain_id_to_alias={
        FUJI_X_CHAIN_ID: X_CHAIN_ALIAS,
        P_CHAIN_ID: P_CHAIN_ALIAS,
    },
)
