from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping

from decouple import config
from eth_typing import ChecksumAddress
from web3 import Web3

from gas_oracle.exceptions import PreconditionError, UnknownChain
from gas_oracle.settings import MAINNET, TESTNET


class ProtocolType(str, Enum):
    ETHEREUM = "ethereum"
    SEALEVEL = "sealevel"
    COSMOS = "cosmos"


def _address(name: str) -> ChecksumAddress:
    value = config(f"{name.upper()}_STORAGE_GAS_ORACLE_ADDRESS", default="")
    if not value:
        return ChecksumAddress("")
    return Web3.to_checksum_address(value)


def _endpoint(name: str) -> str:
    return config(f"{name.upper()}_RPC_ENDPOINT", default="")


ETHEREUM = "ethereum"
POLYGON = "polygon"
ARBITRUM = "arbitrum"
OPTIMISM = "optimism"
GNOSIS = "gnosis"
SOLANA = "solana"

GOERLI = "goerli"
SEPOLIA = "sepolia"
MUMBAI = "mumbai"
FUJI = "fuji"
SOLANADEVNET = "solanadevnet"

ENVIRONMENTS: Dict[str, Dict[str, Dict[str, Any]]] = {
    MAINNET: {
        ETHEREUM: dict(
            NAME=ETHEREUM,
            DOMAIN_ID=1,
            PROTOCOL=ProtocolType.ETHEREUM,
            RPC_ENDPOINT=_endpoint(ETHEREUM),
            STORAGE_GAS_ORACLE_CONTRACT_ADDRESS=_address(ETHEREUM),
            IS_POA=False,
            EIP1559=True,
        ),
        POLYGON: dict(
            NAME=POLYGON,
            DOMAIN_ID=137,
            PROTOCOL=ProtocolType.ETHEREUM,
            RPC_ENDPOINT=_endpoint(POLYGON),
            STORAGE_GAS_ORACLE_CONTRACT_ADDRESS=_address(POLYGON),
            IS_POA=True,
            EIP1559=True,
        ),
        ARBITRUM: dict(
            NAME=ARBITRUM,
            DOMAIN_ID=42161,
            PROTOCOL=ProtocolType.ETHEREUM,
            RPC_ENDPOINT=_endpoint(ARBITRUM),
            STORAGE_GAS_ORACLE_CONTRACT_ADDRESS=_address(ARBITRUM),
            IS_POA=False,
            EIP1559=True,
        ),
        OPTIMISM: dict(
            NAME=OPTIMISM,
            DOMAIN_ID=10,
            PROTOCOL=ProtocolType.ETHEREUM,
            RPC_ENDPOINT=_endpoint(OPTIMISM),
            STORAGE_GAS_ORACLE_CONTRACT_ADDRESS=_address(OPTIMISM),
            IS_POA=False,
            EIP1559=True,
        ),
        GNOSIS: dict(
            NAME=GNOSIS,
            DOMAIN_ID=100,
            PROTOCOL=ProtocolType.ETHEREUM,
            RPC_ENDPOINT=_endpoint(GNOSIS),
            STORAGE_GAS_ORACLE_CONTRACT_ADDRESS=_address(GNOSIS),
            IS_POA=True,
            EIP1559=True,
        ),
        SOLANA: dict(
            NAME=SOLANA,
            DOMAIN_ID=1399811149,
            PROTOCOL=ProtocolType.SEALEVEL,
            RPC_ENDPOINT=_endpoint(SOLANA),
            STORAGE_GAS_ORACLE_CONTRACT_ADDRESS=ChecksumAddress(""),
            IS_POA=False,
            EIP1559=False,
        ),
    },
    TESTNET: {
        GOERLI: dict(
            NAME=GOERLI,
            DOMAIN_ID=5,
            PROTOCOL=ProtocolType.ETHEREUM,
            RPC_ENDPOINT=_endpoint(GOERLI),
            STORAGE_GAS_ORACLE_CONTRACT_ADDRESS=_address(GOERLI),
            IS_POA=True,
            EIP1559=True,
        ),
        SEPOLIA: dict(
            NAME=SEPOLIA,
            DOMAIN_ID=11155111,
            PROTOCOL=ProtocolType.ETHEREUM,
            RPC_ENDPOINT=_endpoint(SEPOLIA),
            STORAGE_GAS_ORACLE_CONTRACT_ADDRESS=_address(SEPOLIA),
            IS_POA=False,
            EIP1559=True,
        ),
        MUMBAI: dict(
            NAME=MUMBAI,
            DOMAIN_ID=80001,
            PROTOCOL=ProtocolType.ETHEREUM,
            RPC_ENDPOINT=_endpoint(MUMBAI),
            STORAGE_GAS_ORACLE_CONTRACT_ADDRESS=_address(MUMBAI),
            IS_POA=True,
            EIP1559=True,
        ),
        FUJI: dict(
            NAME=FUJI,
            DOMAIN_ID=43113,
            PROTOCOL=ProtocolType.ETHEREUM,
            RPC_ENDPOINT=_endpoint(FUJI),
            STORAGE_GAS_ORACLE_CONTRACT_ADDRESS=_address(FUJI),
            IS_POA=True,
            EIP1559=True,
        ),
        SOLANADEVNET: dict(
            NAME=SOLANADEVNET,
            DOMAIN_ID=1399811151,
            PROTOCOL=ProtocolType.SEALEVEL,
            RPC_ENDPOINT=_endpoint(SOLANADEVNET),
            STORAGE_GAS_ORACLE_CONTRACT_ADDRESS=ChecksumAddress(""),
            IS_POA=False,
            EIP1559=False,
        ),
    },
}


class ChainDirectory:
    """Read-only view over the chains of a single environment."""

    def __init__(self, chains: Mapping[str, Mapping[str, Any]]) -> None:
        self._chains = MappingProxyType(
            {name: MappingProxyType(dict(meta)) for name, meta in chains.items()}
        )

    def chains(self) -> List[str]:
        return list(self._chains)

    def get_metadata(self, name: str) -> Mapping[str, Any]:
        try:
            return self._chains[name]
        except KeyError:
            raise UnknownChain(name) from None

    def get_domain_id(self, name: str) -> int:
        return self.get_metadata(name)["DOMAIN_ID"]

    def get_protocol(self, name: str) -> ProtocolType:
        return self.get_metadata(name)["PROTOCOL"]

    def is_supported(self, name: str) -> bool:
        return self.get_protocol(name) == ProtocolType.ETHEREUM

    def try_get_chain_name(self, domain_id: int) -> str:
        for name, meta in self._chains.items():
            if meta["DOMAIN_ID"] == domain_id:
                return name
        return ""


def get_chain_directory(environment: str) -> ChainDirectory:
    try:
        chains = ENVIRONMENTS[environment]
    except KeyError:
        raise PreconditionError(f"Unknown environment {environment}") from None
    return ChainDirectory(chains)
