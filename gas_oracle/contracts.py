from eth_typing import ChecksumAddress
from web3 import Web3
from web3.contract import Contract

from gas_oracle.exceptions import PreconditionError

STORAGE_GAS_ORACLE_ABI = [
    {
        "inputs": [],
        "name": "owner",
        "outputs": [{"internalType": "address", "name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "uint32", "name": "", "type": "uint32"}],
        "name": "remoteGasData",
        "outputs": [
            {"internalType": "uint128", "name": "tokenExchangeRate", "type": "uint128"},
            {"internalType": "uint128", "name": "gasPrice", "type": "uint128"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {
                "components": [
                    {
                        "internalType": "uint32",
                        "name": "remoteDomain",
                        "type": "uint32",
                    },
                    {
                        "internalType": "uint128",
                        "name": "tokenExchangeRate",
                        "type": "uint128",
                    },
                    {
                        "internalType": "uint128",
                        "name": "gasPrice",
                        "type": "uint128",
                    },
                ],
                "internalType": "struct StorageGasOracle.RemoteGasDataConfig[]",
                "name": "_configs",
                "type": "tuple[]",
            }
        ],
        "name": "setRemoteGasDataConfigs",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {
                "indexed": True,
                "internalType": "uint32",
                "name": "remoteDomain",
                "type": "uint32",
            },
            {
                "indexed": False,
                "internalType": "uint128",
                "name": "tokenExchangeRate",
                "type": "uint128",
            },
            {
                "indexed": False,
                "internalType": "uint128",
                "name": "gasPrice",
                "type": "uint128",
            },
        ],
        "name": "RemoteGasDataSet",
        "type": "event",
    },
]


def get_storage_gas_oracle_contract(
    web3_client: Web3, address: ChecksumAddress
) -> Contract:
    """:returns instance of `StorageGasOracle` contract."""
    if not address:
        raise PreconditionError("StorageGasOracle contract address is not configured")

    return web3_client.eth.contract(address=address, abi=STORAGE_GAS_ORACLE_ABI)
