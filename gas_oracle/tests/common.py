from typing import Dict, List, Mapping, Tuple

from hexbytes import HexBytes
from web3 import Web3
from web3.contract import Contract
from web3.contract.contract import ContractFunction

from gas_oracle.contracts import get_storage_gas_oracle_contract
from gas_oracle.networks import ChainDirectory, ProtocolType
from gas_oracle.types import RemoteGasData

from .factories import faker

w3 = Web3()


def _chain(name: str, domain_id: int, protocol: ProtocolType) -> Dict:
    return dict(
        NAME=name,
        DOMAIN_ID=domain_id,
        PROTOCOL=protocol,
        RPC_ENDPOINT="http://localhost:8545",
        STORAGE_GAS_ORACLE_CONTRACT_ADDRESS=faker.eth_address(),
        IS_POA=False,
        EIP1559=True,
    )


TEST_CHAINS = {
    "x": _chain("x", 1000, ProtocolType.ETHEREUM),
    "y": _chain("y", 2000, ProtocolType.ETHEREUM),
    "z": _chain("z", 3000, ProtocolType.ETHEREUM),
    "sol": _chain("sol", 4000, ProtocolType.SEALEVEL),
}


def get_test_chain_directory() -> ChainDirectory:
    return ChainDirectory(TEST_CHAINS)


def get_test_contract() -> Contract:
    """Contract without provider, calls can be built but not executed."""
    return get_storage_gas_oracle_contract(w3, faker.eth_address())


class FakeOracles:
    """In-memory state of `StorageGasOracle` contracts deployed on the local chains."""

    def __init__(self, state: Mapping[str, Mapping[int, RemoteGasData]]) -> None:
        self.state: Dict[str, Dict[int, RemoteGasData]] = {
            chain: dict(gas_data) for chain, gas_data in state.items()
        }
        self.contracts: Dict[str, Contract] = {
            chain: get_test_contract() for chain in state
        }
        self._chains = {
            contract.address: chain for chain, contract in self.contracts.items()
        }
        self.reads: List[Tuple[str, int]] = []
        self.submitted: List[Tuple[str, List[Tuple[int, int, int]]]] = []

    def get_remote_gas_data(
        self, contract: Contract, remote_domain: int
    ) -> RemoteGasData:
        chain = self._chains[contract.address]
        self.reads.append((chain, remote_domain))
        return self.state[chain].get(remote_domain, RemoteGasData(0, 0))

    def submit_transaction(self, chain: str, function_call: ContractFunction) -> Dict:
        assert function_call.fn_name == "setRemoteGasDataConfigs"
        configs = list(function_call.args[0])
        self.submitted.append((chain, configs))
        for remote_domain, token_exchange_rate, gas_price in configs:
            self.state[chain][remote_domain] = RemoteGasData(
                token_exchange_rate=token_exchange_rate, gas_price=gas_price
            )
        return {"transactionHash": faker.tx_hash(), "status": 1}

    def submitted_chains(self) -> List[str]:
        return [chain for chain, _ in self.submitted]


def get_receipt(status: int = 1, block_number: int = 100) -> Dict:
    return {
        "transactionHash": HexBytes(faker.tx_hash()),
        "blockNumber": block_number,
        "status": status,
    }
