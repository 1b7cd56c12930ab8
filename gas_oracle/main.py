import argparse
import logging
import sys
from typing import Dict, List, Optional, Sequence

from web3.contract import Contract
from web3.contract.contract import ContractFunction
from web3.types import TxReceipt

from gas_oracle.clients import get_web3_client
from gas_oracle.contracts import get_storage_gas_oracle_contract
from gas_oracle.desired_config import load_desired_configuration
from gas_oracle.exceptions import GasOracleError, PreconditionError
from gas_oracle.networks import ChainDirectory, get_chain_directory
from gas_oracle.reconciler import GasDataReconciler
from gas_oracle.settings import (
    DEPLOYER_PRIVATE_KEY,
    ENVIRONMENT,
    GAS_ORACLE_CONFIG_PATH,
    LOG_LEVEL,
    MAINNET,
    SENTRY_DSN,
    TESTNET,
)
from gas_oracle.transactions import submit_transaction
from gas_oracle.types import ChainReport
from gas_oracle.utils import check_oracle_owner

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Updates the gas data stored on the StorageGasOracle contracts"
            " if the configured data differs from the on-chain data."
        )
    )
    parser.add_argument(
        "--environment",
        choices=[MAINNET, TESTNET],
        default=ENVIRONMENT,
        help="Environment to process",
    )
    parser.add_argument(
        "--chain",
        action="append",
        dest="chains",
        metavar="NAME",
        help="Local chain to process, can be repeated. Defaults to all chains",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="If set, will not submit any transactions",
    )
    return parser.parse_args(argv)


def get_oracle_contracts(
    chain_directory: ChainDirectory,
    chains: Sequence[str],
    private_key: str,
) -> Dict[str, Contract]:
    """Creates the contracts of the supported chains, no network calls are made."""
    contracts: Dict[str, Contract] = {}
    for chain in chains:
        if not chain_directory.is_supported(chain):
            continue

        metadata = chain_directory.get_metadata(chain)
        web3_client = get_web3_client(metadata, private_key)
        contracts[chain] = get_storage_gas_oracle_contract(
            web3_client, metadata["STORAGE_GAS_ORACLE_CONTRACT_ADDRESS"]
        )
    return contracts


def log_summary(reports: List[ChainReport], dry_run: bool) -> None:
    for report in reports:
        if report.skipped:
            logger.info(f"{report.chain}: skipped")
        elif not report.configs:
            logger.info(f"{report.chain}: up to date")
        elif dry_run:
            logger.info(f"{report.chain}: {len(report.configs)} configs to update")
        else:
            logger.info(
                f"{report.chain}: updated {len(report.configs)} configs"
                f" in {report.tx_hash}"
            )


def main(argv: Optional[Sequence[str]] = None) -> List[ChainReport]:
    args = parse_args(argv)
    dry_run: bool = args.dry_run

    chain_directory = get_chain_directory(args.environment)
    desired_configuration = load_desired_configuration(
        args.environment, GAS_ORACLE_CONFIG_PATH or None
    )
    local_chains: List[str] = args.chains or chain_directory.chains()

    if not dry_run and not DEPLOYER_PRIVATE_KEY:
        raise PreconditionError(
            "DEPLOYER_PRIVATE_KEY is required to submit transactions"
        )

    private_key = "" if dry_run else DEPLOYER_PRIVATE_KEY
    oracle_contracts = get_oracle_contracts(chain_directory, local_chains, private_key)

    def submit(chain: str, function_call: ContractFunction) -> TxReceipt:
        return submit_transaction(
            oracle_contracts[chain].w3,
            function_call,
            eip1559=chain_directory.get_metadata(chain)["EIP1559"],
        )

    reconciler = GasDataReconciler(
        chain_directory=chain_directory,
        oracle_contracts=oracle_contracts,
        submit_transaction=submit,
    )
    reconciler.check_preconditions(local_chains, desired_configuration)

    if not dry_run:
        for chain, contract in oracle_contracts.items():
            check_oracle_owner(chain, contract, contract.w3.eth.default_account)

    reports = reconciler.reconcile(local_chains, desired_configuration, dry_run)
    log_summary(reports, dry_run)
    return reports


def run() -> None:
    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s %(message)s",
        datefmt="%m-%d %H:%M",
        level=LOG_LEVEL,
    )
    logging.getLogger("backoff").addHandler(logging.StreamHandler())

    if SENTRY_DSN:
        import sentry_sdk
        from sentry_sdk.integrations.logging import ignore_logger

        sentry_sdk.init(SENTRY_DSN, traces_sample_rate=0.1)
        sentry_sdk.set_tag("environment", ENVIRONMENT)
        ignore_logger("backoff")

    try:
        main()
    except GasOracleError as e:
        logger.error(e)
        sys.exit(1)
    except Exception as e:
        logger.exception(e)
        sys.exit(1)


if __name__ == "__main__":
    run()
