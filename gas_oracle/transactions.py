import logging
import time

from eth_typing import BlockNumber
from hexbytes import HexBytes
from web3 import Web3
from web3.contract.contract import ContractFunction
from web3.exceptions import Web3RPCError
from web3.types import TxParams, TxReceipt, Wei

from gas_oracle.exceptions import SubmissionFailure
from gas_oracle.settings import (
    CONFIRMATION_BLOCKS,
    HIGH_PRIORITY_FEE_HISTORY_BLOCKS,
    HIGH_PRIORITY_FEE_PERCENTILE,
    MAX_FEE_PER_GAS_GWEI,
    MIN_EFFECTIVE_PRIORITY_FEE_PER_GAS,
    TRANSACTION_POLL_LATENCY,
    TRANSACTION_RETRY_INTERVAL,
    TRANSACTION_TIMEOUT,
)

logger = logging.getLogger(__name__)

ATTEMPTS_WITH_DEFAULT_GAS = 5
FEE_TOO_LOW_ERROR_CODE = -32010


def wait_for_transaction(web3_client: Web3, tx_hash: HexBytes) -> TxReceipt:
    """Waits for the transaction receipt and the confirmation blocks after it."""
    receipt = web3_client.eth.wait_for_transaction_receipt(
        transaction_hash=tx_hash,
        timeout=TRANSACTION_TIMEOUT,
        poll_latency=TRANSACTION_POLL_LATENCY,
    )
    while True:
        current_block: BlockNumber = web3_client.eth.block_number
        blocks_left = receipt["blockNumber"] + CONFIRMATION_BLOCKS - current_block
        if blocks_left <= 0:
            return receipt

        logger.info(f"Waiting for {blocks_left} confirmation blocks...")
        time.sleep(TRANSACTION_POLL_LATENCY)

        # reorgs can move the transaction to another block
        receipt = web3_client.eth.get_transaction_receipt(tx_hash)


def _get_max_fee_per_gas(web3_client: Web3, max_priority_fee: int) -> Wei:
    base_fee = web3_client.eth.get_block("latest")["baseFeePerGas"]
    max_fee_cap = Web3.to_wei(MAX_FEE_PER_GAS_GWEI, "gwei")
    return Wei(min(max_priority_fee + 2 * base_fee, max_fee_cap))


def get_transaction_params(web3_client: Web3, eip1559: bool = True) -> TxParams:
    account_nonce = web3_client.eth.get_transaction_count(
        web3_client.eth.default_account
    )
    max_fee_cap = Web3.to_wei(MAX_FEE_PER_GAS_GWEI, "gwei")
    if not eip1559:
        return TxParams(
            nonce=account_nonce,
            gasPrice=Wei(min(web3_client.eth.gas_price, max_fee_cap)),
        )

    max_priority_fee = min(web3_client.eth.max_priority_fee, max_fee_cap)
    return TxParams(
        nonce=account_nonce,
        maxPriorityFeePerGas=Wei(max_priority_fee),
        maxFeePerGas=_get_max_fee_per_gas(web3_client, max_priority_fee),
    )


def get_high_priority_tx_params(web3_client: Web3) -> TxParams:
    """
    Raises `maxPriorityFeePerGas` to the recent high percentile reward.
    `maxFeePerGas` follows it as `maxPriorityFeePerGas <= maxFeePerGas`
    must hold, see https://eips.ethereum.org/EIPS/eip-1559.
    """
    max_priority_fee = _calc_high_priority_fee(web3_client)
    tx_params = TxParams(
        maxPriorityFeePerGas=max_priority_fee,
        maxFeePerGas=_get_max_fee_per_gas(web3_client, max_priority_fee),
    )
    logger.debug("High priority tx params: %s", tx_params)
    return tx_params


def _calc_high_priority_fee(web3_client: Web3) -> Wei:
    history = web3_client.eth.fee_history(
        HIGH_PRIORITY_FEE_HISTORY_BLOCKS, "pending", [HIGH_PRIORITY_FEE_PERCENTILE]
    )
    rewards = [block_rewards[0] for block_rewards in history["reward"]]
    if not rewards:
        fee = web3_client.eth.max_priority_fee
    else:
        fee = sum(rewards) // len(rewards)

    # 0.1 gwei precision
    if fee > Web3.to_wei(1, "gwei"):
        fee = round(fee, -8)

    return Wei(max(fee, MIN_EFFECTIVE_PRIORITY_FEE_PER_GAS))


def _is_fee_too_low(e: Exception) -> bool:
    code = None
    rpc_response = getattr(e, "rpc_response", None)
    if rpc_response and isinstance(rpc_response.get("error"), dict):
        code = rpc_response["error"].get("code")
    elif e.args and isinstance(e.args[0], dict):
        code = e.args[0].get("code")
    return code == FEE_TOO_LOW_ERROR_CODE


def _send(
    web3_client: Web3, function_call: ContractFunction, eip1559: bool
) -> HexBytes:
    for i in range(ATTEMPTS_WITH_DEFAULT_GAS):
        try:
            tx_params = get_transaction_params(web3_client, eip1559)
            estimated_gas = function_call.estimate_gas(tx_params)

            # add 10% margin to the estimated gas
            tx_params["gas"] = int(estimated_gas * 0.1) + estimated_gas

            return function_call.transact(tx_params)
        except (ValueError, Web3RPCError) as e:
            # Handle only FeeTooLow error
            if not _is_fee_too_low(e):
                raise e
            logger.warning(e)
            if i < ATTEMPTS_WITH_DEFAULT_GAS - 1:  # skip last sleep
                time.sleep(TRANSACTION_RETRY_INTERVAL)
            elif not eip1559:
                raise e

    tx_params = get_high_priority_tx_params(web3_client)
    return function_call.transact(tx_params)


def submit_transaction(
    web3_client: Web3, function_call: ContractFunction, eip1559: bool = True
) -> TxReceipt:
    """Sends the transaction and waits until it is included and confirmed."""
    try:
        tx_hash = _send(web3_client, function_call, eip1559)
        logger.info(f"Submitted transaction: {Web3.to_hex(tx_hash)}")
        receipt = wait_for_transaction(web3_client, tx_hash)
    except Exception as e:
        raise SubmissionFailure(f"Failed to submit transaction: {e}") from e

    if receipt["status"] == 0:
        raise SubmissionFailure(f"Transaction {Web3.to_hex(tx_hash)} reverted")

    return receipt
