import logging
from typing import Any, Mapping

from web3 import HTTPProvider, IPCProvider, LegacyWebSocketProvider, Web3
from web3.middleware import ExtraDataToPOAMiddleware, SignAndSendRawMiddlewareBuilder

from gas_oracle.exceptions import PreconditionError
from gas_oracle.settings import WEB3_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


def get_web3_client(chain: Mapping[str, Any], private_key: str = "") -> Web3:
    """Returns instance of the Web3 client for the chain."""
    name = chain["NAME"]
    endpoint = chain["RPC_ENDPOINT"]
    if not endpoint:
        raise PreconditionError(
            f"RPC endpoint of {name} is not configured, set {name.upper()}_RPC_ENDPOINT"
        )

    # Prefer WS over HTTP
    if endpoint.startswith("ws"):
        w3 = Web3(
            LegacyWebSocketProvider(endpoint, websocket_timeout=WEB3_REQUEST_TIMEOUT)
        )
        logger.info(f"[{name}] Web3 websocket endpoint={endpoint}")
    elif endpoint.startswith("http"):
        w3 = Web3(
            HTTPProvider(endpoint, request_kwargs={"timeout": WEB3_REQUEST_TIMEOUT})
        )
        logger.info(f"[{name}] Web3 HTTP endpoint={endpoint}")
    else:
        w3 = Web3(IPCProvider(endpoint, timeout=WEB3_REQUEST_TIMEOUT))
        logger.info(f"[{name}] Web3 IPC endpoint={endpoint}")

    if chain["IS_POA"]:
        w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        logger.debug(f"[{name}] Injected POA middleware")

    if private_key:
        account = w3.eth.account.from_key(private_key)
        w3.middleware_onion.inject(
            SignAndSendRawMiddlewareBuilder.build(account), layer=0
        )
        logger.debug(
            f"[{name}] Injected middleware for capturing transactions and sending as raw"
        )

        w3.eth.default_account = account.address
        logger.info(f"[{name}] Configured default account {w3.eth.default_account}")

    return w3
