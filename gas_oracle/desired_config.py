import json
import logging
import os
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

from gas_oracle.exceptions import PreconditionError
from gas_oracle.types import UINT128_MAX, DesiredConfiguration, RemoteGasData

logger = logging.getLogger(__name__)

CONFIG_DIR = os.path.join(os.path.dirname(__file__), "config")


def _parse_uint128(value: Union[int, str], field: str, entry: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise PreconditionError(f"Invalid {field} for {entry}: {value!r}")
    # plain decimal digits only
    if isinstance(value, str) and not (value.isascii() and value.isdigit()):
        raise PreconditionError(f"Invalid {field} for {entry}: {value!r}")
    parsed = int(value)

    if not 0 <= parsed <= UINT128_MAX:
        raise PreconditionError(f"{field} for {entry} is out of range: {parsed}")
    return parsed


def parse_remote_gas_data(data: Mapping[str, Any], entry: str) -> RemoteGasData:
    try:
        token_exchange_rate = data["tokenExchangeRate"]
        gas_price = data["gasPrice"]
    except (KeyError, TypeError) as e:
        raise PreconditionError(f"Incomplete gas data for {entry}: {data!r}") from e

    return RemoteGasData(
        token_exchange_rate=_parse_uint128(
            token_exchange_rate, "tokenExchangeRate", entry
        ),
        gas_price=_parse_uint128(gas_price, "gasPrice", entry),
    )


def parse_desired_configuration(data: Mapping[str, Any]) -> DesiredConfiguration:
    """Validates decoded desired gas data and freezes it."""
    if not isinstance(data, Mapping):
        raise PreconditionError("Desired gas data must be a mapping of local chains")

    result = {}
    for local, remotes in data.items():
        if not isinstance(remotes, Mapping):
            raise PreconditionError(
                f"Desired gas data of {local} must be a mapping of remote chains"
            )
        result[local] = MappingProxyType(
            {
                remote: parse_remote_gas_data(gas_data, f"{local} -> {remote}")
                for remote, gas_data in remotes.items()
            }
        )

    return MappingProxyType(result)


def load_desired_configuration(
    environment: str, path: Optional[str] = None
) -> DesiredConfiguration:
    """Loads the desired remote gas data of the environment."""
    if not path:
        path = os.path.join(CONFIG_DIR, f"{environment}.json")

    if not os.path.isfile(path):
        raise PreconditionError(
            f"No storage gas oracle config for environment {environment}"
        )

    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise PreconditionError(f"Failed to decode {path}: {e}") from e

    logger.info(f"Loaded desired gas data for environment {environment} from {path}")
    return parse_desired_configuration(data)
