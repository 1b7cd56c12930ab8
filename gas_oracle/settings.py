from decouple import Choices, config

# common
LOG_LEVEL = config("LOG_LEVEL", default="INFO")

# supported environments
MAINNET = "mainnet"
TESTNET = "testnet"
ENVIRONMENT = config(
    "ENVIRONMENT",
    default=MAINNET,
    cast=Choices([MAINNET, TESTNET], cast=lambda env: env.lower()),
)

# credentials, required only when submitting transactions
DEPLOYER_PRIVATE_KEY = config("DEPLOYER_PRIVATE_KEY", default="")

# overrides the bundled desired gas data table of the environment
GAS_ORACLE_CONFIG_PATH = config("GAS_ORACLE_CONFIG_PATH", default="")

# required confirmation blocks
CONFIRMATION_BLOCKS: int = config("CONFIRMATION_BLOCKS", default=1, cast=int)

TRANSACTION_TIMEOUT = config("TRANSACTION_TIMEOUT", default=900, cast=int)
TRANSACTION_POLL_LATENCY = config("TRANSACTION_POLL_LATENCY", default=5, cast=int)
TRANSACTION_RETRY_INTERVAL = config(
    "TRANSACTION_RETRY_INTERVAL", default=12, cast=int
)

MAX_FEE_PER_GAS_GWEI = config("MAX_FEE_PER_GAS_GWEI", default=500, cast=int)
MIN_EFFECTIVE_PRIORITY_FEE_PER_GAS = config(
    "MIN_EFFECTIVE_PRIORITY_FEE_PER_GAS", default=0, cast=int
)
# fee history used to price the transaction after repeated FeeTooLow errors
HIGH_PRIORITY_FEE_HISTORY_BLOCKS = config(
    "HIGH_PRIORITY_FEE_HISTORY_BLOCKS", default=10, cast=int
)
HIGH_PRIORITY_FEE_PERCENTILE = config(
    "HIGH_PRIORITY_FEE_PERCENTILE", default=80, cast=int
)

# transport level retries of the contract reads
RPC_RETRY_MAX_TIME = config("RPC_RETRY_MAX_TIME", default=60, cast=int)
WEB3_REQUEST_TIMEOUT = config("WEB3_REQUEST_TIMEOUT", default=30, cast=int)

# sentry config
SENTRY_DSN = config("SENTRY_DSN", default="")
