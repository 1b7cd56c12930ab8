class GasOracleError(Exception):
    """Base class of the errors that terminate a gas oracle run."""


class PreconditionError(GasOracleError):
    """Raised before any contract read when the run cannot be started."""


class UnknownChain(PreconditionError):
    def __init__(self, chain: str) -> None:
        super().__init__(f"Unknown chain {chain}")
        self.chain = chain


class UnsupportedChain(GasOracleError):
    """
    Chain of a protocol family other than Ethereum.
    Never raised out of the reconciler, such chains are skipped.
    """

    def __init__(self, chain: str, protocol: str) -> None:
        super().__init__(f"Chain {chain} has unsupported protocol {protocol}")
        self.chain = chain
        self.protocol = protocol


class ReadFailure(GasOracleError):
    pass


class SubmissionFailure(GasOracleError):
    pass
