"""
Historical mismatches that are allowed to stay.

Some contracts on holesky were changed after their initial verification and
Etherscan does not allow re-verifying a contract, so the listed files can
never match. Nothing here may apply to the production network.
"""

from typing import NamedTuple

from .config import PRODUCTION_NETWORK


class MismatchException(NamedTuple):
    network: str
    contract_name: str
    path: str


_HOLESKY_REVERIFIED_CONTRACTS = (
    "RocketDAOProtocolVerifier",
    "RocketDAOProtocolProposal",
    "RocketDAOProtocolProposals",
)
_HOLESKY_REVERIFIED_PATHS = (
    "contracts/interface/dao/protocol/RocketDAOProtocolVerifierInterface.sol",
    "contracts/interface/network/RocketNetworkVotingInterface.sol",
)

EXCEPTIONS: frozenset[MismatchException] = frozenset(
    MismatchException("holesky", contract, path)
    for contract in _HOLESKY_REVERIFIED_CONTRACTS
    for path in _HOLESKY_REVERIFIED_PATHS
)


def is_excepted(network: str, contract_name: str, path: str,
                exceptions: frozenset[MismatchException] = EXCEPTIONS) -> bool:
    if network == PRODUCTION_NETWORK:
        return False
    return MismatchException(network, contract_name, path) in exceptions
