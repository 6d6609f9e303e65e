"""
Read-only view of the upgrade contract.

Only the declared accessors are used: locked() and one zero-argument
address getter per dependent contract.
"""

from typing import Iterable

from web3 import Web3

from .errors import ChainReadError


def build_abi(accessors: Iterable[str]) -> list[dict]:
    abi = [{
        "type": "function",
        "name": "locked",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "bool"}],
    }]
    for accessor in accessors:
        abi.append({
            "type": "function",
            "name": accessor,
            "stateMutability": "view",
            "inputs": [],
            "outputs": [{"name": "", "type": "address"}],
        })
    return abi


class UpgradeContractReader:
    def __init__(self, rpc_url: str, address: str, accessors: Iterable[str]):
        self.accessors = tuple(accessors)
        self.address = Web3.to_checksum_address(address)
        self.w3 = Web3(Web3.HTTPProvider(rpc_url))
        self.contract = self.w3.eth.contract(address=self.address, abi=build_abi(self.accessors))

    def read_address(self, accessor: str) -> str:
        if accessor not in self.accessors:
            raise ChainReadError(f"Undeclared accessor {accessor}", address=self.address)
        try:
            value = self.contract.get_function_by_name(accessor)().call()
        except Exception as e:
            raise ChainReadError(f"Calling {accessor}() on {self.address} failed: {e}",
                                 address=self.address) from e
        return Web3.to_checksum_address(value)

    def locked(self) -> bool:
        try:
            return bool(self.contract.functions.locked().call())
        except Exception as e:
            raise ChainReadError(f"Calling locked() on {self.address} failed: {e}",
                                 address=self.address) from e
