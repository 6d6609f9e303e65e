import io
import json

import pytest
import requests

from source_verifier.config import NETWORKS
from source_verifier.console import Console
from source_verifier.discovery import Dependent, UpgradeVerifier
from source_verifier.fetcher import EtherscanFetcher, RateLimiter
from source_verifier.reconstruct import SourceReconstructor

PREAMBLE = "/**\n  *   Rocket Pool\n  */\n"
ROOT_ADDRESS = NETWORKS["holesky"].upgrade_address
ADDRESS_A = "0x1111111111111111111111111111111111111111"
ADDRESS_B = "0x2222222222222222222222222222222222222222"


def bundle_payload(sources: dict) -> dict:
    """getsourcecode envelope for a multi-file verification."""
    inner = {"language": "Solidity", "sources": {p: {"content": c} for p, c in sources.items()}}
    return {
        "status": "1",
        "message": "OK",
        "result": [{"SourceCode": "{" + json.dumps(inner) + "}", "ContractName": "X"}],
    }


def flat_payload(source: str) -> dict:
    return {"status": "1", "message": "OK", "result": [{"SourceCode": source}]}


NOTOK_PAYLOAD = {"status": "0", "message": "NOTOK", "result": "Invalid API Key"}


class FakeResponse:
    def __init__(self, payload, status_code: int = 200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Answers getsourcecode requests from a dict keyed by address."""

    def __init__(self, payloads: dict, status_code: int = 200):
        self.payloads = payloads
        self.status_code = status_code
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params or {})))
        return FakeResponse(self.payloads[params["address"]], self.status_code)


class FakeReader:
    def __init__(self, addresses: dict, locked: bool = True):
        self.addresses = addresses
        self._locked = locked
        self.reads = []

    def read_address(self, accessor: str) -> str:
        self.reads.append(accessor)
        return self.addresses[accessor]

    def locked(self) -> bool:
        self.reads.append("locked")
        return self._locked


@pytest.fixture
def repo(tmp_path):
    """Minimal checked out repository with a preamble, sources and node_modules."""
    root = tmp_path / "rocketpool"
    (root / "scripts").mkdir(parents=True)
    (root / "scripts" / "preamble.sol").write_bytes(PREAMBLE.encode())
    files = {
        "contracts/A.sol": "contract A {}\n",
        "contracts/B.sol": "contract B {}\n",
        "contracts/upgrade/RocketUpgrade.sol": "contract RocketUpgrade {}\n",
        "node_modules/@openzeppelin/Token.sol": "X",
    }
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode())
    return root


@pytest.fixture
def reconstructor(repo):
    return SourceReconstructor(repo)


@pytest.fixture
def console():
    return Console(out=io.StringIO(), err=io.StringIO(), color=False)


@pytest.fixture
def good_payloads():
    return {
        ROOT_ADDRESS: bundle_payload({
            "contracts/upgrade/RocketUpgrade.sol": PREAMBLE + "contract RocketUpgrade {}\n",
        }),
        ADDRESS_A: bundle_payload({
            "contracts/A.sol": PREAMBLE + "contract A {}\n",
            "@openzeppelin/Token.sol": "X",
        }),
        ADDRESS_B: bundle_payload({"contracts/B.sol": PREAMBLE + "contract B {}\n"}),
    }


@pytest.fixture
def make_verifier(reconstructor, console):
    """Builds an UpgradeVerifier over fake HTTP and chain collaborators."""

    def _make(payloads, locked=True, network="holesky", fail_fast=True):
        session = FakeSession(payloads)
        fetcher = EtherscanFetcher(
            NETWORKS[network].etherscan_api_url, "KEY",
            session=session,
            rate_limiter=RateLimiter(sleep=lambda s: None),
        )
        reader = FakeReader({"aAccessor": ADDRESS_A, "bAccessor": ADDRESS_B}, locked=locked)
        verifier = UpgradeVerifier(
            network=NETWORKS[network],
            fetcher=fetcher,
            reconstructor=reconstructor,
            reader=reader,
            console=console,
            fail_fast=fail_fast,
            dependents=(Dependent("A", "aAccessor"), Dependent("B", "bAccessor")),
        )
        return verifier, session, reader

    return _make
