"""
Upgrade verification run.

1. Verify the upgrade contract itself
2. Read the address of every dependent contract from the upgrade contract
3. Verify each dependent contract
4. Check the upgrade contract is locked

Contracts are verified strictly one after the other and the run stops at the
first failure unless fail_fast is disabled.
"""

from dataclasses import dataclass, field
from typing import NamedTuple, Optional, Protocol

from .allowlist import is_excepted
from .compare import MISMATCH, SINGLE_FILE, VerificationResult, compare, render_diff
from .config import UPGRADE_CONTRACT_NAME, NetworkConfig
from .console import Console
from .errors import InvariantViolation, LocalFileMissing, SourceMismatch
from .fetcher import EtherscanFetcher
from .reconstruct import SourceReconstructor


class Dependent(NamedTuple):
    name: str
    accessor: str


# Logical contract name -> upgrade contract view method returning its address.
DEPENDENT_CONTRACTS: tuple[Dependent, ...] = (
    Dependent("RocketNetworkSnapshots", "rocketNetworkSnapshots"),
    Dependent("RocketNetworkVoting", "rocketNetworkVoting"),
    Dependent("RocketDAOProtocolSettingsProposals", "rocketDAOProtocolSettingsProposals"),
    Dependent("RocketDAOProtocolVerifier", "rocketDAOProtocolVerifier"),
    Dependent("RocketDAOSecurity", "rocketDAOSecurity"),
    Dependent("RocketDAOSecurityActions", "rocketDAOSecurityActions"),
    Dependent("RocketDAOSecurityProposals", "rocketDAOSecurityProposals"),
    Dependent("RocketDAOProtocolSettingsSecurity", "rocketDAOProtocolSettingsSecurity"),
    Dependent("RocketDAOProtocolProposal", "rocketDAOProtocolProposal"),
    Dependent("RocketDAOProtocol", "newRocketDAOProtocol"),
    Dependent("RocketDAOProtocolProposals", "newRocketDAOProtocolProposals"),
    Dependent("RocketNetworkPrices", "newRocketNetworkPrices"),
    Dependent("RocketNodeDeposit", "newRocketNodeDeposit"),
    Dependent("RocketNodeManager", "newRocketNodeManager"),
    Dependent("RocketNodeStaking", "newRocketNodeStaking"),
    Dependent("RocketClaimDAO", "newRocketClaimDAO"),
    Dependent("RocketDAOProtocolSettingsRewards", "newRocketDAOProtocolSettingsRewards"),
    Dependent("RocketMinipoolManager", "newRocketMinipoolManager"),
    Dependent("RocketRewardsPool", "newRocketRewardsPool"),
    Dependent("RocketNetworkBalances", "newRocketNetworkBalances"),
    Dependent("RocketDAOProtocolSettingsNetwork", "newRocketDAOProtocolSettingsNetwork"),
    Dependent("RocketDAOProtocolSettingsAuction", "newRocketDAOProtocolSettingsAuction"),
    Dependent("RocketDAOProtocolSettingsDeposit", "newRocketDAOProtocolSettingsDeposit"),
    Dependent("RocketDAOProtocolSettingsInflation", "newRocketDAOProtocolSettingsInflation"),
    Dependent("RocketDAOProtocolSettingsMinipool", "newRocketDAOProtocolSettingsMinipool"),
    Dependent("RocketDAOProtocolSettingsNode", "newRocketDAOProtocolSettingsNode"),
    Dependent("RocketMerkleDistributorMainnet", "newRocketMerkleDistributorMainnet"),
)


def report_failure(console: Console, result: VerificationResult) -> None:
    if result.reason not in (MISMATCH, SINGLE_FILE):
        console.fail(result.reason)
        return
    console.fail(SourceMismatch(result).message)
    if result.reason == MISMATCH:
        console.write_err(render_diff(result.expected or "", result.actual or "",
                                      console.color) + "\n")


class ChainReader(Protocol):
    def read_address(self, accessor: str) -> str: ...

    def locked(self) -> bool: ...


@dataclass(frozen=True)
class ContractRecord:
    name: str
    address: str


@dataclass
class RunReport:
    verified: list[VerificationResult] = field(default_factory=list)
    failed: list[VerificationResult] = field(default_factory=list)
    locked: Optional[bool] = None

    @property
    def success(self) -> bool:
        return not self.failed and self.locked is not False

    def to_dict(self) -> dict:
        return {
            "verified": [r.to_dict() for r in self.verified],
            "failed": [r.to_dict() for r in self.failed],
            "locked": self.locked,
            "summary": {
                "total": len(self.verified) + len(self.failed),
                "verified": len(self.verified),
                "failed": len(self.failed),
            },
        }


class UpgradeVerifier:
    def __init__(
        self,
        network: NetworkConfig,
        fetcher: EtherscanFetcher,
        reconstructor: SourceReconstructor,
        reader: Optional[ChainReader] = None,
        console: Optional[Console] = None,
        fail_fast: bool = True,
        upgrade_name: str = UPGRADE_CONTRACT_NAME,
        dependents: tuple[Dependent, ...] = DEPENDENT_CONTRACTS,
    ):
        self.network = network
        self.fetcher = fetcher
        self.reconstructor = reconstructor
        self.reader = reader
        self.console = console or Console()
        self.fail_fast = fail_fast
        self.upgrade_name = upgrade_name
        self.dependents = dependents

    # -----------------------------------------------------------------------
    # Single contract
    # -----------------------------------------------------------------------
    def verify_contract(self, record: ContractRecord) -> VerificationResult:
        """Fetch, rebuild and compare one contract. Does not raise on mismatch."""
        bundle = self.fetcher.fetch(record.address)
        expected: dict[str, str] = {}
        if bundle.is_multi_file:
            paths = [p for p in bundle.sources
                     if not is_excepted(self.network.name, record.name, p)]
            try:
                expected = self.reconstructor.reconstruct(paths)
            except LocalFileMissing as e:
                e.contract_name, e.address = record.name, record.address
                raise
        return compare(record.name, self.network.name, expected, bundle)

    def verify_one(self, record: ContractRecord) -> RunReport:
        report = RunReport()
        self._verify_into(record, report)
        return report

    def _verify_into(self, record: ContractRecord, report: RunReport,
                     fail_fast: Optional[bool] = None) -> VerificationResult:
        if fail_fast is None:
            fail_fast = self.fail_fast
        try:
            result = self.verify_contract(record)
        except LocalFileMissing as e:
            if fail_fast:
                raise
            result = VerificationResult(record.name, record.address, False,
                                        path=e.path, reason=e.message)

        if result.passed:
            report.verified.append(result)
            self.console.ok(f"Verified contract at {record.address} matches {record.name}")
            return result

        report.failed.append(result)
        if fail_fast:
            raise SourceMismatch(result)
        report_failure(self.console, result)
        return result

    # -----------------------------------------------------------------------
    # Full run
    # -----------------------------------------------------------------------
    def enumerate(self) -> list[ContractRecord]:
        return [ContractRecord(d.name, self.reader.read_address(d.accessor))
                for d in self.dependents]

    def run(self) -> RunReport:
        if self.reader is None:
            raise ValueError("A chain reader is required to discover dependent contracts")

        report = RunReport()
        root = ContractRecord(self.upgrade_name, self.network.upgrade_address)
        # Addresses come from the upgrade contract, so it must match before anything else.
        self._verify_into(root, report, fail_fast=True)

        for record in self.enumerate():
            self._verify_into(record, report)

        report.locked = self.reader.locked()
        if not report.locked:
            if self.fail_fast:
                raise InvariantViolation("Upgrade contract is not locked",
                                         self.upgrade_name, self.network.upgrade_address)
            self.console.fail("Upgrade contract is not locked")

        if report.success:
            self.console.ok("Verification successful")
        return report
