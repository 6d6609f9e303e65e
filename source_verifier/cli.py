"""
Upgrade Source Verification

Verifies the upgrade contract and every contract it points at were verified on
Etherscan with exactly the sources in the local repository:
1. Fetching the verified source bundle of each contract from Etherscan
2. Rebuilding the expected sources (preamble + repo file, or node_modules
   file for "@" dependencies)
3. Comparing file by file and printing a character diff on the first mismatch
4. Checking the upgrade contract is locked

Usage (after pip install -e .):
    verify-upgrade --network mainnet
    verify-upgrade --network holesky --keep-going -o report.json
    verify-upgrade --address 0x... --name RocketNodeManager
"""

import argparse
import json
import sys
from typing import Optional

from .chain import UpgradeContractReader
from .config import Settings, load_settings
from .console import Console
from .discovery import (
    DEPENDENT_CONTRACTS,
    ContractRecord,
    RunReport,
    UpgradeVerifier,
    report_failure,
)
from .errors import SourceMismatch, UpstreamAPIError, VerificationError
from .fetcher import EtherscanFetcher
from .reconstruct import SourceReconstructor


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------
def print_summary(console: Console, report: RunReport):
    total = len(report.verified) + len(report.failed)
    console.log(f"\n{'=' * 60}")
    console.log("VERIFICATION SUMMARY")
    console.log(f"{'=' * 60}")
    console.log(f"  Verified: {len(report.verified)}")
    console.log(f"  Failed:   {len(report.failed)}")
    console.log(f"  Total:    {total}")
    if report.locked is not None:
        console.log(f"  Locked:   {'yes' if report.locked else 'no'}")
    if report.failed:
        console.log("\nFailed contracts:")
        for r in report.failed:
            console.log(f"  - {r.contract_name}: {r.reason}")


def save_report(console: Console, report: RunReport, path: str):
    with open(path, "w") as f:
        json.dump(report.to_dict(), f, indent=2)
    console.log(f"\nReport saved to: {path}")


def print_error(console: Console, error: VerificationError):
    if isinstance(error, SourceMismatch):
        report_failure(console, error.result)
    elif isinstance(error, UpstreamAPIError):
        console.fail("Something went wrong getting verified source from etherscan")
        console.log(json.dumps(error.payload, indent=2) if error.payload is not None
                    else error.message)
    else:
        console.fail(error.message)


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------
def build_verifier(settings: Settings, console: Console, keep_going: bool = False,
                   with_reader: bool = True) -> UpgradeVerifier:
    reader = None
    if with_reader:
        reader = UpgradeContractReader(
            settings.require_rpc_url(),
            settings.network.upgrade_address,
            [d.accessor for d in DEPENDENT_CONTRACTS],
        )
    return UpgradeVerifier(
        network=settings.network,
        fetcher=EtherscanFetcher(settings.network.etherscan_api_url, settings.api_key),
        reconstructor=SourceReconstructor(settings.repo_root),
        reader=reader,
        console=console,
        fail_fast=not keep_going,
    )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Verify deployed upgrade contracts match the local source tree")
    parser.add_argument("--network", type=str, help="Network (mainnet, holesky); default $NETWORK")
    parser.add_argument("--rpc-url", type=str, help="JSON-RPC endpoint; default $ETH_RPC")
    parser.add_argument("--api-key", type=str, help="Etherscan API key; default $ETHERSCAN_API_KEY")
    parser.add_argument("--repo-root", type=str,
                        help="Checked out repository; default $REPO_ROOT or ./rocketpool")
    parser.add_argument("--address", type=str, help="Verify a single contract address")
    parser.add_argument("--name", type=str, help="Contract name (with --address)")
    parser.add_argument("--keep-going", action="store_true",
                        help="Record source mismatches and continue instead of stopping")
    parser.add_argument("--output", "-o", type=str, help="Output JSON report path")
    parser.add_argument("--no-color", action="store_true", help="Disable coloured output")

    args = parser.parse_args(argv)
    if args.address and not args.name:
        parser.error("--name is required with --address")
    return args


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    console = Console(color=False if args.no_color else None)

    try:
        settings = load_settings(
            network=args.network,
            rpc_url=args.rpc_url,
            api_key=args.api_key,
            repo_root=args.repo_root,
        )
        single = bool(args.address)
        verifier = build_verifier(settings, console, args.keep_going, with_reader=not single)
        if single:
            report = verifier.verify_one(ContractRecord(args.name, args.address))
        else:
            report = verifier.run()
    except VerificationError as e:
        print_error(console, e)
        return 1

    print_summary(console, report)
    if args.output:
        save_report(console, report, args.output)
    return 0 if report.success else 1


if __name__ == "__main__":
    sys.exit(main())
