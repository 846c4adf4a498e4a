#!/usr/bin/env python3
"""
Proof Registry Demo: Audit a Snapshot

Audits a registry snapshot the way an outside indexer would: the event chain
and its signatures, the published Merkle root, a replay of every event into
a fresh registry, and the registry's own index invariants.

Usage:
    python examples/demo_audit_snapshot.py -i data/demo_state.json

    # Verbose mode
    python examples/demo_audit_snapshot.py -i data/demo_state.json -v

    # Export audit report
    python examples/demo_audit_snapshot.py -i data/demo_state.json --report audit_report.json
"""

import argparse
import json
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from proof_registry.core.errors import SnapshotError
from proof_registry.core.merkle import MerkleTree
from proof_registry.core.snapshot import load_snapshot
from proof_registry.core.verifier import (
    ChainVerifier,
    MerkleVerifier,
    ReplayVerifier,
    StateVerifier,
)
from proof_registry.utils.helpers import format_timestamp


def print_header(text: str):
    print()
    print("═" * 60)
    print(f"  {text}")
    print("═" * 60)


def print_section(text: str):
    print()
    print(f"─── {text} " + "─" * (55 - len(text)))


def audit_snapshot(filepath: str, verbose: bool = False, report_path: str = None) -> bool:
    """
    Run every audit step over a snapshot.

    Args:
        filepath: Path to the snapshot JSON file
        verbose: Whether to print detailed output
        report_path: Optional path to export the audit report

    Returns:
        bool: True if every step passed
    """
    print_header("Proof Registry Snapshot Audit")

    print_section("Loading Snapshot")
    try:
        registry = load_snapshot(filepath)
    except SnapshotError as e:
        print(f"  ❌ Snapshot rejected: {e}")
        return False

    log = registry.event_log
    events = log.events
    print(f"  File: {filepath}")
    print(f"  Records: {registry.total_records}")
    print(f"  Events: {len(events)}")
    print(f"  Admin: {registry.admin}")
    print(f"  Public key: {log.public_key[:32]}...")

    print_section("Step 1: Hash Chain Integrity")
    chain_result = ChainVerifier(log.public_key).verify(events)
    if chain_result.is_valid:
        print(f"  ✅ CHAIN INTACT ({chain_result.events_verified} events verified)")
    else:
        print("  ❌ CHAIN BROKEN!")
        print(f"     First invalid event: index {chain_result.first_invalid_index}")
        print(f"     Error: {chain_result.error_message}")
        if verbose:
            for idx, expected, actual in chain_result.invalid_hashes[:3]:
                print(f"       Event {idx}: {expected} vs {actual}")

    print_section("Step 2: Merkle Root")
    recorded_root = log.published_root
    computed_root = MerkleTree.from_leaves([event.current_hash for event in events]).root
    root_valid = computed_root == recorded_root
    print(f"  Recorded:  {str(recorded_root)[:32]}...")
    print(f"  Computed:  {str(computed_root)[:32]}...")
    print("  ✅ MERKLE ROOT MATCHES" if root_valid else "  ❌ MERKLE ROOT MISMATCH!")

    if verbose and events:
        # Spot-check the most recent event against the root
        last = len(events) - 1
        included = MerkleVerifier.verify_event_inclusion(
            events[last], log.get_inclusion_proof(last), recorded_root
        )
        print(f"  Inclusion of event {last}: {'verified' if included else 'FAILED'}")

    print_section("Step 3: Replay")
    replay_result = ReplayVerifier().verify(events, registry=registry)
    print(f"  Events replayed: {replay_result.events_replayed}")
    print(f"  Records rebuilt: {replay_result.records_rebuilt}")
    if replay_result.is_valid:
        print("  ✅ STATE MATCHES ITS EVENTS")
    else:
        print("  ❌ REPLAY FAILED!")
        print(f"     Error: {replay_result.error_message}")
        for index, reason in replay_result.rejected_events[:5]:
            print(f"       Event {index} rejected: {reason}")
        for mismatch in replay_result.state_mismatches[:5]:
            print(f"       {mismatch}")

    print_section("Step 4: Index Invariants")
    state_result = StateVerifier().verify(registry)
    if state_result.is_valid:
        print(f"  ✅ INVARIANTS HOLD ({state_result.records_checked} records)")
    else:
        print("  ❌ INVARIANT VIOLATIONS!")
        for violation in state_result.violations[:5]:
            print(f"       {violation}")

    print_section("AUDIT VERDICT")
    all_valid = (
        chain_result.is_valid and
        root_valid and
        replay_result.is_valid and
        state_result.is_valid
    )
    print()
    if all_valid:
        print("  ✅ SNAPSHOT VERIFIED: state, events and root agree")
    else:
        print("  ❌ AUDIT FAILED: evidence of tampering detected")

    if report_path:
        print_section("Exporting Audit Report")
        report = {
            "audit_timestamp": format_timestamp(),
            "input_file": filepath,
            "overall_valid": all_valid,
            "chain_integrity": chain_result.to_dict(),
            "merkle_root": {
                "recorded": recorded_root,
                "computed": computed_root,
                "valid": root_valid,
            },
            "replay": replay_result.to_dict(),
            "state": state_result.to_dict(),
        }
        with open(report_path, 'w') as f:
            json.dump(report, f, indent=2)
        print(f"  Report exported to: {report_path}")

    print()
    return all_valid


def main():
    parser = argparse.ArgumentParser(
        description="Audit a proof registry snapshot"
    )
    parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="Input snapshot JSON file"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )
    parser.add_argument(
        "--report", "-r",
        type=str,
        help="Export audit report to JSON file"
    )

    args = parser.parse_args()

    if not Path(args.input).exists():
        print(f"Error: File not found: {args.input}")
        sys.exit(1)

    is_valid = audit_snapshot(args.input, verbose=args.verbose, report_path=args.report)
    sys.exit(0 if is_valid else 1)


if __name__ == "__main__":
    main()
