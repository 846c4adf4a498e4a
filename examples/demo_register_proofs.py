#!/usr/bin/env python3
"""
Proof Registry Demo: Register Proofs

Simulates several submitters attesting documents, a few retractions and an
admin hand-over, then exports a snapshot that can be audited with
demo_audit_snapshot.py or `proof-registry audit`.

Usage:
    python examples/demo_register_proofs.py --records 100 --output data/state.json

    # More retractions, fixed seed
    python examples/demo_register_proofs.py -n 200 -d 25 --seed 42 -o data/state.json
"""

import argparse
import random
import sys
from datetime import timedelta
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from proof_registry.core.errors import HashAlreadyRegistered, Unauthorized
from proof_registry.core.records import ExecutionContext
from proof_registry.core.registry import Registry
from proof_registry.core.snapshot import export_snapshot
from proof_registry.core.verifier import StateVerifier
from proof_registry.utils.helpers import hash_text, utc_now


ADMIN = "0x00000000000000000000000000000000000000ad"
SUCCESSOR = "0x00000000000000000000000000000000000000ae"


def simulate_submissions(
    num_records: int,
    num_submitters: int,
    deactivate_rate: float,
) -> Registry:
    """
    Simulate a registry shared by several submitters.

    Each round a submitter registers a document hash. Some rounds resubmit an
    earlier document (rejected as a duplicate), some retract a proof, and
    one outsider tries to retract someone else's proof.

    Args:
        num_records: Number of documents to attest
        num_submitters: Number of distinct submitting identities
        deactivate_rate: Fraction of proofs retracted (0.0 to 1.0)

    Returns:
        Registry: The populated registry
    """
    print(f"\n🚀 Starting proof registry simulation")
    print(f"   Records: {num_records}")
    print(f"   Submitters: {num_submitters}")
    print(f"   Target retraction rate: {deactivate_rate*100:.1f}%")

    clock = utc_now()
    registry = Registry(admin=ADMIN, now=clock)
    submitters = [f"0x{i + 1:040x}" for i in range(num_submitters)]
    documents = []

    print(f"   Public key: {registry.event_log.public_key[:32]}...")
    print()

    duplicates = 0
    retracted = 0

    for i in range(num_records):
        clock += timedelta(seconds=random.randint(1, 90))
        submitter = random.choice(submitters)
        ctx = ExecutionContext(caller=submitter, now=clock)

        if documents and random.random() < 0.05:
            try:
                registry.register(random.choice(documents), f"Resubmission {i}", ctx=ctx)
            except HashAlreadyRegistered:
                duplicates += 1

        document_hash = hash_text(f"document-{i}-{random.random()}")
        record_id = registry.register(
            document_hash,
            subject=f"Document {i}",
            context=f"batch-{i // 25:03d}",
            ctx=ctx,
        )
        documents.append(document_hash)

        if random.random() < deactivate_rate:
            registry.deactivate(record_id, ctx=ctx)
            retracted += 1

        if (i + 1) % 100 == 0 or (i + 1) == num_records:
            print(f"   Progress: {i+1}/{num_records} records "
                  f"(✓ {registry.total_records} | ✗ {retracted} retracted | ⚠ {duplicates} duplicates)")

    outsider = ExecutionContext(caller="0xbad", now=clock)
    try:
        registry.deactivate(0, ctx=outsider)
    except Unauthorized as e:
        print(f"   Outsider retraction refused: {e}")

    registry.transfer_admin(SUCCESSOR, ctx=ExecutionContext(caller=ADMIN, now=clock))
    print(f"   Admin handed over to {SUCCESSOR}")
    print()
    return registry


def main():
    parser = argparse.ArgumentParser(
        description="Generate a demo proof registry snapshot"
    )
    parser.add_argument(
        "--records", "-n",
        type=int,
        default=100,
        help="Number of documents to register (default: 100)"
    )
    parser.add_argument(
        "--submitters", "-s",
        type=int,
        default=5,
        help="Number of submitters (default: 5)"
    )
    parser.add_argument(
        "--deactivate-rate", "-d",
        type=float,
        default=10.0,
        help="Retraction rate as percentage (default: 10)"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed"
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default="data/demo_state.json",
        help="Output file path (default: data/demo_state.json)"
    )

    args = parser.parse_args()
    if args.seed is not None:
        random.seed(args.seed)

    registry = simulate_submissions(
        num_records=args.records,
        num_submitters=max(args.submitters, 1),
        deactivate_rate=args.deactivate_rate / 100,
    )

    stats = registry.event_log.get_statistics()

    print("📊 Registry Statistics")
    print("═" * 50)
    print(f"   Records:       {registry.total_records}")
    print(f"   Active:        {sum(1 for p in registry.proofs() if p.is_active)}")
    print(f"   Admin:         {registry.admin}")
    print(f"   Events:        {stats['total_events']}")
    for event_type, count in sorted(stats['by_type'].items()):
        print(f"     {event_type:20s} {count:5d}")
    print()

    print("📊 Records per Submitter")
    print("─" * 50)
    submitters = sorted({p.submitter for p in registry.proofs()})
    for submitter in submitters:
        count = len(registry.list_by_submitter(submitter))
        bar = "█" * max(1, count * 40 // max(registry.total_records, 1))
        print(f"   {submitter:44s} {count:5d} {bar}")
    print()

    state = StateVerifier().verify(registry)
    print(f"   State invariants: {'✅ hold' if state.is_valid else '❌ ' + str(state.error_message)}")
    print(f"   Merkle Root: {registry.event_log.merkle_root[:32]}...")
    print()

    output_path = export_snapshot(registry, args.output)
    print(f"💾 Snapshot exported to: {output_path}")
    print()

    print("✨ Demo complete!")
    print()
    print("Next steps:")
    print(f"  1. Audit: python examples/demo_audit_snapshot.py -i {output_path}")
    print(f"  2. Look up a proof: proof-registry lookup {output_path} <hash>")


if __name__ == "__main__":
    main()
