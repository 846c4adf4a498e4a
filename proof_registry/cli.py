#!/usr/bin/env python3
"""
Proof Registry Command Line Interface

Offline tooling over exported registry snapshots.

Usage:
    proof-registry demo --records 50 --output state.json
    proof-registry audit state.json
    proof-registry lookup state.json 0xaa...
    proof-registry list state.json 0xa11ce
    proof-registry hash document.pdf
    proof-registry info
"""

import json
import sys
from datetime import timedelta

import click

from proof_registry import __version__
from proof_registry.config import LOG_LEVELS, configure_logging, get_settings
from proof_registry.core.errors import InvalidHash, SnapshotError
from proof_registry.core.records import ExecutionContext
from proof_registry.core.registry import Registry
from proof_registry.core.signer import Ed25519Signer
from proof_registry.core.snapshot import export_snapshot, load_snapshot
from proof_registry.core.verifier import full_verification
from proof_registry.utils.helpers import hash_file, hash_text, truncate_hash, utc_now


def _load(state_file):
    try:
        return load_snapshot(state_file)
    except SnapshotError as e:
        raise click.ClickException(str(e))


@click.group()
@click.version_option(version=__version__)
@click.option(
    '--log-level',
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help='Logging level (overrides PROOF_REGISTRY_LOG_LEVEL)'
)
def main(log_level):
    """Proof Registry: hash attestation tooling"""
    configure_logging(log_level or get_settings().log_level)


@main.command()
@click.option('--records', '-n', default=20, help='Number of proofs to register')
@click.option('--submitters', '-s', default=3, help='Number of distinct submitters')
@click.option('--deactivate-rate', '-d', default=0.2, help='Fraction of proofs deactivated (0.0-1.0)')
@click.option('--output', '-o', default=None, help='Snapshot path (defaults to PROOF_REGISTRY_STATE_FILE)')
@click.option('--seed', type=int, default=None, help='Random seed')
def demo(records, submitters, deactivate_rate, output, seed):
    """Build a demo registry and export it as a snapshot."""
    import random

    if seed is not None:
        random.seed(seed)

    settings = get_settings()
    signer = Ed25519Signer(settings.signing_key) if settings.signing_key else None

    start = utc_now()
    registry = Registry(admin="0xad", signer=signer, now=start)
    identities = [f"0x{i + 1:040x}" for i in range(max(submitters, 1))]

    for i in range(records):
        ctx = ExecutionContext(caller=random.choice(identities), now=start + timedelta(seconds=i + 1))
        record_id = registry.register(
            hash_text(f"demo-document-{i}-{random.random()}"),
            subject=f"Document {i}",
            context=f"case-{i // 10:03d}",
            ctx=ctx,
        )
        if random.random() < deactivate_rate:
            registry.deactivate(record_id, ctx=ctx)

    path = export_snapshot(registry, output or settings.state_file)
    click.echo(json.dumps({
        "records": registry.total_records,
        "events": registry.event_log.event_count,
        "merkle_root": registry.event_log.merkle_root,
        "output": str(path),
    }))


@main.command()
@click.argument('state_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.option('--json-output', '-j', is_flag=True, help='Output as JSON')
def audit(state_file, verbose, json_output):
    """Verify a snapshot's event log and its state against each other."""
    registry = _load(state_file)
    log = registry.event_log

    result = full_verification(
        log.events,
        public_key=log.public_key,
        expected_merkle_root=log.published_root,
        registry=registry,
    )

    if json_output:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        if result.is_valid:
            click.echo(click.style("AUDIT PASSED", fg='green', bold=True))
        else:
            click.echo(click.style("AUDIT FAILED", fg='red', bold=True))
            click.echo(f"Error: {result.error_message}")

        if verbose:
            click.echo("\nEvent chain:")
            click.echo(f"  Events verified: {result.chain.events_verified}")
            click.echo(f"  Status: {'PASS' if result.chain.is_valid else 'FAIL'}")
            click.echo("\nReplay:")
            click.echo(f"  Records rebuilt: {result.replay.records_rebuilt}")
            for index, reason in result.replay.rejected_events:
                click.echo(f"  Event {index} rejected: {reason}")
            for mismatch in result.replay.state_mismatches:
                click.echo(f"  Mismatch: {mismatch}")
            if result.state is not None:
                click.echo("\nState invariants:")
                click.echo(f"  Records checked: {result.state.records_checked}")
                click.echo(f"  Status: {'PASS' if result.state.is_valid else 'FAIL'}")

    sys.exit(0 if result.is_valid else 1)


@main.command()
@click.argument('state_file', type=click.Path(exists=True, dir_okay=False))
@click.argument('data_hash')
def lookup(state_file, data_hash):
    """Look up a hash in a snapshot."""
    registry = _load(state_file)
    try:
        exists, active, identifier = registry.verify_hash(data_hash)
    except InvalidHash as e:
        raise click.BadParameter(str(e), param_hint='DATA_HASH')

    output = {"exists": exists, "active": active, "identifier": identifier}
    if exists:
        output["proof"] = registry.get_proof(identifier).to_dict()
    click.echo(json.dumps(output, indent=2))


@main.command(name='list')
@click.argument('state_file', type=click.Path(exists=True, dir_okay=False))
@click.argument('address')
def list_submitter(state_file, address):
    """List the record identifiers registered by ADDRESS."""
    registry = _load(state_file)
    for identifier in registry.list_by_submitter(address):
        proof = registry.get_proof(identifier)
        status = "active" if proof.is_active else "inactive"
        click.echo(f"{identifier}\t{truncate_hash(proof.data_hash)}\t{status}\t{proof.subject}")


@main.command(name='hash')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
def hash_command(path):
    """Print the registry hash of a file's contents."""
    click.echo(hash_file(path))


@main.command()
def info():
    """Show version and configuration."""
    settings = get_settings()
    click.echo(f"""
Proof Registry
==============

Version: {__version__}
State file: {settings.state_file}
Signing key: {'configured' if settings.signing_key else 'not configured (ephemeral)'}
Log level: {settings.log_level}
    """)


if __name__ == "__main__":
    main()
