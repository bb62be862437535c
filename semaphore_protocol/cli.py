"""
Command-Line Interface for semaphore_protocol

Thin tooling around identities, groups and proofs: derive commitments,
compute group roots and Merkle proofs, and generate, verify or pack proofs.
"""

import json
import logging
import sys
from typing import Optional, Tuple

import click

from semaphore_protocol.core.exceptions import MalformedProofError, SemaphoreError
from semaphore_protocol.core.group import Group
from semaphore_protocol.core.identity import Identity
from semaphore_protocol.core.proof import (
    ProofSystem,
    generate_proof,
    set_proof_system,
    verify_proof,
)
from semaphore_protocol.core.serialization import export_proof, import_proof
from semaphore_protocol.core.types import SemaphoreProof


def _fail(message: str) -> None:
    click.echo(click.style(f"✗ {message}", fg="red"), err=True)
    sys.exit(1)


def _build_group(members: Tuple[int, ...]) -> Group:
    try:
        return Group(members)
    except (SemaphoreError, TypeError, ValueError) as e:
        _fail(f"Invalid group: {e}")


def _load_proof(proof_file) -> SemaphoreProof:
    try:
        return import_proof(proof_file.read())
    except MalformedProofError as e:
        _fail(f"Malformed proof: {e}")


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option(
    "--backend",
    type=click.Choice(["mock", "snarkjs"], case_sensitive=False),
    default=None,
    help="Proving backend (default: $SEMAPHORE_BACKEND or mock)",
)
def main(verbose: bool, backend: Optional[str]):
    """
    Semaphore protocol tools.

    ⚠️  The mock backend is NOT sound; use it for testing only.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )
    if backend:
        try:
            set_proof_system(ProofSystem.from_env(backend.lower()))
        except SemaphoreError as e:
            _fail(f"Unable to initialize backend: {e}")


# ============================================================================
# IDENTITY
# ============================================================================


@main.command()
@click.option("--seed", help="Secret seed (a random identity is generated if omitted)")
@click.option("--json", "as_json", is_flag=True, help="Print JSON output")
def identity(seed: Optional[str], as_json: bool):
    """Print the public commitment of an identity."""
    try:
        ident = Identity(seed) if seed is not None else Identity.generate()
    except SemaphoreError as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps({"commitment": str(ident.commitment)}))
    else:
        click.echo(str(ident.commitment))


# ============================================================================
# GROUP
# ============================================================================


@main.group()
def group():
    """Group root and Merkle proof helpers."""
    pass


@group.command("root")
@click.argument("members", nargs=-1, type=int, required=True)
def group_root(members: Tuple[int, ...]):
    """Print the root and depth of a group of MEMBERS."""
    grp = _build_group(members)
    click.echo(json.dumps({"root": str(grp.root), "depth": grp.depth, "size": grp.size}))


@group.command("proof")
@click.option("--index", type=int, required=True, help="Leaf index to prove")
@click.argument("members", nargs=-1, type=int, required=True)
def group_proof(index: int, members: Tuple[int, ...]):
    """Print the Merkle proof for the member at INDEX."""
    grp = _build_group(members)
    try:
        merkle_proof = grp.generate_merkle_proof(index)
    except SemaphoreError as e:
        _fail(str(e))
    click.echo(json.dumps(merkle_proof.to_dict()))


# ============================================================================
# PROOF
# ============================================================================


@main.group()
def proof():
    """Generate, verify and pack Semaphore proofs."""
    pass


@proof.command("generate")
@click.option("--seed", required=True, help="Identity secret seed")
@click.option("--message", required=True, help="Message to signal")
@click.option("--scope", required=True, help="Scope (external nullifier)")
@click.option("--depth", type=int, default=None, help="Circuit depth (default: group depth)")
@click.option("--output", type=click.Path(dir_okay=False), help="Write proof JSON to file")
@click.argument("members", nargs=-1, type=int, required=True)
def proof_generate(
    seed: str,
    message: str,
    scope: str,
    depth: Optional[int],
    output: Optional[str],
    members: Tuple[int, ...],
):
    """Generate a proof that the SEED identity is one of MEMBERS."""
    grp = _build_group(members)
    try:
        ident = Identity(seed)
        semaphore_proof = generate_proof(ident, grp, message, scope, depth)
    except SemaphoreError as e:
        _fail(str(e))

    exported = export_proof(semaphore_proof)
    if output:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(exported)
        click.echo(click.style(f"✓ Proof saved to: {output}", fg="green"), err=True)
    else:
        click.echo(exported)


@proof.command("verify")
@click.argument("proof_file", type=click.File("r"))
def proof_verify(proof_file):
    """Verify the proof in PROOF_FILE ('-' for stdin)."""
    semaphore_proof = _load_proof(proof_file)
    if verify_proof(semaphore_proof):
        click.echo(click.style("✓ Proof valid", fg="green"))
    else:
        _fail("Proof invalid")


@proof.command("pack")
@click.argument("proof_file", type=click.File("r"))
def proof_pack(proof_file):
    """Print the 8-word packed Groth16 points of PROOF_FILE."""
    semaphore_proof = _load_proof(proof_file)
    click.echo(json.dumps([str(v) for v in semaphore_proof.points.pack()]))


if __name__ == "__main__":
    main()
