"""
Command-line interface for the private waitlist.

Local commands (commit, nullify, tree, path) only hash. Ledger commands
(init, join, lock, check, redeem, show) operate on a CBOR state file that
stands in for the on-chain contract.
"""

import json
import logging
import secrets
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from private_waitlist import __version__
from private_waitlist.client import WaitlistClient
from private_waitlist.ledger.file import FileLedger
from private_waitlist.ledger.memory import InMemoryLedger
from private_waitlist.protocol.config import FIELD_MODULUS
from private_waitlist.protocol.exceptions import InvalidInputError, WaitlistError
from private_waitlist.protocol.hashing import commit, nullify
from private_waitlist.protocol.machine import phase
from private_waitlist.protocol.merkle import (
    build_tree,
    extract_auth_path,
    verify_auth_path,
)
from private_waitlist.protocol.parsing import parse_field_element, short_hex, to_hex
from private_waitlist.protocol.settings import Settings, load_settings
from private_waitlist.snark.factory import get_prover
from private_waitlist.snark.interfaces import Prover
from private_waitlist.snark.messages import ProofResult
from private_waitlist.snark.mock import MockProver
from private_waitlist.snark.snarkjs import SnarkjsProver

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)


class FieldElement(click.ParamType):
    """Decimal or 0x-hex integer below the field modulus."""

    name = "field-element"

    def convert(self, value, param, ctx):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        try:
            return parse_field_element(value, param.name if param else "value")
        except InvalidInputError as exc:
            self.fail(str(exc), param, ctx)


FIELD_ELEMENT = FieldElement()


def _fail(exc: Exception, verbose: bool = False) -> None:
    err_console.print(f"[red]✗ Error: {escape(str(exc))}[/red]")
    if isinstance(exc, WaitlistError) and exc.retryable:
        err_console.print("[yellow]The ledger state changed; re-read it and try again.[/yellow]")
    if verbose:
        err_console.print_exception()
    sys.exit(1)


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def _make_prover(settings: Settings, prover_name: Optional[str]) -> Prover:
    name = prover_name or settings.prover
    if name == "snarkjs":
        return get_prover(
            name,
            circuits_dir=settings.circuits_dir,
            snarkjs_bin=settings.snarkjs_bin,
            timeout=settings.prover_timeout,
        )
    return get_prover(name)


def _make_client(ctx: click.Context, state_file: Optional[str], prover_name: Optional[str]) -> WaitlistClient:
    settings = _settings(ctx)
    prover = _make_prover(settings, prover_name)
    ledger = FileLedger(state_file or settings.state_file, verifier=prover)
    return WaitlistClient(ledger, prover)


def _print_value(label: str, value: int) -> None:
    console.print(f"[bold]{label}:[/bold] {to_hex(value)}")
    console.print(f"[dim]{label} (decimal):[/dim] {value}")


def _require_calldata_support(prover: Prover) -> None:
    if not isinstance(prover, SnarkjsProver):
        raise InvalidInputError(
            f"--calldata needs the snarkjs prover, not {prover.prover_name}"
        )


def _print_calldata(ctx: click.Context, prover: SnarkjsProver, proof: ProofResult) -> None:
    try:
        calldata = prover.export_calldata(proof)
    except WaitlistError as exc:
        _fail(exc, ctx.obj["verbose"])
    console.print(f"[bold]calldata proof:[/bold] {escape(calldata.proof)}")
    console.print(
        f"[bold]calldata public signals:[/bold] {escape(json.dumps(calldata.public_signals))}"
    )


state_option = click.option(
    "--state",
    "state_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Ledger state file (default: settings.state_file)",
)
prover_option = click.option(
    "--prover",
    "prover_name",
    type=click.Choice(["mock", "snarkjs"]),
    default=None,
    help="Prover backend (default: settings.prover)",
)
calldata_option = click.option(
    "--calldata",
    is_flag=True,
    help="Also print Solidity verifier calldata for the proof (snarkjs only)",
)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, exists=True),
    default=None,
    help="YAML settings file",
)
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, config_path, verbose):
    """
    Private waitlist tool.

    Claim a waitlist slot with a commitment to a secret, lock the waitlist,
    then redeem the slot with a zero-knowledge proof that reveals only a
    nullifier.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
        )
    try:
        settings = load_settings(config_path)
    except WaitlistError as exc:
        _fail(exc, verbose)
    ctx.obj = {"settings": settings, "verbose": verbose}


# ============================================================================
# LOCAL COMMANDS
# ============================================================================


@main.command("new-secret")
def new_secret():
    """Generate a random secret. Keep it private."""
    console.print(str(secrets.randbelow(FIELD_MODULUS)))


@main.command("commit")
@click.argument("secret", type=FIELD_ELEMENT)
def commit_cmd(secret):
    """Derive the public commitment for SECRET."""
    _print_value("commitment", commit(secret))


@main.command("nullify")
@click.argument("secret", type=FIELD_ELEMENT)
def nullify_cmd(secret):
    """Derive the nullifier revealed when SECRET redeems its slot."""
    _print_value("nullifier", nullify(secret))


@main.command("tree")
@click.argument("commitments", nargs=-1, required=True, type=FIELD_ELEMENT)
@click.option("--show-nodes", is_flag=True, help="Print every node")
@click.pass_context
def tree_cmd(ctx, commitments, show_nodes):
    """Build the Merkle tree over COMMITMENTS (count must be a power of two)."""
    try:
        tree = build_tree(commitments)
    except WaitlistError as exc:
        _fail(exc, ctx.obj["verbose"])
    console.print(f"[bold]leaves:[/bold] {tree.leaf_count}  [bold]depth:[/bold] {tree.depth}")
    _print_value("root", tree.root)
    if show_nodes:
        table = Table(title="Nodes")
        table.add_column("position", justify="right")
        table.add_column("value")
        for position, node in enumerate(tree.nodes):
            table.add_row(str(position), to_hex(node))
        console.print(table)


@main.command("path")
@click.argument("commitments", nargs=-1, required=True, type=FIELD_ELEMENT)
@click.option("--index", "index", type=int, required=True, help="Leaf index")
@click.pass_context
def path_cmd(ctx, commitments, index):
    """Print the authentication path for leaf INDEX of COMMITMENTS."""
    try:
        tree = build_tree(commitments)
        path = extract_auth_path(tree, index)
    except WaitlistError as exc:
        _fail(exc, ctx.obj["verbose"])

    table = Table(title=f"Authentication path for leaf {index}")
    table.add_column("level", justify="right")
    table.add_column("sibling")
    table.add_column("is_left")
    for level, (sibling, is_left) in enumerate(path):
        table.add_row(str(level), to_hex(sibling), "1" if is_left else "0")
    console.print(table)
    _print_value("root", tree.root)
    ok = verify_auth_path(tree.leaves[index], path, tree.root)
    console.print("[green]✓ path recombines to root[/green]" if ok else "[red]✗ path does not verify[/red]")


# ============================================================================
# LEDGER COMMANDS
# ============================================================================


@main.command("init")
@click.option("--capacity", type=int, default=None, help="Number of slots (power of two)")
@click.option("--force", is_flag=True, help="Overwrite an existing state file")
@state_option
@click.pass_context
def init_cmd(ctx, capacity, force, state_file):
    """Create an empty waitlist state file."""
    settings = _settings(ctx)
    path = Path(state_file or settings.state_file)
    try:
        FileLedger.initialize(
            path,
            capacity if capacity is not None else settings.default_capacity,
            overwrite=force,
        )
    except WaitlistError as exc:
        _fail(exc, ctx.obj["verbose"])
    console.print(f"[green]✓ Initialized waitlist at {escape(str(path))}[/green]")


@main.command("join")
@click.argument("secret", type=FIELD_ELEMENT)
@state_option
@prover_option
@click.pass_context
def join_cmd(ctx, secret, state_file, prover_name):
    """Claim the next slot with the commitment of SECRET."""
    try:
        client = _make_client(ctx, state_file, prover_name)
    except WaitlistError as exc:
        _fail(exc, ctx.obj["verbose"])
    result = client.join(secret)
    if not result.ok:
        _fail(result.error, ctx.obj["verbose"])
    console.print(
        f"[green]✓ Joined the waitlist in slot {result.value} with commitment "
        f"{short_hex(commit(secret), 18)}...[/green]"
    )


@main.command("lock")
@state_option
@prover_option
@calldata_option
@click.pass_context
def lock_cmd(ctx, state_file, prover_name, calldata):
    """Prove and publish the Merkle root of a full waitlist."""
    try:
        client = _make_client(ctx, state_file, prover_name)
        if calldata:
            _require_calldata_support(client.prover)
    except WaitlistError as exc:
        _fail(exc, ctx.obj["verbose"])
    result = client.lock()
    if not result.ok:
        _fail(result.error, ctx.obj["verbose"])
    console.print("[green]✓ Waitlist locked[/green]")
    _print_value("root", result.value.root)
    if calldata:
        _print_calldata(ctx, client.prover, result.value.proof)


@main.command("check")
@click.argument("secret", type=FIELD_ELEMENT)
@state_option
@click.pass_context
def check_cmd(ctx, secret, state_file):
    """Check whether SECRET can redeem a slot."""
    try:
        client = _make_client(ctx, state_file, "mock")
    except WaitlistError as exc:
        _fail(exc, ctx.obj["verbose"])
    result = client.check_redeemable(secret)
    if not result.ok:
        _fail(result.error, ctx.obj["verbose"])
    console.print(f"[green]✓ Secret can redeem slot {result.value}[/green]")


@main.command("redeem")
@click.argument("secret", type=FIELD_ELEMENT)
@state_option
@prover_option
@calldata_option
@click.pass_context
def redeem_cmd(ctx, secret, state_file, prover_name, calldata):
    """Redeem the slot belonging to SECRET."""
    try:
        client = _make_client(ctx, state_file, prover_name)
        if calldata:
            _require_calldata_support(client.prover)
    except WaitlistError as exc:
        _fail(exc, ctx.obj["verbose"])
    result = client.redeem(secret)
    if not result.ok:
        _fail(result.error, ctx.obj["verbose"])
    console.print(f"[green]✓ Redeemed slot {result.value.slot}[/green]")
    _print_value("nullifier", result.value.nullifier)
    if calldata:
        _print_calldata(ctx, client.prover, result.value.proof)


@main.command("show")
@state_option
@click.pass_context
def show_cmd(ctx, state_file):
    """Show the current waitlist state."""
    try:
        client = _make_client(ctx, state_file, "mock")
        state = client.state()
    except WaitlistError as exc:
        _fail(exc, ctx.obj["verbose"])

    console.print(
        f"[bold]phase:[/bold] {phase(state).value}  "
        f"[bold]slots:[/bold] {state.used_slots}/{state.capacity}  "
        f"[bold]redeemed:[/bold] {state.redeemed_count}"
    )
    if state.merkle_root is not None:
        console.print(f"[bold]root:[/bold] {short_hex(state.merkle_root, 18)}...")

    table = Table(title="Commitments")
    table.add_column("slot", justify="right")
    table.add_column("commitment")
    for slot, c in enumerate(state.commitments):
        table.add_row(str(slot), short_hex(c, 18) + "...")
    console.print(table)

    if state.nullifiers:
        table = Table(title="Used nullifiers")
        table.add_column("#", justify="right")
        table.add_column("nullifier")
        for i, n in enumerate(state.nullifiers):
            table.add_row(str(i + 1), short_hex(n, 18) + "...")
        console.print(table)


# ============================================================================
# DEMO
# ============================================================================


@main.command("demo")
@click.option("--capacity", type=int, default=4, help="Number of slots (power of two)")
@click.pass_context
def demo_cmd(ctx, capacity):
    """
    Run the full Commit -> Lock -> Redeem flow in memory with the mock prover.

    Examples:

        private-waitlist demo

        private-waitlist demo --capacity 8
    """
    try:
        prover = MockProver()
        client = WaitlistClient(InMemoryLedger.create(capacity, verifier=prover), prover)
    except WaitlistError as exc:
        _fail(exc, ctx.obj["verbose"])

    user_secrets = [secrets.randbelow(FIELD_MODULUS) for _ in range(capacity)]

    console.print("\n" + "=" * 70)
    console.print("[bold cyan]Private Waitlist Demonstration[/bold cyan]")
    console.print("=" * 70)

    console.print("\n[bold]1. Commit[/bold]")
    for secret in user_secrets:
        slot = client.join(secret).unwrap()
        console.print(f"  slot {slot}: commitment {short_hex(commit(secret), 18)}...")

    console.print("\n[bold]2. Lock[/bold]")
    receipt = client.lock().unwrap()
    console.print(f"  root {short_hex(receipt.root, 18)}...")

    console.print("\n[bold]3. Redeem[/bold]")
    target = user_secrets[min(1, capacity - 1)]
    redeemed = client.redeem(target).unwrap()
    console.print(
        f"  slot {redeemed.slot} redeemed, nullifier {short_hex(redeemed.nullifier, 18)}..."
    )
    again = client.redeem(target)
    console.print(f"  same secret again: [red]{type(again.error).__name__}[/red]")
    stranger = client.redeem(secrets.randbelow(FIELD_MODULUS))
    console.print(f"  uncommitted secret: [red]{type(stranger.error).__name__}[/red]")

    console.print("\n" + "=" * 70)
    console.print("[green]✓ Demonstration complete[/green]")
    console.print("=" * 70 + "\n")


@main.command()
def version():
    """Show version information."""
    console.print(f"\nPrivate Waitlist v{__version__}")
    console.print("The mock prover provides no zero-knowledge guarantee.\n")


if __name__ == "__main__":
    main()
