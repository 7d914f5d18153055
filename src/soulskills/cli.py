"""SoulSkills CLI — soulbound skill credentials from the terminal.

Commands:
    init          Deploy a new collection (deployer receives token 0)
    sign          Sign a mint payload with the authority key
    mint          Mint a token from a signed payload
    transfer      Attempt a transfer (only burns to the void address succeed)
    burn          Destroy a token
    approve       Approve a spender for a token
    skill         Add, rename and list skill definitions
    value         Read and overwrite per-token skill values
    base-locator  Change the token locator prefix
    admin         Transfer or renounce the administrator role
    info          Show a token and its skill values
    status        Show collection summary
    verify        Check a signature against a signer
    events        Show the event log
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .errors import SoulboundError
from .models import VOID_ADDRESS, MintRequest, TokenConfig, TransferEvent
from .signing import split_signature, sign_mint
from .store import TokenStore
from .token import SoulboundToken

console = Console()

caller_option = click.option(
    "--caller",
    envvar="SOULSKILLS_CALLER",
    required=True,
    help="Address performing the operation (env: SOULSKILLS_CALLER).",
)


def _parse_skills(ctx: click.Context, param: click.Parameter, value: tuple[str, ...]) -> list[tuple[int, int]]:
    """Parse repeated ``--skill ID=VALUE`` options."""
    pairs = []
    for item in value:
        skill_id, sep, amount = item.partition("=")
        if not sep:
            raise click.BadParameter(f"expected ID=VALUE, got '{item}'")
        try:
            pairs.append((int(skill_id), int(amount)))
        except ValueError:
            raise click.BadParameter(f"ID and VALUE must be integers: '{item}'")
    return pairs


skills_option = click.option(
    "--skill",
    "skills",
    multiple=True,
    callback=_parse_skills,
    help="Skill value as ID=VALUE (repeatable).",
)


def _hex_bytes(text: str) -> bytes:
    return bytes.fromhex(text[2:] if text.startswith("0x") else text)


def _fail(action: str, exc: Exception) -> None:
    console.print(f"[red]{action} failed:[/red] {escape(str(exc))}", soft_wrap=True)
    sys.exit(1)


def _commit(store: TokenStore, token: SoulboundToken) -> None:
    """Print the events an operation emitted, then persist."""
    for event in token.events:
        if isinstance(event, TransferEvent):
            console.print(f"  [dim]Transfer[/dim] {event.from_} -> {event.to} (token {event.token_id})",
                          soft_wrap=True)
        else:
            console.print(f"  [dim]{event.event}[/dim]")
    store.save(token)


def _load(lock: bool = False) -> tuple[TokenStore, SoulboundToken]:
    """Load the collection; with lock=True the store stays locked until the command ends."""
    store = TokenStore()
    if lock:
        click.get_current_context().with_resource(store.lock())
    try:
        token = store.load()
    except (FileNotFoundError, ValueError) as exc:
        _fail("Load", exc)
    return store, token


@click.group()
@click.version_option(__version__, prog_name="soulskills")
@click.option("--verbose", "-v", is_flag=True, help="Log ledger activity to stderr.")
def main(verbose: bool) -> None:
    """SoulSkills — soulbound skill credentials.

    Issue non-transferable tokens carrying numeric skill attributes,
    minted only with a signature from the collection's authority.
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )


@main.command()
@click.option("--admin", "admin", envvar="SOULSKILLS_CALLER", required=True,
              help="Deploying administrator address.")
@click.option("--authority", default=None, help="Mint signer address (default: the administrator).")
@click.option("--base-locator", default="", help="Prefix for token locators.")
@click.option("--name", default="SoulSkills", help="Collection name.")
@click.option("--symbol", default="SOUL", help="Collection ticker symbol.")
@click.option("--force", is_flag=True, help="Overwrite an existing collection.")
def init(admin: str, authority: Optional[str], base_locator: str, name: str, symbol: str, force: bool) -> None:
    """Deploy a new collection. The administrator receives token 0."""
    store = TokenStore()
    click.get_current_context().with_resource(store.lock())
    try:
        config = TokenConfig(name=name, symbol=symbol, authority=authority)
        token = SoulboundToken.deploy(
            admin,
            authority=config.authority,
            base_locator=base_locator,
            name=config.name,
            symbol=config.symbol,
        )
        store.initialize(token, force=force)
    except (SoulboundError, ValueError) as exc:
        _fail("Init", exc)

    console.print(f"\n[green]Deployed:[/green] {token.name} ({token.symbol})")
    console.print(f"  Administrator: {token.current_administrator()}")
    console.print(f"  Authority:     {token.authority}")
    console.print(f"  Store:         {store.root}")


@main.command()
@click.argument("recipient")
@skills_option
@click.option("--key", envvar="SOULSKILLS_AUTHORITY_KEY", required=True,
              help="Authority private key (env: SOULSKILLS_AUTHORITY_KEY).")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None,
              help="Write the signed mint request as JSON.")
def sign(recipient: str, skills: list[tuple[int, int]], key: str, output: Optional[str]) -> None:
    """Sign a mint payload for RECIPIENT."""
    ids = [s for s, _ in skills]
    values = [v for _, v in skills]
    try:
        signature = sign_mint(recipient, ids, values, key)
        request = MintRequest(
            recipient=recipient, skill_ids=ids, skill_values=values,
            signature="0x" + signature.hex(),
        )
    except ValueError as exc:
        _fail("Sign", exc)

    if output:
        Path(output).write_text(request.model_dump_json(indent=2))
        console.print(f"[green]Signed request written:[/green] {output}")
    else:
        console.print(request.signature, soft_wrap=True)


@main.command()
@click.argument("recipient", required=False)
@skills_option
@click.option("--signature", default=None, help="Authority signature (hex).")
@click.option("--request", "request_path", type=click.Path(exists=True, dir_okay=False),
              default=None, help="Signed mint request JSON (from `sign -o`).")
def mint(recipient: Optional[str], skills: list[tuple[int, int]], signature: Optional[str],
         request_path: Optional[str]) -> None:
    """Mint a token from an authority-signed payload."""
    try:
        if request_path:
            request = MintRequest.model_validate(json.loads(Path(request_path).read_text()))
        elif recipient and signature:
            request = MintRequest(
                recipient=recipient,
                skill_ids=[s for s, _ in skills],
                skill_values=[v for _, v in skills],
                signature=signature,
            )
        else:
            raise ValueError("Provide RECIPIENT and --signature, or --request")
    except ValueError as exc:
        _fail("Mint", exc)

    store, token = _load(lock=True)
    try:
        token_id = token.mint(
            request.recipient, request.skill_ids, request.skill_values, request.signature_bytes
        )
    except (SoulboundError, ValueError) as exc:
        _fail("Mint", exc)

    console.print(f"\n[green]Minted:[/green] token {token_id} -> {request.recipient}")
    _commit(store, token)


@main.command()
@click.argument("from_address")
@click.argument("to_address")
@click.argument("token_id", type=int)
@caller_option
def transfer(from_address: str, to_address: str, token_id: int, caller: str) -> None:
    """Move TOKEN_ID from FROM_ADDRESS to TO_ADDRESS (burns only)."""
    store, token = _load(lock=True)
    try:
        token.transfer_from(caller, from_address, to_address, token_id)
    except (SoulboundError, ValueError) as exc:
        _fail("Transfer", exc)

    console.print(f"[green]Moved:[/green] token {token_id}")
    _commit(store, token)


@main.command()
@click.argument("token_id", type=int)
@caller_option
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation.")
def burn(token_id: int, caller: str, yes: bool) -> None:
    """Destroy a token. Its skill values are kept."""
    if not yes:
        if not click.confirm(f"Burn token {token_id}?"):
            return

    store, token = _load(lock=True)
    try:
        token.burn(caller, token_id)
    except (SoulboundError, ValueError) as exc:
        _fail("Burn", exc)

    console.print(f"[yellow]Burned:[/yellow] token {token_id}")
    _commit(store, token)


@main.command()
@click.argument("spender")
@click.argument("token_id", type=int)
@caller_option
def approve(spender: str, token_id: int, caller: str) -> None:
    """Approve SPENDER to burn TOKEN_ID."""
    store, token = _load(lock=True)
    try:
        token.approve(caller, spender, token_id)
    except (SoulboundError, ValueError) as exc:
        _fail("Approve", exc)

    console.print(f"[green]Approved:[/green] {spender} for token {token_id}")
    _commit(store, token)


# ── Skill catalog ─────────────────────────────────────────────────────


@main.group()
def skill() -> None:
    """Manage skill definitions."""


@skill.command("add")
@click.argument("names", nargs=-1, required=True)
@caller_option
def skill_add(names: tuple[str, ...], caller: str) -> None:
    """Append one or more skills."""
    store, token = _load(lock=True)
    try:
        ids = token.add_skills(caller, list(names))
    except (SoulboundError, ValueError) as exc:
        _fail("Add", exc)

    for skill_id, name in zip(ids, names):
        console.print(f"[green]Added:[/green] {skill_id} {name}")
    _commit(store, token)


@skill.command("edit")
@click.argument("skill_id", type=int)
@click.argument("name")
@caller_option
def skill_edit(skill_id: int, name: str, caller: str) -> None:
    """Rename a skill."""
    store, token = _load(lock=True)
    try:
        token.edit_skill(caller, skill_id, name)
    except (SoulboundError, ValueError) as exc:
        _fail("Edit", exc)

    console.print(f"[green]Renamed:[/green] {skill_id} -> {name}")
    _commit(store, token)


@skill.command("list")
def skill_list() -> None:
    """Show the skill catalog."""
    _, token = _load()
    skills = token.skills()
    if not skills:
        console.print("[dim]No skills defined.[/dim]")
        return

    table = Table(title="Skills")
    table.add_column("Id", style="cyan")
    table.add_column("Name")
    for skill_id, definition in enumerate(skills):
        table.add_row(str(skill_id), definition.name)
    console.print(table)


# ── Skill values ──────────────────────────────────────────────────────


@main.group()
def value() -> None:
    """Read and overwrite skill values."""


@value.command("set")
@click.argument("token_id", type=int)
@click.argument("skill_id", type=int)
@click.argument("amount", type=int)
@caller_option
def value_set(token_id: int, skill_id: int, amount: int, caller: str) -> None:
    """Overwrite SKILL_ID of TOKEN_ID with AMOUNT."""
    store, token = _load(lock=True)
    try:
        token.edit_skill_value(caller, token_id, skill_id, amount)
    except (SoulboundError, ValueError) as exc:
        _fail("Set", exc)

    console.print(f"[green]Set:[/green] token {token_id} skill {skill_id} = {amount}")
    _commit(store, token)


@value.command("get")
@click.argument("token_id", type=int)
@click.argument("skill_id", type=int)
def value_get(token_id: int, skill_id: int) -> None:
    """Print one skill value (0 if never written)."""
    _, token = _load()
    console.print(str(token.skill_value(token_id, skill_id)))


@main.command("base-locator")
@click.argument("text")
@caller_option
def base_locator(text: str, caller: str) -> None:
    """Set the token locator prefix."""
    store, token = _load(lock=True)
    try:
        token.set_base_locator(caller, text)
    except (SoulboundError, ValueError) as exc:
        _fail("Update", exc)

    console.print(f"[green]Base locator:[/green] {text}")
    _commit(store, token)


# ── Administrator ─────────────────────────────────────────────────────


@main.group()
def admin() -> None:
    """Transfer or renounce the administrator role."""


@admin.command("transfer")
@click.argument("new_administrator")
@caller_option
def admin_transfer(new_administrator: str, caller: str) -> None:
    """Hand the administrator role to NEW_ADMINISTRATOR."""
    store, token = _load(lock=True)
    try:
        token.transfer_administrator(caller, new_administrator)
    except (SoulboundError, ValueError) as exc:
        _fail("Transfer", exc)

    console.print(f"[green]Administrator:[/green] {token.current_administrator()}")
    _commit(store, token)


@admin.command("renounce")
@caller_option
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation.")
def admin_renounce(caller: str, yes: bool) -> None:
    """Permanently give up the administrator role."""
    if not yes:
        if not click.confirm("Renounce the administrator role? This cannot be undone."):
            return

    store, token = _load(lock=True)
    try:
        token.renounce_administrator(caller)
    except (SoulboundError, ValueError) as exc:
        _fail("Renounce", exc)

    console.print("[yellow]Administrator renounced.[/yellow]")
    _commit(store, token)


# ── Queries ───────────────────────────────────────────────────────────


@main.command()
@click.argument("token_id", type=int)
def info(token_id: int) -> None:
    """Show a token's holder, locator and skill values."""
    _, token = _load()
    try:
        owner = token.owner_of(token_id)
        locator = token.token_locator(token_id)
    except SoulboundError as exc:
        _fail("Lookup", exc)

    console.print(f"\n[cyan bold]Token {token_id}[/cyan bold]")
    console.print(f"  Holder:  {owner}")
    if locator:
        console.print(f"  Locator: {locator}", soft_wrap=True)

    values = token.skill_values(token_id)
    if values:
        console.print("\n  [bold]Skills:[/bold]")
        for skill_id, amount in values.items():
            if skill_id < token.skill_count():
                label = token.skill(skill_id).name
            else:
                label = "[dim]undefined[/dim]"
            console.print(f"    {skill_id} {label}: {amount}")


@main.command()
def status() -> None:
    """Show a summary of the collection."""
    _, token = _load()
    administrator = token.current_administrator()
    console.print(f"\n[cyan bold]{token.name}[/cyan bold] ({token.symbol})")
    if administrator == VOID_ADDRESS:
        console.print("  Administrator: [dim]renounced[/dim]")
    else:
        console.print(f"  Administrator: {administrator}")
    console.print(f"  Authority:     {token.authority}")
    console.print(f"  Issued:        {token.total_supply()}")
    console.print(f"  Skills:        {token.skill_count()}")
    if token.base_locator:
        console.print(f"  Base locator:  {token.base_locator}", soft_wrap=True)


@main.command()
@click.argument("hash_hex")
@click.argument("signature_hex")
@click.argument("signer")
def verify(hash_hex: str, signature_hex: str, signer: str) -> None:
    """Check SIGNATURE_HEX over the framed HASH_HEX against SIGNER."""
    try:
        v, r, s = split_signature(_hex_bytes(signature_hex))
        ok = SoulboundToken.verify(_hex_bytes(hash_hex), v, r, s, signer)
    except (SoulboundError, ValueError) as exc:
        _fail("Verify", exc)

    if ok:
        console.print("[green]valid[/green]")
    else:
        console.print("[red]invalid[/red]")
        sys.exit(1)


@main.command()
@click.option("--limit", "-n", default=20, help="Show only the last N events.")
def events(limit: int) -> None:
    """Show the event log."""
    store = TokenStore()
    logged = store.read_events()
    if not logged:
        console.print("[dim]No events.[/dim]")
        return

    for event in logged[-limit:]:
        data = event.model_dump(by_alias=True, exclude={"event"})
        fields = " ".join(f"{k}={v}" for k, v in data.items())
        console.print(f"[cyan]{event.event}[/cyan] {fields}", soft_wrap=True)


if __name__ == "__main__":
    main()
