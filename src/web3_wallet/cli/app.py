"""CLI for the wallet manager - keystores, chains, tokens and transfers."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table

from web3_wallet.config import CONFIG_FILENAME, HOME_ENV_VAR, get_home_dir, load_config
from web3_wallet.errors import NotFoundError, ValidationError, WalletError
from web3_wallet.log import setup_logging
from web3_wallet.registry.models import ChainDefinition, TokenDefinition
from web3_wallet.services import WalletServices
from web3_wallet.transfer.models import TransferItem

app = typer.Typer(
    name="web3-wallet",
    help="Multi-chain EVM wallet: keystores, balances and (bulk) transfers.",
    no_args_is_help=True,
)
console = Console()

_home: Optional[Path] = None

R = TypeVar("R")


def _version_callback(value: bool):
    if value:
        from web3_wallet import __version__
        console.print(f"web3-wallet {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    home: Optional[Path] = typer.Option(
        None,
        "--home",
        help="Wallet home directory (config, keystores, overlays)",
        envvar=HOME_ENV_VAR,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at INFO level"),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """Multi-chain EVM wallet: keystores, balances and (bulk) transfers."""
    global _home
    _home = home or get_home_dir()
    try:
        config = load_config(_home / CONFIG_FILENAME)
    except WalletError as e:
        _fail(e)
    level = "INFO" if verbose else config.logging.level
    setup_logging(level, console=console)


def _fail(error: Exception):
    console.print(f"[red]{escape(str(error))}[/red]")
    raise typer.Exit(1)


def _run(action: Callable[[WalletServices], Awaitable[R]]) -> R:
    """Build services, run *action*, shut down; wallet and model errors exit with status 1."""

    async def _wrapped() -> R:
        services = await WalletServices.load(_home)
        try:
            return await action(services)
        finally:
            await services.shutdown()

    try:
        return asyncio.run(_wrapped())
    except (WalletError, PydanticValidationError) as e:
        _fail(e)


def _ask_password(confirm: bool = False) -> str:
    password = console.input("[bold]Wallet password: [/bold]", password=True)
    if confirm:
        again = console.input("[bold]Confirm password: [/bold]", password=True)
        if password != again:
            console.print("[red]Passwords do not match.[/red]")
            raise typer.Exit(1)
    return password


async def _require_chain(services: WalletServices, chain_id: int) -> ChainDefinition:
    chain = await services.chains.get(chain_id)
    if chain is None:
        raise NotFoundError(f"Unknown chain {chain_id}. See 'web3-wallet chains list'.")
    return chain


async def _require_token(services: WalletServices, chain_id: int, address: str) -> TokenDefinition:
    token = await services.tokens.get((chain_id, address))
    if token is None:
        raise NotFoundError(f"Unknown token {address} on chain {chain_id}. See 'web3-wallet tokens list'.")
    return token


def _explorer_tx(chain: ChainDefinition, tx_hash: str) -> str:
    if not chain.explorer_url:
        return tx_hash
    return f"{chain.explorer_url.rstrip('/')}/tx/{tx_hash}"


# ------------------------------------------------------------------
# wallet sub-commands
# ------------------------------------------------------------------

wallet_app = typer.Typer(name="wallet", help="Create, import and inspect wallets.", no_args_is_help=True)
app.add_typer(wallet_app, name="wallet")


@wallet_app.command("create")
def wallet_create():
    """Generate a new wallet with encrypted keystore."""
    password = _ask_password(confirm=True)
    result = _run(lambda s: s.wallets.create(password))
    console.print(Panel(
        f"[bold green]Wallet created![/bold green]\n\n"
        f"Address: [cyan]{result.address}[/cyan]\n\n"
        f"Recovery phrase:\n[bold]{result.mnemonic}[/bold]\n\n"
        f"[dim]Write the phrase down; it is not stored anywhere.\n"
        f"The same address works on every EVM chain.[/dim]",
        title="New Wallet",
    ))


@wallet_app.command("import")
def wallet_import(
    mnemonic: bool = typer.Option(False, "--mnemonic", "-m", help="Import from a recovery phrase instead of a private key"),
):
    """Import an existing private key or recovery phrase."""
    label = "Recovery phrase" if mnemonic else "Private key"
    secret = console.input(f"[bold]{label}: [/bold]", password=True).strip()
    password = _ask_password(confirm=True)

    if mnemonic:
        address = _run(lambda s: s.wallets.import_mnemonic(secret, password))
    else:
        address = _run(lambda s: s.wallets.import_private_key(secret, password))
    console.print(f"[bold green]Imported[/bold green] [cyan]{address}[/cyan]")


@wallet_app.command("list")
def wallet_list():
    """List stored wallets."""

    async def _list(s: WalletServices):
        return await s.wallets.list(), await s.settings.get()

    addresses, settings = _run(_list)
    if not addresses:
        console.print("[dim]No wallets yet.[/dim] Run 'web3-wallet wallet create' first.")
        return

    table = Table(title="Wallets")
    table.add_column("#", style="dim")
    table.add_column("Address", style="cyan")
    for i, addr in enumerate(addresses, start=1):
        shown = f"{addr[:6]}...{addr[-4:]}" if settings.private_wallets else addr
        table.add_row(str(i), shown)
    console.print(table)


@wallet_app.command("delete")
def wallet_delete(address: str = typer.Argument(help="Wallet address")):
    """Delete a wallet's keystore."""
    typer.confirm(f"Delete keystore for {address}? This cannot be undone.", abort=True)
    _run(lambda s: s.wallets.delete(address))
    console.print(f"[bold]Wallet {address} deleted.[/bold]")


@wallet_app.command("public-key")
def wallet_public_key(address: str = typer.Argument(help="Wallet address")):
    """Show a wallet's uncompressed public key."""
    password = _ask_password()
    public_key = _run(lambda s: s.wallets.get_public_key(address, password))
    console.print(Panel(f"[cyan]{public_key}[/cyan]", title="Public Key"))


@wallet_app.command("balance")
def wallet_balance(
    address: str = typer.Argument(help="Wallet address"),
    chain_id: Optional[int] = typer.Option(None, "--chain", "-c", help="Chain ID (all chains if omitted)"),
):
    """Show native balances, or native + token balances on one chain."""

    async def _balances(s: WalletServices):
        settings = await s.settings.get()
        if chain_id is None:
            chains = await s.chains.list(include_testnets=settings.show_testnets)
            return await s.provider.get_all_native_balances(address, chains), chains, settings
        chain = await _require_chain(s, chain_id)
        rows = [(chain.symbol, await s.provider.get_native_balance(address, chain), None)]
        for token in await s.tokens.for_chain(chain.id):
            try:
                rows.append((token.symbol, await s.provider.get_token_balance(address, token, chain), None))
            except WalletError as e:
                rows.append((token.symbol, "0", str(e)))
        return rows, [chain], settings

    result, chains, settings = _run(_balances)

    if chain_id is None:
        table = Table(title="Wallet Balances")
        table.add_column("Chain", style="cyan")
        table.add_column("Balance", justify="right")
        table.add_column("Symbol")
        table.add_column("Status", style="dim")
        names = {c.id: c.name for c in chains}
        for cid, info in result.items():
            err = info.get("error")
            table.add_row(
                names.get(cid, str(cid)),
                "****" if settings.private_balances else info["balance"],
                info["symbol"],
                f"[red]{err}[/red]" if err else "[green]OK[/green]",
            )
    else:
        table = Table(title=f"Balances on {chains[0].name}")
        table.add_column("Asset", style="cyan")
        table.add_column("Balance", justify="right")
        table.add_column("Status", style="dim")
        for symbol, balance, err in result:
            shown = "****" if settings.private_balances else balance
            table.add_row(symbol, shown, f"[red]{err}[/red]" if err else "[green]OK[/green]")
    console.print(table)


# ------------------------------------------------------------------
# chains sub-commands
# ------------------------------------------------------------------

chains_app = typer.Typer(name="chains", help="Manage chain definitions.", no_args_is_help=True)
app.add_typer(chains_app, name="chains")


@chains_app.command("list")
def chains_list(
    all_chains: bool = typer.Option(False, "--all", "-a", help="Include testnets regardless of settings"),
):
    """Show the effective chain list (defaults + your changes)."""

    async def _list(s: WalletServices):
        settings = await s.settings.get()
        return await s.chains.list(include_testnets=all_chains or settings.show_testnets)

    chains = _run(_list)
    table = Table(title="Chains")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Name")
    table.add_column("Symbol")
    table.add_column("RPC URL", style="dim")
    table.add_column("Testnet")
    for chain in chains:
        table.add_row(str(chain.id), chain.name, chain.symbol, chain.rpc_url, "yes" if chain.testnet else "")
    console.print(table)


@chains_app.command("add")
def chains_add(
    chain_id: int = typer.Option(..., "--id", help="Chain ID"),
    name: str = typer.Option(..., "--name", help="Chain name"),
    symbol: str = typer.Option(..., "--symbol", help="Native token symbol"),
    rpc: str = typer.Option(..., "--rpc", help="RPC URL"),
    decimals: int = typer.Option(18, "--decimals", help="Native token decimals"),
    testnet: bool = typer.Option(False, "--testnet", help="Mark as a testnet"),
    explorer: Optional[str] = typer.Option(None, "--explorer", help="Block explorer base URL"),
):
    """Add a custom chain, or override a built-in one with the same ID."""

    async def _add(s: WalletServices) -> ChainDefinition:
        chain = ChainDefinition(
            id=chain_id,
            name=name,
            symbol=symbol,
            rpc_url=rpc,
            decimals=decimals,
            testnet=testnet,
            explorer_url=explorer,
        )
        await s.chains.add(chain)
        return chain

    chain = _run(_add)
    console.print(f"[bold green]Chain saved:[/bold green] {chain.name} ({chain.id})")


@chains_app.command("remove")
def chains_remove(chain_id: int = typer.Argument(help="Chain ID")):
    """Remove a custom chain or hide a built-in one."""
    if not _run(lambda s: s.chains.remove(chain_id)):
        console.print(f"[yellow]Chain {chain_id} not found.[/yellow]")
        raise typer.Exit(1)
    console.print(f"[bold]Chain {chain_id} removed.[/bold]")


# ------------------------------------------------------------------
# tokens sub-commands
# ------------------------------------------------------------------

tokens_app = typer.Typer(name="tokens", help="Manage ERC-20 token definitions.", no_args_is_help=True)
app.add_typer(tokens_app, name="tokens")


@tokens_app.command("list")
def tokens_list(
    chain_id: Optional[int] = typer.Option(None, "--chain", "-c", help="Only tokens on this chain"),
):
    """Show the effective token list."""

    async def _list(s: WalletServices):
        if chain_id is None:
            return await s.tokens.list()
        return await s.tokens.for_chain(chain_id)

    tokens = _run(_list)
    table = Table(title="Tokens")
    table.add_column("Chain", justify="right", style="cyan")
    table.add_column("Symbol")
    table.add_column("Decimals", justify="right")
    table.add_column("Address", style="dim")
    for token in tokens:
        table.add_row(str(token.chain_id), token.symbol, str(token.decimals), token.address)
    console.print(table)


@tokens_app.command("add")
def tokens_add(
    address: str = typer.Argument(help="Token contract address"),
    chain_id: int = typer.Option(..., "--chain", "-c", help="Chain ID"),
    symbol: Optional[str] = typer.Option(None, "--symbol", help="Symbol (read from the contract if omitted)"),
    decimals: Optional[int] = typer.Option(None, "--decimals", help="Decimals (read from the contract if omitted)"),
):
    """Add a custom token, or override a built-in one at the same address."""

    async def _add(s: WalletServices) -> TokenDefinition:
        tok_symbol, tok_decimals = symbol, decimals
        if tok_symbol is None or tok_decimals is None:
            chain = await _require_chain(s, chain_id)
            info = await s.provider.get_token_info(address, chain)
            tok_symbol = tok_symbol or info["symbol"]
            tok_decimals = info["decimals"] if tok_decimals is None else tok_decimals
        token = TokenDefinition(address=address, symbol=tok_symbol, decimals=tok_decimals, chain_id=chain_id)
        await s.tokens.add(token)
        return token

    token = _run(_add)
    console.print(f"[bold green]Token saved:[/bold green] {token.symbol} on chain {token.chain_id}")


@tokens_app.command("remove")
def tokens_remove(
    address: str = typer.Argument(help="Token contract address"),
    chain_id: int = typer.Option(..., "--chain", "-c", help="Chain ID"),
):
    """Remove a custom token or hide a built-in one."""
    if not _run(lambda s: s.tokens.remove((chain_id, address))):
        console.print(f"[yellow]Token {address} not found on chain {chain_id}.[/yellow]")
        raise typer.Exit(1)
    console.print(f"[bold]Token {address} removed.[/bold]")


# ------------------------------------------------------------------
# transfers
# ------------------------------------------------------------------


def _parse_item(raw: str) -> TransferItem:
    to, sep, amount = raw.partition("=")
    if not sep or not to.strip() or not amount.strip():
        raise ValidationError(f"Expected ADDRESS=AMOUNT, got {raw!r}")
    return TransferItem(to=to.strip(), amount=amount.strip())


@app.command("transfer")
def transfer(
    from_address: str = typer.Argument(help="Sender wallet address"),
    to: str = typer.Argument(help="Recipient address (0x...)"),
    amount: str = typer.Argument(help="Amount to send (e.g. 0.01)"),
    chain_id: int = typer.Option(..., "--chain", "-c", help="Chain ID"),
    token_address: Optional[str] = typer.Option(None, "--token", "-t", help="ERC-20 contract (native asset if omitted)"),
):
    """Send native tokens or an ERC-20 token. Requires password confirmation."""
    console.print(f"\n[bold]Send {amount} {'tokens ' + token_address if token_address else 'native'} on chain {chain_id}[/bold]")
    console.print(f"  From: {from_address}")
    console.print(f"  To:   {to}\n")
    typer.confirm("Confirm this transaction?", abort=True)
    password = _ask_password()

    async def _send(s: WalletServices):
        chain = await _require_chain(s, chain_id)
        if token_address is None:
            outcome = await s.transfers.transfer_native(from_address, password, to, amount, chain)
        else:
            token = await _require_token(s, chain_id, token_address)
            outcome = await s.transfers.transfer_token(from_address, password, to, amount, token, chain)
        return outcome, chain

    outcome, chain = _run(_send)
    console.print(Panel(
        f"[bold green]Transaction sent![/bold green]\n\n"
        f"Tx: [cyan]{outcome.tx_hash}[/cyan]\n"
        f"Explorer: {_explorer_tx(chain, outcome.tx_hash)}",
        title="Transaction Sent",
    ))


@app.command("bulk-transfer")
def bulk_transfer(
    from_address: str = typer.Argument(help="Sender wallet address"),
    items: list[str] = typer.Argument(help="Transfers as ADDRESS=AMOUNT"),
    chain_id: int = typer.Option(..., "--chain", "-c", help="Chain ID"),
    token_address: Optional[str] = typer.Option(None, "--token", "-t", help="ERC-20 contract (native asset if omitted)"),
):
    """Send to many recipients in order; failures don't stop the batch."""
    try:
        parsed = [_parse_item(raw) for raw in items]
    except ValidationError as e:
        _fail(e)

    console.print(f"\n[bold]{len(parsed)} transfer(s) on chain {chain_id} from {from_address}[/bold]")
    typer.confirm("Send all?", abort=True)
    password = _ask_password()

    async def _send(s: WalletServices):
        chain = await _require_chain(s, chain_id)
        token = await _require_token(s, chain_id, token_address) if token_address else None
        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Sending", total=len(parsed))

            def _on_progress(done: int, total: int) -> None:
                progress.update(task, completed=done, description=f"Sending {done}/{total}")

            outcomes = await s.transfers.bulk_transfer(
                from_address, password, parsed, chain, token, on_progress=_on_progress
            )
        return outcomes, chain

    outcomes, chain = _run(_send)

    table = Table(title="Bulk Transfer Results")
    table.add_column("#", style="dim")
    table.add_column("To", style="cyan")
    table.add_column("Amount", justify="right")
    table.add_column("Result")
    for i, outcome in enumerate(outcomes, start=1):
        if outcome.success:
            result = f"[green]{_explorer_tx(chain, outcome.tx_hash)}[/green]"
        else:
            result = f"[red]{outcome.error}[/red]"
        table.add_row(str(i), outcome.recipient, outcome.amount, result)
    console.print(table)

    failed = sum(1 for o in outcomes if not o.success)
    if failed:
        console.print(f"[yellow]{failed} of {len(outcomes)} transfer(s) failed.[/yellow]")
        raise typer.Exit(1)


# ------------------------------------------------------------------
# settings sub-commands
# ------------------------------------------------------------------

settings_app = typer.Typer(name="settings", help="Show or change preferences.", no_args_is_help=True)
app.add_typer(settings_app, name="settings")


@settings_app.command("show")
def settings_show():
    """Show current preferences."""
    settings = _run(lambda s: s.settings.get())
    table = Table(title="Settings")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in settings.model_dump().items():
        table.add_row(key.replace("_", "-"), str(value).lower())
    console.print(table)


@settings_app.command("set")
def settings_set(
    key: str = typer.Argument(help="currency, show-testnets, private-wallets or private-balances"),
    value: str = typer.Argument(help="New value"),
):
    """Change one preference."""
    field = key.replace("-", "_")
    _run(lambda s: s.settings.update(**{field: value}))
    console.print(f"[bold]{key} = {value}[/bold]")


if __name__ == "__main__":
    app()
