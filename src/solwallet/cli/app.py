"""CLI for solwallet - manage Solana keypairs from the terminal."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from solwallet.config import (
    WalletSettings,
    app_file_path,
    cache_file_path,
    config_file_path,
    load_settings,
    save_settings,
)
from solwallet.errors import IOFailure, OtherError, SolwalletError
from solwallet.wallet.clusters import account_url, get_cluster, list_cluster_names, transaction_url
from solwallet.wallet.crypto import validate_password
from solwallet.wallet.keypair import ImportType, KeyPair
from solwallet.wallet.price import PriceCache, get_price
from solwallet.wallet.provider import SolanaRPC
from solwallet.wallet.store import Wallet, clean_wallet
from solwallet.wallet.tokens import LAMPORTS_PER_SOL, Token
from solwallet.wallet.utils import short_public_key

app = typer.Typer(
    name="solwallet",
    help="A simple command-line Solana wallet with an encrypted keypair store.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger("solwallet.cli")


# ------------------------------------------------------------------
# Invocation context
# ------------------------------------------------------------------


@dataclass
class AppContext:
    """Per-invocation state handed to every command through ``ctx.obj``."""

    app_file: Path
    settings: WalletSettings
    verbose: bool = False

    def rpc(self) -> SolanaRPC:
        return SolanaRPC(
            self.settings.resolved_rpc_url(),
            timeout=self.settings.request_timeout,
        )


def _setup_logging(verbose: bool) -> None:
    """Send ``solwallet.*`` logs to stderr; everything below ERROR only with --verbose."""
    root = logging.getLogger("solwallet")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.addHandler(RichHandler(console=err_console, show_path=False))
    root.setLevel(logging.DEBUG if verbose else logging.ERROR)
    root.propagate = False


@contextmanager
def _errors() -> Iterator[None]:
    """Turn a :class:`SolwalletError` into one red line and its exit code."""
    try:
        yield
    except SolwalletError as exc:
        logger.debug(f"There is an error: {exc!r}")
        err_console.print(f"[red]solwallet: {exc}[/red]", highlight=False)
        raise typer.Exit(exc.exit_code)


def _state(ctx: typer.Context) -> AppContext:
    return ctx.find_root().obj


def _prompt_password() -> str:
    password = typer.prompt("Enter the wallet password", hide_input=True)
    validate_password(password)
    return password


@contextmanager
def _open_wallet(state: AppContext, *, save: bool = True) -> Iterator[Wallet]:
    """Load the wallet for one command and, when *save* is set, export it afterwards."""
    password = _prompt_password()
    wallet = Wallet.load(password, state.app_file)
    yield wallet
    if save:
        wallet.export(password, state.app_file)


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        console.print(f"solwallet {version('solwallet')}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    app_file: Optional[Path] = typer.Option(
        None,
        "--app-file",
        help="Path to the wallet file (default: <app dir>/solwallet.json)",
        envvar="SOLWALLET_APP_FILE",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose mode, for debugging"),
    cluster: Optional[str] = typer.Option(
        None,
        "--cluster",
        "-c",
        help=f"Cluster to talk to ({', '.join(list_cluster_names())})",
        envvar="SOLWALLET_CLUSTER",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """A simple command-line Solana wallet with an encrypted keypair store."""
    _setup_logging(verbose)
    with _errors():
        settings = load_settings()
        if cluster is not None:
            try:
                get_cluster(cluster)
            except KeyError as exc:
                raise typer.BadParameter(str(exc.args[0]), param_hint="--cluster")
            settings.cluster = cluster
        ctx.obj = AppContext(
            app_file=app_file_path(app_file),
            settings=settings,
            verbose=verbose,
        )
    logger.info(f"Wallet file is `{ctx.obj.app_file}`, cluster is `{settings.cluster}`")


# ------------------------------------------------------------------
# Rendering helpers
# ------------------------------------------------------------------


def _keypair_table(title: str, rows: list[list[str]], headers: list[str]) -> Table:
    table = Table(title=title)
    styles = {"Name": "bold", "Public Key (Address)": "cyan"}
    for header in headers:
        table.add_column(header, style=styles.get(header))
    for row in rows:
        table.add_row(*row)
    return table


# ------------------------------------------------------------------
# new
# ------------------------------------------------------------------


def new(
    ctx: typer.Context,
    name: str = typer.Argument(help="The name of the keypair"),
    default: bool = typer.Option(
        False, "--default", "-d", help="Make it the default keypair (replaces the current one)"
    ),
):
    """Generate a new keypair."""
    state = _state(ctx)
    with _errors(), _open_wallet(state) as wallet:
        keypair = KeyPair.generate(name, is_default=default)
        wallet.add_keypair(keypair)
    console.print(f"New keypair created successfully in `{state.app_file}`")
    console.print(_keypair_table(
        "New Keypair",
        [[keypair.name, keypair.address, keypair.private_key, str(keypair.is_default)]],
        ["Name", "Public Key (Address)", "Private Key", "Is default"],
    ))


app.command("new")(new)
app.command("n", hidden=True)(new)


# ------------------------------------------------------------------
# list
# ------------------------------------------------------------------


def list_keypairs(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(
        None, "--limit", "-l", min=0, help="Number of keypairs to list (ignored with --name)"
    ),
    private: bool = typer.Option(False, "--private", "-p", help="Show the private keys"),
    secret: bool = typer.Option(False, "--secret", "-s", help="Show the secret keys"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Only list this keypair"),
):
    """List the keypairs in the wallet."""
    state = _state(ctx)
    with _errors(), _open_wallet(state, save=False) as wallet:
        if not len(wallet):
            console.print("[dim]No keypairs found.[/dim]")
            return

        if name is not None:
            keypairs = [wallet.get_keypair(name)]
        else:
            keypairs = wallet.keypairs[:limit] if limit is not None else wallet.keypairs

        headers = ["Name", "Public Key (Address)", "Default"]
        if secret:
            headers.append("Secret Key")
        if private:
            headers.append("Private Key")

        rows = []
        for kp in keypairs:
            row = [kp.name, kp.address, "[green]yes[/green]" if kp.is_default else ""]
            if secret:
                row.append(kp.secret_key_b58)
            if private:
                row.append(kp.private_key)
            rows.append(row)
        console.print(_keypair_table("Keypairs", rows, headers))


app.command("list")(list_keypairs)
app.command("ls", hidden=True)(list_keypairs)


# ------------------------------------------------------------------
# import
# ------------------------------------------------------------------


def import_keypair(
    ctx: typer.Context,
    name: str = typer.Argument(help="The name of the keypair"),
    default: bool = typer.Option(False, "--default", "-d", help="Make it the default keypair"),
):
    """Import a keypair from a private key or secret key (base58 or a [1, 2, ...] bytes array)."""
    state = _state(ctx)
    with _errors(), _open_wallet(state) as wallet:
        raw = typer.prompt("Enter the private key or secret key", hide_input=True)
        keypair = KeyPair.import_keypair(name, ImportType.parse(raw), default)
        wallet.add_keypair(keypair)
    console.print(
        f"New keypair `{name}` imported successfully. "
        f"Its public key is `{short_public_key(keypair.public_key)}`"
    )


app.command("import")(import_keypair)
app.command("i", hidden=True)(import_keypair)


# ------------------------------------------------------------------
# clean
# ------------------------------------------------------------------


@app.command()
def clean(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
):
    """Delete the wallet file and every keypair in it."""
    state = _state(ctx)
    console.print(f"\n[bold red]This will permanently delete:[/bold red] {state.app_file}\n")
    if not yes:
        typer.confirm("Are you sure?", abort=True)
    with _errors():
        clean_wallet(state.app_file)
    console.print("[bold green]Wallet cleaned successfully.[/bold green]")


# ------------------------------------------------------------------
# price
# ------------------------------------------------------------------


def _cached_price(state: AppContext, symbol: str):
    cache_path = cache_file_path()
    cache = PriceCache.load(cache_path, state.settings.cache_ttl_seconds)
    price = get_price(
        symbol,
        cache,
        state.settings.price_api,
        timeout=state.settings.request_timeout,
    )
    cache.save(cache_path)
    return price


@app.command()
def price(
    ctx: typer.Context,
    spl: Optional[Token] = typer.Option(None, "--spl", help="SPL token (default: SOL)"),
):
    """Show the price of SOL or an SPL token in USDT."""
    state = _state(ctx)
    symbol = spl.symbol if spl else "SOL"
    with _errors():
        result = _cached_price(state, symbol)
    console.print(
        f"{symbol}: ${result.price}, "
        f"Price change in the last 24h: {result.price_change_24h}"
    )


# ------------------------------------------------------------------
# config
# ------------------------------------------------------------------


@app.command("config")
def config_cmd(
    ctx: typer.Context,
    cluster: Optional[str] = typer.Option(None, "--set-cluster", help="Default cluster"),
    rpc_url: Optional[str] = typer.Option(None, "--set-rpc-url", help="Custom RPC endpoint ('' to clear)"),
):
    """Show or update the saved settings."""
    state = _state(ctx)
    path = config_file_path()
    with _errors():
        settings = load_settings(path)
        if cluster is not None or rpc_url is not None:
            if cluster is not None:
                try:
                    get_cluster(cluster)
                except KeyError as exc:
                    raise typer.BadParameter(str(exc.args[0]), param_hint="--set-cluster")
                settings.cluster = cluster
            if rpc_url is not None:
                settings.rpc_url = rpc_url or None
            save_settings(settings, path)
            console.print(f"[bold green]Settings saved to {path}[/bold green]")

    table = Table(title="Settings")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in settings.model_dump().items():
        table.add_row(key, "-" if value is None else str(value))
    table.add_row("wallet file", str(state.app_file), style="dim")
    console.print(table)


# ------------------------------------------------------------------
# keypair sub-commands
# ------------------------------------------------------------------

keypair_app = typer.Typer(
    name="keypair",
    help="Manage a single keypair.",
    no_args_is_help=True,
)
app.add_typer(keypair_app, name="keypair")
app.add_typer(keypair_app, name="kp", hidden=True)


def delete_keypair(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="The keypair (default: the default keypair)"),
):
    """Delete a keypair."""
    state = _state(ctx)
    with _errors(), _open_wallet(state) as wallet:
        deleted = wallet.delete_keypair(wallet.keypair_name(name))
        console.print("Done deleting successfully!")
        console.print(_keypair_table(
            "Deleted Keypair",
            [[deleted.name, deleted.address]],
            ["Name", "Public Key (Address)"],
        ))


keypair_app.command("delete")(delete_keypair)
keypair_app.command("D", hidden=True)(delete_keypair)


@keypair_app.command("set-default")
def set_default(
    ctx: typer.Context,
    name: str = typer.Argument(help="The keypair to set as default"),
):
    """Set a keypair as the default."""
    state = _state(ctx)
    with _errors(), _open_wallet(state) as wallet:
        wallet.set_default(name)
        console.print(f"Done setting `{name}` as a default!")


def balance(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="The keypair (default: the default keypair)"),
    lamports: bool = typer.Option(False, "--lamports", "-l", help="Show the balance in lamports/base units"),
    spl: Optional[Token] = typer.Option(None, "--spl", help="SPL token balance instead of SOL"),
):
    """Show the SOL or SPL token balance of a keypair."""
    state = _state(ctx)
    with _errors():
        with _open_wallet(state, save=False) as wallet:
            keypair = wallet.get_keypair(wallet.keypair_name(name))

        with state.rpc() as rpc:
            if spl is None:
                amount = rpc.get_balance(keypair.address)
            else:
                amount = rpc.get_token_balance(keypair.address, spl)

        per_one = spl.base_units if spl else LAMPORTS_PER_SOL
        symbol = spl.symbol if spl else "SOL"
        try:
            usd = f" ~${_cached_price(state, symbol).price * (amount / per_one):.2f}"
        except (OtherError, IOFailure) as exc:
            logger.warning(f"No USD value for {symbol}: {exc}")
            usd = ""

    message = f"The `{short_public_key(keypair.public_key)}` address has"
    if lamports:
        console.print(f"{message} `{amount}` {symbol} lamports{usd}")
    else:
        console.print(f"{message} `{amount / per_one}` {symbol}{usd}")


keypair_app.command("balance")(balance)
keypair_app.command("b", hidden=True)(balance)


def airdrop(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="The keypair (default: the default keypair)"),
    amount: float = typer.Option(..., "--amount", "-a", min=0, help="The amount to airdrop"),
    lamports: bool = typer.Option(False, "--lamports", "-l", help="The amount is in lamports"),
):
    """Request an airdrop to a keypair (devnet/testnet)."""
    state = _state(ctx)
    cluster = get_cluster(state.settings.cluster)
    with _errors():
        if not cluster.airdrop and state.settings.rpc_url is None:
            raise OtherError(f"Airdrops are not available on {cluster.name}")
        with _open_wallet(state, save=False) as wallet:
            keypair = wallet.get_keypair(wallet.keypair_name(name))

        value = int(amount) if lamports else int(amount * LAMPORTS_PER_SOL)
        with state.rpc() as rpc:
            signature = rpc.request_airdrop(keypair.address, value)
            console.print(
                "Waiting for airdrop to be confirmed, this may take a while...\n"
                f"{transaction_url(signature, cluster.name)}"
            )
            rpc.confirm_signature(
                signature,
                attempts=state.settings.confirm_attempts,
                interval=state.settings.confirm_interval,
            )
    console.print("[bold green]Transaction confirmed![/bold green]")


keypair_app.command("airdrop")(airdrop)
keypair_app.command("a", hidden=True)(airdrop)


@keypair_app.command("transactions")
def transactions(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="The keypair (default: the default keypair)"),
):
    """Show the explorer link listing a keypair's transactions."""
    state = _state(ctx)
    with _errors(), _open_wallet(state, save=False) as wallet:
        keypair = wallet.get_keypair(wallet.keypair_name(name))
    console.print(Panel(
        f"[cyan]{account_url(keypair.address, state.settings.cluster)}[/cyan]",
        title=f"Transactions of {keypair.name}",
    ))


if __name__ == "__main__":
    app()
