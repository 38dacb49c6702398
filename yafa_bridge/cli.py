"""
Command-line interface for the Yafa bridge toolkit.

    yafa-bridge bridge <amount_in_eth>
    yafa-bridge balance
    yafa-bridge deploy
    yafa-bridge test-tx
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import typer

from .artifact import load_artifact
from .chain import Web3Connector
from .config import BridgeConfig
from .exceptions import (
    BridgeError,
    InsufficientBalanceError,
    InsufficientFundsError,
    TransactionRevertedError,
)
from .models import Endpoint, TxRecord, PollState
from .signer import LocalSigner
from .utils import parse_ether, format_ether
from .version import __version__
from . import workflow

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Bridge ETH and deploy contracts from Sepolia to Yafa L2.",
    add_completion=False,
    no_args_is_help=True,
)

BRIDGE_USAGE = (
    "Usage: yafa-bridge bridge <amount_in_eth>\n"
    "Example: yafa-bridge bridge 0.1"
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"yafa-bridge {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@contextmanager
def _handle_errors(action: str) -> Iterator[None]:
    """Print a toolkit error with its hint and exit 1."""
    try:
        yield
    except BridgeError as e:
        typer.secho(f"\n{action} failed: {e}", fg=typer.colors.RED, err=True)
        if isinstance(e, (InsufficientBalanceError, InsufficientFundsError)):
            typer.echo("   Fund the account with Sepolia ETH (value plus gas fees) and try again.", err=True)
        elif isinstance(e, TransactionRevertedError) and e.reason:
            typer.echo(f"   Revert reason: {e.reason}", err=True)
        logger.debug("Command failed", exc_info=True)
        raise typer.Exit(1)


def _connect(endpoint: Endpoint, config: BridgeConfig) -> Web3Connector:
    return Web3Connector.connect(endpoint, timeout=config.rpc_timeout)


def _print_dot(state: PollState) -> None:
    typer.echo(".", nl=False)


def _print_l1_confirmation(config: BridgeConfig, record: TxRecord) -> None:
    typer.echo(f"Transaction sent: {record.tx_hash}")
    url = config.tx_url(record.tx_hash)
    if url:
        typer.echo(f"View on Sepolia: {url}")
    typer.echo("L1 transaction confirmed!")
    typer.echo(f"   Block: {record.block_number}")
    typer.echo(f"   Gas used: {record.gas_used}")


@app.command()
def bridge(
    amount: Optional[str] = typer.Argument(None, help="Amount of ETH to bridge, e.g. 0.1"),
) -> None:
    """Deposit ETH from Sepolia to your own address on Yafa L2."""
    if amount is None:
        typer.echo(BRIDGE_USAGE)
        raise typer.Exit(1)

    try:
        amount_wei = parse_ether(amount)
    except ValueError as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        typer.echo(BRIDGE_USAGE)
        raise typer.Exit(1)

    with _handle_errors("Bridge"):
        config = BridgeConfig.from_env()
        l1_endpoint = config.require_l1()
        signer = LocalSigner(config.require_private_key())

        typer.echo("Bridging ETH from Sepolia to Yafa L2\n")
        l1 = _connect(l1_endpoint, config)
        l2 = _connect(config.l2_endpoint, config)

        typer.echo(f"Your address: {signer.address}")
        typer.echo(f"L1 (Sepolia) Balance: {format_ether(l1.get_balance(signer.address))} ETH")
        typer.echo(f"L2 (Yafa) Balance: {format_ether(l2.get_balance(signer.address))} ETH\n")

        typer.echo(f"Bridging {format_ether(amount_wei)} ETH to Yafa L2...")
        typer.echo("This will take a few minutes...\n")

        result = workflow.bridge_eth(
            config, l1, l2, signer, amount_wei,
            on_submitted=lambda record: _print_l1_confirmation(config, record),
            on_attempt=_print_dot,
        )

    typer.echo("")
    if result.still_pending:
        typer.secho("L2 deposit still pending. Check your balance again later.", fg=typer.colors.YELLOW)
        typer.echo("   It can take up to 5 minutes for L2 to process.")
        return

    typer.secho("Success! ETH received on L2!", fg=typer.colors.GREEN)
    typer.echo(f"New L2 Balance: {format_ether(result.poll.value)} ETH")


@app.command()
def balance(
    address: Optional[str] = typer.Option(
        None, "--address", help="Address to check (default: L2_BALANCE_ADDRESS or the PRIVATE_KEY address)"
    ),
) -> None:
    """Show the ETH balance of an address on Yafa L2."""
    with _handle_errors("Balance check"):
        config = BridgeConfig.from_env()
        target = workflow.resolve_balance_address(config, address)
        l2 = _connect(config.l2_endpoint, config)
        wei = workflow.check_balance(config, l2, target)

    typer.echo(f"L2 Balance: {format_ether(wei)} ETH")


@app.command()
def deploy(
    artifact_path: Optional[str] = typer.Option(
        None, "--artifact", help="Compiled contract artifact (default: YAFA_ARTIFACT_PATH or the Hardhat output path)"
    ),
) -> None:
    """Deploy the YAFA token to L2 through an L1 contract-creation deposit."""
    with _handle_errors("Deployment"):
        config = BridgeConfig.from_env()
        l1_endpoint = config.require_l1()
        signer = LocalSigner(config.require_private_key())
        artifact = load_artifact(artifact_path or config.artifact_path)

        typer.echo("Deploying YAFA Token to L2 via L1 Portal\n")
        typer.echo(f"Portal Address: {config.portal_address}")
        typer.echo(f"Bytecode length: {len(artifact.bytecode)} bytes\n")

        l1 = _connect(l1_endpoint, config)
        l2 = _connect(config.l2_endpoint, config)
        typer.echo(f"Deployer: {signer.address}")
        typer.echo(f"L1 Balance: {format_ether(l1.get_balance(signer.address))} ETH\n")

        typer.echo("Sending deployment transaction to L1 Portal...")
        result = workflow.deploy_via_portal(
            config, l1, l2, signer, artifact=artifact,
            on_submitted=lambda record: _print_l1_confirmation(config, record),
            on_attempt=_print_dot,
        )

    typer.echo("")
    if result.deposit_event_found:
        typer.echo("Deposit event found in the L1 receipt.")
    typer.echo(f"Predicted L2 contract address: {result.predicted_address}")

    if result.still_pending:
        typer.secho("No code at the predicted address yet; the deposit is still pending.", fg=typer.colors.YELLOW)
        typer.echo("To find your deployed contract address:")
        typer.echo("   1. Wait 1-2 minutes for L2 processing")
        typer.echo("   2. Check your address on L2 for contract creation:")
        typer.echo(f"      cast nonce {signer.address} --rpc-url {config.l2_rpc_url}")
        return

    typer.secho("Contract code is live on L2!", fg=typer.colors.GREEN)


@app.command("test-tx")
def test_tx() -> None:
    """Send 0.001 ETH to yourself on Yafa L2 to check that the sequencer accepts transactions."""
    with _handle_errors("Test transaction"):
        config = BridgeConfig.from_env()
        signer = LocalSigner(config.require_private_key())
        l2 = _connect(config.l2_endpoint, config)

        typer.echo(f"Address: {signer.address}")
        typer.echo(f"Balance: {format_ether(l2.get_balance(signer.address))} ETH")
        record = workflow.send_self_transfer(config, l2, signer)

    typer.echo(f"TX Hash: {record.tx_hash}")
    typer.secho("Transaction confirmed!", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
