"""CLI for web3-agent - talk to your wallet from the terminal."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from web3_agent.config import Web3AgentConfig, resolve_config
from web3_agent.errors import Web3AgentError

app = typer.Typer(
    name="web3-agent",
    help="Natural-language Ethereum wallet assistant.",
    no_args_is_help=True,
)
console = Console()

_config_path: Optional[Path] = None

# Instructions exercised by ``web3-agent examples`` against a local dev chain.
EXAMPLE_INSTRUCTIONS: list[str] = [
    "Send 0.01 WETH to Bob",
    "Send 0.005 ETH to Charlie",
    "What's my ETH balance?",
    "Check David's ETH balance",
    "What is my USDC balance?",
    "How much USDC does Alice have?",
    "Send 1 USDC to UnknownPerson",
    "Send 0.001 ETH to me",
    "What is the address of the USDC token?",
    "Look up Eve's address and tell me her ETH balance",
]


def _version_callback(value: bool):
    if value:
        from web3_agent import __version__
        console.print(f"web3-agent {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a web3-agent.yaml (default: ./web3-agent.yaml, then environment)",
        envvar="WEB3_AGENT_CONFIG",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log tool calls and model turns"),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """Natural-language Ethereum wallet assistant."""
    global _config_path
    _config_path = config
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _run(coro):
    """Run an async function synchronously."""
    return asyncio.run(coro)


def _load_config() -> Web3AgentConfig:
    try:
        return resolve_config(_config_path)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1)


def _build():
    from web3_agent.core.factory import build_components

    try:
        return build_components(_load_config())
    except Web3AgentError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def _render(messages) -> None:
    """Print the assistant and tool messages one utterance produced."""
    for msg in messages:
        if msg.role == "assistant":
            for call in msg.tool_calls or ():
                console.print(f"[dim]-> {call.name}({escape(call.arguments_json())})[/dim]")
            if msg.content:
                console.print(f"[bold green]Agent>[/bold green] {escape(msg.content)}")
        elif msg.role == "tool":
            console.print(f"[dim]<- {escape(msg.content)}[/dim]")
    console.print()


# ------------------------------------------------------------------
# chat
# ------------------------------------------------------------------


@app.command()
def chat():
    """Start an interactive session with the wallet agent."""
    components = _build()
    agent = components.agent

    async def _chat():
        console.print(f"[bold]Wallet:[/bold] {components.self_address or '(none)'}")
        console.print("[dim]Type 'exit' to end the session, 'reset' to clear history.[/dim]\n")

        while True:
            try:
                user_input = console.input("[bold blue]You>[/bold blue] ")
            except (EOFError, KeyboardInterrupt):
                break

            text = user_input.strip()
            if not text:
                continue
            if text.lower() in ("exit", "quit", "bye"):
                break
            if text.lower() == "reset":
                agent.reset()
                console.print("[dim]History cleared.[/dim]\n")
                continue

            with console.status("Thinking..."):
                added = await agent.chat(text)
            _render(added)

        console.print("[dim]Session ended.[/dim]")

    _run(_chat())


# ------------------------------------------------------------------
# run (one instruction)
# ------------------------------------------------------------------


@app.command()
def run(
    instruction: str = typer.Argument(help="What the agent should do, e.g. 'Send 0.01 ETH to Bob'"),
):
    """Process a single instruction and print the result."""
    if not instruction.strip():
        console.print("[red]Instruction must not be empty.[/red]")
        raise typer.Exit(1)

    agent = _build().agent

    async def _once():
        with console.status("Working..."):
            return await agent.chat(instruction)

    _render(_run(_once()))


@app.command()
def examples():
    """Run the built-in example instructions, each in a fresh conversation."""
    agent = _build().agent

    async def _all():
        for i, instruction in enumerate(EXAMPLE_INSTRUCTIONS, 1):
            console.print(Panel(instruction, title=f"Example {i}/{len(EXAMPLE_INSTRUCTIONS)}"))
            agent.reset()
            with console.status("Working..."):
                added = await agent.chat(instruction)
            _render(added)

    _run(_all())


# ------------------------------------------------------------------
# serve
# ------------------------------------------------------------------


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port"),
):
    """Serve the agent over HTTP (POST /api/agent)."""
    from web3_agent.server.app import run_server

    config = _load_config()
    console.print(f"[bold]Serving on http://{host or config.server.host}:{port or config.server.port}[/bold]")
    try:
        run_server(config, host=host, port=port)
    except Web3AgentError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


# ------------------------------------------------------------------
# Lookups
# ------------------------------------------------------------------


@app.command()
def directory():
    """Show the address book."""
    config = _load_config()
    table = Table(title="Address Book")
    table.add_column("Name", style="bold")
    table.add_column("Address")
    for entry in config.address_book:
        table.add_row(entry.name, entry.address)
    console.print(table)


@app.command()
def tokens():
    """Show the configured ERC-20 tokens."""
    config = _load_config()
    if not config.tokens:
        console.print("[yellow]No tokens configured. Set WETH_ADDRESS / USDC_ADDRESS or add a tokens: section.[/yellow]")
        return
    table = Table(title="Tokens")
    table.add_column("Symbol", style="bold")
    table.add_column("Address")
    for token in config.tokens:
        table.add_row(token.symbol.upper(), token.address)
    console.print(table)


@app.command()
def whoami():
    """Show the wallet address and network the agent acts for."""
    from web3_agent.wallet.chains import chain_from_config
    from web3_agent.wallet.keystore import load_signer, wallet_address

    config = _load_config()
    try:
        signer = load_signer(config.wallet)
        chain = chain_from_config(config.chain.network, config.chain.rpc_url, config.chain.chain_id)
    except Web3AgentError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    address = wallet_address(config.wallet, signer)
    console.print(Panel(
        f"[bold]Address:[/bold] {address or '(none configured)'}\n"
        f"[bold]Can sign:[/bold] {'yes' if signer else 'no'}\n"
        f"[bold]Network:[/bold] {chain.name} (chain id {chain.chain_id})\n"
        f"[bold]RPC:[/bold] {chain.rpc_url}",
        title="Wallet",
    ))


if __name__ == "__main__":
    app()
