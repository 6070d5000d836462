"""Command line interface using Typer."""
import asyncio

import typer
from rich.console import Console
from rich.table import Table

from ..agent import Agent
from ..config import AgentConfig, create_provider
from ..flows import FlowResult
from ..logging import configure_logging
from ..signals import SignalType
from ..store import create_store_backend
from ..tools import default_tools

app = typer.Typer(
    name="llmagent",
    help="Signal-driven LLM agent with tool use",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()


def _load_config() -> AgentConfig:
    config = AgentConfig.from_env()
    configure_logging(config.log_level, config.log_format)
    return config


def _build_agent(config: AgentConfig) -> Agent:
    try:
        provider = create_provider(config)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    return Agent.create(tools=default_tools(), provider=provider, config=config)


def _print_result(result: FlowResult) -> None:
    if result.signal.type == SignalType.ERROR:
        console.print(f"[red]Error: {result.signal.data['message']}[/red]\n")
    else:
        console.print(f"[bold green]Agent:[/bold green] {result.content}\n")


def _print_trace(agent: Agent, first_entry: int, result: FlowResult) -> None:
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Role", style="yellow")
    table.add_column("Content")

    for i, entry in enumerate(agent.store.history[first_entry:], first_entry + 1):
        role = f"{entry.role} ({entry.name})" if entry.name else entry.role
        table.add_row(str(i), role, entry.content)

    console.print("\n[bold cyan]Trace:[/bold cyan]")
    console.print(table)

    for thought in agent.store.get_thoughts():
        console.print(f"[dim]Thought: {thought}[/dim]")
    for error in agent.store.errors:
        console.print(f"[dim]Error ({error.kind}): {error.message}[/dim]")

    usage = agent.usage
    console.print(f"[dim]Steps: {result.steps}[/dim]")
    console.print(f"[dim]Processing time: {result.elapsed:.2f}s[/dim]")
    console.print(f"[dim]LLM calls: {usage.total_calls}[/dim]")
    if usage.total_input_tokens:
        console.print(f"[dim]Input tokens: {usage.total_input_tokens:,}[/dim]")
        console.print(f"[dim]Output tokens: {usage.total_output_tokens:,}[/dim]")


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question or instruction for the agent"),
    show_trace: bool = typer.Option(
        False,
        "--show-trace",
        "-t",
        help="Show the conversation trace and statistics"
    )
):
    """Ask a single question."""
    async def _ask():
        config = _load_config()
        agent = _build_agent(config)

        try:
            first_entry = len(agent.store.history)
            result = await agent.process(question)
            _print_result(result)

            if show_trace:
                _print_trace(agent, first_entry, result)
        finally:
            await agent.engine.context.llm.close()

    asyncio.run(_ask())


@app.command()
def chat(
    conversation_id: str = typer.Option(
        None,
        "--conversation",
        "-c",
        help="Conversation id to resume and persist with the configured store backend"
    )
):
    """Interactive chat with the agent."""
    async def _chat():
        config = _load_config()

        backend = None
        if conversation_id:
            kwargs = {"path": config.store_path} if config.store_backend == "sqlite" else {}
            backend = create_store_backend(config.store_backend, **kwargs)
            await backend.connect()

        try:
            if backend is not None:
                try:
                    provider = create_provider(config)
                except ValueError as e:
                    console.print(f"[red]Error: {e}[/red]")
                    raise typer.Exit(code=1)
                agent = await Agent.resume(
                    conversation_id,
                    backend,
                    tools=default_tools(),
                    provider=provider,
                    config=config
                )
            else:
                agent = _build_agent(config)

            console.print("[bold cyan]llmagent Interactive Chat[/bold cyan]")
            console.print(f"[dim]Provider: {config.provider} | Conversation: {agent.conversation_id}[/dim]")
            console.print("[dim]Type 'exit', 'quit', or 'q' to leave[/dim]\n")

            while True:
                try:
                    user_input = console.input("[bold yellow]You:[/bold yellow] ")

                    if not user_input.strip():
                        continue

                    if user_input.strip().lower() in ('exit', 'quit', 'q'):
                        console.print("[dim]Goodbye![/dim]")
                        break

                    result = await agent.process(user_input)
                    _print_result(result)

                except KeyboardInterrupt:
                    console.print("\n[dim]Goodbye![/dim]")
                    break
                except EOFError:
                    console.print("\n[dim]Goodbye![/dim]")
                    break

            await agent.engine.context.llm.close()
        finally:
            if backend is not None:
                await backend.disconnect()

    asyncio.run(_chat())


@app.command()
def tools():
    """List the built-in demo tools."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Name", style="green")
    table.add_column("Description")
    table.add_column("Parameters", style="dim")

    for tool in default_tools():
        schema = tool.parameters_schema or {}
        params = ", ".join(
            f"{name}: {spec.get('type', 'any')}"
            for name, spec in schema.get("properties", {}).items()
        )
        table.add_row(tool.name, tool.description, params or "-")

    console.print(table)


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
