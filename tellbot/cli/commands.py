"""tellbot的命令行接口。"""

import asyncio
import sys
from pathlib import Path

import typer
from loguru import logger

from tellbot import __version__
from tellbot.agent.commands.registry import AVAILABLE_COMMANDS, build_registry
from tellbot.agent.router import EventRouter
from tellbot.agent.services import Services
from tellbot.bus.queue import MessageBus
from tellbot.channels.manager import ChannelManager
from tellbot.config.loader import get_config_path, load_config, save_config
from tellbot.config.schema import Config

app = typer.Typer(
    name="tellbot",
    help="IRC bot with seen/tell commands",
    no_args_is_help=True,
)

ConfigOption = typer.Option(None, "--config", "-c", help="Path to config.json")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable debug logging")


def _setup_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


def _load(config_path: Path | None) -> Config:
    return load_config(config_path)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"tellbot v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(None, "--version", callback=version_callback, is_eager=True),
):
    """tellbot - IRC bot with seen/tell commands."""
    pass


@app.command()
def onboard(
    config_path: Path = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Write a default configuration and create the database."""
    _setup_logging(verbose)
    path = config_path or get_config_path()

    if path.exists():
        typer.echo(f"Config already exists at {path}")
        config = load_config(path)
    else:
        config = Config()
        save_config(config, path)
        typer.echo(f"Created config at {path}")

    services = Services.from_config(config)
    asyncio.run(services.db.init())
    typer.echo(f"Database ready at {config.db_path}")


@app.command()
def run(
    config_path: Path = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Connect to IRC and start processing messages."""
    _setup_logging(verbose)
    config = _load(config_path)

    async def _run() -> None:
        services = Services.from_config(config)
        await services.db.init()
        registry = build_registry(services)

        bus = MessageBus()
        channels = ChannelManager(config, bus)
        router = EventRouter(bus, services, registry, bot_nick=channels.current_nick)

        try:
            await asyncio.gather(router.run(), channels.start_all())
        finally:
            router.stop()
            await channels.stop_all()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        typer.echo("\nGoodbye!")


@app.command()
def say(
    text: str = typer.Argument(..., help="Message text, e.g. '.seen alice'"),
    nick: str = typer.Option("console", "--nick", "-n", help="Sender nickname"),
    target: str = typer.Option(None, "--target", "-t", help="Channel (defaults to the first configured channel)"),
    config_path: Path = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Process one message locally against the database and print the replies."""
    _setup_logging(verbose)
    config = _load(config_path)
    channel = target or (config.irc.channels[0] if config.irc.channels else "#tellbot")

    async def _say() -> list[str]:
        services = Services.from_config(config)
        await services.db.init()
        registry = build_registry(services)
        router = EventRouter(MessageBus(), services, registry, bot_nick=lambda: config.irc.nick)
        return await router.process_direct(nick, channel, text)

    for reply in asyncio.run(_say()):
        typer.echo(reply)


@app.command()
def status(
    config_path: Path = ConfigOption,
):
    """Show configuration and database statistics."""
    _setup_logging(False)
    path = config_path or get_config_path()
    config = _load(config_path)

    typer.echo(f"Config: {path} {'(found)' if path.exists() else '(missing, using defaults)'}")
    typer.echo(f"Server: {config.irc.server}:{config.irc.port} tls={config.irc.use_tls}")
    typer.echo(f"Nick: {config.irc.nick}  Channels: {', '.join(config.irc.channels)}")
    typer.echo("Commands:")
    for name in config.bot.commands:
        cls = AVAILABLE_COMMANDS.get(name.lower())
        if cls is None:
            typer.echo(f"  {config.bot.prefix}{name}  (unknown)")
            continue
        usage = f"{config.bot.prefix}{cls.name} {cls.arguments}".rstrip()
        typer.echo(f"  {usage}  {cls.description}")
    typer.echo(f"Database: {config.db_path}")

    if not config.db_path.exists():
        typer.echo("Database not initialized (run `tellbot onboard`)")
        return

    async def _counts() -> tuple[int, dict[str, int]]:
        services = Services.from_config(config)
        return await services.activity.count(), await services.mailbox.counts()

    activity, mailbox = asyncio.run(_counts())
    typer.echo(f"Activity records: {activity}")
    typer.echo(f"Messages pending: {mailbox['pending']}  delivered: {mailbox['delivered']}")
