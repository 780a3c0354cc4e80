"""
Main entry point for the Strav kernel runtime.

This module provides the command-line interface for booting an application
from a configuration file and for inspecting its provider graph.
"""

import asyncio
import logging
import sys
from typing import List, Optional

import typer

from .application.application import Application
from .core.domain.events import LifecycleEvent
from .core.exceptions import KernelError
from .core.interfaces.lifecycle import ServiceProvider
from .infrastructure.config.loader import ConfigLoader
from .infrastructure.config.models import ApplicationConfig
from .infrastructure.logging.setup import setup_logging
from .providers import ConfigProvider, LoggerProvider, load_providers

cli = typer.Typer(
    name="strav-kernel",
    help="Dependency injection container and application lifecycle runtime"
)

logger = logging.getLogger(__name__)


def build_application(config: ApplicationConfig) -> Application:
    """
    Create an application with the built-in and configured providers.

    Raises:
        ValueError: If a configured provider cannot be loaded
    """
    providers: List[ServiceProvider] = [ConfigProvider(config), LoggerProvider()]
    providers.extend(load_providers(config.providers))

    app = Application(config=config)
    app.load_providers(providers)
    return app


@cli.command()
def run(
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file path"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level"
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Enable debug mode"
    )
) -> None:
    """Boot the configured providers and run until terminated."""

    try:
        config = ConfigLoader().load_config(config_file)
        if log_level:
            config.logging.level = log_level.upper()
        if debug:
            config.debug = True
            config.logging.level = "DEBUG"
    except (ValueError, FileNotFoundError) as e:
        typer.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    setup_logging(config.logging)

    logger.info(f"Starting {config.name} v{config.version}")
    logger.info(f"Environment: {config.environment}")

    try:
        asyncio.run(run_application(config))
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
    except Exception as e:
        logger.error(f"Application failed: {e}")
        sys.exit(1)


@cli.command()
def graph(
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file path"
    )
) -> None:
    """Print the order in which providers would boot."""

    try:
        config = ConfigLoader().load_config(config_file)
        app = build_application(config)
        order = app.boot_order()
    except (KernelError, ValueError, FileNotFoundError) as e:
        typer.echo(f"Provider graph error: {e}", err=True)
        sys.exit(1)

    for position, name in enumerate(order, start=1):
        typer.echo(f"{position}. {name}")


@cli.command()
def init_config(
    output: str = typer.Option(
        "strav.yaml", "--output", "-o", help="Output configuration file"
    ),
    format: str = typer.Option(
        "yaml", "--format", "-f", help="Configuration format (yaml/json)"
    )
) -> None:
    """Generate a default configuration file."""

    try:
        ConfigLoader().save_config(ApplicationConfig(), output, format)
    except (ValueError, OSError) as e:
        typer.echo(f"Error saving configuration: {e}", err=True)
        sys.exit(1)

    typer.echo(f"Default configuration saved to {output}")


async def run_application(config: ApplicationConfig) -> None:
    """
    Boot the application and wait until it has terminated.

    Args:
        config: Application configuration
    """
    app = build_application(config)

    terminated = asyncio.Event()
    app.events.once(LifecycleEvent.TERMINATED, lambda _: terminated.set())

    await app.start()

    try:
        await terminated.wait()
    finally:
        if app.is_booted:
            await app.shutdown()


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
