import asyncio
from pathlib import Path

import click
from loguru import logger

from affine_mcp.bridge.config import AffineSettings, ServerOptions
from affine_mcp.bridge.server import AffineMCPServer
from affine_mcp.configuration import Config, build_server_options, build_settings, setup_config_store
from affine_mcp.errors import ConfigurationError, UpstreamError
from affine_mcp.utility import configure_logging


async def serve(server: AffineMCPServer, check: bool) -> None:
    if check:
        await server.verify_connection()
    await server.run_stdio()


@click.command()
@click.option(
    "--config-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML configuration file (defaults to $CONFIG_FILE or the packaged config.yml)",
)
@click.option("--env-file", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Dotenv file to load (defaults to $ENV_FILE or .env)")
@click.option(
    "--log-level",
    type=click.Choice(["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Override the configured log level",
)
@click.option("--check/--no-check", default=None, help="Verify upstream connectivity before serving")
def main(config_file: Path | None, env_file: Path | None, log_level: str | None, check: bool | None) -> None:
    """
    Run the AFFiNE MCP server on stdio.

    Reads AFFINE_API_URL, AFFINE_ACCESS_TOKEN and AFFINE_WORKSPACE_ID from the
    environment (or the dotenv file) unless the configuration file says otherwise.

    \b
    Examples:
      AFFINE_ACCESS_TOKEN=... affine-mcp
      affine-mcp --config-file config.yml --log-level debug --check
    """
    cfg: Config = setup_config_store(
        str(config_file) if config_file else None,
        str(env_file) if env_file else None,
    )

    if log_level:
        configure_logging((cfg.get("logging") or {}) | {"level": log_level.upper()})

    try:
        settings: AffineSettings = build_settings()
    except ConfigurationError as e:
        logger.error(str(e))
        raise click.ClickException(str(e)) from e

    options: ServerOptions = build_server_options()
    server = AffineMCPServer(settings, options=options)

    try:
        asyncio.run(serve(server, options.verify_on_startup if check is None else check))
    except UpstreamError as e:
        logger.error(f"Startup connectivity check failed: {e.message}")
        raise click.ClickException(f"Cannot reach AFFiNE API: {e.message}") from e


if __name__ == "__main__":
    main()  # pylint: disable=no-value-for-parameter
