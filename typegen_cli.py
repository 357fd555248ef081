# typegen_cli.py
import logging
from typing import Optional

import typer

from generate.loader import DEFAULT_CONFIG_FILE, ConfigNotFoundError, InvalidConfigError, load_config
from typegen.config_models import TypeGenConfig
from typegen.db import get_settings
from typegen.db_enums import DbEnumGenerator
from typegen.orchestrator import TypeGenOrchestrator

app = typer.Typer(help="Generate TypeScript declarations from Python types and database lookup tables.")
logger = logging.getLogger("typegen.cli")

CONFIG_ARG = typer.Argument(None, help=f"Config file path (default: {DEFAULT_CONFIG_FILE})")
CONFIG_OPT = typer.Option(None, "--config", "-c", help="Config file path; wins over the positional argument")

USAGE = f"""
Usage:
   typegen run                              # Use default {DEFAULT_CONFIG_FILE}
   typegen run custom-config.json           # Use specific config file
   typegen run --config my-config.json      # Use --config flag
   typegen run -c my-config.json            # Use -c shorthand
"""


# ---------------------------
# Core utilities
# ---------------------------
@app.callback()
def _configure_logging(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    settings = get_settings()
    level = logging.DEBUG if verbose else getattr(logging, settings.LOG_LEVEL, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _config_path(positional: Optional[str], option: Optional[str]) -> str:
    return option or positional or DEFAULT_CONFIG_FILE


def _fail(exc: BaseException) -> None:
    typer.echo(f"❌ TypeGen failed: {exc}", err=True)
    if exc.__cause__ is not None:
        typer.echo(f"   Inner: {exc.__cause__}", err=True)
    raise typer.Exit(code=1)


def _load(positional: Optional[str], option: Optional[str]) -> TypeGenConfig:
    try:
        return load_config(_config_path(positional, option))
    except ConfigNotFoundError as e:
        logger.error("Configuration file not found: %s", e)
        typer.echo(USAGE, err=True)
        _fail(e)
    except InvalidConfigError as e:
        _fail(e)


def _log_summary(config: TypeGenConfig) -> None:
    logger.info("*** Configuration Summary: ***")
    logger.info("   • Modules to scan: %d", len(config.modulesToScan))
    logger.info("   • Database enums: %d", len(config.databaseEnums))
    logger.info("   • TypeScript interfaces: %s", config.typeScriptInterfacesOutputPath)
    logger.info("   • TypeScript enums: %s", config.typeScriptEnumsOutputPath)
    logger.info("   • Inline generation: %s", config.generateNestedInterfaces)
    logger.info("   • Navigation property filtering: %s", config.ignoreNavigationProperties)


# ---------------------------
# Commands
# ---------------------------
@app.command(help="Run the complete workflow: database enums, discovery, TypeScript generation.")
def run(config_file: Optional[str] = CONFIG_ARG, config: Optional[str] = CONFIG_OPT):
    cfg = _load(config_file, config)
    _log_summary(cfg)
    try:
        summary = TypeGenOrchestrator(max_workers=get_settings().MAX_WORKERS).run(cfg)
    except Exception as e:
        _fail(e)
    typer.echo(f"✅ TypeGen completed successfully! ({summary.format()})")


@app.command(help="Load and validate the configuration file only.")
def validate(config_file: Optional[str] = CONFIG_ARG, config: Optional[str] = CONFIG_OPT):
    _load(config_file, config)
    typer.echo("✅ Configuration is valid.")


@app.command("db-enums", help="Generate Python enum modules from the configured database tables.")
def db_enums(config_file: Optional[str] = CONFIG_ARG, config: Optional[str] = CONFIG_OPT):
    cfg = _load(config_file, config)
    try:
        written = DbEnumGenerator().generate(cfg)
    except Exception as e:
        _fail(e)
    typer.echo(f"✅ {len(written)} database enum module(s) written.")


if __name__ == "__main__":
    app()
