import typer
import uvicorn

from livecode import __version__
from livecode.app import create_app
from livecode.config import LiveCodeConfig, LockPolicy

app = typer.Typer()


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"livecode {__version__}")
        raise typer.Exit()


def build_config(
    host: str | None,
    port: int | None,
    frontend_url: str | None,
    lock_policy: LockPolicy | None,
    lock_timeout: float | None,
    verbose: bool,
) -> LiveCodeConfig:
    """Environment configuration with command line overrides applied."""
    overrides: dict = {}
    if host is not None:
        overrides["server_host"] = host
    if port is not None:
        overrides["server_port"] = port
    if frontend_url is not None:
        overrides["frontend_url"] = frontend_url
    if lock_policy is not None:
        overrides["lock_policy"] = lock_policy
    if lock_timeout is not None:
        overrides["lock_timeout"] = lock_timeout
    if verbose:
        overrides["log_level"] = "DEBUG"
    return LiveCodeConfig(**overrides)


@app.command()
def main(
    host: str | None = typer.Option(
        None,
        help="Bind address. Defaults to LIVECODE_SERVER_HOST or 'localhost'.",
    ),
    port: int | None = typer.Option(
        None,
        help="Bind port. Defaults to LIVECODE_SERVER_PORT, PORT or 5000.",
    ),
    frontend_url: str | None = typer.Option(
        None,
        "--frontend-url",
        help="Allowed cross-origin client URL (e.g. http://localhost:5173). Any origin if unset.",
    ),
    lock_policy: LockPolicy | None = typer.Option(
        None,
        "--lock-policy",
        help="When the edit lock is taken: explicit requests, on first keystroke (idle), or never (none).",
    ),
    lock_timeout: float | None = typer.Option(
        None,
        "--lock-timeout",
        help="Seconds of inactivity before a held edit lock is released.",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
):
    """
    Start the livecode collaboration server.
    """
    try:
        config = build_config(
            host, port, frontend_url, lock_policy, lock_timeout, verbose
        )
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(
        f"✓ livecode listening on http://{config.server_host}:{config.server_port}"
    )
    server = uvicorn.Server(
        uvicorn.Config(
            create_app(config),
            host=config.server_host,
            port=config.server_port,
            log_level=config.log_level.lower(),
        )
    )
    server.run()
