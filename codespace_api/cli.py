from __future__ import annotations

import logging

import typer
import uvicorn
import yaml
from fastapi.encoders import jsonable_encoder

from codespace_api.config import get_settings
from codespace_api.logging_config import configure_logging
from codespace_api.services.accounts import AccountWorkflow
from codespace_api.services.errors import CodespaceException

configure_logging()
logger = logging.getLogger(__name__)
app = typer.Typer(help="Codespace account provisioning CLI", pretty_exceptions_show_locals=False)


def _exit_for_domain_error(exc: CodespaceException) -> None:
    logger.warning("CLI command failed with domain error: %s", exc)
    typer.echo(f"Error: {exc}", err=True)
    for diagnostic in exc.diagnostics:
        typer.echo(f"Cleanup failed: {diagnostic}", err=True)
    raise typer.Exit(code=1)


def _echo_yaml_entity(entity: object) -> None:
    encoded = jsonable_encoder(entity, by_alias=True)
    typer.echo(yaml.safe_dump(encoded, sort_keys=False), nl=False)


@app.command("create-user")
def create_user(username: str) -> None:
    try:
        account = AccountWorkflow().create_account(username)
    except CodespaceException as e:
        _exit_for_domain_error(e)
    _echo_yaml_entity(account)


@app.command("get-user")
def get_user(username: str) -> None:
    try:
        account = AccountWorkflow().get_account(username)
    except CodespaceException as e:
        _exit_for_domain_error(e)
    _echo_yaml_entity(account)


@app.command("delete-user")
def delete_user(username: str) -> None:
    try:
        AccountWorkflow().delete_account(username)
    except CodespaceException as e:
        _exit_for_domain_error(e)
    _echo_yaml_entity({"message": "User deleted successfully"})


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address (defaults to CODESPACE_HOST)."),
    port: int | None = typer.Option(None, "--port", help="Bind port (defaults to CODESPACE_PORT)."),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes."),
) -> None:
    settings = get_settings()
    uvicorn.run(
        "codespace_api.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_config=None,
    )


if __name__ == "__main__":
    app()
