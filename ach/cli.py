"""Typer CLI for the pull request lookup."""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path
from typing import Annotated

import httpx
import typer

from ach.azure_devops_client import (
    AzureDevOpsApiError,
    AzureDevOpsAuthError,
    build_ado_client,
    fetch_connection_user,
)
from ach.config import (
    AchConfigError,
    get_ado_pat_with_source,
    load_settings,
    resolve_coordinates,
)
from ach.git import DEFAULT_REMOTE_NAME, GitCommandError, GitRepository
from ach.output import render_report_json, render_report_lines
from ach.resolver import build_report

app = typer.Typer(
    help="Find the Azure DevOps pull request and work items for the checked-out commit."
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class OutputFormat(StrEnum):
    """Supported report formats."""

    TEXT = "text"
    JSON = "json"


RemoteOption = Annotated[str, typer.Option(help="Name of the git remote to resolve.")]
RepoPathOption = Annotated[
    Path | None, typer.Option(help="Working tree to inspect (defaults to the current directory).")
]
TimeoutOption = Annotated[
    int, typer.Option(help="Azure DevOps API timeout in seconds for each request.")
]
TrustEnvOption = Annotated[
    bool,
    typer.Option(
        "--trust-env/--no-trust-env",
        help="Use proxy/SSL environment variables from the current shell.",
    ),
]
VerboseOption = Annotated[bool, typer.Option(help="Log requests and warnings to stderr.")]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def _run_lookup(
    *,
    remote: str,
    repo_path: Path | None,
    output_format: OutputFormat,
    timeout_seconds: int,
    trust_env: bool,
) -> None:
    try:
        settings = load_settings(GitRepository(repo_path, remote_name=remote))
    except (GitCommandError, AchConfigError, AzureDevOpsAuthError) as error:
        typer.echo(f"ach failed: {error}", err=True)
        raise typer.Exit(code=1) from error

    try:
        with build_ado_client(
            settings.pat, timeout_seconds=timeout_seconds, trust_env=trust_env
        ) as client:
            report = build_report(
                client=client,
                coordinates=settings.coordinates,
                target_commit=settings.head_commit,
            )
    except AzureDevOpsApiError as error:
        typer.echo(
            f"ach failed: {error} status={error.status_code} endpoint={error.endpoint}.",
            err=True,
        )
        raise typer.Exit(code=1) from error
    except httpx.HTTPError as error:
        typer.echo(f"ach failed: network error ({error}).", err=True)
        raise typer.Exit(code=1) from error
    except ImportError as error:
        typer.echo(
            "ach failed: proxy transport dependency is missing. "
            "Try `ach lookup --no-trust-env`, or install `httpx[socks]`.",
            err=True,
        )
        raise typer.Exit(code=1) from error

    if output_format is OutputFormat.JSON:
        typer.echo(render_report_json(report))
        return
    for line in render_report_lines(report):
        typer.echo(line)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: VerboseOption = False,
) -> None:
    """Look up the pull request for HEAD when no command is given."""
    _configure_logging(verbose)
    if ctx.invoked_subcommand is None:
        _run_lookup(
            remote=DEFAULT_REMOTE_NAME,
            repo_path=None,
            output_format=OutputFormat.TEXT,
            timeout_seconds=20,
            trust_env=True,
        )


@app.command("lookup")
def lookup_command(
    remote: RemoteOption = DEFAULT_REMOTE_NAME,
    repo_path: RepoPathOption = None,
    output_format: Annotated[
        OutputFormat, typer.Option("--format", help="Report format: text|json.")
    ] = OutputFormat.TEXT,
    timeout_seconds: TimeoutOption = 20,
    trust_env: TrustEnvOption = True,
    verbose: VerboseOption = False,
) -> None:
    """Print the pull request and work items that contain the checked-out commit."""
    _configure_logging(verbose)
    _run_lookup(
        remote=remote,
        repo_path=repo_path,
        output_format=output_format,
        timeout_seconds=timeout_seconds,
        trust_env=trust_env,
    )


@app.command("auth-check")
def auth_check_command(
    org: Annotated[
        str | None,
        typer.Option(help="Organization to check (defaults to the one in the remote URL)."),
    ] = None,
    remote: RemoteOption = DEFAULT_REMOTE_NAME,
    repo_path: RepoPathOption = None,
    timeout_seconds: TimeoutOption = 20,
    trust_env: TrustEnvOption = True,
    verbose: VerboseOption = False,
) -> None:
    """Validate Azure DevOps token setup against an organization."""
    _configure_logging(verbose)
    try:
        pat, token_source = get_ado_pat_with_source()
    except AzureDevOpsAuthError as error:
        typer.echo(f"Azure DevOps auth check failed: {error}")
        raise typer.Exit(code=1) from error

    typer.echo(f"Token detected in {token_source}.")

    if org is None:
        try:
            org = resolve_coordinates(GitRepository(repo_path, remote_name=remote)).org
        except (GitCommandError, AchConfigError) as error:
            typer.echo(f"Azure DevOps auth check failed: {error}")
            raise typer.Exit(code=1) from error

    try:
        with build_ado_client(pat, timeout_seconds=timeout_seconds, trust_env=trust_env) as client:
            user = fetch_connection_user(client=client, org=org)
    except AzureDevOpsApiError as error:
        typer.echo(
            "Azure DevOps auth check failed: "
            f"status={error.status_code} endpoint={error.endpoint}."
        )
        raise typer.Exit(code=1) from error
    except httpx.HTTPError as error:
        typer.echo(f"Azure DevOps auth check failed: network error ({error}).")
        raise typer.Exit(code=1) from error
    except ImportError as error:
        typer.echo(
            "Azure DevOps auth check failed: proxy transport dependency is missing. "
            "Try `ach auth-check --no-trust-env`, or install `httpx[socks]`."
        )
        raise typer.Exit(code=1) from error

    typer.echo(f"Authenticated as Azure DevOps user '{user}' in organization '{org}'.")
    typer.echo("Azure DevOps token setup is valid.")
