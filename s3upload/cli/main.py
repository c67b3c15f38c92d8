"""s3upload CLI - Main commands."""
import json
import logging
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

app = typer.Typer(
    name="s3upload",
    help="Upload files to S3 with signed-POST credentials",
    add_completion=False
)
console = Console()


def parse_headers(values: Optional[List[str]]) -> dict:
    """Parse repeated 'Name: value' options."""
    headers = {}
    for value in values or []:
        name, sep, content = value.partition(':')
        if not sep or not name.strip():
            raise typer.BadParameter(f"Expected 'Name: value', got '{value}'", param_hint="--header")
        headers[name.strip()] = content.strip()
    return headers


def build_provider(
    credentials_url: Optional[str],
    credentials_file: Optional[Path],
    headers: dict,
    bucket: Optional[str],
    access_key_id: Optional[str],
    secret_key: Optional[str],
    prefix: str,
    content_type: str,
):
    """Pick the credentials provider from the options given."""
    from s3upload import (
        HttpCredentialsProvider,
        JsonFileCredentialsProvider,
        SigningCredentialsProvider,
    )

    if credentials_url:
        return HttpCredentialsProvider(credentials_url, headers=headers)
    if credentials_file:
        return JsonFileCredentialsProvider(credentials_file)
    if bucket and access_key_id and secret_key:
        return SigningCredentialsProvider(
            bucket, access_key_id, secret_key,
            key_prefix=prefix, content_type=content_type
        )
    raise typer.BadParameter(
        "Use --credentials-url, --credentials-file, or --bucket with "
        "--access-key-id and --secret-key"
    )


@app.command()
def upload(
    files: List[Path] = typer.Argument(..., help="Local files to upload, in order", exists=True, dir_okay=False),
    credentials_url: str = typer.Option(None, "--credentials-url", "-u", help="Backend endpoint issuing credentials"),
    credentials_file: Path = typer.Option(None, "--credentials-file", "-f", help="JSON file with credentials"),
    header: List[str] = typer.Option(None, "--header", "-H", help="Extra header for the credentials request"),
    bucket: str = typer.Option(None, "--bucket", "-b", help="Bucket (local signing)"),
    access_key_id: str = typer.Option(None, "--access-key-id", envvar="AWS_ACCESS_KEY_ID", help="Access key id (local signing)"),
    secret_key: str = typer.Option(None, "--secret-key", envvar="AWS_SECRET_ACCESS_KEY", help="Secret key (local signing)"),
    prefix: str = typer.Option("", "--prefix", help="Key prefix (local signing)"),
    content_type: str = typer.Option("image/jpeg", "--content-type", help="Content type (local signing)"),
    suffix: str = typer.Option("incremental", "--suffix", "-s", help="Suffix rule: incremental or dimensions"),
    acl: str = typer.Option(None, "--acl", help="Canned ACL (default: public-read)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """Upload files to S3 in order, stopping at the first failure."""
    from s3upload import UploadManager, CallbackListener, QueueDispatcher, setup_logging
    from s3upload.core.upload import suffix_rule_from_name

    if verbose:
        logging.basicConfig(level=logging.DEBUG)
        setup_logging(logging.DEBUG)

    try:
        suffix_rule = suffix_rule_from_name(suffix)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--suffix")

    provider = build_provider(
        credentials_url, credentials_file, parse_headers(header),
        bucket, access_key_id, secret_key, prefix, content_type
    )

    dispatcher = QueueDispatcher()
    manager = UploadManager(provider, dispatcher=dispatcher)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console
    ) as progress:
        bar = progress.add_task(f"Uploading {len(files)} file(s)", total=100)
        listener = CallbackListener(
            on_progress=lambda p: progress.update(bar, completed=p)
        )
        task = manager.upload(files, listener, suffix_rule=suffix_rule, acl=acl)

        # Callbacks run here, on the main thread
        while not task.done or dispatcher.pending:
            dispatcher.process(timeout=0.1)

    manager.close()
    result = task.result

    if not result.succeeded:
        failed = files[result.failed_index] if result.failed_index is not None else None
        console.print(f"[red]Upload failed at file {result.failed_index} ({failed}): {result.error}[/red]")
        raise typer.Exit(1)

    table = Table()
    table.add_column("File")
    table.add_column("URL", style="cyan")
    for path, url in zip(files, result.urls):
        table.add_row(path.name, url)
    console.print(table)


@app.command("sign-policy")
def sign_policy(
    bucket: str = typer.Option(..., "--bucket", "-b", help="Bucket name"),
    access_key_id: str = typer.Option(..., "--access-key-id", envvar="AWS_ACCESS_KEY_ID", help="Access key id"),
    secret_key: str = typer.Option(..., "--secret-key", envvar="AWS_SECRET_ACCESS_KEY", help="Secret key"),
    prefix: str = typer.Option("", "--prefix", help="Key prefix"),
    content_type: str = typer.Option("image/jpeg", "--content-type", help="Content type of uploaded files"),
    expires: int = typer.Option(60, "--expires", help="Policy lifetime in minutes"),
):
    """Print a locally signed credentials bundle as JSON."""
    from s3upload import SigningCredentialsProvider

    provider = SigningCredentialsProvider(
        bucket, access_key_id, secret_key,
        key_prefix=prefix,
        content_type=content_type,
        expires_in=timedelta(minutes=expires)
    )
    console.print_json(json.dumps(provider.get_credentials().to_dict()))


if __name__ == "__main__":
    app()
