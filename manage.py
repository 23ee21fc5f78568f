import asyncio
import logging
import subprocess
from pathlib import Path

import click

from resume_reviewer.app.api.dependencies import (
    get_blob_adapter,
    get_converter,
    get_inference_client,
    get_pipeline,
    get_record_store,
    get_retrieval,
)
from resume_reviewer.app.core.config import get_settings
from resume_reviewer.app.main import initialize_database
from resume_reviewer.app.main import main as run_server
from resume_reviewer.app.models.resume import ResumeSubmission
from resume_reviewer.app.pipeline.capability import Capability
from resume_reviewer.app.pipeline.errors import PipelineError


log = logging.getLogger(__name__)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool):
    """Management script for the Resume Reviewer application."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _run_alembic(command: list[str], success_msg: str, failure_prefix: str) -> None:
    try:
        subprocess.run(command, check=True)
        click.echo(success_msg)
        log.info(success_msg)
    except subprocess.CalledProcessError as e:
        _error_msg = f"{failure_prefix}: {e}"
        click.echo(_error_msg, err=True)
        log.exception(_error_msg)
    except FileNotFoundError:
        _error_msg = "Error: 'alembic' command not found. Make sure Alembic is installed and in your PATH."
        click.echo(_error_msg, err=True)
        log.exception(_error_msg)


@cli.command("generate-migration")
@click.option(
    "-m",
    "--message",
    required=True,
    help="A short message describing the migration.",
)
def generate_migration(message: str):
    """
    Generate a new database migration script.

    This command wraps 'alembic revision --autogenerate'.

    Args:
        message (str): A short message describing the migration.

    Returns:
        None

    """
    _msg = "generate_migration starting"
    log.debug(_msg)
    click.echo("Generating new migration...")
    _run_alembic(
        ["alembic", "revision", "--autogenerate", "-m", message],
        f"Successfully generated new migration: {message}",
        "An error occurred while generating migration",
    )


@cli.command("apply-migrations")
def apply_migrations():
    """Apply all pending migrations to the database (wraps 'alembic upgrade head')."""
    _msg = "apply_migrations starting"
    log.debug(_msg)
    click.echo("Applying database migrations...")
    _run_alembic(
        ["alembic", "upgrade", "head"],
        "Successfully applied all migrations.",
        "An error occurred while applying migrations",
    )


@cli.command("init-db")
def init_db():
    """Create the key-value table directly, without running migrations."""
    initialize_database()
    click.echo("Database initialized.")


def _build_pipeline():
    settings = get_settings()
    blobs = get_blob_adapter(settings)
    return get_pipeline(
        settings=settings,
        blobs=blobs,
        records=get_record_store(),
        converter=get_converter(settings),
        inference=get_inference_client(settings=settings, blobs=blobs),
    )


@cli.command("analyze")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--job-title", required=True, help="Title of the position.")
@click.option("--job-description", required=True, help="Description of the position.")
@click.option("--company-name", default="", help="Company the candidate applies to.")
@click.option(
    "--constrained",
    is_flag=True,
    help="Skip the preview image, as for a constrained client.",
)
def analyze(
    path: Path,
    job_title: str,
    job_description: str,
    company_name: str,
    constrained: bool,
):
    """
    Analyze a resume document and print the stored record as JSON.

    Args:
        path (Path): The resume PDF.
        job_title (str): Title of the position.
        job_description (str): Description of the position.
        company_name (str): Company the candidate applies to.
        constrained (bool): Whether to skip preview generation.

    Returns:
        None

    Notes:
        1. Builds the pipeline from the application settings.
        2. Echoes each status update to stderr as it happens.
        3. Prints the record JSON on success, or the failure status and a non-zero exit code.

    """
    submission = ResumeSubmission(
        filename=path.name,
        content=path.read_bytes(),
        job_title=job_title,
        job_description=job_description,
        company_name=company_name,
    )
    capability = Capability.CONSTRAINED if constrained else Capability.FULL_FIDELITY
    pipeline = _build_pipeline()

    def on_status(status_text: str) -> None:
        click.echo(status_text, err=True)

    try:
        record = asyncio.run(pipeline.analyze(submission, capability, on_status))
    except PipelineError as e:
        click.echo(e.status_text, err=True)
        raise SystemExit(1) from e

    click.echo(record.to_json())


@cli.command("show")
@click.argument("record_id")
def show(record_id: str):
    """Print a stored resume record as JSON."""
    retrieval = get_retrieval(
        records=get_record_store(),
        blobs=get_blob_adapter(get_settings()),
    )
    try:
        record = asyncio.run(retrieval.get_record(record_id))
    except PipelineError as e:
        click.echo(e.status_text, err=True)
        raise SystemExit(1) from e

    click.echo(record.to_json())


@cli.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address.")
@click.option("--port", default=8000, show_default=True, type=int, help="Bind port.")
def serve(host: str, port: int):
    """Run the HTTP API with uvicorn."""
    run_server(host=host, port=port)


def main():
    """Run the command line interface."""
    cli()


if __name__ == "__main__":
    main()
