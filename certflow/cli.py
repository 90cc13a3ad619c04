"""Typer based command line entry points for certflow."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from certflow.core.errors import CertFlowError
from certflow.core.logger import get_logger, set_level
from certflow.services.certificates.backends import google_services
from certflow.services.certificates.contracts import FeedbackSink, WorkspaceServices
from certflow.services.certificates.feedback import EchoFeedback
from certflow.services.certificates.models import BatchReport, FailurePolicy
from certflow.services.certificates.roster import RosterProcessor
from certflow.services.certificates.settings import CertificateProfile, load_certificate_profile
from certflow.services.certificates.workbook import WorkbookSource
from certflow.services.google.config import GoogleConfig, apply_env_overrides, resolve_config

app = typer.Typer(help="Generate certificates from a Slides template and mail them to a roster.")

PROFILE_OPTION = typer.Option(..., "--profile", "-p", help="Certificate profile in profiles.yaml")
CONFIG_OPTION = typer.Option(None, "--config", help="Path to profiles.yaml")
GOOGLE_PROFILE_OPTION = typer.Option(None, "--google-profile", help="Override the google profile name")
WORKBOOK_OPTION = typer.Option(
    None, "--workbook", exists=True, dir_okay=False, help="Read/write the roster from a local .xlsx instead of Sheets"
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Set logging level (e.g. DEBUG/INFO/WARNING).",
    ),
) -> None:
    """Configure logging before executing commands."""

    try:
        set_level(log_level)
    except CertFlowError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _handle_error(exc: Exception) -> None:
    get_logger().error("certflow command failed: %s", exc, exc_info=True)
    typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _google_config(profile: CertificateProfile, google_profile: str | None, config: Path | None, *, required: bool) -> GoogleConfig:
    name = google_profile or profile.google_profile
    if required:
        return resolve_config(name, config_path=config)
    if name:
        return apply_env_overrides(GoogleConfig.from_profile(name, config_path=config))
    return apply_env_overrides(GoogleConfig())


def _build(
    profile_name: str,
    config: Path | None,
    google_profile: str | None,
    workbook: Path | None,
    *,
    discard: bool | None = None,
    continue_on_error: bool | None = None,
    feedback: FeedbackSink | None = None,
) -> tuple[CertificateProfile, RosterProcessor]:
    profile = load_certificate_profile(profile_name, config)
    google = _google_config(profile, google_profile, config, required=workbook is None)
    services: WorkspaceServices = google_services(
        google,
        feedback=feedback or EchoFeedback(),
        roster_source=WorkbookSource() if workbook is not None else None,
    )
    processor = RosterProcessor(
        profile.process_configuration(),
        services,
        binding=profile.roster_binding(),
        discard_intermediate=profile.discard_intermediate if discard is None else discard,
        failure_policy=profile.failure_policy,
    )
    if workbook is not None:
        processor.set_spreadsheet_id(str(workbook))
    if continue_on_error is not None:
        processor.set_failure_policy(FailurePolicy.CONTINUE if continue_on_error else FailurePolicy.ABORT)
    return profile, processor


def _echo_report(report: BatchReport) -> None:
    typer.echo(report.summary())
    for failure in report.failed:
        typer.secho(f"  {failure.email}: {failure.reason}", fg=typer.colors.RED)


@app.command("show")
def cmd_show(
    profile: str = PROFILE_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    google_profile: Optional[str] = GOOGLE_PROFILE_OPTION,
    workbook: Optional[Path] = WORKBOOK_OPTION,
) -> None:
    """Load the roster and list the recipients it yields."""

    try:
        _, processor = _build(profile, config, google_profile, workbook)
        processor.load()
    except Exception as exc:
        _handle_error(exc)
    else:
        if not processor.recipients:
            typer.echo("<empty>")
        for recipient in processor.recipients:
            typer.echo(f"{recipient.name:30} {recipient.email:40} {recipient.artifact_reference or '-'}")


@app.command("sheet-headers")
def cmd_sheet_headers(
    profile: str = PROFILE_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    google_profile: Optional[str] = GOOGLE_PROFILE_OPTION,
    workbook: Optional[Path] = WORKBOOK_OPTION,
) -> None:
    """Print the live header row of the roster sheet."""

    try:
        _, processor = _build(profile, config, google_profile, workbook)
        headers = processor.live_headers()
    except Exception as exc:
        _handle_error(exc)
    else:
        for index, header in enumerate(headers, start=1):
            typer.echo(f"{index:3} {header}")


@app.command("generate")
def cmd_generate(
    profile: str = PROFILE_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    google_profile: Optional[str] = GOOGLE_PROFILE_OPTION,
    workbook: Optional[Path] = WORKBOOK_OPTION,
    discard: Optional[bool] = typer.Option(
        None, "--discard-slides/--keep-slides", help="Trash the intermediate Slides copies"
    ),
    continue_on_error: Optional[bool] = typer.Option(
        None, "--continue-on-error/--abort-on-error", help="Keep going when one recipient fails"
    ),
) -> None:
    """Load the roster, generate every certificate and save the ids back."""

    _run(profile, config, google_profile, workbook, discard, continue_on_error, notify=False, generate=True)


@app.command("notify")
def cmd_notify(
    profile: str = PROFILE_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    google_profile: Optional[str] = GOOGLE_PROFILE_OPTION,
    workbook: Optional[Path] = WORKBOOK_OPTION,
    continue_on_error: Optional[bool] = typer.Option(
        None, "--continue-on-error/--abort-on-error", help="Keep going when one recipient fails"
    ),
) -> None:
    """Email every recipient that already has a certificate."""

    _run(profile, config, google_profile, workbook, None, continue_on_error, notify=True, generate=False)


@app.command("run")
def cmd_run(
    profile: str = PROFILE_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    google_profile: Optional[str] = GOOGLE_PROFILE_OPTION,
    workbook: Optional[Path] = WORKBOOK_OPTION,
    discard: Optional[bool] = typer.Option(
        None, "--discard-slides/--keep-slides", help="Trash the intermediate Slides copies"
    ),
    continue_on_error: Optional[bool] = typer.Option(
        None, "--continue-on-error/--abort-on-error", help="Keep going when one recipient fails"
    ),
    notify: bool = typer.Option(False, "--notify/--no-notify", help="Email the certificates afterwards"),
) -> None:
    """Load, generate, save and optionally email in one go."""

    _run(profile, config, google_profile, workbook, discard, continue_on_error, notify=notify, generate=True)


def _run(
    profile_name: str,
    config: Path | None,
    google_profile: str | None,
    workbook: Path | None,
    discard: bool | None,
    continue_on_error: bool | None,
    *,
    notify: bool,
    generate: bool,
) -> None:
    logger = get_logger()
    failed = False
    try:
        profile, processor = _build(
            profile_name,
            config,
            google_profile,
            workbook,
            discard=discard,
            continue_on_error=continue_on_error,
        )
        processor.load()
        typer.echo(f"Loaded {len(processor.recipients)} recipients")
        if generate:
            report = processor.generate_all_artifacts()
            _echo_report(report)
            failed = failed or not report.ok
            written = processor.persist()
            typer.echo(f"Saved {written} rows")
        if notify:
            report = processor.notify_all(profile.message)
            _echo_report(report)
            failed = failed or not report.ok
    except Exception as exc:
        _handle_error(exc)
    logger.info("CLI run completed: profile=%s failed=%s", profile_name, failed)
    if failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
