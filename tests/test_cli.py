from __future__ import annotations

from pathlib import Path

import pytest
from openpyxl import Workbook, load_workbook
from typer.testing import CliRunner

from certflow import cli
from certflow.services.certificates.contracts import WorkspaceServices

runner = CliRunner()

PROFILES = """
certificates:
  workshop:
    template_id: template-1
    destination_folder_id: folder-1
    placeholder: "{{name}}"
    spreadsheet_id: unused
    sheet_name: Participants
    columns:
      name: Name
      email: Email
      artifact: Certificate
    discard_intermediate: true
    message:
      subject: "Certificate for $name"
"""


@pytest.fixture()
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, services: WorkspaceServices) -> dict[str, Path]:
    config = tmp_path / "profiles.yaml"
    config.write_text(PROFILES, encoding="utf-8")
    workbook = tmp_path / "roster.xlsx"
    wb = Workbook()
    ws = wb.active
    ws.title = "Participants"
    ws.append(["Name", "Email", "Certificate"])
    ws.append(["Ana Silva", "ana@example.org", None])
    ws.append(["Bruno Costa", None, None])
    wb.save(workbook)

    def fake_google_services(google_config, *, feedback=None, roster_source=None, session=None):
        if roster_source is not None:
            services.roster_source = roster_source
        return services

    monkeypatch.setattr(cli, "google_services", fake_google_services)
    return {"config": config, "workbook": workbook}


def _args(command: str, workspace: dict[str, Path], *extra: str) -> list[str]:
    return [
        command,
        "--profile",
        "workshop",
        "--config",
        str(workspace["config"]),
        "--workbook",
        str(workspace["workbook"]),
        *extra,
    ]


def test_show_lists_valid_recipients(workspace: dict[str, Path]) -> None:
    result = runner.invoke(cli.app, _args("show", workspace))

    assert result.exit_code == 0, result.output
    assert "ana@example.org" in result.output
    assert "Bruno Costa" not in result.output


def test_sheet_headers(workspace: dict[str, Path]) -> None:
    result = runner.invoke(cli.app, _args("sheet-headers", workspace))

    assert result.exit_code == 0, result.output
    assert "1 Name" in result.output
    assert "3 Certificate" in result.output


def test_run_generates_saves_and_notifies(workspace: dict[str, Path], drive, messenger) -> None:
    result = runner.invoke(cli.app, _args("run", workspace, "--notify"))

    assert result.exit_code == 0, result.output
    assert "Loaded 1 recipients" in result.output
    assert "Saved 1 rows" in result.output
    assert drive.count("set_trashed") == 1
    ws = load_workbook(workspace["workbook"])["Participants"]
    reference = ws["C2"].value
    assert reference.startswith("pdf-")
    (message,) = messenger.sent
    assert message.subject == "Certificate for Ana Silva"
    assert message.attachments == (reference,)


def test_generate_keep_slides_flag(workspace: dict[str, Path], drive) -> None:
    result = runner.invoke(cli.app, _args("generate", workspace, "--keep-slides"))

    assert result.exit_code == 0, result.output
    assert drive.count("set_trashed") == 0


def test_notify_failure_exits_non_zero(workspace: dict[str, Path], messenger) -> None:
    ws_path = workspace["workbook"]
    wb = load_workbook(ws_path)
    wb["Participants"]["C2"] = "pdf-old"
    wb.save(ws_path)
    messenger.fail_for.add("ana@example.org")

    aborted = runner.invoke(cli.app, _args("notify", workspace))
    collected = runner.invoke(cli.app, _args("notify", workspace, "--continue-on-error"))

    assert aborted.exit_code == 1
    assert collected.exit_code == 1
    assert "ana@example.org" in collected.output


def test_unknown_profile_reports_error(workspace: dict[str, Path]) -> None:
    result = runner.invoke(
        cli.app,
        ["show", "--profile", "missing", "--config", str(workspace["config"]), "--workbook", str(workspace["workbook"])],
    )

    assert result.exit_code == 1
