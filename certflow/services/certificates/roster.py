"""Batch processing of a roster: load, generate, persist, notify."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Sequence

from certflow.core.errors import ColumnNotFoundError
from certflow.core.logger import get_logger

from .contracts import WorkspaceServices
from .generator import ArtifactGenerator
from .models import BatchReport, FailurePolicy, MessageOptions, ProcessConfiguration, RecipientFailure, RosterBinding
from .recipient import Recipient

LOGGER = get_logger()

ARTIFACT_NAME_PREFIX = "Certificate: "
FIRST_DATA_ROW = 2
FIRST_COLUMN = 1
NOT_FOUND = -1


class RosterProcessor:
    """Drive certificate generation and delivery for every roster entry.

    Operations run strictly in roster order. Under ``FailurePolicy.ABORT`` the
    first collaborator error stops the batch and propagates; under
    ``FailurePolicy.CONTINUE`` it is logged, recorded in the returned
    :class:`BatchReport` and the next recipient is processed.
    """

    def __init__(
        self,
        config: ProcessConfiguration,
        services: WorkspaceServices,
        *,
        binding: RosterBinding | None = None,
        discard_intermediate: bool = False,
        failure_policy: FailurePolicy = FailurePolicy.ABORT,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._services = services
        self._binding = binding or RosterBinding()
        self._discard_intermediate = discard_intermediate
        self._failure_policy = FailurePolicy(failure_policy)
        self._logger = logger or LOGGER
        self._recipients: list[Recipient] = []

    # Configuration ----------------------------------------------------

    def set_spreadsheet_id(self, spreadsheet_id: str) -> "RosterProcessor":
        self._binding = replace(self._binding, spreadsheet_id=spreadsheet_id)
        return self

    def set_sheet_name(self, sheet_name: str) -> "RosterProcessor":
        self._binding = replace(self._binding, sheet_name=sheet_name)
        return self

    def set_name_header(self, header: str) -> "RosterProcessor":
        self._binding = replace(self._binding, name_header=header)
        return self

    def set_email_header(self, header: str) -> "RosterProcessor":
        self._binding = replace(self._binding, email_header=header)
        return self

    def set_artifact_header(self, header: str) -> "RosterProcessor":
        self._binding = replace(self._binding, artifact_header=header)
        return self

    def set_discard_intermediate(self, discard: bool) -> "RosterProcessor":
        self._discard_intermediate = bool(discard)
        return self

    def set_failure_policy(self, policy: FailurePolicy | str) -> "RosterProcessor":
        self._failure_policy = FailurePolicy(policy)
        return self

    @property
    def binding(self) -> RosterBinding:
        return self._binding

    @property
    def recipients(self) -> tuple[Recipient, ...]:
        return tuple(self._recipients)

    def add_recipients(self, *recipients: Recipient) -> "RosterProcessor":
        self._recipients.extend(recipients)
        return self

    def live_headers(self) -> list[str]:
        """Return the roster's current header row as text."""

        binding = self._binding.require_complete()
        return _header_labels(self._services.roster_source.read_header(binding.spreadsheet_id, binding.sheet_name))

    # Operations -------------------------------------------------------

    def load(self, *, reset: bool = False) -> "RosterProcessor":
        """Read the roster and append one recipient per row with name and email.

        Rows whose name or email cell is empty are skipped. Repeated calls
        append to the list already loaded unless ``reset`` is true.

        Raises:
            ConfigError: When the binding is incomplete.
            ColumnNotFoundError: When the name or email header is absent.
        """

        binding = self._binding.require_complete()
        rows = self._services.roster_source.read_rows(binding.spreadsheet_id, binding.sheet_name)
        if reset:
            self._recipients.clear()
        if not rows:
            self._logger.warning(
                "certificates.roster empty_sheet spreadsheet=%s sheet=%s", binding.spreadsheet_id, binding.sheet_name
            )
            return self

        headers = _header_labels(rows[0])
        name_col = _require_column(headers, binding.name_header)
        email_col = _require_column(headers, binding.email_header)
        artifact_col = _find_column(headers, binding.artifact_header)
        if artifact_col == NOT_FOUND:
            self._logger.warning(
                "certificates.roster artifact_column_missing header=%s -- references default to empty",
                binding.artifact_header,
            )

        loaded = skipped = 0
        for row in rows[1:]:
            name = _cell_text(row, name_col)
            email = _cell_text(row, email_col)
            if not name or not email:
                skipped += 1
                continue
            recipient = Recipient(name=name, email=email, artifact_reference=_cell_text(row, artifact_col))
            self._recipients.append(recipient)
            loaded += 1

        self._logger.info(
            "certificates.roster loaded sheet=%s recipients=%d skipped=%d total=%d",
            binding.sheet_name,
            loaded,
            skipped,
            len(self._recipients),
        )
        return self

    def generate_all_artifacts(self) -> BatchReport:
        """Generate a certificate for every loaded recipient and record its id."""

        report = BatchReport(stage="generate")
        for recipient in self._recipients:
            generator = (
                ArtifactGenerator(self._config, self._services, logger=self._logger)
                .set_artifact_name(f"{ARTIFACT_NAME_PREFIX}{recipient.name}")
                .set_placeholder_replacement(recipient.name)
                .set_discard_intermediate(self._discard_intermediate)
            )
            try:
                generator.generate()
            except Exception as exc:  # noqa: BLE001 - policy decides
                if self._record_failure(report, recipient, exc):
                    raise
                continue
            recipient.set_artifact_reference(generator.artifact_reference)
            report.succeeded.append(recipient.email)
        self._logger.info("certificates.roster %s", report.summary())
        return report

    def persist(self) -> int:
        """Write every recipient back to the roster in one bulk write from row 2.

        Columns are resolved again from the live header row. Cells outside
        the three bound columns are left untouched. Returns the rows written.
        """

        if not self._recipients:
            self._logger.info("certificates.roster persist_skipped reason=no_recipients")
            return 0

        binding = self._binding.require_complete()
        headers = self.live_headers()
        columns = (
            _require_column(headers, binding.name_header),
            _require_column(headers, binding.email_header),
            _require_column(headers, binding.artifact_header),
        )
        width = max(columns) + 1

        rows: list[list[Any]] = []
        for recipient in self._recipients:
            row: list[Any] = [None] * width
            for column, value in zip(columns, (recipient.name, recipient.email, recipient.artifact_reference)):
                row[column] = value
            rows.append(row)

        self._services.roster_source.write_rows(binding.spreadsheet_id, binding.sheet_name, FIRST_DATA_ROW, FIRST_COLUMN, rows)
        self._logger.info(
            "certificates.roster persisted sheet=%s rows=%d width=%d", binding.sheet_name, len(rows), width
        )
        return len(rows)

    def notify_all(self, options: MessageOptions | None = None) -> BatchReport:
        """Email every recipient holding a certificate, in roster order."""

        report = BatchReport(stage="notify")
        for recipient in self._recipients:
            try:
                sent = recipient.notify(self._services.messenger, options, self._services.feedback)
            except Exception as exc:  # noqa: BLE001 - policy decides
                if self._record_failure(report, recipient, exc):
                    raise
                continue
            if sent:
                report.succeeded.append(recipient.email)
            else:
                report.skipped.append(recipient.email)
        self._logger.info("certificates.roster %s", report.summary())
        return report

    # Internal helpers -------------------------------------------------

    def _record_failure(self, report: BatchReport, recipient: Recipient, exc: Exception) -> bool:
        """Log a recipient failure; returns True when the batch must abort."""

        if self._failure_policy is FailurePolicy.ABORT:
            self._logger.error(
                "certificates.roster %s_aborted email=%s error=%s", report.stage, recipient.email, exc
            )
            return True
        self._logger.error(
            "certificates.roster %s_failed email=%s", report.stage, recipient.email, exc_info=exc
        )
        report.failed.append(
            RecipientFailure(email=recipient.email, name=recipient.name, stage=report.stage, error=exc)
        )
        return False


def _header_labels(row: Sequence[Any]) -> list[str]:
    return ["" if cell is None else str(cell) for cell in row]


def _find_column(headers: Sequence[str], header: str) -> int:
    try:
        return list(headers).index(header)
    except ValueError:
        return NOT_FOUND


def _require_column(headers: Sequence[str], header: str) -> int:
    index = _find_column(headers, header)
    if index == NOT_FOUND:
        raise ColumnNotFoundError(header, [h for h in headers if h])
    return index


def _cell_text(row: Sequence[Any], index: int) -> str:
    if index == NOT_FOUND or index >= len(row):
        return ""
    value = row[index]
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


__all__ = ["RosterProcessor", "ARTIFACT_NAME_PREFIX", "FIRST_DATA_ROW"]
