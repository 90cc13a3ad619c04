"""Single certificate pipeline: copy template, substitute, export, store."""

from __future__ import annotations

import logging

from certflow.core.errors import ArtifactGenerationError, ConfigError
from certflow.core.logger import get_logger
from certflow.services.google.models import PDF_MIME_TYPE

from .contracts import WorkspaceServices
from .models import ProcessConfiguration

LOGGER = get_logger()


class ArtifactGenerator:
    """Produce one PDF certificate from the configured Slides template.

    Configure with the fluent setters, then call :meth:`generate`. There is no
    retry and no rollback: when substitution, export or upload fails the copy
    created in the destination folder stays there and the error propagates.
    """

    def __init__(
        self,
        config: ProcessConfiguration,
        services: WorkspaceServices,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._services = services
        self._logger = logger or LOGGER
        self._replacement = ""
        self._artifact_name = ""
        self._discard_intermediate = False
        self._artifact_reference = ""
        self._intermediate_reference = ""

    def set_placeholder_replacement(self, text: str) -> "ArtifactGenerator":
        self._replacement = text
        return self

    def set_artifact_name(self, name: str) -> "ArtifactGenerator":
        self._artifact_name = name
        return self

    def set_discard_intermediate(self, discard: bool) -> "ArtifactGenerator":
        self._discard_intermediate = bool(discard)
        return self

    @property
    def artifact_reference(self) -> str:
        return self._artifact_reference

    @property
    def intermediate_reference(self) -> str:
        """Id of the Slides copy made by the last :meth:`generate` call."""

        return self._intermediate_reference

    def get_artifact_reference(self) -> str:
        return self._artifact_reference

    def generate(self) -> "ArtifactGenerator":
        if not self._artifact_name.strip():
            raise ConfigError("Artifact name must be set before generating")

        services = self._services
        self._artifact_reference = ""
        self._intermediate_reference = ""

        folder = services.container.get_folder(self._config.destination_folder_id)
        copy_id = services.template_store.copy_file(
            self._config.template_id,
            parent_id=folder.id,
            name=self._artifact_name,
        )
        self._intermediate_reference = copy_id
        self._logger.info(
            "certificates.generator copied template=%s copy_id=%s name=%s",
            self._config.template_id,
            copy_id,
            self._artifact_name,
        )

        services.editor.replace_all_text(
            copy_id,
            self._config.placeholder,
            self._replacement,
            match_case=False,
        )
        pdf = services.template_store.export_file(copy_id, PDF_MIME_TYPE)
        if not pdf:
            raise ArtifactGenerationError(f"PDF export of {copy_id} returned no content")
        self._artifact_reference = services.container.create_file(
            folder.id,
            name=f"{self._artifact_name}.pdf",
            content=pdf,
            mime_type=PDF_MIME_TYPE,
        )

        if self._discard_intermediate:
            services.template_store.set_trashed(copy_id, True)

        self._logger.info(
            "certificates.generator created name=%s artifact=%s discarded_copy=%s",
            self._artifact_name,
            self._artifact_reference,
            self._discard_intermediate,
        )
        services.feedback.emit(f"{self._artifact_name} successfully created")
        return self


__all__ = ["ArtifactGenerator"]
