# src/expunge/service.py
"""Collaborator wiring for the cleanup service.

Builds the secret manager, database handle, blob store and orchestrator
from validated settings. Secret references are resolved here, once, at
startup; a missing secret stops the service before it accepts requests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from expunge.contracts.errors import ConfigurationError, SecretNotFoundError
from expunge.core.blob_store import AzureBlobStore, FilesystemBlobStore
from expunge.core.database import ExposureDB
from expunge.core.retention import (
    BlobPurger,
    CleanupOrchestrator,
    RecordLocator,
    RecordPurger,
    RetentionPolicy,
)
from expunge.core.retry import RetryConfig
from expunge.core.secrets import EnvSecretManager, FileSecretManager, resolve_secret_refs
from expunge.telemetry import LogsMetricsExporter

if TYPE_CHECKING:
    from expunge.contracts.blob_store import BlobStore
    from expunge.contracts.secrets import SecretManager
    from expunge.core.config import ExpungeSettings
    from expunge.telemetry import MetricsExporter

logger = structlog.get_logger(__name__)


def build_secret_manager(settings: ExpungeSettings) -> SecretManager:
    if settings.secrets.backend == "file":
        # Validator guarantees directory is set for the file backend
        assert settings.secrets.directory is not None
        return FileSecretManager(settings.secrets.directory)
    return EnvSecretManager(prefix=settings.secrets.prefix)


def _resolve(value: str | None, secrets: SecretManager, setting: str) -> str | None:
    try:
        return resolve_secret_refs(value, secrets)
    except SecretNotFoundError as e:
        raise ConfigurationError(f"{setting}: {e}") from e


def open_database(settings: ExpungeSettings, secrets: SecretManager) -> ExposureDB:
    """Open the database handle. The caller owns it and must close it.

    Raises:
        ConfigurationError: If the URL's secret cannot be resolved
        StorageUnavailable: If the database cannot be reached
    """
    url = _resolve(settings.database.url, secrets, "database.url")
    assert url is not None
    return ExposureDB.from_url(
        url,
        pool_size=settings.database.pool_size,
        echo=settings.database.echo,
        create_tables=settings.database.create_tables,
    )


def build_blob_store(settings: ExpungeSettings, secrets: SecretManager) -> BlobStore:
    """Build the configured blob store backend.

    Raises:
        ConfigurationError: If a credential secret cannot be resolved
    """
    blob_settings = settings.blob_store
    if blob_settings.backend == "filesystem":
        return FilesystemBlobStore(blob_settings.base_path.expanduser())

    # Validator guarantees azure auth is present for the azure backend
    assert blob_settings.azure is not None
    auth = blob_settings.azure
    resolved = auth.model_copy(
        update={
            "connection_string": _resolve(auth.connection_string, secrets, "blob_store.azure.connection_string"),
            "sas_token": _resolve(auth.sas_token, secrets, "blob_store.azure.sas_token"),
        }
    )
    logger.info("blob_store_configured", backend="azure", auth_method=resolved.auth_method)
    return AzureBlobStore(resolved.create_blob_service_client())


def build_orchestrator(
    settings: ExpungeSettings,
    db: ExposureDB,
    store: BlobStore,
    *,
    metrics: MetricsExporter | None = None,
) -> CleanupOrchestrator:
    """Assemble the production CleanupRunner.

    Raises:
        ConfigurationError: If retention or cleanup settings are invalid
    """
    return CleanupOrchestrator(
        policy=RetentionPolicy.from_settings(settings.retention),
        locator=RecordLocator(db),
        blob_purger=BlobPurger(store, max_concurrency=settings.cleanup.blob_concurrency),
        record_purger=RecordPurger(db),
        batch_size=settings.cleanup.batch_size,
        metrics=metrics if metrics is not None else LogsMetricsExporter(),
        retry=RetryConfig.from_settings(settings.retry),
    )
