"""
Store construction.

Credentials are resolved in this order:
1. `bigquery.credentials_json` (`GOOGLE_APPLICATION_CREDENTIALS_JSON`): inline service-account JSON,
2. `bigquery.credentials_file` (`GOOGLE_APPLICATION_CREDENTIALS`): service-account key file,
3. Application Default Credentials (Cloud Run, GCE, `gcloud auth application-default login`).

Build the client once at process start and inject it; nothing here is cached globally.
"""

from __future__ import annotations

import json
import logging

from google.cloud import bigquery
from google.oauth2 import service_account

from fiberviability.config.settings import Settings
from fiberviability.core.env import resolve_project_path
from fiberviability.store.base import NodeStore
from fiberviability.store.bigquery import BigQueryNodeStore
from fiberviability.store.local import LocalNodeStore

logger = logging.getLogger(__name__)


def build_bigquery_client(settings: Settings) -> bigquery.Client:
    """Return a BigQuery client; `settings.bigquery.location` becomes the default job location."""
    bq = settings.bigquery

    if bq.credentials_json:
        try:
            info = json.loads(bq.credentials_json)
        except json.JSONDecodeError as exc:
            raise ValueError("GOOGLE_APPLICATION_CREDENTIALS_JSON is not valid JSON") from exc
        if not isinstance(info, dict):
            raise ValueError("GOOGLE_APPLICATION_CREDENTIALS_JSON must be a JSON object")
        credentials = service_account.Credentials.from_service_account_info(info)
        project = info.get("project_id") or bq.project_id
        logger.info("BigQuery: using inline service-account credentials (project=%s)", project)
        return bigquery.Client(project=project, credentials=credentials, location=bq.location)

    if bq.credentials_file:
        key_path = resolve_project_path(bq.credentials_file)
        credentials = service_account.Credentials.from_service_account_file(str(key_path))
        logger.info("BigQuery: using service-account key file %s (project=%s)", key_path, bq.project_id)
        return bigquery.Client(project=bq.project_id, credentials=credentials, location=bq.location)

    logger.info("BigQuery: using Application Default Credentials (project=%s)", bq.project_id)
    return bigquery.Client(project=bq.project_id, location=bq.location)


def build_store(settings: Settings, client: bigquery.Client | None = None) -> NodeStore:
    """Build the configured node store (`store.backend`)."""
    if settings.store.backend == "local":
        return LocalNodeStore.from_path(resolve_project_path(settings.store.local_dataset_path), settings)
    logger.info(
        "BigQuery store: project=%s dataset=%s view=%s location=%s",
        settings.bigquery.project_id,
        settings.bigquery.dataset,
        settings.bigquery.view,
        settings.bigquery.location,
    )
    return BigQueryNodeStore(client or build_bigquery_client(settings), settings)
