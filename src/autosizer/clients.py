from __future__ import annotations

from functools import lru_cache
from typing import Any

import google.auth
from google.cloud import compute_v1, recommender_v1

# Shared Client Registry (Lazy-loaded and cached)


@lru_cache(maxsize=1)
def get_compute_instances_client() -> Any:
    return compute_v1.InstancesClient()


@lru_cache(maxsize=1)
def get_zone_operations_client() -> Any:
    return compute_v1.ZoneOperationsClient()


@lru_cache(maxsize=1)
def get_recommender_client() -> Any:
    return recommender_v1.RecommenderClient()


@lru_cache(maxsize=1)
def get_default_project_id() -> str | None:
    # Note: Authentication is handled by google-auth automatically
    # using environment variables or gcloud default credentials.
    _credentials, project_id = google.auth.default()
    return project_id  # type: ignore[no-any-return]
