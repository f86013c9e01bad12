from typing import Any

from google.auth import exceptions as auth_exceptions

from .clients import (
    get_compute_instances_client,
    get_default_project_id,
    get_recommender_client,
    get_zone_operations_client,
)
from .config import Settings
from .core import APPLIED_MESSAGE, NOTHING_TO_DO_MESSAGE
from .exceptions import (
    AutosizerError,
    ClaimRecommendationError,
    RecommendationParseError,
)
from .logger import logger
from .parsers import instance_name_of, select_parser
from .schemas.compute import InstanceDescriptor
from .schemas.payload import Payload
from .schemas.recommender import MachineTypeChange
from .walkers import compute, recommender


def _state_of(recommendation: Any) -> str | None:
    # state_info.state is a State enum on real records
    state = getattr(getattr(recommendation, "state_info", None), "state", None)
    name = str(getattr(state, "name", state)) if state is not None else ""
    return None if name in ("", "STATE_UNSPECIFIED") else name


class RecommendationApplier:
    """
    Applies machine type recommendations to the labeled instances of a zone.

    Each matched instance goes through stop -> set machine type -> start,
    one instance at a time. The first failure aborts the remaining batch;
    instances already resized stay resized.
    """

    def __init__(
        self,
        project_id: str | None = None,
        settings: Settings | None = None,
        instances_client: Any = None,
        operations_client: Any = None,
        recommender_client: Any = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        try:
            self.project_id = (
                project_id or self.settings.project_id or get_default_project_id()
            )
        except auth_exceptions.DefaultCredentialsError as e:
            logger.error(f"Could not resolve the default project: {e}")
            raise AutosizerError(f"No default credentials: {e}") from e
        if not self.project_id:
            raise AutosizerError(
                "No project id: set GOOGLE_CLOUD_PROJECT or configure default credentials"
            )
        self.instances_client = instances_client or get_compute_instances_client()
        self.operations_client = operations_client or get_zone_operations_client()
        self.recommender_client = recommender_client or get_recommender_client()
        self.poll_config = self.settings.poll_config()

    def correlate(
        self,
        instances: list[InstanceDescriptor],
        recommendations: list[Any],
        zone: str,
    ) -> list[MachineTypeChange]:
        """
        Pairs recommendations with eligible instances by instance name.
        Recommendations for other instances, or whose machine types cannot
        be read, are skipped.
        """
        eligible = {instance.name for instance in instances}
        changes = []

        for rec in recommendations:
            try:
                instance_name = instance_name_of(rec)
            except RecommendationParseError as e:
                logger.warning(f"Skipping recommendation: {e}")
                continue

            if instance_name not in eligible:
                logger.debug(f"{instance_name} is not labeled for auto-sizing, skipping")
                continue

            state = _state_of(rec)
            if self.settings.mark_recommendations and state not in (None, "ACTIVE"):
                logger.info(f"Recommendation {rec.name} is {state}, skipping")
                continue

            parser = select_parser(rec)
            try:
                change = MachineTypeChange(
                    instance_name=instance_name,
                    current_type=parser.parse_current_type(rec),
                    recommended_type=parser.parse_recommended_type(rec),
                    target_machine_type=parser.target_machine_type(rec, zone),
                    recommendation_name=rec.name,
                    etag=rec.etag,
                )
            except RecommendationParseError as e:
                logger.warning(f"Skipping recommendation for {instance_name}: {e}")
                continue

            logger.info(
                f"Current instance type: {change.current_type}, "
                f"recommended: {change.recommended_type} "
                f"(new machine type {change.target_machine_type})"
            )
            changes.append(change)

        return changes

    def _fetch(self, payload: Payload) -> tuple[list[InstanceDescriptor], list[Any]]:
        instances = compute.list_instances(
            self.project_id, payload.label, payload.zone, client=self.instances_client
        )
        recommendations = recommender.list_recommendations(
            self.project_id,
            self.settings.recommender_id,
            payload.zone,
            client=self.recommender_client,
            active_only=self.settings.mark_recommendations,
        )
        return instances, recommendations

    def plan(self, payload: Payload) -> list[MachineTypeChange]:
        """Changes that run() would apply, without touching any instance."""
        instances, recommendations = self._fetch(payload)
        return self.correlate(instances, recommendations, payload.zone)

    def apply(self, change: MachineTypeChange, zone: str) -> bool:
        """
        Drives one instance through stop, resize and start.
        Returns False when the recommendation is already claimed elsewhere.
        """
        etag = change.etag
        lease = bool(self.settings.mark_recommendations and change.recommendation_name)
        if lease:
            claimed = recommender.claim_recommendation(
                change.recommendation_name, change.etag, client=self.recommender_client
            )
            if claimed is None:
                logger.warning(f"Skipping {change.instance_name}: recommendation claimed")
                return False
            etag = claimed

        kwargs = {
            "client": self.instances_client,
            "operations_client": self.operations_client,
            "poll_config": self.poll_config,
        }
        try:
            logger.info(f"Stopping the GCE instance {change.instance_name}")
            compute.stop_instance(self.project_id, zone, change.instance_name, **kwargs)

            logger.info(
                f"Applying sizing recommendation for instance {change.instance_name} "
                f"by changing machine type from {change.current_type} "
                f"to {change.recommended_type}"
            )
            compute.set_machine_type(
                self.project_id,
                zone,
                change.instance_name,
                change.target_machine_type,
                **kwargs,
            )

            logger.info(f"Restarting the GCE instance {change.instance_name}")
            compute.start_instance(self.project_id, zone, change.instance_name, **kwargs)
        except AutosizerError as e:
            if lease:
                self._release_failed(change, etag, e)
            raise

        if lease:
            try:
                recommender.mark_succeeded(
                    change.recommendation_name, etag, client=self.recommender_client
                )
            except ClaimRecommendationError as e:
                # The instance is resized; only the bookkeeping is lost
                logger.error(
                    f"Could not mark {change.recommendation_name} SUCCEEDED: {e}"
                )
        return True

    def _release_failed(
        self, change: MachineTypeChange, etag: str, error: Exception
    ) -> None:
        try:
            recommender.mark_failed(
                change.recommendation_name,
                etag,
                str(error),
                client=self.recommender_client,
            )
        except AutosizerError as mark_error:
            # The transition error is the one reported to the caller
            logger.error(
                f"Could not mark {change.recommendation_name} FAILED: {mark_error}"
            )

    def run(self, payload: Payload) -> str:
        """Applies every matching recommendation in the payload's zone."""
        instances, recommendations = self._fetch(payload)

        if not instances or not recommendations:
            message = NOTHING_TO_DO_MESSAGE.format(zone=payload.zone)
            logger.info(message)
            return message

        applied = 0
        for change in self.correlate(instances, recommendations, payload.zone):
            if self.apply(change, payload.zone):
                applied += 1

        message = f"{APPLIED_MESSAGE} ({applied} instance(s) resized)"
        logger.info(message)
        return message
