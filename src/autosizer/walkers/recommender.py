from typing import Any

from google.api_core import exceptions
from google.cloud import recommender_v1

from ..clients import get_recommender_client
from ..exceptions import ClaimRecommendationError, ListRecommendationsError
from ..logger import logger

ACTIVE_FILTER = "stateInfo.state = ACTIVE"


def list_recommendations(
    project_id: str,
    recommender_id: str,
    zone: str,
    client: Any = None,
    active_only: bool = False,
) -> list[Any]:
    """
    Lists the recommendations of one recommender in a zone.
    With active_only, records already claimed, succeeded, failed or
    dismissed are filtered out server-side.
    """
    client = client or get_recommender_client()
    parent = f"projects/{project_id}/locations/{zone}/recommenders/{recommender_id}"

    try:
        request = recommender_v1.ListRecommendationsRequest(
            parent=parent, filter=ACTIVE_FILTER if active_only else ""
        )
        results = list(client.list_recommendations(request=request))
    except exceptions.GoogleAPICallError as e:
        logger.error(f"Failed to list recommendations for {parent}: {e}")
        raise ListRecommendationsError(
            f"Error while trying to get the list of GCE sizing recommendations: {e}"
        ) from e

    logger.debug(f"{len(results)} recommendation(s) from {parent}")
    return results


def claim_recommendation(name: str, etag: str, client: Any = None) -> str | None:
    """
    Marks a recommendation CLAIMED and returns its new etag.
    Returns None when the etag is stale, i.e. another run already claimed
    or resolved it.
    """
    client = client or get_recommender_client()
    try:
        claimed = client.mark_recommendation_claimed(
            request=recommender_v1.MarkRecommendationClaimedRequest(
                name=name, etag=etag
            )
        )
    except exceptions.FailedPrecondition as e:
        logger.warning(f"Recommendation {name} is already claimed: {e}")
        return None
    except exceptions.GoogleAPICallError as e:
        logger.error(f"Failed to claim recommendation {name}: {e}")
        raise ClaimRecommendationError(
            f"Error claiming recommendation {name}: {e}"
        ) from e

    logger.debug(f"Recommendation {name} marked CLAIMED")
    return str(claimed.etag)


def mark_succeeded(name: str, etag: str, client: Any = None) -> None:
    client = client or get_recommender_client()
    try:
        client.mark_recommendation_succeeded(
            request=recommender_v1.MarkRecommendationSucceededRequest(
                name=name, etag=etag
            )
        )
    except exceptions.GoogleAPICallError as e:
        logger.error(f"Failed to mark recommendation {name} SUCCEEDED: {e}")
        raise ClaimRecommendationError(
            f"Error marking recommendation {name} succeeded: {e}"
        ) from e

    logger.debug(f"Recommendation {name} marked SUCCEEDED")


def mark_failed(name: str, etag: str, reason: str, client: Any = None) -> None:
    client = client or get_recommender_client()
    try:
        client.mark_recommendation_failed(
            request=recommender_v1.MarkRecommendationFailedRequest(
                name=name, etag=etag, state_metadata={"reason": reason[:250]}
            )
        )
    except exceptions.GoogleAPICallError as e:
        logger.error(f"Failed to mark recommendation {name} FAILED: {e}")
        raise ClaimRecommendationError(
            f"Error marking recommendation {name} failed: {e}"
        ) from e

    logger.debug(f"Recommendation {name} marked FAILED")
