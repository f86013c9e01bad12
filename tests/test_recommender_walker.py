import pytest
from google.api_core import exceptions

from autosizer.core import MACHINE_TYPE_RECOMMENDER
from autosizer.exceptions import ClaimRecommendationError, ListRecommendationsError
from autosizer.walkers.recommender import (
    claim_recommendation,
    list_recommendations,
    mark_failed,
    mark_succeeded,
)


def test_list_recommendations_parent(mocker):
    mock_get = mocker.patch("autosizer.walkers.recommender.get_recommender_client")
    mock_client = mock_get.return_value

    mock_rec = mocker.Mock()
    mock_client.list_recommendations.return_value = iter([mock_rec])

    recs = list_recommendations("test-project", MACHINE_TYPE_RECOMMENDER, "us-west1-b")

    assert recs == [mock_rec]
    request = mock_client.list_recommendations.call_args.kwargs["request"]
    assert request.parent == (
        "projects/test-project/locations/us-west1-b/recommenders/"
        "google.compute.instance.MachineTypeRecommender"
    )
    assert request.filter == ""


def test_list_recommendations_active_only(mocker):
    mock_client = mocker.Mock()
    mock_client.list_recommendations.return_value = iter([])

    list_recommendations(
        "p", MACHINE_TYPE_RECOMMENDER, "us-west1-b", client=mock_client, active_only=True
    )

    request = mock_client.list_recommendations.call_args.kwargs["request"]
    assert request.filter == "stateInfo.state = ACTIVE"


def test_list_recommendations_wraps_api_error(mocker):
    mock_client = mocker.Mock()
    mock_client.list_recommendations.side_effect = exceptions.PermissionDenied(
        "recommender.computeInstanceMachineTypeRecommendations.list"
    )

    with pytest.raises(ListRecommendationsError):
        list_recommendations("p", MACHINE_TYPE_RECOMMENDER, "us-west1-b", client=mock_client)


def test_claim_recommendation_returns_new_etag(mocker):
    mock_client = mocker.Mock()
    mock_client.mark_recommendation_claimed.return_value = mocker.Mock(etag='"etag-2"')

    etag = claim_recommendation("recommendations/r1", '"etag-1"', client=mock_client)

    assert etag == '"etag-2"'
    request = mock_client.mark_recommendation_claimed.call_args.kwargs["request"]
    assert request.name == "recommendations/r1"
    assert request.etag == '"etag-1"'


def test_claim_recommendation_stale_etag(mocker):
    mock_client = mocker.Mock()
    mock_client.mark_recommendation_claimed.side_effect = exceptions.FailedPrecondition(
        "etag mismatch"
    )

    assert claim_recommendation("recommendations/r1", "e", client=mock_client) is None


def test_claim_recommendation_other_errors_raise(mocker):
    mock_client = mocker.Mock()
    mock_client.mark_recommendation_claimed.side_effect = exceptions.PermissionDenied(
        "denied"
    )

    with pytest.raises(ClaimRecommendationError):
        claim_recommendation("recommendations/r1", "e", client=mock_client)


def test_mark_succeeded_and_failed(mocker):
    mock_client = mocker.Mock()

    mark_succeeded("recommendations/r1", "e2", client=mock_client)
    request = mock_client.mark_recommendation_succeeded.call_args.kwargs["request"]
    assert request.etag == "e2"

    mark_failed("recommendations/r2", "e3", "x" * 300, client=mock_client)
    request = mock_client.mark_recommendation_failed.call_args.kwargs["request"]
    assert request.name == "recommendations/r2"
    assert len(request.state_metadata["reason"]) == 250


def test_mark_succeeded_wraps_api_error(mocker):
    mock_client = mocker.Mock()
    mock_client.mark_recommendation_succeeded.side_effect = exceptions.Aborted("busy")

    with pytest.raises(ClaimRecommendationError):
        mark_succeeded("recommendations/r1", "e2", client=mock_client)
