from types import SimpleNamespace

import pytest

RESOURCE = "//compute.googleapis.com/projects/test-project/zones/us-central1-a/instances/{}"


def _recommendation(
    instance,
    description="",
    pattern="",
    value=None,
    name=None,
    etag='"etag-1"',
    state=None,
):
    operations = [
        SimpleNamespace(
            resource=RESOURCE.format(instance) if instance else "",
            action="test",
            path="/machineType",
            value_matcher=SimpleNamespace(matches_pattern=pattern),
            value=None,
        )
    ]
    if value is not None:
        operations.append(
            SimpleNamespace(
                resource=RESOURCE.format(instance),
                action="replace",
                path="/machineType",
                value_matcher=SimpleNamespace(matches_pattern=""),
                value=value,
            )
        )

    return SimpleNamespace(
        name=name or f"recommendations/{instance}",
        etag=etag,
        state_info=SimpleNamespace(state=state) if state else None,
        description=description,
        content=SimpleNamespace(
            operation_groups=[SimpleNamespace(operations=operations)]
        ),
    )


@pytest.fixture
def make_recommendation():
    """Factory for Recommender records shaped like recommender_v1.Recommendation."""
    return _recommendation
