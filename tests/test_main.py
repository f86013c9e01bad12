import base64
import json
from types import SimpleNamespace

import pytest

from autosizer.exceptions import ListInstancesError, MissingField
from autosizer.main import apply_sizing_recommendations, handle_cloud_event, main
from autosizer.schemas.recommender import MachineTypeChange


def _data(body):
    return base64.b64encode(json.dumps(body).encode()).decode()


BODY = {"zone": "us-central1-a", "labelKey": "autosize", "labelValue": "true"}


def test_handler_reports_success_through_callback(mocker):
    mock_applier = mocker.patch("autosizer.main.RecommendationApplier")
    mock_applier.return_value.run.return_value = "Recommendations applied successfully"
    callback = mocker.Mock()

    result = apply_sizing_recommendations({"data": _data(BODY)}, None, callback)

    assert result == "Recommendations applied successfully"
    callback.assert_called_once_with(None, "Recommendations applied successfully")
    payload = mock_applier.return_value.run.call_args[0][0]
    assert payload.label == "autosize=true"


def test_handler_reports_failure_through_callback(mocker):
    mock_applier = mocker.patch("autosizer.main.RecommendationApplier")
    callback = mocker.Mock()

    body = {"zone": "us-central1-a", "labelKey": "autosize"}
    result = apply_sizing_recommendations({"data": _data(body)}, None, callback)

    assert result is None
    callback.assert_called_once()
    err = callback.call_args[0][0]
    assert isinstance(err, MissingField)
    assert err.field == "labelValue"
    # Validation fails before any remote call
    mock_applier.assert_not_called()


def test_handler_raises_without_callback(mocker):
    mock_applier = mocker.patch("autosizer.main.RecommendationApplier")
    mock_applier.return_value.run.side_effect = ListInstancesError("denied")

    with pytest.raises(ListInstancesError):
        apply_sizing_recommendations({"data": _data(BODY)}, None)


def test_cloud_event_handler(mocker):
    mock_applier = mocker.patch("autosizer.main.RecommendationApplier")
    mock_applier.return_value.run.return_value = "done"

    event = SimpleNamespace(data={"message": {"data": _data(BODY)}})

    assert handle_cloud_event(event) == "done"


def test_cli_dry_run_prints_plan(mocker, monkeypatch, capsys):
    mock_applier = mocker.patch("autosizer.main.RecommendationApplier")
    mock_applier.return_value.plan.return_value = [
        MachineTypeChange(
            instance_name="vm-a",
            current_type="e2-medium",
            recommended_type="e2-small",
            target_machine_type="zones/us-central1-a/machineTypes/e2-small",
        )
    ]
    monkeypatch.setattr(
        "sys.argv",
        ["autosizer", "--zone", "us-central1-a", "--label", "env=dev", "--dry-run"],
    )

    main()

    out = capsys.readouterr().out
    assert "vm-a" in out
    assert "e2-small" in out
    mock_applier.return_value.run.assert_not_called()
    assert mock_applier.call_args.kwargs["project_id"] is None


def test_cli_failure_exits_non_zero(mocker, monkeypatch):
    mock_applier = mocker.patch("autosizer.main.RecommendationApplier")
    mock_applier.return_value.run.side_effect = ListInstancesError("denied")
    monkeypatch.setattr(
        "sys.argv",
        [
            "autosizer",
            "--project-id",
            "my-project",
            "--zone",
            "us-central1-a",
            "--label-key",
            "env",
            "--label-value",
            "dev",
        ],
    )

    with pytest.raises(SystemExit) as exc_info:
        main()

    assert exc_info.value.code == 1
