from typing import Any

from google.api_core import exceptions
from google.cloud import compute_v1
from tenacity import RetryError, Retrying, retry_if_result

from ..clients import get_compute_instances_client, get_zone_operations_client
from ..config import Settings
from ..core import OPERATION_DONE
from ..exceptions import (
    ListInstancesError,
    OperationTimeoutError,
    ResizeError,
    StartError,
    StopError,
)
from ..logger import logger
from ..schemas.compute import InstanceDescriptor


def list_instances(
    project_id: str, label: str, zone: str, client: Any = None
) -> list[InstanceDescriptor]:
    """
    Lists instances in a zone that carry the given label ("key=value").
    Not cached and not retried: eligibility is read fresh on every run.
    """
    client = client or get_compute_instances_client()
    request = compute_v1.ListInstancesRequest(
        project=project_id, zone=zone, filter=f"labels.{label}"
    )

    results = []
    try:
        # The client library handles pagination automatically when iterating
        for instance in client.list(request=request):
            results.append(InstanceDescriptor(name=instance.name))
    except exceptions.GoogleAPICallError as e:
        logger.error(f"Failed to list instances labeled {label} in {zone}: {e}")
        raise ListInstancesError(
            f"Error while trying to get the list of GCE instances: {e}"
        ) from e

    logger.debug(f"{len(results)} instance(s) labeled {label} in {zone}")
    return results


def _is_done(operation: Any) -> bool:
    # status is an Operation.Status enum on real responses
    status = operation.status
    return getattr(status, "name", status) == OPERATION_DONE


def _raise_for_error(operation: Any) -> None:
    """A DONE operation can still have failed, e.g. ZONE_RESOURCE_POOL_EXHAUSTED."""
    error = getattr(operation, "error", None)
    errors = list(getattr(error, "errors", None) or [])
    code = getattr(operation, "http_error_status_code", 0) or 0
    if not errors and code < 400:
        return

    detail = "; ".join(f"{e.code}: {e.message}" for e in errors) or "unknown error"
    logger.error(f"Operation {operation.name} finished with errors: {detail}")
    raise exceptions.from_http_status(
        code or 500, f"Operation {operation.name} failed: {detail}"
    )


def wait_for_operation(
    project_id: str,
    operation: Any,
    client: Any = None,
    poll_config: dict[str, Any] | None = None,
) -> Any:
    """
    Polls a zone operation until its status is DONE.
    Waits between polls and gives up according to poll_config (tenacity
    stop/wait kwargs), raising OperationTimeoutError. Errors from the
    operations endpoint propagate untouched, and a DONE operation that
    carries errors raises the matching GoogleAPICallError.
    """
    if _is_done(operation):
        _raise_for_error(operation)
        return operation

    client = client or get_zone_operations_client()
    poll_config = poll_config or Settings().poll_config()
    name = operation.name
    zone = operation.zone.split("/")[-1]

    def _poll() -> Any:
        return client.wait(
            request=compute_v1.WaitZoneOperationRequest(
                project=project_id, zone=zone, operation=name
            )
        )

    retryer = Retrying(
        retry=retry_if_result(lambda op: not _is_done(op)), **poll_config
    )
    try:
        done = retryer(_poll)
    except RetryError as e:
        attempts = e.last_attempt.attempt_number
        logger.error(f"Operation {name} in {zone} timed out after {attempts} poll(s)")
        raise OperationTimeoutError(name, attempts) from e

    _raise_for_error(done)
    return done


def stop_instance(
    project_id: str,
    zone: str,
    instance_name: str,
    client: Any = None,
    operations_client: Any = None,
    poll_config: dict[str, Any] | None = None,
) -> None:
    """Stops an instance and waits until it is TERMINATED."""
    client = client or get_compute_instances_client()
    try:
        operation = client.stop_unary(
            request=compute_v1.StopInstanceRequest(
                project=project_id, zone=zone, instance=instance_name
            )
        )
        wait_for_operation(project_id, operation, operations_client, poll_config)
    except exceptions.GoogleAPICallError as e:
        logger.error(f"Failed to stop {instance_name}: {e}")
        raise StopError(f"Error stopping instance {instance_name}: {e}") from e

    logger.info(f"Instance {instance_name} is stopped.")


def set_machine_type(
    project_id: str,
    zone: str,
    instance_name: str,
    machine_type: str,
    client: Any = None,
    operations_client: Any = None,
    poll_config: dict[str, Any] | None = None,
) -> None:
    """
    Changes the machine type of a stopped instance.
    Blocks until the control plane confirms the change.
    """
    client = client or get_compute_instances_client()
    try:
        operation = client.set_machine_type_unary(
            request=compute_v1.SetMachineTypeInstanceRequest(
                project=project_id,
                zone=zone,
                instance=instance_name,
                instances_set_machine_type_request_resource=(
                    compute_v1.InstancesSetMachineTypeRequest(machine_type=machine_type)
                ),
            )
        )
        wait_for_operation(project_id, operation, operations_client, poll_config)
    except exceptions.GoogleAPICallError as e:
        logger.error(f"Failed to set machine type of {instance_name}: {e}")
        raise ResizeError(f"Error setting machine type: {e}") from e

    logger.info(f"Done applying machine type {machine_type} to {instance_name}")


def start_instance(
    project_id: str,
    zone: str,
    instance_name: str,
    client: Any = None,
    operations_client: Any = None,
    poll_config: dict[str, Any] | None = None,
) -> None:
    """Starts an instance and waits until the start operation is DONE."""
    client = client or get_compute_instances_client()
    try:
        operation = client.start_unary(
            request=compute_v1.StartInstanceRequest(
                project=project_id, zone=zone, instance=instance_name
            )
        )
        wait_for_operation(project_id, operation, operations_client, poll_config)
    except exceptions.GoogleAPICallError as e:
        logger.error(f"Failed to start {instance_name}: {e}")
        raise StartError(f"Error starting instance {instance_name}: {e}") from e

    logger.info(f"Instance {instance_name} is started.")
