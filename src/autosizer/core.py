# Recommender that produces machine-type (right-sizing) recommendations
MACHINE_TYPE_RECOMMENDER = "google.compute.instance.MachineTypeRecommender"

# Operation polling defaults (see Settings.poll_config)
POLL_TIMEOUT_SECONDS = 600.0
POLL_MAX_ATTEMPTS = 60
POLL_MIN_WAIT = 1.0
POLL_MAX_WAIT = 30.0

# Terminal status of a Compute Engine zone operation
OPERATION_DONE = "DONE"

# Outcome messages reported to the invoking runtime
APPLIED_MESSAGE = "Recommendations applied successfully"
NOTHING_TO_DO_MESSAGE = (
    "Nothing to do here: either there is no machine type recommendations, "
    "or there is no GCE instances eligible for auto-sizing "
    "in the specified zone ({zone})"
)
