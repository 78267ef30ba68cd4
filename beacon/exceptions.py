class BeaconError(Exception):
    """Base class for errors raised by the monitoring core."""


class StorageError(BeaconError):
    """A check result or endpoint update could not be persisted."""


class EndpointNotFound(BeaconError):
    def __init__(self, endpoint_id):
        super().__init__(f"Endpoint {endpoint_id} not found")
        self.endpoint_id = endpoint_id


class PlanNotFound(BeaconError):
    """The endpoint's owner has no active subscription."""


class PlanLimitReached(BeaconError):
    def __init__(self, plan_name: str, limit: int):
        super().__init__(f"Endpoint limit reached for {plan_name} plan")
        self.plan_name = plan_name
        self.limit = limit
