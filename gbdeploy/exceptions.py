class GbDeployError(Exception):
    reason = "Unknown"

    def __init__(self, message=None):
        if message is None:
            message = self.reason
        super().__init__(message)


class DeploymentError(GbDeployError):
    pass


class FactoryNotFound(DeploymentError):
    reason = "FactoryNotFound"


class InitializationReverted(DeploymentError):
    reason = "InitializationReverted"


class NetworkTimeout(DeploymentError):
    """Waiting for the network failed. Callers may retry, nothing is retried here."""

    reason = "NetworkTimeout"


class ImplementationDeploymentFailed(DeploymentError):
    reason = "ImplementationDeploymentFailed"


class ResolutionError(GbDeployError):
    pass


class HandleNotConfirmed(ResolutionError):
    reason = "HandleNotConfirmed"


class StorageSlotUnreadable(ResolutionError):
    reason = "StorageSlotUnreadable"


class SnapshotError(GbDeployError):
    reason = "SnapshotError"


class FixtureNotFound(GbDeployError):
    reason = "FixtureNotFound"


class AmbiguousFixture(GbDeployError):
    reason = "AmbiguousFixture"
