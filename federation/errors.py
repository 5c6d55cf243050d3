class FederationError(Exception):
    pass

class ConfigurationError(FederationError, ValueError):
    """Invalid or missing provisioning input."""

class ProvisioningError(FederationError):
    """A provisioning step failed; the sequence stopped there."""

    def __init__(self, step: str, detail: str):
        super().__init__(f"provisioning failed at step {step}: {detail}")
        self.step = step
        self.detail = detail
