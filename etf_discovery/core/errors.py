class DiscoveryError(Exception):
    pass


class MalformedQueryError(DiscoveryError):
    pass


class CatalogUnavailableError(DiscoveryError):
    pass


class RuleSetNotFoundError(DiscoveryError):
    pass


class RuleSetPublishError(DiscoveryError):
    pass


class MissingAttributeError(DiscoveryError):
    def __init__(self, attribute: str) -> None:
        super().__init__(f"missing required attribute: {attribute}")
        self.attribute = attribute


class ConstraintEvaluationError(DiscoveryError):
    def __init__(self, constraint: str, reason: str) -> None:
        super().__init__(f"{constraint}: {reason}")
        self.constraint = constraint
        self.reason = reason


class DiscoveryTimeoutError(DiscoveryError):
    pass
