from typing import List


class QueryError(Exception):
    """Base exception for query evaluation.

    Subclasses carry a machine-readable ``kind`` which ends up in the
    ``errorKind`` field of the error response.
    """

    kind = "query_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadQuerySyntax(QueryError):
    """The query does not have the shape its function requires."""

    kind = "bad_query_syntax"


class UnknownMetric(QueryError):
    """The query references a metric the mock backend does not emulate."""

    kind = "unknown_metric"


class InvalidQuantile(QueryError):
    """The quantile argument is not a number in [0, 1]."""

    kind = "invalid_quantile"


class InvalidScenarioName(ValueError):
    """Raised by boundary validation when a scenario name is not in the catalog."""

    def __init__(self, name: str, valid_scenarios: List[str]):
        super().__init__(f"invalid scenario type: {name}")
        self.name = name
        self.valid_scenarios = valid_scenarios
