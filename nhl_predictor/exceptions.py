"""
Error taxonomy for the prediction service.

DataUnavailable and UpstreamUnavailable propagate to callers. ComputationFault
never leaves the models package: the advantage and prediction code converts it
into a neutral result.
"""


class PredictorError(Exception):
    """Base class for prediction service errors."""


class DataUnavailable(PredictorError):
    """The stats provider returned no season records for a team."""

    def __init__(self, team_id):
        self.team_id = team_id
        super().__init__(f"No season stats available for team {team_id}")


class UpstreamUnavailable(PredictorError):
    """A stats or game source request failed (network error or non-2xx)."""

    def __init__(self, source: str, detail: str = ""):
        self.source = source
        self.detail = detail
        message = f"{source} request failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ComputationFault(PredictorError):
    """Arithmetic or shape error while deriving advantages or probabilities."""
