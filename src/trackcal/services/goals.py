"""Goal settings service."""

from dataclasses import dataclass
from typing import Protocol

from trackcal.domain.stats import Goals

DEFAULT_CALORIE_GOAL = 2000
DEFAULT_PROTEIN_GOAL = 150

CALORIE_GOAL_KEY = "cal_goal"
PROTEIN_GOAL_KEY = "prot_goal"
CREDENTIAL_KEY = "llm_api_key"


class GoalSettingsRepository(Protocol):
    """Persistence interface for goal settings."""

    def get_value(self, key: str) -> str | None:
        """Return a stored setting value if set."""

    def set_values(self, values: dict[str, str]) -> None:
        """Store several settings at once."""


@dataclass
class GoalSettingsService:
    """Service for daily goals and the model credential."""

    repository: GoalSettingsRepository

    def get_calorie_goal(self) -> int:
        """Return the calorie goal or the default if unset."""
        return self._get_int(CALORIE_GOAL_KEY, DEFAULT_CALORIE_GOAL)

    def get_protein_goal(self) -> int:
        """Return the protein goal or the default if unset."""
        return self._get_int(PROTEIN_GOAL_KEY, DEFAULT_PROTEIN_GOAL)

    def get_credential(self) -> str:
        """Return the stored model credential, empty if unset."""
        return self.repository.get_value(CREDENTIAL_KEY) or ""

    def get_goals(self) -> Goals:
        """Return both goals."""
        return Goals(calories=self.get_calorie_goal(), protein=self.get_protein_goal())

    def save(self, calorie_goal: int, protein_goal: int, credential: str) -> None:
        """Persist goals and credential together."""
        self.repository.set_values(
            {
                CALORIE_GOAL_KEY: str(calorie_goal),
                PROTEIN_GOAL_KEY: str(protein_goal),
                CREDENTIAL_KEY: credential,
            }
        )

    def _get_int(self, key: str, default: int) -> int:
        raw = self.repository.get_value(key)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            return default
