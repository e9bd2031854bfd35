"""User profile lookups and goal/condition upserts."""

from dataclasses import dataclass
from typing import Protocol

from nutri_coach.domain.profile import HealthCondition, UserGoal, UserProfile


class ProfileRepository(Protocol):
    """Persistence interface for user profiles."""

    def get_profile(self, user_id: str) -> UserProfile | None:
        """Return the full profile for a user, if present."""

    def create_goal(self, user_id: str, goal: UserGoal) -> str:
        """Insert a goal and return its id."""

    def update_goal(self, user_id: str, goal_id: str, goal: UserGoal) -> None:
        """Update one of the user's existing goals."""

    def create_health_condition(self, user_id: str, condition: HealthCondition) -> str:
        """Insert a health condition and return its id."""

    def update_health_condition(
        self, user_id: str, condition_id: str, condition: HealthCondition
    ) -> None:
        """Update one of the user's existing health conditions."""

    def upsert_dietary_restrictions(
        self, user_id: str, restrictions: list[str]
    ) -> None:
        """Replace the user's dietary restrictions."""


@dataclass
class ProfileService:
    """Application service for profile reads and id-or-create writes."""

    repository: ProfileRepository

    def get_current_profile(self, user_id: str) -> UserProfile | None:
        """Return the user's profile, if one exists."""
        return self.repository.get_profile(user_id)

    def upsert_goal(self, user_id: str, goal: UserGoal) -> str:
        """Update the goal when it carries an id, otherwise create it."""
        if goal.id:
            self.repository.update_goal(user_id, goal.id, goal)
            return goal.id
        return self.repository.create_goal(user_id, goal)

    def upsert_health_condition(self, user_id: str, condition: HealthCondition) -> str:
        """Update the condition when it carries an id, otherwise create it."""
        if condition.id:
            self.repository.update_health_condition(user_id, condition.id, condition)
            return condition.id
        return self.repository.create_health_condition(user_id, condition)

    def update_dietary_restrictions(
        self, user_id: str, restrictions: list[str]
    ) -> None:
        """Replace the user's dietary restrictions, dropping blanks and duplicates."""
        cleaned: list[str] = []
        for restriction in restrictions:
            value = restriction.strip()
            if value and value not in cleaned:
                cleaned.append(value)
        self.repository.upsert_dietary_restrictions(user_id, cleaned)
