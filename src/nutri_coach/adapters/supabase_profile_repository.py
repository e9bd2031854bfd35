"""Supabase repository for user profiles, goals and health conditions."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from nutri_coach.domain.profile import (
    HealthCondition,
    UserGoal,
    UserGoalProfile,
    UserProfile,
    parse_activity_level,
    parse_weight_goal,
)
from nutri_coach.services.profiles import ProfileRepository


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for profile persistence."""

    client: Client

    def get_profile(self, user_id: str) -> UserProfile | None:
        """Assemble the profile from users, conditions, goals and restrictions."""
        response = (
            self.client.table("users")
            .select("id, name, age, weight, height, activity_level, goal")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        goal_profile = UserGoalProfile(
            weight_goal=parse_weight_goal(row.get("goal")),
            activity_level=parse_activity_level(row.get("activity_level")),
            health_conditions=self._health_conditions(user_id),
            dietary_restrictions=self._dietary_restrictions(user_id),
        )
        return UserProfile(
            id=str(row["id"]),
            name=row.get("name"),
            goal_profile=goal_profile,
            goals=self._goals(user_id),
            age=row.get("age"),
            weight_kg=_optional_float(row.get("weight")),
            height_cm=_optional_float(row.get("height")),
        )

    def create_goal(self, user_id: str, goal: UserGoal) -> str:
        """Insert a goal row and return its id."""
        response = (
            self.client.table("user_goals")
            .insert({"user_id": user_id, **_goal_row(goal)})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create goal")
        return str(response.data[0]["id"])

    def update_goal(self, user_id: str, goal_id: str, goal: UserGoal) -> None:
        """Update a goal row owned by the user."""
        (
            self.client.table("user_goals")
            .update(_goal_row(goal))
            .eq("id", goal_id)
            .eq("user_id", user_id)
            .execute()
        )

    def create_health_condition(self, user_id: str, condition: HealthCondition) -> str:
        """Insert a health condition row and return its id."""
        response = (
            self.client.table("health_conditions")
            .insert({"user_id": user_id, **_condition_row(condition)})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create health condition")
        return str(response.data[0]["id"])

    def update_health_condition(
        self, user_id: str, condition_id: str, condition: HealthCondition
    ) -> None:
        """Update a health condition row owned by the user."""
        (
            self.client.table("health_conditions")
            .update(_condition_row(condition))
            .eq("id", condition_id)
            .eq("user_id", user_id)
            .execute()
        )

    def upsert_dietary_restrictions(
        self, user_id: str, restrictions: list[str]
    ) -> None:
        """Replace the user's restriction list."""
        self.client.table("dietary_restrictions").upsert(
            {
                "user_id": user_id,
                "restrictions": restrictions,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).execute()

    def _health_conditions(self, user_id: str) -> list[HealthCondition]:
        response = (
            self.client.table("health_conditions")
            .select("id, name, type, severity, restrictions, notes")
            .eq("user_id", user_id)
            .execute()
        )
        return [
            HealthCondition(
                id=str(row["id"]),
                name=str(row.get("name", "")),
                type=str(row.get("type") or "chronic"),
                severity=str(row.get("severity") or "moderate"),
                restrictions=list(row.get("restrictions") or []),
                notes=row.get("notes"),
            )
            for row in response.data or []
        ]

    def _goals(self, user_id: str) -> list[UserGoal]:
        response = (
            self.client.table("user_goals")
            .select("id, type, target, target_value, current_value, is_active, notes")
            .eq("user_id", user_id)
            .eq("is_active", True)
            .execute()
        )
        return [
            UserGoal(
                id=str(row["id"]),
                type=str(row.get("type") or "weight"),
                target=str(row.get("target", "")),
                target_value=_optional_float(row.get("target_value")),
                current_value=_optional_float(row.get("current_value")),
                is_active=bool(row.get("is_active", True)),
                notes=row.get("notes"),
            )
            for row in response.data or []
        ]

    def _dietary_restrictions(self, user_id: str) -> list[str]:
        response = (
            self.client.table("dietary_restrictions")
            .select("restrictions")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return []
        return list(response.data[0].get("restrictions") or [])


def _goal_row(goal: UserGoal) -> dict[str, object]:
    return {
        "type": goal.type,
        "target": goal.target,
        "target_value": goal.target_value,
        "current_value": goal.current_value,
        "is_active": goal.is_active,
        "notes": goal.notes,
    }


def _condition_row(condition: HealthCondition) -> dict[str, object]:
    return {
        "name": condition.name,
        "type": condition.type,
        "severity": condition.severity,
        "restrictions": list(condition.restrictions),
        "notes": condition.notes,
    }


def _optional_float(value: object) -> float | None:
    if isinstance(value, int | float) and not isinstance(value, bool):
        return float(value)
    return None
