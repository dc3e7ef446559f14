"""Supabase repository for planning profiles."""

from dataclasses import dataclass

from supabase import Client

from meal_planner.domain.profile import PlanningProfile
from meal_planner.services.runs import ProfileRepository


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for agent profiles."""

    client: Client

    def get_profile(self, user_id: str) -> PlanningProfile:
        """Return the stored profile, or defaults when none exists."""
        response = (
            self.client.table("agent_profiles")
            .select("*")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return PlanningProfile()
        row = response.data[0]
        return PlanningProfile.from_dict(
            {
                "optimizationGoal": row.get("optimization_goal"),
                "strictness": row.get("strictness"),
                "hardConstraints": row.get("hard_constraints"),
                "softPreferences": row.get("soft_preferences"),
                "nutritionTargets": row.get("nutrition_targets"),
                "profileMetrics": row.get("profile_metrics"),
                "planPreferences": row.get("plan_preferences"),
                "medicalDisclaimerAcceptedAt": row.get(
                    "medical_disclaimer_accepted_at"
                ),
            }
        )
