"""Dashboard response schemas."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DashboardStats(BaseModel):
    """Aggregate member counts."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_members: int
    active_members: int
    unpaid_members: int
    expiring_members: int
