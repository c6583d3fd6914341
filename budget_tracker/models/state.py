"""
Presentation State

The UI keeps exactly one AppState and passes it to whatever needs it.
Nothing about the current household or the selected view lives in
module globals.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from budget_tracker.models.insights import Granularity, InsightsPeriod
from budget_tracker.models.ledger import Household


class View(str, Enum):
    EXPENSES = "expenses"
    INSIGHTS = "insights"


class AppState(BaseModel):
    """Everything the UI remembers between reruns."""

    user_name: str = Field(
        default="",
        description="Display name the user entered on the setup screen"
    )
    household: Optional[Household] = Field(
        default=None,
        description="The household currently open, if any"
    )
    current_view: View = View.EXPENSES
    chart_granularity: Granularity = Granularity.DAILY
    insights_period: InsightsPeriod = InsightsPeriod.MONTHLY
    selected_bucket: Optional[str] = Field(
        default=None,
        description="Key of the chart bucket whose details are expanded"
    )
    show_add_expense: bool = False

    @property
    def has_household(self) -> bool:
        return self.household is not None

    def open_household(self, household: Household, user_name: str) -> None:
        self.household = household
        self.user_name = user_name.strip()
        self.selected_bucket = None

    def toggle_bucket(self, key: str) -> None:
        """Clicking the selected bar again collapses it."""
        self.selected_bucket = None if self.selected_bucket == key else key

    def set_granularity(self, granularity: Granularity) -> None:
        if granularity != self.chart_granularity:
            self.chart_granularity = granularity
            self.selected_bucket = None
