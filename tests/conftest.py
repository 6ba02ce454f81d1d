"""Pytest configuration and fixtures."""

import os
import pytest

from uiforge.core import Settings
from uiforge.plan.models import (
    DataModelHints,
    DomainModel,
    Plan,
    PlanComponent,
    PlanKind,
    ReasoningOutput,
)
from uiforge.schema import ComponentKind
from uiforge.versions import VersionStore
from uiforge.pipeline import UIPipeline


# ============================================================================
# Pytest Hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with environment variables."""
    os.environ["UIFORGE_LOG_LEVEL"] = "DEBUG"
    os.environ["UIFORGE_LLM_API_KEY"] = "test-api-key"


# ============================================================================
# Completion Client
# ============================================================================

class ScriptedCompletionClient:
    """Returns scripted responses in order and records every prompt."""

    def __init__(self, *responses: str | Exception) -> None:
        self.responses = list(responses)
        self.prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def acomplete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            raise AssertionError(f"Unexpected completion call #{len(self.prompts)}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


# ============================================================================
# Data
# ============================================================================

REASONING_JSON = """{
  "domainModel": {
    "productOrSystem": "Sales tracker",
    "domainType": "sales",
    "userRole": "sales manager",
    "primaryGoal": "track revenue"
  },
  "entities": ["deal", "account"],
  "insightsRequired": ["pipeline health"],
  "metricsToTrack": ["Revenue", "Win Rate"],
  "dataModelHints": {
    "tablesNeeded": ["Deals"],
    "chartsNeeded": ["Revenue trend"],
    "summaryMetricsNeeded": ["Open Deals"]
  }
}"""

DASHBOARD_PLAN_JSON = """{
  "type": "new",
  "layout": "analytics_dashboard",
  "components": [
    {"id": "metric-revenue", "type": "Card", "props": {"id": "metric-revenue", "title": "Revenue", "children": "$120,000"}},
    {"id": "metric-win-rate", "type": "Card", "props": {"id": "metric-win-rate", "title": "Win Rate", "children": "32%"}},
    {"id": "deals", "type": "Table", "props": {"id": "deals", "columns": ["Deal", "Stage"], "rows": [["Acme", "Won"]]}}
  ],
  "changes": [],
  "intentAnalysis": {
    "intentType": "dashboard",
    "domain": "sales",
    "complexity": "moderate",
    "layoutStrategy": "analytics_dashboard"
  },
  "dataModel": {"metrics": [], "tables": [], "charts": []}
}"""

DASHBOARD_MARKUP = """<>
  <Card id="metric-revenue" title="Revenue">$120,000</Card>
  <Card id="metric-win-rate" title="Win Rate">32%</Card>
  <Table id="deals" columns={["Deal", "Stage"]} rows={[["Acme", "Won"]]} />
</>"""


@pytest.fixture
def reasoning():
    """Parsed reasoning matching REASONING_JSON."""
    return ReasoningOutput(
        domain_model=DomainModel(
            product_or_system="Sales tracker",
            domain_type="sales",
            user_role="sales manager",
            primary_goal="track revenue",
        ),
        entities=["deal", "account"],
        insights_required=["pipeline health"],
        metrics_to_track=["Revenue", "Win Rate"],
        data_model_hints=DataModelHints(
            tables_needed=["Deals"],
            charts_needed=["Revenue trend"],
            summary_metrics_needed=["Open Deals"],
        ),
    )


@pytest.fixture
def card_plan():
    """Resolved plan with one placeholder Card."""
    return Plan(
        plan_kind=PlanKind.NEW,
        layout_strategy="basic",
        components=[PlanComponent(id="card-1", kind=ComponentKind.CARD, properties={"title": "Card"})],
    )


@pytest.fixture
def dashboard_plan():
    """Resolved plan with a Card, a Chart and a Table."""
    return Plan(
        plan_kind=PlanKind.NEW,
        layout_strategy="analytics_dashboard",
        components=[
            PlanComponent(id="card-1", kind=ComponentKind.CARD, properties={"id": "card-1", "title": "Revenue"}),
            PlanComponent(
                id="chart-1", kind=ComponentKind.CHART, properties={"id": "chart-1", "title": "Trend", "data": [1, 2, 3]}
            ),
            PlanComponent(
                id="table-1",
                kind=ComponentKind.TABLE,
                properties={"id": "table-1", "columns": ["Deal"], "rows": [["Acme"]]},
            ),
        ],
    )


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def settings():
    """Test settings."""
    return Settings(llm_api_key="test-api-key", max_prompt_length=2000)


@pytest.fixture
def store():
    """Isolated version store."""
    return VersionStore()


@pytest.fixture
def make_pipeline(store):
    """Build a pipeline over scripted responses."""

    def factory(*responses: str | Exception) -> tuple[UIPipeline, ScriptedCompletionClient]:
        client = ScriptedCompletionClient(*responses)
        return UIPipeline(client, store), client

    return factory


@pytest.fixture
def reasoning_json():
    return REASONING_JSON


@pytest.fixture
def dashboard_plan_json():
    return DASHBOARD_PLAN_JSON


@pytest.fixture
def dashboard_markup():
    return DASHBOARD_MARKUP


@pytest.fixture
def scripted_client():
    """Factory for a ScriptedCompletionClient."""
    return ScriptedCompletionClient
