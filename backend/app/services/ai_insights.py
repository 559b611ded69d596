"""AI Insights — LLM-backed chat, funnel generation, report insights and stored analyses.

Invariants:
    - Every successful model call writes one AIUsageLog row (tokens + USD cost)
    - Failed calls are never billed
    - JSON features go through parse_ai_json; unusable output is a 502, never stored
    - Analyses are grounded in the project's analytics summary (last 30 days)

Design Decisions:
    - Shared ResilientAnthropicClient singleton, created on first use (ADR: one HTTP pool per process)
    - get_ai_client is a FastAPI dependency so tests swap in a fake client
    - No canned fallback text when AI is unconfigured: 503 AI_UNAVAILABLE
      (ADR: a fake answer is worse than an honest error)
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.ai_prompts import (
    REPORT_SPECS, chat_system_prompt, funnel_generation_prompt,
    project_context, report_insights_prompt, shape_report_result,
)
from app.core.analytics_summary import build_summary
from app.core.date_ranges import resolve_date_range
from app.core.domain_types import AIFeature, AIReportKind
from app.core.errors import AIResponseError, AIUnavailableError, ErrorContext
from app.core.funnel_analysis import clean_funnel_steps
from app.core.parse_ai_json import parse_ai_json
from app.core.usage_costs import calculate_cost_usd
from app.infrastructure.anthropic_client import ResilientAnthropicClient
from app.models.ai_report import AIReport
from app.models.ai_usage_log import AIUsageLog
from app.models.custom_report import CustomReport
from app.models.funnel import Funnel
from app.models.project import Project
from app.models.user import User
from app.services.custom_report_runner import run_custom_report
from app.services.event_queries import load_events

logger = logging.getLogger(__name__)

SUMMARY_PERIOD = "last_30_days"

_anthropic_client: ResilientAnthropicClient | None = None


def get_ai_client() -> ResilientAnthropicClient:
    """FastAPI dependency: shared client, or 503 when no key is configured."""
    global _anthropic_client
    settings = get_settings()
    if not settings.ai_available:
        raise AIUnavailableError()
    if _anthropic_client is None:
        _anthropic_client = ResilientAnthropicClient(
            api_key=settings.anthropic_api_key,
            max_retries=settings.anthropic_max_retries,
            base_delay_ms=settings.anthropic_base_delay_ms,
            max_delay_ms=settings.anthropic_max_delay_ms,
            timeout_seconds=settings.anthropic_timeout_seconds,
        )
    return _anthropic_client


def response_text(response) -> str:
    return "".join(
        block.text for block in response.content
        if getattr(block, "type", None) == "text"
    ).strip()


class AIService:
    """Prompt wrappers over the model, billed to the calling user."""

    def __init__(self, db: AsyncSession, client: ResilientAnthropicClient, user: User):
        self.db = db
        self.client = client
        self.user = user
        self.settings = get_settings()

    async def _complete(
        self,
        feature: AIFeature,
        system: str,
        prompt: str,
        max_tokens: int | None = None,
        project_id: str | None = None,
    ) -> str:
        model = self.settings.ai_model
        response = await self.client.create_message(
            model=model,
            max_tokens=max_tokens or self.settings.ai_max_tokens,
            system=system,
            messages=[{"role": "user", "content": prompt}],
            context=ErrorContext(
                project_id=project_id, user_id=str(self.user.id), feature=feature.value,
            ),
        )
        usage = response.usage
        self.db.add(AIUsageLog(
            user_id=self.user.id,
            feature=feature.value,
            model=model,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            cost_usd=calculate_cost_usd(usage.input_tokens, usage.output_tokens, model),
        ))
        await self.db.flush()
        return response_text(response)

    async def _complete_json(
        self, feature: AIFeature, system: str, prompt: str, project_id: str | None = None,
    ) -> dict:
        text = await self._complete(
            feature, system, prompt,
            max_tokens=self.settings.ai_json_max_tokens, project_id=project_id,
        )
        return parse_ai_json(text)

    async def project_summary(self, project: Project) -> dict:
        events = await load_events(self.db, project.id, resolve_date_range(SUMMARY_PERIOD))
        return build_summary(events)

    # ─── Chat ───────────────────────────────────────────────────

    async def chat(
        self, question: str, page_context: str | None = None, project: Project | None = None,
    ) -> dict:
        project_line = None
        if project is not None:
            summary = await self.project_summary(project)
            project_line = project_context(project.name, project.domain, summary)
        answer = await self._complete(
            AIFeature.CHAT,
            chat_system_prompt(page_context, project_line),
            question,
            project_id=str(project.id) if project else None,
        )
        return {"answer": answer}

    # ─── Funnels ────────────────────────────────────────────────

    async def generate_funnel(self, project: Project, prompt: str) -> Funnel:
        data = await self._complete_json(
            AIFeature.FUNNEL_GENERATION,
            funnel_generation_prompt(project.domain),
            prompt,
            project_id=str(project.id),
        )
        steps = clean_funnel_steps(data.get("steps"))
        if not steps:
            raise AIResponseError("AI response did not contain any valid funnel steps")
        funnel = Funnel(
            project_id=project.id,
            name=str(data.get("name") or "AI Generated Funnel")[:255],
            description=data.get("description") or prompt,
            steps=steps,
        )
        self.db.add(funnel)
        await self.db.flush()
        logger.info(
            f"AI funnel generated with {len(steps)} steps",
            extra={"project_id": str(project.id)},
        )
        return funnel

    # ─── Report insights ────────────────────────────────────────

    async def report_insights(self, project: Project, report: CustomReport) -> dict:
        data = await run_custom_report(self.db, report)
        context = {
            "report": report.name,
            "metrics": data["metrics"],
            "dimension": data["dimension"],
            "rows": data["rows"][:50],
        }
        insights = await self._complete(
            AIFeature.REPORT_INSIGHTS,
            report_insights_prompt(project.name, project.domain, context),
            f"Analyse the report '{report.name}' and give insights.",
            project_id=str(project.id),
        )
        return {"reportId": str(report.id), "insights": insights}

    # ─── Stored analyses ────────────────────────────────────────

    async def run_analysis(
        self,
        project: Project,
        kind: AIReportKind,
        prompt: str | None = None,
        domain: str | None = None,
    ) -> AIReport:
        """Run one stored analysis; domain overrides the project's own site."""
        spec = REPORT_SPECS[kind]
        target = domain or project.domain
        request = prompt or spec.default_request.format(domain=target)
        summary = await self.project_summary(project)
        data = await self._complete_json(
            spec.feature,
            spec.system_prompt(target, summary),
            request,
            project_id=str(project.id),
        )
        result, summary_text = shape_report_result(kind, data)
        report = AIReport(
            project_id=project.id,
            kind=kind.value,
            prompt=request,
            result=result,
            summary=summary_text,
            status="completed",
        )
        self.db.add(report)
        await self.db.flush()
        logger.info(
            f"AI analysis stored: {kind.value}",
            extra={"project_id": str(project.id), "feature": spec.feature.value},
        )
        return report
