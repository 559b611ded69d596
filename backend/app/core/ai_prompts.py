"""AI Prompts — system prompts and result shapes for every LLM-backed feature.

Invariants:
    - Every JSON prompt names the exact top-level keys the caller reads back
    - REPORT_SPECS[kind].defaults lists every result key with its empty value,
      so a stored result always has the full shape even when the model omits keys
    - Analytics context is the summary dict serialised with json.dumps
"""

import json
from dataclasses import dataclass, field

from app.core.domain_types import AIFeature, AIReportKind

DEFAULT_CONTEXT = "You are an analytics assistant."

PAGE_CONTEXTS: dict[str, str] = {
    "dashboard": "You are an analytics expert helping with the main dashboard. Help users understand their overview metrics, key performance indicators, and trends.",
    "realtime": "You are helping with real-time analytics. Assist with understanding active users, live pageviews, and current traffic patterns.",
    "acquisition": "You are an acquisition analyst. Help users understand where their traffic comes from, which channels perform best, and how to improve user acquisition.",
    "user-acquisition": "You help with user acquisition analysis: new vs returning users, first-touch channels, and user growth.",
    "traffic-acquisition": "You help with traffic acquisition: session-based channel analysis, campaign performance, and traffic quality.",
    "engagement": "You are an engagement analyst. Help users understand user behaviour, session duration, pages per session, and content engagement.",
    "events": "You help with event tracking and analysis. Assist with understanding custom events, event frequency, and user interactions.",
    "funnels": "You are a funnel analyst. Help users create and optimise conversion funnels, understand drop-off points, and improve conversion rates.",
    "reports": "You help with custom reports. Assist with choosing the right metrics and dimensions and interpreting report data.",
    "traffic-sources": "You help analyse traffic sources: channels, referrers, campaigns, and their relative performance.",
    "pages-analysis": "You help with pages analysis: top pages, entry and exit pages, 404 detection, and content performance.",
    "geography": "You help with geographic analytics: where users come from and regional performance differences.",
    "browsers-systems": "You help with technology analytics: browser, OS, and device breakdowns.",
    "visitors": "You help with visitor analysis: unique visitors, their behaviour patterns, and segmentation.",
    "journeys": "You help with user journey analysis: user paths and interaction patterns.",
    "custom-events": "You help with custom event definitions: creating rules, templates, and conversion tracking.",
    "privacy": "You help with privacy and GDPR compliance: consent management, data retention, and regulatory requirements.",
    "content-gap": "You are a content strategist and SEO expert. Help with keyword research, content gap analysis, and blog topic suggestions.",
    "predictive-analytics": "You are a predictive analytics expert. Help with churn risk, revenue trend forecasting, and conversion probability.",
    "ux-auditor": "You are a UX audit expert. Help identify slow pages, poor user flows, and confusing navigation.",
    "marketing-copilot": "You are an AI marketing copilot. Help with SEO fixes, PPC budget optimisation, and UX improvements.",
    "admin": "You help with platform administration: user management, subscription plans, and system configuration.",
}

_CHAT_SUFFIX = (
    "Provide helpful, actionable advice. Format with markdown for readability. "
    "Be concise but thorough."
)


def chat_system_prompt(page_context: str | None, project_line: str | None = None) -> str:
    prompt = PAGE_CONTEXTS.get(page_context or "", DEFAULT_CONTEXT)
    if project_line:
        prompt += f"\n{project_line}"
    return f"{prompt}\n\n{_CHAT_SUFFIX}"


def project_context(name: str, domain: str, summary: dict) -> str:
    return f"Project: {name} ({domain})\nAnalytics summary: {json.dumps(summary, default=str)}"


def report_insights_prompt(name: str, domain: str, summary: dict) -> str:
    return (
        "You are an analytics expert. Provide actionable insights for this report.\n"
        f"{project_context(name, domain, summary)}\n"
        "Give 3-5 key insights with specific recommendations. Format with markdown."
    )


def funnel_generation_prompt(domain: str) -> str:
    return (
        "You are a conversion funnel expert. Generate a funnel configuration based on "
        "the user's description.\nReturn JSON with this exact structure:\n"
        '{"name": "Funnel Name", "description": "Brief description", '
        '"steps": [{"name": "Step Name", "type": "pageview|event|click", '
        '"value": "URL path, event type, or click text"}]}\n'
        f"Domain: {domain}. Create realistic steps that match the website type. "
        "Include 3-6 steps. Respond with JSON only."
    )


@dataclass(frozen=True)
class ReportSpec:
    """How one AI report kind is prompted, billed and stored."""
    feature: AIFeature
    role: str
    schema: str
    default_request: str
    defaults: dict = field(default_factory=dict)

    def system_prompt(self, domain: str, summary: dict) -> str:
        return (
            f'{self.role} Analyse the website "{domain}" and its analytics data.\n'
            f"Return JSON with this exact structure:\n{self.schema}\n"
            f"Analytics context: {json.dumps(summary, default=str)}\n"
            "Respond with JSON only."
        )


REPORT_SPECS: dict[AIReportKind, ReportSpec] = {
    AIReportKind.PREDICTIVE: ReportSpec(
        feature=AIFeature.PREDICTIVE,
        role="You are an expert predictive analytics AI.",
        schema=(
            '{"churnRiskScore": number (0-1), "churnDrivers": [{"factor": "string", '
            '"impact": "high|medium|low", "trend": "increasing|decreasing|stable", '
            '"detail": "string"}], "revenueTrend": {"current": number, "projected": '
            '[{"month": "string", "value": number, "confidence": number}]}, '
            '"conversionProbability": number (0-1), "recommendations": [{"action": '
            '"string", "priority": "high|medium|low", "expectedImpact": "string"}], '
            '"summary": "string"}'
        ),
        default_request="Predict churn risk, revenue trends, and conversion probability for {domain}",
        defaults={
            "churnRiskScore": 0, "churnDrivers": [],
            "revenueTrend": {"current": 0, "projected": []},
            "conversionProbability": 0, "recommendations": [],
        },
    ),
    AIReportKind.UX_AUDIT: ReportSpec(
        feature=AIFeature.UX_AUDIT,
        role="You are an expert UX auditor.",
        schema=(
            '{"score": number (0-100), "slowPages": [{"page": "string", "loadTime": number, '
            '"benchmark": number, "severity": "high|medium|low", "suggestion": "string"}], '
            '"flowIssues": [{"flow": "string", "severity": "high|medium|low", "description": '
            '"string", "dropOffRate": number, "suggestion": "string"}], "navigationIssues": '
            '[{"issue": "string", "severity": "high|medium|low", "location": "string", '
            '"description": "string", "suggestion": "string"}], "recommendations": '
            '[{"category": "string", "action": "string", "priority": "high|medium|low", '
            '"effort": "low|medium|high"}], "summary": "string"}'
        ),
        default_request="Run a UX audit on {domain} to detect slow pages, bad UX flows, and navigation issues",
        defaults={
            "score": 0, "slowPages": [], "flowIssues": [],
            "navigationIssues": [], "recommendations": [],
        },
    ),
    AIReportKind.MARKETING_COPILOT: ReportSpec(
        feature=AIFeature.MARKETING_COPILOT,
        role="You are an AI marketing copilot.",
        schema=(
            '{"seoFixes": [{"issue": "string", "severity": "high|medium|low", "pages": number, '
            '"description": "string", "fix": "string"}], "ppcOptimizations": [{"campaign": '
            '"string", "currentBudget": number, "suggestedBudget": number, "reason": "string", '
            '"expectedROI": "string", "priority": "high|medium|low"}], "uxImprovements": '
            '[{"area": "string", "severity": "high|medium|low", "issue": "string", '
            '"suggestion": "string", "expectedImpact": "string"}], "summary": "string"}'
        ),
        default_request=(
            "Provide marketing copilot recommendations for {domain} covering SEO fixes, "
            "PPC budget optimization, and UX improvements"
        ),
        defaults={"seoFixes": [], "ppcOptimizations": [], "uxImprovements": []},
    ),
    AIReportKind.CONTENT_GAP: ReportSpec(
        feature=AIFeature.CONTENT_GAP,
        role="You are an expert SEO and content strategist.",
        schema=(
            '{"keywords": [{"keyword": "string", "volume": number, "difficulty": '
            '"low|medium|high", "currentRank": number|null, "opportunity": "string"}], '
            '"contentGaps": [{"topic": "string", "description": "string", "priority": '
            '"high|medium|low", "estimatedTraffic": number}], "competitors": [{"domain": '
            '"string", "overlap": number, "strengths": ["string"], "weaknesses": ["string"]}], '
            '"blogTopics": [{"title": "string", "keyword": "string", "priority": '
            '"high|medium|low", "wordCount": number, "outline": ["string"], "searchIntent": '
            '"informational|transactional|navigational"}]}'
        ),
        default_request="Analyze content gaps for {domain}",
        defaults={"keywords": [], "contentGaps": [], "competitors": [], "blogTopics": []},
    ),
}


def shape_report_result(kind: AIReportKind, data: dict) -> tuple[dict, str | None]:
    """(result with every expected key present, summary text or None)."""
    spec = REPORT_SPECS[kind]
    result = {key: data.get(key) or default for key, default in spec.defaults.items()}
    summary = data.get("summary")
    return result, summary if isinstance(summary, str) and summary else None
