"""Data Insights — canned, data-filled insight text picked by the prompt's topic.

Invariants:
    - Never calls an LLM; output depends only on prompt, project and summary
    - Topic precedence: traffic, engagement, seo, devices, then general
"""

INSIGHT_TOPICS = {
    "traffic": ("traffic", "trend"),
    "engagement": ("bounce", "engagement"),
    "seo": ("seo", "search"),
    "devices": ("device", "browser", "mobile"),
}


def insight_topic(prompt: str | None) -> str:
    text = (prompt or "").lower()
    for topic, keywords in INSIGHT_TOPICS.items():
        if any(k in text for k in keywords):
            return topic
    return "general"


def _traffic(name: str, domain: str, s: dict) -> str:
    health = "healthy" if s["totalPageViews"] > 100 else "growing"
    if s["topPages"]:
        top = s["topPages"][0]
        top_line = f'Your top page is "{top["page"]}" with {top["views"]} views.'
    else:
        top_line = "Start collecting data by installing the tracking snippet."
    return (
        f"Based on the data for {name} ({domain}):\n\n"
        f"Total Page Views: {s['totalPageViews']}\n"
        f"Total Clicks: {s['totalClicks']}\n"
        f"Unique Visitors: {s['uniqueVisitors']}\n\n"
        f"The traffic data shows {health} traffic patterns. {top_line}\n\n"
        "Recommendation: Focus on content that drives organic traffic and ensure your "
        "top-performing pages are optimized for conversions."
    )


def _engagement(name: str, s: dict) -> str:
    if s["bounceRate"] > 50:
        verdict = (
            "Your bounce rate is above average. Consider improving page load speed, adding "
            "more engaging content above the fold, and ensuring clear calls-to-action."
        )
    else:
        verdict = (
            "Your bounce rate is within a healthy range. Continue monitoring and optimizing "
            "your content strategy."
        )
    return (
        f"Engagement Analysis for {name}:\n\n"
        f"Bounce Rate: ~{s['bounceRate']}%\n"
        f"Average Time on Page: {s['avgTimeOnPage']}s\n"
        f"Click-through Events: {s['totalClicks']}\n\n"
        f"{verdict}\n\n"
        "Suggestion: Implement exit-intent popups and improve internal linking to reduce "
        "bounce rate."
    )


def _seo(name: str) -> str:
    return (
        f"SEO Overview for {name}:\n\n"
        "Key recommendations:\n"
        "1. Ensure all pages have unique, descriptive meta titles (50-60 characters)\n"
        "2. Write compelling meta descriptions (150-160 characters)\n"
        "3. Use proper heading hierarchy (H1 > H2 > H3)\n"
        "4. Add alt text to all images\n"
        "5. Implement structured data markup (Schema.org)\n"
        "6. Build quality internal links between related content\n"
        "7. Optimize Core Web Vitals (LCP, INP, CLS)"
    )


def _devices(name: str, s: dict) -> str:
    devices = s["deviceBreakdown"]
    if devices:
        info = "\n".join(f"{d['device']}: {d['count']} events" for d in devices)
    else:
        info = "No device data collected yet"
    return (
        f"Device & Browser Analysis for {name}:\n\n{info}\n\n"
        "Make sure your website is fully responsive and provides an excellent experience "
        "across all devices. Test on both mobile and desktop regularly."
    )


def _general(name: str, domain: str, s: dict) -> str:
    return (
        f"Analysis for {name} ({domain}):\n\n"
        "Here's a summary of your current analytics:\n"
        f"- {s['totalPageViews']} page views recorded\n"
        f"- {s['totalClicks']} click interactions\n"
        f"- {s['uniqueVisitors']} unique visitor fingerprints\n"
        f"- {len(s['topPages'])} unique pages tracked\n\n"
        "To get more specific insights, try asking about:\n"
        "- Traffic trends and patterns\n"
        "- Bounce rate and engagement metrics\n"
        "- SEO recommendations\n"
        "- Device and browser breakdown"
    )


def generate_data_insight(prompt: str | None, name: str, domain: str, summary: dict) -> str:
    topic = insight_topic(prompt)
    if topic == "traffic":
        return _traffic(name, domain, summary)
    if topic == "engagement":
        return _engagement(name, summary)
    if topic == "seo":
        return _seo(name)
    if topic == "devices":
        return _devices(name, summary)
    return _general(name, domain, summary)
