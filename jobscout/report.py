"""Render a markdown summary of one search run."""
from __future__ import annotations

import re
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlparse

from jobscout.config import REPORTS_DIR
from jobscout.log import get_logger
from jobscout.models import MatchResult, SearchResult

log = get_logger(__name__)

REPORT_SKILLS: list[str] = [
    "javascript", "typescript", "python", "java", "react", "node.js", "vue",
    "angular", "aws", "docker", "kubernetes", "sql", "mongodb", "react native",
    "flutter", "swift", "kotlin", "go", "rust", "c++", "c#",
]

TOP_MATCHES = 15


def _short_url_label(url: str) -> str:
    host = (urlparse(url).hostname or "").replace("www.", "")
    parts = host.split(".")
    return parts[0].capitalize() if parts and parts[0] else "Link"


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + ("…" if len(text) > limit else "")


def _pct(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


def _skill_pattern(skill: str) -> re.Pattern:
    # \b does not work around "+" and "#", so anchor on non-word neighbours instead
    return re.compile(rf"(?<![\w+#]){re.escape(skill)}(?![\w+#])")


_SKILL_PATTERNS = {skill: _skill_pattern(skill) for skill in REPORT_SKILLS}


def skill_demand(results: list[MatchResult]) -> list[tuple[str, int]]:
    """Common technologies ranked by how many listings mention them."""
    counts: Counter[str] = Counter()
    for r in results:
        desc = (r.listing.description or "").lower()
        for skill, pattern in _SKILL_PATTERNS.items():
            if pattern.search(desc):
                counts[skill] += 1
    return counts.most_common(10)


def build_search_report(result: SearchResult, query: str = "") -> str:
    results = result.results
    total = len(results)
    remote = sum(1 for r in results if r.listing.remote)
    now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")

    title = f"# Job Search Report — {query}" if query else "# Job Search Report"
    lines: list[str] = [title, "", f"_Generated {now}_", ""]
    if result.stopped:
        lines.append("> Search was stopped before it finished; results are partial.")
        lines.append("")

    lines.append("## Overview")
    lines.append("")
    lines.append(f"- **Fetched:** {result.aggregated} | **Unique:** {result.deduplicated} | **After filters:** {result.filtered}")
    lines.append(f"- **Scored:** {result.processed} | **Streamed matches:** {result.streamed}")
    lines.append(f"- **Remote positions:** {remote} ({_pct(remote, total)}%) | **On-site:** {total - remote}")
    lines.append(f"- **Unique companies:** {len({r.listing.organization for r in results})}")
    lines.append("")

    if result.source_statuses:
        lines.append("## Sources")
        lines.append("")
        lines.append("| Source | Status | Jobs | Error |")
        lines.append("|--------|--------|-----:|-------|")
        for s in result.source_statuses:
            status = "ok" if s.succeeded else "failed"
            lines.append(f"| {s.name} | {status} | {s.count} | {_truncate(s.error or '', 60)} |")
        lines.append("")

    demand = skill_demand(results)
    if demand:
        lines.append("## In-Demand Skills")
        lines.append("")
        for i, (skill, count) in enumerate(demand, 1):
            lines.append(f"{i}. {skill.upper()} — mentioned in {count} jobs ({_pct(count, total)}%)")
        lines.append("")

    top = results[:TOP_MATCHES]
    if top:
        lines.append("## Top Matches")
        lines.append("")
        lines.append("| # | Role | Company | Location | Score | Scored by | Apply |")
        lines.append("|--:|------|---------|----------|------:|-----------|-------|")
        for i, r in enumerate(top, 1):
            job = r.listing
            loc = (job.location or "").split(",")[0][:18]
            link = f"[{_short_url_label(job.apply_url)}]({job.apply_url})" if job.apply_url else "—"
            lines.append(
                f"| {i} | {_truncate(job.title, 40)} | {_truncate(job.organization, 22)} | {loc} "
                f"| {r.score}% | {r.scored_by} | {link} |"
            )
        lines.append("")

        lines.append("## Why")
        lines.append("")
        for r in top[:5]:
            lines.append(f"### {r.listing.title} @ {r.listing.organization} ({r.score}%)")
            if r.rationale:
                lines.append(f"- {r.rationale}")
            if r.matched_skills:
                lines.append(f"- **Matched:** {', '.join(r.matched_skills[:6])}")
            if r.missing_skills:
                lines.append(f"- **Missing:** {', '.join(r.missing_skills[:5])}")
            lines.append("")

    salaried = [r for r in results if r.listing.salary][:10]
    if salaried:
        lines.append("## Salary Information")
        lines.append("")
        for r in salaried:
            lines.append(f"- {r.listing.title} at {r.listing.organization}: {r.listing.salary}")
        lines.append("")

    log.info("Built search report: %d results, %d sources", total, len(result.source_statuses))
    return "\n".join(lines)


def write_search_report(content: str, reports_dir: Path | None = None) -> Path:
    reports_dir = Path(reports_dir or REPORTS_DIR)
    reports_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H%M%S")
    path = reports_dir / f"search_{stamp}.md"
    path.write_text(content, encoding="utf-8")
    log.info("Report written → %s", path)
    return path
