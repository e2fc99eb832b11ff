"""
Report Exporter
===============
Builds the two export formats offered on the review screen.

    render_print_html   — standalone HTML document the browser prints to PDF
                          (no binary PDF is generated server-side)
    render_text_report  — plain-text summary of the OPEN issues, served as a
                          downloadable .txt file

All user and AI supplied text is HTML-escaped in the printable report.
"""
import re
from datetime import date
from html import escape
from typing import Optional

from auditwise.models.issue import Issue
from auditwise.state.audit_session import AuditSession

_SEVERITY_COLORS = {
    "High": ("#D4505A", "#FFF0F1"),
    "Medium": ("#C8882A", "#FFF8EC"),
    "Low": ("#4B65E8", "#EEF1FF"),
}

_CATEGORY_COLORS = {
    "Accessibility": ("#D4505A", "#FFF0F1"),
    "UX": ("#4B65E8", "#EEF1FF"),
    "UI": ("#8B5CF6", "#F3EEFF"),
    "Layout": ("#C8882A", "#FFF8EC"),
    "Content": ("#4CAF7D", "#EEF7F1"),
}

_RESOLVED_COLOR = "#4CAF7D"


def score_color(score: int) -> str:
    if score >= 80:
        return "#4CAF7D"
    if score >= 60:
        return "#E8A44F"
    return "#D4505A"


def _issue_card(issue: Issue) -> str:
    resolved = issue.status == "resolved"
    sev_color, sev_bg = _SEVERITY_COLORS[issue.severity]
    cat_color, cat_bg = _CATEGORY_COLORS[issue.category]
    badge_bg = _RESOLVED_COLOR if resolved else sev_color
    badge = "✓" if resolved else str(issue.id)
    resolved_tag = (
        '<span style="font-size:10px;padding:2px 8px;border-radius:6px;'
        'background:#EEF7F1;color:#4CAF7D;">Resolved</span>'
        if resolved else ""
    )
    dim = "opacity:0.65;" if resolved else ""
    return f"""
        <div class="issue" style="border:1px solid #E8E8EA;border-radius:12px;padding:20px;margin-bottom:12px;{dim}background:#fff;">
          <div style="display:flex;align-items:flex-start;gap:12px;margin-bottom:12px;">
            <div style="width:22px;height:22px;border-radius:50%;background:{badge_bg};color:#fff;font-size:11px;display:flex;align-items:center;justify-content:center;min-width:22px;">{badge}</div>
            <div style="flex:1;">
              <div style="font-size:14px;color:#1C1C1E;margin-bottom:8px;">{escape(issue.title)}</div>
              <div style="display:flex;gap:6px;flex-wrap:wrap;">
                <span style="font-size:10px;padding:2px 8px;border-radius:6px;background:{cat_bg};color:{cat_color};">{issue.category}</span>
                <span style="font-size:10px;padding:2px 8px;border-radius:6px;background:{sev_bg};color:{sev_color};">{issue.severity}</span>
                {resolved_tag}
              </div>
            </div>
          </div>
          <div style="padding-left:34px;">
            <div style="font-size:10px;text-transform:uppercase;color:#9595A0;margin-bottom:4px;">What's wrong</div>
            <p style="font-size:12px;line-height:1.6;margin:0 0 12px;">{escape(issue.explanation)}</p>
            <div style="font-size:10px;text-transform:uppercase;color:#9595A0;margin-bottom:4px;">How to fix</div>
            <p style="font-size:12px;line-height:1.6;margin:0 0 12px;">{escape(issue.how_to_fix)}</p>
            <div style="background:#F4F6FF;border:1px solid rgba(75,101,232,.18);border-radius:8px;padding:10px;">
              <div style="font-size:10px;color:#4B65E8;margin-bottom:4px;">↳ AI Suggestion</div>
              <p style="font-size:11px;line-height:1.6;margin:0;">{escape(issue.suggestion)}</p>
            </div>
          </div>
        </div>"""


def _stat(label: str, value: int, color: str, bg: str) -> str:
    return (
        f'<div style="background:{bg};border:1px solid #E8E8EA;border-radius:12px;'
        f'padding:14px;text-align:center;"><div style="font-size:28px;color:{color};">{value}</div>'
        f'<div style="font-size:10px;color:#9595A0;margin-top:2px;">{label}</div></div>'
    )


def render_print_html(session: AuditSession, generated_on: Optional[date] = None) -> str:
    """Assemble the printable audit report for ``session``."""
    day = generated_on or date.today()
    issues = session.issues
    score = session.score()
    design_type = (session.design_input.type if session.design_input else "unknown").upper()
    depth = session.design_input.audit_depth if session.design_input else "Standard"
    long_date = f"{day.strftime('%B')} {day.day}, {day.year}"
    title = escape(session.title)

    stats = "".join([
        _stat("Total Issues", len(issues), "#1C1C1E", "#F7F7F8"),
        _stat("High", sum(1 for i in issues if i.severity == "High"), *_SEVERITY_COLORS["High"]),
        _stat("Medium", sum(1 for i in issues if i.severity == "Medium"), *_SEVERITY_COLORS["Medium"]),
        _stat("Low", sum(1 for i in issues if i.severity == "Low"), *_SEVERITY_COLORS["Low"]),
    ])
    cards = "".join(_issue_card(i) for i in issues)

    return f"""<!DOCTYPE html><html><head><meta charset="utf-8"/>
      <title>{title} — Auditwise Audit Report</title>
      <style>*{{box-sizing:border-box;margin:0;padding:0;}}body{{font-family:'Helvetica Neue',Arial,sans-serif;background:#F7F7F8;color:#1C1C1E;}}@media print{{body{{background:#fff;}}@page{{margin:15mm 12mm;}}}}</style>
    </head><body>
      <div style="max-width:760px;margin:0 auto;padding:32px 24px;">
        <div style="background:#4B65E8;color:#fff;border-radius:16px;padding:24px;margin-bottom:24px;">
          <div style="font-size:10px;opacity:.7;margin-bottom:6px;">AUDITWISE · AI DESIGN AUDIT REPORT</div>
          <div style="font-size:26px;margin-bottom:4px;">{title}</div>
          <div style="font-size:12px;opacity:.75;">{design_type} · {depth} audit · {long_date}</div>
        </div>
        <div style="display:grid;grid-template-columns:auto 1fr;gap:16px;margin-bottom:24px;">
          <div style="background:#fff;border-radius:16px;border:1px solid #E8E8EA;padding:20px 24px;text-align:center;">
            <div class="score" style="font-size:48px;color:{score_color(score)};">{score}</div>
            <div style="font-size:11px;color:#9595A0;">AI Design Score</div>
          </div>
          <div style="display:grid;grid-template-columns:repeat(4,1fr);gap:10px;">{stats}</div>
        </div>
        <div style="font-size:15px;margin-bottom:16px;">Design Issues</div>
        {cards}
        <div style="margin-top:24px;padding-top:16px;border-top:1px solid #E8E8EA;text-align:center;font-size:11px;color:#9595A0;">
          Generated by Auditwise · AI-powered design audit · {day.isoformat()}
        </div>
      </div>
    </body></html>"""


def render_text_report(session: AuditSession) -> str:
    """Plain-text summary listing only the open issues."""
    open_issues = session.open_issues()
    lines = [
        f"{session.title} — Audit Report",
        f"Score: {session.score()}/100",
        f"\nIssues ({len(open_issues)} open):\n",
    ]
    lines.extend(
        f"[{i.severity}] {i.title}\n  {i.explanation}\n  Fix: {i.how_to_fix}\n"
        for i in open_issues
    )
    return "\n".join(lines)


def text_report_filename(title: str) -> str:
    return f"{re.sub(r'[^a-z0-9]', '-', title, flags=re.IGNORECASE)}-audit.txt"
