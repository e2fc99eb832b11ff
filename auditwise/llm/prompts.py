"""
Prompts
=======
Fixed audit instructions and generateContent request bodies.

Vision mode sends the image as inlineData followed by DESIGN_PROMPT.
Text mode sends a single text part: url_prompt(url) for live websites,
DESIGN_PROMPT otherwise (PDFs and designs whose image could not be fetched).
"""
from auditwise.core.config import GEMINI_TEMPERATURE

_ISSUE_SHAPE = """{
  "title": "Short issue title (max 60 chars)",
  "category": "Accessibility" | "UX" | "UI" | "Layout" | "Content",
  "severity": "High" | "Medium" | "Low",
  "explanation": "%s",
  "howToFix": "%s",
  "suggestion": "One concrete implementation suggestion.",
  "x": %s,
  "y": %s
}"""

DESIGN_PROMPT = (
    "You are an expert UI/UX design auditor. Analyze this design and identify "
    "6-10 specific design issues.\n\n"
    "Return ONLY a valid JSON array — no markdown, no extra text. "
    "Each item must follow this exact shape:\n"
    + _ISSUE_SHAPE % (
        "2-3 sentences explaining what is wrong and why it matters.",
        "2-3 sentences with concrete steps to fix this issue.",
        "<number 5-95, estimated x% position in the image where this issue appears>",
        "<number 5-95, estimated y% position in the image where this issue appears>",
    )
    + "\n\nFocus on: contrast ratios, spacing consistency, typography hierarchy, "
    "accessibility (WCAG), touch target sizes, visual hierarchy, component "
    "consistency, and content clarity."
)


def url_prompt(url: str) -> str:
    """Prompt for a live website the model cannot see."""
    return (
        f"You are an expert UI/UX design auditor. Analyze the website at URL: {url}\n\n"
        "Based on common patterns for this type of website and what you know about it, "
        "identify 6-10 likely design issues.\n\n"
        "Return ONLY a valid JSON array — no markdown, no extra text. Each item must follow:\n"
        + _ISSUE_SHAPE % (
            "2-3 sentences explaining what might be wrong.",
            "2-3 sentences with steps to fix this.",
            "<number 5-95>",
            "<number 5-95>",
        )
    )


def build_vision_body(mime_type: str, data: str) -> dict:
    return {
        "contents": [
            {
                "parts": [
                    {"inlineData": {"mimeType": mime_type, "data": data}},
                    {"text": DESIGN_PROMPT},
                ]
            }
        ],
        "generationConfig": {"temperature": GEMINI_TEMPERATURE},
    }


def build_text_body(prompt: str) -> dict:
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {"temperature": GEMINI_TEMPERATURE},
    }
