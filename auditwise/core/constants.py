"""
Constants
Centralised storage for issue vocabularies, scan phase labels, scoring and canvas limits.
"""
from typing import Literal

Category = Literal["Accessibility", "UX", "UI", "Layout", "Content"]
Severity = Literal["High", "Medium", "Low"]
IssueStatus = Literal["open", "resolved"]
DesignType = Literal["figma", "png", "pdf", "url"]
AuditDepth = Literal["Quick", "Standard", "Deep"]

CATEGORIES = ("Accessibility", "UX", "UI", "Layout", "Content")
SEVERITIES = ("High", "Medium", "Low")
CATEGORY_FILTER_ALL = "All"

DEFAULT_CATEGORY = "UI"
DEFAULT_SEVERITY = "Medium"
DEFAULT_TITLE = "Untitled issue"
DEFAULT_AUDIT_TITLE = "Untitled Design"

# Pin coordinates are percentages inside the design frame
POSITION_MIN = 5.0
POSITION_MAX = 95.0
POSITION_DEFAULT = 50.0

SCAN_STEPS = (
    "Parsing design structure…",
    "Analysing spacing system…",
    "Checking color contrast…",
    "Evaluating typography hierarchy…",
    "Scanning layout alignment…",
    "Running accessibility checks…",
    "Detecting component inconsistencies…",
    "Generating AI issue explanations…",
    "Calculating AI design score…",
    "Preparing audit report…",
)
AI_STEP_INDEX = 7

SCORE_BASE = 74
SCORE_RESOLVED_WEIGHT = 20

# Canvas
SCALE_MIN = 0.1
SCALE_MAX = 5.0
WHEEL_ZOOM_IN = 1.08
WHEEL_ZOOM_OUT = 0.93
BUTTON_ZOOM_IN = 1.2
BUTTON_ZOOM_OUT = 0.8
