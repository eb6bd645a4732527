"""Prompt building for the flow audit request."""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass
class AnalysisOptions:
    """Which report sections to request."""

    heuristics: bool = True
    wcag: bool = True
    efficiency: bool = True
    risks: bool = True
    conversion: bool = True
    ia: bool = True
    hierarchy: bool = True

    def any_enabled(self) -> bool:
        return any(asdict(self).values())

    @classmethod
    def only(cls, *names: str) -> AnalysisOptions:
        """Options with just ``names`` enabled."""
        known = asdict(cls())
        options = cls(**{key: False for key in known})
        for name in names:
            if name not in known:
                raise ValueError(f"Unknown analysis option: {name}")
            setattr(options, name, True)
        return options


# Section instructions, keyed by option name (in report order)
MODULE_INSTRUCTIONS: dict[str, str] = {
    "heuristics": """# Heuristics
Analyze against Nielsen's 10 heuristics, cognitive load, clarity, hierarchy, and alignment.""",
    "wcag": """# WCAG
Analyze Accessibility (WCAG 2.1 AA): Check contrast, touch targets, labels, error prevention, \
and screen reader semantic structure.""",
    "efficiency": """# Flow
Analyze Flow Efficiency: Identify friction points, redundancies, and task difficulty.""",
    "conversion": """# Conversion
Analyze for Conversion & Behavioral Friction based on visual hierarchy and flow continuity. \
Identify visual factors causing hesitation, confusion, or drop-off. Focus on CTA visibility, \
value proposition clarity, and visual reassurance. For each finding, list: Funnel step, \
Observed friction, Behavioral impact, and Business risk level (Low/Medium/High).""",
    "ia": """# Information Architecture
Analyze for Information Architecture & Navigation Flow based on visual-only evidence. Evaluate \
screen-to-screen continuity, navigation clarity, labeling, user orientation, and flow \
progression. Identify structural confusion, inconsistent labeling, or missing orientation cues. \
Do NOT assume hidden navigation. OUTPUT FORMAT: Screens or flow segment affected, IA or flow \
issue, Visual evidence, Severity (Low / Medium / High).""",
    "hierarchy": """# Visual Hierarchy
Analyze for Visual Hierarchy & Clarity based on visual perception. Evaluate typography, spacing, \
alignment, visual grouping, emphasis, and scan paths. Identify competing visual priorities, poor \
hierarchy, overloaded screens, or distracting elements. DO NOT express aesthetic preferences. \
OUTPUT FORMAT: Screen(s) affected, Visual hierarchy issue, User comprehension impact, \
Severity (Low / Medium / High).""",
}

SCORE_LABELS: dict[str, str] = {
    "heuristics": "UX Score (0-100)",
    "wcag": "Accessibility Score (0-100)",
    "efficiency": "Flow Efficiency Score (0-100)",
    "conversion": "Conversion Score (0-100)",
    "ia": "Information Architecture Score (0-100)",
    "hierarchy": "Visual Hierarchy Score (0-100)",
}

RISKS_INSTRUCTION = """# Risks
Analyze the interface and identify the top 3 UX risks that could negatively impact user success.
For each risk, provide: Title, Why it matters, Potential Impact.
Identify the specific screen index (0-based) and a bounding box [ymin, xmin, ymax, xmax] \
(0-1000 scale) for the element.

IMPORTANT: You MUST output the risks section inside a JSON code block matching this structure:
```json
{
  "uxRisks": [
    {
      "title": "",
      "whyItMatters": "",
      "potentialImpact": "",
      "screenIndex": 0,
      "boundingBox": [0, 0, 1000, 1000]
    }
  ]
}
```"""

SCREEN_NAMES_INSTRUCTION = """IMPORTANT: You MUST also identify a concise, descriptive name \
for each screen based on its content (e.g. "Login", "Dashboard", "Checkout").
Output these names in a separate JSON code block matching this structure:
```json
{
  "screenNames": [
    { "index": 0, "name": "Concise Name" }
  ]
}
```"""

AUDIT_PROMPT = """You are an expert UX designer and WCAG 2.1 AA accessibility auditor. \
Analyze this UX flow and return a structured combined audit report.

PART 1: FLOW CONTEXT
Flow Name: {flow_name}

PART 2: SCREEN DESCRIPTIONS
{descriptions}

PART 3: REQUIRED AUDIT SECTIONS
You must generate a report containing ONLY the following sections in this order. \
Use H1 Headers (# ) for each section title exactly as requested.

{modules}

{risks}

{screen_names}

After the main sections, include:
- # Issue Severity: Categorize issues as High, Medium, or Low.
- # Recommended Fixes: Actionable improvements.
- # Scores: Provide the following scores: {scores}.

Analyze the screens below and generate the report now.
"""


def build_audit_prompt(
    flow_name: str, descriptions: list[str], options: AnalysisOptions | None = None
) -> str:
    """
    Build the audit prompt for a flow.

    Args:
        flow_name: Name of the flow
        descriptions: Per-screen descriptions, in screen order
        options: Sections to request (all by default)

    Returns:
        Prompt text
    """
    options = options or AnalysisOptions()
    enabled = asdict(options)

    modules = "\n\n".join(text for key, text in MODULE_INSTRUCTIONS.items() if enabled[key])
    scores = ", ".join(label for key, label in SCORE_LABELS.items() if enabled[key])
    screen_lines = "\n".join(f"Screen {i + 1}: {d}" for i, d in enumerate(descriptions))

    return AUDIT_PROMPT.format(
        flow_name=flow_name,
        descriptions=screen_lines,
        modules=modules,
        risks=RISKS_INSTRUCTION if options.risks else "",
        screen_names=SCREEN_NAMES_INSTRUCTION,
        scores=scores,
    )
