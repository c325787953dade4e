import logging
import re
from typing import Dict, List, Optional, Tuple

from openai import AsyncOpenAI

from .invoker import invoke_with_timeout
from .models import TreatmentPlan
from .outcomes import Failure
from .treatment_catalog import FALLBACK_PLANS, GENERAL_PLAN

logger = logging.getLogger(__name__)

# mode -> (label token, key prefix, number of periods)
PERIODS = {
    "daily": ("Day", "day", 6),
    "weekly": ("Week", "week", 4),
}

DAILY_PROMPT = """Make a 6-day treatment plan for someone with {category} acne and {skin_type} skin type. Use only general, easily available skincare products and some homeopathic remedies. Recommend simple serums (e.g., with niacinamide, salicylic acid, AHA/BHA, etc.) and avoid anything with known side effects. Make sure the plan is gentle and can be safely followed by anyone. Break down the plan day by day.

Format your response exactly like this, with each day's treatment on a new line:
Day 1: [treatment for day 1]
Day 2: [treatment for day 2]
Day 3: [treatment for day 3]
Day 4: [treatment for day 4]
Day 5: [treatment for day 5]
Day 6: [treatment for day 6]"""

WEEKLY_PROMPT = """Make a 4-week treatment plan for someone with {category} acne and {skin_type} skin type. Use only general, easily available skincare products and some homeopathic remedies. Recommend simple serums (e.g., with niacinamide, salicylic acid, AHA/BHA, etc.) and avoid anything with known side effects. Make sure the plan is gentle and can be safely followed by anyone. Break down the plan week by week.

Format your response exactly like this, with each week's treatment on a new line:
Week 1: [treatment for week 1]
Week 2: [treatment for week 2]
Week 3: [treatment for week 3]
Week 4: [treatment for week 4]"""


def plan_keys(mode: str) -> List[str]:
    _, prefix, count = PERIODS[mode]
    return [f"{prefix}{n}" for n in range(1, count + 1)]


def _clean(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip(" *-")


def parse_treatment_plan(text: str, mode: str = "daily") -> Optional[Dict[str, str]]:
    """
    Parse "Day N: ..." / "Week N: ..." text into {day1: ..., ...}.

    Tries a whole-text pattern first, then a line scan that also accepts
    "Day 1 - ..." style labels. Returns None when the first period is still
    empty; later periods may come back as "".
    """
    token, prefix, count = PERIODS[mode]
    plan = {key: "" for key in plan_keys(mode)}
    if not text or not text.strip():
        return None

    label = rf"\b{token}\s+(\d+)[*\s]*:"
    pattern = re.compile(rf"{label}(.*?)(?=\b{token}\s+\d+[*\s]*:|$)", re.IGNORECASE | re.DOTALL)
    for match in pattern.finditer(text):
        number = int(match.group(1))
        if 1 <= number <= count:
            plan[f"{prefix}{number}"] = _clean(match.group(2))

    if plan[f"{prefix}1"]:
        return plan

    # Line-oriented fallback
    line_label = re.compile(rf"^[#*\s-]*{token}\s+(\d+)[*\s]*[:.)\-–—](.*)$", re.IGNORECASE)
    current = None
    for line in text.splitlines():
        trimmed = line.strip()
        match = line_label.match(trimmed)
        if match:
            number = int(match.group(1))
            current = f"{prefix}{number}" if 1 <= number <= count else None
            if current:
                plan[current] = _clean(match.group(2))
        elif current and trimmed:
            plan[current] = _clean(f"{plan[current]} {trimmed}")

    return plan if plan[f"{prefix}1"] else None


def select_fallback_plan(
    category: str,
    mode: str,
    catalog: Optional[List[dict]] = None,
    general: Optional[dict] = None,
) -> Tuple[str, Dict[str, str]]:
    catalog = FALLBACK_PLANS if catalog is None else catalog
    general = GENERAL_PLAN if general is None else general

    lowered = (category or "").lower()
    for entry in catalog:
        if any(term.lower() in lowered for term in entry["match"]):
            return entry["name"], dict(entry[mode])
    return general["name"], dict(general[mode])


class TreatmentPlanner:
    """Generates a treatment plan with an LLM; always answers, falling back to the catalog."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI],
        model: str = "gpt-4o",
        timeout: float = 15.0,
        catalog: Optional[List[dict]] = None,
        general: Optional[dict] = None,
    ):
        self.client = client
        self.model = model
        self.timeout = timeout
        self.catalog = FALLBACK_PLANS if catalog is None else catalog
        self.general = GENERAL_PLAN if general is None else general

    def fallback(self, category: str, mode: str, reason: str) -> TreatmentPlan:
        name, plan = select_fallback_plan(category, mode, self.catalog, self.general)
        logger.info(f"Using fallback {mode} treatment plan '{name}' for {category!r}: {reason}")
        return TreatmentPlan(
            category=category,
            mode=mode,
            plan=plan,
            is_using_fallback=True,
            parse_error=reason,
        )

    async def _generate_text(self, category: str, skin_type: str, mode: str) -> str:
        template = DAILY_PROMPT if mode == "daily" else WEEKLY_PROMPT
        response = await self.client.chat.completions.create(
            model=self.model,
            temperature=0,
            messages=[
                {"role": "system", "content": "You are a skincare routine expert. Follow the requested format exactly."},
                {"role": "user", "content": template.format(category=category, skin_type=skin_type)},
            ],
        )
        return response.choices[0].message.content or ""

    async def generate_plan(self, category: str, skin_type: str = "Normal", mode: str = "daily") -> TreatmentPlan:
        category = (category or "").strip() or "General"
        skin_type = (skin_type or "").strip() or "Normal"
        if mode not in PERIODS:
            logger.warning(f"Unknown plan mode {mode!r}, using daily")
            mode = "daily"

        try:
            if not self.client:
                return self.fallback(category, mode, "AI service not configured")

            outcome = await invoke_with_timeout(
                "treatment_plan",
                lambda: self._generate_text(category, skin_type, mode),
                self.timeout,
            )
            if isinstance(outcome, Failure):
                return self.fallback(category, mode, f"Plan generation failed ({outcome.kind.value}): {outcome.message}")

            text = str(outcome.value or "")
            plan = parse_treatment_plan(text, mode)
            if plan is None:
                logger.warning(f"Could not parse {mode} plan: {text[:300]}")
                return self.fallback(category, mode, f"Failed to parse {mode} treatment plan from AI response")

            missing = [key for key, value in plan.items() if not value]
            if missing:
                _, recommended = select_fallback_plan(category, mode, self.catalog, self.general)
                for key in missing:
                    plan[key] = recommended[key]
                return TreatmentPlan(
                    category=category,
                    mode=mode,
                    plan=plan,
                    is_using_fallback=True,
                    parse_error=f"Generated plan was missing {', '.join(missing)}; filled from the recommended plan",
                )

            logger.info(f"Generated {mode} treatment plan for {category!r}")
            return TreatmentPlan(category=category, mode=mode, plan=plan)

        except Exception as e:
            logger.error(f"Treatment plan error: {str(e)}")
            return self.fallback(category, mode, f"Failed to generate treatment plan: {e}")
