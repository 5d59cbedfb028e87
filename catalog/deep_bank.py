"""Question bank for the deep interview mode.

Every entry carries two or three phrasings so repeated interviews do not
sound scripted. Deep-dive questions are grouped per business area and only
become relevant once the respondent reports expertise and a problem there.
"""
from __future__ import annotations

from typing import Any, Dict, Tuple

from .answers import Answer, answer_text, answer_values
from .builders import (
    longer_than,
    mentions,
    nest,
    opts,
    picked,
    question,
    set_list,
    set_scale,
    set_text,
    shorter_than,
    trigger,
    variants,
)
from .models import QuestionDefinition

BANK_VERSION = "2.1"

BLOCKS: Tuple[str, ...] = (
    "intro",
    "company_snapshot",
    "expertise",
    "problems_opportunities",
    "deep_dive",
    "automation_focus",
    "closing",
)

AREAS = opts(
    ("strategy-business", "Strategy & business"),
    ("tech-engineering", "Technology & engineering"),
    ("product-ux", "Product & UX"),
    ("finance-ops", "Finance & operations"),
    ("marketing-sales", "Marketing & sales"),
    ("hr", "People & HR"),
)


def _consent(answer: Answer) -> Dict[str, Any]:
    text = answer_text(answer).lower()
    if not text:
        return {}
    return nest("respondent.consent", text in {"yes", "true", "1", "sure", "ok"})


def _intermediate_areas(answer: Answer) -> Dict[str, Any]:
    levels = {area: "intermediate" for area in answer_values(answer) if area != "none"}
    return nest("expertise.levels", levels) if levels else {}


def _main_area(answer: Answer) -> Dict[str, Any]:
    area = answer_text(answer)
    return nest("expertise.levels", {area: "deep"}) if area else {}


def _deep(area: str, field: str, *, as_list: bool = False):
    if field == "process_overview":
        return set_text(f"deep_dives.{area}.process_overview")
    if field == "bottlenecks":
        return set_list(f"deep_dives.{area}.bottlenecks")
    path = f"deep_dives.{area}.details.{field}"
    return set_list(path) if as_list else set_text(path)


INTRO: Tuple[QuestionDefinition, ...] = (
    question(
        "intro-001-consent",
        "intro",
        variants(
            ("This conversation takes about 15 minutes and your answers shape a tailored report. Shall we begin?", "formal"),
            ("We'll chat for roughly 15 minutes and turn it into a report made for you. Ready?", "casual"),
        ),
        input_type="single_choice",
        options=opts(("yes", "Yes, let's go"), ("no", "Not now")),
        block="intro",
        required=True,
        weight=5,
        extract=_consent,
    ),
)


COMPANY_SNAPSHOT: Tuple[QuestionDefinition, ...] = (
    question(
        "snap-001-company-name",
        "company",
        variants(
            ("What is the name of your company?", "formal"),
            ("Which company are you with?", "casual"),
            ("Let's start simple: what's the company called?", "conversational"),
        ),
        input_type="text",
        block="company_snapshot",
        required=True,
        weight=5,
        extract=set_text("company_snapshot.company_name"),
    ),
    question(
        "snap-002-sector",
        "company",
        variants(
            ("Which sector does the company operate in?", "formal"),
            ("What industry are you in?", "casual"),
        ),
        input_type="single_choice",
        options=opts(
            ("technology", "Technology"),
            ("financial-services", "Financial services"),
            ("retail", "Retail & e-commerce"),
            ("healthcare", "Healthcare"),
            ("industry", "Manufacturing & industry"),
            ("services", "Professional services"),
            ("other", "Other"),
        ),
        block="company_snapshot",
        required=True,
        weight=5,
        extract=set_text("company_snapshot.sector"),
    ),
    question(
        "snap-003-business-model",
        "company",
        variants(
            ("Which business models describe the company?", "formal"),
            ("How do you make money? Pick all that apply.", "casual"),
        ),
        input_type="multi_choice",
        options=opts(("b2b", "B2B"), ("b2c", "B2C"), ("b2b2c", "B2B2C"), ("marketplace", "Marketplace"), ("saas", "SaaS / subscription")),
        block="company_snapshot",
        required=True,
        weight=4,
        extract=set_list("company_snapshot.business_model"),
    ),
    question(
        "snap-004-revenue-range",
        "company",
        variants(
            ("What is the approximate annual revenue?", "formal"),
            ("Roughly how much revenue does the company bring in per year?", "conversational"),
        ),
        input_type="single_choice",
        options=opts(("<1M", "Under $1M"), ("1M-10M", "$1M - $10M"), ("10M-50M", "$10M - $50M"), ("50M-200M", "$50M - $200M"), ("200M+", "Over $200M")),
        block="company_snapshot",
        weight=3,
        extract=set_text("company_snapshot.revenue_range"),
    ),
    question(
        "snap-005-employees",
        "company",
        variants(
            ("How many employees does the company have?", "formal"),
            ("How big is the team overall?", "casual"),
        ),
        input_type="single_choice",
        options=opts(("startup", "1-50"), ("small", "51-200"), ("scaleup", "201-1000"), ("large", "More than 1000")),
        block="company_snapshot",
        required=True,
        weight=4,
        followups=(
            trigger(
                picked("scaleup", "large"),
                "larger companies usually split work across many teams",
                "How many teams or departments are involved in the day-to-day operation?",
            ),
        ),
        extract=set_text("company_snapshot.company_size"),
    ),
    question(
        "snap-006-digital-maturity",
        "company",
        variants(
            ("On a scale of 0 to 5, how digitally mature is the company?", "formal"),
            ("From 0 (paper and email) to 5 (fully digital), where are you?", "casual"),
        ),
        input_type="scale",
        block="company_snapshot",
        weight=3,
        extract=set_scale("company_snapshot.digital_maturity"),
    ),
    question(
        "snap-007-ai-usage-current",
        "company",
        variants(
            ("How does the company use AI today?", "formal"),
            ("Where is AI showing up in your work today, if at all?", "conversational"),
        ),
        input_type="single_choice",
        options=opts(
            ("none", "Not at all"),
            ("individual", "Individuals experiment on their own"),
            ("some_processes", "In a few processes"),
            ("structured", "Structured initiatives"),
        ),
        block="company_snapshot",
        weight=4,
        followups=(
            trigger(
                picked("some_processes", "structured"),
                "existing AI usage is a concrete opportunity to scale",
                "Which process benefits the most from AI today, and what result has it delivered?",
                opportunity=True,
            ),
        ),
        extract=set_text("company_snapshot.ai_usage_current"),
    ),
)


EXPERTISE: Tuple[QuestionDefinition, ...] = (
    question(
        "exp-001-areas",
        "expertise",
        variants(
            ("Which areas of the business do you know well enough to talk about?", "formal"),
            ("Which parts of the company could you walk me through?", "casual"),
        ),
        input_type="multi_choice",
        options=AREAS,
        block="expertise",
        required=True,
        weight=5,
        extract=set_list("expertise.areas"),
    ),
    question(
        "exp-002-intermediate-areas",
        "expertise",
        variants(
            ("In which of those areas is your knowledge at least intermediate?", "formal"),
            ("Which of those do you know beyond the basics?", "casual"),
        ),
        input_type="multi_choice",
        options=AREAS + opts(("none", "None of them")),
        block="expertise",
        required=True,
        weight=4,
        extract=_intermediate_areas,
    ),
    question(
        "exp-003-main-area",
        "expertise",
        variants(
            ("Which single area do you know in depth?", "formal"),
            ("If you had to pick your home turf, which area would it be?", "casual"),
        ),
        input_type="single_choice",
        options=AREAS,
        block="expertise",
        required=True,
        weight=4,
        extract=_main_area,
    ),
)


PROBLEMS: Tuple[QuestionDefinition, ...] = (
    question(
        "prob-001-problem-areas",
        "problems",
        variants(
            ("In which areas do you see the most pressing problems?", "formal"),
            ("Where does it hurt the most right now?", "casual"),
            ("Which areas keep the leadership team up at night?", "strategic"),
        ),
        input_type="multi_choice",
        options=AREAS,
        block="problems_opportunities",
        required=True,
        weight=5,
        extract=set_list("problems_and_opportunities.problem_areas"),
    ),
    question(
        "prob-002-opportunity-areas",
        "problems",
        variants(
            ("Rank the areas where you see the biggest opportunities, most important first.", "formal"),
            ("Where would an improvement pay off the most? Order them for me.", "casual"),
        ),
        input_type="multi_choice",
        options=AREAS,
        block="problems_opportunities",
        weight=4,
        extract=set_list("problems_and_opportunities.opportunity_areas_sorted"),
    ),
    question(
        "prob-003-problem-stories",
        "problems",
        variants(
            ("Describe one or two concrete situations where these problems showed up.", "formal", ),
            ("Tell me a story about the last time one of these problems bit you.", "conversational"),
        ),
        input_type="text",
        placeholder="What happened, who was involved, what did it cost?",
        block="problems_opportunities",
        required=True,
        weight=5,
        followups=(
            trigger(
                longer_than(100),
                "a detailed story usually hides a measurable impact",
                "What did that situation cost in time, money or customers?",
                opportunity=True,
            ),
        ),
        extract=set_text("problems_and_opportunities.problem_stories_raw"),
    ),
)


def _dive(qid, area, texts, *, input_type="text", options=(), weight=3, followups=(), extract=None, tags=(), placeholder=None):
    return question(
        qid,
        area,
        variants(*texts, placeholder=placeholder),
        input_type=input_type,
        options=options,
        block="deep_dive",
        weight=weight,
        tags=tags,
        followups=followups,
        extract=extract,
    )


MARKETING_SALES: Tuple[QuestionDefinition, ...] = (
    _dive(
        "mkt-001-process",
        "marketing-sales",
        (
            ("Walk me through how a lead becomes a customer today.", "formal"),
            ("How does a lead turn into a deal at your company?", "casual"),
            ("From first touch to signed contract, what happens?", "conversational"),
        ),
        weight=5,
        tags=("process",),
        followups=(trigger(shorter_than(100), "the process description is too short", "Could you describe each step in a bit more detail, including who does it?"),),
        extract=_deep("marketing-sales", "process_overview"),
    ),
    _dive(
        "mkt-002-bottlenecks",
        "marketing-sales",
        (
            ("Where does the sales and marketing process get stuck?", "formal"),
            ("What slows your pipeline down?", "casual"),
        ),
        weight=5,
        tags=("bottleneck",),
        followups=(
            trigger(
                mentions("manual", "spreadsheet", "slow", "excel"),
                "manual work in the funnel is an automation opportunity",
                "How many hours a week go into that manual work, and who does it?",
                opportunity=True,
            ),
        ),
        extract=_deep("marketing-sales", "bottlenecks"),
    ),
    _dive(
        "mkt-003-metrics",
        "marketing-sales",
        (
            ("Which funnel metrics do you track?", "formal"),
            ("What numbers do you watch in sales and marketing?", "casual"),
        ),
        input_type="multi_choice",
        options=opts(("cac", "CAC"), ("ltv", "LTV"), ("conversion", "Conversion rates"), ("pipeline", "Pipeline value"), ("none", "None consistently")),
        tags=("metrics",),
        followups=(trigger(picked("none"), "no funnel metrics are tracked", "How do you decide where to invest in marketing without those numbers?"),),
        extract=_deep("marketing-sales", "metrics", as_list=True),
    ),
    _dive(
        "mkt-004-owner",
        "marketing-sales",
        (
            ("Who owns the end-to-end revenue process?", "formal"),
            ("Is there one person accountable for the funnel?", "casual"),
        ),
        input_type="single_choice",
        options=opts(("dedicated", "A dedicated leader"), ("shared", "Shared between teams"), ("nobody", "Nobody really")),
        tags=("ownership",),
        extract=_deep("marketing-sales", "owner"),
    ),
    _dive(
        "mkt-005-manual-tasks",
        "marketing-sales",
        (
            ("Which marketing or sales tasks are still done by hand?", "formal"),
            ("What do people in sales and marketing copy and paste all day?", "casual"),
        ),
        tags=("automation",),
        extract=_deep("marketing-sales", "manual_tasks"),
    ),
)


TECH_ENGINEERING: Tuple[QuestionDefinition, ...] = (
    _dive(
        "tech-001-dev-process",
        "tech-engineering",
        (
            ("Describe how work flows from idea to production in engineering.", "formal"),
            ("How does a feature go from ticket to production?", "casual"),
        ),
        weight=5,
        tags=("process",),
        followups=(trigger(shorter_than(80), "the development flow is described too briefly", "Which steps in that flow take the longest or wait on someone?"),),
        extract=_deep("tech-engineering", "process_overview"),
    ),
    _dive(
        "tech-002-cycle-time",
        "tech-engineering",
        (
            ("How long does a typical feature take to ship?", "formal"),
            ("From start to production, how long does a feature usually take?", "casual"),
        ),
        input_type="single_choice",
        options=opts(("days", "A few days"), ("week", "About a week"), ("weeks", "Several weeks"), ("month_plus", "More than a month"), ("varies", "It varies a lot")),
        weight=4,
        tags=("cycle-time", "metrics"),
        followups=(
            trigger(
                picked("month_plus", "varies"),
                "long or unpredictable cycle time signals a bottleneck",
                "What is the main reason features take that long?",
                opportunity=True,
            ),
        ),
        extract=_deep("tech-engineering", "cycle_time"),
    ),
    _dive(
        "tech-003-bugs-frequency",
        "tech-engineering",
        (
            ("How often do relevant bugs reach production?", "formal"),
            ("How often do bugs slip into production?", "casual"),
        ),
        input_type="single_choice",
        options=opts(("daily", "Daily"), ("weekly", "Weekly"), ("monthly", "Monthly"), ("rare", "Rarely")),
        tags=("quality",),
        followups=(
            trigger(
                picked("daily", "weekly"),
                "frequent production bugs have a measurable cost",
                "How much team time goes into fixing those bugs each week?",
                opportunity=True,
            ),
        ),
        extract=_deep("tech-engineering", "bug_frequency"),
    ),
    _dive(
        "tech-004-stack",
        "tech-engineering",
        (
            ("What does your technology stack look like, and what is legacy?", "formal"),
            ("What is the stack, and which parts are getting old?", "casual"),
        ),
        tags=("stack",),
        extract=_deep("tech-engineering", "stack"),
    ),
    _dive(
        "tech-005-automation",
        "tech-engineering",
        (
            ("Which parts of testing and deployment are automated?", "formal"),
            ("What still needs a human to ship a release?", "casual"),
        ),
        tags=("automation",),
        extract=_deep("tech-engineering", "automation_level"),
    ),
)


PRODUCT_UX: Tuple[QuestionDefinition, ...] = (
    _dive(
        "prod-001-discovery",
        "product-ux",
        (
            ("How does the team decide what to build next?", "formal"),
            ("Where do new product ideas come from?", "casual"),
        ),
        weight=5,
        tags=("process",),
        followups=(trigger(shorter_than(80), "the discovery process is described too briefly", "Who is involved in those decisions and what data do they use?"),),
        extract=_deep("product-ux", "process_overview"),
    ),
    _dive(
        "prod-002-feedback",
        "product-ux",
        (
            ("Which channels bring customer feedback to the product team?", "formal"),
            ("How do you hear from users?", "casual"),
        ),
        input_type="multi_choice",
        options=opts(("support", "Support tickets"), ("interviews", "User interviews"), ("analytics", "Product analytics"), ("sales", "Sales team"), ("none", "No structured channel")),
        tags=("feedback",),
        extract=_deep("product-ux", "feedback_channels", as_list=True),
    ),
    _dive(
        "prod-003-prioritization",
        "product-ux",
        (
            ("How is the roadmap prioritized?", "formal"),
            ("Who wins when two features compete for the same sprint?", "casual"),
        ),
        input_type="single_choice",
        options=opts(("data", "Data and experiments"), ("framework", "A scoring framework"), ("hippo", "The most senior opinion"), ("loudest", "Whoever shouts loudest")),
        tags=("prioritization",),
        extract=_deep("product-ux", "prioritization"),
    ),
    _dive(
        "prod-004-ux-gap",
        "product-ux",
        (
            ("What is the biggest gap in the user experience today?", "formal"),
            ("What do users complain about most?", "casual"),
        ),
        tags=("ux",),
        extract=_deep("product-ux", "bottlenecks"),
    ),
)


FINANCE_OPS: Tuple[QuestionDefinition, ...] = (
    _dive(
        "finops-001-close",
        "finance-ops",
        (
            ("How does the monthly financial close work?", "formal"),
            ("Walk me through closing the books each month.", "casual"),
        ),
        weight=5,
        tags=("process",),
        extract=_deep("finance-ops", "process_overview"),
    ),
    _dive(
        "finops-002-spreadsheets",
        "finance-ops",
        (
            ("How dependent are finance and operations on spreadsheets?", "formal"),
            ("How many critical processes live in spreadsheets?", "casual"),
        ),
        input_type="single_choice",
        options=opts(("yes_many", "Many critical ones"), ("some", "Some"), ("no", "Hardly any")),
        weight=4,
        tags=("spreadsheet",),
        followups=(
            trigger(
                picked("yes_many"),
                "critical spreadsheets are a strong automation candidate",
                "Which spreadsheet would hurt the most if it broke tomorrow?",
                opportunity=True,
            ),
        ),
        extract=_deep("finance-ops", "spreadsheet_dependency"),
    ),
    _dive(
        "finops-003-reporting",
        "finance-ops",
        (
            ("How often does leadership receive operational reports?", "formal"),
            ("How fresh are the numbers leadership looks at?", "casual"),
        ),
        input_type="single_choice",
        options=opts(("realtime", "Real time"), ("weekly", "Weekly"), ("monthly", "Monthly"), ("adhoc", "Only when asked")),
        tags=("reporting",),
        extract=_deep("finance-ops", "reporting_cadence"),
    ),
    _dive(
        "finops-004-reconciliation",
        "finance-ops",
        (
            ("Which reconciliations or approvals are still manual?", "formal"),
            ("What does the finance team still do by hand?", "casual"),
        ),
        tags=("automation",),
        extract=_deep("finance-ops", "bottlenecks"),
    ),
)


STRATEGY_BUSINESS: Tuple[QuestionDefinition, ...] = (
    _dive(
        "strat-001-planning",
        "strategy-business",
        (
            ("How often is company strategy reviewed?", "formal"),
            ("How often do you revisit the plan?", "casual"),
        ),
        input_type="single_choice",
        options=opts(("quarterly", "Quarterly"), ("yearly", "Yearly"), ("adhoc", "When something breaks"), ("never", "Rarely")),
        weight=4,
        tags=("planning",),
        extract=_deep("strategy-business", "planning_cadence"),
    ),
    _dive(
        "strat-002-data",
        "strategy-business",
        (
            ("How much are strategic decisions backed by data?", "formal"),
            ("When you make a big call, how much data is behind it?", "casual"),
        ),
        input_type="single_choice",
        options=opts(("mostly", "Mostly data-driven"), ("mixed", "A mix of data and intuition"), ("intuition", "Mostly intuition")),
        tags=("data",),
        extract=_deep("strategy-business", "data_driven"),
    ),
    _dive(
        "strat-003-bet",
        "strategy-business",
        (
            ("What is the biggest strategic bet for the next two years?", "strategic"),
            ("What is the one move that decides the next two years?", "casual"),
        ),
        weight=5,
        tags=("strategy",),
        extract=_deep("strategy-business", "process_overview"),
    ),
    _dive(
        "strat-004-ai-strategy",
        "strategy-business",
        (
            ("Does the company have a defined AI strategy?", "formal"),
            ("Is there a plan for AI, or is it still ad hoc?", "casual"),
        ),
        input_type="single_choice",
        options=opts(("defined", "Yes, defined and funded"), ("draft", "A draft"), ("none", "Not yet")),
        tags=("ai",),
        extract=_deep("strategy-business", "ai_strategy"),
    ),
)


AUTOMATION_FOCUS: Tuple[QuestionDefinition, ...] = (
    question(
        "auto-001-repetitive-tasks",
        "automation",
        variants(
            ("Which repetitive tasks consume the most time in your area?", "formal"),
            ("What boring task would you delete from everyone's week?", "casual"),
        ),
        input_type="text",
        block="automation_focus",
        required=True,
        weight=5,
        extract=set_text("automation_opportunities.repetitive_tasks"),
    ),
    question(
        "auto-002-manual-dependencies",
        "automation",
        variants(
            ("Which processes depend on a specific person to run?", "formal"),
            ("What falls apart when a certain someone goes on vacation?", "casual"),
        ),
        input_type="text",
        block="automation_focus",
        weight=4,
        extract=set_text("automation_opportunities.manual_dependencies"),
    ),
    question(
        "auto-003-ai-team-wish",
        "automation",
        variants(
            ("If you had an AI team for six months, what would you have it build?", "strategic"),
            ("Imagine a team of AI specialists joins tomorrow. What's their first job?", "conversational"),
        ),
        input_type="text",
        block="automation_focus",
        weight=4,
        extract=set_text("automation_opportunities.ai_team_wish"),
    ),
)


CLOSING: Tuple[QuestionDefinition, ...] = (
    question(
        "close-001-single-fix",
        "closing",
        variants(
            ("If you could fix one thing in the next 90 days, what would it be?", "formal"),
            ("One fix, 90 days. What do you pick?", "casual"),
        ),
        input_type="text",
        block="closing",
        required=True,
        weight=5,
        extract=set_text("closing.single_most_important_fix"),
    ),
    question(
        "close-002-ai-readiness",
        "closing",
        variants(
            ("From 0 to 10, how ready is the company to adopt AI?", "formal"),
            ("Gut feeling, 0 to 10: how ready are you for AI?", "casual"),
        ),
        input_type="scale",
        block="closing",
        required=True,
        weight=4,
        extract=set_scale("closing.ai_readiness_score"),
    ),
    question(
        "close-003-report-focus",
        "closing",
        variants(
            ("What should the report focus on?", "formal"),
            ("What would make this report most useful for you?", "casual"),
        ),
        input_type="single_choice",
        options=opts(("roi", "ROI and financial impact"), ("roadmap", "An implementation roadmap"), ("quick_wins", "Quick wins"), ("benchmark", "Benchmark against peers")),
        block="closing",
        weight=3,
        extract=set_text("closing.report_focus_preference"),
    ),
)


DEEP_DIVES: Dict[str, Tuple[QuestionDefinition, ...]] = {
    "marketing-sales": MARKETING_SALES,
    "tech-engineering": TECH_ENGINEERING,
    "product-ux": PRODUCT_UX,
    "finance-ops": FINANCE_OPS,
    "strategy-business": STRATEGY_BUSINESS,
}

DEEP_BANK: Tuple[QuestionDefinition, ...] = (
    INTRO
    + COMPANY_SNAPSHOT
    + EXPERTISE
    + PROBLEMS
    + MARKETING_SALES
    + TECH_ENGINEERING
    + PRODUCT_UX
    + FINANCE_OPS
    + STRATEGY_BUSINESS
    + AUTOMATION_FOCUS
    + CLOSING
)

FIRST_QUESTION_ID = "intro-001-consent"


__all__ = ["AREAS", "BANK_VERSION", "BLOCKS", "DEEP_BANK", "DEEP_DIVES", "FIRST_QUESTION_ID"]
