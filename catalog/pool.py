"""Adaptive question pool used by the quick assessment router.

Questions are grouped by category; every entry declares the structured
fields it fills so the completeness scorer and the router can reason about
what is still missing.
"""
from __future__ import annotations

from typing import Tuple

from .builders import map_value, opts, pain_flag, question, set_first_int, set_list, set_text
from .models import QuestionDefinition

POOL_VERSION = "2024.2"

ENG = "engineering-tech"
OPS = "it-devops"
PROD = "product-business"
BOARD = "board-executive"
FIN = "finance-ops"


COMPANY_QUESTIONS: Tuple[QuestionDefinition, ...] = (
    question(
        "company-industry-v2",
        "company",
        "Which industry does your company operate in?",
        input_type="single_choice",
        priority="essential",
        options=opts(
            ("fintech", "Fintech / financial services"),
            ("saas-b2b", "B2B SaaS"),
            ("ecommerce", "E-commerce"),
            ("healthtech", "Healthtech"),
            ("edtech", "Edtech"),
            ("logistics", "Logistics"),
            ("retail", "Retail"),
            ("other", "Other"),
        ),
        tags=("industry", "context", "company"),
        skip_fields=("companyInfo.industry",),
        extract=set_text("companyInfo.industry"),
    ),
    question(
        "company-stage-v2",
        "company",
        "What stage is your company at?",
        input_type="single_choice",
        priority="essential",
        options=opts(
            ("early-stage", "Early stage (pre-seed / seed)"),
            ("growth", "Growth (Series A/B)"),
            ("scaleup", "Scale-up (Series C+)"),
            ("enterprise", "Established enterprise"),
        ),
        tags=("stage", "context", "company"),
        skip_fields=("companyInfo.stage",),
        extract=set_text("companyInfo.stage"),
    ),
    question(
        "company-name",
        "company",
        "What is the name of your company?",
        input_type="text",
        priority="essential",
        placeholder="Acme Inc.",
        tags=("name", "context"),
        skip_fields=("companyInfo.name",),
        extract=set_text("companyInfo.name"),
    ),
    question(
        "user-role",
        "company",
        "What is your role at the company?",
        input_type="text",
        priority="important",
        placeholder="e.g. CTO, VP Engineering, CFO",
        tags=("role", "context"),
        skip_topics=("role",),
        extract=set_text("contactInfo.title"),
    ),
    question(
        "company-size-employees",
        "company",
        "How many employees does the company have?",
        input_type="single_choice",
        priority="important",
        options=opts(
            ("1-10", "1-10"),
            ("11-50", "11-50"),
            ("51-200", "51-200"),
            ("201-500", "201-500"),
            ("500+", "More than 500"),
        ),
        tags=("size", "context", "company"),
        skip_fields=("companyInfo.size",),
        extract=set_text("companyInfo.size"),
    ),
    question(
        "team-size-dev",
        "company",
        "How many people work in engineering?",
        input_type="single_choice",
        priority="important",
        options=opts(
            ("1-5", "1-5 developers"),
            ("6-15", "6-15 developers"),
            ("16-30", "16-30 developers"),
            ("31-50", "31-50 developers"),
            ("50+", "More than 50 developers"),
        ),
        personas=(ENG, OPS, PROD),
        tags=("team-size", "context", "technical"),
        skip_fields=("currentState.devTeamSize",),
        extract=set_first_int("currentState.devTeamSize"),
    ),
    question(
        "tech-stack-primary",
        "company",
        "What is your main backend stack?",
        input_type="single_choice",
        options=opts(
            ("nodejs", "Node.js"),
            ("python", "Python"),
            ("java", "Java / Kotlin"),
            ("dotnet", ".NET"),
            ("ruby", "Ruby"),
            ("php", "PHP"),
            ("go", "Go"),
            ("other", "Other"),
        ),
        personas=(ENG, OPS),
        tags=("tech-stack", "technical"),
        extract=set_text("currentState.techStack.backend"),
    ),
    question(
        "company-revenue-range",
        "company",
        "What is the company's approximate annual revenue?",
        input_type="single_choice",
        priority="important",
        options=opts(
            ("<1M", "Under $1M"),
            ("1M-5M", "$1M - $5M"),
            ("5M-20M", "$5M - $20M"),
            ("20M-50M", "$20M - $50M"),
            ("50M+", "Over $50M"),
        ),
        personas=(BOARD, FIN),
        tags=("revenue", "context", "financial"),
        extract=set_text("companyInfo.revenue"),
    ),
    question(
        "company-growth-rate",
        "company",
        "How would you describe revenue growth over the last 12 months?",
        input_type="single_choice",
        options=opts(
            ("rapid", "Rapid (>50% a year)"),
            ("healthy", "Healthy (20-50%)"),
            ("moderate", "Moderate (5-20%)"),
            ("flat", "Flat"),
            ("declining", "Declining"),
        ),
        personas=(BOARD, PROD),
        tags=("growth", "context", "business"),
        extract=set_text("companyInfo.growthRate"),
    ),
)


def _pain(qid, text, label, answers, tags, *, priority="important", personas=("all",), accept=("yes",)):
    return question(
        qid,
        "pain-points",
        text,
        input_type="single_choice",
        priority=priority,
        options=opts(*answers),
        personas=personas,
        tags=tags,
        extract=pain_flag(label, accept=accept),
    )


PAIN_QUESTIONS: Tuple[QuestionDefinition, ...] = (
    _pain(
        "pain-velocity",
        "Is development speed slower than the business needs?",
        "Slow development velocity",
        (("yes-critical", "Yes, it is critical"), ("yes-moderate", "Yes, somewhat"), ("acceptable", "It is acceptable"), ("no", "No")),
        ("velocity", "pain", "development"),
        priority="essential",
        accept=("yes", "acceptable"),
    ),
    _pain(
        "pain-quality-bugs",
        "Do production bugs hurt your customers or your team?",
        "Quality issues and bugs",
        (("yes-many", "Yes, many"), ("yes-some", "Yes, some"), ("few", "Few"), ("no", "No")),
        ("quality", "bugs", "pain"),
        priority="essential",
    ),
    _pain(
        "pain-tech-debt",
        "Is technical debt slowing down new work?",
        "Technical debt",
        (("yes-blocking", "Yes, it blocks us"), ("yes-slowing", "Yes, it slows us down"), ("manageable", "It is manageable"), ("no", "No")),
        ("tech-debt", "pain", "technical"),
        personas=(ENG, OPS, PROD),
    ),
    _pain(
        "pain-people-hiring",
        "Is hiring or retaining engineers a problem?",
        "Hiring and retention",
        (("yes-critical", "Yes, it is critical"), ("yes-moderate", "Yes, somewhat"), ("ok", "It is fine"), ("no", "No")),
        ("hiring", "people", "pain"),
    ),
    _pain(
        "pain-cost",
        "Are engineering costs too high for the value delivered?",
        "High engineering cost",
        (("yes-unsustainable", "Yes, unsustainable"), ("yes-high", "Yes, high"), ("acceptable", "Acceptable"), ("no", "No")),
        ("cost", "pain", "financial"),
        personas=(BOARD, FIN),
    ),
    _pain(
        "pain-scalability",
        "Do you have scalability concerns with the current platform?",
        "Scalability",
        (("yes-critical", "Yes, critical"), ("yes-concerns", "Yes, some concerns"), ("ok", "It is fine"), ("no", "No")),
        ("scalability", "pain", "technical"),
        personas=(ENG, OPS),
    ),
    _pain(
        "pain-process",
        "Are internal processes getting in the way of delivery?",
        "Inefficient processes",
        (("yes-blocking", "Yes, they block us"), ("yes-slowing", "Yes, they slow us down"), ("ok", "They are fine"), ("no", "No")),
        ("process", "pain", "operations"),
        priority="optional",
    ),
    _pain(
        "pain-competition",
        "Are competitors shipping faster than you?",
        "Competitive pressure",
        (("yes-losing", "Yes, we are losing ground"), ("yes-pressure", "Yes, we feel the pressure"), ("competitive", "We are competitive"), ("no", "No")),
        ("competition", "pain", "market"),
        personas=(BOARD, PROD),
    ),
    _pain(
        "pain-compliance",
        "Are compliance or security requirements a concern?",
        "Compliance and security",
        (("yes-critical", "Yes, critical"), ("yes-concerns", "Yes, some concerns"), ("ok", "Under control"), ("no", "No")),
        ("compliance", "security", "pain"),
        priority="optional",
        personas=(ENG, OPS, FIN),
    ),
    _pain(
        "pain-customer-impact",
        "Have technology issues affected your customers?",
        "Customer impact",
        (("yes-churn", "Yes, we lost customers"), ("yes-complaints", "Yes, we get complaints"), ("occasional", "Occasionally"), ("no", "No")),
        ("customer-impact", "pain", "business"),
    ),
)


def _metric(qid, text, path, answers, tags, *, priority="optional", personas=("all",), requires_topics=(), skip_topics=(), mapping=None, default=None):
    extract = map_value(path, mapping, default) if mapping is not None else set_text(path)
    return question(
        qid,
        "quantification",
        text,
        input_type="single_choice",
        priority=priority,
        options=opts(*answers),
        personas=personas,
        tags=tags,
        requires_topics=requires_topics,
        skip_topics=skip_topics,
        extract=extract,
    )


QUANTIFICATION_QUESTIONS: Tuple[QuestionDefinition, ...] = (
    _metric(
        "cycle-time-days",
        "On average, how many days does a feature take from start to production?",
        "currentState.avgCycleTime",
        (("<1", "Less than a day"), ("1-3", "1-3 days"), ("4-7", "4-7 days"), ("8-14", "1-2 weeks"), ("15-30", "2-4 weeks"), (">30", "More than a month")),
        ("cycle-time", "metrics", "velocity"),
        priority="important",
        personas=(ENG, OPS, PROD),
        requires_topics=("pain", "velocity"),
        mapping={"<1": 0.5, "1-3": 2, "4-7": 5, "8-14": 11, "15-30": 22, ">30": 45},
        default=14,
    ),
    _metric(
        "deploy-frequency",
        "How often do you deploy to production?",
        "currentState.deployFrequency",
        (("daily", "Daily or more"), ("weekly", "Weekly"), ("biweekly", "Every two weeks"), ("monthly", "Monthly"), ("quarterly", "Quarterly or less")),
        ("deploy-frequency", "metrics", "velocity"),
        priority="important",
        personas=(ENG, OPS),
    ),
    _metric(
        "bugs-per-month",
        "How many production bugs do you see per month?",
        "currentState.bugRate",
        (("0-2", "0-2"), ("3-5", "3-5"), ("6-10", "6-10"), ("11-20", "11-20"), (">20", "More than 20")),
        ("bugs", "metrics", "quality"),
        priority="important",
        requires_topics=("bugs", "quality"),
        skip_topics=("bugs-quantified",),
        mapping={"0-2": 1, "3-5": 4, "6-10": 8, "11-20": 15, ">20": 30},
        default=5,
    ),
    _metric(
        "mttr-hours",
        "How long does it usually take to recover from an incident?",
        "currentState.mttr",
        (("<1h", "Under an hour"), ("1-4h", "1-4 hours"), ("4-24h", "4-24 hours"), ("1-3d", "1-3 days"), (">3d", "More than 3 days")),
        ("mttr", "metrics", "quality"),
        personas=(ENG, OPS),
    ),
    _metric(
        "test-coverage",
        "What is your approximate automated test coverage?",
        "currentState.testCoverage",
        (("0-20", "0-20%"), ("21-50", "21-50%"), ("51-70", "51-70%"), ("70+", "Over 70%"), ("unknown", "I don't know")),
        ("testing", "metrics", "quality"),
        personas=(ENG, OPS),
    ),
    _metric(
        "rework-hours-weekly",
        "How many hours per week does the team spend on rework?",
        "currentState.reworkHoursWeekly",
        (("0-5", "0-5 hours"), ("6-15", "6-15 hours"), ("16-25", "16-25 hours"), ("26-35", "26-35 hours"), (">35", "More than 35 hours")),
        ("rework", "metrics", "efficiency"),
        priority="important",
        requires_topics=("pain",),
        mapping={"0-5": 3, "6-15": 10, "16-25": 20, "26-35": 30, ">35": 40},
        default=10,
    ),
    _metric(
        "customers-lost-count",
        "How many customers did you lose to technology issues in the last 12 months?",
        "currentState.customersLost",
        (("0", "None"), ("1-3", "1-3"), ("4-10", "4-10"), (">10", "More than 10"), ("unknown", "I don't know")),
        ("churn", "metrics", "impact"),
        priority="important",
        personas=(BOARD, PROD, FIN),
        requires_topics=("customer-impact",),
    ),
    _metric(
        "revenue-at-risk",
        "How much annual revenue is at risk because of these issues?",
        "currentState.revenueAtRisk",
        (("<100k", "Under $100k"), ("100k-500k", "$100k - $500k"), ("500k-1M", "$500k - $1M"), ("1M-5M", "$1M - $5M"), (">5M", "Over $5M"), ("unknown", "I don't know")),
        ("revenue-risk", "metrics", "financial"),
        priority="important",
        personas=(BOARD, FIN),
        requires_topics=("customer-impact", "churn"),
    ),
    _metric(
        "cost-per-dev-monthly",
        "What is the fully loaded monthly cost per developer?",
        "currentState.costPerDev",
        (("<10k", "Under $10k"), ("10k-20k", "$10k - $20k"), ("20k-30k", "$20k - $30k"), (">30k", "Over $30k")),
        ("cost", "metrics", "financial"),
        personas=(FIN, BOARD),
    ),
    _metric(
        "time-to-hire-months",
        "How many months does it take to hire a developer?",
        "currentState.timeToHireMonths",
        (("<1", "Under a month"), ("1-2", "1-2 months"), ("2-4", "2-4 months"), (">4", "More than 4 months")),
        ("hiring", "metrics", "people"),
        requires_topics=("hiring", "people"),
    ),
    _metric(
        "tech-debt-weeks",
        "How many weeks of work would it take to pay down the critical tech debt?",
        "currentState.techDebtWeeks",
        (("<4", "Under 4 weeks"), ("4-12", "1-3 months"), ("12-24", "3-6 months"), (">24", "More than 6 months")),
        ("tech-debt", "metrics", "technical"),
        personas=(ENG, OPS),
        requires_topics=("tech-debt",),
    ),
    _metric(
        "failed-releases-percentage",
        "What share of releases need a rollback or hotfix?",
        "currentState.failedReleasesPercentage",
        (("0-5", "0-5%"), ("6-15", "6-15%"), ("16-30", "16-30%"), (">30", "Over 30%")),
        ("reliability", "metrics", "quality"),
        personas=(ENG, OPS),
    ),
)


def _maturity():
    return opts(("none", "None"), ("basic", "Basic"), ("intermediate", "Intermediate"), ("advanced", "Advanced"))


CURRENT_STATE_QUESTIONS: Tuple[QuestionDefinition, ...] = (
    question(
        "cicd-maturity",
        "current-state",
        "How mature is your CI/CD pipeline?",
        input_type="single_choice",
        priority="important",
        options=_maturity(),
        personas=(ENG, OPS),
        tags=("cicd", "automation", "devops"),
        extract=set_text("currentState.cicdMaturity"),
    ),
    question(
        "monitoring-observability",
        "current-state",
        "How would you rate your monitoring and observability?",
        input_type="single_choice",
        priority="important",
        options=_maturity(),
        personas=(ENG, OPS),
        tags=("monitoring", "observability", "devops"),
        extract=set_text("currentState.observability"),
    ),
    question(
        "ai-tools-current",
        "current-state",
        "Which AI tools does the team use today?",
        input_type="multi_choice",
        priority="important",
        options=opts(("github-copilot", "GitHub Copilot"), ("cursor", "Cursor"), ("chatgpt", "ChatGPT / Claude"), ("other", "Other"), ("none", "None yet")),
        tags=("ai-tools", "current-state"),
        extract=set_list("currentState.aiTools"),
    ),
    question(
        "code-review-process",
        "current-state",
        "How does code review work today?",
        input_type="single_choice",
        options=opts(("none", "No formal review"), ("informal", "Informal"), ("required", "Required on every change"), ("optimized", "Required and automated")),
        personas=(ENG, OPS),
        tags=("code-review", "process"),
        extract=set_text("currentState.codeReviewProcess"),
    ),
    question(
        "documentation-quality",
        "current-state",
        "How is the state of your technical documentation?",
        input_type="single_choice",
        options=opts(("none", "Almost none"), ("outdated", "Outdated"), ("basic", "Basic"), ("comprehensive", "Comprehensive")),
        personas=(ENG, OPS),
        tags=("documentation", "process"),
        extract=set_text("currentState.documentationQuality"),
    ),
    question(
        "team-seniority",
        "current-state",
        "How senior is the engineering team overall?",
        input_type="single_choice",
        options=opts(("mostly-junior", "Mostly junior"), ("mixed", "Mixed"), ("mostly-senior", "Mostly senior"), ("all-senior", "All senior")),
        personas=(ENG, OPS),
        tags=("seniority", "team"),
        extract=set_text("currentState.teamSeniority"),
    ),
    question(
        "knowledge-sharing",
        "current-state",
        "How does knowledge spread across the team?",
        input_type="multi_choice",
        options=opts(
            ("pair-programming", "Pair programming"),
            ("code-review", "Code review"),
            ("documentation", "Documentation"),
            ("meetings", "Meetings / tech talks"),
            ("informal", "Informally"),
            ("none", "It mostly doesn't"),
        ),
        personas=(ENG, OPS, PROD),
        tags=("knowledge", "team"),
        extract=set_list("currentState.knowledgeSharing"),
    ),
    question(
        "remote-hybrid-office",
        "current-state",
        "What is the team's working model?",
        input_type="single_choice",
        options=opts(("remote", "Fully remote"), ("hybrid", "Hybrid"), ("office", "In the office")),
        tags=("work-model", "team"),
        extract=set_text("currentState.workModel"),
    ),
)


GOAL_QUESTIONS: Tuple[QuestionDefinition, ...] = (
    question(
        "primary-goal",
        "goals",
        "What is the main goal for the next 12 months?",
        input_type="single_choice",
        priority="essential",
        options=opts(
            ("increase-velocity", "Ship faster"),
            ("improve-quality", "Improve quality"),
            ("reduce-costs", "Reduce costs"),
            ("scale-team", "Scale the team"),
            ("modernize-stack", "Modernize the stack"),
            ("meet-deadline", "Hit a critical deadline"),
        ),
        tags=("goal", "priority"),
        skip_fields=("goals.primaryGoals",),
        extract=set_list("goals.primaryGoals"),
    ),
    question(
        "timeline-urgency",
        "goals",
        "How soon do you need to see results?",
        input_type="single_choice",
        priority="essential",
        options=opts(
            ("immediate", "Immediately (this month)"),
            ("short", "Within 3 months"),
            ("medium", "Within 6 months"),
            ("long", "Within a year"),
            ("flexible", "No fixed date"),
        ),
        tags=("timeline", "urgency"),
        skip_fields=("goals.timeline",),
        extract=set_text("goals.timeline"),
    ),
    question(
        "external-pressure",
        "goals",
        "Is there pressure from investors, the board or customers to improve?",
        input_type="single_choice",
        priority="important",
        options=opts(("critical", "Yes, critical"), ("moderate", "Yes, moderate"), ("some", "Some"), ("none", "None")),
        personas=(BOARD, PROD, FIN),
        tags=("pressure", "urgency", "stakeholders"),
        extract=set_text("goals.externalPressure"),
    ),
    question(
        "competitive-threat",
        "goals",
        "Is a competitor threatening your market position?",
        input_type="single_choice",
        priority="important",
        options=opts(("yes-critical", "Yes, critically"), ("yes-moderate", "Yes, moderately"), ("monitoring", "We are watching"), ("no", "No")),
        personas=(BOARD, PROD),
        tags=("competition", "threat", "market"),
        extract=set_text("goals.competitiveThreat"),
    ),
    question(
        "success-metric",
        "goals",
        "How will you measure success?",
        input_type="single_choice",
        priority="important",
        options=opts(
            ("velocity", "Delivery speed"),
            ("quality", "Fewer bugs"),
            ("cost", "Lower cost"),
            ("team", "Team satisfaction"),
            ("customers", "Customer satisfaction"),
            ("revenue", "Revenue"),
        ),
        tags=("metrics", "success", "kpi"),
        skip_fields=("goals.successMetrics",),
        extract=set_list("goals.successMetrics"),
    ),
    question(
        "funding-round",
        "goals",
        "Are you planning a funding round?",
        input_type="single_choice",
        options=opts(("yes-soon", "Yes, in the next 6 months"), ("yes-future", "Yes, later on"), ("no", "No"), ("bootstrapped", "We are bootstrapped")),
        personas=(BOARD, FIN),
        tags=("funding", "investment"),
        extract=set_text("goals.fundingPlans"),
    ),
)


BUDGET_QUESTIONS: Tuple[QuestionDefinition, ...] = (
    question(
        "budget-range",
        "budget",
        "What budget range are you considering for this initiative?",
        input_type="single_choice",
        priority="essential",
        options=opts(("none", "No budget yet"), ("<100k", "Under $100k"), ("100k-500k", "$100k - $500k"), ("500k-1M", "$500k - $1M"), ("1M+", "Over $1M")),
        tags=("budget", "investment"),
        skip_fields=("goals.budgetRange",),
        extract=set_text("goals.budgetRange"),
    ),
    question(
        "budget-status",
        "budget",
        "Where does the budget stand today?",
        input_type="single_choice",
        priority="important",
        options=opts(("approved", "Approved"), ("pending", "Pending approval"), ("need-roi", "Needs an ROI case"), ("none", "Not started")),
        tags=("budget", "approval"),
        requires_topics=("budget",),
        extract=set_text("goals.budgetStatus"),
    ),
    question(
        "decision-authority",
        "budget",
        "Do you have authority to approve this investment?",
        input_type="single_choice",
        priority="important",
        options=opts(("yes-full", "Yes, full authority"), ("yes-partial", "Yes, with sign-off"), ("no-recommend", "No, I recommend"), ("no", "No")),
        tags=("authority", "decision"),
        extract=set_text("goals.decisionAuthority"),
    ),
    question(
        "procurement-timeline",
        "budget",
        "How long does procurement usually take?",
        input_type="single_choice",
        options=opts(("immediate", "Days"), ("1-2w", "1-2 weeks"), ("1month", "About a month"), (">1month", "More than a month")),
        tags=("procurement", "timeline"),
        requires_topics=("budget",),
        extract=set_text("goals.procurementTimeline"),
    ),
)


COMMITMENT_QUESTIONS: Tuple[QuestionDefinition, ...] = (
    question(
        "readiness-to-act",
        "commitment",
        "If the numbers make sense, are you ready to act?",
        input_type="single_choice",
        priority="important",
        options=opts(("yes-ready", "Yes, ready to start"), ("yes-need-details", "Yes, after more details"), ("maybe", "Maybe"), ("exploring", "Just exploring")),
        tags=("commitment", "readiness"),
        extract=set_text("goals.readinessToAct"),
    ),
    question(
        "contact-info",
        "commitment",
        "Which email should we send the report to?",
        input_type="text",
        priority="essential",
        placeholder="you@company.com",
        tags=("contact", "lead"),
        skip_fields=("contactInfo.email",),
        extract=set_text("contactInfo.email"),
    ),
)


QUESTION_POOL: Tuple[QuestionDefinition, ...] = (
    COMPANY_QUESTIONS
    + PAIN_QUESTIONS
    + QUANTIFICATION_QUESTIONS
    + CURRENT_STATE_QUESTIONS
    + GOAL_QUESTIONS
    + BUDGET_QUESTIONS
    + COMMITMENT_QUESTIONS
)


__all__ = ["POOL_VERSION", "QUESTION_POOL"]
