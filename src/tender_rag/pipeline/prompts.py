"""Prompt templates for tender analysis.

Every prompt restricts the model to the material it is given. Templates that
ask for JSON show the exact object shape expected back.
"""

from __future__ import annotations

import json

from tender_rag.chunking.schemas import Category
from tender_rag.chunking.scoring import infer_category
from tender_rag.documents.schemas import TenderDocument
from tender_rag.pipeline.schemas import NOT_SPECIFIED, ExtractedFactSet

PRIORITY_CATEGORIES = (
    Category.ELIGIBILITY,
    Category.TECHNICAL,
    Category.FINANCIAL,
    Category.EVALUATION,
)
PRIORITY_SECTION_CHARS = 2000
OTHER_SECTION_CHARS = 1000
OTHER_SECTIONS_STOP_CHARS = 10000
MAX_CONTENT_CHARS = 12000

# ---------------------------------------------------------------------------
# Stage 1: fact extraction
# ---------------------------------------------------------------------------

EXTRACTION_SYSTEM_PROMPT = """\
You are a comprehensive fact extraction engine for government tender documents.

YOUR TASK: Extract detailed factual information from the provided tender \
content and output STRICT JSON.

CRITICAL RULES:
- Output ONLY valid JSON - no prose, no explanations, no formatting
- Extract comprehensive, detailed facts present in the provided content
- Use EXACT values from the document (amounts, dates, percentages)
- For each category: extract ALL relevant points, not just 2-3 items
- If information is NOT in the document, use null or an empty array
- Do NOT infer, assume, or hallucinate any information
"""

EXTRACTION_TEMPLATE = """\
EXTRACT COMPREHENSIVE FACTS FROM THIS TENDER DOCUMENT:

TENDER METADATA:
- Tender ID: {tender_id}
- Title: {title}
- Sector: {sector}
- Tender Type: {tender_type}

TENDER CONTENT:
{content}

OUTPUT STRICT JSON (no other text):
{{
  "executiveSummary": "Summary covering project overview, scope of work, key \
technical requirements, financial terms, eligibility, timeline and submission \
requirements",
  "criticalRequirements": ["..."],
  "eligibilityCriteria": ["..."],
  "technicalSpecifications": ["..."],
  "financialTerms": ["EMD details", "Payment milestones", "..."],
  "complianceRequirements": ["..."],
  "deadlinesAndTimelines": ["..."],
  "documentsRequired": ["..."],
  "riskFactors": ["Penalty clauses", "Liquidated damages", "..."],
  "opportunityScore": 70,
  "opportunityAssessment": "Viability, competition level, complexity and strategic fit",
  "actionItems": ["..."]
}}
"""


def prepare_tender_content(document: TenderDocument) -> str:
    """Render tender sections for extraction, high-value categories first.

    Eligibility, technical, financial and evaluation sections get up to
    2000 characters each. Remaining sections get 1000 characters each until
    the text passes 10000 characters. The result is capped at 12000.
    """
    parts: list[str] = []
    if document.description:
        parts.append(f"\n--- Overview ---\n{document.description[:OTHER_SECTION_CHARS]}\n")

    others = []
    for section in document.sections:
        category = infer_category(section.title)
        if category in PRIORITY_CATEGORIES:
            parts.append(
                f"\n--- {section.title} ({category.value}) ---\n"
                f"{section.content[:PRIORITY_SECTION_CHARS]}\n"
            )
        else:
            others.append(section)

    for section in others:
        if sum(len(p) for p in parts) > OTHER_SECTIONS_STOP_CHARS:
            break
        parts.append(f"\n--- {section.title} ---\n{section.content[:OTHER_SECTION_CHARS]}\n")

    return "".join(parts)[:MAX_CONTENT_CHARS]


def build_extraction_prompt(document: TenderDocument) -> str:
    return EXTRACTION_TEMPLATE.format(
        tender_id=document.tender_id,
        title=document.title or None,
        sector=document.sector,
        tender_type=document.tender_type,
        content=prepare_tender_content(document),
    )


# ---------------------------------------------------------------------------
# Stage 2: formatting only
# ---------------------------------------------------------------------------

FORMATTING_SYSTEM_PROMPT = f"""\
You are a formatter and technical writer for government tender documents.

CRITICAL RULES - YOU MUST FOLLOW THESE EXACTLY:
1. You are NOT an analyst. You are ONLY a FORMATTER.
2. You MUST NOT add or infer any information beyond what is provided in the input JSON.
3. You MUST NOT use external knowledge, context, or make assumptions.
4. You MUST NOT hallucinate values, dates, amounts, or requirements.
5. You may ONLY rephrase, structure, and format the given data.
6. If information is missing, null, empty, or unclear, you MUST say: "{NOT_SPECIFIED}."

Factual accuracy is paramount. Do NOT invent anything.
"""

FORMATTING_TEMPLATE = """\
FORMAT THE FOLLOWING TENDER ANALYSIS DATA INTO UI-READY TEXT

INPUT DATA (use ONLY this data):
```json
{facts_json}
```

FORMATTING TASK:
1. executiveSummary: 3-5 clear sentences, from executiveSummary only.
2. criticalRequirements, eligibilityCriteria, technicalSpecifications: \
bullet lists from the matching arrays.
3. financialDetails: EMD amount, estimated value, payment terms and other \
charges, from financialTerms.
4. deadlinesTimeline: from deadlinesAndTimelines.
5. riskFactors: from riskFactors, each labelled HIGH, MEDIUM or LOW.
6. recommendedActions: from actionItems.
7. opportunityScore and opportunityAssessment: copied from the input.
Write "{not_specified}" for anything the input does not contain.

OUTPUT FORMAT - Return ONLY valid JSON:
```json
{{
  "executiveSummary": "...",
  "criticalRequirements": ["..."],
  "eligibilityCriteria": ["..."],
  "technicalSpecifications": ["..."],
  "financialDetails": {{
    "emd": "...",
    "estimatedValue": "...",
    "paymentTerms": "...",
    "otherCharges": "..."
  }},
  "deadlinesTimeline": ["..."],
  "riskFactors": [{{"risk": "...", "severity": "HIGH|MEDIUM|LOW"}}],
  "recommendedActions": ["..."],
  "opportunityScore": 75,
  "opportunityAssessment": "..."
}}
```

REMEMBER: Use ONLY the provided JSON data. Do NOT invent any information.
"""


def build_formatting_prompt(facts: ExtractedFactSet) -> str:
    return FORMATTING_TEMPLATE.format(
        facts_json=json.dumps(facts.to_dict(), indent=2, ensure_ascii=False),
        not_specified=NOT_SPECIFIED,
    )


# ---------------------------------------------------------------------------
# Tender Q&A
# ---------------------------------------------------------------------------

QA_SYSTEM_PROMPT = """\
You are a tender analysis assistant. Use ONLY the provided context to answer \
questions.

Rules:
1. If the answer is not in the context, say: "Not specified in the tender document."
2. Do not hallucinate or make assumptions.
3. Be precise and cite specific requirements when available.
4. Cite the context blocks you used by their labels, e.g. [SESSION-1] or \
[REFERENCE-2].
"""

QA_TEMPLATE = """\
CONTEXT:
{context}

QUESTION:
{question}

ANSWER:"""


def build_qa_prompt(question: str, context: str) -> str:
    return QA_TEMPLATE.format(context=context, question=question)


# ---------------------------------------------------------------------------
# Proposal evaluation
# ---------------------------------------------------------------------------

EVALUATION_SYSTEM_TEMPLATE = """\
You are a government tender evaluation expert. Evaluate the proposal's {label}.

RULES:
- Use ONLY the provided context and proposal content
- Assign a score from 0-100
- Provide specific, actionable feedback
- If information is missing, note it explicitly
"""

EVALUATION_TEMPLATE = """\
EVALUATION STEP: {label}

{reference}PROPOSAL CONTENT ({step}):
{content}

Evaluate and respond in this JSON format:
{{
  "score": 75,
  "feedback": "Specific feedback on {step_name} compliance",
  "observations": ["observation 1", "observation 2"],
  "gaps": ["gap 1", "gap 2"]
}}
"""

EVALUATION_CONTENT_CHARS = 2000


def build_evaluation_prompt(step_name: str, label: str, content: str, context: str = "") -> str:
    reference = f"REFERENCE CONTEXT:\n{context}\n\n" if context else ""
    return EVALUATION_TEMPLATE.format(
        label=label,
        reference=reference,
        step=step_name.upper(),
        step_name=step_name,
        content=content[:EVALUATION_CONTENT_CHARS],
    )


# ---------------------------------------------------------------------------
# Proposal section guidance
# ---------------------------------------------------------------------------

GUIDANCE_SYSTEM_PROMPT = """\
You are a tender proposal assistant. Analyze this bidder's draft response \
against tender requirements.

RULES:
- Provide 1-3 specific improvement suggestions
- Focus on: completeness, clarity, compliance, risk mitigation
- If the draft is comprehensive, say "No improvements needed"
- Keep suggestions actionable and brief
"""

GUIDANCE_TEMPLATE = """\
Section Type: {section_type}
Tender Requirement: {requirement}
Bidder's Draft: {draft}
User Question: {question}

Provide 1-3 specific improvement suggestions in this EXACT format:

SUGGESTION 1:
observation: [What's missing or could be improved]
suggestedImprovement: [Specific actionable improvement - keep it brief]
reason: [Why this matters for government tender evaluation]

SUGGESTION 2:
...

If the draft is comprehensive and well-structured, say "No improvements needed."
"""


def build_guidance_prompt(
    section_type: str,
    draft: str,
    requirement: str = "",
    question: str = "",
) -> str:
    return GUIDANCE_TEMPLATE.format(
        section_type=section_type,
        requirement=requirement[:500] or "(No specific requirement provided)",
        draft=draft[:1500] or "(Empty draft)",
        question=question or "General analysis",
    )
