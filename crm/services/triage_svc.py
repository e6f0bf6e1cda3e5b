"""AI triage of service requests (OpenAI) with service-sheet matching."""

from __future__ import annotations

import json
import logging

from openai import AsyncOpenAI
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..models.attachment import Attachment
from . import storage_svc
from .attachment_svc import SERVICE_SHEET, SERVICE_SHEET_BUCKET

log = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful AI assistant that analyzes service requests for an "
    "appliance repair company. Always respond with valid JSON."
)

SHEET_CANDIDATES = 20
SHEET_MATCHES = 5


class AINotConfigured(Exception):
    """Raised when the OpenAI API key is missing."""


class TriageError(Exception):
    pass


def openai_client() -> AsyncOpenAI:
    if not settings.openai_configured:
        raise AINotConfigured("OpenAI API key not configured")
    return AsyncOpenAI(api_key=settings.openai_api_key)


def build_prompt(data: dict) -> str:
    return f"""You are an AI assistant helping to triage service requests for an appliance repair company.

Service Request Details:
- Title: {data.get("title") or ""}
- Description: {data.get("description") or "No description provided"}
- Contact: {data.get("contactName") or "Unknown"}
- Appliance Type: {data.get("applianceType") or "Not specified"}
- Appliance Brand: {data.get("applianceBrand") or "Not specified"}
- Appliance Model: {data.get("applianceModel") or "Not specified"}
- Service Date: {data.get("serviceDate") or "Not scheduled"}

Please analyze this service request and provide:
1. Extract all available information (appliance type, brand, model, issue description, urgency level, estimated cost if mentioned)
2. Identify missing critical information (e.g., model number, serial number, specific symptoms, error codes)
3. Determine urgency level based on the description (low, medium, high, critical)
4. Provide recommendations for next steps

Respond in JSON format with this structure:
{{
  "extractedInfo": {{
    "applianceType": "string or null",
    "applianceBrand": "string or null",
    "applianceModel": "string or null",
    "issueDescription": "string",
    "urgency": "low|medium|high|critical",
    "estimatedCost": "number or null"
  }},
  "missingFields": [
    {{
      "field": "string (e.g., 'model_number', 'serial_number', 'error_code')",
      "reason": "string (why this field is needed)",
      "required": "boolean"
    }}
  ],
  "recommendations": ["string array of recommendations"]
}}"""


def search_terms(extracted: dict | None) -> list[str]:
    extracted = extracted or {}
    return [
        str(extracted[key]).lower()
        for key in ("applianceType", "applianceBrand", "applianceModel")
        if extracted.get(key)
    ]


def score_sheet(sheet: Attachment, terms: list[str]) -> float:
    """Fraction of terms found in the file name or tags."""
    text = " ".join([sheet.file_name.lower(), *[t.lower() for t in (sheet.tags or [])]])
    return sum(1 for term in terms if term in text) / len(terms)


async def find_matching_service_sheets(db: AsyncSession, extracted: dict | None) -> list[dict]:
    terms = search_terms(extracted)
    if not terms:
        return []

    stmt = (
        select(Attachment)
        .where(Attachment.entity_type == SERVICE_SHEET)
        .limit(SHEET_CANDIDATES)
    )
    sheets = (await db.execute(stmt)).scalars().all()

    scored = [
        {
            "id": str(sheet.id),
            "file_name": sheet.file_name,
            "url": storage_svc.public_url(SERVICE_SHEET_BUCKET, sheet.file_path),
            "relevance_score": score_sheet(sheet, terms),
        }
        for sheet in sheets
    ]
    scored = [s for s in scored if s["relevance_score"] > 0]
    scored.sort(key=lambda s: s["relevance_score"], reverse=True)
    return scored[:SHEET_MATCHES]


async def analyze_service_request(db: AsyncSession, data: dict) -> dict:
    """Run the model over the request and attach matching service sheets."""
    client = openai_client()
    try:
        completion = await client.chat.completions.create(
            model=settings.openai_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(data)},
            ],
            temperature=0.3,
            response_format={"type": "json_object"},
        )
        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise TriageError("No response from AI")
        result = json.loads(content)
    except Exception as exc:
        log.error("AI triage failed: %s", exc)
        raise TriageError(f"AI triage failed: {exc}") from exc

    result.setdefault("extractedInfo", {})
    result.setdefault("missingFields", [])
    result.setdefault("recommendations", [])
    result["matchedServiceSheets"] = await find_matching_service_sheets(
        db, result["extractedInfo"]
    )
    return result
