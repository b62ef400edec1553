"""
Prompts for lead extraction
"""

EXTRACTION_SYSTEM_PROMPT = (
    "You extract structured data from call transcripts. "
    "Always respond with valid JSON only."
)

EXTRACTION_USER_TEMPLATE = """Extract these fields from the following call transcript.

Fields to extract:
- name (string | null) - caller's full name
- email (string | null) - caller's email address
- company (string | null) - caller's company or "Individual"
- useCase (string | null) - what problem they want to solve
- budget (string | null) - budget range, or "unsure" if they don't know
- timeline (string | null) - when they want to start

Transcript:
{transcript}"""


def build_extraction_prompt(transcript_text: str) -> str:
    return EXTRACTION_USER_TEMPLATE.format(transcript=transcript_text)
