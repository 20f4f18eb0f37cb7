"""Prompt for paraphrasing one medical transcription into a synthetic record."""

from __future__ import annotations

# Keys the model must return; verification checks each is present and non-empty
OUTPUT_KEYS: tuple[str, ...] = (
    "synthetic_transcription",
    "medical_specialty",
    "explanation",
)

SYNTHETIC_TRANSCRIPTION_PROMPT: str = """You are a helpful assistant for creating synthetic medical data.
Based on the following medical transcription, please generate a new, paraphrased version.
The new version should be medically coherent but different in wording.
Also, provide a new 'medical_specialty' and a brief 'explanation' for the generated transcription.

Original Transcription:
"{original_text}"

Please provide the output in a valid JSON format with the following keys:
- "synthetic_transcription": The new, paraphrased transcription.
- "medical_specialty": The relevant medical specialty.
- "explanation": A brief explanation of the synthetic transcription.

Example Output:
{{
    "synthetic_transcription": "The patient reports a history of chronic migraines and is currently prescribed sumatriptan.",
    "medical_specialty": "Neurology",
    "explanation": "This transcription documents a patient's history and treatment for a neurological condition."
}}
"""


def build_synthetic_prompt(original_text: str) -> str:
    """Fill the transcription prompt for one source row."""
    return SYNTHETIC_TRANSCRIPTION_PROMPT.format(original_text=original_text)
