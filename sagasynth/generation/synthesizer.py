"""Synthetic record generation.

One model call per source row. Each parsed output is checked for the three
required fields and stamped ``verified`` or ``failed``; rows whose call fails
or comes back empty are logged and left out of the result.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from sagasynth.errors import MalformedResponseError, SagaSynthError
from sagasynth.generation.prompts import OUTPUT_KEYS, build_synthetic_prompt
from sagasynth.llm.providers import LLMProvider
from sagasynth.settings import Settings

logger = logging.getLogger(__name__)

VERIFIED = "verified"
FAILED = "failed"


def verify_and_sign(original_text: str, output: Any) -> dict[str, Any]:
    """Stamp a generated output with its verification status.

    ``signature`` is always empty; no signing is performed.
    """
    ok = isinstance(output, dict) and all(output.get(key) for key in OUTPUT_KEYS)
    if not ok:
        logger.info("Verification failed: missing or empty fields")
    return {
        "original_text": original_text,
        "synthetic_output": output,
        "verification_status": VERIFIED if ok else FAILED,
        "signature": "",
    }


class TextGenerator:
    """Single-prompt JSON generation on top of an LLM provider."""

    def __init__(
        self,
        provider: LLMProvider,
        model: str,
        *,
        max_output_tokens: int = 3000,
        temperature: float = 0.7,
    ) -> None:
        self.provider = provider
        self.model = model
        self.max_output_tokens = max_output_tokens
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings: Settings, provider: LLMProvider) -> TextGenerator:
        return cls(
            provider,
            settings.resolved_llm_model,
            max_output_tokens=settings.generation_max_output_tokens,
            temperature=settings.generation_temperature,
        )

    def generate_json(self, prompt: str) -> Any | None:
        """Return the parsed JSON reply, or None when the reply is empty."""
        response = self.provider.chat_completion(
            messages=[{"role": "user", "content": prompt}],
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_output_tokens,
            json_mode=True,
        )
        logger.debug(
            "%s/%s used %d tokens (%d in, %d out)",
            self.provider.provider_type.value,
            response.model,
            response.total_tokens,
            response.input_tokens,
            response.output_tokens,
        )
        text =(response.content or "").strip()
        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedResponseError("Model reply is not valid JSON", details=text[:200]) from e


def _generate_row(generator: TextGenerator, index: int, total: int, row: dict[str, str]) -> dict[str, Any] | None:
    logger.info("Processing row %d/%d...", index + 1, total)
    original_text = row["text"]
    try:
        output = generator.generate_json(build_synthetic_prompt(original_text))
    except SagaSynthError as e:
        logger.warning("Error for row %d: %s. Skipping.", index + 1, e)
        return None
    except Exception:
        # Provider SDKs raise their own exception types
        logger.exception("Error for row %d. Skipping.", index + 1)
        return None

    if output is None:
        logger.info("Skipping row %d due to empty response.", index + 1)
        return None

    result = verify_and_sign(original_text, output)
    logger.info("Generated synthetic data for row %d (%s).", index + 1, result["verification_status"])
    return result


def generate_synthetic_data(
    generator: TextGenerator,
    base_data: list[dict[str, str]],
    *,
    concurrency: int = 1,
) -> list[dict[str, Any]]:
    """Generate one synthetic record per ``{"text": ...}`` row.

    With ``concurrency > 1`` calls run on a bounded thread pool; the result
    keeps input order either way.
    """
    total = len(base_data)
    if concurrency <= 1 or total <= 1:
        results = [_generate_row(generator, i, total, row) for i, row in enumerate(base_data)]
    else:
        with ThreadPoolExecutor(max_workers=min(concurrency, total)) as pool:
            results = list(
                pool.map(lambda item: _generate_row(generator, item[0], total, item[1]), enumerate(base_data))
            )
    return [r for r in results if r is not None]
