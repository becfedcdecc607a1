# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

import logging
import time

from google import genai
from google.genai import errors, types

from portfolio.errors import GenerationError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-1.5-pro"
DEFAULT_MAX_OUTPUT_TOKENS = 800
DEFAULT_TEMPERATURE = 0.7
TOP_K = 40
TOP_P = 0.95

MISSING_API_KEY_MESSAGE = "Gemini API key not configured"


def generate_text(
    prompt: str,
    *,
    max_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
    temperature: float = DEFAULT_TEMPERATURE,
    model: str = DEFAULT_MODEL,
    api_key: str | None = None,
) -> str:
    """
    Forwards a prompt to Gemini and returns the generated text.

    Args:
        prompt (str): The prompt text.
        max_tokens (int): Upper bound on generated tokens.
        temperature (float): Sampling temperature.
        model (str): The model to call with.
        api_key (str | None): Gemini API key.

    Returns:
        str: Text of the first candidate, or "" when the model returned none.

    Raises:
        GenerationError: The key is missing or the API call failed.
    """
    if not api_key:
        raise GenerationError(MISSING_API_KEY_MESSAGE, status=500)

    client = genai.Client(api_key=api_key)
    start_time = time.time()
    truncated_prompt = (prompt[:200] + "...") if len(prompt) > 200 else prompt
    logger.info("Calling Gemini, prompt: '%s'", truncated_prompt)

    try:
        response = client.models.generate_content(
            model=model,
            contents=prompt,
            config=types.GenerateContentConfig(
                temperature=temperature,
                top_k=TOP_K,
                top_p=TOP_P,
                max_output_tokens=max_tokens,
            ),
        )
    except errors.APIError as exc:
        logger.error("Gemini API error %s: %s", exc.code, exc.message)
        raise GenerationError(
            exc.message or "Error generating content", status=exc.code or 500
        ) from exc

    logger.info("Gemini call took: %.2fs", time.time() - start_time)
    return response.text or ""
