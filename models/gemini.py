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

import time
import logging
from google import genai
from google.genai import types
from models import prompts
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-3-flash-preview"
CHAT_MAX_OUTPUT_TOKENS = 1000

# (role, text) pairs, role being "user" or "model".
ChatHistory = List[Tuple[str, str]]


class GeminiInvalidResponseException(Exception):
    pass


def _to_contents(history: ChatHistory) -> List[types.Content]:
    return [
        types.Content(role=role, parts=[types.Part(text=text)])
        for role, text in history
    ]


def call_guide_chat(
    message: str,
    history: Optional[ChatHistory] = None,
    model: str = DEFAULT_MODEL,
    api_key: Optional[str] = None,
) -> str:
    """
    Sends `message` to the pupi guide, continuing the given conversation.

    Args:
        message (str): The new user message.
        history (ChatHistory): Earlier turns, oldest first.
        model (str): The model to call with.
        api_key (str): The Gemini API key.

    Returns:
        str: The guide's reply.

    Raises:
        GeminiInvalidResponseException: If the model returned no text.
    """
    client = genai.Client(api_key=api_key)
    start_time = time.time()
    chat = client.chats.create(
        model=model,
        config=types.GenerateContentConfig(
            system_instruction=prompts.GUIDE_SYSTEM_INSTRUCTION,
            max_output_tokens=CHAT_MAX_OUTPUT_TOKENS,
        ),
        history=_to_contents(history or []),
    )
    response = chat.send_message(message)
    logger.info("Guide chat call took %.2fs", time.time() - start_time)
    if not response.text:
        raise GeminiInvalidResponseException()
    return response.text


def reply_as_guide(
    message: str,
    history: Optional[ChatHistory] = None,
    model: str = DEFAULT_MODEL,
    api_key: Optional[str] = None,
) -> str:
    """Like call_guide_chat, but always returns a user-facing reply."""
    if not api_key:
        return prompts.MISSING_API_KEY_REPLY
    try:
        return call_guide_chat(message, history, model=model, api_key=api_key)
    except Exception as e:
        logger.error("Gemini API error: %s", e)
        return prompts.GUIDE_ERROR_REPLY
