import logging
import time
from typing import List, NamedTuple

import openai
from openai import OpenAI

from errors import UpstreamError

logger = logging.getLogger("dumbgpt.relay")

EMPTY_REPLY = "No response generated"


class Completion(NamedTuple):
    text: str
    total_tokens: int


def build_client(api_key: str, timeout: float) -> OpenAI:
    # one round-trip per request; retries stay off
    return OpenAI(api_key=api_key, timeout=timeout, max_retries=0)


class CompletionRelay:
    def __init__(self, client, model: str = "gpt-3.5-turbo", temperature: float = 1.2, max_tokens: int = 200):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def complete(self, messages: List[dict]) -> Completion:
        logger.info("Sending request to OpenAI API with %d messages in context", len(messages))
        started = time.monotonic()
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except openai.APIStatusError as e:
            logger.exception("OpenAI API error: status=%s detail=%s", e.status_code, e.message)
            raise UpstreamError(e.message, upstream_status=e.status_code) from e
        except openai.OpenAIError as e:
            logger.exception("OpenAI API call failed: %s", e)
            raise UpstreamError(str(e)) from e

        try:
            content = completion.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            logger.error("Malformed OpenAI response: %r", completion)
            raise UpstreamError(f"malformed response: {e}") from e

        usage = getattr(completion, "usage", None)
        tokens = getattr(usage, "total_tokens", None) or 0
        text = (content or "").strip() or EMPTY_REPLY
        logger.info(
            "OpenAI API responded in %dms with %d characters (%d tokens)",
            (time.monotonic() - started) * 1000,
            len(text),
            tokens,
        )
        return Completion(text, tokens)
