# api/describer.py
import logging
from typing import Optional, Sequence

from openai import OpenAI

LOG = logging.getLogger("describer")

PROMPT_TEMPLATE = (
    'Generate a compelling real estate description for a property named "{name}". '
    'It has {bedrooms} bedrooms and features {features}. '
    'The type of listing is "{type}".'
)

class DescriptionGenerationError(RuntimeError):
    pass

def build_prompt(name: str, bedrooms: int, features: Sequence[str], listing_type: str) -> str:
    return PROMPT_TEMPLATE.format(
        name=name,
        bedrooms=bedrooms,
        features=", ".join(features),
        type=listing_type,
    )

class DescriptionGenerator:
    """
    Thin wrapper over the OpenAI chat completions endpoint.
    One call per prompt, no retries; failures propagate to the caller.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-3.5-turbo",
        timeout: float = 30.0,
        max_tokens: int = 100,
        client: Optional[OpenAI] = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.client = client or OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def complete(self, prompt: str, max_tokens: Optional[int] = None) -> str:
        resp = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "system", "content": prompt}],
            max_tokens=max_tokens or self.max_tokens,
        )
        if not resp.choices:
            raise DescriptionGenerationError("completion returned no choices")
        return (resp.choices[0].message.content or "").strip()

    def describe(self, name: str, bedrooms: int, features: Sequence[str], listing_type: str) -> str:
        prompt = build_prompt(name, bedrooms, features, listing_type)
        LOG.debug("requesting description for %r (model=%s)", name, self.model)
        text = self.complete(prompt, self.max_tokens)
        if not text:
            raise DescriptionGenerationError(f"empty description generated for {name!r}")
        return text
