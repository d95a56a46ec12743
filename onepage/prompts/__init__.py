"""Prompt builders and response parsers for the Gemini calls.

The model is treated as a noisy channel: prompts state the output contract
strictly, parsers recover the payload from the usual noise (code fences,
preamble, trailing commentary) and raise ContentContractError when nothing
usable is left. Nothing outside this package scans model text.
"""

from onepage.prompts.moderation import (  # noqa: F401
    build_moderation_prompt,
    parse_moderation_response,
)
from onepage.prompts.generator import (  # noqa: F401
    build_generator_prompt,
    parse_generator_response,
)
from onepage.prompts.refiner import (  # noqa: F401
    build_refiner_prompt,
    parse_refiner_response,
)
