"""Refiner prompt: apply a short natural-language edit to a published page.

The prompt pins the page structure and asset references; the parser is
what actually enforces that the reply is still one complete document.
"""

from onepage.errors import ValidationError
from onepage.prompts.common import extract_html_document

MAX_INSTRUCTION_LENGTH = 200

REFINER_TEMPLATE = """\
You are a professional web engineer.
Apply the user's edit instruction to the existing HTML below.

## Edit instruction

{instruction}

## Constraints (must be followed)

1. Do not change the overall structure of the page (no sections added or removed).
2. Change only details: text, colors, sizes, spacing.
3. Do not add external image URLs (img src starting with http or https).
4. Do not remove the Tailwind CSS, Google Fonts or Lucide Icons CDN references.
5. Do not add any JavaScript beyond what already exists.
6. Output the complete HTML file, from <!DOCTYPE html> to </html>.

## Existing HTML

{current_html}

## Output format

Output the revised HTML only.
No code fences (```html ... ```).
No explanation and no list of changes.
Return only a complete document that starts with <!DOCTYPE html> and ends with </html>."""


def validate_revision_instruction(instruction):
    """Return the trimmed instruction, or raise ValidationError.

    Must be 1–200 characters after trimming.
    """
    if not isinstance(instruction, str):
        raise ValidationError("Please enter an edit instruction")
    trimmed = instruction.strip()
    if not trimmed:
        raise ValidationError("Please enter an edit instruction")
    if len(trimmed) > MAX_INSTRUCTION_LENGTH:
        raise ValidationError(
            f"Edit instructions must be at most {MAX_INSTRUCTION_LENGTH} "
            f"characters (currently {len(trimmed)})"
        )
    return trimmed


def build_refiner_prompt(current_html, instruction):
    return REFINER_TEMPLATE.format(
        instruction=instruction, current_html=current_html
    )


def parse_refiner_response(raw):
    """Recover the revised document from the model's reply."""
    return extract_html_document(raw, label="Refined HTML")
