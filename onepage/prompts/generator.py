"""Generator prompt: turn the form into a responsive one-page HTML document.

Output rules the prompt imposes:
  - no external images (their URLs may break later)
  - Tailwind CSS, Google Fonts and Lucide Icons from their CDNs
  - one self-contained file from <!DOCTYPE html> to </html>
  - JavaScript limited to the Lucide initialisation call
"""

from onepage.prompts.common import extract_html_document

COLOR_THEMES = {
    "simple": {
        "label": "Simple & clean",
        "style": (
            "Clean white-based design. A plain sans-serif keeps it readable "
            "and trustworthy. Generous whitespace, only the colors needed."
        ),
        "palette": {
            "primary": "#111827",
            "accent": "#374151",
            "accentLight": "#9ca3af",
            "heroBg": "linear-gradient(135deg, #ffffff 0%, #f9fafb 50%, #f3f4f6 100%)",
            "heroText": "#111827",
            "sectionBg1": "#ffffff",
            "sectionBg2": "#f9fafb",
            "cardBorder": "#e5e7eb",
            "textSecondary": "#4b5563",
        },
        "fonts": {
            "display": "Noto Sans JP",
            "label": "Inter",
            "body": "Noto Sans JP",
            "url": (
                "https://fonts.googleapis.com/css2?family=Inter:wght@300;400;500;600;700"
                "&family=Noto+Sans+JP:wght@300;400;500;700&display=swap"
            ),
        },
    },
    "colorful": {
        "label": "Colorful & pop",
        "style": (
            "Vivid gradients and bright colors that feel fun and friendly. "
            "Rounded gothic headings with a soft sans-serif for labels."
        ),
        "palette": {
            "primary": "#1e1b4b",
            "accent": "#7c3aed",
            "accentLight": "#c4b5fd",
            "heroBg": "linear-gradient(135deg, #7c3aed 0%, #ec4899 50%, #f59e0b 100%)",
            "heroText": "#ffffff",
            "sectionBg1": "#fefce8",
            "sectionBg2": "#fdf4ff",
            "cardBorder": "#e9d5ff",
            "textSecondary": "#6b21a8",
        },
        "fonts": {
            "display": "Zen Maru Gothic",
            "label": "Poppins",
            "body": "Zen Maru Gothic",
            "url": (
                "https://fonts.googleapis.com/css2?family=Poppins:wght@300;400;500;600;700"
                "&family=Zen+Maru+Gothic:wght@300;400;500;700&display=swap"
            ),
        },
    },
    "business": {
        "label": "Business & professional",
        "style": (
            "Navy and slate tones that read as reliable and established. "
            "Serif display headings over a neutral sans-serif body."
        ),
        "palette": {
            "primary": "#0f172a",
            "accent": "#1d4ed8",
            "accentLight": "#93c5fd",
            "heroBg": "linear-gradient(135deg, #0f172a 0%, #1e3a8a 60%, #1d4ed8 100%)",
            "heroText": "#ffffff",
            "sectionBg1": "#ffffff",
            "sectionBg2": "#f1f5f9",
            "cardBorder": "#cbd5e1",
            "textSecondary": "#475569",
        },
        "fonts": {
            "display": "Noto Serif JP",
            "label": "Montserrat",
            "body": "Noto Sans JP",
            "url": (
                "https://fonts.googleapis.com/css2?family=Montserrat:wght@400;500;600;700"
                "&family=Noto+Serif+JP:wght@400;600;700"
                "&family=Noto+Sans+JP:wght@300;400;500;700&display=swap"
            ),
        },
    },
}

GENERATOR_TEMPLATE = """\
You are a professional web designer and front-end engineer.
Build a responsive one-page website from the business information below.

## Business information

Site name: {site_name}
Catchphrase: {catchphrase}
Description: {description}
Contact information: {contact_info}

## Design theme: {theme_label}

{theme_style}

Color palette (use these exact values):
{palette}

Fonts:
- Display headings: "{font_display}"
- Labels and small English text: "{font_label}"
- Body text: "{font_body}"
- Load them with: <link href="{font_url}" rel="stylesheet">

## Required assets

- Tailwind CSS: <script src="https://cdn.tailwindcss.com"></script>
- Lucide Icons: <script src="https://unpkg.com/lucide@latest"></script>
  and call lucide.createIcons() once at the end of <body>.
- Do not use any external image. Use gradients, shapes and icons instead.
- No other JavaScript.

## Page sections (in this order)

1. Hero: site name, catchphrase, call-to-action button linking to #contact
2. About: rewrite the description into two or three short paragraphs
3. Features: three cards with a Lucide icon each, inferred from the description
4. Contact (id="contact"): every item of the contact information on its own line
5. Footer: copyright line with the site name

## Quality rules

- Set lang on the <html> element to match the language of the business information.
- body: overflow-x: hidden; overflow-wrap: break-word; -webkit-font-smoothing: antialiased.
- Must look right at 320px wide with no horizontal scrolling.
- Grids go grid-cols-1 → sm:grid-cols-2 → lg:grid-cols-3.
- Touch targets at least 44px.
- No tables for layout.

## Output format

Output HTML only.
No code fences (```html ... ```), no explanation.
Return only a complete document that starts with <!DOCTYPE html> and ends with </html>."""

EXTRA_INSTRUCTION_TEMPLATE = """

## Additional request from the customer (highest priority)
{instruction}"""


def build_generator_prompt(form_data, instruction=None):
    """Build the generation prompt; an optional instruction is appended last."""
    theme = COLOR_THEMES.get(form_data.color_theme, COLOR_THEMES["simple"])
    palette = "\n".join(
        f"- {name}: {value}" for name, value in theme["palette"].items()
    )
    prompt = GENERATOR_TEMPLATE.format(
        site_name=form_data.site_name,
        catchphrase=form_data.catchphrase,
        description=form_data.description,
        contact_info=form_data.contact_info,
        theme_label=theme["label"],
        theme_style=theme["style"],
        palette=palette,
        font_display=theme["fonts"]["display"],
        font_label=theme["fonts"]["label"],
        font_body=theme["fonts"]["body"],
        font_url=theme["fonts"]["url"],
    )
    if instruction and instruction.strip():
        prompt += EXTRA_INSTRUCTION_TEMPLATE.format(instruction=instruction.strip())
    return prompt


def parse_generator_response(raw):
    return extract_html_document(raw, label="Generated HTML")
