"""Site form data — the customer's description of their one-page site.

The JSON the browser sends uses camelCase keys (siteName, colorTheme, ...).
SiteFormData exposes them as attributes and converts back for storage
and for the checkout metadata.
"""

import re

from onepage.errors import ValidationError

COLOR_THEMES = ("simple", "colorful", "business")

# Required text fields in the order errors are reported.
REQUIRED_FIELDS = [
    ("siteName", "site_name"),
    ("subdomain", "subdomain"),
    ("email", "email"),
    ("catchphrase", "catchphrase"),
    ("description", "description"),
    ("contactInfo", "contact_info"),
]

# Sanity check only, not a full RFC 5322 match
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# DNS label: 3–63 chars, lowercase alphanumerics and inner hyphens.
SUBDOMAIN_RE = re.compile(r"^[a-z0-9][a-z0-9-]{1,61}[a-z0-9]$")

# Longest accepted value per field. description has no cap of its own.
MAX_LENGTHS = {
    "siteName": 100,
    "email": 254,
    "catchphrase": 200,
    "contactInfo": 500,
}


class SiteFormData:

    def __init__(self, site_name, catchphrase, description, contact_info,
                 email, subdomain, color_theme):
        self.site_name = site_name
        self.catchphrase = catchphrase
        self.description = description
        self.contact_info = contact_info
        self.email = email
        self.subdomain = subdomain
        self.color_theme = color_theme

    @classmethod
    def from_dict(cls, data):
        """Validate a camelCase dict and return trimmed SiteFormData.

        Raises ValidationError naming the first offending field.
        """
        if not isinstance(data, dict):
            raise ValidationError("formData is required")

        values = {}
        for key, attr in REQUIRED_FIELDS:
            value = data.get(key)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"{key} is required")
            values[attr] = value.strip()
            limit = MAX_LENGTHS.get(key)
            if limit and len(values[attr]) > limit:
                raise ValidationError(f"{key} must be at most {limit} characters")

        if data.get("colorTheme") not in COLOR_THEMES:
            raise ValidationError("Invalid colorTheme")

        if not EMAIL_RE.match(values["email"]):
            raise ValidationError("A valid email is required")
        if not SUBDOMAIN_RE.match(values["subdomain"]):
            raise ValidationError("Invalid subdomain format")

        return cls(color_theme=data["colorTheme"], **values)

    def to_dict(self):
        return {
            "siteName": self.site_name,
            "catchphrase": self.catchphrase,
            "description": self.description,
            "contactInfo": self.contact_info,
            "email": self.email,
            "subdomain": self.subdomain,
            "colorTheme": self.color_theme,
        }

    def __repr__(self):
        return f"<SiteFormData {self.subdomain} ({self.color_theme})>"
