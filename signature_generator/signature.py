"""
Email-signature markup assembly (Qt-free).

Builds a table-based HTML block with inline styles only, which is what
email clients reliably render.  Layout::

    [photo] [logo] | name / title / company / contact rows
    social icons
    award badges
    tagline

Every user-supplied value is HTML-escaped before substitution.
"""

import re
from html import escape

from signature_generator.config import (
    AWARD_BADGE_SIZE, BRAND_COLOR, COMPANY_NAME, DEFAULT_EMAIL, DEFAULT_NAME,
    DEFAULT_TITLE, DEFAULT_WEBSITE, ICON_URLS, MUTED_COLOR, PHOTO_RING_GRADIENT,
    SIGNATURE_LOGO_WIDTH, SIGNATURE_PHOTO_SIZE, TEXT_COLOR,
)
from signature_generator.models import SignatureFields, SignatureSettings

_LINK_STYLE = f"color:{BRAND_COLOR};text-decoration:none;font-size:13px;"
_ICON_STYLE = "vertical-align:middle;margin-right:8px;"


def _attr(value: str) -> str:
    return escape(value, quote=True)


def display_url(url: str) -> str:
    """Drop the scheme for display: ``https://revent.store`` → ``revent.store``."""
    return re.sub(r"^https?://", "", url)


def tel_href(phone: str) -> str:
    return "tel:" + re.sub(r"\s", "", phone)


def _resolved(fields: SignatureFields) -> dict:
    """Apply placeholder defaults to empty form values."""
    return {
        "name": fields.full_name.strip() or DEFAULT_NAME,
        "title": fields.job_title.strip() or DEFAULT_TITLE,
        "email": fields.email.strip() or DEFAULT_EMAIL,
        "phone": fields.phone.strip(),
        "website": fields.website.strip() or DEFAULT_WEBSITE,
        "linkedin": fields.linkedin.strip(),
        "twitter": fields.twitter.strip(),
        "photo": fields.photo_url.strip(),
    }


# =============================================================================
# Fragments
# =============================================================================
def _contact_row(icon: str, href: str, text: str) -> str:
    return (
        f'<tr><td style="padding:3px 0;">'
        f'<img src="{_attr(ICON_URLS[icon])}" width="14" height="14" style="{_ICON_STYLE}">'
        f'<a href="{_attr(href)}" style="{_LINK_STYLE}">{escape(text)}</a>'
        f"</td></tr>"
    )


def _photo_html(photo_url: str, name: str) -> str:
    if not photo_url:
        return ""
    size = SIGNATURE_PHOTO_SIZE
    return (
        '<table cellpadding="0" cellspacing="0" border="0"><tr>'
        f'<td style="padding:3px;background:{PHOTO_RING_GRADIENT};border-radius:50%;">'
        f'<img src="{_attr(photo_url)}" alt="{_attr(name)}" width="{size}" height="{size}" '
        'style="border-radius:50%;display:block;border:2px solid white;">'
        "</td></tr></table>"
    )


def _logo_html(logo_url: str) -> str:
    if logo_url:
        return (
            f'<img src="{_attr(logo_url)}" alt="{_attr(COMPANY_NAME)}" '
            f'width="{SIGNATURE_LOGO_WIDTH}" style="display:block;">'
        )
    # Text fallback renders in every client
    return (
        f'<span style="font-size:28px;font-weight:bold;color:{BRAND_COLOR};'
        f'letter-spacing:-1px;">{escape(COMPANY_NAME.lower())}</span>'
    )


def _social_row(linkedin: str, twitter: str) -> str:
    if not (linkedin or twitter):
        return ""
    links = ""
    if linkedin:
        links += (
            f'<a href="{_attr(linkedin)}" style="text-decoration:none;margin-right:10px;">'
            f'<img src="{_attr(ICON_URLS["linkedin"])}" width="22" height="22" '
            'style="vertical-align:middle;border-radius:4px;"></a>'
        )
    if twitter:
        links += (
            f'<a href="{_attr(twitter)}" style="text-decoration:none;">'
            f'<img src="{_attr(ICON_URLS["twitter"])}" width="22" height="22" '
            'style="vertical-align:middle;"></a>'
        )
    return f'<tr><td colspan="4" style="padding-top:12px;">{links}</td></tr>'


def _awards_row(awards: list) -> str:
    if not awards:
        return ""
    size = AWARD_BADGE_SIZE
    cells = "".join(
        '<td style="padding:0 6px 0 0;vertical-align:middle;">'
        '<table cellpadding="0" cellspacing="0" border="0" '
        'style="border:1px solid #e2e8f0;border-radius:6px;background:#ffffff;"><tr>'
        f'<td style="width:{size + 10}px;height:{size + 10}px;text-align:center;'
        'vertical-align:middle;padding:4px;">'
        f'<img src="{_attr(award)}" alt="Award" width="{size}" height="{size}" '
        'style="display:block;margin:0 auto;">'
        "</td></tr></table></td>"
        for award in awards
    )
    return (
        '<tr><td colspan="4" style="padding-top:14px;">'
        f'<table cellpadding="0" cellspacing="0" border="0"><tr>{cells}</tr></table>'
        "</td></tr>"
    )


def _tagline_row(tagline: str) -> str:
    if not tagline:
        return ""
    return (
        '<tr><td colspan="4" style="padding-top:10px;">'
        f'<p style="margin:0;font-size:12px;color:{MUTED_COLOR};font-style:italic;">'
        f"{escape(tagline)}</p></td></tr>"
    )


# =============================================================================
# Public API
# =============================================================================
def render_signature(fields: SignatureFields, settings: SignatureSettings) -> str:
    """Assemble the signature HTML from form values and shared settings."""
    v = _resolved(fields)

    contact_rows = _contact_row("email", f"mailto:{v['email']}", v["email"])
    if v["phone"]:
        contact_rows += _contact_row("phone", tel_href(v["phone"]), v["phone"])
    contact_rows += _contact_row("website", v["website"], display_url(v["website"]))

    return (
        '<table cellpadding="0" cellspacing="0" border="0" '
        f'style="font-family:Arial,Helvetica,sans-serif;font-size:14px;line-height:1.5;color:{TEXT_COLOR};">'
        "<tr>"
        f'<td style="vertical-align:middle;padding-right:15px;">{_photo_html(v["photo"], v["name"])}</td>'
        f'<td style="vertical-align:middle;padding-right:15px;">{_logo_html(settings.logo_url)}</td>'
        '<td style="vertical-align:middle;padding-right:15px;padding-left:5px;">'
        '<table cellpadding="0" cellspacing="0" border="0" '
        f'style="border-left:3px solid {BRAND_COLOR};height:90px;"><tr><td></td></tr></table>'
        "</td>"
        '<td style="vertical-align:middle;">'
        f'<p style="margin:0;font-size:18px;font-weight:bold;color:{TEXT_COLOR};">{escape(v["name"])}</p>'
        f'<p style="margin:2px 0 0 0;font-size:13px;color:{MUTED_COLOR};">{escape(v["title"])}</p>'
        f'<p style="margin:2px 0 8px 0;font-size:13px;color:{MUTED_COLOR};">{escape(COMPANY_NAME)}</p>'
        f'<table cellpadding="0" cellspacing="0" border="0">{contact_rows}</table>'
        "</td>"
        "</tr>"
        f"{_social_row(v['linkedin'], v['twitter'])}"
        f"{_awards_row(settings.awards)}"
        f"{_tagline_row(settings.company_tagline)}"
        "</table>"
    )


def render_signature_text(fields: SignatureFields, settings: SignatureSettings) -> str:
    """Plain-text rendition used as the clipboard's text/plain flavour."""
    v = _resolved(fields)
    lines = [v["name"], f"{v['title']} | {COMPANY_NAME}", "", v["email"]]
    if v["phone"]:
        lines.append(v["phone"])
    lines.append(display_url(v["website"]))
    for label, url in (("LinkedIn", v["linkedin"]), ("Twitter", v["twitter"])):
        if url:
            lines.append(f"{label}: {url}")
    if settings.company_tagline:
        lines.extend(["", settings.company_tagline])
    return "\n".join(lines)
