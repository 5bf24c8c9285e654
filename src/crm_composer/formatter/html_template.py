"""
Brand-styled standalone HTML email, rendered with Jinja2.

Used for ``mode="html"`` drafts: header with logo, subject ribbon, body
paragraphs, CTA, signature and footer, all inline-styled for mail clients.
"""

import logging

from jinja2 import BaseLoader, Environment

from crm_composer.config import settings

logger = logging.getLogger(__name__)


BRAND_EMAIL_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{{ subject }}</title>
</head>
<body style="margin: 0; padding: 0; background-color: #f1f5f9; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif; font-size: 15px; line-height: 1.6; color: #1f2937;">
  <div style="max-width: 600px; margin: 24px auto; background-color: #ffffff; border-radius: 12px; overflow: hidden;">
    <div style="background: linear-gradient(135deg, #f59e0b 0%, #f97316 100%); padding: 24px; text-align: center;">
      {% if logo_url %}<img src="{{ logo_url }}" alt="{{ brand_name }}" style="max-height: 48px; display: block; margin: 0 auto 8px auto;">{% endif %}
      <div style="color: #ffffff; font-size: 13px; letter-spacing: 0.04em;">{{ tagline }}</div>
    </div>
    {% if subject %}
    <div style="background-color: #fff7ed; border-left: 4px solid #f97316; padding: 12px 24px; font-weight: 600; color: #9a3412;">
      {{ subject }}
    </div>
    {% endif %}
    <div style="padding: 24px;">
      <p style="margin: 0 0 1em 0;">{{ greeting }}</p>
      {% for block in blocks %}
      {{ block | safe }}
      {% endfor %}
      {% if cta %}
      <div style="margin: 24px 0; padding: 16px; background-color: #f8fafc; border-radius: 8px;">
        <p style="margin: 0 0 12px 0; font-weight: 600;">{{ cta }}</p>
        {% if schedule_url %}<a href="{{ schedule_url }}" style="display: inline-block; padding: 10px 18px; background-color: #f97316; color: #ffffff; text-decoration: none; border-radius: 6px;">Schedule a time</a>{% endif %}
      </div>
      {% endif %}
      <p style="margin: 0;">Best regards,<br>{{ signature_name }}</p>
    </div>
    <div style="padding: 16px 24px; background-color: #f8fafc; font-size: 12px; color: #6b7280; text-align: center;">
      {{ brand_name }} &middot; {{ tagline }}
    </div>
  </div>
</body>
</html>
""".strip()


class BrandEmailRenderer:
    """Renders formatted drafts into the brand HTML document."""

    def __init__(self) -> None:
        self.env = Environment(loader=BaseLoader(), autoescape=True)
        self.template = self.env.from_string(BRAND_EMAIL_TEMPLATE)

    def render(
        self,
        subject: str,
        greeting: str,
        blocks: list[str],
        cta: str,
        brand_name: str | None = None,
    ) -> str:
        """
        Render a complete HTML email.

        Args:
            subject: Subject echoed in the ribbon.
            greeting: Greeting line (escaped by the template).
            blocks: Pre-rendered, already escaped ``<p>``/``<ul>`` body blocks.
            cta: Call-to-action sentence.
            brand_name: Signature/brand name, defaults to the configured brand.

        Returns:
            Complete HTML document.
        """
        name = brand_name or settings.brand_name
        return self.template.render(
            subject=subject,
            greeting=greeting,
            blocks=blocks,
            cta=cta,
            brand_name=name,
            signature_name=name,
            tagline=settings.brand_tagline,
            logo_url=settings.brand_logo_url,
            schedule_url=settings.brand_schedule_url,
        )


brand_email_renderer = BrandEmailRenderer()
