"""HTML rendering for the landing and result pages.

Pages are pure functions of session state and the resolved display language.
Every interpolated value goes through ``html.escape``.
"""

from __future__ import annotations

from html import escape

from adhd_scheduler.i18n import LANGUAGE_NAMES, SUPPORTED_LANGUAGES, text_direction, translate
from adhd_scheduler.sessions import Session

_STYLE = """
      body { font-family: sans-serif; max-width: 600px; margin: 2rem auto; padding: 0 1rem; }
      h1 { color: #333; }
      button, a.action { padding: 0.6rem 1rem; margin-top: 1rem; font-size: 1rem; }
      a.action { text-decoration: none; }
      form { margin-bottom: 0.5rem; }
      nav.languages a { margin-inline-end: 0.5rem; }
      p.note { color: #a55; }
"""


def _page(language: str, title: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="{escape(language)}" dir="{text_direction(language)}">
  <head>
    <meta charset="utf-8">
    <title>{escape(title)}</title>
    <style>{_STYLE}    </style>
  </head>
  <body>
{body}
  </body>
</html>
"""


def _language_switcher(language: str) -> str:
    links = []
    for code in SUPPORTED_LANGUAGES:
        name = escape(LANGUAGE_NAMES.get(code, code))
        if code == language:
            links.append(f"<strong>{name}</strong>")
        else:
            links.append(f'<a href="/?lang={code}" hreflang="{code}">{name}</a>')
    label = escape(translate("language", language))
    return f'    <nav class="languages" aria-label="{label}">{" ".join(links)}</nav>'


def _post_button(action: str, label: str) -> str:
    return (
        f'    <form action="{action}" method="post">\n'
        f'      <button type="submit">{escape(label)}</button>\n'
        "    </form>"
    )


def render_landing(session: Session | None, language: str) -> str:
    """Render the landing page.

    Signed-out sessions see only the sign-in link; signed-in sessions see the
    generate-schedule and log-out forms.
    """
    title = translate("title", language)
    parts = [f"    <h1>{escape(title)}</h1>"]

    if session is not None and session.is_authenticated:
        if session.email:
            signed_in = translate("signedInAs", language, email=session.email)
            parts.append(f"    <p>{escape(signed_in)}</p>")
        parts.append(_post_button("/schedule", translate("generateSchedule", language)))
        parts.append(_post_button("/logout", translate("logout", language)))
    else:
        parts.append(
            f'    <a class="action" href="/auth/start">{escape(translate("login", language))}</a>'
        )

    parts.append(_language_switcher(language))
    return _page(language, title, "\n".join(parts))


def render_message(
    language: str,
    heading_key: str,
    body: str | None = None,
    *,
    note: str | None = None,
) -> str:
    """Render a simple result or error page with a link back to ``/``."""
    heading = translate(heading_key, language)
    parts = [f"    <h1>{escape(heading)}</h1>"]
    if body:
        parts.append(f"    <p>{escape(body)}</p>")
    if note:
        parts.append(f'    <p class="note">{escape(note)}</p>')
    parts.append(
        f'    <a class="action" href="/">{escape(translate("backHome", language))}</a>'
    )
    return _page(language, translate("title", language), "\n".join(parts))
