"""
HTML confirmation pages for the one-click unsubscribe link.

The unsubscribe endpoint is opened directly from an email client, so it
answers with a page rather than JSON.
"""

from html import escape
from typing import List, Tuple

from notifications.digest_builder import FRONTEND_BASE_URL

PAGE_STYLE = """
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; text-align: center; padding: 50px; background: #f9fafb; }
    .container { max-width: 500px; margin: 0 auto; background: white; padding: 40px; border-radius: 8px; box-shadow: 0 1px 3px rgba(0,0,0,0.1); }
    .error { color: #dc2626; }
    .success { color: #059669; }
    .btn { background: #059669; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; display: inline-block; margin: 10px; }
"""


def render_page(
    title: str,
    paragraphs: List[str],
    success: bool,
    links: List[Tuple[str, str]] | None = None,
) -> str:
    """Render a minimal standalone page. Paragraph text is escaped."""
    if links is None:
        links = [("Return to Homepage", FRONTEND_BASE_URL)]

    body = "\n".join(f"<p>{escape(p)}</p>" for p in paragraphs)
    buttons = "\n".join(
        f'<a href="{escape(url)}" class="btn">{escape(label)}</a>' for label, url in links
    )
    css_class = "success" if success else "error"

    return f"""<!DOCTYPE html>
<html>
<head>
    <title>{escape(title)}</title>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <style>{PAGE_STYLE}</style>
</head>
<body>
    <div class="container">
        <h1 class="{css_class}">{escape(title)}</h1>
        {body}
        <div>{buttons}</div>
    </div>
</body>
</html>
"""


def unsubscribed_page(scope: str) -> str:
    browse = [("Browse Tournaments", f"{FRONTEND_BASE_URL}/tournaments")]
    if scope == "alert":
        return render_page(
            "Successfully Unsubscribed",
            [
                "You have been unsubscribed from this tournament alert.",
                "Any other alerts you have set up are unchanged.",
            ],
            success=True,
            links=browse,
        )
    return render_page(
        "Successfully Unsubscribed",
        [
            "You have been unsubscribed from all tournament alerts.",
            "You will no longer receive any email notifications from us.",
        ],
        success=True,
        links=browse,
    )


def error_page(title: str, message: str) -> str:
    return render_page(title, [message], success=False)
