"""
HTML escaping for Telegram HTML mode.

Product names come from the storefront catalog and delivery details are
typed by users; both are escaped before being embedded in HTML messages.
Localized static text is never escaped.
"""

import html
from typing import Optional


def safe_html(text: Optional[str]) -> str:
    """
    Escape < > & " ' in user or catalog provided text.

    Examples:
        >>> safe_html("G1 <Prash>")
        'G1 &lt;Prash&gt;'

        >>> safe_html(None)
        ''
    """
    if text is None:
        return ""
    return html.escape(str(text), quote=True)
