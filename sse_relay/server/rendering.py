"""
MODULE OVERVIEW:
Jinja2 rendering for both the SSE wire payload and the HTML pages.

WHAT IS HAPPENING HERE:
A delivered message is an HTML fragment (`message.html`). The chat page's EventSource
appends each one to the conversation as-is. Autoescaping is on, so a message body can
never inject markup into the recipient's page.
"""
from jinja2 import Environment, PackageLoader, select_autoescape

from sse_relay.shared.models import OutboundMessage

class MessageRenderer:
    def __init__(self, env: Environment | None = None):
        self.env = env or Environment(
            loader=PackageLoader("sse_relay", "templates"),
            autoescape=select_autoescape(["html"]),
        )

    def render_message(self, message: OutboundMessage) -> str:
        template = self.env.get_template("message.html")
        return template.render(from_session_id=message.from_session_id, body=message.body).strip()

    def render_page(self, name: str, **context) -> str:
        return self.env.get_template(name).render(**context)
