"""EmailPostAuthorTrigger -- email the author of a post on the model's behalf.

Directive: ``[EMAIL_AUTHOR:post_id:subject:message]``. The message is the
last argument, so it may contain colons.

Only actors granted the ``edit_posts`` capability may fire it. The body is
rendered from a configurable HTML template with ``{author_name}``,
``{message}``, ``{post_title}``, ``{post_link}``, and ``{site_name}``
placeholders.
"""

from __future__ import annotations

import html
import logging
from typing import TYPE_CHECKING, Any

from smartassist.models.trigger import (
    ExecutionContext,
    ExecutionResult,
    SettingField,
    TriggerDefinition,
)
from smartassist.triggers.sanitize import sanitize_email, sanitize_textarea

if TYPE_CHECKING:
    from smartassist.settings import TriggerSettingsStore
    from smartassist.triggers.builtin.collaborators import ContentSource, Mailer

logger = logging.getLogger(__name__)

REQUIRED_CAPABILITY = "edit_posts"

DEFAULT_TEMPLATE = (
    "<html><body>\n"
    "<p>{author_name},</p>\n"
    "<p>You have received a message regarding your post.</p>\n"
    "<p><strong>Message:</strong> {message}</p>\n"
    '<p><strong>Post:</strong> <a href="{post_link}">{post_title}</a></p>\n'
    "<p>Best regards,<br>{site_name}</p>\n"
    "</body></html>"
)


def render_template(template: str, values: dict[str, str]) -> str:
    """Replace ``{name}`` placeholders; unknown placeholders are left as-is."""
    result = template
    for key, value in values.items():
        result = result.replace("{" + key + "}", value)
    return result


class EmailPostAuthorTrigger:
    """Sends an email to the author of a published post.

    Constructor Args:
        content: Post and author lookups.
        mailer: Outbound mail.
        settings: Reads this trigger's ``from_email`` and ``email_template``.
        site_name: Used in the From header, default subject and template.
        admin_email: Sender address when ``from_email`` is not set.
    """

    definition = TriggerDefinition(
        id="email_post_author",
        name="Email Post Author",
        description="Sends an email to the author of a specified post.",
        command_pattern=r"\[EMAIL_AUTHOR:([^:\]]+):([^:\]]+):([^\]]+)\]",
        required_params=("post_id", "subject", "message"),
        settings_schema=(
            SettingField(
                name="enabled",
                type="checkbox",
                label="Enable this trigger",
                default=True,
                description="Allow the AI to send emails to post authors.",
            ),
            SettingField(
                name="from_email",
                type="email",
                label="From Email Address",
                default="",
                description="Address to send from. Leave empty to use the admin email.",
            ),
            SettingField(
                name="email_template",
                type="textarea",
                label="Email Template",
                default=DEFAULT_TEMPLATE,
                description=(
                    "Placeholders: {author_name}, {message}, {post_title}, "
                    "{post_link}, {site_name}"
                ),
            ),
        ),
    )

    def __init__(
        self,
        content: ContentSource,
        mailer: Mailer,
        settings: TriggerSettingsStore,
        *,
        site_name: str = "",
        admin_email: str = "",
    ) -> None:
        self._content = content
        self._mailer = mailer
        self._settings = settings
        self._site_name = site_name
        self._admin_email = admin_email

    def can_execute(self, context: ExecutionContext) -> bool:
        return REQUIRED_CAPABILITY in context.capabilities

    def execute(self, params: dict[str, Any], context: ExecutionContext) -> ExecutionResult:
        post_id = int(params["post_id"])
        subject = str(params.get("subject", ""))
        message = sanitize_textarea(params.get("message", ""))

        post = self._content.get_post(post_id)
        if post is None or not post.is_published:
            return ExecutionResult.failure("Post not found.")

        author = self._content.get_user(post.author_id)
        if author is None or not author.email:
            return ExecutionResult.failure("Post author not found.")

        settings = self._settings.resolve(self.definition)
        from_email = sanitize_email(settings.get("from_email")) or self._admin_email
        template = settings.get("email_template") or DEFAULT_TEMPLATE

        body = render_template(
            template,
            {
                "author_name": html.escape(author.display_name),
                "message": html.escape(message),
                "post_title": html.escape(post.title),
                "post_link": html.escape(post.url, quote=True),
                "site_name": html.escape(self._site_name),
            },
        )
        email_subject = subject or f"Message about your post on {self._site_name}"
        headers = ["Content-Type: text/html; charset=UTF-8"]
        if from_email:
            headers.insert(0, f"From: {self._site_name} <{from_email}>")

        if not self._mailer.send(author.email, email_subject, body, headers):
            logger.warning(
                "Mailer refused message to author %d of post %d", author.id, post_id
            )
            return ExecutionResult.failure(
                "Failed to send email. Please check the mail configuration."
            )

        return ExecutionResult(
            success=True,
            message=f"Email sent successfully to {author.display_name}.",
            data={
                "postId": post_id,
                "authorId": author.id,
                "authorName": author.display_name,
            },
        )
