"""Template rendering for order notifications using Jinja2.

Each notification kind maps to one entry of TEMPLATE_TABLE: the Jinja2
template file and the default subject line. Rendering is a pure function of
its inputs, so identical inputs always yield byte-identical messages.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from .models import (
    NotificationKind,
    NotificationTemplateError,
    OrderSnapshot,
    RenderedMessage,
    SanitizedRecipient,
    UnknownTemplateError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemplateSpec:
    """Template file and default subject for one notification kind."""

    template: str
    subject: str


TEMPLATE_TABLE: Dict[NotificationKind, TemplateSpec] = {
    NotificationKind.ORDER_SUCCESS: TemplateSpec(
        "order_success.html.j2", "Your purchase was completed successfully"
    ),
    NotificationKind.ORDER_FAILURE: TemplateSpec(
        "order_failure.html.j2", "There is a problem with your payment method"
    ),
    NotificationKind.ORDER_PENDING: TemplateSpec(
        "order_pending.html.j2", "We are waiting for your bank to confirm the payment"
    ),
    NotificationKind.ORDER_CANCELLED: TemplateSpec(
        "order_cancelled.html.j2", "We have cancelled your order :("
    ),
    NotificationKind.ADMIN_NOTICE: TemplateSpec(
        "admin_notice.html.j2", "New purchase completed successfully"
    ),
    NotificationKind.SHIPPING_NOTICE: TemplateSpec(
        "shipping_notice.html.j2", "Your purchase is on its way"
    ),
}


def resolve_kind(kind: Union[str, NotificationKind]) -> NotificationKind:
    """Map a kind value onto NotificationKind.

    Raises:
        UnknownTemplateError: If ``kind`` is not one of the supported kinds
    """
    try:
        return NotificationKind(kind)
    except ValueError:
        supported = ", ".join(k.value for k in NotificationKind)
        raise UnknownTemplateError(
            f"Template not found: {kind!r}. Available templates: {supported}"
        ) from None


class TemplateRenderer:
    """Renders notification e-mails from the templates in ``email_templates``.

    Subject lines can be overridden per kind; the sender identity and the
    public site URL are fixed at construction time.
    """

    def __init__(
        self,
        sender: str,
        site_url: str = "https://tuspacio.vercel.app/",
        subjects: Optional[Mapping[str, str]] = None,
        autoescape: bool = False,
        template_dir: str = "email_templates",
    ):
        """Initialize the renderer and its Jinja2 environment.

        Args:
            sender: Value of the From header for every message
            site_url: Public store URL used in footer and call-to-action links
            subjects: Subject overrides keyed by notification kind
            autoescape: Enable Jinja2 HTML autoescaping
            template_dir: Directory name within the notifications package

        Raises:
            UnknownTemplateError: If a subject override names an unknown kind
        """
        self.sender = sender
        self.site_url = site_url
        self.subjects = {
            kind: spec.subject for kind, spec in TEMPLATE_TABLE.items()
        }
        for kind, subject in (subjects or {}).items():
            self.subjects[resolve_kind(kind)] = subject

        self.env = Environment(
            loader=PackageLoader("order_notifier.notifications", template_dir),
            autoescape=autoescape,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    @property
    def links(self) -> Dict[str, str]:
        base = self.site_url.rstrip("/")
        return {
            "retry_payment": f"{base}/retry-payment",
            "profile": f"{base}/profile",
            "track_order": f"{base}/track-order",
        }

    def subject_for(self, kind: Union[str, NotificationKind]) -> str:
        return self.subjects[resolve_kind(kind)]

    def render(
        self,
        kind: Union[str, NotificationKind],
        recipient: SanitizedRecipient,
        order: Optional[OrderSnapshot] = None,
    ) -> RenderedMessage:
        """Render the message for one notification.

        Args:
            kind: Notification kind
            recipient: Sanitized recipient
            order: Sanitized order snapshot; an empty snapshot is used when None

        Returns:
            RenderedMessage with sender, recipient, subject and HTML body

        Raises:
            UnknownTemplateError: If ``kind`` is not supported
            NotificationTemplateError: If the template fails to render
        """
        resolved = resolve_kind(kind)
        spec = TEMPLATE_TABLE[resolved]

        context: Dict[str, Any] = {
            "recipient": recipient,
            "order": order if order is not None else OrderSnapshot(),
            "site_url": self.site_url,
            "links": self.links,
        }

        try:
            html = self.env.get_template(spec.template).render(context)
        except TemplateError as e:
            error_msg = f"Template rendering failed for {resolved.value}: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e

        logger.debug(f"Rendered {resolved.value} template for {recipient.email}")

        return RenderedMessage(
            sender=self.sender,
            to=recipient.email,
            subject=self.subjects[resolved],
            html=html,
        )
