"""Subjects and Jinja2 bodies for account emails."""

from __future__ import annotations

from jinja2 import Environment, PackageLoader, select_autoescape

ACCOUNT_CREATED_SUBJECT = "Account created"
ACCOUNT_DELETED_SUBJECT = "Account deleted"
ACCOUNT_PASSWORD_CHANGED_SUBJECT = "Password changed"

templates = Environment(
    loader=PackageLoader("account_service", "templates"),
    autoescape=select_autoescape(["html"]),
)


def get_username_from_email(email: str) -> str:
    """Return the part of ``email`` before the ``@``."""
    return email.split("@", 1)[0]


def _render(template_name: str, email: str) -> str:
    template = templates.get_template(template_name)
    return template.render(username=get_username_from_email(email))


def account_created_email(email: str) -> str:
    return _render("email/account_created.html", email)


def account_deleted_email(email: str) -> str:
    return _render("email/account_deleted.html", email)


def password_changed_email(email: str) -> str:
    return _render("email/password_changed.html", email)
