"""
app/connectors/mailbox_connector.py

Mailbox connector reading recent messages from Microsoft Graph, Gmail or a
custom mail API, then mining numeric values out of the message bodies.

All provider calls are sequential. Gmail needs one list call plus one call
per message; those per-message calls are issued one after another and are
bounded by `maxResults`.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import requests

from app.config import ExternalHTTPSettings, MailboxSettings
from app.connectors.base import BaseSourceConnector, ConnectorRequestError
from app.domain.execution_ledger import ExecutionLedger, StepStatus
from app.domain.source_config import MailboxConfig, MailProvider
from app.services.value_heuristics import NUMBER_PATTERN, find_first_number

logger = logging.getLogger(__name__)

CONFIGURATION_HINT = (
    'Configurez la connexion avec {"provider": "microsoft"|"gmail", "token": "votre_token"} '
    'ou {"apiUrl": "https://...", "token": "votre_token"}'
)


@dataclass(frozen=True)
class EmailMessage:
    id: Any
    subject: str | None = None
    sender: str | None = None
    body: str | None = None
    date: str | None = None
    is_read: bool | None = None

    @classmethod
    def from_mapping(cls, item: Mapping[str, Any]) -> EmailMessage:
        return cls(
            id=item.get("id"),
            subject=item.get("subject"),
            sender=item.get("from"),
            body=item.get("body"),
            date=item.get("date"),
            is_read=item.get("isRead"),
        )

    def preview(self, chars: int) -> dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.subject,
            "from": self.sender,
            "date": self.date,
            "bodyPreview": self.body[:chars] if isinstance(self.body, str) else None,
        }


@dataclass(frozen=True)
class ExtractedValue:
    email_id: Any
    subject: str | None
    date: str | None
    value: float
    raw_match: str | None = None

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "emailId": self.email_id,
            "subject": self.subject,
            "date": self.date,
            "value": self.value,
        }
        if self.raw_match is not None:
            record["rawMatch"] = self.raw_match
        return record


def _contains(haystack: Any, needle: str) -> bool:
    return isinstance(haystack, str) and needle.lower() in haystack.lower()


def filter_emails(
    emails: Sequence[EmailMessage],
    *,
    subject: str | None,
    from_address: str | None,
) -> list[EmailMessage]:
    """
    Narrow by subject, then by sender, using case-insensitive substrings.
    """

    selected = list(emails)
    if subject and selected:
        selected = [email for email in selected if _contains(email.subject, subject)]
    if from_address and selected:
        selected = [email for email in selected if _contains(email.sender, from_address)]
    return selected


def _extract_with_regex(email: EmailMessage, regex: re.Pattern[str]) -> list[ExtractedValue]:
    values: list[ExtractedValue] = []
    for match in regex.finditer(email.body or ""):
        raw_match = match.group(0)
        number = find_first_number(raw_match)
        if number is not None:
            values.append(
                ExtractedValue(
                    email_id=email.id,
                    subject=email.subject,
                    date=email.date,
                    value=number,
                    raw_match=raw_match,
                )
            )
    return values


def _extract_with_text(email: EmailMessage, pattern: str) -> list[ExtractedValue]:
    body = email.body or ""
    if pattern.lower() not in body.lower():
        return []

    trailing_value = re.compile(
        re.escape(pattern) + rf"[\s:=]*({NUMBER_PATTERN})",
        re.IGNORECASE,
    )
    match = trailing_value.search(body)
    if match is None:
        return []
    number = find_first_number(match.group(0))
    if number is None:
        return []
    return [ExtractedValue(email_id=email.id, subject=email.subject, date=email.date, value=number)]


def extract_values(emails: Sequence[EmailMessage], pattern: str) -> list[ExtractedValue]:
    """
    Pull numbers out of each body with `pattern`.

    A pattern that is not a valid regular expression is treated as literal
    text followed by an optional separator and a number.
    """

    try:
        regex: re.Pattern[str] | None = re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        logger.info("Mailbox pattern is not a regex, using text search pattern=%r error=%s", pattern, exc)
        regex = None

    values: list[ExtractedValue] = []
    for email in emails:
        if regex is not None:
            values.extend(_extract_with_regex(email, regex))
        else:
            values.extend(_extract_with_text(email, pattern))
    return values


def decode_gmail_body(data: str) -> str:
    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        logger.warning("Unable to decode Gmail body part length=%s", len(data))
        return ""


def select_gmail_body(payload: Any) -> str:
    """
    The first text/plain part wins outright; without one, the last
    text/html part seen is kept.
    """

    if not isinstance(payload, Mapping):
        return ""
    parts = payload.get("parts") or [payload]

    body = ""
    for part in parts:
        if not isinstance(part, Mapping):
            continue
        part_body = part.get("body")
        data = part_body.get("data") if isinstance(part_body, Mapping) else None
        if not data:
            continue
        if part.get("mimeType") == "text/plain":
            body = decode_gmail_body(data)
            break
        if part.get("mimeType") == "text/html":
            body = decode_gmail_body(data)
    return body


def _header_value(headers: Sequence[Any], name: str) -> str | None:
    for header in headers:
        if isinstance(header, Mapping) and header.get("name") == name:
            return header.get("value")
    return None


class MailboxConnector(BaseSourceConnector):
    """
    Fetch messages for a mailbox source and reduce them to values or previews.
    """

    source = "email"

    def __init__(
        self,
        *,
        http_settings: ExternalHTTPSettings,
        mailbox_settings: MailboxSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(http_settings=http_settings, session=session)
        self._settings = mailbox_settings

    def fetch(
        self,
        *,
        address: str | None,
        config: MailboxConfig,
        fields: str | None,
        ledger: ExecutionLedger,
        step_index: int,
    ) -> list[dict[str, Any]] | None:
        """
        Return extracted values, or message previews when nothing was extracted.

        A missing token/apiUrl is reported on the ledger step and yields None.
        """

        provider = config.resolve_provider(address)
        if provider == MailProvider.MICROSOFT.value and config.token:
            emails = self._fetch_microsoft(config)
        elif provider == MailProvider.GMAIL.value and config.token:
            emails = self._fetch_gmail(config)
        elif config.api_url and config.token:
            emails = self._fetch_custom(config)
        else:
            logger.warning(
                "Mailbox source is not configured address=%s provider=%s has_token=%s",
                address,
                provider,
                bool(config.token),
            )
            ledger.finalize(
                step_index,
                StepStatus.ERROR,
                f'Email "{address}": Token d\'accès requis. {CONFIGURATION_HINT}',
                details={"provider": provider},
            )
            return None

        logger.info("Mailbox fetched provider=%s messages=%s", provider, len(emails))
        emails = filter_emails(emails, subject=config.subject, from_address=config.from_address)

        pattern = config.extract_pattern or fields
        if pattern and emails:
            values = extract_values(emails, pattern)
            if values:
                return [value.to_record() for value in values]

        return [email.preview(self._settings.body_preview_chars) for email in emails]

    def _fetch_microsoft(self, config: MailboxConfig) -> list[EmailMessage]:
        url = f"{self._settings.graph_base_url.rstrip('/')}/me/mailFolders/{config.folder}/messages"
        response = self._send(
            method="GET",
            url=url,
            params={"$top": config.max_results, "$orderby": "receivedDateTime desc"},
            headers={
                "Authorization": f"Bearer {config.token}",
                "Content-Type": "application/json",
            },
        )
        if not response.ok:
            raise ConnectorRequestError(
                f"Microsoft Graph API error: {response.status_code} - {self._graph_error_message(response)}",
                status_code=response.status_code,
            )

        payload = self._decode_json(response)
        messages = payload.get("value") if isinstance(payload, Mapping) else None
        emails: list[EmailMessage] = []
        for message in messages or []:
            if not isinstance(message, Mapping):
                continue
            sender = ((message.get("from") or {}).get("emailAddress") or {}).get("address")
            body = (message.get("body") or {}).get("content") or message.get("bodyPreview")
            emails.append(
                EmailMessage(
                    id=message.get("id"),
                    subject=message.get("subject"),
                    sender=sender,
                    body=body,
                    date=message.get("receivedDateTime"),
                    is_read=message.get("isRead"),
                )
            )
        return emails

    @staticmethod
    def _graph_error_message(response: requests.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return "Unknown error"
        if isinstance(payload, Mapping):
            error = payload.get("error")
            if isinstance(error, Mapping) and error.get("message"):
                return str(error["message"])
        return "Unknown error"

    def _fetch_gmail(self, config: MailboxConfig) -> list[EmailMessage]:
        base_url = f"{self._settings.gmail_base_url.rstrip('/')}/users/me/messages"
        headers = {"Authorization": f"Bearer {config.token}"}

        params: dict[str, Any] = {"maxResults": config.max_results}
        query_terms = []
        if config.subject:
            query_terms.append(f"subject:{config.subject}")
        if config.from_address:
            query_terms.append(f"from:{config.from_address}")
        if query_terms:
            params["q"] = " ".join(query_terms)

        listing = self._request_json(
            url=base_url,
            error_label="Gmail API list error",
            params=params,
            headers=headers,
        )
        listed = listing.get("messages") if isinstance(listing, Mapping) else None
        message_ids = [item.get("id") for item in listed or [] if isinstance(item, Mapping)]

        emails: list[EmailMessage] = []
        for message_id in message_ids[: config.max_results]:
            response = self._send(
                method="GET",
                url=f"{base_url}/{message_id}",
                params={"format": "full"},
                headers=headers,
            )
            if not response.ok:
                logger.warning(
                    "Skipping Gmail message id=%s status=%s",
                    message_id,
                    response.status_code,
                )
                continue

            message = self._decode_json(response)
            payload = message.get("payload") if isinstance(message, Mapping) else None
            message_headers = (payload or {}).get("headers") or []
            emails.append(
                EmailMessage(
                    id=message_id,
                    subject=_header_value(message_headers, "Subject"),
                    sender=_header_value(message_headers, "From"),
                    body=select_gmail_body(payload),
                    date=_header_value(message_headers, "Date"),
                )
            )
        return emails

    def _fetch_custom(self, config: MailboxConfig) -> list[EmailMessage]:
        payload = self._request_json(
            url=config.api_url or "",
            error_label="Custom email API error",
            headers={
                "Authorization": f"Bearer {config.token}",
                "Content-Type": "application/json",
            },
        )

        if isinstance(payload, list):
            items = payload
        elif isinstance(payload, Mapping):
            items = next(
                (payload[key] for key in ("emails", "messages", "data") if payload.get(key) is not None),
                [payload],
            )
        else:
            items = [payload]

        emails: list[EmailMessage] = []
        for index, item in enumerate(items if isinstance(items, list) else [items]):
            if not isinstance(item, Mapping):
                logger.warning("Skipping custom mailbox item index=%s type=%s", index, type(item).__name__)
                continue
            emails.append(EmailMessage.from_mapping(item))
        return emails
