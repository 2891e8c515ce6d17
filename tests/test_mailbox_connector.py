"""
tests/test_mailbox_connector.py

Provider selection, fetch paths, filtering and value extraction of the
mailbox connector. All provider APIs are served by the fake session.
"""

from __future__ import annotations

import base64

import pytest

from app.connectors.base import ConnectorRequestError
from app.connectors.mailbox_connector import (
    EmailMessage,
    MailboxConnector,
    extract_values,
    filter_emails,
    select_gmail_body,
)
from app.domain.execution_ledger import ExecutionLedger, StepStatus
from app.domain.source_config import MailboxConfig

GRAPH_URL = "https://graph.test/v1.0/me/mailFolders/inbox/messages"
GMAIL_LIST_URL = "https://gmail.test/gmail/v1/users/me/messages"


def _b64(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def _gmail_message(subject: str, parts: list[dict]) -> dict:
    return {
        "payload": {
            "headers": [
                {"name": "Subject", "value": subject},
                {"name": "From", "value": "Supervision <noreply@ops.io>"},
                {"name": "Date", "value": "Mon, 6 Oct 2026 08:00:00 +0000"},
            ],
            "parts": parts,
        }
    }


@pytest.fixture()
def connector(fake_session, http_settings, mailbox_settings) -> MailboxConnector:
    return MailboxConnector(
        http_settings=http_settings,
        mailbox_settings=mailbox_settings,
        session=fake_session,
    )


@pytest.fixture()
def ledger() -> ExecutionLedger:
    ledger = ExecutionLedger()
    ledger.open_step(action="fetch_source", message="email")
    return ledger


# ---------------------------------------------------------------------------
# Provider paths
# ---------------------------------------------------------------------------


class TestProviderPaths:
    def test_gmail_is_inferred_from_address_and_fetches_in_two_phases(
        self, connector, fake_session, ledger
    ) -> None:
        fake_session.add_json(GMAIL_LIST_URL, {"messages": [{"id": "m1"}, {"id": "m2"}]})
        fake_session.add_json(
            f"{GMAIL_LIST_URL}/m1",
            _gmail_message("Rapport", [{"mimeType": "text/plain", "body": {"data": _b64("total: 12")}}]),
        )
        fake_session.add_json(
            f"{GMAIL_LIST_URL}/m2",
            _gmail_message("Rapport", [{"mimeType": "text/plain", "body": {"data": _b64("rien")}}]),
        )

        result = connector.fetch(
            address="x@gmail.com",
            config=MailboxConfig.parse('{"token":"abc"}'),
            fields=None,
            ledger=ledger,
            step_index=0,
        )

        assert fake_session.urls() == [GMAIL_LIST_URL, f"{GMAIL_LIST_URL}/m1", f"{GMAIL_LIST_URL}/m2"]
        assert fake_session.calls[0].params == {"maxResults": 10}
        assert fake_session.calls[1].params == {"format": "full"}
        assert fake_session.calls[1].headers == {"Authorization": "Bearer abc"}
        assert [item["id"] for item in result] == ["m1", "m2"]
        assert result[0]["bodyPreview"] == "total: 12"
        assert result[0]["from"] == "Supervision <noreply@ops.io>"
        assert not ledger.is_finalized(0)

    def test_gmail_fetches_at_most_max_results_and_skips_failed_messages(
        self, connector, fake_session, ledger
    ) -> None:
        fake_session.add_json(GMAIL_LIST_URL, {"messages": [{"id": "a"}, {"id": "b"}, {"id": "c"}]})
        fake_session.add_json(f"{GMAIL_LIST_URL}/a", {}, status_code=404)
        fake_session.add_json(f"{GMAIL_LIST_URL}/b", _gmail_message("B", []))

        result = connector.fetch(
            address="x@gmail.com",
            config=MailboxConfig.parse('{"token":"abc","maxResults":2,"subject":"B","from":"ops"}'),
            fields=None,
            ledger=ledger,
            step_index=0,
        )

        assert fake_session.urls() == [GMAIL_LIST_URL, f"{GMAIL_LIST_URL}/a", f"{GMAIL_LIST_URL}/b"]
        assert fake_session.calls[0].params == {"maxResults": 2, "q": "subject:B from:ops"}
        assert [item["id"] for item in result] == ["b"]

    def test_microsoft_graph_mapping(self, connector, fake_session, ledger) -> None:
        fake_session.add_json(
            GRAPH_URL,
            {
                "value": [
                    {
                        "id": "g1",
                        "subject": "Incidents",
                        "from": {"emailAddress": {"address": "alerts@corp.io"}},
                        "body": {"content": "Incidents ouverts: 5"},
                        "receivedDateTime": "2026-10-06T08:00:00Z",
                        "isRead": False,
                    },
                    {"id": "g2", "subject": "Other", "bodyPreview": "preview only"},
                ]
            },
        )

        result = connector.fetch(
            address="me@outlook.com",
            config=MailboxConfig.parse("graph-token"),
            fields=None,
            ledger=ledger,
            step_index=0,
        )

        call = fake_session.calls[0]
        assert call.params == {"$top": 10, "$orderby": "receivedDateTime desc"}
        assert call.headers["Authorization"] == "Bearer graph-token"
        assert result[0] == {
            "id": "g1",
            "subject": "Incidents",
            "from": "alerts@corp.io",
            "date": "2026-10-06T08:00:00Z",
            "bodyPreview": "Incidents ouverts: 5",
        }
        assert result[1]["bodyPreview"] == "preview only"

    def test_microsoft_error_carries_api_message(self, connector, fake_session, ledger) -> None:
        fake_session.add_json(GRAPH_URL, {"error": {"message": "InvalidAuthenticationToken"}}, status_code=401)

        with pytest.raises(ConnectorRequestError, match="401 - InvalidAuthenticationToken"):
            connector.fetch(
                address="me@hotmail.com",
                config=MailboxConfig.parse('{"token":"t"}'),
                fields=None,
                ledger=ledger,
                step_index=0,
            )

    @pytest.mark.parametrize(
        "payload, expected_ids",
        [
            ([{"id": 1}, {"id": 2}], [1, 2]),
            ({"emails": [{"id": 3}]}, [3]),
            ({"messages": [{"id": 4}]}, [4]),
            ({"data": [{"id": 5}]}, [5]),
            ({"id": 6, "subject": "single"}, [6]),
        ],
    )
    def test_custom_api_response_shapes(
        self, connector, fake_session, ledger, payload, expected_ids
    ) -> None:
        fake_session.add_json("https://mail.corp.io/api", payload)

        result = connector.fetch(
            address="ops@corp.io",
            config=MailboxConfig.parse('{"apiUrl":"https://mail.corp.io/api","token":"t"}'),
            fields=None,
            ledger=ledger,
            step_index=0,
        )

        assert [item["id"] for item in result] == expected_ids

    def test_missing_configuration_marks_step_error_without_raising(
        self, connector, fake_session, ledger
    ) -> None:
        result = connector.fetch(
            address="ops@corp.io",
            config=MailboxConfig.parse('{"provider":"gmail"}'),
            fields=None,
            ledger=ledger,
            step_index=0,
        )

        assert result is None
        assert fake_session.calls == []
        assert ledger[0].status is StepStatus.ERROR
        assert "Token d'accès requis" in ledger[0].message
        assert '"provider"' in ledger[0].message


# ---------------------------------------------------------------------------
# Extraction and filtering
# ---------------------------------------------------------------------------


def test_extract_pattern_takes_precedence_over_fields(connector, fake_session, ledger) -> None:
    fake_session.add_json(
        GRAPH_URL,
        {"value": [{"id": "g1", "subject": "KPI", "body": {"content": "errors=3 total=7,5"}}]},
    )

    result = connector.fetch(
        address="me@outlook.com",
        config=MailboxConfig.parse('{"token":"t","extractPattern":"total=\\\\d+(,\\\\d+)?"}'),
        fields="errors=\\d+",
        ledger=ledger,
        step_index=0,
    )

    assert result == [
        {"emailId": "g1", "subject": "KPI", "date": None, "value": 7.5, "rawMatch": "total=7,5"}
    ]


def test_no_extracted_value_falls_back_to_previews(connector, fake_session, ledger) -> None:
    fake_session.add_json(GRAPH_URL, {"value": [{"id": "g1", "subject": "KPI", "body": {"content": "x" * 300}}]})

    result = connector.fetch(
        address="me@outlook.com",
        config=MailboxConfig.parse('{"token":"t"}'),
        fields="total",
        ledger=ledger,
        step_index=0,
    )

    assert result[0]["bodyPreview"] == "x" * 200


class TestExtractValues:
    EMAILS = [
        EmailMessage(id=1, subject="Daily", body="Tickets: 12 ouverts, Tickets: 3,5 fermés", date="d1"),
        EmailMessage(id=2, subject="Daily", body="Pas de tickets", date="d2"),
    ]

    def test_every_numeric_match_becomes_a_value(self) -> None:
        values = extract_values(self.EMAILS, r"tickets:\s*\d+(?:,\d+)?")
        assert [(value.email_id, value.value) for value in values] == [(1, 12.0), (1, 3.5)]
        assert values[0].raw_match == "Tickets: 12"

    def test_matches_without_number_are_ignored(self) -> None:
        assert extract_values(self.EMAILS, "pas de") == []

    def test_invalid_regex_falls_back_to_text_search(self) -> None:
        emails = [EmailMessage(id=9, subject="S", body="Charge (CPU = 81 %", date=None)]

        values = extract_values(emails, "(CPU")

        assert len(values) == 1
        assert values[0].value == 81.0
        assert values[0].to_record() == {"emailId": 9, "subject": "S", "date": None, "value": 81.0}

    def test_invalid_regex_without_text_occurrence_yields_nothing(self) -> None:
        assert extract_values(self.EMAILS, "[unclosed") == []


def test_filter_by_subject_then_sender() -> None:
    emails = [
        EmailMessage(id=1, subject="Rapport hebdo", sender="ops@corp.io"),
        EmailMessage(id=2, subject="RAPPORT mensuel", sender="finance@corp.io"),
        EmailMessage(id=3, subject=None, sender="ops@corp.io"),
    ]

    selected = filter_emails(emails, subject="rapport", from_address="OPS@")

    assert [email.id for email in selected] == [1]


class TestGmailBodySelection:
    def test_first_plain_part_wins(self) -> None:
        payload = {
            "parts": [
                {"mimeType": "text/html", "body": {"data": _b64("<b>html</b>")}},
                {"mimeType": "text/plain", "body": {"data": _b64("plain one")}},
                {"mimeType": "text/plain", "body": {"data": _b64("plain two")}},
            ]
        }
        assert select_gmail_body(payload) == "plain one"

    def test_last_html_part_wins_without_plain(self) -> None:
        payload = {
            "parts": [
                {"mimeType": "text/html", "body": {"data": _b64("first html")}},
                {"mimeType": "text/html", "body": {"data": _b64("last html")}},
            ]
        }
        assert select_gmail_body(payload) == "last html"

    def test_single_part_payload_is_used_directly(self) -> None:
        payload = {"mimeType": "text/plain", "body": {"data": _b64("inline")}}
        assert select_gmail_body(payload) == "inline"

    def test_parts_without_data_are_ignored(self) -> None:
        assert select_gmail_body({"parts": [{"mimeType": "text/plain", "body": {}}]}) == ""
