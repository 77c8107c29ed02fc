"""Tests for the event model and the template render data."""

from __future__ import annotations

from datetime import date

import pytest
from markupsafe import Markup

from eventdocx.entities import EM_DASH
from eventdocx.hyperlinks import HyperlinkRegistry
from eventdocx.proposal import (
    UNTIL_FINISH,
    Event,
    EventDataError,
    ProposalDataBuilder,
    format_long_date,
    numbered,
)


def build(event_data, next_id=3):
    registry = HyperlinkRegistry(next_id=next_id)
    context = ProposalDataBuilder().build(Event.from_dict(event_data), registry)
    return context, registry


class TestEventFromDict:

    def test_sample_event(self, event_data):
        event = Event.from_dict(event_data)
        assert event.name == "Annual Workshop"
        assert event.activity_type == "Workshop"
        assert event.activity_date == date(2025, 5, 5)
        assert event.activity_time.until_finish
        assert len(event.run_down) == 2
        assert event.budget[0].price_per_qty == 15000

    def test_committee_name_falls_back_to_email(self, event_data):
        event = Event.from_dict(event_data)
        assert [m.name for m in event.committee] == ["Ayu Lestari", "budi@example.com"]

    def test_committee_strings(self):
        event = Event.from_dict({"committee": ["Dewi"]})
        assert event.committee[0].name == "Dewi"

    def test_activity_type_string(self):
        assert Event.from_dict({"activityType": "Seminar"}).activity_type == "Seminar"

    def test_empty_payload(self):
        event = Event.from_dict({})
        assert event.name == ""
        assert event.budget == []
        assert event.activity_date is None

    @pytest.mark.parametrize("payload", [None, [], "event"])
    def test_payload_must_be_object(self, payload):
        with pytest.raises(EventDataError):
            Event.from_dict(payload)

    def test_list_fields_must_be_lists(self):
        with pytest.raises(EventDataError):
            Event.from_dict({"activity": "Talks"})
        with pytest.raises(EventDataError):
            Event.from_dict({"budget": ["not an object"]})

    def test_invalid_date(self):
        with pytest.raises(EventDataError):
            Event.from_dict({"activityDate": "next friday"})

    def test_plain_date(self):
        assert Event.from_dict({"activityDate": "2024-12-31"}).activity_date == date(2024, 12, 31)


class TestDisplayHelpers:

    def test_long_date(self):
        assert format_long_date(date(2025, 5, 5)) == "Monday, 5 May 2025"
        assert format_long_date(None) == ""

    def test_numbered(self):
        assert numbered(["a", "b"]) == ["1. a", "2. b"]


class TestProposalDataBuilder:

    def test_header_fields(self, event_data):
        ctx, _ = build(event_data)
        assert ctx["event_name"] == "Annual Workshop"
        assert ctx["activity_type"] == "Workshop"
        assert ctx["activity_date"] == "Monday, 5 May 2025"
        assert ctx["time"] == f"08:00 - {UNTIL_FINISH}"
        assert ctx["end_time"] == UNTIL_FINISH
        assert ctx["target_audience"] == "120"
        assert ctx["activity"] == ["1. Talks", "2. Lab sessions"]
        assert ctx["purpose"] == ["1. Share knowledge"]
        assert ctx["committee_list"] == ["1. Ayu Lestari", "2. budi@example.com"]

    def test_time_without_until_finish(self):
        ctx, _ = build({"activityTime": {"startTime": "10:00", "endTime": "12:00"}})
        assert ctx["time"] == "10:00 - 12:00"
        ctx, _ = build({})
        assert ctx["time"] == ""
        assert ctx["target_audience"] == "0"

    def test_description(self, event_data):
        ctx, _ = build(event_data)
        assert ctx["event_description"].startswith("Two days of hands-on sessions.")
        formatted = ctx["event_description_formatted"]
        assert isinstance(formatted, Markup)
        assert "1. Two days of " in formatted
        assert "2. Agenda:" in formatted
        assert "1. Keynote" in formatted

    def test_description_is_plain_text(self, event_data):
        ctx, _ = build(event_data)
        assert "<" not in ctx["event_description"]
        assert ctx["event_description"].splitlines() == [
            "Two days of hands-on sessions.", "Agenda:", "Keynote", "Labs",
        ]

    def test_key_aliases(self, event_data):
        ctx, _ = build(event_data)
        assert ctx["date"] == ctx["activity_date"] == "Monday, 5 May 2025"
        assert ctx["location"] == ctx["activity_location"] == "Main Hall"
        assert ctx["activity_start_time"] == ctx["start_time"] == "08:00"
        assert ctx["activity_end_time"] == ctx["end_time"] == UNTIL_FINISH

    def test_missing_description(self):
        ctx, _ = build({})
        assert ctx["event_description"] == ""
        assert EM_DASH in ctx["event_description_formatted"]

    def test_run_down(self, event_data):
        ctx, _ = build(event_data)
        first, second = ctx["run_down"]
        assert first["time"] == "08:00 - 09:00"
        assert first["duration"] == "60"
        assert first["name"] == "Opening"
        assert first["description"] == "Welcome & briefing"
        assert isinstance(first["description_formatted"], Markup)
        assert "Welcome &amp; " in first["description_formatted"]
        assert second["description"] == EM_DASH
        assert EM_DASH in second["description_formatted"]

    def test_budget_by_category(self, event_data):
        ctx, registry = build(event_data)
        cats = ctx["budget_by_category"]
        assert [c["name"] for c in cats] == ["Food", "other"]
        food = cats[0]
        assert [i["item"] for i in food["items"]] == ["Snacks", "Lunch"]
        assert food["total"] == 120 * 15000 + 120 * 35000
        assert food["total_display"] == "Rp 6.000.000,00"
        assert cats[1]["items"][0]["type"] == "Income"

    def test_budget_links_use_registry(self, event_data):
        ctx, registry = build(event_data, next_id=3)
        assert [r.id for r in registry.relationships] == ["rId3", "rId4"]
        assert registry.relationships[1].target == "https://catering.example.com/menu?id=7&size=l"
        food = ctx["budget_by_category"][0]["items"]
        assert 'r:id="rId3"' in food[0]["description_markup"]
        assert 'r:id="rId4"' in food[1]["description_markup"]
        assert isinstance(food[0]["description_markup"], Markup)
        other = ctx["budget_by_category"][1]["items"][0]
        assert "Local bank" in other["description_markup"]
        assert registry.next_id == 5
