"""Tests for the live page model."""

import asyncio

import pytest

from form_mcp.page import (
    Event,
    MutationObserver,
    Page,
    SubmitEvent,
    form_data,
    input_type,
    option_value,
    parse_fragment,
    selected_options,
)


# --- Element helpers ---


class TestElementHelpers:
    def test_input_type_normalizes(self):
        page = Page('<input type=" Email "><input><input type="bogus">')
        assert [input_type(i) for i in page.soup.find_all("input")] == ["email", "text", "text"]

    def test_option_value_falls_back_to_text(self):
        page = Page('<select><option value="v">Label</option><option>  Two   words </option></select>')
        first, second = page.soup.find_all("option")
        assert option_value(first) == "v"
        assert option_value(second) == "Two words"

    def test_selected_options_single(self):
        page = Page(
            "<select><option disabled>x</option><option>a</option><option>b</option></select>"
        )
        assert [o.get_text() for o in selected_options(page.soup.select_one("select"))] == ["a"]

    def test_selected_options_multiple(self):
        page = Page(
            "<select multiple><option selected>a</option><option>b</option>"
            "<option selected>c</option></select>"
        )
        assert [o.get_text() for o in selected_options(page.soup.select_one("select"))] == ["a", "c"]

    def test_parse_fragment_returns_detached_tags(self):
        nodes = parse_fragment("<form></form>text<div></div>")
        assert [n.name for n in nodes] == ["form", "div"]
        assert all(n.parent is None for n in nodes)


class TestFormData:
    def test_browser_style_entries(self):
        page = Page(
            "<form>"
            '<input name="q" value="shoes">'
            '<input type="checkbox" name="agree" checked>'
            '<input type="checkbox" name="news" value="yes">'
            '<input type="radio" name="size" value="s">'
            '<input type="radio" name="size" value="m" checked>'
            '<input name="off" value="x" disabled>'
            '<input type="file" name="upload">'
            '<textarea name="note">hi</textarea>'
            '<select name="tags" multiple><option selected>a</option><option selected>b</option></select>'
            '<button name="go" value="1">Go</button>'
            "</form>"
        )
        assert form_data(page.soup.form) == [
            ("q", "shoes"),
            ("agree", "on"),
            ("size", "m"),
            ("note", "hi"),
            ("tags", "a"),
            ("tags", "b"),
        ]

    def test_submitter_is_included(self):
        page = Page('<form><button name="go" value="1">Go</button><button name="no">No</button></form>')
        go = page.soup.find("button")
        assert form_data(page.soup.form, submitter=go) == [("go", "1")]


# --- Mutations ---


class TestMutations:
    def test_delivered_synchronously_without_loop(self):
        page = Page("<body><main></main></body>")
        batches = []
        MutationObserver(lambda records, obs: batches.append(records)).observe(page)

        (form,) = page.append(page.soup.main, "<form></form>")

        assert len(batches) == 1
        assert batches[0][0].added_nodes[0] is form

    @pytest.mark.asyncio
    async def test_batched_inside_loop(self):
        page = Page("<body><main></main></body>")
        batches = []
        MutationObserver(lambda records, obs: batches.append(records)).observe(page)

        page.append(page.soup.main, "<form></form>")
        page.append(page.soup.main, "<form></form>")
        assert batches == []

        await asyncio.sleep(0)
        assert len(batches) == 1
        assert len(batches[0]) == 2

    @pytest.mark.asyncio
    async def test_flush_delivers_immediately(self):
        page = Page("<body></body>")
        batches = []
        MutationObserver(lambda records, obs: batches.append(records)).observe(page)

        page.append(page.body, "<form></form>")
        page.flush_mutations()

        assert len(batches) == 1

    def test_move_records_removal_and_insertion(self):
        page = Page("<div id='a'><form></form></div><div id='b'></div>")
        batches = []
        MutationObserver(lambda records, obs: batches.append(records)).observe(page)
        form = page.soup.form

        page.move(form, page.get_element_by_id("b"))

        records = [r for batch in batches for r in batch]
        assert records[0].removed_nodes[0] is form
        assert records[1].added_nodes[0] is form
        assert form.parent is page.get_element_by_id("b")

    def test_disconnect_stops_delivery(self):
        page = Page("<body></body>")
        batches = []
        observer = MutationObserver(lambda records, obs: batches.append(records))
        observer.observe(page)
        observer.disconnect()

        page.append(page.body, "<form></form>")
        assert batches == []

    def test_remove_and_connectedness(self):
        page = Page("<div><form></form></div>")
        form = page.soup.form
        assert page.is_connected(form)
        page.remove(form)
        assert not page.is_connected(form)

    def test_replace_children(self):
        page = Page("<div id='root'><form id='old'></form></div>")
        batches = []
        MutationObserver(lambda records, obs: batches.append(records)).observe(page)
        old = page.get_element_by_id("old")

        (new,) = page.replace_children(page.get_element_by_id("root"), "<form id='new'></form>")

        record = batches[0][0]
        assert record.removed_nodes[0] is old
        assert record.added_nodes[0] is new


# --- Events ---


class TestEvents:
    def test_bubbles_to_ancestors_and_page(self):
        page = Page("<div><form><input name='q'></form></div>")
        seen = []
        page.add_event_listener(page.soup.form, "input", lambda e: seen.append("form"))
        page.add_event_listener(page.soup.div, "input", lambda e: seen.append("div"))
        page.add_event_listener(None, "input", lambda e: seen.append("page"))

        page.dispatch_event(Event("input", target=page.soup.input, bubbles=True))

        assert seen == ["form", "div", "page"]

    def test_non_bubbling_stays_on_target(self):
        page = Page("<form><input name='q'></form>")
        seen = []
        page.add_event_listener(page.soup.form, "focus", lambda e: seen.append("form"))
        page.dispatch_event(Event("focus", target=page.soup.input))
        assert seen == []

    def test_prevent_default(self):
        page = Page("<form></form>")
        page.add_event_listener(page.soup.form, "submit", lambda e: e.prevent_default())
        assert page.dispatch_event(SubmitEvent("submit", target=page.soup.form)) is False

    def test_once_listener(self):
        page = Page()
        calls = []
        page.add_event_listener(None, "ping", calls.append, once=True)
        page.dispatch_event(Event("ping"))
        page.dispatch_event(Event("ping"))
        assert len(calls) == 1

    def test_remove_listener(self):
        page = Page()
        calls = []

        def listener(event):
            calls.append(event)

        page.add_event_listener(None, "ping", listener)
        page.remove_event_listener(None, "ping", listener)
        page.dispatch_event(Event("ping"))
        assert calls == []

    def test_finish_loading_fires_once(self):
        page = Page(ready_state="loading")
        calls = []
        page.add_event_listener(None, "DOMContentLoaded", calls.append)
        page.finish_loading()
        page.finish_loading()
        assert page.ready_state == "interactive"
        assert len(calls) == 1


# --- Navigation ---


class TestNavigation:
    def test_push_and_replace_notify_observers(self):
        page = Page(url="https://example.com/")
        urls = []
        page.add_navigation_observer(urls.append)

        page.push_state("/cart")
        page.replace_state("/checkout")

        assert urls == ["https://example.com/cart", "https://example.com/checkout"]
        assert page.url == "https://example.com/checkout"

    def test_malformed_target_is_ignored(self):
        page = Page(url="https://example.com/")
        urls = []
        page.add_navigation_observer(urls.append)

        page.push_state("http://[::1")

        assert urls == []
        assert page.url == "https://example.com/"

    def test_set_hash_fires_hashchange(self):
        page = Page(url="https://example.com/a")
        calls = []
        page.add_event_listener(None, "hashchange", calls.append)

        page.set_hash("step2")
        page.set_hash("#step2")

        assert page.url == "https://example.com/a#step2"
        assert len(calls) == 1

    def test_back_fires_popstate(self):
        page = Page(url="https://example.com/")
        calls = []
        page.add_event_listener(None, "popstate", calls.append)
        page.push_state("/next")

        page.back()

        assert page.url == "https://example.com/"
        assert len(calls) == 1

    def test_back_at_start_does_nothing(self):
        page = Page(url="https://example.com/")
        calls = []
        page.add_event_listener(None, "popstate", calls.append)
        page.back()
        assert calls == []


# --- Submission ---


class TestSubmission:
    def test_request_submit_records_default_action(self):
        page = Page(
            '<form action="/search" method="POST"><input name="q" value="x"></form>',
            url="https://example.com/shop/",
        )
        assert page.request_submit(page.soup.form) is True

        (submission,) = page.submissions
        assert submission.url == "https://example.com/search"
        assert submission.method == "post"
        assert submission.data == [("q", "x")]

    def test_prevented_submission_is_not_recorded(self):
        page = Page("<form></form>")
        page.add_event_listener(page.soup.form, "submit", lambda e: e.prevent_default())
        assert page.request_submit(page.soup.form) is False
        assert page.submissions == []

    def test_form_action_defaults_to_page_url(self):
        page = Page('<form></form><form action="http://[::1"></form>', url="https://example.com/p")
        first, second = page.query_forms()
        assert page.form_action(first) == "https://example.com/p"
        assert page.form_action(second) == "https://example.com/p"

    def test_resolve_url(self):
        page = Page(url="https://example.com/a/b")
        assert page.resolve_url("c") == "https://example.com/a/c"
        assert page.resolve_url("http://[::1") is None

    def test_title(self):
        assert Page("<title> Shop </title>").title == "Shop"
        assert Page("<p></p>").title == ""
