import datetime as dt

import pytest
from sqlmodel import select

from worktrack.core.exceptions import ConcurrencyHazard, NotFoundError, ValidationError
from worktrack.models.activity import ActivityLog, EntityType
from worktrack.models.comment import RequestComment
from worktrack.models.cost_tracker import TimeCostEntry
from worktrack.models.request import EVERYONE, Request, RequestStatus, RequestType
from worktrack.models.sequence import Sequence
from worktrack.services import ledger, requests

LINK = {"name": "Brief", "url": "https://example.com/brief.pdf", "comments": "v2"}


@pytest.fixture
def poster(db, alice, acme):
    return requests.create_request(
        db,
        {
            "title": "Spring poster",
            "request_type": RequestType.DESIGN_FOR_PRINT,
            "details": "<p>A2, matte</p>",
            "client_id": acme.id,
            "assigned_to": alice.id,
            "due_date": dt.date(2024, 3, 1),
            "links": [LINK],
        },
        alice,
    )


def _activity(db, request_id):
    return db.exec(
        select(ActivityLog).where(ActivityLog.request_id == request_id).order_by(ActivityLog.id)
    ).all()


# === Create ===

def test_create_sets_defaults_and_creator(db, alice):
    request = requests.create_request(db, {"title": "  Logo refresh "}, alice)

    assert request.request_number == "0001"
    assert request.title == "Logo refresh"
    assert request.status == RequestStatus.SUBMITTED
    assert request.request_type == RequestType.OTHER
    assert request.created_by == alice.id
    assert request.creator_name == "Alice Adams"
    assert request.created_at == request.updated_at
    assert request.links == []
    assert request.images == []

    [entry] = _activity(db, request.id)
    assert entry.action == "created"
    assert entry.entity_type == EntityType.REQUEST
    assert entry.user_name == "Alice Adams"


def test_create_embeds_links_with_ids(poster):
    [link] = poster.links
    assert link["id"].startswith("link-")
    assert link["name"] == "Brief"
    assert link["url"] == LINK["url"]
    assert link["comments"] == "v2"


@pytest.mark.parametrize("title", ["", "   ", None])
def test_create_requires_title(db, alice, title):
    with pytest.raises(ValidationError) as exc_info:
        requests.create_request(db, {"title": title}, alice)
    assert exc_info.value.message in ("Please enter a request title", "Invalid request fields")
    assert db.exec(select(Request)).all() == []


def test_rejected_create_does_not_consume_a_number(db, alice):
    with pytest.raises(ValidationError):
        requests.create_request(db, {"title": ""}, alice)
    assert requests.create_request(db, {"title": "ok"}, alice).request_number == "0001"


def test_create_accepts_draft(db, alice):
    request = requests.create_request(db, {"title": "Idea", "status": "draft"}, alice)
    assert request.status == RequestStatus.DRAFT


def test_create_rejects_later_statuses(db, alice):
    with pytest.raises(ValidationError):
        requests.create_request(db, {"title": "x", "status": "completed"}, alice)


def test_create_rejects_unknown_status_and_type(db, alice):
    with pytest.raises(ValidationError):
        requests.create_request(db, {"title": "x", "status": "archived"}, alice)
    with pytest.raises(ValidationError):
        requests.create_request(db, {"title": "x", "request_type": "Juggling"}, alice)


def test_create_checks_assignee_and_client(db, alice):
    with pytest.raises(ValidationError):
        requests.create_request(db, {"title": "x", "assigned_to": "nobody"}, alice)
    with pytest.raises(ValidationError):
        requests.create_request(db, {"title": "x", "client_id": "missing"}, alice)

    request = requests.create_request(db, {"title": "x", "assigned_to": EVERYONE}, alice)
    assert request.assigned_to == EVERYONE


def test_create_rejects_invalid_link(db, alice):
    with pytest.raises(ValidationError):
        requests.create_request(
            db, {"title": "x", "links": [{"name": "bad", "url": "not a url"}]}, alice
        )


# === Read / list ===

def test_get_unknown_request(db):
    with pytest.raises(NotFoundError):
        requests.get_request(db, "missing")


def test_list_requests_filters(db, alice):
    a = requests.create_request(db, {"title": "Website banner", "due_date": dt.date(2024, 1, 10)}, alice)
    b = requests.create_request(db, {"title": "Podcast edit", "status": "draft"}, alice)
    c = requests.create_request(db, {"title": "Web copy", "due_date": dt.date(2024, 2, 10)}, alice)

    assert {r.id for r in requests.list_requests(db)} == {a.id, b.id, c.id}
    assert [r.id for r in requests.list_requests(db, statuses=["draft"])] == [b.id]
    assert {r.id for r in requests.list_requests(db, search="WEB")} == {a.id, c.id}
    assert [r.id for r in requests.list_requests(db, search="0002")] == [b.id]
    window = requests.list_requests(db, due_from=dt.date(2024, 1, 1), due_to=dt.date(2024, 1, 31))
    assert [r.id for r in window] == [a.id]


def test_search_treats_wildcards_literally(db, alice):
    done = requests.create_request(db, {"title": "100% done"}, alice)
    requests.create_request(db, {"title": "1000 banners"}, alice)
    snake = requests.create_request(db, {"title": "hero_shot"}, alice)
    requests.create_request(db, {"title": "hero shot"}, alice)
    slash = requests.create_request(db, {"title": "before\\after"}, alice)

    assert [r.id for r in requests.list_requests(db, search="0%")] == [done.id]
    assert [r.id for r in requests.list_requests(db, search="o_s")] == [snake.id]
    assert [r.id for r in requests.list_requests(db, search="e\\a")] == [slash.id]
    assert requests.list_requests(db, search="%") == [done]


# === Update ===

def test_update_merges_fields_and_logs_changes(db, alice, poster):
    updated = requests.update_request(
        db, poster.id, {"status": "in progress", "due_date": "2024-03-15", "details": "<p>A1</p>"}, alice
    )

    assert updated.status == RequestStatus.IN_PROGRESS
    assert updated.due_date == dt.date(2024, 3, 15)
    assert updated.details == "<p>A1</p>"
    assert updated.title == "Spring poster"

    entry = _activity(db, poster.id)[-1]
    assert entry.action == "updated"
    assert entry.changes == {
        "status": {"from": "submitted", "to": "in progress"},
        "due_date": {"from": "2024-03-01", "to": "2024-03-15"},
    }


def test_update_ignores_immutable_fields(db, alice, bob, poster):
    created_at = poster.created_at
    updated = requests.update_request(
        db,
        poster.id,
        {"request_number": "9999", "created_by": bob.id, "created_at": "1999-01-01", "title": "New"},
        alice,
    )
    assert updated.request_number == "0001"
    assert updated.created_by == alice.id
    assert updated.created_at == created_at
    assert updated.title == "New"


def test_update_allows_any_status_transition(db, alice, poster):
    requests.update_request(db, poster.id, {"status": "completed"}, alice)
    updated = requests.update_request(db, poster.id, {"status": "submitted"}, alice)
    assert updated.status == RequestStatus.SUBMITTED


def test_update_rejects_blank_title(db, alice, poster):
    with pytest.raises(ValidationError):
        requests.update_request(db, poster.id, {"title": " "}, alice)
    assert requests.get_request(db, poster.id).title == "Spring poster"


def test_update_unknown_request(db, alice):
    with pytest.raises(NotFoundError):
        requests.update_request(db, "missing", {"title": "x"}, alice)


def test_update_can_clear_assignee(db, alice, poster):
    updated = requests.update_request(db, poster.id, {"assigned_to": ""}, alice)
    assert updated.assigned_to is None


# === Clone ===

def test_clone_completes_source_and_copies_fields(db, alice, bob, acme, poster):
    clone = requests.clone_request(db, poster.id, bob, due_date=dt.date(2024, 4, 1))
    source = requests.get_request(db, poster.id)

    assert source.status == RequestStatus.COMPLETED
    assert clone.id != source.id
    assert clone.request_number == "0002"
    assert clone.status == RequestStatus.SUBMITTED
    assert clone.title == source.title
    assert clone.request_type == source.request_type
    assert clone.details == source.details
    assert clone.client_id == acme.id
    assert clone.links == source.links
    assert clone.due_date == dt.date(2024, 4, 1)
    assert clone.assigned_to is None
    assert clone.images == []
    assert clone.created_by == bob.id
    assert clone.creator_name == "Bob Brown"

    assert [e.action for e in _activity(db, source.id)][-1] == "completed"
    assert [e.action for e in _activity(db, clone.id)] == ["cloned"]


def test_clone_is_all_or_nothing(db, alice, poster):
    # Another writer took 0002 without moving the counter
    db.add(Request(title="racer", request_number="0002"))
    db.commit()
    assert db.get(Sequence, "request_number").value == 1

    with pytest.raises(ConcurrencyHazard):
        requests.clone_request(db, poster.id, alice)

    db.expire_all()
    assert requests.get_request(db, poster.id).status == RequestStatus.SUBMITTED
    numbers = sorted(r.request_number for r in db.exec(select(Request)).all())
    assert numbers == ["0001", "0002"]
    assert db.exec(select(Request).where(Request.title == poster.title)).all() == [poster]
    assert db.get(Sequence, "request_number").value == 1
    assert [e.action for e in _activity(db, poster.id)] == ["created"]


def test_clone_links_are_independent(db, alice, poster):
    clone = requests.clone_request(db, poster.id, alice)
    requests.add_request_link(db, clone.id, {"name": "Extra", "url": "https://example.com/x"}, alice)

    assert len(requests.get_request(db, clone.id).links) == 2
    assert len(requests.get_request(db, poster.id).links) == 1


def test_clone_does_not_copy_comments_or_time(db, alice, poster):
    requests.add_comment(db, poster.id, alice, "looks good")
    ledger.add_entry(db, poster.id, alice.id, dt.date(2024, 1, 5), "2")

    clone = requests.clone_request(db, poster.id, alice)

    assert requests.list_comments(db, clone.id) == []
    assert ledger.list_entries(db, clone.id) == []


def test_clone_refuses_unsaved_changes(db, alice, poster):
    with pytest.raises(ValidationError) as exc_info:
        requests.clone_request(db, poster.id, alice, has_unsaved_changes=True)

    assert "save your changes" in exc_info.value.message
    assert requests.get_request(db, poster.id).status == RequestStatus.SUBMITTED
    assert len(db.exec(select(Request)).all()) == 1


def test_clone_refuses_stale_copy(db, alice, poster):
    loaded_at = poster.updated_at
    requests.update_request(db, poster.id, {"details": "changed elsewhere"}, alice)

    with pytest.raises(ValidationError):
        requests.clone_request(db, poster.id, alice, expected_updated_at=loaded_at)

    fresh = requests.get_request(db, poster.id)
    clone = requests.clone_request(db, poster.id, alice, expected_updated_at=fresh.updated_at)
    assert clone.details == "changed elsewhere"


def test_clone_unknown_request(db, alice):
    with pytest.raises(NotFoundError):
        requests.clone_request(db, "missing", alice)


# === Delete ===

def test_delete_removes_request_and_comments_but_keeps_time(db, alice, poster):
    requests.add_comment(db, poster.id, alice, "first")
    entry = ledger.add_entry(db, poster.id, alice.id, dt.date(2024, 1, 5), "1.5")

    requests.delete_request(db, poster.id, alice)

    with pytest.raises(NotFoundError):
        requests.get_request(db, poster.id)
    assert db.exec(select(RequestComment)).all() == []
    kept = db.get(TimeCostEntry, entry.id)
    assert kept is not None
    assert kept.request_id == poster.id
    assert str(kept.time_spent) == "1.50"


def test_delete_unknown_request(db, alice):
    with pytest.raises(NotFoundError):
        requests.delete_request(db, "missing", alice)


# === Bulk status ===

def test_set_status_bulk(db, alice):
    a = requests.create_request(db, {"title": "a"}, alice)
    b = requests.create_request(db, {"title": "b"}, alice)

    updated = requests.set_status_bulk(db, [a.id, b.id], "canceled", alice)

    assert [r.status for r in updated] == [RequestStatus.CANCELED, RequestStatus.CANCELED]
    assert requests.get_request(db, a.id).status == RequestStatus.CANCELED


def test_set_status_bulk_is_all_or_nothing(db, alice):
    a = requests.create_request(db, {"title": "a"}, alice)

    with pytest.raises(NotFoundError):
        requests.set_status_bulk(db, [a.id, "missing"], "completed", alice)

    assert requests.get_request(db, a.id).status == RequestStatus.SUBMITTED


def test_set_status_bulk_rejects_unknown_status(db, alice):
    a = requests.create_request(db, {"title": "a"}, alice)
    with pytest.raises(ValidationError):
        requests.set_status_bulk(db, [a.id], "archived", alice)


# === Links, images, comments ===

def test_add_and_delete_link(db, alice, poster):
    link = requests.add_request_link(
        db, poster.id, {"name": "Moodboard", "url": "https://example.com/mood"}, alice
    )
    assert requests.get_request(db, poster.id).links[-1]["id"] == link["id"]

    requests.delete_request_link(db, poster.id, link["id"], alice)
    assert [link["name"] for link in requests.get_request(db, poster.id).links] == ["Brief"]


@pytest.mark.parametrize(
    "fields, message",
    [
        ({"name": "", "url": "https://example.com"}, "Please enter both name and URL"),
        ({"name": "Doc", "url": "  "}, "Please enter both name and URL"),
        ({"name": "Doc", "url": "example"}, "Please enter a valid URL"),
    ],
)
def test_add_link_validation(db, alice, poster, fields, message):
    with pytest.raises(ValidationError) as exc_info:
        requests.add_request_link(db, poster.id, fields, alice)
    assert exc_info.value.message == message
    assert len(requests.get_request(db, poster.id).links) == 1


def test_delete_unknown_link(db, alice, poster):
    with pytest.raises(NotFoundError):
        requests.delete_request_link(db, poster.id, "link-missing", alice)


def test_images(db, alice, poster):
    url = "https://files.example.com/requests/0001/mock.png"
    requests.add_image(db, poster.id, url, alice)
    assert requests.get_request(db, poster.id).images == [url]

    requests.remove_image(db, poster.id, url, alice)
    assert requests.get_request(db, poster.id).images == []

    with pytest.raises(NotFoundError):
        requests.remove_image(db, poster.id, url, alice)


def test_comments_newest_first_with_author_snapshot(db, alice, bob, poster):
    requests.add_comment(db, poster.id, alice, "first")
    requests.add_comment(db, poster.id, bob, "second")

    comments = requests.list_comments(db, poster.id)
    assert [c.text for c in comments] == ["second", "first"]
    assert [c.author_name for c in comments] == ["Bob Brown", "Alice Adams"]
    assert [c.text for c in requests.list_comments(db, poster.id, newest_first=False)] == ["first", "second"]


def test_empty_comment_rejected(db, alice, poster):
    with pytest.raises(ValidationError):
        requests.add_comment(db, poster.id, alice, "   ")


def test_comment_on_unknown_request(db, alice):
    with pytest.raises(NotFoundError):
        requests.add_comment(db, "missing", alice, "hello")


def test_link_text_is_sanitized(db, alice, poster):
    link = requests.add_request_link(
        db,
        poster.id,
        {"name": "<script>Mock</script>", "url": "https://example.com", "comments": "javascript:x"},
        alice,
    )
    assert link["name"] == "scriptMock/script"
    assert link["comments"] == "x"
