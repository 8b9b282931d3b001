"""
Unit tests for UserHandler against the in-memory store.
"""

import asyncio
import json
import logging

import pytest
from bson import ObjectId

from app.models.principal import Principal
from app.schemas.user import UserUpdate
from app.services.user_handler import UserHandler


def body_of(response):
    return json.loads(response.body)


@pytest.fixture
def handler(store):
    return UserHandler(store)


@pytest.mark.asyncio
async def test_create_is_always_rejected(handler, store):
    response = await handler.create()
    assert response.status_code == 405
    assert response.media_type == "application/problem+json"
    data = body_of(response)
    assert data["title"] == "You're not allowed to create users on this system"
    assert data["detail"] == "Users are created via 3rd party (Facebook) authentication"
    assert store.calls == []


@pytest.mark.asyncio
async def test_list_returns_results_and_total(handler, store):
    for i in range(3):
        store.add_user(f"fb{i}", username=f"user{i}abc", email=f"u{i}@example.com")
    store.count_result = 42

    response = await handler.list(0, 2)

    assert response.status_code == 200
    data = body_of(response)
    assert data["meta"] == {"total": 42}
    assert len(data["results"]) == 2
    assert "email" not in data["results"][0]
    assert store.calls == ["list", "count"]


@pytest.mark.asyncio
async def test_list_total_defaults_to_zero_when_count_fails(handler, store):
    store.add_user("fb1")
    store.failing.add("count")

    response = await handler.list(0, 10)

    assert response.status_code == 200
    assert body_of(response)["meta"]["total"] == 0


@pytest.mark.asyncio
async def test_list_empty_is_no_content(handler, store):
    response = await handler.list(0, 10)
    assert response.status_code == 204
    assert response.body == b""
    assert "count" not in store.calls


@pytest.mark.asyncio
async def test_list_store_failure(handler, store):
    store.failing.add("list")
    response = await handler.list(0, 10)
    assert response.status_code == 500
    data = body_of(response)
    assert data["title"] == "Unexpected problem"
    assert data["detail"] == "Could not list users due to internal error"


@pytest.mark.asyncio
async def test_get_by_id(handler, store):
    user = store.add_user("fb1", username="alice")
    response = await handler.get_by_id(str(user["_id"]))
    assert response.status_code == 200
    data = body_of(response)
    assert data["_id"] == str(user["_id"])
    assert data["username"] == "alice"


@pytest.mark.asyncio
async def test_get_by_id_missing_is_no_content(handler):
    response = await handler.get_by_id(str(ObjectId()))
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_get_by_id_malformed_id_is_internal_error(handler):
    response = await handler.get_by_id("not-an-object-id")
    assert response.status_code == 500
    assert body_of(response)["detail"] == "Could not retrieve user due to internal error"


@pytest.mark.asyncio
async def test_get_cohorts_by_id(handler, store):
    cohort = store.add_cohort_document("Class of 2014")
    user = store.add_user("fb1", cohorts=[cohort["_id"]])

    response = await handler.get_cohorts_by_id(str(user["_id"]))

    assert response.status_code == 200
    assert body_of(response) == [{"_id": str(cohort["_id"]), "name": "Class of 2014"}]


@pytest.mark.asyncio
async def test_get_cohorts_without_membership_is_no_content(handler, store):
    user = store.add_user("fb1")
    response = await handler.get_cohorts_by_id(str(user["_id"]))
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_get_cohorts_store_failure(handler, store):
    store.failing.add("get_cohorts_by_id")
    response = await handler.get_cohorts_by_id(str(ObjectId()))
    assert response.status_code == 500
    assert body_of(response)["detail"] == "Could not retrieve cohorts due to internal error"


@pytest.mark.asyncio
async def test_add_and_remove_cohort(handler, store):
    user = store.add_user("fb1")
    cohort_id = str(ObjectId())

    added = await handler.add_cohort_for_user(str(user["_id"]), cohort_id)
    assert added.status_code == 200
    assert body_of(added) == [cohort_id]

    # adding twice keeps a single membership
    again = await handler.add_cohort_for_user(str(user["_id"]), cohort_id)
    assert body_of(again) == [cohort_id]

    removed = await handler.remove_cohort_from_user(str(user["_id"]), cohort_id)
    assert removed.status_code == 204
    assert store.stored(user["_id"])["cohorts"] == []


@pytest.mark.asyncio
async def test_cohort_store_failures(handler, store):
    store.failing.update({"add_cohort", "remove_cohort"})
    user_id, cohort_id = str(ObjectId()), str(ObjectId())

    added = await handler.add_cohort_for_user(user_id, cohort_id)
    assert added.status_code == 500
    assert body_of(added)["detail"] == "Could not save cohort due to internal error"

    removed = await handler.remove_cohort_from_user(user_id, cohort_id)
    assert removed.status_code == 500
    assert body_of(removed)["detail"] == "Could not remove cohort due to internal error"


@pytest.mark.asyncio
async def test_update_registers_new_user(handler, store):
    user = store.add_user("fb1", firstName="Old", lastName="Name", avatar="http://old")

    response = await handler.update(
        UserUpdate(username="abcde", firstName="X"), Principal("fb1")
    )

    assert response.status_code == 200
    data = body_of(response)
    assert data["username"] == "abcde"
    assert data["registrationDone"] is True
    assert data["state"] == "ONLINE"
    assert data["firstName"] == "X"
    assert data["lastName"] == "Name"
    # avatar is replaced even when omitted
    assert data["avatar"] is None
    assert store.stored(user["_id"])["username"] == "abcde"


@pytest.mark.asyncio
async def test_update_rejects_invalid_username_without_changes(handler, store):
    user = store.add_user("fb1", firstName="Old")
    before = dict(store.stored(user["_id"]))

    response = await handler.update(
        UserUpdate(username="ab1", firstName="X"), Principal("fb1")
    )

    assert response.status_code == 400
    data = body_of(response)
    assert data["title"] == "Invalid Username"
    assert data["detail"] == "User names must be 5-16 characters"
    assert store.stored(user["_id"]) == before
    assert "save" not in store.calls


@pytest.mark.asyncio
async def test_update_requires_username_before_registration(handler, store):
    store.add_user("fb1")
    response = await handler.update(UserUpdate(firstName="X"), Principal("fb1"))
    assert response.status_code == 400
    assert body_of(response)["title"] == "Invalid Username"


@pytest.mark.asyncio
async def test_update_after_registration_ignores_username(handler, store):
    user = store.add_user(
        "fb1", username="firstpick", registrationDone=True, state="OFFLINE", email="a@example.com"
    )

    response = await handler.update(
        UserUpdate(username="!", email="", lastName="New"), Principal("fb1")
    )

    assert response.status_code == 200
    stored = store.stored(user["_id"])
    assert stored["username"] == "firstpick"
    assert stored["email"] == "a@example.com"
    assert stored["lastName"] == "New"
    assert stored["state"] == "ONLINE"
    assert stored["registrationDone"] is True


@pytest.mark.asyncio
async def test_update_only_touches_principal_record(handler, store):
    mine = store.add_user("fb-me")
    other = store.add_user("fb-other", username="otheruser", registrationDone=True)
    other_before = dict(store.stored(other["_id"]))

    response = await handler.update(UserUpdate(username="myname"), Principal("fb-me"))

    assert response.status_code == 200
    assert body_of(response)["_id"] == str(mine["_id"])
    assert store.stored(other["_id"]) == other_before


@pytest.mark.asyncio
async def test_update_unknown_principal(handler, store):
    response = await handler.update(UserUpdate(username="abcde"), Principal("nobody"))
    assert response.status_code == 400
    data = body_of(response)
    assert data["title"] == "Could not save user information"
    assert data["detail"] == "There was an error processing the request to save your information"


@pytest.mark.asyncio
async def test_update_resolution_failure(handler, store):
    store.add_user("fb1")
    store.failing.add("find_by_external_id")
    response = await handler.update(UserUpdate(username="abcde"), Principal("fb1"))
    assert response.status_code == 400
    assert body_of(response)["title"] == "Could not save user information"


@pytest.mark.asyncio
async def test_update_save_failure_is_internal_error(handler, store):
    store.add_user("fb1")
    store.failing.add("save")
    response = await handler.update(UserUpdate(username="abcde"), Principal("fb1"))
    assert response.status_code == 500
    assert body_of(response)["detail"] == "Could not save user due to internal error"


@pytest.mark.asyncio
async def test_update_taken_username(handler, store):
    store.add_user("fb-other", username="taken", registrationDone=True)
    store.add_user("fb1")
    response = await handler.update(UserUpdate(username="taken"), Principal("fb1"))
    assert response.status_code == 400
    data = body_of(response)
    assert data["title"] == "Invalid Username"
    assert data["detail"] == "That user name is already taken"


@pytest.mark.asyncio
async def test_delete_removes_principal_record(handler, store):
    mine = store.add_user("fb-me")
    other = store.add_user("fb-other")

    response = await handler.delete(Principal("fb-me"))

    assert response.status_code == 200
    assert body_of(response)["_id"] == str(mine["_id"])
    assert store.stored(mine["_id"]) is None
    assert store.stored(other["_id"]) is not None


@pytest.mark.asyncio
async def test_delete_unknown_principal(handler):
    response = await handler.delete(Principal("nobody"))
    assert response.status_code == 400
    data = body_of(response)
    assert data["title"] == "Could not delete user"
    assert data["detail"] == "There was an error processing the request to save your information"


@pytest.mark.asyncio
async def test_delete_remove_failure_is_internal_error(handler, store):
    store.add_user("fb1")
    store.failing.add("remove")
    response = await handler.delete(Principal("fb1"))
    assert response.status_code == 500
    assert body_of(response)["detail"] == "Could not delete user due to internal error"


@pytest.mark.asyncio
async def test_get_messages_returns_and_clears(handler, store):
    user = store.add_user("fb1", messages=[{"from": "bob", "text": "hi"}])

    first = await handler.get_messages(str(user["_id"]))
    assert first.status_code == 200
    assert body_of(first)["messages"] == [{"from": "bob", "text": "hi"}]

    assert store.stored(user["_id"])["messages"] == []


@pytest.mark.asyncio
async def test_get_messages_error_and_null_inbox_look_the_same(handler, store):
    user = store.add_user("fb1", messages=None)
    null_inbox = await handler.get_messages(str(user["_id"]))

    store.failing.add("get_messages")
    store_error = await handler.get_messages(str(user["_id"]))

    assert null_inbox.status_code == store_error.status_code == 204
    assert null_inbox.body == store_error.body == b""


@pytest.mark.asyncio
async def test_get_messages_missing_user_is_no_content(handler):
    response = await handler.get_messages(str(ObjectId()))
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_get_messages_strict_mode_reports_store_errors(store):
    handler = UserHandler(store, messages_error_as_no_content=False)
    store.failing.add("get_messages")
    response = await handler.get_messages(str(ObjectId()))
    assert response.status_code == 500
    assert body_of(response)["detail"] == "Could not retrieve messages due to internal error"


@pytest.mark.asyncio
async def test_get_messages_for_principal_reads_own_inbox(handler, store):
    user = store.add_user("fb1", messages=[{"text": "hi"}])
    response = await handler.get_messages(str(user["_id"]), Principal("fb1"))
    assert response.status_code == 200
    assert body_of(response)["messages"] == [{"text": "hi"}]


@pytest.mark.asyncio
async def test_get_messages_for_other_user_leaves_inbox_alone(handler, store):
    store.add_user("fb-me")
    other = store.add_user("fb-other", messages=[{"text": "private"}])

    response = await handler.get_messages(str(other["_id"]), Principal("fb-me"))

    assert response.status_code == 204
    assert "get_messages" not in store.calls
    assert store.stored(other["_id"])["messages"] == [{"text": "private"}]


@pytest.mark.asyncio
async def test_overlapping_updates_keep_their_own_log_context(handler, store, caplog):
    first = store.add_user("fb-a")
    second = store.add_user("fb-b")
    delays = {"fb-a": 0.01, "fb-b": 0.05}
    find = store.find_by_external_id

    async def slow_find(external_id):
        await asyncio.sleep(delays[external_id])
        return await find(external_id)

    store.find_by_external_id = slow_find
    factory = logging.getLogRecordFactory()
    caplog.set_level(logging.INFO)

    responses = await asyncio.gather(
        handler.update(UserUpdate(username="alpha"), Principal("fb-a")),
        handler.update(UserUpdate(username="bravo"), Principal("fb-b")),
    )

    assert [r.status_code for r in responses] == [200, 200]
    assert logging.getLogRecordFactory() is factory

    saved = {
        record.user_id: record.external_id
        for record in caplog.records
        if record.getMessage() == "User profile saved"
    }
    assert saved == {str(first["_id"]): "fb-a", str(second["_id"]): "fb-b"}

    logging.getLogger("yfa.tests").info("after the requests")
    assert not hasattr(caplog.records[-1], "external_id")
    assert not hasattr(caplog.records[-1], "operation")
