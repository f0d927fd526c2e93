from tests.fakes import api_error


def install_create_group(fake, creator):
    def create_group(params):
        group_id = f"group-{len(fake.rows('groups')) + 1}"
        fake.seed("groups", {"id": group_id, "name": params["p_name"], "created_by": creator})
        fake.seed("group_members", {"group_id": group_id, "user_id": creator, "role": "owner"})
        return group_id
    fake.rpc_handlers["create_group"] = create_group


def test_create_group_returns_id_and_owner_membership(api, fake):
    install_create_group(fake, api.user.id)

    response = api.post("/api/groups", json={"name": "  Friday dinner "})

    assert response.status_code == 201
    body = response.json()
    assert body["data"]["id"] == "group-1"
    assert body["data"]["name"] == "Friday dinner"
    assert fake.rpc_calls == [("create_group", {"p_name": "Friday dinner"})]

    members = api.get("/api/groups/group-1/members").json()
    assert members["count"] == 1
    assert members["items"][0]["role"] == "owner"


def test_create_group_requires_name(api):
    response = api.post("/api/groups", json={})

    assert response.status_code == 422
    assert response.json()["code"] == "MISSING_GROUP_NAME"


def test_create_group_rejects_one_letter_name(api):
    response = api.post("/api/groups", json={"name": "x"})

    assert response.status_code == 422
    assert response.json()["code"] == "INVALID_GROUP_NAME"


def test_create_group_rpc_failure(api, fake):
    fake.rpc_handlers["create_group"] = lambda params: api_error("42501", "permission denied")

    response = api.post("/api/groups", json={"name": "Lunch"})

    assert response.status_code == 400
    assert response.json()["code"] == "GROUP_CREATION_FAILED"


def test_list_groups_only_returns_memberships(api, fake):
    fake.seed("groups", {"id": "g1", "name": "Mine"}, {"id": "g2", "name": "Other"})
    api.join("g1")
    api.join("g2", "someone-else")

    body = api.get("/api/groups").json()

    assert body["meta"]["total"] == 1
    assert [g["name"] for g in body["data"]] == ["Mine"]


def test_members_hidden_from_non_members(api, fake):
    api.join("g1", "someone-else")

    response = api.get("/api/groups/g1/members")

    assert response.status_code == 403
    assert response.json()["code"] == "NOT_A_MEMBER"


def test_redeem_invite_announces_player_once(api, fake):
    fake.rpc_handlers["redeem_group_invite"] = lambda params: "g1" if params["p_code"] == "ABC123" else None

    first = api.post("/api/groups/redeem", json={"code": " ABC123 "})
    second = api.post("/api/groups/redeem", json={"code": "ABC123"})

    assert first.status_code == 200
    assert first.json() == {"group_id": "g1"}
    assert second.status_code == 200
    joins = [e for e in fake.rows("group_events") if e["event_type"] == "player_join"]
    assert len(joins) == 1


def test_redeem_requires_code(api):
    response = api.post("/api/groups/redeem", json={"code": "  "})

    assert response.status_code == 422
    assert response.json()["code"] == "MISSING_INVITE_CODE"


def test_redeem_unknown_code(api, fake):
    fake.rpc_handlers["redeem_group_invite"] = lambda params: None

    response = api.post("/api/groups/redeem", json={"code": "NOPE"})

    assert response.status_code == 400
    assert response.json()["code"] == "INVITE_REDEEM_FAILED"


def test_latest_invite(api, fake):
    api.join("g1")
    fake.seed("group_invites", {"group_id": "g1", "code": "OLD"}, {"group_id": "g1", "code": "NEW"})

    body = api.get("/api/groups/g1/invite").json()

    assert body["invite"]["code"] == "NEW"


def test_post_and_list_messages(api, fake):
    api.join("g1")

    posted = api.post("/api/groups/g1/messages", json={"content": " hello ", "alias": "A" * 60})
    listed = api.get("/api/groups/g1/messages").json()

    assert posted.status_code == 200
    assert listed["items"][0]["content"] == "hello"
    assert listed["items"][0]["author_alias"] == "A" * 40


def test_empty_message_rejected(api):
    api.join("g1")

    response = api.post("/api/groups/g1/messages", json={"content": "   "})

    assert response.status_code == 422
    assert response.json()["code"] == "EMPTY_MESSAGE"
