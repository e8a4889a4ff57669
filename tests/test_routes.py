from quiz_api.models.db.question import ChoiceAnswer


def test_session_endpoints_require_auth(client) -> None:
    response = client.post("/api/test/session", json={"testId": "x"})
    assert response.status_code == 401

    response = client.get(
        "/api/test/session", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401


def test_start_resume_and_submit_flow(
    client, headers, make_user, make_test, add_choice_question
) -> None:
    user = make_user()
    test = make_test()
    question, correct, _ = add_choice_question(test)
    auth = headers(user)

    started = client.post("/api/test/session", json={"testId": test.id}, headers=auth)
    assert started.status_code == 200
    body = started.json()
    assert body["resumed"] is False
    session_id = body["session"]["id"]
    assert body["session"]["status"] == "in_progress"

    resumed = client.post("/api/test/session", json={"testId": test.id}, headers=auth)
    assert resumed.json()["resumed"] is True
    assert resumed.json()["session"]["id"] == session_id

    active = client.get("/api/test/session", params={"testId": test.id}, headers=auth)
    assert active.json()["session"]["id"] == session_id

    submitted = client.post(
        "/api/test/session/answers",
        json={
            "sessionId": session_id,
            "answers": [{"questionId": question.id, "answers": [correct], "timeSpent": 12}],
            "totalQuestions": 1,
        },
        headers=auth,
    )
    assert submitted.status_code == 200
    assert submitted.json() == {
        "success": True,
        "score": 100,
        "correctCount": 1,
        "totalQuestions": 1,
        "answeredCount": 1,
        "skippedCount": 0,
    }

    finished = client.put(
        "/api/test/session",
        json={"sessionId": session_id, "status": "completed", "timeSpent": 30},
        headers=auth,
    )
    assert finished.status_code == 200
    assert finished.json()["session"]["status"] == "completed"
    assert finished.json()["session"]["time_spent"] == 30

    reopened = client.put(
        "/api/test/session",
        json={"sessionId": session_id, "status": "in_progress"},
        headers=auth,
    )
    assert reopened.status_code == 409

    empty = client.get("/api/test/session", headers=auth)
    assert empty.json() == {"session": None}


def test_foreign_session_is_not_found(client, headers, make_user, make_test) -> None:
    owner = make_user()
    stranger = make_user()
    test = make_test()
    started = client.post("/api/test/session", json={"testId": test.id}, headers=headers(owner))
    session_id = started.json()["session"]["id"]

    response = client.put(
        "/api/test/session",
        json={"sessionId": session_id, "currentQuestionIndex": 2},
        headers=headers(stranger),
    )
    assert response.status_code == 404


def test_access_endpoint_for_anonymous_and_owner(
    client, headers, make_user, make_test, purchase
) -> None:
    user = make_user()
    paid = make_test(price=19.0, is_free=False, currency="EUR")

    anonymous = client.get(f"/api/tests/{paid.id}/access")
    assert anonymous.status_code == 200
    assert anonymous.json()["status"] == "auth_required"
    assert anonymous.json()["canAccess"] is False
    assert anonymous.json()["testCurrency"] == "EUR"

    locked = client.get(f"/api/tests/{paid.id}/access", headers=headers(user))
    assert locked.json()["status"] == "locked"

    purchase(user, paid)
    granted = client.get(f"/api/tests/{paid.id}/access", headers=headers(user))
    assert granted.json()["status"] == "granted"
    assert granted.json()["hasPurchased"] is True

    assert client.get("/api/tests/missing/access").status_code == 404


def test_batch_access_omits_unknown_ids(client, make_test) -> None:
    free = make_test()
    paid = make_test(price=2, is_free=False)

    response = client.post(
        "/api/tests/access", json={"testIds": [free.id, paid.id, "missing"]}
    )
    assert response.status_code == 200
    body = response.json()
    assert set(body) == {free.id, paid.id}
    assert body[free.id]["status"] == "granted"
    assert body[paid.id]["status"] == "auth_required"


def test_get_test_is_gated_by_access(
    client, headers, make_user, make_test, add_question
) -> None:
    user = make_user()
    paid = make_test(price=5, is_free=False)
    add_question(paid, "true-false", [ChoiceAnswer(text="True", is_correct=True)])

    anonymous = client.get(f"/api/test/{paid.id}")
    assert anonymous.status_code == 401
    assert anonymous.json()["detail"]["status"] == "auth_required"

    locked = client.get(f"/api/test/{paid.id}", headers=headers(user))
    assert locked.status_code == 403

    admin = make_user(is_admin=True)
    payload = client.get(f"/api/test/{paid.id}", headers=headers(admin))
    assert payload.status_code == 200
    body = payload.json()
    assert body["timeLimit"] == 600
    assert body["questions"][0]["payload"]["kind"] == "choice"
    assert body["questions"][0]["payload"]["answers"][0]["isCorrect"] is True


def test_public_listing_includes_access(client, headers, make_user, make_test) -> None:
    make_test(title="Free")
    make_test(title="Hidden", is_active=False)

    response = client.get("/api/tests/public")
    assert response.status_code == 200
    body = response.json()
    assert [item["title"] for item in body] == ["Free"]
    assert body[0]["access"]["canAccess"] is True
    assert body[0]["questionCount"] == 0


def test_history_and_purchases_endpoints(
    client, headers, make_user, make_test, purchase
) -> None:
    user = make_user()
    paid = make_test(title="Paid", price=4, is_free=False)
    purchase(user, paid)

    history = client.get(f"/api/test/{paid.id}/history", headers=headers(user))
    assert history.status_code == 200
    assert history.json()["overallStats"]["totalAttempts"] == 0

    purchases = client.get("/api/user/purchased-tests", headers=headers(user))
    assert purchases.status_code == 200
    assert purchases.json()["stats"]["totalPurchased"] == 1
    assert purchases.json()["purchases"][0]["testTitle"] == "Paid"

    assert client.get("/api/user/purchased-tests").status_code == 401
