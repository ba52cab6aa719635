"""Reviews and dashboard stats: business resources scoped by team_id."""

from __future__ import annotations


def _review(employee, **overrides) -> dict:
    payload = {
        "employee_id": str(employee.id),
        "customer_name": "Jane Customer",
        "job_type": "Plumbing",
        "keywords": "fast, friendly",
        "has_photo": False,
    }
    payload.update(overrides)
    return payload


def test_member_submits_review_and_earns_points(client, store, team_with_admin, auth_headers):
    t = team_with_admin
    resp = client.post(
        f"/api/v1/teams/{t.team.id}/reviews",
        json=_review(t.member, has_photo=True),
        headers=auth_headers(t.member),
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["points_awarded"] == 15
    assert body["review"]["team_id"] == str(t.team.id)
    assert store.points[(t.member.id, t.team.id)] == 15


def test_review_without_photo_earns_base_points(client, team_with_admin, auth_headers):
    t = team_with_admin
    resp = client.post(
        f"/api/v1/teams/{t.team.id}/reviews", json=_review(t.admin), headers=auth_headers(t.member)
    )
    assert resp.json()["points_awarded"] == 10


def test_employee_from_other_team_is_not_found(client, store, team_with_admin, auth_headers):
    t = team_with_admin
    resp = client.post(
        f"/api/v1/teams/{t.team.id}/reviews",
        json=_review(t.outsider),
        headers=auth_headers(t.admin),
    )
    assert resp.status_code == 404
    assert store.reviews == []


def test_overlong_customer_name_is_rejected(client, team_with_admin, auth_headers):
    t = team_with_admin
    resp = client.post(
        f"/api/v1/teams/{t.team.id}/reviews",
        json=_review(t.member, customer_name="x" * 101),
        headers=auth_headers(t.member),
    )
    assert resp.status_code == 400
    assert resp.json()["details"]["field"] == "customer_name"


def test_blank_keywords_are_rejected(client, team_with_admin, auth_headers):
    t = team_with_admin
    resp = client.post(
        f"/api/v1/teams/{t.team.id}/reviews",
        json=_review(t.member, keywords="   "),
        headers=auth_headers(t.member),
    )
    assert resp.status_code == 400
    assert resp.json()["details"]["field"] == "keywords"


def test_outsider_cannot_submit(client, team_with_admin, auth_headers):
    t = team_with_admin
    resp = client.post(
        f"/api/v1/teams/{t.team.id}/reviews",
        json=_review(t.member),
        headers=auth_headers(t.outsider),
    )
    assert resp.status_code == 403


def test_list_reviews_is_scoped_and_paginated(client, team_with_admin, auth_headers):
    t = team_with_admin
    headers = auth_headers(t.member)
    for name in ("A", "B", "C"):
        client.post(
            f"/api/v1/teams/{t.team.id}/reviews",
            json=_review(t.member, customer_name=name),
            headers=headers,
        )

    resp = client.get(f"/api/v1/reviews?team_id={t.team.id}&limit=2", headers=headers)

    body = resp.json()
    assert body["total"] == 3
    assert [r["customer_name"] for r in body["reviews"]] == ["C", "B"]

    other = client.get(
        f"/api/v1/reviews?team_id={t.other_team.id}", headers=auth_headers(t.outsider)
    )
    assert other.json()["total"] == 0


def test_dashboard_stats(client, store, team_with_admin, auth_headers):
    t = team_with_admin
    store.add_widget(t.team.id, "Revenue")
    client.post(
        f"/api/v1/teams/{t.team.id}/reviews",
        json=_review(t.member, has_photo=True),
        headers=auth_headers(t.member),
    )

    resp = client.get(f"/api/v1/dashboard/stats?team_id={t.team.id}", headers=auth_headers(t.admin))

    assert resp.json() == {
        "team_id": str(t.team.id),
        "total_reviews": 1,
        "total_points": 15,
        "total_members": 2,
        "active_widgets": 1,
    }
