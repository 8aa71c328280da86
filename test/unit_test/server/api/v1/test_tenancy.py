"""Tenant resolution and role checks as seen through the API."""

from serviceos.server.core.constant import ORGANIZATION_HEADER, USER_HEADER


async def test_missing_user_is_unauthorized(client):
    response = await client.get("/api/v1/bookings", headers={USER_HEADER: ""})

    assert response.status_code == 401


async def test_unknown_user_is_unauthorized(client, organization):
    response = await client.get(
        "/api/v1/bookings", headers={ORGANIZATION_HEADER: organization.id, USER_HEADER: "nobody"}
    )

    assert response.status_code == 401


async def test_non_member_is_forbidden(client, other_organization):
    response = await client.get("/api/v1/bookings", headers={ORGANIZATION_HEADER: other_organization.id})

    assert response.status_code == 403


async def test_missing_organization_is_forbidden(client):
    response = await client.get("/api/v1/bookings", headers={ORGANIZATION_HEADER: ""})

    assert response.status_code == 403


async def test_viewer_can_read_but_not_administer(client, viewer_headers):
    assert (await client.get("/api/v1/booking-settings", headers=viewer_headers)).status_code == 200

    response = await client.patch(
        "/api/v1/booking-settings", json={"portal_booking_confirm": False}, headers=viewer_headers
    )

    assert response.status_code == 403
