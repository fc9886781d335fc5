# Overview: Pytest coverage for tenant isolation behavior.

"""
Multi-Tenant Isolation Tests

SECURITY TESTS: Prove that cross-tenant access is denied for core resources.

These tests create two organizations with separate admins, suppliers and
SKUs, then verify that:
1. An admin of Organization B cannot read/write data in Organization A
2. Foreign ids are reported as "not found" (existence is never revealed)
3. Lists only ever contain the caller's organization
4. Security events are logged for cross-tenant access attempts

Test Coverage:
- Purchase orders: cross-tenant read/approve blocked
- Shipments: cross-tenant create/update blocked
- Suppliers, SKUs, warehouses: cross-tenant read/use blocked
- tenant_service helpers
"""

import pytest

from fbaops.exceptions import NotFoundError
from fbaops.models import PurchaseOrder, SecurityEvent, Supplier, Warehouse
from fbaops.services import shipment_service
from fbaops.services.tenant_service import require_in_org, require_sku_in_org, validate_org_active


def _cross_tenant_events(db_session):
    return db_session.query(SecurityEvent).filter_by(event_type="CROSS_TENANT_ACCESS_DENIED").all()


class TestTenantServiceHelpers:
    """Test tenant_service helper functions."""

    def test_require_in_org_valid(self, db_session, org_a, supplier_a):
        assert require_in_org(Supplier, supplier_a.id, org_a.id).id == supplier_a.id

    def test_require_in_org_cross_tenant(self, db_session, org_b, supplier_a):
        """Row from different org raises NotFoundError and is logged."""
        with pytest.raises(NotFoundError, match="Supplier not found"):
            require_in_org(Supplier, supplier_a.id, org_b.id)

        events = _cross_tenant_events(db_session)
        assert len(events) == 1
        assert events[0].org_id == org_b.id
        assert events[0].success is False

    def test_require_in_org_nonexistent(self, db_session, org_a):
        """Missing row raises NotFoundError without a security event."""
        with pytest.raises(NotFoundError, match="Purchase order not found"):
            require_in_org(PurchaseOrder, 99999, org_a.id, "Purchase order")
        assert _cross_tenant_events(db_session) == []

    def test_require_sku_in_org(self, db_session, org_a, org_b, skus_a):
        sku_1, _ = skus_a
        assert require_sku_in_org(sku_1.id, org_a.id).id == sku_1.id
        with pytest.raises(NotFoundError):
            require_sku_in_org(sku_1.id, org_b.id)

    def test_validate_org_active(self, db_session, org_a):
        assert validate_org_active(org_a.id).id == org_a.id
        org_a.is_active = False
        db_session.commit()
        with pytest.raises(NotFoundError):
            validate_org_active(org_a.id)


class TestPurchaseOrderIsolation:

    def test_cannot_read_other_org_order(self, client, db_session, admin_b, admin_b_headers, make_po, buyer_a):
        po = make_po(buyer_a)

        resp = client.get(f"/api/purchase-orders/{po.id}", headers=admin_b_headers)
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "Purchase order not found"

        events = _cross_tenant_events(db_session)
        assert len(events) == 1
        assert events[0].user_id == admin_b.id
        assert events[0].resource == f"/api/purchase-orders/{po.id}"

    def test_cannot_approve_other_org_order(self, client, db_session, admin_b_headers, make_po, buyer_a):
        po = make_po(buyer_a)

        resp = client.post(f"/api/purchase-orders/{po.id}/approve", headers=admin_b_headers)
        assert resp.status_code == 404

        db_session.refresh(po)
        assert po.status == "submitted"
        assert po.approved_by_user_id is None

    def test_list_excludes_other_org(self, client, admin_b_headers, make_po, buyer_a):
        make_po(buyer_a)
        data = client.get("/api/purchase-orders", headers=admin_b_headers).get_json()
        assert data["items"] == []
        assert data["count"] == 0

    def test_cannot_use_other_org_supplier_or_sku(self, client, admin_b_headers, supplier_a, supplier_b, skus_a):
        sku_1, _ = skus_a

        resp = client.post(
            "/api/purchase-orders",
            json={"supplier_id": supplier_a.id, "items": [{"sku_id": sku_1.id, "quantity": 1}]},
            headers=admin_b_headers,
        )
        assert resp.status_code == 400

        resp = client.post(
            "/api/purchase-orders",
            json={"supplier_id": supplier_b.id, "items": [{"sku_id": sku_1.id, "quantity": 1}]},
            headers=admin_b_headers,
        )
        assert resp.status_code == 400
        assert "SKU not found" in resp.get_json()["error"]


class TestShipmentIsolation:

    def test_cannot_create_shipment_for_other_org(self, client, db_session, admin_b_headers, approved_po):
        resp = client.post(
            f"/api/purchase-orders/{approved_po.id}/shipments", json={"cartons": 1}, headers=admin_b_headers,
        )
        assert resp.status_code == 404
        assert len(_cross_tenant_events(db_session)) == 1

    def test_cannot_update_other_org_shipment(self, client, db_session, org_a, admin_a, admin_b_headers, approved_po):
        shipment = shipment_service.create_shipment(
            po_id=approved_po.id, org_id=org_a.id, created_by_user_id=admin_a.id, cartons=1,
        )

        resp = client.patch(f"/api/shipments/{shipment.id}", json={"status": "delivered"}, headers=admin_b_headers)
        assert resp.status_code == 404

        db_session.refresh(shipment)
        assert shipment.status == "created"

        assert client.get("/api/shipments", headers=admin_b_headers).get_json()["count"] == 0


class TestCatalogIsolation:

    def test_supplier_read_and_update_blocked(self, client, admin_b_headers, supplier_a):
        assert client.get(f"/api/suppliers/{supplier_a.id}", headers=admin_b_headers).status_code == 404
        resp = client.patch(f"/api/suppliers/{supplier_a.id}", json={"name": "Hijacked"}, headers=admin_b_headers)
        assert resp.status_code == 404

    def test_sku_read_blocked(self, client, admin_b_headers, skus_a):
        sku_1, _ = skus_a
        assert client.get(f"/api/skus/{sku_1.id}", headers=admin_b_headers).status_code == 404
        assert client.get("/api/skus", headers=admin_b_headers).get_json()["count"] == 0

    def test_inventory_blocked(self, client, db_session, org_a, admin_b_headers, sku_b):
        warehouse = Warehouse(org_id=org_a.id, name="Acme Reno")
        db_session.add(warehouse)
        db_session.commit()

        resp = client.put(
            "/api/inventory",
            json={"warehouse_id": warehouse.id, "sku_id": sku_b.id, "quantity": 10},
            headers=admin_b_headers,
        )
        assert resp.status_code == 404
