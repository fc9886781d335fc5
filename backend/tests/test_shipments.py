"""
Inbound shipment tests.

Verifies:
- Shipments derive only from approved purchase orders, one per order
- Reference format SHIP-<BASE36 epoch ms> and collision retry
- Carton/measurement validation (finite, non-negative)
- One shipment per order, also under concurrent creation
- Status updates are unrestricted between created/in_transit/delivered
"""

import re

import pytest
from sqlalchemy.exc import IntegrityError

from fbaops.exceptions import (
    DuplicateReferenceError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from fbaops.models import AuditLog, InboundShipment
from fbaops.services import shipment_service
from fbaops.time_utils import to_base36
from fbaops.validation import MAX_QUANTITY


def _create(po, org_id, user, **kwargs):
    kwargs.setdefault("cartons", 4)
    return shipment_service.create_shipment(
        po_id=po.id,
        org_id=org_id,
        created_by_user_id=user.id,
        **kwargs,
    )


# =============================================================================
# REFERENCES
# =============================================================================


class TestReference:

    def test_base36(self):
        assert to_base36(0) == "0"
        assert to_base36(35) == "z"
        assert to_base36(36) == "10"
        assert to_base36(1700000000000) == "loyw3v28"

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            to_base36(-1)

    def test_reference_format(self):
        assert shipment_service.generate_shipment_reference(1700000000000) == "SHIP-LOYW3V28"
        assert re.fullmatch(r"SHIP-[0-9A-Z]+", shipment_service.generate_shipment_reference())


# =============================================================================
# CREATE
# =============================================================================


class TestCreateShipment:

    def test_create_from_approved(self, db_session, org_a, approved_po, admin_a):
        shipment = _create(approved_po, org_a.id, admin_a, weight_per_carton=12.5, length=40, width=30, height=20)

        assert shipment.status == "created"
        assert shipment.purchase_order_id == approved_po.id
        assert shipment.org_id == org_a.id
        assert shipment.cartons == 4
        assert shipment.weight_per_carton == 12.5
        assert re.fullmatch(r"SHIP-[0-9A-Z]+", shipment.reference)

        audit = db_session.query(AuditLog).filter_by(action="shipment.created").one()
        assert audit.entity_id == shipment.id

    def test_defaults_measurements_to_zero(self, db_session, org_a, approved_po, admin_a):
        shipment = _create(approved_po, org_a.id, admin_a, cartons=1)
        assert (shipment.weight_per_carton, shipment.length, shipment.width, shipment.height) == (0, 0, 0, 0)

    @pytest.mark.parametrize("status", ["draft", "submitted"])
    def test_requires_approved_order(self, db_session, org_a, make_po, buyer_a, admin_a, status):
        po = make_po(buyer_a, status=status)
        with pytest.raises(InvalidTransitionError):
            _create(po, org_a.id, admin_a)
        assert db_session.query(InboundShipment).count() == 0

    def test_cancelled_order_rejected(self, db_session, org_a, make_po, buyer_a, admin_a):
        po = make_po(buyer_a)
        po.status = "cancelled"
        db_session.commit()
        with pytest.raises(InvalidTransitionError):
            _create(po, org_a.id, admin_a)

    def test_one_shipment_per_order(self, db_session, org_a, approved_po, admin_a):
        _create(approved_po, org_a.id, admin_a)
        with pytest.raises(InvalidTransitionError):
            _create(approved_po, org_a.id, admin_a)
        assert db_session.query(InboundShipment).count() == 1

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"cartons": 0},
            {"cartons": -2},
            {"cartons": 1, "weight_per_carton": -1},
            {"cartons": 1, "length": -0.5},
            {"cartons": 1, "width": -3},
            {"cartons": 1, "height": -10},
            {"cartons": MAX_QUANTITY + 1},
            {"cartons": 1, "weight_per_carton": float("nan")},
            {"cartons": 1, "length": float("inf")},
            {"cartons": 1, "width": float("-inf")},
        ],
    )
    def test_measurement_validation(self, db_session, org_a, approved_po, admin_a, kwargs):
        with pytest.raises(ValidationError):
            _create(approved_po, org_a.id, admin_a, **kwargs)
        assert db_session.query(InboundShipment).count() == 0

    def test_database_holds_one_shipment_per_order(self, db_session, org_a, approved_po, admin_a):
        _create(approved_po, org_a.id, admin_a)

        db_session.add(InboundShipment(
            purchase_order_id=approved_po.id,
            org_id=org_a.id,
            reference="SHIP-SECOND",
            cartons=1,
            created_by_user_id=admin_a.id,
        ))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

        assert db_session.query(InboundShipment).filter_by(purchase_order_id=approved_po.id).count() == 1

    def test_concurrent_create_loses_to_constraint(self, db_session, org_a, approved_po, admin_a, monkeypatch):
        """A create that passed the pre-check after another committed still fails cleanly."""
        _create(approved_po, org_a.id, admin_a)
        monkeypatch.setattr(shipment_service, "_has_shipment", lambda po: False)

        with pytest.raises(InvalidTransitionError, match="already has a shipment"):
            _create(approved_po, org_a.id, admin_a)

        assert db_session.query(InboundShipment).count() == 1
        assert db_session.query(AuditLog).filter_by(action="shipment.created").count() == 1

    def test_other_org_order_not_found(self, db_session, org_b, approved_po, admin_b):
        with pytest.raises(NotFoundError):
            _create(approved_po, org_b.id, admin_b)


class TestReferenceCollision:

    def _seed_existing(self, db_session, org_a, make_po, buyer_a, admin_a, reference):
        from fbaops.services import purchase_order_service

        other = make_po(buyer_a)
        purchase_order_service.approve_purchase_order(
            other.id, org_a.id, actor_user_id=admin_a.id, actor_role="admin",
        )
        _create(other, org_a.id, admin_a, reference_factory=lambda: reference)

    def test_retries_with_new_reference(self, db_session, org_a, make_po, buyer_a, admin_a, approved_po):
        self._seed_existing(db_session, org_a, make_po, buyer_a, admin_a, "SHIP-TAKEN")

        references = iter(["SHIP-TAKEN", "SHIP-FRESH"])
        shipment = _create(approved_po, org_a.id, admin_a, reference_factory=lambda: next(references))

        assert shipment.reference == "SHIP-FRESH"
        assert db_session.query(InboundShipment).count() == 2

    def test_gives_up_after_attempts(self, db_session, org_a, make_po, buyer_a, admin_a, approved_po):
        self._seed_existing(db_session, org_a, make_po, buyer_a, admin_a, "SHIP-TAKEN")

        calls = []

        def always_taken():
            calls.append(1)
            return "SHIP-TAKEN"

        with pytest.raises(DuplicateReferenceError):
            _create(approved_po, org_a.id, admin_a, reference_factory=always_taken)

        assert len(calls) == 3
        assert db_session.query(InboundShipment).count() == 1
        assert db_session.query(AuditLog).filter_by(action="shipment.created").count() == 1


# =============================================================================
# STATUS
# =============================================================================


class TestShipmentStatus:

    @pytest.mark.parametrize(
        "path",
        [
            ["in_transit", "delivered"],
            ["delivered"],
            ["delivered", "created"],
            ["in_transit", "created", "in_transit"],
        ],
    )
    def test_any_order_allowed(self, db_session, org_a, approved_po, admin_a, path):
        shipment = _create(approved_po, org_a.id, admin_a)
        for status in path:
            shipment = shipment_service.update_shipment_status(
                shipment_id=shipment.id, org_id=org_a.id, status=status, actor_user_id=admin_a.id,
            )
            assert shipment.status == status

        changes = db_session.query(AuditLog).filter_by(action="shipment.status_changed").count()
        assert changes == len(path)

    def test_unknown_status_rejected(self, db_session, org_a, approved_po, admin_a):
        shipment = _create(approved_po, org_a.id, admin_a)
        with pytest.raises(ValidationError):
            shipment_service.update_shipment_status(
                shipment_id=shipment.id, org_id=org_a.id, status="lost", actor_user_id=admin_a.id,
            )

    def test_list_filters(self, db_session, org_a, org_b, approved_po, admin_a, buyer_a, other_buyer_a):
        shipment = _create(approved_po, org_a.id, admin_a)

        assert [s.id for s in shipment_service.list_shipments(org_a.id)] == [shipment.id]
        assert shipment_service.list_shipments(org_b.id) == []
        assert shipment_service.list_shipments(org_a.id, status="delivered") == []
        assert len(shipment_service.list_shipments(org_a.id, created_by_user_id=buyer_a.id)) == 1
        assert shipment_service.list_shipments(org_a.id, created_by_user_id=other_buyer_a.id) == []

    def test_get_respects_visibility(self, db_session, org_a, org_b, approved_po, admin_a, buyer_a, other_buyer_a):
        shipment = _create(approved_po, org_a.id, admin_a)

        assert shipment_service.get_shipment(shipment.id, org_a.id).id == shipment.id
        own = shipment_service.get_shipment(shipment.id, org_a.id, viewer_user_id=buyer_a.id, can_view_all=False)
        assert own.id == shipment.id

        with pytest.raises(NotFoundError):
            shipment_service.get_shipment(shipment.id, org_a.id, viewer_user_id=other_buyer_a.id, can_view_all=False)
        with pytest.raises(NotFoundError):
            shipment_service.get_shipment(shipment.id, org_b.id)
