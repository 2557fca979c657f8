"""
Tests unitaires pour BillService et DisputeService.
"""
import pytest
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock


def _extraction():
    from app.services.ocr import DocumentExtraction, ExtractedLineItem

    return DocumentExtraction(
        supplier_name="Rungis",
        date=datetime(2026, 2, 1, tzinfo=timezone.utc),
        total_amount=Decimal("42"),
        items=[ExtractedLineItem(
            description="Tomates", quantity=Decimal("5"), unit="KG",
            unit_price=Decimal("2"), total_price=Decimal("10"),
        )],
    )


def _bill_service(**repos):
    from app.services.restaurant.bill import BillService

    return BillService(
        repos.get("bill_repo") or MagicMock(),
        repos.get("bill_product_repo") or MagicMock(),
        repos.get("product_repo") or MagicMock(),
        repos.get("supplier_repo") or MagicMock(),
        repos.get("movement_repo") or MagicMock(),
        ocr_client=repos.get("ocr_client"),
    )


class TestBillProcessing:
    """Tests pour l'extraction d'une facture."""

    @pytest.mark.unit
    def test_process_upload_creates_pending_bill(self):
        from app.models.restaurant.bill import BillStatus

        ocr_client = MagicMock()
        ocr_client.analyze.return_value = _extraction()
        bill_repo = MagicMock()

        processed = _bill_service(bill_repo=bill_repo, ocr_client=ocr_client).process_upload(
            "facture.pdf", b"%PDF", "application/pdf",
        )

        data = bill_repo.create.call_args[0][0]
        assert data["status"] == BillStatus.PENDING
        assert data["total_amount"] == Decimal("42")
        assert data["raw_content"]["supplier_name"] == "Rungis"
        assert processed.extraction.items[0].description == "Tomates"

    @pytest.mark.unit
    def test_process_upload_without_content(self):
        from app.services.restaurant.bill import InvalidBillError

        with pytest.raises(InvalidBillError):
            _bill_service(ocr_client=MagicMock()).process_upload("vide.pdf", b"")

    @pytest.mark.unit
    def test_parse_unit(self):
        from app.services.restaurant.bill import parse_unit, InvalidBillError
        from app.models.restaurant.product import Unit

        assert parse_unit(" kg ") == Unit.KG
        assert parse_unit(Unit.L) == Unit.L
        with pytest.raises(InvalidBillError):
            parse_unit("barrel")


class TestBillConfirmation:
    """Tests pour la confirmation d'une facture."""

    @pytest.mark.unit
    def test_confirm_updates_stock_and_price(self):
        from app.models.restaurant.bill import BillStatus
        from app.models.restaurant.stock_movement import MovementType, MovementSource

        bill = SimpleNamespace(id=1, filename="f.pdf", status=BillStatus.PENDING,
                               supplier=None, bill_date=None, total_amount=None)
        bill_repo = MagicMock()
        bill_repo.get.return_value = bill
        product = SimpleNamespace(id=3, quantity=Decimal("2"), unit_price=Decimal("1.5"))
        product_repo = MagicMock()
        product_repo.get.return_value = product
        supplier_repo = MagicMock()
        movement_repo = MagicMock()

        result = _bill_service(
            bill_repo=bill_repo, product_repo=product_repo,
            supplier_repo=supplier_repo, movement_repo=movement_repo,
        ).confirm(
            1,
            [{"product_id": 3, "quantity": "5", "unit_price": "1.8"}],
            supplier=" Rungis ",
        )

        assert product.quantity == Decimal("7")
        assert product.unit_price == Decimal("1.8")
        assert bill.status == BillStatus.PROCESSED
        supplier_repo.get_or_create.assert_called_once_with("Rungis", email=None, phone=None)
        args, kwargs = movement_repo.record.call_args
        assert args[1] == MovementType.IN
        assert kwargs["source"] == MovementSource.SCAN_RECEPTION
        assert kwargs["bill_id"] == 1
        assert result.products_updated == 1
        assert result.products_created == 0

    @pytest.mark.unit
    def test_confirm_creates_unknown_product(self):
        from app.models.restaurant.bill import BillStatus
        from app.models.restaurant.product import Unit

        bill_repo = MagicMock()
        bill_repo.get.return_value = SimpleNamespace(id=1, filename="f.pdf", status=BillStatus.PENDING)
        product_repo = MagicMock()
        product_repo.get_by_name_insensitive.return_value = None
        product_repo.create.return_value = SimpleNamespace(id=9, quantity=Decimal("0"), unit_price=None)

        result = _bill_service(bill_repo=bill_repo, product_repo=product_repo).confirm(
            1, [{"product_name": "Basilic", "quantity": 2, "unit": "bunch"}],
        )

        data = product_repo.create.call_args[0][0]
        assert data["unit"] == Unit.BUNCH
        assert data["trackable"] is True
        assert result.products_created == 1

    @pytest.mark.unit
    def test_confirm_twice_is_refused(self):
        from app.services.restaurant.bill import BillAlreadyProcessedError
        from app.models.restaurant.bill import BillStatus

        bill_repo = MagicMock()
        bill_repo.get.return_value = SimpleNamespace(id=1, status=BillStatus.PROCESSED)

        with pytest.raises(BillAlreadyProcessedError):
            _bill_service(bill_repo=bill_repo).confirm(1, [{"product_id": 1, "quantity": 1}])

    @pytest.mark.unit
    def test_confirm_requires_positive_quantities(self):
        from app.services.restaurant.bill import InvalidBillError
        from app.models.restaurant.bill import BillStatus

        bill_repo = MagicMock()
        bill_repo.get.return_value = SimpleNamespace(id=1, status=BillStatus.PENDING)

        with pytest.raises(InvalidBillError):
            _bill_service(bill_repo=bill_repo).confirm(1, [])
        with pytest.raises(InvalidBillError):
            _bill_service(bill_repo=bill_repo).confirm(1, [{"product_id": 1, "quantity": 0}])


class TestDisputeService:
    """Tests comportementaux pour DisputeService."""

    @pytest.mark.unit
    def test_create_dispute_marks_bill_disputed(self):
        from app.services.restaurant.dispute import DisputeService
        from app.models.restaurant.bill import BillStatus
        from app.models.restaurant.dispute import DisputeType, DisputeStatus, DisputeReason

        bill = SimpleNamespace(id=4, status=BillStatus.PROCESSED)
        bill_repo = MagicMock()
        bill_repo.get.return_value = bill
        product_repo = MagicMock()
        product_repo.exists.return_value = True

        dispute = DisputeService(MagicMock(), bill_repo, product_repo).create_dispute(
            bill_id=4,
            type=DisputeType.RETURN,
            title="Tomates abimees",
            products=[{"product_id": 1, "quantity_disputed": "2", "reason": "DAMAGED"}],
        )

        assert bill.status == BillStatus.DISPUTED
        assert dispute.status == DisputeStatus.OPEN
        assert dispute.products[0].reason == DisputeReason.DAMAGED

    @pytest.mark.unit
    def test_create_dispute_on_unknown_bill(self):
        from app.services.restaurant.dispute import DisputeService
        from app.services.restaurant.bill import BillNotFoundError
        from app.models.restaurant.dispute import DisputeType

        bill_repo = MagicMock()
        bill_repo.get.return_value = None

        with pytest.raises(BillNotFoundError):
            DisputeService(MagicMock(), bill_repo, MagicMock()).create_dispute(
                bill_id=4, type=DisputeType.COMPLAINT, title="x",
            )

    @pytest.mark.unit
    def test_allowed_transitions(self):
        from app.services.restaurant.dispute import can_transition
        from app.models.restaurant.dispute import DisputeStatus

        assert can_transition(DisputeStatus.OPEN, DisputeStatus.IN_PROGRESS)
        assert can_transition(DisputeStatus.RESOLVED, DisputeStatus.CLOSED)
        assert not can_transition(DisputeStatus.CLOSED, DisputeStatus.OPEN)
        assert not can_transition(DisputeStatus.RESOLVED, DisputeStatus.IN_PROGRESS)

    @pytest.mark.unit
    def test_resolve_requires_notes(self):
        from app.services.restaurant.dispute import DisputeService, InvalidDisputeError
        from app.models.restaurant.dispute import DisputeStatus

        dispute_repo = MagicMock()
        dispute_repo.get_with_products.return_value = SimpleNamespace(
            id=1, status=DisputeStatus.OPEN, resolution_notes=None, resolved_at=None,
        )

        with pytest.raises(InvalidDisputeError):
            DisputeService(dispute_repo, MagicMock(), MagicMock()).update_status(1, DisputeStatus.RESOLVED)

    @pytest.mark.unit
    def test_resolve_sets_resolved_at(self):
        from app.services.restaurant.dispute import DisputeService
        from app.models.restaurant.dispute import DisputeStatus

        dispute = SimpleNamespace(id=1, status=DisputeStatus.IN_PROGRESS, resolution_notes=None, resolved_at=None)
        dispute_repo = MagicMock()
        dispute_repo.get_with_products.return_value = dispute

        DisputeService(dispute_repo, MagicMock(), MagicMock()).update_status(
            1, DisputeStatus.RESOLVED, resolution_notes="Avoir recu",
        )

        assert dispute.status == DisputeStatus.RESOLVED
        assert dispute.resolution_notes == "Avoir recu"
        assert dispute.resolved_at is not None

    @pytest.mark.unit
    def test_closed_is_terminal(self):
        from app.services.restaurant.dispute import DisputeService, InvalidStatusTransitionError
        from app.models.restaurant.dispute import DisputeStatus

        dispute_repo = MagicMock()
        dispute_repo.get_with_products.return_value = SimpleNamespace(
            id=1, status=DisputeStatus.CLOSED, resolution_notes="ok", resolved_at=None,
        )

        with pytest.raises(InvalidStatusTransitionError) as exc:
            DisputeService(dispute_repo, MagicMock(), MagicMock()).update_status(1, DisputeStatus.OPEN)
        assert exc.value.status_code == 409
