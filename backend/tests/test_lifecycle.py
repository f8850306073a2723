"""Product lifecycle engine tests — transitions, custody, authorization."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import DISTRIBUTOR, MANUFACTURER, REGISTRY_OWNER, RETAILER, STRANGER
from trackchain.middleware.exceptions import (
    InvalidStakeholderError,
    InvalidTransitionError,
    NotAuthorizedError,
    NotFoundError,
)
from trackchain.models import Product, ProductPermission, ProductStatus
from trackchain.schemas.product import PermissionGrant, ProductCreate, StatusUpdate, TransferRequest
from trackchain.services import history, lifecycle

S = ProductStatus


def _move(status: ProductStatus, holder: str = MANUFACTURER, location: str = "Yakima") -> StatusUpdate:
    return StatusUpdate(new_status=int(status), new_location=location, new_holder=holder)


@pytest.mark.unit
class TestTransitionRules:

    def test_forward_path_is_legal(self):
        path = [
            S.CREATED, S.IN_PRODUCTION, S.QUALITY_CHECK, S.PACKAGED,
            S.IN_TRANSIT, S.AT_WAREHOUSE, S.IN_TRANSIT, S.AT_RETAILER, S.SOLD,
        ]
        for current, new in zip(path, path[1:]):
            assert lifecycle.is_valid_transition(current, new), (current, new)

    def test_recalled_reachable_from_everywhere(self):
        for current in ProductStatus:
            assert lifecycle.is_valid_transition(current, S.RECALLED)

    def test_expired_only_from_warehouse_or_retailer(self):
        allowed = {current for current in ProductStatus if lifecycle.is_valid_transition(current, S.EXPIRED)}
        assert allowed == {S.AT_WAREHOUSE, S.AT_RETAILER}

    def test_skips_and_reversals_are_illegal(self):
        for current, new in [
            (S.CREATED, S.SOLD),
            (S.CREATED, S.PACKAGED),
            (S.PACKAGED, S.QUALITY_CHECK),
            (S.SOLD, S.AT_RETAILER),
            (S.AT_WAREHOUSE, S.AT_RETAILER),
            (S.RECALLED, S.CREATED),
            (S.EXPIRED, S.IN_TRANSIT),
            (S.CREATED, S.CREATED),
        ]:
            assert not lifecycle.is_valid_transition(current, new), (current, new)

    def test_capability_check(self):
        product = Product(manufacturer=MANUFACTURER, current_holder=DISTRIBUTOR)

        assert lifecycle.can_update_product(MANUFACTURER, product)
        assert lifecycle.can_update_product(DISTRIBUTOR, product)
        assert not lifecycle.can_update_product(RETAILER, product)

        grant = ProductPermission(identity=RETAILER, can_update=True)
        assert lifecycle.can_update_product(RETAILER, product, grant)

        denied = ProductPermission(identity=RETAILER, can_update=False)
        assert not lifecycle.can_update_product(RETAILER, product, denied)


@pytest.mark.integration
@pytest.mark.asyncio
class TestCreateProduct:

    async def test_creation_writes_first_entry(self, db_session: AsyncSession, product, batch):
        assert product.id == 1
        assert product.current_status == S.CREATED
        assert product.current_holder == MANUFACTURER
        assert product.is_recalled is False
        assert product.total_verifications == 0
        assert batch.remaining_quantity == 2

        entries = await history.list_entries(db_session, product.id)
        assert len(entries) == 1
        first = entries[0]
        assert first.sequence == 1
        assert first.from_holder == first.to_holder == MANUFACTURER
        assert first.status == S.CREATED
        assert first.notes == "Product created"
        assert await history.next_sequence(db_session, product.id) == 2

    async def test_missing_batch(self, db_session: AsyncSession, stakeholders):
        with pytest.raises(NotFoundError):
            await lifecycle.create_product(
                db_session, MANUFACTURER, ProductCreate(batch_id=77, name="Nothing")
            )

    async def test_only_batch_manufacturer(self, db_session: AsyncSession, batch):
        with pytest.raises(NotAuthorizedError):
            await lifecycle.create_product(
                db_session, DISTRIBUTOR, ProductCreate(batch_id=batch.id, name="Knockoff")
            )
        assert batch.remaining_quantity == 3


@pytest.mark.integration
@pytest.mark.asyncio
class TestUpdateStatus:

    async def test_manufacturer_scenario(self, db_session: AsyncSession, product):
        """Walk a product from the plant to the checkout counter."""
        steps = [
            (S.IN_PRODUCTION, MANUFACTURER, "Line 3"),
            (S.QUALITY_CHECK, MANUFACTURER, "QA bay"),
            (S.PACKAGED, MANUFACTURER, "Packing"),
            (S.IN_TRANSIT, DISTRIBUTOR, "I-90"),
            (S.AT_WAREHOUSE, DISTRIBUTOR, "Spokane DC"),
            (S.IN_TRANSIT, DISTRIBUTOR, "I-90"),
            (S.AT_RETAILER, RETAILER, "Corner Grocer"),
            (S.SOLD, RETAILER, "Checkout"),
        ]
        for status, holder, location in steps:
            caller = product.current_holder
            await lifecycle.update_status(
                db_session, caller, product.id, _move(status, holder, location)
            )

        assert product.current_status == S.SOLD
        assert product.current_holder == RETAILER
        assert product.current_location == "Checkout"

        entries = await history.list_entries(db_session, product.id)
        assert [e.sequence for e in entries] == list(range(1, len(steps) + 2))
        assert entries[4].from_holder == MANUFACTURER
        assert entries[4].to_holder == DISTRIBUTOR

        state = history.fold_entries(entries)
        assert state.status == product.current_status
        assert state.holder == product.current_holder
        assert state.location == product.current_location
        assert history.chain_is_valid(entries)

    async def test_illegal_transition_leaves_no_trace(self, db_session: AsyncSession, product):
        with pytest.raises(InvalidTransitionError):
            await lifecycle.update_status(db_session, MANUFACTURER, product.id, _move(S.SOLD))

        assert product.current_status == S.CREATED
        assert await history.next_sequence(db_session, product.id) == 2

    async def test_unknown_status_code(self, db_session: AsyncSession, product):
        body = StatusUpdate(new_status=42, new_holder=MANUFACTURER)
        with pytest.raises(InvalidTransitionError):
            await lifecycle.update_status(db_session, MANUFACTURER, product.id, body)

    async def test_expire_from_warehouse(self, db_session: AsyncSession, product):
        for status in (S.IN_PRODUCTION, S.QUALITY_CHECK, S.PACKAGED, S.IN_TRANSIT, S.AT_WAREHOUSE):
            await lifecycle.update_status(db_session, MANUFACTURER, product.id, _move(status))

        await lifecycle.update_status(db_session, MANUFACTURER, product.id, _move(S.EXPIRED))
        assert product.current_status == S.EXPIRED

    async def test_expire_from_created_rejected(self, db_session: AsyncSession, product):
        with pytest.raises(InvalidTransitionError):
            await lifecycle.update_status(db_session, MANUFACTURER, product.id, _move(S.EXPIRED))

    async def test_recalled_status_sets_flag(self, db_session: AsyncSession, product):
        await lifecycle.update_status(db_session, MANUFACTURER, product.id, _move(S.RECALLED))

        assert product.current_status == S.RECALLED
        assert product.is_recalled is True

    async def test_not_found_before_not_authorized(self, db_session: AsyncSession, stakeholders):
        with pytest.raises(NotFoundError):
            await lifecycle.update_status(db_session, STRANGER, 999, _move(S.IN_PRODUCTION))

    async def test_unrelated_caller_rejected(self, db_session: AsyncSession, product):
        with pytest.raises(NotAuthorizedError):
            await lifecycle.update_status(db_session, RETAILER, product.id, _move(S.IN_PRODUCTION))

    async def test_environment_recorded_on_entry(self, db_session: AsyncSession, product):
        body = StatusUpdate(
            new_status=int(S.IN_PRODUCTION),
            new_location="Cold room",
            new_holder=MANUFACTURER,
            temperature=3.5,
            humidity=80.0,
            notes="Chilled",
        )
        await lifecycle.update_status(db_session, MANUFACTURER, product.id, body)

        entry = await history.get_entry(db_session, product.id, 2)
        assert (entry.temperature, entry.humidity, entry.notes) == (3.5, 80.0, "Chilled")


@pytest.mark.integration
@pytest.mark.asyncio
class TestTransfer:

    async def test_holder_transfers_custody(self, db_session: AsyncSession, product):
        await lifecycle.transfer_product(
            db_session,
            MANUFACTURER,
            product.id,
            TransferRequest(new_owner=DISTRIBUTOR, new_location="Dock 4", notes="Handover"),
        )

        assert product.current_holder == DISTRIBUTOR
        assert product.current_location == "Dock 4"
        assert product.current_status == S.CREATED

        entry = await history.get_entry(db_session, product.id, 2)
        assert entry.from_holder == MANUFACTURER
        assert entry.to_holder == DISTRIBUTOR
        assert entry.status == S.CREATED

    async def test_non_holder_rejected(self, db_session: AsyncSession, product):
        with pytest.raises(NotAuthorizedError):
            await lifecycle.transfer_product(
                db_session, DISTRIBUTOR, product.id, TransferRequest(new_owner=RETAILER)
            )

    async def test_manufacturer_cannot_transfer_once_handed_off(
        self, db_session: AsyncSession, product,
    ):
        await lifecycle.transfer_product(
            db_session, MANUFACTURER, product.id, TransferRequest(new_owner=DISTRIBUTOR)
        )
        with pytest.raises(NotAuthorizedError):
            await lifecycle.transfer_product(
                db_session, MANUFACTURER, product.id, TransferRequest(new_owner=RETAILER)
            )

    async def test_unregistered_target_rejected(self, db_session: AsyncSession, product):
        with pytest.raises(InvalidStakeholderError):
            await lifecycle.transfer_product(
                db_session, MANUFACTURER, product.id, TransferRequest(new_owner=STRANGER)
            )
        assert product.current_holder == MANUFACTURER
        assert await history.next_sequence(db_session, product.id) == 2

    async def test_missing_product(self, db_session: AsyncSession, stakeholders):
        with pytest.raises(NotFoundError):
            await lifecycle.transfer_product(
                db_session, MANUFACTURER, 5, TransferRequest(new_owner=DISTRIBUTOR)
            )


@pytest.mark.integration
@pytest.mark.asyncio
class TestPermissions:

    async def test_grant_lets_grantee_update(self, db_session: AsyncSession, product):
        with pytest.raises(NotAuthorizedError):
            await lifecycle.update_status(db_session, RETAILER, product.id, _move(S.IN_PRODUCTION))

        permission = await lifecycle.grant_permission(
            db_session, MANUFACTURER, product.id, PermissionGrant(identity=RETAILER)
        )
        assert permission.can_update is True
        assert permission.granted_by == MANUFACTURER

        await lifecycle.update_status(db_session, RETAILER, product.id, _move(S.IN_PRODUCTION))
        assert product.current_status == S.IN_PRODUCTION

    async def test_revoke_removes_access(self, db_session: AsyncSession, product):
        await lifecycle.grant_permission(
            db_session, MANUFACTURER, product.id, PermissionGrant(identity=RETAILER)
        )
        await lifecycle.revoke_permission(db_session, MANUFACTURER, product.id, RETAILER)

        with pytest.raises(NotAuthorizedError):
            await lifecycle.update_status(db_session, RETAILER, product.id, _move(S.IN_PRODUCTION))

    async def test_grant_with_can_update_false(self, db_session: AsyncSession, product):
        await lifecycle.grant_permission(
            db_session, MANUFACTURER, product.id, PermissionGrant(identity=RETAILER, can_update=False)
        )
        assert not await lifecycle.is_authorized_for_product(db_session, RETAILER, product)

    async def test_registry_owner_may_grant(self, db_session: AsyncSession, product):
        await lifecycle.grant_permission(
            db_session, REGISTRY_OWNER, product.id, PermissionGrant(identity=DISTRIBUTOR)
        )
        assert await lifecycle.is_authorized_for_product(db_session, DISTRIBUTOR, product)

    async def test_holder_cannot_grant(self, db_session: AsyncSession, product):
        await lifecycle.transfer_product(
            db_session, MANUFACTURER, product.id, TransferRequest(new_owner=DISTRIBUTOR)
        )
        with pytest.raises(NotAuthorizedError):
            await lifecycle.grant_permission(
                db_session, DISTRIBUTOR, product.id, PermissionGrant(identity=RETAILER)
            )

    async def test_grantee_must_be_registered(self, db_session: AsyncSession, product):
        with pytest.raises(InvalidStakeholderError):
            await lifecycle.grant_permission(
                db_session, MANUFACTURER, product.id, PermissionGrant(identity=STRANGER)
            )

    async def test_revoke_missing_grant(self, db_session: AsyncSession, product):
        with pytest.raises(NotFoundError):
            await lifecycle.revoke_permission(db_session, MANUFACTURER, product.id, RETAILER)

    async def test_grants_do_not_touch_history(self, db_session: AsyncSession, product):
        await lifecycle.grant_permission(
            db_session, MANUFACTURER, product.id, PermissionGrant(identity=RETAILER)
        )
        assert await history.next_sequence(db_session, product.id) == 2
