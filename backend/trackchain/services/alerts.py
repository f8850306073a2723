"""Alert storage for product monitoring.

Products currently hold a single alert slot: raising an alert replaces
whatever the slot held before.  Monitoring code talks to ``alert_store``
only, so moving to a per-product alert list means swapping the store
class, not touching its callers.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trackchain.models.monitoring import ProductAlert
from trackchain.utils.clock import ledger_clock


class SingleSlotAlertStore:
    """One alert per product; each new alert overwrites the last."""

    async def raise_alert(
        self,
        db: AsyncSession,
        product_id: int,
        alert_type: str,
        severity: int,
        message: str,
    ) -> ProductAlert:
        alert = await self.active_alert(db, product_id)
        if alert is None:
            alert = ProductAlert(product_id=product_id)
            db.add(alert)

        alert.alert_type = alert_type
        alert.severity = severity
        alert.message = message
        alert.timestamp = ledger_clock.tick()
        alert.is_resolved = False
        alert.resolver = None
        await db.flush()
        return alert

    async def active_alert(self, db: AsyncSession, product_id: int) -> ProductAlert | None:
        return (
            await db.execute(select(ProductAlert).where(ProductAlert.product_id == product_id))
        ).scalar_one_or_none()


alert_store = SingleSlotAlertStore()
