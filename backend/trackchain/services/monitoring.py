"""Environmental monitoring — temperature readings and alert synthesis."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trackchain.middleware.exceptions import NotAuthorizedError
from trackchain.models.monitoring import ProductAlert, TemperatureLog
from trackchain.schemas.verification import TemperatureReading
from trackchain.services import history, lifecycle
from trackchain.services.alerts import alert_store
from trackchain.utils.clock import ledger_clock

logger = logging.getLogger(__name__)

TEMPERATURE_ALERT = "TEMPERATURE_ALERT"
TEMPERATURE_ALERT_SEVERITY = 3
TEMPERATURE_ALERT_MESSAGE = "Temperature out of acceptable range"


async def record_temperature(
    db: AsyncSession,
    caller: str,
    product_id: int,
    body: TemperatureReading,
) -> tuple[TemperatureLog, bool]:
    """Store a reading and raise an alert if it is out of range.

    Returns the stored log and whether an alert was raised.

    Raises:
        NotFoundError if the product does not exist.
        NotAuthorizedError unless the caller may act on the product.
    """
    product = await lifecycle.require_product(db, product_id)
    if not await lifecycle.is_authorized_for_product(db, caller, product):
        raise NotAuthorizedError(f"Not authorized to record readings for product {product_id}")

    sequence = await history.next_sequence(db, product_id)
    is_within_range = body.min_temp <= body.temperature <= body.max_temp

    log = await get_temperature_log(db, product_id, sequence)
    if log is None:
        log = TemperatureLog(product_id=product_id, sequence=sequence)
        db.add(log)
    log.temperature = body.temperature
    log.humidity = body.humidity
    log.location = body.location
    log.min_temp = body.min_temp
    log.max_temp = body.max_temp
    log.is_within_range = is_within_range
    log.recorder = caller
    log.timestamp = ledger_clock.tick()
    await db.flush()

    if not is_within_range:
        await alert_store.raise_alert(
            db,
            product_id,
            TEMPERATURE_ALERT,
            TEMPERATURE_ALERT_SEVERITY,
            TEMPERATURE_ALERT_MESSAGE,
        )
        logger.warning(
            "Product %d: %.2f°C outside [%.2f, %.2f]",
            product_id, body.temperature, body.min_temp, body.max_temp,
        )

    return log, not is_within_range


async def get_temperature_log(
    db: AsyncSession,
    product_id: int,
    sequence: int,
) -> TemperatureLog | None:
    return (
        await db.execute(
            select(TemperatureLog).where(
                TemperatureLog.product_id == product_id,
                TemperatureLog.sequence == sequence,
            )
        )
    ).scalar_one_or_none()


async def get_active_alert(db: AsyncSession, product_id: int) -> ProductAlert | None:
    return await alert_store.active_alert(db, product_id)
