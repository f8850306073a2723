"""Aggregate model imports for Alembic auto-detection."""

# Registry / batches
from trackchain.models.stakeholder import Stakeholder, StakeholderRole  # noqa: F401
from trackchain.models.batch import Batch  # noqa: F401
from trackchain.models.counter import LedgerCounter  # noqa: F401

# Products and provenance
from trackchain.models.product import Product, ProductStatus  # noqa: F401
from trackchain.models.product_history import ProductHistory, ProductSequenceCounter  # noqa: F401
from trackchain.models.permission import ProductPermission  # noqa: F401

# Verification & monitoring
from trackchain.models.verification import Verification, VerificationType  # noqa: F401
from trackchain.models.monitoring import ProductAlert, TemperatureLog  # noqa: F401

# Recalls
from trackchain.models.recall import ProductRecall  # noqa: F401
