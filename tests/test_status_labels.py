import pytest

from ekko.models.delivery import DeliveryStatus
from ekko.models.escrow import EscrowStatus
from ekko.models.milestone import MilestoneStatus
from ekko.models.work_order import WorkOrderStatus
from ekko.services.status_labels import (
    DELIVERY_STATUS_LABELS,
    ESCROW_STATUS_LABELS,
    MILESTONE_STATUS_LABELS,
    WORK_ORDER_STATUS_LABELS,
    describe,
)


@pytest.mark.parametrize(
    "enum_cls, table",
    [
        (WorkOrderStatus, WORK_ORDER_STATUS_LABELS),
        (MilestoneStatus, MILESTONE_STATUS_LABELS),
        (DeliveryStatus, DELIVERY_STATUS_LABELS),
        (EscrowStatus, ESCROW_STATUS_LABELS),
    ],
)
def test_tables_cover_every_member(enum_cls, table):
    assert set(table) == set(enum_cls)
    assert all(descriptor.label for descriptor in table.values())


def test_describe_dispatches_on_enum_type():
    # PENDING exists in several enums with different tones
    assert describe(WorkOrderStatus.PENDING).tone == "warning"
    assert describe(MilestoneStatus.PENDING).tone == "neutral"
    assert describe(DeliveryStatus.REVISION_REQUESTED).label == "Revision Requested"
    assert describe(EscrowStatus.PARTIALLY_RELEASED).label == "Partially Released"


def test_describe_has_no_fallback():
    with pytest.raises(KeyError):
        describe(object())  # type: ignore[arg-type]
