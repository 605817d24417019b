import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from process_map.log_loader import ProcessEvent  # noqa: E402

T0 = datetime(2024, 1, 2, 9, 0, 0)


def make_event(case_id, activity, hours=0.0, resource="System", amount=1000.0, vendor="ABC Supplies"):
    return ProcessEvent(
        case_id=case_id,
        activity=activity,
        timestamp=T0 + timedelta(hours=hours),
        resource=resource,
        amount=amount,
        vendor=vendor,
    )


SMALL_LOG = """Case ID,Activity,Timestamp,Resource,Amount,Vendor
INV00001,Invoice Received,2024-01-02 09:00:00,System,1200,ABC Supplies
INV00001,Manual Data Entry,2024-01-02 09:30:00,Sarah Johnson,1200,ABC Supplies
INV00002,Invoice Received,2024-01-02 10:00:00,System,800,XYZ Corp
INV00001,Approval Request,2024-01-02 10:00:00,System,1200,ABC Supplies
INV00002,Manual Data Entry,2024-01-02 11:00:00,John Smith,800,XYZ Corp
INV00001,Manager Review,2024-01-02 14:00:00,Mike Chen,1200,ABC Supplies
INV00002,Approval Request,2024-01-02 11:30:00,System,800,XYZ Corp
INV00002,Manager Review,2024-01-02 13:30:00,Lisa Wang,800,XYZ Corp
INV00002,Rejected - Missing PO,2024-01-02 13:45:00,Lisa Wang,800,XYZ Corp
INV00001,Approval Granted,2024-01-02 14:15:00,Mike Chen,1200,ABC Supplies
INV00001,Payment Scheduled,2024-01-02 14:45:00,System,1200,ABC Supplies
INV00001,Payment Processed,2024-01-03 09:00:00,Finance System,1200,ABC Supplies
INV00003,Invoice Received,2024-01-03 08:00:00,System,640,Cloud Systems
"""


@pytest.fixture
def small_log_text():
    return SMALL_LOG
