import logging

from core.config import settings
from core.errors import ClientError
from core.execution_logs import list_execution_records
from core.session import Session

logging.basicConfig(level=settings.log_level)

session = Session.from_settings()
if not session.active:
    raise SystemExit("Please set the QA_EXECUTOR_API_TOKEN environment variable before running this script.")

print("Listing execution history...")
try:
    for record in list_execution_records(session.client()):
        print(f"{record.datestamp} {record.exetime}  {record.exeid}  {record.testcaseid}  {record.scripttype}  {record.status}")
except ClientError as exc:
    print(f"Error listing execution logs: {exc}")
