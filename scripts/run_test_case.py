import argparse
import logging
import sys

from core.config import settings
from core.errors import ClientError
from core.execution_logs import save_script
from core.log_sink import LogSink
from core.pipeline import ScriptPipeline
from core.plan_loader import load_plan
from core.session import Session


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Load a test plan, generate its script and execute it.")
    parser.add_argument("test_case_id")
    parser.add_argument(
        "--save",
        action="store_true",
        help=f"keep a copy of the generated script in QA_EXECUTOR_DOWNLOAD_DIR (now {settings.download_dir})",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level)
    session = Session.from_settings()
    if not session.active:
        print("Please set the QA_EXECUTOR_API_TOKEN environment variable before running this script.")
        return 2

    client = session.client()
    log = LogSink(max_lines=settings.log_max_lines)
    try:
        plan = load_plan(client, args.test_case_id, log=log)
    except ClientError as exc:
        log.append(f"✗ Error fetching test plan: {exc}")
        plan = None

    result = ScriptPipeline(client, log).run(args.test_case_id, plan)
    if args.save and result.script:
        try:
            path = save_script(settings.download_dir, args.test_case_id, result.script)
            log.append(f"Script downloaded to: {path}")
        except OSError as exc:
            log.append(f"✗ Error downloading script: {exc}")

    print(log.text)
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
