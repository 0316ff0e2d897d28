from typing import Optional

from core.models import GenerateScriptRequest, TestPlan


def build_payload(plan: Optional[TestPlan], test_case_id: str) -> GenerateScriptRequest:
    """Shape a loaded plan into the body the generation endpoint expects.

    Missing mappings come out empty, never absent or null.
    """
    if plan is None:
        return GenerateScriptRequest(current_testid=test_case_id)
    return GenerateScriptRequest(
        pretestid_steps=plan.pretestid_steps or {},
        pretestid_scripts=plan.pretestid_scripts or {},
        current_testid=test_case_id,
        current_bdd_steps=plan.current_bdd_steps or {},
    )
